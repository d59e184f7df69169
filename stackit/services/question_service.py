"""
Question service: business logic for the Question aggregate.

Design notes
------------
- Eager loading via ``joinedload`` (many-to-one: author) and
  ``selectinload`` (one-to-many: tag_links, answers) is used for every
  read that is serialised, so no relationship is lazily loaded.
- Service functions flush but do not commit; the transaction boundary
  is owned by the ``get_db`` dependency in the router layer.  That
  makes the cascade in ``delete_question`` and the two/three-row
  update in ``accept_answer`` all-or-nothing.
- Accept-answer flushes its writes in the order question → new answer
  → previous answer; a database failure there is surfaced as
  ``StoreError`` and the whole request rolls back.
"""
import logging
import math

from sqlalchemy import asc, desc, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, selectinload

from stackit.auth import Identity
from stackit.config import settings
from stackit.exceptions import (
    AuthorizationError,
    MismatchError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from stackit.models import Answer, Question, QuestionTag, utcnow
from stackit.schemas import QuestionCreate, QuestionUpdate
from stackit.services import notification_service
from stackit.services.guards import ensure_can_write, ensure_owner_or_admin
from stackit.services.serializers import answer_to_dict, question_to_dict

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def clean_tags(tags: list[str] | None) -> list[str]:
    """
    Strip each tag, drop repeats (first occurrence wins) and enforce the
    per-question limit.
    """
    if tags is None or not isinstance(tags, list):
        raise ValidationError("Tags must be a list", field="tags")

    cleaned: list[str] = []
    for raw in tags:
        name = raw.strip() if isinstance(raw, str) else ""
        if not name:
            raise ValidationError("Tags must be non-empty strings", field="tags")
        if len(name) > settings.MAX_TAG_LENGTH:
            raise ValidationError(
                f"Tags must be at most {settings.MAX_TAG_LENGTH} characters", field="tags"
            )
        if name not in cleaned:
            cleaned.append(name)

    if len(cleaned) > settings.MAX_TAGS_PER_QUESTION:
        raise ValidationError(
            f"A question can have at most {settings.MAX_TAGS_PER_QUESTION} tags", field="tags"
        )
    return cleaned


def _required_text(value: str | None, field: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{field.capitalize()} is required", field=field)
    return value.strip() if field == "title" else value


def _tag_links(names: list[str]) -> list[QuestionTag]:
    return [QuestionTag(position=i, name=name) for i, name in enumerate(names)]


def question_query():
    return select(Question).options(
        joinedload(Question.author),
        selectinload(Question.tag_links),
        selectinload(Question.answers),
    )


async def _get_question_or_404(db: AsyncSession, question_id: int) -> Question:
    result = await db.execute(question_query().where(Question.id == question_id))
    question = result.unique().scalar_one_or_none()
    if question is None:
        raise NotFoundError("Question", question_id)
    return question


def _filter_conditions(
    tag: str | None,
    search: str | None,
    answered: bool | None,
) -> list:
    conditions = []
    if tag:
        conditions.append(Question.tag_links.any(QuestionTag.name == tag))
    if search:
        conditions.append(
            or_(
                Question.title.icontains(search, autoescape=True),
                Question.description.icontains(search, autoescape=True),
            )
        )
    if answered is True:
        conditions.append(Question.answers.any())
    elif answered is False:
        conditions.append(~Question.answers.any())
    return conditions


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def list_questions(
    db: AsyncSession,
    page: int = 1,
    limit: int = 10,
    tag: str | None = None,
    search: str | None = None,
    sort: str = "newest",
    answered: bool | None = None,
) -> dict:
    """
    Return one page of the question feed.

    Two SQL statements are issued (plus the eager loads):
    1. COUNT under the active filters.
    2. SELECT with ORDER BY / OFFSET / LIMIT and the author JOIN.
    """
    conditions = _filter_conditions(tag, search, answered)

    count_q = select(func.count()).select_from(Question).where(*conditions)
    total: int = (await db.execute(count_q)).scalar_one()

    direction = asc if sort == "oldest" else desc
    questions_q = (
        question_query()
        .where(*conditions)
        .order_by(direction(Question.created_at), direction(Question.id))
        .offset((page - 1) * limit)
        .limit(limit)
    )
    result = await db.execute(questions_q)
    questions = result.unique().scalars().all()

    return {
        "questions": [question_to_dict(q) for q in questions],
        "total": total,
        "page": page,
        "total_pages": math.ceil(total / limit) if total > 0 else 0,
    }


async def get_question(db: AsyncSession, question_id: int) -> dict:
    return question_to_dict(await _get_question_or_404(db, question_id))


async def create_question(db: AsyncSession, identity: Identity, data: QuestionCreate) -> dict:
    user = await ensure_can_write(db, identity)

    question = Question(
        title=_required_text(data.title, "title"),
        description=_required_text(data.description, "description"),
        author_id=user.id,
        tag_links=_tag_links(clean_tags(data.tags)),
    )
    question.author = user
    db.add(question)
    await db.flush()

    logger.info("Question %s created by user %s", question.id, user.id)
    return question_to_dict(question)


async def update_question(
    db: AsyncSession, question_id: int, identity: Identity, data: QuestionUpdate
) -> dict:
    """
    Partially update a question.  Only fields explicitly set in the
    payload are modified (``model_dump(exclude_unset=True)``); a new
    ``tags`` list replaces the old one entirely.
    """
    question = await _get_question_or_404(db, question_id)
    ensure_owner_or_admin(identity, question.author_id, "Not authorized to edit this question")
    await ensure_can_write(db, identity)

    update_data = data.model_dump(exclude_unset=True)
    if "title" in update_data:
        question.title = _required_text(update_data["title"], "title")
    if "description" in update_data:
        question.description = _required_text(update_data["description"], "description")
    if "tags" in update_data:
        names = clean_tags(update_data["tags"])
        # Flush the removals first so positions can be reused.
        question.tag_links = []
        await db.flush()
        question.tag_links = _tag_links(names)

    question.updated_at = utcnow()
    await db.flush()
    return question_to_dict(question)


async def delete_question_tree(db: AsyncSession, question_id: int) -> int:
    """
    Delete a question together with all of its answers and tags.

    Returns the number of answers removed.  Any other question whose
    accepted reference points at one of those answers is cleared too.
    """
    result = await db.execute(
        select(Question)
        .where(Question.id == question_id)
        .options(selectinload(Question.tag_links))
    )
    question = result.scalar_one_or_none()
    if question is None:
        return 0

    answers = (
        await db.execute(select(Answer).where(Answer.question_id == question_id))
    ).scalars().all()
    answer_ids = [a.id for a in answers]

    if answer_ids:
        await db.execute(
            update(Question)
            .where(Question.accepted_answer_id.in_(answer_ids), Question.id != question_id)
            .values(accepted_answer_id=None)
            .execution_options(synchronize_session="fetch")
        )
    for answer in answers:
        await db.delete(answer)
    await db.flush()

    await db.delete(question)
    await db.flush()
    return len(answer_ids)


async def delete_question(db: AsyncSession, question_id: int, identity: Identity) -> None:
    result = await db.execute(select(Question.author_id).where(Question.id == question_id))
    author_id = result.scalar_one_or_none()
    if author_id is None:
        raise NotFoundError("Question", question_id)
    ensure_owner_or_admin(identity, author_id, "Not authorized to delete this question")

    removed = await delete_question_tree(db, question_id)
    logger.info(
        "Question %s deleted by user %s (%d answer(s) removed)",
        question_id,
        identity.user_id,
        removed,
    )


# ---------------------------------------------------------------------------
# Accept-answer workflow
# ---------------------------------------------------------------------------

async def accept_answer(
    db: AsyncSession, question_id: int, answer_id: int, identity: Identity
) -> dict:
    """
    Mark *answer_id* as the accepted answer of *question_id*.

    Order of checks: question exists → caller is the question author →
    answer exists → answer belongs to the question.  The previously
    accepted answer (if any, and if different) loses its flag, so at
    most one answer of the question is ever accepted and it is the one
    the question points at.  The answer's author is notified unless
    they are the caller.
    """
    result = await db.execute(select(Question).where(Question.id == question_id))
    question = result.scalar_one_or_none()
    if question is None:
        raise NotFoundError("Question", question_id)
    if question.author_id != identity.user_id:
        raise AuthorizationError("Only the question author can accept answers")
    await ensure_can_write(db, identity)

    result = await db.execute(
        select(Answer).where(Answer.id == answer_id).options(joinedload(Answer.author))
    )
    answer = result.unique().scalar_one_or_none()
    if answer is None:
        raise NotFoundError("Answer", answer_id)
    if answer.question_id != question.id:
        raise MismatchError()

    previous_id = question.accepted_answer_id
    try:
        question.accepted_answer_id = answer.id
        await db.flush()

        answer.is_accepted = True
        await db.flush()

        await db.execute(
            update(Answer)
            .where(
                Answer.question_id == question.id,
                Answer.id != answer.id,
                Answer.is_accepted.is_(True),
            )
            .values(is_accepted=False)
            .execution_options(synchronize_session="fetch")
        )
    except SQLAlchemyError as exc:
        raise StoreError(
            context={
                "operation": "accept_answer",
                "question_id": question_id,
                "answer_id": answer_id,
                "error": str(exc),
            }
        ) from exc

    await notification_service.notify(
        db,
        recipient_id=answer.author_id,
        type_=notification_service.ANSWER_ACCEPTED,
        message=f'Your answer to "{question.title}" has been accepted!',
        link=f"/questions/{question.id}",
        actor_id=identity.user_id,
    )

    logger.info(
        "Answer %s accepted on question %s (previous: %s)", answer.id, question.id, previous_id
    )
    return answer_to_dict(answer)
