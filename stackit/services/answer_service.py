"""
Answer service: CRUD for answers and upkeep of the parent question.

A question's answer list is the set of Answer rows pointing at it, so
creating or deleting an answer row is what appends or removes it.  The
one denormalised field that needs explicit care is the question's
``accepted_answer_id``, cleared here whenever the accepted answer goes.
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from stackit.auth import Identity
from stackit.exceptions import NotFoundError, ValidationError
from stackit.models import Answer, Question
from stackit.schemas import AnswerCreate, AnswerUpdate
from stackit.services import notification_service
from stackit.services.guards import ensure_can_write, ensure_owner_or_admin
from stackit.services.serializers import answer_to_dict

logger = logging.getLogger(__name__)


def _clean_content(content: str) -> str:
    if not content or not content.strip():
        raise ValidationError("Content is required", field="content")
    return content


async def _get_answer_or_404(db: AsyncSession, answer_id: int) -> Answer:
    q = select(Answer).where(Answer.id == answer_id).options(joinedload(Answer.author))
    result = await db.execute(q)
    answer = result.unique().scalar_one_or_none()
    if answer is None:
        raise NotFoundError("Answer", answer_id)
    return answer


async def remove_answer(db: AsyncSession, answer: Answer) -> None:
    """
    Delete *answer* and clear its parent's accepted reference when it
    was the accepted one.  Used by answer deletion and account removal.
    """
    result = await db.execute(select(Question).where(Question.id == answer.question_id))
    question = result.scalar_one_or_none()
    if question is not None and question.accepted_answer_id == answer.id:
        question.accepted_answer_id = None
    await db.delete(answer)
    await db.flush()


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def get_answers_for_question(db: AsyncSession, question_id: int) -> list[dict]:
    """
    Return the answers of *question_id*: the accepted one first, then by
    votes, then newest first.
    """
    exists = await db.execute(select(Question.id).where(Question.id == question_id))
    if exists.scalar_one_or_none() is None:
        raise NotFoundError("Question", question_id)

    q = (
        select(Answer)
        .where(Answer.question_id == question_id)
        .options(joinedload(Answer.author))
        .order_by(
            Answer.is_accepted.desc(),
            Answer.votes.desc(),
            Answer.created_at.desc(),
            Answer.id.desc(),
        )
    )
    result = await db.execute(q)
    return [answer_to_dict(a) for a in result.unique().scalars().all()]


async def get_answer(db: AsyncSession, answer_id: int) -> dict:
    return answer_to_dict(await _get_answer_or_404(db, answer_id))


async def create_answer(db: AsyncSession, identity: Identity, data: AnswerCreate) -> dict:
    """
    Post an answer and notify the question's author (unless they
    answered their own question).
    """
    user = await ensure_can_write(db, identity)
    content = _clean_content(data.content)

    result = await db.execute(select(Question).where(Question.id == data.question_id))
    question = result.scalar_one_or_none()
    if question is None:
        raise NotFoundError("Question", data.question_id)

    answer = Answer(question_id=question.id, content=content, author_id=user.id)
    answer.author = user
    db.add(answer)
    await db.flush()

    await notification_service.notify(
        db,
        recipient_id=question.author_id,
        type_=notification_service.ANSWER,
        message=f'{user.username} answered your question "{question.title}"',
        link=f"/questions/{question.id}",
        actor_id=user.id,
    )
    return answer_to_dict(answer)


async def update_answer(
    db: AsyncSession, answer_id: int, identity: Identity, data: AnswerUpdate
) -> dict:
    answer = await _get_answer_or_404(db, answer_id)
    ensure_owner_or_admin(identity, answer.author_id, "Not authorized to edit this answer")
    await ensure_can_write(db, identity)

    answer.content = _clean_content(data.content)
    await db.flush()
    return answer_to_dict(answer)


async def delete_answer(db: AsyncSession, answer_id: int, identity: Identity) -> None:
    answer = await _get_answer_or_404(db, answer_id)
    ensure_owner_or_admin(identity, answer.author_id, "Not authorized to delete this answer")

    await remove_answer(db, answer)
    logger.info("Answer %s deleted by user %s", answer_id, identity.user_id)
