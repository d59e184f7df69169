"""
User service: accounts, profiles, moderation and statistics.

Every record leaving this module goes through ``user_to_dict``, which
never includes the password hash.  Ban and role changes are admin-only.
"""
import logging

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from stackit.auth import Identity, hash_password
from stackit.exceptions import AuthorizationError, ValidationError
from stackit.models import Answer, Notification, Question, User
from stackit.schemas import UserCreate, UserUpdate
from stackit.services import answer_service, question_service
from stackit.services.guards import ensure_admin, ensure_owner_or_admin, get_user_or_404
from stackit.services.serializers import answer_to_dict, question_to_dict, user_to_dict

logger = logging.getLogger(__name__)


async def _ensure_unique(
    db: AsyncSession,
    username: str | None,
    email: str | None,
    exclude_id: int | None = None,
) -> None:
    clauses = []
    if username is not None:
        clauses.append(User.username == username)
    if email is not None:
        clauses.append(User.email == email)
    if not clauses:
        return
    q = select(User.id).where(or_(*clauses))
    if exclude_id is not None:
        q = q.where(User.id != exclude_id)
    if (await db.execute(q.limit(1))).scalar_one_or_none() is not None:
        raise ValidationError("A user with this username or email already exists")


async def _flush_unique(db: AsyncSession) -> None:
    try:
        await db.flush()
    except IntegrityError as exc:
        raise ValidationError("A user with this username or email already exists") from exc


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------

async def create_user(db: AsyncSession, data: UserCreate) -> dict:
    """
    Register a new user with the default ``user`` role.

    Uniqueness is checked up front for a clear message and enforced
    again by the unique constraints at flush time.
    """
    username = data.username.strip()
    email = data.email.strip().lower()
    await _ensure_unique(db, username, email)

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(data.password),
    )
    db.add(user)
    await _flush_unique(db)
    return user_to_dict(user)


async def get_users(db: AsyncSession, identity: Identity) -> list[dict]:
    ensure_admin(identity)
    result = await db.execute(select(User).order_by(User.created_at.desc(), User.id.desc()))
    return [user_to_dict(u) for u in result.scalars().all()]


async def update_user(
    db: AsyncSession, user_id: int, identity: Identity, data: UserUpdate
) -> dict:
    """Edit username, email or profile picture (self or admin)."""
    user = await get_user_or_404(db, user_id)
    ensure_owner_or_admin(identity, user.id, "Not authorized to edit this profile")

    update_data = data.model_dump(exclude_unset=True)
    username = update_data.get("username")
    email = update_data.get("email")
    if username is not None:
        username = username.strip()
    if email is not None:
        email = email.strip().lower()
    await _ensure_unique(db, username, email, exclude_id=user.id)

    if username:
        user.username = username
    if email:
        user.email = email
    if "profile_picture" in update_data:
        user.profile_picture = update_data["profile_picture"]

    await _flush_unique(db)
    return user_to_dict(user)


async def delete_user(db: AsyncSession, user_id: int, identity: Identity) -> None:
    """
    Remove an account with everything it owns: notifications, questions
    (each with its answers) and answers on other people's questions.
    """
    user = await get_user_or_404(db, user_id)
    ensure_owner_or_admin(identity, user.id, "Not authorized to delete this user")
    if user.is_admin and user.id != identity.user_id:
        raise AuthorizationError("Cannot delete admin users")

    question_ids = (
        await db.execute(select(Question.id).where(Question.author_id == user.id))
    ).scalars().all()
    for question_id in question_ids:
        await question_service.delete_question_tree(db, question_id)

    answers = (
        await db.execute(select(Answer).where(Answer.author_id == user.id))
    ).scalars().all()
    for answer in answers:
        await answer_service.remove_answer(db, answer)

    await db.execute(
        delete(Notification)
        .where(Notification.user_id == user.id)
        .execution_options(synchronize_session="fetch")
    )
    await db.delete(user)
    await db.flush()
    logger.info(
        "User %s deleted by user %s (%d question(s), %d answer(s))",
        user_id,
        identity.user_id,
        len(question_ids),
        len(answers),
    )


# ---------------------------------------------------------------------------
# Profile and statistics
# ---------------------------------------------------------------------------

async def get_user_profile(db: AsyncSession, user_id: int) -> dict:
    """
    Return ``{user, questions, answers}``; both lists newest first, each
    answer carrying the title of the question it belongs to.
    """
    user = await get_user_or_404(db, user_id)

    questions = (
        await db.execute(
            question_service.question_query()
            .where(Question.author_id == user_id)
            .order_by(Question.created_at.desc(), Question.id.desc())
        )
    ).unique().scalars().all()

    answers = (
        await db.execute(
            select(Answer)
            .where(Answer.author_id == user_id)
            .options(joinedload(Answer.question), joinedload(Answer.author))
            .order_by(Answer.created_at.desc(), Answer.id.desc())
        )
    ).unique().scalars().all()

    answer_items = []
    for answer in answers:
        item = answer_to_dict(answer)
        item["question_title"] = answer.question.title if answer.question else None
        answer_items.append(item)

    return {
        "user": user_to_dict(user),
        "questions": [question_to_dict(q) for q in questions],
        "answers": answer_items,
    }


async def get_user_stats(db: AsyncSession, user_id: int) -> dict:
    user = await get_user_or_404(db, user_id)

    q_count, q_votes = (
        await db.execute(
            select(func.count(Question.id), func.coalesce(func.sum(Question.votes), 0))
            .where(Question.author_id == user_id)
        )
    ).one()
    a_count, a_votes = (
        await db.execute(
            select(func.count(Answer.id), func.coalesce(func.sum(Answer.votes), 0))
            .where(Answer.author_id == user_id)
        )
    ).one()
    accepted = (
        await db.execute(
            select(func.count(Answer.id))
            .where(Answer.author_id == user_id, Answer.is_accepted.is_(True))
        )
    ).scalar_one()

    return {
        "questions_count": q_count,
        "answers_count": a_count,
        "accepted_answers_count": accepted,
        "total_votes": q_votes + a_votes,
        "reputation": user.reputation,
        "member_since": user.created_at,
    }


# ---------------------------------------------------------------------------
# Moderation (admin only)
# ---------------------------------------------------------------------------

async def ban_user(db: AsyncSession, user_id: int, identity: Identity) -> dict:
    ensure_admin(identity)
    user = await get_user_or_404(db, user_id)
    if user.is_admin:
        raise ValidationError("Cannot ban admin users")
    user.banned = True
    await db.flush()
    logger.info("User %s banned by admin %s", user_id, identity.user_id)
    return user_to_dict(user)


async def unban_user(db: AsyncSession, user_id: int, identity: Identity) -> dict:
    ensure_admin(identity)
    user = await get_user_or_404(db, user_id)
    user.banned = False
    await db.flush()
    logger.info("User %s unbanned by admin %s", user_id, identity.user_id)
    return user_to_dict(user)


async def set_role(db: AsyncSession, user_id: int, identity: Identity, role: str) -> dict:
    """Change a user's role.  Promotion to admin lifts any ban."""
    ensure_admin(identity)
    user = await get_user_or_404(db, user_id)
    user.role = role
    if role == "admin":
        user.banned = False
    await db.flush()
    logger.info("User %s role set to %s by admin %s", user_id, role, identity.user_id)
    return user_to_dict(user)
