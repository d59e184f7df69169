"""
Notification service: single and bulk notification records.

Notifications are written inside the caller's transaction, so a
notification for an accepted answer only exists if the acceptance
itself was committed.
"""
import logging

from sqlalchemy import func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from stackit.auth import Identity
from stackit.exceptions import AuthorizationError, NotFoundError, ValidationError
from stackit.models import Notification, User
from stackit.services.guards import ensure_admin
from stackit.services.serializers import notification_to_dict

logger = logging.getLogger(__name__)

ANSWER = "answer"
ANSWER_ACCEPTED = "answer-accepted"
ADMIN_MESSAGE = "admin-message"


async def notify(
    db: AsyncSession,
    recipient_id: int,
    type_: str,
    message: str,
    link: str | None = None,
    actor_id: int | None = None,
) -> Notification | None:
    """
    Create one notification for *recipient_id*.

    Returns None without writing anything when the recipient is the
    acting user; nobody is notified about their own action.
    """
    if actor_id is not None and recipient_id == actor_id:
        return None

    notification = Notification(
        user_id=recipient_id,
        type=type_,
        message=message,
        link=link,
    )
    db.add(notification)
    await db.flush()
    return notification


async def broadcast(
    db: AsyncSession,
    identity: Identity,
    message: str,
    type_: str = ADMIN_MESSAGE,
) -> int:
    """
    Send *message* to every non-admin user with a single bulk INSERT.

    Returns the number of notifications written.
    """
    ensure_admin(identity)
    if not message or not message.strip():
        raise ValidationError("Message is required", field="message")

    result = await db.execute(select(User.id).where(User.role != "admin"))
    recipient_ids = list(result.scalars().all())
    if recipient_ids:
        await db.execute(
            insert(Notification),
            [
                {"user_id": uid, "type": type_, "message": message, "is_read": False}
                for uid in recipient_ids
            ],
        )
    logger.info("Broadcast from admin %s delivered to %d user(s)", identity.user_id, len(recipient_ids))
    return len(recipient_ids)


async def list_notifications(db: AsyncSession, identity: Identity) -> list[dict]:
    q = (
        select(Notification)
        .where(Notification.user_id == identity.user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
    )
    result = await db.execute(q)
    return [notification_to_dict(n) for n in result.scalars().all()]


async def unread_count(db: AsyncSession, identity: Identity) -> int:
    q = (
        select(func.count())
        .select_from(Notification)
        .where(Notification.user_id == identity.user_id, Notification.is_read.is_(False))
    )
    return (await db.execute(q)).scalar_one()


async def _get_owned(db: AsyncSession, notification_id: int, identity: Identity, action: str) -> Notification:
    result = await db.execute(select(Notification).where(Notification.id == notification_id))
    notification = result.scalar_one_or_none()
    if notification is None:
        raise NotFoundError("Notification", notification_id)
    if notification.user_id != identity.user_id:
        raise AuthorizationError(f"Not authorized to {action} this notification")
    return notification


async def mark_read(db: AsyncSession, notification_id: int, identity: Identity) -> dict:
    notification = await _get_owned(db, notification_id, identity, "modify")
    notification.is_read = True
    await db.flush()
    return notification_to_dict(notification)


async def mark_all_read(db: AsyncSession, identity: Identity) -> int:
    """Mark every unread notification of the caller as read; returns how many changed."""
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == identity.user_id, Notification.is_read.is_(False))
        .values(is_read=True)
        .execution_options(synchronize_session="fetch")
    )
    return result.rowcount or 0


async def delete_notification(db: AsyncSession, notification_id: int, identity: Identity) -> None:
    notification = await _get_owned(db, notification_id, identity, "delete")
    await db.delete(notification)
    await db.flush()
