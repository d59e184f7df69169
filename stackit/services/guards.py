"""
Ownership, role and ban checks used by every write path.

The caller's ``Identity`` (user id + role) comes straight from the
bearer token and is trusted; the user row is still looked up so that a
deleted or banned account cannot keep writing with an old token.
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stackit.auth import Identity
from stackit.config import settings
from stackit.exceptions import AuthorizationError, NotFoundError
from stackit.models import User


async def get_user_or_404(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("User", user_id)
    return user


async def ensure_can_write(db: AsyncSession, identity: Identity) -> User:
    """Return the acting user, or raise if they may not author content."""
    user = await get_user_or_404(db, identity.user_id)
    if identity.role == "guest":
        raise AuthorizationError("Guests cannot post or vote")
    if settings.ENFORCE_BANS and user.banned:
        raise AuthorizationError("Your account has been banned")
    return user


def ensure_owner_or_admin(identity: Identity, owner_id: int, message: str) -> None:
    if owner_id != identity.user_id and not identity.is_admin:
        raise AuthorizationError(message)


def ensure_admin(identity: Identity) -> None:
    if not identity.is_admin:
        raise AuthorizationError("Admin access required")
