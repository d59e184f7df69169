"""
Vote ledger: signed unit deltas on question and answer counters.

The increment is a single ``UPDATE ... SET votes = votes + :delta`` so
concurrent voters never overwrite each other's change.  Repeat votes by
the same user are allowed; no per-user vote history is kept.
"""
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from stackit.auth import Identity
from stackit.exceptions import NotFoundError, SelfActionError, ValidationError
from stackit.models import Answer, Question
from stackit.services.guards import ensure_can_write

_VOTABLE = {
    "question": Question,
    "answer": Answer,
}


async def cast_vote(
    db: AsyncSession,
    item_id: int,
    item_type: str,
    identity: Identity,
    direction: int,
) -> int:
    """
    Apply *direction* (+1 or -1) to the vote counter of a question or
    answer and return the new total.
    """
    model = _VOTABLE.get(item_type)
    if model is None:
        raise ValidationError(f"Unknown item type '{item_type}'", field="item_type")
    if direction not in (1, -1):
        raise ValidationError("Vote must be 1 or -1", field="vote")

    result = await db.execute(select(model.author_id).where(model.id == item_id))
    author_id = result.scalar_one_or_none()
    if author_id is None:
        raise NotFoundError(item_type.capitalize(), item_id)
    if author_id == identity.user_id:
        raise SelfActionError(f"Cannot vote on your own {item_type}")
    await ensure_can_write(db, identity)

    await db.execute(
        update(model)
        .where(model.id == item_id)
        .values(votes=model.votes + direction)
        .execution_options(synchronize_session="fetch")
    )
    result = await db.execute(select(model.votes).where(model.id == item_id))
    return result.scalar_one()
