"""
Tag aggregator: popularity computed on demand.

Tags have no table of their own; every question stores its ordered tag
list in ``question_tags``.  Popularity is one GROUP BY over that table,
recomputed on each call.
"""
from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from stackit.config import settings
from stackit.models import QuestionTag


async def popular_tags(db: AsyncSession, limit: int | None = None) -> list[dict]:
    """
    Return ``[{"tag", "count"}]`` sorted by count descending, truncated
    to *limit* (``settings.POPULAR_TAGS_LIMIT`` when None).

    Equal counts keep the order in which the tags first appear when every
    question's tag list is read in question order.  That order comes from
    ``(question_id, position)``, not from row ids, so re-saving a
    question's tags does not move them behind newer questions.
    """
    if limit is None:
        limit = settings.POPULAR_TAGS_LIMIT

    flattened = select(
        QuestionTag.name.label("name"),
        func.row_number()
        .over(order_by=(QuestionTag.question_id, QuestionTag.position))
        .label("seen_at"),
    ).subquery()

    count_col = func.count().label("count")
    q = (
        select(flattened.c.name, count_col)
        .group_by(flattened.c.name)
        .order_by(desc(count_col), func.min(flattened.c.seen_at))
        .limit(limit)
    )
    result = await db.execute(q)
    return [{"tag": name, "count": count} for name, count in result.all()]
