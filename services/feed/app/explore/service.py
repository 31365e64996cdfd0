"""Explore grid queries: stored score order, offset pagination."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.feed_item import FeedItem


async def get_explore_page(
    db: AsyncSession,
    sources: list[str],
    offset: int,
    limit: int,
) -> tuple[list[FeedItem], int]:
    """Rows ordered by score (nulls last) then newest first, plus the total count."""
    base = select(FeedItem)
    if sources:
        base = base.where(FeedItem.source.in_(sources))
    total_result = await db.execute(select(func.count()).select_from(base.subquery()))
    total = total_result.scalar_one()
    result = await db.execute(
        base.order_by(
            FeedItem.score.desc().nulls_last(),
            FeedItem.created_at.desc(),
            FeedItem.id,
        )
        .offset(offset)
        .limit(limit)
    )
    return list(result.scalars().all()), total
