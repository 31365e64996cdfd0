"""Item action log: append-only writes and per-user reads."""

import uuid
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.actions.exceptions import ItemNotFoundError
from app.models.action import UserItemAction
from app.models.enums import ItemAction
from app.models.feed_item import FeedItem


def _canonical_item_id(item_id: str) -> str:
    try:
        return str(uuid.UUID(item_id))
    except ValueError:
        return item_id


async def _ensure_item_exists(item_id: str, db: AsyncSession) -> UUID:
    """Parse and look up ``item_id``; returns the stored id."""
    try:
        key = uuid.UUID(item_id)
    except ValueError:
        raise ItemNotFoundError(item_id)
    result = await db.execute(select(FeedItem.id).where(FeedItem.id == key))
    if result.scalar_one_or_none() is None:
        raise ItemNotFoundError(item_id)
    return key


async def record_action(
    user_id: UUID, item_id: str, action: ItemAction, db: AsyncSession
) -> UserItemAction:
    """Append one action row. Repeats are kept; the ranker counts each type once."""
    key = await _ensure_item_exists(item_id, db)
    # Canonical form, matching the ids the ranker keys actions by
    row = UserItemAction(user_id=user_id, item_id=str(key), action=action.value)
    db.add(row)
    await db.flush()
    await db.refresh(row)
    return row


async def list_actions(
    user_id: UUID,
    db: AsyncSession,
    item_id: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[UserItemAction], int]:
    """The caller's actions, newest first."""
    base = select(UserItemAction).where(UserItemAction.user_id == user_id)
    if item_id:
        base = base.where(UserItemAction.item_id == _canonical_item_id(item_id))
    total_result = await db.execute(select(func.count()).select_from(base.subquery()))
    total = total_result.scalar_one()
    result = await db.execute(
        base.order_by(UserItemAction.created_at.desc()).offset(offset).limit(limit)
    )
    return list(result.scalars().all()), total
