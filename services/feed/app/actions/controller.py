"""Actions controller: orchestration layer between router and service."""

import logging
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.events.schemas import ItemActionRecorded

from app.actions import service
from app.actions.exceptions import ItemNotFoundError
from app.actions.schemas import ActionCreate, ActionListResponse, ActionResponse
from app.events.bus import EventBus

logger = logging.getLogger(__name__)


async def record_action(
    body: ActionCreate, user_id: UUID, db: AsyncSession, bus: EventBus
) -> ActionResponse:
    try:
        row = await service.record_action(user_id, body.item_id, body.action, db)
    except ItemNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Feed item {body.item_id} not found.",
        )
    response = ActionResponse.model_validate(row)
    # Subscribers re-read the action log, so the row must be visible first
    await db.commit()
    await bus.publish(
        ItemActionRecorded(user_id=user_id, item_id=row.item_id, action=row.action)
    )
    logger.info("Recorded %s on %s for %s", row.action, row.item_id, user_id)
    return response


async def list_actions(
    user_id: UUID,
    db: AsyncSession,
    item_id: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> ActionListResponse:
    rows, total = await service.list_actions(user_id, db, item_id=item_id, limit=limit, offset=offset)
    return ActionListResponse(
        items=[ActionResponse.model_validate(r) for r in rows],
        total=total,
        limit=limit,
        offset=offset,
    )
