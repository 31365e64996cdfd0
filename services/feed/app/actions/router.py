from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.models.user import CurrentUser

from app.actions import controller
from app.actions.schemas import ActionCreate, ActionListResponse, ActionResponse
from app.database import get_db
from app.dependencies import get_current_user_required, get_event_bus
from app.events.bus import EventBus
from app.rate_limit import limiter

router = APIRouter(prefix="/actions", tags=["Actions"])


@router.post(
    "",
    response_model=ActionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record an item action",
    description=(
        "Appends a save / like / open / hide action for the caller. "
        "The caller's cached action map is invalidated so the next feed reflects it. "
        "Rate limit: 60/minute."
    ),
)
@limiter.limit("60/minute")
async def record_action(
    request: Request,
    body: ActionCreate,
    user: CurrentUser = Depends(get_current_user_required),
    db: AsyncSession = Depends(get_db),
    bus: EventBus = Depends(get_event_bus),
) -> ActionResponse:
    return await controller.record_action(body, user.id, db, bus)


@router.get(
    "",
    response_model=ActionListResponse,
    summary="List my item actions",
    description="The caller's recorded actions, newest first. Optionally scoped to one item.",
)
async def list_actions(
    item_id: str | None = Query(None, max_length=64, description="Only actions on this item."),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user: CurrentUser = Depends(get_current_user_required),
    db: AsyncSession = Depends(get_db),
) -> ActionListResponse:
    return await controller.list_actions(user.id, db, item_id=item_id, limit=limit, offset=offset)
