from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from shared.models.user import CurrentUser

from app.database import get_db
from app.dependencies import get_current_user_required, get_event_bus
from app.events.bus import EventBus
from app.preferences import controller
from app.preferences.schemas import PreferencesResponse, PreferencesUpdate

router = APIRouter(prefix="/preferences", tags=["Preferences"])


@router.get(
    "",
    response_model=PreferencesResponse,
    summary="Get my ranking preferences",
    description="Returns the stored preferences, or the defaults when none were saved.",
)
async def get_preferences(
    user: CurrentUser = Depends(get_current_user_required),
    db: AsyncSession = Depends(get_db),
) -> PreferencesResponse:
    return await controller.get_preferences(user.id, db)


@router.put(
    "",
    response_model=PreferencesResponse,
    summary="Replace my ranking preferences",
    description="Weights must lie in [0, 3]. Topic and blocked keys are normalised to lowercase.",
)
async def update_preferences(
    body: PreferencesUpdate,
    user: CurrentUser = Depends(get_current_user_required),
    db: AsyncSession = Depends(get_db),
    bus: EventBus = Depends(get_event_bus),
) -> PreferencesResponse:
    return await controller.update_preferences(body, user.id, db, bus)
