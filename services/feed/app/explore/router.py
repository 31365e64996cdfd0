from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_json_body
from app.explore import controller
from app.explore.schemas import ExploreResponse

router = APIRouter(prefix="/explore", tags=["Explore"])


@router.post(
    "",
    response_model=ExploreResponse,
    summary="Explore grid",
    description=(
        "Items ordered by stored score (nulls last), then newest first. "
        "Pass `next_cursor` back as `cursor` for the next page; a malformed "
        "cursor restarts from the first page. No auth required."
    ),
)
async def explore_feed(
    payload: object = Depends(get_json_body),
    db: AsyncSession = Depends(get_db),
) -> ExploreResponse:
    return await controller.explore_feed(payload, db)


@router.get("", summary="Explore liveness")
async def explore_liveness() -> dict:
    return {"ok": True, "fn": "explore_feed"}
