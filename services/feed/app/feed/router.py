from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shared.models.user import CurrentUser

from app.config import Settings
from app.dependencies import (
    get_current_user_optional,
    get_json_body,
    get_redis,
    get_session_factory_or_none,
    get_settings,
)
from app.feed import controller
from app.feed.schemas import SocialFeedResponse

router = APIRouter(prefix="/social-feed", tags=["Feed"])


@router.post(
    "",
    response_model=SocialFeedResponse,
    summary="Ranked, sectioned social feed",
    description=(
        "Scores recent items for the caller (anonymous callers get recency and "
        "default source weights only), attaches badges, and buckets them into "
        "Fresh / Today / Trending / Deep Cuts / category sections. "
        "Returns 200 with `error` set when the feed store is not provisioned yet."
    ),
    responses={500: {"model": SocialFeedResponse, "description": "Configuration or storage failure."}},
)
async def social_feed(
    payload: object = Depends(get_json_body),
    user: CurrentUser | None = Depends(get_current_user_optional),
    settings: Settings = Depends(get_settings),
    session_factory: async_sessionmaker[AsyncSession] | None = Depends(get_session_factory_or_none),
    redis: Redis | None = Depends(get_redis),
) -> JSONResponse:
    return await controller.social_feed(payload, user, session_factory, redis, settings)


@router.get("", summary="Social feed liveness")
async def social_feed_liveness() -> dict:
    return {"ok": True, "fn": "social_feed"}
