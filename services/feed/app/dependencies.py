import json
from functools import lru_cache

from fastapi import Request
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shared.auth.dependencies import get_current_user_optional, get_current_user_required

from app.config import Settings
from app.database import get_session_factory
from app.events.bus import EventBus

__all__ = [
    "get_current_user_optional",
    "get_current_user_required",
    "get_event_bus",
    "get_json_body",
    "get_redis",
    "get_session_factory_or_none",
    "get_settings",
]


@lru_cache
def get_settings() -> Settings:
    return Settings()


def get_redis(request: Request) -> Redis | None:
    return getattr(request.app.state, "redis", None)


def get_event_bus(request: Request) -> EventBus:
    return request.app.state.event_bus


def get_session_factory_or_none() -> async_sessionmaker[AsyncSession] | None:
    """Session factory, or None when the database was never configured."""
    try:
        return get_session_factory()
    except RuntimeError:
        return None


async def get_json_body(request: Request) -> object:
    """Request JSON, or {} when the body is empty or unparsable."""
    raw = await request.body()
    if not raw:
        return {}
    try:
        return json.loads(raw)
    except (UnicodeDecodeError, ValueError):
        return {}
