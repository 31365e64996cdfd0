import logging
from collections.abc import Callable

from redis.asyncio import Redis

from shared.events.schemas import ItemActionRecorded, PreferencesUpdated

from app.events.bus import EventBus
from app.feed import cache as feed_cache

logger = logging.getLogger(__name__)


def action_cache_invalidator(redis: Redis):
    """Handler that drops the user's cached action map after a new action."""

    async def _handle(event: ItemActionRecorded) -> None:
        await feed_cache.invalidate_action_map(event.user_id, redis)
        logger.debug("Invalidated action cache for %s after %s", event.user_id, event.action)

    return _handle


async def _log_preferences_updated(event: PreferencesUpdated) -> None:
    logger.info("Preferences updated for %s", event.user_id)


def register_default_subscribers(bus: EventBus, redis: Redis | None) -> list[Callable[[], None]]:
    """Wire the feed's own subscribers; returns their unsubscribe handles."""
    handles = [bus.subscribe(PreferencesUpdated.EVENT_TYPE, _log_preferences_updated)]
    if redis is not None:
        handles.append(
            bus.subscribe(ItemActionRecorded.EVENT_TYPE, action_cache_invalidator(redis))
        )
    return handles
