"""Redis cache helpers for the feed domain.

Key schema
----------
feed:{user_id}:actions:gen      int                             TTL 1 day  bumped on every new action
feed:{user_id}:actions:{gen}    JSON {item_id: [action, ...]}   TTL 60 s   per-user action map
feed:rss_weights                JSON {feed_url: weight}         TTL 5 min  active RSS feed weights

Caching is best-effort: a Redis failure is logged and treated as a miss, and
writes are skipped. The database stays the source of truth.

Action maps are keyed by generation. Invalidation bumps the generation rather
than deleting, so a reader that loaded the log before a new action was
committed can only write its map under the old, no longer read, generation.
"""

import json
import logging
from uuid import UUID

from redis.asyncio import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

_RSS_WEIGHTS_KEY = "feed:rss_weights"

_ACTIONS_GENERATION_TTL_S = 86400


def _actions_generation_key(user_id: UUID) -> str:
    return f"feed:{user_id}:actions:gen"


def _actions_key(user_id: UUID, generation: int) -> str:
    return f"feed:{user_id}:actions:{generation}"


# ---------------------------------------------------------------------------
# Action map
# ---------------------------------------------------------------------------


async def get_action_generation(user_id: UUID, redis: Redis) -> int | None:
    """Current generation, 0 when never bumped, or None when Redis is unavailable."""
    try:
        val = await redis.get(_actions_generation_key(user_id))
    except RedisError as exc:
        logger.warning("Action generation read failed for %s: %s", user_id, exc)
        return None
    try:
        return int(val) if val is not None else 0
    except (TypeError, ValueError):
        return 0


async def get_action_map(
    user_id: UUID, generation: int, redis: Redis
) -> dict[str, list[str]] | None:
    """Return the cached action map for ``generation``, or None on a miss."""
    try:
        val = await redis.get(_actions_key(user_id, generation))
    except RedisError as exc:
        logger.warning("Action cache read failed for %s: %s", user_id, exc)
        return None
    if val is None:
        return None
    try:
        data = json.loads(val)
    except (TypeError, ValueError):
        return None
    if not isinstance(data, dict):
        return None
    return {str(k): [str(a) for a in v] for k, v in data.items() if isinstance(v, list)}


async def set_action_map(
    user_id: UUID, generation: int, actions: dict[str, list[str]], redis: Redis, ttl_s: int
) -> None:
    try:
        await redis.setex(_actions_key(user_id, generation), ttl_s, json.dumps(actions))
    except RedisError as exc:
        logger.warning("Action cache write failed for %s: %s", user_id, exc)


async def invalidate_action_map(user_id: UUID, redis: Redis) -> None:
    """Move readers to a fresh generation; maps cached under older ones are never read again."""
    key = _actions_generation_key(user_id)
    try:
        await redis.incr(key)
        await redis.expire(key, _ACTIONS_GENERATION_TTL_S)
    except RedisError as exc:
        logger.warning("Action cache invalidation failed for %s: %s", user_id, exc)


# ---------------------------------------------------------------------------
# RSS feed weights
# ---------------------------------------------------------------------------


async def get_rss_weights(redis: Redis) -> dict[str, float] | None:
    try:
        val = await redis.get(_RSS_WEIGHTS_KEY)
    except RedisError as exc:
        logger.warning("RSS weight cache read failed: %s", exc)
        return None
    if val is None:
        return None
    try:
        data = json.loads(val)
    except (TypeError, ValueError):
        return None
    if not isinstance(data, dict):
        return None
    return {str(k): float(v) for k, v in data.items() if isinstance(v, (int, float))}


async def set_rss_weights(weights: dict[str, float], redis: Redis, ttl_s: int) -> None:
    try:
        await redis.setex(_RSS_WEIGHTS_KEY, ttl_s, json.dumps(weights))
    except RedisError as exc:
        logger.warning("RSS weight cache write failed: %s", exc)
