"""Feed service: storage access for the social feed, no FastAPI imports.

The candidate query reports its outcome as an explicit variant rather than
raising, so the controller can tell "store not provisioned yet" (soft,
HTTP 200) apart from every other failure (HTTP 500).

Personalisation inputs (preferences, follows, actions, RSS feed weights) are
loaded concurrently through ``app.fanout``; each runs on its own session and
falls back to a default when it fails.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from redis.asyncio import Redis
from sqlalchemy import and_, or_, select
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shared.database.postgres import UNDEFINED_TABLE_SQLSTATE, sqlstate_of

from app.config import Settings
from app.fanout import failed_names, fan_out, value_or
from app.feed import cache as feed_cache
from app.feed.normalize import candidates_from_rows
from app.feed.schemas import ContentCandidate, UserPreferences
from app.feed.scoring import RankingContext
from app.models.action import UserItemAction
from app.models.feed_item import FeedItem
from app.models.preference import FollowedSource, RssSource, UserPreference

logger = logging.getLogger(__name__)


# ===========================================================================
# Candidate fetch outcome
# ===========================================================================


@dataclass(frozen=True)
class CandidatesLoaded:
    items: list[ContentCandidate] = field(default_factory=list)


@dataclass(frozen=True)
class StoreUnprovisioned:
    """The backing table does not exist yet. Expected on fresh deployments."""

    message: str


@dataclass(frozen=True)
class StoreFailed:
    message: str
    code: str | None = None


FetchResult = CandidatesLoaded | StoreUnprovisioned | StoreFailed


def candidate_query(since: datetime, types: list[str], limit: int):
    """Recent rows: published since ``since``, or undated but created since then."""
    stmt = select(FeedItem).where(
        or_(
            FeedItem.published_at >= since,
            and_(FeedItem.published_at.is_(None), FeedItem.created_at >= since),
        )
    )
    if types:
        stmt = stmt.where(FeedItem.source.in_(types))
    return stmt.order_by(FeedItem.published_at.desc().nulls_last()).limit(limit)


async def fetch_candidates(
    session_factory: async_sessionmaker[AsyncSession],
    since: datetime,
    types: list[str],
    limit: int,
    timeout: float | None = None,
) -> FetchResult:
    async def _query() -> list[FeedItem]:
        async with session_factory() as db:
            result = await db.execute(candidate_query(since, types, limit))
            return list(result.scalars().all())

    try:
        rows = await asyncio.wait_for(_query(), timeout=timeout)
    except asyncio.TimeoutError:
        return StoreFailed(message=f"Candidate query timed out after {timeout}s", code="timeout")
    except DBAPIError as exc:
        code = sqlstate_of(exc)
        message = str(exc.orig) if exc.orig is not None else str(exc)
        if code == UNDEFINED_TABLE_SQLSTATE:
            return StoreUnprovisioned(message=message)
        return StoreFailed(message=message, code=code)
    except (SQLAlchemyError, OSError) as exc:
        return StoreFailed(message=str(exc))
    return CandidatesLoaded(items=candidates_from_rows(rows))


# ===========================================================================
# Personalisation loaders
# ===========================================================================


async def load_preferences(user_id: UUID, db: AsyncSession) -> UserPreferences:
    """The user's stored preferences, or the defaults when no row exists."""
    result = await db.execute(
        select(UserPreference.prefs).where(UserPreference.user_id == user_id)
    )
    prefs = result.scalar_one_or_none()
    if not prefs:
        return UserPreferences()
    return UserPreferences.model_validate(prefs)


async def load_follow_keys(user_id: UUID, db: AsyncSession) -> frozenset[str]:
    result = await db.execute(
        select(FollowedSource).where(
            FollowedSource.user_id == user_id,
            FollowedSource.enabled.is_(True),
            or_(FollowedSource.is_active.is_(None), FollowedSource.is_active.is_(True)),
        )
    )
    return frozenset(s.follow_key for s in result.scalars().all())


def action_map_query(user_id: UUID):
    """Every distinct (item, action) pair for the user.

    Uncapped so an old ``hide`` is never crowded out by newer actions; repeats
    collapse because each action type counts once.
    """
    return (
        select(UserItemAction.item_id, UserItemAction.action)
        .where(UserItemAction.user_id == user_id)
        .distinct()
    )


async def query_action_map(user_id: UUID, db: AsyncSession) -> dict[str, list[str]]:
    result = await db.execute(action_map_query(user_id))
    actions: dict[str, list[str]] = defaultdict(list)
    for item_id, action in result.all():
        actions[str(item_id)].append(str(action))
    return dict(actions)


async def load_action_map(
    user_id: UUID,
    db: AsyncSession,
    redis: Redis | None,
    ttl_s: int,
) -> dict[str, list[str]]:
    """Cached per-item action lists for ``user_id`` (cache-aside, generation keyed)."""
    generation = None
    if redis is not None:
        # Read before querying so a concurrent new action moves readers past this map
        generation = await feed_cache.get_action_generation(user_id, redis)
    if generation is not None:
        cached = await feed_cache.get_action_map(user_id, generation, redis)
        if cached is not None:
            return cached
    actions = await query_action_map(user_id, db)
    if generation is not None:
        await feed_cache.set_action_map(user_id, generation, actions, redis, ttl_s)
    return actions


async def load_rss_weights(
    db: AsyncSession,
    redis: Redis | None,
    ttl_s: int,
) -> dict[str, float]:
    """feed_url → editorial weight for active RSS sources."""
    if redis is not None:
        cached = await feed_cache.get_rss_weights(redis)
        if cached is not None:
            return cached
    result = await db.execute(
        select(RssSource.url, RssSource.weight).where(RssSource.active.is_(True))
    )
    weights = {url: float(weight if weight is not None else 1) for url, weight in result.all()}
    if redis is not None:
        await feed_cache.set_rss_weights(weights, redis, ttl_s)
    return weights


# ===========================================================================
# Ranking context
# ===========================================================================


async def load_ranking_context(
    user_id: UUID | None,
    session_factory: async_sessionmaker[AsyncSession],
    redis: Redis | None,
    settings: Settings,
) -> tuple[RankingContext, list[str]]:
    """Load everything the scorer needs about the caller.

    Returns the context and the names of sources that failed and were
    replaced by defaults. Anonymous callers only load RSS weights.
    """

    def _with_session(loader):
        async def _call():
            async with session_factory() as db:
                return await loader(db)

        return _call

    calls = {
        "rss_weights": _with_session(
            lambda db: load_rss_weights(db, redis, settings.feed_weight_cache_ttl_s)
        ),
    }
    if user_id is not None:
        calls["preferences"] = _with_session(lambda db: load_preferences(user_id, db))
        calls["follows"] = _with_session(lambda db: load_follow_keys(user_id, db))
        calls["actions"] = _with_session(
            lambda db: load_action_map(user_id, db, redis, settings.action_cache_ttl_s)
        )

    outcomes = await fan_out(calls, timeout=settings.auxiliary_timeout_s)
    degraded = failed_names(outcomes)
    feed_weights = value_or(outcomes["rss_weights"], {})

    if user_id is None:
        return RankingContext.anonymous(feed_weights), degraded

    context = RankingContext(
        preferences=value_or(outcomes["preferences"], UserPreferences()),
        actions=value_or(outcomes["actions"], {}),
        follow_keys=value_or(outcomes["follows"], frozenset()),
        feed_weights=feed_weights,
        personalised=True,
    )
    return context, degraded
