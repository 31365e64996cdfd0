"""Social feed controller: orchestration between router and service.

fetch → dedupe → query filter → score → badge → sections → response.
"""

import asyncio
import logging
import time
from datetime import datetime, timedelta, timezone

from fastapi import status
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shared.models.user import CurrentUser

from app.config import Settings
from app.feed import service
from app.feed.badges import attach_badges
from app.feed.schemas import (
    ContentCandidate,
    SocialFeedDebug,
    SocialFeedRequest,
    SocialFeedResponse,
)
from app.feed.scoring import normalize_key, rank_candidates, text_blob
from app.feed.sections import FRESH_KEY, TODAY_KEY, build_sections, section_items
from app.pagination import dedupe_by_id

logger = logging.getLogger(__name__)

JOB_NAME = "social_feed"

UNPROVISIONED_ERROR = "feed_items table does not exist. Run the feed migrations first."


def filter_by_query(candidates: list[ContentCandidate], query: str) -> list[ContentCandidate]:
    """Substring match over the scoring blob, so author matches as well."""
    needle = normalize_key(query)
    if not needle:
        return candidates
    return [c for c in candidates if needle in text_blob(c)]


Outcome = tuple[SocialFeedResponse, int]


def _error_outcome(
    error: str, debug: SocialFeedDebug, status_code: int, code: str | None = None
) -> Outcome:
    debug.error = error
    debug.code = code
    return SocialFeedResponse(error=error, debug=debug), status_code


async def _rank(
    request: SocialFeedRequest,
    user: CurrentUser | None,
    session_factory: async_sessionmaker[AsyncSession],
    redis: Redis | None,
    settings: Settings,
    debug: SocialFeedDebug,
) -> Outcome:
    now = datetime.now(timezone.utc)
    since = now - timedelta(days=request.days)
    debug.since = since

    fetched, (context, degraded) = await asyncio.gather(
        service.fetch_candidates(
            session_factory,
            since=since,
            types=request.types,
            limit=settings.candidate_limit,
            timeout=settings.store_timeout_s,
        ),
        service.load_ranking_context(
            user.id if user else None, session_factory, redis, settings
        ),
    )
    debug.degraded = degraded

    if isinstance(fetched, service.StoreUnprovisioned):
        logger.warning("%s: store not provisioned: %s", JOB_NAME, fetched.message)
        debug.error = fetched.message
        debug.code = "42P01"
        return SocialFeedResponse(error=UNPROVISIONED_ERROR, debug=debug), status.HTTP_200_OK
    if isinstance(fetched, service.StoreFailed):
        logger.error("%s: candidate query failed (%s): %s", JOB_NAME, fetched.code, fetched.message)
        return _error_outcome(
            f"Database query failed: {fetched.message}",
            debug,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            code=fetched.code,
        )

    candidates = filter_by_query(dedupe_by_id(fetched.items), request.query)
    debug.candidates = len(candidates)

    ranked = rank_candidates(candidates, context, now=now)
    ranked = attach_badges(ranked, now=now)
    sections = build_sections(ranked, now=now, cap=settings.section_cap)
    feed = ranked[: request.limit]

    fresh = section_items(sections, FRESH_KEY)
    today = section_items(sections, TODAY_KEY)
    debug.returned = len(feed)
    debug.fresh_count = len(fresh)
    debug.today_count = len(today)
    debug.section_count = len(sections)
    body = SocialFeedResponse(
        feed=feed,
        fresh=fresh,
        today=today,
        sections=sections,
        layout="sections" if sections else "flat",
        debug=debug,
    )
    return body, status.HTTP_200_OK


async def social_feed(
    payload: object,
    user: CurrentUser | None,
    session_factory: async_sessionmaker[AsyncSession] | None,
    redis: Redis | None,
    settings: Settings,
) -> JSONResponse:
    """Rank the caller's feed. Never raises; every outcome is a JSON response."""
    started = time.perf_counter()
    request = SocialFeedRequest.from_body(payload)
    debug = SocialFeedDebug(
        authed=user is not None,
        days=request.days,
        limit=request.limit,
        types=request.types,
        query=bool(request.query),
    )

    missing = settings.missing_required()
    if missing or session_factory is None:
        error = f"Missing required configuration: {', '.join(missing or ['FEED_DATABASE_URL'])}"
        logger.error("%s: %s", JOB_NAME, error)
        body, status_code = _error_outcome(
            error, debug, status.HTTP_500_INTERNAL_SERVER_ERROR, code="config"
        )
    else:
        try:
            body, status_code = await asyncio.wait_for(
                _rank(request, user, session_factory, redis, settings, debug),
                timeout=settings.request_timeout_s,
            )
        except asyncio.TimeoutError:
            logger.error("%s: timed out after %.1fs", JOB_NAME, settings.request_timeout_s)
            body, status_code = _error_outcome(
                f"Feed ranking timed out after {settings.request_timeout_s:g}s",
                debug,
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                code="timeout",
            )

    body.debug.elapsed_ms = round((time.perf_counter() - started) * 1000, 1)
    logger.info(
        "%s status=%d authed=%s candidates=%d returned=%d sections=%d degraded=%s elapsed_ms=%.1f",
        JOB_NAME,
        status_code,
        debug.authed,
        debug.candidates,
        debug.returned,
        debug.section_count,
        ",".join(debug.degraded) or "-",
        body.debug.elapsed_ms,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))
