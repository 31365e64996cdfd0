import logging
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ServiceUnavailableError
from app.explore import service
from app.explore.schemas import ExploreItem, ExploreRequest, ExploreResponse
from app.feed.badges import compute_badge, samples_from
from app.feed.normalize import candidate_from_row
from app.pagination import decode_cursor, next_cursor

logger = logging.getLogger(__name__)


def _offset_from(cursor: str | None) -> int:
    if not cursor:
        return 0
    try:
        return decode_cursor(cursor)
    except ValueError as exc:
        logger.warning("explore_feed: %s; starting from the first page", exc)
        return 0


async def explore_feed(payload: object, db: AsyncSession) -> ExploreResponse:
    request = ExploreRequest.from_body(payload)
    offset = _offset_from(request.cursor)

    try:
        rows, total = await service.get_explore_page(
            db, sources=request.sources, offset=offset, limit=request.limit
        )
    except SQLAlchemyError as exc:
        logger.error("explore_feed: query failed: %s", exc)
        raise ServiceUnavailableError("Failed to fetch explore items.") from exc

    items: list[ExploreItem] = []
    for row in rows:
        candidate = candidate_from_row(row)
        if candidate is None:
            continue
        items.append(ExploreItem(**candidate.model_dump(), score=row.score))

    now = datetime.now(timezone.utc)
    samples = samples_from(items)
    items = [
        item.model_copy(update={"badge": compute_badge(item.effective_at, item.score, samples, now)})
        for item in items
    ]

    cursor = next_cursor(offset, request.limit, total)
    logger.info(
        "explore_feed offset=%d limit=%d returned=%d total=%d", offset, request.limit, len(items), total
    )
    return ExploreResponse(items=items, next_cursor=cursor, has_more=cursor is not None, total=total)
