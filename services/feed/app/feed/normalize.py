"""Storage row → ContentCandidate conversion.

The ``metadata`` JSONB column is free-form and written by several ingestion
jobs. It is validated here against a per-source model so that nothing
unvalidated reaches the scorer.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from app.feed.schemas import ContentCandidate
from app.models.enums import Source
from app.models.feed_item import FeedItem

logger = logging.getLogger(__name__)


class ItemMetadata(BaseModel):
    """Metadata fields every source may carry. Unknown keys are ignored."""

    model_config = ConfigDict(extra="ignore")

    follow_key: str | None = None

    @field_validator("follow_key", mode="before")
    @classmethod
    def _blank_to_none(cls, v: Any) -> Any:
        if v is None:
            return None
        v = str(v).strip()
        return v or None


class RssItemMetadata(ItemMetadata):
    feed_url: str | None = None

    @field_validator("feed_url", mode="before")
    @classmethod
    def _strip_url(cls, v: Any) -> Any:
        if v is None or not isinstance(v, str):
            return None
        return v.strip() or None


METADATA_MODELS: dict[Source, type[ItemMetadata]] = {
    Source.RSS: RssItemMetadata,
}


def parse_metadata(source: Source, raw: Any) -> ItemMetadata:
    """Validate ``raw`` for ``source``; malformed metadata degrades to empty."""
    model = METADATA_MODELS.get(source, ItemMetadata)
    if not isinstance(raw, Mapping):
        return model()
    try:
        return model.model_validate(dict(raw))
    except ValidationError as exc:
        logger.warning("Discarding malformed %s metadata: %s", source.value, exc.error_count())
        return model()


def _clean_strings(values: Iterable[Any] | None) -> list[str]:
    if not values:
        return []
    return [str(v) for v in values if v is not None and str(v).strip()]


def candidate_from_row(row: FeedItem) -> ContentCandidate | None:
    """Build a candidate from a ``feed_items`` row.

    Returns None for rows whose source this service does not know.
    """
    try:
        source = Source(row.source)
    except ValueError:
        logger.warning("Skipping feed item %s with unknown source %r", row.id, row.source)
        return None

    meta = parse_metadata(source, row.item_metadata)
    ingested_at: datetime | None = row.ingested_at or row.created_at
    return ContentCandidate(
        id=str(row.id),
        source=source,
        external_id=row.external_id,
        url=row.url,
        title=row.title,
        summary=row.summary,
        author=row.author,
        image_url=row.image_url,
        published_at=row.published_at,
        ingested_at=ingested_at,
        tags=_clean_strings(row.tags),
        topics=_clean_strings(row.topics),
        follow_key=meta.follow_key,
        feed_url=getattr(meta, "feed_url", None),
    )


def candidates_from_rows(rows: Iterable[FeedItem]) -> list[ContentCandidate]:
    candidates: list[ContentCandidate] = []
    for row in rows:
        candidate = candidate_from_row(row)
        if candidate is not None:
            candidates.append(candidate)
    return candidates
