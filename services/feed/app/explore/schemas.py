from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from app.feed.schemas import ContentCandidate, clamp_number
from app.models.enums import Badge, Source

EXPLORE_LIMIT_DEFAULT = 20
EXPLORE_LIMIT_MIN = 1
EXPLORE_LIMIT_MAX = 50


class ExploreItem(ContentCandidate):
    """Candidate ordered by its stored discoverability score (may be null)."""

    score: float | None = None
    badge: Badge | None = None


class ExploreRequest(BaseModel):
    limit: int = EXPLORE_LIMIT_DEFAULT
    cursor: str | None = None
    sources: list[str] = Field(default_factory=list)

    @classmethod
    def from_body(cls, body: Any) -> ExploreRequest:
        """Lenient parse: wrong types fall back to defaults, unknown sources are dropped."""
        if not isinstance(body, dict):
            body = {}
        cursor = body.get("cursor")
        known = {s.value for s in Source}
        raw_sources = body.get("sources")
        sources = (
            [s.strip().lower() for s in raw_sources if isinstance(s, str) and s.strip().lower() in known]
            if isinstance(raw_sources, list)
            else []
        )
        return cls(
            limit=clamp_number(
                body.get("limit"), EXPLORE_LIMIT_DEFAULT, EXPLORE_LIMIT_MIN, EXPLORE_LIMIT_MAX
            ),
            cursor=cursor if isinstance(cursor, str) and cursor else None,
            sources=sources,
        )


class ExploreResponse(BaseModel):
    items: list[ExploreItem]
    next_cursor: str | None = Field(
        default=None,
        description="Opaque cursor for the next page. Null when no more pages.",
    )
    has_more: bool
    total: int
