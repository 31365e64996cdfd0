"""Feed domain Pydantic V2 schemas.

``ContentCandidate`` is the only shape the scorer, section builder and badge
calculator accept; storage rows are converted at the boundary in
``app.feed.normalize``.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.enums import Badge, LengthPreference, Source

# Default weighting for anonymous callers and users without a preferences row
DEFAULT_SOURCE_WEIGHTS: dict[str, float] = {
    Source.YOUTUBE.value: 1.2,
    Source.REDDIT.value: 1.0,
    Source.RSS.value: 1.0,
    Source.SPOTIFY.value: 0.9,
    Source.EVENTBRITE.value: 0.9,
    Source.PODCAST.value: 0.8,
}

FEED_LIMIT_DEFAULT = 60
FEED_LIMIT_MIN = 10
FEED_LIMIT_MAX = 120
DAYS_DEFAULT = 21
DAYS_MIN = 1
DAYS_MAX = 365


# ---------------------------------------------------------------------------
# Candidates
# ---------------------------------------------------------------------------


class ContentCandidate(BaseModel):
    """One piece of ingested content eligible for ranking. Immutable."""

    model_config = ConfigDict(frozen=True)

    id: str
    source: Source
    external_id: str | None = None
    url: str | None = None
    title: str | None = None
    summary: str | None = None
    author: str | None = None
    image_url: str | None = None
    published_at: datetime | None = None
    ingested_at: datetime | None = None
    tags: list[str] = Field(default_factory=list)
    topics: list[str] = Field(default_factory=list)
    follow_key: str | None = Field(
        default=None, description="Marker of the originating feed/handle, e.g. 'rss:https://…'."
    )
    feed_url: str | None = Field(
        default=None, description="Originating RSS feed URL (rss items only)."
    )

    @property
    def effective_at(self) -> datetime | None:
        """published_at, else ingested_at, else None (unknown recency)."""
        return self.published_at or self.ingested_at


class ScoredCandidate(ContentCandidate):
    """Candidate with its computed relevance score and advisory badge."""

    score: float
    badge: Badge | None = None


# ---------------------------------------------------------------------------
# Preferences
# ---------------------------------------------------------------------------


class TopicWeight(BaseModel):
    key: str
    w: float = 1.0


class UserPreferences(BaseModel):
    """Per-user ranking weights, as stored. Out-of-range weights are clamped by the
    scorer rather than rejected here; writes are validated by the preferences API.

    Stored JSON keys are ``sources`` / ``topics`` / ``blocked_topics``; the
    attribute names below are accepted too.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    source_weights: dict[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_SOURCE_WEIGHTS), alias="sources"
    )
    topic_weights: list[TopicWeight] = Field(default_factory=list, alias="topics")
    blocked_topics: list[str] = Field(default_factory=list)
    length_pref: LengthPreference = LengthPreference.MEDIUM

    @field_validator("blocked_topics")
    @classmethod
    def _strip_blocked(cls, v: list[str]) -> list[str]:
        return [t.strip() for t in v if t and t.strip()]

    def to_document(self) -> dict[str, Any]:
        """Storage shape for the ``user_preferences.prefs`` JSONB column."""
        return self.model_dump(mode="json", by_alias=True)


# ---------------------------------------------------------------------------
# Social feed request / response
# ---------------------------------------------------------------------------


def clamp_number(value: Any, default: int, low: int, high: int) -> int:
    # Only finite real numbers are honoured; anything else falls back to the default
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if not math.isfinite(value):
        return default
    return int(min(max(value, low), high))


class SocialFeedRequest(BaseModel):
    """Lenient request body: bad values fall back to defaults instead of 422."""

    limit: int = FEED_LIMIT_DEFAULT
    types: list[str] = Field(default_factory=list)
    query: str = ""
    days: int = DAYS_DEFAULT

    @classmethod
    def from_body(cls, body: Any) -> SocialFeedRequest:
        if not isinstance(body, dict):
            body = {}
        raw_types = body.get("types")
        types = (
            [t.strip().lower() for t in raw_types if isinstance(t, str) and t.strip()]
            if isinstance(raw_types, list)
            else []
        )
        raw_query = body.get("query")
        query = " ".join(raw_query.split()) if isinstance(raw_query, str) else ""
        return cls(
            limit=clamp_number(body.get("limit"), FEED_LIMIT_DEFAULT, FEED_LIMIT_MIN, FEED_LIMIT_MAX),
            types=types,
            query=query,
            days=clamp_number(body.get("days"), DAYS_DEFAULT, DAYS_MIN, DAYS_MAX),
        )


class FeedSection(BaseModel):
    key: str = Field(description="Stable identifier, e.g. fresh / today / trending / tech.")
    title: str
    items: list[ScoredCandidate]


class SocialFeedDebug(BaseModel):
    authed: bool = False
    days: int | None = None
    since: datetime | None = None
    limit: int | None = None
    types: list[str] = Field(default_factory=list)
    query: bool = False
    candidates: int = 0
    returned: int = 0
    fresh_count: int = 0
    today_count: int = 0
    section_count: int = 0
    degraded: list[str] = Field(
        default_factory=list,
        description="Personalisation sources that failed and were replaced by defaults.",
    )
    elapsed_ms: float | None = None
    error: str | None = None
    code: str | None = None


class SocialFeedResponse(BaseModel):
    """Ranked feed plus its sectioned view.

    layout="sections" when at least one section has items; otherwise "flat"
    and ``sections`` is empty; render ``feed`` as a single list.
    """

    feed: list[ScoredCandidate] = Field(default_factory=list)
    fresh: list[ScoredCandidate] = Field(default_factory=list)
    today: list[ScoredCandidate] = Field(default_factory=list)
    sections: list[FeedSection] = Field(default_factory=list)
    layout: Literal["sections", "flat"] = "flat"
    error: str | None = None
    debug: SocialFeedDebug = Field(default_factory=SocialFeedDebug)
