"""Advisory card badges: "new", "trending", "popular" (this week).

A badge is computed per item relative to a comparison set of sibling items
(normally the other items of the same response). Priority is
New > Trending > Popular; the first rule that matches wins.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import NamedTuple

from app.feed.schemas import ContentCandidate, ScoredCandidate
from app.models.enums import Badge


@dataclass(frozen=True)
class BadgeThresholds:
    new_max_age: timedelta = timedelta(hours=2)
    trending_window: timedelta = timedelta(hours=48)
    # Minimum comparison items inside the window before a badge type is available
    trending_min_items: int = 3
    trending_ratio: float = 0.95
    popular_window: timedelta = timedelta(days=7)
    popular_min_items: int = 10
    popular_top_fraction: float = 0.1


DEFAULT_BADGE_THRESHOLDS = BadgeThresholds()


class BadgeSample(NamedTuple):
    score: float | None
    timestamp: datetime | None


def _aware(ts: datetime) -> datetime:
    return ts if ts.tzinfo is not None else ts.replace(tzinfo=timezone.utc)


def samples_from(items: Iterable[ContentCandidate]) -> list[BadgeSample]:
    return [BadgeSample(getattr(item, "score", None), item.effective_at) for item in items]


def _within(samples: Sequence[BadgeSample], window: timedelta, now: datetime) -> list[BadgeSample]:
    cutoff = now - window
    return [s for s in samples if s.timestamp is not None and _aware(s.timestamp) >= cutoff]


def is_new(
    timestamp: datetime | None,
    now: datetime,
    thresholds: BadgeThresholds = DEFAULT_BADGE_THRESHOLDS,
) -> bool:
    if timestamp is None:
        return False
    return now - _aware(timestamp) < thresholds.new_max_age


def is_trending(
    score: float | None,
    timestamp: datetime | None,
    comparison: Sequence[BadgeSample],
    now: datetime,
    thresholds: BadgeThresholds = DEFAULT_BADGE_THRESHOLDS,
) -> bool:
    """Within 5% of the best score among the last 48 h of comparison items."""
    if not score or score <= 0 or timestamp is None:
        return False
    recent = _within(comparison, thresholds.trending_window, now)
    if len(recent) < thresholds.trending_min_items:
        return False
    scores = [s.score for s in recent if s.score is not None and s.score > 0]
    if not scores:
        return False
    return score >= max(scores) * thresholds.trending_ratio


def is_popular(
    score: float | None,
    timestamp: datetime | None,
    comparison: Sequence[BadgeSample],
    now: datetime,
    thresholds: BadgeThresholds = DEFAULT_BADGE_THRESHOLDS,
) -> bool:
    """At or above the top-10% threshold of positive scores from the last 7 days."""
    if not score or score <= 0 or timestamp is None:
        return False
    recent = _within(comparison, thresholds.popular_window, now)
    scores = sorted(
        (s.score for s in recent if s.score is not None and s.score > 0),
        reverse=True,
    )
    if len(scores) < thresholds.popular_min_items:
        return False
    index = min(len(scores) - 1, max(0, math.floor(len(scores) * thresholds.popular_top_fraction)))
    return score >= scores[index]


def compute_badge(
    timestamp: datetime | None,
    score: float | None,
    comparison: Sequence[BadgeSample] = (),
    now: datetime | None = None,
    thresholds: BadgeThresholds = DEFAULT_BADGE_THRESHOLDS,
) -> Badge | None:
    now = now or datetime.now(timezone.utc)
    if is_new(timestamp, now, thresholds):
        return Badge.NEW
    if is_trending(score, timestamp, comparison, now, thresholds):
        return Badge.TRENDING
    if is_popular(score, timestamp, comparison, now, thresholds):
        return Badge.POPULAR
    return None


def attach_badges(
    items: Sequence[ScoredCandidate],
    comparison: Iterable[ContentCandidate] | None = None,
    now: datetime | None = None,
    thresholds: BadgeThresholds = DEFAULT_BADGE_THRESHOLDS,
) -> list[ScoredCandidate]:
    """Return copies of ``items`` with ``badge`` set.

    The comparison set defaults to ``items`` themselves.
    """
    now = now or datetime.now(timezone.utc)
    samples = samples_from(comparison if comparison is not None else items)
    return [
        item.model_copy(
            update={"badge": compute_badge(item.effective_at, item.score, samples, now, thresholds)}
        )
        for item in items
    ]
