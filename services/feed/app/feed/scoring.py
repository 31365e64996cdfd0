"""Pure feed scoring functions. No I/O, no framework imports.

Personalised score (weighted linear sum):

    recency * 1.8 + topic_match * 1.2 + source_weight * 0.9
    + action_bonus + follow_boost - block_penalty + feed_boost

Anonymous callers get ``recency * 1.8 + source_weight * 0.9 + feed_boost``
using the default source weights only.

Any ``hide`` action replaces the score with ``WeightConfig.hidden_score``,
which sits below ``hidden_floor``; ``rank_candidates`` drops those items.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone

from app.feed.schemas import (
    DEFAULT_SOURCE_WEIGHTS,
    ContentCandidate,
    ScoredCandidate,
    UserPreferences,
)
from app.models.enums import ItemAction, Source

# Bonus per distinct action type the user has taken on the item
ACTION_POINTS: dict[str, float] = {
    ItemAction.SAVE.value: 2.2,
    ItemAction.LIKE.value: 1.4,
    ItemAction.OPEN.value: 0.35,
}


@dataclass(frozen=True)
class WeightConfig:
    """Coefficients of the linear score."""

    recency: float = 1.8
    topic: float = 1.2
    source: float = 0.9
    follow_boost: float = 1.25
    block_penalty: float = 3.5
    # RSS feed weights run 1–5, so the boost spans 0.2–1.0
    feed_weight_multiplier: float = 0.2
    recency_unknown: float = 0.15
    recency_min: float = 0.05
    recency_max: float = 1.0
    topic_weight_max: float = 3.0
    topic_total_max: float = 4.0
    source_weight_max: float = 3.0
    hidden_score: float = -999.0
    hidden_floor: float = -100.0


DEFAULT_WEIGHT_CONFIG = WeightConfig()


@dataclass
class RankingContext:
    """Everything about the caller the scorer needs, loaded once per request.

    ``personalised`` is False for anonymous callers; preferences then hold the
    defaults and actions / follows are ignored.
    """

    preferences: UserPreferences = field(default_factory=UserPreferences)
    actions: dict[str, list[str]] = field(default_factory=dict)
    follow_keys: frozenset[str] = frozenset()
    feed_weights: dict[str, float] = field(default_factory=dict)
    personalised: bool = False

    @classmethod
    def anonymous(cls, feed_weights: Mapping[str, float] | None = None) -> RankingContext:
        return cls(
            preferences=UserPreferences(sources=dict(DEFAULT_SOURCE_WEIGHTS)),
            feed_weights=dict(feed_weights or {}),
            personalised=False,
        )


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def normalize_key(text: str | None) -> str:
    """Collapse whitespace, trim and lowercase."""
    return " ".join((text or "").split()).lower()


def text_blob(candidate: ContentCandidate) -> str:
    """Normalised haystack used for topic, block-list and free-text matching."""
    parts: list[str] = [
        candidate.title or "",
        candidate.summary or "",
        candidate.author or "",
        *candidate.tags,
        *candidate.topics,
        candidate.source.value,
    ]
    return normalize_key(" ".join(p for p in parts if p))


def score_recency(
    effective_at: datetime | None,
    now: datetime,
    config: WeightConfig = DEFAULT_WEIGHT_CONFIG,
) -> float:
    """Hyperbolic decay: 1.0 when brand new, 0.5 after a day, floored at 0.05.

    Items with no timestamp get a flat 0.15.
    """
    if effective_at is None:
        return config.recency_unknown
    if effective_at.tzinfo is None:
        effective_at = effective_at.replace(tzinfo=timezone.utc)
    hours = (now - effective_at).total_seconds() / 3600.0
    score = 1.0 / (1.0 + max(0.0, hours) / 24.0)
    return _clamp(score, config.recency_min, config.recency_max)


def score_topic_match(
    blob: str,
    preferences: UserPreferences,
    config: WeightConfig = DEFAULT_WEIGHT_CONFIG,
) -> float:
    total = 0.0
    for topic in preferences.topic_weights:
        key = normalize_key(topic.key)
        if key and key in blob:
            total += _clamp(topic.w, 0.0, config.topic_weight_max)
    return _clamp(total, 0.0, config.topic_total_max)


def block_penalty(
    blob: str,
    preferences: UserPreferences,
    config: WeightConfig = DEFAULT_WEIGHT_CONFIG,
) -> float:
    blocked = [k for k in (normalize_key(t) for t in preferences.blocked_topics) if k]
    return config.block_penalty if any(k in blob for k in blocked) else 0.0


def source_weight(
    candidate: ContentCandidate,
    preferences: UserPreferences,
    config: WeightConfig = DEFAULT_WEIGHT_CONFIG,
) -> float:
    weight = preferences.source_weights.get(candidate.source.value, 1.0)
    return _clamp(weight, 0.0, config.source_weight_max)


def is_hidden(actions: Iterable[str]) -> bool:
    return ItemAction.HIDE.value in set(actions)


def action_bonus(actions: Iterable[str]) -> float:
    """Sum of ACTION_POINTS over the distinct action types present."""
    present = set(actions)
    return sum(points for action, points in ACTION_POINTS.items() if action in present)


def feed_boost(
    candidate: ContentCandidate,
    feed_weights: Mapping[str, float],
    config: WeightConfig = DEFAULT_WEIGHT_CONFIG,
) -> float:
    """Editorial nudge for RSS items; non-RSS items get none."""
    if candidate.source is not Source.RSS:
        return 0.0
    weight = feed_weights.get(candidate.feed_url or "", 1.0)
    return weight * config.feed_weight_multiplier


def score_candidate(
    candidate: ContentCandidate,
    context: RankingContext,
    now: datetime,
    config: WeightConfig = DEFAULT_WEIGHT_CONFIG,
) -> float:
    """Deterministic relevance score, rounded to 4 decimals."""
    recency = score_recency(candidate.effective_at, now, config)
    source = source_weight(candidate, context.preferences, config)
    boost = feed_boost(candidate, context.feed_weights, config)

    if not context.personalised:
        score = recency * config.recency + source * config.source + boost
        return round(score, 4)

    actions = context.actions.get(candidate.id, [])
    if is_hidden(actions):
        return config.hidden_score

    blob = text_blob(candidate)
    topic = score_topic_match(blob, context.preferences, config)
    penalty = block_penalty(blob, context.preferences, config)
    follow = (
        config.follow_boost
        if candidate.follow_key and candidate.follow_key in context.follow_keys
        else 0.0
    )
    score = (
        recency * config.recency
        + topic * config.topic
        + source * config.source
        + action_bonus(actions)
        + follow
        - penalty
        + boost
    )
    return round(score, 4)


def rank_candidates(
    candidates: Sequence[ContentCandidate],
    context: RankingContext,
    now: datetime | None = None,
    config: WeightConfig = DEFAULT_WEIGHT_CONFIG,
) -> list[ScoredCandidate]:
    """Score, drop hidden items, and sort by score descending.

    ``list.sort`` is stable, so ties keep fetch order.
    """
    now = now or datetime.now(timezone.utc)
    scored: list[ScoredCandidate] = []
    for candidate in candidates:
        score = score_candidate(candidate, context, now, config)
        if score <= config.hidden_floor:
            continue
        fields = candidate.model_dump(exclude={"score", "badge"})
        scored.append(ScoredCandidate(**fields, score=score))
    scored.sort(key=lambda c: c.score, reverse=True)
    return scored
