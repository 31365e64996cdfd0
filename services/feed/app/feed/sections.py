"""Partition a scored feed into named rows.

Each item lands in at most one section: the first matching rule wins and
later rules only see what is left of the pool.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from app.feed.schemas import FeedSection, ScoredCandidate
from app.feed.scoring import normalize_key

DEFAULT_SECTION_CAP = 20

FRESH_KEY = "fresh"
TODAY_KEY = "today"

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class CategoryRow:
    key: str
    title: str
    keywords: tuple[str, ...]


DEFAULT_CATEGORIES: tuple[CategoryRow, ...] = (
    CategoryRow(
        "tech",
        "Tech",
        ("tech", "startup", "innovation", "ai", "engineering", "software", "programming"),
    ),
    CategoryRow(
        "culture",
        "Culture",
        ("culture", "film", "movie", "tv", "cinema", "entertainment", "internet", "meme", "trends", "digital"),
    ),
    CategoryRow(
        "finance",
        "Finance",
        ("finance", "money", "investing", "markets", "economy", "stocks", "crypto"),
    ),
    CategoryRow(
        "music",
        "Music",
        ("music", "album", "artist", "review", "song", "concert"),
    ),
)


def _timestamp(item: ScoredCandidate) -> datetime | None:
    ts = item.effective_at
    if ts is not None and ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def _age(item: ScoredCandidate, now: datetime) -> timedelta | None:
    ts = _timestamp(item)
    return None if ts is None else now - ts


def _by_timestamp_desc(items: list[ScoredCandidate]) -> list[ScoredCandidate]:
    # Unknown timestamps sort last
    return sorted(items, key=lambda i: _timestamp(i) or _EPOCH, reverse=True)


def _by_score_desc(items: list[ScoredCandidate]) -> list[ScoredCandidate]:
    return sorted(items, key=lambda i: i.score, reverse=True)


def category_blob(item: ScoredCandidate) -> str:
    """Title, summary, tags and topics, normalised."""
    parts = [item.title or "", item.summary or "", *item.tags, *item.topics]
    return normalize_key(" ".join(p for p in parts if p))


def _matches_keywords(blob: str, keywords: Sequence[str]) -> bool:
    # Whole-word match so "ai" does not fire on "said"
    words = set(blob.replace("-", " ").replace("/", " ").split())
    return any(k in words if " " not in k else k in blob for k in keywords)


@dataclass(frozen=True)
class _Rule:
    key: str
    title: str
    accept: Callable[[ScoredCandidate], bool]
    order: Callable[[list[ScoredCandidate]], list[ScoredCandidate]]


def _age_between(now: datetime, low: timedelta, high: timedelta) -> Callable[[ScoredCandidate], bool]:
    def accept(item: ScoredCandidate) -> bool:
        age = _age(item, now)
        return age is not None and low <= age <= high

    return accept


def _rules(now: datetime, categories: Sequence[CategoryRow]) -> list[_Rule]:
    # Future-dated items count as age zero
    rules = [
        _Rule(FRESH_KEY, "Fresh", _age_between(now, timedelta.min, timedelta(hours=6)), _by_timestamp_desc),
        _Rule(TODAY_KEY, "Today", _age_between(now, timedelta.min, timedelta(hours=24)), _by_timestamp_desc),
        _Rule("trending", "Trending", _age_between(now, timedelta.min, timedelta(hours=48)), _by_score_desc),
        _Rule("deep_cuts", "Deep Cuts", _age_between(now, timedelta(days=7), timedelta(days=30)), _by_score_desc),
    ]
    for row in categories:
        rules.append(
            _Rule(
                row.key,
                row.title,
                lambda item, kw=row.keywords: _matches_keywords(category_blob(item), kw),
                _by_timestamp_desc,
            )
        )
    return rules


def build_sections(
    items: Sequence[ScoredCandidate],
    now: datetime | None = None,
    cap: int = DEFAULT_SECTION_CAP,
    categories: Sequence[CategoryRow] = DEFAULT_CATEGORIES,
) -> list[FeedSection]:
    """Bucket ``items`` into Fresh / Today / Trending / Deep Cuts / category rows.

    Empty sections are omitted. Items beyond a section's cap stay out of later
    sections too, so no id is ever placed twice.
    """
    now = now or datetime.now(timezone.utc)
    placed: set[str] = set()
    sections: list[FeedSection] = []

    for rule in _rules(now, categories):
        matched = [i for i in items if i.id not in placed and rule.accept(i)]
        if not matched:
            continue
        chosen = rule.order(matched)[:cap]
        placed.update(i.id for i in matched)
        sections.append(FeedSection(key=rule.key, title=rule.title, items=chosen))

    return sections


def section_items(sections: Sequence[FeedSection], key: str) -> list[ScoredCandidate]:
    for section in sections:
        if section.key == key:
            return list(section.items)
    return []
