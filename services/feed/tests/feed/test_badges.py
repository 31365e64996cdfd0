from datetime import timedelta

from app.feed.badges import (
    BadgeSample,
    BadgeThresholds,
    attach_badges,
    compute_badge,
    is_popular,
    is_trending,
)
from app.models.enums import Badge
from tests.factories import NOW, make_scored


def _samples(scores: list[float], hours_ago: float) -> list[BadgeSample]:
    return [BadgeSample(s, NOW - timedelta(hours=hours_ago)) for s in scores]


def test_recent_item_without_score_is_new() -> None:
    assert compute_badge(NOW - timedelta(hours=1), None, [], NOW) is Badge.NEW


def test_popular_this_week() -> None:
    # 15 items from four days ago; sorted descending, index floor(15 * 0.1) = 1 holds 8
    scores = [12.0, 8.0, 7.0, 6.0, 5.0, 5.0, 4.0, 4.0, 3.0, 3.0, 2.0, 2.0, 1.0, 1.0, 0.5]
    comparison = _samples(scores, hours_ago=96)
    assert compute_badge(NOW - timedelta(days=3), 10.0, comparison, NOW) is Badge.POPULAR


def test_popular_needs_ten_positive_scores() -> None:
    comparison = _samples([5.0] * 9 + [0.0, -1.0], hours_ago=72)
    assert not is_popular(5.0, NOW - timedelta(days=1), comparison, NOW)


def test_trending_needs_three_recent_items() -> None:
    comparison = _samples([10.0, 9.0], hours_ago=10)
    assert not is_trending(10.0, NOW - timedelta(hours=10), comparison, NOW)
    comparison.append(BadgeSample(1.0, NOW - timedelta(hours=20)))
    assert is_trending(9.6, NOW - timedelta(hours=10), comparison, NOW)


def test_trending_threshold_is_ninety_five_percent_of_max() -> None:
    comparison = _samples([10.0, 5.0, 2.0], hours_ago=12)
    ts = NOW - timedelta(hours=12)
    assert compute_badge(ts, 9.5, comparison, NOW) is Badge.TRENDING
    assert compute_badge(ts, 9.4, comparison, NOW) is None


def test_zero_or_missing_score_never_trending_or_popular() -> None:
    comparison = _samples([0.0] * 20, hours_ago=12)
    ts = NOW - timedelta(hours=12)
    assert compute_badge(ts, 0.0, comparison, NOW) is None
    assert compute_badge(ts, None, comparison, NOW) is None


def test_new_wins_over_trending() -> None:
    comparison = _samples([1.0, 1.0, 1.0], hours_ago=1)
    assert compute_badge(NOW - timedelta(minutes=30), 1.0, comparison, NOW) is Badge.NEW


def test_items_older_than_two_hours_are_never_new() -> None:
    items = [make_scored(str(i), score=float(i), hours_ago=2 + i * 0.5) for i in range(30)]
    badged = attach_badges(items, now=NOW)
    assert all(item.badge is not Badge.NEW for item in badged)


def test_thresholds_are_configurable() -> None:
    strict = BadgeThresholds(trending_min_items=5)
    comparison = _samples([10.0, 9.0, 8.0], hours_ago=5)
    ts = NOW - timedelta(hours=5)
    assert compute_badge(ts, 10.0, comparison, NOW) is Badge.TRENDING
    assert compute_badge(ts, 10.0, comparison, NOW, strict) is None


def test_attach_badges_uses_items_as_comparison() -> None:
    items = [
        make_scored("top", score=10.0, hours_ago=5),
        make_scored("mid", score=5.0, hours_ago=6),
        make_scored("low", score=1.0, hours_ago=7),
    ]
    badged = {i.id: i.badge for i in attach_badges(items, now=NOW)}
    assert badged == {"top": Badge.TRENDING, "mid": None, "low": None}
