import uuid
from datetime import datetime, timezone

from app.feed.normalize import RssItemMetadata, candidate_from_row, candidates_from_rows, parse_metadata
from app.models.enums import Source
from app.models.feed_item import FeedItem

CREATED = datetime(2026, 2, 27, 8, 0, tzinfo=timezone.utc)


def _row(**overrides) -> FeedItem:
    fields = dict(
        id=uuid.uuid4(),
        source="rss",
        external_id="ext-1",
        url="https://blog.example/post",
        title="Post",
        summary=None,
        author=None,
        image_url=None,
        published_at=None,
        ingested_at=None,
        tags=None,
        topics=None,
        item_metadata=None,
        score=None,
        created_at=CREATED,
    )
    fields.update(overrides)
    return FeedItem(**fields)


def test_rss_metadata_carries_feed_url_and_follow_key() -> None:
    row = _row(
        item_metadata={
            "feed_url": " https://blog.example/feed.xml ",
            "follow_key": "rss:https://blog.example/feed.xml",
            "extra": {"anything": True},
        }
    )
    candidate = candidate_from_row(row)
    assert candidate is not None
    assert candidate.feed_url == "https://blog.example/feed.xml"
    assert candidate.follow_key == "rss:https://blog.example/feed.xml"


def test_non_rss_sources_ignore_feed_url() -> None:
    row = _row(source="youtube", item_metadata={"feed_url": "https://x.example", "follow_key": "youtube:abc"})
    candidate = candidate_from_row(row)
    assert candidate.feed_url is None
    assert candidate.follow_key == "youtube:abc"


def test_unknown_source_is_dropped() -> None:
    rows = [_row(source="tiktok"), _row(source="reddit")]
    candidates = candidates_from_rows(rows)
    assert [c.source for c in candidates] == [Source.REDDIT]


def test_malformed_metadata_degrades_to_empty() -> None:
    assert parse_metadata(Source.RSS, "not a dict") == RssItemMetadata()
    assert parse_metadata(Source.RSS, {"feed_url": ["wrong"]}).feed_url is None
    candidate = candidate_from_row(_row(item_metadata=["junk"]))
    assert candidate is not None
    assert candidate.follow_key is None


def test_created_at_stands_in_for_missing_ingested_at() -> None:
    candidate = candidate_from_row(_row())
    assert candidate.ingested_at == CREATED
    assert candidate.effective_at == CREATED


def test_published_at_wins_over_ingested_at() -> None:
    published = datetime(2026, 2, 28, 9, 0, tzinfo=timezone.utc)
    candidate = candidate_from_row(_row(published_at=published))
    assert candidate.effective_at == published


def test_null_array_entries_are_dropped() -> None:
    candidate = candidate_from_row(_row(tags=["ai", None, " "], topics=None))
    assert candidate.tags == ["ai"]
    assert candidate.topics == []
