from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.dependencies import get_settings
from app.feed import service
from app.feed.scoring import RankingContext
from app.main import app
from app.models.enums import Source
from tests.factories import make_candidate, make_token

URL = "/api/v1/social-feed"


def _recent(id: str, hours: float, **kw):
    now = datetime.now(timezone.utc)
    return make_candidate(id, hours_ago=None, published_at=now - timedelta(hours=hours), **kw)


@pytest.fixture
def stub_store(monkeypatch):
    """Replace storage with in-memory candidates; returns the captured calls."""
    calls: dict = {}

    def install(result, context=None, degraded=None):
        async def fetch(session_factory, since, types, limit, timeout=None):
            calls["fetch"] = {"since": since, "types": types, "limit": limit}
            return result

        async def load_context(user_id, session_factory, redis, settings):
            calls["user_id"] = user_id
            return (context or RankingContext.anonymous()), list(degraded or [])

        monkeypatch.setattr(service, "fetch_candidates", fetch)
        monkeypatch.setattr(service, "load_ranking_context", load_context)
        return calls

    return install


def test_get_returns_liveness(client: TestClient) -> None:
    response = client.get(URL)
    assert response.status_code == 200
    assert response.json() == {"ok": True, "fn": "social_feed"}


def test_anonymous_feed_is_ranked_and_sectioned(client: TestClient, stub_store) -> None:
    items = [
        _recent("old", 20, source=Source.PODCAST),
        _recent("new", 0.5, source=Source.YOUTUBE),
        _recent("mid", 3, source=Source.REDDIT),
    ]
    calls = stub_store(service.CandidatesLoaded(items=items))

    response = client.post(URL, json={})

    assert response.status_code == 200
    body = response.json()
    assert [i["id"] for i in body["feed"]] == ["new", "mid", "old"]
    assert body["feed"][0]["badge"] == "new"
    assert [i["id"] for i in body["fresh"]] == ["new", "mid"]
    assert [i["id"] for i in body["today"]] == ["old"]
    assert body["layout"] == "sections"
    assert body["error"] is None
    assert body["debug"]["authed"] is False
    assert body["debug"]["returned"] == 3
    assert calls["user_id"] is None


def test_body_defaults_and_clamping(client: TestClient, stub_store) -> None:
    calls = stub_store(service.CandidatesLoaded(items=[]))

    body = client.post(URL, json={"limit": 5000, "days": "7", "types": ["RSS", 3]}).json()

    assert body["debug"]["limit"] == 120
    assert body["debug"]["days"] == 21
    assert calls["fetch"]["types"] == ["rss"]
    assert body["layout"] == "flat"
    assert body["sections"] == []


def test_unparsable_body_uses_defaults(client: TestClient, stub_store) -> None:
    stub_store(service.CandidatesLoaded(items=[]))
    response = client.post(URL, content=b"{not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 200
    assert response.json()["debug"]["limit"] == 60


@pytest.mark.parametrize("raw", [b'{"limit": NaN, "days": NaN}', b'{"limit": Infinity, "days": -Infinity}'])
def test_non_finite_numbers_use_defaults(client: TestClient, stub_store, raw: bytes) -> None:
    stub_store(service.CandidatesLoaded(items=[]))
    response = client.post(URL, content=raw, headers={"Content-Type": "application/json"})
    assert response.status_code == 200
    assert response.json()["debug"]["limit"] == 60
    assert response.json()["debug"]["days"] == 21


def test_query_filters_candidates(client: TestClient, stub_store) -> None:
    items = [_recent("a", 1, title="Jazz album review"), _recent("b", 1, title="Stock markets")]
    stub_store(service.CandidatesLoaded(items=items))

    body = client.post(URL, json={"query": "  ALBUM  "}).json()

    assert [i["id"] for i in body["feed"]] == ["a"]
    assert body["debug"]["query"] is True


def test_query_matches_author(client: TestClient, stub_store) -> None:
    items = [_recent("a", 1, title="Weekly notes", author="Ada Lovelace"), _recent("b", 1, title="Other")]
    stub_store(service.CandidatesLoaded(items=items))

    body = client.post(URL, json={"query": "lovelace"}).json()

    assert [i["id"] for i in body["feed"]] == ["a"]


def test_duplicate_ids_are_removed(client: TestClient, stub_store) -> None:
    items = [_recent("abc", 1, title="first"), _recent("abc", 1, title="second")]
    stub_store(service.CandidatesLoaded(items=items))

    feed = client.post(URL, json={}).json()["feed"]

    assert len(feed) == 1
    assert feed[0]["title"] == "first"


def test_limit_truncates_feed(client: TestClient, stub_store) -> None:
    stub_store(service.CandidatesLoaded(items=[_recent(str(i), i) for i in range(30)]))
    body = client.post(URL, json={"limit": 10}).json()
    assert len(body["feed"]) == 10


def test_unprovisioned_store_returns_empty_feed_with_error(client: TestClient, stub_store) -> None:
    stub_store(service.StoreUnprovisioned(message='relation "feed_items" does not exist'))

    response = client.post(URL, json={})

    assert response.status_code == 200
    body = response.json()
    assert body["feed"] == []
    assert "does not exist" in body["error"]
    assert body["debug"]["code"] == "42P01"


def test_store_failure_returns_500(client: TestClient, stub_store) -> None:
    stub_store(service.StoreFailed(message="connection reset", code="08006"))

    response = client.post(URL, json={})

    assert response.status_code == 500
    body = response.json()
    assert body["feed"] == []
    assert "connection reset" in body["error"]
    assert body["debug"]["code"] == "08006"


def test_missing_database_url_is_a_configuration_error(client: TestClient, stub_store) -> None:
    stub_store(service.CandidatesLoaded(items=[]))
    app.dependency_overrides[get_settings] = lambda: Settings(feed_database_url="")

    response = client.post(URL, json={})

    assert response.status_code == 500
    assert "FEED_DATABASE_URL" in response.json()["error"]


def test_valid_token_personalises(client: TestClient, stub_store) -> None:
    calls = stub_store(service.CandidatesLoaded(items=[]), degraded=["follows"])
    token = make_token()

    body = client.post(URL, json={}, headers={"Authorization": f"Bearer {token}"}).json()

    assert body["debug"]["authed"] is True
    assert body["debug"]["degraded"] == ["follows"]
    assert calls["user_id"] is not None


def test_invalid_token_degrades_to_anonymous(client: TestClient, stub_store) -> None:
    calls = stub_store(service.CandidatesLoaded(items=[]))

    response = client.post(URL, json={}, headers={"Authorization": "Bearer garbage"})

    assert response.status_code == 200
    assert response.json()["debug"]["authed"] is False
    assert calls["user_id"] is None


def test_hidden_items_never_returned(client: TestClient, stub_store) -> None:
    items = [_recent("x", 1), _recent("y", 1)]
    context = RankingContext(actions={"x": ["hide"]}, personalised=True)
    stub_store(service.CandidatesLoaded(items=items), context=context)

    body = client.post(URL, json={}, headers={"Authorization": f"Bearer {make_token()}"}).json()

    returned = {i["id"] for i in body["feed"]}
    for section in body["sections"]:
        returned.update(i["id"] for i in section["items"])
    assert returned == {"y"}


def test_request_timeout_returns_500(client: TestClient, stub_store, monkeypatch) -> None:
    import asyncio

    async def hang(*args, **kwargs):
        await asyncio.sleep(5)

    stub_store(service.CandidatesLoaded(items=[]))
    monkeypatch.setattr(service, "fetch_candidates", hang)
    app.dependency_overrides[get_settings] = lambda: Settings(
        feed_database_url="postgresql+asyncpg://x/y", request_timeout_s=0.05
    )

    response = client.post(URL, json={})

    assert response.status_code == 500
    assert response.json()["debug"]["code"] == "timeout"
