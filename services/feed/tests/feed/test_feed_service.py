import asyncio
import uuid
from datetime import datetime, timezone

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import DBAPIError

from app.config import Settings
from app.feed import cache as feed_cache
from app.feed import service
from app.feed.schemas import UserPreferences

SINCE = datetime(2026, 2, 1, tzinfo=timezone.utc)


class _DriverError(Exception):
    def __init__(self, message: str, sqlstate: str) -> None:
        super().__init__(message)
        self.sqlstate = sqlstate


class _FailingSession:
    def __init__(self, exc: BaseException) -> None:
        self._exc = exc

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    async def execute(self, stmt):
        raise self._exc


def _factory(exc: BaseException):
    return lambda: _FailingSession(exc)


def _dbapi_error(message: str, sqlstate: str) -> DBAPIError:
    return DBAPIError("SELECT ...", {}, _DriverError(message, sqlstate))


@pytest.mark.asyncio
async def test_missing_relation_is_unprovisioned() -> None:
    exc = _dbapi_error('relation "feed_items" does not exist', "42P01")
    result = await service.fetch_candidates(_factory(exc), SINCE, [], 400)
    assert isinstance(result, service.StoreUnprovisioned)
    assert "does not exist" in result.message


@pytest.mark.asyncio
async def test_other_driver_errors_fail_with_code() -> None:
    exc = _dbapi_error("permission denied for table feed_items", "42501")
    result = await service.fetch_candidates(_factory(exc), SINCE, [], 400)
    assert result == service.StoreFailed(message="permission denied for table feed_items", code="42501")


@pytest.mark.asyncio
async def test_slow_candidate_query_times_out() -> None:
    class _SlowSession(_FailingSession):
        async def execute(self, stmt):
            await asyncio.sleep(5)

    result = await service.fetch_candidates(lambda: _SlowSession(None), SINCE, [], 400, timeout=0.05)
    assert isinstance(result, service.StoreFailed)
    assert result.code == "timeout"


def test_candidate_query_filters_window_and_sources() -> None:
    sql = str(service.candidate_query(SINCE, ["rss", "youtube"], 400))
    assert "feed_items.published_at >=" in sql
    assert "feed_items.published_at IS NULL" in sql
    assert "feed_items.source IN" in sql
    assert "NULLS LAST" in sql


def _settings() -> Settings:
    return Settings(feed_database_url="postgresql+asyncpg://x/y", auxiliary_timeout_s=1.0)


class _NullSession:
    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False


@pytest.mark.asyncio
async def test_anonymous_context_only_loads_rss_weights(monkeypatch) -> None:
    async def weights(db, redis, ttl_s):
        return {"https://f.example": 4.0}

    monkeypatch.setattr(service, "load_rss_weights", weights)

    context, degraded = await service.load_ranking_context(None, _NullSession, None, _settings())

    assert context.personalised is False
    assert context.feed_weights == {"https://f.example": 4.0}
    assert degraded == []


@pytest.mark.asyncio
async def test_failed_sources_fall_back_to_defaults(monkeypatch) -> None:
    async def weights(db, redis, ttl_s):
        return {}

    async def prefs(user_id, db):
        raise RuntimeError("prefs table locked")

    async def follows(user_id, db):
        return frozenset({"rss:https://f.example"})

    async def actions(user_id, db, redis, ttl_s):
        await asyncio.sleep(5)

    monkeypatch.setattr(service, "load_rss_weights", weights)
    monkeypatch.setattr(service, "load_preferences", prefs)
    monkeypatch.setattr(service, "load_follow_keys", follows)
    monkeypatch.setattr(service, "load_action_map", actions)
    settings = _settings()
    settings.auxiliary_timeout_s = 0.05

    context, degraded = await service.load_ranking_context(uuid.uuid4(), _NullSession, None, settings)

    assert context.personalised is True
    assert context.preferences == UserPreferences()
    assert context.follow_keys == frozenset({"rss:https://f.example"})
    assert context.actions == {}
    assert sorted(degraded) == ["actions", "preferences"]


def test_action_map_query_is_distinct_and_uncapped() -> None:
    sql = str(service.action_map_query(uuid.uuid4()).compile(dialect=postgresql.dialect()))
    assert sql.startswith("SELECT DISTINCT user_item_actions.item_id, user_item_actions.action")
    assert "LIMIT" not in sql
    assert "user_item_actions.user_id =" in sql


class _Rows:
    def __init__(self, rows) -> None:
        self._rows = rows

    def all(self):
        return list(self._rows)


class _ActionSession:
    def __init__(self, rows, during_query=None) -> None:
        self.rows = rows
        self.during_query = during_query

    async def execute(self, stmt):
        if self.during_query is not None:
            await self.during_query()
        return _Rows(self.rows)


@pytest.mark.asyncio
async def test_old_hide_survives_many_newer_actions() -> None:
    rows = [(f"item-{n}", "open") for n in range(5000)] + [("hidden", "hide")]
    actions = await service.query_action_map(uuid.uuid4(), _ActionSession(rows))
    assert actions["hidden"] == ["hide"]
    assert len(actions) == 5001


class _MemoryRedis:
    def __init__(self) -> None:
        self.data: dict[str, str] = {}

    async def get(self, key):
        return self.data.get(key)

    async def setex(self, key, ttl, value):
        self.data[key] = value

    async def incr(self, key):
        self.data[key] = str(int(self.data.get(key, 0)) + 1)
        return int(self.data[key])

    async def expire(self, key, seconds):
        return True


@pytest.mark.asyncio
async def test_stale_map_written_after_invalidation_is_not_served() -> None:
    user_id = uuid.uuid4()
    redis = _MemoryRedis()

    async def new_hide_committed():
        await feed_cache.invalidate_action_map(user_id, redis)

    # Reader loaded the log before the hide was committed and caches it afterwards
    stale = await service.load_action_map(
        user_id, _ActionSession([("x", "open")], during_query=new_hide_committed), redis, 60
    )
    assert stale == {"x": ["open"]}

    fresh = await service.load_action_map(
        user_id, _ActionSession([("x", "open"), ("x", "hide")]), redis, 60
    )
    assert fresh == {"x": ["open", "hide"]}


@pytest.mark.asyncio
async def test_action_map_is_served_from_cache_within_a_generation() -> None:
    user_id = uuid.uuid4()
    redis = _MemoryRedis()
    await service.load_action_map(user_id, _ActionSession([("x", "like")]), redis, 60)

    cached = await service.load_action_map(user_id, _ActionSession([]), redis, 60)

    assert cached == {"x": ["like"]}
