"""
Unit tests for SQLite persistence and history retention.
"""

import sqlite3

import pytest

from config.environments import get_history_config
from explorer_types.domain import ConsoleHistoryEntry, EncryptedSecret, KeychainSecret
from storage.database import Database
from storage.endpoints import EndpointRepository
from storage.history import HistoryRepository, HistoryRetention


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def database(tmp_path):
    return Database(tmp_path / "data" / "explorer.db")


@pytest.fixture
def endpoints(database):
    return EndpointRepository(database)


@pytest.fixture
def history(database):
    return HistoryRepository(database)


def entry(endpoint_id, path, status=200):
    return ConsoleHistoryEntry(
        endpoint_id=endpoint_id,
        method="GET",
        path=path,
        response_status=status,
        response_body="{}",
    )


class TestEndpointRepository:
    """Test cases for endpoint records."""

    @pytest.mark.asyncio
    async def test_create_and_get(self, endpoints):
        created = await endpoints.create("prod", "https://es.example:9200", True, "elastic")

        loaded = await endpoints.get(created.id)

        assert loaded == created
        assert loaded.insecure is True
        assert loaded.secret is None

    @pytest.mark.asyncio
    async def test_get_missing(self, endpoints):
        assert await endpoints.get(404) is None

    @pytest.mark.asyncio
    async def test_list_is_sorted_by_name(self, endpoints):
        await endpoints.create("staging", "http://staging:9200")
        await endpoints.create("dev", "http://localhost:9200")

        names = [e.name for e in await endpoints.list()]

        assert names == ["dev", "staging"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("record", [
        KeychainSecret(keychain_id="endpoint-1"),
        EncryptedSecret(blob=b"\xaa" * 24, nonce=b"\x01" * 12),
    ])
    async def test_secret_record_round_trip(self, endpoints, record):
        created = await endpoints.create("prod", "https://es.example:9200", username="elastic")

        assert await endpoints.set_secret(created.id, record)

        assert (await endpoints.get(created.id)).secret == record

    @pytest.mark.asyncio
    async def test_clear_secret(self, endpoints):
        created = await endpoints.create("prod", "https://es.example:9200", username="elastic")
        await endpoints.set_secret(created.id, KeychainSecret(keychain_id="endpoint-1"))

        await endpoints.set_secret(created.id, None)

        assert (await endpoints.get(created.id)).secret is None

    @pytest.mark.asyncio
    async def test_no_plaintext_column(self, database, endpoints):
        """Test that the stored row only ever holds the tagged record."""
        created = await endpoints.create("prod", "https://es.example:9200", username="elastic")
        await endpoints.set_secret(created.id, KeychainSecret(keychain_id="endpoint-1"))

        def columns(conn):
            return [row["name"] for row in conn.execute("PRAGMA table_info(endpoints)")]

        assert "password" not in await database.run(columns)

    @pytest.mark.asyncio
    async def test_update(self, endpoints):
        created = await endpoints.create("prod", "https://es.example:9200")

        assert await endpoints.update(created.id, "prod-eu", "https://es-eu.example:9200", False, "admin")

        loaded = await endpoints.get(created.id)
        assert (loaded.name, loaded.url, loaded.username) == ("prod-eu", "https://es-eu.example:9200", "admin")

    @pytest.mark.asyncio
    async def test_delete_cascades_to_history(self, endpoints, history):
        created = await endpoints.create("prod", "https://es.example:9200")
        await history.append(entry(created.id, "/_cat/indices"))

        assert await endpoints.delete(created.id)

        assert await history.count() == 0
        assert not await endpoints.delete(created.id)


class TestHistoryRepository:
    """Test cases for console history."""

    @pytest.mark.asyncio
    async def test_recent_is_newest_first(self, endpoints, history):
        created = await endpoints.create("prod", "https://es.example:9200")
        for path in ("/a", "/b", "/c"):
            await history.append(entry(created.id, path))

        recent = await history.recent(limit=2)

        assert [e.path for e in recent] == ["/c", "/b"]
        assert recent[0].created_at is not None
        assert recent[0].created_at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_recent_per_endpoint(self, endpoints, history):
        first = await endpoints.create("a", "http://a:9200")
        second = await endpoints.create("b", "http://b:9200")
        await history.append(entry(first.id, "/first"))
        await history.append(entry(second.id, "/second"))

        recent = await history.recent(endpoint_id=second.id)

        assert [e.path for e in recent] == ["/second"]

    @pytest.mark.asyncio
    async def test_method_is_constrained(self, endpoints, history):
        created = await endpoints.create("prod", "https://es.example:9200")
        bad = ConsoleHistoryEntry(endpoint_id=created.id, method="TRACE", path="/")

        with pytest.raises(sqlite3.IntegrityError):
            await history.append(bad)

    @pytest.mark.asyncio
    async def test_unknown_endpoint_is_rejected(self, history):
        with pytest.raises(sqlite3.IntegrityError):
            await history.append(entry(999, "/"))

    @pytest.mark.asyncio
    async def test_prune_keeps_newest(self, endpoints, history):
        created = await endpoints.create("prod", "https://es.example:9200")
        for i in range(5):
            await history.append(entry(created.id, f"/{i}"))

        removed = await history.prune(keep_last=2)

        assert removed == 3
        assert [e.path for e in await history.recent()] == ["/4", "/3"]


class TestHistoryRetention:
    """Test cases for interval-bound pruning."""

    @pytest.mark.asyncio
    async def test_prunes_at_most_once_per_interval(self, endpoints, history):
        created = await endpoints.create("prod", "https://es.example:9200")
        clock = FakeClock()
        retention = HistoryRetention(history, keep_last=1, interval_seconds=300, clock=clock)

        await history.append(entry(created.id, "/0"))
        await history.append(entry(created.id, "/1"))
        assert await retention.maybe_prune() == 1

        await history.append(entry(created.id, "/2"))
        clock.now += 299
        assert await retention.maybe_prune() is None
        assert await history.count() == 2

        clock.now += 1
        assert await retention.maybe_prune() == 1
        assert [e.path for e in await history.recent()] == ["/2"]

    def test_defaults_from_configuration(self, history):
        config = get_history_config()
        retention = HistoryRetention(history)

        assert retention.keep_last == config["keep_last"]
        assert retention.interval_seconds == config["prune_interval_seconds"]
        assert retention.due()
