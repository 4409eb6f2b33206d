"""
Integration Tests for the persistent state stores
=================================================

Purpose
-------
Exercise `DatabaseStateStore` against a real SQLite database (aiosqlite) and
`RedisStateStore` against an in-process async client double, then drive a
full dungeon run through the database store.

Testing Strategy
----------------
- Each test gets a fresh database file under ``tmp_path``.
- The redis double implements only the commands `RedisService` issues.
"""

import fnmatch

import pytest
import pytest_asyncio
import redis.asyncio as redis

from gauntlet.core.database.service import DatabaseNotInitializedError, DatabaseService
from gauntlet.core.redis.service import RedisNotInitializedError, RedisService
from gauntlet.core.storage.database_store import DatabaseStateStore
from gauntlet.core.storage.redis_store import RedisStateStore
from gauntlet.modules.arena.service import ArenaService
from gauntlet.modules.dungeon.service import DungeonService
from tests.unit.test_arena_service import make_opponent


# ============================================================================
# FIXTURES
# ============================================================================


class FakeRedisClient:
    """Dict-backed stand-in for a `redis.asyncio.Redis` with decoded responses."""

    def __init__(self, fail_with=None):
        self.data = {}
        self.fail_with = fail_with
        self.closed = False

    def _check(self):
        if self.fail_with is not None:
            raise self.fail_with

    async def ping(self):
        self._check()
        return True

    async def get(self, key):
        self._check()
        return self.data.get(key)

    async def set(self, key, value):
        self._check()
        self.data[key] = value
        return True

    async def delete(self, key):
        self._check()
        return 1 if self.data.pop(key, None) is not None else 0

    async def mget(self, keys):
        self._check()
        return [self.data.get(key) for key in keys]

    async def scan_iter(self, match=None):
        for key in list(self.data):
            if match is None or fnmatch.fnmatchcase(key, match):
                yield key

    async def aclose(self):
        self.closed = True


@pytest_asyncio.fixture
async def database(tmp_path):
    service = DatabaseService(f"sqlite+aiosqlite:///{tmp_path / 'gauntlet.db'}")
    await service.initialize()
    await service.create_schema()
    yield service
    await service.shutdown()


@pytest.fixture
def redis_client():
    return FakeRedisClient()


@pytest.fixture
def redis_service(redis_client):
    return RedisService(client=redis_client)


# ============================================================================
# DATABASE STORE
# ============================================================================


@pytest.mark.integration
@pytest.mark.database
@pytest.mark.asyncio
class TestDatabaseStateStore:
    """Test JSON documents persisted through SQLAlchemy."""

    async def test_set_and_get(self, database):
        store = DatabaseStateStore(database, "arena_state")

        await store.set("p1", {"player_id": "p1", "rating": 1000, "history": []})

        assert await store.get("p1") == {"player_id": "p1", "rating": 1000, "history": []}
        assert await store.get("p2") is None

    async def test_overwrite(self, database):
        store = DatabaseStateStore(database, "arena_state")
        await store.set("p1", {"rating": 1000})

        await store.set("p1", {"rating": 1027})

        assert await store.get("p1") == {"rating": 1027}

    async def test_namespaces_are_isolated(self, database):
        arena = DatabaseStateStore(database, "arena_state")
        dungeon = DatabaseStateStore(database, "dungeon_state")

        await arena.set("p1", {"kind": "arena"})
        await dungeon.set("p1", {"kind": "dungeon"})

        assert (await arena.get("p1"))["kind"] == "arena"
        assert await dungeon.list_values() == [{"kind": "dungeon"}]

    async def test_list_values_ordered_by_key(self, database):
        store = DatabaseStateStore(database, "arena_state")
        for key in ("c", "a", "b"):
            await store.set(key, {"key": key})

        assert [doc["key"] for doc in await store.list_values()] == ["a", "b", "c"]

    async def test_delete(self, database):
        store = DatabaseStateStore(database, "combat_logs")
        await store.set("p1", {"sessions": []})

        assert await store.delete("p1") is True
        assert await store.delete("p1") is False
        assert await store.get("p1") is None

    async def test_stored_document_is_detached(self, database):
        store = DatabaseStateStore(database, "arena_state")
        document = {"history": [1]}
        await store.set("p1", document)

        document["history"].append(2)

        assert await store.get("p1") == {"history": [1]}

    async def test_health_check(self, database):
        assert await database.health_check() is True
        assert database.get_status()["url_scheme"] == "sqlite+aiosqlite"

    async def test_requires_initialize(self, tmp_path):
        service = DatabaseService(f"sqlite+aiosqlite:///{tmp_path / 'idle.db'}")

        with pytest.raises(DatabaseNotInitializedError):
            async with service.get_session():
                pass

    async def test_dungeon_run_persists(
        self, database, progression, config_manager, event_bus, test_logger, clock, trial_catalog
    ):
        store = DatabaseStateStore(database, "dungeon_state")
        service = DungeonService(
            store,
            progression,
            config_manager,
            event_bus,
            test_logger,
            catalog=trial_catalog,
            clock=clock,
        )
        progression.make_champion("p1")

        await service.enter_dungeon("p1", "trial-halls")
        for floor_number in (1, 2, 3):
            await service.resolve_floor("p1", "trial-halls", floor_number)

        reloaded = DungeonService(
            store,
            progression,
            config_manager,
            event_bus,
            test_logger,
            catalog=trial_catalog,
            clock=clock,
        )
        state = await reloaded.get_player_state("p1")
        progress = state["dungeons"]["trial-halls"]
        assert progress["times_completed"] == 1
        assert progress["active_run"]["status"] == "completed"
        assert progress["active_run"]["floors_cleared"] == [1, 2, 3]


# ============================================================================
# REDIS STORE
# ============================================================================


@pytest.mark.integration
@pytest.mark.asyncio
class TestRedisStateStore:
    """Test JSON documents persisted through RedisService."""

    async def test_documents_are_namespaced_json(self, redis_service, redis_client):
        store = RedisStateStore(redis_service, "arena_state")

        await store.set("p1", {"rating": 1000, "name": "Ærin"})

        assert redis_client.data["arena_state:p1"] == '{"rating": 1000, "name": "Ærin"}'
        assert await store.get("p1") == {"rating": 1000, "name": "Ærin"}

    async def test_missing_key(self, redis_service):
        store = RedisStateStore(redis_service, "arena_state")

        assert await store.get("nobody") is None

    async def test_list_values_scans_namespace(self, redis_service):
        arena = RedisStateStore(redis_service, "arena_state")
        dungeon = RedisStateStore(redis_service, "dungeon_state")
        await arena.set("b", {"key": "b"})
        await arena.set("a", {"key": "a"})
        await dungeon.set("a", {"key": "other"})

        assert await arena.list_values() == [{"key": "a"}, {"key": "b"}]

    async def test_delete(self, redis_service):
        store = RedisStateStore(redis_service, "combat_logs")
        await store.set("p1", {"sessions": []})

        assert await store.delete("p1") is True
        assert await store.delete("p1") is False

    async def test_metrics_count_operations(self, redis_service):
        store = RedisStateStore(redis_service, "arena_state")
        await store.set("p1", {})
        await store.get("p1")
        await store.list_values()

        operations = redis_service.get_metrics()["operations"]

        assert operations["set"] == 1
        assert operations["get"] == 1
        assert operations["scan"] == 1
        assert operations["mget"] == 1

    async def test_errors_propagate(self):
        service = RedisService(client=FakeRedisClient(fail_with=redis.ConnectionError("down")))
        store = RedisStateStore(service, "arena_state")

        with pytest.raises(redis.ConnectionError):
            await store.get("p1")

        assert service.get_metrics()["failures"] == 1
        assert await service.health_check() is False

    async def test_requires_initialize(self):
        store = RedisStateStore(RedisService(url="redis://localhost:6379/0"), "arena_state")

        with pytest.raises(RedisNotInitializedError):
            await store.get("p1")

    async def test_shutdown_closes_client(self, redis_service, redis_client):
        await redis_service.shutdown()

        assert redis_client.closed is True
        assert await redis_service.health_check() is False

    async def test_arena_ladder_over_redis(
        self, redis_service, progression, config_manager, event_bus, test_logger, clock
    ):
        store = RedisStateStore(redis_service, "arena_state")
        service = ArenaService(
            store, progression, config_manager, event_bus, test_logger, clock=clock
        )

        await service.challenge("p1", make_opponent())
        await service.challenge("p2", make_opponent(huge=True))

        board = await service.get_leaderboard()
        assert [(entry["player_id"], entry["rating"]) for entry in board] == [
            ("p1", 1027),
            ("p2", 986),
        ]
