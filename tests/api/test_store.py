"""Tests for the table state stores."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
import redis.asyncio as redis

from api.operations import Operation, execute
from api.store import (
    InMemoryStateStore,
    RedisStateStore,
    StoreError,
    get_state_store,
    reset_state_store,
)
from config import AppConfig, StoreConfig
from core.deck import Sequencer
from core.game import GameRecord


def _seed_after(draws: int) -> int:
    sequencer = Sequencer(0)
    for _ in range(draws):
        sequencer.draw_card()
    return sequencer.seed


def _encode(value) -> bytes:
    return value if isinstance(value, bytes) else str(value).encode()


class FakeRedis:
    """Dict-backed stand-in for a Redis server whose every call yields."""

    def __init__(self, reachable: bool = True) -> None:
        self.data: dict[str, bytes] = {}
        self.reachable = reachable
        self._locks: dict[str, asyncio.Lock] = {}

    async def ping(self):
        await asyncio.sleep(0)
        if not self.reachable:
            raise redis.ConnectionError("connection refused")
        return True

    async def get(self, key):
        await asyncio.sleep(0)
        return self.data.get(key)

    async def set(self, key, value, nx=False):
        await asyncio.sleep(0)
        if nx and key in self.data:
            return None
        self.data[key] = _encode(value)
        return True

    def pipeline(self, transaction=True):
        return FakePipeline(self)

    def lock(self, name, timeout=None, blocking_timeout=None):
        return FakeLock(self._locks.setdefault(name, asyncio.Lock()))


class FakePipeline:
    def __init__(self, server: FakeRedis) -> None:
        self.server = server
        self.queued: list[tuple[str, bytes | None]] = []
        self.watched: tuple[str, bytes | None] | None = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.queued.clear()
        self.watched = None

    async def watch(self, key):
        self.watched = (key, self.server.data.get(key))

    async def get(self, key):
        return self.server.data.get(key)

    def multi(self):
        pass

    def set(self, key, value):
        self.queued.append((key, _encode(value)))

    def delete(self, key):
        self.queued.append((key, None))

    async def execute(self):
        await asyncio.sleep(0)
        if self.watched is not None:
            key, seen = self.watched
            if self.server.data.get(key) != seen:
                raise redis.WatchError("watched key changed")
        for key, value in self.queued:
            if value is None:
                self.server.data.pop(key, None)
            else:
                self.server.data[key] = value
        return [True] * len(self.queued)


class FakeLock:
    def __init__(self, lock: asyncio.Lock) -> None:
        self._lock = lock

    async def acquire(self):
        await self._lock.acquire()
        return True

    async def release(self):
        self._lock.release()


@pytest.fixture
def record():
    return GameRecord(
        player_hand=[9, 18],
        dealer_hand=[34],
        dealer_hidden_card=46,
        bet_amount=100,
    )


class TestInMemoryStateStore:
    """Tests for InMemoryStateStore."""

    @pytest_asyncio.fixture
    async def store(self):
        """Create a fresh store."""
        return InMemoryStateStore(starting_balance=1000, initial_seed=0)

    @pytest.mark.asyncio
    async def test_absent_balance_reads_starting_balance(self, store):
        """Test the implicit starting balance."""
        assert await store.get_balance("nobody") == 1000

    @pytest.mark.asyncio
    async def test_absent_game_is_none(self, store):
        """Test that a new account has no game."""
        assert await store.get_game("nobody") is None

    @pytest.mark.asyncio
    async def test_seed_before_bootstrap(self, store):
        """Test that the configured seed is used before anything is written."""
        assert await store.get_seed() == 0
        await store.bootstrap()
        assert store.snapshot()["seed"] == 0

    @pytest.mark.asyncio
    async def test_commit_writes_everything(self, store, record):
        """Test that balance, game and seed land together."""
        await store.commit("alice", 900, record, 12345)

        assert await store.get_balance("alice") == 900
        assert await store.get_game("alice") == record
        assert await store.get_seed() == 12345

    @pytest.mark.asyncio
    async def test_returned_record_is_a_copy(self, store, record):
        """Test that mutating a loaded record does not touch the store."""
        await store.commit("alice", 900, record, 1)

        loaded = await store.get_game("alice")
        loaded.player_hand.append(0)
        record.player_hand.append(1)

        assert (await store.get_game("alice")).player_hand == [9, 18]

    @pytest.mark.asyncio
    async def test_bootstrap_keeps_existing_seed(self, store, record):
        """Test that bootstrap never resets a seed in use."""
        await store.commit("alice", 900, record, 777)
        await store.bootstrap()
        assert await store.get_seed() == 777

    @pytest.mark.asyncio
    async def test_corrupt_record_raises(self, store):
        """Test that an undecodable record is a store failure."""
        store._games["alice"] = "{not json"
        with pytest.raises(StoreError):
            await store.get_game("alice")

    @pytest.mark.asyncio
    async def test_invalid_seed_commits_nothing(self, store, record):
        """Test that a bad seed aborts the whole commit."""
        with pytest.raises(ValueError):
            await store.commit("alice", 900, record, 2**64)
        assert store.snapshot() == {"balances": {}, "games": {}, "seed": None}

    @pytest.mark.asyncio
    async def test_commit_refused_when_seed_moved(self, store, record):
        """Test that a commit dealt from a stale seed writes nothing."""
        await store.commit("bob", 900, record, 555)

        with pytest.raises(StoreError):
            await store.commit("alice", 900, record, 999, expected_seed=0)

        assert await store.get_seed() == 555
        assert "alice" not in store.snapshot()["balances"]


class TestRedisStateStore:
    """Tests for RedisStateStore against a mocked client."""

    @pytest.fixture
    def client(self):
        return MagicMock()

    @pytest.fixture
    def store(self, client):
        return RedisStateStore(client, starting_balance=1000, initial_seed=0, prefix="t:")

    @pytest.mark.asyncio
    async def test_balance_parsing(self, client, store):
        """Test reading stored and absent balances."""
        client.get = AsyncMock(return_value=b"750")
        assert await store.get_balance("alice") == 750
        client.get.assert_awaited_with("t:balance:alice")

        client.get = AsyncMock(return_value=None)
        assert await store.get_balance("alice") == 1000

    @pytest.mark.asyncio
    async def test_game_parsing(self, client, store, record):
        """Test reading a stored record."""
        client.get = AsyncMock(return_value=json.dumps(record.to_dict()).encode())
        assert await store.get_game("alice") == record

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", [b"lots", b"-5", b""])
    async def test_corrupt_balance_raises_store_error(self, client, store, raw):
        """Test that an unparseable balance is a store failure."""
        client.get = AsyncMock(return_value=raw)
        with pytest.raises(StoreError):
            await store.get_balance("alice")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", [b"seed", b"-1", str(2**64).encode()])
    async def test_corrupt_seed_raises_store_error(self, client, store, raw):
        """Test that an unparseable or out-of-range seed is a store failure."""
        client.get = AsyncMock(return_value=raw)
        with pytest.raises(StoreError):
            await store.get_seed()

    @pytest.mark.asyncio
    async def test_read_failure_raises_store_error(self, client, store):
        """Test that connection errors become StoreError."""
        client.get = AsyncMock(side_effect=redis.ConnectionError("down"))
        with pytest.raises(StoreError):
            await store.get_balance("alice")
        with pytest.raises(StoreError):
            await store.get_seed()

    @pytest.mark.asyncio
    async def test_commit_uses_one_transaction(self, client, store, record):
        """Test that all three writes go through one MULTI/EXEC pipeline."""
        pipe = MagicMock()
        pipe.execute = AsyncMock(return_value=[True, True, True])
        client.pipeline.return_value.__aenter__.return_value = pipe

        await store.commit("alice", 900, record, 42)

        client.pipeline.assert_called_once_with(transaction=True)
        keys = [c.args[0] for c in pipe.set.call_args_list]
        assert keys == ["t:balance:alice", "t:game:alice", "t:deck_seed"]
        pipe.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_commit_watches_seed(self, client, store, record):
        """Test that a seed-checked commit WATCHes the seed before MULTI."""
        pipe = MagicMock()
        pipe.watch = AsyncMock()
        pipe.get = AsyncMock(return_value=b"42")
        pipe.execute = AsyncMock(return_value=[True, True, True])
        client.pipeline.return_value.__aenter__.return_value = pipe

        await store.commit("alice", 900, record, 99, expected_seed=42)

        pipe.watch.assert_awaited_once_with("t:deck_seed")
        pipe.multi.assert_called_once()
        pipe.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_commit_refused_when_seed_moved(self, client, store, record):
        """Test that a stale seed aborts before anything is queued."""
        pipe = MagicMock()
        pipe.watch = AsyncMock()
        pipe.get = AsyncMock(return_value=b"7")
        pipe.execute = AsyncMock()
        client.pipeline.return_value.__aenter__.return_value = pipe

        with pytest.raises(StoreError):
            await store.commit("alice", 900, record, 99, expected_seed=42)

        pipe.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_commit_watch_error_raises_store_error(self, client, store, record):
        """Test that a seed write racing the EXEC aborts the commit."""
        pipe = MagicMock()
        pipe.watch = AsyncMock()
        pipe.get = AsyncMock(return_value=b"42")
        pipe.execute = AsyncMock(side_effect=redis.WatchError("changed"))
        client.pipeline.return_value.__aenter__.return_value = pipe

        with pytest.raises(StoreError):
            await store.commit("alice", 900, record, 99, expected_seed=42)

    @pytest.mark.asyncio
    async def test_commit_failure_raises_store_error(self, client, store, record):
        """Test that a failed EXEC surfaces as StoreError."""
        pipe = MagicMock()
        pipe.execute = AsyncMock(side_effect=redis.ConnectionError("down"))
        client.pipeline.return_value.__aenter__.return_value = pipe

        with pytest.raises(StoreError):
            await store.commit("alice", 900, record, 42)

    @pytest.mark.asyncio
    async def test_bootstrap_sets_seed_only_if_absent(self, client, store):
        """Test NX semantics of bootstrap."""
        client.set = AsyncMock(return_value=True)
        await store.bootstrap()
        client.set.assert_awaited_once_with("t:deck_seed", 0, nx=True)

    @pytest.mark.asyncio
    async def test_unit_of_work_lock_timeout(self, client, store):
        """Test that failing to get the table lock aborts the operation."""
        table_lock = MagicMock()
        table_lock.acquire = AsyncMock(return_value=False)
        client.lock.return_value = table_lock

        with pytest.raises(StoreError):
            async with store.unit_of_work():
                pass

        assert client.lock.call_args.args[0] == "t:table_lock"
        assert not store.lock.locked()

    @pytest.mark.asyncio
    async def test_stores_sharing_redis_deal_distinct_cards(self):
        """Test that two processes on one Redis never deal from the same seed."""
        server = FakeRedis()
        first = RedisStateStore(server, starting_balance=1000, initial_seed=0, prefix="t:")
        second = RedisStateStore(server, starting_balance=1000, initial_seed=0, prefix="t:")
        await first.bootstrap()

        alice, bob = await asyncio.gather(
            execute(first, "alice", Operation.START_GAME, 100),
            execute(second, "bob", Operation.START_GAME, 100),
        )

        hands = sorted([tuple(alice.game.player_hand), tuple(bob.game.player_hand)])
        assert hands == [(0, 21), (40, 41)]
        assert await first.get_seed() == _seed_after(8)


class TestGetStateStore:
    """Tests for backend selection and the shared store instance."""

    @pytest.fixture(autouse=True)
    def fresh_store(self):
        reset_state_store()
        yield
        reset_state_store()

    @pytest.fixture
    def use_backend(self, monkeypatch):
        def _use(backend: str, fallback: bool = True) -> None:
            settings = AppConfig(store=StoreConfig(backend=backend, fallback_to_memory=fallback))
            monkeypatch.setattr("api.store.config", settings)

        return _use

    @pytest.fixture
    def servers(self, monkeypatch):
        """Route redis.from_url to fake servers, recording each connection."""
        created: list[FakeRedis] = []

        def _connect(reachable: bool = True) -> list[FakeRedis]:
            def from_url(url):
                server = FakeRedis(reachable=reachable)
                created.append(server)
                return server

            monkeypatch.setattr(redis, "from_url", from_url)
            return created

        return _connect

    @pytest.mark.asyncio
    async def test_memory_backend(self, use_backend):
        """Test the default in-memory backend."""
        use_backend("memory")
        store = await get_state_store()
        assert isinstance(store, InMemoryStateStore)
        assert store.snapshot()["seed"] == 0

    @pytest.mark.asyncio
    async def test_redis_backend(self, use_backend, servers):
        """Test that a reachable Redis is used and its seed bootstrapped."""
        use_backend("redis")
        created = servers()

        store = await get_state_store()

        assert isinstance(store, RedisStateStore)
        assert created[0].data == {"blackjack:deck_seed": b"0"}

    @pytest.mark.asyncio
    async def test_unreachable_redis_falls_back(self, use_backend, servers):
        """Test the in-memory fallback when ping fails."""
        use_backend("redis", fallback=True)
        servers(reachable=False)

        assert isinstance(await get_state_store(), InMemoryStateStore)

    @pytest.mark.asyncio
    async def test_unreachable_redis_without_fallback(self, use_backend, servers):
        """Test that a required Redis that cannot be reached is a store failure."""
        use_backend("redis", fallback=False)
        servers(reachable=False)

        with pytest.raises(StoreError):
            await get_state_store()

    @pytest.mark.asyncio
    async def test_repeat_calls_share_one_store(self, use_backend):
        """Test that the store is built once."""
        use_backend("memory")
        assert await get_state_store() is await get_state_store()

    @pytest.mark.asyncio
    async def test_concurrent_first_calls_share_one_store(self, use_backend, servers):
        """Test that racing first requests get the same store and lock."""
        use_backend("redis")
        created = servers()

        first, second = await asyncio.gather(get_state_store(), get_state_store())

        assert first is second
        assert len(created) == 1

        alice, bob = await asyncio.gather(
            execute(first, "alice", Operation.START_GAME, 100),
            execute(second, "bob", Operation.START_GAME, 100),
        )
        hands = sorted([tuple(alice.game.player_hand), tuple(bob.game.player_hand)])
        assert hands == [(0, 21), (40, 41)]
        assert await first.get_seed() == _seed_after(8)
