"""Persistent table state with Redis backend and in-memory fallback."""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import redis.asyncio as redis

from config import config
from core.deck import validate_seed
from core.game.record import GameRecord

logger = logging.getLogger("blackjack.store")


class StoreError(Exception):
    """Storage could not be read or written. Fatal for the current operation."""


class StateStore(ABC):
    """
    Abstract table state store.

    Holds three things: account -> balance, account -> game record, and the
    single global deck seed. Every state-mutating operation runs inside
    `unit_of_work()` from its first read to its commit, so operations from
    all accounts are applied one at a time and the seed is consumed in
    commit order.
    """

    def __init__(self, starting_balance: int, initial_seed: int) -> None:
        self.starting_balance = starting_balance
        self.initial_seed = validate_seed(initial_seed)
        self.lock = asyncio.Lock()

    @asynccontextmanager
    async def unit_of_work(self) -> AsyncIterator[None]:
        """Hold exclusive access to the table state."""
        async with self.lock:
            yield

    @abstractmethod
    async def get_balance(self, account: str) -> int:
        """Get an account's balance, or the starting balance if never written."""
        ...

    @abstractmethod
    async def get_game(self, account: str) -> GameRecord | None:
        """Get an account's game record."""
        ...

    @abstractmethod
    async def get_seed(self) -> int:
        """Get the global deck seed."""
        ...

    @abstractmethod
    async def commit(
        self,
        account: str,
        balance: int,
        game: GameRecord | None,
        seed: int,
        expected_seed: int | None = None,
    ) -> None:
        """
        Write balance, game record and deck seed together, or nothing.

        When `expected_seed` is given the commit is refused with StoreError
        if the stored seed is no longer the one the operation dealt from.
        """
        ...

    @abstractmethod
    async def bootstrap(self) -> None:
        """Initialise the deck seed if the store has none."""
        ...

    @staticmethod
    def _decode_game(account: str, raw: str | bytes) -> GameRecord:
        try:
            return GameRecord.from_dict(json.loads(raw))
        except (ValueError, TypeError) as exc:
            raise StoreError(f"Corrupt game record for {account}: {exc}") from exc

    @staticmethod
    def _decode_balance(account: str, raw: str | bytes) -> int:
        try:
            balance = int(raw)
        except (ValueError, TypeError) as exc:
            raise StoreError(f"Corrupt balance for {account}: {raw!r}") from exc
        if balance < 0:
            raise StoreError(f"Corrupt balance for {account}: {balance}")
        return balance

    @staticmethod
    def _decode_seed(raw: str | bytes) -> int:
        try:
            return validate_seed(int(raw))
        except (ValueError, TypeError) as exc:
            raise StoreError(f"Corrupt deck seed: {raw!r}") from exc


class InMemoryStateStore(StateStore):
    """In-memory state store for local development and tests."""

    def __init__(
        self,
        starting_balance: int | None = None,
        initial_seed: int | None = None,
    ) -> None:
        super().__init__(
            starting_balance if starting_balance is not None else config.game.starting_balance,
            initial_seed if initial_seed is not None else config.game.initial_seed,
        )
        self._balances: dict[str, int] = {}
        # Records are kept serialized so callers never share mutable state
        self._games: dict[str, str] = {}
        self._seed: int | None = None

    async def get_balance(self, account: str) -> int:
        """Get an account's balance."""
        return self._balances.get(account, self.starting_balance)

    async def get_game(self, account: str) -> GameRecord | None:
        """Get an account's game record."""
        raw = self._games.get(account)
        if raw is None:
            return None
        return self._decode_game(account, raw)

    async def get_seed(self) -> int:
        """Get the global deck seed."""
        return self.initial_seed if self._seed is None else self._seed

    async def commit(
        self,
        account: str,
        balance: int,
        game: GameRecord | None,
        seed: int,
        expected_seed: int | None = None,
    ) -> None:
        """Write all three values."""
        encoded = json.dumps(game.to_dict()) if game is not None else None
        validate_seed(seed)
        if expected_seed is not None and await self.get_seed() != expected_seed:
            raise StoreError("Deck seed changed during the operation")

        self._balances[account] = balance
        if encoded is None:
            self._games.pop(account, None)
        else:
            self._games[account] = encoded
        self._seed = seed

    async def bootstrap(self) -> None:
        """Initialise the deck seed."""
        if self._seed is None:
            self._seed = self.initial_seed

    def snapshot(self) -> dict[str, Any]:
        """Plain copy of everything stored."""
        return {
            "balances": dict(self._balances),
            "games": {k: json.loads(v) for k, v in self._games.items()},
            "seed": self._seed,
        }


class RedisStateStore(StateStore):
    """
    Redis-backed state store.

    Several processes may share one Redis. Each unit of work therefore also
    holds a Redis lock on the table, and commits WATCH the seed key so a
    commit from a unit whose lock expired is refused instead of dealing the
    same cards twice.
    """

    def __init__(
        self,
        redis_client: "redis.Redis",
        starting_balance: int | None = None,
        initial_seed: int | None = None,
        prefix: str | None = None,
        lock_timeout: float | None = None,
        lock_wait: float | None = None,
    ) -> None:
        super().__init__(
            starting_balance if starting_balance is not None else config.game.starting_balance,
            initial_seed if initial_seed is not None else config.game.initial_seed,
        )
        self._redis = redis_client
        self._prefix = prefix if prefix is not None else config.redis.key_prefix
        self._lock_timeout = lock_timeout if lock_timeout is not None else config.redis.lock_timeout
        self._lock_wait = lock_wait if lock_wait is not None else config.redis.lock_wait

    def _balance_key(self, account: str) -> str:
        return f"{self._prefix}balance:{account}"

    def _game_key(self, account: str) -> str:
        return f"{self._prefix}game:{account}"

    @property
    def _seed_key(self) -> str:
        return f"{self._prefix}deck_seed"

    @property
    def _lock_key(self) -> str:
        return f"{self._prefix}table_lock"

    @asynccontextmanager
    async def unit_of_work(self) -> AsyncIterator[None]:
        """Hold the process-local lock and the Redis table lock."""
        async with self.lock:
            table_lock = self._redis.lock(
                self._lock_key,
                timeout=self._lock_timeout,
                blocking_timeout=self._lock_wait,
            )
            try:
                acquired = await table_lock.acquire()
            except redis.RedisError as exc:
                raise StoreError("Failed to acquire table lock") from exc
            if not acquired:
                raise StoreError("Timed out waiting for table lock")

            try:
                yield
            finally:
                try:
                    await table_lock.release()
                except redis.RedisError as exc:
                    # The lock expires on its own; the commit already checked the seed
                    logger.warning("Could not release table lock: %s", exc)

    async def get_balance(self, account: str) -> int:
        """Get an account's balance."""
        try:
            data = await self._redis.get(self._balance_key(account))
        except redis.RedisError as exc:
            raise StoreError(f"Failed to read balance for {account}") from exc
        if data is None:
            return self.starting_balance
        return self._decode_balance(account, data)

    async def get_game(self, account: str) -> GameRecord | None:
        """Get an account's game record."""
        try:
            data = await self._redis.get(self._game_key(account))
        except redis.RedisError as exc:
            raise StoreError(f"Failed to read game for {account}") from exc
        if data is None:
            return None
        return self._decode_game(account, data)

    async def get_seed(self) -> int:
        """Get the global deck seed."""
        try:
            data = await self._redis.get(self._seed_key)
        except redis.RedisError as exc:
            raise StoreError("Failed to read deck seed") from exc
        if data is None:
            return self.initial_seed
        return self._decode_seed(data)

    async def commit(
        self,
        account: str,
        balance: int,
        game: GameRecord | None,
        seed: int,
        expected_seed: int | None = None,
    ) -> None:
        """Write all three values in one MULTI/EXEC transaction."""
        validate_seed(seed)
        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                if expected_seed is not None:
                    await pipe.watch(self._seed_key)
                    stored = await pipe.get(self._seed_key)
                    current = self.initial_seed if stored is None else self._decode_seed(stored)
                    if current != expected_seed:
                        raise StoreError("Deck seed changed during the operation")
                    pipe.multi()
                pipe.set(self._balance_key(account), balance)
                if game is None:
                    pipe.delete(self._game_key(account))
                else:
                    pipe.set(self._game_key(account), json.dumps(game.to_dict()))
                pipe.set(self._seed_key, seed)
                await pipe.execute()
        except redis.WatchError as exc:
            raise StoreError("Deck seed changed during commit") from exc
        except redis.RedisError as exc:
            raise StoreError(f"Failed to commit state for {account}") from exc

    async def bootstrap(self) -> None:
        """Initialise the deck seed unless another process already did."""
        try:
            await self._redis.set(self._seed_key, self.initial_seed, nx=True)
        except redis.RedisError as exc:
            raise StoreError("Failed to initialise deck seed") from exc


# Global state store instance
_state_store: StateStore | None = None
_state_store_lock: asyncio.Lock | None = None


async def _create_state_store() -> StateStore:
    """Build the configured backend and initialise its seed."""
    store: StateStore | None = None
    if config.store.backend == "redis":
        try:
            redis_client = redis.from_url(config.redis.url)
            await redis_client.ping()
            store = RedisStateStore(redis_client)
            logger.info("Using Redis state store at %s:%s", config.redis.host, config.redis.port)
        except redis.RedisError as exc:
            if not config.store.fallback_to_memory:
                raise StoreError(f"Redis unavailable at {config.redis.host}:{config.redis.port}") from exc
            logger.warning("Redis unavailable (%s); falling back to in-memory store", exc)

    if store is None:
        store = InMemoryStateStore()
        logger.info("Using in-memory state store")

    await store.bootstrap()
    return store


async def get_state_store() -> StateStore:
    """Get or create the state store. Concurrent first calls share one instance."""
    global _state_store, _state_store_lock

    if _state_store is not None:
        return _state_store

    if _state_store_lock is None:
        _state_store_lock = asyncio.Lock()
    async with _state_store_lock:
        if _state_store is None:
            _state_store = await _create_state_store()
    return _state_store


def reset_state_store() -> None:
    """Forget the current store so the next call builds a new one."""
    global _state_store, _state_store_lock
    _state_store = None
    _state_store_lock = None
