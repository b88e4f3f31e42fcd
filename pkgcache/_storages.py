from __future__ import annotations

import json
import logging
import typing as tp
from datetime import datetime, timedelta
from pathlib import Path

import anyio

try:
    import anysqlite
except ImportError:  # pragma: no cover
    anysqlite = None  # type: ignore

from pkgcache._clock import Clock, SystemClock
from pkgcache._exceptions import MalformedEntryError, StoreError
from pkgcache._utils import ensure_cache_dict

logger = logging.getLogger("pkgcache.storages")

__all__ = (
    "AsyncBaseStorage",
    "AsyncInMemoryStorage",
    "AsyncSqliteStorage",
)

StoredValue = tp.Mapping[str, tp.Any]


class AsyncBaseStorage:
    """
    Namespaced key/value store for cache entries.

    Values are the JSON-compatible persisted layout of a cache entry. ``ttl_minutes``
    passed to ``set`` is an expiry hint for the store itself; once it elapses the
    store may forget the entry.
    """

    async def get(self, namespace: str, key: str) -> tp.Optional[StoredValue]:
        raise NotImplementedError()

    async def set(self, namespace: str, key: str, value: StoredValue, ttl_minutes: float) -> None:
        raise NotImplementedError()

    async def aclose(self) -> None:
        pass


def _dumps(value: StoredValue) -> str:
    try:
        return json.dumps(value)
    except (TypeError, ValueError) as exc:
        raise StoreError(f"Value is not JSON serializable: {exc}") from exc


def _loads(data: str) -> StoredValue:
    try:
        return tp.cast(StoredValue, json.loads(data))
    except ValueError as exc:
        raise MalformedEntryError(f"Stored value is not valid JSON: {exc}") from exc


class AsyncInMemoryStorage(AsyncBaseStorage):
    """
    A simple in-memory storage.

    Values are serialized on write and deserialized on read, so callers never share
    mutable state with the store.

    :param clock: Clock used to expire entries, defaults to the system clock
    :type clock: tp.Optional[Clock], optional
    """

    def __init__(self, clock: tp.Optional[Clock] = None) -> None:
        self._clock = clock or SystemClock()
        self._cache: tp.Dict[tp.Tuple[str, str], tp.Tuple[str, tp.Optional[datetime]]] = {}
        self._lock = anyio.Lock()

    async def get(self, namespace: str, key: str) -> tp.Optional[StoredValue]:
        async with self._lock:
            stored = self._cache.get((namespace, key))
            if stored is None:
                return None

            data, expires_at = stored
            if expires_at is not None and expires_at <= self._clock.now():
                logger.debug(f"Entry {key!r} in namespace {namespace!r} has expired")
                del self._cache[(namespace, key)]
                return None
        return _loads(data)

    async def set(self, namespace: str, key: str, value: StoredValue, ttl_minutes: float) -> None:
        data = _dumps(value)
        expires_at = self._clock.now() + timedelta(minutes=ttl_minutes) if ttl_minutes > 0 else None
        async with self._lock:
            self._cache[(namespace, key)] = (data, expires_at)

    def __len__(self) -> int:
        return len(self._cache)


class AsyncSqliteStorage(AsyncBaseStorage):
    """
    A simple sqlite storage.

    :param connection: A connection for sqlite, defaults to None
    :type connection: tp.Optional[anysqlite.Connection], optional
    :param database_path: Where to create the database when no connection is given,
        defaults to ``pkgcache.db`` inside ``.cache/pkgcache``
    :type database_path: tp.Union[str, Path], optional
    :param clock: Clock used to expire entries, defaults to the system clock
    :type clock: tp.Optional[Clock], optional
    """

    def __init__(
        self,
        connection: tp.Optional[anysqlite.Connection] = None,
        database_path: tp.Union[str, Path] = "pkgcache.db",
        clock: tp.Optional[Clock] = None,
    ) -> None:
        if anysqlite is None:  # pragma: no cover
            raise RuntimeError(
                f"The `{type(self).__name__}` was used, but the required packages were not found. "
                "Check that you have `pkgcache` installed with the `sqlite` extension as shown.\n"
                "```pip install pkgcache[sqlite]```"
            )
        self._connection: tp.Optional[anysqlite.Connection] = connection or None
        self._database_path = database_path if isinstance(database_path, Path) else Path(database_path)
        self._clock = clock or SystemClock()
        self._setup_lock = anyio.Lock()
        self._setup_completed: bool = False
        self._lock = anyio.Lock()

    async def _setup(self) -> anysqlite.Connection:
        async with self._setup_lock:
            if not self._setup_completed:
                if not self._connection:
                    parent = self._database_path.parent if self._database_path.parent != Path(".") else None
                    full_path = ensure_cache_dict(parent) / self._database_path.name
                    self._connection = await anysqlite.connect(str(full_path), check_same_thread=False)
                await self._connection.execute(
                    """
                    CREATE TABLE IF NOT EXISTS entries (
                        namespace TEXT NOT NULL,
                        key TEXT NOT NULL,
                        data TEXT NOT NULL,
                        expires_at REAL,
                        PRIMARY KEY (namespace, key)
                    )
                    """
                )
                await self._connection.execute("CREATE INDEX IF NOT EXISTS idx_entries_expires_at ON entries(expires_at)")
                await self._connection.commit()
                self._setup_completed = True
        assert self._connection
        return self._connection

    async def get(self, namespace: str, key: str) -> tp.Optional[StoredValue]:
        connection = await self._setup()

        async with self._lock:
            cursor = await connection.execute(
                "SELECT data FROM entries WHERE namespace = ? AND key = ? AND (expires_at IS NULL OR expires_at > ?)",
                [namespace, key, self._clock.now().timestamp()],
            )
            row = await cursor.fetchone()
        if row is None:
            return None
        return _loads(row[0])

    async def set(self, namespace: str, key: str, value: StoredValue, ttl_minutes: float) -> None:
        connection = await self._setup()
        data = _dumps(value)
        now = self._clock.now()
        expires_at = (now + timedelta(minutes=ttl_minutes)).timestamp() if ttl_minutes > 0 else None

        async with self._lock:
            await connection.execute(
                "INSERT OR REPLACE INTO entries (namespace, key, data, expires_at) VALUES (?, ?, ?, ?)",
                [namespace, key, data, expires_at],
            )
            await connection.commit()
        await self._remove_expired_caches(now)

    async def aclose(self) -> None:
        if self._connection is not None:
            await self._connection.close()

    async def _remove_expired_caches(self, now: datetime) -> None:
        assert self._connection

        async with self._lock:
            await self._connection.execute(
                "DELETE FROM entries WHERE expires_at IS NOT NULL AND expires_at <= ?", [now.timestamp()]
            )
            await self._connection.commit()
