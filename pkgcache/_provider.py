from __future__ import annotations

import logging
import typing as tp

from typing_extensions import assert_never

from pkgcache._clock import Clock, SystemClock
from pkgcache._config import GlobalConfig, global_config
from pkgcache._exceptions import MalformedEntryError, NetworkError
from pkgcache._headers import Headers
from pkgcache._models import CacheEntry, HttpResponse
from pkgcache._states import (
    DEFAULT_TTL_MINUTES,
    AnyState,
    CacheMiss,
    CacheOptions,
    CouldNotBeStored,
    FromCache,
    IdleClient,
    NeedRevalidation,
    ServeStale,
    StoreAndUse,
)
from pkgcache._storages import AsyncBaseStorage, AsyncInMemoryStorage
from pkgcache._transports import AsyncBaseTransport, AsyncHttpxTransport
from pkgcache._utils import normalized_url

logger = logging.getLogger("pkgcache.provider")

__all__ = ("AsyncCacheProvider",)


class AsyncCacheProvider:
    """
    Conditional response cache for slowly-changing remote resources.

    Entries younger than ``ttl_minutes`` are served without touching the network.
    Older entries are revalidated with ``If-None-Match``/``If-Modified-Since``, and
    served as-is when the origin cannot be reached.

    Args:
        namespace: Partition of the store used by this provider.
        ttl_minutes: Soft freshness window. ``0`` revalidates on every call.
        check_cache_control: When True, ``Cache-Control: private`` responses are not stored
            unless ``config.cache_private_packages`` is set.
        storage: Store for cache entries. Defaults to AsyncInMemoryStorage.
        transport: Sends requests. Defaults to AsyncHttpxTransport.
        clock: Source of the current time. Defaults to SystemClock.
        config: Process-wide settings. Defaults to the shared ``global_config``.
        hard_ttl_minutes: Expiry hint passed to the store on every write.
    """

    def __init__(
        self,
        namespace: str,
        ttl_minutes: float = DEFAULT_TTL_MINUTES,
        check_cache_control: bool = True,
        *,
        storage: tp.Optional[AsyncBaseStorage] = None,
        transport: tp.Optional[AsyncBaseTransport] = None,
        clock: tp.Optional[Clock] = None,
        config: tp.Optional[GlobalConfig] = None,
        hard_ttl_minutes: tp.Optional[float] = None,
    ) -> None:
        self.options = CacheOptions(
            namespace=namespace,
            ttl_minutes=ttl_minutes,
            check_cache_control=check_cache_control,
            hard_ttl_minutes=hard_ttl_minutes,
        )
        self.clock = clock if clock is not None else SystemClock()
        self.storage = storage if storage is not None else AsyncInMemoryStorage(clock=self.clock)
        self.transport = transport if transport is not None else AsyncHttpxTransport()
        self.config = config if config is not None else global_config

    async def fetch(self, url: str, headers: tp.Optional[tp.Mapping[str, str]] = None) -> HttpResponse:
        key = normalized_url(url)
        state: AnyState = IdleClient(options=self.options)

        while state:
            logger.debug(f"Handling state: {state.__class__.__name__}")
            if isinstance(state, IdleClient):
                entry = await self._load_entry(key)
                state = state.next(entry, self.clock.now())
            elif isinstance(state, (CacheMiss, NeedRevalidation)):
                state = await self._send(state, url, headers)
            elif isinstance(state, StoreAndUse):
                await self._store_entry(key, state.entry)
                return state.response
            elif isinstance(state, CouldNotBeStored):
                return state.response
            elif isinstance(state, (FromCache, ServeStale)):
                return state.entry.http_response
            else:
                assert_never(state)

        raise RuntimeError("Unreachable")

    async def _send(
        self,
        state: tp.Union[CacheMiss, NeedRevalidation],
        url: str,
        headers: tp.Optional[tp.Mapping[str, str]],
    ) -> AnyState:
        validators = Headers(state.request_headers)
        request_headers = {key: value for key, value in (headers or {}).items() if key not in validators}
        request_headers.update(state.request_headers)
        try:
            response = await self.transport.request(url, request_headers)
        except NetworkError as exc:
            if isinstance(state, NeedRevalidation):
                logger.info(f"Serving stale response for {url}: {exc}")
                return state.on_error(exc)
            raise
        return state.next(response, self.clock.now(), self.config.cache_private_packages)

    async def _load_entry(self, key: str) -> tp.Optional[CacheEntry]:
        try:
            stored = await self.storage.get(self.options.namespace, key)
        except MalformedEntryError as exc:
            logger.debug(f"Ignoring unreadable cache entry for {key}: {exc}")
            return None
        except Exception as exc:
            logger.warning(f"Cache read failed for {key}, continuing without cache: {exc!r}")
            return None

        if stored is None:
            return None

        try:
            return CacheEntry.from_dict(stored)
        except MalformedEntryError as exc:
            logger.debug(f"Ignoring malformed cache entry for {key}: {exc}")
            return None

    async def _store_entry(self, key: str, entry: CacheEntry) -> None:
        logger.debug(f"Storing response for {key} in namespace {self.options.namespace!r}")
        try:
            await self.storage.set(
                self.options.namespace,
                key,
                entry.to_dict(),
                self.options.store_ttl_minutes,
            )
        except Exception as exc:
            logger.warning(f"Cache write failed for {key}: {exc!r}")

    async def aclose(self) -> None:
        await self.transport.aclose()
        await self.storage.aclose()
