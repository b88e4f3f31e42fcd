from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Union

from pkgcache._models import CacheEntry, HttpResponse, ResponseMetadata
from pkgcache._policies import is_cacheable
from pkgcache._utils import format_timestamp

logger = logging.getLogger("pkgcache.states")

DEFAULT_TTL_MINUTES = 15
DEFAULT_HARD_TTL_MINUTES = 24 * 60
NOT_MODIFIED = 304


@dataclass
class CacheOptions:
    """
    Configuration of one cache provider.

    Attributes:
    ----------
    namespace : str
        Partition of the underlying store. Two providers with the same namespace
        share entries.

    ttl_minutes : float
        Soft freshness window. While an entry is younger than this, it is served
        without contacting the origin. ``0`` disables the short-circuit so every
        call at least revalidates.

        Default: 15

    check_cache_control : bool
        When True, a response marked ``Cache-Control: private`` is not stored
        unless private caching is allowed globally.

        Default: True

    hard_ttl_minutes : Optional[float]
        Expiry hint passed to the store on every write. This is how long the store
        keeps an entry (and its validators) around, independent of the soft window.

        Default: ``max(ttl_minutes, 1440)``

        Examples:
        --------
        >>> CacheOptions(namespace="npm").store_ttl_minutes
        1440
        >>> CacheOptions(namespace="npm", ttl_minutes=2880).store_ttl_minutes
        2880
    """

    namespace: str
    ttl_minutes: float = DEFAULT_TTL_MINUTES
    check_cache_control: bool = True
    hard_ttl_minutes: Optional[float] = None

    def __post_init__(self) -> None:
        if not self.namespace:
            raise ValueError("A cache namespace is required")
        if self.ttl_minutes < 0:
            raise ValueError("ttl_minutes must not be negative")

    @property
    def store_ttl_minutes(self) -> float:
        if self.hard_ttl_minutes is not None:
            return self.hard_ttl_minutes
        return max(self.ttl_minutes, DEFAULT_HARD_TTL_MINUTES)


@dataclass
class State(ABC):
    options: CacheOptions

    @abstractmethod
    def next(self, *args: Any, **kwargs: Any) -> Union["State", None]:
        raise NotImplementedError("Subclasses must implement this method")


def is_fresh(entry: CacheEntry, now: datetime, ttl_minutes: float) -> bool:
    """
    Whether the entry is still inside the soft freshness window.

    The window is half-open: an entry exactly ``ttl_minutes`` old is no longer fresh.

    Examples:
    --------
    >>> from datetime import timezone
    >>> entry = CacheEntry(
    ...     http_response=HttpResponse(status_code=200, body="cached"),
    ...     timestamp="2024-06-15T00:00:00.000Z",
    ... )
    >>> is_fresh(entry, datetime(2024, 6, 15, 0, 14, 59, 999000, tzinfo=timezone.utc), 15)
    True
    >>> is_fresh(entry, datetime(2024, 6, 15, 0, 15, tzinfo=timezone.utc), 15)
    False
    """
    if ttl_minutes <= 0:
        return False
    return now - entry.written_at < timedelta(minutes=ttl_minutes)


def make_conditional_headers(entry: CacheEntry) -> Dict[str, str]:
    """
    Build the precondition headers that let the origin answer 304 Not Modified.

    Examples:
    --------
    >>> entry = CacheEntry(
    ...     http_response=HttpResponse(status_code=200, body=""),
    ...     timestamp="2024-06-15T00:00:00.000Z",
    ...     etag='"abc"',
    ...     last_modified="Fri, 14 Jun 2024 00:00:00 GMT",
    ... )
    >>> make_conditional_headers(entry)
    {'If-None-Match': '"abc"', 'If-Modified-Since': 'Fri, 14 Jun 2024 00:00:00 GMT'}
    """
    headers: Dict[str, str] = {}
    if entry.etag:
        headers["If-None-Match"] = entry.etag
    if entry.last_modified:
        headers["If-Modified-Since"] = entry.last_modified
    return headers


class IdleClient(State):
    """
    Entry point of the cache state machine.

    Looks at what the store returned for the request key and decides whether the
    network has to be involved at all.

    State Transitions:
    -----------------
    - FromCache: the entry is inside the soft freshness window
    - NeedRevalidation: the entry exists but is outside the window
    - CacheMiss: there is no usable entry
    """

    def next(
        self, entry: Optional[CacheEntry], now: datetime
    ) -> Union["CacheMiss", "FromCache", "NeedRevalidation"]:
        if entry is None:
            return CacheMiss(options=self.options)

        if is_fresh(entry, now, self.options.ttl_minutes):
            return FromCache(entry=entry, options=self.options)

        return NeedRevalidation(
            options=self.options,
            entry=entry,
            request_headers=make_conditional_headers(entry),
        )


@dataclass
class CacheMiss(State):
    """
    There was nothing to reuse, so a full request is sent and its response
    evaluated for storage.

    State Transitions:
    -----------------
    - StoreAndUse: the response may be persisted
    - CouldNotBeStored: the policy refused the response, or it was a 304 with
      nothing to refresh
    """

    request_headers: Dict[str, str] = field(default_factory=dict)

    def next(
        self, response: HttpResponse, now: datetime, cache_private_packages: bool
    ) -> Union["StoreAndUse", "CouldNotBeStored"]:
        if response.status_code == NOT_MODIFIED:
            logger.debug("Received 304 without a stored entry, nothing to refresh")
            return CouldNotBeStored(response=response, options=self.options)

        if not is_cacheable(response.headers, self.options.check_cache_control, cache_private_packages):
            return CouldNotBeStored(response=response, options=self.options)

        return StoreAndUse(
            entry=CacheEntry.from_response(response, now),
            response=response,
            options=self.options,
        )


@dataclass
class NeedRevalidation(State):
    """
    A stored entry exists but is outside the soft window, so the request is sent
    with the entry's validators.

    State Transitions:
    -----------------
    - StoreAndUse: 304 Not Modified (entry refreshed), or a new cacheable representation
    - CouldNotBeStored: the policy refused the response
    - ServeStale: the transport failed (see ``on_error``)
    """

    entry: CacheEntry
    request_headers: Dict[str, str] = field(default_factory=dict)

    def next(
        self, response: HttpResponse, now: datetime, cache_private_packages: bool
    ) -> Union["StoreAndUse", "CouldNotBeStored"]:
        if response.status_code != NOT_MODIFIED:
            logger.debug(f"Revalidation returned {response.status_code}, treating it as a new representation")
            return CacheMiss(options=self.options, request_headers=self.request_headers).next(
                response, now, cache_private_packages
            )

        refreshed = replace(
            self.entry,
            timestamp=format_timestamp(now),
            etag=response.header("ETag") or self.entry.etag,
            last_modified=response.header("Last-Modified") or self.entry.last_modified,
        )
        cached_response = replace(refreshed.http_response, metadata=ResponseMetadata())

        if not is_cacheable(response.headers, self.options.check_cache_control, cache_private_packages):
            return CouldNotBeStored(
                response=cached_response, options=self.options, from_cache=True, after_revalidation=True
            )

        return StoreAndUse(
            entry=refreshed,
            response=cached_response,
            options=self.options,
            from_cache=True,
            after_revalidation=True,
        )

    def on_error(self, error: Exception) -> "ServeStale":
        logger.debug(f"Revalidation failed with {type(error).__name__}, serving the stored response")
        return ServeStale(entry=self.entry, options=self.options)


class FromCache(State):
    def __init__(self, entry: CacheEntry, options: CacheOptions) -> None:
        super().__init__(options)
        self.entry = entry
        self.entry.http_response.metadata.update(
            ResponseMetadata(
                pkgcache_from_cache=True,
                pkgcache_revalidated=False,
                pkgcache_stored=False,
                pkgcache_stale=False,
            )
        )

    def next(self) -> None:
        return None


class StoreAndUse(State):
    """
    The response can be stored and used.

    Attributes:
    ----------
    entry : CacheEntry
        The entry to write to the store.
    response : HttpResponse
        The response handed back to the caller.
    """

    def __init__(
        self,
        entry: CacheEntry,
        response: HttpResponse,
        options: CacheOptions,
        from_cache: bool = False,
        after_revalidation: bool = False,
    ) -> None:
        super().__init__(options)
        self.entry = entry
        self.response = response
        self.response.metadata.update(
            ResponseMetadata(
                pkgcache_from_cache=from_cache,
                pkgcache_revalidated=after_revalidation,
                pkgcache_stored=True,
                pkgcache_stale=False,
            )
        )

    def next(self) -> None:
        return None


class CouldNotBeStored(State):
    def __init__(
        self,
        response: HttpResponse,
        options: CacheOptions,
        from_cache: bool = False,
        after_revalidation: bool = False,
    ) -> None:
        super().__init__(options)
        self.response = response
        self.response.metadata.update(
            ResponseMetadata(
                pkgcache_from_cache=from_cache,
                pkgcache_revalidated=after_revalidation,
                pkgcache_stored=False,
                pkgcache_stale=False,
            )
        )

    def next(self) -> None:
        return None


class ServeStale(State):
    """
    Revalidation failed at the network level. The stored entry is served as-is
    and left untouched in the store.
    """

    def __init__(self, entry: CacheEntry, options: CacheOptions) -> None:
        super().__init__(options)
        self.entry = entry
        self.entry.http_response.metadata.update(
            ResponseMetadata(
                pkgcache_from_cache=True,
                pkgcache_revalidated=False,
                pkgcache_stored=False,
                pkgcache_stale=True,
            )
        )

    def next(self) -> None:
        return None


AnyState = Union[
    IdleClient,
    CacheMiss,
    NeedRevalidation,
    FromCache,
    StoreAndUse,
    CouldNotBeStored,
    ServeStale,
]
