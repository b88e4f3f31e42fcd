from pkgcache._client import AsyncHttp as AsyncHttp
from pkgcache._clock import Clock as Clock, FrozenClock as FrozenClock, SystemClock as SystemClock
from pkgcache._config import GlobalConfig as GlobalConfig, global_config as global_config
from pkgcache._exceptions import (
    MalformedEntryError as MalformedEntryError,
    NetworkError as NetworkError,
    PkgCacheError as PkgCacheError,
    ServerError as ServerError,
    StoreError as StoreError,
)
from pkgcache._headers import Headers as Headers
from pkgcache._models import (
    CacheEntry as CacheEntry,
    CacheEntryDict as CacheEntryDict,
    HttpResponse as HttpResponse,
    ResponseMetadata as ResponseMetadata,
)
from pkgcache._policies import is_cacheable as is_cacheable
from pkgcache._provider import AsyncCacheProvider as AsyncCacheProvider
from pkgcache._states import (
    AnyState as AnyState,
    CacheMiss as CacheMiss,
    CacheOptions as CacheOptions,
    CouldNotBeStored as CouldNotBeStored,
    FromCache as FromCache,
    IdleClient as IdleClient,
    NeedRevalidation as NeedRevalidation,
    ServeStale as ServeStale,
    State as State,
    StoreAndUse as StoreAndUse,
)
from pkgcache._storages import (
    AsyncBaseStorage as AsyncBaseStorage,
    AsyncInMemoryStorage as AsyncInMemoryStorage,
    AsyncSqliteStorage as AsyncSqliteStorage,
)
from pkgcache._transports import (
    AsyncBaseTransport as AsyncBaseTransport,
    AsyncHttpxTransport as AsyncHttpxTransport,
)

__all__ = (
    ## Provider
    "AsyncCacheProvider",
    "AsyncHttp",
    "CacheOptions",
    ## States
    "AnyState",
    "State",
    "IdleClient",
    "CacheMiss",
    "FromCache",
    "NeedRevalidation",
    "StoreAndUse",
    "CouldNotBeStored",
    "ServeStale",
    ## Models
    "CacheEntry",
    "CacheEntryDict",
    "HttpResponse",
    "ResponseMetadata",
    "Headers",
    ## Policies
    "is_cacheable",
    ## Storages
    "AsyncBaseStorage",
    "AsyncInMemoryStorage",
    "AsyncSqliteStorage",
    ## Transports
    "AsyncBaseTransport",
    "AsyncHttpxTransport",
    ## Configuration
    "Clock",
    "SystemClock",
    "FrozenClock",
    "GlobalConfig",
    "global_config",
    ## Exceptions
    "PkgCacheError",
    "NetworkError",
    "ServerError",
    "MalformedEntryError",
    "StoreError",
)
