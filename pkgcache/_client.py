from __future__ import annotations

import types
import typing as tp

from pkgcache._models import HttpResponse
from pkgcache._provider import AsyncCacheProvider
from pkgcache._transports import AsyncBaseTransport, AsyncHttpxTransport

__all__ = ("AsyncHttp",)


class AsyncHttp:
    """
    Minimal HTTP requester with a pluggable cache strategy.

    Requests go straight to the transport unless a ``cache_provider`` is given for
    the call, in which case the provider decides whether the network is used.

        >>> async with AsyncHttp() as http:  # doctest: +SKIP
        ...     provider = AsyncCacheProvider(namespace="datasource-npm", transport=http.transport)
        ...     text = await http.get_text("https://registry.npmjs.org/react", cache_provider=provider)
    """

    def __init__(self, transport: tp.Optional[AsyncBaseTransport] = None) -> None:
        self.transport = transport if transport is not None else AsyncHttpxTransport()

    async def get(
        self,
        url: str,
        *,
        headers: tp.Optional[tp.Mapping[str, str]] = None,
        cache_provider: tp.Optional[AsyncCacheProvider] = None,
    ) -> HttpResponse:
        if cache_provider is not None:
            return await cache_provider.fetch(url, headers)
        return await self.transport.request(url, dict(headers or {}))

    async def get_text(
        self,
        url: str,
        *,
        headers: tp.Optional[tp.Mapping[str, str]] = None,
        cache_provider: tp.Optional[AsyncCacheProvider] = None,
    ) -> str:
        response = await self.get(url, headers=headers, cache_provider=cache_provider)
        return response.body

    async def aclose(self) -> None:
        await self.transport.aclose()

    async def __aenter__(self) -> "AsyncHttp":
        return self

    async def __aexit__(
        self,
        exc_type: tp.Optional[tp.Type[BaseException]] = None,
        exc_value: tp.Optional[BaseException] = None,
        traceback: tp.Optional[types.TracebackType] = None,
    ) -> None:
        await self.aclose()
