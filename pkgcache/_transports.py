from __future__ import annotations

import logging
import typing as tp

import httpx

from pkgcache._exceptions import NetworkError, ServerError
from pkgcache._models import HttpResponse
from pkgcache._utils import filter_mapping

logger = logging.getLogger("pkgcache.transports")

__all__ = ("AsyncBaseTransport", "AsyncHttpxTransport")


class AsyncBaseTransport:
    """
    Sends a single GET request.

    Implementations return every HTTP reply as a response, including 304 and error
    statuses, and raise NetworkError only when no usable reply was received.
    """

    async def request(self, url: str, headers: tp.Mapping[str, str]) -> HttpResponse:
        raise NotImplementedError()

    async def aclose(self) -> None:
        pass


class AsyncHttpxTransport(AsyncBaseTransport):
    """
    Transport backed by ``httpx.AsyncClient``.

    :param client: Client used to send requests, defaults to a new ``httpx.AsyncClient``
    :type client: tp.Optional[httpx.AsyncClient], optional
    :param raise_on_server_error: Treat 5xx replies as network failures, so that a
        failing origin does not replace usable cached content, defaults to True
    :type raise_on_server_error: bool, optional
    """

    def __init__(
        self,
        client: tp.Optional[httpx.AsyncClient] = None,
        raise_on_server_error: bool = True,
    ) -> None:
        self._client = client if client is not None else httpx.AsyncClient(follow_redirects=True)
        self._raise_on_server_error = raise_on_server_error

    async def request(self, url: str, headers: tp.Mapping[str, str]) -> HttpResponse:
        try:
            httpx_response = await self._client.get(url, headers=dict(headers))
        except httpx.RequestError as exc:
            logger.debug(f"Request to {url} failed: {exc!r}")
            raise NetworkError(str(exc) or type(exc).__name__) from exc

        response = HttpResponse(
            status_code=httpx_response.status_code,
            body=httpx_response.text,
            headers=filter_mapping(
                {key: value for key, value in httpx_response.headers.items()},
                ["Transfer-Encoding", "Content-Encoding"],
            ),
        )

        if self._raise_on_server_error and httpx_response.is_server_error:
            raise ServerError(f"Server error '{httpx_response.status_code}' for url '{url}'", response)
        return response

    async def aclose(self) -> None:
        await self._client.aclose()
