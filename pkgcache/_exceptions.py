from __future__ import annotations

import typing as tp

if tp.TYPE_CHECKING:  # pragma: no cover
    from pkgcache._models import HttpResponse

__all__ = (
    "PkgCacheError",
    "NetworkError",
    "ServerError",
    "MalformedEntryError",
    "StoreError",
)


class PkgCacheError(Exception): ...


class NetworkError(PkgCacheError):
    """
    The transport could not complete the request.

    Raised for connection failures, timeouts and protocol errors. Transports may
    also raise a subclass for replies they refuse to treat as usable responses.
    """


class ServerError(NetworkError):
    def __init__(self, message: str, response: HttpResponse) -> None:
        super().__init__(message)
        self.response = response


class MalformedEntryError(PkgCacheError): ...


class StoreError(PkgCacheError): ...
