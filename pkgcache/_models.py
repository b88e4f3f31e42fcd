from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import (
    Any,
    Dict,
    Mapping,
    Optional,
    TypedDict,
)

from pkgcache._exceptions import MalformedEntryError
from pkgcache._headers import Headers
from pkgcache._utils import format_timestamp, parse_timestamp


class ResponseMetadata(TypedDict, total=False):
    # All the names here should be prefixed with "pkgcache_" to avoid collisions with user data
    pkgcache_from_cache: bool
    """Indicates whether the response was served from cache."""

    pkgcache_revalidated: bool
    """Indicates whether the cached response was confirmed by the origin with a 304."""

    pkgcache_stored: bool
    """Indicates whether the response was written to the store during this call."""

    pkgcache_stale: bool
    """Indicates whether a stale response was served because the network failed."""


@dataclass
class HttpResponse:
    status_code: int
    body: str
    headers: Optional[Dict[str, str]] = None
    """Present only on responses that came from the network."""

    metadata: ResponseMetadata = field(default_factory=lambda: ResponseMetadata(), compare=False)
    """Per-call information about how the response was produced. Never persisted."""

    def header(self, name: str) -> Optional[str]:
        if not self.headers:
            return None
        return Headers(self.headers).get(name)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"statusCode": self.status_code}
        if self.headers is not None:
            data["headers"] = dict(self.headers)
        data["body"] = self.body
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "HttpResponse":
        if not isinstance(data, Mapping):
            raise MalformedEntryError("httpResponse is not a mapping")
        status_code = data.get("statusCode")
        # bool is an int subclass, but never a status code
        if not isinstance(status_code, int) or isinstance(status_code, bool):
            raise MalformedEntryError("httpResponse.statusCode must be an integer")
        body = data.get("body")
        if not isinstance(body, str):
            raise MalformedEntryError("httpResponse.body must be a string")
        headers = data.get("headers")
        if headers is not None:
            if not isinstance(headers, Mapping) or not all(
                isinstance(k, str) and isinstance(v, str) for k, v in headers.items()
            ):
                raise MalformedEntryError("httpResponse.headers must map strings to strings")
            headers = dict(headers)
        return cls(status_code=status_code, body=body, headers=headers)


class CacheEntryDict(TypedDict):
    """Persisted layout of a cache entry, shared with other processes using the same store."""

    etag: Optional[str]
    lastModified: Optional[str]
    httpResponse: Dict[str, Any]
    timestamp: str


@dataclass
class CacheEntry:
    http_response: HttpResponse
    timestamp: str
    etag: Optional[str] = None
    last_modified: Optional[str] = None

    @classmethod
    def from_response(cls, response: HttpResponse, now: datetime) -> "CacheEntry":
        return cls(
            http_response=HttpResponse(
                status_code=response.status_code,
                body=response.body,
                headers=dict(response.headers) if response.headers is not None else None,
            ),
            timestamp=format_timestamp(now),
            etag=response.header("ETag"),
            last_modified=response.header("Last-Modified"),
        )

    @property
    def written_at(self) -> datetime:
        return parse_timestamp(self.timestamp)

    def to_dict(self) -> CacheEntryDict:
        return CacheEntryDict(
            etag=self.etag,
            lastModified=self.last_modified,
            httpResponse=self.http_response.to_dict(),
            timestamp=self.timestamp,
        )

    @classmethod
    def from_dict(cls, data: Any) -> "CacheEntry":
        """
        Validate and load a persisted entry.

        Raises MalformedEntryError when the mapping does not have the expected shape.
        """
        if not isinstance(data, Mapping):
            raise MalformedEntryError(f"Cache entry must be a mapping, got {type(data).__name__}")
        if "httpResponse" not in data:
            raise MalformedEntryError("Cache entry has no httpResponse")

        timestamp = data.get("timestamp")
        if not isinstance(timestamp, str):
            raise MalformedEntryError("Cache entry timestamp must be a string")
        try:
            parse_timestamp(timestamp)
        except ValueError as exc:
            raise MalformedEntryError(f"Invalid cache entry timestamp: {timestamp!r}") from exc

        etag = data.get("etag")
        last_modified = data.get("lastModified")
        for name, value in (("etag", etag), ("lastModified", last_modified)):
            if value is not None and not isinstance(value, str):
                raise MalformedEntryError(f"Cache entry {name} must be a string")

        return cls(
            http_response=HttpResponse.from_dict(data["httpResponse"]),
            timestamp=timestamp,
            etag=etag,
            last_modified=last_modified,
        )
