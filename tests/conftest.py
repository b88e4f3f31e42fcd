import typing as tp
from datetime import datetime, timezone

import httpx
import pytest

from pkgcache import AsyncBaseStorage, AsyncHttpxTransport, FrozenClock, GlobalConfig


class DictStorage(AsyncBaseStorage):
    """Store backed by a plain dict, recording every write."""

    def __init__(self) -> None:
        self.data: tp.Dict[str, tp.Any] = {}
        self.get_calls: tp.List[tp.Tuple[str, str]] = []
        self.set_calls: tp.List[tp.Tuple[str, str, tp.Any, float]] = []

    async def get(self, namespace: str, key: str) -> tp.Any:
        self.get_calls.append((namespace, key))
        return self.data.get(key)

    async def set(self, namespace: str, key: str, value: tp.Any, ttl_minutes: float) -> None:
        self.set_calls.append((namespace, key, value, ttl_minutes))
        self.data[key] = value


class MockServer:
    """Queue of canned replies for ``httpx.MockTransport``, recording the requests it saw."""

    def __init__(self) -> None:
        self.replies: tp.List[tp.Union[httpx.Response, Exception]] = []
        self.requests: tp.List[httpx.Request] = []

    def reply(self, status_code: int, text: str = "", headers: tp.Optional[tp.Dict[str, str]] = None) -> None:
        self.replies.append(httpx.Response(status_code, text=text, headers=headers))

    def fail(self, error: Exception) -> None:
        self.replies.append(error)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(utc(2024, 6, 15, 0, 0, 0))


@pytest.fixture
def config() -> GlobalConfig:
    return GlobalConfig()


@pytest.fixture
def storage() -> DictStorage:
    return DictStorage()


@pytest.fixture
def server() -> MockServer:
    return MockServer()


@pytest.fixture
def transport(server: MockServer) -> AsyncHttpxTransport:
    return AsyncHttpxTransport(client=httpx.AsyncClient(transport=httpx.MockTransport(server.handler)))
