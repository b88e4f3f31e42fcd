import httpx
import pytest

from pkgcache import AsyncHttpxTransport, NetworkError, ServerError


def make_transport(handler, **kwargs) -> AsyncHttpxTransport:
    return AsyncHttpxTransport(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)), **kwargs)


@pytest.mark.anyio
async def test_response_is_converted() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["If-None-Match"] == "foobar"
        return httpx.Response(200, text="fetched response", headers={"ETag": "barbaz"})

    transport = make_transport(handler)

    response = await transport.request("https://example.com", {"If-None-Match": "foobar"})

    assert response.status_code == 200
    assert response.body == "fetched response"
    assert response.header("etag") == "barbaz"
    await transport.aclose()


@pytest.mark.anyio
async def test_not_modified_and_client_errors_are_responses() -> None:
    statuses = [304, 404]

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(statuses.pop(0))

    transport = make_transport(handler)

    assert (await transport.request("https://example.com", {})).status_code == 304
    assert (await transport.request("https://example.com", {})).status_code == 404


@pytest.mark.anyio
async def test_connection_errors_become_network_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused")

    transport = make_transport(handler)

    with pytest.raises(NetworkError, match="Connection refused"):
        await transport.request("https://example.com", {})


@pytest.mark.anyio
async def test_server_errors_are_raised() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="bad gateway")

    transport = make_transport(handler)

    with pytest.raises(ServerError) as exc_info:
        await transport.request("https://example.com", {})

    assert exc_info.value.response.status_code == 502
    assert exc_info.value.response.body == "bad gateway"


@pytest.mark.anyio
async def test_server_errors_can_be_returned() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500)

    transport = make_transport(handler, raise_on_server_error=False)

    response = await transport.request("https://example.com", {})

    assert response.status_code == 500


@pytest.mark.anyio
async def test_redirect_loops_become_network_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(302, headers={"Location": str(request.url)})

    transport = AsyncHttpxTransport(
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)
    )

    with pytest.raises(NetworkError) as exc_info:
        await transport.request("https://example.com", {})

    assert isinstance(exc_info.value.__cause__, httpx.TooManyRedirects)


@pytest.mark.anyio
async def test_undecodable_bodies_become_network_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"not gzip", headers={"Content-Encoding": "gzip"})

    transport = make_transport(handler)

    with pytest.raises(NetworkError) as exc_info:
        await transport.request("https://example.com", {})

    assert isinstance(exc_info.value.__cause__, httpx.DecodingError)
