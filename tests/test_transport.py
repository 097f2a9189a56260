"""Tests for the httpx transport."""

import json

import httpx
import pytest

from offline_sync.exceptions import TransportError
from offline_sync.sync import HttpxTransport


def _transport(handler, base_url: str = "http://api.test") -> HttpxTransport:
    client = httpx.AsyncClient(
        base_url=base_url,
        transport=httpx.MockTransport(handler),
    )
    return HttpxTransport(base_url=base_url, client=client)


class TestHttpxTransport:
    """Delivery outcomes map onto SendResult."""

    @pytest.mark.asyncio
    async def test_sends_json_body_with_method(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.method, str(request.url), json.loads(request.content)))
            return httpx.Response(201, json={"id": 101})

        async with _transport(handler) as transport:
            result = await transport.send("POST", "/posts", {"title": "x", "userId": 1})

        assert result.success is True
        assert result.status_code == 201
        assert seen == [("POST", "http://api.test/posts", {"title": "x", "userId": 1})]

    @pytest.mark.asyncio
    async def test_absolute_url_bypasses_base(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200)

        async with _transport(handler) as transport:
            await transport.send("PUT", "https://other.test/posts/1", {"title": "y"})

        assert seen == ["https://other.test/posts/1"]

    @pytest.mark.asyncio
    async def test_client_error_is_failure(self):
        async with _transport(lambda request: httpx.Response(422, text="bad")) as transport:
            result = await transport.send("POST", "/posts", {})

        assert result.success is False
        assert result.status_code == 422
        assert result.error == "Client error: 422 - bad"

    @pytest.mark.asyncio
    async def test_server_error_is_failure(self):
        async with _transport(lambda request: httpx.Response(500)) as transport:
            result = await transport.send("POST", "/posts", {})

        assert result.success is False
        assert result.error == "Server error: 500"

    @pytest.mark.asyncio
    async def test_connection_error_is_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _transport(handler) as transport:
            result = await transport.send("POST", "/posts", {})

        assert result.success is False
        assert result.status_code is None
        assert result.error.startswith("Connection error")

    @pytest.mark.asyncio
    async def test_timeout_is_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        async with _transport(handler) as transport:
            result = await transport.send("POST", "/posts", {})

        assert result.success is False
        assert result.error.startswith("Timeout")


class TestClientOwnership:
    """close() only releases a client the transport created itself."""

    @pytest.mark.asyncio
    async def test_injected_client_left_open(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(201)))
        transport = HttpxTransport(base_url="http://api.test", client=client)

        await transport.close()

        assert client.is_closed is False
        await client.aclose()

    @pytest.mark.asyncio
    async def test_own_client_closed(self):
        transport = HttpxTransport(base_url="http://api.test")

        await transport.close()

        with pytest.raises(TransportError, match="Transport closed"):
            await transport.send("POST", "/posts", {})

    @pytest.mark.asyncio
    async def test_send_on_closed_injected_client_raises(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(201)))
        transport = HttpxTransport(client=client)
        await client.aclose()

        with pytest.raises(TransportError):
            await transport.send("PUT", "/posts/1", {})
