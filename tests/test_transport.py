"""Tests for the httpx transport."""

import json

import pytest
import httpx
import respx

from hackmd_client.config import ClientConfig, TimeoutConfig
from hackmd_client.transport import HttpxTransport, TransportResponse


class TestHttpxTransport:
    """Test suite for HttpxTransport."""

    def test_client_created_lazily(self):
        """Test that the httpx client is not created until first use."""
        transport = HttpxTransport(ClientConfig())
        assert transport._client is None

    @pytest.mark.asyncio
    @respx.mock
    async def test_send(self):
        """Test sending a request and reading the raw response."""
        route = respx.post("https://api.example.com/notes").mock(
            return_value=httpx.Response(
                201, json={"id": "n1"}, headers={"x-ratelimit-userremaining": "9"}
            )
        )

        transport = HttpxTransport(ClientConfig())
        response = await transport.send(
            "POST",
            "https://api.example.com/notes",
            {"Authorization": "Bearer t"},
            b'{"title": "Hi"}',
            5.0,
        )
        await transport.aclose()

        assert isinstance(response, TransportResponse)
        assert response.status_code == 201
        assert json.loads(response.body) == {"id": "n1"}
        assert response.headers["x-ratelimit-userremaining"] == "9"
        assert route.called
        request = route.calls.last.request
        assert request.headers["Authorization"] == "Bearer t"
        assert request.content == b'{"title": "Hi"}'

    @pytest.mark.asyncio
    @respx.mock
    async def test_connect_error_propagates(self):
        """Test that transport failures are raised for the executor to classify."""
        respx.get("https://api.example.com/me").mock(
            side_effect=httpx.ConnectError("Connection refused")
        )

        transport = HttpxTransport(ClientConfig())
        with pytest.raises(httpx.ConnectError):
            await transport.send("GET", "https://api.example.com/me", {}, None, 5.0)
        await transport.aclose()

    @pytest.mark.asyncio
    async def test_aclose_owned_client(self):
        """Test that the transport closes a client it created."""
        transport = HttpxTransport(ClientConfig(transport_timeout=TimeoutConfig(read=1.0)))
        client = transport.client

        await transport.aclose()

        assert client.is_closed
        assert transport._client is None

    @pytest.mark.asyncio
    async def test_aclose_leaves_injected_client_open(self):
        """Test that an injected httpx client is left to its owner."""
        client = httpx.AsyncClient()
        transport = HttpxTransport(ClientConfig(), client=client)

        await transport.aclose()

        assert not client.is_closed
        await client.aclose()
