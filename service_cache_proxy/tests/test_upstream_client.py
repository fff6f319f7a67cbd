"""
Unit tests for the upstream API client.
"""

import httpx
import pytest
from unittest.mock import AsyncMock, patch

from service_cache_proxy.app.adapters.upstream_client import UpstreamClient
from shared.errors import UpstreamFetchError


URL = "http://upstream.test/market/momentum/range/1"


def _response(status_code: int, content: str = "") -> httpx.Response:
    return httpx.Response(
        status_code=status_code,
        content=content,
        request=httpx.Request("GET", URL),
    )


class TestUpstreamClient:
    """Test cases for UpstreamClient."""

    @pytest.fixture
    def upstream_client(self):
        return UpstreamClient("http://upstream.test/")

    @pytest.mark.asyncio
    async def test_fetch_success_returns_text(self, upstream_client):
        with patch('httpx.AsyncClient') as mock_client:
            mock_get = AsyncMock(return_value=_response(200, "fresh-body"))
            mock_client.return_value.__aenter__.return_value.get = mock_get

            result = await upstream_client.fetch("/market/momentum/range/1")

            assert result == "fresh-body"
            mock_get.assert_awaited_once_with(URL, params=[], headers={})

    @pytest.mark.asyncio
    async def test_fetch_forwards_authorization_and_params(self, upstream_client):
        with patch('httpx.AsyncClient') as mock_client:
            mock_get = AsyncMock(return_value=_response(200, "{}"))
            mock_client.return_value.__aenter__.return_value.get = mock_get

            await upstream_client.fetch(
                "/market/momentum/range/1",
                params=[("days", "60")],
                authorization="Bearer token-1",
            )

            mock_get.assert_awaited_once_with(
                URL,
                params=[("days", "60")],
                headers={"Authorization": "Bearer token-1"},
            )

    @pytest.mark.asyncio
    async def test_fetch_never_fabricates_authorization(self, upstream_client):
        with patch('httpx.AsyncClient') as mock_client:
            mock_get = AsyncMock(return_value=_response(200, ""))
            mock_client.return_value.__aenter__.return_value.get = mock_get

            await upstream_client.fetch("/market/momentum/range/1", authorization=None)

            assert "Authorization" not in mock_get.await_args.kwargs["headers"]

    @pytest.mark.asyncio
    async def test_non_success_status_raises(self, upstream_client):
        with patch('httpx.AsyncClient') as mock_client:
            mock_client.return_value.__aenter__.return_value.get = AsyncMock(
                return_value=_response(503, "unavailable")
            )

            with pytest.raises(UpstreamFetchError) as exc_info:
                await upstream_client.fetch("/market/momentum/range/1")

            assert exc_info.value.upstream_status == 503
            assert "503" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_transport_error_raises(self, upstream_client):
        with patch('httpx.AsyncClient') as mock_client:
            mock_get = AsyncMock(side_effect=httpx.ConnectError("Connection refused"))
            mock_client.return_value.__aenter__.return_value.get = mock_get

            with pytest.raises(UpstreamFetchError) as exc_info:
                await upstream_client.fetch("/market/momentum/range/1")

            assert exc_info.value.upstream_status is None
            assert "Connection refused" in exc_info.value.message
            mock_get.assert_awaited_once()
