"""Tests for the image proxy client."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from memehub.services.errors import APIError
from memehub.services.image_proxy import ImageProxyClient

PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR"


@pytest.fixture
def image_proxy() -> ImageProxyClient:
    """Create an image proxy client for testing."""
    return ImageProxyClient(timeout=5.0)


class TestFetch:
    """Tests for downloading images."""

    async def test_fetch_success(self, image_proxy: ImageProxyClient) -> None:
        """Test that the body and content type are returned."""
        mock_response = httpx.Response(
            200, content=PNG_BYTES, headers={"content-type": "image/png"}
        )

        with patch.object(image_proxy, "_get_client") as mock_get_client:
            mock_client = AsyncMock()
            mock_client.request.return_value = mock_response
            mock_get_client.return_value = mock_client

            content, content_type = await image_proxy.fetch("https://example.com/cat.png")

            assert content == PNG_BYTES
            assert content_type == "image/png"
            call_args = mock_client.request.call_args
            assert call_args.kwargs["method"] == "GET"
            assert call_args.kwargs["url"] == "https://example.com/cat.png"
            assert call_args.kwargs["headers"] == {"Accept": "image/*"}

    @pytest.mark.parametrize(
        "url", ["file:///etc/passwd", "ftp://example.com/cat.png", "not a url", "https://"]
    )
    async def test_rejects_non_http_urls(self, image_proxy: ImageProxyClient, url: str) -> None:
        """Test that only absolute http(s) URLs are fetched."""
        with patch.object(image_proxy, "_get_client") as mock_get_client:
            with pytest.raises(ValueError):
                await image_proxy.fetch(url)

            mock_get_client.assert_not_called()

    async def test_not_an_image(self, image_proxy: ImageProxyClient) -> None:
        """Test that a page that is not an image is an error."""
        mock_response = httpx.Response(
            200, text="<html></html>", headers={"content-type": "text/html"}
        )

        with patch.object(image_proxy, "_get_client") as mock_get_client:
            mock_client = AsyncMock()
            mock_client.request.return_value = mock_response
            mock_get_client.return_value = mock_client

            with pytest.raises(APIError, match="did not return an image"):
                await image_proxy.fetch("https://example.com/page")

    async def test_upstream_error(self, image_proxy: ImageProxyClient) -> None:
        """Test that an error status surfaces as a 502 APIError."""
        mock_response = httpx.Response(404, text="Not Found")

        with patch.object(image_proxy, "_get_client") as mock_get_client:
            mock_client = AsyncMock()
            mock_client.request.return_value = mock_response
            mock_get_client.return_value = mock_client

            with pytest.raises(APIError) as exc_info:
                await image_proxy.fetch("https://example.com/gone.png")

            assert exc_info.value.status_code == 502

    async def test_timeout(self, image_proxy: ImageProxyClient) -> None:
        """Test timeout handling."""
        with patch.object(image_proxy, "_get_client") as mock_get_client:
            mock_client = AsyncMock()
            mock_client.request.side_effect = httpx.TimeoutException("Timeout")
            mock_get_client.return_value = mock_client

            with pytest.raises(APIError, match="timed out"):
                await image_proxy.fetch("https://example.com/slow.png")
