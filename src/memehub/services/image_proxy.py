"""Fetches remote images on behalf of the browser client."""

import logging
from collections.abc import AsyncGenerator
from urllib.parse import urlparse

from memehub.config import get_settings
from memehub.services.base import BaseAPIClient
from memehub.services.errors import APIError

logger = logging.getLogger(__name__)


class ImageProxyClient(BaseAPIClient):
    """Client that downloads images from arbitrary http(s) URLs.

    Used by the editor to load templates from hosts that do not send CORS
    headers.
    """

    def __init__(self, timeout: float | None = None) -> None:
        super().__init__(base_url="", timeout=timeout or get_settings().image_proxy_timeout)

    @property
    def default_headers(self) -> dict[str, str]:
        """Return default headers for image requests."""
        return {"Accept": "image/*"}

    async def fetch(self, url: str) -> tuple[bytes, str]:
        """Download an image.

        Returns:
            The image bytes and their content type.

        Raises:
            ValueError: If the URL is not an absolute http(s) URL.
            APIError: If the download fails or does not return an image.
        """
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"Not an http(s) URL: {url}")

        response = await self._send("GET", url)
        self._check_status(response)

        content_type = response.headers.get("content-type", "")
        if not content_type.startswith("image/"):
            raise APIError(f"URL did not return an image ({content_type or 'no content type'})")

        logger.debug("Proxied %d bytes of %s from %s", len(response.content), content_type, url)
        return response.content, content_type


async def get_image_proxy_client() -> AsyncGenerator[ImageProxyClient]:
    """Provide an image proxy client.

    Can be used as a FastAPI dependency.
    """
    client = ImageProxyClient()
    try:
        yield client
    finally:
        await client.close()
