"""Image host client (Cloudinary-compatible upload API)."""

import hashlib
import logging
import time
from collections.abc import AsyncGenerator
from urllib.parse import urlparse

from memehub.config import get_settings
from memehub.services.base import BaseAPIClient
from memehub.services.errors import APIError

logger = logging.getLogger(__name__)


class ImageHostClient(BaseAPIClient):
    """Client for the hosted image store.

    Uploads meme images and deletes them again when their meme goes away.
    The rest of the application only ever sees the returned URL.
    """

    def __init__(
        self,
        cloud_name: str | None = None,
        api_key: str | None = None,
        api_secret: str | None = None,
        upload_preset: str | None = None,
        base_url: str | None = None,
        timeout: float = 60.0,
    ) -> None:
        """Initialize the image host client.

        Args:
            cloud_name: Account (cloud) name. If not provided, uses settings.
            api_key: API key used for signed requests. If not provided, uses settings.
            api_secret: API secret used to sign requests. If not provided, uses settings.
            upload_preset: Unsigned upload preset. If not provided, uses settings.
            base_url: Upload API base URL. If not provided, uses settings.
            timeout: Request timeout in seconds.
        """
        settings = get_settings()
        self._cloud_name = cloud_name or settings.image_host_cloud_name
        self._api_key = api_key or settings.image_host_api_key
        self._api_secret = api_secret or settings.image_host_api_secret
        self._upload_preset = upload_preset or settings.image_host_upload_preset
        base = base_url or settings.image_host_base_url

        if not self._cloud_name:
            raise ValueError("Image host cloud name is required")

        super().__init__(base_url=f"{base.rstrip('/')}/{self._cloud_name}", timeout=timeout)

    @property
    def default_headers(self) -> dict[str, str]:
        """Return default headers for upload API requests."""
        return {"Accept": "application/json"}

    def owns(self, image_url: str) -> bool:
        """Whether the URL points at an image stored under this account."""
        return f"/{self._cloud_name}/" in urlparse(image_url).path

    @staticmethod
    def public_id_from_url(image_url: str) -> str:
        """Extract the public id (last path segment without extension) from a delivery URL."""
        last_segment = urlparse(image_url).path.rsplit("/", 1)[-1]
        return last_segment.split(".", 1)[0]

    def _sign(self, params: dict[str, str | int]) -> str:
        """Sign request parameters: sha1 of the sorted ``key=value`` pairs plus the secret."""
        to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params))
        return hashlib.sha1(f"{to_sign}{self._api_secret}".encode()).hexdigest()

    async def upload(self, image_data: str) -> str:
        """Upload an image and return its secure delivery URL.

        Args:
            image_data: A data URI or a remote URL the host can fetch.

        Returns:
            The ``secure_url`` of the stored image.

        Raises:
            APIError: If the upload fails or the response has no URL.
        """
        payload = await self.post(
            "image/upload",
            data={"file": image_data, "upload_preset": self._upload_preset},
        )
        secure_url = payload.get("secure_url")
        if not secure_url:
            raise APIError("Image host response did not include a secure_url")
        return secure_url

    async def destroy(self, image_url: str) -> bool:
        """Delete a previously uploaded image.

        Returns:
            True if the host confirmed the deletion, False if it was skipped
            or the host did not find the image.
        """
        if not (self._api_key and self._api_secret):
            logger.warning("Image host credentials missing, not deleting %s", image_url)
            return False

        params: dict[str, str | int] = {
            "public_id": self.public_id_from_url(image_url),
            "timestamp": int(time.time()),
        }
        payload = await self.post(
            "image/destroy",
            data={**params, "api_key": self._api_key, "signature": self._sign(params)},
        )
        return payload.get("result") == "ok"


async def get_image_host_client() -> AsyncGenerator[ImageHostClient | None]:
    """Provide an image host client, or None when no host is configured.

    Can be used as a FastAPI dependency.
    """
    if not get_settings().image_host_configured:
        yield None
        return

    client = ImageHostClient()
    try:
        yield client
    finally:
        await client.close()


async def resolve_image_url(image_data: str, client: ImageHostClient | None) -> str:
    """Turn submitted image data into the URL stored on the meme.

    Without a configured host, data URIs are stored inline and anything else
    is replaced by the placeholder image.
    """
    if client is not None:
        return await client.upload(image_data)

    if image_data.startswith("data:image"):
        return image_data

    logger.warning("Image host not configured, storing placeholder image")
    return get_settings().placeholder_image_url
