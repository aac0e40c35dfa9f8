"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # App settings
    app_name: str = "MemeHub API"
    debug: bool = False
    secret_key: str  # Required, no default
    cors_origins: list[str] = ["http://localhost:5173"]

    # Database
    database_url: str = "sqlite+aiosqlite:///./memehub.db"

    # JWT Authentication
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 60 * 24 * 7

    # Image host (Cloudinary-compatible upload API)
    image_host_base_url: str = "https://api.cloudinary.com/v1_1"
    image_host_cloud_name: str = ""
    image_host_api_key: str = ""
    image_host_api_secret: str = ""
    image_host_upload_preset: str = "memes_upload"
    placeholder_image_url: str = "https://via.placeholder.com/600x400?text=Meme+Image+Placeholder"

    # Image proxy
    image_proxy_timeout: float = 15.0

    # Leaderboard
    leaderboard_default_limit: int = 10

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, v: str, info) -> str:
        """Validate that secret_key is secure."""
        if not v:
            raise ValueError("SECRET_KEY is required")

        # In production mode, ensure secret key is strong
        debug = info.data.get("debug", False)
        if not debug:
            if len(v) < 32:
                raise ValueError("SECRET_KEY must be at least 32 characters in production mode")
            if v in ("change-me-in-production", "secret", "password", "changeme"):
                raise ValueError("SECRET_KEY must not be a common weak value")

        return v

    @property
    def image_host_configured(self) -> bool:
        """Whether uploads go to the real image host instead of the placeholder fallback."""
        return bool(self.image_host_cloud_name) and self.image_host_cloud_name != "demo"

    def validate_runtime_config(self) -> list[str]:
        """Validate runtime configuration and return warnings."""
        warnings = []

        if not self.image_host_configured:
            warnings.append(
                "IMAGE_HOST_CLOUD_NAME is not set - uploaded images will be stored inline "
                "or replaced by a placeholder"
            )
        elif not (self.image_host_api_key and self.image_host_api_secret):
            warnings.append(
                "IMAGE_HOST_API_KEY/IMAGE_HOST_API_SECRET are not set - "
                "hosted images will not be deleted with their memes"
            )

        # Warn about debug mode in production
        if self.debug:
            warnings.append("DEBUG mode is enabled - should be disabled in production")

        return warnings


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
