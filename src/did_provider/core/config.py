"""Settings for the D-ID client.

Values are read from ``DID_``-prefixed environment variables.  The secret
itself is never stored here: ``api_key_name`` names the entry that the
configured :class:`~did_provider.credentials.CredentialSource` resolves to the
``"username:password"`` string.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = "https://api.d-id.com/"


def _default_media_root() -> Path:
    return Path("./var/media")


class DidSettings(BaseSettings):
    """Pydantic settings container for the client and its collaborators."""

    model_config = SettingsConfigDict(env_prefix="DID_", extra="ignore")

    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="Root URL of the D-ID REST API.",
    )
    api_key_name: str = Field(
        default="DID_API_KEY",
        min_length=1,
        description="Key name resolved by the credential source to 'user:password'.",
    )
    connect_timeout_seconds: float = Field(
        default=600.0,
        gt=0,
        description="Connect timeout for API requests in seconds.",
    )
    read_timeout_seconds: float = Field(
        default=600.0,
        gt=0,
        description="Read timeout for API requests; video jobs answer slowly.",
    )
    poll_interval_seconds: float = Field(
        default=2.0,
        ge=0.0,
        description="Fixed delay between job status fetches in seconds.",
    )
    default_timeout_seconds: float = Field(
        default=600.0,
        gt=0,
        description="Polling budget used when callers do not pass one.",
    )
    presenter_cache_ttl_seconds: int = Field(
        default=30 * 60,
        ge=0,
        description="TTL for the cached presenter directory in seconds.",
    )
    image_max_width: int = Field(default=1920, ge=1)
    image_max_height: int = Field(default=1080, ge=1)
    image_max_bytes: int = Field(
        default=1_000_000,
        ge=1,
        description="Images above this size are re-encoded before upload.",
    )
    jpeg_quality: int = Field(default=90, ge=1, le=100)
    public_root: Path = Field(
        default_factory=lambda: _default_media_root() / "public",
        description="Directory backing public:// references.",
    )
    private_root: Path = Field(
        default_factory=lambda: _default_media_root() / "private",
        description="Directory backing private:// references.",
    )
    temporary_root: Path = Field(
        default_factory=lambda: _default_media_root() / "tmp",
        description="Directory backing temporary:// references.",
    )

    @classmethod
    def build_default(cls) -> "DidSettings":
        """Construct settings from the environment."""

        return cls()


__all__ = ["DEFAULT_BASE_URL", "DidSettings"]
