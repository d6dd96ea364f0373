"""
Application settings.

Values come from environment variables prefixed with ``AUTOCARD_`` (or a
``.env`` file), falling back to the defaults below.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/125.0.0.0 Safari/537.36"
)


class Settings(BaseSettings):
    """AutoCard runtime configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="AUTOCARD_",
        case_sensitive=False,
        extra="ignore",
    )

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    # Rendering engine (Playwright Chromium)
    chromium_executable_path: str | None = None
    chromium_args: list[str] = Field(
        default_factory=lambda: ["--no-sandbox", "--disable-dev-shm-usage"]
    )
    device_scale_factor: float = Field(default=2.0, ge=1.0, le=4.0)
    navigation_timeout_ms: int = 30_000
    media_ready_timeout_ms: int = 5_500

    # Image acquisition
    image_fetch_timeout: float = 15.0
    image_max_bytes: int = 15 * 1024 * 1024
    image_user_agent: str = DEFAULT_USER_AGENT

    # Style auto-resolution thresholds
    auto_min_image_url_length: int = 8
    auto_quote_max_words: int = 40

    # Content defaults
    default_handle: str = "@anon"
    default_page_no: str = "1/1"

    # Durable storage for rendered cards
    storage_backend: Literal["none", "local", "s3"] = "none"
    storage_dir: Path = Path("generated_cards")
    storage_public_base_url: str = ""
    storage_prefix: str = "cards/"
    s3_bucket: str = ""
    s3_endpoint_url: str | None = None
    s3_region: str = "us-east-1"
    s3_access_key: str | None = None
    s3_secret_key: str | None = None

    # Bundled fonts, inlined into every card when present
    fonts_dir: Path | None = None
