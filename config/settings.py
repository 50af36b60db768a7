"""
Configuration settings for the component library catalog.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env file from project root (optional - real environment wins)
load_dotenv(Path(__file__).parent.parent / ".env")


def _env_float(name: str, default: float) -> float:
    """Read a float from the environment, falling back on missing/garbage values."""
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass
class SupabaseConfig:
    """Configuration for the hosted backend (auth, rows, storage)."""

    url: str = field(
        default_factory=lambda: os.getenv("SUPABASE_URL", "http://localhost:54321")
    )
    key: str = field(default_factory=lambda: os.getenv("SUPABASE_KEY", ""))

    # Row table and public storage bucket
    table: str = field(default_factory=lambda: os.getenv("CATALOG_TABLE", "components"))
    bucket: str = field(
        default_factory=lambda: os.getenv("CATALOG_BUCKET", "component-images")
    )
    storage_prefix: str = "components"

    # Applied to every PostgREST and Storage request
    request_timeout_seconds: float = field(
        default_factory=lambda: _env_float("CATALOG_REQUEST_TIMEOUT", 10.0)
    )


@dataclass
class UploadConfig:
    """Limits for preview image uploads."""

    max_image_bytes: int = field(
        default_factory=lambda: int(
            _env_float("CATALOG_MAX_IMAGE_MB", 5.0) * 1024 * 1024
        )
    )
    allowed_content_prefix: str = "image/"


@dataclass
class ViewerConfig:
    """Configuration for the Flask viewer."""

    host: str = "127.0.0.1"
    port: int = 5000
    # Where the magic link sends the user back to
    site_url: str = field(
        default_factory=lambda: os.getenv("CATALOG_SITE_URL", "http://localhost:5000")
    )
    secret_key: str = field(
        default_factory=lambda: os.getenv("FLASK_SECRET_KEY", "dev-only-change-me")
    )
    copy_ack_seconds: float = 2.0

    # Per-browser views are dropped after this much inactivity, oldest first past the cap
    view_idle_seconds: float = field(
        default_factory=lambda: _env_float("CATALOG_VIEW_IDLE_SECONDS", 3600.0)
    )
    max_views: int = 1000


@dataclass
class LoggingConfig:
    """Configuration for console diagnostics."""

    log_level: str = field(
        default_factory=lambda: os.getenv("CATALOG_LOG_LEVEL", "INFO").upper()
    )

    @property
    def verbose(self) -> bool:
        """Whether [dim] detail lines should be printed."""
        return self.log_level == "DEBUG"


@dataclass
class AppConfig:
    """Main configuration combining all settings."""

    supabase: SupabaseConfig = field(default_factory=SupabaseConfig)
    upload: UploadConfig = field(default_factory=UploadConfig)
    viewer: ViewerConfig = field(default_factory=ViewerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# Default configuration instance
config = AppConfig()
