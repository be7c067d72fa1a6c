"""
Application settings and configuration management.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from subtrack import __version__


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = Field(default="subtrack")
    app_version: str = Field(default=__version__)
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # YouTube API
    youtube_api_key: str = Field(default="")
    youtube_api_base_url: str = Field(default="https://www.googleapis.com/youtube/v3")
    request_timeout: float = Field(default=30.0)
    search_max_results: int = Field(default=25)

    # Storage
    data_dir: Path = Field(default=Path("./data"))
    channels_filename: str = Field(default="channels.json")
    backup_filename: str = Field(default="channels.backup.json")

    # Scheduling
    batch_size: int = Field(default=5)  # Requests dispatched in parallel
    batch_interval: float = Field(default=1.0)  # Seconds between batches
    sweep_interval: float = Field(default=60.0)
    max_retries: int = Field(default=5)
    retry_delay: float = Field(default=60.0)  # Cool-down window
    search_interval: float = Field(default=3.0)
    cache_cleanup_interval: float = Field(default=15 * 60.0)
    scheduler_enabled: bool = Field(default=True)
    discovery_enabled: bool = Field(default=True)

    # Server
    api_host: str = Field(default="127.0.0.1")
    api_port: int = Field(default=30056)

    @field_validator("data_dir", mode="before")
    @classmethod
    def ensure_path(cls, v: str | Path) -> Path:
        """Ensure directory paths are Path objects."""
        if isinstance(v, str):
            return Path(v)
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()

    @field_validator(
        "batch_size",
        "max_retries",
        "search_max_results",
    )
    @classmethod
    def validate_positive_int(cls, v: int) -> int:
        """Validate counts are at least 1."""
        if v < 1:
            raise ValueError(f"Value must be >= 1, got {v}")
        return v

    @field_validator(
        "request_timeout",
        "sweep_interval",
        "retry_delay",
        "search_interval",
        "cache_cleanup_interval",
    )
    @classmethod
    def validate_positive_seconds(cls, v: float) -> float:
        """Validate intervals are strictly positive."""
        if v <= 0:
            raise ValueError(f"Interval must be > 0 seconds, got {v}")
        return v

    @field_validator("batch_interval")
    @classmethod
    def validate_batch_interval(cls, v: float) -> float:
        """Validate the inter-batch delay is not negative."""
        if v < 0:
            raise ValueError(f"batch_interval must be >= 0, got {v}")
        return v

    @property
    def channels_file(self) -> Path:
        """Primary tracked-channel list file."""
        return self.data_dir / self.channels_filename

    @property
    def backup_file(self) -> Path:
        """Mirrored backup of the tracked-channel list."""
        return self.data_dir / self.backup_filename

    @property
    def history_dir(self) -> Path:
        """Directory holding one history file per channel."""
        return self.data_dir / "history"

    def create_directories(self) -> None:
        """Create required directories if they don't exist."""
        for directory in [self.data_dir, self.history_dir]:
            directory.mkdir(parents=True, exist_ok=True)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


def get_settings() -> Settings:
    """Get application settings."""
    return Settings()


# Global settings instance
settings = get_settings()
