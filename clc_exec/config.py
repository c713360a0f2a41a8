"""Runtime settings with pydantic-settings.

Credentials are deliberately absent here: they belong to the provisioner
configuration and reach it through ``merge_env_overrides``.

Usage:
    from clc_exec.config import get_settings

    settings = get_settings()
    settings.poll_interval
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = "https://api.ctl.io/v2"


class Settings(BaseSettings):
    """clc-exec settings.

    All fields are optional with sensible defaults.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # === Logging ===

    service_name: str = Field(
        default="clc-exec",
        description="Service name for structured logging",
    )
    log_format: Literal["json", "console"] = Field(
        default="console",
        description="Log output format",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
    )

    # === CLC API ===

    clc_base_url: str = Field(
        default=DEFAULT_BASE_URL,
        alias="CLC_BASE_URL",
        description="CLC v2 API base URL",
        examples=["https://api.ctl.io/v2"],
    )
    clc_region: str = Field(
        default="",
        alias="CLC_REGION",
        description="CLC region (empty uses the account default)",
    )
    http_timeout: float = Field(
        default=30.0,
        gt=0,
        alias="CLC_HTTP_TIMEOUT",
        description="Per-request HTTP timeout in seconds",
    )

    # === Status polling ===

    poll_interval: float = Field(
        default=5.0,
        gt=0,
        alias="CLC_POLL_INTERVAL",
        description="Seconds between status polls",
    )
    poll_timeout: float | None = Field(
        default=1800.0,
        alias="CLC_POLL_TIMEOUT",
        description="Maximum seconds to wait for a job to finish (unset waits forever)",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return upper_v

    @field_validator("poll_timeout", mode="before")
    @classmethod
    def validate_poll_timeout(cls, v):
        """Treat an empty or "none" value as no timeout."""
        if isinstance(v, str) and v.strip().lower() in {"", "none"}:
            return None
        if v is not None and float(v) <= 0:
            raise ValueError("poll_timeout must be positive")
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
