# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for all deployment-specific settings.
Every field can be set through an ``OFRENDA_``-prefixed environment variable
(e.g. ``OFRENDA_API_BASE_URL``) or the ``.env`` file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ofrenda.logging.handlers import parse_size


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="OFRENDA_",
        extra="ignore",
    )

    # === REMOTE API ===
    api_base_url: str = "http://localhost:3000"
    upload_path: str = "/api/upload-photo"
    generate_path: str = "/api/generate-altar"
    api_key: str = ""
    request_timeout_s: float = 35.0

    # Reachability check: empty host disables the check (always online)
    connectivity_check_host: str = ""
    connectivity_check_port: int = 443
    connectivity_check_timeout_s: float = 1.0

    # === RETRY ===
    retry_max_retries: int = 3
    retry_base_delay_s: float = 1.0
    retry_upload_multiplier: float = 1.0
    retry_generate_multiplier: float = 2.0

    # === LOCAL STORE ===
    store_backend: Literal["json", "memory"] = "json"
    store_root: Path = Path("~/.ofrenda/store")
    store_key: str = "altar_app_altars"
    store_max_records: int = 50
    store_quota_bytes: int | None = None

    # === Validation ===
    description_min_length: int = 10
    description_max_length: int = 500
    max_file_size_mb: int = 10

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("request_timeout_s", "retry_base_delay_s")
    @classmethod
    def validate_non_negative(cls, v: float, info) -> float:  # noqa: N805
        if v < 0:
            raise ValueError(f"{info.field_name} must be >= 0")
        return v

    @field_validator("log_rotation")
    @classmethod
    def validate_log_rotation(cls, v: str) -> str:  # noqa: N805
        parse_size(v)
        return v

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:  # noqa: N805
        return v.rstrip("/")

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.store_max_records < 1:
            errors.append("STORE_MAX_RECORDS must be >= 1")

        if self.retry_max_retries < 0:
            errors.append("RETRY_MAX_RETRIES must be >= 0")

        if self.description_min_length > self.description_max_length:
            errors.append(
                "DESCRIPTION_MIN_LENGTH must be <= DESCRIPTION_MAX_LENGTH"
            )

        if self.store_quota_bytes is not None and self.store_quota_bytes <= 0:
            errors.append("STORE_QUOTA_BYTES must be positive when set")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def upload_url(self) -> str:
        return f"{self.api_base_url}{self.upload_path}"

    @property
    def generate_url(self) -> str:
        return f"{self.api_base_url}{self.generate_path}"


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-run config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
