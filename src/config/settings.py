# src/config/settings.py - v3
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for deployment-specific settings: the hosted
database credentials, cache tuning and logging.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Hosted database ===
    supabase_url: str = ""
    supabase_anon_key: str = ""

    # === Cache ===
    cache_enabled: bool = True
    cache_backend: Literal["memory"] = "memory"
    cache_default_ttl_s: float = 120.0
    cache_refresh_ratio: float = 0.75
    cache_match_mode: Literal["prefix", "substring"] = "prefix"
    cache_dedupe_inflight: bool = True
    rate_cache_ttl_s: float = 300.0

    # === Billing ===
    default_gst_rate: float = 3.0

    # === Business settings ===
    settings_user_id: str = ""

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("cache_default_ttl_s", "rate_cache_ttl_s")
    @classmethod
    def validate_ttl(cls, v: float) -> float:  # noqa: N805
        if v <= 0:
            raise ValueError("TTL must be > 0 seconds")
        return v

    @field_validator("cache_refresh_ratio")
    @classmethod
    def validate_refresh_ratio(cls, v: float) -> float:  # noqa: N805
        if not 0 < v <= 1:
            raise ValueError("cache_refresh_ratio must be in (0, 1]")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if bool(self.supabase_url) != bool(self.supabase_anon_key):
            errors.append(
                "SUPABASE_URL and SUPABASE_ANON_KEY must be set together"
            )

        if self.default_gst_rate < 0:
            errors.append("DEFAULT_GST_RATE must be >= 0")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def datastore_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
