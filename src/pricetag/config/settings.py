# src/pricetag/config/settings.py
"""
Settings - Pydantic-based Configuration Management

Provides centralized configuration management using Pydantic Settings.
Supports environment variables (and an optional .env file) with validation.

Files that USE this module:
- pricetag.app (loads settings and wires every component from them)

Files that this module USES:
- pricetag.shared.validators (validation functions for settings)
"""

from __future__ import annotations  # Enable postponed evaluation of annotations

from functools import lru_cache  # Build settings once, on first use
from pathlib import Path  # Object-oriented filesystem paths
from typing import Optional  # Type hints for optional values

from pydantic import AliasChoices, Field, field_validator  # Data validation and field configuration
from pydantic_settings import BaseSettings, SettingsConfigDict  # Settings management with Pydantic

from pricetag.shared.validators import (
    validate_bot_token,  # Validate Telegram bot token format
    validate_currency_code,  # Validate ISO 4217 numeric currency code
    validate_price_marker,  # Validate price token marker
)

UAH_CODE = 980
RUB_CODE = 643


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # --- Telegram ---
    bot_token: str = Field(..., alias="BOT_TOKEN")
    edit_timeout_seconds: float = Field(default=10.0, alias="EDIT_TIMEOUT_SECONDS", gt=0, le=120)
    edit_max_attempts: int = Field(default=3, alias="EDIT_MAX_ATTEMPTS", ge=1, le=10)
    stop_timeout_seconds: float = Field(default=5.0, alias="STOP_TIMEOUT_SECONDS", gt=0, le=300)

    # --- Template persistence ---
    templates_file: Path = Field(
        default=Path("config.json"),
        validation_alias=AliasChoices("TEMPLATES_FILE", "CONFIG_PATH"),
    )

    # --- Rate source ---
    rates_url: str = Field(default="https://www.cbr-xml-daily.ru/daily_json.js", alias="RATES_URL")
    rate_refresh_minutes: int = Field(default=60, alias="RATE_REFRESH_MINUTES", ge=1, le=1440)
    http_timeout_seconds: int = Field(default=20, alias="HTTP_TIMEOUT_SECONDS", ge=1, le=120)
    http_retries: int = Field(default=3, alias="HTTP_RETRIES", ge=0, le=10)

    # --- Rendering ---
    price_marker: str = Field(default="$price", alias="PRICE_MARKER")
    source_currency: int = Field(default=UAH_CODE, alias="SOURCE_CURRENCY")
    target_currency: int = Field(default=RUB_CODE, alias="TARGET_CURRENCY")
    reference_currency: int = Field(default=RUB_CODE, alias="REFERENCE_CURRENCY")
    source_symbol: str = Field(default="₴", alias="SOURCE_SYMBOL")
    target_symbol: str = Field(default="₽", alias="TARGET_SYMBOL")

    # --- Logging (for server deployment) ---
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_file: Optional[str] = Field(default=None, alias="LOG_FILE")
    log_dir: Optional[str] = Field(default=None, alias="LOG_DIR")
    log_stdout: bool = Field(default=True, alias="PRICETAG_LOG_STDOUT")
    log_max_bytes: int = Field(default=10 * 1024 * 1024, alias="LOG_MAX_BYTES")  # 10MB
    log_backup_count: int = Field(default=5, alias="LOG_BACKUP_COUNT")

    @property
    def rate_refresh_seconds(self) -> int:
        return self.rate_refresh_minutes * 60

    @field_validator("bot_token")
    @classmethod
    def validate_bot_token(cls, v: str) -> str:
        """Validate bot token format."""
        if not validate_bot_token(v):
            raise ValueError("Invalid BOT_TOKEN format")
        return v

    @field_validator("source_currency", "target_currency", "reference_currency")
    @classmethod
    def validate_currency(cls, v: int) -> int:
        """Validate numeric currency codes."""
        if not validate_currency_code(v):
            raise ValueError("Currency codes must be ISO 4217 numeric codes (1-999)")
        return v

    @field_validator("price_marker")
    @classmethod
    def validate_marker(cls, v: str) -> str:
        if not validate_price_marker(v):
            raise ValueError("PRICE_MARKER must be non-empty and must not contain ':' or whitespace")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError("LOG_LEVEL must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL")
        return level


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Build settings from the environment on first call and reuse them afterwards.

    Returns:
        Settings instance

    Raises:
        pydantic.ValidationError: If required variables are missing or invalid
    """
    return Settings()
