# src/btcperf/config/settings.py
"""
Settings - Pydantic-based Configuration Management

Provides centralized configuration management using Pydantic Settings.
Every tunable of the price engine (endpoints, cache windows, throttling
thresholds, cooldown, logging) is read from environment variables or ``.env``.

Files that USE this module:
- btcperf.app (loads settings for logging and wiring)
- btcperf.adapters.providers.coingecko (API URL, coin id, currencies, timeout)
- btcperf.application.* (cache TTL, cooldown, item delay)
- btcperf.shared.throttle (spacing and window thresholds, throttle indicators)
"""

from __future__ import annotations  # Enable postponed evaluation of annotations

import re  # Currency code validation
from typing import Optional  # Type hints for optional values

from pydantic import Field, field_validator  # Data validation and field configuration
from pydantic_settings import BaseSettings, SettingsConfigDict  # Settings management with Pydantic

DEFAULT_THROTTLE_INDICATORS = (
    "429,too many requests,rate limit,quota exceeded,"
    "failed to fetch,network error,cors policy"
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # --- Price API ---
    coingecko_base_url: str = Field(
        default="https://api.coingecko.com/api/v3", alias="COINGECKO_BASE_URL"
    )
    coingecko_coin_id: str = Field(default="bitcoin", alias="COINGECKO_COIN_ID")
    price_currencies: str = Field(default="eur,usd,chf,czk", alias="PRICE_CURRENCIES")

    # --- HTTP Settings ---
    http_timeout_seconds: int = Field(default=10, alias="HTTP_TIMEOUT_SECONDS", ge=1, le=60)

    # --- Cache Settings ---
    current_price_cache_minutes: float = Field(
        default=15, alias="CURRENT_PRICE_CACHE_MINUTES", gt=0, le=1440
    )

    # --- Rate limiting ---
    rate_limit_cooldown_seconds: float = Field(
        default=60, alias="RATE_LIMIT_COOLDOWN_SECONDS", gt=0, le=3600
    )
    rate_limit_tick_seconds: float = Field(default=1, alias="RATE_LIMIT_TICK_SECONDS", gt=0)
    min_request_spacing_ms: int = Field(default=50, alias="MIN_REQUEST_SPACING_MS", ge=0)
    item_delay_seconds: float = Field(default=1.0, alias="ITEM_DELAY_SECONDS", ge=0)

    # --- Throttle heuristics ---
    request_history_size: int = Field(default=10, alias="REQUEST_HISTORY_SIZE", ge=1)
    burst_window_seconds: float = Field(default=30, alias="BURST_WINDOW_SECONDS", gt=0)
    burst_max_requests: int = Field(default=5, alias="BURST_MAX_REQUESTS", ge=1)
    recent_window_seconds: float = Field(default=60, alias="RECENT_WINDOW_SECONDS", gt=0)
    recent_max_requests: int = Field(default=3, alias="RECENT_MAX_REQUESTS", ge=0)
    throttle_indicators: str = Field(
        default=DEFAULT_THROTTLE_INDICATORS, alias="THROTTLE_INDICATORS"
    )

    # --- Logging ---
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_file: Optional[str] = Field(default=None, alias="LOG_FILE")
    log_dir: Optional[str] = Field(default=None, alias="LOG_DIR")
    log_stdout: bool = Field(default=True, alias="BTCPERF_LOG_STDOUT")
    log_max_bytes: int = Field(default=10 * 1024 * 1024, alias="LOG_MAX_BYTES")  # 10MB
    log_backup_count: int = Field(default=5, alias="LOG_BACKUP_COUNT")

    # Computed properties for convenience
    @property
    def CURRENCIES(self) -> list[str]:
        """Lower-case currency codes requested from the current-price endpoint."""
        return [c.strip().lower() for c in self.price_currencies.split(",") if c.strip()]

    @property
    def THROTTLE_INDICATORS(self) -> tuple[str, ...]:
        return tuple(
            i.strip().lower() for i in self.throttle_indicators.split(",") if i.strip()
        )

    @property
    def CURRENT_PRICE_TTL_SECONDS(self) -> float:
        return self.current_price_cache_minutes * 60

    @property
    def MIN_REQUEST_SPACING_SECONDS(self) -> float:
        return self.min_request_spacing_ms / 1000

    @field_validator("price_currencies")
    @classmethod
    def validate_currencies(cls, v: str) -> str:
        """Validate comma-separated ISO-4217 style codes."""
        codes = [c.strip() for c in v.split(",") if c.strip()]
        if not codes:
            raise ValueError("PRICE_CURRENCIES must list at least one currency")
        for code in codes:
            if not re.fullmatch(r"[A-Za-z]{3}", code):
                raise ValueError(f"Invalid currency code in PRICE_CURRENCIES: {code!r}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError("LOG_LEVEL must be DEBUG, INFO, WARNING, ERROR or CRITICAL")
        return level


# Global settings instance
settings = Settings()
