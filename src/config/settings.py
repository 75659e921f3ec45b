# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for all deployment-specific settings: external
source credentials and base URLs, HTTP behaviour, cache TTLs, rate limits,
cost constants and logging.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

HOUR = 3600
DAY = 24 * HOUR


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === External sources ===
    courtlistener_api_key: str = ""
    courtlistener_base_url: str = "https://www.courtlistener.com/api/rest/v4/"
    federal_register_base_url: str = "https://www.federalregister.gov/api/v1/"
    official_base_url: str = "https://www.mass.gov"
    justia_base_url: str = "https://supreme.justia.com"

    # === HTTP ===
    http_timeout_s: float = 30.0
    http_max_retries: int = 2
    http_retry_base_delay_s: float = 1.0
    fetch_min_interval_s: float = 2.0

    # === Pipeline ===
    source_timeout_s: float = 45.0
    max_results: int = 25
    official_max_results: int = 10
    api_page_size: int = 20

    # === Cache ===
    cache_enabled: bool = True
    cache_savings_per_hit: float = 5.50
    cache_first_query_cost: float = 6.00
    cache_cached_query_cost: float = 0.50
    cache_official_documents_max_size: int = 100
    cache_case_searches_ttl_s: int = 48 * HOUR
    cache_case_searches_max_size: int = 1000
    cache_regulations_ttl_s: int = 7 * DAY
    cache_regulations_max_size: int = 500
    cache_citations_ttl_s: int = 7 * DAY
    cache_citations_max_size: int = 500
    cache_research_results_ttl_s: int = 24 * HOUR
    cache_research_results_max_size: int = 1000

    # === Rate limits (requests per rolling window) ===
    rate_limit_fast_per_hour: int = 100
    rate_limit_fast_per_minute: int = 10
    rate_limit_deep_per_hour: int = 20
    rate_limit_deep_per_minute: int = 3

    # === Cost model (USD) ===
    cost_fast_base: float = 0.15
    cost_deep_base: float = 1.50
    cost_per_tool_call: float = 0.10
    cost_max_tool_calls: int = 5

    # === Duplicate detection ===
    similarity_threshold: float = 0.75
    similarity_history_size: int = 500

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("fetch_min_interval_s", "http_retry_base_delay_s")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:  # noqa: N805
        if v < 0:
            raise ValueError("intervals and delays must be >= 0")
        return v

    @field_validator("http_max_retries")
    @classmethod
    def validate_retries(cls, v: int) -> int:  # noqa: N805
        if v < 0:
            raise ValueError("http_max_retries must be >= 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        limits = {
            "fast": (self.rate_limit_fast_per_hour, self.rate_limit_fast_per_minute),
            "deep": (self.rate_limit_deep_per_hour, self.rate_limit_deep_per_minute),
        }
        for mode, (hourly, minute) in limits.items():
            if hourly <= 0 or minute <= 0:
                errors.append(f"RATE_LIMIT_{mode.upper()} limits must be positive")
            elif minute > hourly:
                errors.append(
                    f"RATE_LIMIT_{mode.upper()}_PER_MINUTE must be <= PER_HOUR"
                )

        if not 0.0 < self.similarity_threshold <= 1.0:
            errors.append("SIMILARITY_THRESHOLD must be in (0, 1]")

        if self.source_timeout_s <= 0 or self.http_timeout_s <= 0:
            errors.append("Timeouts must be positive")

        if self.max_results <= 0 or self.official_max_results <= 0:
            errors.append("Result limits must be positive")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def courtlistener_configured(self) -> bool:
        return bool(self.courtlistener_api_key.strip())


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-deployment config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
