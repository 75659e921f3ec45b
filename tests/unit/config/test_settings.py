# tests/unit/config/test_settings.py — v2
"""Tests for config/settings.py — typed Settings and validation rules."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from lexresearch.config.settings import DAY, HOUR, ConfigurationError, Settings, load_settings


class TestSettingsDefaults:
    def test_default_sources(self):
        s = Settings(_env_file=None, courtlistener_api_key="")
        assert s.courtlistener_base_url.startswith("https://www.courtlistener.com/api/rest/v4")
        assert s.federal_register_base_url == "https://www.federalregister.gov/api/v1/"
        assert s.courtlistener_configured is False

    def test_default_fetch_interval(self):
        s = Settings(_env_file=None)
        assert s.fetch_min_interval_s == 2.0

    def test_default_cache_ttls(self):
        s = Settings(_env_file=None)
        assert s.cache_enabled is True
        assert s.cache_case_searches_ttl_s == 48 * HOUR
        assert s.cache_regulations_ttl_s == 7 * DAY
        assert s.cache_research_results_ttl_s == 24 * HOUR
        assert s.cache_savings_per_hit == pytest.approx(5.50)

    def test_default_rate_limits(self):
        s = Settings(_env_file=None)
        assert (s.rate_limit_fast_per_hour, s.rate_limit_fast_per_minute) == (100, 10)
        assert (s.rate_limit_deep_per_hour, s.rate_limit_deep_per_minute) == (20, 3)

    def test_default_similarity(self):
        s = Settings(_env_file=None)
        assert s.similarity_threshold == pytest.approx(0.75)

    def test_courtlistener_configured_ignores_whitespace(self):
        assert Settings(_env_file=None, courtlistener_api_key="   ").courtlistener_configured is False
        assert Settings(_env_file=None, courtlistener_api_key="abc").courtlistener_configured is True


class TestSettingsValidation:
    def test_negative_interval(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, fetch_min_interval_s=-1)

    def test_negative_retries(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, http_max_retries=-1)

    def test_minute_limit_above_hourly(self):
        with pytest.raises(ConfigurationError, match="PER_MINUTE"):
            Settings(_env_file=None, rate_limit_deep_per_hour=2, rate_limit_deep_per_minute=3)

    def test_non_positive_limit(self):
        with pytest.raises(ConfigurationError, match="positive"):
            Settings(_env_file=None, rate_limit_fast_per_hour=0)

    def test_threshold_out_of_range(self):
        with pytest.raises(ConfigurationError, match="SIMILARITY_THRESHOLD"):
            Settings(_env_file=None, similarity_threshold=1.5)

    def test_non_positive_timeout(self):
        with pytest.raises(ConfigurationError, match="Timeouts"):
            Settings(_env_file=None, source_timeout_s=0)

    def test_multiple_errors_joined(self):
        with pytest.raises(ConfigurationError) as exc_info:
            Settings(_env_file=None, similarity_threshold=0, max_results=0)
        assert "SIMILARITY_THRESHOLD" in str(exc_info.value)
        assert "Result limits" in str(exc_info.value)


class TestLoadSettings:
    def test_overrides(self):
        s = load_settings(_env_file=None, max_results=5)
        assert s.max_results == 5

    def test_env_variable(self, monkeypatch):
        monkeypatch.setenv("RATE_LIMIT_FAST_PER_MINUTE", "7")
        s = Settings(_env_file=None)
        assert s.rate_limit_fast_per_minute == 7
