"""Tests for configuration management."""

from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from polymarket_analytics.config import (
    ExposureSettings,
    FlowSettings,
    MarketStateSettings,
    Settings,
    TradeReviewSettings,
    clear_settings_cache,
    get_settings,
)
from polymarket_analytics.market.state import MarketStateThresholds
from polymarket_analytics.portfolio.exposure import ExposureThresholds
from polymarket_analytics.traders.best_bets import BestBetsConfig


class TestDefaults:
    def test_defaults_match_classifier_defaults(self) -> None:
        settings = Settings()
        assert settings.market_state.to_thresholds() == MarketStateThresholds()
        assert settings.exposure.to_thresholds() == ExposureThresholds()
        assert settings.best_bets.to_thresholds() == BestBetsConfig()

    def test_log_level_default(self) -> None:
        settings = Settings()
        assert settings.log_level == "INFO"
        assert settings.get_logging_level() == logging.INFO

    def test_summary_groups(self) -> None:
        summary = Settings().summary()
        assert set(summary) == {
            "market_state",
            "trade_review",
            "flow",
            "exposure",
            "consistency",
            "best_bets",
        }
        assert summary["flow"]["session_gap_minutes"] == "30.0"


class TestEnvironmentOverrides:
    def test_prefixed_variable_overrides_threshold(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FLOW_SESSION_GAP_MINUTES", "45")
        assert FlowSettings().to_thresholds().session_gap_minutes == 45.0

    def test_log_level_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        assert Settings().get_logging_level() == logging.DEBUG

    def test_get_settings_is_cached(self, fresh_settings: None) -> None:
        assert get_settings() is get_settings()

    def test_cache_clear_reloads(self, monkeypatch: pytest.MonkeyPatch, fresh_settings: None) -> None:
        first = get_settings()
        monkeypatch.setenv("BEST_BETS_MAX_RESULTS", "3")
        assert get_settings() is first

        clear_settings_cache()
        assert get_settings().best_bets.max_results == 3


class TestValidation:
    def test_rejects_inverted_spread_tiers(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MARKET_STATE_SPREAD_THIN", "0.10")
        with pytest.raises(ValidationError):
            MarketStateSettings()

    def test_rejects_inverted_depth_tiers(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TRADE_REVIEW_DEPTH_BAD", "50000")
        with pytest.raises(ValidationError):
            TradeReviewSettings()

    def test_rejects_inverted_concentration_levels(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EXPOSURE_CONCENTRATION_WARNING", "70")
        with pytest.raises(ValidationError):
            ExposureSettings()

    def test_rejects_out_of_range_exhaustion_price(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FLOW_EXHAUSTION_PRICE_THRESHOLD", "0.4")
        with pytest.raises(ValidationError):
            FlowSettings()

    def test_rejects_bad_log_level(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "VERBOSE")
        with pytest.raises(ValidationError):
            Settings()
