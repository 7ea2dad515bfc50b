"""Configuration management service with Pydantic Settings.

This module provides centralized configuration for the Polymarket Analytics
engine. Every classifier threshold can be overridden from environment
variables (or a ``.env`` file); each settings group converts to the frozen
thresholds dataclass its classifier consumes.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from polymarket_analytics.consistency.checker import ConsistencyThresholds
from polymarket_analytics.market.state import MarketStateThresholds
from polymarket_analytics.portfolio.exposure import ExposureThresholds
from polymarket_analytics.traders.best_bets import BestBetsConfig
from polymarket_analytics.trades.flow import FlowThresholds
from polymarket_analytics.trades.review import TradeReviewThresholds

_ENV_FILE = ".env"
_ENV_FILE_ENCODING = "utf-8"


class MarketStateSettings(BaseSettings):
    """Market state classifier thresholds."""

    model_config = SettingsConfigDict(env_prefix="MARKET_STATE_", extra="ignore")

    spread_thin: float = Field(
        default=0.03,
        alias="MARKET_STATE_SPREAD_THIN",
        ge=0.0,
        le=1.0,
        description="Spread above this is no longer tight",
    )
    spread_jumpy: float = Field(
        default=0.08,
        alias="MARKET_STATE_SPREAD_JUMPY",
        ge=0.0,
        le=1.0,
        description="Spread above this signals event-driven uncertainty",
    )
    depth_low: float = Field(
        default=5_000.0,
        alias="MARKET_STATE_DEPTH_LOW",
        ge=0.0,
        description="Depth (USD) below this is thin",
    )
    depth_medium: float = Field(
        default=20_000.0,
        alias="MARKET_STATE_DEPTH_MEDIUM",
        ge=0.0,
        description="Depth (USD) above this is deep",
    )
    staleness_medium: float = Field(
        default=300.0,
        alias="MARKET_STATE_STALENESS_MEDIUM",
        ge=0.0,
        description="Seconds since last trade before the market counts as quiet",
    )
    staleness_high: float = Field(
        default=900.0,
        alias="MARKET_STATE_STALENESS_HIGH",
        ge=0.0,
        description="Seconds since last trade before the market counts as stale",
    )
    vol_high: float = Field(
        default=1.5,
        alias="MARKET_STATE_VOL_HIGH",
        gt=0.0,
        description="Volatility proxy above this is elevated",
    )
    vol_extreme: float = Field(
        default=3.0,
        alias="MARKET_STATE_VOL_EXTREME",
        gt=0.0,
        description="Volatility proxy above this is extreme",
    )
    state_change_persistence: int = Field(
        default=2,
        alias="MARKET_STATE_CHANGE_PERSISTENCE",
        ge=1,
        description="Consecutive observations a new state must hold before it replaces the persisted one",
    )
    confidence_change_delta: float = Field(
        default=20.0,
        alias="MARKET_STATE_CONFIDENCE_CHANGE_DELTA",
        ge=0.0,
        le=100.0,
        description="Confidence shift that counts as a state change on the same label",
    )

    @model_validator(mode="after")
    def validate_tiers(self) -> MarketStateSettings:
        """Validate that each tier pair is ordered."""
        if self.spread_thin >= self.spread_jumpy:
            raise ValueError("MARKET_STATE_SPREAD_THIN must be < MARKET_STATE_SPREAD_JUMPY")
        if self.depth_low >= self.depth_medium:
            raise ValueError("MARKET_STATE_DEPTH_LOW must be < MARKET_STATE_DEPTH_MEDIUM")
        if self.staleness_medium >= self.staleness_high:
            raise ValueError("MARKET_STATE_STALENESS_MEDIUM must be < MARKET_STATE_STALENESS_HIGH")
        if self.vol_high >= self.vol_extreme:
            raise ValueError("MARKET_STATE_VOL_HIGH must be < MARKET_STATE_VOL_EXTREME")
        return self

    def to_thresholds(self) -> MarketStateThresholds:
        return MarketStateThresholds(
            spread_thin=self.spread_thin,
            spread_jumpy=self.spread_jumpy,
            depth_low=self.depth_low,
            depth_medium=self.depth_medium,
            staleness_medium=self.staleness_medium,
            staleness_high=self.staleness_high,
            vol_high=self.vol_high,
            vol_extreme=self.vol_extreme,
            state_change_persistence=self.state_change_persistence,
            confidence_change_delta=self.confidence_change_delta,
        )


class TradeReviewSettings(BaseSettings):
    """Trade execution review thresholds."""

    model_config = SettingsConfigDict(env_prefix="TRADE_REVIEW_", extra="ignore")

    spread_good: float = Field(default=0.02, alias="TRADE_REVIEW_SPREAD_GOOD", ge=0.0, le=1.0)
    spread_bad: float = Field(default=0.05, alias="TRADE_REVIEW_SPREAD_BAD", ge=0.0, le=1.0)
    depth_good: float = Field(default=20_000.0, alias="TRADE_REVIEW_DEPTH_GOOD", ge=0.0)
    depth_bad: float = Field(default=5_000.0, alias="TRADE_REVIEW_DEPTH_BAD", ge=0.0)
    chasing_threshold: float = Field(
        default=0.03,
        alias="TRADE_REVIEW_CHASING_THRESHOLD",
        gt=0.0,
        le=1.0,
        description="Pre-entry price move (fraction) that counts as chasing",
    )
    adverse_threshold: float = Field(
        default=-0.02,
        alias="TRADE_REVIEW_ADVERSE_THRESHOLD",
        ge=-1.0,
        le=0.0,
        description="Pre-entry move against the trade direction",
    )
    expected_slippage_bps: float = Field(
        default=50.0,
        alias="TRADE_REVIEW_EXPECTED_SLIPPAGE_BPS",
        ge=0.0,
        le=10_000.0,
        description="Half-spread cost (bps) above which a fill is flagged as expensive",
    )

    @model_validator(mode="after")
    def validate_tiers(self) -> TradeReviewSettings:
        """Validate good/bad tier ordering."""
        if self.spread_good >= self.spread_bad:
            raise ValueError("TRADE_REVIEW_SPREAD_GOOD must be < TRADE_REVIEW_SPREAD_BAD")
        if self.depth_bad >= self.depth_good:
            raise ValueError("TRADE_REVIEW_DEPTH_BAD must be < TRADE_REVIEW_DEPTH_GOOD")
        return self

    def to_thresholds(self) -> TradeReviewThresholds:
        return TradeReviewThresholds(
            spread_good=self.spread_good,
            spread_bad=self.spread_bad,
            depth_good=self.depth_good,
            depth_bad=self.depth_bad,
            chasing_threshold=self.chasing_threshold,
            adverse_threshold=self.adverse_threshold,
            expected_slippage_bps=self.expected_slippage_bps,
        )


class FlowSettings(BaseSettings):
    """Flow episode builder and classifier thresholds."""

    model_config = SettingsConfigDict(env_prefix="FLOW_", extra="ignore")

    session_gap_minutes: float = Field(
        default=30.0,
        alias="FLOW_SESSION_GAP_MINUTES",
        gt=0.0,
        le=24 * 60,
        description="Quiet gap that splits two episodes",
    )
    min_trades_for_episode: int = Field(default=2, alias="FLOW_MIN_TRADES_FOR_EPISODE", ge=1)
    spike_min_size: float = Field(
        default=10_000.0,
        alias="FLOW_SPIKE_MIN_SIZE",
        gt=0.0,
        description="Average trade size (USD) that marks a whale spike",
    )
    accumulation_min_trades: int = Field(default=5, alias="FLOW_ACCUMULATION_MIN_TRADES", ge=1)
    crowd_min_wallets: int = Field(default=5, alias="FLOW_CROWD_MIN_WALLETS", ge=1)
    exhaustion_price_threshold: float = Field(
        default=0.85,
        alias="FLOW_EXHAUSTION_PRICE_THRESHOLD",
        description="Price level (or its complement) treated as extreme",
    )
    follow_up_window_minutes: float = Field(
        default=60.0,
        alias="FLOW_FOLLOW_UP_WINDOW_MINUTES",
        gt=0.0,
        description="Minutes after an episode in which the follow-up price is taken",
    )

    @field_validator("exhaustion_price_threshold")
    @classmethod
    def validate_exhaustion_price_threshold(cls, v: float) -> float:
        if not 0.5 < v < 1.0:
            raise ValueError("FLOW_EXHAUSTION_PRICE_THRESHOLD must be between 0.5 and 1.0")
        return v

    def to_thresholds(self) -> FlowThresholds:
        return FlowThresholds(
            session_gap_minutes=self.session_gap_minutes,
            min_trades_for_episode=self.min_trades_for_episode,
            spike_min_size=self.spike_min_size,
            accumulation_min_trades=self.accumulation_min_trades,
            crowd_min_wallets=self.crowd_min_wallets,
            exhaustion_price_threshold=self.exhaustion_price_threshold,
            follow_up_window_minutes=self.follow_up_window_minutes,
        )


class ExposureSettings(BaseSettings):
    """Hidden exposure analyzer thresholds."""

    model_config = SettingsConfigDict(env_prefix="EXPOSURE_", extra="ignore")

    concentration_warning: float = Field(
        default=40.0,
        alias="EXPOSURE_CONCENTRATION_WARNING",
        ge=0.0,
        le=100.0,
        description="Top cluster share (%) that triggers a soft warning",
    )
    concentration_danger: float = Field(
        default=60.0,
        alias="EXPOSURE_CONCENTRATION_DANGER",
        ge=0.0,
        le=100.0,
        description="Top cluster share (%) considered dangerous",
    )
    min_markets_for_cluster: int = Field(default=2, alias="EXPOSURE_MIN_MARKETS_FOR_CLUSTER", ge=1)
    max_cluster_count: int = Field(default=10, alias="EXPOSURE_MAX_CLUSTER_COUNT", ge=1, le=100)

    @model_validator(mode="after")
    def validate_levels(self) -> ExposureSettings:
        if self.concentration_warning >= self.concentration_danger:
            raise ValueError("EXPOSURE_CONCENTRATION_WARNING must be < EXPOSURE_CONCENTRATION_DANGER")
        return self

    def to_thresholds(self) -> ExposureThresholds:
        return ExposureThresholds(
            concentration_warning=self.concentration_warning,
            concentration_danger=self.concentration_danger,
            min_markets_for_cluster=self.min_markets_for_cluster,
            max_cluster_count=self.max_cluster_count,
        )


class ConsistencySettings(BaseSettings):
    """Consistency checker thresholds."""

    model_config = SettingsConfigDict(env_prefix="CONSISTENCY_", extra="ignore")

    similarity_threshold: float = Field(
        default=0.6,
        alias="CONSISTENCY_SIMILARITY_THRESHOLD",
        ge=0.0,
        le=1.0,
        description="Minimum question similarity for two markets to be related",
    )
    date_proximity_days: float = Field(default=90.0, alias="CONSISTENCY_DATE_PROXIMITY_DAYS", gt=0.0)
    inverted_divergence: float = Field(
        default=0.1,
        alias="CONSISTENCY_INVERTED_DIVERGENCE",
        ge=0.0,
        le=1.0,
        description="Allowed deviation of an inverse pair's price sum from 1.0",
    )
    calendar_spread: float = Field(
        default=0.15,
        alias="CONSISTENCY_CALENDAR_SPREAD",
        ge=0.0,
        le=1.0,
        description="Allowed price spread between date variants",
    )

    def to_thresholds(self) -> ConsistencyThresholds:
        return ConsistencyThresholds(
            similarity_threshold=self.similarity_threshold,
            date_proximity_days=self.date_proximity_days,
            inverted_divergence=self.inverted_divergence,
            calendar_spread=self.calendar_spread,
        )


class BestBetsSettings(BaseSettings):
    """Best-bets recommendation filters."""

    model_config = SettingsConfigDict(env_prefix="BEST_BETS_", extra="ignore")

    min_elite_traders: int = Field(default=2, alias="BEST_BETS_MIN_ELITE_TRADERS", ge=1)
    min_confidence: float = Field(default=50.0, alias="BEST_BETS_MIN_CONFIDENCE", ge=0.0, le=100.0)
    max_results: int = Field(default=10, alias="BEST_BETS_MAX_RESULTS", ge=1, le=1_000)
    high_confidence: float = Field(default=75.0, alias="BEST_BETS_HIGH_CONFIDENCE", ge=0.0, le=100.0)

    def to_thresholds(self) -> BestBetsConfig:
        return BestBetsConfig(
            min_elite_traders=self.min_elite_traders,
            min_confidence=self.min_confidence,
            max_results=self.max_results,
            high_confidence=self.high_confidence,
        )


class Settings(BaseSettings):
    """Main application settings.

    Loads configuration from environment variables with support for
    .env files via python-dotenv.

    Example:
        ```python
        from polymarket_analytics.config import get_settings

        settings = get_settings()
        print(settings.flow.session_gap_minutes)
        print(settings.log_level)
        ```
    """

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE,
        env_file_encoding=_ENV_FILE_ENCODING,
        extra="ignore",
    )

    # NOTE: Each nested BaseSettings must be given the same env_file, otherwise it
    # will only read from the process environment (and ignore `.env`).
    market_state: MarketStateSettings = Field(
        default_factory=lambda: MarketStateSettings(
            _env_file=_ENV_FILE,
            _env_file_encoding=_ENV_FILE_ENCODING,
        )
    )
    trade_review: TradeReviewSettings = Field(
        default_factory=lambda: TradeReviewSettings(
            _env_file=_ENV_FILE,
            _env_file_encoding=_ENV_FILE_ENCODING,
        )
    )
    flow: FlowSettings = Field(
        default_factory=lambda: FlowSettings(
            _env_file=_ENV_FILE,
            _env_file_encoding=_ENV_FILE_ENCODING,
        )
    )
    exposure: ExposureSettings = Field(
        default_factory=lambda: ExposureSettings(
            _env_file=_ENV_FILE,
            _env_file_encoding=_ENV_FILE_ENCODING,
        )
    )
    consistency: ConsistencySettings = Field(
        default_factory=lambda: ConsistencySettings(
            _env_file=_ENV_FILE,
            _env_file_encoding=_ENV_FILE_ENCODING,
        )
    )
    best_bets: BestBetsSettings = Field(
        default_factory=lambda: BestBetsSettings(
            _env_file=_ENV_FILE,
            _env_file_encoding=_ENV_FILE_ENCODING,
        )
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level",
    )

    def get_logging_level(self) -> int:
        """Get the numeric logging level."""
        level: int = getattr(logging, self.log_level)
        return level

    def summary(self) -> dict[str, dict[str, str]]:
        """Get the effective thresholds, grouped by classifier."""
        groups = {
            "market_state": self.market_state,
            "trade_review": self.trade_review,
            "flow": self.flow,
            "exposure": self.exposure,
            "consistency": self.consistency,
            "best_bets": self.best_bets,
        }
        return {name: {k: str(v) for k, v in group.model_dump().items()} for name, group in groups.items()}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the application settings singleton.

    Uses LRU cache to ensure settings are loaded only once and
    reused across the application.

    Returns:
        The Settings instance.

    Raises:
        ValidationError: If environment variables have invalid values.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Useful for testing when you need to reload settings with
    different environment variables.
    """
    get_settings.cache_clear()
