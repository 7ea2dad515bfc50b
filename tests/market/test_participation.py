"""Tests for participation structure analysis."""

from __future__ import annotations

from datetime import datetime

import pytest

from polymarket_analytics.market.models import (
    MarketParticipationInput,
    ParticipantQualityBand,
    ParticipationBreakdown,
    ParticipationSummary,
    SetupQualityBand,
)
from polymarket_analytics.market.participation import (
    ParticipationAnalyzer,
    analyze_participation_structure,
    participant_quality_band,
    participant_quality_score,
    participation_breakdown,
    participation_summary,
    setup_quality_band,
    setup_quality_score,
)

DEEP_MARKET = MarketParticipationInput(
    "market_1",
    "yes",
    liquidity=120_000,
    volume_24h=60_000,
    spread=0.008,
    depth=60_000,
)


class TestSetupQualityScore:
    def test_deep_market_clamps_to_100(self) -> None:
        assert setup_quality_score(DEEP_MARKET) == 100

    def test_no_data_is_neutral(self) -> None:
        assert setup_quality_score(MarketParticipationInput("market_1", "yes")) == 50

    def test_wide_spread_and_unstable_price(self) -> None:
        market = MarketParticipationInput("market_1", "no", liquidity=2_000, spread=0.15, price_stability=0)
        # liquidity 5 - spread 15 - price stability 10
        assert setup_quality_score(market) == 30

    def test_historical_stability_replaces_volume_tiers(self) -> None:
        market = MarketParticipationInput(
            "market_1",
            "yes",
            volume_24h=60_000,
            volume_consistency=50,
            liquidity_stability=70,
            price_stability=82,
        )
        # consistency 7 + liquidity stability 10 + price stability 6
        assert setup_quality_score(market) == 73


class TestParticipantQualityScore:
    def test_reported_large_share(self) -> None:
        market = MarketParticipationInput(
            "market_1",
            "yes",
            volume_24h=150_000,
            unique_traders=150,
            large_trade_count=30,
            total_trade_count=100,
            large_trader_volume_pct=60,
        )
        # large share 15 + traders 15 + large trades 4 + volume 10
        assert participant_quality_score(market) == 94

    @pytest.mark.parametrize(("avg_trade_size", "expected"), [(1_500, 80), (600, 75), (150, 65), (50, 55)])
    def test_average_trade_size_tiers(self, avg_trade_size: float, expected: int) -> None:
        market = MarketParticipationInput("market_1", "yes", avg_trade_size=avg_trade_size, unique_traders=30)
        assert participant_quality_score(market) == expected

    def test_volume_only(self) -> None:
        assert participant_quality_score(DEEP_MARKET) == 57


class TestBands:
    @pytest.mark.parametrize(
        ("score", "band"),
        [
            (100, SetupQualityBand.HISTORICALLY_FAVORABLE),
            (80, SetupQualityBand.HISTORICALLY_FAVORABLE),
            (79, SetupQualityBand.MIXED_WORKABLE),
            (60, SetupQualityBand.MIXED_WORKABLE),
            (40, SetupQualityBand.NEUTRAL),
            (39, SetupQualityBand.HISTORICALLY_UNFORGIVING),
        ],
    )
    def test_setup_bands(self, score: int, band: SetupQualityBand) -> None:
        assert setup_quality_band(score) is band

    @pytest.mark.parametrize(
        ("score", "band"),
        [
            (70, ParticipantQualityBand.STRONG),
            (69, ParticipantQualityBand.MODERATE),
            (45, ParticipantQualityBand.MODERATE),
            (44, ParticipantQualityBand.LIMITED),
        ],
    )
    def test_participant_bands(self, score: int, band: ParticipantQualityBand) -> None:
        assert participant_quality_band(score) is band

    def test_labels(self) -> None:
        assert SetupQualityBand.MIXED_WORKABLE.display_label == "Mixed but Workable"
        assert ParticipantQualityBand.LIMITED.display_label == "Limited Participation"


class TestParticipationBreakdown:
    @pytest.mark.parametrize(
        ("pcts", "expected"),
        [
            ((60, 25, 15), (60, 25, 15)),
            ((120, 60, 20), (60, 30, 10)),
            ((1, 1, 1), (33, 33, 34)),
            ((0, 0, 0), (33, 33, 34)),
        ],
    )
    def test_reported_shares_are_normalised(
        self,
        pcts: tuple[float, float, float],
        expected: tuple[int, int, int],
    ) -> None:
        large, mid, small = pcts
        market = MarketParticipationInput(
            "market_1",
            "yes",
            large_trader_volume_pct=large,
            mid_trader_volume_pct=mid,
            small_trader_volume_pct=small,
        )
        breakdown = participation_breakdown(market)

        assert (breakdown.large_pct, breakdown.mid_pct, breakdown.small_pct) == expected

    @pytest.mark.parametrize(
        ("avg_trade_size", "unique_traders", "expected"),
        [
            (None, None, (30, 40, 30)),
            (600, None, (50, 35, 15)),
            (20, None, (10, 30, 60)),
            (None, 5, (50, 40, 10)),
            (None, 150, (15, 40, 45)),
            (20, 150, (9, 27, 64)),
        ],
    )
    def test_estimated_shares(
        self,
        avg_trade_size: float | None,
        unique_traders: int | None,
        expected: tuple[int, int, int],
    ) -> None:
        market = MarketParticipationInput(
            "market_1",
            "yes",
            avg_trade_size=avg_trade_size,
            unique_traders=unique_traders,
        )
        breakdown = participation_breakdown(market)

        assert (breakdown.large_pct, breakdown.mid_pct, breakdown.small_pct) == expected
        assert breakdown.large_pct + breakdown.mid_pct + breakdown.small_pct == 100

    def test_partial_report_falls_back_to_estimate(self) -> None:
        market = MarketParticipationInput("market_1", "yes", large_trader_volume_pct=90, avg_trade_size=20)
        assert participation_breakdown(market) == ParticipationBreakdown(10, 30, 60)

    @pytest.mark.parametrize(
        ("breakdown", "summary"),
        [
            (ParticipationBreakdown(50, 35, 15), ParticipationSummary.FEW_DOMINANT),
            (ParticipationBreakdown(10, 30, 60), ParticipationSummary.BROAD_RETAIL),
            (ParticipationBreakdown(30, 40, 30), ParticipationSummary.MIXED_PARTICIPATION),
        ],
    )
    def test_summary(self, breakdown: ParticipationBreakdown, summary: ParticipationSummary) -> None:
        assert participation_summary(breakdown) is summary


class TestParticipationAnalyzer:
    def test_deep_market(self, now: datetime) -> None:
        result = ParticipationAnalyzer().analyze(DEEP_MARKET, computed_at=now)

        assert result.setup_quality_score == 100
        assert result.setup_quality_band is SetupQualityBand.HISTORICALLY_FAVORABLE
        assert result.participant_quality_score == 57
        assert result.participant_quality_band is ParticipantQualityBand.MODERATE
        assert result.participation_summary is ParticipationSummary.MIXED_PARTICIPATION
        assert result.behavior_insight == "Balanced participation has historically supported stable trading conditions."
        assert result.computed_at == now

    def test_why_bullets(self, now: datetime) -> None:
        result = ParticipationAnalyzer().analyze(DEEP_MARKET, computed_at=now)

        assert [b.text for b in result.why_bullets] == [
            "Setup quality: Historically Favorable",
            "Participant quality: Moderate Participation",
            "Volume is spread across large, mid and small participants",
        ]
        assert result.why_bullets[2].value == 30
        assert result.why_bullets[2].comparison == "30% small"

    def test_retail_market_insight(self, now: datetime) -> None:
        market = MarketParticipationInput("market_1", "no", spread=0.15, avg_trade_size=20)
        result = analyze_participation_structure(market, computed_at=now)

        assert result.setup_quality_band is SetupQualityBand.HISTORICALLY_UNFORGIVING
        assert result.participation_summary is ParticipationSummary.BROAD_RETAIL
        assert result.behavior_insight.startswith("Retail-dominated markets")

    def test_to_dict(self, now: datetime) -> None:
        data = ParticipationAnalyzer().analyze(DEEP_MARKET, computed_at=now).to_dict()

        assert data["setup_quality_label"] == "Historically Favorable"
        assert data["participant_quality_label"] == "Moderate Participation"
        assert data["breakdown"] == {"large_pct": 30, "mid_pct": 40, "small_pct": 30}
        assert len(data["why_bullets"]) == 3
        assert data["computed_at"] == now.isoformat()
