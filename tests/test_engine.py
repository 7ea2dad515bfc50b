"""Tests for the analytics engine facade."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import pytest

from polymarket_analytics.config import Settings
from polymarket_analytics.consistency.checker import ConsistencyChecker
from polymarket_analytics.consistency.models import ConsistencyCheckResult, MarketPairInput
from polymarket_analytics.engine import AnalyticsEngine
from polymarket_analytics.market.archetype import MarketArchetypeClassifier
from polymarket_analytics.market.models import (
    BehaviorCluster,
    BehaviorDimensions,
    MarketArchetype,
    MarketFeaturesInput,
    MarketParticipationInput,
    MarketProfileInput,
    MarketQualityInput,
    MarketStateLabel,
    MarketStateResult,
    SetupQualityBand,
)
from polymarket_analytics.market.participation import ParticipationAnalyzer
from polymarket_analytics.market.state import MarketStateClassifier
from polymarket_analytics.portfolio.exposure import HiddenExposureAnalyzer
from polymarket_analytics.portfolio.models import PortfolioExposureResult, PositionInput
from polymarket_analytics.traders.models import ClosedTrade, ElitePosition, MarketData, OpenPosition, WalletTrade
from polymarket_analytics.trades.models import (
    FlowLabelResult,
    TradeContext,
    TradeEvent,
    TradeInput,
    TradeReviewLabel,
    TradeReviewResult,
)
from polymarket_analytics.trades.review import TradeReviewScorer

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def engine() -> AnalyticsEngine:
    """Engine built from default settings."""
    return AnalyticsEngine(Settings())


def _trade_event(now: datetime, minutes: float, wallet: str, size: float = 1_000.0) -> TradeEvent:
    return TradeEvent(
        trade_id=f"tx_{minutes}",
        wallet_id=wallet,
        market_id="market_1",
        timestamp=now + timedelta(minutes=minutes),
        side="buy",
        outcome="yes",
        size=size,
        price=0.5,
    )


class TestEngineConfiguration:
    def test_classifiers_use_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FLOW_SESSION_GAP_MINUTES", "5")
        monkeypatch.setenv("MARKET_STATE_CONFIDENCE_CHANGE_DELTA", "50")
        engine = AnalyticsEngine(Settings())

        assert engine.flow_classifier.thresholds.session_gap_minutes == 5
        assert engine.state_classifier.thresholds.confidence_change_delta == 50

    def test_stats_start_at_zero(self, engine: AnalyticsEngine) -> None:
        assert engine.stats.markets_scored == 0
        assert engine.stats.best_bets_generated == 0


class TestReferenceTime:
    @pytest.mark.parametrize(
        "call",
        [
            lambda: MarketStateClassifier().classify(MarketFeaturesInput("market_1")),
            lambda: TradeReviewScorer().review(TradeInput("0xwallet", "market_1", NOW, "buy"), TradeContext()),
            lambda: ConsistencyChecker().evaluate(
                MarketPairInput("a", "Will the event happen?", 0.5, "b", "Will the event NOT happen?", 0.5)
            ),
            lambda: HiddenExposureAnalyzer().analyze("0xwallet", []),
            lambda: MarketArchetypeClassifier().classify(MarketProfileInput("market_1", "Will it rain?")),
            lambda: ParticipationAnalyzer().analyze(MarketParticipationInput("market_1", "yes")),
        ],
    )
    def test_classifiers_require_computed_at(self, call: Callable[[], object]) -> None:
        with pytest.raises(TypeError):
            call()

    @pytest.mark.parametrize(
        "model",
        [MarketStateResult, TradeReviewResult, FlowLabelResult, ConsistencyCheckResult, PortfolioExposureResult],
    )
    def test_results_have_no_clock_default(self, model: type) -> None:
        computed_at = next(f for f in dataclasses.fields(model) if f.name == "computed_at")
        assert computed_at.default is dataclasses.MISSING
        assert computed_at.default_factory is dataclasses.MISSING


class TestMarketOperations:
    def test_quality_and_behaviour(self, engine: AnalyticsEngine) -> None:
        quality = engine.score_market_quality(
            MarketQualityInput(
                spread=0.02,
                depth=25_000,
                volume_24h=40_000,
                staleness_hours=0.5,
                resolution_clarity=0.9,
            )
        )
        cluster = engine.classify_market_behavior(BehaviorDimensions(0.2, 0.5, 0.9, 0.5, 0.3))

        assert quality.score == pytest.approx(85.5)
        assert cluster.cluster is BehaviorCluster.STABLE_LIQUID
        assert engine.stats.markets_scored == 1

    def test_state_change_tracking(self, engine: AnalyticsEngine, now: datetime) -> None:
        calm = engine.classify_market_state(
            MarketFeaturesInput(
                "market_1", spread=0.01, depth=50_000, staleness_seconds=60, vol_proxy=0.5, trade_count=10
            ),
            now=now,
        )
        thin = engine.classify_market_state(
            MarketFeaturesInput(
                "market_1", spread=0.05, depth=2_000, staleness_seconds=600, vol_proxy=1.0, trade_count=2
            ),
            now=now,
        )

        assert calm.state_label is MarketStateLabel.CALM_LIQUID
        assert thin.state_label is MarketStateLabel.THIN_SLIPPAGE
        assert not engine.has_market_state_changed(None, calm)
        assert not engine.has_market_state_changed(calm, calm)
        assert engine.has_market_state_changed(calm, thin)
        assert engine.stats.market_states_classified == 2

    def test_profile_and_participation(self, engine: AnalyticsEngine, now: datetime) -> None:
        profile = engine.profile_market(
            MarketProfileInput("market_1", "Will Bitcoin hit $100k by December?", category="Crypto"),
            now=now,
        )
        participation = engine.analyze_participation(
            MarketParticipationInput(
                "market_1", "yes", liquidity=120_000, volume_24h=60_000, spread=0.008, depth=60_000
            ),
            now=now,
        )

        assert profile.archetype is MarketArchetype.HIGH_VOLATILITY
        assert profile.computed_at == now
        assert participation.setup_quality_band is SetupQualityBand.HISTORICALLY_FAVORABLE
        assert participation.computed_at == now
        assert engine.stats.markets_profiled == 1
        assert engine.stats.participation_analyzed == 1


class TestTradeOperations:
    def test_review_trade(self, engine: AnalyticsEngine, now: datetime) -> None:
        result = engine.review_trade(
            TradeInput("0xwallet", "market_1", now, "buy", notional=250),
            TradeContext(price_change_15m=0.10),
            now=now,
        )

        assert result.label is TradeReviewLabel.POOR_TIMING
        assert result.computed_at == now
        assert engine.stats.trades_reviewed == 1

    def test_flow_summary(self, engine: AnalyticsEngine, now: datetime) -> None:
        trades = [_trade_event(now, m, f"0xw{m}") for m in (0, 1, 60, 61)]
        episodes = engine.build_flow_episodes("market_1", trades)
        summary = engine.summarize_market_flow("market_1", trades, now=now)

        assert len(episodes) == 2
        assert len(summary.recent_episodes) == 2
        assert engine.stats.flow_episodes_labelled == 2

        engine.classify_flow_episode(episodes[0], follow_up_price=0.55, now=now)
        assert engine.stats.flow_episodes_labelled == 3

    def test_missing_now_is_stamped_by_engine(self, engine: AnalyticsEngine) -> None:
        before = datetime.now(UTC)
        result = engine.review_trade(
            TradeInput("0xwallet", "market_1", before, "buy", notional=250),
            TradeContext(spread_at_entry=0.01),
        )
        after = datetime.now(UTC)

        assert before <= result.computed_at <= after


class TestPortfolioOperations:
    def test_analyze_exposure(self, engine: AnalyticsEngine, now: datetime) -> None:
        positions = [
            PositionInput("m1", "Will Trump win the 2024 election?", "Politics", 9_000),
            PositionInput("m2", "Will the Senate flip?", "Politics", 1_000),
        ]
        exposure, warning = engine.analyze_exposure("0xwallet", positions, now=now)

        assert exposure.top_cluster_exposure == pytest.approx(100)
        assert warning.is_dangerous
        assert engine.stats.portfolios_analyzed == 1


class TestConsistencyOperations:
    def test_check_market_pairs(self, engine: AnalyticsEngine, now: datetime) -> None:
        pairs = [
            MarketPairInput("a", "Will the event happen?", 0.55, "b", "Will the event NOT happen?", 0.45),
            MarketPairInput("c", "Will the event happen?", 0.60, "d", "Will the event NOT happen?", 0.60),
            MarketPairInput(
                "e", "Will it snow in New York tomorrow?", 0.3, "f", "Will Lakers win the NBA championship?", 0.2
            ),
        ]
        results = engine.check_market_pairs(pairs, now=now)

        assert [r.a_market_id for r in results] == ["a", "c"]
        assert all(r.computed_at == now for r in results)
        assert engine.stats.pairs_checked == 3
        assert engine.stats.inconsistencies_found == 1

    def test_each_batch_logs_its_own_size(
        self,
        engine: AnalyticsEngine,
        now: datetime,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        inverse = MarketPairInput("a", "Will the event happen?", 0.55, "b", "Will the event NOT happen?", 0.45)

        with caplog.at_level(logging.INFO, logger="polymarket_analytics.engine"):
            engine.check_market_pairs([inverse, inverse, inverse], now=now)
            engine.check_market_pairs([inverse], now=now)

        messages = [r.getMessage() for r in caplog.records if r.name == "polymarket_analytics.engine"]
        assert messages == ["Checked 3 market pairs, 3 related", "Checked 1 market pairs, 1 related"]
        assert engine.stats.pairs_checked == 4


class TestTraderOperations:
    def test_score_traders_and_best_bets(self, engine: AnalyticsEngine, now: datetime) -> None:
        def winning_history(count: int) -> list[ClosedTrade]:
            return [
                ClosedTrade(
                    market_id=f"m{i}",
                    outcome="yes",
                    entry_price=0.5,
                    exit_price=0.6,
                    size=1_000,
                    profit=100 + i,
                    timestamp=now - timedelta(days=count - i),
                )
                for i in range(count)
            ]

        scores = engine.score_traders({"0xa": winning_history(30), "0xb": winning_history(5)})

        assert scores["0xa"].rank == 1
        assert scores["0xb"].rank == 2
        assert engine.stats.traders_scored == 2

        market = MarketData("m", "Will the incumbent win?", 0.40, category="Politics")
        positions = [
            ElitePosition(wallet, "m", "yes", 0.35, 1_000, now - timedelta(minutes=30)) for wallet in ("0xa", "0xb")
        ]
        bets = engine.generate_best_bets([market], positions, scores, now=now)

        assert [b.market_id for b in bets] == ["m"]
        assert bets[0].recommended_side == "yes"
        assert engine.stats.best_bets_generated == 1

    def test_measure_performance(self, engine: AnalyticsEngine, now: datetime) -> None:
        trades = [
            WalletTrade("m1", "yes", "buy", 0.40, 100, now - timedelta(hours=2)),
            WalletTrade("m1", "yes", "sell", 0.60, 100, now - timedelta(hours=1)),
        ]
        positions = [OpenPosition("m2", "no", 50, avg_entry_price=0.30, current_price=0.20)]

        metrics = engine.measure_performance(trades, positions)

        assert metrics.realized_pnl == pytest.approx(20)
        assert metrics.unrealized_pnl == pytest.approx(-5)
        assert metrics.win_rate == 1.0
        assert engine.stats.wallets_measured == 1
