"""Analytics engine facade for Polymarket Analytics.

This module provides the AnalyticsEngine class that wires every classifier
from a single Settings instance, so callers configure thresholds once and
get consistently tuned results across markets, trades, portfolios and traders.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime

from polymarket_analytics.config import Settings, get_settings
from polymarket_analytics.consistency.checker import ConsistencyChecker
from polymarket_analytics.consistency.models import ConsistencyCheckResult, MarketPairInput
from polymarket_analytics.market.archetype import MarketArchetypeClassifier
from polymarket_analytics.market.clustering import BehaviorClusterClassifier
from polymarket_analytics.market.models import (
    ArchetypeResult,
    BehaviorDimensions,
    ClusterResult,
    HistoricalAverages,
    MarketFeaturesInput,
    MarketParticipationInput,
    MarketProfileInput,
    MarketQualityInput,
    MarketQualityResult,
    MarketStateLabel,
    MarketStateResult,
    ParticipationStructureResult,
)
from polymarket_analytics.market.participation import ParticipationAnalyzer
from polymarket_analytics.market.quality import MarketQualityScorer
from polymarket_analytics.market.state import MarketStateClassifier
from polymarket_analytics.portfolio.exposure import HiddenExposureAnalyzer
from polymarket_analytics.portfolio.models import (
    ExposureWarning,
    PortfolioExposureResult,
    PositionInput,
)
from polymarket_analytics.traders.best_bets import BestBetsEngine
from polymarket_analytics.traders.metrics import calculate_trader_metrics
from polymarket_analytics.traders.models import (
    BestBet,
    ClosedTrade,
    ElitePosition,
    MarketData,
    OpenPosition,
    PerformanceMetrics,
    PricePoint,
    TraderScore,
    WalletTrade,
)
from polymarket_analytics.traders.performance import calculate_performance_metrics
from polymarket_analytics.traders.scoring import TraderScorer
from polymarket_analytics.trades.flow import FlowClassifier
from polymarket_analytics.trades.models import (
    FlowEpisode,
    FlowLabelResult,
    MarketFlowSummary,
    TradeContext,
    TradeEvent,
    TradeInput,
    TradeReviewResult,
)
from polymarket_analytics.trades.review import TradeReviewScorer

logger = logging.getLogger(__name__)


@dataclass
class EngineStats:
    """Counters for results produced by the engine.

    Counters are plain integers updated without locking, so concurrent calls
    on one engine may lose increments. They are informational only and never
    feed back into any result.
    """

    markets_scored: int = 0
    market_states_classified: int = 0
    markets_profiled: int = 0
    participation_analyzed: int = 0
    trades_reviewed: int = 0
    flow_episodes_labelled: int = 0
    portfolios_analyzed: int = 0
    pairs_checked: int = 0
    inconsistencies_found: int = 0
    traders_scored: int = 0
    wallets_measured: int = 0
    best_bets_generated: int = 0


class AnalyticsEngine:
    """Single entry point for every Polymarket analytics classifier.

    Each classifier is built once from the settings group that tunes it.
    Every time-dependent operation accepts an explicit ``now``; when it is
    omitted the engine stamps the current UTC time and passes it down, so
    the classifiers themselves never read the clock.

    Example:
        ```python
        from polymarket_analytics.config import get_settings
        from polymarket_analytics.engine import AnalyticsEngine

        engine = AnalyticsEngine(get_settings())
        state = engine.classify_market_state(features, now=now)
        print(state.display_label, state.confidence)
        ```
    """

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize the engine.

        Args:
            settings: Configuration settings. If not provided, loads from environment.
        """
        self._settings = settings or get_settings()
        self._stats = EngineStats()

        self._quality_scorer = MarketQualityScorer()
        self._cluster_classifier = BehaviorClusterClassifier()
        self._archetype_classifier = MarketArchetypeClassifier()
        self._participation_analyzer = ParticipationAnalyzer()
        self._state_classifier = MarketStateClassifier(
            thresholds=self._settings.market_state.to_thresholds(),
        )
        self._trade_reviewer = TradeReviewScorer(
            thresholds=self._settings.trade_review.to_thresholds(),
        )
        self._flow_classifier = FlowClassifier(thresholds=self._settings.flow.to_thresholds())
        self._exposure_analyzer = HiddenExposureAnalyzer(
            thresholds=self._settings.exposure.to_thresholds(),
        )
        self._consistency_checker = ConsistencyChecker(
            thresholds=self._settings.consistency.to_thresholds(),
        )
        self._trader_scorer = TraderScorer()
        self._best_bets = BestBetsEngine(config=self._settings.best_bets.to_thresholds())

    @property
    def settings(self) -> Settings:
        """Settings the classifiers were built from."""
        return self._settings

    @property
    def stats(self) -> EngineStats:
        """Current engine statistics."""
        return self._stats

    @property
    def state_classifier(self) -> MarketStateClassifier:
        return self._state_classifier

    @property
    def flow_classifier(self) -> FlowClassifier:
        return self._flow_classifier

    @property
    def consistency_checker(self) -> ConsistencyChecker:
        return self._consistency_checker

    # Markets

    def score_market_quality(self, market: MarketQualityInput) -> MarketQualityResult:
        result = self._quality_scorer.score(market)
        self._stats.markets_scored += 1
        return result

    def classify_market_behavior(self, dims: BehaviorDimensions) -> ClusterResult:
        return self._cluster_classifier.classify(dims)

    def profile_market(
        self,
        market: MarketProfileInput,
        *,
        now: datetime | None = None,
    ) -> ArchetypeResult:
        """Match a market to an information-flow archetype."""
        now = now or datetime.now(UTC)
        result = self._archetype_classifier.classify(market, computed_at=now)
        self._stats.markets_profiled += 1
        return result

    def analyze_participation(
        self,
        market: MarketParticipationInput,
        *,
        now: datetime | None = None,
    ) -> ParticipationStructureResult:
        now = now or datetime.now(UTC)
        result = self._participation_analyzer.analyze(market, computed_at=now)
        self._stats.participation_analyzed += 1
        return result

    def classify_market_state(
        self,
        features: MarketFeaturesInput,
        *,
        historical: HistoricalAverages | None = None,
        now: datetime | None = None,
    ) -> MarketStateResult:
        now = now or datetime.now(UTC)
        result = self._state_classifier.classify(features, historical=historical, computed_at=now)
        self._stats.market_states_classified += 1
        return result

    def has_market_state_changed(
        self,
        previous: MarketStateResult | None,
        current: MarketStateResult,
    ) -> bool:
        """Compare two consecutive classifications of the same market."""
        previous_label: MarketStateLabel | None = previous.state_label if previous else None
        previous_confidence = previous.confidence if previous else 0
        return self._state_classifier.has_state_changed(
            previous_label,
            current.state_label,
            previous_confidence,
            current.confidence,
        )

    # Trades

    def review_trade(
        self,
        trade: TradeInput,
        context: TradeContext,
        *,
        now: datetime | None = None,
    ) -> TradeReviewResult:
        now = now or datetime.now(UTC)
        result = self._trade_reviewer.review(trade, context, computed_at=now)
        self._stats.trades_reviewed += 1
        return result

    def build_flow_episodes(self, market_id: str, trades: Sequence[TradeEvent]) -> list[FlowEpisode]:
        return self._flow_classifier.build_episodes(market_id, trades)

    def classify_flow_episode(
        self,
        episode: FlowEpisode,
        *,
        follow_up_price: float | None = None,
        now: datetime | None = None,
    ) -> FlowLabelResult:
        now = now or datetime.now(UTC)
        result = self._flow_classifier.classify(episode, follow_up_price=follow_up_price, computed_at=now)
        self._stats.flow_episodes_labelled += 1
        return result

    def summarize_market_flow(
        self,
        market_id: str,
        trades: Sequence[TradeEvent],
        *,
        now: datetime | None = None,
    ) -> MarketFlowSummary:
        now = now or datetime.now(UTC)
        summary = self._flow_classifier.summarize(market_id, trades, computed_at=now)
        self._stats.flow_episodes_labelled += len(summary.recent_episodes)
        return summary

    # Portfolio

    def analyze_exposure(
        self,
        wallet_id: str,
        positions: Sequence[PositionInput],
        *,
        now: datetime | None = None,
    ) -> tuple[PortfolioExposureResult, ExposureWarning]:
        """Cluster a wallet's positions and evaluate the concentration warning."""
        now = now or datetime.now(UTC)
        exposure = self._exposure_analyzer.analyze(wallet_id, positions, computed_at=now)
        warning = self._exposure_analyzer.is_exposure_dangerous(exposure)
        self._stats.portfolios_analyzed += 1
        if warning.is_dangerous:
            logger.info(
                "Wallet %s has dangerous exposure: %.1f%% in one cluster",
                wallet_id,
                exposure.top_cluster_exposure,
            )
        return exposure, warning

    # Consistency

    def check_market_pairs(
        self,
        pairs: Iterable[MarketPairInput],
        *,
        now: datetime | None = None,
    ) -> list[ConsistencyCheckResult]:
        """Check every related pair; unrelated pairs are skipped."""
        now = now or datetime.now(UTC)
        checked = 0
        results: list[ConsistencyCheckResult] = []
        for pair in pairs:
            checked += 1
            result = self._consistency_checker.evaluate(pair, computed_at=now)
            if result is None:
                continue
            if result.is_inconsistent:
                self._stats.inconsistencies_found += 1
            results.append(result)

        self._stats.pairs_checked += checked
        logger.info("Checked %d market pairs, %d related", checked, len(results))
        return results

    # Traders

    def score_traders(self, trades_by_wallet: Mapping[str, Sequence[ClosedTrade]]) -> dict[str, TraderScore]:
        """Compute metrics per wallet, then score and rank the wallets."""
        metrics = {wallet: calculate_trader_metrics(trades) for wallet, trades in trades_by_wallet.items()}
        scores = self._trader_scorer.score_batch(metrics)
        self._stats.traders_scored += len(scores)
        return scores

    def measure_performance(
        self,
        trades: Sequence[WalletTrade],
        positions: Sequence[OpenPosition] = (),
        price_history: Mapping[str, Sequence[PricePoint]] | None = None,
    ) -> PerformanceMetrics:
        metrics = calculate_performance_metrics(trades, positions, price_history)
        self._stats.wallets_measured += 1
        return metrics

    def generate_best_bets(
        self,
        markets: Iterable[MarketData],
        positions: Iterable[ElitePosition],
        scores: Mapping[str, TraderScore],
        *,
        now: datetime | None = None,
        category: str | None = None,
    ) -> list[BestBet]:
        now = now or datetime.now(UTC)
        bets = self._best_bets.generate(markets, positions, scores, now=now, category=category)
        self._stats.best_bets_generated += len(bets)
        return bets
