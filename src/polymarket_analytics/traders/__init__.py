"""Trader analytics: performance metrics, elite scoring and best bets."""

from polymarket_analytics.traders.best_bets import (
    BestBetsConfig,
    BestBetsEngine,
    best_bets_by_category,
    calculate_elite_consensus,
    calculate_recommendation_strength,
    trending_best_bets,
)
from polymarket_analytics.traders.metrics import (
    calculate_trader_metrics,
    metrics_from_wallet_trades,
    process_trades_into_positions,
)
from polymarket_analytics.traders.models import (
    BestBet,
    ClosedTrade,
    ElitePosition,
    MarketData,
    OpenPosition,
    PerformanceMetrics,
    PricePoint,
    RiskProfile,
    TopTrader,
    TraderMetrics,
    TraderScore,
    TraderTier,
    WalletTrade,
)
from polymarket_analytics.traders.performance import calculate_performance_metrics, entry_timing_score
from polymarket_analytics.traders.scoring import (
    TraderScorer,
    TraderScoringError,
    elite_traders,
    filter_by_tier,
    is_elite_trader,
    rank_traders,
    top_traders,
)

__all__ = [
    "BestBet",
    "BestBetsConfig",
    "BestBetsEngine",
    "ClosedTrade",
    "ElitePosition",
    "MarketData",
    "OpenPosition",
    "PerformanceMetrics",
    "PricePoint",
    "RiskProfile",
    "TopTrader",
    "TraderMetrics",
    "TraderScore",
    "TraderScorer",
    "TraderScoringError",
    "TraderTier",
    "WalletTrade",
    "best_bets_by_category",
    "calculate_elite_consensus",
    "calculate_performance_metrics",
    "calculate_recommendation_strength",
    "calculate_trader_metrics",
    "elite_traders",
    "entry_timing_score",
    "filter_by_tier",
    "is_elite_trader",
    "metrics_from_wallet_trades",
    "process_trades_into_positions",
    "rank_traders",
    "top_traders",
]
