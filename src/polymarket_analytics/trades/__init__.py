"""Trade-level analytics: execution review and flow episodes."""

from polymarket_analytics.trades.flow import (
    FlowClassifier,
    FlowClassifierError,
    FlowThresholds,
    build_flow_episodes,
    classify_flow_episode,
    summarize_market_flow,
)
from polymarket_analytics.trades.models import (
    FlowEpisode,
    FlowLabel,
    FlowLabelResult,
    MarketFlowSummary,
    TradeContext,
    TradeEvent,
    TradeInput,
    TradeReviewLabel,
    TradeReviewResult,
)
from polymarket_analytics.trades.review import TradeReviewScorer, TradeReviewThresholds

__all__ = [
    "FlowClassifier",
    "FlowClassifierError",
    "FlowEpisode",
    "FlowLabel",
    "FlowLabelResult",
    "FlowThresholds",
    "MarketFlowSummary",
    "TradeContext",
    "TradeEvent",
    "TradeInput",
    "TradeReviewLabel",
    "TradeReviewResult",
    "TradeReviewScorer",
    "TradeReviewThresholds",
    "build_flow_episodes",
    "classify_flow_episode",
    "summarize_market_flow",
]
