"""Cross-market relation detection and consistency scoring."""

from polymarket_analytics.consistency.checker import (
    ConsistencyChecker,
    ConsistencyThresholds,
    question_similarity,
    tokenize,
)
from polymarket_analytics.consistency.models import (
    ConsistencyCheckResult,
    ConsistencyLabel,
    MarketPairInput,
    MarketRelationResult,
    RelationType,
)

__all__ = [
    "ConsistencyCheckResult",
    "ConsistencyChecker",
    "ConsistencyLabel",
    "ConsistencyThresholds",
    "MarketPairInput",
    "MarketRelationResult",
    "RelationType",
    "question_similarity",
    "tokenize",
]
