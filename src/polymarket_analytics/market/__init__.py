"""Market-level classifiers: quality, behaviour cluster, archetype, participation and live state."""

from polymarket_analytics.market.archetype import MarketArchetypeClassifier, compute_dimensions
from polymarket_analytics.market.clustering import BehaviorClusterClassifier, cluster_description
from polymarket_analytics.market.models import (
    ArchetypeResult,
    BehaviorCluster,
    BehaviorDimensions,
    ClusterResult,
    HistoricalAverages,
    InformationDimensions,
    MarketArchetype,
    MarketFeaturesInput,
    MarketGrade,
    MarketParticipationInput,
    MarketProfileInput,
    MarketQualityInput,
    MarketQualityResult,
    MarketStateLabel,
    MarketStateResult,
    ParticipantQualityBand,
    ParticipationBreakdown,
    ParticipationStructureResult,
    ParticipationSummary,
    SetupQualityBand,
)
from polymarket_analytics.market.participation import ParticipationAnalyzer, analyze_participation_structure
from polymarket_analytics.market.quality import MarketQualityScorer, grade_for_score
from polymarket_analytics.market.state import (
    MarketStateClassifier,
    MarketStateThresholds,
    has_state_changed,
    is_transition_confirmed,
)

__all__ = [
    "ArchetypeResult",
    "BehaviorCluster",
    "BehaviorClusterClassifier",
    "BehaviorDimensions",
    "ClusterResult",
    "HistoricalAverages",
    "InformationDimensions",
    "MarketArchetype",
    "MarketArchetypeClassifier",
    "MarketFeaturesInput",
    "MarketGrade",
    "MarketParticipationInput",
    "MarketProfileInput",
    "MarketQualityInput",
    "MarketQualityResult",
    "MarketQualityScorer",
    "MarketStateClassifier",
    "MarketStateLabel",
    "MarketStateResult",
    "MarketStateThresholds",
    "ParticipantQualityBand",
    "ParticipationAnalyzer",
    "ParticipationBreakdown",
    "ParticipationStructureResult",
    "ParticipationSummary",
    "SetupQualityBand",
    "analyze_participation_structure",
    "cluster_description",
    "compute_dimensions",
    "grade_for_score",
    "has_state_changed",
    "is_transition_confirmed",
]
