"""Portfolio analytics: hidden thematic exposure."""

from polymarket_analytics.portfolio.exposure import (
    CATEGORY_CLUSTERS,
    ExposureThresholds,
    HiddenExposureAnalyzer,
    assign_cluster,
    concentration_index,
    is_exposure_dangerous,
)
from polymarket_analytics.portfolio.models import (
    ClusterMember,
    ExposureClusterResult,
    ExposureWarning,
    PortfolioExposureResult,
    PositionInput,
)

__all__ = [
    "CATEGORY_CLUSTERS",
    "ClusterMember",
    "ExposureClusterResult",
    "ExposureThresholds",
    "ExposureWarning",
    "HiddenExposureAnalyzer",
    "PortfolioExposureResult",
    "PositionInput",
    "assign_cluster",
    "concentration_index",
    "is_exposure_dangerous",
]
