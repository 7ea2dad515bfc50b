"""Data models for portfolio exposure analysis."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from polymarket_analytics.evidence import WhyBullets, bullets_to_dicts


@dataclass(frozen=True)
class PositionInput:
    """One open position in a wallet's portfolio.

    Attributes:
        market_id: Market the position is in.
        question: Market question text.
        category: Market category, if known.
        exposure: Signed USD value at risk.
        outcome: Outcome held (e.g. "yes").
    """

    market_id: str
    question: str
    category: str | None
    exposure: float
    outcome: str = "yes"


@dataclass(frozen=True)
class ClusterMember:
    market_id: str
    question: str
    exposure: float
    weight: float  # % of the cluster's absolute exposure

    def to_dict(self) -> dict[str, object]:
        return {
            "market_id": self.market_id,
            "question": self.question,
            "exposure": self.exposure,
            "weight": self.weight,
        }


@dataclass(frozen=True)
class ExposureClusterResult:
    """Positions that resolve on a shared theme.

    Attributes:
        cluster_id: Theme name, raw category or "Other Markets".
        label: Display name (same as the cluster id).
        exposure_pct: Share of the portfolio's absolute exposure (0 to 100).
        exposure_usd: Absolute USD exposure in the cluster.
        market_count: Number of positions in the cluster.
        confidence: ``min(100, 60 + 5 * market_count)``.
        why_bullets: Exactly three pieces of evidence.
        markets: Members ordered by absolute exposure, largest first.
    """

    cluster_id: str
    label: str
    exposure_pct: float
    exposure_usd: float
    market_count: int
    confidence: int
    why_bullets: WhyBullets
    markets: tuple[ClusterMember, ...]

    def to_dict(self) -> dict[str, object]:
        return {
            "cluster_id": self.cluster_id,
            "label": self.label,
            "exposure_pct": self.exposure_pct,
            "exposure_usd": self.exposure_usd,
            "market_count": self.market_count,
            "confidence": self.confidence,
            "why_bullets": bullets_to_dicts(self.why_bullets),
            "markets": [m.to_dict() for m in self.markets],
        }


@dataclass(frozen=True)
class PortfolioExposureResult:
    """Portfolio-level concentration summary.

    Attributes:
        wallet_id: Wallet analyzed.
        total_exposure: Sum of absolute position exposures (USD).
        clusters: Retained clusters, largest share first.
        concentration_risk: HHI of cluster shares scaled to 0-100.
        diversification_score: ``100 - concentration_risk``.
        top_cluster_exposure: Share of the largest cluster (0 to 100).
        computed_at: When the analysis ran.
    """

    wallet_id: str
    total_exposure: float
    clusters: tuple[ExposureClusterResult, ...]
    concentration_risk: int
    diversification_score: int
    top_cluster_exposure: float
    computed_at: datetime

    @property
    def top_cluster(self) -> ExposureClusterResult | None:
        return self.clusters[0] if self.clusters else None

    def to_dict(self) -> dict[str, object]:
        return {
            "wallet_id": self.wallet_id,
            "total_exposure": self.total_exposure,
            "clusters": [c.to_dict() for c in self.clusters],
            "concentration_risk": self.concentration_risk,
            "diversification_score": self.diversification_score,
            "top_cluster_exposure": self.top_cluster_exposure,
            "computed_at": self.computed_at.isoformat(),
        }


@dataclass(frozen=True)
class ExposureWarning:
    is_dangerous: bool
    warning: str | None
