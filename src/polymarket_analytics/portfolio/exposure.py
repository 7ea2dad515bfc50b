"""Hidden exposure analysis.

Positions that look unrelated often resolve on the same underlying theme.
Grouping them by keyword and category reveals how concentrated a portfolio
really is.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from polymarket_analytics.evidence import WhyBullet, round_half_up
from polymarket_analytics.portfolio.models import (
    ClusterMember,
    ExposureClusterResult,
    ExposureWarning,
    PortfolioExposureResult,
    PositionInput,
)

logger = logging.getLogger(__name__)

OTHER_MARKETS_CLUSTER = "Other Markets"
TOP_MARKET_QUESTION_CHARS = 50

# Checked in order; the first matching theme wins.
CATEGORY_CLUSTERS: dict[str, tuple[str, ...]] = {
    "US Politics 2024": (
        "trump", "biden", "election", "president", "congress",
        "senate", "republican", "democrat", "gop", "dnc",
    ),
    "Crypto Markets": ("bitcoin", "btc", "ethereum", "eth", "crypto", "solana", "defi", "blockchain"),
    "Sports Outcomes": ("nfl", "nba", "mlb", "super bowl", "championship", "playoffs", "world series", "ufc"),
    "Tech Industry": ("apple", "google", "microsoft", "tesla", "ai", "openai", "nvidia", "meta"),
    "Economics & Fed": ("fed", "interest rate", "inflation", "gdp", "recession", "unemployment", "cpi"),
    "Entertainment": ("oscar", "grammy", "emmy", "movie", "netflix", "award", "celebrity"),
    "International Politics": ("ukraine", "russia", "china", "nato", "eu", "uk", "brexit"),
    "Climate & Weather": ("climate", "hurricane", "temperature", "weather", "el nino"),
}


@dataclass(frozen=True)
class ExposureThresholds:
    concentration_warning: float = 40.0
    concentration_danger: float = 60.0
    min_markets_for_cluster: int = 2
    max_cluster_count: int = 10


def assign_cluster(position: PositionInput) -> str:
    """Return the cluster id for a position.

    Theme keywords are matched as substrings of the lowercased question and
    category. Without a match the raw category is used, then "Other Markets".
    """
    question = position.question.lower()
    category = (position.category or "").lower()
    for theme, keywords in CATEGORY_CLUSTERS.items():
        for keyword in keywords:
            if keyword in question or keyword in category:
                return theme
    if position.category:
        return position.category
    return OTHER_MARKETS_CLUSTER


def concentration_index(exposure_pcts: Sequence[float]) -> int:
    """Herfindahl-Hirschman index of cluster shares, scaled to 0-100."""
    if not exposure_pcts:
        return 0
    sum_squares = sum((pct / 100) ** 2 for pct in exposure_pcts)
    return min(100, round_half_up(sum_squares * 100))


def _truncate(text: str, limit: int = TOP_MARKET_QUESTION_CHARS) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


class HiddenExposureAnalyzer:
    """Clusters a wallet's positions by theme and measures concentration.

    Example:
        ```python
        analyzer = HiddenExposureAnalyzer()
        result = analyzer.analyze("wallet-1", positions)
        verdict = analyzer.is_exposure_dangerous(result)
        if verdict.warning:
            print(verdict.warning)
        ```
    """

    def __init__(self, *, thresholds: ExposureThresholds | None = None) -> None:
        self._cfg = thresholds or ExposureThresholds()

    @property
    def thresholds(self) -> ExposureThresholds:
        return self._cfg

    def analyze(
        self,
        wallet_id: str,
        positions: Sequence[PositionInput],
        *,
        computed_at: datetime,
    ) -> PortfolioExposureResult:
        total = sum(abs(p.exposure) for p in positions)

        if not positions or total == 0:
            return PortfolioExposureResult(
                wallet_id=wallet_id,
                total_exposure=0,
                clusters=(),
                concentration_risk=0,
                diversification_score=100,
                top_cluster_exposure=0,
                computed_at=computed_at,
            )

        groups: dict[str, list[PositionInput]] = {}
        for position in positions:
            groups.setdefault(assign_cluster(position), []).append(position)

        clusters = [
            self._build_cluster(cluster_id, members, total)
            for cluster_id, members in groups.items()
            if len(members) >= self._cfg.min_markets_for_cluster
        ]
        clusters.sort(key=lambda c: c.exposure_pct, reverse=True)
        kept = clusters[: self._cfg.max_cluster_count]

        concentration = concentration_index([c.exposure_pct for c in kept])
        logger.debug(
            "Exposure wallet=%s clusters=%d concentration=%d",
            wallet_id,
            len(kept),
            concentration,
        )
        return PortfolioExposureResult(
            wallet_id=wallet_id,
            total_exposure=total,
            clusters=tuple(kept),
            concentration_risk=concentration,
            diversification_score=max(0, 100 - concentration),
            top_cluster_exposure=kept[0].exposure_pct if kept else 0,
            computed_at=computed_at,
        )

    def is_exposure_dangerous(self, exposure: PortfolioExposureResult) -> ExposureWarning:
        return is_exposure_dangerous(exposure, self._cfg)

    def _build_cluster(
        self,
        cluster_id: str,
        members: list[PositionInput],
        total_exposure: float,
    ) -> ExposureClusterResult:
        ordered = sorted(members, key=lambda p: abs(p.exposure), reverse=True)
        cluster_exposure = sum(abs(p.exposure) for p in ordered)
        exposure_pct = cluster_exposure / total_exposure * 100
        count = len(ordered)
        top = ordered[0]
        top_share = abs(top.exposure) / cluster_exposure * 100 if cluster_exposure else 0.0

        why_bullets = (
            WhyBullet(
                text=f"{exposure_pct:.0f}% of your exposure resolves on same theme",
                metric="Theme concentration",
                value=round_half_up(exposure_pct, 1),
                unit="%",
                comparison=f"${round_half_up(cluster_exposure):,} at risk",
            ),
            WhyBullet(
                text=f"{count} markets in this cluster",
                metric="Market count",
                value=count,
                unit="markets",
                comparison=f"of {round_half_up(total_exposure / count):,} avg exposure each",
            ),
            WhyBullet(
                text=f"Top market contributes {top_share:.0f}%",
                metric="Top market share",
                value=round_half_up(top_share, 1),
                unit="%",
                comparison=_truncate(top.question),
            ),
        )

        return ExposureClusterResult(
            cluster_id=cluster_id,
            label=cluster_id,
            exposure_pct=exposure_pct,
            exposure_usd=cluster_exposure,
            market_count=count,
            confidence=min(100, round_half_up(60 + count * 5)),
            why_bullets=why_bullets,
            markets=tuple(
                ClusterMember(
                    market_id=p.market_id,
                    question=p.question,
                    exposure=p.exposure,
                    weight=abs(p.exposure) / cluster_exposure * 100 if cluster_exposure else 0.0,
                )
                for p in ordered
            ),
        )


def is_exposure_dangerous(
    exposure: PortfolioExposureResult,
    thresholds: ExposureThresholds | None = None,
) -> ExposureWarning:
    """Judge the largest cluster's share against the warning and danger levels."""
    cfg = thresholds or ExposureThresholds()
    top = exposure.top_cluster_exposure
    label = exposure.top_cluster.label if exposure.top_cluster else ""

    if top > cfg.concentration_danger:
        return ExposureWarning(True, f'{top:.0f}% of your exposure is concentrated in "{label}"')
    if top > cfg.concentration_warning:
        return ExposureWarning(False, f'Consider diversifying - {top:.0f}% is in "{label}"')
    return ExposureWarning(False, None)
