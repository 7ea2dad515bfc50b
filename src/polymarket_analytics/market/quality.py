"""Market quality scoring.

Grades how tradable a market is from five components (spread, depth,
volume, staleness and resolution clarity), each mapped through a tier
table and combined with fixed weights.
"""

from __future__ import annotations

import logging

from polymarket_analytics.evidence import WhyBullet, WhyBullets, pad_or_trim_why_bullets, round_half_up
from polymarket_analytics.market.models import (
    MarketGrade,
    MarketQualityInput,
    MarketQualityResult,
    QualityBreakdown,
)

logger = logging.getLogger(__name__)

DEFAULT_WEIGHTS = {
    "spread": 0.25,
    "depth": 0.20,
    "volume": 0.20,
    "staleness": 0.20,
    "clarity": 0.15,
}

# Tier boundaries, ordered excellent -> poor.
SPREAD_TIERS = (0.01, 0.03, 0.05, 0.10)
DEPTH_TIERS = (50_000.0, 10_000.0, 1_000.0, 100.0)
VOLUME_TIERS = (100_000.0, 10_000.0, 1_000.0, 100.0)
STALENESS_TIERS_HOURS = (1.0, 6.0, 24.0, 72.0)

TIER_POINTS = (100.0, 80.0, 60.0, 40.0)
FLOOR_POINTS = 20.0

GRADE_CUTOFFS = (
    (90.0, MarketGrade.A),
    (75.0, MarketGrade.B),
    (60.0, MarketGrade.C),
    (40.0, MarketGrade.D),
)


def _tier_at_most(value: float, tiers: tuple[float, ...]) -> float:
    for limit, points in zip(tiers, TIER_POINTS):
        if value <= limit:
            return points
    return FLOOR_POINTS


def _tier_at_least(value: float, tiers: tuple[float, ...]) -> float:
    for limit, points in zip(tiers, TIER_POINTS):
        if value >= limit:
            return points
    return FLOOR_POINTS


def grade_for_score(score: float) -> MarketGrade:
    """Map a 0-100 quality score to a letter grade."""
    for cutoff, grade in GRADE_CUTOFFS:
        if score >= cutoff:
            return grade
    return MarketGrade.F


class MarketQualityScorer:
    """Weighted market quality scorer.

    The scorer is total over non-negative inputs; validating the input
    domain is the caller's job.

    Example:
        ```python
        scorer = MarketQualityScorer()
        result = scorer.score(
            MarketQualityInput(
                spread=0.02,
                depth=25_000,
                volume_24h=40_000,
                staleness_hours=0.5,
                resolution_clarity=0.9,
            )
        )
        print(result.grade)  # MarketGrade.B
        ```
    """

    def __init__(self, *, weights: dict[str, float] | None = None) -> None:
        self.weights = dict(DEFAULT_WEIGHTS)
        if weights:
            unknown = set(weights) - set(DEFAULT_WEIGHTS)
            if unknown:
                raise ValueError(f"Unknown quality weight(s): {sorted(unknown)}")
            self.weights.update(weights)

    def breakdown(self, market: MarketQualityInput) -> QualityBreakdown:
        return QualityBreakdown(
            spread_score=_tier_at_most(market.spread, SPREAD_TIERS),
            depth_score=_tier_at_least(market.depth, DEPTH_TIERS),
            volume_score=_tier_at_least(market.volume_24h, VOLUME_TIERS),
            staleness_score=_tier_at_most(market.staleness_hours, STALENESS_TIERS_HOURS),
            clarity_score=market.resolution_clarity * 100.0,
        )

    def score(self, market: MarketQualityInput) -> MarketQualityResult:
        parts = self.breakdown(market)
        weighted = (
            parts.spread_score * self.weights["spread"]
            + parts.depth_score * self.weights["depth"]
            + parts.volume_score * self.weights["volume"]
            + parts.staleness_score * self.weights["staleness"]
            + parts.clarity_score * self.weights["clarity"]
        )
        score = round_half_up(weighted, 2)
        grade = grade_for_score(weighted)
        logger.debug("Market quality score=%.2f grade=%s", score, grade.value)
        return MarketQualityResult(
            score=score,
            grade=grade,
            breakdown=parts,
            why_bullets=self._why_bullets(market, parts, score),
        )

    def _why_bullets(self, market: MarketQualityInput, parts: QualityBreakdown, score: float) -> WhyBullets:
        components = [
            ("spread", "Spread", parts.spread_score, f"{market.spread * 100:.1f}% bid/ask spread"),
            ("depth", "Depth", parts.depth_score, f"${market.depth:,.0f} of visible depth"),
            ("volume", "Volume", parts.volume_score, f"${market.volume_24h:,.0f} traded in 24h"),
            ("staleness", "Staleness", parts.staleness_score, f"Last trade {market.staleness_hours:.1f}h ago"),
            (
                "clarity",
                "Clarity",
                parts.clarity_score,
                f"Resolution clarity {market.resolution_clarity * 100:.0f}%",
            ),
        ]
        # Weakest first; sorted() keeps the component order on ties.
        weakest = sorted(components, key=lambda c: c[2])
        bullets = [
            WhyBullet(
                text=text,
                metric=f"{name} score",
                value=round_half_up(points, 1),
                unit="/ 100",
                comparison=f"{self.weights[key] * 100:.0f}% weight",
            )
            for key, name, points, text in weakest
        ]
        filler = WhyBullet("Quality score computed", "Score", score, "/ 100")
        return pad_or_trim_why_bullets(bullets, filler)
