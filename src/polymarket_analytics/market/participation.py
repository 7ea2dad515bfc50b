"""Participation structure analysis for one side of a market.

Scores describe how markets with a similar structure have traded in the
past. They are not win probabilities.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime

from polymarket_analytics.evidence import WhyBullet, WhyBullets, pad_or_trim_why_bullets, round_half_up
from polymarket_analytics.market.models import (
    MarketParticipationInput,
    ParticipantQualityBand,
    ParticipationBreakdown,
    ParticipationStructureResult,
    ParticipationSummary,
    SetupQualityBand,
)

logger = logging.getLogger(__name__)

BEHAVIOR_INSIGHTS: dict[ParticipationSummary, dict[SetupQualityBand, str]] = {
    ParticipationSummary.FEW_DOMINANT: {
        SetupQualityBand.HISTORICALLY_FAVORABLE: (
            "Concentrated markets with stable liquidity have historically shown orderly price discovery."
        ),
        SetupQualityBand.MIXED_WORKABLE: (
            "Markets with dominant participants can reprice quickly when new information arrives."
        ),
        SetupQualityBand.NEUTRAL: "Concentration patterns in this market are typical for its category.",
        SetupQualityBand.HISTORICALLY_UNFORGIVING: (
            "Markets with few large participants historically show wider spreads and less predictable fills."
        ),
    },
    ParticipationSummary.MIXED_PARTICIPATION: {
        SetupQualityBand.HISTORICALLY_FAVORABLE: (
            "Balanced participation has historically supported stable trading conditions."
        ),
        SetupQualityBand.MIXED_WORKABLE: (
            "Mixed participation typically provides adequate liquidity for moderate-sized orders."
        ),
        SetupQualityBand.NEUTRAL: "Participation structure is unremarkable for this market type.",
        SetupQualityBand.HISTORICALLY_UNFORGIVING: (
            "Mixed structures with low liquidity have historically shown execution challenges."
        ),
    },
    ParticipationSummary.BROAD_RETAIL: {
        SetupQualityBand.HISTORICALLY_FAVORABLE: (
            "Broad participation has historically provided deep liquidity and tight spreads."
        ),
        SetupQualityBand.MIXED_WORKABLE: "Retail-heavy markets can experience volume-driven price moves.",
        SetupQualityBand.NEUTRAL: "Participation breadth is typical for retail-accessible markets.",
        SetupQualityBand.HISTORICALLY_UNFORGIVING: (
            "Retail-dominated markets with low quality metrics have historically shown choppy price action."
        ),
    },
}

_SUMMARY_TEXT = {
    ParticipationSummary.FEW_DOMINANT: "A few large participants dominate volume",
    ParticipationSummary.MIXED_PARTICIPATION: "Volume is spread across large, mid and small participants",
    ParticipationSummary.BROAD_RETAIL: "Volume comes mostly from small participants",
}


def _clamp(score: float) -> int:
    return max(0, min(100, round_half_up(score)))


def setup_quality_score(market: MarketParticipationInput) -> int:
    """Score how orderly the market structure is, starting from a neutral 50."""
    score = 50

    if market.liquidity is not None and market.liquidity > 0:
        if market.liquidity > 100_000:
            score += 25
        elif market.liquidity > 50_000:
            score += 20
        elif market.liquidity > 20_000:
            score += 15
        elif market.liquidity > 5_000:
            score += 10
        else:
            score += 5

    if market.spread is not None:
        if market.spread < 0.01:
            score += 15
        elif market.spread < 0.02:
            score += 10
        elif market.spread < 0.05:
            score += 5
        elif market.spread > 0.1:
            score -= 15
        elif market.spread > 0.05:
            score -= 5

    if market.volume_consistency is not None:
        score += math.floor(market.volume_consistency * 0.15)
    elif market.volume_24h is not None and market.volume_24h > 0:
        if market.volume_24h > 50_000:
            score += 15
        elif market.volume_24h > 10_000:
            score += 10
        elif market.volume_24h > 1_000:
            score += 5

    if market.liquidity_stability is not None:
        score += math.floor(market.liquidity_stability * 0.15)

    if market.depth is not None and market.depth > 0:
        if market.depth > 50_000:
            score += 10
        elif market.depth > 20_000:
            score += 7
        elif market.depth > 5_000:
            score += 4

    if market.price_stability is not None:
        score += math.floor((market.price_stability - 50) * 0.2)

    return _clamp(score)


def participant_quality_score(market: MarketParticipationInput) -> int:
    """Score how much experienced activity the side attracts, starting from 50."""
    score = 50

    if market.large_trader_volume_pct is not None:
        score += math.floor(market.large_trader_volume_pct * 0.25)
    elif market.avg_trade_size is not None:
        if market.avg_trade_size > 1_000:
            score += 25
        elif market.avg_trade_size > 500:
            score += 20
        elif market.avg_trade_size > 100:
            score += 10

    if market.unique_traders is not None:
        if market.unique_traders > 100:
            score += 15
        elif market.unique_traders > 50:
            score += 10
        elif market.unique_traders > 20:
            score += 5

    if market.large_trade_count is not None and market.total_trade_count:
        score += math.floor(market.large_trade_count / market.total_trade_count * 15)

    if market.volume_24h is not None and market.volume_24h > 0:
        if market.volume_24h > 100_000:
            score += 10
        elif market.volume_24h > 25_000:
            score += 7
        elif market.volume_24h > 5_000:
            score += 4

    return _clamp(score)


def setup_quality_band(score: int) -> SetupQualityBand:
    if score >= 80:
        return SetupQualityBand.HISTORICALLY_FAVORABLE
    if score >= 60:
        return SetupQualityBand.MIXED_WORKABLE
    if score >= 40:
        return SetupQualityBand.NEUTRAL
    return SetupQualityBand.HISTORICALLY_UNFORGIVING


def participant_quality_band(score: int) -> ParticipantQualityBand:
    if score >= 70:
        return ParticipantQualityBand.STRONG
    if score >= 45:
        return ParticipantQualityBand.MODERATE
    return ParticipantQualityBand.LIMITED


def participation_summary(breakdown: ParticipationBreakdown) -> ParticipationSummary:
    if breakdown.large_pct >= 50:
        return ParticipationSummary.FEW_DOMINANT
    if breakdown.small_pct >= 50:
        return ParticipationSummary.BROAD_RETAIL
    return ParticipationSummary.MIXED_PARTICIPATION


def participation_breakdown(market: MarketParticipationInput) -> ParticipationBreakdown:
    """Split volume by participant size, in whole percent summing to 100.

    Reported shares are rounded and normalised. When any share is missing
    the split is estimated from the average trade size and trader count.
    """
    if (
        market.large_trader_volume_pct is not None
        and market.mid_trader_volume_pct is not None
        and market.small_trader_volume_pct is not None
    ):
        large = round_half_up(market.large_trader_volume_pct)
        mid = round_half_up(market.mid_trader_volume_pct)
        small = round_half_up(market.small_trader_volume_pct)
        total = large + mid + small
        if total > 0:
            large, mid, small = (round_half_up(v / total * 100) for v in (large, mid, small))
        else:
            large = mid = small = 33
        # Rounding drift lands on the small bucket.
        small += 100 - (large + mid + small)
        return ParticipationBreakdown(large_pct=large, mid_pct=mid, small_pct=small)

    large, mid, small = 30, 40, 30
    if market.avg_trade_size is not None:
        if market.avg_trade_size > 500:
            large, mid, small = 50, 35, 15
        elif market.avg_trade_size < 50:
            large, mid, small = 10, 30, 60

    if market.unique_traders is not None:
        if market.unique_traders < 10:
            large = min(70, large + 20)
            small = max(10, small - 20)
        elif market.unique_traders > 100:
            large = max(10, large - 15)
            small = min(70, small + 15)

    total = large + mid + small
    large_pct = round_half_up(large / total * 100)
    mid_pct = round_half_up(mid / total * 100)
    return ParticipationBreakdown(
        large_pct=large_pct,
        mid_pct=mid_pct,
        small_pct=100 - large_pct - mid_pct,
    )


class ParticipationAnalyzer:
    """Describes who trades a market side and how orderly its structure is.

    Example:
        ```python
        analyzer = ParticipationAnalyzer()
        result = analyzer.analyze(market, computed_at=now)
        print(result.setup_quality_band.display_label, result.behavior_insight)
        ```
    """

    def analyze(self, market: MarketParticipationInput, *, computed_at: datetime) -> ParticipationStructureResult:
        setup_score = setup_quality_score(market)
        participant_score = participant_quality_score(market)
        setup_band = setup_quality_band(setup_score)
        participant_band = participant_quality_band(participant_score)
        breakdown = participation_breakdown(market)
        summary = participation_summary(breakdown)

        logger.debug(
            "Participation for %s/%s: setup %d, participants %d, %s",
            market.market_id,
            market.side,
            setup_score,
            participant_score,
            summary.value,
        )
        return ParticipationStructureResult(
            market_id=market.market_id,
            side=market.side,
            setup_quality_score=setup_score,
            setup_quality_band=setup_band,
            participant_quality_score=participant_score,
            participant_quality_band=participant_band,
            participation_summary=summary,
            breakdown=breakdown,
            behavior_insight=BEHAVIOR_INSIGHTS[summary][setup_band],
            why_bullets=_why_bullets(setup_score, setup_band, participant_score, participant_band, breakdown, summary),
            computed_at=computed_at,
        )


def analyze_participation_structure(
    market: MarketParticipationInput,
    *,
    computed_at: datetime,
) -> ParticipationStructureResult:
    return ParticipationAnalyzer().analyze(market, computed_at=computed_at)


def _why_bullets(
    setup_score: int,
    setup_band: SetupQualityBand,
    participant_score: int,
    participant_band: ParticipantQualityBand,
    breakdown: ParticipationBreakdown,
    summary: ParticipationSummary,
) -> WhyBullets:
    bullets = [
        WhyBullet(
            f"Setup quality: {setup_band.display_label}",
            metric="Setup quality",
            value=setup_score,
            unit="/ 100",
        ),
        WhyBullet(
            f"Participant quality: {participant_band.display_label}",
            metric="Participant quality",
            value=participant_score,
            unit="/ 100",
        ),
        WhyBullet(
            _SUMMARY_TEXT[summary],
            metric="Large participant share",
            value=breakdown.large_pct,
            unit="%",
            comparison=f"{breakdown.small_pct}% small",
        ),
    ]
    filler = WhyBullet("Participation structure computed", metric="Setup quality", value=setup_score)
    return pad_or_trim_why_bullets(bullets, filler)
