"""Elite trader scoring.

Turns a wallet's aggregate metrics into a 0-100 elite score made of four
components, then derives a tier, a risk profile and plain-language strengths
and warnings.

Scoring Formula:
    elite_score = performance (0-40) + consistency (0-30)
                + experience (0-20) + risk (0-10)

    tier: >=80 elite, >=60 strong, >=40 moderate, >=20 developing, else limited
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import replace

from polymarket_analytics.evidence import WhyBullet, pad_or_trim_why_bullets, round_half_up
from polymarket_analytics.traders.models import RiskProfile, TraderMetrics, TraderScore, TraderTier

logger = logging.getLogger(__name__)

ELITE_WIN_RATE = 80.0
ELITE_PROFIT_FACTOR = 2.5
ELITE_SHARPE_RATIO = 2.0
ELITE_MAX_DRAWDOWN = 15.0
ELITE_MIN_PROFIT = 10_000.0
ELITE_MIN_TRADES = 20

# (threshold, points), best first.
WIN_RATE_POINTS = ((90, 15), (80, 12), (70, 9), (60, 6), (50, 3))
PROFIT_FACTOR_POINTS = ((4.0, 15), (3.0, 12), (2.5, 10), (2.0, 7), (1.5, 4), (1.0, 2))
TOTAL_PROFIT_POINTS = ((100_000, 10), (50_000, 8), (25_000, 6), (10_000, 4), (5_000, 2), (1_000, 1))
SHARPE_POINTS = ((3.0, 12), (2.5, 10), (2.0, 8), (1.5, 6), (1.0, 3))
DRAWDOWN_POINTS = ((5, 10), (10, 8), (15, 6), (20, 4), (30, 2))  # at most
WIN_STREAK_POINTS = ((10, 8), (7, 6), (5, 4), (3, 2))
TRADE_COUNT_POINTS = ((200, 10), (100, 8), (50, 6), (25, 4), (10, 2))
VOLUME_EFFICIENCY_POINTS = ((0.3, 5), (0.2, 4), (0.15, 3), (0.1, 2), (0.05, 1))

TIER_CUTOFFS = (
    (80, TraderTier.ELITE),
    (60, TraderTier.STRONG),
    (40, TraderTier.MODERATE),
    (20, TraderTier.DEVELOPING),
)


class TraderScoringError(Exception):
    pass


def _points_at_least(value: float, table: Sequence[tuple[float, int]]) -> int:
    for threshold, points in table:
        if value >= threshold:
            return points
    return 0


def _points_at_most(value: float, table: Sequence[tuple[float, int]]) -> int:
    for threshold, points in table:
        if value <= threshold:
            return points
    return 0


def performance_score(metrics: TraderMetrics) -> int:
    score = (
        _points_at_least(metrics.win_rate, WIN_RATE_POINTS)
        + _points_at_least(metrics.profit_factor, PROFIT_FACTOR_POINTS)
        + _points_at_least(metrics.total_profit, TOTAL_PROFIT_POINTS)
    )
    return min(score, 40)


def consistency_score(metrics: TraderMetrics) -> int:
    score = (
        _points_at_least(metrics.sharpe_ratio, SHARPE_POINTS)
        + _points_at_most(metrics.max_drawdown, DRAWDOWN_POINTS)
        + _points_at_least(metrics.longest_win_streak, WIN_STREAK_POINTS)
    )
    return min(score, 30)


def experience_score(metrics: TraderMetrics) -> int:
    score = _points_at_least(metrics.trade_count, TRADE_COUNT_POINTS)
    score += round_half_up(metrics.market_timing_score / 100 * 10)
    return min(score, 20)


def risk_score(metrics: TraderMetrics) -> int:
    score = 0
    if 50 <= metrics.roi_percent <= 200:
        score += 5
    elif metrics.roi_percent >= 30:
        score += 3
    elif metrics.roi_percent >= 10:
        score += 1

    if metrics.total_volume > 0:
        efficiency = metrics.total_profit / metrics.total_volume
        score += _points_at_least(efficiency, VOLUME_EFFICIENCY_POINTS)
    return min(score, 10)


def tier_for_score(elite_score: float) -> TraderTier:
    for cutoff, tier in TIER_CUTOFFS:
        if elite_score >= cutoff:
            return tier
    return TraderTier.LIMITED


def risk_profile_for(metrics: TraderMetrics) -> RiskProfile:
    avg_trade_size = metrics.total_volume / metrics.trade_count if metrics.trade_count else 0.0
    volatility = metrics.max_drawdown * (1 - metrics.win_rate / 100)
    if volatility < 10 and avg_trade_size < 1_000:
        return RiskProfile.CONSERVATIVE
    if volatility > 25 or avg_trade_size > 5_000:
        return RiskProfile.AGGRESSIVE
    return RiskProfile.MODERATE


def identify_strengths(metrics: TraderMetrics) -> list[str]:
    strengths = []
    if metrics.win_rate >= 80:
        strengths.append("Exceptional win rate")
    if metrics.profit_factor >= 3.0:
        strengths.append("Outstanding profit factor")
    if metrics.sharpe_ratio >= 2.0:
        strengths.append("Excellent risk-adjusted returns")
    if metrics.max_drawdown <= 15:
        strengths.append("Strong risk management")
    if metrics.longest_win_streak >= 7:
        strengths.append("Consistent winning streaks")
    if metrics.market_timing_score >= 75:
        strengths.append("Great market timing")
    if metrics.trade_count >= 100:
        strengths.append("Experienced trader")
    return strengths


def identify_warnings(metrics: TraderMetrics) -> list[str]:
    warnings = []
    if metrics.trade_count < ELITE_MIN_TRADES:
        warnings.append("Limited trade history - score may be unreliable")
    if metrics.max_drawdown > 30:
        warnings.append("High drawdown risk")
    if metrics.win_rate < 50:
        warnings.append("Below 50% win rate")
    if metrics.profit_factor < 1.0:
        warnings.append("Losing more than winning")
    return warnings


def is_elite_trader(metrics: TraderMetrics) -> bool:
    """Return True when every elite criterion is met, independent of the score."""
    return (
        metrics.win_rate >= ELITE_WIN_RATE
        and metrics.profit_factor >= ELITE_PROFIT_FACTOR
        and metrics.sharpe_ratio >= ELITE_SHARPE_RATIO
        and metrics.max_drawdown <= ELITE_MAX_DRAWDOWN
        and metrics.total_profit >= ELITE_MIN_PROFIT
        and metrics.trade_count >= ELITE_MIN_TRADES
    )


class TraderScorer:
    """Scores wallets and ranks them against each other."""

    def score(self, wallet_address: str, metrics: TraderMetrics) -> TraderScore:
        if metrics.trade_count < 0:
            raise TraderScoringError(f"trade_count must be >= 0 for {wallet_address}")

        performance = performance_score(metrics)
        consistency = consistency_score(metrics)
        experience = experience_score(metrics)
        risk = risk_score(metrics)
        elite_score = performance + consistency + experience + risk
        tier = tier_for_score(elite_score)

        recommended = (
            tier is TraderTier.ELITE
            and metrics.total_profit >= ELITE_MIN_PROFIT
            and metrics.win_rate >= ELITE_WIN_RATE
            and metrics.trade_count >= ELITE_MIN_TRADES
        )

        reasons = [
            WhyBullet(
                "Share of closed trades that were profitable",
                "Win rate",
                round_half_up(metrics.win_rate, 1),
                "%",
                f"over {metrics.trade_count} trades",
            ),
            WhyBullet(
                "Gross profit relative to gross loss",
                "Profit factor",
                round_half_up(metrics.profit_factor, 2),
                "x",
            ),
            WhyBullet(
                "Largest drop from a running profit peak",
                "Max drawdown",
                round_half_up(metrics.max_drawdown, 1),
                "%",
            ),
        ]
        filler = WhyBullet("Elite score computed", "Score", elite_score, "/ 100")

        logger.debug("Trader %s elite_score=%d tier=%s", wallet_address, elite_score, tier.value)
        return TraderScore(
            wallet_address=wallet_address,
            elite_score=elite_score,
            trader_tier=tier,
            risk_profile=risk_profile_for(metrics),
            performance_score=performance,
            consistency_score=consistency,
            experience_score=experience,
            risk_score=risk,
            why_bullets=pad_or_trim_why_bullets(reasons, filler),
            is_recommended=recommended,
            strengths=tuple(identify_strengths(metrics)),
            warnings=tuple(identify_warnings(metrics)),
        )

    def score_batch(self, metrics_by_wallet: dict[str, TraderMetrics]) -> dict[str, TraderScore]:
        """Score and rank many wallets; returns scores keyed by wallet."""
        scores = [self.score(wallet, metrics) for wallet, metrics in metrics_by_wallet.items()]
        ranked = rank_traders(scores)
        logger.info(
            "Scored %d wallets (%d elite)",
            len(ranked),
            sum(1 for s in ranked if s.is_elite),
        )
        return {s.wallet_address: s for s in ranked}


def rank_traders(scores: Iterable[TraderScore]) -> list[TraderScore]:
    """Return copies ordered by elite score with ``rank`` and ``elite_rank`` set."""
    ordered = sorted(scores, key=lambda s: s.elite_score, reverse=True)
    ranked: list[TraderScore] = []
    elite_count = 0
    for index, score in enumerate(ordered, start=1):
        elite_rank = None
        if score.is_elite:
            elite_count += 1
            elite_rank = elite_count
        ranked.append(replace(score, rank=index, elite_rank=elite_rank))
    return ranked


def filter_by_tier(scores: Iterable[TraderScore], tiers: TraderTier | Iterable[TraderTier]) -> list[TraderScore]:
    wanted = {tiers} if isinstance(tiers, TraderTier) else set(tiers)
    return [s for s in scores if s.trader_tier in wanted]


def top_traders(scores: Iterable[TraderScore], limit: int = 10) -> list[TraderScore]:
    return sorted(scores, key=lambda s: s.elite_score, reverse=True)[:limit]


def elite_traders(scores: Iterable[TraderScore]) -> list[TraderScore]:
    return filter_by_tier(scores, TraderTier.ELITE)
