"""Best-bet recommendations from elite trader positioning.

For each market, elite positions are reduced to a YES/NO consensus and a
0-100 recommendation score:

    trader count      0-30  (>=10: 30, >=5: 20, >=3: 10, else 3 per trader)
    avg elite score   0-30
    consensus         0-25
    recency           0-15  (<=1h: 15, <=6h: 10, <=24h: 5, <=72h: 2)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta

from polymarket_analytics.evidence import WhyBullet, pad_or_trim_why_bullets, round_half_up
from polymarket_analytics.traders.models import (
    ActivityTrend,
    BestBet,
    Consensus,
    ElitePosition,
    MarketData,
    RecommendationStrength,
    RecommendedSide,
    RiskLevel,
    TopTrader,
    TraderScore,
)

logger = logging.getLogger(__name__)

CONSENSUS_THRESHOLD = 70.0
TOP_TRADER_LIMIT = 5
RECENT_ACTIVITY_WINDOW = timedelta(hours=24)
UNCATEGORIZED = "Uncategorized"

# (max hours since last activity, points)
RECENCY_POINTS = ((1, 15), (6, 10), (24, 5), (72, 2))


@dataclass(frozen=True)
class BestBetsConfig:
    min_elite_traders: int = 2
    min_confidence: float = 50.0
    max_results: int = 10
    high_confidence: float = 75.0


def calculate_elite_consensus(positions: Sequence[ElitePosition]) -> tuple[Consensus, float]:
    """Return the consensus direction and its strength (0-100) by volume."""
    yes_volume = sum(p.size for p in positions if p.side == "yes")
    no_volume = sum(p.size for p in positions if p.side == "no")
    total = yes_volume + no_volume
    if total == 0:
        return "mixed", 0.0

    yes_pct = yes_volume / total * 100
    no_pct = no_volume / total * 100
    if yes_pct >= CONSENSUS_THRESHOLD:
        return "bullish", yes_pct
    if no_pct >= CONSENSUS_THRESHOLD:
        return "bearish", no_pct
    return "mixed", abs(yes_pct - 50)


def calculate_recommendation_strength(
    elite_trader_count: int,
    avg_elite_score: float,
    consensus_strength: float,
    hours_since_activity: float,
) -> tuple[RecommendationStrength, float]:
    score = 0.0
    if elite_trader_count >= 10:
        score += 30
    elif elite_trader_count >= 5:
        score += 20
    elif elite_trader_count >= 3:
        score += 10
    else:
        score += elite_trader_count * 3

    score += avg_elite_score / 100 * 30
    score += consensus_strength / 100 * 25

    for max_hours, points in RECENCY_POINTS:
        if hours_since_activity <= max_hours:
            score += points
            break

    if score >= 75:
        return "strong", score
    if score >= 50:
        return "moderate", score
    return "weak", score


def _risk_level(consensus_strength: float, elite_trader_count: int) -> RiskLevel:
    if consensus_strength >= 80 and elite_trader_count >= 5:
        return "low"
    if consensus_strength >= 60 and elite_trader_count >= 3:
        return "medium"
    return "high"


def _activity_trend(positions: Sequence[ElitePosition], now: datetime) -> ActivityTrend:
    recent = sum(1 for p in positions if now - p.timestamp < RECENT_ACTIVITY_WINDOW)
    older = len(positions) - recent
    if recent > older * 1.5:
        return "increasing"
    if recent < older * 0.5:
        return "decreasing"
    return "stable"


class BestBetsEngine:
    """Builds consensus recommendations from elite trader positions.

    Example:
        ```python
        engine = BestBetsEngine()
        bets = engine.generate(markets, positions, scores_by_wallet, now=now)
        for bet in engine.high_confidence(bets):
            print(bet.market_question, bet.recommended_side)
        ```
    """

    def __init__(self, *, config: BestBetsConfig | None = None) -> None:
        self._cfg = config or BestBetsConfig()

    @property
    def config(self) -> BestBetsConfig:
        return self._cfg

    def analyze_market(
        self,
        market: MarketData,
        positions: Sequence[ElitePosition],
        scores: Mapping[str, TraderScore],
        *,
        now: datetime,
    ) -> BestBet | None:
        """Return the market's recommendation, or None without elite positions."""
        if not positions:
            return None

        def elite_score_of(wallet: str) -> float:
            score = scores.get(wallet)
            return score.elite_score if score else 0.0

        trader_count = len({p.wallet_address for p in positions})
        scored = [s for s in (elite_score_of(p.wallet_address) for p in positions) if s > 0]
        avg_elite_score = sum(scored) / len(scored) if scored else 0.0
        total_volume = sum(p.size for p in positions)

        consensus, consensus_strength = calculate_elite_consensus(positions)

        top = sorted(
            (
                TopTrader(
                    address=p.wallet_address,
                    elite_score=elite_score_of(p.wallet_address),
                    position=p.side,
                    confidence=p.size / total_volume * 100 if total_volume else 0.0,
                    entry_price=p.entry_price,
                    timestamp=p.timestamp,
                )
                for p in positions
            ),
            key=lambda t: t.elite_score,
            reverse=True,
        )[:TOP_TRADER_LIMIT]

        last_activity = max(p.timestamp for p in positions)
        hours_since = (now - last_activity).total_seconds() / 3600
        strength, confidence = calculate_recommendation_strength(
            trader_count, avg_elite_score, consensus_strength, hours_since
        )

        side: RecommendedSide = "none"
        if consensus == "bullish" and consensus_strength >= CONSENSUS_THRESHOLD:
            side = "yes"
        elif consensus == "bearish" and consensus_strength >= CONSENSUS_THRESHOLD:
            side = "no"

        price = market.current_price
        upside = (1 - price) if side == "yes" else price
        potential_return = upside / price * 100 if price > 0 else 0.0

        why_bullets = pad_or_trim_why_bullets(
            [
                WhyBullet(
                    "Elite traders positioned in this market",
                    "Elite traders",
                    trader_count,
                    "traders",
                    f"avg score {avg_elite_score:.0f}",
                ),
                WhyBullet(
                    f"Elite volume is {consensus}",
                    "Consensus strength",
                    round_half_up(consensus_strength, 1),
                    "%",
                    f"${round_half_up(total_volume):,} elite volume",
                ),
                WhyBullet(
                    "Time since latest elite entry",
                    "Last activity",
                    round_half_up(hours_since, 1),
                    "hours ago",
                ),
            ],
            WhyBullet("Recommendation score computed", "Score", round_half_up(confidence, 1), "/ 100"),
        )

        return BestBet(
            market_id=market.market_id,
            market_question=market.question,
            market_category=market.category,
            elite_trader_count=trader_count,
            avg_elite_score=avg_elite_score,
            total_elite_volume=total_volume,
            elite_consensus=consensus,
            consensus_strength=consensus_strength,
            top_traders=tuple(top),
            recommendation_strength=strength,
            recommended_side=side,
            confidence_score=confidence,
            current_price=price,
            avg_elite_entry_price=sum(p.entry_price for p in positions) / len(positions),
            potential_return=potential_return,
            risk_level=_risk_level(consensus_strength, trader_count),
            last_elite_activity=last_activity,
            activity_trend=_activity_trend(positions, now),
            why_bullets=why_bullets,
            computed_at=now,
        )

    def generate(
        self,
        markets: Iterable[MarketData],
        positions: Iterable[ElitePosition],
        scores: Mapping[str, TraderScore],
        *,
        now: datetime,
        category: str | None = None,
    ) -> list[BestBet]:
        """Recommend across markets, strongest first.

        Markets need at least ``min_elite_traders`` elite wallets, a confidence
        of at least ``min_confidence`` and a definite side to qualify.
        """
        by_market: dict[str, list[ElitePosition]] = {}
        for position in positions:
            by_market.setdefault(position.market_id, []).append(position)

        bets: list[BestBet] = []
        for market in markets:
            if category and market.category != category:
                continue
            bet = self.analyze_market(market, by_market.get(market.market_id, []), scores, now=now)
            if bet is None:
                continue
            if (
                bet.elite_trader_count >= self._cfg.min_elite_traders
                and bet.confidence_score >= self._cfg.min_confidence
                and bet.recommended_side != "none"
            ):
                bets.append(bet)

        bets.sort(key=lambda b: b.confidence_score, reverse=True)
        logger.info("Generated %d best bets", min(len(bets), self._cfg.max_results))
        return bets[: self._cfg.max_results]

    def high_confidence(self, bets: Iterable[BestBet], min_confidence: float | None = None) -> list[BestBet]:
        floor = self._cfg.high_confidence if min_confidence is None else min_confidence
        return [b for b in bets if b.confidence_score >= floor and b.recommendation_strength == "strong"]


def best_bets_by_category(bets: Iterable[BestBet]) -> dict[str, list[BestBet]]:
    grouped: dict[str, list[BestBet]] = {}
    for bet in bets:
        grouped.setdefault(bet.market_category or UNCATEGORIZED, []).append(bet)
    return grouped


def trending_best_bets(bets: Iterable[BestBet]) -> list[BestBet]:
    """Bets with increasing elite activity, strongest first."""
    trending = [b for b in bets if b.activity_trend == "increasing"]
    return sorted(trending, key=lambda b: b.confidence_score, reverse=True)
