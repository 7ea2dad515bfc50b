"""Trade execution review.

Grades the process quality of a single trade from the market conditions at
entry. Outcome (profit or loss) plays no part: a winning trade placed into a
thin, fast-moving book still reviews poorly.

Five components add up to 100 points:

    spread at entry        0-20
    depth at entry         0-20
    chasing before entry   0-30
    market state           0-20
    vs. user's median      0-10

A missing input earns half credit for its component.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from polymarket_analytics.evidence import WhyBullet, pad_or_trim_why_bullets, round_half_up
from polymarket_analytics.market.models import MarketStateLabel
from polymarket_analytics.trades.models import TradeContext, TradeInput, TradeReviewLabel, TradeReviewResult

logger = logging.getLogger(__name__)

STABLE_PRICE_CHANGE = 0.005
BETTER_THAN_MEDIAN_RATIO = 0.8
WORSE_THAN_MEDIAN_RATIO = 1.5

MARKET_STATE_POINTS = {
    MarketStateLabel.CALM_LIQUID: 20,
    MarketStateLabel.THIN_SLIPPAGE: 5,
    MarketStateLabel.JUMPY: 10,
    MarketStateLabel.EVENT_DRIVEN: 5,
}

_MARKET_STATE_NAMES = {
    MarketStateLabel.CALM_LIQUID: "Calm & Liquid",
    MarketStateLabel.THIN_SLIPPAGE: "Thin market",
    MarketStateLabel.JUMPY: "Volatile market",
    MarketStateLabel.EVENT_DRIVEN: "Event-driven",
}

LABEL_CUTOFFS = (
    (75, TradeReviewLabel.GOOD_PROCESS),
    (50, TradeReviewLabel.ACCEPTABLE_PROCESS),
    (30, TradeReviewLabel.RISKY_PROCESS),
)

NORMAL_EXECUTION_BULLET = WhyBullet(
    text="Execution conditions within normal parameters",
    metric="Status",
    value=1,
    unit="normal",
)


@dataclass(frozen=True)
class TradeReviewThresholds:
    spread_good: float = 0.02
    spread_bad: float = 0.05
    depth_good: float = 20_000.0
    depth_bad: float = 5_000.0
    chasing_threshold: float = 0.03
    adverse_threshold: float = -0.02
    expected_slippage_bps: float = 50.0


@dataclass(frozen=True)
class _Component:
    points: float
    max_points: float
    reason: WhyBullet | None = None


def label_for_score(score: float) -> TradeReviewLabel:
    """Map a 0-100 process score to a label, before any timing override."""
    for cutoff, label in LABEL_CUTOFFS:
        if score >= cutoff:
            return label
    return TradeReviewLabel.POOR_TIMING


def apply_timing_override(
    label: TradeReviewLabel,
    price_change_15m: float | None,
    *,
    chasing_threshold: float = 0.03,
) -> TradeReviewLabel:
    """Force ``poor_timing`` when price moved sharply in the 15 minutes before entry.

    A large pre-entry move signals chasing or adverse selection, which trumps
    an otherwise good score.
    """
    if price_change_15m is not None and abs(price_change_15m) > chasing_threshold:
        return TradeReviewLabel.POOR_TIMING
    return label


class TradeReviewScorer:
    """Scores a trade's execution process against the conditions at entry."""

    def __init__(self, *, thresholds: TradeReviewThresholds | None = None) -> None:
        self._cfg = thresholds or TradeReviewThresholds()

    @property
    def thresholds(self) -> TradeReviewThresholds:
        return self._cfg

    def review(
        self,
        trade: TradeInput,
        context: TradeContext,
        *,
        computed_at: datetime,
    ) -> TradeReviewResult:
        components = [
            self._score_spread(context),
            self._score_depth(context),
            self._score_chasing(trade, context),
            self._score_market_state(context),
            self._score_vs_user_median(context),
        ]

        total = sum(c.points for c in components)
        maximum = sum(c.max_points for c in components)
        score = round_half_up(total / maximum * 100)

        reasons = sorted(
            (c.reason for c in components if c.reason is not None),
            key=lambda r: abs(r.value),
            reverse=True,
        )

        label = apply_timing_override(
            label_for_score(score),
            context.price_change_15m,
            chasing_threshold=self._cfg.chasing_threshold,
        )

        key_fields = (
            context.spread_at_entry,
            context.depth_at_entry,
            context.price_change_15m,
            context.market_state,
        )
        present = sum(1 for value in key_fields if value is not None)
        confidence = round_half_up(present / len(key_fields) * 100)

        # Crossing half the spread is the minimum cost of an immediate fill.
        slippage_bps = None
        if context.spread_at_entry is not None:
            slippage_bps = round_half_up(context.spread_at_entry / 2 * 10_000, 1)

        logger.debug(
            "Trade review wallet=%s market=%s score=%d label=%s",
            trade.wallet_id,
            trade.market_id,
            score,
            label.value,
        )
        return TradeReviewResult(
            wallet_id=trade.wallet_id,
            market_id=trade.market_id,
            trade_ts=trade.trade_ts,
            side=trade.side,
            notional=trade.notional,
            score=score,
            confidence=confidence,
            label=label,
            why_bullets=pad_or_trim_why_bullets(reasons, NORMAL_EXECUTION_BULLET),
            metrics={
                "spread_at_entry": context.spread_at_entry,
                "depth_at_entry": context.depth_at_entry,
                "price_change_15m": context.price_change_15m,
                "market_state": context.market_state.value if context.market_state else None,
                "estimated_slippage_bps": slippage_bps,
                "exceeds_expected_slippage": (
                    slippage_bps > self._cfg.expected_slippage_bps if slippage_bps is not None else None
                ),
            },
            computed_at=computed_at,
        )

    def _score_spread(self, context: TradeContext) -> _Component:
        spread = context.spread_at_entry
        if spread is None:
            return _Component(10, 20)

        spread_pct = round_half_up(spread * 100, 2)
        if spread < self._cfg.spread_good:
            comparison = None
            if context.user_median_spread:
                comparison = f"vs {context.user_median_spread * 100:.2f}% your median"
            return _Component(
                20,
                20,
                WhyBullet("Spread was tight at entry", "Spread at entry", spread_pct, "%", comparison),
            )
        if spread > self._cfg.spread_bad:
            return _Component(
                0,
                20,
                WhyBullet(
                    "Wide spread increased execution cost",
                    "Spread at entry",
                    spread_pct,
                    "%",
                    f">{self._cfg.spread_bad * 100:.0f}% threshold",
                ),
            )
        return _Component(10, 20, WhyBullet("Spread was moderate at entry", "Spread at entry", spread_pct, "%"))

    def _score_depth(self, context: TradeContext) -> _Component:
        depth = context.depth_at_entry
        if depth is None:
            return _Component(10, 20)

        if depth > self._cfg.depth_good:
            return _Component(20, 20, WhyBullet("Deep liquidity supported execution", "Depth at entry", round_half_up(depth), "USD"))
        if depth < self._cfg.depth_bad:
            return _Component(
                0,
                20,
                WhyBullet(
                    "Thin liquidity may have caused slippage",
                    "Depth at entry",
                    round_half_up(depth),
                    "USD",
                    f"<${self._cfg.depth_bad:,.0f} threshold",
                ),
            )
        return _Component(10, 20, WhyBullet("Adequate liquidity at entry", "Depth at entry", round_half_up(depth), "USD"))

    def _score_chasing(self, trade: TradeInput, context: TradeContext) -> _Component:
        change = context.price_change_15m
        if change is None:
            return _Component(15, 30)

        change_pct = change * 100
        threshold = self._cfg.chasing_threshold
        chasing = (trade.side == "buy" and change > threshold) or (trade.side == "sell" and change < -threshold)

        if chasing:
            if trade.side == "buy":
                text = f"Bought after {abs(change_pct):.1f}% rise - potential chase"
            else:
                text = f"Sold after {abs(change_pct):.1f}% fall - potential chase"
            return _Component(
                0,
                30,
                WhyBullet(text, "Price change before entry", round_half_up(change_pct, 2), "%", "in last 15 min"),
            )

        if abs(change) < STABLE_PRICE_CHANGE:
            return _Component(
                30,
                30,
                WhyBullet(
                    "Price was stable before entry",
                    "Price change before entry",
                    round_half_up(change_pct, 2),
                    "%",
                    "in last 15 min",
                ),
            )

        adverse = (trade.side == "buy" and change < self._cfg.adverse_threshold) or (
            trade.side == "sell" and change > -self._cfg.adverse_threshold
        )
        if adverse:
            direction = "dip" if trade.side == "buy" else "rise"
            text = f"Entered against a {abs(change_pct):.1f}% {direction} before entry"
        else:
            text = f"Price moved {abs(change_pct):.1f}% before entry"
        return _Component(
            20,
            30,
            WhyBullet(
                text,
                "Price change before entry",
                round_half_up(change_pct, 2),
                "%",
                "in last 15 min",
            ),
        )

    def _score_market_state(self, context: TradeContext) -> _Component:
        state = context.market_state
        if state is None:
            return _Component(10, 20)

        points = MARKET_STATE_POINTS[state]
        return _Component(
            points,
            20,
            WhyBullet(
                f'Market was "{_MARKET_STATE_NAMES[state]}" at entry',
                "Market state",
                points,
                "pts",
                "of 20 possible",
            ),
        )

    def _score_vs_user_median(self, context: TradeContext) -> _Component:
        median = context.user_median_spread
        spread = context.spread_at_entry
        if not median or spread is None:
            return _Component(5, 10)

        ratio = spread / median
        if ratio < BETTER_THAN_MEDIAN_RATIO:
            return _Component(
                10,
                10,
                WhyBullet(
                    "Better spread than your historical median",
                    "vs your median",
                    round_half_up((1 - ratio) * 100),
                    "% better",
                ),
            )
        if ratio > WORSE_THAN_MEDIAN_RATIO:
            return _Component(
                0,
                10,
                WhyBullet(
                    "Worse spread than your historical median",
                    "vs your median",
                    round_half_up((ratio - 1) * 100),
                    "% worse",
                ),
            )
        return _Component(5, 10)
