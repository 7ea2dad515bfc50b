"""Market state classifier.

Rule-based classification of a market's microstructure regime into one of
four retail-friendly labels. Each candidate state accumulates points from the
features that support it; the highest scorer wins and its strongest reasons
become the why-bullets.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime

from polymarket_analytics.evidence import WhyBullet, pad_or_trim_why_bullets, round_half_up
from polymarket_analytics.market.models import (
    HistoricalAverages,
    MarketFeaturesInput,
    MarketStateFeatures,
    MarketStateLabel,
    MarketStateResult,
)

logger = logging.getLogger(__name__)

DEFAULT_IMPACT_HIGH = 0.02
DEFAULT_VOLUME_SURGE_USD = 50_000.0
DEFAULT_LOW_TRADE_COUNT = 5
DEFAULT_HIGH_TRADE_COUNT = 20

NORMAL_CONDITIONS_BULLET = WhyBullet(
    text="Market conditions within normal parameters",
    metric="Status",
    value=1,
    unit="normal",
)


@dataclass(frozen=True)
class MarketStateThresholds:
    spread_thin: float = 0.03
    spread_jumpy: float = 0.08
    depth_low: float = 5_000.0
    depth_medium: float = 20_000.0
    staleness_medium: float = 300.0
    staleness_high: float = 900.0
    vol_high: float = 1.5
    vol_extreme: float = 3.0
    state_change_persistence: int = 2
    confidence_change_delta: float = 20.0


@dataclass
class _StateScore:
    label: MarketStateLabel
    score: float
    reasons: list[WhyBullet] = field(default_factory=list)

    def add(self, points: float, reason: WhyBullet) -> None:
        self.score += points
        self.reasons.append(reason)


def _spread_bullet(text: str, spread: float, comparison: str | None = None) -> WhyBullet:
    return WhyBullet(text=text, metric="Spread", value=round_half_up(spread * 100, 2), unit="%", comparison=comparison)


def _depth_bullet(text: str, depth: float, comparison: str | None = None) -> WhyBullet:
    return WhyBullet(text=text, metric="Depth", value=round_half_up(depth), unit="USD", comparison=comparison)


def _staleness_bullet(text: str, staleness_seconds: float) -> WhyBullet:
    return WhyBullet(text=text, metric="Last trade", value=round_half_up(staleness_seconds / 60), unit="min ago")


def _volatility_bullet(text: str, vol: float, comparison: str | None = None) -> WhyBullet:
    return WhyBullet(text=text, metric="Volatility", value=round_half_up(vol * 100, 1), unit="%", comparison=comparison)


class MarketStateClassifier:
    """Labels a market as calm, thin, jumpy or event-driven.

    Missing features never raise: they simply contribute no points, which
    lowers the winning margin and therefore the confidence. Confidence is
    ``min(100, round_half_up(50 + 2 * margin))`` where margin is the gap between the
    best and second-best state scores.
    """

    def __init__(self, *, thresholds: MarketStateThresholds | None = None) -> None:
        self._cfg = thresholds or MarketStateThresholds()

    @property
    def thresholds(self) -> MarketStateThresholds:
        return self._cfg

    def classify(
        self,
        features: MarketFeaturesInput,
        *,
        historical: HistoricalAverages | None = None,
        computed_at: datetime,
    ) -> MarketStateResult:
        scores = [
            self._score_calm_liquid(features, historical),
            self._score_thin_slippage(features, historical),
            self._score_jumpy(features, historical),
            self._score_event_driven(features),
        ]
        # sorted() is stable, so earlier states win ties.
        ranked = sorted(scores, key=lambda s: s.score, reverse=True)
        winner, runner_up = ranked[0], ranked[1]

        margin = winner.score - runner_up.score
        confidence = min(100, round_half_up(50 + margin * 2))

        logger.debug(
            "Market %s state=%s score=%.0f margin=%.0f",
            features.market_id,
            winner.label.value,
            winner.score,
            margin,
        )
        return MarketStateResult(
            market_id=features.market_id,
            state_label=winner.label,
            confidence=confidence,
            why_bullets=pad_or_trim_why_bullets(winner.reasons, NORMAL_CONDITIONS_BULLET),
            features=MarketStateFeatures(
                spread_pct=features.spread * 100 if features.spread is not None else None,
                depth_usd=features.depth,
                staleness_minutes=(
                    round_half_up(features.staleness_seconds / 60) if features.staleness_seconds is not None else None
                ),
                volatility=features.vol_proxy,
            ),
            computed_at=computed_at,
        )

    def has_state_changed(
        self,
        previous: MarketStateLabel | None,
        new: MarketStateLabel,
        previous_confidence: float,
        new_confidence: float,
    ) -> bool:
        return has_state_changed(
            previous,
            new,
            previous_confidence,
            new_confidence,
            confidence_delta=self._cfg.confidence_change_delta,
        )

    def is_transition_confirmed(
        self,
        persisted: MarketStateLabel | None,
        recent_labels: Sequence[MarketStateLabel],
    ) -> bool:
        return is_transition_confirmed(
            persisted,
            recent_labels,
            persistence=self._cfg.state_change_persistence,
        )

    def _score_calm_liquid(self, f: MarketFeaturesInput, hist: HistoricalAverages | None) -> _StateScore:
        cfg = self._cfg
        state = _StateScore(MarketStateLabel.CALM_LIQUID, 50)

        if f.spread is not None and f.spread < cfg.spread_thin:
            comparison = f"vs {hist.spread * 100:.2f}% avg" if hist else None
            state.add(20, _spread_bullet("Tight spread indicates stable pricing", f.spread, comparison))

        if f.depth is not None and f.depth > cfg.depth_medium:
            comparison = f"vs ${round_half_up(hist.depth)} avg" if hist else None
            state.add(20, _depth_bullet("Deep order book supports larger trades", f.depth, comparison))

        if f.staleness_seconds is not None and f.staleness_seconds < cfg.staleness_medium:
            state.add(10, _staleness_bullet("Recent trades show active market", f.staleness_seconds))

        if f.vol_proxy is not None and f.vol_proxy < cfg.vol_high:
            state.add(10, _volatility_bullet("Low price volatility reduces execution risk", f.vol_proxy))

        return state

    def _score_thin_slippage(self, f: MarketFeaturesInput, hist: HistoricalAverages | None) -> _StateScore:
        cfg = self._cfg
        state = _StateScore(MarketStateLabel.THIN_SLIPPAGE, 30)

        if f.depth is not None and f.depth < cfg.depth_low:
            comparison = f"vs ${round_half_up(hist.depth)} avg" if hist else None
            state.add(30, _depth_bullet("Shallow order book may cause slippage", f.depth, comparison))
        elif f.depth is not None and f.depth < cfg.depth_medium:
            state.add(15, _depth_bullet("Below-average liquidity available", f.depth))

        if f.spread is not None and f.spread > cfg.spread_thin:
            state.add(20, _spread_bullet("Wide spread increases trading cost", f.spread))

        if f.trade_count is not None and f.trade_count < DEFAULT_LOW_TRADE_COUNT:
            state.add(
                10,
                WhyBullet(
                    text="Low trading activity in recent window",
                    metric="Trades",
                    value=f.trade_count,
                    unit="in window",
                ),
            )

        if f.staleness_seconds is not None and f.staleness_seconds > cfg.staleness_medium:
            if f.staleness_seconds > cfg.staleness_high:
                text = "No trades for a long stretch - market is stale"
            else:
                text = "No recent trades - market may be stale"
            state.add(10, _staleness_bullet(text, f.staleness_seconds))

        return state

    def _score_jumpy(self, f: MarketFeaturesInput, hist: HistoricalAverages | None) -> _StateScore:
        cfg = self._cfg
        state = _StateScore(MarketStateLabel.JUMPY, 30)

        if f.vol_proxy is not None and f.vol_proxy > cfg.vol_high:
            comparison = None
            if hist:
                multiple = f.vol_proxy / hist.vol_proxy if hist.vol_proxy else f.vol_proxy
                comparison = f"{multiple:.1f}x normal"
            state.add(30, _volatility_bullet("Price volatility is elevated", f.vol_proxy, comparison))

        if f.spread is not None and f.spread > cfg.spread_thin:
            state.add(15, _spread_bullet("Spread widened from normal levels", f.spread))

        if f.impact_proxy is not None and f.impact_proxy > DEFAULT_IMPACT_HIGH:
            state.add(
                15,
                WhyBullet(
                    text="Expected price impact is higher than usual",
                    metric="Impact",
                    value=round_half_up(f.impact_proxy * 100, 2),
                    unit="% per $1K",
                ),
            )

        if f.volume_usd is not None and hist and f.volume_usd > hist.depth * 2:
            state.add(
                10,
                WhyBullet(text="Elevated trading volume", metric="Volume", value=round_half_up(f.volume_usd), unit="USD"),
            )

        return state

    def _score_event_driven(self, f: MarketFeaturesInput) -> _StateScore:
        cfg = self._cfg
        # Lower base: needs clear signals.
        state = _StateScore(MarketStateLabel.EVENT_DRIVEN, 20)

        if f.vol_proxy is not None and f.vol_proxy > cfg.vol_extreme:
            state.add(
                35,
                _volatility_bullet(
                    "Extreme price movement suggests news/event",
                    f.vol_proxy,
                    f"{f.vol_proxy / cfg.vol_high:.1f}x elevated",
                ),
            )

        if f.spread is not None and f.spread > cfg.spread_jumpy:
            state.add(25, _spread_bullet("Very wide spread indicates uncertainty", f.spread))

        if f.volume_usd is not None and f.volume_usd > DEFAULT_VOLUME_SURGE_USD:
            state.add(
                15,
                WhyBullet(text="Surge in trading activity", metric="Volume", value=round_half_up(f.volume_usd), unit="USD"),
            )

        if f.trade_count is not None and f.trade_count > DEFAULT_HIGH_TRADE_COUNT:
            state.add(
                10,
                WhyBullet(
                    text="Unusually high number of trades",
                    metric="Trades",
                    value=f.trade_count,
                    unit="in window",
                ),
            )

        return state


def has_state_changed(
    previous: MarketStateLabel | None,
    new: MarketStateLabel,
    previous_confidence: float,
    new_confidence: float,
    *,
    confidence_delta: float = 20.0,
) -> bool:
    """Return True when a persisted state should be considered a transition.

    The first observation (no previous state) is never a change. A different
    label always is; the same label counts only when confidence moved by more
    than ``confidence_delta`` points.
    """
    if previous is None:
        return False
    if previous != new:
        return True
    return abs(new_confidence - previous_confidence) > confidence_delta


def is_transition_confirmed(
    persisted: MarketStateLabel | None,
    recent_labels: Sequence[MarketStateLabel],
    *,
    persistence: int = 2,
) -> bool:
    """Return True when the latest label has held long enough to replace ``persisted``.

    ``recent_labels`` is ordered oldest to newest. The newest label must
    differ from the persisted one and appear in each of the last
    ``persistence`` observations.
    """
    if persistence < 1:
        raise ValueError("persistence must be at least 1")
    if len(recent_labels) < persistence:
        return False
    newest = recent_labels[-1]
    if newest == persisted:
        return False
    return all(label == newest for label in recent_labels[-persistence:])
