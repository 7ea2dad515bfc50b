"""Flow episode sessionizing and classification.

Trades in a market are grouped into episodes separated by quiet gaps, and
each episode is labelled by the pattern it most resembles: a one-off spike,
sustained accumulation, a crowd chase or an exhaustion move.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

import numpy as np

from polymarket_analytics.evidence import WhyBullet, WhyBullets, pad_or_trim_why_bullets, round_half_up
from polymarket_analytics.trades.models import (
    FlowDirection,
    FlowEpisode,
    FlowLabel,
    FlowLabelResult,
    MarketFlowSummary,
    TradeEvent,
)

logger = logging.getLogger(__name__)

RECENT_EPISODE_LIMIT = 10
INTENSITY_EPISODE_WINDOW = 5
NET_FLOW_NEUTRAL_BAND = 1_000.0


class FlowClassifierError(Exception):
    pass


@dataclass(frozen=True)
class FlowThresholds:
    session_gap_minutes: float = 30.0
    min_trades_for_episode: int = 2
    spike_min_size: float = 10_000.0
    accumulation_min_trades: int = 5
    crowd_min_wallets: int = 5
    exhaustion_price_threshold: float = 0.85
    follow_up_window_minutes: float = 60.0


def _minutes_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 60.0


def _mean(values: Sequence[float]) -> float:
    return float(np.mean(values)) if len(values) else 0.0


def build_flow_episodes(
    market_id: str,
    trades: Sequence[TradeEvent],
    thresholds: FlowThresholds | None = None,
) -> list[FlowEpisode]:
    """Split a market's trades into episodes.

    Trades are sorted by time first. A gap strictly longer than
    ``session_gap_minutes`` starts a new episode, and groups with fewer than
    ``min_trades_for_episode`` trades are dropped.

    Raises:
        FlowClassifierError: If a trade timestamp is not timezone-aware.
    """
    cfg = thresholds or FlowThresholds()
    if not trades:
        return []

    for trade in trades:
        if trade.timestamp.tzinfo is None:
            raise FlowClassifierError(f"Trade {trade.trade_id} timestamp must be timezone-aware")

    ordered = sorted(trades, key=lambda t: t.timestamp)
    groups: list[list[TradeEvent]] = [[ordered[0]]]
    for trade in ordered[1:]:
        if _minutes_between(groups[-1][-1].timestamp, trade.timestamp) > cfg.session_gap_minutes:
            groups.append([trade])
        else:
            groups[-1].append(trade)

    episodes: list[FlowEpisode] = []
    for group in groups:
        if len(group) >= cfg.min_trades_for_episode:
            episodes.append(_build_episode(market_id, group, len(episodes)))
    return episodes


def _build_episode(market_id: str, trades: list[TradeEvent], index: int) -> FlowEpisode:
    first, last = trades[0], trades[-1]
    total_volume = sum(t.size for t in trades)
    price_change = (last.price - first.price) / first.price * 100 if first.price > 0 else 0.0
    start_millis = int(first.timestamp.timestamp() * 1000)

    return FlowEpisode(
        episode_id=f"{market_id}-{index}-{start_millis}",
        market_id=market_id,
        start_time=first.timestamp,
        end_time=last.timestamp,
        duration_minutes=_minutes_between(first.timestamp, last.timestamp),
        trades=tuple(trades),
        net_flow=sum(t.signed_size for t in trades),
        total_volume=total_volume,
        unique_wallets=len({t.wallet_id for t in trades}),
        avg_trade_size=total_volume / len(trades),
        price_at_start=first.price,
        price_at_end=last.price,
        price_change=price_change,
    )


class FlowClassifier:
    """Labels flow episodes and summarizes a market's recent flow.

    Each label accumulates points from the features that characterise it and
    the highest total wins. Ties go to the earlier label in the order spike,
    accumulation, crowd, exhaustion.
    """

    def __init__(self, *, thresholds: FlowThresholds | None = None) -> None:
        self._cfg = thresholds or FlowThresholds()

    @property
    def thresholds(self) -> FlowThresholds:
        return self._cfg

    def build_episodes(self, market_id: str, trades: Sequence[TradeEvent]) -> list[FlowEpisode]:
        return build_flow_episodes(market_id, trades, self._cfg)

    def follow_up_price(self, episode: FlowEpisode, later_trades: Sequence[TradeEvent]) -> float | None:
        """Price of the last trade within the follow-up window after the episode.

        Returns None when no trade lands in ``(end_time, end_time + window]``.
        """
        in_window = [
            t
            for t in later_trades
            if 0 < _minutes_between(episode.end_time, t.timestamp) <= self._cfg.follow_up_window_minutes
        ]
        if not in_window:
            return None
        return max(in_window, key=lambda t: t.timestamp).price

    def label_scores(self, episode: FlowEpisode) -> dict[FlowLabel, float]:
        return {
            FlowLabel.ONE_OFF_SPIKE: self._score_spike(episode),
            FlowLabel.SUSTAINED_ACCUMULATION: self._score_accumulation(episode),
            FlowLabel.CROWD_CHASE: self._score_crowd_chase(episode),
            FlowLabel.EXHAUSTION_MOVE: self._score_exhaustion(episode),
        }

    def classify(
        self,
        episode: FlowEpisode,
        *,
        follow_up_price: float | None = None,
        computed_at: datetime,
    ) -> FlowLabelResult:
        scores = self.label_scores(episode)
        best_label = FlowLabel.ONE_OFF_SPIKE
        best_score = scores[best_label]
        for label, score in scores.items():
            if score > best_score:
                best_label, best_score = label, score

        follow_up_change = None
        if follow_up_price is not None and episode.price_at_end > 0:
            follow_up_change = (follow_up_price - episode.price_at_end) / episode.price_at_end * 100

        logger.debug("Flow episode %s label=%s score=%.0f", episode.episode_id, best_label.value, best_score)
        return FlowLabelResult(
            episode_id=episode.episode_id,
            market_id=episode.market_id,
            label=best_label,
            confidence=round_half_up(min(100.0, best_score)),
            why_bullets=_why_bullets(best_label, episode),
            episode=episode,
            price_impact=abs(episode.price_change),
            follow_up_price_change=follow_up_change,
            computed_at=computed_at,
        )

    def summarize(
        self,
        market_id: str,
        trades: Sequence[TradeEvent],
        *,
        computed_at: datetime,
    ) -> MarketFlowSummary:
        episodes = self.build_episodes(market_id, trades)
        labelled = [self.classify(ep, computed_at=computed_at) for ep in episodes]

        # Counter preserves first-seen order, so ties go to the earliest label.
        dominant = None
        if labelled:
            dominant = Counter(r.label for r in labelled).most_common(1)[0][0]

        total_net_flow = sum(ep.net_flow for ep in episodes)
        direction: FlowDirection = "neutral"
        if total_net_flow > NET_FLOW_NEUTRAL_BAND:
            direction = "buying"
        elif total_net_flow < -NET_FLOW_NEUTRAL_BAND:
            direction = "selling"

        recent_volume = sum(ep.total_volume for ep in episodes[-INTENSITY_EPISODE_WINDOW:])
        intensity = min(100, round_half_up(recent_volume / 1000))

        return MarketFlowSummary(
            market_id=market_id,
            recent_episodes=tuple(labelled[-RECENT_EPISODE_LIMIT:]),
            dominant_flow_type=dominant,
            net_flow_direction=direction,
            flow_intensity=intensity,
            computed_at=computed_at,
        )

    def _score_spike(self, ep: FlowEpisode) -> float:
        cfg = self._cfg
        score = 0.0
        if ep.trade_count <= 3:
            score += 30
        if ep.avg_trade_size > cfg.spike_min_size:
            score += 40
        elif ep.avg_trade_size > cfg.spike_min_size / 2:
            score += 20
        if ep.unique_wallets == 1:
            score += 20
        if ep.duration_minutes < 5:
            score += 10
        return score

    def _score_accumulation(self, ep: FlowEpisode) -> float:
        cfg = self._cfg
        score = 0.0
        if ep.trade_count >= cfg.accumulation_min_trades:
            score += 30

        buys = sum(1 for t in ep.trades if t.side == "buy")
        direction_ratio = max(buys, ep.trade_count - buys) / ep.trade_count
        if direction_ratio > 0.8:
            score += 30
        elif direction_ratio > 0.6:
            score += 15

        if ep.duration_minutes > 60:
            score += 20
        elif ep.duration_minutes > 15:
            score += 10

        if ep.unique_wallets <= 2:
            score += 20
        return score

    def _score_crowd_chase(self, ep: FlowEpisode) -> float:
        cfg = self._cfg
        score = 0.0
        if ep.unique_wallets >= cfg.crowd_min_wallets:
            score += 40
        elif ep.unique_wallets >= 3:
            score += 20

        flow_sign = 1 if ep.net_flow > 0 else -1
        price_sign = 1 if ep.price_change > 0 else -1
        if flow_sign == price_sign and abs(ep.price_change) > 2:
            score += 30

        if ep.trade_count / max(1.0, ep.duration_minutes) > 0.5:
            score += 20

        # Similar sized trades rather than one whale.
        if ep.avg_trade_size > 0:
            size_std = float(np.std([t.size for t in ep.trades]))
            if size_std / ep.avg_trade_size < 0.5:
                score += 10
        return score

    def _score_exhaustion(self, ep: FlowEpisode) -> float:
        cfg = self._cfg
        score = 0.0
        extreme_price = max(ep.price_at_start, ep.price_at_end)
        if extreme_price > cfg.exhaustion_price_threshold or extreme_price < 1 - cfg.exhaustion_price_threshold:
            score += 30

        if ep.unique_wallets >= cfg.crowd_min_wallets:
            score += 20

        # Late participants going smaller.
        half = ep.trade_count // 2
        first_half_avg = _mean([t.size for t in ep.trades[:half]])
        second_half_avg = _mean([t.size for t in ep.trades[half:]])
        if second_half_avg < first_half_avg * 0.7:
            score += 25

        if abs(ep.price_change) < 1:
            score += 15

        if ep.avg_trade_size < 500:
            score += 10
        return score


def _why_bullets(label: FlowLabel, ep: FlowEpisode) -> WhyBullets:
    activity_rate = ep.trade_count / max(1.0, ep.duration_minutes)
    if label is FlowLabel.ONE_OFF_SPIKE:
        bullets = [
            WhyBullet(
                "Large single-session volume burst",
                "Total volume",
                round_half_up(ep.total_volume),
                "USD",
                f"in {ep.trade_count} trades",
            ),
            WhyBullet(
                "High average trade size suggests informed flow",
                "Avg trade size",
                round_half_up(ep.avg_trade_size),
                "USD",
            ),
            WhyBullet(
                f"Price moved {'up' if ep.price_change > 0 else 'down'} during spike",
                "Price impact",
                round_half_up(abs(ep.price_change), 1),
                "%",
            ),
        ]
    elif label is FlowLabel.SUSTAINED_ACCUMULATION:
        bullets = [
            WhyBullet(
                "Repeated trading over extended period",
                "Trade count",
                ep.trade_count,
                "trades",
                f"over {round_half_up(ep.duration_minutes)} minutes",
            ),
            WhyBullet(
                "Consistent directional flow suggests conviction",
                "Net flow",
                round_half_up(abs(ep.net_flow)),
                "USD",
                "buying" if ep.net_flow > 0 else "selling",
            ),
            WhyBullet(
                f"{ep.unique_wallets} wallet(s) building position",
                "Unique wallets",
                ep.unique_wallets,
                "wallets",
            ),
        ]
    elif label is FlowLabel.CROWD_CHASE:
        bullets = [
            WhyBullet(
                "Many wallets trading simultaneously",
                "Unique wallets",
                ep.unique_wallets,
                "wallets",
                f"in {round_half_up(ep.duration_minutes)} min window",
            ),
            WhyBullet(
                "Flow following price momentum",
                "Price change",
                round_half_up(ep.price_change, 1),
                "%",
                "with net buying" if ep.net_flow > 0 else "with net selling",
            ),
            WhyBullet(
                "High activity rate indicates FOMO behavior",
                "Activity rate",
                round_half_up(activity_rate, 2),
                "trades/min",
            ),
        ]
    else:
        bullets = [
            WhyBullet(
                "Price at extreme level suggests late-stage crowding",
                "Current price",
                round_half_up(max(ep.price_at_start, ep.price_at_end) * 100),
                "%",
                "approaching limit",
            ),
            WhyBullet(
                "Many participants piling in at extremes",
                "Participant count",
                ep.unique_wallets,
                "wallets",
            ),
            WhyBullet(
                "Watch for potential reversal",
                "Net flow",
                round_half_up(abs(ep.net_flow)),
                "USD",
                "still buying" if ep.net_flow > 0 else "still selling",
            ),
        ]

    filler = WhyBullet("Flow episode analyzed", "Duration", round_half_up(ep.duration_minutes), "minutes")
    return pad_or_trim_why_bullets(bullets, filler)


def classify_flow_episode(
    episode: FlowEpisode,
    thresholds: FlowThresholds | None = None,
    follow_up_price: float | None = None,
    *,
    computed_at: datetime,
) -> FlowLabelResult:
    return FlowClassifier(thresholds=thresholds).classify(
        episode,
        follow_up_price=follow_up_price,
        computed_at=computed_at,
    )


def summarize_market_flow(
    market_id: str,
    trades: Sequence[TradeEvent],
    thresholds: FlowThresholds | None = None,
    *,
    computed_at: datetime,
) -> MarketFlowSummary:
    return FlowClassifier(thresholds=thresholds).summarize(market_id, trades, computed_at=computed_at)
