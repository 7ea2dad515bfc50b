"""Data models for trade review and flow classification."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Literal

from polymarket_analytics.evidence import WhyBullets, bullets_to_dicts
from polymarket_analytics.market.models import MarketStateLabel

TradeSide = Literal["buy", "sell"]
Outcome = Literal["yes", "no"]


class TradeReviewLabel(str, Enum):
    """Execution-process verdict for a single trade."""

    GOOD_PROCESS = "good_process"
    ACCEPTABLE_PROCESS = "acceptable_process"
    RISKY_PROCESS = "risky_process"
    POOR_TIMING = "poor_timing"

    @property
    def display_label(self) -> str:
        return _REVIEW_DISPLAY_LABELS[self]


_REVIEW_DISPLAY_LABELS = {
    TradeReviewLabel.GOOD_PROCESS: "Good Execution Conditions",
    TradeReviewLabel.ACCEPTABLE_PROCESS: "Acceptable Conditions",
    TradeReviewLabel.RISKY_PROCESS: "Risky Execution Conditions",
    TradeReviewLabel.POOR_TIMING: "Poor Timing",
}


@dataclass(frozen=True)
class TradeInput:
    """A user trade to be reviewed.

    Attributes:
        wallet_id: Wallet that placed the trade.
        market_id: Market traded.
        trade_ts: Execution time.
        side: "buy" or "sell".
        notional: Trade notional in USD.
        price_executed: Fill price, when known.
    """

    wallet_id: str
    market_id: str
    trade_ts: datetime
    side: TradeSide
    notional: float | None = None
    price_executed: float | None = None


@dataclass(frozen=True)
class TradeContext:
    """Market conditions at the time of a trade. Every field may be None.

    Attributes:
        spread_at_entry: Spread as a price fraction when the trade was placed.
        depth_at_entry: Order book depth (USD) when the trade was placed.
        price_change_15m: Fractional price change over the 15 minutes before entry.
        price_change_5m: Fractional price change over the 5 minutes before entry.
        market_state: Market regime at entry.
        volume_ratio: Window volume relative to its average.
        user_median_spread: The wallet's historical median entry spread.
    """

    spread_at_entry: float | None = None
    depth_at_entry: float | None = None
    price_change_15m: float | None = None
    price_change_5m: float | None = None
    market_state: MarketStateLabel | None = None
    volume_ratio: float | None = None
    user_median_spread: float | None = None


@dataclass(frozen=True)
class TradeReviewResult:
    """Execution-quality review of one trade.

    Attributes:
        wallet_id: Wallet that placed the trade.
        market_id: Market traded.
        trade_ts: Execution time.
        side: Trade side.
        notional: Trade notional in USD.
        score: Process score (0 to 100).
        confidence: Share of key context fields that were present (0 to 100).
        label: Verdict, with the chasing override already applied.
        why_bullets: Exactly three pieces of evidence.
        metrics: Echo of the key context fields.
        computed_at: When the review was made.
    """

    wallet_id: str
    market_id: str
    trade_ts: datetime
    side: TradeSide
    notional: float | None
    score: int
    confidence: int
    label: TradeReviewLabel
    why_bullets: WhyBullets
    metrics: dict[str, object]
    computed_at: datetime

    @property
    def display_label(self) -> str:
        return self.label.display_label

    def to_dict(self) -> dict[str, object]:
        return {
            "wallet_id": self.wallet_id,
            "market_id": self.market_id,
            "trade_ts": self.trade_ts.isoformat(),
            "side": self.side,
            "notional": self.notional,
            "score": self.score,
            "confidence": self.confidence,
            "label": self.label.value,
            "display_label": self.display_label,
            "why_bullets": bullets_to_dicts(self.why_bullets),
            "metrics": dict(self.metrics),
            "computed_at": self.computed_at.isoformat(),
        }


class FlowLabel(str, Enum):
    """Behavioural signature of a flow episode."""

    ONE_OFF_SPIKE = "one_off_spike"
    SUSTAINED_ACCUMULATION = "sustained_accumulation"
    CROWD_CHASE = "crowd_chase"
    EXHAUSTION_MOVE = "exhaustion_move"

    @property
    def display_label(self) -> str:
        return _FLOW_DISPLAY_LABELS[self]


_FLOW_DISPLAY_LABELS = {
    FlowLabel.ONE_OFF_SPIKE: "One-off Spike",
    FlowLabel.SUSTAINED_ACCUMULATION: "Sustained Accumulation",
    FlowLabel.CROWD_CHASE: "Crowd Chase",
    FlowLabel.EXHAUSTION_MOVE: "Exhaustion Move",
}


@dataclass(frozen=True)
class TradeEvent:
    """A single executed trade from the market's trade stream.

    Attributes:
        trade_id: Unique trade identifier.
        wallet_id: Trader wallet.
        market_id: Market traded.
        timestamp: Execution time (timezone-aware).
        side: "buy" or "sell".
        outcome: "yes" or "no".
        size: Trade notional in USD.
        price: Execution price (0 to 1).
    """

    trade_id: str
    wallet_id: str
    market_id: str
    timestamp: datetime
    side: TradeSide
    outcome: Outcome
    size: float
    price: float

    @property
    def signed_size(self) -> float:
        """Return size signed by side (buys positive)."""
        return self.size if self.side == "buy" else -self.size


@dataclass(frozen=True)
class FlowEpisode:
    """Consecutive trades in one market not separated by a session gap.

    Attributes:
        episode_id: ``{market_id}-{index}-{start epoch millis}``.
        market_id: Market the trades belong to.
        start_time: First trade time.
        end_time: Last trade time.
        duration_minutes: Minutes between first and last trade.
        trades: Trades in time order.
        net_flow: Sum of buy sizes minus sell sizes (USD).
        total_volume: Sum of trade sizes (USD).
        unique_wallets: Distinct wallets in the episode.
        avg_trade_size: Mean trade size (USD).
        price_at_start: First trade price.
        price_at_end: Last trade price.
        price_change: Percentage change from start to end price.
    """

    episode_id: str
    market_id: str
    start_time: datetime
    end_time: datetime
    duration_minutes: float
    trades: tuple[TradeEvent, ...]
    net_flow: float
    total_volume: float
    unique_wallets: int
    avg_trade_size: float
    price_at_start: float
    price_at_end: float
    price_change: float

    @property
    def trade_count(self) -> int:
        return len(self.trades)

    def to_dict(self) -> dict[str, object]:
        return {
            "episode_id": self.episode_id,
            "market_id": self.market_id,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "duration_minutes": self.duration_minutes,
            "trade_count": self.trade_count,
            "net_flow": self.net_flow,
            "total_volume": self.total_volume,
            "unique_wallets": self.unique_wallets,
            "avg_trade_size": self.avg_trade_size,
            "price_at_start": self.price_at_start,
            "price_at_end": self.price_at_end,
            "price_change": self.price_change,
        }


@dataclass(frozen=True)
class FlowLabelResult:
    """Classification of a single flow episode.

    Attributes:
        episode_id: Episode identifier.
        market_id: Market identifier.
        label: Winning flow label.
        confidence: Winning label score capped at 100.
        why_bullets: Exactly three pieces of evidence.
        episode: The classified episode.
        price_impact: Absolute percentage price change over the episode.
        follow_up_price_change: Percentage change from episode end to a later
            follow-up price, if one was supplied.
        computed_at: When the classification was made.
    """

    episode_id: str
    market_id: str
    label: FlowLabel
    confidence: int
    why_bullets: WhyBullets
    episode: FlowEpisode
    price_impact: float
    computed_at: datetime
    follow_up_price_change: float | None = None

    @property
    def display_label(self) -> str:
        return self.label.display_label

    def to_dict(self) -> dict[str, object]:
        return {
            "episode_id": self.episode_id,
            "market_id": self.market_id,
            "label": self.label.value,
            "display_label": self.display_label,
            "confidence": self.confidence,
            "why_bullets": bullets_to_dicts(self.why_bullets),
            "episode": self.episode.to_dict(),
            "price_impact": self.price_impact,
            "follow_up_price_change": self.follow_up_price_change,
            "computed_at": self.computed_at.isoformat(),
        }


FlowDirection = Literal["buying", "selling", "neutral"]


@dataclass(frozen=True)
class MarketFlowSummary:
    """Roll-up of a market's recent flow episodes.

    Attributes:
        market_id: Market identifier.
        recent_episodes: Up to the 10 most recent labelled episodes.
        dominant_flow_type: Most frequent label, or None without episodes.
        net_flow_direction: Sign of the total net flow beyond a $1,000 band.
        flow_intensity: Volume of the last five episodes in $1K units, capped at 100.
        computed_at: When the summary was made.
    """

    market_id: str
    recent_episodes: tuple[FlowLabelResult, ...]
    dominant_flow_type: FlowLabel | None
    net_flow_direction: FlowDirection
    flow_intensity: int
    computed_at: datetime

    def to_dict(self) -> dict[str, object]:
        return {
            "market_id": self.market_id,
            "recent_episodes": [ep.to_dict() for ep in self.recent_episodes],
            "dominant_flow_type": self.dominant_flow_type.value if self.dominant_flow_type else None,
            "net_flow_direction": self.net_flow_direction,
            "flow_intensity": self.flow_intensity,
            "computed_at": self.computed_at.isoformat(),
        }
