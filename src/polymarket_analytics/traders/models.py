"""Data models for trader scoring and best-bet recommendations."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Literal

from polymarket_analytics.evidence import WhyBullets, bullets_to_dicts
from polymarket_analytics.trades.models import Outcome, TradeSide


class TraderTier(str, Enum):
    """Tier derived from the composite elite score."""

    ELITE = "elite"
    STRONG = "strong"
    MODERATE = "moderate"
    DEVELOPING = "developing"
    LIMITED = "limited"


class RiskProfile(str, Enum):
    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"


@dataclass(frozen=True)
class WalletTrade:
    """A raw fill from a wallet's trade history.

    Attributes:
        market_id: Market traded.
        outcome: Outcome token traded.
        side: "buy" opens or adds, "sell" reduces or closes.
        price: Fill price (0 to 1).
        shares: Number of outcome shares filled.
        timestamp: Fill time.
        category: Market category, if known.
    """

    market_id: str
    outcome: Outcome
    side: TradeSide
    price: float
    shares: float
    timestamp: datetime
    category: str | None = None


@dataclass(frozen=True)
class ClosedTrade:
    """A closed (or still open) position slice derived from raw fills.

    Attributes:
        market_id: Market traded.
        outcome: Outcome held.
        entry_price: Weighted-average entry price.
        exit_price: Exit price, None while open.
        size: Shares closed (or still held when open).
        profit: Realised profit in USD; 0 while open.
        timestamp: Exit time, or entry time for open positions.
        is_open: True for positions not yet closed.
        category: Market category, if known.
        opened_at: When the position was first opened, if known.
    """

    market_id: str
    outcome: Outcome
    entry_price: float
    exit_price: float | None
    size: float
    profit: float
    timestamp: datetime
    is_open: bool = False
    category: str | None = None
    opened_at: datetime | None = None

    @property
    def holding_hours(self) -> float | None:
        if self.opened_at is None or self.is_open:
            return None
        return (self.timestamp - self.opened_at).total_seconds() / 3600

    @property
    def cost(self) -> float:
        return self.entry_price * self.size


@dataclass(frozen=True)
class TraderMetrics:
    """Aggregate performance statistics for a wallet.

    Attributes:
        total_profit: Net realised profit (USD).
        total_volume: Capital deployed across closed trades (USD).
        win_rate: Percentage of profitable closed trades (0 to 100).
        trade_count: Number of closed trades.
        roi_percent: Net profit over volume, as a percentage.
        profit_factor: Gross profit over gross loss (999 with no losses).
        sharpe_ratio: Mean over population stdev of per-trade returns.
        max_drawdown: Largest drop from a running profit peak (%).
        gross_profit: Sum of winning trade profits.
        gross_loss: Absolute sum of losing trade profits.
        consecutive_wins: Current winning streak.
        longest_win_streak: Longest winning streak.
        avg_holding_time_hours: Average holding time.
        market_timing_score: Heuristic timing quality (0 to 100).
        primary_category: Most traded category, when categories are known.
        category_specialization: Share of trades per category (%).
    """

    total_profit: float = 0.0
    total_volume: float = 0.0
    win_rate: float = 0.0
    trade_count: int = 0
    roi_percent: float = 0.0
    profit_factor: float = 0.0
    sharpe_ratio: float = 0.0
    max_drawdown: float = 0.0
    gross_profit: float = 0.0
    gross_loss: float = 0.0
    consecutive_wins: int = 0
    longest_win_streak: int = 0
    avg_holding_time_hours: float = 0.0
    market_timing_score: float = 50.0
    primary_category: str | None = None
    category_specialization: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return {
            "total_profit": self.total_profit,
            "total_volume": self.total_volume,
            "win_rate": self.win_rate,
            "trade_count": self.trade_count,
            "roi_percent": self.roi_percent,
            "profit_factor": self.profit_factor,
            "sharpe_ratio": self.sharpe_ratio,
            "max_drawdown": self.max_drawdown,
            "gross_profit": self.gross_profit,
            "gross_loss": self.gross_loss,
            "consecutive_wins": self.consecutive_wins,
            "longest_win_streak": self.longest_win_streak,
            "avg_holding_time_hours": self.avg_holding_time_hours,
            "market_timing_score": self.market_timing_score,
            "primary_category": self.primary_category,
            "category_specialization": dict(self.category_specialization),
        }


@dataclass(frozen=True)
class TraderScore:
    """Composite elite score for a wallet.

    Attributes:
        wallet_address: Wallet scored.
        elite_score: Sum of the four component scores (0 to 100).
        trader_tier: Tier derived from the elite score.
        risk_profile: Sizing and drawdown temperament.
        performance_score: Win rate, profit factor and profit (0 to 40).
        consistency_score: Sharpe, drawdown and streaks (0 to 30).
        experience_score: Trade count and timing (0 to 20).
        risk_score: ROI balance and volume efficiency (0 to 10).
        why_bullets: Exactly three pieces of evidence.
        is_recommended: Elite tier with enough profit, win rate and history.
        strengths: Notable positives.
        warnings: Notable risks.
        rank: 1-based rank among a scored batch; 0 until ranked.
        elite_rank: 1-based rank among elite-tier wallets, if elite.
    """

    wallet_address: str
    elite_score: float
    trader_tier: TraderTier
    risk_profile: RiskProfile
    performance_score: float
    consistency_score: float
    experience_score: float
    risk_score: float
    why_bullets: WhyBullets
    is_recommended: bool = False
    strengths: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    rank: int = 0
    elite_rank: int | None = None

    @property
    def is_elite(self) -> bool:
        return self.trader_tier is TraderTier.ELITE

    def to_dict(self) -> dict[str, object]:
        return {
            "wallet_address": self.wallet_address,
            "elite_score": self.elite_score,
            "trader_tier": self.trader_tier.value,
            "risk_profile": self.risk_profile.value,
            "performance_score": self.performance_score,
            "consistency_score": self.consistency_score,
            "experience_score": self.experience_score,
            "risk_score": self.risk_score,
            "why_bullets": bullets_to_dicts(self.why_bullets),
            "is_recommended": self.is_recommended,
            "strengths": list(self.strengths),
            "warnings": list(self.warnings),
            "rank": self.rank,
            "elite_rank": self.elite_rank,
        }


Consensus = Literal["bullish", "bearish", "mixed"]
RecommendationStrength = Literal["strong", "moderate", "weak"]
RecommendedSide = Literal["yes", "no", "none"]
RiskLevel = Literal["low", "medium", "high"]
ActivityTrend = Literal["increasing", "stable", "decreasing"]


@dataclass(frozen=True)
class ElitePosition:
    """An elite trader's position in a market."""

    wallet_address: str
    market_id: str
    side: Outcome
    entry_price: float
    size: float
    timestamp: datetime


@dataclass(frozen=True)
class MarketData:
    market_id: str
    question: str
    current_price: float
    category: str | None = None
    volume_24h: float = 0.0
    liquidity: float = 0.0


@dataclass(frozen=True)
class TopTrader:
    address: str
    elite_score: float
    position: Outcome
    confidence: float  # position size as % of elite volume
    entry_price: float
    timestamp: datetime

    def to_dict(self) -> dict[str, object]:
        return {
            "address": self.address,
            "elite_score": self.elite_score,
            "position": self.position,
            "confidence": self.confidence,
            "entry_price": self.entry_price,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class BestBet:
    """Consensus recommendation built from elite positions in one market.

    Attributes:
        market_id: Market identifier.
        market_question: Market question text.
        market_category: Market category, if known.
        elite_trader_count: Distinct elite wallets positioned.
        avg_elite_score: Mean elite score of scored positions.
        total_elite_volume: Sum of elite position sizes.
        elite_consensus: Direction of the YES/NO volume split.
        consensus_strength: Strength of that split (0 to 100).
        top_traders: Up to five highest-scored elite positions.
        recommendation_strength: Tier of the confidence score.
        recommended_side: "yes"/"no" only with at least 70% consensus.
        confidence_score: Weighted recommendation score (0 to 100).
        current_price: Current YES price.
        avg_elite_entry_price: Mean elite entry price.
        potential_return: Return (%) if the recommended side resolves true.
        risk_level: Risk from consensus strength and trader count.
        last_elite_activity: Most recent elite position time.
        activity_trend: Positions in the last 24h versus before.
        why_bullets: Exactly three pieces of evidence.
    """

    market_id: str
    market_question: str
    market_category: str | None
    elite_trader_count: int
    avg_elite_score: float
    total_elite_volume: float
    elite_consensus: Consensus
    consensus_strength: float
    top_traders: tuple[TopTrader, ...]
    recommendation_strength: RecommendationStrength
    recommended_side: RecommendedSide
    confidence_score: float
    current_price: float
    avg_elite_entry_price: float
    potential_return: float
    risk_level: RiskLevel
    last_elite_activity: datetime
    activity_trend: ActivityTrend
    why_bullets: WhyBullets
    computed_at: datetime

    def to_dict(self) -> dict[str, object]:
        return {
            "market_id": self.market_id,
            "market_question": self.market_question,
            "market_category": self.market_category,
            "elite_trader_count": self.elite_trader_count,
            "avg_elite_score": self.avg_elite_score,
            "total_elite_volume": self.total_elite_volume,
            "elite_consensus": self.elite_consensus,
            "consensus_strength": self.consensus_strength,
            "top_traders": [t.to_dict() for t in self.top_traders],
            "recommendation_strength": self.recommendation_strength,
            "recommended_side": self.recommended_side,
            "confidence_score": self.confidence_score,
            "current_price": self.current_price,
            "avg_elite_entry_price": self.avg_elite_entry_price,
            "potential_return": self.potential_return,
            "risk_level": self.risk_level,
            "last_elite_activity": self.last_elite_activity.isoformat(),
            "activity_trend": self.activity_trend,
            "why_bullets": bullets_to_dicts(self.why_bullets),
            "computed_at": self.computed_at.isoformat(),
        }


@dataclass(frozen=True)
class OpenPosition:
    """A position still held, marked at the current price.

    Attributes:
        market_id: Market held.
        outcome: Outcome token held.
        shares: Shares held.
        avg_entry_price: Average price paid per share.
        current_price: Latest mark price.
    """

    market_id: str
    outcome: Outcome
    shares: float
    avg_entry_price: float
    current_price: float

    @property
    def unrealized_pnl(self) -> float:
        return self.shares * (self.current_price - self.avg_entry_price)


@dataclass(frozen=True)
class PricePoint:
    timestamp: datetime
    price: float


@dataclass(frozen=True)
class PerformanceMetrics:
    """Realised and unrealised results for a wallet's fills.

    Attributes:
        total_pnl: Realised plus unrealised PnL (USD).
        realized_pnl: PnL locked in by sells at average cost (USD).
        unrealized_pnl: Mark-to-market PnL of open positions (USD).
        total_trades: Number of fills considered.
        win_rate: Fraction of sells priced above the average cost at sale time (0 to 1).
        avg_slippage: Mean distance between fill and nearest recorded price.
        entry_timing_score: How close buys landed to the 48h window low (0 to 100).
    """

    total_pnl: float
    realized_pnl: float
    unrealized_pnl: float
    total_trades: int
    win_rate: float
    avg_slippage: float
    entry_timing_score: int

    def to_dict(self) -> dict[str, object]:
        return {
            "total_pnl": self.total_pnl,
            "realized_pnl": self.realized_pnl,
            "unrealized_pnl": self.unrealized_pnl,
            "total_trades": self.total_trades,
            "win_rate": self.win_rate,
            "avg_slippage": self.avg_slippage,
            "entry_timing_score": self.entry_timing_score,
        }
