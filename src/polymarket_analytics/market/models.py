"""Data models for the market classifiers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Literal

from polymarket_analytics.evidence import WhyBullets, bullets_to_dicts


class MarketGrade(str, Enum):
    """Letter grade summarising a market's tradability."""

    A = "A"
    B = "B"
    C = "C"
    D = "D"
    F = "F"


@dataclass(frozen=True)
class MarketQualityInput:
    """Tradability inputs for one market.

    Attributes:
        spread: Bid/ask spread as a price fraction (0.02 = 2 cents).
        depth: Visible order book depth in USD.
        volume_24h: Trailing 24h traded volume in USD.
        staleness_hours: Hours since the last trade.
        resolution_clarity: How unambiguous the resolution rules are (0 to 1).
    """

    spread: float
    depth: float
    volume_24h: float
    staleness_hours: float
    resolution_clarity: float


@dataclass(frozen=True)
class QualityBreakdown:
    spread_score: float
    depth_score: float
    volume_score: float
    staleness_score: float
    clarity_score: float

    def to_dict(self) -> dict[str, float]:
        return {
            "spread_score": self.spread_score,
            "depth_score": self.depth_score,
            "volume_score": self.volume_score,
            "staleness_score": self.staleness_score,
            "clarity_score": self.clarity_score,
        }


@dataclass(frozen=True)
class MarketQualityResult:
    """Weighted quality score and grade for a market.

    Attributes:
        score: Weighted score from 0 to 100, rounded to 2 decimals.
        grade: Letter grade derived from the score.
        breakdown: Individual component scores.
        why_bullets: The three weakest components, lowest first.
    """

    score: float
    grade: MarketGrade
    breakdown: QualityBreakdown
    why_bullets: WhyBullets

    @property
    def is_tradeable(self) -> bool:
        """Return True for grades A through C."""
        return self.grade in (MarketGrade.A, MarketGrade.B, MarketGrade.C)

    def to_dict(self) -> dict[str, object]:
        return {
            "score": self.score,
            "grade": self.grade.value,
            "breakdown": self.breakdown.to_dict(),
            "why_bullets": bullets_to_dicts(self.why_bullets),
        }


class BehaviorCluster(str, Enum):
    """Analyst-defined behavioural archetypes for markets."""

    STABLE_LIQUID = "stable_liquid"
    VOLATILE_SPECULATIVE = "volatile_speculative"
    TRENDING_MOMENTUM = "trending_momentum"
    ILLIQUID_NICHE = "illiquid_niche"
    EVENT_BINARY = "event_binary"
    LONG_HORIZON = "long_horizon"

    @property
    def display_label(self) -> str:
        return _CLUSTER_DISPLAY_LABELS[self]


_CLUSTER_DISPLAY_LABELS = {
    BehaviorCluster.STABLE_LIQUID: "Stable & Liquid",
    BehaviorCluster.VOLATILE_SPECULATIVE: "Volatile Speculative",
    BehaviorCluster.TRENDING_MOMENTUM: "Trending Momentum",
    BehaviorCluster.ILLIQUID_NICHE: "Illiquid Niche",
    BehaviorCluster.EVENT_BINARY: "Event Binary",
    BehaviorCluster.LONG_HORIZON: "Long Horizon",
}


@dataclass(frozen=True)
class BehaviorDimensions:
    """Five behavioural dimensions of a market, each typically in [0, 1]."""

    volatility: float
    momentum: float
    liquidity_profile: float
    time_horizon: float
    event_sensitivity: float

    def as_vector(self) -> tuple[float, float, float, float, float]:
        return (
            self.volatility,
            self.momentum,
            self.liquidity_profile,
            self.time_horizon,
            self.event_sensitivity,
        )


@dataclass(frozen=True)
class ClusterResult:
    """Nearest-centroid assignment of a market.

    Attributes:
        cluster: Nearest behavioural archetype.
        confidence: 1 - d1 / (d1 + d2) over the two nearest centroids, 0 to 1.
        distances: Distance to every centroid, keyed by cluster value.
        description: Human-readable description of the archetype.
        why_bullets: Distances to the two nearest centroids and the confidence.
    """

    cluster: BehaviorCluster
    confidence: float
    distances: dict[str, float]
    description: str
    why_bullets: WhyBullets

    def to_dict(self) -> dict[str, object]:
        return {
            "cluster": self.cluster.value,
            "confidence": self.confidence,
            "distances": dict(self.distances),
            "description": self.description,
            "why_bullets": bullets_to_dicts(self.why_bullets),
        }


class MarketStateLabel(str, Enum):
    """Current microstructure regime of a market."""

    CALM_LIQUID = "calm_liquid"
    THIN_SLIPPAGE = "thin_slippage"
    JUMPY = "jumpy"
    EVENT_DRIVEN = "event_driven"

    @property
    def display_label(self) -> str:
        return _STATE_DISPLAY_LABELS[self]


_STATE_DISPLAY_LABELS = {
    MarketStateLabel.CALM_LIQUID: "Calm & Liquid",
    MarketStateLabel.THIN_SLIPPAGE: "Thin - Slippage Risk",
    MarketStateLabel.JUMPY: "Jumpier Than Usual",
    MarketStateLabel.EVENT_DRIVEN: "Event-driven - Expect Gaps",
}


@dataclass(frozen=True)
class MarketFeaturesInput:
    """Point-in-time microstructure snapshot for one market.

    Any feature may be None when the caller could not compute it.

    Attributes:
        market_id: Market identifier.
        spread: Bid/ask spread as a price fraction.
        depth: Order book depth in USD.
        staleness_seconds: Seconds since the last trade.
        vol_proxy: Volatility proxy (e.g. stdev of recent returns).
        impact_proxy: Expected price move per $1K traded.
        trade_count: Trades in the feature window.
        volume_usd: Volume in the feature window (USD).
    """

    market_id: str
    spread: float | None = None
    depth: float | None = None
    staleness_seconds: float | None = None
    vol_proxy: float | None = None
    impact_proxy: float | None = None
    trade_count: int | None = None
    volume_usd: float | None = None


@dataclass(frozen=True)
class HistoricalAverages:
    """Trailing averages used to phrase relative comparisons."""

    spread: float
    depth: float
    vol_proxy: float


@dataclass(frozen=True)
class MarketStateFeatures:
    spread_pct: float | None
    depth_usd: float | None
    staleness_minutes: int | None
    volatility: float | None

    def to_dict(self) -> dict[str, object]:
        return {
            "spread_pct": self.spread_pct,
            "depth_usd": self.depth_usd,
            "staleness_minutes": self.staleness_minutes,
            "volatility": self.volatility,
        }


@dataclass(frozen=True)
class MarketStateResult:
    """Labelled market regime with supporting evidence.

    Attributes:
        market_id: Market identifier.
        state_label: Winning regime.
        confidence: Margin-based confidence (0 to 100).
        why_bullets: Exactly three pieces of evidence.
        features: Normalised features echoed back for display.
        computed_at: When the classification was made.
    """

    market_id: str
    state_label: MarketStateLabel
    confidence: int
    why_bullets: WhyBullets
    features: MarketStateFeatures
    computed_at: datetime

    @property
    def display_label(self) -> str:
        return self.state_label.display_label

    def to_dict(self) -> dict[str, object]:
        return {
            "market_id": self.market_id,
            "state_label": self.state_label.value,
            "display_label": self.display_label,
            "confidence": self.confidence,
            "why_bullets": bullets_to_dicts(self.why_bullets),
            "features": self.features.to_dict(),
            "computed_at": self.computed_at.isoformat(),
        }


MarketSide = Literal["yes", "no"]


class SetupQualityBand(str, Enum):
    """How orderly markets with a similar structure have historically traded."""

    HISTORICALLY_FAVORABLE = "historically_favorable"
    MIXED_WORKABLE = "mixed_workable"
    NEUTRAL = "neutral"
    HISTORICALLY_UNFORGIVING = "historically_unforgiving"

    @property
    def display_label(self) -> str:
        return _SETUP_BAND_DISPLAY_LABELS[self]


_SETUP_BAND_DISPLAY_LABELS = {
    SetupQualityBand.HISTORICALLY_FAVORABLE: "Historically Favorable",
    SetupQualityBand.MIXED_WORKABLE: "Mixed but Workable",
    SetupQualityBand.NEUTRAL: "Neutral Structure",
    SetupQualityBand.HISTORICALLY_UNFORGIVING: "Historically Challenging",
}


class ParticipantQualityBand(str, Enum):
    """How much experienced activity a market side attracts."""

    STRONG = "strong"
    MODERATE = "moderate"
    LIMITED = "limited"

    @property
    def display_label(self) -> str:
        return _PARTICIPANT_BAND_DISPLAY_LABELS[self]


_PARTICIPANT_BAND_DISPLAY_LABELS = {
    ParticipantQualityBand.STRONG: "Strong Participation",
    ParticipantQualityBand.MODERATE: "Moderate Participation",
    ParticipantQualityBand.LIMITED: "Limited Participation",
}


class ParticipationSummary(str, Enum):
    FEW_DOMINANT = "few_dominant"
    MIXED_PARTICIPATION = "mixed_participation"
    BROAD_RETAIL = "broad_retail"


@dataclass(frozen=True)
class MarketParticipationInput:
    """Snapshot and flow statistics for one side of a market.

    Snapshot fields may be None when the book was not captured. The flow
    fields are optional; when the volume split by participant size is not
    known it is estimated from the average trade size and trader count.

    Attributes:
        market_id: Market identifier.
        side: Outcome side being analysed.
        liquidity: Pool liquidity in USD.
        volume_24h: Trailing 24h volume in USD.
        spread: Bid/ask spread as a price fraction.
        depth: Visible order book depth in USD.
        unique_traders: Distinct wallets trading the side.
        avg_trade_size: Mean fill size in USD.
        large_trade_count: Fills above the large-trade cutoff.
        total_trade_count: All fills.
        large_trader_volume_pct: Volume share from wallets trading over $10k.
        mid_trader_volume_pct: Volume share from wallets trading $1k to $10k.
        small_trader_volume_pct: Volume share from wallets trading under $1k.
        price_stability: Historical price stability (0 to 100).
        liquidity_stability: Historical liquidity stability (0 to 100).
        volume_consistency: Historical volume consistency (0 to 100).
    """

    market_id: str
    side: MarketSide
    liquidity: float | None = None
    volume_24h: float | None = None
    spread: float | None = None
    depth: float | None = None
    unique_traders: int | None = None
    avg_trade_size: float | None = None
    large_trade_count: int | None = None
    total_trade_count: int | None = None
    large_trader_volume_pct: float | None = None
    mid_trader_volume_pct: float | None = None
    small_trader_volume_pct: float | None = None
    price_stability: float | None = None
    liquidity_stability: float | None = None
    volume_consistency: float | None = None


@dataclass(frozen=True)
class ParticipationBreakdown:
    """Volume split by participant size, in whole percent summing to 100."""

    large_pct: int
    mid_pct: int
    small_pct: int

    def to_dict(self) -> dict[str, int]:
        return {
            "large_pct": self.large_pct,
            "mid_pct": self.mid_pct,
            "small_pct": self.small_pct,
        }


@dataclass(frozen=True)
class ParticipationStructureResult:
    """Structural read of a market side. Describes past behaviour only.

    Attributes:
        market_id: Market identifier.
        side: Outcome side analysed.
        setup_quality_score: Structure score (0 to 100).
        setup_quality_band: Band for the structure score.
        participant_quality_score: Participant score (0 to 100).
        participant_quality_band: Band for the participant score.
        participation_summary: Who dominates the volume.
        breakdown: Volume split by participant size.
        behavior_insight: One sentence on how similar structures behaved.
        why_bullets: Exactly three pieces of evidence.
        computed_at: When the analysis was made.
    """

    market_id: str
    side: MarketSide
    setup_quality_score: int
    setup_quality_band: SetupQualityBand
    participant_quality_score: int
    participant_quality_band: ParticipantQualityBand
    participation_summary: ParticipationSummary
    breakdown: ParticipationBreakdown
    behavior_insight: str
    why_bullets: WhyBullets
    computed_at: datetime

    def to_dict(self) -> dict[str, object]:
        return {
            "market_id": self.market_id,
            "side": self.side,
            "setup_quality_score": self.setup_quality_score,
            "setup_quality_band": self.setup_quality_band.value,
            "setup_quality_label": self.setup_quality_band.display_label,
            "participant_quality_score": self.participant_quality_score,
            "participant_quality_band": self.participant_quality_band.value,
            "participant_quality_label": self.participant_quality_band.display_label,
            "participation_summary": self.participation_summary.value,
            "breakdown": self.breakdown.to_dict(),
            "behavior_insight": self.behavior_insight,
            "why_bullets": bullets_to_dicts(self.why_bullets),
            "computed_at": self.computed_at.isoformat(),
        }


class MarketArchetype(str, Enum):
    """Information-flow archetype of a market, judged from its metadata."""

    SCHEDULED_EVENT = "scheduled_event"
    SPORTS_SCHEDULED = "sports_scheduled"
    BINARY_CATALYST = "binary_catalyst"
    CONTINUOUS_INFO = "continuous_info"
    HIGH_VOLATILITY = "high_volatility"
    LONG_DURATION = "long_duration"

    @property
    def display_label(self) -> str:
        return _ARCHETYPE_DISPLAY_LABELS[self]


_ARCHETYPE_DISPLAY_LABELS = {
    MarketArchetype.SCHEDULED_EVENT: "Scheduled Event",
    MarketArchetype.SPORTS_SCHEDULED: "Sports / Scheduled",
    MarketArchetype.BINARY_CATALYST: "Binary Catalyst",
    MarketArchetype.CONTINUOUS_INFO: "Continuous Info",
    MarketArchetype.HIGH_VOLATILITY: "High Volatility",
    MarketArchetype.LONG_DURATION: "Long Duration",
}


@dataclass(frozen=True)
class MarketProfileInput:
    """Metadata and activity statistics used to profile a market.

    Attributes:
        market_id: Market identifier.
        question: Market question text.
        category: Market category, if known.
        end_date: Scheduled resolution time, if known.
        spread_variance: Variance of the observed spread.
        avg_volume_24h: Average daily volume in USD.
        unique_traders: Distinct wallets that traded.
        trade_count: Total fills.
    """

    market_id: str
    question: str
    category: str | None = None
    end_date: datetime | None = None
    spread_variance: float | None = None
    avg_volume_24h: float | None = None
    unique_traders: int | None = None
    trade_count: int | None = None


@dataclass(frozen=True)
class InformationDimensions:
    """Five 0-100 dimensions describing how information reaches a market.

    Attributes:
        info_cadence: How often relevant news arrives (0 rare, 100 constant).
        info_structure: How scheduled the news is (0 random, 100 calendar).
        liquidity_stability: How steady the book is.
        time_to_resolution: How far away resolution is (0 imminent, 100 distant).
        participant_concentration: How few wallets dominate (100 very few).
    """

    info_cadence: int
    info_structure: int
    liquidity_stability: int
    time_to_resolution: int
    participant_concentration: int

    def to_dict(self) -> dict[str, int]:
        return {
            "info_cadence": self.info_cadence,
            "info_structure": self.info_structure,
            "liquidity_stability": self.liquidity_stability,
            "time_to_resolution": self.time_to_resolution,
            "participant_concentration": self.participant_concentration,
        }


@dataclass(frozen=True)
class ArchetypeResult:
    """Best-matching archetype for a market.

    Attributes:
        market_id: Market identifier.
        archetype: Winning archetype.
        confidence: Match strength, clamped to 40..95.
        dimensions: The dimensions the match was made on.
        explanation: Short prose summary of the dimensions.
        why_bullets: Exactly three pieces of evidence.
        computed_at: When the profile was made.
    """

    market_id: str
    archetype: MarketArchetype
    confidence: int
    dimensions: InformationDimensions
    explanation: str
    why_bullets: WhyBullets
    computed_at: datetime

    @property
    def display_label(self) -> str:
        return self.archetype.display_label

    def to_dict(self) -> dict[str, object]:
        return {
            "market_id": self.market_id,
            "archetype": self.archetype.value,
            "display_label": self.display_label,
            "confidence": self.confidence,
            "dimensions": self.dimensions.to_dict(),
            "explanation": self.explanation,
            "why_bullets": bullets_to_dicts(self.why_bullets),
            "computed_at": self.computed_at.isoformat(),
        }
