"""Data models for cross-market consistency checks."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from polymarket_analytics.evidence import WhyBullets, bullets_to_dicts


class RelationType(str, Enum):
    """How two markets are logically related."""

    CALENDAR_VARIANT = "calendar_variant"
    MULTI_OUTCOME = "multi_outcome"
    INVERSE = "inverse"
    CORRELATED = "correlated"


class ConsistencyLabel(str, Enum):
    """Verdict on whether a related pair is priced coherently."""

    LOOKS_CONSISTENT = "looks_consistent"
    POTENTIAL_INCONSISTENCY_LOW = "potential_inconsistency_low"
    POTENTIAL_INCONSISTENCY_MEDIUM = "potential_inconsistency_medium"
    POTENTIAL_INCONSISTENCY_HIGH = "potential_inconsistency_high"

    @property
    def display_label(self) -> str:
        return _CONSISTENCY_DISPLAY_LABELS[self]


_CONSISTENCY_DISPLAY_LABELS = {
    ConsistencyLabel.LOOKS_CONSISTENT: "Looks Consistent",
    ConsistencyLabel.POTENTIAL_INCONSISTENCY_LOW: "Potential Inconsistency (Low)",
    ConsistencyLabel.POTENTIAL_INCONSISTENCY_MEDIUM: "Potential Inconsistency (Medium)",
    ConsistencyLabel.POTENTIAL_INCONSISTENCY_HIGH: "Potential Inconsistency (High)",
}


@dataclass(frozen=True)
class MarketPairInput:
    """Two markets to compare.

    Attributes:
        a_market_id: First market id.
        a_question: First market question.
        a_price: First market YES price (0 to 1).
        a_end_date: First market resolution date, if known.
        a_category: First market category, if known.
        b_market_id: Second market id.
        b_question: Second market question.
        b_price: Second market YES price (0 to 1).
        b_end_date: Second market resolution date, if known.
        b_category: Second market category, if known.
    """

    a_market_id: str
    a_question: str
    a_price: float
    b_market_id: str
    b_question: str
    b_price: float
    a_end_date: datetime | None = None
    a_category: str | None = None
    b_end_date: datetime | None = None
    b_category: str | None = None

    @property
    def days_between_end_dates(self) -> float | None:
        if self.a_end_date is None or self.b_end_date is None:
            return None
        return abs((self.a_end_date - self.b_end_date).total_seconds()) / 86_400


@dataclass(frozen=True)
class MarketRelationResult:
    a_market_id: str
    b_market_id: str
    relation_type: RelationType
    similarity: float
    relation_meta: dict[str, float | None] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return {
            "a_market_id": self.a_market_id,
            "b_market_id": self.b_market_id,
            "relation_type": self.relation_type.value,
            "similarity": self.similarity,
            "relation_meta": dict(self.relation_meta),
        }


@dataclass(frozen=True)
class ConsistencyCheckResult:
    """Consistency verdict for a related pair of markets.

    Attributes:
        a_market_id: First market id.
        b_market_id: Second market id.
        a_question: First market question.
        b_question: Second market question.
        relation_type: Detected relation.
        label: Verdict derived from the score.
        score: 100 is fully consistent, 0 is maximally inconsistent.
        confidence: Question similarity scaled to 0-100.
        why_bullets: Exactly three pieces of evidence.
        price_a: First market YES price.
        price_b: Second market YES price.
        computed_at: When the check ran.
    """

    a_market_id: str
    b_market_id: str
    a_question: str
    b_question: str
    relation_type: RelationType
    label: ConsistencyLabel
    score: int
    confidence: int
    why_bullets: WhyBullets
    price_a: float
    price_b: float
    computed_at: datetime

    @property
    def display_label(self) -> str:
        return self.label.display_label

    @property
    def is_inconsistent(self) -> bool:
        return self.label is not ConsistencyLabel.LOOKS_CONSISTENT

    def to_dict(self) -> dict[str, object]:
        return {
            "a_market_id": self.a_market_id,
            "b_market_id": self.b_market_id,
            "a_question": self.a_question,
            "b_question": self.b_question,
            "relation_type": self.relation_type.value,
            "label": self.label.value,
            "display_label": self.display_label,
            "score": self.score,
            "confidence": self.confidence,
            "why_bullets": bullets_to_dicts(self.why_bullets),
            "price_a": self.price_a,
            "price_b": self.price_b,
            "computed_at": self.computed_at.isoformat(),
        }
