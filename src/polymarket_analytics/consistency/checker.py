"""Consistency checks between related markets.

Pairs of markets whose questions overlap are classified by relation
(calendar variant, inverse, multi-outcome, correlated) and their prices are
checked against what that relation implies. Question similarity is word
overlap (Jaccard) after stop-word removal.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime

from polymarket_analytics.consistency.models import (
    ConsistencyCheckResult,
    ConsistencyLabel,
    MarketPairInput,
    MarketRelationResult,
    RelationType,
)
from polymarket_analytics.evidence import WhyBullet, pad_or_trim_why_bullets, round_half_up

logger = logging.getLogger(__name__)

STOP_WORDS = frozenset(
    {
        "the", "and", "for", "are", "but", "not", "you", "all", "can", "had",
        "her", "was", "one", "our", "out", "has", "have", "been", "will",
        "more", "when", "who", "oil", "its", "how", "man", "way", "day",
        "did", "get", "him", "his", "than", "call", "first",
    }
)

CALENDAR_SIMILARITY = 0.7
CALENDAR_MIN_DAYS = 7.0
INVERSE_SIMILARITY = 0.8
INVERSE_SUM_TOLERANCE = 0.3
MULTI_OUTCOME_SIMILARITY = 0.5
MULTI_OUTCOME_MAX_GAP = 0.5
CORRELATED_SCORE = 80

LABEL_CUTOFFS = (
    (80, ConsistencyLabel.LOOKS_CONSISTENT),
    (60, ConsistencyLabel.POTENTIAL_INCONSISTENCY_LOW),
    (40, ConsistencyLabel.POTENTIAL_INCONSISTENCY_MEDIUM),
)

_NON_WORD = re.compile(r"[^\w\s]")


@dataclass(frozen=True)
class ConsistencyThresholds:
    similarity_threshold: float = 0.6
    date_proximity_days: float = 90.0
    inverted_divergence: float = 0.1
    calendar_spread: float = 0.15


def tokenize(text: str) -> list[str]:
    words = _NON_WORD.sub("", text.lower()).split()
    return [w for w in words if len(w) > 2 and w not in STOP_WORDS]


def question_similarity(a: str, b: str) -> float:
    """Jaccard similarity of the two questions' significant words."""
    words_a = set(tokenize(a))
    words_b = set(tokenize(b))
    union = words_a | words_b
    if not union:
        return 0.0
    return len(words_a & words_b) / len(union)


def label_for_score(score: float) -> ConsistencyLabel:
    for cutoff, label in LABEL_CUTOFFS:
        if score >= cutoff:
            return label
    return ConsistencyLabel.POTENTIAL_INCONSISTENCY_HIGH


class ConsistencyChecker:
    """Detects related market pairs and scores their pricing coherence."""

    def __init__(self, *, thresholds: ConsistencyThresholds | None = None) -> None:
        self._cfg = thresholds or ConsistencyThresholds()

    @property
    def thresholds(self) -> ConsistencyThresholds:
        return self._cfg

    def detect_relation(self, pair: MarketPairInput) -> MarketRelationResult | None:
        """Return the pair's relation, or None when the questions are unrelated."""
        similarity = question_similarity(pair.a_question, pair.b_question)
        if similarity < self._cfg.similarity_threshold:
            return None

        relation_type = self.classify_relation(pair, similarity)
        if relation_type is None:
            return None

        return MarketRelationResult(
            a_market_id=pair.a_market_id,
            b_market_id=pair.b_market_id,
            relation_type=relation_type,
            similarity=similarity,
            relation_meta={"date_proximity": pair.days_between_end_dates},
        )

    def classify_relation(self, pair: MarketPairInput, similarity: float) -> RelationType | None:
        days = pair.days_between_end_dates
        if (
            days is not None
            and similarity > CALENDAR_SIMILARITY
            and CALENDAR_MIN_DAYS < days < self._cfg.date_proximity_days
        ):
            return RelationType.CALENDAR_VARIANT

        q_a = pair.a_question.lower()
        q_b = pair.b_question.lower()
        opposed_wording = ("will" in q_a and "won't" in q_b) or ("yes" in q_a and "no" in q_b)
        if opposed_wording or similarity > INVERSE_SIMILARITY:
            if abs(pair.a_price + pair.b_price - 1) < INVERSE_SUM_TOLERANCE:
                return RelationType.INVERSE

        if pair.a_category == pair.b_category and similarity > MULTI_OUTCOME_SIMILARITY:
            return RelationType.MULTI_OUTCOME

        if similarity > self._cfg.similarity_threshold:
            return RelationType.CORRELATED

        return None

    def check_consistency(
        self,
        pair: MarketPairInput,
        relation: MarketRelationResult,
        *,
        computed_at: datetime,
    ) -> ConsistencyCheckResult:
        if relation.relation_type is RelationType.CALENDAR_VARIANT:
            score, reasons = self._check_calendar(pair)
        elif relation.relation_type is RelationType.INVERSE:
            score, reasons = self._check_inverse(pair)
        elif relation.relation_type is RelationType.MULTI_OUTCOME:
            score, reasons = self._check_multi_outcome(pair)
        else:
            score, reasons = self._check_correlated(pair)

        label = label_for_score(score)
        filler = WhyBullet("Consistency score computed", "Score", score, "/ 100")

        logger.debug(
            "Consistency %s/%s relation=%s score=%d",
            pair.a_market_id,
            pair.b_market_id,
            relation.relation_type.value,
            score,
        )
        return ConsistencyCheckResult(
            a_market_id=pair.a_market_id,
            b_market_id=pair.b_market_id,
            a_question=pair.a_question,
            b_question=pair.b_question,
            relation_type=relation.relation_type,
            label=label,
            score=score,
            confidence=round_half_up(relation.similarity * 100),
            why_bullets=pad_or_trim_why_bullets(reasons, filler),
            price_a=pair.a_price,
            price_b=pair.b_price,
            computed_at=computed_at,
        )

    def evaluate(
        self,
        pair: MarketPairInput,
        *,
        computed_at: datetime,
    ) -> ConsistencyCheckResult | None:
        """Detect the pair's relation and check it; None when unrelated."""
        relation = self.detect_relation(pair)
        if relation is None:
            return None
        return self.check_consistency(pair, relation, computed_at=computed_at)

    def _check_calendar(self, pair: MarketPairInput) -> tuple[int, list[WhyBullet]]:
        threshold = self._cfg.calendar_spread
        spread = abs(pair.a_price - pair.b_price)
        score = 100
        reasons: list[WhyBullet] = []

        if spread > threshold:
            score -= round_half_up((spread - threshold) * 200)
            reasons.append(
                WhyBullet(
                    "Unusual spread between date variants",
                    "Calendar spread",
                    round_half_up(spread * 100, 1),
                    "%",
                    f">{threshold * 100:.0f}% expected",
                )
            )
        else:
            reasons.append(
                WhyBullet("Calendar spread within normal range", "Calendar spread", round_half_up(spread * 100, 1), "%")
            )

        days = pair.days_between_end_dates
        if days is not None:
            reasons.append(WhyBullet(f"{round_half_up(days)} days between resolution dates", "Date gap", round_half_up(days), "days"))

        return max(0, score), reasons

    def _check_inverse(self, pair: MarketPairInput) -> tuple[int, list[WhyBullet]]:
        total = pair.a_price + pair.b_price
        divergence = abs(total - 1)
        score = 100
        reasons: list[WhyBullet] = []

        if divergence > self._cfg.inverted_divergence:
            score -= round_half_up(divergence * 300)
            reasons.append(
                WhyBullet(
                    "Inverse markets don't sum to 100%",
                    "Sum of prices",
                    round_half_up(total * 100, 1),
                    "%",
                    "should be ~100%",
                )
            )
        else:
            reasons.append(WhyBullet("Inverse markets properly priced", "Sum of prices", round_half_up(total * 100, 1), "%"))

        reasons.append(
            WhyBullet(
                f"Price difference suggests {divergence * 100:.1f}% edge",
                "Potential edge",
                round_half_up(divergence * 100, 2),
                "%",
            )
        )
        return max(0, score), reasons

    def _check_multi_outcome(self, pair: MarketPairInput) -> tuple[int, list[WhyBullet]]:
        gap = abs(pair.a_price - pair.b_price)
        score = 100
        reasons: list[WhyBullet] = []

        if gap > MULTI_OUTCOME_MAX_GAP:
            score -= 20
            reasons.append(
                WhyBullet("Large price difference between related outcomes", "Price gap", round_half_up(gap * 100, 1), "%")
            )

        reasons.append(
            WhyBullet(
                "Related outcome comparison",
                "Price A vs B",
                round_half_up(pair.a_price * 100),
                f"% vs {pair.b_price * 100:.0f}%",
            )
        )
        return max(0, score), reasons

    def _check_correlated(self, pair: MarketPairInput) -> tuple[int, list[WhyBullet]]:
        # No strong structural expectation for merely correlated markets.
        reasons = [
            WhyBullet("Markets appear correlated", "Price A", round_half_up(pair.a_price * 100), "%"),
            WhyBullet("Monitor for divergence", "Price B", round_half_up(pair.b_price * 100), "%"),
        ]
        return CORRELATED_SCORE, reasons
