"""Tests for cross-market consistency checks."""

from __future__ import annotations

import math
from datetime import UTC, datetime

import pytest

from polymarket_analytics.consistency.checker import (
    ConsistencyChecker,
    ConsistencyThresholds,
    label_for_score,
    question_similarity,
    tokenize,
)
from polymarket_analytics.consistency.models import (
    ConsistencyCheckResult,
    ConsistencyLabel,
    MarketPairInput,
    RelationType,
)


def _pair(
    a_question: str,
    a_price: float,
    b_question: str,
    b_price: float,
    **kwargs: object,
) -> MarketPairInput:
    return MarketPairInput(
        a_market_id="market_a",
        a_question=a_question,
        a_price=a_price,
        b_market_id="market_b",
        b_question=b_question,
        b_price=b_price,
        **kwargs,  # type: ignore[arg-type]
    )


def _inverse(a_price: float, b_price: float) -> MarketPairInput:
    return _pair("Will the event happen?", a_price, "Will the event NOT happen?", b_price)


def _world_series(a_price: float, b_price: float) -> MarketPairInput:
    return _pair(
        "Will the Dodgers win the World Series?",
        a_price,
        "Will the Yankees win the World Series?",
        b_price,
        a_category="Sports",
        b_category="Sports",
    )


def _calendar(a_price: float, b_price: float) -> MarketPairInput:
    return _pair(
        "Will Bitcoin price reach 100k dollars before June?",
        a_price,
        "Will Bitcoin price reach 100k dollars before September?",
        b_price,
        a_end_date=datetime(2024, 6, 30, tzinfo=UTC),
        b_end_date=datetime(2024, 9, 15, tzinfo=UTC),
    )


class TestQuestionSimilarity:
    def test_tokenize_drops_stop_words_and_short_words(self) -> None:
        assert tokenize("Will the Fed cut rates by 2025?") == ["fed", "cut", "rates", "2025"]

    def test_identical_after_stop_words(self) -> None:
        assert question_similarity("Will the event happen?", "Will the event NOT happen?") == 1.0

    def test_partial_overlap(self) -> None:
        similarity = question_similarity(
            "Will the Dodgers win the World Series?",
            "Will the Yankees win the World Series?",
        )
        assert similarity == pytest.approx(0.6)

    def test_empty_questions(self) -> None:
        assert question_similarity("", "") == 0.0


class TestLabelForScore:
    @pytest.mark.parametrize(
        ("score", "label"),
        [
            (100, ConsistencyLabel.LOOKS_CONSISTENT),
            (80, ConsistencyLabel.LOOKS_CONSISTENT),
            (79, ConsistencyLabel.POTENTIAL_INCONSISTENCY_LOW),
            (60, ConsistencyLabel.POTENTIAL_INCONSISTENCY_LOW),
            (59, ConsistencyLabel.POTENTIAL_INCONSISTENCY_MEDIUM),
            (40, ConsistencyLabel.POTENTIAL_INCONSISTENCY_MEDIUM),
            (39, ConsistencyLabel.POTENTIAL_INCONSISTENCY_HIGH),
        ],
    )
    def test_cutoffs(self, score: int, label: ConsistencyLabel) -> None:
        assert label_for_score(score) is label


class TestDetectRelation:
    def test_inverse(self) -> None:
        relation = ConsistencyChecker().detect_relation(_inverse(0.55, 0.42))

        assert relation is not None
        assert relation.relation_type is RelationType.INVERSE
        assert relation.similarity == 1.0

    def test_wont_wording_is_inverse(self) -> None:
        pair = _pair("Will the Fed cut rates in March?", 0.40, "Won't the Fed cut rates in March?", 0.58)
        relation = ConsistencyChecker().detect_relation(pair)

        assert relation is not None
        assert relation.relation_type is RelationType.INVERSE

    def test_multi_outcome(self) -> None:
        relation = ConsistencyChecker().detect_relation(_world_series(0.25, 0.20))

        assert relation is not None
        assert relation.relation_type is RelationType.MULTI_OUTCOME
        assert relation.similarity == pytest.approx(0.6)

    def test_calendar_variant(self) -> None:
        relation = ConsistencyChecker().detect_relation(_calendar(0.30, 0.45))

        assert relation is not None
        assert relation.relation_type is RelationType.CALENDAR_VARIANT
        assert relation.relation_meta["date_proximity"] == pytest.approx(77)

    def test_correlated(self) -> None:
        pair = _pair(
            "Will Ethereum price reach record high this year?",
            0.70,
            "Will Bitcoin price reach record high this year?",
            0.80,
            a_category="Crypto",
        )
        relation = ConsistencyChecker().detect_relation(pair)

        assert relation is not None
        assert relation.relation_type is RelationType.CORRELATED

    def test_unrelated(self) -> None:
        pair = _pair(
            "Will it snow in New York tomorrow?",
            0.30,
            "Will Lakers win the NBA championship?",
            0.20,
        )
        assert ConsistencyChecker().detect_relation(pair) is None

    def test_custom_similarity_threshold(self) -> None:
        checker = ConsistencyChecker(thresholds=ConsistencyThresholds(similarity_threshold=0.9))
        assert checker.detect_relation(_world_series(0.25, 0.20)) is None


class TestCheckConsistency:
    def _check(self, pair: MarketPairInput, now: datetime) -> ConsistencyCheckResult:
        result = ConsistencyChecker().evaluate(pair, computed_at=now)
        assert result is not None
        return result

    def test_inverse_properly_priced(self, now: datetime) -> None:
        result = self._check(_inverse(0.55, 0.45), now)

        assert result.score == 100
        assert result.label is ConsistencyLabel.LOOKS_CONSISTENT
        assert not result.is_inconsistent
        assert result.confidence == 100
        assert result.why_bullets[0].metric == "Sum of prices"

    def test_inverse_overpriced(self, now: datetime) -> None:
        result = self._check(_inverse(0.60, 0.60), now)

        assert result.score == 40
        assert result.label is ConsistencyLabel.POTENTIAL_INCONSISTENCY_MEDIUM
        assert result.is_inconsistent
        assert result.why_bullets[0].value == pytest.approx(120.0)
        assert result.why_bullets[1].metric == "Potential edge"
        assert result.why_bullets[1].value == pytest.approx(20.0)

    def test_inverse_badly_priced(self, now: datetime) -> None:
        result = self._check(_inverse(0.75, 0.50), now)

        assert result.score == 25
        assert result.label is ConsistencyLabel.POTENTIAL_INCONSISTENCY_HIGH

    def test_calendar_spread(self, now: datetime) -> None:
        result = self._check(_calendar(0.30, 0.60), now)

        assert result.relation_type is RelationType.CALENDAR_VARIANT
        assert result.score == 70
        assert result.label is ConsistencyLabel.POTENTIAL_INCONSISTENCY_LOW
        assert result.why_bullets[0].comparison == ">15% expected"
        assert result.why_bullets[1].metric == "Date gap"
        assert result.why_bullets[1].value == 77

    def test_calendar_within_range(self, now: datetime) -> None:
        result = self._check(_calendar(0.30, 0.40), now)
        assert result.score == 100

    def test_multi_outcome(self, now: datetime) -> None:
        result = self._check(_world_series(0.25, 0.20), now)

        assert result.score == 100
        assert result.confidence == 60
        assert result.why_bullets[0].metric == "Price A vs B"
        assert result.why_bullets[0].unit == "% vs 20%"
        # Padded with the score bullet.
        assert result.why_bullets[1].metric == "Score"
        assert result.why_bullets[2] == result.why_bullets[1]

    def test_multi_outcome_large_gap(self, now: datetime) -> None:
        result = self._check(_world_series(0.80, 0.10), now)

        assert result.score == 80
        assert result.why_bullets[0].metric == "Price gap"

    def test_correlated_has_fixed_score(self, now: datetime) -> None:
        pair = _pair(
            "Will Ethereum price reach record high this year?",
            0.70,
            "Will Bitcoin price reach record high this year?",
            0.80,
            a_category="Crypto",
        )
        result = self._check(pair, now)

        assert result.score == 80
        assert [b.metric for b in result.why_bullets] == ["Price A", "Price B", "Score"]

    def test_evaluate_unrelated_returns_none(self, now: datetime) -> None:
        pair = _pair("Will it snow in New York tomorrow?", 0.3, "Will Lakers win the NBA championship?", 0.2)
        assert ConsistencyChecker().evaluate(pair, computed_at=now) is None

    def test_to_dict(self, now: datetime) -> None:
        data = self._check(_inverse(0.60, 0.60), now).to_dict()
        assert data["relation_type"] == "inverse"
        assert data["computed_at"] == now.isoformat()

    @pytest.mark.parametrize(
        "pair",
        [
            _inverse(0.55, 0.45),
            _inverse(0.99, 0.99),
            _inverse(0.0, 0.0),
            _world_series(0.80, 0.10),
            _world_series(0.0, 0.0),
            _calendar(0.30, 0.60),
            _calendar(0.0, 1.0),
        ],
    )
    def test_check_is_repeatable_with_finite_evidence(self, now: datetime, pair: MarketPairInput) -> None:
        checker = ConsistencyChecker()

        first = checker.evaluate(pair, computed_at=now)
        second = checker.evaluate(pair, computed_at=now)

        assert first is not None
        assert first == second
        assert first.to_dict() == second.to_dict()
        assert len(first.why_bullets) == 3
        assert all(math.isfinite(b.value) for b in first.why_bullets)
