"""Archetype profiling of markets from their question text and activity.

The profiler derives five information dimensions (0-100) from metadata,
then scores each archetype by how well the dimensions fall inside its
criteria ranges, with boosts for question keywords and category matches.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime

from polymarket_analytics.evidence import WhyBullet, WhyBullets, pad_or_trim_why_bullets, round_half_up
from polymarket_analytics.market.models import (
    ArchetypeResult,
    InformationDimensions,
    MarketArchetype,
    MarketProfileInput,
)

logger = logging.getLogger(__name__)

SPORTS_KEYWORDS = (
    "nfl", "nba", "mlb", "nhl", "soccer", "football", "basketball", "baseball",
    "hockey", "tennis", "golf", "ufc", "boxing", "f1", "formula", "race",
    "team", "player", "coach", "league", "season", "championship", "playoff",
    "super bowl", "world series", "stanley cup", "finals",
)

CRYPTO_KEYWORDS = (
    "bitcoin", "btc", "ethereum", "eth", "solana", "sol", "crypto", "token",
    "price", "$", "above", "below", "reach", "hit",
)

SCHEDULED_KEYWORDS = ("election", "vote", "earnings", "report", "game", "match", "deadline")
ONGOING_KEYWORDS = ("ongoing", "crisis", "war", "conflict")
DISTANT_YEARS = ("2026", "2027", "2028", "2029", "2030")

# (upper bound in hours, time-to-resolution score)
_RESOLUTION_TIERS = (
    (1, 0),
    (24, 10),
    (72, 20),
    (168, 35),
    (720, 50),
    (2160, 70),
    (4320, 85),
)

_YEAR_PATTERN = re.compile(r"\d{4}")


@dataclass(frozen=True)
class ArchetypeDefinition:
    """Criteria for one archetype.

    Attributes:
        archetype: The archetype described.
        description: One-line description used in explanations.
        criteria: Inclusive (min, max) range per dimension name.
        keywords: Question substrings that add 10 points each.
        categories: Category substrings that add 15 points once.
    """

    archetype: MarketArchetype
    description: str
    criteria: dict[str, tuple[float, float]] = field(default_factory=dict)
    keywords: tuple[str, ...] = ()
    categories: tuple[str, ...] = ()


ARCHETYPE_DEFINITIONS: tuple[ArchetypeDefinition, ...] = (
    ArchetypeDefinition(
        archetype=MarketArchetype.SCHEDULED_EVENT,
        description="Markets tied to known, scheduled events like elections or earnings",
        criteria={"info_structure": (60, 100), "time_to_resolution": (20, 80)},
        keywords=("election", "vote", "earnings", "announce", "report", "deadline", "meeting", "summit"),
        categories=("politics", "economics", "business"),
    ),
    ArchetypeDefinition(
        archetype=MarketArchetype.SPORTS_SCHEDULED,
        description="Sports events or other scheduled binary outcomes",
        criteria={"info_structure": (70, 100), "time_to_resolution": (0, 50)},
        keywords=(
            "win", "game", "match", "championship", "super bowl",
            "world cup", "playoff", "finals", "vs", "beat",
        ),
        categories=("sports",),
    ),
    ArchetypeDefinition(
        archetype=MarketArchetype.BINARY_CATALYST,
        description="Single event or decision triggers resolution",
        criteria={"info_structure": (30, 70), "time_to_resolution": (10, 60)},
        keywords=("will", "approve", "pass", "sign", "reject", "decision", "rule", "court", "verdict"),
        categories=("politics", "legal"),
    ),
    ArchetypeDefinition(
        archetype=MarketArchetype.CONTINUOUS_INFO,
        description="Ongoing situations with continuous information flow",
        criteria={"info_cadence": (50, 100), "info_structure": (0, 50), "time_to_resolution": (30, 100)},
        keywords=("ongoing", "conflict", "war", "crisis", "situation", "developing", "talks", "negotiations"),
        categories=("geopolitics", "world"),
    ),
    ArchetypeDefinition(
        archetype=MarketArchetype.HIGH_VOLATILITY,
        description="Jumpy markets driven by news and sentiment",
        criteria={"liquidity_stability": (0, 40), "info_cadence": (40, 100)},
        keywords=("crypto", "bitcoin", "price", "reach", "hit", "above", "below", "by"),
        categories=("crypto", "markets"),
    ),
    ArchetypeDefinition(
        archetype=MarketArchetype.LONG_DURATION,
        description="Markets with resolution months away",
        criteria={"time_to_resolution": (80, 100)},
        keywords=("2025", "2026", "2027", "year", "decade", "century", "ever"),
    ),
)

_TIME_LABELS = ("minutes", "hours", "days", "weeks", "months")


def _contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    return any(keyword in text for keyword in keywords)


def _clamp_score(value: float) -> int:
    return round_half_up(max(0.0, min(100.0, value)))


def compute_dimensions(market: MarketProfileInput, *, now: datetime) -> InformationDimensions:
    """Derive the five information dimensions of a market.

    Args:
        market: Question text, category and activity statistics.
        now: Reference time for the time-to-resolution dimension.

    Returns:
        Dimensions clamped to 0..100 and rounded to whole numbers.
    """
    question = market.question.lower()
    category = (market.category or "").lower()
    is_crypto = _contains_any(question, CRYPTO_KEYWORDS)
    is_sports = _contains_any(question, SPORTS_KEYWORDS)

    info_cadence: float = 50
    if is_crypto:
        info_cadence = 90
    elif is_sports:
        info_cadence = 30
    elif "politic" in category:
        info_cadence = 60
    elif market.trade_count is not None and market.trade_count > 100:
        info_cadence = min(90.0, 50 + market.trade_count / 10)

    info_structure = 50
    if _contains_any(question, SCHEDULED_KEYWORDS):
        info_structure = 85
    if is_sports:
        info_structure = 90
    if "by" in question and _YEAR_PATTERN.search(market.question):
        info_structure = 70
    if _contains_any(question, ONGOING_KEYWORDS):
        info_structure = 20

    liquidity_stability = 60.0
    if market.spread_variance is not None:
        liquidity_stability = max(0.0, 100 - market.spread_variance * 1000)
    if is_crypto:
        liquidity_stability = min(liquidity_stability, 40.0)
    if market.avg_volume_24h is not None and market.avg_volume_24h > 100_000:
        liquidity_stability = min(100.0, liquidity_stability + 20)

    time_to_resolution = 50
    if market.end_date is not None:
        hours_until = (market.end_date - now).total_seconds() / 3600
        time_to_resolution = 95
        for upper, score in _RESOLUTION_TIERS:
            if hours_until < upper:
                time_to_resolution = score
                break
    if _contains_any(market.question, DISTANT_YEARS):
        time_to_resolution = max(time_to_resolution, 90)

    participant_concentration = 50
    if market.unique_traders is not None:
        if market.unique_traders < 10:
            participant_concentration = 90
        elif market.unique_traders < 50:
            participant_concentration = 70
        elif market.unique_traders < 200:
            participant_concentration = 50
        else:
            participant_concentration = 30

    return InformationDimensions(
        info_cadence=_clamp_score(info_cadence),
        info_structure=_clamp_score(info_structure),
        liquidity_stability=_clamp_score(liquidity_stability),
        time_to_resolution=_clamp_score(time_to_resolution),
        participant_concentration=_clamp_score(participant_concentration),
    )


def score_archetype_match(dimensions: InformationDimensions, definition: ArchetypeDefinition) -> float:
    """Average criteria fit: 100 at a range midpoint, 70 at its edges, decaying outside.

    A definition without criteria scores a neutral 50.
    """
    if not definition.criteria:
        return 50.0
    total = 0.0
    for name, (low, high) in definition.criteria.items():
        value = getattr(dimensions, name)
        if low <= value <= high:
            midpoint = (low + high) / 2
            distance = abs(value - midpoint) / ((high - low) / 2)
            total += 100 - distance * 30
        else:
            distance = low - value if value < low else value - high
            total += max(0.0, 50 - distance)
    return total / len(definition.criteria)


class MarketArchetypeClassifier:
    """Profiles a market into one of the information-flow archetypes.

    Example:
        ```python
        classifier = MarketArchetypeClassifier()
        result = classifier.classify(profile, computed_at=now)
        print(result.display_label, result.explanation)
        ```
    """

    def __init__(self, *, definitions: tuple[ArchetypeDefinition, ...] | None = None) -> None:
        self._definitions = definitions or ARCHETYPE_DEFINITIONS
        if not self._definitions:
            raise ValueError("At least one archetype definition is required")

    def classify(self, market: MarketProfileInput, *, computed_at: datetime) -> ArchetypeResult:
        """Pick the best-matching archetype for a market.

        Ties go to the archetype listed first.
        """
        dimensions = compute_dimensions(market, now=computed_at)
        question = market.question.lower()
        category = (market.category or "").lower()

        scored: list[tuple[float, ArchetypeDefinition]] = []
        for definition in self._definitions:
            score = score_archetype_match(dimensions, definition)
            score += 10 * sum(1 for keyword in definition.keywords if keyword in question)
            if any(c in category for c in definition.categories):
                score += 15
            scored.append((score, definition))
        best_score, best = max(scored, key=lambda item: item[0])

        confidence = min(95, max(40, round_half_up(best_score)))
        logger.debug(
            "Market %s profiled as %s (score %.1f)",
            market.market_id,
            best.archetype.value,
            best_score,
        )
        return ArchetypeResult(
            market_id=market.market_id,
            archetype=best.archetype,
            confidence=confidence,
            dimensions=dimensions,
            explanation=_explanation(dimensions, best),
            why_bullets=_why_bullets(dimensions),
            computed_at=computed_at,
        )


def _explanation(dimensions: InformationDimensions, definition: ArchetypeDefinition) -> str:
    parts = [
        f"This market behaves like a {definition.archetype.display_label.lower()} market.",
        f"{definition.description}.",
    ]
    if dimensions.time_to_resolution < 30:
        parts.append("Short time horizon means rapid price discovery.")
    elif dimensions.time_to_resolution > 70:
        parts.append("Long duration allows for gradual position building.")
    if dimensions.liquidity_stability < 40:
        parts.append("Expect price swings and variable spreads.")
    return " ".join(parts)


def _why_bullets(dimensions: InformationDimensions) -> WhyBullets:
    timeframe = _TIME_LABELS[min(dimensions.time_to_resolution // 25, len(_TIME_LABELS) - 1)]
    structure = "scheduled events" if dimensions.info_structure > 60 else "unstructured news"
    if dimensions.liquidity_stability > 60:
        stability = "stable"
    elif dimensions.liquidity_stability > 30:
        stability = "moderate"
    else:
        stability = "volatile"

    bullets = [
        WhyBullet(
            f"Resolution timeframe: {timeframe}",
            metric="Time score",
            value=dimensions.time_to_resolution,
            unit="/ 100",
        ),
        WhyBullet(
            f"Information arrives via {structure}",
            metric="Structure",
            value=dimensions.info_structure,
            unit="/ 100",
        ),
        WhyBullet(
            f"Liquidity conditions are {stability}",
            metric="Stability",
            value=dimensions.liquidity_stability,
            unit="/ 100",
        ),
    ]
    filler = WhyBullet("Archetype profile computed", metric="Time score", value=dimensions.time_to_resolution)
    return pad_or_trim_why_bullets(bullets, filler)
