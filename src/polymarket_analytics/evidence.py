"""Why-bullet evidence shared by every classifier.

Each classifier result explains itself with exactly three bullets, each
carrying a numeric value that backs its text.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from typing import overload

WHY_BULLET_COUNT = 3


@dataclass(frozen=True)
class WhyBullet:
    """One piece of numeric evidence behind a label.

    Attributes:
        text: Human-readable explanation.
        metric: Name of the measured quantity.
        value: Numeric evidence; always finite.
        unit: Optional unit for the value (e.g. "%", "USD").
        comparison: Optional context such as a baseline or threshold.
    """

    text: str
    metric: str
    value: float
    unit: str | None = None
    comparison: str | None = None

    def __post_init__(self) -> None:
        if not math.isfinite(self.value):
            raise ValueError(f"WhyBullet value must be finite, got {self.value!r} for {self.metric!r}")

    def to_dict(self) -> dict[str, object]:
        """Serialize to a JSON-friendly dictionary."""
        data: dict[str, object] = {
            "text": self.text,
            "metric": self.metric,
            "value": self.value,
        }
        if self.unit is not None:
            data["unit"] = self.unit
        if self.comparison is not None:
            data["comparison"] = self.comparison
        return data


WhyBullets = tuple[WhyBullet, WhyBullet, WhyBullet]


def pad_or_trim_why_bullets(bullets: Iterable[WhyBullet], filler: WhyBullet) -> WhyBullets:
    """Keep the first three bullets, padding with ``filler`` when fewer exist."""
    kept = list(bullets)[:WHY_BULLET_COUNT]
    while len(kept) < WHY_BULLET_COUNT:
        kept.append(filler)
    return (kept[0], kept[1], kept[2])


@overload
def round_half_up(value: float) -> int: ...


@overload
def round_half_up(value: float, ndigits: int) -> float: ...


def round_half_up(value: float, ndigits: int | None = None) -> float:
    """Round with halves going up, e.g. 2.5 -> 3 and -2.5 -> -2.

    The builtin ``round`` sends halves to the even neighbour, which shifts
    scores sitting exactly on a .5 boundary.
    """
    if ndigits is None:
        return math.floor(value + 0.5)
    factor = 10**ndigits
    return math.floor(value * factor + 0.5) / factor


def bullets_to_dicts(bullets: WhyBullets) -> list[dict[str, object]]:
    return [bullet.to_dict() for bullet in bullets]
