"""Normalized domain types for analysis outcomes."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import StrEnum


class RipenessClass(StrEnum):
    GREEN = "Green"
    TURNING = "Turning"
    RIPE = "Ripe"
    OVERRIPE = "Overripe"


@dataclass(frozen=True)
class QualityWarnings:
    """Image quality flags raised by the service."""

    too_dark: bool = False
    too_blurry: bool = False

    @property
    def any(self) -> bool:
        return self.too_dark or self.too_blurry


@dataclass(frozen=True)
class AnalysisResult:
    """Outcome of one classification request.

    ``ripeness`` is only meaningful when ``is_banana`` is true and is
    ``None`` otherwise.
    """

    is_banana: bool
    ripeness: RipenessClass | None
    confidence: float
    banana_confidence: float
    warnings: QualityWarnings = field(default_factory=QualityWarnings)

    @property
    def confidence_pct(self) -> str:
        return format_pct(self.confidence)

    @property
    def banana_confidence_pct(self) -> str:
        return format_pct(self.banana_confidence)


def format_pct(value: float | None) -> str:
    """Render a 0-1 score as a whole percentage, rounding halves up."""
    if value is None:
        return ""
    return f"{math.floor(value * 100 + 0.5)}%"
