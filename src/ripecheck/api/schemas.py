"""Pydantic schemas for the remote classification service's JSON replies."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from ripecheck.models import AnalysisResult, QualityWarnings, RipenessClass


class ServiceWarnings(BaseModel):
    """Image quality flags as sent on the wire."""

    too_dark: bool = False
    too_blurry: bool = False


class AnalyzeResponse(BaseModel):
    """Successful (or not-a-banana) classification reply."""

    model_config = ConfigDict(extra="ignore")

    is_banana: bool
    ripeness: RipenessClass | None = Field(default=None, description="Only set when is_banana is true")
    confidence: float = Field(default=0.0, ge=0.0, le=1.0, description="Ripeness class confidence (0.0-1.0)")
    banana_confidence: float = Field(default=0.0, ge=0.0, le=1.0, description="Banana detection confidence (0.0-1.0)")
    warnings: ServiceWarnings | None = None

    def to_result(self) -> AnalysisResult:
        """Map the wire reply field-for-field onto an AnalysisResult."""
        warnings = self.warnings or ServiceWarnings()
        return AnalysisResult(
            is_banana=self.is_banana,
            ripeness=self.ripeness if self.is_banana else None,
            confidence=self.confidence,
            banana_confidence=self.banana_confidence,
            warnings=QualityWarnings(too_dark=warnings.too_dark, too_blurry=warnings.too_blurry),
        )


class ErrorResponse(BaseModel):
    """Failure reply. ``error`` may be missing on some failure paths."""

    model_config = ConfigDict(extra="ignore")

    error: str | None = None
