"""Workflow state owned by the WorkflowController."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum, StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ripecheck.media.artifacts import ImageArtifact
    from ripecheck.models import AnalysisResult


class Mode(StrEnum):
    IDLE = "idle"
    CAMERA_OPEN = "camera"
    PREVIEW = "preview"
    ANALYZING = "analyzing"
    RESULT = "result"


class ProgressStage(IntEnum):
    """Ordered milestones shown while an analysis runs."""

    IMAGE_SELECTED = 0
    BANANA_CHECK = 1
    RIPENESS_RESULT = 2

    @property
    def label(self) -> str:
        return _STAGE_LABELS[self]


_STAGE_LABELS = {
    ProgressStage.IMAGE_SELECTED: "Image Selected",
    ProgressStage.BANANA_CHECK: "Banana Check",
    ProgressStage.RIPENESS_RESULT: "Ripeness Result",
}


@dataclass
class WorkflowState:
    """Mutable state for one capture/analyze session.

    Only the WorkflowController writes to this; everyone else sees copies.
    ``progress_stage`` is set only while analyzing or showing a result, and
    ``result`` only while showing a result.
    """

    mode: Mode = Mode.IDLE
    progress_stage: ProgressStage | None = None
    error: str | None = None
    artifact: ImageArtifact | None = None
    result: AnalysisResult | None = None
    busy: bool = False

    @property
    def can_analyze(self) -> bool:
        return self.artifact is not None and not self.busy

    def reset(self) -> None:
        """Return to the initial Idle state."""
        self.mode = Mode.IDLE
        self.progress_stage = None
        self.error = None
        self.artifact = None
        self.result = None
        self.busy = False
