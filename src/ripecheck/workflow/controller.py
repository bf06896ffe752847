"""Capture/analyze state machine.

The controller is the only writer of ``WorkflowState``. Camera acquisition
and analysis are its only suspension points. A generation counter is bumped
whenever the workflow abandons a pending operation (reset, closing the
camera, selecting a file), so anything that completes afterwards is
released or dropped instead of being applied.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING

from ripecheck.errors import AnalysisError, CameraBusy, CameraError, CaptureFailed, SelectionFailed
from ripecheck.workflow.state import Mode, ProgressStage, WorkflowState

if TYPE_CHECKING:
    from collections.abc import Callable

    from ripecheck.api.client import AnalysisClient
    from ripecheck.media.artifacts import ImageArtifact
    from ripecheck.media.capture import CameraSession, MediaCaptureController
    from ripecheck.media.source import FileHandle, ImageSource

logger = logging.getLogger(__name__)


class WorkflowController:
    """Drives Idle -> CameraOpen/Preview -> Analyzing -> Result."""

    def __init__(
        self,
        capture: MediaCaptureController,
        source: ImageSource,
        client: AnalysisClient,
        listener: Callable[[WorkflowState], None] | None = None,
    ) -> None:
        self._capture = capture
        self._source = source
        self._client = client
        self._listener = listener
        self._state = WorkflowState()
        self._session: CameraSession | None = None
        self._generation = 0

    # -- Read access --------------------------------------------------------

    @property
    def state(self) -> WorkflowState:
        """A copy of the current state."""
        return dataclasses.replace(self._state)

    @property
    def camera_session(self) -> CameraSession | None:
        return self._session

    # -- Camera -------------------------------------------------------------

    async def open_camera(self) -> None:
        """Open the camera for live preview."""
        if self._state.mode is Mode.CAMERA_OPEN:
            self._state.error = CameraBusy().message
            self._emit()
            return
        if self._state.mode is not Mode.IDLE:
            logger.debug("open_camera ignored in mode %s", self._state.mode)
            return

        self._state.error = None
        self._state.result = None
        self._state.progress_stage = None
        self._state.mode = Mode.CAMERA_OPEN
        self._emit()

        generation = self._generation
        try:
            session = await self._capture.open()
        except CameraError as exc:
            logger.warning("Camera open failed: %s", exc.message)
            if generation != self._generation:
                return
            self._state.mode = Mode.IDLE
            self._state.error = exc.message
            self._emit()
            return

        if generation != self._generation:
            logger.info("Camera opened after the workflow moved on; closing it")
            self._capture.close(session)
            return

        self._session = session
        self._emit()

    def capture(self) -> None:
        """Take a still from the open camera and move to Preview."""
        if self._state.mode is not Mode.CAMERA_OPEN or self._session is None:
            logger.debug("capture ignored in mode %s", self._state.mode)
            return

        try:
            artifact = self._capture.capture(self._session)
        except CaptureFailed as exc:
            logger.warning("Capture failed: %s", exc.message)
            self._state.error = exc.message
            self._emit()
            return

        self._session = None
        self._show_preview(artifact)

    def close_camera(self) -> None:
        """Stop the camera and return to Idle."""
        if self._state.mode is not Mode.CAMERA_OPEN:
            logger.debug("close_camera ignored in mode %s", self._state.mode)
            return
        self._generation += 1
        self._stop_camera()
        self._state.mode = Mode.IDLE
        self._emit()

    # -- File selection -----------------------------------------------------

    def select_file(self, file: FileHandle | None) -> None:
        """Use a picked file as the current image. ``None`` means the picker was dismissed."""
        if file is None:
            return
        if self._state.busy:
            logger.debug("select_file ignored while analysis is running")
            return

        try:
            artifact = self._source.from_file(file)
        except SelectionFailed as exc:
            logger.warning("File selection failed: %s", exc.__cause__)
            self._state.error = exc.message
            self._emit()
            return

        if self._state.mode is Mode.CAMERA_OPEN:
            self._generation += 1
            self._stop_camera()
        self._show_preview(artifact)

    # -- Analysis -----------------------------------------------------------

    async def analyze(self) -> None:
        """Submit the current image for classification."""
        artifact = self._state.artifact
        if artifact is None or self._state.busy or self._state.mode not in (Mode.PREVIEW, Mode.RESULT):
            logger.debug("analyze ignored (mode=%s, busy=%s)", self._state.mode, self._state.busy)
            return

        generation = self._generation

        self._state.busy = True
        self._state.error = None
        self._state.result = None
        self._state.mode = Mode.ANALYZING
        self._set_stage(ProgressStage.IMAGE_SELECTED)
        self._set_stage(ProgressStage.BANANA_CHECK)

        try:
            result = await self._client.analyze(artifact)
        except AnalysisError as exc:
            if generation != self._generation:
                logger.info("Discarding analysis error for an abandoned request")
                return
            self._state.busy = False
            self._state.error = exc.message
            self._state.result = None
            self._state.progress_stage = None
            self._state.mode = Mode.PREVIEW
            self._emit()
            return

        if generation != self._generation:
            logger.info("Discarding analysis result for an abandoned request")
            return

        self._state.progress_stage = ProgressStage.RIPENESS_RESULT
        self._state.result = result
        self._state.busy = False
        self._state.mode = Mode.RESULT
        self._emit()
        logger.info(
            "Analysis complete (is_banana=%s, ripeness=%s, confidence=%s)",
            result.is_banana,
            result.ripeness,
            result.confidence_pct,
        )

    # -- Reset / teardown ---------------------------------------------------

    def reset(self) -> None:
        """Return to Idle, stopping the camera and releasing the current image."""
        self._generation += 1
        self._stop_camera()
        if self._state.artifact is not None:
            self._state.artifact.release()
        self._state.reset()
        self._emit()

    async def aclose(self) -> None:
        """Reset and release the camera thread and HTTP client."""
        self.reset()
        self._capture.shutdown()
        await self._client.aclose()

    # -- Internals ----------------------------------------------------------

    def _show_preview(self, artifact: ImageArtifact) -> None:
        previous = self._state.artifact
        if previous is not None and previous is not artifact:
            previous.release()
        self._state.artifact = artifact
        self._state.error = None
        self._state.result = None
        self._state.progress_stage = None
        self._state.mode = Mode.PREVIEW
        self._emit()

    def _stop_camera(self) -> None:
        if self._session is not None:
            self._capture.close(self._session)
            self._session = None

    def _set_stage(self, stage: ProgressStage) -> None:
        self._state.progress_stage = stage
        self._emit()

    def _emit(self) -> None:
        logger.debug(
            "state: mode=%s stage=%s busy=%s error=%s",
            self._state.mode,
            self._state.progress_stage,
            self._state.busy,
            self._state.error,
        )
        if self._listener is not None:
            self._listener(self.state)
