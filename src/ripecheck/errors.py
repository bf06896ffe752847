"""Failure taxonomy for the capture/analyze workflow.

Every error carries a user-facing ``message``. The workflow controller
catches these at its boundary and turns them into ``state.error``.
"""

from __future__ import annotations


class RipeCheckError(Exception):
    """Base class for recoverable workflow failures."""

    default_message = "Something went wrong."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


# ---------------------------------------------------------------------------
# Camera
# ---------------------------------------------------------------------------


class CameraError(RipeCheckError):
    """The camera could not be opened."""

    default_message = "Camera access failed."


class PermissionDenied(CameraError):
    default_message = "Camera access failed. Please allow camera permission or use Gallery upload."


class DeviceUnavailable(CameraError):
    default_message = "No camera is available. Please use Gallery upload."


class CameraBusy(CameraError):
    default_message = "Camera is already open."


class CaptureFailed(RipeCheckError):
    default_message = "Could not capture image. Please try again."


# ---------------------------------------------------------------------------
# Image selection
# ---------------------------------------------------------------------------


class SelectionFailed(RipeCheckError):
    default_message = "Could not read the selected file."


# ---------------------------------------------------------------------------
# Analysis service
# ---------------------------------------------------------------------------


class AnalysisError(RipeCheckError):
    """The analysis request did not produce a result."""

    default_message = "Failed to analyze image."


class NetworkError(AnalysisError):
    default_message = "Could not reach the analysis service. Please check your connection and try again."


class ServiceError(AnalysisError):
    """The service answered but rejected the request or returned an unusable body."""
