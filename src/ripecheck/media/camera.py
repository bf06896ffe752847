"""Camera device access.

The capture controller depends only on the ``VideoDevice`` and
``VideoStream`` protocols. ``OpenCVDevice`` is the production backend.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

import cv2

from ripecheck.errors import CaptureFailed, DeviceUnavailable, PermissionDenied

if TYPE_CHECKING:
    import numpy as np
    from numpy.typing import NDArray

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


class VideoStream(Protocol):
    """A live video stream from one camera."""

    @property
    def frame_size(self) -> tuple[int, int] | None:
        """Native (width, height) of the stream, or None if not reported."""
        ...

    def read_frame(self) -> NDArray[np.uint8] | None:
        """Return the current HxWx3 BGR frame, or None if no frame is available."""
        ...

    def stop(self) -> None:
        """Stop all underlying tracks. Must be idempotent."""
        ...


class VideoDevice(Protocol):
    """Opens video streams. Audio is never requested."""

    def open_stream(self, facing: str) -> VideoStream:
        """Open a stream and start playback.

        Raises:
            PermissionDenied: If access to the camera was refused.
            DeviceUnavailable: If no usable camera exists.
        """
        ...


# ---------------------------------------------------------------------------
# OpenCV backend
# ---------------------------------------------------------------------------


class OpenCVStream:
    """VideoStream over ``cv2.VideoCapture``."""

    def __init__(self, capture: cv2.VideoCapture) -> None:
        self._capture = capture
        self._stopped = False

    @property
    def frame_size(self) -> tuple[int, int] | None:
        width = int(self._capture.get(cv2.CAP_PROP_FRAME_WIDTH))
        height = int(self._capture.get(cv2.CAP_PROP_FRAME_HEIGHT))
        if width <= 0 or height <= 0:
            return None
        return width, height

    def read_frame(self) -> NDArray[np.uint8] | None:
        if self._stopped:
            return None
        try:
            ok, frame = self._capture.read()
        except cv2.error as exc:
            logger.warning("Camera read failed: %s", exc)
            return None
        return frame if ok else None

    def stop(self) -> None:
        if not self._stopped:
            self._stopped = True
            self._capture.release()


class OpenCVDevice:
    """Opens the camera at a fixed device index.

    OpenCV has no notion of facing mode, so ``camera_index`` is expected to
    point at the rear camera on devices that have one.
    """

    def __init__(self, camera_index: int = 0) -> None:
        self._camera_index = camera_index

    def open_stream(self, facing: str) -> VideoStream:
        logger.info("Opening camera %d (facing=%s)", self._camera_index, facing)
        try:
            capture = cv2.VideoCapture(self._camera_index)
        except PermissionError as exc:
            raise PermissionDenied from exc
        except cv2.error as exc:
            raise DeviceUnavailable from exc

        if not capture.isOpened():
            capture.release()
            raise DeviceUnavailable

        stream = OpenCVStream(capture)
        # Playback has started once the first frame arrives.
        if stream.read_frame() is None:
            stream.stop()
            raise DeviceUnavailable
        return stream


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def encode_jpeg(frame: NDArray[np.uint8], size: tuple[int, int], quality: float) -> bytes:
    """Encode ``frame`` as JPEG at ``size`` (width, height).

    Args:
        frame: HxWx3 BGR uint8 array.
        size: Target (width, height); the frame is resized if it differs.
        quality: JPEG quality in (0, 1].

    Raises:
        CaptureFailed: If OpenCV cannot encode the frame.
    """
    width, height = size
    try:
        if frame.shape[1] != width or frame.shape[0] != height:
            frame = cv2.resize(frame, (width, height))
        ok, buffer = cv2.imencode(".jpg", frame, [cv2.IMWRITE_JPEG_QUALITY, round(quality * 100)])
    except cv2.error as exc:
        raise CaptureFailed from exc
    if not ok:
        raise CaptureFailed
    return buffer.tobytes()
