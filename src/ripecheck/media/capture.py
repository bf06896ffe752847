"""Camera session lifecycle: open, capture a still, close.

Architecture:
    WorkflowController (async) -> ThreadPoolExecutor(1) -> VideoDevice.open_stream

Opening a device blocks, so it runs on a single ``camera-io`` worker thread
while the event loop keeps serving other work. Capturing and closing are
synchronous.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ripecheck.errors import CameraBusy, CameraError, CaptureFailed, DeviceUnavailable
from ripecheck.media.camera import encode_jpeg

if TYPE_CHECKING:
    from ripecheck.config import Settings
    from ripecheck.media.artifacts import ImageArtifact
    from ripecheck.media.camera import VideoDevice, VideoStream
    from ripecheck.media.source import ImageSource

logger = logging.getLogger(__name__)

_session_ids = itertools.count(1)


@dataclass
class CameraSession:
    """Handle to one active camera stream."""

    stream: VideoStream
    facing: str
    session_id: int = field(default_factory=lambda: next(_session_ids))
    opened_at: float = field(default_factory=time.monotonic)
    active: bool = True


class MediaCaptureController:
    """Owns the single camera session and turns frames into artifacts."""

    def __init__(self, settings: Settings, device: VideoDevice, source: ImageSource) -> None:
        self._settings = settings
        self._device = device
        self._source = source
        self._session: CameraSession | None = None
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="camera-io")

    @property
    def active_session(self) -> CameraSession | None:
        return self._session

    async def open(self) -> CameraSession:
        """Open the configured camera and start playback.

        Raises:
            CameraBusy: If a session is already active.
            PermissionDenied: If camera access was refused.
            DeviceUnavailable: If no usable camera exists or the backend failed.
        """
        if self._session is not None:
            raise CameraBusy

        facing = self._settings.facing_mode
        loop = asyncio.get_running_loop()
        try:
            stream = await loop.run_in_executor(self._executor, self._device.open_stream, facing)
        except CameraError:
            raise
        except Exception as exc:
            logger.exception("Camera backend failed while opening")
            raise DeviceUnavailable from exc

        # Another open may have completed while this one was waiting on the device.
        if self._session is not None:
            stream.stop()
            raise CameraBusy

        self._session = CameraSession(stream=stream, facing=facing)
        logger.info("Camera session %d opened (facing=%s)", self._session.session_id, facing)
        return self._session

    def capture(self, session: CameraSession) -> ImageArtifact:
        """Freeze the current frame, encode it, and stop the session.

        On failure the session is left running.

        Raises:
            CaptureFailed: If no frame could be read or encoded.
        """
        if not session.active:
            raise CaptureFailed

        frame = session.stream.read_frame()
        if frame is None:
            logger.warning("Camera session %d returned no frame", session.session_id)
            raise CaptureFailed

        size = session.stream.frame_size or (self._settings.fallback_width, self._settings.fallback_height)
        data = encode_jpeg(frame, size, self._settings.jpeg_quality)
        try:
            artifact = self._source.from_capture(data, "image/jpeg")
        except OSError as exc:
            logger.warning("Could not write preview for session %d: %s", session.session_id, exc)
            raise CaptureFailed from exc

        self.close(session)
        logger.info("Captured %dx%d frame (%d bytes)", size[0], size[1], len(data))
        return artifact

    def close(self, session: CameraSession | None = None) -> None:
        """Stop ``session`` (default: the active one). Safe to call repeatedly."""
        session = session or self._session
        if session is None:
            return
        if session.active:
            session.active = False
            session.stream.stop()
            logger.info("Camera session %d closed", session.session_id)
        if self._session is session:
            self._session = None

    def shutdown(self) -> None:
        """Close any active session and shut down the camera thread."""
        self.close()
        self._executor.shutdown(wait=True)
