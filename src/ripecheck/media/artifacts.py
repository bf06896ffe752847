"""Image artifacts and their preview handles.

A preview is a file holding a copy of the artifact bytes, so any viewer can
open it by path. Handles must be released explicitly when an artifact is
superseded or the workflow resets.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

logger = logging.getLogger(__name__)

_PREVIEW_PREFIX = "preview-"


class ImageOrigin(StrEnum):
    CAMERA = "camera"
    FILE = "file"


@dataclass
class PreviewHandle:
    """A locally resolvable preview for one artifact."""

    path: Path
    _released: bool = field(default=False, init=False, repr=False)

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        """Delete the preview file. Safe to call multiple times."""
        if self._released:
            return
        self._released = True
        self.path.unlink(missing_ok=True)
        logger.debug("Released preview %s", self.path.name)


@dataclass(frozen=True)
class ImageArtifact:
    """An image payload ready for analysis."""

    data: bytes
    content_type: str
    origin: ImageOrigin
    preview: PreviewHandle

    def release(self) -> None:
        self.preview.release()


class PreviewStore:
    """Materializes preview files under a single directory."""

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)
        self._directory.mkdir(parents=True, exist_ok=True)

    @property
    def directory(self) -> Path:
        return self._directory

    def create(self, data: bytes, suffix: str = "") -> PreviewHandle:
        # The directory may have been removed by a tempdir cleaner since startup.
        self._directory.mkdir(parents=True, exist_ok=True)
        path = self._directory / f"{_PREVIEW_PREFIX}{uuid.uuid4().hex}{suffix}"
        path.write_bytes(data)
        return PreviewHandle(path=path)

    def live_count(self) -> int:
        """Number of preview files that have not been released."""
        return sum(1 for _ in self._directory.glob(f"{_PREVIEW_PREFIX}*"))
