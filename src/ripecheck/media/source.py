"""Turns captured frames and user-selected files into ImageArtifacts."""

from __future__ import annotations

import mimetypes
import os
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO

from ripecheck.errors import SelectionFailed
from ripecheck.media.artifacts import ImageArtifact, ImageOrigin

if TYPE_CHECKING:
    from ripecheck.media.artifacts import PreviewStore

FileHandle = str | os.PathLike[str] | BinaryIO

_FALLBACK_CONTENT_TYPE = "application/octet-stream"


class ImageSource:
    """Builds artifacts of one shape regardless of where the image came from.

    Content is not validated: a non-image file is passed through and left to
    the analysis service to reject.
    """

    def __init__(self, previews: PreviewStore) -> None:
        self._previews = previews

    def from_file(self, file: FileHandle) -> ImageArtifact:
        """Wrap a selected file (path or binary file object) into an artifact.

        Raises:
            SelectionFailed: If the file cannot be read or its preview cannot be written.
        """
        try:
            if isinstance(file, (str, os.PathLike)):
                name = os.fspath(file)
                data = Path(name).read_bytes()
            else:
                name = getattr(file, "name", "") or ""
                data = file.read()

            content_type = mimetypes.guess_type(str(name))[0] or _FALLBACK_CONTENT_TYPE
            suffix = Path(str(name)).suffix
            return self._build(data, content_type, ImageOrigin.FILE, suffix)
        except (OSError, ValueError) as exc:
            raise SelectionFailed from exc

    def from_capture(self, data: bytes, content_type: str = "image/jpeg") -> ImageArtifact:
        """Wrap an encoded camera frame into an artifact.

        Raises:
            OSError: If the preview file cannot be written.
        """
        suffix = mimetypes.guess_extension(content_type) or ""
        return self._build(data, content_type, ImageOrigin.CAMERA, suffix)

    def _build(self, data: bytes, content_type: str, origin: ImageOrigin, suffix: str) -> ImageArtifact:
        preview = self._previews.create(data, suffix)
        return ImageArtifact(data=data, content_type=content_type, origin=origin, preview=preview)
