"""Shared fixtures: fake camera devices and an in-process fake analysis service."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx
import numpy as np
import pytest
from fastapi import FastAPI, UploadFile
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from ripecheck.config import Settings
from ripecheck.main import create_workflow

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path

    from numpy.typing import NDArray

    from ripecheck.workflow.controller import WorkflowController
    from ripecheck.workflow.state import WorkflowState

SERVICE_URL = "http://testserver/analyze"

RIPE_REPLY: dict[str, Any] = {
    "is_banana": True,
    "ripeness": "Ripe",
    "confidence": 0.87,
    "banana_confidence": 0.95,
}

# ---------------------------------------------------------------------------
# Camera fakes
# ---------------------------------------------------------------------------


def make_frame(width: int = 64, height: int = 48) -> NDArray[np.uint8]:
    frame = np.zeros((height, width, 3), dtype=np.uint8)
    frame[:, :, 1] = 200
    frame[:, :, 2] = 220
    return frame


class FakeStream:
    def __init__(self, frame_size: tuple[int, int] | None = (64, 48)) -> None:
        self._frame_size = frame_size
        self.frame: NDArray[np.uint8] | None = make_frame()
        self.stop_calls = 0

    @property
    def frame_size(self) -> tuple[int, int] | None:
        return self._frame_size

    @property
    def stopped(self) -> bool:
        return self.stop_calls > 0

    def read_frame(self) -> NDArray[np.uint8] | None:
        if self.stopped:
            return None
        return self.frame

    def stop(self) -> None:
        self.stop_calls += 1


class FakeDevice:
    def __init__(self, error: Exception | None = None, frame_size: tuple[int, int] | None = (64, 48)) -> None:
        self.error = error
        self.frame_size = frame_size
        self.streams: list[FakeStream] = []
        self.facings: list[str] = []

    def open_stream(self, facing: str) -> FakeStream:
        self.facings.append(facing)
        if self.error is not None:
            raise self.error
        stream = FakeStream(self.frame_size)
        self.streams.append(stream)
        return stream


# ---------------------------------------------------------------------------
# Fake analysis service
# ---------------------------------------------------------------------------


def create_fake_service() -> FastAPI:
    """A stand-in for the remote classifier.

    Set ``service.state.reply`` to ``(status_code, body)``; a ``str`` body is
    sent as plain text. Uploads are recorded in ``service.state.uploads``.
    """
    service = FastAPI()
    service.state.reply = (200, RIPE_REPLY)
    service.state.uploads = []

    @service.post("/analyze")
    async def analyze(file: UploadFile) -> Response:
        service.state.uploads.append((file.filename, file.content_type, await file.read()))
        status_code, body = service.state.reply
        if isinstance(body, str):
            return PlainTextResponse(body, status_code=status_code)
        return JSONResponse(status_code=status_code, content=body)

    return service


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(api_url=SERVICE_URL, preview_dir=str(tmp_path / "previews"))


@pytest.fixture()
def service() -> FastAPI:
    return create_fake_service()


@pytest.fixture()
async def http_client(service: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=service),
        base_url="http://testserver",
    ) as client:
        yield client


@pytest.fixture()
def device() -> FakeDevice:
    return FakeDevice()


@pytest.fixture()
def states() -> list[WorkflowState]:
    """Every state snapshot the workflow emits."""
    return []


@pytest.fixture()
async def workflow(
    settings: Settings,
    device: FakeDevice,
    http_client: httpx.AsyncClient,
    states: list[WorkflowState],
) -> AsyncIterator[WorkflowController]:
    controller = create_workflow(settings, device=device, http_client=http_client, listener=states.append)
    yield controller
    await controller.aclose()


@pytest.fixture()
def banana_file(tmp_path: Path) -> Path:
    path = tmp_path / "banana.jpg"
    path.write_bytes(b"\xff\xd8\xff\xe0fake-banana-jpeg")
    return path
