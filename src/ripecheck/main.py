"""Wiring entry point: logging setup and the workflow object graph."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from ripecheck.api.client import AnalysisClient
from ripecheck.config import get_settings
from ripecheck.media.artifacts import PreviewStore
from ripecheck.media.camera import OpenCVDevice
from ripecheck.media.capture import MediaCaptureController
from ripecheck.media.source import ImageSource
from ripecheck.workflow.controller import WorkflowController

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    import httpx

    from ripecheck.config import Settings
    from ripecheck.media.camera import VideoDevice
    from ripecheck.workflow.state import WorkflowState

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    """Install the process-wide log format."""
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_workflow(
    settings: Settings | None = None,
    *,
    device: VideoDevice | None = None,
    http_client: httpx.AsyncClient | None = None,
    listener: Callable[[WorkflowState], None] | None = None,
) -> WorkflowController:
    """Build a WorkflowController with its camera, image source, and analysis client."""
    settings = settings or get_settings()
    source = ImageSource(PreviewStore(settings.preview_dir))
    capture = MediaCaptureController(
        settings,
        device or OpenCVDevice(settings.camera_index),
        source,
    )
    client = AnalysisClient(settings, http_client)
    return WorkflowController(capture, source, client, listener)


@asynccontextmanager
async def workflow_session(
    settings: Settings | None = None,
    *,
    device: VideoDevice | None = None,
    http_client: httpx.AsyncClient | None = None,
    listener: Callable[[WorkflowState], None] | None = None,
) -> AsyncIterator[WorkflowController]:
    """Yield a ready workflow and tear it down on exit."""
    settings = settings or get_settings()
    configure_logging(settings)

    logger.info("Starting RipeCheck (api_url=%s, camera_index=%s)", settings.api_url, settings.camera_index)
    workflow = create_workflow(settings, device=device, http_client=http_client, listener=listener)
    try:
        yield workflow
    finally:
        logger.info("Shutting down RipeCheck")
        await workflow.aclose()
        logger.info("RipeCheck shutdown complete")
