"""HTTP client for the remote banana classification service."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import ValidationError

from ripecheck.api.schemas import AnalyzeResponse, ErrorResponse
from ripecheck.errors import NetworkError, ServiceError

if TYPE_CHECKING:
    from ripecheck.config import Settings
    from ripecheck.media.artifacts import ImageArtifact
    from ripecheck.models import AnalysisResult

logger = logging.getLogger(__name__)


class AnalysisClient:
    """Submits image artifacts for classification.

    Each ``analyze`` call issues exactly one POST and is never retried here;
    retrying is the caller's decision.
    """

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None) -> None:
        self._settings = settings
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=settings.request_timeout)

    async def analyze(self, artifact: ImageArtifact) -> AnalysisResult:
        """Upload ``artifact`` and return the normalized result.

        Raises:
            NetworkError: If no response was received.
            ServiceError: If the service rejected the request or replied with
                a body that is not a valid classification.
        """
        files = {
            self._settings.upload_field: (
                self._settings.upload_filename,
                artifact.data,
                artifact.content_type,
            )
        }
        logger.debug("POST %s (%d bytes)", self._settings.api_url, len(artifact.data))
        try:
            response = await self._client.post(self._settings.api_url, files=files)
        except httpx.RequestError as exc:
            logger.warning("Analysis request failed: %s", exc)
            raise NetworkError from exc

        payload = _decode_json(response)
        parsed = _parse_reply(payload)

        if response.is_success:
            if parsed is None:
                logger.warning("Unusable analysis reply (status=%s)", response.status_code)
                raise ServiceError(_error_message(payload))
            return parsed.to_result()

        # A rejection that still classifies the image as "not a banana" is an answer, not a failure.
        if parsed is not None and not parsed.is_banana:
            return parsed.to_result()

        message = _error_message(payload)
        logger.warning("Analysis service returned %s: %s", response.status_code, message)
        raise ServiceError(message)

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()


def _decode_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _parse_reply(payload: Any) -> AnalyzeResponse | None:
    try:
        return AnalyzeResponse.model_validate(payload)
    except ValidationError:
        return None


def _error_message(payload: Any) -> str | None:
    if not isinstance(payload, dict):
        return None
    try:
        return ErrorResponse.model_validate(payload).error
    except ValidationError:
        return None
