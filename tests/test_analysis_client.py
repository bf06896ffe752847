"""Tests for the analysis service client."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest
from conftest import RIPE_REPLY, SERVICE_URL

from ripecheck.api.client import AnalysisClient
from ripecheck.errors import NetworkError, ServiceError
from ripecheck.media.artifacts import PreviewStore
from ripecheck.media.source import ImageSource
from ripecheck.models import RipenessClass

if TYPE_CHECKING:
    from pathlib import Path

    from fastapi import FastAPI

    from ripecheck.config import Settings
    from ripecheck.media.artifacts import ImageArtifact


@pytest.fixture()
def artifact(settings: Settings, banana_file: Path) -> ImageArtifact:
    return ImageSource(PreviewStore(settings.preview_dir)).from_file(banana_file)


@pytest.fixture()
def client(settings: Settings, http_client: httpx.AsyncClient) -> AnalysisClient:
    return AnalysisClient(settings, http_client)


class TestUpload:
    async def test_sends_single_multipart_file(
        self, client: AnalysisClient, service: FastAPI, artifact: ImageArtifact
    ) -> None:
        await client.analyze(artifact)

        assert len(service.state.uploads) == 1
        filename, content_type, data = service.state.uploads[0]
        assert filename == "banana.jpg"
        assert content_type == "image/jpeg"
        assert data == artifact.data

    async def test_field_and_filename_are_configurable(self, settings: Settings, artifact: ImageArtifact) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=RIPE_REPLY)

        custom = settings.model_copy(update={"upload_field": "image", "upload_filename": "photo.jpg"})
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            await AnalysisClient(custom, http).analyze(artifact)

        body = seen[0].content
        assert seen[0].method == "POST"
        assert str(seen[0].url) == SERVICE_URL
        assert b'name="image"' in body
        assert b'filename="photo.jpg"' in body


class TestSuccess:
    async def test_ripe_banana(self, client: AnalysisClient, artifact: ImageArtifact) -> None:
        result = await client.analyze(artifact)

        assert result.is_banana is True
        assert result.ripeness is RipenessClass.RIPE
        assert result.confidence == pytest.approx(0.87)
        assert result.banana_confidence == pytest.approx(0.95)
        assert result.warnings.too_dark is False
        assert result.warnings.too_blurry is False

    async def test_not_a_banana_is_a_result(
        self, client: AnalysisClient, service: FastAPI, artifact: ImageArtifact
    ) -> None:
        service.state.reply = (200, {"is_banana": False, "banana_confidence": 0.3, "warnings": {"too_dark": True}})

        result = await client.analyze(artifact)

        assert result.is_banana is False
        assert result.ripeness is None
        assert result.warnings.too_dark is True

    async def test_rejection_reporting_not_a_banana_is_a_result(
        self, client: AnalysisClient, service: FastAPI, artifact: ImageArtifact
    ) -> None:
        service.state.reply = (422, {"is_banana": False, "banana_confidence": 0.1, "error": "Not a banana"})

        result = await client.analyze(artifact)

        assert result.is_banana is False
        assert result.banana_confidence == pytest.approx(0.1)


class TestFailures:
    async def test_transport_failure_is_network_error(self, settings: Settings, artifact: ImageArtifact) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            with pytest.raises(NetworkError) as excinfo:
                await AnalysisClient(settings, http).analyze(artifact)

        assert excinfo.value.message == NetworkError.default_message

    async def test_timeout_is_network_error(self, settings: Settings, artifact: ImageArtifact) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            with pytest.raises(NetworkError):
                await AnalysisClient(settings, http).analyze(artifact)

    async def test_service_error_carries_message(
        self, client: AnalysisClient, service: FastAPI, artifact: ImageArtifact
    ) -> None:
        service.state.reply = (500, {"error": "Model not loaded"})

        with pytest.raises(ServiceError) as excinfo:
            await client.analyze(artifact)

        assert excinfo.value.message == "Model not loaded"

    async def test_service_error_without_message_uses_default(
        self, client: AnalysisClient, service: FastAPI, artifact: ImageArtifact
    ) -> None:
        service.state.reply = (503, "Service Unavailable")

        with pytest.raises(ServiceError) as excinfo:
            await client.analyze(artifact)

        assert excinfo.value.message == "Failed to analyze image."

    async def test_success_status_with_invalid_body(
        self, client: AnalysisClient, service: FastAPI, artifact: ImageArtifact
    ) -> None:
        service.state.reply = (200, {"ripeness": "Ripe"})

        with pytest.raises(ServiceError) as excinfo:
            await client.analyze(artifact)

        assert excinfo.value.message == "Failed to analyze image."

    async def test_success_status_with_error_body(
        self, client: AnalysisClient, service: FastAPI, artifact: ImageArtifact
    ) -> None:
        service.state.reply = (200, {"error": "Could not decode image"})

        with pytest.raises(ServiceError) as excinfo:
            await client.analyze(artifact)

        assert excinfo.value.message == "Could not decode image"

    async def test_does_not_retry(self, settings: Settings, artifact: ImageArtifact) -> None:
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(502, json={"error": "Bad gateway"})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            with pytest.raises(ServiceError):
                await AnalysisClient(settings, http).analyze(artifact)

        assert len(calls) == 1


class TestLifecycle:
    async def test_injected_client_is_not_closed(self, settings: Settings, http_client: httpx.AsyncClient) -> None:
        await AnalysisClient(settings, http_client).aclose()
        assert http_client.is_closed is False

    async def test_owned_client_is_closed(self, settings: Settings) -> None:
        client = AnalysisClient(settings)
        await client.aclose()
        assert client._client.is_closed is True
