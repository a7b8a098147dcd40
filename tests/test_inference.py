"""Tests for the timeout race around a single inference request."""

import asyncio

import pytest

from bodyfatai.capture import NormalizedImage
from bodyfatai.errors import (
    NETWORK_FAILURE,
    AnalysisTimeout,
    ConfigurationError,
    ResponseParseError,
    TransportError,
    user_message,
)
from bodyfatai.inference import run_inference
from bodyfatai.vision import AnalysisResult, VisionBackend

_IMAGE = NormalizedImage(data=b"jpeg", width=1, height=1)


def _make_result(estimate: str = "12-15%") -> AnalysisResult:
    return AnalysisResult(
        estimated_range=estimate,
        confidence_level="High",
        visual_cues=("visible abs",),
        muscle_definition_analysis="Lean.",
        health_tips=("Sleep",),
        disclaimer="Not medical advice.",
    )


class _FakeBackend(VisionBackend):
    def __init__(self, delay: float = 0.0, result=None, error: Exception | None = None):
        self.delay = delay
        self.result = result or _make_result()
        self.error = error
        self.calls = 0
        self.cancelled = False

    async def analyze(self, image):
        self.calls += 1
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.error is not None:
            raise self.error
        return self.result


@pytest.mark.asyncio
async def test_returns_result_before_timeout():
    backend = _FakeBackend(delay=0.01)
    result = await run_inference(backend, _IMAGE, timeout=1.0)
    assert result.estimated_range == "12-15%"
    assert backend.calls == 1


@pytest.mark.asyncio
async def test_timeout_wins_and_request_is_cancelled():
    backend = _FakeBackend(delay=5.0)
    with pytest.raises(AnalysisTimeout):
        await run_inference(backend, _IMAGE, timeout=0.05)
    await asyncio.sleep(0.01)
    assert backend.cancelled
    assert backend.calls == 1


@pytest.mark.asyncio
async def test_timeout_maps_to_network_message():
    backend = _FakeBackend(delay=5.0)
    with pytest.raises(AnalysisTimeout) as exc_info:
        await run_inference(backend, _IMAGE, timeout=0.01)
    assert user_message(exc_info.value) == NETWORK_FAILURE


@pytest.mark.asyncio
async def test_transport_error_is_wrapped():
    backend = _FakeBackend(error=RuntimeError("500 Internal Server Error"))
    with pytest.raises(TransportError, match="500") as exc_info:
        await run_inference(backend, _IMAGE, timeout=1.0)
    assert isinstance(exc_info.value.__cause__, RuntimeError)
    assert user_message(exc_info.value) == NETWORK_FAILURE


@pytest.mark.asyncio
async def test_parse_error_passes_through():
    backend = _FakeBackend(error=ResponseParseError("bad json"))
    with pytest.raises(ResponseParseError):
        await run_inference(backend, _IMAGE, timeout=1.0)


@pytest.mark.asyncio
async def test_configuration_error_passes_through():
    backend = _FakeBackend(error=ConfigurationError("API key is not set"))
    with pytest.raises(ConfigurationError, match="API key"):
        await run_inference(backend, _IMAGE, timeout=1.0)


@pytest.mark.asyncio
async def test_sdk_value_error_is_wrapped():
    backend = _FakeBackend(error=ValueError("response has no valid Part"))
    with pytest.raises(TransportError, match="no valid Part") as exc_info:
        await run_inference(backend, _IMAGE, timeout=1.0)
    assert isinstance(exc_info.value.__cause__, ValueError)


@pytest.mark.asyncio
async def test_no_retry_on_failure():
    backend = _FakeBackend(error=ConnectionError("network down"))
    with pytest.raises(TransportError):
        await run_inference(backend, _IMAGE, timeout=1.0)
    assert backend.calls == 1
