"""Tests for vision backends and response parsing (mocked API calls)."""

import json
import sys
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from bodyfatai.capture import NormalizedImage
from bodyfatai.config import load_config
from bodyfatai.errors import ConfigurationError, ResponseParseError
from bodyfatai.vision import (
    NOT_AVAILABLE,
    AnalysisResult,
    create_backend,
    parse_analysis,
    strip_fences,
)
from bodyfatai.vision.claude import ClaudeVisionBackend
from bodyfatai.vision.gemini import GeminiVisionBackend

_PAYLOAD = {
    "estimatedRange": "12-15%",
    "confidenceLevel": "High",
    "visualCues": ["visible abs", "shoulder striations"],
    "muscleDefinitionAnalysis": "Clear abdominal separation.",
    "healthTips": ["Sleep well", "Eat protein", "Lift"],
    "disclaimer": "Not medical advice.",
}

_IMAGE = NormalizedImage(data=b"\xff\xd8\xff\xe0fake-jpeg", width=10, height=10)


class TestAnalysisResult:
    def test_from_dict(self):
        result = AnalysisResult.from_dict(_PAYLOAD)
        assert result.estimated_range == "12-15%"
        assert result.visual_cues == ("visible abs", "shoulder striations")
        assert result.suggestions is None
        assert not result.is_unavailable

    def test_round_trip_keeps_wire_names(self):
        result = AnalysisResult.from_dict(_PAYLOAD)
        assert result.to_dict() == _PAYLOAD

    def test_is_immutable(self):
        result = AnalysisResult.from_dict(_PAYLOAD)
        with pytest.raises(AttributeError):
            result.estimated_range = "20%"


class TestStripFences:
    def test_plain(self):
        assert strip_fences('  {"a": 1} ') == '{"a": 1}'

    def test_json_fence(self):
        assert strip_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_bare_fence(self):
        assert strip_fences('```\n{"a": 1}\n```\n') == '{"a": 1}'


class TestParseAnalysis:
    def test_parse_object(self):
        result = parse_analysis(json.dumps(_PAYLOAD))
        assert result.confidence_level == "High"
        assert result.health_tips == ("Sleep well", "Eat protein", "Lift")

    def test_parse_with_markdown_fences(self):
        text = "```json\n" + json.dumps(_PAYLOAD, indent=2) + "\n```"
        assert parse_analysis(text).estimated_range == "12-15%"

    def test_parse_not_available_with_suggestions(self):
        payload = dict(
            _PAYLOAD,
            estimatedRange=NOT_AVAILABLE,
            suggestions=["Use better lighting", "Remove the shirt"],
        )
        result = parse_analysis(json.dumps(payload))
        assert result.is_unavailable
        assert result.suggestions == ("Use better lighting", "Remove the shirt")

    def test_empty_text(self):
        with pytest.raises(ResponseParseError, match="No response text"):
            parse_analysis("")

    def test_invalid_json(self):
        with pytest.raises(ResponseParseError, match="not valid JSON"):
            parse_analysis("```json\n{oops\n```")

    def test_not_an_object(self):
        with pytest.raises(ResponseParseError, match="not an object"):
            parse_analysis("[1, 2]")

    def test_missing_required_field(self):
        payload = dict(_PAYLOAD)
        del payload["disclaimer"]
        with pytest.raises(ResponseParseError, match="disclaimer"):
            parse_analysis(json.dumps(payload))

    def test_wrong_list_type(self):
        payload = dict(_PAYLOAD, visualCues="abs")
        with pytest.raises(ResponseParseError, match="visualCues"):
            parse_analysis(json.dumps(payload))

    def test_bad_suggestions(self):
        payload = dict(_PAYLOAD, suggestions=[1, 2])
        with pytest.raises(ResponseParseError, match="suggestions"):
            parse_analysis(json.dumps(payload))


class TestCreateBackend:
    def test_create_gemini_backend(self):
        config = load_config()
        assert isinstance(create_backend(config), GeminiVisionBackend)

    def test_create_claude_backend(self):
        config = load_config()
        config.vision.backend = "claude"
        assert isinstance(create_backend(config), ClaudeVisionBackend)

    def test_create_unknown_backend(self):
        config = load_config()
        config.vision.backend = "unknown"
        with pytest.raises(ValueError, match="Unknown vision backend"):
            create_backend(config)


class TestGeminiVisionBackend:
    @pytest.mark.asyncio
    async def test_requires_api_key(self):
        backend = GeminiVisionBackend(api_key="")
        with pytest.raises(ConfigurationError, match="API key"):
            await backend.analyze(_IMAGE)

    @pytest.mark.asyncio
    async def test_analyze_mocked(self):
        mock_model = MagicMock()
        mock_model.generate_content_async = AsyncMock(
            return_value=MagicMock(text=json.dumps(_PAYLOAD))
        )
        mock_genai = MagicMock()
        mock_genai.GenerativeModel.return_value = mock_model
        mock_google = MagicMock()
        mock_google.generativeai = mock_genai

        with patch.dict(
            sys.modules, {"google": mock_google, "google.generativeai": mock_genai}
        ):
            backend = GeminiVisionBackend(api_key="test-key", model="gemini-test")
            result = await backend.analyze(_IMAGE)

        assert result.estimated_range == "12-15%"
        mock_genai.configure.assert_called_once_with(api_key="test-key")
        mock_genai.GenerativeModel.assert_called_once_with("gemini-test")
        parts = mock_model.generate_content_async.call_args[0][0]
        assert parts[0] == {"mime_type": "image/jpeg", "data": _IMAGE.data}
        assert "estimatedRange" in parts[1]

    @pytest.mark.asyncio
    async def test_analyze_malformed_response(self):
        mock_model = MagicMock()
        mock_model.generate_content_async = AsyncMock(
            return_value=MagicMock(text="Sorry, I can't help with that.")
        )
        mock_genai = MagicMock()
        mock_genai.GenerativeModel.return_value = mock_model
        mock_google = MagicMock()
        mock_google.generativeai = mock_genai

        with patch.dict(
            sys.modules, {"google": mock_google, "google.generativeai": mock_genai}
        ):
            backend = GeminiVisionBackend(api_key="test-key")
            with pytest.raises(ResponseParseError):
                await backend.analyze(_IMAGE)


    @pytest.mark.asyncio
    async def test_blocked_response_is_parse_error(self):
        class _BlockedResponse:
            @property
            def text(self):
                raise ValueError(
                    "The `response.text` quick accessor only works when the "
                    "response contains a valid `Part`"
                )

        mock_model = MagicMock()
        mock_model.generate_content_async = AsyncMock(return_value=_BlockedResponse())
        mock_genai = MagicMock()
        mock_genai.GenerativeModel.return_value = mock_model
        mock_google = MagicMock()
        mock_google.generativeai = mock_genai

        with patch.dict(
            sys.modules, {"google": mock_google, "google.generativeai": mock_genai}
        ):
            backend = GeminiVisionBackend(api_key="test-key")
            with pytest.raises(ResponseParseError, match="No usable response text"):
                await backend.analyze(_IMAGE)


class TestClaudeVisionBackend:
    @pytest.mark.asyncio
    async def test_requires_api_key(self):
        backend = ClaudeVisionBackend(api_key="")
        with pytest.raises(ConfigurationError, match="API key"):
            await backend.analyze(_IMAGE)

    @pytest.mark.asyncio
    async def test_analyze_mocked(self):
        mock_response = MagicMock()
        mock_response.content = [
            MagicMock(text="```json\n" + json.dumps(_PAYLOAD) + "\n```")
        ]

        mock_client = AsyncMock()
        mock_client.messages.create = AsyncMock(return_value=mock_response)

        mock_anthropic = MagicMock()
        mock_anthropic.AsyncAnthropic.return_value = mock_client

        with patch.dict(sys.modules, {"anthropic": mock_anthropic}):
            backend = ClaudeVisionBackend(api_key="test-key")
            result = await backend.analyze(_IMAGE)

        assert result.estimated_range == "12-15%"
        content = mock_client.messages.create.call_args.kwargs["messages"][0]["content"]
        assert content[0]["source"]["media_type"] == "image/jpeg"
        assert content[0]["source"]["data"] == _IMAGE.base64()
