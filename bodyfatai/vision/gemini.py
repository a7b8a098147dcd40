"""Gemini API vision backend for body fat estimation."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..errors import ConfigurationError, ResponseParseError
from . import PROMPT, AnalysisResult, VisionBackend, parse_analysis

if TYPE_CHECKING:
    from ..capture import NormalizedImage


class GeminiVisionBackend(VisionBackend):
    """Estimate body fat using Google Gemini's vision capability."""

    def __init__(self, api_key: str = "", model: str = "gemini-2.5-flash") -> None:
        self._api_key = api_key
        self._model = model

    async def analyze(self, image: NormalizedImage) -> AnalysisResult:
        if not self._api_key:
            raise ConfigurationError(
                "Gemini API key is not set. "
                "Check the config file or the GEMINI_API_KEY environment variable."
            )

        try:
            import google.generativeai as genai
        except ImportError:
            raise ImportError(
                "google-generativeai SDK is required: pip install google-generativeai"
            ) from None

        genai.configure(api_key=self._api_key)
        model = genai.GenerativeModel(self._model)

        parts: list = [
            {"mime_type": image.mime_type, "data": image.data},
            PROMPT,
        ]
        response = await model.generate_content_async(
            parts,
            generation_config={"response_mime_type": "application/json"},
        )
        try:
            text = response.text
        except ValueError as e:
            # Blocked or empty candidates have no text part.
            raise ResponseParseError(f"No usable response text: {e}") from e
        return parse_analysis(text)
