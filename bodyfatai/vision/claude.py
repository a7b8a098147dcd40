"""Claude API vision backend for body fat estimation."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..errors import ConfigurationError
from . import PROMPT, AnalysisResult, VisionBackend, parse_analysis

if TYPE_CHECKING:
    from ..capture import NormalizedImage


class ClaudeVisionBackend(VisionBackend):
    """Estimate body fat using Claude's vision capability."""

    def __init__(self, api_key: str = "", model: str = "claude-sonnet-4-5-20250929") -> None:
        self._api_key = api_key
        self._model = model

    async def analyze(self, image: NormalizedImage) -> AnalysisResult:
        if not self._api_key:
            raise ConfigurationError(
                "Anthropic API key is not set. "
                "Check the config file or the ANTHROPIC_API_KEY environment variable."
            )

        try:
            import anthropic
        except ImportError:
            raise ImportError(
                "anthropic SDK is required: pip install 'bodyfatai[claude]'"
            ) from None

        content: list[dict] = [
            {
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": image.mime_type,
                    "data": image.base64(),
                },
            },
            {"type": "text", "text": PROMPT + "\nReturn only the JSON object."},
        ]

        client = anthropic.AsyncAnthropic(api_key=self._api_key)
        response = await client.messages.create(
            model=self._model,
            max_tokens=2048,
            messages=[{"role": "user", "content": content}],
        )

        text = response.content[0].text if response.content else ""
        return parse_analysis(text)
