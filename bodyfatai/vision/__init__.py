"""Vision backend base class, analysis result type, and factory."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ..errors import ConfigurationError, ResponseParseError

if TYPE_CHECKING:
    from ..capture import NormalizedImage
    from ..config import BodyFatConfig

NOT_AVAILABLE = "N/A"

PROMPT = """\
Analyze this image to estimate the body fat percentage of the person depicted.
Focus on visual cues such as muscle definition, vascularity, abdominal separation, and overall leanness.

Return a JSON object.
If the image does not clearly show a person's physique suitable for analysis (e.g., fully clothed, bad lighting, not a person),
set the estimatedRange to "N/A", explain why in the muscleDefinitionAnalysis,
and list concrete ways to retake the photo in suggestions.

Required fields:
- estimatedRange: string (e.g., "12-15%")
- confidenceLevel: string (e.g., "High", "Medium", "Low")
- visualCues: array of strings (specific observations like "visible abs", "shoulder striations")
- muscleDefinitionAnalysis: string (a detailed paragraph explaining the assessment)
- healthTips: array of strings (3 general fitness/health tips relevant to this physique range)
- disclaimer: string (Standard medical disclaimer)

Optional fields:
- suggestions: array of strings (how to take a better photo; only when estimatedRange is "N/A")
"""

_STRING_FIELDS = ("estimatedRange", "confidenceLevel", "muscleDefinitionAnalysis", "disclaimer")
_LIST_FIELDS = ("visualCues", "healthTips")


@dataclass(frozen=True)
class AnalysisResult:
    estimated_range: str  # e.g. "12-15%" or "N/A"
    confidence_level: str  # High / Medium / Low
    visual_cues: tuple[str, ...]
    muscle_definition_analysis: str
    health_tips: tuple[str, ...]
    disclaimer: str
    suggestions: tuple[str, ...] | None = None

    @property
    def is_unavailable(self) -> bool:
        return self.estimated_range == NOT_AVAILABLE

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AnalysisResult:
        suggestions = data.get("suggestions")
        return cls(
            estimated_range=data["estimatedRange"],
            confidence_level=data["confidenceLevel"],
            visual_cues=tuple(data["visualCues"]),
            muscle_definition_analysis=data["muscleDefinitionAnalysis"],
            health_tips=tuple(data["healthTips"]),
            disclaimer=data["disclaimer"],
            suggestions=tuple(suggestions) if suggestions is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "estimatedRange": self.estimated_range,
            "confidenceLevel": self.confidence_level,
            "visualCues": list(self.visual_cues),
            "muscleDefinitionAnalysis": self.muscle_definition_analysis,
            "healthTips": list(self.health_tips),
            "disclaimer": self.disclaimer,
        }
        if self.suggestions is not None:
            data["suggestions"] = list(self.suggestions)
        return data


def strip_fences(text: str) -> str:
    """Remove a leading and a trailing markdown code fence, if present."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        lines = cleaned.split("\n")[1:]
        if lines and lines[-1].strip().startswith("```"):
            lines = lines[:-1]
        cleaned = "\n".join(lines).strip()
    return cleaned


def parse_analysis(text: str | None) -> AnalysisResult:
    """Parse a model response into an :class:`AnalysisResult`.

    Raises:
        ResponseParseError: If the text is empty, not JSON, or lacks a
            required field.
    """
    if not text or not text.strip():
        raise ResponseParseError("No response text received from the model.")

    try:
        data = json.loads(strip_fences(text))
    except json.JSONDecodeError as e:
        raise ResponseParseError(f"Response is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ResponseParseError("Response JSON is not an object.")

    for name in _STRING_FIELDS:
        if not isinstance(data.get(name), str):
            raise ResponseParseError(f"Missing or invalid field: {name}")
    for name in _LIST_FIELDS:
        if not _is_str_list(data.get(name)):
            raise ResponseParseError(f"Missing or invalid field: {name}")
    if "suggestions" in data and data["suggestions"] is not None:
        if not _is_str_list(data["suggestions"]):
            raise ResponseParseError("Invalid field: suggestions")

    return AnalysisResult.from_dict(data)


def _is_str_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(v, str) for v in value)


class VisionBackend(ABC):
    """Abstract base for body fat estimation from a photo."""

    @abstractmethod
    async def analyze(self, image: NormalizedImage) -> AnalysisResult:
        """Send one normalized image to the model and return its analysis.

        Transport errors propagate as raised by the SDK; callers wrap them.
        """
        ...


def create_backend(config: BodyFatConfig) -> VisionBackend:
    """Create a vision backend based on configuration."""
    backend_name = config.vision.backend

    match backend_name:
        case "gemini":
            from .gemini import GeminiVisionBackend

            return GeminiVisionBackend(
                api_key=config.vision.gemini.api_key,
                model=config.vision.gemini.model,
            )
        case "claude":
            from .claude import ClaudeVisionBackend

            return ClaudeVisionBackend(
                api_key=config.vision.claude.api_key,
                model=config.vision.claude.model,
            )
        case _:
            raise ConfigurationError(
                f"Unknown vision backend: {backend_name!r}  "
                f"(choose gemini or claude)"
            )
