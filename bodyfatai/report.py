"""Plain-text rendering of an analysis for the terminal."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .share import FOOTNOTE_ADJUSTED, LABEL_ESTIMATED, LABEL_SELF_REPORTED

if TYPE_CHECKING:
    from .override import DisplayValue
    from .vision import AnalysisResult

_RULE = "─" * 48


def render_report(result: AnalysisResult, display: DisplayValue | None = None) -> str:
    """Render *result* as the result screen.

    An "N/A" estimate produces the failure panel with the photo suggestions
    and never the metric card.
    """
    if result.is_unavailable:
        return _render_unavailable(result)

    value = display.value if display is not None else result.estimated_range
    adjusted = display.manually_adjusted if display is not None else False

    lines = [
        _RULE,
        LABEL_SELF_REPORTED if adjusted else LABEL_ESTIMATED,
        f"  {value}",
        f"  {FOOTNOTE_ADJUSTED}" if adjusted else f"  Confidence: {result.confidence_level}",
    ]
    if adjusted:
        lines.append(f"  (AI estimate: {result.estimated_range})")
    lines.append(_RULE)

    if result.visual_cues:
        lines.append("")
        lines.append("Visual Cues:")
        lines.extend(f"  • {cue}" for cue in result.visual_cues)

    lines.append("")
    lines.append("Physique Analysis:")
    lines.append(f"  {result.muscle_definition_analysis}")

    if result.health_tips:
        lines.append("")
        lines.append("Tips:")
        lines.extend(f"  {i}. {tip}" for i, tip in enumerate(result.health_tips, 1))

    if result.disclaimer:
        lines.append("")
        lines.append(result.disclaimer)

    return "\n".join(lines)


def _render_unavailable(result: AnalysisResult) -> str:
    lines = [
        "⚠ Analysis Failed",
        f"  {result.muscle_definition_analysis}",
    ]
    if result.suggestions:
        lines.append("")
        lines.append("Try this for a better photo:")
        lines.extend(f"  • {s}" for s in result.suggestions)
    return "\n".join(lines)


def result_to_json(result: AnalysisResult, display: DisplayValue | None = None) -> dict[str, Any]:
    data = result.to_dict()
    if display is not None:
        data["displayValue"] = display.value
        data["manuallyAdjusted"] = display.manually_adjusted
    return data
