"""Shareable result image rendering with Pillow.

The share card is the user's own photo with a dark gradient along the bottom,
the body fat value, a label above it, a provenance footnote and a branding
line. All sizes scale with the smaller image side so the card looks the same
on any photo.
"""

from __future__ import annotations

import base64
import io
import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont

logger = logging.getLogger(__name__)

SHARE_FILENAME = "bodyfat-analysis.png"
SHARE_TITLE = "My BodyFatAI Analysis"

LABEL_ESTIMATED = "Estimated Body Fat"
LABEL_SELF_REPORTED = "Self-Reported Body Fat"
FOOTNOTE_ADJUSTED = "Adjusted by user"

AI_COLOR = (52, 211, 153, 255)  # emerald-400
OVERRIDE_COLOR = (251, 191, 36, 255)  # amber-400
LABEL_COLOR = (203, 213, 225, 255)  # slate-300
FOOTNOTE_COLOR = (148, 163, 184, 255)  # slate-400
BRAND_COLOR = (255, 255, 255, 153)
GRADIENT_RGB = (2, 6, 23)  # slate-950

# (position within gradient, alpha)
_GRADIENT_STOPS = ((0.0, 0.0), (0.4, 0.7), (1.0, 0.95))

_FONT_SEARCH_PATHS = {
    True: [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
        "/usr/share/fonts/dejavu/DejaVuSans-Bold.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
        "/usr/share/fonts/liberation-sans/LiberationSans-Bold.ttf",
        "/Library/Fonts/Arial Bold.ttf",
        "/System/Library/Fonts/Supplemental/Arial Bold.ttf",
        "C:/Windows/Fonts/arialbd.ttf",
    ],
    False: [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
        "/usr/share/fonts/dejavu/DejaVuSans.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
        "/usr/share/fonts/liberation-sans/LiberationSans-Regular.ttf",
        "/Library/Fonts/Arial.ttf",
        "/System/Library/Fonts/Supplemental/Arial.ttf",
        "C:/Windows/Fonts/arial.ttf",
    ],
}


@dataclass(frozen=True)
class CardLayout:
    padding: float
    gradient: float
    value_size: float
    brand_size: float = 0.04
    label_size: float = 0.035
    footnote_size: float = 0.03


STANDARD_LAYOUT = CardLayout(padding=0.05, gradient=0.50, value_size=0.12)
ADJUSTABLE_LAYOUT = CardLayout(padding=0.06, gradient=0.55, value_size=0.14)


@dataclass(frozen=True)
class ShareCardSpec:
    display_value: str
    adjusted: bool
    confidence_level: str
    branding: str = "BodyFatAI Analysis"
    adjustable: bool = True

    @property
    def layout(self) -> CardLayout:
        return ADJUSTABLE_LAYOUT if self.adjustable else STANDARD_LAYOUT

    @property
    def label(self) -> str:
        return LABEL_SELF_REPORTED if self.adjusted else LABEL_ESTIMATED

    @property
    def footnote(self) -> str:
        if self.adjusted:
            return FOOTNOTE_ADJUSTED
        return f"Confidence: {self.confidence_level}"

    @property
    def value_color(self) -> tuple[int, int, int, int]:
        return OVERRIDE_COLOR if self.adjusted else AI_COLOR

    def key(self, source_id: str) -> tuple[str, str, str, str]:
        """Identity of the artifact rendered for *source_id*."""
        provenance = FOOTNOTE_ADJUSTED if self.adjusted else self.confidence_level
        return (source_id, self.display_value, provenance, self.branding)


@dataclass(frozen=True)
class ShareArtifact:
    png: bytes
    key: tuple[str, str, str, str]
    generation: int
    display_value: str
    adjusted: bool

    def save(self, directory: str | Path = ".", filename: str = SHARE_FILENAME) -> Path:
        """Write the PNG into *directory* and return its path."""
        directory = Path(directory).expanduser()
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / filename
        path.write_bytes(self.png)
        logger.info("Share image saved: %s", path)
        return path

    def data_url(self) -> str:
        return "data:image/png;base64," + base64.standard_b64encode(self.png).decode()

    def share_payload(self) -> dict[str, str]:
        """Title/text metadata handed to a share sheet together with the file."""
        if self.adjusted:
            text = f"{LABEL_SELF_REPORTED}: {self.display_value}."
        else:
            text = f"{LABEL_ESTIMATED}: {self.display_value}. Analyzed by AI."
        return {"title": SHARE_TITLE, "text": text, "filename": SHARE_FILENAME}


@lru_cache(maxsize=32)
def load_font(size: int, bold: bool = False) -> ImageFont.ImageFont | ImageFont.FreeTypeFont:
    """Return a TrueType font of *size* pixels, or Pillow's built-in font."""
    size = max(1, size)
    for path in _FONT_SEARCH_PATHS[bold]:
        if Path(path).exists():
            try:
                return ImageFont.truetype(path, size)
            except OSError:
                continue
    return ImageFont.load_default(size=size)


def _gradient_alpha(t: float) -> float:
    for (p0, a0), (p1, a1) in zip(_GRADIENT_STOPS, _GRADIENT_STOPS[1:]):
        if t <= p1:
            return a0 + (a1 - a0) * (t - p0) / (p1 - p0)
    return _GRADIENT_STOPS[-1][1]


def _gradient(width: int, height: int) -> Image.Image:
    mask = Image.new("L", (1, height))
    span = max(1, height - 1)
    mask.putdata([int(round(_gradient_alpha(y / span) * 255)) for y in range(height)])
    overlay = Image.new("RGBA", (width, height), GRADIENT_RGB + (0,))
    overlay.putalpha(mask.resize((width, height)))
    return overlay


def compose_share_card(source: Image.Image, spec: ShareCardSpec) -> Image.Image:
    """Draw the overlay on a fresh copy of *source* and return it."""
    surface = source.convert("RGBA")
    width, height = surface.size
    layout = spec.layout

    base = min(width, height)
    pad = base * layout.padding

    gradient_height = int(round(height * layout.gradient))
    if gradient_height > 0:
        surface.alpha_composite(_gradient(width, gradient_height), (0, height - gradient_height))

    draw = ImageDraw.Draw(surface, "RGBA")

    if spec.branding:
        draw.text(
            (width - pad, height - pad),
            spec.branding,
            font=load_font(int(base * layout.brand_size), bold=True),
            fill=BRAND_COLOR,
            anchor="rs",
        )

    value_size = int(base * layout.value_size)
    value_y = height - pad - base * 0.06
    draw.text(
        (pad, value_y),
        spec.display_value,
        font=load_font(value_size, bold=True),
        fill=spec.value_color,
        anchor="ls",
    )

    draw.text(
        (pad, value_y - value_size - base * 0.01),
        spec.label,
        font=load_font(int(base * layout.label_size)),
        fill=LABEL_COLOR,
        anchor="ls",
    )

    draw.text(
        (pad, height - pad),
        spec.footnote,
        font=load_font(int(base * layout.footnote_size)),
        fill=OVERRIDE_COLOR if spec.adjusted else FOOTNOTE_COLOR,
        anchor="ls",
    )

    return surface


def render_share_card(source: Image.Image, spec: ShareCardSpec) -> bytes:
    """Composite the share card and encode it as PNG."""
    out = io.BytesIO()
    compose_share_card(source, spec).save(out, format="PNG")
    return out.getvalue()
