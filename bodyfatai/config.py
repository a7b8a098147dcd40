"""TOML configuration loader for BodyFatAI."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib
    except ImportError:
        tomllib = None  # type: ignore[assignment]


@dataclass
class CaptureConfig:
    max_dimension: int = 1024
    jpeg_quality: float = 0.7
    camera_index: int = 0


@dataclass
class GeminiVisionConfig:
    api_key: str = ""
    model: str = "gemini-2.5-flash"


@dataclass
class ClaudeVisionConfig:
    api_key: str = ""
    model: str = "claude-sonnet-4-5-20250929"


@dataclass
class VisionConfig:
    backend: str = "gemini"
    timeout: float = 120.0
    gemini: GeminiVisionConfig = field(default_factory=GeminiVisionConfig)
    claude: ClaudeVisionConfig = field(default_factory=ClaudeVisionConfig)


@dataclass
class ShareConfig:
    branding: str = "BodyFatAI Analysis"
    debounce: float = 0.5
    output_dir: str = "."
    adjustable: bool = True


@dataclass
class ReminderConfig:
    enabled: bool = True
    db_path: str = "~/.config/bodyfatai/state.db"
    interval_days: int = 14
    check_minutes: int = 60


@dataclass
class BodyFatConfig:
    capture: CaptureConfig = field(default_factory=CaptureConfig)
    vision: VisionConfig = field(default_factory=VisionConfig)
    share: ShareConfig = field(default_factory=ShareConfig)
    reminder: ReminderConfig = field(default_factory=ReminderConfig)


def load_config(path: str | Path | None = None) -> BodyFatConfig:
    """Load configuration from a TOML file.

    Falls back to defaults if no path is given or the file doesn't exist.
    API keys can be overridden via environment variables.
    """
    raw: dict = {}

    if path is not None:
        p = Path(path)
        if p.exists():
            if tomllib is None:
                raise ImportError(
                    "tomli is required on Python < 3.11: pip install tomli"
                )
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    cap = raw.get("capture", {})
    vis = raw.get("vision", {})
    shr = raw.get("share", {})
    rem = raw.get("reminder", {})

    gemini_cfg = vis.get("gemini", {})
    claude_cfg = vis.get("claude", {})

    # Resolve API keys: config file → environment variable
    gemini_api_key = gemini_cfg.get("api_key", "") or os.environ.get(
        "GEMINI_API_KEY", ""
    )
    claude_api_key = claude_cfg.get("api_key", "") or os.environ.get(
        "ANTHROPIC_API_KEY", ""
    )

    return BodyFatConfig(
        capture=CaptureConfig(
            max_dimension=cap.get("max_dimension", 1024),
            jpeg_quality=cap.get("jpeg_quality", 0.7),
            camera_index=cap.get("camera_index", 0),
        ),
        vision=VisionConfig(
            backend=vis.get("backend", "gemini"),
            timeout=vis.get("timeout", 120.0),
            gemini=GeminiVisionConfig(
                api_key=gemini_api_key,
                model=gemini_cfg.get("model", "gemini-2.5-flash"),
            ),
            claude=ClaudeVisionConfig(
                api_key=claude_api_key,
                model=claude_cfg.get("model", "claude-sonnet-4-5-20250929"),
            ),
        ),
        share=ShareConfig(
            branding=shr.get("branding", "BodyFatAI Analysis"),
            debounce=shr.get("debounce", 0.5),
            output_dir=shr.get("output_dir", "."),
            adjustable=shr.get("adjustable", True),
        ),
        reminder=ReminderConfig(
            enabled=rem.get("enabled", True),
            db_path=rem.get("db_path", "~/.config/bodyfatai/state.db"),
            interval_days=rem.get("interval_days", 14),
            check_minutes=rem.get("check_minutes", 60),
        ),
    )
