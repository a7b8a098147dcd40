"""Body fat estimation from a photo, with a shareable result card."""

from .capture import BodyCamera, NormalizedImage, RawImage, load_source, normalize, normalize_file
from .composer import ShareComposer
from .config import (
    BodyFatConfig,
    CaptureConfig,
    ReminderConfig,
    ShareConfig,
    VisionConfig,
    load_config,
)
from .db import ReminderStore
from .errors import (
    AnalysisError,
    AnalysisTimeout,
    BodyFatError,
    CaptureError,
    ConfigurationError,
    ResponseParseError,
    TransportError,
    user_message,
)
from .inference import run_inference
from .override import DisplayValue, OverrideState
from .session import AnalysisSession
from .share import ShareArtifact, ShareCardSpec, render_share_card
from .vision import AnalysisResult, VisionBackend, create_backend, parse_analysis

__all__ = [
    "BodyCamera",
    "RawImage",
    "NormalizedImage",
    "load_source",
    "normalize",
    "normalize_file",
    "VisionBackend",
    "AnalysisResult",
    "create_backend",
    "parse_analysis",
    "run_inference",
    "AnalysisSession",
    "DisplayValue",
    "OverrideState",
    "ShareCardSpec",
    "ShareArtifact",
    "ShareComposer",
    "render_share_card",
    "ReminderStore",
    "BodyFatError",
    "CaptureError",
    "ConfigurationError",
    "AnalysisError",
    "AnalysisTimeout",
    "TransportError",
    "ResponseParseError",
    "user_message",
    "BodyFatConfig",
    "CaptureConfig",
    "VisionConfig",
    "ShareConfig",
    "ReminderConfig",
    "load_config",
]
