"""Image acquisition and normalization before upload.

Photos coming from a file, a drag-and-drop payload or a camera frame are
decoded, bounded to ``MAX_DIMENSION`` on their longest side and re-encoded as
JPEG at a fixed quality. Only the resulting :class:`NormalizedImage` is ever
sent to the model.
"""

from __future__ import annotations

import base64
import io
import logging
import math
import mimetypes
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError

from .errors import CaptureError

logger = logging.getLogger(__name__)

MAX_DIMENSION = 1024
JPEG_QUALITY = 0.7

CAMERA_ERROR = "Could not access camera. Please check permissions."


@dataclass
class RawImage:
    data: bytes
    mime_type: str
    width: int = 0
    height: int = 0


@dataclass(frozen=True)
class NormalizedImage:
    data: bytes
    width: int
    height: int
    mime_type: str = "image/jpeg"

    def base64(self) -> str:
        return base64.standard_b64encode(self.data).decode()


def scaled_dimensions(width: int, height: int, bound: int = MAX_DIMENSION) -> tuple[int, int]:
    """Return (width, height) shrunk so that neither side exceeds *bound*.

    A single factor is applied to both axes so the aspect ratio is kept.
    Sizes already within the bound are returned unchanged.
    """
    if width <= bound and height <= bound:
        return width, height
    ratio = bound / max(width, height)
    return _round_half_up(width * ratio), _round_half_up(height * ratio)


def _round_half_up(value: float) -> int:
    return max(1, int(math.floor(value + 0.5)))


def _pillow_quality(quality: float) -> int:
    return max(1, min(95, int(round(quality * 100))))


def load_source(
    source: str | Path | bytes, mime_type: str | None = None
) -> RawImage | None:
    """Wrap a file path or an in-memory payload as a :class:`RawImage`.

    Returns None when the resource is not image-typed.
    """
    if isinstance(source, (str, Path)):
        path = Path(source)
        mime_type = mime_type or mimetypes.guess_type(path.name)[0] or ""
        if not mime_type.startswith("image/"):
            logger.debug("Ignoring non-image file %s (%s)", path, mime_type or "unknown")
            return None
        try:
            data = path.read_bytes()
        except OSError as e:
            raise CaptureError(f"Could not read image file: {path}") from e
    else:
        mime_type = mime_type or ""
        if not mime_type.startswith("image/"):
            logger.debug("Ignoring non-image payload (%s)", mime_type or "unknown")
            return None
        data = bytes(source)
    return RawImage(data=data, mime_type=mime_type)


def decode(raw: RawImage) -> Image.Image:
    """Decode *raw* into an upright Pillow image and record its size."""
    try:
        img = Image.open(io.BytesIO(raw.data))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise CaptureError("Could not read the selected image.") from e
    img = ImageOps.exif_transpose(img)
    raw.width, raw.height = img.size
    return img


def encode_jpeg(img: Image.Image, quality: float = JPEG_QUALITY) -> bytes:
    """Encode *img* as baseline JPEG without metadata."""
    if img.mode != "RGB":
        img = img.convert("RGB")
    out = io.BytesIO()
    try:
        img.save(out, format="JPEG", quality=_pillow_quality(quality))
    except (OSError, ValueError) as e:
        raise CaptureError("Could not encode the image.") from e
    return out.getvalue()


def normalize(
    raw: RawImage | None,
    bound: int = MAX_DIMENSION,
    quality: float = JPEG_QUALITY,
) -> NormalizedImage | None:
    """Downscale and compress *raw* for upload.

    Returns None for a missing or non-image input.
    """
    if raw is None or not raw.mime_type.startswith("image/"):
        return None

    img = decode(raw)
    width, height = scaled_dimensions(img.width, img.height, bound)
    if (width, height) != img.size:
        img = img.resize((width, height), Image.LANCZOS)

    data = encode_jpeg(img, quality)
    logger.debug(
        "Normalized %dx%d %s -> %dx%d JPEG (%d bytes)",
        raw.width, raw.height, raw.mime_type, width, height, len(data),
    )
    return NormalizedImage(data=data, width=width, height=height)


def normalize_file(
    path: str | Path,
    bound: int = MAX_DIMENSION,
    quality: float = JPEG_QUALITY,
) -> NormalizedImage | None:
    """Convenience wrapper for the file picker path."""
    return normalize(load_source(path), bound=bound, quality=quality)


class BodyCamera:
    """Grab single frames from a local camera through OpenCV."""

    def __init__(self, camera_index: int = 0, quality: float = JPEG_QUALITY) -> None:
        self._camera_index = camera_index
        self._quality = quality

    def capture(self) -> NormalizedImage:
        """Capture one frame at the stream's native resolution.

        The frame is compressed but not bounded.
        """
        try:
            import cv2
        except ImportError:
            raise ImportError(
                "opencv-python is required: pip install 'bodyfatai[camera]'"
            ) from None

        cap = cv2.VideoCapture(self._camera_index)
        if not cap.isOpened():
            logger.warning("Camera %d could not be opened", self._camera_index)
            raise CaptureError(CAMERA_ERROR)

        try:
            ret, frame = cap.read()
            if not ret or frame is None:
                raise CaptureError(
                    f"Could not read a frame from camera {self._camera_index}."
                )

            height, width = frame.shape[:2]
            ok, buf = cv2.imencode(
                ".jpg",
                frame,
                [int(cv2.IMWRITE_JPEG_QUALITY), _pillow_quality(self._quality)],
            )
            if not ok:
                raise CaptureError("Could not encode the captured frame.")

            return NormalizedImage(
                data=bytes(buf.tobytes()), width=int(width), height=int(height)
            )
        finally:
            cap.release()

    @staticmethod
    def list_cameras(max_check: int = 10) -> list[int]:
        """List available camera indices by probing."""
        try:
            import cv2
        except ImportError:
            raise ImportError(
                "opencv-python is required: pip install 'bodyfatai[camera]'"
            ) from None

        available: list[int] = []
        for i in range(max_check):
            cap = cv2.VideoCapture(i)
            if cap.isOpened():
                available.append(i)
                cap.release()
        return available
