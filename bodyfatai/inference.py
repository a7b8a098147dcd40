"""Single-shot inference call raced against a deadline."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from .errors import AnalysisError, AnalysisTimeout, ConfigurationError, TransportError

if TYPE_CHECKING:
    from .capture import NormalizedImage
    from .vision import AnalysisResult, VisionBackend

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120.0


async def run_inference(
    backend: VisionBackend,
    image: NormalizedImage,
    timeout: float = DEFAULT_TIMEOUT,
) -> AnalysisResult:
    """Issue one analysis request and wait for it or the timeout, whichever is first.

    The request is never retried. When the timer wins, the request task is
    cancelled and its eventual outcome is not observed.

    Raises:
        AnalysisTimeout: The request did not settle within *timeout* seconds.
        TransportError: The backend raised anything other than an
            :class:`AnalysisError`, a :class:`ConfigurationError` or an
            ImportError for a missing SDK.
        ResponseParseError: The backend answered with malformed content.
    """
    request = asyncio.create_task(backend.analyze(image), name="bodyfatai-inference")
    timer = asyncio.create_task(asyncio.sleep(timeout), name="bodyfatai-timeout")

    try:
        done, _ = await asyncio.wait(
            {request, timer}, return_when=asyncio.FIRST_COMPLETED
        )
    except asyncio.CancelledError:
        request.cancel()
        timer.cancel()
        raise

    if request not in done:
        request.cancel()
        request.add_done_callback(_discard_late_result)
        logger.warning("Analysis request timed out after %.0fs", timeout)
        raise AnalysisTimeout(f"Request timed out after {timeout:g} seconds")

    timer.cancel()
    try:
        result = request.result()
    except (AnalysisError, ConfigurationError, ImportError):
        raise
    except Exception as e:
        logger.error("Analysis request failed: %s", e)
        raise TransportError(str(e) or type(e).__name__) from e

    logger.info(
        "Analysis complete: %s (%s confidence)",
        result.estimated_range, result.confidence_level,
    )
    return result


def _discard_late_result(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug("Discarding late analysis failure: %s", exc)
    else:
        logger.debug("Discarding late analysis result")
