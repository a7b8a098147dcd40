"""Debounced share card recomposition.

Each render request takes a sequence number. Renders run off the event loop
on their own surface, and a finished render only replaces the published
artifact if no newer request has already been published.
"""

from __future__ import annotations

import asyncio
import hashlib
import io
import logging

from PIL import Image

from .errors import CaptureError
from .share import ShareArtifact, ShareCardSpec, render_share_card

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE = 0.5


class ShareComposer:
    """Keeps one decoded source photo and the latest rendered share card."""

    def __init__(self, source: bytes, debounce: float = DEFAULT_DEBOUNCE) -> None:
        self._source_bytes = source
        self._source_id = hashlib.sha256(source).hexdigest()[:16]
        self._debounce = debounce
        self._image: Image.Image | None = None
        self._sequence = 0
        self._published = 0
        self._artifact: ShareArtifact | None = None
        self._pending: asyncio.Task | None = None
        self._inflight: set[asyncio.Task] = set()
        self._closed = False

    @property
    def source_id(self) -> str:
        return self._source_id

    @property
    def artifact(self) -> ShareArtifact | None:
        return self._artifact

    @property
    def image(self) -> Image.Image:
        """The decoded source photo, decoded on first use and then reused."""
        if self._image is None:
            try:
                img = Image.open(io.BytesIO(self._source_bytes))
                img.load()
            except OSError as e:
                raise CaptureError("Could not decode the photo for sharing.") from e
            self._image = img
            logger.debug("Decoded share source %s (%dx%d)", self._source_id, *img.size)
        return self._image

    async def render_now(self, spec: ShareCardSpec) -> ShareArtifact | None:
        """Render immediately, bypassing the debounce window."""
        self._cancel_pending()
        seq = self._next_sequence()
        return await self._render(seq, spec)

    def request(self, spec: ShareCardSpec) -> int:
        """Schedule a render once no further request arrives within the debounce window.

        Returns the sequence number assigned to this request.
        """
        if self._closed:
            raise RuntimeError("ShareComposer is closed")
        self._cancel_pending()
        seq = self._next_sequence()
        self._pending = asyncio.create_task(self._debounced(seq, spec))
        return seq

    async def wait_idle(self) -> ShareArtifact | None:
        """Wait for the pending request and any in-flight renders to finish."""
        while self._pending is not None or self._inflight:
            tasks = set(self._inflight)
            if self._pending is not None:
                tasks.add(self._pending)
            await asyncio.gather(*tasks, return_exceptions=True)
            if self._pending is not None and self._pending.done():
                self._pending = None
        return self._artifact

    async def close(self) -> None:
        self._closed = True
        self._cancel_pending()
        if self._inflight:
            await asyncio.gather(*self._inflight, return_exceptions=True)
        self._image = None

    def _next_sequence(self) -> int:
        self._sequence += 1
        return self._sequence

    def _cancel_pending(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    async def _debounced(self, seq: int, spec: ShareCardSpec) -> None:
        await asyncio.sleep(self._debounce)
        task = asyncio.current_task()
        if self._pending is task:
            self._pending = None
        try:
            await self._render(seq, spec)
        except Exception:
            logger.exception("Share render #%d failed", seq)

    async def _render(self, seq: int, spec: ShareCardSpec) -> ShareArtifact | None:
        key = spec.key(self._source_id)
        current = self._artifact
        if current is not None and current.key == key:
            self._published = max(self._published, seq)
            return current

        image = self.image
        task = asyncio.current_task()
        if task is not None:
            self._inflight.add(task)
        try:
            png = await asyncio.to_thread(render_share_card, image, spec)
        finally:
            if task is not None:
                self._inflight.discard(task)

        if seq <= self._published:
            logger.debug("Dropping stale share render #%d (published #%d)", seq, self._published)
            return self._artifact

        self._published = seq
        self._artifact = ShareArtifact(
            png=png,
            key=key,
            generation=seq,
            display_value=spec.display_value,
            adjusted=spec.adjusted,
        )
        logger.debug("Published share render #%d", seq)
        return self._artifact
