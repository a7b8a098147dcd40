"""Session context tying capture, inference, override and sharing together."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .composer import ShareComposer
from .db import ReminderStore, schedule_two_week_reminder
from .inference import run_inference
from .override import DisplayValue
from .share import ShareArtifact, ShareCardSpec
from .vision import AnalysisResult, VisionBackend, create_backend

if TYPE_CHECKING:
    from .capture import NormalizedImage
    from .config import BodyFatConfig
    from .db import PushRegistrar

logger = logging.getLogger(__name__)

DAY_MS = 24 * 60 * 60 * 1000


class AnalysisSession:
    """Holds the model client, the reminder store and the current result.

    Use as an async context manager, or call :meth:`open` and :meth:`close`
    explicitly. A ``reminders`` store passed in by the caller stays open on
    :meth:`close`; only the store built by :meth:`open` is closed.
    """

    def __init__(
        self,
        config: BodyFatConfig,
        backend: VisionBackend | None = None,
        reminders: ReminderStore | None = None,
        push: PushRegistrar | None = None,
    ) -> None:
        self._config = config
        self._backend = backend
        self._reminders = reminders
        self._owns_reminders = False
        self._push = push
        self._opened = False
        self._generation = 0
        self._result: AnalysisResult | None = None
        self._composer: ShareComposer | None = None
        self._branding = config.share.branding
        self.display = DisplayValue()

    async def __aenter__(self) -> AnalysisSession:
        self.open()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    def open(self) -> None:
        if self._opened:
            return
        if self._backend is None:
            self._backend = create_backend(self._config)
        if self._reminders is None and self._config.reminder.enabled:
            self._reminders = ReminderStore(self._config.reminder.db_path)
            self._owns_reminders = True
        self._opened = True
        logger.debug("Session opened (backend=%s)", type(self._backend).__name__)

    async def close(self) -> None:
        if self._composer is not None:
            await self._composer.close()
            self._composer = None
        if self._owns_reminders:
            self._reminders.close()
            self._reminders = None
            self._owns_reminders = False
        self._backend = None
        self._opened = False

    @property
    def result(self) -> AnalysisResult | None:
        return self._result

    @property
    def composer(self) -> ShareComposer | None:
        return self._composer

    @property
    def reminders(self) -> ReminderStore | None:
        return self._reminders

    def _require_open(self) -> VisionBackend:
        if not self._opened or self._backend is None:
            raise RuntimeError("AnalysisSession is not open")
        return self._backend

    async def analyze(self, image: NormalizedImage) -> AnalysisResult | None:
        """Analyze *image* and make the result current.

        The previous result, override and share card are dropped before the
        request is sent, so a failed attempt leaves nothing to show. Returns
        None if another analysis was started while this one was waiting; that
        result is discarded.
        """
        backend = self._require_open()
        self._generation += 1
        generation = self._generation

        self._result = None
        self.display = DisplayValue()
        composer, self._composer = self._composer, None
        if composer is not None:
            await composer.close()

        result = await run_inference(backend, image, timeout=self._config.vision.timeout)

        if generation != self._generation:
            logger.info("Discarding superseded analysis #%d", generation)
            return None

        self._result = result
        self.display.reset_to(result)

        if self._reminders is not None and not result.is_unavailable:
            self._reminders.clear()
            await schedule_two_week_reminder(
                self._reminders,
                push=self._push,
                duration_ms=self._config.reminder.interval_days * DAY_MS,
            )
        return result

    def reminder_due(self) -> bool:
        return self._reminders is not None and self._reminders.is_due()

    def card_spec(self) -> ShareCardSpec:
        if self._result is None:
            raise RuntimeError("No analysis result to share")
        return ShareCardSpec(
            display_value=self.display.value,
            adjusted=self.display.manually_adjusted,
            confidence_level=self._result.confidence_level,
            branding=self._branding,
            adjustable=self._config.share.adjustable,
        )

    async def open_share(self, source: bytes, branding: str | None = None) -> ShareArtifact | None:
        """Start sharing *source* and render the first card immediately."""
        self._require_open()
        if branding is not None:
            self._branding = branding
        spec = self.card_spec()
        if self._composer is not None:
            await self._composer.close()
        self._composer = ShareComposer(source, debounce=self._config.share.debounce)
        return await self._composer.render_now(spec)

    def update_branding(self, text: str) -> int:
        """Change the branding line; the card re-renders after the debounce window."""
        self._branding = text
        return self.refresh_share()

    def refresh_share(self) -> int:
        if self._composer is None:
            raise RuntimeError("Sharing has not been opened")
        return self._composer.request(self.card_spec())
