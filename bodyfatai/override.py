"""User override of the displayed body fat value."""

from __future__ import annotations

import enum
import logging
from typing import TYPE_CHECKING

from .errors import InvalidTransition

if TYPE_CHECKING:
    from .vision import AnalysisResult

logger = logging.getLogger(__name__)


class OverrideState(enum.Enum):
    AI = "ai"
    EDITING = "editing"
    OVERRIDDEN = "overridden"


class DisplayValue:
    """The value shown on the result card and the share image.

    Starts as the model's estimate. The user may replace it through
    ``begin_edit`` / ``commit``; ``reset`` or a new analysis restores the
    estimate.
    """

    def __init__(self, estimate: str = "") -> None:
        self._estimate = estimate
        self._value = estimate
        self._state = OverrideState.AI
        self._prior = OverrideState.AI
        self.draft = ""

    @property
    def value(self) -> str:
        return self._value

    @property
    def estimate(self) -> str:
        return self._estimate

    @property
    def state(self) -> OverrideState:
        return self._state

    @property
    def manually_adjusted(self) -> bool:
        return self._value != self._estimate

    def reset_to(self, result: AnalysisResult) -> None:
        """Adopt a new analysis; any override or edit in progress is dropped."""
        self._estimate = result.estimated_range
        self._value = result.estimated_range
        self._state = OverrideState.AI
        self._prior = OverrideState.AI
        self.draft = ""

    def begin_edit(self) -> None:
        if self._state is OverrideState.EDITING:
            raise InvalidTransition("Already editing")
        self._prior = self._state
        self._state = OverrideState.EDITING
        self.draft = self._value

    def commit(self, text: str | None = None) -> bool:
        """Finish editing with *text* (or the current draft).

        Returns False and leaves the value untouched when the text is blank.
        """
        if self._state is not OverrideState.EDITING:
            raise InvalidTransition("commit() called while not editing")

        submitted = (self.draft if text is None else text).strip()
        if not submitted:
            logger.debug("Rejected empty override")
            self._state = self._prior
            self.draft = ""
            return False

        self._value = submitted
        self._state = (
            OverrideState.OVERRIDDEN if self.manually_adjusted else OverrideState.AI
        )
        self.draft = ""
        logger.info("Display value set to %r (adjusted=%s)", submitted, self.manually_adjusted)
        return True

    def cancel(self) -> None:
        if self._state is not OverrideState.EDITING:
            raise InvalidTransition("cancel() called while not editing")
        self._state = self._prior
        self.draft = ""

    def reset(self) -> None:
        """Revert to the model's estimate."""
        self._value = self._estimate
        self._state = OverrideState.AI
        self._prior = OverrideState.AI
        self.draft = ""
