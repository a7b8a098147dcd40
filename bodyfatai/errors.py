"""Exception types and user-facing error messages."""

from __future__ import annotations

GENERIC_FAILURE = "Failed to analyze image. Please try again."
NETWORK_FAILURE = (
    "Analysis failed. The image may be too large or your network is unstable. "
    "Please try again with a smaller photo or a better connection."
)
INVALID_RESPONSE = "Received an invalid response from the AI. Please try again."

# Lower-case substrings that mark a transport error as payload/network related.
_NETWORK_HINTS = ("500", "xhr", "rpc failed", "network", "payload", "timed out", "deadline")


class BodyFatError(Exception):
    """Base class for all package errors."""


class ConfigurationError(BodyFatError, ValueError):
    """Required settings such as an API key are missing or invalid."""


class CaptureError(BodyFatError):
    """An image could not be read, captured, or encoded."""


class AnalysisError(BodyFatError):
    """The inference request did not produce a usable result."""


class AnalysisTimeout(AnalysisError):
    """The inference request did not settle before the deadline."""


class TransportError(AnalysisError):
    """The model service or the connection to it reported an error."""


class ResponseParseError(AnalysisError):
    """The model answered, but not with a valid analysis object."""


class InvalidTransition(BodyFatError):
    """An override action was attempted from a state that does not allow it."""


def user_message(exc: BaseException) -> str:
    """Return the message shown to the user for *exc*."""
    if isinstance(exc, (CaptureError, ConfigurationError)):
        return str(exc)
    if isinstance(exc, AnalysisTimeout):
        return NETWORK_FAILURE
    if isinstance(exc, ResponseParseError):
        return INVALID_RESPONSE
    if isinstance(exc, TransportError):
        text = str(exc).lower()
        if any(hint in text for hint in _NETWORK_HINTS):
            return NETWORK_FAILURE
    return GENERIC_FAILURE
