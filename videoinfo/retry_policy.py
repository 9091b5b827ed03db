"""
Decides whether a failed primary fetch is worth one more attempt.

Network trouble is retried; content-level refusals (private, removed,
age-gated) are not, and neither is anything we do not recognize.
"""
from typing import Optional

from .errors import (
    InitializationError,
    ParseError,
    PermanentContentError,
    TransientUpstreamError,
)

TRANSIENT_MARKERS = (
    "fetch failed",
    "ECONNRESET",
    "ETIMEDOUT",
    "network",
    "timed out",
    "timeout",
    "Connection reset",
    "Connection aborted",
)

PERMANENT_MARKERS = (
    "unavailable",
    "age-restricted",
    "Sign in",
    "Private",
    "No video content found",
)


def is_retryable(error: Optional[BaseException]) -> bool:
    """
    Classify an error as transient (True) or not worth retrying (False).

    Our own typed errors are classified by type. Foreign exceptions are
    classified by message: transient markers are checked first, then
    permanent ones; unrecognized messages are not retried.
    """
    if error is None:
        return False

    if isinstance(error, (TransientUpstreamError, ParseError, TimeoutError, ConnectionError)):
        return True
    if isinstance(error, (PermanentContentError, InitializationError)):
        return False

    message = str(error) or type(error).__name__

    if any(marker in message for marker in TRANSIENT_MARKERS):
        return True
    if any(marker in message for marker in PERMANENT_MARKERS):
        return False
    return False
