"""
Error taxonomy for upstream access.

Every failure the pipeline raises on purpose is an UpstreamError subclass,
tagged with the ErrorKind that ends up on partial results.
"""
from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Classification of an upstream failure."""
    INITIALIZATION = "initialization"
    TRANSIENT = "transient"
    PERMANENT = "permanent"
    PARSE = "parse"
    UNKNOWN = "unknown"


class UpstreamError(Exception):
    """Base class for failures talking to the upstream platform."""
    kind = ErrorKind.UNKNOWN


class InitializationError(UpstreamError):
    """The shared upstream client could not be constructed."""
    kind = ErrorKind.INITIALIZATION


class TransientUpstreamError(UpstreamError):
    """Network-level failure: timeout, reset, 429/5xx."""
    kind = ErrorKind.TRANSIENT


class PermanentContentError(UpstreamError):
    """The requested content is unavailable, private or restricted."""
    kind = ErrorKind.PERMANENT


class ParseError(UpstreamError):
    """An upstream response could not be decoded."""
    kind = ErrorKind.PARSE


def error_kind(error: Optional[BaseException]) -> Optional[ErrorKind]:
    """Map an exception to its ErrorKind (None for no error)."""
    if error is None:
        return None
    if isinstance(error, UpstreamError):
        return error.kind
    return ErrorKind.UNKNOWN


def error_message(error: Optional[BaseException]) -> str:
    """Human readable message for an exception, falling back to its type name."""
    if error is None:
        return ""
    return str(error) or type(error).__name__
