from __future__ import annotations


class FtFilterError(Exception):
    """Base error for the ftfilter library."""


class InvalidTransformLengthError(FtFilterError, ValueError):
    """Raised when a transform input length is not a power of two."""


class InvalidWindowError(FtFilterError, ValueError):
    """Raised when a component's active window cannot be made valid."""


class DegenerateEnvelopeError(FtFilterError):
    """Raised when an envelope segment has zero length and cannot be bypassed."""


class MalformedImportError(FtFilterError):
    """Raised when an import payload is not a list of component records."""


class PlaybackError(FtFilterError):
    """Raised when no playback backend is available or playback fails."""


class SynthesisCancelledError(FtFilterError):
    """Raised inside a render that was superseded by a newer request."""
