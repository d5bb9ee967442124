from __future__ import annotations


class TessClientError(RuntimeError):
    """Base class for every error raised by tessclient."""


class ValidationError(TessClientError, ValueError):
    """Raised when an argument is rejected before the engine is touched."""


class InitializationError(TessClientError):
    """Raised when the engine cannot be created or configured."""


class PreconditionError(TessClientError):
    """Raised when a terminal operation runs without the state it needs (e.g. no image)."""


class EngineError(TessClientError):
    """Raised when an engine call fails or returns output that cannot be parsed."""


class ReleaseError(TessClientError):
    """Raised when releasing an engine handle fails."""
