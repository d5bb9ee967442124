from .cache import clear_persistent_cache
from .client import Client, ClientState
from .config import Settings
from .constants import PageIteratorLevel, PageSegMode, SettableVariable
from .engine import Engine, PytesseractEngine, get_available_languages, version
from .errors import (
    EngineError,
    InitializationError,
    PreconditionError,
    ReleaseError,
    TessClientError,
    ValidationError,
)
from .schema import BoundingBox, Rect

__all__ = [
    "BoundingBox",
    "Client",
    "ClientState",
    "Engine",
    "EngineError",
    "InitializationError",
    "PageIteratorLevel",
    "PageSegMode",
    "PreconditionError",
    "PytesseractEngine",
    "Rect",
    "ReleaseError",
    "Settings",
    "SettableVariable",
    "TessClientError",
    "ValidationError",
    "clear_persistent_cache",
    "get_available_languages",
    "version",
]
