from __future__ import annotations

import functools
import logging
import os
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple, Union

import numpy as np

from . import engine as engine_mod
from . import tsv
from .config import Settings
from .constants import PageIteratorLevel, PageSegMode, SettableVariable
from .engine import Engine, PytesseractEngine
from .errors import (
    InitializationError,
    PreconditionError,
    ReleaseError,
    ValidationError,
)
from .schema import BoundingBox

logger = logging.getLogger("tessclient")

PathLike = Union[str, "os.PathLike[str]"]


def _optional_path(value: Optional[PathLike], what: str) -> Optional[str]:
    if value is None:
        return None
    try:
        path = os.fspath(value)
    except TypeError:
        raise ValidationError(f"{what} must be a str or path-like, got {type(value).__name__}")
    if not isinstance(path, str):
        raise ValidationError(f"{what} must be a str or path-like, got {type(path).__name__}")
    return path


class ClientState(Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"


class Client:
    """
    Argument builder and lifecycle owner for one tesseract engine instance.

    Setters either flag the client for a fresh engine (languages, config file,
    tessdata prefix) or go straight to the live engine when there is one
    (variables, page segmentation mode). The engine itself is created lazily by
    the first terminal operation. Call ``close()`` (or use the client as a context
    manager) exactly once when done.
    """

    def __init__(self, engine_factory: Optional[Callable[[], Engine]] = None) -> None:
        self.trim = True
        self._languages: List[str] = ["eng"]
        self._variables: Dict[SettableVariable, str] = {}
        self._config_file_path: Optional[str] = None
        self._tessdata_prefix: Optional[str] = None
        self._page_seg_mode: Optional[PageSegMode] = None
        self._image: Optional[Tuple[str, object]] = None

        self._engine_factory = engine_factory or PytesseractEngine
        self._engine: Optional[Engine] = None
        self._state = ClientState.UNINITIALIZED
        self._should_init = True
        self.init_count = 0

    @classmethod
    def from_settings(cls, settings: Settings) -> "Client":
        client = cls(engine_factory=functools.partial(PytesseractEngine, tesseract_cmd=settings.tesseract_cmd))
        client.trim = settings.trim
        client.set_language(*settings.languages)
        if settings.tessdata_prefix:
            client.set_tessdata_prefix(settings.tessdata_prefix)
        if settings.disable_output:
            client.disable_output()
        return client

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __del__(self) -> None:
        # Partially constructed instances have no _engine attribute.
        if getattr(self, "_engine", None) is not None:
            try:
                self.close()
            except ReleaseError as e:
                logger.debug("Releasing engine of unclosed client failed: %s", e)

    # ------------------------------------------------------------------
    # read-only views
    # ------------------------------------------------------------------
    @property
    def languages(self) -> List[str]:
        return list(self._languages)

    @property
    def variables(self) -> Dict[SettableVariable, str]:
        return dict(self._variables)

    @property
    def config_file_path(self) -> Optional[str]:
        return self._config_file_path

    @property
    def tessdata_prefix(self) -> Optional[str]:
        return self._tessdata_prefix

    @property
    def page_seg_mode(self) -> Optional[PageSegMode]:
        return self._page_seg_mode

    @property
    def state(self) -> ClientState:
        return self._state

    @property
    def should_init(self) -> bool:
        return self._should_init

    # ------------------------------------------------------------------
    # image source
    # ------------------------------------------------------------------
    def set_image(self, image_path: PathLike) -> None:
        """Set the path of the image file to recognize."""
        try:
            path = os.fspath(image_path)
        except TypeError:
            raise ValidationError(f"image path must be a str or path-like, got {type(image_path).__name__}")
        if not isinstance(path, str) or not path.strip():
            raise ValidationError("image path cannot be empty")
        self._image = ("file", path)

    def set_image_from_bytes(self, data: bytes) -> None:
        """Set encoded image data (PNG, JPEG, TIFF, ...) to recognize."""
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise ValidationError(f"image data must be bytes, got {type(data).__name__}")
        if len(data) == 0:
            raise ValidationError("image data cannot be empty")
        self._image = ("bytes", bytes(data))

    def set_image_from_array(self, array: np.ndarray) -> None:
        """Set a decoded image: grayscale (H, W) or (H, W, 1), RGB (H, W, 3) or RGBA (H, W, 4) uint8 array."""
        if not isinstance(array, np.ndarray):
            raise ValidationError(f"image array must be a numpy.ndarray, got {type(array).__name__}")
        if array.ndim not in (2, 3) or array.size == 0:
            raise ValidationError(f"image array must be a non-empty 2D or 3D array, got shape {array.shape}")
        if array.ndim == 3 and array.shape[2] not in (1, 3, 4):
            raise ValidationError(f"image array must have 1, 3 or 4 channels, got shape {array.shape}")
        self._image = ("array", array)

    # ------------------------------------------------------------------
    # settings that need a fresh engine
    # ------------------------------------------------------------------
    def set_language(self, *langs: str) -> None:
        """Set languages to use, primary first. English by default."""
        if len(langs) == 0:
            raise ValidationError("languages cannot be empty")
        for lang in langs:
            if not isinstance(lang, str) or not lang.strip():
                raise ValidationError(f"invalid language identifier: {lang!r}")
        self._languages = [lang.strip() for lang in langs]
        self._flag_for_init()

    def set_config_file(self, config_path: Optional[PathLike]) -> None:
        """Set the tesseract config file to load at initialization; None removes it."""
        path = _optional_path(config_path, "config file path")
        if path is not None and not os.path.isfile(path):
            raise ValidationError(f"config file not found: {path}")
        self._config_file_path = path
        self._flag_for_init()

    def set_tessdata_prefix(self, prefix: Optional[PathLike]) -> None:
        """Set the directory holding the language models; None falls back to tesseract's default."""
        self._tessdata_prefix = _optional_path(prefix, "tessdata prefix")
        self._flag_for_init()

    def _flag_for_init(self) -> None:
        self._should_init = True

    # ------------------------------------------------------------------
    # settings the live engine accepts
    # ------------------------------------------------------------------
    def set_page_seg_mode(self, mode: Union[PageSegMode, int]) -> None:
        try:
            psm = PageSegMode(mode)
        except ValueError:
            raise ValidationError(f"page segmentation mode out of range: {mode!r}")
        self._page_seg_mode = psm
        if self._is_live():
            self._engine.set_page_seg_mode(psm)

    def set_variable(self, key: Union[SettableVariable, str], value: str) -> None:
        """
        Set an engine variable (tesseract's SetVariable).

        The engine only accepts variables after it has been initialized, so the
        value is kept here and replayed on every initialization; if an engine is
        already live it receives the value right away.
        """
        try:
            var = SettableVariable.parse(key)
        except ValueError:
            raise ValidationError(f"unsupported engine variable: {key!r}")
        if not isinstance(value, str):
            raise ValidationError(f"value for {var.value} must be a str, got {type(value).__name__}")
        self._variables[var] = value
        if self._is_live():
            self._engine.set_variable(var.value, value)

    def set_whitelist(self, whitelist: str) -> None:
        self.set_variable(SettableVariable.TESSEDIT_CHAR_WHITELIST, whitelist)

    def set_blacklist(self, blacklist: str) -> None:
        self.set_variable(SettableVariable.TESSEDIT_CHAR_BLACKLIST, blacklist)

    def disable_output(self) -> None:
        """Send tesseract's debug output to the null device."""
        self.set_variable(SettableVariable.DEBUG_FILE, os.devnull)

    def _is_live(self) -> bool:
        return self._engine is not None and self._state is ClientState.INITIALIZED and not self._should_init

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------
    def initialize(self) -> None:
        """Create and configure the engine unless a current one already exists."""
        if not self._should_init and self._engine is not None:
            return

        reinit = self._engine is not None
        self._release_engine()
        logger.debug(
            "Initializing engine (languages=%s, tessdata=%r, config=%r, reinit=%s)",
            "+".join(self._languages),
            self._tessdata_prefix,
            self._config_file_path,
            reinit,
        )

        engine = self._engine_factory()
        try:
            engine.init(self._languages, tessdata_prefix=self._tessdata_prefix, config_file=self._config_file_path)
            for var, value in self._variables.items():
                engine.set_variable(var.value, value)
            if self._page_seg_mode is not None:
                engine.set_page_seg_mode(self._page_seg_mode)
        except Exception as e:
            # The engine was constructed, so it is released on every failure path.
            try:
                engine.end()
            except ReleaseError as release_err:
                raise InitializationError(f"{e}; releasing the engine also failed: {release_err}") from e
            if isinstance(e, InitializationError):
                raise
            raise InitializationError(str(e)) from e

        self._engine = engine
        self._state = ClientState.INITIALIZED
        self._should_init = False
        self.init_count += 1

    def close(self) -> None:
        """Release the engine. Safe to call more than once."""
        if self._engine is not None:
            logger.debug("Releasing engine")
        self._release_engine()
        self._should_init = True

    def _release_engine(self) -> None:
        # Drop the reference before end() so a failing release is never retried.
        engine, self._engine = self._engine, None
        self._state = ClientState.UNINITIALIZED
        if engine is not None:
            engine.end()

    def _ensure_ready(self) -> Engine:
        if self._image is None:
            raise PreconditionError("no image set; call set_image, set_image_from_bytes or set_image_from_array first")
        self.initialize()

        kind, value = self._image
        if kind == "file":
            self._engine.set_image_file(value)
        elif kind == "bytes":
            self._engine.set_image_bytes(value)
        else:
            self._engine.set_image_array(value)
        self._engine.recognize()
        return self._engine

    # ------------------------------------------------------------------
    # terminal operations
    # ------------------------------------------------------------------
    def extract_text(self) -> str:
        """Run OCR and return the recognized text."""
        text = self._ensure_ready().get_utf8_text()
        return text.strip() if self.trim else text

    def extract_hocr(self) -> str:
        """Run OCR and return hOCR markup (https://en.wikipedia.org/wiki/HOCR)."""
        return self._ensure_ready().get_hocr_text()

    def extract_bounding_boxes(self, level: Union[PageIteratorLevel, int] = PageIteratorLevel.WORD) -> List[BoundingBox]:
        """Bounding boxes of every element at ``level``, in reading order."""
        try:
            ril = PageIteratorLevel(level)
        except ValueError:
            raise ValidationError(f"unknown iterator level: {level!r}")
        if ril is PageIteratorLevel.SYMBOL:
            raise ValidationError("symbol level boxes are not available from tesseract TSV output")
        return self._ensure_ready().iterate(ril)

    def extract_bounding_boxes_verbose(self) -> List[BoundingBox]:
        """Word-level boxes with block, paragraph, line and word numbers, parsed from TSV output."""
        return tsv.parse_word_boxes(self._ensure_ready().get_tsv_text())

    def version(self) -> str:
        return engine_mod.version()
