from __future__ import annotations

import logging
import os
import shlex
from abc import ABC, abstractmethod
from io import BytesIO
from typing import Dict, List, Optional, Union

import numpy as np
import pytesseract
from PIL import Image, UnidentifiedImageError

from . import tsv
from .cache import get_cache
from .constants import PageIteratorLevel, PageSegMode
from .errors import EngineError, InitializationError, ReleaseError
from .schema import BoundingBox

logger = logging.getLogger("tessclient")

ImageInput = Union[str, Image.Image]


class Engine(ABC):
    """
    One engine instance. The Client owns exactly one at a time and calls
    ``end()`` on it exactly once.
    """

    @abstractmethod
    def init(self, languages: List[str], tessdata_prefix: Optional[str] = None, config_file: Optional[str] = None) -> None:
        ...

    @abstractmethod
    def set_variable(self, name: str, value: str) -> None:
        """Only valid after ``init``."""
        ...

    @abstractmethod
    def set_page_seg_mode(self, mode: PageSegMode) -> None:
        ...

    @abstractmethod
    def set_image_file(self, path: str) -> None:
        ...

    @abstractmethod
    def set_image_bytes(self, data: bytes) -> None:
        ...

    @abstractmethod
    def set_image_array(self, array: np.ndarray) -> None:
        ...

    @abstractmethod
    def recognize(self) -> None:
        ...

    @abstractmethod
    def get_utf8_text(self) -> str:
        ...

    @abstractmethod
    def get_hocr_text(self) -> str:
        ...

    @abstractmethod
    def get_tsv_text(self) -> str:
        ...

    def iterate(self, level: PageIteratorLevel) -> List[BoundingBox]:
        """Elements at ``level`` in reading order, built from the TSV output."""
        return tsv.group_boxes(tsv.read_rows(self.get_tsv_text()), level)

    @abstractmethod
    def end(self) -> None:
        ...


def _list_languages(tessdata_prefix: Optional[str]) -> List[str]:
    config = f"--tessdata-dir {shlex.quote(tessdata_prefix)}" if tessdata_prefix else ""
    return [lang for lang in pytesseract.get_languages(config=config) if lang]


def _load_version() -> str:
    return str(pytesseract.get_tesseract_version())


class PytesseractEngine(Engine):
    """
    Engine backed by the ``tesseract`` executable through pytesseract.

    Each instance keeps the configuration tesseract would hold after Init()/SetVariable()
    and turns it into command-line arguments. Outputs are produced lazily per image and
    kept until the image changes.
    """

    def __init__(self, tesseract_cmd: Optional[str] = None) -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self._languages: List[str] = []
        self._tessdata_prefix: Optional[str] = None
        self._config_file: Optional[str] = None
        self._variables: Dict[str, str] = {}
        self._psm: Optional[PageSegMode] = None
        self._image: Optional[ImageInput] = None
        self._results: Dict[str, str] = {}
        self._initialized = False
        self._ended = False

    # ------------------------------------------------------------------
    # configuration
    # ------------------------------------------------------------------
    def init(self, languages: List[str], tessdata_prefix: Optional[str] = None, config_file: Optional[str] = None) -> None:
        self._check_alive()
        if tessdata_prefix and not os.path.isdir(tessdata_prefix):
            raise InitializationError(f"tessdata prefix is not a directory: {tessdata_prefix}")
        if config_file and not os.path.isfile(config_file):
            raise InitializationError(f"config file not found: {config_file}")

        try:
            installed = get_cache().languages(tessdata_prefix, _list_languages)
        except pytesseract.TesseractNotFoundError as e:
            raise InitializationError(str(e)) from e
        except pytesseract.TesseractError as e:
            raise InitializationError(f"could not list installed languages: {e.message}") from e

        missing = [lang for lang in languages if lang not in installed]
        if missing:
            raise InitializationError(
                f"language data not installed: {', '.join(missing)} "
                f"(tessdata={tessdata_prefix or 'default'})"
            )

        self._languages = list(languages)
        self._tessdata_prefix = tessdata_prefix
        self._config_file = config_file
        self._variables = {}
        self._initialized = True

    def set_variable(self, name: str, value: str) -> None:
        self._check_initialized()
        self._variables[name] = value
        self._results.clear()

    def set_page_seg_mode(self, mode: PageSegMode) -> None:
        self._check_alive()
        self._psm = PageSegMode(mode)
        self._results.clear()

    def set_image_file(self, path: str) -> None:
        self._check_alive()
        if not os.path.isfile(path):
            raise EngineError(f"image file not found: {path}")
        self._set_image(path)

    def set_image_bytes(self, data: bytes) -> None:
        self._check_alive()
        try:
            im = Image.open(BytesIO(data))
            im.load()
        except (UnidentifiedImageError, OSError) as e:
            raise EngineError(f"could not decode image bytes: {e}") from e
        self._set_image(im)

    def set_image_array(self, array: np.ndarray) -> None:
        self._check_alive()
        # Tesseract expects uint8
        a = array.astype(np.uint8, copy=False)
        if a.ndim == 3 and a.shape[2] == 1:
            a = a[:, :, 0]
        try:
            im = Image.fromarray(a)
        except TypeError as e:
            raise EngineError(f"unsupported image array shape {array.shape}") from e
        self._set_image(im)

    def _set_image(self, image: ImageInput) -> None:
        self._image = image
        self._results.clear()

    # ------------------------------------------------------------------
    # recognition
    # ------------------------------------------------------------------
    def recognize(self) -> None:
        self._check_initialized()
        if self._image is None:
            raise EngineError("recognize called before an image was set")

    def get_utf8_text(self) -> str:
        return self._run("text", lambda img, lang, cfg: pytesseract.image_to_string(img, lang=lang, config=cfg))

    def get_hocr_text(self) -> str:
        def _hocr(img, lang, cfg) -> str:
            raw = pytesseract.image_to_pdf_or_hocr(img, lang=lang, config=cfg, extension="hocr")
            return raw.decode("utf-8")

        return self._run("hocr", _hocr)

    def get_tsv_text(self) -> str:
        return self._run("tsv", lambda img, lang, cfg: pytesseract.image_to_data(img, lang=lang, config=cfg))

    def _run(self, kind: str, call) -> str:
        self.recognize()
        if kind not in self._results:
            try:
                self._results[kind] = call(self._image, "+".join(self._languages), self.config_string())
            except pytesseract.TesseractNotFoundError as e:
                raise EngineError(str(e)) from e
            except pytesseract.TesseractError as e:
                raise EngineError(f"tesseract failed (status {e.status}): {e.message}") from e
        return self._results[kind]

    def config_string(self) -> str:
        """
        Command-line arguments equivalent to the current engine state.
        Options first; the config file goes last because tesseract treats every
        argument after the first config file as another config file.
        """
        parts: List[str] = []
        if self._tessdata_prefix:
            parts += ["--tessdata-dir", shlex.quote(self._tessdata_prefix)]
        if self._psm is not None:
            parts += ["--psm", str(int(self._psm))]
        for name, value in self._variables.items():
            parts += ["-c", shlex.quote(f"{name}={value}")]
        if self._config_file:
            parts.append(shlex.quote(self._config_file))
        return " ".join(parts)

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------
    def end(self) -> None:
        if self._ended:
            raise ReleaseError("engine instance already released")
        self._ended = True
        self._initialized = False
        self._image = None
        self._results.clear()

    def _check_alive(self) -> None:
        if self._ended:
            raise EngineError("engine instance has been released")

    def _check_initialized(self) -> None:
        self._check_alive()
        if not self._initialized:
            raise EngineError("engine instance is not initialized")


def get_available_languages(tessdata_prefix: Optional[str] = None) -> List[str]:
    """Language identifiers installed under ``tessdata_prefix`` (tesseract's default when None)."""
    try:
        return get_cache().languages(tessdata_prefix, _list_languages)
    except pytesseract.TesseractNotFoundError as e:
        raise EngineError(str(e)) from e
    except pytesseract.TesseractError as e:
        raise EngineError(f"could not list installed languages: {e.message}") from e


def version() -> str:
    """Version string of the installed tesseract engine."""
    try:
        return get_cache().version(_load_version)
    except pytesseract.TesseractNotFoundError as e:
        raise EngineError(str(e)) from e
