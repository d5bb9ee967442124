from __future__ import annotations

import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import numpy as np
import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from tessclient import cache
from tessclient.constants import PageSegMode
from tessclient.engine import Engine
from tessclient.errors import EngineError, InitializationError, ReleaseError


SAMPLE_TSV = "\n".join(
    [
        "level\tpage_num\tblock_num\tpar_num\tline_num\tword_num\tleft\ttop\twidth\theight\tconf\ttext",
        "1\t1\t0\t0\t0\t0\t0\t0\t640\t480\t-1\t",
        "2\t1\t1\t0\t0\t0\t36\t92\t580\t68\t-1\t",
        "3\t1\t1\t1\t0\t0\t36\t92\t580\t68\t-1\t",
        "4\t1\t1\t1\t1\t0\t36\t92\t580\t30\t-1\t",
        "5\t1\t1\t1\t1\t1\t36\t92\t200\t30\t96.5\tHello,",
        "5\t1\t1\t1\t1\t2\t250\t92\t366\t30\t91.5\tWorld!",
        "4\t1\t1\t1\t2\t0\t36\t130\t300\t30\t-1\t",
        "5\t1\t1\t1\t2\t1\t36\t130\t300\t30\t88\tBye",
        "2\t1\t2\t0\t0\t0\t40\t300\t100\t20\t-1\t",
        "3\t1\t2\t1\t0\t0\t40\t300\t100\t20\t-1\t",
        "4\t1\t2\t1\t1\t0\t40\t300\t100\t20\t-1\t",
        "5\t1\t2\t1\t1\t1\t40\t300\t100\t20\t70\tend",
    ]
)


class FakeEngine(Engine):
    """Records every call the client makes; stands in for tesseract."""

    def __init__(self, factory: "FakeEngineFactory") -> None:
        self.factory = factory
        self.calls: List[Tuple] = []
        self.variables: Dict[str, str] = {}
        self.psm: Optional[PageSegMode] = None
        self.image: Optional[Tuple[str, object]] = None
        self.initialized = False
        self.end_count = 0

    def init(self, languages, tessdata_prefix=None, config_file=None) -> None:
        self.calls.append(("init", list(languages), tessdata_prefix, config_file))
        if self.factory.fail_init:
            raise InitializationError("language data not installed: " + "+".join(languages))
        self.initialized = True

    def set_variable(self, name, value) -> None:
        if not self.initialized:
            raise EngineError("not initialized")
        self.calls.append(("set_variable", name, value))
        self.variables[name] = value

    def set_page_seg_mode(self, mode) -> None:
        self.calls.append(("set_page_seg_mode", mode))
        self.psm = mode

    def set_image_file(self, path) -> None:
        self.image = ("file", path)

    def set_image_bytes(self, data) -> None:
        self.image = ("bytes", data)

    def set_image_array(self, array) -> None:
        self.image = ("array", array)

    def recognize(self) -> None:
        self.calls.append(("recognize",))

    def get_utf8_text(self) -> str:
        return self.factory.text

    def get_hocr_text(self) -> str:
        return self.factory.hocr

    def get_tsv_text(self) -> str:
        return self.factory.tsv

    def end(self) -> None:
        self.end_count += 1
        if self.factory.fail_end:
            raise ReleaseError("end failed")


class FakeEngineFactory:
    def __init__(self) -> None:
        self.created: List[FakeEngine] = []
        self.text = "  Hello, World!\n\n"
        self.hocr = "<div class='ocr_page'><span class='ocrx_word'>Hello</span></div>"
        self.tsv = SAMPLE_TSV
        self.fail_init = False
        self.fail_end = False

    def __call__(self) -> FakeEngine:
        engine = FakeEngine(self)
        self.created.append(engine)
        return engine

    @property
    def last(self) -> FakeEngine:
        return self.created[-1]


@pytest.fixture
def engines() -> FakeEngineFactory:
    return FakeEngineFactory()


@pytest.fixture
def client(engines):
    from tessclient import Client

    c = Client(engine_factory=engines)
    yield c
    engines.fail_end = False
    c.close()


@pytest.fixture(autouse=True)
def _clean_cache():
    cache.clear_persistent_cache()
    yield
    cache.clear_persistent_cache()


@pytest.fixture
def gray_image() -> np.ndarray:
    return np.full((32, 64), 255, dtype=np.uint8)
