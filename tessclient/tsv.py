from __future__ import annotations

import csv
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, List, Tuple

import numpy as np

from .constants import (
    PageIteratorLevel,
    TSV_LEVEL_BLOCK,
    TSV_LEVEL_LINE,
    TSV_LEVEL_PARA,
    TSV_LEVEL_WORD,
)
from .errors import EngineError, ValidationError
from .schema import BoundingBox, Rect

TSV_COLUMNS = (
    "level",
    "page_num",
    "block_num",
    "par_num",
    "line_num",
    "word_num",
    "left",
    "top",
    "width",
    "height",
    "conf",
    "text",
)

_LEVEL_FOR_ITERATOR = {
    PageIteratorLevel.BLOCK: TSV_LEVEL_BLOCK,
    PageIteratorLevel.PARA: TSV_LEVEL_PARA,
    PageIteratorLevel.TEXTLINE: TSV_LEVEL_LINE,
    PageIteratorLevel.WORD: TSV_LEVEL_WORD,
}


@dataclass(frozen=True)
class TsvRow:
    level: int
    page_num: int
    block_num: int
    par_num: int
    line_num: int
    word_num: int
    left: int
    top: int
    width: int
    height: int
    conf: float
    text: str

    def key(self, depth: int) -> Tuple[int, ...]:
        """Structural path of this row truncated to ``depth`` (2=block .. 5=word)."""
        path = (self.page_num, self.block_num, self.par_num, self.line_num, self.word_num)
        return path[:depth]

    def to_bounding_box(self, word: str, confidence: float) -> BoundingBox:
        return BoundingBox(
            box=Rect.from_ltwh(self.left, self.top, self.width, self.height),
            word=word,
            confidence=confidence,
            block_num=self.block_num,
            par_num=self.par_num,
            line_num=self.line_num,
            word_num=self.word_num,
        )


def _parse_row(cells: List[str], lineno: int) -> TsvRow:
    if len(cells) < 11:
        raise EngineError(f"TSV line {lineno}: expected 12 columns, got {len(cells)}")
    # A word row may end with an empty text column that the writer leaves off.
    text = "\t".join(cells[11:]) if len(cells) > 11 else ""
    try:
        ints = [int(c) for c in cells[:10]]
        conf = float(cells[10])
    except ValueError as e:
        raise EngineError(f"TSV line {lineno}: {e}") from e
    return TsvRow(*ints, conf=conf, text=text)


def read_rows(tsv_text: str) -> List[TsvRow]:
    """Parse tesseract TSV output, with or without its header line."""
    rows: List[TsvRow] = []
    reader = csv.reader(tsv_text.splitlines(), delimiter="\t", quoting=csv.QUOTE_NONE)
    for lineno, cells in enumerate(reader, start=1):
        if not cells or not any(c.strip() for c in cells):
            continue
        if cells[0] == TSV_COLUMNS[0]:
            continue
        rows.append(_parse_row(cells, lineno))
    return rows


def parse_word_boxes(tsv_text: str) -> List[BoundingBox]:
    """Word-level bounding boxes from TSV output; rows at any other level are skipped."""
    return [
        row.to_bounding_box(row.text, row.conf)
        for row in read_rows(tsv_text)
        if row.level == TSV_LEVEL_WORD
    ]


def _mean_conf(words: List[TsvRow], fallback: float) -> float:
    confs = [w.conf for w in words if w.conf >= 0]
    if not confs:
        return fallback
    return float(np.mean(confs))


def _join_words(words: List[TsvRow]) -> str:
    lines: Dict[Tuple[int, ...], List[str]] = OrderedDict()
    for w in words:
        if not w.text.strip():
            continue
        lines.setdefault(w.key(TSV_LEVEL_LINE), []).append(w.text)
    return "\n".join(" ".join(toks) for toks in lines.values())


def group_boxes(rows: List[TsvRow], level: PageIteratorLevel) -> List[BoundingBox]:
    """
    Bounding boxes for every element at ``level``, in reading order.

    Block, paragraph and line rows carry geometry but no text in TSV output; their
    text is rebuilt from the word rows beneath them (words joined with spaces, lines
    with newlines) and their confidence is the mean of those words' confidences.
    """
    try:
        tsv_level = _LEVEL_FOR_ITERATOR[PageIteratorLevel(level)]
    except (KeyError, ValueError):
        raise ValidationError(f"unsupported iterator level: {level!r}")

    if tsv_level == TSV_LEVEL_WORD:
        return [r.to_bounding_box(r.text, r.conf) for r in rows if r.level == TSV_LEVEL_WORD]

    words_by_key: Dict[Tuple[int, ...], List[TsvRow]] = {}
    for r in rows:
        if r.level == TSV_LEVEL_WORD:
            words_by_key.setdefault(r.key(tsv_level), []).append(r)

    out: List[BoundingBox] = []
    for r in rows:
        if r.level != tsv_level:
            continue
        words = words_by_key.get(r.key(tsv_level), [])
        out.append(r.to_bounding_box(_join_words(words), _mean_conf(words, r.conf)))
    return out
