from dataclasses import dataclass


@dataclass(frozen=True)
class Rect:
    x0: int  # left
    y0: int  # top
    x1: int  # right
    y1: int  # bottom

    @classmethod
    def from_ltwh(cls, left: int, top: int, width: int, height: int) -> "Rect":
        return cls(left, top, left + width, top + height)

    @property
    def width(self) -> int:
        return self.x1 - self.x0

    @property
    def height(self) -> int:
        return self.y1 - self.y0


@dataclass(frozen=True)
class BoundingBox:
    """Position, confidence and text of one recognized element."""

    box: Rect
    word: str
    confidence: float  # tesseract scale, 0..100
    block_num: int
    par_num: int
    line_num: int
    word_num: int
