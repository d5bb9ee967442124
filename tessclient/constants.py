from __future__ import annotations

from enum import Enum, IntEnum


class PageSegMode(IntEnum):
    """Tesseract page segmentation modes (``--psm``)."""

    OSD_ONLY = 0
    AUTO_OSD = 1
    AUTO_ONLY = 2
    AUTO = 3
    SINGLE_COLUMN = 4
    SINGLE_BLOCK_VERT_TEXT = 5
    SINGLE_BLOCK = 6
    SINGLE_LINE = 7
    SINGLE_WORD = 8
    CIRCLE_WORD = 9
    SINGLE_CHAR = 10
    SPARSE_TEXT = 11
    SPARSE_TEXT_OSD = 12
    RAW_LINE = 13


class PageIteratorLevel(IntEnum):
    """Granularity of result iteration, numbered like tesseract's RIL_* values."""

    BLOCK = 0
    PARA = 1
    TEXTLINE = 2
    WORD = 3
    SYMBOL = 4


# Row levels used in tesseract TSV output (1 is the page row): 2=block, 3=para, 4=line, 5=word
TSV_LEVEL_BLOCK = 2
TSV_LEVEL_PARA = 3
TSV_LEVEL_LINE = 4
TSV_LEVEL_WORD = 5


class SettableVariable(str, Enum):
    """Engine variables that can be set through ``Client.set_variable``."""

    TESSEDIT_CHAR_WHITELIST = "tessedit_char_whitelist"
    TESSEDIT_CHAR_BLACKLIST = "tessedit_char_blacklist"
    TESSEDIT_CHAR_UNBLACKLIST = "tessedit_char_unblacklist"
    DEBUG_FILE = "debug_file"
    PRESERVE_INTERWORD_SPACES = "preserve_interword_spaces"
    LOAD_SYSTEM_DAWG = "load_system_dawg"
    LOAD_FREQ_DAWG = "load_freq_dawg"
    LOAD_PUNC_DAWG = "load_punc_dawg"
    LOAD_NUMBER_DAWG = "load_number_dawg"
    LOAD_UNAMBIG_DAWG = "load_unambig_dawg"
    LOAD_BIGRAM_DAWG = "load_bigram_dawg"
    USER_WORDS_SUFFIX = "user_words_suffix"
    USER_PATTERNS_SUFFIX = "user_patterns_suffix"
    CLASSIFY_BLN_NUMERIC_MODE = "classify_bln_numeric_mode"
    TEXTORD_HEAVY_NR = "textord_heavy_nr"
    EDGES_MAX_CHILDREN = "edges_max_children"
    HOCR_FONT_INFO = "hocr_font_info"
    HOCR_CHAR_BOXES = "hocr_char_boxes"
    TESSEDIT_WRITE_IMAGES = "tessedit_write_images"
    USER_DEFINED_DPI = "user_defined_dpi"
    MIN_CHARACTERS_TO_TRY = "min_characters_to_try"
    LSTM_USE_MATRIX = "lstm_use_matrix"

    @classmethod
    def parse(cls, key: "SettableVariable | str") -> "SettableVariable":
        if isinstance(key, cls):
            return key
        return cls(key)
