from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional


def _get_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_csv(name: str, default_csv: str = "") -> List[str]:
    raw = os.getenv(name, default_csv)
    # keep order: the first language is tesseract's primary one
    return [p.strip() for p in raw.split(",") if p.strip()]


def _get_path(*names: str) -> Optional[str]:
    for name in names:
        raw = (os.getenv(name) or "").strip()
        if raw:
            return raw
    return None


@dataclass(frozen=True)
class Settings:
    # Engine location
    tesseract_cmd: Optional[str]
    tessdata_prefix: Optional[str]

    # Client defaults
    languages: List[str]
    trim: bool
    disable_output: bool

    @staticmethod
    def from_env() -> "Settings":
        languages = _get_csv("TESSCLIENT_LANGUAGES", "eng") or ["eng"]
        return Settings(
            tesseract_cmd=_get_path("TESSERACT_PATH", "TESSERACT_CMD"),
            tessdata_prefix=_get_path("TESSDATA_PREFIX"),
            languages=languages,
            trim=_get_bool("TESSCLIENT_TRIM", True),
            disable_output=_get_bool("TESSCLIENT_DISABLE_OUTPUT", False),
        )
