"""
Process-wide dictionary cache.

Listing the language data installed under a tessdata directory means asking the
engine to scan that directory, so the result is kept here and shared by every
Client, surviving their initialize()/close() cycles. The engine version string is
kept alongside it.

The cache is global mutable state. It is filled on demand by any Client's
initialization and by the module-level helpers, and is only emptied by
``clear_persistent_cache()``. That call affects all Clients in the process and
must not run while any Client is in the middle of an operation.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Tuple

logger = logging.getLogger("tessclient")


class DictionaryCache:
    def __init__(self) -> None:
        self._languages: Dict[Optional[str], Tuple[str, ...]] = {}
        self._version: Optional[str] = None

    def languages(self, tessdata_prefix: Optional[str], loader: Callable[[Optional[str]], List[str]]) -> List[str]:
        """Installed languages under ``tessdata_prefix``; calls ``loader`` on a miss."""
        if tessdata_prefix not in self._languages:
            langs = tuple(loader(tessdata_prefix))
            logger.debug("Cached %d installed languages for tessdata=%r", len(langs), tessdata_prefix)
            self._languages[tessdata_prefix] = langs
        return list(self._languages[tessdata_prefix])

    def version(self, loader: Callable[[], str]) -> str:
        if self._version is None:
            self._version = loader()
        return self._version

    def clear(self) -> None:
        self._languages.clear()
        self._version = None


_cache = DictionaryCache()


def get_cache() -> DictionaryCache:
    return _cache


def clear_persistent_cache() -> None:
    """
    Drop every cached language listing and the cached engine version.

    Affects all Clients process-wide. Do not call while any Client is running an
    operation; the next initialization will query the engine again.
    """
    _cache.clear()
    logger.debug("Persistent dictionary cache cleared")
