"""Memo of "is this interpreter a Poetry environment of that project?".

Answering the question runs Poetry, so verdicts are kept for the lifetime
of the cache. There is no expiry; call :meth:`EnvironmentCache.clear` when
environments are created or removed.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Callable, Dict, Optional, Union

from poetrykeeper.models.environment import EnvironmentCacheEntry
from poetrykeeper.utils.logger import get_logger

logger = get_logger("env_cache")

__all__ = ["EnvironmentCache", "cache_key"]

PathLike = Union[str, Path]


def cache_key(project: PathLike, interpreter: PathLike) -> str:
    return f"{Path(project)}:{Path(interpreter)}"


class EnvironmentCache:
    """Thread-safe map of ``(project, interpreter)`` to a boolean verdict."""

    def __init__(self) -> None:
        self._entries: Dict[str, EnvironmentCacheEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(
        self,
        project: Optional[PathLike],
        interpreter: Optional[PathLike],
    ) -> Optional[bool]:
        if project is None or interpreter is None:
            return None
        with self._lock:
            entry = self._entries.get(cache_key(project, interpreter))
        return entry.value if entry is not None else None

    def put(
        self,
        project: Optional[PathLike],
        interpreter: Optional[PathLike],
        value: bool,
    ) -> bool:
        """Store *value*; nothing is stored when either path is unknown."""
        if project is None or interpreter is None:
            return value
        key = cache_key(project, interpreter)
        with self._lock:
            self._entries[key] = EnvironmentCacheEntry(cache_key=key, value=value)
        return value

    def get_or_compute(
        self,
        project: Optional[PathLike],
        interpreter: Optional[PathLike],
        compute: Callable[[], bool],
    ) -> bool:
        """Return the cached verdict, computing and storing it on a miss.

        *compute* runs outside the lock; two threads missing at once both
        compute and the later result is kept.
        """
        cached = self.get(project, interpreter)
        if cached is not None:
            return cached
        value = compute()
        logger.debug("Environment verdict for %s / %s: %s", project, interpreter, value)
        return self.put(project, interpreter, value)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
