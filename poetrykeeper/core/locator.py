"""Poetry executable discovery.

Resolution order:

1. A configured path, if it points to an existing executable file.
2. ``poetry`` on ``PATH`` (``poetry.exe`` then ``poetry.bat`` on Windows).
3. The per-user installer location ``~/.poetry/bin/<name>``.

Lookup never raises; absence is reported as ``None`` and turned into
:class:`~poetrykeeper.exceptions.ExecutableNotFoundError` by the runner.
"""

from __future__ import annotations

import os
import sys
import shutil
from pathlib import Path
from typing import Optional, Sequence, Union

from poetrykeeper.constants import (
    POETRY_EXECUTABLE,
    POETRY_USER_BIN,
    POETRY_WINDOWS_EXECUTABLES,
)
from poetrykeeper.utils.logger import get_logger

logger = get_logger("locator")

__all__ = ["locate_poetry", "executable_names", "is_executable_file"]


def executable_names() -> Sequence[str]:
    """Platform-appropriate executable names, in lookup order."""
    if sys.platform == "win32":
        return POETRY_WINDOWS_EXECUTABLES
    return (POETRY_EXECUTABLE,)


def is_executable_file(path: Path) -> bool:
    """Return True if *path* is an existing file the current user may execute."""
    try:
        return path.is_file() and os.access(path, os.X_OK)
    except OSError:
        return False


def locate_poetry(
    configured_path: Optional[Union[str, Path]] = None,
    *,
    search_path: Optional[str] = None,
    home: Optional[Path] = None,
) -> Optional[Path]:
    """Find the Poetry executable.

    Args:
        configured_path: User-configured executable path. Ignored when it
            does not point to an executable file.
        search_path: ``PATH``-style string to search instead of the process
            ``PATH``.
        home: Home directory used for the per-user install fallback.

    Returns:
        Path to the executable, or ``None`` if nothing was found.
    """
    if configured_path:
        candidate = Path(configured_path).expanduser()
        if is_executable_file(candidate):
            logger.debug("Using configured Poetry executable: %s", candidate)
            return candidate
        logger.debug("Configured Poetry path is not executable: %s", candidate)

    names = executable_names()

    for name in names:
        found = shutil.which(name, path=search_path)
        if found:
            logger.debug("Found Poetry on PATH: %s", found)
            return Path(found)

    try:
        base = home if home is not None else Path.home()
    except (KeyError, RuntimeError):
        # No resolvable home directory
        base = None

    if base is not None:
        for name in names:
            candidate = base.joinpath(*POETRY_USER_BIN, name)
            if is_executable_file(candidate):
                logger.debug("Found Poetry in user install directory: %s", candidate)
                return candidate

    logger.debug("Poetry executable not found")
    return None
