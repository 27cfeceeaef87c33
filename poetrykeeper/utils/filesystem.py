"""
Filesystem utilities for poetrykeeper.

This module provides safe helpers for reading Poetry project files,
computing modification stamps used as cache keys, and discovering installed
distribution metadata directories. Filesystem errors are normalized to
``FileOperationError``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from poetrykeeper.utils.logger import get_logger
from poetrykeeper.exceptions import FileOperationError
from poetrykeeper.constants import MAX_FILE_SIZE, METADATA_EXTENSIONS


logger = get_logger("filesystem")

PathLike = Union[str, Path]


def _validated_file(path: Path) -> Path:
    """Validate and resolve an existing file path."""
    if not path.exists():
        raise FileOperationError(
            f"File not found: {path}",
            file_path=str(path),
            operation="read",
        )
    if not path.is_file():
        raise FileOperationError(
            f"Not a file: {path}",
            file_path=str(path),
            operation="read",
        )
    return path.resolve()


def safe_read_bytes(
    file_path: PathLike,
    *,
    max_size: Optional[int] = MAX_FILE_SIZE,
) -> bytes:
    """Read a file as bytes with an optional size limit.

    Args:
        file_path: Path to the file.
        max_size: Maximum allowed file size in bytes (None disables limit).

    Returns:
        Raw file contents.

    Raises:
        FileOperationError: The file is missing, too large, or unreadable.
    """
    path = _validated_file(Path(file_path))
    size = path.stat().st_size

    if max_size is not None and size > max_size:
        raise FileOperationError(
            f"File too large: {size} bytes (max {max_size})",
            file_path=str(path),
            operation="read",
        )

    try:
        return path.read_bytes()
    except OSError as exc:
        raise FileOperationError(
            f"Failed to read file: {exc}",
            file_path=str(path),
            operation="read",
            original_error=exc,
        ) from exc


def modification_stamp(file_path: PathLike) -> Optional[int]:
    """Return the file's modification stamp in nanoseconds, or None if absent."""
    try:
        return Path(file_path).stat().st_mtime_ns
    except OSError:
        return None


def find_metadata_dirs(
    directory: PathLike,
    *,
    extensions: Sequence[str] = METADATA_EXTENSIONS,
) -> List[Path]:
    """Find ``*.egg-info`` / ``*.dist-info`` entries directly inside *directory*.

    Non-recursive: metadata lives at the top of a source or site root.
    A missing or unreadable directory yields an empty list.
    """
    root = Path(directory)
    if not root.is_dir():
        return []

    suffixes = tuple(f".{extension}" for extension in extensions)
    try:
        matches = [child for child in root.iterdir() if child.name.endswith(suffixes)]
    except OSError as exc:
        logger.debug("Cannot scan %s for metadata: %s", root, exc)
        return []

    return sorted(matches)


def iter_existing_dirs(paths: Iterable[PathLike]) -> List[Path]:
    """Return the given paths that exist as directories, de-duplicated in order."""
    seen = set()
    result: List[Path] = []
    for raw in paths:
        path = Path(raw)
        if path in seen or not path.is_dir():
            continue
        seen.add(path)
        result.append(path)
    return result
