"""``poetry.lock`` parsing.

Two on-disk formats are understood:

- the native TOML format, an array of ``[[package]]`` tables;
- the legacy JSON format with ``_meta``, ``default`` and ``develop`` sections.

Parsing returns a :class:`~poetrykeeper.models.lockfile.LockParseResult` so
callers can distinguish a missing file, a file without packages and a
malformed file. :func:`parse_lock` keeps the collapsing contract of earlier
releases and returns ``None`` for all three.
"""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import tomli as tomllib

from poetrykeeper.models.lockfile import (
    LockFile,
    LockFormat,
    LockParseResult,
    LockSource,
    LockStatus,
)
from poetrykeeper.models.package import Package
from poetrykeeper.models.requirement import Requirement
from poetrykeeper.utils.filesystem import modification_stamp, safe_read_bytes
from poetrykeeper.utils.logger import get_logger

logger = get_logger("lock_parser")

__all__ = [
    "LockFileCache",
    "detect_format",
    "lock_requirements",
    "parse_lock",
    "parse_lock_result",
    "read_lock_file",
]

PathLike = Union[str, Path]

_MALFORMED_ERRORS = (
    tomllib.TOMLDecodeError,
    json.JSONDecodeError,
    UnicodeDecodeError,
    TypeError,
    ValueError,
    KeyError,
    AttributeError,
)


def detect_format(content: bytes) -> LockFormat:
    """Guess the lock format: legacy JSON when the first non-blank byte is ``{``."""
    stripped = content.lstrip()
    if stripped.startswith(b"{"):
        return LockFormat.LEGACY_JSON
    return LockFormat.TOML


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise TypeError(f"Expected a string, got {type(value).__name__}")
    return value


def _legacy_section(section: Any) -> Dict[str, Package]:
    """Build packages from a legacy ``default``/``develop`` mapping."""
    if section is None:
        return {}
    packages: Dict[str, Package] = {}
    for name, details in section.items():
        packages[name] = Package(
            name=name,
            version=_optional_str(details.get("version")),
            editable=bool(details.get("editable", False)),
            markers=_optional_str(details.get("markers")),
            hashes=tuple(details.get("hashes") or ()),
        )
    return packages


def _parse_legacy(content: bytes) -> LockParseResult:
    data = json.loads(content.decode("utf-8"))

    meta = data.get("_meta") or {}
    sources = tuple(
        LockSource(url=_optional_str(source.get("url")), name=_optional_str(source.get("name")))
        for source in meta.get("sources") or ()
    )
    packages = _legacy_section(data.get("default"))
    dev_packages = _legacy_section(data.get("develop"))

    if not packages and not dev_packages:
        return LockParseResult(LockStatus.NO_PACKAGES)

    return LockParseResult(
        LockStatus.OK,
        lock_file=LockFile(
            packages=packages,
            dev_packages=dev_packages,
            sources=sources,
            format=LockFormat.LEGACY_JSON,
        ),
    )


def _parse_toml(content: bytes) -> LockParseResult:
    data = tomllib.loads(content.decode("utf-8"))

    entries = data.get("package")
    if not entries:
        return LockParseResult(LockStatus.NO_PACKAGES)
    if not isinstance(entries, list):
        raise TypeError("'package' must be an array of tables")

    packages: Dict[str, Package] = {}
    for entry in entries:
        name = entry["name"]
        if not isinstance(name, str):
            raise TypeError("Package name must be a string")
        packages[name] = Package(
            name=name,
            version=_optional_str(entry.get("version")),
            source=_toml_source(entry.get("source")),
            markers=_toml_markers(entry.get("markers")),
            hashes=tuple(entry.get("hashes") or ()),
        )

    return LockParseResult(
        LockStatus.OK,
        lock_file=LockFile(packages=packages, format=LockFormat.TOML),
    )


def _toml_markers(markers: Any) -> Optional[str]:
    """Markers are a string in most lock files; tables and arrays are not kept."""
    return markers if isinstance(markers, str) else None


def _toml_source(source: Any) -> Optional[str]:
    """Flatten ``[package.source]`` to its URL."""
    if source is None:
        return None
    return _optional_str(source.get("url"))


def parse_lock_result(
    content: bytes,
    format_hint: LockFormat = LockFormat.AUTO,
) -> LockParseResult:
    """Parse lock file bytes into a tagged result.

    Args:
        content: Raw lock file contents.
        format_hint: Force a format, or ``AUTO`` to detect it.

    Returns:
        ``OK`` with the lock file, ``NO_PACKAGES`` when no package section
        exists, or ``MALFORMED`` with an error description.
    """
    lock_format = detect_format(content) if format_hint is LockFormat.AUTO else format_hint

    try:
        if lock_format is LockFormat.LEGACY_JSON:
            return _parse_legacy(content)
        return _parse_toml(content)
    except _MALFORMED_ERRORS as exc:
        logger.debug("Malformed %s lock file: %s", lock_format.value, exc)
        return LockParseResult(LockStatus.MALFORMED, error=str(exc))


def parse_lock(
    content: bytes,
    format_hint: LockFormat = LockFormat.AUTO,
) -> Optional[LockFile]:
    """Parse lock file bytes, returning None for anything but a usable lock file."""
    return parse_lock_result(content, format_hint).lock_file


def read_lock_file(
    path: PathLike,
    format_hint: LockFormat = LockFormat.AUTO,
) -> LockParseResult:
    """Read and parse a lock file from disk; ``MISSING`` when it does not exist."""
    lock_path = Path(path)
    if not lock_path.is_file():
        return LockParseResult(LockStatus.MISSING)
    return parse_lock_result(safe_read_bytes(lock_path), format_hint)


def lock_requirements(
    lock_file: Optional[LockFile],
    include_dev: bool = False,
) -> List[Requirement]:
    """Pinned requirements derived from a lock file; empty for None."""
    if lock_file is None:
        return []
    return lock_file.requirements(include_dev=include_dev)


class LockFileCache:
    """Parsed lock files keyed by path, valid while the modification stamp holds."""

    def __init__(self) -> None:
        self._entries: Dict[str, Tuple[int, LockParseResult]] = {}
        self._lock = threading.Lock()

    def get(
        self,
        path: PathLike,
        format_hint: LockFormat = LockFormat.AUTO,
    ) -> LockParseResult:
        lock_path = Path(path)
        key = str(lock_path.resolve())
        stamp = modification_stamp(lock_path)

        if stamp is None:
            self.invalidate(key)
            return LockParseResult(LockStatus.MISSING)

        with self._lock:
            cached = self._entries.get(key)
        if cached is not None and cached[0] == stamp:
            return cached[1]

        result = read_lock_file(lock_path, format_hint)
        with self._lock:
            self._entries[key] = (stamp, result)
        return result

    def snapshot(self) -> Mapping[str, int]:
        """Cached paths and the stamps they were parsed at."""
        with self._lock:
            return {key: stamp for key, (stamp, _) in self._entries.items()}

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
