"""``pyproject.toml`` detection and reading for Poetry projects.

A manifest is a Poetry manifest when it parses as TOML and contains a
``[tool.poetry]`` table. Manifests are edited interactively and are often
transiently invalid, so every parse failure reads as "not a Poetry
manifest" instead of an error.

Typical usage::

    from poetrykeeper.core.manifest import ManifestCache, read_manifest_file

    cache = ManifestCache()
    stamp, is_poetry = cache.fingerprint(project / "pyproject.toml")

    manifest = read_manifest_file(project / "pyproject.toml")
    if manifest is not None:
        print(manifest.scripts)
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import tomli as tomllib

from poetrykeeper.exceptions import FileOperationError
from poetrykeeper.models.requirement import Requirement
from poetrykeeper.utils.filesystem import modification_stamp, safe_read_bytes
from poetrykeeper.utils.logger import get_logger

logger = get_logger("manifest")

__all__ = [
    "ManifestCache",
    "PoetryManifest",
    "is_poetry_manifest",
    "read_manifest",
    "read_manifest_file",
]

PathLike = Union[str, Path]

#: The interpreter constraint, not a package.
_PYTHON_DEPENDENCY = "python"


@dataclass(frozen=True)
class PoetryManifest:
    """
    The Poetry-relevant parts of a ``pyproject.toml``.

    Attributes:
        name: Project name.
        version: Project version.
        dependencies: Main dependencies, without the ``python`` entry.
        dev_dependencies: Legacy ``dev-dependencies`` plus every
            ``group.<name>.dependencies`` table.
        scripts: Console scripts, name → ``module:callable``.
        extras: Extra name → package names it enables.
    """

    name: Optional[str] = None
    version: Optional[str] = None
    dependencies: Tuple[Requirement, ...] = ()
    dev_dependencies: Tuple[Requirement, ...] = ()
    scripts: Mapping[str, str] = field(default_factory=dict)
    extras: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)


def _load_poetry_table(content: bytes) -> Optional[Dict[str, Any]]:
    """Return the ``tool.poetry`` table, or None for any parse or shape problem."""
    try:
        document = tomllib.loads(content.decode("utf-8"))
    except (tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
        logger.debug("Manifest is not valid TOML: %s", exc)
        return None

    tool = document.get("tool")
    if not isinstance(tool, dict):
        return None
    poetry = tool.get("poetry")
    return poetry if isinstance(poetry, dict) else None


def is_poetry_manifest(content: bytes) -> bool:
    """Return True when *content* is TOML with a ``[tool.poetry]`` table.

    Never raises: empty input, garbage and TOML without the table all
    return False.
    """
    return _load_poetry_table(content) is not None


def _dependency_to_requirement(name: str, spec: Any) -> Optional[Requirement]:
    """Convert one ``name = spec`` dependency entry.

    ``spec`` is a constraint string, a table (``version``, ``extras``,
    ``markers``, or a ``git``/``path``/``url`` source), or a list of such
    tables for multiple-constraint dependencies (the first one is used).
    """
    if isinstance(spec, list):
        spec = next((item for item in spec if isinstance(item, dict)), None)
        if spec is None:
            return None

    if isinstance(spec, str):
        return Requirement(name=name, version_constraint=spec.strip() or None)

    if isinstance(spec, dict):
        constraint = spec.get("version")
        if not isinstance(constraint, str):
            constraint = None
        extras = spec.get("extras") or []
        markers = spec.get("markers")
        return Requirement(
            name=name,
            version_constraint=constraint,
            extras=frozenset(str(extra) for extra in extras),
            markers=markers if isinstance(markers, str) else None,
        )

    return None


def _requirements_from_table(table: Any) -> List[Requirement]:
    if not isinstance(table, dict):
        return []
    result: List[Requirement] = []
    for name, spec in table.items():
        if name.lower() == _PYTHON_DEPENDENCY:
            continue
        try:
            requirement = _dependency_to_requirement(name, spec)
        except (TypeError, ValueError, AttributeError) as exc:
            logger.debug("Skipping malformed dependency %r: %s", name, exc)
            continue
        if requirement is not None:
            result.append(requirement)
    return result


def read_manifest(content: bytes) -> Optional[PoetryManifest]:
    """Read the Poetry sections of a ``pyproject.toml``.

    Returns:
        The parsed manifest, or None when *content* is not a Poetry manifest.
    """
    poetry = _load_poetry_table(content)
    if poetry is None:
        return None

    dev: List[Requirement] = _requirements_from_table(poetry.get("dev-dependencies"))
    groups = poetry.get("group")
    if isinstance(groups, dict):
        for group in groups.values():
            if isinstance(group, dict):
                dev.extend(_requirements_from_table(group.get("dependencies")))

    scripts = poetry.get("scripts")
    extras = poetry.get("extras")

    name = poetry.get("name")
    version = poetry.get("version")

    return PoetryManifest(
        name=name if isinstance(name, str) else None,
        version=version if isinstance(version, str) else None,
        dependencies=tuple(_requirements_from_table(poetry.get("dependencies"))),
        dev_dependencies=tuple(dev),
        scripts=(
            {str(k): str(v) for k, v in scripts.items() if isinstance(v, str)}
            if isinstance(scripts, dict)
            else {}
        ),
        extras=(
            {
                str(k): tuple(str(item) for item in v)
                for k, v in extras.items()
                if isinstance(v, list)
            }
            if isinstance(extras, dict)
            else {}
        ),
    )


def read_manifest_file(path: PathLike) -> Optional[PoetryManifest]:
    """Read a ``pyproject.toml`` from disk; unreadable files read as None."""
    try:
        content = safe_read_bytes(path)
    except FileOperationError as exc:
        logger.debug("Cannot read manifest %s: %s", path, exc)
        return None
    return read_manifest(content)


class ManifestCache:
    """Thread-safe memo of "is this file a Poetry manifest?".

    Entries are keyed by a logical identity (by default the resolved path)
    and hold ``(modification_stamp, verdict)``. A lookup whose stamp no
    longer matches re-parses the file and replaces the entry.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, Tuple[int, bool]] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def fingerprint(
        self,
        path: PathLike,
        identity: Optional[str] = None,
    ) -> Tuple[Optional[int], bool]:
        """Return ``(modification_stamp, is_poetry_manifest)`` for *path*.

        Args:
            path: Manifest location.
            identity: Cache key; defaults to the resolved path. Use a
                project-qualified key when several projects share a file.

        Returns:
            ``(None, False)`` when the file does not exist.
        """
        manifest = Path(path)
        key = identity or str(manifest.resolve())

        stamp = modification_stamp(manifest)
        if stamp is None:
            self.invalidate(key)
            return None, False

        with self._lock:
            cached = self._entries.get(key)
        if cached is not None and cached[0] == stamp:
            return cached

        try:
            verdict = is_poetry_manifest(safe_read_bytes(manifest))
        except FileOperationError as exc:
            logger.debug("Cannot read manifest %s: %s", manifest, exc)
            verdict = False

        with self._lock:
            self._entries[key] = (stamp, verdict)
        logger.debug("Manifest %s: poetry=%s (stamp=%s)", manifest, verdict, stamp)
        return stamp, verdict

    def is_poetry(self, path: PathLike, identity: Optional[str] = None) -> bool:
        """Shortcut for the verdict half of :meth:`fingerprint`."""
        return self.fingerprint(path, identity)[1]

    def invalidate(self, identity: str) -> None:
        with self._lock:
            self._entries.pop(identity, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
