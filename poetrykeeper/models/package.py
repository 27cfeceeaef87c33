"""
Package data model for poetrykeeper.

This module defines the representation of a concrete, installed or
resolvable distribution as reported by Poetry output, a lock file, or
on-disk metadata directories.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from packaging.utils import canonicalize_name
from packaging.version import InvalidVersion, Version, parse


def normalize_name(name: str) -> str:
    """
    Normalize a package name according to PEP 503.

    Args:
        name: Original package name.

    Returns:
        Lower-case name with runs of ``-``, ``_`` and ``.`` collapsed to ``-``.
    """
    return canonicalize_name(name)


@dataclass(frozen=True)
class Package:
    """
    A concrete distribution with a name and (usually) a version.

    Instances are immutable; a refresh builds new ones. Identity for
    matching is :attr:`key`, the PEP 503 normalized name.

    Attributes:
        name: Distribution name as written by the source.
        version: Version string, or ``None`` when unknown.
        source: Where the package was found (URL, ``poetry.lock``, a path).
        editable: Whether the lock file marks the entry editable.
        markers: Environment marker expression attached by the lock file.
        hashes: Artifact hashes recorded by the lock file.
    """

    name: str
    version: Optional[str] = None
    source: Optional[str] = None
    editable: bool = False
    markers: Optional[str] = None
    hashes: Tuple[str, ...] = field(default=(), repr=False)

    def __post_init__(self) -> None:
        """Validate the name and version invariants."""
        if not self.name or not self.name.strip():
            raise ValueError("Package name must not be empty")
        if self.version is not None and not self.version.strip():
            raise ValueError(f"Package {self.name!r} has an empty version")
        # Lists coming from TOML/JSON are frozen so the instance stays hashable
        if not isinstance(self.hashes, tuple):
            object.__setattr__(self, "hashes", tuple(self.hashes))

    @property
    def key(self) -> str:
        """PEP 503 normalized name."""
        return normalize_name(self.name)

    @property
    def parsed_version(self) -> Optional[Version]:
        """Parsed version, or None when absent or not PEP 440 compliant."""
        if self.version is None:
            return None
        try:
            parsed = parse(self.version)
        except InvalidVersion:
            return None
        return parsed if isinstance(parsed, Version) else None

    def to_json(self) -> Dict[str, Any]:
        """Serialize to a JSON-compatible dictionary, omitting empty fields."""
        entry: Dict[str, Any] = {"name": self.name}
        if self.version is not None:
            entry["version"] = self.version
        if self.source is not None:
            entry["source"] = self.source
        if self.editable:
            entry["editable"] = True
        if self.markers is not None:
            entry["markers"] = self.markers
        return entry

    def __str__(self) -> str:
        """Return ``name (version)`` like Poetry prints it."""
        if self.version:
            return f"{self.name} ({self.version})"
        return self.name
