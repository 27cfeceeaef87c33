"""
Lock file data model for poetrykeeper.

A :class:`LockFile` is a read-only snapshot of ``poetry.lock``. Parsing
returns a :class:`LockParseResult` so that callers can tell a missing file,
a file without package data, and a malformed file apart.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from poetrykeeper.constants import POETRY_DEFAULT_SOURCE_URL
from poetrykeeper.models.package import Package
from poetrykeeper.models.requirement import Requirement


class LockFormat(enum.Enum):
    """On-disk format of a lock file."""

    AUTO = "auto"
    TOML = "toml"
    LEGACY_JSON = "legacy-json"


class LockStatus(enum.Enum):
    """Outcome of reading a lock file."""

    OK = "ok"
    NO_PACKAGES = "no-packages"
    MALFORMED = "malformed"
    MISSING = "missing"


@dataclass(frozen=True)
class LockSource:
    """A package index declared in the legacy ``_meta.sources`` list."""

    url: Optional[str] = None
    name: Optional[str] = None


@dataclass(frozen=True)
class LockFile:
    """
    Parsed lock file contents.

    Attributes:
        packages: Locked packages keyed by name as written in the file.
        dev_packages: Development packages (legacy ``develop`` section only).
        sources: Index sources (legacy ``_meta.sources`` only).
        format: Format the data was read from.
    """

    packages: Mapping[str, Package]
    dev_packages: Mapping[str, Package] = field(default_factory=dict)
    sources: Tuple[LockSource, ...] = ()
    format: LockFormat = LockFormat.TOML

    def __post_init__(self) -> None:
        object.__setattr__(self, "packages", MappingProxyType(dict(self.packages)))
        object.__setattr__(
            self, "dev_packages", MappingProxyType(dict(self.dev_packages))
        )
        object.__setattr__(self, "sources", tuple(self.sources))

    def __len__(self) -> int:
        return len(self.packages)

    def get(self, name: str) -> Optional[Package]:
        """Look up a locked package by name, PEP 503 insensitive."""
        probe = Package(name=name)
        for package in self.packages.values():
            if package.key == probe.key:
                return package
        return None

    def requirements(self, *, include_dev: bool = False) -> List[Requirement]:
        """Derive pinned requirements from the locked packages.

        The legacy format skips editable entries and entries carrying
        environment markers; markers are not evaluated.
        """
        sections = [self.packages]
        if include_dev:
            sections.append(self.dev_packages)

        result: List[Requirement] = []
        for section in sections:
            for name, package in section.items():
                if self.format is LockFormat.LEGACY_JSON and (
                    package.editable or package.markers is not None
                ):
                    continue
                result.append(Requirement.from_name_and_version(name, package.version))
        return result

    def source_urls(self) -> List[str]:
        """URLs of the configured package sources, defaulting to PyPI."""
        urls = [source.url for source in self.sources if source.url]
        return urls or [POETRY_DEFAULT_SOURCE_URL]

    def to_json(self) -> Dict[str, Any]:
        """Serialize to a JSON-compatible dictionary."""
        entry: Dict[str, Any] = {
            "format": self.format.value,
            "packages": [package.to_json() for package in self.packages.values()],
        }
        if self.dev_packages:
            entry["dev_packages"] = [
                package.to_json() for package in self.dev_packages.values()
            ]
        if self.sources:
            entry["sources"] = self.source_urls()
        return entry


@dataclass(frozen=True)
class LockParseResult:
    """Tagged result of reading a lock file.

    Attributes:
        status: What happened.
        lock_file: The parsed lock file, set only when ``status`` is ``OK``.
        error: Description of the failure for ``MALFORMED``.
    """

    status: LockStatus
    lock_file: Optional[LockFile] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is LockStatus.OK
