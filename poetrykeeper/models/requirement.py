"""
Requirement data model for poetrykeeper.

This module defines a declared dependency constraint as it appears in a
``pyproject.toml``, a ``poetry.lock``, or an ``Installing`` line of
``poetry install --dry-run``, together with the rules for matching it
against concrete packages.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

from packaging.specifiers import SpecifierSet

from poetrykeeper.models.package import Package, normalize_name
from poetrykeeper.utils.version_utils import (
    normalize_version_constraint,
    satisfies,
    to_pep440_specifier,
)


@dataclass(frozen=True)
class Requirement:
    """
    A named dependency constraint.

    Attributes:
        name: Distribution name.
        version_constraint: Poetry or PEP 440 constraint (``^1.2``,
            ``==1.2.3``, ``>=1.0,<2``), or a non-version reference such as a
            VCS revision. ``None`` accepts any version.
        extras: Requested extras.
        markers: Environment marker expression (PEP 508).
    """

    name: str
    version_constraint: Optional[str] = None
    extras: FrozenSet[str] = field(default_factory=frozenset)
    markers: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("Requirement name must not be empty")
        if not isinstance(self.extras, frozenset):
            object.__setattr__(self, "extras", frozenset(self.extras))

    @classmethod
    def from_name_and_version(cls, name: str, version: Optional[str]) -> "Requirement":
        """Build a requirement pinned the way Poetry output and lock files are read.

        A version beginning with a digit becomes ``==<version>``; anything
        else is kept verbatim.
        """
        constraint = normalize_version_constraint(version) if version else None
        return cls(name=name, version_constraint=constraint)

    @property
    def key(self) -> str:
        """PEP 503 normalized name."""
        return normalize_name(self.name)

    @property
    def specifier(self) -> Optional[SpecifierSet]:
        """The constraint as a PEP 440 specifier set.

        ``None`` when there is no constraint, or when it is not expressible
        as a single specifier set (``||`` alternatives, VCS references).
        """
        if self.version_constraint is None:
            return None
        translated = to_pep440_specifier(self.version_constraint)
        if translated is None:
            return None
        return SpecifierSet(translated)

    def matches(self, package: Package) -> bool:
        """Check whether *package* satisfies this requirement."""
        if package.key != self.key:
            return False
        if self.version_constraint is None:
            return True
        if package.version is None:
            return False

        verdict = satisfies(package.version, self.version_constraint)
        if verdict is not None:
            return verdict
        # Non-version references compare textually (``==9f1c2d`` vs ``9f1c2d``)
        return self.version_constraint.lstrip("=").strip() == package.version

    def match(self, packages: Iterable[Package]) -> Optional[Package]:
        """Return the first package satisfying this requirement, if any."""
        for package in packages:
            if self.matches(package):
                return package
        return None

    def to_string(self) -> str:
        """Render as ``name[extras]constraint; markers``."""
        text = self.name
        if self.extras:
            text += f"[{','.join(sorted(self.extras))}]"
        if self.version_constraint:
            text += self.version_constraint
        if self.markers:
            text += f"; {self.markers}"
        return text

    def to_json(self) -> Dict[str, Any]:
        """Serialize to a JSON-compatible dictionary."""
        entry: Dict[str, Any] = {"name": self.name}
        if self.version_constraint is not None:
            entry["constraint"] = self.version_constraint
        if self.extras:
            entry["extras"] = sorted(self.extras)
        if self.markers is not None:
            entry["markers"] = self.markers
        return entry

    def __str__(self) -> str:
        """Return the rendered requirement string."""
        return self.to_string()


def requirements_to_string(requirements: List[Requirement]) -> str:
    """Join requirements for a one-line diagnostic (``a==1.0, b``)."""
    return ", ".join(str(requirement) for requirement in requirements)
