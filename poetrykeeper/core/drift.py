"""Drift detection between declared requirements and installed packages.

A requirement is satisfied when it matches an installed package or a
package discovered from ``*.egg-info`` / ``*.dist-info`` metadata directly
inside a project source root (editable and in-tree installs). Requirements
whose names are ignored are never reported.

Typical usage::

    from poetrykeeper.core.drift import DriftDetector, IgnoreListPolicy

    detector = DriftDetector(IgnoreListPolicy(["setuptools"]))
    report = detector.detect(requirements, installed, source_roots=[project])
    if report.has_drift:
        print(report.message)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from poetrykeeper.models.package import Package, normalize_name
from poetrykeeper.models.requirement import Requirement, requirements_to_string
from poetrykeeper.utils.filesystem import find_metadata_dirs, iter_existing_dirs
from poetrykeeper.utils.logger import get_logger

logger = get_logger("drift")

__all__ = [
    "DriftDetector",
    "DriftPolicy",
    "DriftReport",
    "IgnoreListPolicy",
    "collect_local_packages",
    "find_unsatisfied",
    "format_unsatisfied_message",
]

PathLike = Union[str, Path]

SEVERITY_WARNING = "warning"
SEVERITY_ERROR = "error"


def _is_satisfied(
    requirement: Requirement,
    installed: Sequence[Package],
    local: Sequence[Package],
) -> bool:
    return requirement.match(installed) is not None or requirement.match(local) is not None


def find_unsatisfied(
    requirements: Iterable[Requirement],
    installed_packages: Sequence[Package],
    locally_discovered_packages: Sequence[Package] = (),
    ignored_names: Iterable[str] = (),
) -> List[Requirement]:
    """Return requirements matched by neither package list, in input order.

    Args:
        requirements: Declared requirements.
        installed_packages: Packages reported by the environment.
        locally_discovered_packages: Packages found in project source roots.
        ignored_names: Names never reported, compared PEP 503 insensitively.
    """
    ignored = {normalize_name(name) for name in ignored_names}
    return [
        requirement
        for requirement in requirements
        if requirement.key not in ignored
        and not _is_satisfied(requirement, installed_packages, locally_discovered_packages)
    ]


def collect_local_packages(source_roots: Iterable[PathLike]) -> List[Package]:
    """Discover packages from metadata directories directly inside *source_roots*.

    ``attrs-19.3.0.dist-info`` yields ``attrs (19.3.0)``. The stem is split
    on ``-`` at most twice; entries without a version part are skipped.
    """
    packages: List[Package] = []
    for root in iter_existing_dirs(source_roots):
        for metadata in find_metadata_dirs(root):
            stem = metadata.name.rsplit(".", 1)[0]
            parts = stem.split("-", 2)
            if len(parts) < 2 or not parts[0] or not parts[1]:
                logger.debug("Ignoring metadata without a version: %s", metadata)
                continue
            packages.append(Package(name=parts[0], version=parts[1], source=str(metadata)))
    return packages


def format_unsatisfied_message(unsatisfied: Sequence[Requirement]) -> str:
    """Render ``Package requirement(s) a, b are/is not satisfied``."""
    plural = len(unsatisfied) > 1
    return "Package requirement{} {} {} not satisfied".format(
        "s" if plural else "",
        requirements_to_string(list(unsatisfied)),
        "are" if plural else "is",
    )


class DriftPolicy:
    """Decides which requirements are checked and how drift is graded.

    The base policy checks everything and reports drift as a warning.
    """

    def is_ignored(self, requirement: Requirement) -> bool:
        return False

    def severity(self, unsatisfied: Sequence[Requirement]) -> Optional[str]:
        """Severity for a non-empty drift list, None when there is none."""
        return SEVERITY_WARNING if unsatisfied else None


class IgnoreListPolicy(DriftPolicy):
    """Skip requirements whose names are on a user-maintained ignore list."""

    def __init__(self, names: Iterable[str] = (), severity: str = SEVERITY_WARNING) -> None:
        self.names = frozenset(normalize_name(name) for name in names)
        self._severity = severity

    def is_ignored(self, requirement: Requirement) -> bool:
        return requirement.key in self.names

    def severity(self, unsatisfied: Sequence[Requirement]) -> Optional[str]:
        return self._severity if unsatisfied else None


@dataclass(frozen=True)
class DriftReport:
    """Outcome of a drift check."""

    unsatisfied: List[Requirement] = field(default_factory=list)
    checked: int = 0
    severity: Optional[str] = None

    @property
    def has_drift(self) -> bool:
        return bool(self.unsatisfied)

    @property
    def message(self) -> Optional[str]:
        if not self.unsatisfied:
            return None
        return format_unsatisfied_message(self.unsatisfied)

    def to_json(self) -> Dict[str, Any]:
        return {
            "checked": self.checked,
            "severity": self.severity,
            "message": self.message,
            "unsatisfied": [requirement.to_json() for requirement in self.unsatisfied],
        }


class DriftDetector:
    """Runs :func:`find_unsatisfied` under a :class:`DriftPolicy`."""

    def __init__(self, policy: Optional[DriftPolicy] = None) -> None:
        self.policy = policy or DriftPolicy()

    def detect(
        self,
        requirements: Iterable[Requirement],
        installed_packages: Sequence[Package],
        *,
        local_packages: Sequence[Package] = (),
        source_roots: Iterable[PathLike] = (),
    ) -> DriftReport:
        """Check *requirements* and build a report.

        Packages found under *source_roots* are added to *local_packages*.
        """
        considered = [r for r in requirements if not self.policy.is_ignored(r)]
        local = [*local_packages, *collect_local_packages(source_roots)]

        unsatisfied = find_unsatisfied(considered, installed_packages, local)
        logger.debug(
            "Drift check: %d requirement(s), %d unsatisfied",
            len(considered),
            len(unsatisfied),
        )
        return DriftReport(
            unsatisfied=unsatisfied,
            checked=len(considered),
            severity=self.policy.severity(unsatisfied),
        )

    @staticmethod
    def format_unsatisfied_message(unsatisfied: Sequence[Requirement]) -> str:
        return format_unsatisfied_message(unsatisfied)
