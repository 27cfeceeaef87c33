"""
Outdated package data model for poetrykeeper.

One :class:`OutdatedEntry` is produced per row of ``poetry show --outdated``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from poetrykeeper.utils.version_utils import get_update_type


@dataclass(frozen=True)
class OutdatedEntry:
    """
    A package with a newer release available.

    Attributes:
        name: Package name as printed by Poetry.
        current_version: Installed version.
        latest_version: Newest version known to the index.
    """

    name: str
    current_version: str
    latest_version: str

    @property
    def update_type(self) -> str:
        """Classification of the available update (``major``, ``minor``, ...)."""
        return get_update_type(self.current_version, self.latest_version)

    def to_json(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "current": self.current_version,
            "latest": self.latest_version,
            "update_type": self.update_type,
        }

    def __str__(self) -> str:
        return f"{self.name} {self.current_version} -> {self.latest_version}"
