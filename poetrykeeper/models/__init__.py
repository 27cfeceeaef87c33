"""
Unified data model exports for poetrykeeper.

This module re-exports all core data models to provide a stable and
convenient public API. Users can import models directly from
``poetrykeeper.models`` instead of individual submodules.

Example:
    >>> from poetrykeeper.models import Package, Requirement, LockFile
"""

from __future__ import annotations

from poetrykeeper.models.package import Package, normalize_name
from poetrykeeper.models.requirement import Requirement, requirements_to_string
from poetrykeeper.models.outdated import OutdatedEntry
from poetrykeeper.models.environment import EnvironmentCacheEntry, PoetryEnvironment
from poetrykeeper.models.lockfile import (
    LockFile,
    LockFormat,
    LockParseResult,
    LockSource,
    LockStatus,
)

__all__ = [
    "Package",
    "Requirement",
    "OutdatedEntry",
    "PoetryEnvironment",
    "EnvironmentCacheEntry",
    "LockFile",
    "LockFormat",
    "LockParseResult",
    "LockSource",
    "LockStatus",
    "normalize_name",
    "requirements_to_string",
]
