"""
Environment data models for poetrykeeper.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class PoetryEnvironment:
    """One virtual environment listed by ``poetry env list --full-path``.

    Attributes:
        path: Environment root directory.
        activated: Whether Poetry marks it as the active environment.
    """

    path: Path
    activated: bool = False


@dataclass(frozen=True)
class EnvironmentCacheEntry:
    """Memoized verdict on whether an interpreter belongs to a Poetry project.

    Attributes:
        cache_key: Key derived from the project and interpreter paths.
        value: Whether the pair was verified as a Poetry environment.
    """

    cache_key: str
    value: bool
