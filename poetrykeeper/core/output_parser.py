"""Parsers for Poetry's human-oriented command output.

Poetry offers no machine-readable mode for ``install --dry-run``,
``show --outdated`` or ``env list``, so these parsers depend on the column
layout of its renderer. The layouts below are covered by versioned
fixtures in the test-suite; a renderer change is a compatibility break.

``install --dry-run`` (split on single spaces, name = token 4,
version = token 5)::

    Poetry 1.0:   "  - Installing attrs (19.3.0)"
                  "  - Skipping six (1.15.0) Already installed"
    Poetry 1.2+:  "  • Installing attrs (22.1.0)"
                  "  • Installing six (1.16.0): Skipped for the following
                   reason: Already installed"

``show --outdated`` (split on runs of spaces)::

    boto3     1.13.26 1.14.38 The AWS SDK for Python
    docutils  (!) 0.15.2  0.16   Docutils -- Python Documentation Utilities
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple, TypeVar

from poetrykeeper.constants import (
    ACTIVATED_SUFFIX,
    ALREADY_INSTALLED,
    CURRENT_PROJECT,
    INSTALLING,
)
from poetrykeeper.models.environment import PoetryEnvironment
from poetrykeeper.models.outdated import OutdatedEntry
from poetrykeeper.models.package import Package
from poetrykeeper.models.requirement import Requirement
from poetrykeeper.utils.logger import get_logger

logger = get_logger("output_parser")

__all__ = [
    "parse_dry_run",
    "parse_outdated",
    "parse_env_list",
    "parse_version",
    "parse_bool",
]

T = TypeVar("T")

_NAME_INDEX = 4
_VERSION_INDEX = 5
_MIN_OUTDATED_TOKENS = 4
_NOT_INSTALLED_MARKER = "(!)"
_WHITESPACE = re.compile(r" +")
_VERSION_OUTPUT = re.compile(r"version\s+([0-9][^\s)]*)", re.IGNORECASE)


def _distinct(items: List[T]) -> List[T]:
    """Drop repeated items, keeping first-seen order."""
    seen = set()
    result: List[T] = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        result.append(item)
    return result


def _name_and_version(line: str) -> Optional[Tuple[str, str]]:
    """Extract ``(name, version)`` from a dry-run line by column position."""
    tokens = line.split(" ")
    if len(tokens) <= _VERSION_INDEX:
        return None
    name = tokens[_NAME_INDEX]
    version = tokens[_VERSION_INDEX].replace("(", "").replace(")", "").rstrip(":")
    if not name or not version:
        return None
    return name, version


def parse_dry_run(text: str) -> Tuple[List[Package], List[Requirement]]:
    """Parse ``poetry install --dry-run`` output.

    Args:
        text: Captured standard output.

    Returns:
        ``(installed, to_install)``: packages reported as already installed
        and requirements for packages that would be installed, each
        de-duplicated in source order.

    Example::

        >>> installed, pending = parse_dry_run(
        ...     "  - Installing attrs (19.3.0)\\n"
        ...     "  - Skipping six (1.15.0) Already installed\\n"
        ... )
        >>> [str(p) for p in installed], [str(r) for r in pending]
        (['six (1.15.0)'], ['attrs==19.3.0'])
    """
    installed: List[Package] = []
    to_install: List[Requirement] = []

    for line in text.splitlines():
        if not (line.endswith(")") or line.endswith(ALREADY_INSTALLED)):
            continue

        if CURRENT_PROJECT in line:
            continue

        parsed = _name_and_version(line)
        if parsed is None:
            logger.debug("Skipping truncated dry-run line: %r", line)
            continue
        name, version = parsed

        if ALREADY_INSTALLED in line:
            installed.append(Package(name=name, version=version))
        elif INSTALLING in line:
            to_install.append(Requirement.from_name_and_version(name, version))

    return _distinct(installed), _distinct(to_install)


def parse_outdated(text: str) -> Dict[str, OutdatedEntry]:
    """Parse ``poetry show --outdated`` output into a name → entry map.

    Rows with fewer than four columns are discarded. Later rows for the same
    name replace earlier ones.
    """
    result: Dict[str, OutdatedEntry] = {}

    for line in text.splitlines():
        tokens = [token for token in _WHITESPACE.split(line.strip()) if token]
        if len(tokens) < _MIN_OUTDATED_TOKENS:
            continue
        # Newer Poetry flags packages missing from the environment with "(!)"
        if tokens[1] == _NOT_INSTALLED_MARKER:
            tokens = [tokens[0], *tokens[2:]]

        name, current, latest = tokens[0], tokens[1], tokens[2]
        result[name] = OutdatedEntry(
            name=name,
            current_version=current,
            latest_version=latest,
        )

    return result


def parse_env_list(text: str) -> List[PoetryEnvironment]:
    """Parse ``poetry env list --full-path`` output."""
    environments: List[PoetryEnvironment] = []

    for line in text.splitlines():
        entry = line.strip()
        if not entry:
            continue
        activated = entry.endswith(ACTIVATED_SUFFIX)
        if activated:
            entry = entry[: -len(ACTIVATED_SUFFIX)].rstrip()
        environments.append(PoetryEnvironment(path=Path(entry), activated=activated))

    return environments


def parse_version(text: str) -> Optional[str]:
    """Extract the version from ``poetry --version`` output.

    Handles both ``Poetry version 1.1.4`` and ``Poetry (version 1.8.3)``.
    """
    match = _VERSION_OUTPUT.search(text)
    return match.group(1) if match else None


def parse_bool(text: str) -> Optional[bool]:
    """Interpret ``true``/``false`` output of ``poetry config <key>``."""
    value = text.strip().lower()
    if value == "true":
        return True
    if value == "false":
        return False
    return None
