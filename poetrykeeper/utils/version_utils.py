"""
Version utilities for poetrykeeper.

This module provides helpers for classifying version changes and for
evaluating Poetry-style version constraints (``^1.2``, ``~1.2.3``, ``1.*``,
``>=1.0,<2.0``, ``1.0 || 2.0``) with PEP 440–compatible version parsing
from :mod:`packaging`.
"""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import InvalidVersion, Version, parse

_STARTS_WITH_DIGIT = re.compile(r"^[0-9]")
_OPERATOR_SPACE = re.compile(r"([<>=!~^]+)\s+")
_ATOM_SEPARATOR = re.compile(r"[,\s]+")
_PEP440_OPERATORS = ("===", "==", "!=", "~=", "<=", ">=", "<", ">")


def get_update_type(
    current_version: Optional[str],
    target_version: Optional[str],
) -> str:
    """Determine the semantic update type between two versions.

    Args:
        current_version: Currently installed version, or ``None`` if not installed.
        target_version: Target version to compare against.

    Returns:
        One of ``"new"``, ``"same"``, ``"downgrade"``, ``"major"``,
        ``"minor"``, ``"patch"``, ``"update"`` or ``"unknown"``.

    Examples:
        >>> get_update_type("1.13.26", "1.14.38")
        'minor'
        >>> get_update_type(None, "1.0.0")
        'new'
    """
    if current_version is None and target_version is None:
        return "unknown"

    if current_version is None:
        return "new"

    if target_version is None:
        return "unknown"

    try:
        current = _parse_version(current_version)
        target = _parse_version(target_version)
    except InvalidVersion:
        return "unknown"

    if target == current:
        return "same"

    if target < current:
        return "downgrade"

    return _classify_upgrade(current, target)


def normalize_version_constraint(version: str) -> str:
    """Turn a bare version into an exact-match constraint.

    A version beginning with a digit becomes ``==<version>``; anything else
    (an existing constraint, a VCS reference, a path) is returned verbatim.

    Examples:
        >>> normalize_version_constraint("1.2.3")
        '==1.2.3'
        >>> normalize_version_constraint(">=1.0")
        '>=1.0'
    """
    if _STARTS_WITH_DIGIT.match(version):
        return f"=={version}"
    return version


def to_pep440_specifier(constraint: str) -> Optional[str]:
    """Translate a single Poetry constraint into a PEP 440 specifier string.

    ``||`` alternatives are not representable as one specifier; use
    :func:`satisfies` for those.

    Returns:
        The specifier string (``""`` means "any version"), or ``None`` when
        the constraint is not a version constraint.
    """
    if "||" in constraint:
        return None

    text = _OPERATOR_SPACE.sub(r"\1", constraint.strip())
    if text in ("", "*"):
        return ""

    try:
        atoms = [_translate_atom(atom) for atom in _ATOM_SEPARATOR.split(text) if atom]
        specifier = ",".join(atom for atom in atoms if atom)
        SpecifierSet(specifier)
    except (InvalidVersion, InvalidSpecifier, ValueError):
        return None
    return specifier


def satisfies(version: Optional[str], constraint: str) -> Optional[bool]:
    """Check whether *version* satisfies a Poetry constraint.

    Pre-releases are accepted; an installed pre-release is still installed.

    Returns:
        ``True``/``False``, or ``None`` when either side cannot be evaluated
        as a version.
    """
    if version is None:
        return None
    try:
        parsed = _parse_version(version)
    except InvalidVersion:
        return None

    for alternative in constraint.split("||"):
        specifier = to_pep440_specifier(alternative)
        if specifier is None:
            return None
        if SpecifierSet(specifier).contains(parsed, prereleases=True):
            return True
    return False


def _translate_atom(atom: str) -> str:
    """Translate one comparison (``^1.2``, ``>=1.0``, ``1.*``)."""
    if atom == "*":
        return ""
    if atom.startswith("^"):
        return _caret(atom[1:])
    if atom.startswith("~") and not atom.startswith("~="):
        return _tilde(atom[1:])
    if atom.startswith(_PEP440_OPERATORS):
        return atom
    if atom.startswith("="):
        return f"={atom}"
    return f"=={atom}"


def _caret(base: str) -> str:
    """``^1.2.3`` → ``>=1.2.3,<2``; the first non-zero component is bumped."""
    release = list(_parse_version(base).release)
    if len(release) == 1:
        upper = [release[0] + 1]
    else:
        index = next(
            (i for i, part in enumerate(release) if part != 0),
            len(release) - 1,
        )
        upper = release[:index] + [release[index] + 1]
    return f">={base},<{_join(upper)}"


def _tilde(base: str) -> str:
    """``~1.2.3`` → ``>=1.2.3,<1.3``; ``~1`` → ``>=1,<2``."""
    release = list(_parse_version(base).release)
    if len(release) == 1:
        upper = [release[0] + 1]
    else:
        upper = [release[0], release[1] + 1]
    return f">={base},<{_join(upper)}"


def _join(parts: List[int]) -> str:
    return ".".join(str(part) for part in parts)


def _parse_version(value: str) -> Version:
    """Parse a version string into a PEP 440 Version object."""
    parsed = parse(value)
    if not isinstance(parsed, Version):
        raise InvalidVersion(value)
    return parsed


def _classify_upgrade(current: Version, target: Version) -> str:
    """Classify an upgrade between two valid versions."""
    current_major, current_minor, current_patch = _normalize_release(current)
    target_major, target_minor, target_patch = _normalize_release(target)

    if current_major != target_major:
        return "major"

    if current_minor != target_minor:
        return "minor"

    if current_patch != target_patch:
        return "patch"

    # Pre-release → release or metadata-only updates
    return "update"


def _normalize_release(version: Version) -> Tuple[int, int, int]:
    """Normalize a version's release segment to (major, minor, patch)."""
    release = version.release
    major = release[0] if len(release) > 0 else 0
    minor = release[1] if len(release) > 1 else 0
    patch = release[2] if len(release) > 2 else 0
    return major, minor, patch
