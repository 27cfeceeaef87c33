"""
Core functionality exports for poetrykeeper.

This module provides convenient access to the core subsystems of
poetrykeeper. Importing from here keeps user-facing imports clean and stable:

    from poetrykeeper.core import PoetryRunner, parse_dry_run
"""

from __future__ import annotations

from poetrykeeper.core.locator import locate_poetry
from poetrykeeper.core.runner import PoetryRunner, trim_trailing_newline
from poetrykeeper.core.output_parser import (
    parse_bool,
    parse_dry_run,
    parse_env_list,
    parse_outdated,
    parse_version,
)
from poetrykeeper.core.manifest import (
    ManifestCache,
    PoetryManifest,
    is_poetry_manifest,
    read_manifest,
    read_manifest_file,
)
from poetrykeeper.core.lock_parser import (
    LockFileCache,
    lock_requirements,
    parse_lock,
    parse_lock_result,
    read_lock_file,
)
from poetrykeeper.core.drift import (
    DriftDetector,
    DriftPolicy,
    DriftReport,
    IgnoreListPolicy,
    collect_local_packages,
    find_unsatisfied,
    format_unsatisfied_message,
)
from poetrykeeper.core.env_cache import EnvironmentCache
from poetrykeeper.core.lock_state import lock_notice, lock_state
from poetrykeeper.core.package_manager import (
    PackageManagerRegistry,
    PoetryPackageManager,
    PoetryServices,
    is_poetry_environment,
)

__all__ = [
    # Process
    "locate_poetry",
    "PoetryRunner",
    "trim_trailing_newline",
    # Output parsing
    "parse_bool",
    "parse_dry_run",
    "parse_env_list",
    "parse_outdated",
    "parse_version",
    # Manifest and lock file
    "ManifestCache",
    "PoetryManifest",
    "is_poetry_manifest",
    "read_manifest",
    "read_manifest_file",
    "LockFileCache",
    "lock_requirements",
    "parse_lock",
    "parse_lock_result",
    "read_lock_file",
    "lock_notice",
    "lock_state",
    # Drift
    "DriftDetector",
    "DriftPolicy",
    "DriftReport",
    "IgnoreListPolicy",
    "collect_local_packages",
    "find_unsatisfied",
    "format_unsatisfied_message",
    # Services
    "EnvironmentCache",
    "PackageManagerRegistry",
    "PoetryPackageManager",
    "PoetryServices",
    "is_poetry_environment",
]
