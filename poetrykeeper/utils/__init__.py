"""
Utility helpers for poetrykeeper.

This package provides reusable utilities used across poetrykeeper, including:

- Console output helpers (Rich-based)
- Logging configuration and retrieval
- Filesystem helpers for project files and metadata directories
- Version comparison and Poetry constraint evaluation

Only symbols listed in ``__all__`` are considered part of the public API.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Filesystem utilities
# ---------------------------------------------------------------------------

from poetrykeeper.utils.filesystem import (
    find_metadata_dirs,
    iter_existing_dirs,
    modification_stamp,
    safe_read_bytes,
)

# ---------------------------------------------------------------------------
# Logging utilities
# ---------------------------------------------------------------------------

from poetrykeeper.utils.logger import (
    disable_logging,
    format_command,
    get_logger,
    setup_logging,
    verbosity_to_level,
)

# ---------------------------------------------------------------------------
# Console utilities
# ---------------------------------------------------------------------------

from poetrykeeper.utils.console import (
    colorize_update_type,
    print_error,
    print_info,
    print_json,
    print_success,
    print_table,
    print_warning,
    reconfigure_console,
)

# ---------------------------------------------------------------------------
# Version utilities
# ---------------------------------------------------------------------------

from poetrykeeper.utils.version_utils import (
    get_update_type,
    normalize_version_constraint,
    satisfies,
    to_pep440_specifier,
)

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

__all__ = [
    # Console
    "print_error",
    "print_info",
    "print_json",
    "print_table",
    "print_success",
    "print_warning",
    "reconfigure_console",
    "colorize_update_type",
    # Logging
    "get_logger",
    "setup_logging",
    "disable_logging",
    "format_command",
    "verbosity_to_level",
    # Filesystem
    "safe_read_bytes",
    "modification_stamp",
    "find_metadata_dirs",
    "iter_existing_dirs",
    # Version utilities
    "get_update_type",
    "normalize_version_constraint",
    "satisfies",
    "to_pep440_specifier",
]
