"""
Centralized constants for poetrykeeper.

This module defines immutable configuration values used across poetrykeeper,
including file names, Poetry executable lookup, process timeouts, and logging
formats. All values are intended to be treated as read-only.
"""

from typing import Final, Sequence

# ---------------------------------------------------------------------------
# Project files
# ---------------------------------------------------------------------------

#: Poetry project manifest.
PY_PROJECT_TOML: Final[str] = "pyproject.toml"

#: Poetry lock file.
POETRY_LOCK: Final[str] = "poetry.lock"

#: Source URL assumed when a lock file declares no sources.
POETRY_DEFAULT_SOURCE_URL: Final[str] = "https://pypi.org/simple"

#: Directory suffixes of installed distribution metadata.
METADATA_EXTENSIONS: Final[Sequence[str]] = ("egg-info", "dist-info")

# ---------------------------------------------------------------------------
# Poetry executable lookup
# ---------------------------------------------------------------------------

#: Executable name searched on ``PATH`` for POSIX platforms.
POETRY_EXECUTABLE: Final[str] = "poetry"

#: Executable names searched on ``PATH`` for Windows, in order.
POETRY_WINDOWS_EXECUTABLES: Final[Sequence[str]] = ("poetry.exe", "poetry.bat")

#: Per-user install directory relative to the home directory.
POETRY_USER_BIN: Final[Sequence[str]] = (".poetry", "bin")

#: Environment variable overriding the configured executable.
POETRY_PATH_ENV: Final[str] = "POETRYKEEPER_POETRY"

# ---------------------------------------------------------------------------
# Process configuration
# ---------------------------------------------------------------------------

#: Wall-clock bound (seconds) for best-effort queries.
DEFAULT_TIMEOUT: Final[float] = 30.0

#: Interval (seconds) between cancellation checks while a process runs.
DEFAULT_POLL_INTERVAL: Final[float] = 0.1

#: Whether a single trailing newline is removed from captured stdout.
DEFAULT_TRIM_TRAILING_NEWLINE: Final[bool] = True

# ---------------------------------------------------------------------------
# Output markers
# ---------------------------------------------------------------------------

#: Dry-run phrase for packages present in the environment.
ALREADY_INSTALLED: Final[str] = "Already installed"

#: Dry-run phrase for packages that would be installed.
INSTALLING: Final[str] = "Installing"

#: Dry-run phrase announcing the root project itself, not a dependency.
CURRENT_PROJECT: Final[str] = "the current project"

#: Suffix appended by ``poetry env list`` to the active environment.
ACTIVATED_SUFFIX: Final[str] = " (Activated)"

# ---------------------------------------------------------------------------
# Security constraints
# ---------------------------------------------------------------------------

#: Maximum allowed file size (in bytes) when reading manifests and lock files.
MAX_FILE_SIZE: Final[int] = 10 * 1024 * 1024  # 10 MB

# ---------------------------------------------------------------------------
# Logging configuration
# ---------------------------------------------------------------------------

#: Timestamp format for verbose logging.
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

#: Default log format (non-verbose).
LOG_DEFAULT_FORMAT: Final[str] = "%(levelname)s: %(message)s"

#: Verbose log format including timestamp and logger name.
LOG_VERBOSE_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
