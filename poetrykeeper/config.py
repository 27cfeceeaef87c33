"""Configuration file loader for poetrykeeper.

Handles discovery, loading, parsing, and validation of configuration files.
Supports two formats:

- ``poetrykeeper.toml``: settings under ``[poetrykeeper]`` table
- ``pyproject.toml``: settings under ``[tool.poetrykeeper]`` table

Discovery order:

1. Explicit path from ``--config`` or ``POETRYKEEPER_CONFIG``
2. ``poetrykeeper.toml`` in current directory
3. ``pyproject.toml`` with ``[tool.poetrykeeper]`` section

Configuration precedence: defaults < config file < environment < CLI args.

Typical usage::

    config = load_config()  # Auto-discover
    config = load_config(Path("custom.toml"))  # Explicit path

Example (``poetrykeeper.toml``)::

    [poetrykeeper]
    poetry_path = "/opt/poetry/bin/poetry"
    ignored_packages = ["setuptools"]
    timeout = 10
"""

from __future__ import annotations

import tomli as tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field

from poetrykeeper.exceptions import ConfigError
from poetrykeeper.utils.logger import get_logger
from poetrykeeper.constants import (
    DEFAULT_TIMEOUT,
    DEFAULT_TRIM_TRAILING_NEWLINE,
    PY_PROJECT_TOML,
)

logger = get_logger("config")

CONFIG_FILE_NAME = "poetrykeeper.toml"
CONFIG_SECTION = "poetrykeeper"


@dataclass
class PoetryKeeperConfig:
    """Parsed and validated poetrykeeper configuration.

    All fields have defaults, so empty config files are valid.

    Attributes:
        poetry_path: Path to the Poetry executable. ``None`` means discover
            it on ``PATH`` and in the per-user install directory.
        ignored_packages: Requirement names never reported as unsatisfied.
        timeout: Seconds before a best-effort Poetry query gives up.
        trim_trailing_newline: Strip one trailing newline from Poetry output.
        source_path: Path to loaded config file, or ``None`` if using defaults.
    """

    poetry_path: Optional[str] = None
    ignored_packages: List[str] = field(default_factory=list)
    timeout: float = DEFAULT_TIMEOUT
    trim_trailing_newline: bool = DEFAULT_TRIM_TRAILING_NEWLINE

    # Metadata (not a user-facing option)
    source_path: Optional[Path] = field(default=None, repr=False)

    def to_log_dict(self) -> Dict[str, Any]:
        """Return configuration as dictionary for debug logging."""
        return {
            "poetry_path": self.poetry_path,
            "ignored_packages": list(self.ignored_packages),
            "timeout": self.timeout,
            "trim_trailing_newline": self.trim_trailing_newline,
        }


def discover_config_file(explicit_path: Optional[Path] = None) -> Optional[Path]:
    """Find the configuration file to load.

    Search order:

    1. ``explicit_path`` (from ``--config`` or ``POETRYKEEPER_CONFIG``)
    2. ``poetrykeeper.toml`` in current directory
    3. ``pyproject.toml`` with ``[tool.poetrykeeper]`` section in current directory

    Args:
        explicit_path: Explicit config path. If provided, must exist.

    Returns:
        Resolved path to config file, or ``None`` if not found.

    Raises:
        ConfigError: Explicit path provided but does not exist.
    """
    if explicit_path is not None:
        resolved = explicit_path.resolve()
        if not resolved.is_file():
            raise ConfigError(
                f"Configuration file not found: {explicit_path}",
                config_path=str(explicit_path),
            )
        logger.debug("Using explicit config: %s", resolved)
        return resolved

    cwd = Path.cwd()

    own_file = cwd / CONFIG_FILE_NAME
    if own_file.is_file():
        logger.debug("Found %s: %s", CONFIG_FILE_NAME, own_file)
        return own_file

    pyproject_toml = cwd / PY_PROJECT_TOML
    if pyproject_toml.is_file() and _pyproject_has_section(pyproject_toml):
        logger.debug("Found [tool.poetrykeeper] in pyproject.toml: %s", pyproject_toml)
        return pyproject_toml

    logger.debug("No configuration file found")
    return None


def _pyproject_has_section(path: Path) -> bool:
    """Check if pyproject.toml contains a [tool.poetrykeeper] section.

    A pyproject.toml that cannot be read or parsed has no section.
    """
    try:
        raw = _read_toml(path)
    except ConfigError:
        return False
    tool = raw.get("tool", {})
    return isinstance(tool, dict) and CONFIG_SECTION in tool


def load_config(config_path: Optional[Path] = None) -> PoetryKeeperConfig:
    """Load and validate poetrykeeper configuration.

    Args:
        config_path: Explicit path to config file. If ``None``, uses
            auto-discovery (see :func:`discover_config_file`).

    Returns:
        Validated :class:`PoetryKeeperConfig` with values from file or defaults.

    Raises:
        ConfigError: File cannot be parsed, has unknown keys, or invalid values.
    """
    resolved = discover_config_file(config_path)

    if resolved is None:
        logger.debug("No config file found, using defaults")
        return PoetryKeeperConfig()

    logger.info("Loading configuration from %s", resolved)
    raw = _read_toml(resolved)

    if resolved.name == PY_PROJECT_TOML:
        section = raw.get("tool", {}).get(CONFIG_SECTION, {})
    else:
        section = raw.get(CONFIG_SECTION, {})

    if not section:
        logger.debug("Config file found but no poetrykeeper section, using defaults")
        return PoetryKeeperConfig(source_path=resolved)

    if not isinstance(section, dict):
        raise ConfigError(
            f"[{CONFIG_SECTION}] must be a table",
            config_path=str(resolved),
        )

    config = _parse_section(section, config_path=str(resolved))
    config.source_path = resolved

    logger.debug("Loaded configuration: %s", config.to_log_dict())
    return config


def _read_toml(path: Path) -> Dict[str, Any]:
    """Read and parse a TOML file.

    Raises:
        ConfigError: File cannot be read or is not valid TOML.
    """
    try:
        with open(path, "rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(
            f"Invalid TOML in {path.name}: {exc}",
            config_path=str(path),
        ) from exc
    except OSError as exc:
        raise ConfigError(
            f"Cannot read configuration file {path}: {exc}",
            config_path=str(path),
        ) from exc


def _parse_section(
    section: Dict[str, Any],
    *,
    config_path: str,
) -> PoetryKeeperConfig:
    """Parse and validate the ``[poetrykeeper]`` / ``[tool.poetrykeeper]`` table.

    Raises:
        ConfigError: Unknown keys or incorrect types.
    """
    config = PoetryKeeperConfig()

    known_top = {
        "poetry_path",
        "ignored_packages",
        "timeout",
        "trim_trailing_newline",
    }

    unknown_top = set(section.keys()) - known_top
    if unknown_top:
        raise ConfigError(
            f"Unknown configuration keys: {', '.join(sorted(unknown_top))}",
            config_path=config_path,
        )

    if "poetry_path" in section:
        val = section["poetry_path"]
        if not isinstance(val, str) or not val.strip():
            raise ConfigError(
                "poetry_path must be a non-empty string",
                config_path=config_path,
                option="poetry_path",
            )
        config.poetry_path = val

    if "ignored_packages" in section:
        val = section["ignored_packages"]
        if not isinstance(val, list) or not all(isinstance(item, str) for item in val):
            raise ConfigError(
                "ignored_packages must be a list of strings",
                config_path=config_path,
                option="ignored_packages",
            )
        config.ignored_packages = list(val)

    if "timeout" in section:
        val = section["timeout"]
        # bool is an int subclass
        if isinstance(val, bool) or not isinstance(val, (int, float)) or val <= 0:
            raise ConfigError(
                f"timeout must be a positive number, got {val!r}",
                config_path=config_path,
                option="timeout",
            )
        config.timeout = float(val)

    if "trim_trailing_newline" in section:
        val = section["trim_trailing_newline"]
        if not isinstance(val, bool):
            raise ConfigError(
                f"trim_trailing_newline must be a boolean, got {type(val).__name__}",
                config_path=config_path,
                option="trim_trailing_newline",
            )
        config.trim_trailing_newline = val

    return config
