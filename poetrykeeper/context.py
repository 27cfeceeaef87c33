"""
Shared context object for poetrykeeper CLI commands.

This module defines the global Click context used to share configuration,
runtime options and the Poetry services across CLI subcommands.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from poetrykeeper.config import PoetryKeeperConfig
from poetrykeeper.core.package_manager import PoetryServices


class PoetryKeeperContext:
    """Global context object for poetrykeeper CLI commands.

    An instance of this class is created once per CLI invocation and
    passed to commands using Click's context mechanism.

    Attributes:
        config_path: Path to the poetrykeeper configuration file, if provided.
        verbose: Verbosity level (0=WARNING, 1=INFO, 2+=DEBUG).
        color: Whether colored terminal output is enabled.
        poetry_path: Executable given with ``--poetry``; wins over the config.
        config: Loaded configuration.
    """

    __slots__ = ("config_path", "verbose", "color", "poetry_path", "config", "_services")

    def __init__(self) -> None:
        self.config_path: Optional[Path] = None
        self.verbose: int = 0
        self.color: bool = True
        self.poetry_path: Optional[str] = None
        self.config: PoetryKeeperConfig = PoetryKeeperConfig()
        self._services: Optional[PoetryServices] = None

    @property
    def services(self) -> PoetryServices:
        """Poetry services built lazily from the configuration."""
        if self._services is None:
            self._services = PoetryServices.from_config(self.config, self.poetry_path)
        return self._services

    @services.setter
    def services(self, value: PoetryServices) -> None:
        self._services = value


#: Click decorator for injecting :class:`PoetryKeeperContext` into commands.
pass_context = click.make_pass_decorator(PoetryKeeperContext, ensure=True)
