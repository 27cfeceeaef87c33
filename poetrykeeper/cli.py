"""
Command-line interface for poetrykeeper.

This module provides the main CLI entry point and handles global options,
configuration loading, and command registration.
"""

from __future__ import annotations

import os
import sys
import logging
from pathlib import Path
from typing import Optional

import click

from poetrykeeper.config import load_config
from poetrykeeper.__version__ import __version__
from poetrykeeper.constants import POETRY_PATH_ENV
from poetrykeeper.context import PoetryKeeperContext
from poetrykeeper.exceptions import (
    ConfigError,
    PoetryKeeperError,
    ProcessCancelledError,
)
from poetrykeeper.utils.console import print_error, print_warning, reconfigure_console
from poetrykeeper.utils.logger import (
    disable_logging,
    get_logger,
    setup_logging,
    verbosity_to_level,
)

logger = get_logger("cli")


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file.",
    envvar="POETRYKEEPER_CONFIG",
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (can be repeated: -v, -vv).",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    help="Silence log output, including warnings.",
)
@click.option(
    "--color/--no-color",
    default=True,
    help="Enable or disable colored output.",
    envvar="POETRYKEEPER_COLOR",
)
@click.option(
    "--poetry",
    "poetry_path",
    type=click.Path(dir_okay=False),
    help="Path to the Poetry executable.",
    envvar=POETRY_PATH_ENV,
)
@click.version_option(
    version=__version__,
    prog_name="poetrykeeper",
    message="%(prog)s %(version)s",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    verbose: int,
    quiet: bool,
    color: bool,
    poetry_path: Optional[str],
) -> None:
    """poetrykeeper: keep Poetry environments in sync with their projects.

    \b
    Available commands:
      poetrykeeper check      Report requirements the environment lacks
      poetrykeeper outdated   List packages with newer releases
      poetrykeeper status     Show manifest, lock and environment state
      poetrykeeper lock       Run poetry lock
      poetrykeeper update     Run poetry update
      poetrykeeper install    Run poetry install
      poetrykeeper add        Run poetry add
      poetrykeeper remove     Run poetry remove
      poetrykeeper run        Run a command in the environment
      poetrykeeper env        List, inspect and select environments

    \b
    Examples:
      poetrykeeper check
      poetrykeeper -v check --source lock
      poetrykeeper --poetry ~/.local/bin/poetry outdated

    Use ``poetrykeeper COMMAND --help`` for command-specific options.
    """
    # Respect NO_COLOR for downstream libraries
    if color:
        os.environ.pop("NO_COLOR", None)
    else:
        os.environ["NO_COLOR"] = "1"
    reconfigure_console()

    _configure_logging(verbose, quiet)

    try:
        loaded_config = load_config(config)
    except ConfigError as exc:
        print_error(str(exc))
        raise SystemExit(1) from exc

    keeper_ctx = PoetryKeeperContext()
    keeper_ctx.config_path = config or loaded_config.source_path
    keeper_ctx.color = color
    keeper_ctx.verbose = verbose
    keeper_ctx.poetry_path = poetry_path
    keeper_ctx.config = loaded_config
    ctx.obj = keeper_ctx

    logger.debug("poetrykeeper v%s", __version__)
    logger.debug("Config path: %s", keeper_ctx.config_path)
    if loaded_config.source_path:
        logger.debug("Loaded configuration: %s", loaded_config.to_log_dict())
    logger.debug("Verbosity: %s | Color: %s", verbose, color)


def _configure_logging(verbose: int, quiet: bool = False) -> None:
    """Configure logging level based on verbosity flags."""
    if quiet:
        disable_logging()
        return
    level = verbosity_to_level(verbose)
    setup_logging(level=level)
    logger.debug("Logging initialized at %s level", logging.getLevelName(level))


# Register CLI subcommands
try:
    from poetrykeeper.commands.check import check
    from poetrykeeper.commands.outdated import outdated
    from poetrykeeper.commands.status import status
    from poetrykeeper.commands.lock import lock, update
    from poetrykeeper.commands.install import add, install, remove
    from poetrykeeper.commands.run import run
    from poetrykeeper.commands.env import env

    cli.add_command(check)
    cli.add_command(outdated)
    cli.add_command(status)
    cli.add_command(lock)
    cli.add_command(update)
    cli.add_command(install)
    cli.add_command(add)
    cli.add_command(remove)
    cli.add_command(run)
    cli.add_command(env)

except ImportError as exc:
    sys.stderr.write(f"FATAL: Failed to import CLI commands: {exc}\n")
    sys.exit(1)


def main() -> int:
    """Main entry point for the poetrykeeper CLI.

    Returns:
        Exit code:
            0   Success
            1   Unhandled or application error
            2   Usage error (Click)
            130 Interrupted or cancelled
    """
    try:
        result = cli(standalone_mode=False)
        return result if isinstance(result, int) else 0

    except click.exceptions.Abort:
        print_warning("\nOperation cancelled by user")
        return 130

    except click.ClickException as exc:
        exc.show()
        return exc.exit_code

    except ProcessCancelledError:
        return 130

    except PoetryKeeperError as exc:
        print_error(str(exc))
        logger.debug(
            "PoetryKeeperError details: %s",
            exc.details or "<none>",
            exc_info=True,
        )
        return 1

    except KeyboardInterrupt:
        print_warning("\nOperation cancelled by user")
        return 130

    except SystemExit as exc:
        if exc.code is None:
            return 0
        return exc.code if isinstance(exc.code, int) else 1

    except Exception as exc:
        print_error(f"Unexpected error: {exc}")
        logger.exception("Unhandled exception in CLI")
        return 1


if __name__ == "__main__":
    sys.exit(main())
