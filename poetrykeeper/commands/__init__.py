"""
CLI subcommands for poetrykeeper.

Commands that change an environment share :func:`run_poetry_action`, which
echoes Poetry's output and maps failures onto exit codes:

- 0   Success
- 1   Poetry missing, failed or timed out
- 130 Cancelled
"""

from __future__ import annotations

import sys
from typing import Callable

import click

from poetrykeeper.exceptions import PoetryKeeperError, ProcessCancelledError
from poetrykeeper.utils import get_logger, print_error, print_success

logger = get_logger("commands")


def run_poetry_action(action: Callable[[], str], success_message: str) -> None:
    """Run *action*, echo its output and report the outcome."""
    try:
        output = action()
    except ProcessCancelledError:
        logger.debug("Poetry action cancelled")
        sys.exit(130)
    except PoetryKeeperError as e:
        print_error(f"{e}")
        logger.debug("Action failed: %s", e.details or "<none>", exc_info=True)
        sys.exit(1)

    if output:
        click.echo(output)
    print_success(success_message)
