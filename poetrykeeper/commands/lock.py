"""Lock and update commands for poetrykeeper.

Typical usage::

    $ poetrykeeper lock --no-update
    $ poetrykeeper update path/to/project
"""

from __future__ import annotations

from pathlib import Path

import click

from poetrykeeper.commands import run_poetry_action
from poetrykeeper.constants import POETRY_LOCK
from poetrykeeper.context import pass_context, PoetryKeeperContext


@click.command()
@click.argument(
    "project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
)
@click.option(
    "--no-update",
    is_flag=True,
    help="Lock without updating locked versions.",
)
@pass_context
def lock(ctx: PoetryKeeperContext, project: Path, no_update: bool) -> None:
    """Run ``poetry lock`` for a project."""
    manager = ctx.services.package_manager(project)
    run_poetry_action(lambda: manager.lock(no_update=no_update), f"{POETRY_LOCK} written")


@click.command()
@click.argument(
    "project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
)
@pass_context
def update(ctx: PoetryKeeperContext, project: Path) -> None:
    """Run ``poetry update`` for a project."""
    manager = ctx.services.package_manager(project)
    run_poetry_action(manager.update, "Dependencies updated")
