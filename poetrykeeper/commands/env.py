"""Environment commands for poetrykeeper.

Typical usage::

    $ poetrykeeper env list
    $ poetrykeeper env info
    $ poetrykeeper env use python3.11
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from poetrykeeper.commands import run_poetry_action
from poetrykeeper.context import pass_context, PoetryKeeperContext
from poetrykeeper.utils import print_info, print_table, print_warning

_PROJECT_OPTION = click.option(
    "--project",
    "-p",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    help="Project directory.",
)


@click.group()
def env() -> None:
    """Inspect and select the project's Poetry environments."""


@env.command("list")
@_PROJECT_OPTION
@pass_context
def env_list(ctx: PoetryKeeperContext, project: Path) -> None:
    """List the project's environments."""
    environments = ctx.services.package_manager(project).env_list()
    if not environments:
        print_warning("No Poetry environments found")
        return

    print_table(
        [
            {"Environment": str(environment.path), "Active": "yes" if environment.activated else ""}
            for environment in environments
        ],
        title="Poetry Environments",
        column_styles={"Environment": {"style": "bold cyan"}, "Active": {"justify": "center"}},
    )


@env.command("info")
@_PROJECT_OPTION
@pass_context
def env_info(ctx: PoetryKeeperContext, project: Path) -> None:
    """Print the path of the active environment."""
    path = ctx.services.package_manager(project).env_info_path()
    if path is None:
        print_warning("No active Poetry environment")
        sys.exit(1)
    print_info(str(path))


@env.command("use")
@click.argument("python")
@_PROJECT_OPTION
@pass_context
def env_use(ctx: PoetryKeeperContext, python: str, project: Path) -> None:
    """Select the interpreter for the project's environment."""
    manager = ctx.services.package_manager(project)
    run_poetry_action(lambda: manager.env_use(python), f"Using {python}")
