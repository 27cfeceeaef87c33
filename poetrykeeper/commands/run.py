"""Run command for poetrykeeper.

Runs a command inside the project's Poetry environment. Arguments after the
options are passed to ``poetry run`` untouched; without arguments the
project's ``[tool.poetry.scripts]`` are listed instead::

    $ poetrykeeper run python -V
    $ poetrykeeper run -p path/to/project -- pytest -x
    $ poetrykeeper run
"""

from __future__ import annotations

from pathlib import Path
from typing import Tuple

import click

from poetrykeeper.commands import run_poetry_action
from poetrykeeper.context import pass_context, PoetryKeeperContext
from poetrykeeper.utils import print_table, print_warning


@click.command(
    context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False}
)
@click.option(
    "--project",
    "-p",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    help="Project directory.",
)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@pass_context
def run(ctx: PoetryKeeperContext, project: Path, args: Tuple[str, ...]) -> None:
    """Run a command with ``poetry run``, or list the project's scripts."""
    if not args:
        _list_scripts(ctx, project)
        return

    manager = ctx.services.package_manager(project)
    run_poetry_action(lambda: manager.run(list(args)), f"{args[0]} finished")


def _list_scripts(ctx: PoetryKeeperContext, project: Path) -> None:
    manifest = ctx.services.read_manifest(project)
    if manifest is None or not manifest.scripts:
        print_warning("No scripts defined in [tool.poetry.scripts]")
        return

    print_table(
        [
            {"Script": name, "Target": target}
            for name, target in sorted(manifest.scripts.items())
        ],
        title="Poetry Scripts",
        column_styles={"Script": {"style": "bold cyan", "no_wrap": True}},
    )
