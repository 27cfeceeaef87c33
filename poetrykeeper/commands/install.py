"""Install, add and remove commands for poetrykeeper.

Typical usage::

    $ poetrykeeper install --no-root
    $ poetrykeeper install --extras docs
    $ poetrykeeper add requests attrs --project path/to/project
    $ poetrykeeper remove attrs
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional, Tuple

import click

from poetrykeeper.commands import run_poetry_action
from poetrykeeper.context import pass_context, PoetryKeeperContext
from poetrykeeper.utils import print_error


@click.command()
@click.argument(
    "project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
)
@click.option(
    "--extras",
    "-E",
    default=None,
    help="Install the named extra.",
)
@click.option(
    "--no-root",
    is_flag=True,
    help="Do not install the project itself.",
)
@pass_context
def install(
    ctx: PoetryKeeperContext,
    project: Path,
    extras: Optional[str],
    no_root: bool,
) -> None:
    """Install a project's dependencies with ``poetry install``."""
    if extras:
        _check_extra(ctx, project, extras)

    manager = ctx.services.package_manager(project)
    if extras and not no_root:
        run_poetry_action(lambda: manager.install_extras(extras), f"Extra {extras!r} installed")
        return

    extra_args = ["--extras", extras] if extras else []
    run_poetry_action(
        lambda: manager.install(extra_args, no_root=no_root),
        "Dependencies installed",
    )


def _check_extra(ctx: PoetryKeeperContext, project: Path, extra: str) -> None:
    """Exit with an error when the manifest does not declare *extra*."""
    manifest = ctx.services.read_manifest(project)
    if manifest is None or extra in manifest.extras:
        return

    declared = ", ".join(sorted(manifest.extras)) or "none"
    print_error(f"Unknown extra {extra!r} (declared: {declared})")
    sys.exit(1)


@click.command()
@click.argument("names", nargs=-1, required=True)
@click.option(
    "--project",
    "-p",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    help="Project directory.",
)
@pass_context
def add(ctx: PoetryKeeperContext, names: Tuple[str, ...], project: Path) -> None:
    """Add packages to a project with ``poetry add``."""
    manager = ctx.services.package_manager(project)
    run_poetry_action(lambda: manager.add(list(names)), f"Added {', '.join(names)}")


@click.command()
@click.argument("names", nargs=-1, required=True)
@click.option(
    "--project",
    "-p",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    help="Project directory.",
)
@pass_context
def remove(ctx: PoetryKeeperContext, names: Tuple[str, ...], project: Path) -> None:
    """Remove packages from a project with ``poetry remove``."""
    manager = ctx.services.package_manager(project)
    run_poetry_action(lambda: manager.remove(list(names)), f"Removed {', '.join(names)}")
