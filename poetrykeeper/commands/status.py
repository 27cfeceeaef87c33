"""Status command implementation for poetrykeeper.

Summarizes a project: whether ``pyproject.toml`` is a Poetry manifest, the
state of ``poetry.lock``, the Poetry version and the active environment.
Every Poetry query here is best-effort.
"""

from __future__ import annotations

from pathlib import Path

import click

from poetrykeeper.context import pass_context, PoetryKeeperContext
from poetrykeeper.core import lock_notice, lock_state
from poetrykeeper.core.lock_state import LOCK_UP_TO_DATE
from poetrykeeper.utils import print_table, print_warning


@click.command()
@click.argument(
    "project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
)
@pass_context
def status(ctx: PoetryKeeperContext, project: Path) -> None:
    """Show Poetry project and environment status."""
    services = ctx.services
    manager = services.package_manager(project)

    is_poetry = services.is_poetry_project(project)
    environment = manager.env_info_path() if is_poetry else None
    version = manager.version()
    in_project = manager.virtualenvs_in_project()
    state = lock_state(project)

    print_table(
        [
            {"Item": "Project", "Value": str(project.resolve())},
            {"Item": "Poetry manifest", "Value": "yes" if is_poetry else "no"},
            {"Item": "Lock file", "Value": state},
            {"Item": "Poetry version", "Value": version or "unknown"},
            {"Item": "Environment", "Value": str(environment) if environment else "none"},
            {
                "Item": "virtualenvs.in-project",
                "Value": "unknown" if in_project is None else str(in_project).lower(),
            },
        ],
        title="Poetry Status",
        column_styles={"Item": {"style": "bold cyan", "no_wrap": True}},
    )

    if is_poetry and state != LOCK_UP_TO_DATE:
        print_warning(f"{lock_notice(state)}. Run poetry lock or poetry update.")
