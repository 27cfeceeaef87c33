"""Outdated command implementation for poetrykeeper.

Lists packages with newer releases, as reported by
``poetry show --outdated``. The query is best-effort: when Poetry is missing,
fails or times out the list is empty.

Typical usage::

    $ poetrykeeper outdated
    $ poetrykeeper outdated path/to/project --format json
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List

import click

from poetrykeeper.context import pass_context, PoetryKeeperContext
from poetrykeeper.models import OutdatedEntry
from poetrykeeper.utils import (
    colorize_update_type,
    get_logger,
    print_json,
    print_success,
    print_table,
)

logger = get_logger("commands.outdated")


@click.command()
@click.argument(
    "project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
)
@click.option(
    "--format",
    "-f",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    help="Output format.",
)
@pass_context
def outdated(ctx: PoetryKeeperContext, project: Path, format: str) -> None:
    """Show packages with newer versions available."""
    manager = ctx.services.package_manager(project)
    entries = sorted(manager.show_outdated().values(), key=lambda entry: entry.name.lower())
    logger.info("%d outdated package(s) in %s", len(entries), project)

    if format.lower() == "json":
        print_json([entry.to_json() for entry in entries])
        return

    if not entries:
        print_success("All packages are up to date!")
        return

    _display_table(entries)


def _display_table(entries: List[OutdatedEntry]) -> None:
    rows: List[Dict[str, str]] = [
        {
            "Package": entry.name,
            "Current": entry.current_version,
            "Latest": entry.latest_version,
            "Update Type": colorize_update_type(entry.update_type),
        }
        for entry in entries
    ]
    print_table(
        rows,
        title="Outdated Packages",
        column_styles={
            "Package": {"style": "bold cyan", "no_wrap": True},
            "Current": {"justify": "center", "style": "dim"},
            "Latest": {"justify": "center", "style": "bold green"},
            "Update Type": {"justify": "center"},
        },
    )
