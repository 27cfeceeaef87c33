"""Check command implementation for poetrykeeper.

Reports requirements of a Poetry project that the environment does not
satisfy. Requirements come from one of two sources:

1. ``dry-run`` (default): packages ``poetry install --dry-run`` would still
   install, checked against the packages it reports as installed.
2. ``lock``: every package pinned in ``poetry.lock``, checked against the
   installed packages reported by the dry run.

Packages installed in-tree (``*.egg-info`` / ``*.dist-info`` directly in the
project directory) also satisfy a requirement.

Typical usage::

    $ poetrykeeper check
    $ poetrykeeper check path/to/project --source lock --ignore setuptools
    $ poetrykeeper check --format json > drift.json
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import List

import click

from poetrykeeper.constants import POETRY_LOCK, PY_PROJECT_TOML
from poetrykeeper.context import pass_context, PoetryKeeperContext
from poetrykeeper.core import (
    DriftDetector,
    DriftReport,
    IgnoreListPolicy,
    lock_requirements,
)
from poetrykeeper.exceptions import PoetryKeeperError, ProcessCancelledError
from poetrykeeper.models import LockStatus, Requirement
from poetrykeeper.utils import (
    get_logger,
    print_error,
    print_json,
    print_success,
    print_table,
    print_warning,
)

logger = get_logger("commands.check")


@click.command()
@click.argument(
    "project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
)
@click.option(
    "--source",
    type=click.Choice(["dry-run", "lock"], case_sensitive=False),
    default="dry-run",
    help="Where requirements come from.",
)
@click.option(
    "--ignore",
    "ignore",
    multiple=True,
    help="Package name to skip (repeatable). Added to ignored_packages.",
)
@click.option(
    "--format",
    "-f",
    type=click.Choice(["text", "json"], case_sensitive=False),
    default="text",
    help="Output format.",
)
@pass_context
def check(
    ctx: PoetryKeeperContext,
    project: Path,
    source: str,
    ignore: tuple,
    format: str,
) -> None:
    """Check that a Poetry project's requirements are installed.

    Exits:
        0 when every requirement is satisfied, 1 when some are not or an
        error occurred, 130 when cancelled.
    """
    try:
        report = _run_check(ctx, project, source.lower(), list(ignore))
    except ProcessCancelledError:
        sys.exit(130)
    except PoetryKeeperError as e:
        print_error(f"{e}")
        sys.exit(1)

    if format.lower() == "json":
        print_json(report.to_json())
    else:
        _display_text(report)

    sys.exit(1 if report.has_drift else 0)


def _run_check(
    ctx: PoetryKeeperContext,
    project: Path,
    source: str,
    ignore: List[str],
) -> DriftReport:
    services = ctx.services
    if not services.is_poetry_project(project):
        raise PoetryKeeperError(
            f"{project / PY_PROJECT_TOML} is not a Poetry manifest",
            details={"project": str(project)},
        )

    manager = services.package_manager(project)
    installed = manager.refresh_and_get_packages(always_refresh=True)

    requirements: List[Requirement]
    if source == "lock":
        result = services.read_lock(project)
        if result.status is LockStatus.MISSING:
            raise PoetryKeeperError(f"{POETRY_LOCK} not found in {project}")
        if result.status is LockStatus.MALFORMED:
            raise PoetryKeeperError(
                f"{POETRY_LOCK} could not be parsed",
                details={"error": result.error},
            )
        requirements = lock_requirements(result.lock_file)
    else:
        requirements = manager.requirements

    logger.info("Checking %d requirement(s) from %s", len(requirements), source)

    policy = IgnoreListPolicy([*ctx.config.ignored_packages, *ignore])
    return DriftDetector(policy).detect(
        requirements,
        installed,
        source_roots=[project],
    )


def _display_text(report: DriftReport) -> None:
    if not report.has_drift:
        print_success(f"All {report.checked} requirement(s) are satisfied")
        return

    print_table(
        [
            {
                "Package": requirement.name,
                "Constraint": requirement.version_constraint or "*",
            }
            for requirement in report.unsatisfied
        ],
        title="Unsatisfied Requirements",
        column_styles={
            "Package": {"style": "bold cyan", "no_wrap": True},
            "Constraint": {"justify": "center"},
        },
    )
    print_warning(report.message or "")
