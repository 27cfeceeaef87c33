"""Freshness of ``poetry.lock`` relative to ``pyproject.toml``."""

from __future__ import annotations

from pathlib import Path
from typing import Union

from poetrykeeper.constants import POETRY_LOCK, PY_PROJECT_TOML
from poetrykeeper.utils.filesystem import modification_stamp

__all__ = [
    "LOCK_NOT_FOUND",
    "LOCK_OUT_OF_DATE",
    "LOCK_UP_TO_DATE",
    "lock_notice",
    "lock_state",
]

LOCK_NOT_FOUND = "not found"
LOCK_OUT_OF_DATE = "out of date"
LOCK_UP_TO_DATE = "up to date"


def lock_state(project_path: Union[str, Path]) -> str:
    """Compare the lock file and manifest modification stamps.

    Returns:
        ``"not found"`` without a lock file, ``"out of date"`` when the
        manifest was modified after the lock file, ``"up to date"`` otherwise.
    """
    project = Path(project_path)
    lock_stamp = modification_stamp(project / POETRY_LOCK)
    if lock_stamp is None:
        return LOCK_NOT_FOUND

    manifest_stamp = modification_stamp(project / PY_PROJECT_TOML)
    if manifest_stamp is not None and manifest_stamp > lock_stamp:
        return LOCK_OUT_OF_DATE
    return LOCK_UP_TO_DATE


def lock_notice(state: str) -> str:
    return f"{POETRY_LOCK} is {state}"
