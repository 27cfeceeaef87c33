"""
poetrykeeper: Poetry project inspection and drift detection

poetrykeeper wraps the ``poetry`` executable and the files it manages so
that tools can answer simple questions about a Poetry project without
reimplementing Poetry itself.

Features include:
    • Locating the Poetry executable (configured path, PATH, user install)
    • Running Poetry with cancellation and bounded best-effort queries
    • Parsing ``install --dry-run``, ``show --outdated`` and ``env list`` output
    • Reading ``pyproject.toml`` and ``poetry.lock`` (TOML and legacy JSON)
    • Reporting requirements that are not satisfied by the environment
"""

from __future__ import annotations

from poetrykeeper.__version__ import __version__

# ---------------------------------------------------------------------------
# Package Metadata
# ---------------------------------------------------------------------------

__author__ = "poetrykeeper Contributors"
__license__ = "Apache-2.0"
__description__ = "Inspect Poetry projects and detect dependency drift."

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

__all__ = [
    "__version__",
]
