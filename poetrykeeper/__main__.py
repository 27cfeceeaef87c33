"""
Executable module for poetrykeeper.

Running:
    python -m poetrykeeper

is equivalent to:
    poetrykeeper

This module simply forwards execution to the CLI entrypoint defined in
`poetrykeeper.cli`.
"""

from __future__ import annotations

import sys


def _print_startup_error(exc: ImportError) -> None:
    """Explain on stderr why the CLI could not be imported."""
    try:
        from poetrykeeper.__version__ import __version__

        version = __version__
    except ImportError:
        version = "<unknown>"

    sys.stderr.write("poetrykeeper CLI could not be started.\n")
    sys.stderr.write(f"Python version : {sys.version}\n")
    sys.stderr.write(f"poetrykeeper version: {version}\n")
    sys.stderr.write("\n")
    sys.stderr.write(f"ImportError: {exc}\n")


def main() -> int:
    """
    Main entrypoint when executing `python -m poetrykeeper`.

    Returns:
        Exit code returned by the CLI, or 1 when it cannot be imported.
    """
    try:
        # Import lazily so dependencies are only loaded during CLI use
        from poetrykeeper.cli import main as cli_main
    except ImportError as exc:
        _print_startup_error(exc)
        return 1

    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
