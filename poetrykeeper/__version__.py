"""Single source of truth for the poetrykeeper version (PEP 440)."""

__version__ = "0.1.0.dev0"
