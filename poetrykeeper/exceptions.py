"""
Custom exception hierarchy for poetrykeeper.

This module defines structured exception types used across poetrykeeper.
All exceptions inherit from :class:`PoetryKeeperError` and support optional
structured metadata via the ``details`` attribute to improve diagnostics
and logging.
"""

from __future__ import annotations

from typing import Any, Mapping, MutableMapping, Optional, Sequence


class PoetryKeeperError(Exception):
    """Base exception for all poetrykeeper errors.

    All poetrykeeper-specific exceptions should inherit from this class.
    It supports structured metadata via ``details`` for richer error
    reporting and debugging.

    Args:
        message: Human-readable error message.
        details: Optional structured metadata describing the error.
    """

    __slots__ = ("message", "details")

    def __init__(
        self,
        message: str,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.message: str = message
        # Internally normalize to a mutable dict
        self.details: MutableMapping[str, Any] = dict(details) if details else {}
        super().__init__(message)

    def __str__(self) -> str:
        if not self.details:
            return self.message
        formatted = ", ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.message} ({formatted})"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, details={dict(self.details)!r})"
        )


def _add_if(details: MutableMapping[str, Any], key: str, value: Any) -> None:
    """Add a key to ``details`` only if ``value`` is not ``None``."""
    if value is not None:
        details[key] = value


def _truncate(text: str, max_length: int = 200) -> str:
    """Truncate long text for safe logging or error reporting."""
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


class ExecutableNotFoundError(PoetryKeeperError):
    """Raised when no Poetry executable can be located.

    Recoverable by configuring ``poetry_path`` or installing Poetry.

    Args:
        message: Error description.
        configured_path: The configured path that was rejected, if any.
    """

    __slots__ = ("configured_path",)

    def __init__(
        self,
        message: str = "Cannot find Poetry",
        *,
        configured_path: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "configured_path", configured_path)

        super().__init__(message, details)

        self.configured_path = configured_path


class ProcessError(PoetryKeeperError):
    """Base class for failures while running the Poetry executable.

    Args:
        message: Error description.
        command: Full argument vector that was executed.
        working_directory: Directory the process ran in.
    """

    __slots__ = ("command", "working_directory")

    def __init__(
        self,
        message: str,
        *,
        command: Optional[Sequence[str]] = None,
        working_directory: Optional[str] = None,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        merged: MutableMapping[str, Any] = {}
        if command is not None:
            merged["command"] = " ".join(command)
        _add_if(merged, "cwd", working_directory)
        if details:
            merged.update(details)

        super().__init__(message, merged)

        self.command = list(command) if command is not None else None
        self.working_directory = working_directory


class ProcessCancelledError(ProcessError):
    """Raised when the caller cancels a running Poetry process."""

    __slots__ = ()

    def __init__(self, message: str = "Poetry run cancelled by user", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class ProcessTimeoutError(ProcessError):
    """Raised when a Poetry process exceeds its wall-clock timeout.

    Args:
        message: Error description.
        timeout: Timeout in seconds that was exceeded.
        **kwargs: Additional arguments forwarded to ``ProcessError``.
    """

    __slots__ = ("timeout",)

    def __init__(
        self,
        message: str = "Poetry run timed out",
        *,
        timeout: Optional[float] = None,
        **kwargs: Any,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "timeout", timeout)
        super().__init__(message, details=details, **kwargs)

        self.timeout = timeout


class ProcessFailedError(ProcessError):
    """Raised when Poetry exits with a non-zero status.

    Args:
        message: Error description.
        exit_code: Process exit status.
        stdout: Captured standard output.
        stderr: Captured standard error.
        **kwargs: Additional arguments forwarded to ``ProcessError``.
    """

    __slots__ = ("exit_code", "stdout", "stderr")

    def __init__(
        self,
        message: str = "Error Running Poetry",
        *,
        exit_code: int,
        stdout: str = "",
        stderr: str = "",
        **kwargs: Any,
    ) -> None:
        details: MutableMapping[str, Any] = {"exit_code": exit_code}
        if stderr.strip():
            details["stderr"] = _truncate(stderr.strip())
        elif stdout.strip():
            details["stdout"] = _truncate(stdout.strip())

        super().__init__(message, details=details, **kwargs)

        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr


class ParseError(PoetryKeeperError):
    """Raised when a manifest, lock file, or command output cannot be parsed.

    Args:
        message: Error description.
        file_path: Path to the file being parsed.
        line_number: Line number where parsing failed.
    """

    __slots__ = ("file_path", "line_number")

    def __init__(
        self,
        message: str,
        *,
        file_path: Optional[str] = None,
        line_number: Optional[int] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "file", file_path)
        _add_if(details, "line", line_number)

        super().__init__(message, details)

        self.file_path = file_path
        self.line_number = line_number


class ConfigError(PoetryKeeperError):
    """Raised when the poetrykeeper configuration is invalid.

    Args:
        message: Error description.
        config_path: Path to the configuration file.
        option: Name of the offending option.
    """

    __slots__ = ("config_path", "option")

    def __init__(
        self,
        message: str,
        *,
        config_path: Optional[str] = None,
        option: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "path", config_path)
        _add_if(details, "option", option)

        super().__init__(message, details)

        self.config_path = config_path
        self.option = option


class FileOperationError(PoetryKeeperError):
    """Raised when file system operations fail.

    Args:
        message: Error description.
        file_path: Path to the file involved.
        operation: Operation being performed (read/scan).
        original_error: Original exception that triggered this error.
    """

    __slots__ = ("file_path", "operation", "original_error")

    def __init__(
        self,
        message: str,
        *,
        file_path: Optional[str] = None,
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "path", file_path)
        _add_if(details, "operation", operation)
        _add_if(
            details,
            "original_error",
            str(original_error) if original_error else None,
        )

        super().__init__(message, details)

        self.file_path = file_path
        self.operation = operation
        self.original_error = original_error
