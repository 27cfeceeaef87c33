"""Poetry process runner.

Runs the located Poetry executable with an argument vector and a working
directory, and maps the outcome onto the poetrykeeper exception hierarchy:

- no executable → :class:`ExecutableNotFoundError`
- cancellation signalled → :class:`ProcessCancelledError`
- wall-clock timeout → :class:`ProcessTimeoutError`
- non-zero exit → :class:`ProcessFailedError`

Each child is started in its own process group (its own session on POSIX)
so that cancellation and timeouts terminate everything it spawned.

Typical usage::

    runner = PoetryRunner()
    output = runner.run(project_dir, ["install", "--dry-run"])

    # Best-effort query: never raises on failure, bounded to 30 seconds
    version = runner.run_or_default(project_dir, ["--version"], default="")
"""

from __future__ import annotations

import os
import sys
import time
import signal
import threading
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, TypeVar, Union

from poetrykeeper.constants import (
    DEFAULT_POLL_INTERVAL,
    DEFAULT_TIMEOUT,
    DEFAULT_TRIM_TRAILING_NEWLINE,
)
from poetrykeeper.core.locator import locate_poetry
from poetrykeeper.exceptions import (
    ExecutableNotFoundError,
    ProcessCancelledError,
    ProcessFailedError,
    ProcessTimeoutError,
)
from poetrykeeper.utils.logger import format_command, get_logger

logger = get_logger("runner")

__all__ = ["PoetryRunner", "trim_trailing_newline"]

T = TypeVar("T")

PathLike = Union[str, Path]


def trim_trailing_newline(text: str) -> str:
    """Remove exactly one trailing line break (``\\n`` or ``\\r\\n``)."""
    if text.endswith("\r\n"):
        return text[:-2]
    if text.endswith("\n"):
        return text[:-1]
    return text


class PoetryRunner:
    """Synchronous runner for the Poetry executable.

    Calls block the calling thread; run them on a worker thread when the
    caller is interactive. Cancellation is cooperative through a
    :class:`threading.Event` checked every ``poll_interval`` seconds.

    Args:
        executable: Configured Poetry path; falls back to discovery when
            ``None`` or not executable.
        trim_trailing_newline: Strip one trailing newline from stdout.
            Some callers need the raw text; both behaviours are kept behind
            this flag and the per-call ``trim`` override.
        best_effort_timeout: Bound in seconds for :meth:`run_or_default`.
        poll_interval: Seconds between cancellation checks.
    """

    def __init__(
        self,
        executable: Optional[PathLike] = None,
        *,
        trim_trailing_newline: bool = DEFAULT_TRIM_TRAILING_NEWLINE,
        best_effort_timeout: float = DEFAULT_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        self.configured_path = executable
        self.trim_trailing_newline = trim_trailing_newline
        self.best_effort_timeout = best_effort_timeout
        self.poll_interval = poll_interval

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def executable(self) -> Path:
        """Return the Poetry executable or raise if none can be found."""
        found = locate_poetry(self.configured_path)
        if found is None:
            raise ExecutableNotFoundError(
                configured_path=(
                    str(self.configured_path) if self.configured_path else None
                ),
            )
        return found

    def run(
        self,
        working_directory: PathLike,
        args: Sequence[str],
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
        *,
        trim: Optional[bool] = None,
    ) -> str:
        """Run Poetry and return its standard output.

        Args:
            working_directory: Directory to run in (the Poetry project).
            args: Arguments after the executable, e.g. ``["env", "info", "-p"]``.
            timeout: Wall-clock limit in seconds; ``None`` waits indefinitely.
            cancel_event: Set it from another thread to abort the run.
            trim: Override :attr:`trim_trailing_newline` for this call.

        Returns:
            Captured stdout.

        Raises:
            ExecutableNotFoundError: Poetry could not be located or started.
            ProcessCancelledError: *cancel_event* was set before completion.
            ProcessTimeoutError: *timeout* elapsed before completion.
            ProcessFailedError: Poetry exited with a non-zero status.
        """
        command = [str(self.executable()), *args]
        cwd = str(working_directory)

        logger.debug("Running %s (cwd=%s)", format_command(command), cwd)
        started = time.monotonic()

        process = self._spawn(command, cwd)
        stdout, stderr = self._communicate(
            process,
            command=command,
            cwd=cwd,
            timeout=timeout,
            cancel_event=cancel_event,
        )

        logger.debug(
            "Poetry exited with %s after %.2fs",
            process.returncode,
            time.monotonic() - started,
        )

        if process.returncode != 0:
            raise ProcessFailedError(
                exit_code=process.returncode,
                stdout=stdout,
                stderr=stderr,
                command=command,
                working_directory=cwd,
            )

        should_trim = self.trim_trailing_newline if trim is None else trim
        return trim_trailing_newline(stdout) if should_trim else stdout

    def run_or_default(
        self,
        working_directory: PathLike,
        args: Sequence[str],
        default: T,
        timeout: Optional[float] = None,
        *,
        trim: Optional[bool] = None,
    ) -> Union[str, T]:
        """Run a best-effort query, returning *default* instead of failing.

        The call is bounded by ``timeout`` (default
        :attr:`best_effort_timeout`). Missing executables, non-zero exits and
        timeouts yield *default*; they are logged, not raised.
        """
        bound = self.best_effort_timeout if timeout is None else timeout
        try:
            return self.run(working_directory, args, timeout=bound, trim=trim)
        except (ExecutableNotFoundError, ProcessFailedError, ProcessTimeoutError) as exc:
            logger.warning("poetry %s failed, using default: %s", " ".join(args), exc)
            return default

    # ------------------------------------------------------------------
    # Process handling
    # ------------------------------------------------------------------

    def _spawn(self, command: List[str], cwd: str) -> subprocess.Popen:
        """Start *command* in a fresh process group."""
        kwargs = {}
        if sys.platform == "win32":
            kwargs["creationflags"] = subprocess.CREATE_NEW_PROCESS_GROUP
        else:
            kwargs["start_new_session"] = True

        try:
            return subprocess.Popen(
                command,
                cwd=cwd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                **kwargs,
            )
        except (FileNotFoundError, PermissionError) as exc:
            raise ExecutableNotFoundError(
                f"Cannot start Poetry: {exc}",
                configured_path=command[0],
            ) from exc

    def _communicate(
        self,
        process: subprocess.Popen,
        *,
        command: List[str],
        cwd: str,
        timeout: Optional[float],
        cancel_event: Optional[threading.Event],
    ) -> Tuple[str, str]:
        """Wait for *process*, honouring the deadline and cancellation."""
        deadline = time.monotonic() + timeout if timeout is not None else None

        while True:
            if cancel_event is not None and cancel_event.is_set():
                self._terminate(process)
                raise ProcessCancelledError(command=command, working_directory=cwd)

            wait: Optional[float] = (
                self.poll_interval if cancel_event is not None else None
            )
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    self._terminate(process)
                    raise ProcessTimeoutError(
                        timeout=timeout,
                        command=command,
                        working_directory=cwd,
                    )
                wait = remaining if wait is None else min(wait, remaining)

            try:
                # Retrying communicate() after TimeoutExpired loses no output
                return process.communicate(timeout=wait)
            except subprocess.TimeoutExpired:
                continue

    def _terminate(self, process: subprocess.Popen) -> None:
        """Kill *process* and every process in its group, then reap it."""
        logger.debug("Killing Poetry process tree (pid=%s)", process.pid)
        if sys.platform == "win32":
            if process.poll() is None:
                subprocess.run(
                    ["taskkill", "/F", "/T", "/PID", str(process.pid)],
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                    check=False,
                )
        else:
            # The group outlives its leader while grandchildren hold the pipes
            try:
                os.killpg(process.pid, signal.SIGKILL)
            except (ProcessLookupError, PermissionError):
                pass
        if process.poll() is None:
            process.kill()

        try:
            process.communicate(timeout=self.best_effort_timeout)
        except subprocess.TimeoutExpired:
            logger.warning("Poetry process %s did not exit after kill", process.pid)
