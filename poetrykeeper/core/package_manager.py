"""Poetry-backed package manager for one project environment.

:class:`PoetryPackageManager` keeps the installed packages and pending
requirements reported by ``poetry install --dry-run`` and wraps the Poetry
commands that change an environment. Interactive actions raise on failure;
queries used for display are best-effort and fall back to a default.

:class:`PoetryServices` owns the runner and every shared cache. Build one
per application (or per test) and pass it around; nothing here is a
module-level singleton.

Typical usage::

    services = PoetryServices.from_config(config)
    manager = services.package_manager(project_dir)

    installed = manager.refresh_and_get_packages()
    manager.add(["requests"])
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, TYPE_CHECKING, Union

from poetrykeeper.constants import POETRY_LOCK, PY_PROJECT_TOML
from poetrykeeper.core.env_cache import EnvironmentCache
from poetrykeeper.core.lock_parser import LockFileCache
from poetrykeeper.core.manifest import ManifestCache, PoetryManifest, read_manifest_file
from poetrykeeper.core.output_parser import (
    parse_bool,
    parse_dry_run,
    parse_env_list,
    parse_outdated,
    parse_version,
)
from poetrykeeper.core.runner import PoetryRunner
from poetrykeeper.exceptions import PoetryKeeperError
from poetrykeeper.models.environment import PoetryEnvironment
from poetrykeeper.models.lockfile import LockParseResult
from poetrykeeper.models.outdated import OutdatedEntry
from poetrykeeper.models.package import Package
from poetrykeeper.models.requirement import Requirement
from poetrykeeper.utils.logger import get_logger

if TYPE_CHECKING:
    from poetrykeeper.config import PoetryKeeperConfig

logger = get_logger("package_manager")

__all__ = [
    "PackageManagerRegistry",
    "PoetryPackageManager",
    "PoetryServices",
    "is_poetry_environment",
]

PathLike = Union[str, Path]
Listener = Callable[["PoetryPackageManager"], None]


class PoetryPackageManager:
    """Package state and Poetry actions for a single project.

    Args:
        project_path: Directory containing ``pyproject.toml``.
        runner: Runner used for every Poetry invocation.
        manifest_cache: Cache consulted by :meth:`setup_environment`.
    """

    def __init__(
        self,
        project_path: PathLike,
        runner: PoetryRunner,
        *,
        manifest_cache: Optional[ManifestCache] = None,
    ) -> None:
        self.project_path = Path(project_path)
        self.runner = runner
        self.manifest_cache = manifest_cache or ManifestCache()

        self._packages: Optional[List[Package]] = None
        self._requirements: List[Requirement] = []
        self._listeners: List[Listener] = []
        self._suppress_notification = False

        # Refresh coalescing: a ticket is served by any refresh that starts
        # after it was issued.
        self._condition = threading.Condition()
        self._requested = 0
        self._completed = 0
        self._refreshing = False
        self._last_error: Optional[BaseException] = None

    def __repr__(self) -> str:
        return f"PoetryPackageManager(project_path={str(self.project_path)!r})"

    # ------------------------------------------------------------------
    # Package state
    # ------------------------------------------------------------------

    @property
    def packages(self) -> Optional[List[Package]]:
        """Installed packages from the last refresh, None before the first."""
        with self._condition:
            return None if self._packages is None else list(self._packages)

    @property
    def requirements(self) -> List[Requirement]:
        """Requirements ``install`` would still install, from the last refresh."""
        with self._condition:
            return list(self._requirements)

    def add_listener(self, listener: Listener) -> None:
        """Call *listener* with this manager after every refresh."""
        with self._condition:
            self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        with self._condition:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def suppress_next_notification(self) -> None:
        """Skip listener notification for the next completed refresh only."""
        with self._condition:
            self._suppress_notification = True

    def refresh_and_get_packages(self, always_refresh: bool = False) -> List[Package]:
        """Return installed packages, running ``install --dry-run`` when needed.

        A refresh runs when *always_refresh* is set or nothing has been
        loaded yet. Callers arriving while a refresh is running wait for it
        to finish and are then served together by a single follow-up run.

        Raises:
            PoetryKeeperError: The dry run failed. Packages are reset to an
                empty list before the error propagates.
        """
        with self._condition:
            if not always_refresh and self._packages is not None:
                return list(self._packages)

            self._requested += 1
            ticket = self._requested
            while self._completed < ticket and self._refreshing:
                self._condition.wait()

            if self._completed >= ticket:
                if self._last_error is not None:
                    raise self._last_error
                return list(self._packages or [])

            self._refreshing = True
            target = self._requested

        try:
            output = self.runner.run(self.project_path, ["install", "--dry-run"])
            installed, pending = parse_dry_run(output)
        except BaseException as exc:
            with self._condition:
                self._packages = []
                self._requirements = []
                self._last_error = exc
                self._finish_refresh(target)
            raise

        with self._condition:
            self._packages = installed
            self._requirements = pending
            self._last_error = None
            self._finish_refresh(target)
            notify = not self._suppress_notification
            self._suppress_notification = False
            listeners = list(self._listeners)

        logger.debug(
            "Refreshed %s: %d installed, %d to install",
            self.project_path,
            len(installed),
            len(pending),
        )
        if notify:
            for listener in listeners:
                listener(self)
        return list(installed)

    def _finish_refresh(self, target: int) -> None:
        # Caller holds the condition
        self._completed = max(self._completed, target)
        self._refreshing = False
        self._condition.notify_all()

    # ------------------------------------------------------------------
    # Interactive actions
    # ------------------------------------------------------------------

    def _run_action(
        self,
        args: Sequence[str],
        cancel_event: Optional[threading.Event] = None,
    ) -> str:
        """Run a modifying command and refresh the package list afterwards.

        The refresh also runs when the command fails; a refresh failure then
        is logged and the command's error is raised.
        """
        try:
            output = self.runner.run(self.project_path, args, cancel_event=cancel_event)
        except PoetryKeeperError:
            try:
                self.refresh_and_get_packages(always_refresh=True)
            except PoetryKeeperError as refresh_error:
                logger.warning("Refresh after failed command failed: %s", refresh_error)
            raise
        self.refresh_and_get_packages(always_refresh=True)
        return output

    def install(
        self,
        extra_args: Sequence[str] = (),
        *,
        no_root: bool = False,
        cancel_event: Optional[threading.Event] = None,
    ) -> str:
        """``poetry install [--no-root] [extra_args...]``."""
        args = ["install"]
        if no_root:
            args.append("--no-root")
        args.extend(extra_args)
        return self._run_action(args, cancel_event)

    def add(
        self,
        names: Sequence[str],
        cancel_event: Optional[threading.Event] = None,
    ) -> str:
        """``poetry add <names...>``."""
        if not names:
            raise ValueError("At least one package name is required")
        return self._run_action(["add", *names], cancel_event)

    def remove(
        self,
        names: Sequence[str],
        cancel_event: Optional[threading.Event] = None,
    ) -> str:
        """``poetry remove <names...>``."""
        if not names:
            raise ValueError("At least one package name is required")
        return self._run_action(["remove", *names], cancel_event)

    def install_extras(
        self,
        name: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> str:
        """``poetry install --extras <name>``."""
        return self._run_action(["install", "--extras", name], cancel_event)

    def lock(
        self,
        no_update: bool = False,
        cancel_event: Optional[threading.Event] = None,
    ) -> str:
        """``poetry lock [--no-update]``."""
        args = ["lock", "--no-update"] if no_update else ["lock"]
        return self._run_action(args, cancel_event)

    def update(self, cancel_event: Optional[threading.Event] = None) -> str:
        """``poetry update``."""
        return self._run_action(["update"], cancel_event)

    def run(
        self,
        args: Sequence[str],
        cancel_event: Optional[threading.Event] = None,
    ) -> str:
        """``poetry run <args...>``; the package list is not refreshed."""
        return self.runner.run(self.project_path, ["run", *args], cancel_event=cancel_event)

    def env_use(
        self,
        python: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> str:
        """``poetry env use <python>``."""
        return self.runner.run(
            self.project_path, ["env", "use", python], cancel_event=cancel_event
        )

    def setup_environment(
        self,
        python: Optional[str] = None,
        install_packages: bool = True,
        cancel_event: Optional[threading.Event] = None,
    ) -> Path:
        """Create (or reuse) the project's environment and return its path.

        Runs ``poetry init -n`` first when the project has no Poetry
        manifest. With *install_packages* the environment is populated by
        ``poetry install``; otherwise it is created by selecting *python* or
        by running ``python -V`` inside it.
        """
        manifest = self.project_path / PY_PROJECT_TOML
        if not self.manifest_cache.is_poetry(manifest):
            logger.info("No Poetry manifest in %s, running poetry init", self.project_path)
            self.runner.run(self.project_path, ["init", "-n"], cancel_event=cancel_event)
            self.manifest_cache.invalidate(str(manifest.resolve()))

        if install_packages:
            if python is not None:
                self.env_use(python, cancel_event)
            self.runner.run(self.project_path, ["install"], cancel_event=cancel_event)
        elif python is not None:
            self.env_use(python, cancel_event)
        else:
            self.runner.run(
                self.project_path, ["run", "python", "-V"], cancel_event=cancel_event
            )

        return Path(
            self.runner.run(
                self.project_path, ["env", "info", "-p"], cancel_event=cancel_event
            ).strip()
        )

    # ------------------------------------------------------------------
    # Best-effort queries
    # ------------------------------------------------------------------

    def env_info_path(self) -> Optional[Path]:
        """Path of the active environment, or None."""
        output = self.runner.run_or_default(self.project_path, ["env", "info", "-p"], "")
        return Path(output.strip()) if output.strip() else None

    def env_list(self) -> List[PoetryEnvironment]:
        output = self.runner.run_or_default(
            self.project_path, ["env", "list", "--full-path"], ""
        )
        return parse_env_list(output)

    def version(self) -> Optional[str]:
        """Poetry's version, or None when it cannot be determined."""
        return parse_version(self.runner.run_or_default(self.project_path, ["--version"], ""))

    def virtualenvs_in_project(self) -> Optional[bool]:
        """Value of ``virtualenvs.in-project``; None when unset or unknown."""
        output = self.runner.run_or_default(
            self.project_path, ["config", "virtualenvs.in-project"], ""
        )
        return parse_bool(output)

    def show_outdated(self) -> Dict[str, OutdatedEntry]:
        output = self.runner.run_or_default(self.project_path, ["show", "--outdated"], "")
        return parse_outdated(output)


def _is_within(path: Path, root: Path) -> bool:
    try:
        path.relative_to(root)
    except ValueError:
        return False
    return True


def is_poetry_environment(
    manager: PoetryPackageManager,
    interpreter: Optional[PathLike],
    cache: EnvironmentCache,
) -> bool:
    """Whether *interpreter* lives in one of the project's Poetry environments.

    Environments come from ``env list --full-path`` plus ``env info -p``.
    Verdicts are memoized in *cache* per project and interpreter.
    """
    if interpreter is None:
        return False
    candidate = Path(interpreter).absolute()

    def compute() -> bool:
        roots = [env.path for env in manager.env_list()]
        active = manager.env_info_path()
        if active is not None:
            roots.append(active)
        return any(_is_within(candidate, root.absolute()) for root in roots)

    return cache.get_or_compute(manager.project_path, candidate, compute)


class PackageManagerRegistry:
    """One package manager per environment key, created on first use."""

    def __init__(self) -> None:
        self._managers: Dict[str, PoetryPackageManager] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._managers)

    def for_environment(
        self,
        key: str,
        factory: Callable[[], PoetryPackageManager],
    ) -> PoetryPackageManager:
        with self._lock:
            manager = self._managers.get(key)
            if manager is None:
                manager = factory()
                self._managers[key] = manager
            return manager

    def clear(self, key: Optional[str] = None) -> None:
        """Forget the manager for *key*, or every manager when *key* is None."""
        with self._lock:
            if key is None:
                self._managers.clear()
            else:
                self._managers.pop(key, None)


class PoetryServices:
    """Runner plus the shared caches, scoped to one application instance."""

    def __init__(
        self,
        runner: Optional[PoetryRunner] = None,
        *,
        manifest_cache: Optional[ManifestCache] = None,
        lock_cache: Optional[LockFileCache] = None,
        environment_cache: Optional[EnvironmentCache] = None,
        registry: Optional[PackageManagerRegistry] = None,
    ) -> None:
        self.runner = runner or PoetryRunner()
        self.manifest_cache = manifest_cache or ManifestCache()
        self.lock_cache = lock_cache or LockFileCache()
        self.environment_cache = environment_cache or EnvironmentCache()
        self.registry = registry or PackageManagerRegistry()

    @classmethod
    def from_config(
        cls,
        config: "PoetryKeeperConfig",
        poetry_path: Optional[str] = None,
    ) -> "PoetryServices":
        """Build services from configuration; *poetry_path* overrides the config."""
        runner = PoetryRunner(
            poetry_path or config.poetry_path,
            trim_trailing_newline=config.trim_trailing_newline,
            best_effort_timeout=config.timeout,
        )
        return cls(runner)

    def package_manager(self, project_path: PathLike) -> PoetryPackageManager:
        project = Path(project_path).resolve()
        return self.registry.for_environment(
            str(project),
            lambda: PoetryPackageManager(
                project, self.runner, manifest_cache=self.manifest_cache
            ),
        )

    def is_poetry_project(self, project_path: PathLike) -> bool:
        return self.manifest_cache.is_poetry(Path(project_path) / PY_PROJECT_TOML)

    def read_manifest(self, project_path: PathLike) -> Optional[PoetryManifest]:
        return read_manifest_file(Path(project_path) / PY_PROJECT_TOML)

    def read_lock(self, project_path: PathLike) -> LockParseResult:
        return self.lock_cache.get(Path(project_path) / POETRY_LOCK)

    def is_poetry_environment(
        self,
        project_path: PathLike,
        interpreter: Optional[PathLike],
    ) -> bool:
        return is_poetry_environment(
            self.package_manager(project_path), interpreter, self.environment_cache
        )

    def clear(self) -> None:
        self.manifest_cache.clear()
        self.lock_cache.clear()
        self.environment_cache.clear()
        self.registry.clear()
