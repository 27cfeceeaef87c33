"""Tests for poetrykeeper.core.package_manager.

The runner is a ``MagicMock`` so no Poetry process is started; each test
scripts the output of the commands it cares about.
"""

from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Dict, List, Sequence
from unittest.mock import MagicMock

import pytest

from poetrykeeper.config import PoetryKeeperConfig
from poetrykeeper.core.env_cache import EnvironmentCache
from poetrykeeper.core.manifest import ManifestCache
from poetrykeeper.core.package_manager import (
    PackageManagerRegistry,
    PoetryPackageManager,
    PoetryServices,
    is_poetry_environment,
)
from poetrykeeper.core.runner import PoetryRunner
from poetrykeeper.exceptions import ProcessFailedError
from poetrykeeper.models import Package, PoetryEnvironment, Requirement

DRY_RUN = """\
Installing dependencies from lock file

Package operations: 1 install, 0 updates, 0 removals, 1 skipped

  - Skipping six (1.15.0) Already installed
  - Installing attrs (19.3.0)
"""


def _scripted_runner(outputs: Dict[str, str]) -> MagicMock:
    """Runner whose ``run`` answers by the joined argument vector."""
    runner = MagicMock(spec=PoetryRunner)
    runner.calls = []

    def run(working_directory, args: Sequence[str], timeout=None, cancel_event=None, *, trim=None):
        runner.calls.append(list(args))
        key = " ".join(args)
        if key not in outputs:
            raise ProcessFailedError(exit_code=1, stderr=f"unexpected: {key}")
        return outputs[key]

    def run_or_default(working_directory, args: Sequence[str], default, timeout=None, *, trim=None):
        try:
            return run(working_directory, args)
        except ProcessFailedError:
            return default

    runner.run.side_effect = run
    runner.run_or_default.side_effect = run_or_default
    return runner


@pytest.fixture
def project(tmp_path: Path) -> Path:
    (tmp_path / "pyproject.toml").write_text('[tool.poetry]\nname = "demo"\n')
    return tmp_path


@pytest.mark.unit
class TestRefresh:
    """Tests for refresh_and_get_packages."""

    def test_packages_unknown_before_refresh(self, project: Path) -> None:
        manager = PoetryPackageManager(project, _scripted_runner({}))

        assert manager.packages is None
        assert manager.requirements == []

    def test_dry_run_refresh(self, project: Path) -> None:
        runner = _scripted_runner({"install --dry-run": DRY_RUN})
        manager = PoetryPackageManager(project, runner)

        installed = manager.refresh_and_get_packages()

        assert installed == [Package(name="six", version="1.15.0")]
        assert manager.requirements == [Requirement(name="attrs", version_constraint="==19.3.0")]
        assert runner.calls == [["install", "--dry-run"]]

    def test_cached_until_forced(self, project: Path) -> None:
        runner = _scripted_runner({"install --dry-run": DRY_RUN})
        manager = PoetryPackageManager(project, runner)

        manager.refresh_and_get_packages()
        manager.refresh_and_get_packages()
        assert len(runner.calls) == 1

        manager.refresh_and_get_packages(always_refresh=True)
        assert len(runner.calls) == 2

    def test_failure_resets_and_reraises(self, project: Path) -> None:
        runner = _scripted_runner({"install --dry-run": DRY_RUN})
        manager = PoetryPackageManager(project, runner)
        manager.refresh_and_get_packages()

        runner.run.side_effect = ProcessFailedError(exit_code=1, stderr="boom")

        with pytest.raises(ProcessFailedError):
            manager.refresh_and_get_packages(always_refresh=True)

        assert manager.packages == []
        assert manager.requirements == []

    def test_listeners_notified(self, project: Path) -> None:
        manager = PoetryPackageManager(project, _scripted_runner({"install --dry-run": DRY_RUN}))
        seen = []
        manager.add_listener(seen.append)

        manager.refresh_and_get_packages()

        assert seen == [manager]

    def test_suppressed_notification_skips_one_refresh(self, project: Path) -> None:
        manager = PoetryPackageManager(project, _scripted_runner({"install --dry-run": DRY_RUN}))
        seen = []
        manager.add_listener(seen.append)

        manager.suppress_next_notification()
        manager.refresh_and_get_packages()
        assert seen == []

        manager.refresh_and_get_packages(always_refresh=True)
        assert seen == [manager]

    def test_removed_listener(self, project: Path) -> None:
        manager = PoetryPackageManager(project, _scripted_runner({"install --dry-run": DRY_RUN}))
        seen = []
        manager.add_listener(seen.append)
        manager.remove_listener(seen.append)

        manager.refresh_and_get_packages()

        assert seen == []

    def test_concurrent_callers_share_follow_up_refresh(self, project: Path) -> None:
        """Callers queued behind a running refresh are served by one more run."""
        started = threading.Event()
        release = threading.Event()
        calls = []

        def run(working_directory, args, timeout=None, cancel_event=None, *, trim=None):
            calls.append(list(args))
            if len(calls) == 1:
                started.set()
                release.wait(5)
            return DRY_RUN

        runner = MagicMock(spec=PoetryRunner)
        runner.run.side_effect = run
        manager = PoetryPackageManager(project, runner)

        first = threading.Thread(target=manager.refresh_and_get_packages, kwargs={"always_refresh": True})
        first.start()
        assert started.wait(5)

        waiters = [
            threading.Thread(target=manager.refresh_and_get_packages, kwargs={"always_refresh": True})
            for _ in range(3)
        ]
        for thread in waiters:
            thread.start()
        deadline = time.monotonic() + 5
        while manager._requested < 4 and time.monotonic() < deadline:
            time.sleep(0.01)
        release.set()
        for thread in [first, *waiters]:
            thread.join(5)

        assert len(calls) == 2


@pytest.mark.unit
class TestActions:
    """Tests for the modifying Poetry actions."""

    @pytest.mark.parametrize(
        "invoke,expected",
        [
            (lambda m: m.install(), ["install"]),
            (lambda m: m.install(["--extras", "speedups"], no_root=True), ["install", "--no-root", "--extras", "speedups"]),
            (lambda m: m.add(["requests", "rich"]), ["add", "requests", "rich"]),
            (lambda m: m.remove(["six"]), ["remove", "six"]),
            (lambda m: m.install_extras("speedups"), ["install", "--extras", "speedups"]),
            (lambda m: m.lock(), ["lock"]),
            (lambda m: m.lock(no_update=True), ["lock", "--no-update"]),
            (lambda m: m.update(), ["update"]),
        ],
        ids=["install", "install-no-root", "add", "remove", "extras", "lock", "lock-no-update", "update"],
    )
    def test_action_then_refresh(self, project: Path, invoke, expected: List[str]) -> None:
        runner = _scripted_runner({" ".join(expected): "done\n", "install --dry-run": DRY_RUN})
        manager = PoetryPackageManager(project, runner)

        assert invoke(manager) == "done\n"
        assert runner.calls == [expected, ["install", "--dry-run"]]
        assert manager.packages == [Package(name="six", version="1.15.0")]

    def test_add_requires_names(self, project: Path) -> None:
        manager = PoetryPackageManager(project, _scripted_runner({}))

        with pytest.raises(ValueError):
            manager.add([])

    def test_failed_action_still_refreshes(self, project: Path) -> None:
        runner = _scripted_runner({"install --dry-run": DRY_RUN})
        manager = PoetryPackageManager(project, runner)

        with pytest.raises(ProcessFailedError):
            manager.add(["does-not-exist"])

        assert runner.calls[-1] == ["install", "--dry-run"]
        assert manager.packages == [Package(name="six", version="1.15.0")]

    def test_failed_action_and_refresh_raise_action_error(self, project: Path) -> None:
        runner = _scripted_runner({})
        manager = PoetryPackageManager(project, runner)

        with pytest.raises(ProcessFailedError) as exc_info:
            manager.update()

        assert "update" in str(exc_info.value)
        assert manager.packages == []

    def test_run_does_not_refresh(self, project: Path) -> None:
        runner = _scripted_runner({"run pytest -q": "ok"})
        manager = PoetryPackageManager(project, runner)

        assert manager.run(["pytest", "-q"]) == "ok"
        assert runner.calls == [["run", "pytest", "-q"]]
        assert manager.packages is None

    def test_env_use(self, project: Path) -> None:
        runner = _scripted_runner({"env use python3.11": "Using virtualenv"})
        manager = PoetryPackageManager(project, runner)

        assert manager.env_use("python3.11") == "Using virtualenv"


@pytest.mark.unit
class TestSetupEnvironment:
    """Tests for setup_environment."""

    def test_install_with_interpreter(self, project: Path) -> None:
        runner = _scripted_runner(
            {
                "env use python3.11": "",
                "install": "",
                "env info -p": "/venvs/demo-py3.11\n",
            }
        )
        manager = PoetryPackageManager(project, runner)

        path = manager.setup_environment("python3.11")

        assert path == Path("/venvs/demo-py3.11")
        assert runner.calls == [["env", "use", "python3.11"], ["install"], ["env", "info", "-p"]]

    def test_without_install_or_interpreter(self, project: Path) -> None:
        runner = _scripted_runner({"run python -V": "Python 3.11.4", "env info -p": "/venvs/demo"})
        manager = PoetryPackageManager(project, runner)

        manager.setup_environment(install_packages=False)

        assert runner.calls == [["run", "python", "-V"], ["env", "info", "-p"]]

    def test_interpreter_without_install(self, project: Path) -> None:
        runner = _scripted_runner({"env use python3": "", "env info -p": "/venvs/demo"})
        manager = PoetryPackageManager(project, runner)

        manager.setup_environment("python3", install_packages=False)

        assert runner.calls == [["env", "use", "python3"], ["env", "info", "-p"]]

    def test_init_when_not_poetry_project(self, tmp_path: Path) -> None:
        runner = _scripted_runner({"init -n": "", "install": "", "env info -p": "/venvs/demo"})
        manager = PoetryPackageManager(tmp_path, runner, manifest_cache=ManifestCache())

        manager.setup_environment()

        assert runner.calls[0] == ["init", "-n"]


@pytest.mark.unit
class TestQueries:
    """Tests for the best-effort queries."""

    def test_values(self, project: Path) -> None:
        runner = _scripted_runner(
            {
                "env info -p": "/venvs/demo-py3.11",
                "env list --full-path": "/venvs/demo-py3.11 (Activated)",
                "--version": "Poetry (version 1.8.3)",
                "config virtualenvs.in-project": "true",
                "show --outdated": "six 1.15.0 1.16.0 Python 2 and 3 compatibility utilities",
            }
        )
        manager = PoetryPackageManager(project, runner)

        assert manager.env_info_path() == Path("/venvs/demo-py3.11")
        assert manager.env_list() == [PoetryEnvironment(path=Path("/venvs/demo-py3.11"), activated=True)]
        assert manager.version() == "1.8.3"
        assert manager.virtualenvs_in_project() is True
        assert manager.show_outdated()["six"].latest_version == "1.16.0"

    def test_defaults_on_failure(self, project: Path) -> None:
        manager = PoetryPackageManager(project, _scripted_runner({}))

        assert manager.env_info_path() is None
        assert manager.env_list() == []
        assert manager.version() is None
        assert manager.virtualenvs_in_project() is None
        assert manager.show_outdated() == {}


@pytest.mark.unit
class TestIsPoetryEnvironment:
    """Tests for is_poetry_environment."""

    def test_interpreter_inside_listed_environment(self, project: Path) -> None:
        runner = _scripted_runner(
            {"env list --full-path": "/venvs/demo-py3.10\n/venvs/demo-py3.11 (Activated)", "env info -p": ""}
        )
        manager = PoetryPackageManager(project, runner)
        cache = EnvironmentCache()

        assert is_poetry_environment(manager, "/venvs/demo-py3.10/bin/python", cache) is True
        assert is_poetry_environment(manager, "/venvs/demo-py3.10/bin/python", cache) is True
        assert runner.calls.count(["env", "list", "--full-path"]) == 1

    def test_active_environment_counts(self, project: Path) -> None:
        runner = _scripted_runner({"env list --full-path": "", "env info -p": "/work/demo/.venv"})
        manager = PoetryPackageManager(project, runner)

        assert is_poetry_environment(manager, "/work/demo/.venv/bin/python", EnvironmentCache()) is True

    def test_unrelated_interpreter(self, project: Path) -> None:
        runner = _scripted_runner({"env list --full-path": "/venvs/demo-py3.11", "env info -p": ""})
        manager = PoetryPackageManager(project, runner)

        assert is_poetry_environment(manager, "/usr/bin/python3", EnvironmentCache()) is False

    def test_no_interpreter(self, project: Path) -> None:
        manager = PoetryPackageManager(project, _scripted_runner({}))

        assert is_poetry_environment(manager, None, EnvironmentCache()) is False


@pytest.mark.unit
class TestServices:
    """Tests for PackageManagerRegistry and PoetryServices."""

    def test_registry_creates_once(self, project: Path) -> None:
        registry = PackageManagerRegistry()
        runner = _scripted_runner({})
        created = []

        def factory() -> PoetryPackageManager:
            created.append(1)
            return PoetryPackageManager(project, runner)

        first = registry.for_environment("demo", factory)
        assert registry.for_environment("demo", factory) is first
        assert len(created) == 1

        registry.clear("demo")
        assert len(registry) == 0

    def test_package_manager_keyed_by_resolved_path(self, project: Path) -> None:
        services = PoetryServices(_scripted_runner({}))
        (project / "sub").mkdir()

        first = services.package_manager(project)
        second = services.package_manager(project / "." / "sub" / "..")

        assert first is second
        assert len(services.registry) == 1

    def test_from_config(self) -> None:
        config = PoetryKeeperConfig(poetry_path="/opt/poetry", timeout=5.0, trim_trailing_newline=False)

        services = PoetryServices.from_config(config)

        assert services.runner.configured_path == "/opt/poetry"
        assert services.runner.best_effort_timeout == 5.0
        assert services.runner.trim_trailing_newline is False

    def test_from_config_override(self) -> None:
        config = PoetryKeeperConfig(poetry_path="/opt/poetry")

        services = PoetryServices.from_config(config, poetry_path="/usr/local/bin/poetry")

        assert services.runner.configured_path == "/usr/local/bin/poetry"

    def test_project_queries(self, project: Path) -> None:
        services = PoetryServices(_scripted_runner({}))

        assert services.is_poetry_project(project) is True
        assert services.read_lock(project).ok is False

    def test_clear(self, project: Path) -> None:
        services = PoetryServices(_scripted_runner({}))
        services.package_manager(project)
        services.is_poetry_project(project)

        services.clear()

        assert len(services.registry) == 0
        assert len(services.manifest_cache) == 0
