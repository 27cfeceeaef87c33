from __future__ import annotations

from pathlib import Path

import pytest

from poetrykeeper.core.env_cache import EnvironmentCache, cache_key


@pytest.mark.unit
class TestEnvironmentCache:
    """Tests for EnvironmentCache."""

    def test_key_joins_paths(self) -> None:
        assert cache_key("/work/demo", "/venvs/demo/bin/python") == "/work/demo:/venvs/demo/bin/python"

    def test_miss_then_hit(self) -> None:
        cache = EnvironmentCache()

        assert cache.get("/work/demo", "/usr/bin/python3") is None
        cache.put("/work/demo", "/usr/bin/python3", False)

        assert cache.get("/work/demo", "/usr/bin/python3") is False
        assert cache.get(Path("/work/demo"), Path("/usr/bin/python3")) is False

    def test_unknown_paths_not_stored(self) -> None:
        cache = EnvironmentCache()

        assert cache.put(None, "/usr/bin/python3", True) is True
        assert cache.put("/work/demo", None, True) is True

        assert len(cache) == 0
        assert cache.get(None, "/usr/bin/python3") is None

    def test_get_or_compute_runs_once(self) -> None:
        cache = EnvironmentCache()
        calls = []

        def compute() -> bool:
            calls.append(1)
            return True

        assert cache.get_or_compute("/work/demo", "/venvs/a/bin/python", compute) is True
        assert cache.get_or_compute("/work/demo", "/venvs/a/bin/python", compute) is True
        assert len(calls) == 1

    def test_get_or_compute_without_key_always_computes(self) -> None:
        cache = EnvironmentCache()
        calls = []

        def compute() -> bool:
            calls.append(1)
            return False

        cache.get_or_compute(None, "/venvs/a/bin/python", compute)
        cache.get_or_compute(None, "/venvs/a/bin/python", compute)

        assert len(calls) == 2

    def test_clear(self) -> None:
        cache = EnvironmentCache()
        cache.put("/work/demo", "/usr/bin/python3", True)

        cache.clear()

        assert len(cache) == 0
