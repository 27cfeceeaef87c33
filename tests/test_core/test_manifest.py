from __future__ import annotations

import os
from pathlib import Path

import pytest

from poetrykeeper.core.manifest import (
    ManifestCache,
    is_poetry_manifest,
    read_manifest,
    read_manifest_file,
)
from poetrykeeper.models import Requirement

POETRY_MANIFEST = b"""\
[tool.poetry]
name = "demo"
version = "0.1.0"

[tool.poetry.dependencies]
python = "^3.8"
requests = "^2.28"
rich = { version = ">=13", extras = ["jupyter"], markers = "python_version >= '3.8'" }
mylib = { git = "https://example.com/mylib.git" }

[tool.poetry.dev-dependencies]
pytest = "^7.0"

[tool.poetry.group.docs.dependencies]
sphinx = "*"

[tool.poetry.scripts]
demo = "demo.cli:main"

[tool.poetry.extras]
speedups = ["orjson", "uvloop"]
"""


def _bump_mtime(path: Path) -> None:
    stat = path.stat()
    os.utime(path, ns=(stat.st_atime_ns, stat.st_mtime_ns + 5_000_000_000))


@pytest.mark.unit
class TestIsPoetryManifest:
    """Tests for is_poetry_manifest."""

    def test_poetry_manifest(self) -> None:
        assert is_poetry_manifest(POETRY_MANIFEST) is True

    @pytest.mark.parametrize(
        "content",
        [
            b"",
            b"\x00\xff not toml at all [[[",
            b"[tool.black]\nline-length = 88\n",
            b'[project]\nname = "demo"\n',
            b'tool = "poetry"\n',
            b'[tool]\npoetry = "yes"\n',
            b"[tool.poetry\n",
        ],
        ids=["empty", "garbage", "other-tool", "pep621", "tool-string", "poetry-string", "truncated"],
    )
    def test_not_poetry_manifest(self, content: bytes) -> None:
        """Never raises; anything without a tool.poetry table is False."""
        assert is_poetry_manifest(content) is False


@pytest.mark.unit
class TestReadManifest:
    """Tests for read_manifest."""

    def test_reads_sections(self) -> None:
        manifest = read_manifest(POETRY_MANIFEST)

        assert manifest is not None
        assert manifest.name == "demo"
        assert manifest.version == "0.1.0"
        assert [r.name for r in manifest.dependencies] == ["requests", "rich", "mylib"]
        assert [r.name for r in manifest.dev_dependencies] == ["pytest", "sphinx"]
        assert manifest.scripts == {"demo": "demo.cli:main"}
        assert manifest.extras == {"speedups": ("orjson", "uvloop")}

    def test_table_dependency(self) -> None:
        manifest = read_manifest(POETRY_MANIFEST)

        assert manifest is not None
        rich = manifest.dependencies[1]
        assert rich == Requirement(
            name="rich",
            version_constraint=">=13",
            extras=frozenset({"jupyter"}),
            markers="python_version >= '3.8'",
        )

    def test_vcs_dependency_has_no_constraint(self) -> None:
        manifest = read_manifest(POETRY_MANIFEST)

        assert manifest is not None
        assert manifest.dependencies[2].version_constraint is None

    def test_multiple_constraints_use_first(self) -> None:
        content = b"""\
[tool.poetry.dependencies]
foo = [
    { version = "<=1.9", python = "<3.8" },
    { version = "^2.0", python = ">=3.8" },
]
"""
        manifest = read_manifest(content)

        assert manifest is not None
        assert manifest.dependencies[0].version_constraint == "<=1.9"

    @pytest.mark.parametrize(
        "bad_entry",
        [
            b'bad = { version = "^1.0", extras = 5 }\n',
            b'"" = "^1.0"\n',
        ],
        ids=["extras-not-a-list", "empty-name"],
    )
    def test_malformed_dependency_skipped(self, bad_entry: bytes) -> None:
        """A badly shaped entry is dropped; its neighbours still read."""
        content = (
            b'[tool.poetry]\nname = "x"\n\n[tool.poetry.dependencies]\n'
            + bad_entry
            + b'requests = "^2.28"\n'
        )

        manifest = read_manifest(content)

        assert manifest is not None
        assert [r.name for r in manifest.dependencies] == ["requests"]

    def test_not_poetry_returns_none(self) -> None:
        assert read_manifest(b"[tool.black]\n") is None
        assert read_manifest(b"not = [valid") is None


@pytest.mark.unit
class TestReadManifestFile:
    """Tests for read_manifest_file."""

    def test_reads_file(self, tmp_path: Path) -> None:
        path = tmp_path / "pyproject.toml"
        path.write_bytes(POETRY_MANIFEST)

        manifest = read_manifest_file(path)

        assert manifest is not None
        assert manifest.extras == {"speedups": ("orjson", "uvloop")}

    def test_missing_file(self, tmp_path: Path) -> None:
        assert read_manifest_file(tmp_path / "pyproject.toml") is None


@pytest.mark.unit
class TestManifestCache:
    """Tests for ManifestCache."""

    def test_missing_file(self, tmp_path: Path) -> None:
        cache = ManifestCache()

        assert cache.fingerprint(tmp_path / "pyproject.toml") == (None, False)

    def test_caches_until_stamp_changes(self, tmp_path: Path) -> None:
        path = tmp_path / "pyproject.toml"
        path.write_bytes(b"[tool.black]\n")
        cache = ManifestCache()

        stamp, verdict = cache.fingerprint(path)
        assert verdict is False
        assert stamp == path.stat().st_mtime_ns
        assert len(cache) == 1

        path.write_bytes(POETRY_MANIFEST)
        _bump_mtime(path)

        new_stamp, new_verdict = cache.fingerprint(path)
        assert new_verdict is True
        assert new_stamp != stamp

    def test_same_stamp_reuses_verdict(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "pyproject.toml"
        path.write_bytes(POETRY_MANIFEST)
        cache = ManifestCache()
        cache.fingerprint(path)

        calls = []
        monkeypatch.setattr(
            "poetrykeeper.core.manifest.is_poetry_manifest",
            lambda content: calls.append(content) or False,
        )

        assert cache.is_poetry(path) is True
        assert calls == []

    def test_identity_keys_are_independent(self, tmp_path: Path) -> None:
        path = tmp_path / "pyproject.toml"
        path.write_bytes(POETRY_MANIFEST)
        cache = ManifestCache()

        cache.fingerprint(path, identity="project-a")
        cache.fingerprint(path, identity="project-b")

        assert len(cache) == 2
        cache.invalidate("project-a")
        assert len(cache) == 1
        cache.clear()
        assert len(cache) == 0

    def test_deleted_file_drops_entry(self, tmp_path: Path) -> None:
        path = tmp_path / "pyproject.toml"
        path.write_bytes(POETRY_MANIFEST)
        cache = ManifestCache()
        cache.fingerprint(path, identity="demo")

        path.unlink()

        assert cache.fingerprint(path, identity="demo") == (None, False)
        assert len(cache) == 0
