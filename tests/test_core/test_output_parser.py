"""Tests for poetrykeeper.core.output_parser.

Dry-run and outdated fixtures under ``tests/fixtures`` are named after the
Poetry renderer that produced them; a new layout gets a new fixture.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from poetrykeeper.core.output_parser import (
    parse_bool,
    parse_dry_run,
    parse_env_list,
    parse_outdated,
    parse_version,
)
from poetrykeeper.models import OutdatedEntry, Package, PoetryEnvironment, Requirement

FIXTURES = Path(__file__).resolve().parent.parent / "fixtures"


def _fixture(*parts: str) -> str:
    return FIXTURES.joinpath(*parts).read_text(encoding="utf-8")


@pytest.mark.unit
class TestParseDryRun:
    """Tests for parse_dry_run."""

    def test_poetry_1_0_renderer(self) -> None:
        """One skipped package and three installs, duplicates removed."""
        installed, pending = parse_dry_run(_fixture("dry_run", "poetry_1_0.txt"))

        assert installed == [Package(name="six", version="1.15.0")]
        assert pending == [
            Requirement(name="attrs", version_constraint="==19.3.0"),
            Requirement(name="more-itertools", version_constraint="==8.4.0"),
            Requirement(name="pytest", version_constraint="==5.4.3"),
        ]

    def test_poetry_1_2_renderer(self) -> None:
        """The newer renderer's trailing colon and root project line are handled."""
        installed, pending = parse_dry_run(_fixture("dry_run", "poetry_1_2.txt"))

        assert installed == [Package(name="six", version="1.16.0")]
        assert [str(r) for r in pending] == [
            "attrs==22.1.0",
            "iniconfig==1.1.1",
            "pytest==7.1.3",
        ]

    def test_empty_input(self) -> None:
        assert parse_dry_run("") == ([], [])

    def test_deterministic_and_idempotent(self) -> None:
        text = _fixture("dry_run", "poetry_1_0.txt")

        assert parse_dry_run(text) == parse_dry_run(text)

    def test_lines_not_ending_in_version_ignored(self) -> None:
        text = "  - Installing attrs (19.3.0) extra\nUpdating dependencies\n"

        assert parse_dry_run(text) == ([], [])

    def test_truncated_line_skipped(self) -> None:
        """Lines with fewer than six tokens cannot carry a version."""
        assert parse_dry_run("Installing (1.0)") == ([], [])

    def test_already_installed_checked_before_installing(self) -> None:
        line = "  • Installing six (1.16.0): Skipped for the following reason: Already installed"

        installed, pending = parse_dry_run(line)

        assert installed == [Package(name="six", version="1.16.0")]
        assert pending == []

    def test_non_numeric_version_kept_verbatim(self) -> None:
        _, pending = parse_dry_run("  - Installing mylib (rev-9f1c2d)")

        assert pending == [Requirement(name="mylib", version_constraint="rev-9f1c2d")]


@pytest.mark.unit
class TestParseOutdated:
    """Tests for parse_outdated."""

    def test_poetry_1_1_rows(self) -> None:
        """Four well-formed rows; the two-token row is dropped."""
        result = parse_outdated(_fixture("outdated", "poetry_1_1.txt"))

        assert set(result) == {"boto3", "botocore", "docutils", "pytest"}
        assert result["boto3"] == OutdatedEntry(
            name="boto3",
            current_version="1.13.26",
            latest_version="1.14.38",
        )
        assert "broken" not in result

    def test_not_installed_marker_skipped(self) -> None:
        result = parse_outdated(_fixture("outdated", "poetry_1_2.txt"))

        assert result["docutils"].current_version == "0.15.2"
        assert result["docutils"].latest_version == "0.16"

    def test_marker_counts_toward_minimum(self) -> None:
        result = parse_outdated("docutils (!) 0.15.2 0.16\nsix (!) 1.0\n")

        assert result["docutils"] == OutdatedEntry(
            name="docutils",
            current_version="0.15.2",
            latest_version="0.16",
        )
        assert "six" not in result

    def test_last_row_wins(self) -> None:
        text = "six 1.0 1.1 first\nsix 1.0 1.2 second\n"

        assert parse_outdated(text)["six"].latest_version == "1.2"

    def test_empty_input(self) -> None:
        assert parse_outdated("") == {}


@pytest.mark.unit
class TestParseEnvList:
    """Tests for parse_env_list."""

    def test_activated_suffix(self) -> None:
        text = "/venvs/demo-py3.10\n/venvs/demo-py3.11 (Activated)\n\n"

        assert parse_env_list(text) == [
            PoetryEnvironment(path=Path("/venvs/demo-py3.10")),
            PoetryEnvironment(path=Path("/venvs/demo-py3.11"), activated=True),
        ]

    def test_empty_input(self) -> None:
        assert parse_env_list("") == []


@pytest.mark.unit
class TestParseVersion:
    """Tests for parse_version."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Poetry version 1.1.4", "1.1.4"),
            ("Poetry (version 1.8.3)", "1.8.3"),
            ("Poetry (version 2.0.0b1)\n", "2.0.0b1"),
            ("command not found", None),
            ("", None),
        ],
    )
    def test_versions(self, text: str, expected: str) -> None:
        assert parse_version(text) == expected


@pytest.mark.unit
class TestParseBool:
    """Tests for parse_bool."""

    @pytest.mark.parametrize(
        "text,expected",
        [("true", True), ("false\n", False), ("True", True), ("null", None), ("", None)],
    )
    def test_values(self, text: str, expected: object) -> None:
        assert parse_bool(text) is expected
