from __future__ import annotations

import io
import json
from typing import Generator

import pytest
from rich.console import Console

import poetrykeeper.utils.console as console_module
from poetrykeeper.utils.console import (
    POETRYKEEPER_THEME,
    _get_console,
    _should_use_color,
    colorize_update_type,
    print_error,
    print_info,
    print_json,
    print_success,
    print_table,
    print_warning,
    reconfigure_console,
)


@pytest.fixture(autouse=True)
def reset_console() -> Generator[None, None, None]:
    """Drop the shared console before and after each test."""
    reconfigure_console()
    yield
    reconfigure_console()


@pytest.fixture
def output(monkeypatch: pytest.MonkeyPatch) -> io.StringIO:
    """Route the shared console into a buffer."""
    buffer = io.StringIO()
    console = Console(file=buffer, theme=POETRYKEEPER_THEME, no_color=True, width=120)
    monkeypatch.setattr(console_module, "_console", console)
    return buffer


@pytest.mark.unit
class TestConsoleLifecycle:
    """Tests for the shared console."""

    def test_singleton(self) -> None:
        assert _get_console() is _get_console()

    def test_reconfigure_creates_new_console(self) -> None:
        first = _get_console()

        reconfigure_console()

        assert _get_console() is not first

    def test_no_color_disables_color(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("NO_COLOR", "1")

        assert _should_use_color() is False

    def test_ci_disables_color(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("CI", "1")

        assert _should_use_color() is False


@pytest.mark.unit
class TestStatusMessages:
    """Tests for the print_* helpers."""

    def test_success(self, output: io.StringIO) -> None:
        print_success("Lock file updated")

        assert output.getvalue() == "[OK] Lock file updated\n"

    def test_error(self, output: io.StringIO) -> None:
        print_error("Cannot find Poetry")

        assert output.getvalue() == "[ERROR] Cannot find Poetry\n"

    def test_warning_custom_prefix(self, output: io.StringIO) -> None:
        print_warning("poetry.lock is out of date", prefix="!")

        assert output.getvalue() == "! poetry.lock is out of date\n"

    def test_markup_not_interpreted(self, output: io.StringIO) -> None:
        """Package names with brackets (extras) are printed verbatim."""
        print_info("rich[jupyter]>=13")

        assert output.getvalue() == "rich[jupyter]>=13\n"


@pytest.mark.unit
class TestStructuredOutput:
    """Tests for print_table and print_json."""

    def test_table(self, output: io.StringIO) -> None:
        print_table(
            [
                {"Package": "six", "Current": "1.15.0", "Latest": "1.16.0"},
                {"Package": "attrs", "Current": "19.3.0"},
            ],
            title="Outdated packages",
        )

        text = output.getvalue()
        assert "Outdated packages" in text
        assert "six" in text
        assert "1.16.0" in text
        assert "attrs" in text

    def test_table_header_order(self, output: io.StringIO) -> None:
        print_table([{"b": "2", "a": "1"}], headers=["a", "b"])

        header = next(line for line in output.getvalue().splitlines() if "a" in line and "b" in line)
        assert header.index("a") < header.index("b")

    def test_empty_table_prints_nothing(self, output: io.StringIO) -> None:
        print_table([])

        assert output.getvalue() == ""

    def test_json(self, capsys: pytest.CaptureFixture) -> None:
        print_json({"unsatisfied": [{"name": "foo"}]})

        assert json.loads(capsys.readouterr().out) == {"unsatisfied": [{"name": "foo"}]}


@pytest.mark.unit
class TestColorizeUpdateType:
    """Tests for colorize_update_type."""

    @pytest.mark.parametrize(
        "update_type,expected",
        [
            ("major", "[red]major[/red]"),
            ("Minor", "[yellow]Minor[/yellow]"),
            ("patch", "[green]patch[/green]"),
            ("unknown", "unknown"),
        ],
    )
    def test_labels(self, update_type: str, expected: str) -> None:
        assert colorize_update_type(update_type) == expected
