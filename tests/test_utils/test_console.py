from __future__ import annotations

import sys
from typing import Generator
from unittest.mock import patch

import pytest
from rich.console import Console

from bumpwise.utils.console import (
    BUMPWISE_THEME,
    _should_use_color,
    colorize_update_type,
    get_console,
    print_error,
    print_success,
    print_table,
    print_warning,
    reconfigure_console,
)


@pytest.fixture(autouse=True)
def reset_console() -> Generator[None, None, None]:
    """Reset the console singleton before and after each test."""
    reconfigure_console()
    yield
    reconfigure_console()


@pytest.fixture
def recording_console() -> Generator[Console, None, None]:
    """Replace the shared console with a recording, colorless one."""
    console = Console(record=True, no_color=True, width=120, theme=BUMPWISE_THEME)
    with patch("bumpwise.utils.console.get_console", return_value=console):
        yield console


@pytest.mark.unit
class TestColorDetection:
    """Tests for _should_use_color."""

    def test_no_color_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test NO_COLOR disables color."""
        monkeypatch.setenv("NO_COLOR", "1")
        assert _should_use_color() is False

    def test_ci_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test CI disables color."""
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("CI", "true")
        assert _should_use_color() is False

    def test_tty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test a TTY without overrides enables color."""
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("CI", raising=False)
        with patch.object(sys.stdout, "isatty", return_value=True):
            assert _should_use_color() is True


@pytest.mark.unit
class TestConsoleSingleton:
    """Tests for get_console and reconfigure_console."""

    def test_same_instance(self) -> None:
        """Test repeated calls return one console."""
        assert get_console() is get_console()

    def test_reconfigure_creates_new_instance(self) -> None:
        """Test reconfigure_console drops the cached console."""
        first = get_console()
        reconfigure_console()

        assert get_console() is not first


@pytest.mark.unit
class TestMessages:
    """Tests for status message helpers."""

    def test_success_prefix_is_printed(self, recording_console: Console) -> None:
        """Test the [OK] prefix is rendered literally, not as markup."""
        print_success("done")

        assert "[OK] done" in recording_console.export_text()

    def test_error_and_warning_prefixes(self, recording_console: Console) -> None:
        """Test the error and warning prefixes are rendered."""
        print_error("failed")
        print_warning("careful")

        output = recording_console.export_text()
        assert "[ERROR] failed" in output
        assert "[WARNING] careful" in output


@pytest.mark.unit
class TestPrintTable:
    """Tests for print_table."""

    def test_renders_rows(self, recording_console: Console) -> None:
        """Test headers and cells appear in the output."""
        print_table(
            [{"Package": "lib-a", "Version": "2.0"}],
            title="Conflicts",
        )

        output = recording_console.export_text()
        assert "Conflicts" in output
        assert "lib-a" in output
        assert "2.0" in output

    def test_none_cells_render_dash(self, recording_console: Console) -> None:
        """Test missing values render as a dash."""
        print_table([{"Package": "lib-a", "Version": None}])

        assert "-" in recording_console.export_text()

    def test_empty_data_prints_nothing(self, recording_console: Console) -> None:
        """Test an empty row list prints nothing."""
        print_table([])

        assert recording_console.export_text() == ""


@pytest.mark.unit
@pytest.mark.parametrize(
    "update_type,expected",
    [
        ("major", "[red]major[/red]"),
        ("patch", "[green]patch[/green]"),
        ("MINOR", "[yellow]MINOR[/yellow]"),
        ("same", "same"),
    ],
)
def test_colorize_update_type(update_type: str, expected: str) -> None:
    """Test update types map to Rich color markup."""
    assert colorize_update_type(update_type) == expected
