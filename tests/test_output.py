"""Tests for the output formatting system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline, quiet and verbose modes
- print_table and print_fields in all three modes
- relative_time and shorten display helpers
- Global instance management
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest

from srccli.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    get_output,
    relative_time,
    reset_output,
    set_output,
    shorten,
)


NOW = datetime(2026, 3, 15, 12, 0, 0, tzinfo=timezone.utc)


def _ago(**kwargs) -> str:
    return (NOW - timedelta(**kwargs)).strftime("%Y-%m-%dT%H:%M:%SZ")


# ------------------------------------------------------------------ #
# Fixtures
# ------------------------------------------------------------------ #


@pytest.fixture(autouse=True)
def _reset_global_output():
    reset_output()
    yield
    reset_output()


@pytest.fixture()
def non_tty(monkeypatch):
    """Patch stdout.isatty() to return False."""
    monkeypatch.setattr("srccli.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    """Patch stdout.isatty() to return True."""
    monkeypatch.setattr("srccli.output._is_tty", lambda: True)


# ------------------------------------------------------------------ #
# Format resolution and colour
# ------------------------------------------------------------------ #


class TestOutputFormatResolution:
    def test_auto_resolves_to_plain_when_not_tty(self, non_tty):
        assert OutputManager().format == OutputFormat.PLAIN

    def test_auto_resolves_to_rich_when_tty(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert OutputManager().format == OutputFormat.RICH

    def test_auto_resolves_to_plain_when_no_color(self, tty):
        assert OutputManager(no_color=True).format == OutputFormat.PLAIN

    def test_explicit_json_stays_json(self, tty):
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON


class TestColorDisabling:
    def test_no_color_env(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_term_dumb(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_normal_term(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm")
        assert _should_disable_color() is False


# ------------------------------------------------------------------ #
# Streams, quiet and verbose
# ------------------------------------------------------------------ #


class TestStdoutStderrDiscipline:
    def test_print_data_goes_to_stdout(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).print_data("hello")
        captured = capfd.readouterr()
        assert captured.out == "hello\n"
        assert captured.err == ""

    @pytest.mark.parametrize("method", ["info", "success", "warning", "error", "suggest"])
    def test_diagnostics_go_to_stderr(self, capfd, non_tty, method):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True)
        getattr(mgr, method)("message text")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "message text" in captured.err

    def test_prefixes_without_color(self, capsys, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, verbose=True)
        mgr.warning("w")
        mgr.error("e")
        mgr.debug("d")
        mgr.suggest("s")
        assert capsys.readouterr().err.splitlines() == ["Warning: w", "Error: e", "[debug] d", "→ s"]

    def test_rich_markup_in_messages_is_escaped(self, capfd, non_tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm")
        mgr = OutputManager(format=OutputFormat.PLAIN)
        mgr.error("bad value [red]x[/red]")
        assert "[red]x[/red]" in capfd.readouterr().err


class TestQuietAndVerbose:
    def test_quiet_suppresses_info_success_suggest(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        mgr.info("i")
        mgr.success("s")
        mgr.suggest("g")
        assert capfd.readouterr().err == ""

    def test_quiet_keeps_warning_and_error(self, capfd, non_tty):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        mgr.warning("w")
        mgr.error("e")
        err = capfd.readouterr().err
        assert "w" in err and "e" in err

    def test_debug_hidden_by_default(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).debug("hidden")
        assert capfd.readouterr().err == ""

    def test_pager_skipped_when_not_tty(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).paged_output("line 1\nline 2")
        assert capfd.readouterr().out == "line 1\nline 2\n"


# ------------------------------------------------------------------ #
# Tables and fields
# ------------------------------------------------------------------ #


class TestPrintTable:
    def test_json_mode(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).print_table(["ID", "TITLE"], [["1", "Fix"]])
        assert json.loads(capfd.readouterr().out) == [{"ID": "1", "TITLE": "Fix"}]

    def test_plain_mode(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).print_table(
            ["ID", "TITLE"], [["1", "Fix"], ["2", "Add"]]
        )
        assert capfd.readouterr().out == "ID\tTITLE\n1\tFix\n2\tAdd\n"

    def test_rich_mode(self, capfd, non_tty):
        OutputManager(format=OutputFormat.RICH).print_table(["ID"], [["42"]])
        out = capfd.readouterr().out
        assert "ID" in out and "42" in out


class TestPrintFields:
    def test_plain_aligned(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).print_fields(
            [("ID", "7"), ("Status", "open")]
        )
        assert capfd.readouterr().out == "ID:     7\nStatus: open\n"

    def test_json_mode(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).print_fields([("ID", "7")])
        assert json.loads(capfd.readouterr().out) == {"ID": "7"}


class TestFormatResponse:
    def test_plain_dict(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).format_response(
            {"slug": "tool", "owner": {"slug": "acme"}}
        )
        assert capfd.readouterr().out == 'slug\ttool\nowner\t{"slug": "acme"}\n'

    def test_json_unicode(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).format_response({"name": "Ünï"})
        assert "Ünï" in capfd.readouterr().out


# ------------------------------------------------------------------ #
# Display helpers
# ------------------------------------------------------------------ #


class TestRelativeTime:
    @pytest.mark.parametrize(
        "ts,expected",
        [
            (_ago(seconds=30), "Just now"),
            (_ago(minutes=1, seconds=30), "Just now"),
            (_ago(minutes=5), "5m ago"),
            (_ago(hours=3, minutes=10), "3h ago"),
            (_ago(days=2, hours=1), "2d ago"),
            (_ago(days=7, hours=1), "7d ago"),
        ],
    )
    def test_relative(self, ts: str, expected: str) -> None:
        assert relative_time(ts, now=NOW) == expected

    def test_old_dates_are_absolute(self) -> None:
        assert relative_time("2026-01-02T12:00:00Z", now=NOW).endswith(", 2026")

    def test_fractional_seconds_and_offset(self) -> None:
        ts = (NOW - timedelta(hours=2)).astimezone(timezone(timedelta(hours=3)))
        text = ts.strftime("%Y-%m-%dT%H:%M:%S.000000001+03:00")
        assert relative_time(text, now=NOW) == "2h ago"

    @pytest.mark.parametrize("ts", [None, ""])
    def test_empty(self, ts) -> None:
        assert relative_time(ts) == "-"

    def test_unparseable_is_returned(self) -> None:
        assert relative_time("yesterday") == "yesterday"


class TestShorten:
    def test_short_text_unchanged(self) -> None:
        assert shorten("Fix login") == "Fix login"

    def test_long_text_cut_to_width(self) -> None:
        text = "x" * 60
        assert shorten(text) == "x" * 47 + "..."
        assert len(shorten(text)) == 50

    def test_newlines_collapsed(self) -> None:
        assert shorten("line one\n\nline two") == "line one line two"

    def test_empty(self) -> None:
        assert shorten(None) == ""


# ------------------------------------------------------------------ #
# Global instance
# ------------------------------------------------------------------ #


class TestGlobalInstance:
    def test_lazily_created(self):
        assert isinstance(get_output(), OutputManager)

    def test_set_and_reset(self):
        mgr = OutputManager(format=OutputFormat.JSON)
        set_output(mgr)
        assert get_output() is mgr
        reset_output()
        assert get_output() is not mgr
