"""Terminal output for the ``src`` CLI.

Two streams, two purposes:

* **stdout** carries results only (tables, JSON, field listings, log
  text), so ``src pr list --json | jq`` always sees clean data.
* **stderr** carries everything addressed to the person at the keyboard:
  status lines, retry warnings, errors and "next step" hints.

Formatting follows the terminal. Rich tables and highlighted JSON are used
on an interactive stdout; tab-separated text is used when piped. ``NO_COLOR``,
``TERM=dumb`` and ``--no-color`` turn colour off.

Commands call the module-level helpers (:func:`info`, :func:`error`,
:func:`print_table`, ...). They forward to one :class:`OutputManager`
installed by the root callback in :mod:`srccli.app`.
"""

from __future__ import annotations

import json
import os
import re
import subprocess
import sys
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table


class OutputFormat(str, Enum):
    """How results are written to stdout.

    ``AUTO`` becomes ``RICH`` on a colour-capable TTY and ``PLAIN``
    everywhere else; ``--json`` and ``--plain`` pick one explicitly.
    """

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Routes results to stdout and diagnostics to stderr.

    Args:
        format: Requested format; ``AUTO`` is resolved once, here.
        no_color: Force colourless output even on a TTY.
        quiet: Drop info, success and suggestion lines. Warnings and
            errors are always shown.
        verbose: Show debug lines, e.g. one per HTTP attempt.
        use_pager: Send long text (CI/CD logs) through ``$PAGER`` on a TTY.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
        use_pager: bool = True,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose
        self._use_pager = use_pager

        if format == OutputFormat.AUTO:
            rich_ok = _is_tty() and not self._no_color
            self._format = OutputFormat.RICH if rich_ok else OutputFormat.PLAIN
        else:
            self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=(self._format == OutputFormat.RICH),
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        """Format in effect after ``AUTO`` resolution."""
        return self._format

    # ------------------------------------------------------------------ #
    # Results (stdout)
    # ------------------------------------------------------------------ #

    def format_response(self, data: Any) -> None:
        """Write a decoded API object (dict, list or scalar) to stdout."""
        if self._format == OutputFormat.JSON:
            self.print_data(_to_json(data))
        elif self._format == OutputFormat.PLAIN:
            self._print_plain(data)
        else:
            self._stdout.print(Syntax(_to_json(data), "json", theme="monokai", word_wrap=True))

    def print_data(self, text: str) -> None:
        print(text, file=sys.stdout, flush=True)

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Write rows under *headers*.

        JSON gives a list of ``{header: cell}`` records, plain gives one
        tab-separated line per row (header line first), and rich gives a
        bordered table with an optional *title*.
        """
        if self._format == OutputFormat.JSON:
            self.print_data(_to_json([dict(zip(headers, row)) for row in rows]))
            return

        if self._format == OutputFormat.PLAIN:
            for line in [headers, *rows]:
                self.print_data("\t".join(line))
            return

        table = Table(title=title, show_header=True, header_style="bold cyan")
        for header in headers:
            table.add_column(header)
        for row in rows:
            table.add_row(*row)
        self._stdout.print(table)

    def print_fields(self, fields: list[tuple[str, str]]) -> None:
        """Print ``label: value`` pairs, one per line, for ``view`` commands."""
        if self._format == OutputFormat.JSON:
            self.print_data(_to_json(dict(fields)))
            return
        width = max((len(label) for label, _ in fields), default=0)
        for label, value in fields:
            if self._format == OutputFormat.RICH:
                self._stdout.print(f"[bold]{label + ':':<{width + 1}}[/bold] {value}", highlight=False)
            else:
                self.print_data(f"{label + ':':<{width + 1}} {value}")

    # ------------------------------------------------------------------ #
    # Diagnostics (stderr)
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        if self._quiet:
            return
        if self._no_color:
            self._plain_err(message)
        else:
            self._stderr.print(message, markup=False, highlight=False)

    def success(self, message: str) -> None:
        if self._quiet:
            return
        if self._no_color:
            self._plain_err(message)
        else:
            self._stderr.print(f"[green]{_escape(message)}[/green]")

    def warning(self, message: str) -> None:
        """Shown even with ``--quiet``."""
        if self._no_color:
            self._plain_err(f"Warning: {message}")
        else:
            self._stderr.print(f"[yellow]Warning:[/yellow] {_escape(message)}")

    def error(self, message: str) -> None:
        """Shown even with ``--quiet``."""
        if self._no_color:
            self._plain_err(f"Error: {message}")
        else:
            self._stderr.print(f"[bold red]Error:[/bold red] {_escape(message)}")

    def suggest(self, message: str) -> None:
        """Hint at a follow-up command, prefixed with an arrow."""
        if self._quiet:
            return
        line = f"→ {message}"
        if self._no_color:
            self._plain_err(line)
        else:
            self._stderr.print(f"[dim]{_escape(line)}[/dim]")

    def debug(self, message: str) -> None:
        if not self._verbose:
            return
        if self._no_color:
            self._plain_err(f"[debug] {message}")
        else:
            self._stderr.print(f"[dim]\\[debug] {_escape(message)}[/dim]")

    # ------------------------------------------------------------------ #
    # Pager
    # ------------------------------------------------------------------ #

    def paged_output(self, text: str) -> None:
        """Show *text* in ``$PAGER`` (default ``less -FIRX``) on a TTY.

        Falls back to a plain write when stdout is redirected, the pager is
        disabled, or the pager cannot be started.
        """
        if not self._use_pager or not _is_tty():
            self.print_data(text)
            return
        pager = os.environ.get("PAGER", "less -FIRX")
        try:
            proc = subprocess.Popen(pager, shell=True, stdin=subprocess.PIPE, encoding="utf-8")
            proc.communicate(input=text)
        except OSError:
            self.print_data(text)

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    @staticmethod
    def _plain_err(line: str) -> None:
        print(line, file=sys.stderr, flush=True)

    def _print_plain(self, data: Any) -> None:
        # Nested values stay on one line as compact JSON.
        if isinstance(data, dict):
            for key, value in data.items():
                if isinstance(value, (dict, list)):
                    value = json.dumps(value, ensure_ascii=False, default=str)
                self.print_data(f"{key}\t{value}")
        elif isinstance(data, list):
            for item in data:
                if isinstance(item, dict):
                    self.print_data("\t".join(str(v) for v in item.values()))
                else:
                    self.print_data(str(item))
        else:
            self.print_data(str(data))


# ------------------------------------------------------------------ #
# Terminal detection and text helpers
# ------------------------------------------------------------------ #


def _is_tty() -> bool:
    isatty = getattr(sys.stdout, "isatty", None)
    return bool(isatty and isatty())


def _should_disable_color() -> bool:
    """True when ``NO_COLOR`` is present (any value) or ``TERM=dumb``."""
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


def _escape(text: str) -> str:
    # Rich markup uses square brackets; API messages may contain them.
    return text.replace("[", "\\[")


def _to_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


def _parse_timestamp(ts: str) -> Optional[datetime]:
    text = ts.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION_RE.sub(r"\1", text)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def relative_time(ts: Optional[str], now: Optional[datetime] = None) -> str:
    """Render an RFC 3339 timestamp as a short relative time.

    ``"Just now"``, ``"5m ago"``, ``"3h ago"``, ``"2d ago"``, and the local
    date (``"Jan 02, 2006"``) for anything older than seven days. An empty
    value renders as ``"-"``; an unparseable one is returned unchanged.
    """
    if not ts:
        return "-"
    then = _parse_timestamp(ts)
    if then is None:
        return ts
    now = now or datetime.now(timezone.utc)

    seconds = int((now - then).total_seconds())
    days = seconds // 86400
    hours = (seconds // 3600) % 24
    minutes = (seconds // 60) % 60

    if days > 7:
        return then.astimezone().strftime("%b %d, %Y")
    if days > 0:
        return f"{days}d ago"
    if hours > 0:
        return f"{hours}h ago"
    if minutes > 1:
        return f"{minutes}m ago"
    return "Just now"


def shorten(text: Optional[str], width: int = 50) -> str:
    """Collapse *text* to one line and cut it to *width* characters with ``...``."""
    if not text:
        return ""
    line = " ".join(text.split())
    if len(line) <= width:
        return line
    return line[: max(width - 3, 0)] + "..."


# ------------------------------------------------------------------ #
# Process-wide manager
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed manager, creating an ``AUTO`` one on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager; the next :func:`get_output` builds a fresh one.

    Tests call this because a manager keeps references to the streams that
    were current when it was created.
    """
    global _output
    _output = None


def format_response(data: Any) -> None:
    get_output().format_response(data)


def print_data(text: str) -> None:
    get_output().print_data(text)


def print_table(
    headers: list[str],
    rows: list[list[str]],
    title: Optional[str] = None,
) -> None:
    get_output().print_table(headers, rows, title)


def print_fields(fields: list[tuple[str, str]]) -> None:
    get_output().print_fields(fields)


def info(message: str) -> None:
    get_output().info(message)


def error(message: str) -> None:
    get_output().error(message)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)


def suggest(message: str) -> None:
    get_output().suggest(message)


def debug(message: str) -> None:
    get_output().debug(message)


def paged_output(text: str) -> None:
    get_output().paged_output(text)
