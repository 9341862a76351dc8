"""The ``src`` command: root Typer app and console-script entry point.

Every resource group from :mod:`srccli.commands` is mounted here. The root
callback reads the global flags once, installs the process-wide
:class:`~srccli.output.OutputManager`, and remembers which config file the
invocation should use.

:func:`main` is what ``pyproject.toml`` points the ``src`` script at. It
turns Ctrl-C into exit code 130, a :class:`~srccli.exceptions.SrcError`
into that error's exit code, and any other exception into a crash log plus
exit code 1.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, NoReturn, Optional

import typer

from srccli import __version__
from srccli.exit_codes import EXIT_CANCELLED, EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="src",
    help="Work with SourceCraft repositories, pull requests, issues and CI/CD from the terminal.",
    no_args_is_help=True,
    add_completion=True,
    rich_markup_mode="rich",
)

from srccli.commands.access import access_app  # noqa: E402
from srccli.commands.auth import auth_app  # noqa: E402
from srccli.commands.config import config_app  # noqa: E402
from srccli.commands.hooks import hooks_app  # noqa: E402
from srccli.commands.issue import issue_app  # noqa: E402
from srccli.commands.milestone import milestone_app  # noqa: E402
from srccli.commands.pr import pr_app  # noqa: E402
from srccli.commands.repo import repo_app  # noqa: E402
from srccli.commands.workflow import workflow_app  # noqa: E402

_GROUPS = [
    (auth_app, "auth", "Log in, log out and show the stored token."),
    (config_app, "config", "Read and change settings in the config file."),
    (repo_app, "repo", "Work with repositories."),
    (pr_app, "pr", "Work with pull requests."),
    (issue_app, "issue", "Work with issues."),
    (milestone_app, "milestone", "Work with milestones."),
    (access_app, "access", "Manage repository access."),
    (workflow_app, "workflow", "Run and inspect CI/CD workflows."),
    (hooks_app, "hooks", "Install git hooks."),
]

for _sub_app, _name, _help in _GROUPS:
    app.add_typer(_sub_app, name=_name, help=_help)
app.add_typer(workflow_app, name="wf", help="Alias for 'workflow'.", hidden=True)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"src {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    config: Optional[str] = typer.Option(
        None, "--config", help="Config file to use instead of the default."
    ),
    json_output: bool = typer.Option(False, "--json", help="Print results as JSON."),
    plain_output: bool = typer.Option(False, "--plain", help="Print results as tab-separated text."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only print results, warnings and errors."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show each HTTP attempt."),
) -> None:
    """Runs before any sub-command.

    ``--json`` wins over ``--plain`` when both are given. The chosen config
    path goes into ``ctx.obj["config_path"]`` so that ``config set`` and the
    API commands agree on one file.
    """
    from srccli.config import config_path
    from srccli.output import OutputFormat, OutputManager, set_output

    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    else:
        fmt = OutputFormat.AUTO

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path(config)


def _cancel() -> NoReturn:
    sys.stderr.write("\nCancelled.\n")
    sys.exit(EXIT_CANCELLED)


def _setup_signal_handlers() -> None:
    def _on_sigint(signum: int, frame: Any) -> None:  # noqa: ANN401
        _cancel()

    signal.signal(signal.SIGINT, _on_sigint)


def _write_crash_log(exc: Exception) -> str:
    """Dump the traceback of *exc* under the data directory; return the file path."""
    from srccli.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_path = logs_dir / f"crash-{datetime.now():%Y%m%d-%H%M%S}.log"
    log_path.write_text("".join(traceback.format_exception(exc)))
    return str(log_path)


def main() -> None:
    """Entry point of the ``src`` console script. Always exits via ``SystemExit``."""
    from srccli.exceptions import SrcError
    from srccli.output import error

    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        _cancel()
    except SrcError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception as exc:
        error(f"Unexpected error. Debug log: {_write_crash_log(exc)}")
        sys.exit(EXIT_GENERIC_FAILURE)
