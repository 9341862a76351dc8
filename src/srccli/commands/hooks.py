"""Git hook commands."""

from __future__ import annotations

import typer

from srccli import git
from srccli.commands._common import cli_errors
from srccli.config import atomic_write
from srccli.exceptions import InvalidUsageError, SrcError
from srccli.output import success, warning

hooks_app = typer.Typer(no_args_is_help=True)

HOOK_SCRIPTS = {
    "pre-commit": """#!/bin/sh
# Hook installed by src CLI
echo "Running src pre-commit checks..."
exit 0
""",
    "pre-push": """#!/bin/sh
# Hook installed by src CLI
remote="$1"
url="$2"
echo "Running src pre-push checks for remote $remote ($url)..."
exit 0
""",
}


@hooks_app.command("install")
def hooks_install(
    hook_type: str = typer.Argument(help="Hook to install: pre-commit or pre-push."),
) -> None:
    """Install a git hook script into the current repository.

    An existing hook of the same name is overwritten.

    Example::

        src hooks install pre-push
    """
    with cli_errors():
        script = HOOK_SCRIPTS.get(hook_type)
        if script is None:
            raise InvalidUsageError(
                f"unsupported hook type '{hook_type}'. Supported: {', '.join(HOOK_SCRIPTS)}"
            )
        hook_path = git.find_git_dir() / "hooks" / hook_type
        if hook_path.exists():
            warning(f"Overwriting existing {hook_type} hook at {hook_path}")
        try:
            atomic_write(hook_path, script, mode=0o755)
        except OSError as exc:
            raise SrcError(f"cannot write hook {hook_path}: {exc}") from exc
    success(f"Installed {hook_type} hook at {hook_path}")
