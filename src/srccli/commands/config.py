"""Config commands -- read and write ``config.yaml``.

Keys use dot notation for nested values. The token is never stored here;
use ``src auth login`` instead.
"""

from __future__ import annotations

import typer

from srccli.commands._common import cli_errors, config_file
from srccli.config import config_path, get_value, set_value
from srccli.output import get_output, info, print_data, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("get")
def config_get(
    ctx: typer.Context,
    key: str = typer.Argument(help="Config key (dot notation, e.g. 'organization')."),
) -> None:
    """Print a configuration value.

    Example::

        src config get organization
    """
    with cli_errors():
        value = get_value(key, config_file(ctx))
    if value is None:
        info(f"Key '{key}' is not set.")
        return
    if isinstance(value, (dict, list)):
        get_output().format_response(value)
        return
    if isinstance(value, bool):
        value = "true" if value else "false"
    print_data(str(value))


@config_app.command("set")
def config_set(
    ctx: typer.Context,
    key: str = typer.Argument(help="Config key (dot notation)."),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value.

    An existing bool or int value keeps its type. The result is validated
    before the file is written.

    Example::

        src config set organization my-org
    """
    with cli_errors():
        stored = set_value(key, value, config_file(ctx))
    success(f"Set {key} = {stored}")


@config_app.command("path")
def config_show_path(ctx: typer.Context) -> None:
    """Print the path of the active config file."""
    print_data(str(config_file(ctx) or config_path()))
