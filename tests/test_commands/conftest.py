"""Fixtures for command tests.

Commands are invoked through :class:`typer.testing.CliRunner` against the
real ``src`` app. The API layer is replaced by a :class:`MagicMock` so
that each test decides what the server returns and inspects the calls
the command made.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from srccli.app import app


@pytest.fixture
def api(isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    """Replace :class:`~srccli.client.SourceCraftAPI` with a mock.

    A token is provided through the environment so that
    :func:`~srccli.commands._common.open_api` gets past credential
    resolution.
    """
    monkeypatch.setenv("SOURCECRAFT_TOKEN", "test-token")
    mock_api = MagicMock(name="SourceCraftAPI()")
    monkeypatch.setattr("srccli.commands._common.Transport", MagicMock(name="Transport"))
    monkeypatch.setattr(
        "srccli.commands._common.SourceCraftAPI", MagicMock(return_value=mock_api)
    )
    return mock_api


@pytest.fixture
def invoke(cli_runner):
    """Run ``src <args>`` and return the click result."""

    def run(*args: str, input: str | None = None):
        return cli_runner.invoke(app, list(args), input=input)

    return run
