"""Shared test fixtures for srccli.

Provides isolated config/data directories, output state management, a
factory for :class:`~srccli.client.Transport` objects backed by
``httpx.MockTransport``, and a CLI runner. These fixtures are discovered
by pytest and available to all test modules without explicit imports.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import httpx
import pytest

from srccli.client import Transport
from srccli.models import ClientConfig, RequestConfig
from srccli.output import OutputFormat, OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale.
    Resetting forces a fresh manager to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration and credentials to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path,
    clears every environment variable srccli reads, and changes the
    working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("srccli.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in ["SRC_CONFIG", "SOURCECRAFT_TOKEN", "SOURCECRAFT_API_URL"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet, colourless OutputManager."""
    output = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def plain_output() -> OutputManager:
    """Install a PLAIN-format OutputManager whose diagnostics go through ``print``.

    With ``no_color`` every stderr line is written with :func:`print`, so
    ``capsys`` sees it verbatim.
    """
    output = OutputManager(format=OutputFormat.PLAIN, no_color=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# Transport fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def client_config() -> ClientConfig:
    return ClientConfig(
        base_url="https://api.example.test",
        token="test-token",
        request=RequestConfig(timeout=5, max_retries=3, base_delay=1.0),
    )


@pytest.fixture
def sleeps() -> list[float]:
    """Records every delay a Transport would have slept for."""
    return []


@pytest.fixture
def make_transport(
    client_config: ClientConfig, sleeps: list[float]
) -> Callable[[Callable[[httpx.Request], httpx.Response]], Transport]:
    """Return a factory building a Transport around a request handler.

    The handler receives each :class:`httpx.Request` and returns an
    :class:`httpx.Response` (or raises an httpx exception). Sleeps are
    recorded in the ``sleeps`` fixture instead of waiting.
    """

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> Transport:
        return Transport(
            client_config,
            transport=httpx.MockTransport(handler),
            sleep=sleeps.append,
        )

    return factory


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner(monkeypatch: pytest.MonkeyPatch):
    """Typer CLI test runner.

    ``NO_COLOR`` is set so that diagnostics are printed without Rich
    markup or line wrapping.
    """
    from typer.testing import CliRunner

    monkeypatch.setenv("NO_COLOR", "1")
    return CliRunner()
