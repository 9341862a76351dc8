"""CLI sub-command groups for srccli.

Each module exports a :class:`typer.Typer` sub-application registered on
the root app in :mod:`srccli.app`:

* :mod:`~srccli.commands.auth` -- store and inspect the API token.
* :mod:`~srccli.commands.config` -- read and write ``config.yaml``.
* :mod:`~srccli.commands.repo` -- repositories, including clone and fork sync.
* :mod:`~srccli.commands.pr` -- pull requests.
* :mod:`~srccli.commands.issue` -- issues.
* :mod:`~srccli.commands.milestone` -- milestones.
* :mod:`~srccli.commands.access` -- repository roles.
* :mod:`~srccli.commands.workflow` -- CI/CD runs, logs and artifacts.
* :mod:`~srccli.commands.hooks` -- git hook scripts.

Shared plumbing (API session setup, error-to-exit-code mapping, repository
resolution) lives in :mod:`~srccli.commands._common`.
"""
