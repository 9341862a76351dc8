"""srccli -- command-line client for the SourceCraft REST API.

The package wraps the platform's repositories, pull requests, issues,
milestones, access roles and CI/CD runs behind a ``src`` command with a
Typer sub-app per resource. Every command goes through one HTTP request
engine that owns authentication, retries and error classification.

Typical workflow::

    src auth login                 # store a personal access token
    src config set organization my-org
    src repo list
    src pr create --title "Fix flaky test"

Modules:
    app: Typer application and CLI entry point.
    client: Transport Core, retry policy, and typed resource callers.
    models: Pydantic models for configuration and wire shapes.
    config: XDG-aware YAML configuration.
    auth: Token storage and resolution.
    git: Thin wrappers around the ``git`` executable.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.3.0"
