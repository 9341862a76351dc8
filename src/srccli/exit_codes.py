"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~srccli.exceptions.SrcError` subclass.
Scripts wrapping ``src`` can inspect the exit code to tell a rejected
token from a missing repository without parsing stderr.

Example::

    $ src repo view my-org/missing
    $ echo $?
    4   # EXIT_NOT_FOUND
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""Authentication or authorisation failed, or no token is configured."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404)."""

EXIT_API_ERROR = 5
"""The API rejected the request with a non-2xx status (4xx other than 401/403/404/429, or 5xx)."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_PROTOCOL_ERROR = 7
"""The API answered with a body that does not match the expected JSON contract."""

EXIT_GIT_ERROR = 8
"""A ``git`` subprocess failed."""

EXIT_RATE_LIMITED = 9
"""The API kept answering HTTP 429 until the retry budget was spent."""

EXIT_CANCELLED = 130
"""The user interrupted the command with Ctrl-C."""
