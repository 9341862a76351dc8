"""Exception hierarchy for srccli.

All exceptions inherit from :class:`SrcError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`srccli.exit_codes`.
The top-level error handler in :func:`srccli.app.main` catches
``SrcError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    SrcError (exit 1)
    +-- InvalidUsageError       (exit 2)
    +-- ConfigError             (exit 1)
    +-- GitError                (exit 8)
    +-- TokenNotFoundError      (exit 3)
    +-- TransportError          (exit 6)
        +-- RequestEncodeError  (exit 2)
        +-- ConnectionError_    (exit 6)
        +-- ProtocolError       (exit 7)
        +-- APIError            (exit 5)
            +-- AuthError       (exit 3)
            +-- NotFoundError   (exit 4)
            +-- ServerError     (exit 5)
            +-- RateLimitError  (exit 9)

Every :class:`APIError` carries the numeric ``status_code`` it was built
from, so callers branch on ``exc.status_code == 404`` instead of matching
text in the formatted message.
"""

from __future__ import annotations

from typing import Optional

from srccli.exit_codes import (
    EXIT_API_ERROR,
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_GIT_ERROR,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_PROTOCOL_ERROR,
    EXIT_RATE_LIMITED,
)


class SrcError(Exception):
    """Base exception for all srccli errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`srccli.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(SrcError):
    """Raised for invalid CLI arguments (bad ``<org>/<repo>``, conflicting flags)."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(SrcError):
    """Raised for configuration problems (unreadable YAML, missing organization, forbidden keys)."""

    exit_code = EXIT_GENERIC_FAILURE


class GitError(SrcError):
    """Raised when a ``git`` subprocess fails.

    Args:
        message: Human-readable error description.
        missing_remote: ``True`` when git reported that the requested
            remote does not exist, so callers can fall back instead of
            failing.
    """

    exit_code = EXIT_GIT_ERROR

    def __init__(self, message: str, missing_remote: bool = False):
        super().__init__(message)
        self.missing_remote = missing_remote


class TokenNotFoundError(SrcError):
    """Raised when no API token is available from any credential source."""

    exit_code = EXIT_AUTH_FAILURE


class TransportError(SrcError):
    """Base class for every failure produced by the HTTP request engine."""

    exit_code = EXIT_CONNECTION_ERROR


class RequestEncodeError(TransportError):
    """Raised when a request body cannot be serialised to JSON. Never retried."""

    exit_code = EXIT_INVALID_USAGE


class ConnectionError_(TransportError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class ProtocolError(TransportError):
    """Raised when a successful response violates the JSON contract.

    Covers a 2xx answer with a non-JSON ``Content-Type`` and a JSON body
    that does not decode into the expected shape.
    """

    exit_code = EXIT_PROTOCOL_ERROR


class APIError(TransportError):
    """Raised when the API answers with a terminal non-2xx status.

    Args:
        message: Fully formatted, human-readable message.
        status_code: The HTTP status code of the response.
        reason: The HTTP reason phrase (``"Not Found"``).
        path: The request path the error belongs to.
        api_message: The ``message`` field of a JSON error body, if any.
        request_id: The ``request_id`` field of a JSON error body, if any.
    """

    exit_code = EXIT_API_ERROR

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        reason: str = "",
        path: Optional[str] = None,
        api_message: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason
        self.path = path
        self.api_message = api_message
        self.request_id = request_id


class AuthError(APIError):
    """Raised when the API returns HTTP 401 or 403."""

    exit_code = EXIT_AUTH_FAILURE


class NotFoundError(APIError):
    """Raised when the API returns HTTP 404 (resource not found)."""

    exit_code = EXIT_NOT_FOUND


class ServerError(APIError):
    """Raised when the API returns an HTTP 5xx server error."""

    exit_code = EXIT_API_ERROR


class RateLimitError(APIError):
    """Raised when HTTP 429 persists through the whole retry budget.

    Args:
        message: Human-readable error description.
        retry_after: The last ``Retry-After`` hint in seconds, if the
            server sent a parseable one.
        **kwargs: Forwarded to :class:`APIError`.
    """

    exit_code = EXIT_RATE_LIMITED

    def __init__(self, message: str, retry_after: Optional[float] = None, **kwargs) -> None:
        kwargs.setdefault("status_code", 429)
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


def error_class_for_status(status_code: int) -> type[APIError]:
    """Return the :class:`APIError` subclass matching *status_code*."""
    if status_code in (401, 403):
        return AuthError
    if status_code == 404:
        return NotFoundError
    if status_code == 429:
        return RateLimitError
    if status_code >= 500:
        return ServerError
    return APIError
