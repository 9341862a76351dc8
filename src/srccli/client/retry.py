"""Pure retry and classification policy for the Transport Core.

Nothing in this module performs I/O or sleeps. :func:`classify_response`
and :func:`classify_error` turn one attempt's result into an *outcome*,
and :func:`next_step` turns an outcome plus the attempt index into a
:class:`Decision`. The side-effecting driver in
:mod:`srccli.client.transport` only executes those decisions, so the
whole retry policy can be exercised without a network or a clock.

Attempt states::

    ATTEMPTING --Success------------------------------> SUCCEEDED
    ATTEMPTING --network error / 429, budget left-----> WAITING --> ATTEMPTING
    ATTEMPTING --network error / 429 on final attempt-> FAILED
    ATTEMPTING --other non-2xx / non-JSON 2xx---------> FAILED
"""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass
from typing import Mapping, Optional, Union

import httpx

ERROR_SNIPPET_LIMIT = 500
"""Maximum characters of a non-JSON error body quoted in an error message."""

BODY_START_LIMIT = 150
"""Maximum characters of an unexpected 2xx body quoted in an error message."""


@dataclass(frozen=True)
class RetryPolicy:
    """Retry budget for one logical call.

    Attributes:
        max_attempts: Total number of attempts, including the first one.
        base_delay: Delay in seconds after the first failed attempt. Each
            further attempt doubles it.
    """

    max_attempts: int = 3
    base_delay: float = 1.0

    def backoff(self, attempt: int) -> float:
        """Return the exponential delay after the 0-based *attempt*."""
        return self.base_delay * (2 ** attempt)

    def is_final(self, attempt: int) -> bool:
        return attempt >= self.max_attempts - 1


# ------------------------------------------------------------------ #
# Outcomes
# ------------------------------------------------------------------ #


@dataclass(frozen=True)
class Success:
    body: bytes
    content_type: str


@dataclass(frozen=True)
class RetryableNetworkError:
    error: Exception


@dataclass(frozen=True)
class RateLimited:
    """HTTP 429. ``retry_after`` is the server hint in seconds, if usable."""

    retry_after: Optional[float] = None


@dataclass(frozen=True)
class TerminalHTTPError:
    status_code: int
    reason: str
    body: bytes


@dataclass(frozen=True)
class MalformedResponse:
    """A 2xx response whose ``Content-Type`` is not JSON."""

    content_type: str
    body: bytes


Outcome = Union[Success, RetryableNetworkError, RateLimited, TerminalHTTPError, MalformedResponse]


class AttemptState(str, enum.Enum):
    ATTEMPTING = "attempting"
    WAITING = "waiting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class Decision:
    """What the driver does after an attempt.

    ``delay`` is only meaningful in the ``WAITING`` state.
    """

    state: AttemptState
    delay: float = 0.0


# ------------------------------------------------------------------ #
# Parsing helpers
# ------------------------------------------------------------------ #


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Parse a ``Retry-After`` header given in whole seconds.

    Returns ``None`` for a missing header, an HTTP-date, a fractional or
    negative value, or anything else that is not a plain integer.
    """
    if value is None:
        return None
    value = value.strip()
    if not (value.isascii() and value.isdigit()):
        return None
    return float(int(value))


def truncate(text: str, limit: int) -> str:
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def parse_error_body(body: bytes) -> tuple[Optional[str], Optional[str]]:
    """Extract ``(message, request_id)`` from a JSON error body.

    Either value is ``None`` when the body is not a JSON object or the
    field is missing or not a string.
    """
    try:
        data = json.loads(body)
    except (ValueError, UnicodeDecodeError):
        return None, None
    if not isinstance(data, dict):
        return None, None
    message = data.get("message")
    request_id = data.get("request_id")
    if not isinstance(message, str):
        return None, None
    if not isinstance(request_id, str):
        request_id = None
    return message, request_id


def is_json_body(body: bytes) -> bool:
    try:
        json.loads(body)
    except (ValueError, UnicodeDecodeError):
        return False
    return True


# ------------------------------------------------------------------ #
# Classification
# ------------------------------------------------------------------ #


def classify_response(
    status_code: int,
    reason: str,
    headers: Mapping[str, str],
    body: bytes,
    expect_json: bool = True,
) -> Outcome:
    """Classify a completed HTTP response.

    Args:
        status_code: The HTTP status code.
        reason: The HTTP reason phrase.
        headers: Response headers; lookups are case-insensitive.
        body: The response body. Ignored for HTTP 429, whose body is
            never read.
        expect_json: When ``False`` (binary downloads) a 2xx response is
            a success whatever its ``Content-Type``.

    Returns:
        One of the outcome dataclasses defined in this module.
    """
    headers = httpx.Headers(headers)
    if status_code == 429:
        return RateLimited(retry_after=parse_retry_after(headers.get("retry-after")))
    if not 200 <= status_code < 300:
        return TerminalHTTPError(status_code=status_code, reason=reason, body=body)
    content_type = headers.get("content-type", "")
    if expect_json and not content_type.lower().startswith("application/json"):
        return MalformedResponse(content_type=content_type, body=body)
    return Success(body=body, content_type=content_type)


def classify_error(exc: Exception) -> RetryableNetworkError:
    """Wrap a transport-level exception (timeout, refused, DNS) as retryable."""
    return RetryableNetworkError(error=exc)


def next_step(outcome: Outcome, attempt: int, policy: RetryPolicy) -> Decision:
    """Decide what follows *outcome* on the 0-based *attempt*."""
    if isinstance(outcome, Success):
        return Decision(AttemptState.SUCCEEDED)
    if isinstance(outcome, (TerminalHTTPError, MalformedResponse)):
        return Decision(AttemptState.FAILED)
    if policy.is_final(attempt):
        return Decision(AttemptState.FAILED)
    if isinstance(outcome, RateLimited) and outcome.retry_after is not None:
        return Decision(AttemptState.WAITING, outcome.retry_after)
    return Decision(AttemptState.WAITING, policy.backoff(attempt))
