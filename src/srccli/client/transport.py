"""Transport Core -- the single place where srccli talks HTTP.

:class:`Transport` wraps one :class:`httpx.Client` and performs exactly one
*logical call* per :meth:`~Transport.execute`:

- **Encoding** -- the request body is serialised to JSON once, before any
  attempt. A body that cannot be serialised fails immediately.
- **Auth** -- ``Authorization: Bearer <token>`` plus JSON ``Content-Type``
  and ``Accept`` headers on every attempt.
- **Retry** -- network failures and HTTP 429 are retried up to the budget
  in :class:`~srccli.client.retry.RetryPolicy`; the wait comes from a
  usable ``Retry-After`` header or exponential backoff (1 s, 2 s, 4 s).
- **Classification** -- every other non-2xx status and every 2xx answer
  without a JSON ``Content-Type`` is terminal and raised as a typed
  :class:`~srccli.exceptions.TransportError`.

The decisions themselves live in :mod:`srccli.client.retry`; this module
only sends requests, reads bodies and sleeps. Both the HTTP transport and
the sleep function are injectable so tests run without a network or a
clock.

Example::

    with Transport(config) as transport:
        raw = transport.execute("GET", "/orgs/acme/repos")
"""

from __future__ import annotations

import json
import time
from typing import Any, Callable, Optional, cast

import httpx
from pydantic import BaseModel

from srccli.client.retry import (
    BODY_START_LIMIT,
    ERROR_SNIPPET_LIMIT,
    AttemptState,
    MalformedResponse,
    Outcome,
    RateLimited,
    RetryableNetworkError,
    RetryPolicy,
    Success,
    TerminalHTTPError,
    classify_error,
    classify_response,
    is_json_body,
    next_step,
    parse_error_body,
    truncate,
)
from srccli.exceptions import (
    APIError,
    ConnectionError_,
    ProtocolError,
    RateLimitError,
    RequestEncodeError,
    TransportError,
    error_class_for_status,
)
from srccli.models import ClientConfig
from srccli.output import get_output

# Failures to get a response at all; these are worth another try. A failure
# while reading the body of a response that did arrive is terminal.
NETWORK_ERRORS = (httpx.TimeoutException, httpx.NetworkError, httpx.RemoteProtocolError)


class Transport:
    """Blocking HTTP transport with retry and error classification.

    Must be used as a context manager so that the underlying connection
    pool is opened and closed exactly once per CLI invocation.

    Args:
        config: Frozen connection settings (base URL, token, timeouts,
            retry budget).
        transport: Optional :class:`httpx.BaseTransport`, e.g. an
            :class:`httpx.MockTransport` in tests.
        sleep: Function used to wait between attempts.
    """

    def __init__(
        self,
        config: ClientConfig,
        transport: Optional[httpx.BaseTransport] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._config = config
        self._transport = transport
        self._sleep = sleep
        self._policy = RetryPolicy(
            max_attempts=config.request.max_retries,
            base_delay=config.request.base_delay,
        )
        self._client: Optional[httpx.Client] = None

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> Transport:
        settings = self._config.request
        self._client = httpx.Client(
            base_url=self._config.base_url,
            timeout=settings.timeout,
            verify=settings.verify_ssl,
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def execute(self, method: str, path: str, body: Any = None) -> bytes:
        """Perform one logical JSON call and return the raw response body.

        Args:
            method: HTTP method (``GET``, ``POST``, ``PATCH``, ...).
            path: Request path. A leading ``/`` is added when missing.
            body: Optional request body: a pydantic model (dumped without
                unset fields), or any JSON-serialisable value. ``None``
                sends no body.

        Returns:
            The body of the 2xx response, byte-for-byte.

        Raises:
            RequestEncodeError: The body cannot be serialised to JSON.
            ConnectionError_: Every attempt failed at the network level, or
                a response body could not be read (not retried).
            RateLimitError: HTTP 429 on every attempt.
            APIError: Any other non-2xx status (or a subclass of it).
            ProtocolError: A 2xx response without a JSON ``Content-Type``.
        """
        client = self._require_client()
        method = method.upper()
        path = normalize_path(path)
        content = encode_body(body)
        headers = {
            "Authorization": f"Bearer {self._config.token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        output = get_output()
        max_attempts = self._policy.max_attempts

        for attempt in range(max_attempts):
            output.debug(f"{method} {path} (attempt {attempt + 1}/{max_attempts})")
            outcome = self._attempt(client, method, path, headers, content, expect_json=True)
            decision = next_step(outcome, attempt, self._policy)

            if decision.state is AttemptState.SUCCEEDED:
                return cast(Success, outcome).body
            if decision.state is AttemptState.FAILED:
                raise self._failure(outcome, path, attempts=max_attempts)

            output.warning(_retry_notice(outcome, decision.delay, attempt, max_attempts))
            self._sleep(decision.delay)

        raise TransportError("internal error: retry loop failed to complete")  # pragma: no cover

    def download(self, path: str) -> bytes:
        """Fetch a binary payload in a single attempt.

        Only the ``Authorization`` header is sent and the response
        ``Content-Type`` is not checked. Non-2xx statuses are classified
        exactly as in :meth:`execute`.

        Args:
            path: Request path. A leading ``/`` is added when missing.

        Returns:
            The raw response bytes, unchanged.
        """
        client = self._require_client()
        path = normalize_path(path)
        headers = {"Authorization": f"Bearer {self._config.token}"}
        get_output().debug(f"GET {path} (binary)")

        outcome = self._attempt(client, "GET", path, headers, None, expect_json=False)
        if isinstance(outcome, Success):
            return outcome.body
        raise self._failure(outcome, path, attempts=1)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _require_client(self) -> httpx.Client:
        if self._client is None:
            raise TransportError("Transport not initialised -- use it as a context manager")
        return self._client

    def _attempt(
        self,
        client: httpx.Client,
        method: str,
        path: str,
        headers: dict[str, str],
        content: Optional[bytes],
        expect_json: bool,
    ) -> Outcome:
        """Send one request and classify what came back.

        Raises:
            ConnectionError_: The response arrived but its body could not
                be read. The server may already have acted on the request,
                so this is never retried.
        """
        # A fresh request per attempt; the encoded body is reused.
        request = client.build_request(method, path, headers=headers, content=content)
        try:
            response = client.send(request, stream=True)
        except NETWORK_ERRORS as exc:
            get_output().debug(f"{method} {path}: {exc}")
            return classify_error(exc)

        try:
            # The body of a 429 is never read.
            body = b"" if response.status_code == 429 else response.read()
        except httpx.HTTPError as exc:
            get_output().debug(f"{method} {path}: error reading body: {exc}")
            raise ConnectionError_(f"API response read error: {exc}") from exc
        finally:
            response.close()

        return classify_response(
            response.status_code,
            response.reason_phrase,
            response.headers,
            body,
            expect_json=expect_json,
        )

    def _failure(self, outcome: Outcome, path: str, attempts: int) -> TransportError:
        """Build the exception for a terminal *outcome*."""
        if isinstance(outcome, RetryableNetworkError):
            if attempts > 1:
                message = f"request execution error after {attempts} retries: {outcome.error}"
            else:
                message = f"request execution error: {outcome.error}"
            exc: TransportError = ConnectionError_(message)
            exc.__cause__ = outcome.error
            return exc
        if isinstance(outcome, RateLimited):
            message = "API request failed due to rate limiting (429)"
            if attempts > 1:
                message = f"{message} after {attempts} retries"
            return RateLimitError(
                message,
                retry_after=outcome.retry_after,
                reason="Too Many Requests",
                path=path,
            )
        if isinstance(outcome, MalformedResponse):
            snippet = truncate(_text(outcome.body), BODY_START_LIMIT)
            return ProtocolError(
                f"API returned non-JSON response (Content-Type: {outcome.content_type}) "
                f"despite 2xx status. Path: {path}. Body start: {snippet}"
            )
        if isinstance(outcome, TerminalHTTPError):
            return api_error_for(outcome, path)
        return TransportError("internal error: retry loop failed to complete")  # pragma: no cover


# ------------------------------------------------------------------ #
# Module-level helpers
# ------------------------------------------------------------------ #


def normalize_path(path: str) -> str:
    if not path.startswith("/"):
        return "/" + path
    return path


def encode_body(body: Any) -> Optional[bytes]:
    """Serialise a request body to UTF-8 JSON, or return ``None`` for no body.

    Raises:
        RequestEncodeError: The value is not JSON-serialisable (including
            NaN and infinite floats).
    """
    if body is None:
        return None
    try:
        if isinstance(body, BaseModel):
            return body.model_dump_json(exclude_none=True).encode("utf-8")
        return json.dumps(body, ensure_ascii=False, allow_nan=False).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise RequestEncodeError(f"JSON marshal error: {exc}") from exc


def api_error_for(outcome: TerminalHTTPError, path: str) -> APIError:
    """Build the typed error for a terminal non-2xx response.

    The message names the status and path, then appends the API's
    ``message`` (and ``request_id``) from a JSON body, or a truncated
    snippet of a non-JSON body.
    """
    code = outcome.status_code
    status = f"{code} {outcome.reason}".rstrip()
    if code == 401:
        message = f"API error: {status} (Invalid or expired token, path: {path})"
    elif code == 404:
        message = f"API error: {status} (Incorrect path: {path})"
    elif code == 405:
        message = f"API error: {status} (Wrong HTTP method for path: {path})"
    else:
        message = f"API returned error: {status} (path: {path})"

    api_message, request_id = parse_error_body(outcome.body)
    if outcome.body:
        if api_message is not None and request_id is not None:
            message = f"{message}. Message: {api_message} (Request ID: {request_id})"
        elif api_message is not None:
            message = f"{message}. Message: {api_message}"
        elif not is_json_body(outcome.body):
            snippet = truncate(_text(outcome.body), ERROR_SNIPPET_LIMIT)
            message = f"{message}. Response Body: {snippet}"

    cls = error_class_for_status(code)
    return cls(
        message,
        status_code=code,
        reason=outcome.reason,
        path=path,
        api_message=api_message,
        request_id=request_id,
    )


def _retry_notice(outcome: Outcome, delay: float, attempt: int, max_attempts: int) -> str:
    if isinstance(outcome, RateLimited):
        what = "Rate limit hit (429)"
    else:
        what = "Request failed (network/timeout)"
    return f"{what}. Retrying in {delay:g}s (Attempt {attempt + 1}/{max_attempts})..."


def _text(body: bytes) -> str:
    return body.decode("utf-8", errors="replace")
