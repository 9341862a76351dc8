"""Tests for the exception hierarchy and exit codes."""

from __future__ import annotations

import pytest

from srccli.exceptions import (
    APIError,
    AuthError,
    ConfigError,
    ConnectionError_,
    GitError,
    InvalidUsageError,
    NotFoundError,
    ProtocolError,
    RateLimitError,
    RequestEncodeError,
    ServerError,
    SrcError,
    TokenNotFoundError,
    TransportError,
    error_class_for_status,
)


class TestExitCodes:
    @pytest.mark.parametrize(
        "exc,code",
        [
            (SrcError("x"), 1),
            (InvalidUsageError("x"), 2),
            (ConfigError("x"), 1),
            (GitError("x"), 8),
            (TokenNotFoundError("x"), 3),
            (TransportError("x"), 6),
            (RequestEncodeError("x"), 2),
            (ConnectionError_("x"), 6),
            (ProtocolError("x"), 7),
            (APIError("x", status_code=400), 5),
            (AuthError("x", status_code=401), 3),
            (NotFoundError("x", status_code=404), 4),
            (ServerError("x", status_code=500), 5),
            (RateLimitError("x"), 9),
        ],
    )
    def test_exit_code(self, exc: SrcError, code: int) -> None:
        assert exc.exit_code == code

    def test_exit_code_override(self) -> None:
        assert SrcError("x", exit_code=42).exit_code == 42

    def test_transport_errors_are_src_errors(self) -> None:
        assert issubclass(RateLimitError, TransportError)
        assert issubclass(TransportError, SrcError)


class TestAPIErrorFields:
    def test_fields(self) -> None:
        exc = APIError(
            "msg", status_code=409, reason="Conflict", path="/p", api_message="m", request_id="r"
        )
        assert (exc.status_code, exc.reason, exc.path) == (409, "Conflict", "/p")
        assert (exc.api_message, exc.request_id) == ("m", "r")
        assert str(exc) == "msg"

    def test_rate_limit_defaults_to_429(self) -> None:
        exc = RateLimitError("slow", retry_after=3.0)
        assert exc.status_code == 429
        assert exc.retry_after == 3.0

    def test_git_error_missing_remote(self) -> None:
        assert GitError("x", missing_remote=True).missing_remote
        assert not GitError("x").missing_remote


class TestErrorClassForStatus:
    @pytest.mark.parametrize(
        "status,cls",
        [
            (400, APIError),
            (401, AuthError),
            (403, AuthError),
            (404, NotFoundError),
            (405, APIError),
            (429, RateLimitError),
            (500, ServerError),
            (504, ServerError),
        ],
    )
    def test_mapping(self, status: int, cls: type) -> None:
        assert error_class_for_status(status) is cls
