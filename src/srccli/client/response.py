"""Decoding bridge -- maps raw Transport Core bytes to typed models.

The Transport Core returns response bodies untouched; deserialisation is
the caller's job. :func:`decode_model` does it for every resource caller
so that a body which does not match the expected shape always surfaces
as the same :class:`~srccli.exceptions.ProtocolError`.
"""

from __future__ import annotations

from typing import TypeVar

from pydantic import BaseModel, ValidationError

from srccli.client.retry import BODY_START_LIMIT, truncate
from srccli.exceptions import ProtocolError

ModelT = TypeVar("ModelT", bound=BaseModel)


def decode_model(
    body: bytes,
    model: type[ModelT],
    method: str,
    path: str,
    what: str | None = None,
) -> ModelT:
    """Validate a JSON *body* into *model*.

    Args:
        body: Raw response bytes from :meth:`Transport.execute`.
        model: The pydantic model describing the expected shape.
        method: HTTP method of the call, used in the error message.
        path: Request path of the call, used in the error message.
        what: Short name of the decoded object ("repo list"); defaults to
            the model class name.

    Returns:
        An instance of *model*.

    Raises:
        ProtocolError: The body is not JSON or does not fit *model*.
    """
    try:
        return model.model_validate_json(body)
    except ValidationError as exc:
        snippet = truncate(body.decode("utf-8", errors="replace"), BODY_START_LIMIT)
        raise ProtocolError(
            f"failed to decode {what or model.__name__} JSON from {method} {path}: "
            f"{exc.error_count()} validation error(s). Response start: {snippet}"
        ) from exc
