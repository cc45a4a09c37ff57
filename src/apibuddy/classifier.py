r"""Classify transport outcomes into typed results.

The classifier maps what the transport produced (a response, an
exception, or neither) into a ``Result``. The checks run in a fixed
order and the first match wins:

1. cancellation -> ``RequestCancelledError``
2. any other transport exception -> ``NetworkError``
3. no response -> ``InternalError``
4. no body -> ``InternalError``
5. status family: 2xx decodes the response type, 4xx/5xx decodes the
   error type into a ``ResponseError``, anything else is an
   ``InternalError``
"""

from __future__ import annotations

__all__ = ["TransportResponse", "classify", "debug_info"]

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, TypeVar

from apibuddy.codec import EmptyBody, date_strategy_for, json_decode
from apibuddy.exceptions import (
    InternalError,
    NetworkError,
    RequestCancelledError,
    ResponseError,
)
from apibuddy.result import Failure, Result, Success

logger: logging.Logger = logging.getLogger(__name__)

ResponseT = TypeVar("ResponseT")


@dataclass(frozen=True)
class TransportResponse:
    """What the transport received from the server.

    Attributes:
        status_code: The HTTP status code.
        path: The path of the request that produced the response.
        headers: The response headers.
        content: The response body. ``None`` means no body could be
            obtained at all; an empty body is ``b""``.
    """

    status_code: int
    path: str
    headers: dict[str, str] = field(default_factory=dict)
    content: bytes | None = None


def debug_info(response: TransportResponse) -> str:
    r"""Return the diagnostic context attached to internal errors.

    Example:
        ```pycon
        >>> from apibuddy.classifier import TransportResponse, debug_info
        >>> debug_info(TransportResponse(status_code=200, path="/items"))
        '(PATH: /items, STATUS_CODE: 200)'

        ```
    """
    return f"(PATH: {response.path or '?'}, STATUS_CODE: {response.status_code})"


def _payload_bytes(type_: Any, content: bytes) -> bytes:
    if isinstance(type_, type) and issubclass(type_, EmptyBody):
        return EmptyBody.JSON_DATA
    return content


def classify(
    response: TransportResponse | None,
    error: BaseException | None,
    *,
    response_type: type[ResponseT],
    error_type: type[Any],
) -> Result[ResponseT]:
    r"""Resolve the outcome of one HTTP exchange.

    Args:
        response: The response, if the transport obtained one.
        error: The exception raised by the transport, if any. An
            ``asyncio.CancelledError`` means the call was cancelled.
        response_type: The payload type decoded from a 2xx body.
        error_type: The payload type decoded from a 4xx/5xx body.

    Returns:
        ``Success`` with the decoded payload, or ``Failure`` with a
        classified error. Never raises for a request failure.

    Example:
        ```pycon
        >>> from apibuddy.classifier import TransportResponse, classify
        >>> from apibuddy.codec import EmptyBody
        >>> classify(
        ...     TransportResponse(status_code=204, path="/items/1", content=b""),
        ...     None,
        ...     response_type=EmptyBody,
        ...     error_type=EmptyBody,
        ... )
        Success(value=EmptyBody())

        ```
    """
    if isinstance(error, asyncio.CancelledError):
        return Failure(RequestCancelledError())
    if error is not None:
        return Failure(NetworkError(error))

    if response is None:
        return Failure(InternalError("Expected a response from the transport, but received None"))

    info = debug_info(response)
    if response.content is None:
        return Failure(InternalError(f"Missing response data {info}"))

    status = response.status_code
    if 200 <= status <= 299:
        try:
            value = json_decode(
                _payload_bytes(response_type, response.content),
                response_type,
                date_strategy_for(response_type),
            )
        except Exception as exc:
            logger.debug(f"Failed to decode response object {info}: {exc}")
            msg = f"Failed to decode response object: {exc} {info}"
            return Failure(InternalError(msg, cause=exc))
        return Success(value)

    if 400 <= status <= 599:
        try:
            body = json_decode(
                _payload_bytes(error_type, response.content),
                error_type,
                date_strategy_for(error_type),
            )
        except Exception as exc:
            logger.debug(f"Failed to decode response error {info}: {exc}")
            msg = f"Failed to decode response error: {exc} {info}"
            return Failure(InternalError(msg, cause=exc))
        return Failure(
            ResponseError(status_code=status, request_path=response.path, response_body=body)
        )

    return Failure(InternalError(f"Unexpected http status code {info}"))
