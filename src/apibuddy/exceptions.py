r"""Error taxonomy for requests performed by the client.

Every failed request resolves to exactly one of the errors defined here,
carried as a value in ``Failure``:

- ``ResponseError``: the server answered 4xx/5xx with a decodable body
- ``NetworkError``: the transport failed (DNS, connection, timeout)
- ``RequestCancelledError``: the call was withdrawn before it resolved
- ``InternalError``: a contract was broken (bad URL, undecodable body,
  unexpected status, missing response)
"""

from __future__ import annotations

__all__ = [
    "HttpClientError",
    "InternalError",
    "NetworkError",
    "RequestCancelledError",
    "ResponseError",
]

from typing import Generic, TypeVar

ErrorT = TypeVar("ErrorT")


class HttpClientError(Exception):
    """Base class for all classified request errors.

    Args:
        message: A descriptive error message.
        cause: The underlying exception, if any. It is also set as
            ``__cause__`` so tracebacks show the chain.
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause


class ResponseError(HttpClientError, Generic[ErrorT]):
    r"""The api responded with a 4xx or 5xx status.

    Args:
        status_code: The HTTP status code of the response.
        request_path: The path of the request resulting in the response.
        response_body: The decoded error body reported by the api.

    Example:
        ```pycon
        >>> from apibuddy.exceptions import ResponseError
        >>> error = ResponseError(status_code=404, request_path="/items/1", response_body={})
        >>> error.status_code
        404
        >>> str(error)
        'Request to /items/1 failed with status 404'

        ```
    """

    def __init__(self, status_code: int, request_path: str, response_body: ErrorT) -> None:
        super().__init__(f"Request to {request_path} failed with status {status_code}")
        self.status_code = status_code
        self.request_path = request_path
        self.response_body = response_body

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__qualname__}(status_code={self.status_code}, "
            f"request_path={self.request_path!r}, response_body={self.response_body!r})"
        )


class NetworkError(HttpClientError):
    """The transport failed before a response was received.

    The core never retries; callers decide whether to.

    Args:
        cause: The transport exception, typically an
            ``httpx.TransportError``.
    """

    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"Network error: {type(cause).__name__}: {cause}", cause=cause)


class RequestCancelledError(HttpClientError):
    """The request was cancelled before it resolved."""

    def __init__(self) -> None:
        super().__init__("The request was cancelled")


class InternalError(HttpClientError):
    """A contract between the client, the transport and the declared
    payload types was broken.

    The message always carries the diagnostic context available at the
    point of failure, e.g. ``(PATH: /items, STATUS_CODE: 200)``.
    """
