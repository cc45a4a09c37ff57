r"""apibuddy - Typed HTTP client core built on httpx.

A caller declares an API request (method, path, query, headers, body and
the payload types expected on success and on error), and the client
builds the wire request, sends it, and returns a typed ``Result``: a
``Success`` carrying the decoded payload, or a ``Failure`` carrying one
of a closed set of errors.

Key Features:
    - Declarative, immutable request descriptors
    - JSON payloads decoded into dataclasses or pydantic models
    - Status-driven classification into ``ResponseError``, ``NetworkError``,
      ``RequestCancelledError`` and ``InternalError``
    - Callback and ``async`` call surfaces sharing one pipeline
    - Cooperative, idempotent cancellation

Example:
    ```pycon
    >>> import asyncio
    >>> from dataclasses import dataclass
    >>> from apibuddy import ApiRequest, HttpClient, HttpMethod, Success
    >>> @dataclass
    ... class Item:
    ...     id: int
    ...
    >>> @dataclass
    ... class ApiError:
    ...     message: str
    ...
    >>> async def main():  # doctest: +SKIP
    ...     async with HttpClient("https://api.example.com/v1") as client:
    ...         result = await client.perform_async(
    ...             ApiRequest(
    ...                 http_method=HttpMethod.POST,
    ...                 path_components=("items",),
    ...                 header_fields={"Content-Type": "application/json"},
    ...                 http_body={"name": "spoon"},
    ...                 response_type=Item,
    ...                 error_type=ApiError,
    ...             )
    ...         )
    ...     if isinstance(result, Success):
    ...         return result.value.id
    ...
    >>> asyncio.run(main())  # doctest: +SKIP

    ```
"""

from __future__ import annotations

__all__ = [
    "ApiRequest",
    "CallHandle",
    "ClientConfig",
    "DateStrategy",
    "EmptyBody",
    "Failure",
    "HttpClient",
    "HttpClientError",
    "HttpMethod",
    "HttpxTransport",
    "InternalError",
    "NetworkError",
    "Request",
    "RequestCancelledError",
    "ResponseError",
    "Result",
    "Success",
    "Transport",
    "__version__",
]

from importlib.metadata import PackageNotFoundError, version

from apibuddy.client import HttpClient
from apibuddy.codec import DateStrategy, EmptyBody
from apibuddy.core.config import ClientConfig
from apibuddy.exceptions import (
    HttpClientError,
    InternalError,
    NetworkError,
    RequestCancelledError,
    ResponseError,
)
from apibuddy.handle import CallHandle
from apibuddy.request import ApiRequest, HttpMethod, Request
from apibuddy.result import Failure, Result, Success
from apibuddy.transport import HttpxTransport, Transport

try:
    __version__ = version(__name__)
except PackageNotFoundError:  # pragma: no cover
    # Package is not installed, fallback if needed
    __version__ = "0.0.0"
