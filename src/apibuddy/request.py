r"""Declarative description of one API call.

A request descriptor says how to build an HTTP call (method, path,
query, headers, body) and which payload types to expect back on
success and on error. ``Request`` is the structural contract; any object
exposing these attributes can be performed by the client.
``ApiRequest`` is a ready-made immutable implementation with defaults.

Example:
    ```pycon
    >>> from dataclasses import dataclass
    >>> from apibuddy.request import ApiRequest, HttpMethod
    >>> @dataclass
    ... class Item:
    ...     id: int
    ...
    >>> request = ApiRequest(
    ...     http_method=HttpMethod.POST,
    ...     path_components=("items",),
    ...     header_fields={"Content-Type": "application/json"},
    ...     http_body={"name": "spoon"},
    ...     response_type=Item,
    ... )
    >>> request.path_components
    ('items',)

    ```
"""

from __future__ import annotations

__all__ = ["ApiRequest", "HttpMethod", "QueryItem", "Request"]

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

from apibuddy.codec import EmptyBody

ResponseT = TypeVar("ResponseT")
ErrorT = TypeVar("ErrorT")
ResponseT_co = TypeVar("ResponseT_co", covariant=True)
ErrorT_co = TypeVar("ErrorT_co", covariant=True)

# A query item with a ``None`` value renders as a bare name, e.g. ``?flag``.
QueryItem = tuple[str, str | None]


class HttpMethod(str, Enum):
    """The supported HTTP methods."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


@runtime_checkable
class Request(Protocol[ResponseT_co, ErrorT_co]):
    """Structural contract for a request descriptor.

    Attributes:
        http_method: The HTTP method of the request.
        header_fields: Headers added verbatim to the request.
        path_components: Path segments appended to the base path, i.e.
            ``("path", "to", "resource")``.
        query_items: Ordered ``(name, value)`` pairs.
        http_body: The optional body, encoded as JSON.
        response_type: The payload type decoded from a 2xx body.
        error_type: The payload type decoded from a 4xx/5xx body.
    """

    @property
    def http_method(self) -> HttpMethod: ...

    @property
    def header_fields(self) -> Mapping[str, str]: ...

    @property
    def path_components(self) -> Sequence[str]: ...

    @property
    def query_items(self) -> Sequence[QueryItem]: ...

    @property
    def http_body(self) -> Any | None: ...

    @property
    def response_type(self) -> type[ResponseT_co]: ...

    @property
    def error_type(self) -> type[ErrorT_co]: ...


@dataclass(frozen=True)
class ApiRequest(Generic[ResponseT, ErrorT]):
    """Immutable request descriptor with sensible defaults.

    The defaults describe a ``GET`` to the base path with no headers,
    no query, no body, and ``EmptyBody`` for both payload types.

    Args:
        http_method: The HTTP method. Default is ``GET``.
        header_fields: Headers to set. Nothing else is injected, so a
            JSON body needs an explicit ``Content-Type`` here.
        path_components: Path segments, in order.
        query_items: Query ``(name, value)`` pairs, in order. Duplicates
            are kept.
        http_body: Optional body value.
        response_type: Expected success payload type.
        error_type: Expected error payload type.
    """

    http_method: HttpMethod = HttpMethod.GET
    header_fields: Mapping[str, str] = field(default_factory=dict)
    path_components: Sequence[str] = ()
    query_items: Sequence[QueryItem] = ()
    http_body: Any | None = None
    response_type: type[ResponseT] = EmptyBody  # type: ignore[assignment]
    error_type: type[ErrorT] = EmptyBody  # type: ignore[assignment]

    def __post_init__(self) -> None:
        object.__setattr__(self, "header_fields", MappingProxyType(dict(self.header_fields)))
        object.__setattr__(self, "path_components", tuple(self.path_components))
        object.__setattr__(
            self, "query_items", tuple((name, value) for name, value in self.query_items)
        )
