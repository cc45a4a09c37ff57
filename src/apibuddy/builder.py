r"""Build concrete wire requests from request descriptors.

The wire request is fully determined by the base URL and the descriptor:
nothing else influences its shape, and no header is injected beyond
what the descriptor declares.
"""

from __future__ import annotations

__all__ = ["WireRequest", "build_request", "build_url"]

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx

from apibuddy.codec import json_encode
from apibuddy.exceptions import InternalError
from apibuddy.request import HttpMethod

if TYPE_CHECKING:
    from collections.abc import Sequence

    from apibuddy.request import QueryItem, Request

logger: logging.Logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WireRequest:
    """A transport-ready request.

    Attributes:
        method: The HTTP verb, e.g. ``"GET"``.
        url: The absolute URL.
        headers: Headers to send, exactly as declared.
        content: The encoded body, or ``None`` when there is none.
    """

    method: str
    url: httpx.URL
    headers: dict[str, str] = field(default_factory=dict)
    content: bytes | None = None

    @property
    def path(self) -> str:
        return self.url.path


def _encode_query(query_items: Sequence[QueryItem]) -> bytes:
    parts = []
    for name, value in query_items:
        if value is None:
            parts.append(quote(name, safe=""))
        else:
            parts.append(f"{quote(name, safe='')}={quote(value, safe='')}")
    return "&".join(parts).encode("ascii")


def build_url(base_url: str | httpx.URL, request: Request[Any, Any]) -> httpx.URL:
    r"""Resolve the absolute URL of a request.

    The scheme, host and port come from ``base_url``. The path is the
    base path followed by the request's path components, joined by
    exactly one ``/`` in declared order. Query items are appended in
    declared order without deduplication.

    Args:
        base_url: The base endpoint of the api.
        request: The request descriptor.

    Returns:
        The absolute URL.

    Raises:
        InternalError: If the components do not form a valid absolute
            URL.

    Example:
        ```pycon
        >>> from apibuddy.builder import build_url
        >>> from apibuddy.request import ApiRequest
        >>> build_url(
        ...     "https://api.example.com/v1/",
        ...     ApiRequest(path_components=("items", "42"), query_items=(("expand", "all"),)),
        ... )
        URL('https://api.example.com/v1/items/42?expand=all')

        ```
    """
    components = {
        "base_url": str(base_url),
        "path_components": list(request.path_components),
        "query_items": list(request.query_items),
    }
    try:
        base = httpx.URL(base_url)
        if not base.scheme or not base.host:
            msg = f"base url must be absolute, got {str(base_url)!r}"
            raise ValueError(msg)
        path = "/".join([base.path.rstrip("/"), *request.path_components])
        kwargs: dict[str, Any] = {"scheme": base.scheme, "host": base.host, "path": path or "/"}
        if base.port is not None:
            kwargs["port"] = base.port
        if request.query_items:
            kwargs["query"] = _encode_query(request.query_items)
        return httpx.URL(**kwargs)
    except (httpx.InvalidURL, ValueError, TypeError) as exc:
        msg = f"Failed to resolve url from components: {components}: {exc}"
        raise InternalError(msg, cause=exc) from exc


def build_request(request: Request[Any, Any], base_url: str | httpx.URL) -> WireRequest:
    r"""Turn a request descriptor into a wire request.

    Args:
        request: The request descriptor.
        base_url: The base endpoint of the api.

    Returns:
        The wire request.

    Raises:
        InternalError: If the URL cannot be composed or the body cannot
            be encoded. Encoding exceptions are wrapped, never raised raw.

    Example:
        ```pycon
        >>> from apibuddy.builder import build_request
        >>> from apibuddy.request import ApiRequest, HttpMethod
        >>> wire = build_request(
        ...     ApiRequest(
        ...         http_method=HttpMethod.PUT, path_components=("items", "1"), http_body={"id": 1}
        ...     ),
        ...     "https://api.example.com",
        ... )
        >>> wire.method, str(wire.url), wire.content
        ('PUT', 'https://api.example.com/items/1', b'{"id":1}')

        ```
    """
    url = build_url(base_url, request)

    content = None
    if request.http_body is not None:
        try:
            content = json_encode(request.http_body)
        except Exception as exc:
            msg = f"Failed to json encode http body: {exc}"
            raise InternalError(msg, cause=exc) from exc

    try:
        method = HttpMethod(request.http_method).value
    except ValueError as exc:
        msg = f"Unsupported http method: {request.http_method!r}"
        raise InternalError(msg, cause=exc) from exc

    wire = WireRequest(
        method=method,
        url=url,
        headers=dict(request.header_fields),
        content=content,
    )
    logger.debug(f"Built {wire.method} request to {wire.url}")
    return wire
