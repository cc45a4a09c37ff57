r"""Transport boundary between the client and the network.

A transport accepts a wire request and returns what the server sent.
It raises whatever the underlying library raises; classification is the
client's job. Cancellation is cooperative: cancelling the task awaiting
``send`` cancels the exchange.

``HttpxTransport`` is the default implementation on top of a shared
``httpx.AsyncClient``. TLS and connection reuse are left to ``httpx``.
Redirects are never followed; a 3xx reaches the classifier as is. The
client it creates never stores cookies, so a ``Set-Cookie`` from one
call is not sent on the next.
"""

from __future__ import annotations

__all__ = ["HttpxTransport", "ResourceTimeoutError", "Transport"]

import asyncio
import http.cookiejar
import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import httpx

from apibuddy.classifier import TransportResponse
from apibuddy.core.config import ClientConfig

if TYPE_CHECKING:
    from apibuddy.builder import WireRequest

logger: logging.Logger = logging.getLogger(__name__)


def _refusing_cookie_jar() -> http.cookiejar.CookieJar:
    return http.cookiejar.CookieJar(
        policy=http.cookiejar.DefaultCookiePolicy(allowed_domains=[])
    )


class ResourceTimeoutError(httpx.TimeoutException):
    """Raised when a whole exchange exceeds the resource timeout."""


@runtime_checkable
class Transport(Protocol):
    """Structural contract for a transport."""

    async def send(self, request: WireRequest) -> TransportResponse:
        """Send the request and return the server's response."""

    async def aclose(self) -> None:
        """Release the transport's resources."""


class HttpxTransport:
    r"""Transport backed by ``httpx.AsyncClient``.

    The underlying client is shared by every call and never mutated per
    call. When no client is given, one is created with the configured
    per-operation timeout and a cookie jar that refuses every cookie,
    and closed by ``aclose``. A caller-supplied client is left open and
    used as configured.

    Args:
        client: Optional ``httpx.AsyncClient`` to send requests with.
        config: Optional ClientConfig with the timeouts. If ``None``, a
            default ClientConfig is used.
        transport: Optional ``httpx`` transport for the created client,
            e.g. ``httpx.MockTransport``. Ignored when ``client`` is
            given.

    Example:
        ```pycon
        >>> import asyncio
        >>> import httpx
        >>> from apibuddy.builder import WireRequest
        >>> from apibuddy.transport import HttpxTransport
        >>> async def main():  # doctest: +SKIP
        ...     transport = HttpxTransport()
        ...     try:
        ...         return await transport.send(
        ...             WireRequest(method="GET", url=httpx.URL("https://httpbin.org/get"))
        ...         )
        ...     finally:
        ...         await transport.aclose()
        ...
        >>> asyncio.run(main())  # doctest: +SKIP

        ```
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        config: ClientConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config or ClientConfig()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=self._config.httpx_timeout(),
            follow_redirects=False,
            cookies=_refusing_cookie_jar(),
            transport=transport,
        )

    @property
    def config(self) -> ClientConfig:
        return self._config

    async def send(self, request: WireRequest) -> TransportResponse:
        """Send a wire request.

        Args:
            request: The request to send.

        Returns:
            The status, headers and body of the response.

        Raises:
            httpx.HTTPError: If the exchange fails at the transport
                level. ``ResourceTimeoutError`` if it does not complete
                within the resource timeout.
            asyncio.CancelledError: If the awaiting task is cancelled.
        """
        logger.debug(f"Sending {request.method} request to {request.url}")
        try:
            async with asyncio.timeout(self._config.resource_timeout):
                response = await self._client.request(
                    request.method,
                    request.url,
                    headers=request.headers,
                    content=request.content,
                    follow_redirects=False,
                )
        except TimeoutError as exc:
            msg = (
                f"{request.method} request to {request.url} did not complete "
                f"within {self._config.resource_timeout}s"
            )
            raise ResourceTimeoutError(msg) from exc
        logger.debug(
            f"Received status {response.status_code} for {request.method} request to {request.url}"
        )
        return TransportResponse(
            status_code=response.status_code,
            path=response.request.url.path,
            headers=dict(response.headers),
            content=response.content,
        )

    async def aclose(self) -> None:
        """Close the underlying ``httpx.AsyncClient`` if this transport
        created it."""
        if self._owns_client:
            await self._client.aclose()
