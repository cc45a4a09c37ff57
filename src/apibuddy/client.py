r"""HTTP client performing request descriptors.

The client runs every call through one pipeline: build the wire request,
dispatch it over the transport, classify what comes back. It exposes two
call surfaces over that pipeline:

- ``perform(request, on_complete)``: the callback surface. It returns a
  ``CallHandle`` immediately and calls ``on_complete`` exactly once, on
  the event loop, with the ``Result``.
- ``await perform_async(request)``: the awaitable surface, a thin adapter
  over ``perform`` that suspends until the ``Result`` is available and
  cancels the in-flight call if the awaiting task is cancelled.

Request failures never raise; they are ``Failure`` values.
"""

from __future__ import annotations

__all__ = ["HttpClient"]

import asyncio
import logging
from typing import TYPE_CHECKING, Any, TypeVar

from apibuddy.builder import build_request
from apibuddy.classifier import classify
from apibuddy.core.config import ClientConfig
from apibuddy.exceptions import HttpClientError, RequestCancelledError
from apibuddy.handle import CallHandle
from apibuddy.result import Failure, Result, Success
from apibuddy.transport import HttpxTransport
from apibuddy.utils.structured_logging import log_structured

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType
    from typing import Self

    import httpx

    from apibuddy.classifier import TransportResponse
    from apibuddy.request import Request
    from apibuddy.transport import Transport

logger: logging.Logger = logging.getLogger(__name__)

ResponseT = TypeVar("ResponseT")


def _outcome_name(result: Result[Any]) -> str:
    if isinstance(result, Success):
        return "success"
    return type(result.error).__name__


class HttpClient:
    r"""Client for one api, defined by its base URL.

    The client holds only read-only state: the base URL, the
    configuration and the transport. Each call keeps its state in its own
    wire request and call handle, so the client can be used concurrently.

    Args:
        base_url: The base endpoint of the api. Request path components
            are appended to its path.
        config: Optional ClientConfig with the timeouts. If ``None``, a
            default ClientConfig is used.
        transport: Optional transport. If ``None``, an ``HttpxTransport``
            is created and closed with the client.

    Example:
        ```pycon
        >>> import asyncio
        >>> from dataclasses import dataclass
        >>> from apibuddy import ApiRequest, HttpClient
        >>> @dataclass
        ... class Item:
        ...     id: int
        ...
        >>> async def main():  # doctest: +SKIP
        ...     async with HttpClient("https://api.example.com/v1") as client:
        ...         result = await client.perform_async(
        ...             ApiRequest(path_components=("items", "1"), response_type=Item)
        ...         )
        ...     return result
        ...
        >>> asyncio.run(main())  # doctest: +SKIP
        Success(value=Item(id=1))

        ```
    """

    def __init__(
        self,
        base_url: str | httpx.URL,
        *,
        config: ClientConfig | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._base_url = base_url
        self._config = config or ClientConfig()
        self._owns_transport = transport is None
        self._transport: Transport = transport or HttpxTransport(config=self._config)

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(base_url={str(self._base_url)!r})"

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    @property
    def base_url(self) -> str | httpx.URL:
        return self._base_url

    @property
    def config(self) -> ClientConfig:
        return self._config

    async def aclose(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_transport:
            await self._transport.aclose()

    def perform(
        self,
        request: Request[ResponseT, Any],
        on_complete: Callable[[Result[ResponseT]], None],
    ) -> CallHandle | None:
        r"""Perform a request and report the result through a callback.

        Must be called from the event loop thread; the running loop is
        the context ``on_complete`` is invoked on.

        Args:
            request: The request descriptor.
            on_complete: Called exactly once with the result. If the wire
                request cannot be built, it is called synchronously,
                before ``perform`` returns. Exceptions it raises are
                logged and dropped.

        Returns:
            A handle to cancel the in-flight call, or ``None`` if the
            request failed to build and nothing was dispatched.

        Raises:
            RuntimeError: If the request built but no event loop is
                running in the current thread. Nothing is dispatched and
                ``on_complete`` is not called.

        Example:
            ```pycon
            >>> from apibuddy import ApiRequest, HttpClient
            >>> async def main(client: HttpClient):  # doctest: +SKIP
            ...     handle = client.perform(ApiRequest(path_components=("ping",)), print)
            ...     handle.cancel()
            ...

            ```
        """
        try:
            wire = build_request(request, self._base_url)
        except HttpClientError as exc:
            logger.debug(f"Failed to build request: {exc}")
            self._complete(on_complete, Failure(exc), method=None, url=None, status_code=None)
            return None

        handle = CallHandle(wire)

        def on_done(task: asyncio.Task[TransportResponse]) -> None:
            response, error = _unpack(task)
            result = classify(
                response,
                error,
                response_type=request.response_type,
                error_type=request.error_type,
            )
            self._complete(
                on_complete,
                result,
                method=wire.method,
                url=str(wire.url),
                status_code=response.status_code if response is not None else None,
            )

        handle.start(lambda: self._transport.send(wire), on_done)
        logger.debug(f"Dispatched {wire.method} request to {wire.url}")
        return handle

    async def perform_async(self, request: Request[ResponseT, Any]) -> Result[ResponseT]:
        r"""Perform a request and wait for its result.

        If the awaiting task is already being cancelled, nothing is
        dispatched and the cancelled result is returned. If the task is
        cancelled while the call is in flight, the call is cancelled and
        the cancelled result is returned once the transport has unwound.
        A call that resolved before the cancellation keeps its result.

        Args:
            request: The request descriptor.

        Returns:
            ``Success`` with the decoded response payload, or ``Failure``
            with a classified error.

        Example:
            ```pycon
            >>> import asyncio
            >>> from apibuddy import ApiRequest, HttpClient
            >>> async def main():  # doctest: +SKIP
            ...     async with HttpClient("https://httpbin.org") as client:
            ...         return await client.perform_async(ApiRequest(path_components=("get",)))
            ...
            >>> asyncio.run(main())  # doctest: +SKIP
            Success(value=EmptyBody())

            ```
        """
        current = asyncio.current_task()
        if current is not None and current.cancelling():
            logger.debug("Awaiting task is already cancelled, request not dispatched")
            return Failure(RequestCancelledError())

        future: asyncio.Future[Result[ResponseT]] = asyncio.get_running_loop().create_future()

        def on_complete(result: Result[ResponseT]) -> None:
            if not future.done():
                future.set_result(result)

        handle = self.perform(request, on_complete)
        if handle is None:
            return future.result()

        try:
            return await asyncio.shield(future)
        except asyncio.CancelledError:
            handle.cancel()
            if current is not None:
                current.uncancel()
        try:
            return await asyncio.shield(future)
        except asyncio.CancelledError:
            if current is not None:
                current.uncancel()
            return Failure(RequestCancelledError())

    def _complete(
        self,
        on_complete: Callable[[Result[ResponseT]], None],
        result: Result[ResponseT],
        *,
        method: str | None,
        url: str | None,
        status_code: int | None,
    ) -> None:
        log_structured(
            logger,
            logging.DEBUG,
            f"Request resolved: {_outcome_name(result)}",
            http_method=method,
            url=url,
            status_code=status_code,
            outcome=_outcome_name(result),
        )
        try:
            on_complete(result)
        except Exception:
            logger.exception(f"Completion callback for {method} request to {url} raised")


def _unpack(
    task: asyncio.Task[TransportResponse],
) -> tuple[TransportResponse | None, BaseException | None]:
    if task.cancelled():
        return None, asyncio.CancelledError()
    error = task.exception()
    if error is not None:
        return None, error
    return task.result(), None
