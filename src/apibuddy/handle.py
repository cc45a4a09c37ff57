r"""Cancellable handle to one in-flight call.

The handle is the single owner of the task running the transport
exchange. ``start`` and ``cancel`` may race, including from different
threads; a lock guarantees the exchange is dispatched at most once and
never after a cancel.
"""

from __future__ import annotations

__all__ = ["CallHandle"]

import asyncio
import logging
import threading
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine

    from apibuddy.builder import WireRequest

logger: logging.Logger = logging.getLogger(__name__)


class CallHandle:
    r"""Handle to one in-flight call.

    Args:
        request: The wire request the call sends.

    Example:
        ```pycon
        >>> import asyncio
        >>> import httpx
        >>> from apibuddy.builder import WireRequest
        >>> from apibuddy.handle import CallHandle
        >>> async def main():
        ...     handle = CallHandle(WireRequest(method="GET", url=httpx.URL("https://example.com")))
        ...     handle.cancel()
        ...     return handle.start(lambda: asyncio.sleep(1), lambda task: None)
        ...
        >>> asyncio.run(main())
        False

        ```
    """

    def __init__(self, request: WireRequest) -> None:
        self._request = request
        self._lock = threading.Lock()
        self._task: asyncio.Task[Any] | None = None
        self._cancelled = False

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "done" if self.done else "pending"
        return f"{self.__class__.__qualname__}({self._request.method} {self._request.url}, {state})"

    @property
    def request(self) -> WireRequest:
        return self._request

    @property
    def cancelled(self) -> bool:
        """``True`` if ``cancel`` took effect."""
        return self._cancelled

    @property
    def done(self) -> bool:
        """``True`` once the exchange has resolved, whatever the way."""
        return self._task is not None and self._task.done()

    def start(
        self,
        exchange: Callable[[], Coroutine[Any, Any, Any]],
        on_done: Callable[[asyncio.Task[Any]], None],
    ) -> bool:
        """Dispatch the exchange on the running event loop.

        Args:
            exchange: Factory of the coroutine performing the exchange.
                It is only called if the handle was not cancelled.
            on_done: Called on the event loop once the task resolves.

        Returns:
            ``True`` if the exchange was dispatched, ``False`` if the
            handle was already cancelled or started.
        """
        with self._lock:
            if self._cancelled or self._task is not None:
                return False
            loop = asyncio.get_running_loop()
            self._task = loop.create_task(exchange())
            self._task.add_done_callback(on_done)
            return True

    def cancel(self) -> bool:
        """Request cancellation of the call.

        Cancelling before ``start`` prevents dispatch entirely. Cancelling
        a resolved or already cancelled call has no effect.

        Returns:
            ``True`` if this call to ``cancel`` took effect.
        """
        with self._lock:
            if self._cancelled or (self._task is not None and self._task.done()):
                return False
            self._cancelled = True
            task = self._task
        logger.debug(f"Cancelling {self._request.method} request to {self._request.url}")
        if task is not None:
            loop = task.get_loop()
            try:
                running = asyncio.get_running_loop()
            except RuntimeError:
                running = None
            if running is loop:
                task.cancel()
            else:
                loop.call_soon_threadsafe(task.cancel)
        return True
