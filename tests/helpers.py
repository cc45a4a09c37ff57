r"""Shared test helpers: payload types and a transport double.

This module contains common test infrastructure used across multiple
test files to reduce duplication and improve maintainability.
"""

from __future__ import annotations

__all__ = [
    "TEST_BASE_URL",
    "ApiError",
    "Event",
    "Item",
    "LegacyEvent",
    "StubTransport",
    "make_response",
]

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, ClassVar

from apibuddy.classifier import TransportResponse
from apibuddy.codec import DateStrategy

if TYPE_CHECKING:
    from collections.abc import Callable

    from apibuddy.builder import WireRequest

TEST_BASE_URL = "https://api.example.com/v1"


@dataclass(frozen=True)
class Item:
    id: int


@dataclass(frozen=True)
class ApiError:
    message: str


@dataclass(frozen=True)
class Event:
    name: str
    at: datetime


@dataclass(frozen=True)
class LegacyEvent:
    """Payload whose api exchanges dates as Unix seconds."""

    json_date_strategy: ClassVar[DateStrategy] = DateStrategy.SECONDS_SINCE_1970

    name: str
    at: datetime


def make_response(
    status_code: int = 200, content: bytes | None = b"{}", path: str = "/v1/items/1"
) -> TransportResponse:
    """Create a transport response for testing."""
    return TransportResponse(status_code=status_code, path=path, content=content)


class StubTransport:
    """Transport double that records requests and replays a canned
    outcome.

    Args:
        response: The response to return.
        error: The exception to raise instead of returning.
        responder: Optional function computing the response from the
            request. Takes precedence over ``response``.
        gate: Optional event the exchange waits on before resolving,
            to keep a call in flight.
    """

    def __init__(
        self,
        response: TransportResponse | None = None,
        error: BaseException | None = None,
        *,
        responder: Callable[[WireRequest], TransportResponse] | None = None,
        gate: asyncio.Event | None = None,
    ) -> None:
        self.response = response
        self.error = error
        self.responder = responder
        self.gate = gate
        self.requests: list[WireRequest] = []
        self.started = asyncio.Event()
        self.cancelled = False
        self.closed = False

    async def send(self, request: WireRequest) -> TransportResponse | None:
        self.requests.append(request)
        self.started.set()
        try:
            if self.gate is not None:
                await self.gate.wait()
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.error is not None:
            raise self.error
        if self.responder is not None:
            return self.responder(request)
        return self.response

    async def aclose(self) -> None:
        self.closed = True
