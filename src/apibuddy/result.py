r"""Terminal outcome of one request: a success payload or a classified
error."""

from __future__ import annotations

__all__ = ["Failure", "Result", "Success"]

from dataclasses import dataclass
from typing import Generic, NoReturn, TypeAlias, TypeVar

from apibuddy.exceptions import HttpClientError

T = TypeVar("T")
E = TypeVar("E", bound=HttpClientError)


@dataclass(frozen=True, slots=True)
class Success(Generic[T]):
    """A request that resolved to its declared response payload.

    Example:
        ```pycon
        >>> from apibuddy.result import Success
        >>> result = Success(42)
        >>> result.is_success
        True
        >>> result.unwrap()
        42

        ```
    """

    value: T

    @property
    def is_success(self) -> bool:
        return True

    def unwrap(self) -> T:
        """Return the payload."""
        return self.value


@dataclass(frozen=True, slots=True)
class Failure(Generic[E]):
    """A request that resolved to a classified error.

    Example:
        ```pycon
        >>> from apibuddy.exceptions import RequestCancelledError
        >>> from apibuddy.result import Failure
        >>> result = Failure(RequestCancelledError())
        >>> result.is_success
        False
        >>> result.unwrap()  # doctest: +SKIP
        Traceback (most recent call last):
        ...
        apibuddy.exceptions.RequestCancelledError: The request was cancelled

        ```
    """

    error: E

    @property
    def is_success(self) -> bool:
        return False

    def unwrap(self) -> NoReturn:
        """Raise the carried error."""
        raise self.error


Result: TypeAlias = Success[T] | Failure[HttpClientError]
