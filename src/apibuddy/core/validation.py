r"""Parameter validation utilities for the client configuration."""

from __future__ import annotations

__all__ = ["validate_timeout", "validate_timeouts"]

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx


def validate_timeout(timeout: float | httpx.Timeout, name: str = "timeout") -> None:
    """Validate a timeout parameter.

    Args:
        timeout: Maximum seconds to wait. Must be > 0 if provided as a
            numeric value.
        name: The parameter name used in the error message.

    Raises:
        ValueError: If timeout is a numeric value <= 0.

    Example:
        ```pycon
        >>> from apibuddy.core.validation import validate_timeout
        >>> validate_timeout(10.0)
        >>> validate_timeout(0)  # doctest: +SKIP
        Traceback (most recent call last):
        ...
        ValueError: timeout must be > 0, got 0

        ```
    """
    if isinstance(timeout, (int, float)) and timeout <= 0:
        msg = f"{name} must be > 0, got {timeout}"
        raise ValueError(msg)


def validate_timeouts(request_timeout: float, resource_timeout: float) -> None:
    """Validate the pair of client timeouts.

    Args:
        request_timeout: Maximum seconds for each network operation
            (connect, read, write, pool). Must be > 0.
        resource_timeout: Maximum seconds for the whole exchange. Must be
            > 0 and >= ``request_timeout``.

    Raises:
        ValueError: If a timeout is non-positive, or if the resource
            timeout is shorter than the request timeout.

    Example:
        ```pycon
        >>> from apibuddy.core.validation import validate_timeouts
        >>> validate_timeouts(request_timeout=15.0, resource_timeout=30.0)
        >>> validate_timeouts(request_timeout=15.0, resource_timeout=5.0)  # doctest: +SKIP

        ```
    """
    validate_timeout(request_timeout, name="request_timeout")
    validate_timeout(resource_timeout, name="resource_timeout")
    if resource_timeout < request_timeout:
        msg = (
            f"resource_timeout must be >= request_timeout, "
            f"got {resource_timeout} < {request_timeout}"
        )
        raise ValueError(msg)
