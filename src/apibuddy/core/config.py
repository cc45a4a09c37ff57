r"""Configuration dataclass and defaults for the HTTP client.

The configuration is long-lived and read-only: it is set when the client
is constructed and shared by every call the client performs.
"""

from __future__ import annotations

__all__ = ["ClientConfig", "DEFAULT_REQUEST_TIMEOUT", "DEFAULT_RESOURCE_TIMEOUT"]

from dataclasses import dataclass, replace
from typing import Any

import httpx

from apibuddy.core.validation import validate_timeouts

# Maximum seconds for each network operation (connect, read, write, pool)
DEFAULT_REQUEST_TIMEOUT = 15.0

# Maximum seconds for the whole exchange, from dispatch to the last byte
DEFAULT_RESOURCE_TIMEOUT = 30.0


@dataclass(frozen=True)
class ClientConfig:
    """Configuration for ``HttpClient``.

    Args:
        request_timeout: Maximum seconds for each network operation.
            Must be > 0.
        resource_timeout: Maximum seconds for the whole exchange. Must be
            >= ``request_timeout``.

    Example:
        ```pycon
        >>> from apibuddy.core.config import ClientConfig
        >>> config = ClientConfig()
        >>> config.request_timeout, config.resource_timeout
        (15.0, 30.0)
        >>> config.merge(resource_timeout=60.0).resource_timeout
        60.0

        ```
    """

    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    resource_timeout: float = DEFAULT_RESOURCE_TIMEOUT

    def __post_init__(self) -> None:
        """Validate configuration parameters after initialization.

        Raises:
            ValueError: If any parameter fails validation.
        """
        validate_timeouts(
            request_timeout=self.request_timeout, resource_timeout=self.resource_timeout
        )

    def merge(self, **overrides: Any) -> ClientConfig:
        """Create a new config with specified parameters overridden.

        Only non-None override values are applied.

        Args:
            **overrides: Keyword arguments for parameters to override.

        Returns:
            A new ClientConfig instance with overrides applied.
        """
        filtered_overrides = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **filtered_overrides)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary format.

        Returns:
            Dictionary with the configuration parameters.
        """
        return {
            "request_timeout": self.request_timeout,
            "resource_timeout": self.resource_timeout,
        }

    def httpx_timeout(self) -> httpx.Timeout:
        """Return the per-operation timeout for ``httpx``."""
        return httpx.Timeout(self.request_timeout)
