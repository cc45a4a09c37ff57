r"""Client configuration and its validation."""

from __future__ import annotations

__all__ = [
    "DEFAULT_REQUEST_TIMEOUT",
    "DEFAULT_RESOURCE_TIMEOUT",
    "ClientConfig",
    "validate_timeout",
    "validate_timeouts",
]

from apibuddy.core.config import (
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_RESOURCE_TIMEOUT,
    ClientConfig,
)
from apibuddy.core.validation import validate_timeout, validate_timeouts
