r"""Structured logging utilities for machine-readable log output.

The client logs each resolved call with structured fields (``http_method``,
``url``, ``status_code``, ``outcome``). This module provides a JSON
formatter that renders those fields, and context-local correlation IDs
that tie the log entries of one unit of work together.

Structured output is opt-in:

```python
import logging
from apibuddy.utils.structured_logging import StructuredFormatter

handler = logging.StreamHandler()
handler.setFormatter(StructuredFormatter())

logger = logging.getLogger("apibuddy")
logger.addHandler(handler)
logger.setLevel(logging.DEBUG)
```
"""

from __future__ import annotations

__all__ = [
    "StructuredFormatter",
    "clear_correlation_id",
    "get_correlation_id",
    "log_structured",
    "set_correlation_id",
]

import contextvars
import json
import logging
import time
from typing import Any

# Context-local, so concurrent tasks each see their own value
_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "apibuddy_correlation_id", default=None
)

# Attributes every LogRecord carries; anything else came in through ``extra``
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys() | {"message", "asctime"}
)


def get_correlation_id() -> str | None:
    """Get the correlation ID of the current context, or ``None``."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str) -> contextvars.Token[str | None]:
    """Set the correlation ID for the current context.

    Args:
        correlation_id: The correlation ID, e.g. a request or trace ID.

    Returns:
        A token that restores the previous value when passed to
        ``clear_correlation_id``.

    Example:
        ```pycon
        >>> from apibuddy.utils.structured_logging import (
        ...     clear_correlation_id,
        ...     get_correlation_id,
        ...     set_correlation_id,
        ... )
        >>> token = set_correlation_id("req-123")
        >>> get_correlation_id()
        'req-123'
        >>> clear_correlation_id(token)
        >>> get_correlation_id()

        ```
    """
    return _correlation_id.set(correlation_id)


def clear_correlation_id(token: contextvars.Token[str | None] | None = None) -> None:
    """Clear the correlation ID for the current context.

    Args:
        token: Optional token returned by ``set_correlation_id``. If
            given, the previous value is restored instead of ``None``.
    """
    if token is not None:
        _correlation_id.reset(token)
    else:
        _correlation_id.set(None)


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Each record becomes one JSON object with ``timestamp`` (ISO 8601, UTC),
    ``level``, ``logger``, ``message``, ``module``, ``function`` and
    ``line``, plus ``correlation_id`` when set, ``exception`` when the
    record carries exception info, and every field passed through
    ``extra``. Values that are not JSON serializable are rendered with
    ``str``.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        correlation_id = get_correlation_id()
        if correlation_id is not None:
            log_data["correlation_id"] = correlation_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = value

        return json.dumps(log_data, default=str)

    def formatTime(  # noqa: N802
        self, record: logging.LogRecord, datefmt: str | None = None
    ) -> str:
        """Format the record timestamp as ISO 8601 with milliseconds.

        ``datefmt`` is ignored.
        """
        return (
            time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(record.created))
            + f".{int(record.msecs):03d}Z"
        )


def log_structured(logger: logging.Logger, level: int, message: str, **extra: Any) -> None:
    """Log a message with structured fields.

    Args:
        logger: Logger to use.
        level: Log level, e.g. ``logging.DEBUG``.
        message: Log message.
        **extra: Structured fields, rendered as top-level keys by
            ``StructuredFormatter``.

    Example:
        ```pycon
        >>> import logging
        >>> from apibuddy.utils.structured_logging import log_structured
        >>> log_structured(
        ...     logging.getLogger("apibuddy"),
        ...     logging.DEBUG,
        ...     "Request resolved",
        ...     url="https://api.example.com/items",
        ...     status_code=200,
        ... )

        ```
    """
    if logger.isEnabledFor(level):
        logger.log(level, message, extra=extra)
