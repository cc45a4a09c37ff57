r"""JSON codec for request and response payloads.

This module converts typed payload values to JSON bytes and back. Payload
types are plain data: dataclasses, pydantic models, ``TypedDict``s, or
JSON-compatible builtins such as ``str``, ``list`` and ``dict``. No base
class is required; any type pydantic can validate is decodable and any
value pydantic can serialize is encodable.

Dates are rendered according to a ``DateStrategy``. The default is ISO
8601, and a payload type may declare its own strategy with a
``json_date_strategy`` class attribute.

Example:
    ```pycon
    >>> from dataclasses import dataclass
    >>> from apibuddy.codec import json_decode, json_encode
    >>> @dataclass
    ... class Item:
    ...     id: int
    ...
    >>> json_encode(Item(id=1))
    b'{"id":1}'
    >>> json_decode(b'{"id": 1}', Item)
    Item(id=1)

    ```
"""

from __future__ import annotations

__all__ = [
    "CodecError",
    "DEFAULT_DATE_STRATEGY",
    "DateStrategy",
    "DecodeError",
    "EmptyBody",
    "EncodeError",
    "date_strategy_for",
    "json_decode",
    "json_encode",
]

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from functools import lru_cache
from typing import Any, ClassVar, TypeVar

from pydantic import ConfigDict, TypeAdapter
from pydantic_core import to_jsonable_python

T = TypeVar("T")


class DateStrategy(Enum):
    """Representations of ``datetime`` values on the wire.

    Attributes:
        ISO8601: An ISO 8601 string, ``Z`` suffix for UTC.
        SECONDS_SINCE_1970: A Unix timestamp in seconds.
        MILLISECONDS_SINCE_1970: A Unix timestamp in milliseconds.
    """

    ISO8601 = "iso8601"
    SECONDS_SINCE_1970 = "seconds_since_1970"
    MILLISECONDS_SINCE_1970 = "milliseconds_since_1970"


DEFAULT_DATE_STRATEGY = DateStrategy.ISO8601


class CodecError(ValueError):
    """Base class for payload encoding and decoding failures."""


class EncodeError(CodecError):
    """Raised when a value cannot be encoded to JSON."""


class DecodeError(CodecError):
    """Raised when JSON bytes cannot be decoded into the requested
    type."""


@dataclass(frozen=True)
class EmptyBody:
    """Marker payload meaning "no meaningful body".

    ``EmptyBody`` encodes to ``{}`` and decodes from ``{}``. A request
    that declares ``EmptyBody`` as its response or error type never has
    the actual response bytes decoded; the fixed ``JSON_DATA`` literal
    is decoded instead.

    Example:
        ```pycon
        >>> from apibuddy.codec import EmptyBody, json_encode
        >>> json_encode(EmptyBody())
        b'{}'
        >>> EmptyBody.JSON_DATA
        b'{}'

        ```
    """

    JSON_DATA: ClassVar[bytes] = b"{}"


def date_strategy_for(type_: Any) -> DateStrategy:
    """Return the date strategy declared by a payload type.

    Args:
        type_: The payload type.

    Returns:
        The type's ``json_date_strategy`` attribute if it is a
        ``DateStrategy``, otherwise ``DEFAULT_DATE_STRATEGY``.
    """
    strategy = getattr(type_, "json_date_strategy", None)
    if isinstance(strategy, DateStrategy):
        return strategy
    return DEFAULT_DATE_STRATEGY


_TEMPORAL_UNITS = {
    DateStrategy.ISO8601: "infer",
    DateStrategy.SECONDS_SINCE_1970: "seconds",
    DateStrategy.MILLISECONDS_SINCE_1970: "milliseconds",
}


@lru_cache(maxsize=256)
def _adapter(type_: Any) -> TypeAdapter[Any]:
    return TypeAdapter(type_)


@lru_cache(maxsize=256)
def _decoder(type_: Any, strategy: DateStrategy) -> TypeAdapter[list[Any]]:
    # Wrapped in a list so the config applies to dataclasses and TypedDicts,
    # which reject a config passed to TypeAdapter directly
    return TypeAdapter(list[type_], config=ConfigDict(val_temporal_unit=_TEMPORAL_UNITS[strategy]))


def _encode_datetime(value: datetime, strategy: DateStrategy) -> str | float:
    if strategy is not DateStrategy.ISO8601 and value.utcoffset() is None:
        msg = f"naive datetime {value.isoformat()} has no timestamp, attach a timezone"
        raise ValueError(msg)
    if strategy is DateStrategy.SECONDS_SINCE_1970:
        return value.timestamp()
    if strategy is DateStrategy.MILLISECONDS_SINCE_1970:
        return value.timestamp() * 1000.0
    if value.utcoffset() is not None and value.utcoffset().total_seconds() == 0:
        return value.astimezone(timezone.utc).replace(tzinfo=None).isoformat() + "Z"
    return value.isoformat()


def json_encode(value: Any, date_strategy: DateStrategy | None = None) -> bytes:
    """Encode a payload value as compact JSON bytes.

    Args:
        value: The value to encode.
        date_strategy: How to render ``datetime`` values. If ``None``,
            the strategy declared by the value's type is used.

    Returns:
        The UTF-8 encoded JSON document.

    Raises:
        EncodeError: If the value cannot be represented as JSON.

    Example:
        ```pycon
        >>> from datetime import datetime, timezone
        >>> from apibuddy.codec import DateStrategy, json_encode
        >>> when = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        >>> json_encode({"at": when})
        b'{"at":"2024-01-02T03:04:05Z"}'
        >>> json_encode({"at": when}, DateStrategy.SECONDS_SINCE_1970)
        b'{"at":1704164645.0}'

        ```
    """
    strategy = date_strategy or date_strategy_for(type(value))

    def default(obj: Any) -> Any:
        if isinstance(obj, datetime):
            return _encode_datetime(obj, strategy)
        return to_jsonable_python(obj)

    try:
        data = _adapter(type(value)).dump_python(value, mode="python", by_alias=True)
        return json.dumps(
            data, default=default, separators=(",", ":"), allow_nan=False, ensure_ascii=False
        ).encode("utf-8")
    except Exception as exc:
        msg = f"Failed to encode {type(value).__name__}: {exc}"
        raise EncodeError(msg) from exc


def json_decode(data: bytes, type_: type[T], date_strategy: DateStrategy | None = None) -> T:
    """Decode JSON bytes into an instance of ``type_``.

    ``datetime`` fields accept ISO 8601 strings under every strategy.
    Numeric timestamps are read in the strategy's unit; under
    ``ISO8601`` pydantic infers seconds versus milliseconds from their
    magnitude. Pydantic models and dataclasses carrying their own
    ``__pydantic_config__`` keep their ``val_temporal_unit``.

    Args:
        data: The JSON document.
        type_: The type to validate the document into.
        date_strategy: The date representation the payload was encoded
            with. If ``None``, the strategy declared by ``type_`` is used.

    Returns:
        The decoded value.

    Raises:
        DecodeError: If ``data`` is not valid JSON or does not match
            ``type_``.

    Example:
        ```pycon
        >>> from dataclasses import dataclass
        >>> from datetime import datetime
        >>> from apibuddy.codec import DateStrategy, json_decode
        >>> @dataclass
        ... class Event:
        ...     at: datetime
        ...
        >>> event = json_decode(b'{"at": 86400000}', Event, DateStrategy.MILLISECONDS_SINCE_1970)
        >>> event.at.timestamp()
        86400.0

        ```
    """
    strategy = date_strategy or date_strategy_for(type_)
    try:
        (value,) = _decoder(type_, strategy).validate_python([json.loads(data)])
        return value
    except (ValueError, TypeError) as exc:
        msg = f"Failed to decode {getattr(type_, '__name__', type_)}: {exc}"
        raise DecodeError(msg) from exc
