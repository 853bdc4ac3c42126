"""Conversion between in-memory datetimes and stored timestamp values.

Timestamps are written as ISO-8601 strings in UTC with microsecond precision.
The fixed width keeps string ordering identical to chronological ordering.
PostgREST reads them back with trailing fractional zeros trimmed
(``12:00:00.1234+00:00``); pydantic parses either form.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import TypeAdapter

_DATETIME = TypeAdapter(datetime)


def encode_timestamp(value: datetime) -> str:
    """Convert a datetime into the stored timestamp representation.

    Naive datetimes are taken to be UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def decode_timestamp(value: Any) -> datetime:
    """Convert a stored timestamp back into an aware datetime.

    Raises:
        TypeError: If the value is neither a string nor a datetime.
        pydantic.ValidationError: If the string is not an ISO-8601 timestamp.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        parsed = _DATETIME.validate_python(value)
    else:
        raise TypeError(f"Unsupported timestamp value: {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def decode_optional_timestamp(value: Any) -> Optional[datetime]:
    """Like decode_timestamp, but passes None through."""
    if value is None:
        return None
    return decode_timestamp(value)
