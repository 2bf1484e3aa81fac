"""Timestamp parsing utilities."""

from datetime import date, datetime, time, UTC
from typing import Any
from dateutil import parser as date_parser


def parse_timestamp(value: Any) -> datetime:
    """Parse a remote timestamp into a timezone-aware datetime.

    Accepts ``datetime`` objects (as returned by SQL drivers), ``date``
    objects and ISO-8601 / free-form strings (as returned by REST APIs).
    Naive values are taken to be UTC.

    Args:
        value: Timestamp in one of the supported forms

    Returns:
        Timezone-aware datetime

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str) and value.strip():
        try:
            parsed = date_parser.isoparse(value.strip())
        except ValueError:
            try:
                parsed = date_parser.parse(value.strip())
            except (ValueError, OverflowError) as e:
                raise ValueError(f"Could not parse timestamp '{value}': {e}")
    else:
        raise ValueError(f"Could not parse timestamp {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed
