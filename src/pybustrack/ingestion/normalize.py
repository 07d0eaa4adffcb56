"""Normalization helpers.

Centralizes defensive parsing of loosely typed backend payloads.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime, timedelta
from typing import Any

# Threshold to distinguish seconds from milliseconds.
_MS_THRESHOLD = 1_000_000_000_000

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def parse_timestamp(value: Any) -> datetime | None:
    """Convert an ISO-8601 string or epoch seconds/milliseconds to a UTC datetime.

    Returns ``None`` for missing or unparseable values. Naive datetimes are
    assumed to be UTC.
    """
    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)

    numeric = safe_float(value)
    if numeric is not None:
        if abs(numeric) >= _MS_THRESHOLD:
            numeric /= 1000.0
        try:
            return datetime.fromtimestamp(numeric, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None

    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = f"{text[:-1]}+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return parsed.astimezone(UTC)
    return None


def to_epoch_ms(value: datetime) -> int:
    """Epoch milliseconds for an aware datetime, truncating sub-millisecond digits."""
    return (value - _EPOCH) // timedelta(milliseconds=1)
