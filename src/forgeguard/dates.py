"""
forgeguard.dates — Lenient timestamp parsing for score and recency math.

An unparseable timestamp is replaced by the current time and a warning is
logged. Callers that need to surface the problem use
parse_date_with_diagnostic().
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional, Union

logger = logging.getLogger(__name__)

TimestampLike = Union[str, int, float, datetime]

# Numbers below this are Unix seconds, above it milliseconds.
_MILLIS_THRESHOLD = 1e12


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _coerce(value) -> datetime:
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, bool):
        raise TypeError("boolean is not a timestamp")
    elif isinstance(value, (int, float)):
        seconds = value if value < _MILLIS_THRESHOLD else value / 1000
        dt = datetime.fromtimestamp(seconds, tz=timezone.utc)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    else:
        raise TypeError(f"unsupported timestamp type {type(value).__name__}")

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def parse_date_with_diagnostic(
    value: TimestampLike, now: Optional[datetime] = None,
) -> tuple[datetime, Optional[str]]:
    """Parse ``value``; on failure return ``now`` and a description of why."""
    try:
        return _coerce(value), None
    except (TypeError, ValueError, OverflowError, OSError) as e:
        diagnostic = f"Invalid timestamp {value!r}: {e}"
        logger.warning("Invalid timestamp, substituting current time",
                       extra={"event": "timestamp_fallback", "value": repr(value)})
        return (now or _utc_now()), diagnostic


def safe_parse_date(value: TimestampLike, now: Optional[datetime] = None) -> datetime:
    return parse_date_with_diagnostic(value, now=now)[0]


def is_recent_date(value: TimestampLike, days: float = 7, now: Optional[datetime] = None) -> bool:
    """True if ``value`` lies between ``days`` ago and now."""
    now = now or _utc_now()
    age = now - safe_parse_date(value, now=now)
    age_days = age.total_seconds() / 86400
    return 0 <= age_days <= days


def compare_timestamps(a: TimestampLike, b: TimestampLike) -> float:
    """Millisecond difference ``a - b``, usable as a sort key comparator."""
    now = _utc_now()
    delta = safe_parse_date(a, now=now) - safe_parse_date(b, now=now)
    return delta.total_seconds() * 1000


def iso_timestamp(dt: Optional[datetime] = None) -> str:
    """Format as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC."""
    dt = dt or _utc_now()
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"
