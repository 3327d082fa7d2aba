"""
Timezone utilities for match synchronization.

All datetimes are stored as naive UTC in the Match Record Store and
serialized as ISO 8601 strings with a trailing ``Z``.
"""
from datetime import datetime, timezone
from typing import Optional

UTC = timezone.utc


def utcnow() -> datetime:
    """Current time as naive UTC, the storage convention for all columns."""
    return datetime.now(UTC).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are assumed UTC already."""
    if value.tzinfo is not None:
        value = value.astimezone(UTC).replace(tzinfo=None)
    return value


def isoformat_utc(value: Optional[datetime]) -> Optional[str]:
    """Serialize a stored (naive UTC) datetime, or None."""
    if value is None:
        return None
    return to_naive_utc(value).isoformat() + "Z"


def parse_event_start(
    date_str: Optional[str],
    time_str: Optional[str] = None,
    timestamp_str: Optional[str] = None
) -> Optional[datetime]:
    """
    Parse a provider event start time into naive UTC.

    TheSportsDB publishes ``strTimestamp`` ("2026-10-24T14:00:00" or with an
    offset) on most events and ``dateEvent`` + ``strTime`` ("2026-10-24",
    "14:00:00") on all of them. Both are UTC.

    Args:
        date_str: Event date, YYYY-MM-DD
        time_str: Event time, HH:MM[:SS], optionally with "+00:00"
        timestamp_str: Full ISO timestamp, preferred when present

    Returns:
        Naive UTC datetime, or None when no usable date is present
    """
    if timestamp_str:
        try:
            return to_naive_utc(datetime.fromisoformat(timestamp_str.replace("Z", "+00:00")))
        except ValueError:
            pass

    if not date_str:
        return None

    time_part = (time_str or "00:00:00").strip()
    # "14:00:00+00:00" -> "14:00:00"
    time_part = time_part.split("+")[0].replace("Z", "")
    if len(time_part) == 5:
        time_part += ":00"

    try:
        return datetime.fromisoformat(f"{date_str.strip()}T{time_part}")
    except ValueError:
        try:
            return datetime.fromisoformat(date_str.strip())
        except ValueError:
            return None
