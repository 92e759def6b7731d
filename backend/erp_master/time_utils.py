from __future__ import annotations

import time
from datetime import datetime, timedelta, timezone
from typing import Optional

DAY_MS = 24 * 60 * 60 * 1000
HOUR_MS = 60 * 60 * 1000


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def now_ms() -> int:
    """Epoch milliseconds, the timestamp unit stored on every document record."""
    return int(time.time() * 1000)


def from_ms(value: int) -> datetime:
    """Epoch milliseconds -> UTC-naive datetime."""
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc).replace(tzinfo=None)


def to_ms(dt: datetime) -> int:
    """UTC-naive (or aware) datetime -> epoch milliseconds."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)


def start_of_day_ms(reference_ms: Optional[int] = None, utc_offset_minutes: int = 0) -> int:
    """
    Midnight of the day containing reference_ms (default: today), as epoch ms.

    utc_offset_minutes moves the day boundary to local midnight of a fixed
    UTC offset, e.g. 180 for East Africa Time.
    """
    shift = utc_offset_minutes * 60_000
    ref = from_ms((reference_ms if reference_ms is not None else now_ms()) + shift)
    midnight = ref.replace(hour=0, minute=0, second=0, microsecond=0)
    return to_ms(midnight) - shift


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 datetime string and normalize to UTC-naive datetime.

    - None / "" -> None
    - "YYYY-MM-DD" or "YYYY-MM-DDTHH:MM" (naive) is interpreted as UTC
    - "...Z" or "...+/-HH:MM" is converted to UTC and tzinfo is stripped
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None

    # Accept trailing Z
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    dt = datetime.fromisoformat(s)

    # Normalize to UTC-naive
    if dt.tzinfo is None:
        # interpret naive as UTC
        return dt.replace(tzinfo=None)

    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def end_of_day(dt: datetime) -> datetime:
    """Inclusive end of a custom report range: the given date plus one day."""
    return dt + timedelta(days=1)


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")
