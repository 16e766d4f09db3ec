from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from dateutil import parser
from dateutil.relativedelta import relativedelta

_DURATION_UNITS = ("years", "months", "days", "hours", "minutes", "seconds")

# Stand-in for an unreadable stored timestamp; always older than any freshness window.
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    """Current UTC time truncated to whole seconds, the resolution records are stored at."""
    return datetime.now(timezone.utc).replace(microsecond=0)


def parse_datetime_utc(value: Any) -> datetime | None:
    if value is None:
        return None

    if isinstance(value, datetime):
        return to_utc(value)

    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        try:
            return to_utc(parser.isoparse(value))
        except (ValueError, TypeError, OverflowError):
            return None

    return None


def format_datetime(value: datetime) -> str:
    return to_utc(value).replace(microsecond=0).isoformat()


def format_duration(delta: timedelta) -> str:
    """Render an elapsed time as e.g. ``2 days, 3 hours, 1 minute, 5 seconds``.

    Negative deltas (clock skew between writers) are clamped to zero.
    """
    if delta <= timedelta(0):
        return "0 seconds"

    anchor = datetime(2000, 1, 1, tzinfo=timezone.utc)
    elapsed = relativedelta(anchor + delta, anchor)

    parts: list[str] = []
    for unit in _DURATION_UNITS:
        amount = int(getattr(elapsed, unit))
        if amount:
            label = unit if amount != 1 else unit[:-1]
            parts.append(f"{amount} {label}")

    return ", ".join(parts) if parts else "0 seconds"
