"""
Local calendar helpers.

Day identifiers are `YYYY-MM-DD` strings in the host's local timezone and
timestamps are naive local ISO strings (`YYYY-MM-DDTHH:MM:SS.mmm`, no offset).
Stored timestamps are always read back as local time, never converted.
"""
from __future__ import annotations

from datetime import date, datetime, timedelta


def today() -> str:
    return date.today().isoformat()


def previous_date(day: str) -> str:
    return (parse_local_date(day) - timedelta(days=1)).isoformat()


def now_local_timestamp() -> str:
    return datetime.now().isoformat(timespec="milliseconds")


def parse_local_date(day: str) -> date:
    return date.fromisoformat(day)


def parse_local_timestamp(value: str) -> datetime:
    """Parse a stored timestamp as naive local time.

    A trailing offset written by other clients is dropped rather than
    converted, so the wall-clock reading is what gets compared.
    """
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return parsed.replace(tzinfo=None)


def weekday_of(day: str) -> int:
    """Weekday number with 0=Sunday .. 6=Saturday."""
    return (parse_local_date(day).weekday() + 1) % 7


def format_display_date(day: str) -> str:
    d = parse_local_date(day)
    return f"{d.strftime('%B')} {d.day}, {d.year}"
