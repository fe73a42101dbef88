"""
Calendar-day helpers for check-ins.

Check-in days are plain calendar dates chosen by the guardian and stored
as YYYY-MM-DD strings. Timestamps are stored in UTC and converted to the
configured zone before being compared with a calendar day.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, Optional

import pytz

DAY_FORMAT = "%Y-%m-%d"


def local_now(tz) -> datetime:
    """Current time localized to tz."""
    return datetime.now(tz)


def local_today(tz) -> date:
    """Today's calendar date in tz."""
    return local_now(tz).date()


def to_local_date(value: datetime, tz) -> date:
    """Calendar day of a timestamp in tz. Naive timestamps are read as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(tz).date()


def parse_day(value: Any, tz=None) -> Optional[date]:
    """
    Normalize a stored day value to a calendar date.

    Accepts date objects, datetimes (converted to tz when given) and
    YYYY-MM-DD or ISO-8601 strings. Returns None for anything else.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return to_local_date(value, tz) if tz else value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return datetime.strptime(text[:10], DAY_FORMAT).date()
        except ValueError:
            return None
    return None


def format_day(value: date) -> str:
    return value.strftime(DAY_FORMAT)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Normalize a stored timestamp to an aware UTC-based datetime.

    Older rows may hold ISO-8601 strings instead of BSON dates. Naive
    values are read as UTC; anything unparsable gives None.
    """
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(text)
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def format_time(value: Any, tz) -> Optional[str]:
    """HH:MM of a timestamp in tz."""
    timestamp = parse_timestamp(value)
    if timestamp is None:
        return None
    return timestamp.astimezone(tz).strftime("%H:%M")


def local_day_start(day: date, tz) -> datetime:
    """Midnight of day in tz, as a UTC datetime."""
    return tz.localize(datetime.combine(day, time.min)).astimezone(pytz.utc)


def checkin_day(checkin: Dict[str, Any], tz) -> Optional[date]:
    """Calendar day of a check-in: the chosen day, else its local creation day."""
    day = parse_day(checkin.get("date"), tz)
    if day is not None:
        return day

    created_at = parse_timestamp(checkin.get("createdAt"))
    return to_local_date(created_at, tz) if created_at else None


def day_window_filter(start: date, end: Optional[date], tz) -> Dict[str, Any]:
    """
    Query matching check-ins whose day falls in [start, end].

    Rows with a chosen day match on it. Older rows without one match on
    their local creation day. A missing end leaves the window open.
    """
    by_date: Dict[str, Any] = {"$gte": format_day(start)}
    by_created: Dict[str, Any] = {"$gte": local_day_start(start, tz)}
    if end is not None:
        by_date["$lte"] = format_day(end)
        by_created["$lt"] = local_day_start(end + timedelta(days=1), tz)

    return {
        "$or": [
            {"date": by_date},
            {"date": None, "createdAt": by_created},
        ]
    }
