from __future__ import annotations

from calendar import monthrange
from datetime import date, datetime, time, timedelta
from typing import Optional, Union

DayLike = Union[date, datetime]


def parse_date(s: str) -> Optional[date]:
    s = (s or "").strip()
    if not s:
        return None
    try:
        return datetime.strptime(s, "%Y-%m-%d").date()
    except ValueError:
        return None


def local_day(value: DayLike) -> date:
    """Truncate ``value`` to the calendar day it falls on in local time.

    Plain dates pass through. Naive datetimes are read as local wall time;
    aware ones are converted to the current local zone first.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.date()
    return value


def days_until(today: DayLike, target: DayLike) -> int:
    return (local_day(target) - local_day(today)).days


def days_until_text(days: int) -> str:
    if days < 0:
        return "Overdue!"
    if days == 0:
        return "Today!"
    if days == 1:
        return "1 day"
    return f"{days} days"


def seconds_until_next_midnight(now: Optional[datetime] = None) -> float:
    # Recomputed from the next calendar day each call so DST shifts and
    # manual clock changes are picked up.
    now = (now or datetime.now()).astimezone()
    tomorrow = now.date() + timedelta(days=1)
    midnight = datetime.combine(tomorrow, time.min).astimezone()
    return max((midnight - now).total_seconds(), 0.001)


def _as_int(value: Union[int, str, None]) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value or "").strip()
    if not text.isdigit():
        return None
    return int(text)


def parse_month_day(
    month: Union[int, str, None],
    day: Union[int, str, None],
    today: Optional[date] = None,
) -> Optional[date]:
    """Build a date in the current year from separately entered month and day.

    Returns ``None`` for anything that is not a real calendar day. Past days
    stay in the current year and show up as overdue.
    """
    m = _as_int(month)
    d = _as_int(day)
    if m is None or d is None:
        return None
    if not (1 <= m <= 12) or not (1 <= d <= 31):
        return None
    year = (today or date.today()).year
    if d > monthrange(year, m)[1]:
        return None
    return date(year, m, d)
