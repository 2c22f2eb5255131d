"""Date parsing utilities."""

from datetime import date, datetime, timedelta
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports various formats including relative dates:
    - Absolute dates: "2024-01-15", "January 15, 2024", etc.
    - Relative dates: "today", "yesterday", "tomorrow", "in 30 days",
      "this month", "next month", etc.

    Args:
        date_str: Date string in various formats

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }

    if date_str in relative_dates:
        return relative_dates[date_str]

    # Due dates are usually given as "in N days"
    if date_str.startswith("in ") and date_str.endswith((" days", " day")):
        count = date_str[3:].split()[0]
        if count.isdigit():
            return today + timedelta(days=int(count))

    if date_str.startswith("this "):
        period = date_str[5:]
        if period == "month":
            return today.replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1)
        elif period == "week":
            return start_of_week(today)

    elif date_str.startswith("next "):
        period = date_str[5:]
        if period == "month":
            return (today + relativedelta(months=1)).replace(day=1)
        elif period == "week":
            return start_of_week(today) + timedelta(days=7)

    elif date_str.startswith("last "):
        period = date_str[5:]
        if period == "month":
            return (today - relativedelta(months=1)).replace(day=1)
        elif period == "week":
            return start_of_week(today) - timedelta(days=7)

    try:
        dt = date_parser.parse(date_str)
        return dt.date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def start_of_week(day: date) -> date:
    """Return the Sunday on or before the given day."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def week_start(now: datetime) -> datetime:
    """Sunday 00:00 local time of the week containing now."""
    return datetime.combine(start_of_week(now.date()), datetime.min.time())


def month_start(now: datetime) -> datetime:
    """Day 1 00:00 local time of the month containing now."""
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def year_start(now: datetime) -> datetime:
    """January 1 00:00 local time of the year containing now."""
    return now.replace(month=1, day=1, hour=0, minute=0, second=0, microsecond=0)


def month_label(value: date) -> str:
    """Short month label used for the revenue series, e.g. 'Jan 25'."""
    return value.strftime("%b %y")


def trailing_month_starts(now: datetime, count: int = 12) -> list[date]:
    """First days of the last `count` calendar months, oldest first, ending with now's month."""
    first = (now - relativedelta(months=count - 1)).date().replace(day=1)
    return [first + relativedelta(months=i) for i in range(count)]


def period_bounds(period: str, now: datetime) -> tuple[Optional[datetime], Optional[datetime]]:
    """Half-open [start, end) window of a named reporting period.

    Periods: "this-month", "last-month", "this-year" and "all-time"; the
    all-time window is unbounded on both sides.
    """
    if period == "this-month":
        start = month_start(now)
        return start, start + relativedelta(months=1)
    if period == "last-month":
        end = month_start(now)
        return end - relativedelta(months=1), end
    if period == "this-year":
        start = year_start(now)
        return start, start + relativedelta(years=1)
    if period == "all-time":
        return None, None
    raise ValueError(f"Unknown report period '{period}'")
