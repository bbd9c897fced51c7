"""
smartreceipt/utils/time_utils.py

Purpose: Time helpers

- Month ranges for stats and export
- Subscription expiry arithmetic
- Timestamp formatting
"""

import calendar
import re
from datetime import MAXYEAR, MINYEAR, datetime
from typing import Optional, Tuple

MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{1,2})$")


def utcnow() -> datetime:
    return datetime.utcnow()


def month_start(dt: Optional[datetime] = None) -> datetime:
    """
    Returns midnight on the first day of dt's month.
    """
    dt = dt or utcnow()
    return datetime(dt.year, dt.month, 1)


def month_range(dt: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """
    Returns [start, end) bounds of dt's month.
    """
    start = month_start(dt)
    if start.month == 12:
        end = datetime(start.year + 1, 1, 1)
    else:
        end = datetime(start.year, start.month + 1, 1)
    return start, end


def parse_month(text: str) -> Optional[datetime]:
    """
    Parses "YYYY-MM" into the first day of that month.
    Returns None if the text is not a valid month.
    """
    match = MONTH_PATTERN.match((text or "").strip())
    if not match:
        return None
    year, month = int(match.group(1)), int(match.group(2))
    # month_range needs the following month to exist too
    if not MINYEAR <= year < MAXYEAR or not 1 <= month <= 12:
        return None
    return datetime(year, month, 1)


def month_label(dt: datetime) -> str:
    """e.g. 'September 2026'."""
    return f"{calendar.month_name[dt.month]} {dt.year}"


def add_months(dt: datetime, months: int) -> datetime:
    """
    Adds calendar months, clamping the day to the target month's length.
    """
    month_index = dt.month - 1 + months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def format_timestamp(dt: Optional[datetime], format_str: str = "%Y-%m-%d %H:%M:%S") -> str:
    """
    Formats a datetime object to string.
    """
    if not dt:
        return "N/A"
    return dt.strftime(format_str)
