# nemtariff/utils.py
from __future__ import annotations
import calendar
from datetime import datetime
from typing import Tuple

from . import canon

# Year-agnostic (month, day); compared lexicographically
MonthDay = Tuple[int, int]

# Leap year so that "02-29" is a valid tariff boundary
_REFERENCE_YEAR = 2000


def parse_month_day(s: str) -> MonthDay:
    """Parse 'MM-DD' into (month, day). Raises ValueError if malformed."""
    parsed = datetime.strptime(f"{_REFERENCE_YEAR}-{s.strip()}", "%Y-%m-%d")
    return parsed.month, parsed.day


def month_day(ts: datetime) -> MonthDay:
    return ts.month, ts.day


def in_date_range(start: MonthDay, end: MonthDay, day: MonthDay) -> bool:
    """Return True if day falls within [start, end]. Handles wrap-around over new year."""
    if start == end:
        return day == start
    if start > end:
        # e.g. 12-01 → 02-28
        return day >= start or day <= end
    # Both ends inclusive, matching the wrap-around case above
    return start <= day <= end


def is_midnight(ts: datetime) -> bool:
    return ts.hour == 0 and ts.minute == 0 and ts.second == 0


def days_in_month(ts: datetime) -> int:
    return calendar.monthrange(ts.year, ts.month)[1]


def with_gst(amount: float, multiplier: float = canon.GST_MULTIPLIER) -> float:
    return amount * multiplier
