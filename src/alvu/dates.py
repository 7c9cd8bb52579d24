"""Calendar helpers shared by the goal and debt calculators."""

from __future__ import annotations

import math
from calendar import monthrange
from datetime import date, datetime, timedelta

# Stand-in completion date for goals that can never be reached
FAR_FUTURE = date(2099, 12, 31)

# Averages used when converting monthly amounts to daily/weekly ones
DAYS_PER_MONTH = 30
WEEKS_PER_MONTH = 4.33

DateLike = date | datetime | str


def coerce_date(value: DateLike) -> date:
    """Return a ``date`` for a date, datetime or ISO-8601 string."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text[:10])
        except ValueError as exc:
            raise ValueError(f"Unrecognized date value: {value!r}") from exc
    raise TypeError(f"Expected date, datetime or ISO string, got {type(value).__name__}")


def months_between(start: date, end: date) -> int:
    """Whole calendar months from ``start`` to ``end`` (year/month only, may be negative)."""

    return (end.year - start.year) * 12 + (end.month - start.month)


def add_months(value: date, months: int) -> date:
    """Shift ``value`` by whole calendar months, clamping to the end of short months."""

    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def add_days(value: date, days: int) -> date:
    """Shift ``value`` forward by ``days``, never past :data:`FAR_FUTURE`."""

    if value >= FAR_FUTURE or days >= (FAR_FUTURE - value).days:
        return max(value, FAR_FUTURE)
    return value + timedelta(days=days)


def add_fractional_months(value: date, months: float) -> date:
    """Shift ``value`` by a possibly fractional number of calendar months.

    Whole months use calendar arithmetic; the fractional remainder is spread
    over the length of the month that follows, rounded up to whole days.
    Projections that would land past :data:`FAR_FUTURE` return it instead.
    """

    if months <= 0:
        return value
    if value >= FAR_FUTURE or months >= months_between(value, FAR_FUTURE):
        return max(value, FAR_FUTURE)
    whole = int(months)
    shifted = add_months(value, whole)
    fraction = months - whole
    if fraction <= 0:
        return shifted
    following = add_months(shifted, 1)
    extra_days = math.ceil(round(fraction * (following - shifted).days, 9))
    return date.fromordinal(shifted.toordinal() + extra_days)
