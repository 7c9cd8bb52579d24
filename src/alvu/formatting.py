"""Display helpers for amounts, durations, percentages and dates.

Calculations keep full float precision; rounding happens only here.
"""

from __future__ import annotations

import math
from datetime import date

from .constants import CURRENCY_SYMBOL
from .dates import DateLike, coerce_date


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'' if count == 1 else 's'}"


def format_currency(amount: float, symbol: str = CURRENCY_SYMBOL) -> str:
    """Format ``amount`` as ``$1,234.56``; infinite amounts read ``Never``."""

    if math.isinf(amount):
        return "Never"
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"


def format_duration(months: float) -> str:
    """Render a month count as ``"2 years, 3 months"``."""

    if math.isinf(months):
        return "Never (payment too low)"

    if months < 12:
        return _plural(_round_half_up(months), "month")

    years = math.floor(months / 12)
    remaining = _round_half_up(months % 12)
    if remaining == 0:
        return _plural(years, "year")
    return f"{_plural(years, 'year')}, {_plural(remaining, 'month')}"


def format_progress_percentage(percentage: float) -> str:
    return f"{_round_half_up(percentage)}%"


def format_date(value: DateLike) -> str:
    """``Jan 5, 2025`` style date."""

    day = coerce_date(value)
    return f"{day:%b} {day.day}, {day.year}"


def format_relative_time(value: DateLike, *, today: date | None = None) -> str:
    """Describe ``value`` relative to today (``in 3 days``, ``Yesterday``)."""

    diff_days = (coerce_date(value) - (today or date.today())).days
    if diff_days == 0:
        return "Today"
    if diff_days == 1:
        return "Tomorrow"
    if diff_days == -1:
        return "Yesterday"
    if diff_days > 0:
        return f"in {_plural(diff_days, 'day')}"
    return f"{_plural(abs(diff_days), 'day')} ago"


__all__ = [
    "format_currency",
    "format_date",
    "format_duration",
    "format_progress_percentage",
    "format_relative_time",
]
