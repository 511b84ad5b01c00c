"""Payday date arithmetic.

A payday is a day of month in ``1..31``. In months shorter than that, the
effective payday is the month's last day.
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta


def _validate_payday(payday: int) -> int:
    if isinstance(payday, bool) or not isinstance(payday, int) or not 1 <= payday <= 31:
        raise ValueError(f"payday must be an integer in 1..31, got {payday!r}")
    return payday


def month_length(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def clamped_payday(year: int, month: int, payday: int) -> date:
    """Return the payday date in ``year``/``month``, clamped to the month end."""

    _validate_payday(payday)
    return date(year, month, min(payday, month_length(year, month)))


def _add_one_month(d: date) -> tuple[int, int]:
    if d.month == 12:
        return d.year + 1, 1
    return d.year, d.month + 1


def next_payday(payday: int, today: date) -> date:
    """Return the next payday strictly governed by the clamp rule.

    This month's payday counts only when today is before it and the month
    actually has that day; otherwise the (clamped) payday of next month is used.
    On payday itself the next one is a month away.
    """

    candidate = clamped_payday(today.year, today.month, payday)
    if today.day < payday and candidate.day == payday:
        return candidate
    year, month = _add_one_month(today)
    return clamped_payday(year, month, payday)


def days_to_next_payday(payday: int, today: date | None = None) -> int:
    today = today or date.today()
    return (next_payday(payday, today) - today).days


def reset_day(payday: int, year: int, month: int) -> date:
    """The day after the (clamped) payday of ``year``/``month``.

    For a payday on the last day of the month this falls on the 1st of the
    following month, outside ``year``/``month``.
    """

    return clamped_payday(year, month, payday) + timedelta(days=1)


def is_reset_day(payday: int, today: date) -> bool:
    """True when today is the day after this month's (clamped) payday.

    Only today's own month is consulted, so a month never resets twice. When
    the payday falls on the month's last day (always for 31) the day after is
    in the next month and that month has no reset day.
    """

    return today == reset_day(payday, today.year, today.month)


def month_key(d: date) -> str:
    """Return the zero-padded ``MM-YYYY`` key for the month containing ``d``."""

    return f"{d.month:02d}-{d.year:04d}"


def month_key_sort_value(key: str) -> tuple[int, int]:
    """Chronological sort key ``(year, month)`` for a ``MM-YYYY`` key.

    Plain string order on ``MM-YYYY`` interleaves years, so consumers that list
    records must sort with this instead.
    """

    month_s, _, year_s = key.partition("-")
    try:
        return int(year_s), int(month_s)
    except ValueError as e:
        raise ValueError(f"invalid month key {key!r}; expected MM-YYYY") from e


__all__ = [
    "clamped_payday",
    "days_to_next_payday",
    "month_key",
    "month_key_sort_value",
    "month_length",
    "next_payday",
    "is_reset_day",
    "reset_day",
]
