"""Date-window arithmetic for weekly, monthly and yearly periods.

``now`` is always passed in by the caller; nothing here reads the clock.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Tuple

from models import Period, Window

_ONE_TICK = timedelta(microseconds=1)


def current_period_start(period: Period, now: datetime) -> datetime:
    """Start of the period that contains ``now`` (midnight)."""
    period = Period(period)
    today = datetime.combine(now.date(), time.min)
    if period is Period.WEEKLY:
        # Monday is weekday 0; a Sunday goes back six days.
        return today - timedelta(days=now.weekday())
    if period is Period.YEARLY:
        return today.replace(month=1, day=1)
    return today.replace(day=1)


def previous_period_start(period: Period, current_start: datetime) -> datetime:
    period = Period(period)
    if period is Period.WEEKLY:
        return current_start - timedelta(days=7)
    if period is Period.YEARLY:
        return current_start.replace(year=current_start.year - 1)
    if current_start.month == 1:
        return current_start.replace(year=current_start.year - 1, month=12)
    return current_start.replace(month=current_start.month - 1)


def period_windows(period: Period, now: datetime) -> Tuple[Window, Window]:
    """Return (current, previous) windows for a period comparison.

    The current window runs from the period start to ``now`` because the
    period is still in progress.  The previous window is the whole prior
    period and ends one microsecond before the current start.
    """
    now = _naive(now)
    current_start = current_period_start(period, now)
    previous_start = previous_period_start(period, current_start)
    current = Window(start=current_start, end=now)
    previous = Window(start=previous_start, end=current_start - _ONE_TICK)
    return current, previous


def budget_window(period: Period, now: datetime) -> Tuple[date, date]:
    """Half-open ``[start, end)`` dates for a budget created at ``now``.

    Weekly budgets start today; monthly and yearly budgets cover the
    calendar month or year containing ``now``.
    """
    period = Period(period)
    today = now.date()
    if period is Period.WEEKLY:
        return today, today + timedelta(days=7)
    if period is Period.YEARLY:
        return date(today.year, 1, 1), date(today.year + 1, 1, 1)
    start = today.replace(day=1)
    if start.month == 12:
        return start, date(start.year + 1, 1, 1)
    return start, start.replace(month=start.month + 1)


def budget_spend_window(window_start: date, window_end: date, now: datetime) -> Window:
    """Inclusive window used to recompute a budget's spend: start .. min(end, now)."""
    start = datetime.combine(window_start, time.min)
    end = datetime.combine(window_end, time.min) - _ONE_TICK
    return Window(start=start, end=min(end, _naive(now)))


def _naive(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.replace(tzinfo=None)
    return value
