"""Expansion of recurring transactions into concrete occurrence dates.

Calendar steps (monthly, quarterly, yearly) are always measured from the anchor date with
``relativedelta``, which clamps to the last day of shorter months. An anchor on Jan 31 thus
occurs on Feb 29/28, Mar 31, Apr 30 and so on, without drifting to the 28th.
"""

from collections.abc import Iterator
from datetime import date, timedelta

from dateutil.relativedelta import relativedelta

from ledger.core.models import RecurrenceInterval

_STEPS = {
    RecurrenceInterval.DAILY: relativedelta(days=1),
    RecurrenceInterval.WEEKLY: relativedelta(weeks=1),
    RecurrenceInterval.MONTHLY: relativedelta(months=1),
    RecurrenceInterval.QUARTERLY: relativedelta(months=3),
    RecurrenceInterval.YEARLY: relativedelta(years=1),
}


def _first_index_on_or_after(anchor: date, interval: RecurrenceInterval, day: date) -> int:
    """Smallest k >= 0 such that occurrence k is on or after ``day``; may undershoot for calendar steps."""
    if day <= anchor:
        return 0
    gap = (day - anchor).days
    if interval is RecurrenceInterval.DAILY:
        return gap
    if interval is RecurrenceInterval.WEEKLY:
        return -(-gap // 7)
    months = (day.year - anchor.year) * 12 + (day.month - anchor.month)
    per_step = {RecurrenceInterval.MONTHLY: 1, RecurrenceInterval.QUARTERLY: 3, RecurrenceInterval.YEARLY: 12}
    return max(months // per_step[interval] - 1, 0)


def occurrences(
    anchor: date,
    interval: RecurrenceInterval | None,
    window_start: date,
    window_end: date,
    recurrence_end: date | None = None,
) -> Iterator[date]:
    """Yield each occurrence of a transaction that falls within ``[window_start, window_end]``.

    Non-recurring transactions occur once, on their anchor date. Recurring ones start at the
    anchor, even when it lies before the window, and stop after ``recurrence_end`` or the end of
    the window, whichever comes first.
    """
    if interval is None or interval is RecurrenceInterval.NONE:
        if window_start <= anchor <= window_end:
            yield anchor
        return

    stop = window_end if recurrence_end is None else min(window_end, recurrence_end)
    step = _STEPS[interval]
    # Jump close to the window instead of walking from a possibly distant anchor.
    k = _first_index_on_or_after(anchor, interval, window_start)
    while True:
        try:
            current = anchor + step * k
        except (OverflowError, ValueError):
            # Stepped past the last representable date.
            return
        if current > stop:
            return
        if current >= window_start:
            yield current
        k += 1


def days_between(start: date, end: date) -> Iterator[date]:
    """Yield every day from ``start`` through ``end`` inclusive."""
    current = start
    while current <= end:
        yield current
        if current == date.max:
            return
        current += timedelta(days=1)
