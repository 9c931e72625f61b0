"""Tests for recurrence expansion and calendar periods."""

from datetime import date

import pytest

from ledger.core.models import RecurrenceInterval
from ledger.core.periods import Period, months_between
from ledger.core.recurrence import days_between, occurrences


def test_non_recurring_occurs_once_inside_window() -> None:
    """A one-off transaction occurs on its date only, and only inside the window."""
    inside = list(occurrences(date(2024, 1, 15), RecurrenceInterval.NONE, date(2024, 1, 1), date(2024, 1, 31)))
    outside = list(occurrences(date(2023, 12, 31), None, date(2024, 1, 1), date(2024, 1, 31)))
    if inside != [date(2024, 1, 15)] or outside != []:
        msg = f"Unexpected occurrences: inside={inside}, outside={outside}"
        raise AssertionError(msg)


@pytest.mark.parametrize(
    ("interval", "expected"),
    [
        (RecurrenceInterval.DAILY, [date(2024, 3, 1), date(2024, 3, 2), date(2024, 3, 3)]),
        (RecurrenceInterval.WEEKLY, [date(2024, 3, 1)]),
    ],
)
def test_daily_and_weekly_steps(interval: RecurrenceInterval, expected: list[date]) -> None:
    """Day and week steps count from the anchor."""
    result = list(occurrences(date(2024, 3, 1), interval, date(2024, 3, 1), date(2024, 3, 3)))
    if result != expected:
        msg = f"Expected {expected}, got {result}"
        raise AssertionError(msg)


def test_anchor_before_window_keeps_its_phase() -> None:
    """Expansion starts at the anchor, so a weekly series keeps its weekday inside a later window."""
    result = list(occurrences(date(2023, 1, 6), RecurrenceInterval.WEEKLY, date(2024, 1, 1), date(2024, 1, 31)))
    expected = [date(2024, 1, 5), date(2024, 1, 12), date(2024, 1, 19), date(2024, 1, 26)]
    if result != expected:
        msg = f"Expected {expected}, got {result}"
        raise AssertionError(msg)


def test_month_end_anchor_clamps_without_drift() -> None:
    """An anchor on the 31st lands on the last day of shorter months and returns to the 31st."""
    result = list(occurrences(date(2024, 1, 31), RecurrenceInterval.MONTHLY, date(2024, 1, 1), date(2024, 5, 31)))
    expected = [date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31), date(2024, 4, 30), date(2024, 5, 31)]
    if result != expected:
        msg = f"Expected {expected}, got {result}"
        raise AssertionError(msg)


def test_quarterly_and_yearly_steps() -> None:
    """Quarterly steps three months at a time; yearly keeps a leap-day anchor on Feb 28 in common years."""
    quarterly = list(
        occurrences(date(2023, 11, 15), RecurrenceInterval.QUARTERLY, date(2024, 1, 1), date(2024, 12, 31))
    )
    yearly = list(occurrences(date(2020, 2, 29), RecurrenceInterval.YEARLY, date(2021, 1, 1), date(2024, 12, 31)))
    if quarterly != [date(2024, 2, 15), date(2024, 5, 15), date(2024, 8, 15), date(2024, 11, 15)]:
        msg = f"Unexpected quarterly occurrences: {quarterly}"
        raise AssertionError(msg)
    if yearly != [date(2021, 2, 28), date(2022, 2, 28), date(2023, 2, 28), date(2024, 2, 29)]:
        msg = f"Unexpected yearly occurrences: {yearly}"
        raise AssertionError(msg)


def test_recurrence_end_stops_expansion() -> None:
    """No occurrence is produced after recurrence_end, even when the window runs longer."""
    result = list(
        occurrences(
            date(2024, 1, 10),
            RecurrenceInterval.MONTHLY,
            date(2024, 1, 1),
            date(2024, 12, 31),
            recurrence_end=date(2024, 3, 10),
        )
    )
    if result != [date(2024, 1, 10), date(2024, 2, 10), date(2024, 3, 10)]:
        msg = f"Unexpected occurrences: {result}"
        raise AssertionError(msg)


def test_months_between_spans_years() -> None:
    """Periods cover every calendar month touched by the range, in order."""
    result = months_between(date(2023, 11, 20), date(2024, 2, 3))
    expected = [Period(2023, 11), Period(2023, 12), Period(2024, 1), Period(2024, 2)]
    if result != expected:
        msg = f"Expected {expected}, got {result}"
        raise AssertionError(msg)
    if Period(2024, 2).last_day != date(2024, 2, 29):
        msg = "Expected February 2024 to end on the 29th"
        raise AssertionError(msg)


@pytest.mark.parametrize(
    "interval",
    [RecurrenceInterval.DAILY, RecurrenceInterval.MONTHLY, RecurrenceInterval.QUARTERLY, RecurrenceInterval.YEARLY],
)
def test_expansion_stops_at_last_representable_date(interval: RecurrenceInterval) -> None:
    """Stepping past December 9999 ends the expansion instead of failing."""
    result = list(occurrences(date(9999, 12, 31), interval, date(9999, 12, 1), date(9999, 12, 31)))
    if result != [date(9999, 12, 31)]:
        msg = f"Expected only the anchor, got {result}"
        raise AssertionError(msg)


def test_days_between_reaches_date_max() -> None:
    """The last day of the calendar is yielded once and iteration stops cleanly."""
    result = list(days_between(date(9999, 12, 30), date.max))
    if result != [date(9999, 12, 30), date(9999, 12, 31)]:
        msg = f"Unexpected days: {result}"
        raise AssertionError(msg)
