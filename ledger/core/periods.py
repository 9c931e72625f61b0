"""Calendar-month periods used to bucket ledger activity."""

import calendar
from datetime import date
from typing import NamedTuple


class Period(NamedTuple):
    """A (year, month) pair; tuple ordering is chronological."""

    year: int
    month: int

    @classmethod
    def of(cls, day: date) -> "Period":
        """Return the period containing ``day``."""
        return cls(day.year, day.month)

    @property
    def first_day(self) -> date:
        """The 1st of the month."""
        return date(self.year, self.month, 1)

    @property
    def last_day(self) -> date:
        """The last calendar day of the month."""
        return date(self.year, self.month, calendar.monthrange(self.year, self.month)[1])

    def next(self) -> "Period":
        """Return the following month."""
        if self.month == 12:
            return Period(self.year + 1, 1)
        return Period(self.year, self.month + 1)


def months_between(start: date, end: date) -> list[Period]:
    """(year, month) periods from the month of ``start`` through the month of ``end``, inclusive."""
    periods = []
    current, last = Period.of(start), Period.of(end)
    while current <= last:
        periods.append(current)
        current = current.next()
    return periods
