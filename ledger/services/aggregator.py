"""Balance aggregation: monthly income, expense and running balance for one user.

The aggregator recomputes from the raw records on every call. It holds no state of its own, so
calling it twice with the same data yields the same snapshots, and the order in which records
are supplied does not matter.
"""

from collections import defaultdict
from collections.abc import Callable, Hashable, Iterable, Iterator
from datetime import date
from decimal import Decimal
from typing import NamedTuple, Protocol

from ledger.core.errors import InvalidRangeError
from ledger.core.models import BalanceSnapshot, RecurrenceInterval
from ledger.core.periods import Period, months_between
from ledger.core.recurrence import occurrences
from ledger.core.utils import get_logger

logger = get_logger("ledger.aggregator")

ZERO = Decimal(0)


class Entry(Protocol):
    """An income or expense as the aggregator sees it."""

    amount: Decimal
    date: date
    recurrence_interval: RecurrenceInterval | str | None
    recurrence_end: date | None


class ReceiptLine(Protocol):
    """A receipt item as the aggregator sees it."""

    total_price: Decimal
    date: date


class LedgerSource(Protocol):
    """Read side of the data-access layer consumed by the aggregator."""

    def list_incomes(self, user_id: str) -> Iterable[Entry]: ...

    def list_expenses(self, user_id: str) -> Iterable[Entry]: ...

    def list_receipt_items(self, user_id: str) -> Iterable[ReceiptLine]: ...


def check_range(start: date, end: date) -> None:
    """Raise ``InvalidRangeError`` unless ``start <= end``."""
    if start > end:
        msg = f"Start date {start.isoformat()} is after end date {end.isoformat()}"
        raise InvalidRangeError(msg)


def _interval(entry: Entry) -> RecurrenceInterval:
    """Read the entry's interval, treating a missing one as ``NONE``."""
    raw = entry.recurrence_interval
    return RecurrenceInterval(raw) if raw else RecurrenceInterval.NONE


class Movement(NamedTuple):
    """One occurrence of money moving in or out, with the record it came from."""

    record: Entry | ReceiptLine
    day: date
    amount: Decimal
    is_income: bool


def iter_movements(
    incomes: Iterable[Entry],
    expenses: Iterable[Entry],
    receipt_items: Iterable[ReceiptLine],
    start: date,
    end: date,
) -> Iterator[Movement]:
    """Yield every occurrence inside ``[start, end]`` as a positive amount flagged income or expense.

    Recurring incomes and expenses are expanded from their anchor. Receipt items with a negative
    total count as expense by magnitude, positive ones as income.
    """
    for is_income, entries in ((True, incomes), (False, expenses)):
        for entry in entries:
            amount = Decimal(entry.amount)
            for day in occurrences(entry.date, _interval(entry), start, end, entry.recurrence_end):
                yield Movement(entry, day, amount, is_income)
    for item in receipt_items:
        if not start <= item.date <= end:
            continue
        price = Decimal(item.total_price)
        yield Movement(item, item.date, abs(price), price >= 0)


def bucket_totals(
    incomes: Iterable[Entry],
    expenses: Iterable[Entry],
    receipt_items: Iterable[ReceiptLine],
    start: date,
    end: date,
    key: Callable[[date], Hashable],
) -> tuple[dict, dict]:
    """Sum income and expense per bucket for every occurrence inside ``[start, end]``.

    ``key`` maps an occurrence date to its bucket (a ``Period`` for monthly totals, the date
    itself for daily totals).
    """
    income: dict = defaultdict(Decimal)
    expense: dict = defaultdict(Decimal)
    for movement in iter_movements(incomes, expenses, receipt_items, start, end):
        totals = income if movement.is_income else expense
        totals[key(movement.day)] += movement.amount
    return income, expense


def aggregate_entries(
    incomes: Iterable[Entry],
    expenses: Iterable[Entry],
    receipt_items: Iterable[ReceiptLine],
    start: date,
    end: date,
    opening_balance: Decimal = ZERO,
) -> list[BalanceSnapshot]:
    """Roll already-fetched records forward into one snapshot per calendar month of the window."""
    check_range(start, end)
    income, expense = bucket_totals(incomes, expenses, receipt_items, start, end, key=Period.of)
    snapshots = []
    running = Decimal(opening_balance)
    for period in months_between(start, end):
        total_income = income.get(period, ZERO)
        total_expense = expense.get(period, ZERO)
        net = total_income - total_expense
        running += net
        logger.debug(f"{period.year}-{period.month:02d}: income={total_income} expense={total_expense} net={net}")
        snapshots.append(
            BalanceSnapshot(
                year=period.year,
                month=period.month,
                total_income=total_income,
                total_expense=total_expense,
                net_change=net,
                running_balance=running,
            )
        )
    return snapshots


class BalanceAggregator:
    """Computes monthly balance snapshots from the records a ``LedgerSource`` provides."""

    def __init__(self, source: LedgerSource) -> None:
        """Initialize the aggregator with the data-access handle it reads from."""
        self.source = source

    def aggregate(
        self, user_id: str, start: date, end: date, opening_balance: Decimal = ZERO
    ) -> list[BalanceSnapshot]:
        """Return one snapshot per month between ``start`` and ``end`` for ``user_id``.

        Raises ``InvalidRangeError`` before touching the database when the range is reversed;
        ``DataAccessError`` from the source propagates unchanged.
        """
        check_range(start, end)
        logger.info(f"Aggregating balances for user={user_id} from {start} to {end}")
        incomes = self.source.list_incomes(user_id)
        expenses = self.source.list_expenses(user_id)
        receipt_items = self.source.list_receipt_items(user_id)
        return aggregate_entries(incomes, expenses, receipt_items, start, end, opening_balance)
