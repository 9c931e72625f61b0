"""Category summary: income by source and expense by category over one window.

The window is a calendar month, a calendar year, an explicit date range, or everything from
the earliest record through today. Recurring records are expanded the same way the monthly
aggregation expands them.
"""

from collections import defaultdict
from collections.abc import Iterable
from datetime import date
from decimal import Decimal

from ledger.core.errors import InvalidParameterError
from ledger.core.models import CategorySummary, CategoryTotals, FlowSummary, SummaryMode
from ledger.core.periods import Period, months_between
from ledger.core.utils import get_logger
from ledger.services.aggregator import ZERO, Entry, LedgerSource, ReceiptLine, check_range, iter_movements

logger = get_logger("ledger.summary")

UNCATEGORIZED = "Uncategorized"


def summary_window(
    mode: SummaryMode,
    year: int | None = None,
    month: int | None = None,
    start: date | None = None,
    end: date | None = None,
) -> tuple[date, date]:
    """Resolve the monthly, yearly or explicit range window from the query parameters."""
    if mode is SummaryMode.MONTHLY:
        if year is None or month is None:
            msg = "Year and month are required for monthly mode"
            raise InvalidParameterError(msg)
        period = Period(year, month)
        return period.first_day, period.last_day
    if mode is SummaryMode.YEARLY:
        if year is None:
            msg = "Year is required for yearly mode"
            raise InvalidParameterError(msg)
        return date(year, 1, 1), date(year, 12, 31)
    if mode is SummaryMode.RANGE:
        if start is None or end is None:
            msg = "Start and end dates are required for range mode"
            raise InvalidParameterError(msg)
        check_range(start, end)
        return start, end
    msg = f"Mode {mode.value} has no fixed window"
    raise InvalidParameterError(msg)


def all_time_window(
    incomes: Iterable[Entry], expenses: Iterable[Entry], receipt_items: Iterable[ReceiptLine], today: date
) -> tuple[date, date]:
    """From the earliest record (or today, without any) through today."""
    earliest = min((record.date for group in (incomes, expenses, receipt_items) for record in group), default=today)
    return min(earliest, today), today


def _label(record: Entry | ReceiptLine) -> str:
    """Incomes are grouped by source, expenses and receipt items by category."""
    return getattr(record, "source", None) or getattr(record, "category", None) or UNCATEGORIZED


def summarize_categories(
    mode: SummaryMode,
    incomes: Iterable[Entry],
    expenses: Iterable[Entry],
    receipt_items: Iterable[ReceiptLine],
    start: date,
    end: date,
) -> CategorySummary:
    """Break already-fetched records down by source and category within ``[start, end]``."""
    check_range(start, end)
    income: dict[str, Decimal] = defaultdict(Decimal)
    expense: dict[str, Decimal] = defaultdict(Decimal)
    for movement in iter_movements(incomes, expenses, receipt_items, start, end):
        totals = income if movement.is_income else expense
        totals[_label(movement.record)] += movement.amount

    net_per_category = {}
    for label in sorted(set(income) | set(expense)):
        label_income = income.get(label, ZERO)
        label_expense = expense.get(label, ZERO)
        net_per_category[label] = CategoryTotals(
            income=label_income, expense=label_expense, net=label_income - label_expense
        )
    total_income = sum(income.values(), ZERO)
    total_expense = sum(expense.values(), ZERO)
    return CategorySummary(
        mode=mode,
        start_date=start,
        end_date=end,
        total_days=(end - start).days + 1,
        total_months=len(months_between(start, end)),
        incomes=FlowSummary(total=total_income, breakdown=dict(sorted(income.items()))),
        expenses=FlowSummary(total=total_expense, breakdown=dict(sorted(expense.items()))),
        net_per_category=net_per_category,
        balance=total_income - total_expense,
    )


class CategorySummarizer:
    """Builds category summaries from the records a ``LedgerSource`` provides."""

    def __init__(self, source: LedgerSource) -> None:
        """Initialize the summarizer with the data-access handle it reads from."""
        self.source = source

    def summarize(
        self,
        user_id: str,
        mode: SummaryMode,
        year: int | None = None,
        month: int | None = None,
        start: date | None = None,
        end: date | None = None,
        today: date | None = None,
    ) -> CategorySummary:
        """Summarize the caller's records for the window chosen by ``mode``.

        Incomplete parameters raise ``InvalidParameterError`` and a reversed range raises
        ``InvalidRangeError``, both before the database is queried.
        """
        window = None if mode is SummaryMode.ALL_TIME else summary_window(mode, year, month, start, end)
        incomes = list(self.source.list_incomes(user_id))
        expenses = list(self.source.list_expenses(user_id))
        receipt_items = list(self.source.list_receipt_items(user_id))
        if window is None:
            window = all_time_window(incomes, expenses, receipt_items, today or date.today())
        logger.info(f"Summarizing categories for user={user_id} mode={mode.value} from {window[0]} to {window[1]}")
        return summarize_categories(mode, incomes, expenses, receipt_items, *window)
