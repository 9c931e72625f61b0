"""Persisted balance ledger: initialization and daily breakdowns.

Stored balances are a cache of the last initialization. Each run rewrites every month in its
window, so re-running after records change brings the ledger back in line.
"""

from datetime import date
from decimal import Decimal

from ledger.core.db import LedgerRepository
from ledger.core.errors import BalanceNotFoundError
from ledger.core.models import DailyBalance, DailyBalances, StoredBalance
from ledger.core.periods import Period
from ledger.core.recurrence import days_between
from ledger.core.settings import Settings
from ledger.core.utils import get_logger
from ledger.services.aggregator import ZERO, BalanceAggregator, bucket_totals, check_range

logger = get_logger("ledger.ledger")


class LedgerService:
    """Writes aggregated months into the balances table and reads them back day by day."""

    def __init__(self, repository: LedgerRepository, settings: Settings) -> None:
        """Initialize the service with a repository and the application settings."""
        self.repository = repository
        self.settings = settings
        self.aggregator = BalanceAggregator(repository)

    def default_window(self, today: date | None = None) -> tuple[date, date]:
        """January 1st ``initialize_years_back`` years ago through December 31st ``initialize_years_ahead`` ahead."""
        today = today or date.today()
        start = date(today.year - self.settings.initialize_years_back, 1, 1)
        end = date(today.year + self.settings.initialize_years_ahead, 12, 31)
        return start, end

    def initialize(
        self,
        user_id: str,
        start: date | None = None,
        end: date | None = None,
        opening_balance: Decimal = ZERO,
    ) -> int:
        """Aggregate the window and store one balance per month; returns the number of months written."""
        default_start, default_end = self.default_window()
        start = start or default_start
        end = end or default_end
        check_range(start, end)
        snapshots = self.aggregator.aggregate(user_id, start, end, opening_balance)
        written = self.repository.upsert_balances(user_id, snapshots)
        logger.info(f"Stored {written} monthly balances for user={user_id} ({start} to {end})")
        return written

    def daily_balances(self, user_id: str, year: int, month: int) -> DailyBalances:
        """Break one stored month down by day, starting from its stored starting balance."""
        stored = self.repository.get_balance(user_id, year, month)
        if stored is None:
            raise BalanceNotFoundError
        period = Period(year, month)
        income, expense = bucket_totals(
            self.repository.list_incomes(user_id),
            self.repository.list_expenses(user_id),
            self.repository.list_receipt_items(user_id),
            period.first_day,
            period.last_day,
            key=lambda day: day,
        )
        days = []
        running = Decimal(stored.starting_balance)
        for day in days_between(period.first_day, period.last_day):
            day_income = income.get(day, ZERO)
            day_expense = expense.get(day, ZERO)
            starting = running
            running += day_income - day_expense
            days.append(
                DailyBalance(
                    date=day,
                    starting_balance=starting,
                    income=day_income,
                    expenses=day_expense,
                    remaining_balance=running,
                )
            )
        return DailyBalances(month_balance=StoredBalance.model_validate(stored), daily_balances=days)
