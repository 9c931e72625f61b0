"""Pydantic models for the Household Ledger.

This module defines the request and response models used throughout the application: the
income, expense and receipt-item records, the per-period balance snapshots produced by the
aggregator, and the stored and daily balances served by the ledger endpoints. All models
serialize with camelCase keys and render money as floats rounded to cents.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, model_validator
from pydantic.alias_generators import to_camel

from ledger.core.utils import round_money

Money = Annotated[Decimal, PlainSerializer(round_money, return_type=float, when_used="json")]


class RecurrenceInterval(str, Enum):
    """Step unit by which a transaction repeats."""

    NONE = "NONE"
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"


class CamelModel(BaseModel):
    """Base model with camelCase aliases that also reads ORM objects."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class LedgerEntry(CamelModel):
    """Fields shared by incomes and expenses; amount is a non-negative magnitude."""

    amount: Money = Field(ge=0, decimal_places=2)
    date: dt.date
    recurrence_interval: RecurrenceInterval = RecurrenceInterval.NONE
    recurrence_end: dt.date | None = None

    @model_validator(mode="after")
    def _check_recurrence_end(self) -> "LedgerEntry":
        if self.recurrence_end is not None and self.recurrence_end < self.date:
            msg = "recurrenceEnd must not be before date"
            raise ValueError(msg)
        return self


class IncomeCreate(LedgerEntry):
    """Payload for recording an income."""

    source: str = ""


class IncomeRead(IncomeCreate):
    """A stored income."""

    id: int
    user_id: str


class ExpenseCreate(LedgerEntry):
    """Payload for recording an expense."""

    description: str = ""
    category: str = ""


class ExpenseRead(ExpenseCreate):
    """A stored expense."""

    id: int
    user_id: str


class ReceiptItemCreate(CamelModel):
    """Payload for a receipt line; negative totals are spending, positive totals are refunds."""

    name: str
    category: str = ""
    total_price: Money = Field(decimal_places=2)
    date: dt.date


class ReceiptItemRead(ReceiptItemCreate):
    """A stored receipt item."""

    id: int
    user_id: str


class BalanceSnapshot(CamelModel):
    """Income, expense and running balance for one calendar month."""

    year: int
    month: int
    total_income: Money
    total_expense: Money
    net_change: Money
    running_balance: Money


class StoredBalance(CamelModel):
    """A materialized month of the balance ledger."""

    year: int
    month: int
    starting_balance: Money
    remaining_balance: Money


class DailyBalance(CamelModel):
    """Balance movement for a single day."""

    date: dt.date
    starting_balance: Money
    income: Money
    expenses: Money
    remaining_balance: Money


class DailyBalances(CamelModel):
    """Day-by-day breakdown of one stored month."""

    month_balance: StoredBalance
    daily_balances: list[DailyBalance]


class InitializeRequest(CamelModel):
    """Optional overrides for the ledger initialization window."""

    start_date: dt.date | None = None
    end_date: dt.date | None = None
    opening_balance: Money = Field(default=Decimal(0), decimal_places=2)


class InitializeResult(CamelModel):
    """Outcome of a ledger initialization."""

    message: str
    periods: int


class SummaryMode(str, Enum):
    """How the category summary window is chosen."""

    MONTHLY = "monthly"
    YEARLY = "yearly"
    RANGE = "range"
    ALL_TIME = "allTime"


class CategoryTotals(CamelModel):
    """Income, expense and net for one source or category."""

    income: Money = Decimal(0)
    expense: Money = Decimal(0)
    net: Money = Decimal(0)


class FlowSummary(CamelModel):
    """Total of one direction of money flow and its per-label breakdown."""

    total: Money
    breakdown: dict[str, Money]


class CategorySummary(CamelModel):
    """Income by source and expense by category over one window."""

    mode: SummaryMode
    start_date: dt.date
    end_date: dt.date
    total_days: int
    total_months: int
    incomes: FlowSummary
    expenses: FlowSummary
    net_per_category: dict[str, CategoryTotals]
    balance: Money


class DeleteResult(CamelModel):
    """Confirmation of a deleted record."""

    message: str
