"""DB models and the data-access helper for the Household Ledger."""

from collections.abc import Iterator, Sequence
from contextlib import contextmanager

from pydantic import BaseModel
from sqlalchemy import Column, Date, Integer, Numeric, String, UniqueConstraint, create_engine, extract, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from ledger.core.errors import DataAccessError, RecordNotFoundError
from ledger.core.models import (
    BalanceSnapshot,
    ExpenseCreate,
    IncomeCreate,
    ReceiptItemCreate,
    RecurrenceInterval,
)
from ledger.core.utils import get_logger

Base = declarative_base()
logger = get_logger("ledger.db")


class Income(Base):
    """An income record owned by one user."""

    __tablename__ = "incomes"
    id = Column(Integer, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    source = Column(String, nullable=False, default="")
    amount = Column(Numeric(12, 2), nullable=False)
    date = Column(Date, nullable=False)
    recurrence_interval = Column(String, nullable=False, default=RecurrenceInterval.NONE.value)
    recurrence_end = Column(Date, nullable=True)


class Expense(Base):
    """An expense record owned by one user."""

    __tablename__ = "expenses"
    id = Column(Integer, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    description = Column(String, nullable=False, default="")
    category = Column(String, nullable=False, default="")
    amount = Column(Numeric(12, 2), nullable=False)
    date = Column(Date, nullable=False)
    recurrence_interval = Column(String, nullable=False, default=RecurrenceInterval.NONE.value)
    recurrence_end = Column(Date, nullable=True)


class ReceiptItem(Base):
    """A single line of an imported receipt; the sign of total_price tells spending from refunds."""

    __tablename__ = "receipt_items"
    id = Column(Integer, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    category = Column(String, nullable=False, default="")
    total_price = Column(Numeric(12, 2), nullable=False)
    date = Column(Date, nullable=False)


class Balance(Base):
    """A materialized month of a user's balance ledger."""

    __tablename__ = "balances"
    __table_args__ = (UniqueConstraint("user_id", "year", "month", name="uq_balances_user_month"),)
    id = Column(Integer, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    starting_balance = Column(Numeric(12, 2), nullable=False)
    remaining_balance = Column(Numeric(12, 2), nullable=False)


def get_engine(url: str) -> Engine:
    """Create a SQLAlchemy engine for the given database URL."""
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args)


def get_session_factory(engine: Engine) -> sessionmaker:
    """Build the per-request session factory bound to ``engine``."""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def _date_filter(model: type[Base], year: int | None, month: int | None) -> list:
    """Conditions restricting ``model.date`` to a year, a month of every year, or both."""
    conditions = []
    if year is not None:
        conditions.append(extract("year", model.date) == year)
    if month is not None:
        conditions.append(extract("month", model.date) == month)
    return conditions


def _row_values(payload: BaseModel) -> dict:
    """Column values for a create/update payload; enums are stored by value."""
    values = payload.model_dump()
    interval = values.get("recurrence_interval")
    if isinstance(interval, RecurrenceInterval):
        values["recurrence_interval"] = interval.value
    return values


class LedgerRepository:
    """Data-access helper scoped to one SQLAlchemy session.

    Every query is filtered by user id. Any ``SQLAlchemyError`` rolls the session back and is
    re-raised as ``DataAccessError``.
    """

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    @contextmanager
    def _guard(self, action: str) -> Iterator[None]:
        """Turn database failures inside the block into ``DataAccessError("Failed to <action>")``."""
        try:
            yield
        except SQLAlchemyError as exc:
            logger.exception(f"Database error while trying to {action}")
            self.session.rollback()
            msg = f"Failed to {action}"
            raise DataAccessError(msg) from exc

    def list_incomes(self, user_id: str, year: int | None = None, month: int | None = None) -> Sequence[Income]:
        """Return the user's incomes ordered by date, optionally limited to a year and/or month."""
        stmt = (
            select(Income)
            .where(Income.user_id == user_id, *_date_filter(Income, year, month))
            .order_by(Income.date, Income.id)
        )
        with self._guard("fetch incomes"):
            return self.session.scalars(stmt).all()

    def list_expenses(self, user_id: str, year: int | None = None, month: int | None = None) -> Sequence[Expense]:
        """Return the user's expenses ordered by date, optionally limited to a year and/or month."""
        stmt = (
            select(Expense)
            .where(Expense.user_id == user_id, *_date_filter(Expense, year, month))
            .order_by(Expense.date, Expense.id)
        )
        with self._guard("fetch expenses"):
            return self.session.scalars(stmt).all()

    def list_receipt_items(
        self, user_id: str, year: int | None = None, month: int | None = None
    ) -> Sequence[ReceiptItem]:
        """Return the user's receipt items ordered by date, optionally limited to a year and/or month."""
        stmt = (
            select(ReceiptItem)
            .where(ReceiptItem.user_id == user_id, *_date_filter(ReceiptItem, year, month))
            .order_by(ReceiptItem.date, ReceiptItem.id)
        )
        with self._guard("fetch receipt items"):
            return self.session.scalars(stmt).all()

    def add_income(self, user_id: str, payload: IncomeCreate) -> Income:
        """Persist a new income for the user."""
        return self._add(Income(user_id=user_id, **_row_values(payload)), "create income")

    def add_expense(self, user_id: str, payload: ExpenseCreate) -> Expense:
        """Persist a new expense for the user."""
        return self._add(Expense(user_id=user_id, **_row_values(payload)), "create expense")

    def add_receipt_item(self, user_id: str, payload: ReceiptItemCreate) -> ReceiptItem:
        """Persist a new receipt item for the user."""
        return self._add(ReceiptItem(user_id=user_id, **_row_values(payload)), "create receipt item")

    def update_income(self, user_id: str, income_id: int, payload: IncomeCreate) -> Income:
        """Replace the fields of one of the user's incomes."""
        return self._update(Income, user_id, income_id, payload, "income")

    def update_expense(self, user_id: str, expense_id: int, payload: ExpenseCreate) -> Expense:
        """Replace the fields of one of the user's expenses."""
        return self._update(Expense, user_id, expense_id, payload, "expense")

    def update_receipt_item(self, user_id: str, item_id: int, payload: ReceiptItemCreate) -> ReceiptItem:
        """Replace the fields of one of the user's receipt items."""
        return self._update(ReceiptItem, user_id, item_id, payload, "receipt item")

    def delete_income(self, user_id: str, income_id: int) -> None:
        """Delete one of the user's incomes."""
        self._delete(Income, user_id, income_id, "income")

    def delete_expense(self, user_id: str, expense_id: int) -> None:
        """Delete one of the user's expenses."""
        self._delete(Expense, user_id, expense_id, "expense")

    def delete_receipt_item(self, user_id: str, item_id: int) -> None:
        """Delete one of the user's receipt items."""
        self._delete(ReceiptItem, user_id, item_id, "receipt item")

    def _add(self, row: Base, action: str) -> Base:
        """Insert ``row`` and return it with its generated id."""
        with self._guard(action):
            self.session.add(row)
            self.session.commit()
            self.session.refresh(row)
        return row

    def _owned(self, model: type[Base], user_id: str, record_id: int, label: str) -> Base:
        """Load a record by id; records of other users are reported as missing."""
        stmt = select(model).where(model.id == record_id, model.user_id == user_id)
        with self._guard(f"fetch {label}"):
            row = self.session.scalars(stmt).first()
        if row is None:
            msg = f"{label.capitalize()} not found"
            raise RecordNotFoundError(msg)
        return row

    def _update(self, model: type[Base], user_id: str, record_id: int, payload: BaseModel, label: str) -> Base:
        """Overwrite an owned record with the payload's values."""
        row = self._owned(model, user_id, record_id, label)
        with self._guard(f"update {label}"):
            for field, value in _row_values(payload).items():
                setattr(row, field, value)
            self.session.commit()
            self.session.refresh(row)
        return row

    def _delete(self, model: type[Base], user_id: str, record_id: int, label: str) -> None:
        """Remove an owned record."""
        row = self._owned(model, user_id, record_id, label)
        with self._guard(f"delete {label}"):
            self.session.delete(row)
            self.session.commit()

    def get_balance(self, user_id: str, year: int, month: int) -> Balance | None:
        """Retrieve the stored balance for one month, if any."""
        stmt = select(Balance).where(Balance.user_id == user_id, Balance.year == year, Balance.month == month)
        with self._guard("fetch balance"):
            return self.session.scalars(stmt).first()

    def list_balances(self, user_id: str, year: int | None = None, month: int | None = None) -> Sequence[Balance]:
        """Return stored balances newest first, optionally filtered to a year and month."""
        stmt = select(Balance).where(Balance.user_id == user_id)
        if year is not None:
            stmt = stmt.where(Balance.year == year)
        if month is not None:
            stmt = stmt.where(Balance.month == month)
        stmt = stmt.order_by(Balance.year.desc(), Balance.month.desc())
        with self._guard("fetch balances"):
            return self.session.scalars(stmt).all()

    def upsert_balances(self, user_id: str, snapshots: Sequence[BalanceSnapshot]) -> int:
        """Write one stored balance per snapshot, replacing existing months; returns rows written."""
        with self._guard("store balances"):
            existing = {
                (row.year, row.month): row
                for row in self.session.scalars(select(Balance).where(Balance.user_id == user_id))
            }
            for snapshot in snapshots:
                row = existing.get((snapshot.year, snapshot.month))
                if row is None:
                    row = Balance(user_id=user_id, year=snapshot.year, month=snapshot.month)
                    self.session.add(row)
                row.starting_balance = snapshot.running_balance - snapshot.net_change
                row.remaining_balance = snapshot.running_balance
            self.session.commit()
        return len(snapshots)

    def close(self) -> None:
        """Close the SQLAlchemy session."""
        self.session.close()
