"""FastAPI endpoints for the Household Ledger API.

This module defines the API routes for recording, editing and deleting incomes, expenses and receipt
items, computing monthly balances and category summaries on the fly, materializing the balance ledger
and reading it back by day. Every route except the health check is scoped to the user named by the
``X-User-Id`` header.
"""

from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, Query

from ledger.api.dependencies import (
    get_aggregator,
    get_current_user,
    get_ledger_service,
    get_repository,
    get_summarizer,
)
from ledger.core.db import LedgerRepository
from ledger.core.models import (
    BalanceSnapshot,
    CategorySummary,
    DailyBalances,
    DeleteResult,
    ExpenseCreate,
    ExpenseRead,
    IncomeCreate,
    IncomeRead,
    InitializeRequest,
    InitializeResult,
    ReceiptItemCreate,
    ReceiptItemRead,
    StoredBalance,
    SummaryMode,
)
from ledger.core.utils import get_logger
from ledger.services.aggregator import BalanceAggregator
from ledger.services.ledger import LedgerService
from ledger.services.summary import CategorySummarizer

router = APIRouter()
logger = get_logger("ledger.api")

ERROR_RESPONSES = {
    400: {
        "description": "Invalid input.",
        "content": {"application/json": {"example": {"error": "Start date must not be after end date"}}},
    },
    401: {
        "description": "Missing user identity.",
        "content": {"application/json": {"example": {"error": "Not authorized"}}},
    },
    500: {
        "description": "Data access failure.",
        "content": {"application/json": {"example": {"error": "Failed to fetch incomes"}}},
    },
}

RECORD_RESPONSES = {
    404: {
        "description": "No such record for the caller.",
        "content": {"application/json": {"example": {"error": "Income not found"}}},
    },
    **ERROR_RESPONSES,
}


@router.get(
    "/health",
    summary="Health check",
    description="Simple health check endpoint. Returns status ok.",
    response_description="Status ok.",
    responses={200: {"description": "API is healthy.", "content": {"application/json": {"example": {"status": "ok"}}}}},
)
async def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@router.post(
    "/incomes", status_code=201, response_model=IncomeRead, summary="Record an income", responses=ERROR_RESPONSES
)
def create_income(
    payload: IncomeCreate,
    user_id: str = Depends(get_current_user),
    repository: LedgerRepository = Depends(get_repository),
) -> IncomeRead:
    """Record an income for the calling user."""
    income = repository.add_income(user_id, payload)
    logger.info(f"Created income id={income.id} for user={user_id}")
    return IncomeRead.model_validate(income)


@router.get("/incomes", response_model=list[IncomeRead], summary="List incomes", responses=ERROR_RESPONSES)
def list_incomes(
    year: int | None = Query(default=None),
    month: int | None = Query(default=None, ge=1, le=12),
    user_id: str = Depends(get_current_user),
    repository: LedgerRepository = Depends(get_repository),
) -> list[IncomeRead]:
    """List the caller's incomes, optionally restricted to a year and/or month."""
    return [IncomeRead.model_validate(row) for row in repository.list_incomes(user_id, year, month)]


@router.put("/incomes/{income_id}", response_model=IncomeRead, summary="Update an income", responses=RECORD_RESPONSES)
def update_income(
    income_id: int,
    payload: IncomeCreate,
    user_id: str = Depends(get_current_user),
    repository: LedgerRepository = Depends(get_repository),
) -> IncomeRead:
    """Replace one of the caller's incomes."""
    income = repository.update_income(user_id, income_id, payload)
    logger.info(f"Updated income id={income_id} for user={user_id}")
    return IncomeRead.model_validate(income)


@router.delete(
    "/incomes/{income_id}", response_model=DeleteResult, summary="Delete an income", responses=RECORD_RESPONSES
)
def delete_income(
    income_id: int,
    user_id: str = Depends(get_current_user),
    repository: LedgerRepository = Depends(get_repository),
) -> DeleteResult:
    """Delete one of the caller's incomes."""
    repository.delete_income(user_id, income_id)
    logger.info(f"Deleted income id={income_id} for user={user_id}")
    return DeleteResult(message="Income deleted successfully")


@router.post(
    "/expenses", status_code=201, response_model=ExpenseRead, summary="Record an expense", responses=ERROR_RESPONSES
)
def create_expense(
    payload: ExpenseCreate,
    user_id: str = Depends(get_current_user),
    repository: LedgerRepository = Depends(get_repository),
) -> ExpenseRead:
    """Record an expense for the calling user."""
    expense = repository.add_expense(user_id, payload)
    logger.info(f"Created expense id={expense.id} for user={user_id}")
    return ExpenseRead.model_validate(expense)


@router.get("/expenses", response_model=list[ExpenseRead], summary="List expenses", responses=ERROR_RESPONSES)
def list_expenses(
    year: int | None = Query(default=None),
    month: int | None = Query(default=None, ge=1, le=12),
    user_id: str = Depends(get_current_user),
    repository: LedgerRepository = Depends(get_repository),
) -> list[ExpenseRead]:
    """List the caller's expenses, optionally restricted to a year and/or month."""
    return [ExpenseRead.model_validate(row) for row in repository.list_expenses(user_id, year, month)]


@router.put(
    "/expenses/{expense_id}", response_model=ExpenseRead, summary="Update an expense", responses=RECORD_RESPONSES
)
def update_expense(
    expense_id: int,
    payload: ExpenseCreate,
    user_id: str = Depends(get_current_user),
    repository: LedgerRepository = Depends(get_repository),
) -> ExpenseRead:
    """Replace one of the caller's expenses."""
    expense = repository.update_expense(user_id, expense_id, payload)
    logger.info(f"Updated expense id={expense_id} for user={user_id}")
    return ExpenseRead.model_validate(expense)


@router.delete(
    "/expenses/{expense_id}", response_model=DeleteResult, summary="Delete an expense", responses=RECORD_RESPONSES
)
def delete_expense(
    expense_id: int,
    user_id: str = Depends(get_current_user),
    repository: LedgerRepository = Depends(get_repository),
) -> DeleteResult:
    """Delete one of the caller's expenses."""
    repository.delete_expense(user_id, expense_id)
    logger.info(f"Deleted expense id={expense_id} for user={user_id}")
    return DeleteResult(message="Expense deleted successfully")


@router.post(
    "/receipt-items",
    status_code=201,
    response_model=ReceiptItemRead,
    summary="Record a receipt item",
    responses=ERROR_RESPONSES,
)
def create_receipt_item(
    payload: ReceiptItemCreate,
    user_id: str = Depends(get_current_user),
    repository: LedgerRepository = Depends(get_repository),
) -> ReceiptItemRead:
    """Record a receipt line for the calling user."""
    item = repository.add_receipt_item(user_id, payload)
    logger.info(f"Created receipt item id={item.id} for user={user_id}")
    return ReceiptItemRead.model_validate(item)


@router.get(
    "/receipt-items", response_model=list[ReceiptItemRead], summary="List receipt items", responses=ERROR_RESPONSES
)
def list_receipt_items(
    year: int | None = Query(default=None),
    month: int | None = Query(default=None, ge=1, le=12),
    user_id: str = Depends(get_current_user),
    repository: LedgerRepository = Depends(get_repository),
) -> list[ReceiptItemRead]:
    """List the caller's receipt items, optionally restricted to a year and/or month."""
    return [ReceiptItemRead.model_validate(row) for row in repository.list_receipt_items(user_id, year, month)]


@router.put(
    "/receipt-items/{item_id}",
    response_model=ReceiptItemRead,
    summary="Update a receipt item",
    responses=RECORD_RESPONSES,
)
def update_receipt_item(
    item_id: int,
    payload: ReceiptItemCreate,
    user_id: str = Depends(get_current_user),
    repository: LedgerRepository = Depends(get_repository),
) -> ReceiptItemRead:
    """Replace one of the caller's receipt items."""
    item = repository.update_receipt_item(user_id, item_id, payload)
    logger.info(f"Updated receipt item id={item_id} for user={user_id}")
    return ReceiptItemRead.model_validate(item)


@router.delete(
    "/receipt-items/{item_id}",
    response_model=DeleteResult,
    summary="Delete a receipt item",
    responses=RECORD_RESPONSES,
)
def delete_receipt_item(
    item_id: int,
    user_id: str = Depends(get_current_user),
    repository: LedgerRepository = Depends(get_repository),
) -> DeleteResult:
    """Delete one of the caller's receipt items."""
    repository.delete_receipt_item(user_id, item_id)
    logger.info(f"Deleted receipt item id={item_id} for user={user_id}")
    return DeleteResult(message="Receipt item deleted successfully")


@router.get(
    "/balances/monthly",
    response_model=list[BalanceSnapshot],
    summary="Compute monthly balances for a date range",
    description=(
        "Recompute income, expense, net change and running balance for every calendar month "
        "between `startDate` and `endDate`, expanding recurring incomes and expenses.\n\n"
        "**Query parameters:**\n"
        "- `startDate`, `endDate`: ISO dates, `startDate <= endDate`.\n"
        "- `openingBalance`: balance carried into the first month (default 0).\n\n"
        "**Response:**\n"
        "- 200 OK: one element per month.\n"
        "- 400 Bad Request: reversed or malformed range.\n"
        "- 401 Unauthorized: no user identity.\n"
        "- 500 Internal Server Error: data access failure."
    ),
    response_description="Monthly balance snapshots.",
    responses={
        200: {
            "description": "Monthly snapshots.",
            "content": {
                "application/json": {
                    "example": [
                        {
                            "year": 2024,
                            "month": 1,
                            "totalIncome": 1000.0,
                            "totalExpense": 200.0,
                            "netChange": 800.0,
                            "runningBalance": 800.0,
                        }
                    ]
                }
            },
        },
        **ERROR_RESPONSES,
    },
)
def monthly_balances(
    start_date: date = Query(alias="startDate"),
    end_date: date = Query(alias="endDate"),
    opening_balance: Decimal = Query(default=Decimal(0), alias="openingBalance", decimal_places=2),
    user_id: str = Depends(get_current_user),
    aggregator: BalanceAggregator = Depends(get_aggregator),
) -> list[BalanceSnapshot]:
    """Compute monthly balance snapshots for the caller."""
    return aggregator.aggregate(user_id, start_date, end_date, opening_balance)


@router.get(
    "/balances/category-summary",
    response_model=CategorySummary,
    summary="Income by source and expense by category",
    description=(
        "Break the caller's money flow down by income source and expense category, with the net per label.\n\n"
        "**Query parameters:**\n"
        "- `mode`: `monthly` (needs `year` and `month`), `yearly` (needs `year`), `range` (needs `startDate` "
        "and `endDate`) or `allTime` (earliest record through today). Defaults to `monthly`.\n\n"
        "Recurring incomes and expenses are expanded inside the window. Negative receipt items count as "
        "expense, positive ones as income."
    ),
    response_description="Totals and per-label breakdowns for the window.",
    responses=ERROR_RESPONSES,
)
def category_summary(
    mode: SummaryMode = Query(default=SummaryMode.MONTHLY),
    year: int | None = Query(default=None, ge=1, le=9999),
    month: int | None = Query(default=None, ge=1, le=12),
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
    user_id: str = Depends(get_current_user),
    summarizer: CategorySummarizer = Depends(get_summarizer),
) -> CategorySummary:
    """Summarize the caller's incomes and expenses by label."""
    return summarizer.summarize(user_id, mode, year, month, start_date, end_date)


@router.get(
    "/balances/daily",
    response_model=DailyBalances,
    summary="Day-by-day balances for a stored month",
    description=(
        "Break a month of the stored ledger down by day, starting from the month's stored starting balance. "
        "Run `POST /balances/initialize` first.\n\n"
        "**Response:**\n"
        "- 200 OK: the stored month and one entry per day.\n"
        "- 404 Not Found: the month has not been initialized."
    ),
    responses={
        404: {
            "description": "Month not initialized.",
            "content": {"application/json": {"example": {"error": "Balance not found for the specified month"}}},
        },
        **ERROR_RESPONSES,
    },
)
def daily_balances(
    year: int = Query(),
    month: int = Query(ge=1, le=12),
    user_id: str = Depends(get_current_user),
    service: LedgerService = Depends(get_ledger_service),
) -> DailyBalances:
    """Return the daily breakdown of one stored month."""
    return service.daily_balances(user_id, year, month)


@router.post(
    "/balances/initialize",
    response_model=InitializeResult,
    summary="Materialize the balance ledger",
    description=(
        "Aggregate the caller's records and store one balance per month. Without a body the window runs from "
        "January 1st ten years ago through December 31st two years ahead (configurable). "
        "Existing months in the window are overwritten."
    ),
    responses=ERROR_RESPONSES,
)
def initialize_balances(
    payload: InitializeRequest | None = None,
    user_id: str = Depends(get_current_user),
    service: LedgerService = Depends(get_ledger_service),
) -> InitializeResult:
    """Recompute and store the caller's monthly balances."""
    payload = payload or InitializeRequest()
    periods = service.initialize(user_id, payload.start_date, payload.end_date, payload.opening_balance)
    return InitializeResult(message="Balances initialized successfully", periods=periods)


@router.get("/balances", response_model=list[StoredBalance], summary="List stored balances", responses=ERROR_RESPONSES)
def list_balances(
    year: int | None = Query(default=None),
    month: int | None = Query(default=None, ge=1, le=12),
    user_id: str = Depends(get_current_user),
    repository: LedgerRepository = Depends(get_repository),
) -> list[StoredBalance]:
    """List the caller's stored balances, newest month first."""
    return [StoredBalance.model_validate(row) for row in repository.list_balances(user_id, year, month)]
