"""Integration tests for the stored balance ledger and data-access failures."""

from collections.abc import Iterator
from datetime import date
from pathlib import Path

from fastapi.testclient import TestClient

from ledger.api.dependencies import get_aggregator, get_repository
from ledger.core.db import LedgerRepository, get_engine, get_session_factory
from ledger.core.settings import Settings
from ledger.services.ledger import LedgerService
from main import create_app

HTTP_200_OK = 200
HTTP_404_NOT_FOUND = 404
HTTP_500_INTERNAL_SERVER_ERROR = 500
FEB_2024_DAYS = 29
STORED_MONTHS = 3
DEC_9999_DAYS = 31


def _seed(client: TestClient, auth: dict[str, str]) -> None:
    client.post(
        "/incomes",
        json={"source": "Salary", "amount": 1000, "date": "2024-01-01", "recurrenceInterval": "MONTHLY"},
        headers=auth,
    )
    client.post("/expenses", json={"amount": 200, "date": "2024-01-15"}, headers=auth)
    client.post("/expenses", json={"amount": 30, "date": "2024-02-10"}, headers=auth)


def test_initialize_stores_months(client: TestClient, auth: dict[str, str]) -> None:
    """An explicit window stores one row per month, listed newest first."""
    _seed(client, auth)
    response = client.post(
        "/balances/initialize", json={"startDate": "2024-01-01", "endDate": "2024-03-31"}, headers=auth
    )
    if response.status_code != HTTP_200_OK or response.json()["periods"] != STORED_MONTHS:
        msg = f"Unexpected initialize response: {response.status_code} {response.text}"
        raise AssertionError(msg)

    stored = client.get("/balances", headers=auth).json()
    expected = [
        {"year": 2024, "month": 3, "startingBalance": 1770, "remainingBalance": 2770},
        {"year": 2024, "month": 2, "startingBalance": 800, "remainingBalance": 1770},
        {"year": 2024, "month": 1, "startingBalance": 0, "remainingBalance": 800},
    ]
    if stored != expected:
        msg = f"Expected {expected}, got {stored}"
        raise AssertionError(msg)


def test_initialize_is_idempotent_and_refreshes(client: TestClient, auth: dict[str, str]) -> None:
    """Re-running overwrites the same months instead of duplicating them."""
    _seed(client, auth)
    window = {"startDate": "2024-01-01", "endDate": "2024-02-29"}
    client.post("/balances/initialize", json=window, headers=auth)
    client.post("/expenses", json={"amount": 100, "date": "2024-02-20"}, headers=auth)
    client.post("/balances/initialize", json=window, headers=auth)

    stored = client.get("/balances", params={"year": 2024, "month": 2}, headers=auth).json()
    if stored != [{"year": 2024, "month": 2, "startingBalance": 800, "remainingBalance": 1670}]:
        msg = f"Unexpected stored February: {stored}"
        raise AssertionError(msg)


def test_daily_balances_roll_from_stored_start(client: TestClient, auth: dict[str, str]) -> None:
    """The daily breakdown starts from the stored starting balance and ends at the stored remaining balance."""
    _seed(client, auth)
    client.post("/balances/initialize", json={"startDate": "2024-01-01", "endDate": "2024-02-29"}, headers=auth)

    response = client.get("/balances/daily", params={"year": 2024, "month": 2}, headers=auth)
    if response.status_code != HTTP_200_OK:
        msg = f"Expected status {HTTP_200_OK}, got {response.status_code}: {response.text}"
        raise AssertionError(msg)
    body = response.json()
    days = body["dailyBalances"]
    if len(days) != FEB_2024_DAYS:
        msg = f"Expected {FEB_2024_DAYS} days, got {len(days)}"
        raise AssertionError(msg)
    first, tenth, last = days[0], days[9], days[-1]
    if first != {"date": "2024-02-01", "startingBalance": 800, "income": 1000, "expenses": 0, "remainingBalance": 1800}:
        msg = f"Unexpected first day: {first}"
        raise AssertionError(msg)
    if (tenth["date"], tenth["expenses"], tenth["remainingBalance"]) != ("2024-02-10", 30, 1770):
        msg = f"Unexpected tenth day: {tenth}"
        raise AssertionError(msg)
    if last["remainingBalance"] != body["monthBalance"]["remainingBalance"]:
        msg = f"Daily breakdown ends at {last['remainingBalance']}, stored month at {body['monthBalance']}"
        raise AssertionError(msg)


def test_daily_balances_require_initialized_month(client: TestClient, auth: dict[str, str]) -> None:
    """A month that was never initialized is reported as 404."""
    response = client.get("/balances/daily", params={"year": 2030, "month": 1}, headers=auth)
    if response.status_code != HTTP_404_NOT_FOUND:
        msg = f"Expected status {HTTP_404_NOT_FOUND}, got {response.status_code}"
        raise AssertionError(msg)
    if response.json() != {"error": "Balance not found for the specified month"}:
        msg = f"Unexpected body: {response.json()}"
        raise AssertionError(msg)


def test_default_window_spans_configured_years() -> None:
    """Without overrides the ledger covers Jan 1 ten years back through Dec 31 two years ahead."""
    service = LedgerService(repository=None, settings=Settings(log_file=None))
    start, end = service.default_window(today=date(2024, 9, 18))
    if (start, end) != (date(2014, 1, 1), date(2026, 12, 31)):
        msg = f"Unexpected default window: {start} to {end}"
        raise AssertionError(msg)


def test_data_access_failure_returns_500(settings: Settings, tmp_path: Path, auth: dict[str, str]) -> None:
    """A database without the ledger tables surfaces as a 500 with an error body."""
    broken_engine = get_engine(f"sqlite:///{tmp_path / 'empty.db'}")
    broken_sessions = get_session_factory(broken_engine)

    def broken_repository() -> Iterator[LedgerRepository]:
        repository = LedgerRepository(broken_sessions())
        try:
            yield repository
        finally:
            repository.close()

    app = create_app(settings)
    app.dependency_overrides[get_repository] = broken_repository
    with TestClient(app) as client:
        response = client.get(
            "/balances/monthly", params={"startDate": "2024-01-01", "endDate": "2024-01-31"}, headers=auth
        )
    if response.status_code != HTTP_500_INTERNAL_SERVER_ERROR:
        msg = f"Expected status {HTTP_500_INTERNAL_SERVER_ERROR}, got {response.status_code}"
        raise AssertionError(msg)
    if response.json() != {"error": "Failed to fetch incomes"}:
        msg = f"Unexpected body: {response.json()}"
        raise AssertionError(msg)


def test_unexpected_failure_returns_500(settings: Settings, auth: dict[str, str]) -> None:
    """Errors outside the ledger taxonomy still answer with the error body instead of plain text."""

    def exploding_aggregator() -> None:
        msg = "boom"
        raise RuntimeError(msg)

    app = create_app(settings)
    app.dependency_overrides[get_aggregator] = exploding_aggregator
    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get(
            "/balances/monthly", params={"startDate": "2024-01-01", "endDate": "2024-01-31"}, headers=auth
        )
    if response.status_code != HTTP_500_INTERNAL_SERVER_ERROR:
        msg = f"Expected status {HTTP_500_INTERNAL_SERVER_ERROR}, got {response.status_code}"
        raise AssertionError(msg)
    if response.json() != {"error": "Internal server error"}:
        msg = f"Unexpected body: {response.json()}"
        raise AssertionError(msg)


def test_daily_balances_for_last_representable_month(client: TestClient, auth: dict[str, str]) -> None:
    """December 9999 can be initialized and broken down by day."""
    client.post(
        "/incomes", json={"amount": 10, "date": "9999-12-01", "recurrenceInterval": "DAILY"}, headers=auth
    )
    client.post("/balances/initialize", json={"startDate": "9999-12-01", "endDate": "9999-12-31"}, headers=auth)

    response = client.get("/balances/daily", params={"year": 9999, "month": 12}, headers=auth)
    if response.status_code != HTTP_200_OK:
        msg = f"Expected status {HTTP_200_OK}, got {response.status_code}: {response.text}"
        raise AssertionError(msg)
    days = response.json()["dailyBalances"]
    if len(days) != DEC_9999_DAYS or days[-1]["remainingBalance"] != 310:
        msg = f"Unexpected breakdown ending {days[-1]} over {len(days)} days"
        raise AssertionError(msg)
