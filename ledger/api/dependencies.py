"""FastAPI dependencies for DI (settings, repository, services, caller identity).

The engine and session factory are built by the application factory and live on ``app.state``;
each request opens its own session through ``get_repository`` and closes it when done.
"""

from collections.abc import Iterator

from fastapi import Depends, Header, Request

from ledger.core.db import LedgerRepository
from ledger.core.errors import UnauthorizedError
from ledger.core.settings import Settings
from ledger.services.aggregator import BalanceAggregator
from ledger.services.ledger import LedgerService
from ledger.services.summary import CategorySummarizer


def get_settings(request: Request) -> Settings:
    """Provide the settings the application was built with."""
    return request.app.state.settings


def get_repository(request: Request) -> Iterator[LedgerRepository]:
    """Provide a repository bound to a fresh session for the duration of the request."""
    repository = LedgerRepository(request.app.state.session_factory())
    try:
        yield repository
    finally:
        repository.close()


def get_current_user(x_user_id: str | None = Header(default=None)) -> str:
    """Resolve the caller from the ``X-User-Id`` header set by the identity provider."""
    if x_user_id is None or not x_user_id.strip():
        raise UnauthorizedError
    return x_user_id.strip()


def get_aggregator(repository: LedgerRepository = Depends(get_repository)) -> BalanceAggregator:
    """Provide a BalanceAggregator reading through the request's repository."""
    return BalanceAggregator(repository)


def get_summarizer(repository: LedgerRepository = Depends(get_repository)) -> CategorySummarizer:
    """Provide a CategorySummarizer reading through the request's repository."""
    return CategorySummarizer(repository)


def get_ledger_service(
    repository: LedgerRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
) -> LedgerService:
    """Provide a LedgerService for dependency injection."""
    return LedgerService(repository, settings)
