"""Main entrypoint and application factory for the Household Ledger API.

This module builds the FastAPI application: it configures logging, creates the database engine and
tables, registers the error handlers that turn ledger failures into ``{"error": ...}`` responses,
and exposes the Scalar API reference endpoint for interactive OpenAPI documentation. It also
includes the main entrypoint for running the app with Uvicorn.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from scalar_fastapi import get_scalar_api_reference
from sqlalchemy.exc import SQLAlchemyError

from ledger.api.routes import router
from ledger.core.db import Base, get_engine, get_session_factory
from ledger.core.errors import LedgerError
from ledger.core.settings import Settings, get_settings
from ledger.core.utils import get_logger, setup_logging

logger = get_logger("ledger")


def _validation_message(exc: RequestValidationError) -> str:
    """Condense the first validation error into ``Invalid <field>: <reason>``."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query"))
    return f"Invalid {location}: {first.get('msg')}" if location else f"Invalid request: {first.get('msg')}"


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application with its own engine, session factory and error handlers."""
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_file)
    engine = get_engine(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Create the ledger tables on startup and dispose of the engine on shutdown."""
        _ = app  # Silence unused argument warning
        try:
            Base.metadata.create_all(engine)
        except SQLAlchemyError:
            logger.exception("Failed to create ledger tables")
            raise
        yield
        engine.dispose()

    app = FastAPI(
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        title="Household Ledger API",
        description="""
    The Household Ledger API records incomes, expenses and receipt items and aggregates them into balances over time.

    **Endpoints:**
    - `POST/GET /incomes`, `/expenses`, `/receipt-items`: record and list ledger entries.
    - `PUT/DELETE /incomes/{id}`, `/expenses/{id}`, `/receipt-items/{id}`: edit or remove one entry.
    - `GET /balances/monthly`: monthly income, expense and running balance for a date range.
    - `GET /balances/category-summary`: income by source and expense by category.
    - `POST /balances/initialize`: store the monthly balances of the default window.
    - `GET /balances`, `GET /balances/daily`: read the stored ledger.
    - `GET /health`: Health check endpoint.
    - `GET /scalar`: Interactive Scalar OpenAPI documentation.
    """,
        version="1.0.0",
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = get_session_factory(engine)
    app.include_router(router)

    @app.exception_handler(LedgerError)
    async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
        """Map ledger failures to their status code and short message."""
        logger.warning(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Report malformed parameters or bodies as 400 with a single error message."""
        message = _validation_message(exc)
        logger.warning(f"{request.method} {request.url.path} rejected: {message}")
        return JSONResponse({"error": message}, status_code=400)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        """Report anything unexpected as 500 without leaking internals."""
        logger.exception(f"{request.method} {request.url.path} failed unexpectedly", exc_info=exc)
        return JSONResponse({"error": LedgerError.message}, status_code=500)

    @app.get("/scalar", include_in_schema=False)
    async def scalar_docs() -> JSONResponse:
        """Return Scalar API reference."""
        return get_scalar_api_reference(openapi_url=app.openapi_url, title=app.title)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run("main:app", host=settings.server_host, port=settings.server_port, reload=True)
