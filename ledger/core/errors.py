"""Error taxonomy for the Household Ledger.

Every failure a caller can observe is a ``LedgerError``. Each subclass carries the
HTTP status code and the short message the API layer returns as ``{"error": ...}``.
"""


class LedgerError(Exception):
    """Base class for all ledger failures."""

    status_code: int = 500
    message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        """Initialize the error, optionally overriding the default user-facing message."""
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidRangeError(LedgerError):
    """Raised when a date range starts after it ends."""

    status_code = 400
    message = "Start date must not be after end date"


class UnauthorizedError(LedgerError):
    """Raised when the request carries no user identity."""

    status_code = 401
    message = "Not authorized"


class BalanceNotFoundError(LedgerError):
    """Raised when no stored balance exists for the requested month."""

    status_code = 404
    message = "Balance not found for the specified month"


class DataAccessError(LedgerError):
    """Raised when the persistence layer fails."""

    status_code = 500
    message = "Failed to access ledger data"


class InvalidParameterError(LedgerError):
    """Raised when a combination of query parameters is incomplete or inconsistent."""

    status_code = 400
    message = "Invalid request parameters"


class RecordNotFoundError(LedgerError):
    """Raised when an income, expense or receipt item does not exist for the caller."""

    status_code = 404
    message = "Record not found"
