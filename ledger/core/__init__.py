"""Core package: provides models, database helpers, settings, errors, and shared utilities."""

from .db import LedgerRepository  # noqa: F401
from .errors import DataAccessError, InvalidRangeError, LedgerError  # noqa: F401
from .models import BalanceSnapshot, RecurrenceInterval  # noqa: F401
from .settings import Settings  # noqa: F401
