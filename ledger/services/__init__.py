"""Services package: balance aggregation, category summaries and the persisted balance ledger."""

from .aggregator import BalanceAggregator, aggregate_entries  # noqa: F401
from .ledger import LedgerService  # noqa: F401
from .summary import CategorySummarizer, summarize_categories  # noqa: F401
