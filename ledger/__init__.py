"""Household Ledger: incomes, expenses and receipt items aggregated into balances over time."""
