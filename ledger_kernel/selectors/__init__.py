"""Selectors for the ledger kernel (read side)."""

from ledger_kernel.selectors.ledger_selector import (
    BalanceInfo,
    LedgerSelector,
    LedgerTotals,
    StatementLine,
)

__all__ = [
    "BalanceInfo",
    "LedgerSelector",
    "LedgerTotals",
    "StatementLine",
]
