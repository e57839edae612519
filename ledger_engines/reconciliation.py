"""
Reconciliation Engine - book vs bank totals for a bank or cash ledger.

Pure functions with no I/O.

    company_balance       = sum(Dr - Cr) over all listed entries
    amounts_not_reflected = sum(Dr - Cr) over entries with no bank
                            allocation date
    bank_balance          = company_balance - amounts_not_reflected
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Protocol

from ledger_engines.tracer import traced_engine
from ledger_kernel.db.types import ZERO


class ReconcilableEntry(Protocol):
    debit: Decimal
    credit: Decimal
    bank_allocation_date: date | None


@dataclass(frozen=True)
class ReconciliationTotals:
    company_balance: Decimal
    amounts_not_reflected: Decimal
    bank_balance: Decimal


@traced_engine("reconciliation_totals", "1.0")
def reconciliation_totals(transactions: Iterable[ReconcilableEntry]) -> ReconciliationTotals:
    """Compute book balance, unreflected amount and implied bank balance."""
    company_balance = ZERO
    not_reflected = ZERO
    for txn in transactions:
        net = txn.debit - txn.credit
        company_balance += net
        if txn.bank_allocation_date is None:
            not_reflected += net
    return ReconciliationTotals(
        company_balance=company_balance,
        amounts_not_reflected=not_reflected,
        bank_balance=company_balance - not_reflected,
    )
