"""
Module: ledger_engines
Responsibility:
    Pure calculation engines: GST split, invoice totals and bank
    reconciliation totals.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May import ledger_kernel.db.types and ledger_kernel.logging_config.
    MUST NOT import ledger_modules, ORM models or services.

Invariants enforced:
    - Decimal-only arithmetic; floats are rejected.
    - Determinism: identical inputs always produce identical outputs.
    - Rounding to the currency minor unit happens at line level only, via
      ledger_kernel.db.types.round_money.
"""

from ledger_engines.invoice_calculator import (
    InvoiceTotals,
    LineAmounts,
    LineInput,
    compute_invoice,
    compute_line,
    validate_line,
)
from ledger_engines.reconciliation import ReconciliationTotals, reconciliation_totals
from ledger_engines.tax import GstSplit, is_interstate, split

__all__ = [
    "GstSplit",
    "InvoiceTotals",
    "LineAmounts",
    "LineInput",
    "ReconciliationTotals",
    "compute_invoice",
    "compute_line",
    "is_interstate",
    "reconciliation_totals",
    "split",
    "validate_line",
]
