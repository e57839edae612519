"""
Banking Domain Models (``ledger_modules.banking.models``).

Frozen rows returned by ``ReconciliationTracker``.  ``ReconciliationRow``
satisfies the ``ledger_engines.reconciliation.ReconcilableEntry``
protocol, so a listing can be passed straight to ``totals``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from ledger_kernel.domain.sides import EntrySide


@dataclass(frozen=True)
class ReconciliationRow:
    """One voucher entry on a cash or bank ledger."""

    entry_id: UUID
    voucher_id: UUID
    voucher_number: str
    voucher_type: str
    voucher_date: date
    narration: str | None
    amount: Decimal
    side: EntrySide
    instrument_number: str | None
    instrument_date: date | None
    bank_allocation_date: date | None

    @property
    def debit(self) -> Decimal:
        return self.amount if self.side == EntrySide.DR else Decimal("0")

    @property
    def credit(self) -> Decimal:
        return self.amount if self.side == EntrySide.CR else Decimal("0")

    @property
    def is_reconciled(self) -> bool:
        return self.bank_allocation_date is not None
