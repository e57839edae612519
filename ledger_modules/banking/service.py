"""
Bank Reconciliation Service (``ledger_modules.banking.service``).

Responsibility
--------------
Lists the voucher entries on a cash or bank ledger, records the date the
bank reflected each one, and computes book vs bank totals.

Architecture position
---------------------
**Modules layer** -- thin glue over the kernel entry store and the pure
``ledger_engines.reconciliation`` engine.

Invariants enforced
-------------------
* ``set_allocation_date`` only touches ``bank_allocation_date``; amounts,
  sides and therefore balances never change.
* Every query is scoped by company_id.

Failure modes
-------------
* ``InvalidClassificationError`` -- the ledger is not of CASH or BANK kind.
* ``VoucherEntryNotFoundError`` -- unknown entry or another company's.
* ``LedgerNotFoundError`` -- unknown ledger.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_engines.reconciliation import (
    ReconcilableEntry,
    ReconciliationTotals,
    reconciliation_totals,
)
from ledger_kernel.exceptions import InvalidClassificationError, VoucherEntryNotFoundError
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.account import LedgerKind
from ledger_kernel.models.voucher import Voucher, VoucherEntry
from ledger_kernel.services.base import BaseService
from ledger_kernel.services.chart_service import ChartOfAccountsService
from ledger_modules.banking.models import ReconciliationRow

logger = get_logger("modules.banking.service")

RECONCILABLE_KINDS = frozenset({LedgerKind.CASH, LedgerKind.BANK})


class ReconciliationTracker(BaseService):
    """
    Bank reconciliation over voucher entries.

    Contract
    --------
    ``list_transactions`` and ``totals`` are read-only;
    ``set_allocation_date`` commits (``auto_commit=True``) or flushes.
    """

    def __init__(self, session: Session, auto_commit: bool = True):
        super().__init__(session, auto_commit)
        self._chart = ChartOfAccountsService(session, auto_commit=False)

    def list_transactions(
        self,
        company_id: UUID,
        ledger_id: UUID,
        from_date: date,
        to_date: date,
    ) -> list[ReconciliationRow]:
        """
        Entries on the ledger dated within [from_date, to_date], ordered by
        (voucher date, voucher creation order).

        Raises:
            ValueError, LedgerNotFoundError, InvalidClassificationError.
        """
        if from_date > to_date:
            raise ValueError(f"from_date ({from_date}) is after to_date ({to_date})")
        ledger = self._chart.ledger(company_id, ledger_id)
        if ledger.kind not in RECONCILABLE_KINDS:
            raise InvalidClassificationError(ledger_id, ledger.kind.value, "a cash or bank ledger")

        rows = self.session.execute(
            select(VoucherEntry, Voucher)
            .join(Voucher, VoucherEntry.voucher_id == Voucher.id)
            .where(
                VoucherEntry.ledger_id == ledger_id,
                Voucher.company_id == company_id,
                Voucher.voucher_date >= from_date,
                Voucher.voucher_date <= to_date,
            )
            .order_by(Voucher.voucher_date, Voucher.seq, VoucherEntry.line_seq)
        ).all()
        return [
            ReconciliationRow(
                entry_id=entry.id,
                voucher_id=voucher.id,
                voucher_number=voucher.voucher_number,
                voucher_type=voucher.voucher_type.value,
                voucher_date=voucher.voucher_date,
                narration=voucher.narration,
                amount=entry.amount,
                side=entry.side,
                instrument_number=entry.instrument_number,
                instrument_date=entry.instrument_date,
                bank_allocation_date=entry.bank_allocation_date,
            )
            for entry, voucher in rows
        ]

    def set_allocation_date(
        self,
        company_id: UUID,
        entry_id: UUID,
        allocation_date: date | None,
        actor_id: UUID,
    ) -> None:
        """
        Record (or clear, with None) the date the bank reflected an entry.

        Raises:
            VoucherEntryNotFoundError.
        """
        with LogContext.bind(company_id=company_id, actor_id=actor_id):
            with self._transaction("set_allocation_date", "VoucherEntry", entry_id):
                entry = self.session.execute(
                    select(VoucherEntry)
                    .join(Voucher, VoucherEntry.voucher_id == Voucher.id)
                    .where(VoucherEntry.id == entry_id, Voucher.company_id == company_id)
                ).scalar_one_or_none()
                if entry is None:
                    raise VoucherEntryNotFoundError(entry_id)
                entry.bank_allocation_date = allocation_date
                entry.updated_by_id = actor_id

            logger.info(
                "bank_allocation_date_set",
                extra={
                    "entry_id": str(entry_id),
                    "allocation_date": str(allocation_date) if allocation_date else None,
                },
            )

    @staticmethod
    def totals(transactions: Iterable[ReconcilableEntry]) -> ReconciliationTotals:
        """Book balance, amounts not yet reflected, and implied bank balance."""
        return reconciliation_totals(transactions)

    def reconcile(
        self,
        company_id: UUID,
        ledger_id: UUID,
        from_date: date,
        to_date: date,
    ) -> ReconciliationTotals:
        """``totals`` over ``list_transactions`` for the same window."""
        return self.totals(self.list_transactions(company_id, ledger_id, from_date, to_date))
