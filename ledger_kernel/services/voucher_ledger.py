"""
VoucherLedger -- the double-entry core.

Responsibility:
    Accepts a set of entries (ledger, amount, side), validates the
    double-entry and period invariants, and persists the voucher with all
    its entries as one atomic unit.  Exposes the balance and statement
    queries every other component builds on.

Architecture position:
    Kernel > Services -- imperative shell.
    Called by InvoicePoster (invoice and payment vouchers) and directly by
    callers recording journal, contra, receipt and payment vouchers.

Invariants enforced:
    - Balanced: |sum(Dr) - sum(Cr)| <= tolerance (0.01) or nothing is
      written (UnbalancedVoucherError).
    - At least two entries (InsufficientEntriesError).
    - Entry amounts > 0 (InvalidAmountError, enforced by EntrySpec).
    - Period control: post/replace/delete reject dates inside a closed
      financial year.  replace checks both the old and the new date.
    - Tenant partition: every entry's ledger must belong to the voucher's
      company.
    - Atomic swap: replace supersedes the whole entry set or nothing.
    - Optimistic concurrency: an explicit expected_version mismatch, or a
      concurrent writer detected by the version column, raises
      OptimisticLockError.

Failure modes:
    - UnbalancedVoucherError, InsufficientEntriesError, InvalidAmountError.
    - ClosedPeriodError.
    - CompanyNotFoundError, LedgerNotFoundError, VoucherNotFoundError.
    - OptimisticLockError.

Audit relevance:
    voucher_posted / voucher_replaced / voucher_deleted are logged with
    voucher id, totals and actor.  Every call creates or changes exactly
    one voucher; retries must be de-duplicated by the caller.
"""

from datetime import date
from decimal import Decimal
from typing import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.db.types import BALANCE_TOLERANCE
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import EntrySpec, VoucherInfo
from ledger_kernel.domain.sides import EntrySide
from ledger_kernel.exceptions import (
    InsufficientEntriesError,
    OptimisticLockError,
    UnbalancedVoucherError,
    VoucherNotFoundError,
)
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.voucher import Voucher, VoucherEntry, VoucherType
from ledger_kernel.selectors.ledger_selector import (
    BalanceInfo,
    LedgerSelector,
    LedgerStatement,
)
from ledger_kernel.services.base import BaseService
from ledger_kernel.services.chart_service import ChartOfAccountsService
from ledger_kernel.services.period_service import PeriodService
from ledger_kernel.services.sequence_service import SequenceService

logger = get_logger("services.voucher_ledger")


def check_balanced(
    entries: Sequence[EntrySpec],
    tolerance: Decimal = BALANCE_TOLERANCE,
) -> tuple[Decimal, Decimal]:
    """
    Validate the entry-count and balance invariants.

    Returns:
        (total_debits, total_credits)

    Raises:
        InsufficientEntriesError: Fewer than two entries.
        UnbalancedVoucherError: |Dr - Cr| > tolerance.
    """
    if len(entries) < 2:
        raise InsufficientEntriesError(len(entries))
    debits = sum((e.amount for e in entries if e.side == EntrySide.DR), Decimal("0"))
    credits = sum((e.amount for e in entries if e.side == EntrySide.CR), Decimal("0"))
    if abs(debits - credits) > tolerance:
        raise UnbalancedVoucherError(debits, credits, tolerance)
    return debits, credits


class VoucherLedger(BaseService):
    """
    Double-entry posting service.

    Contract:
        post/replace/delete validate everything before the first write, then
        write inside one transaction.  With auto_commit=True each call
        commits; with auto_commit=False the caller's transaction decides.

    Guarantees:
        - No voucher row without its full entry set is ever observable.
        - Balances are never stored; balance_as_of/statement recompute them.

    Non-goals:
        - Deriving invoice or stock side effects on delete.  InvoicePoster
          coordinates those.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        auto_commit: bool = True,
        balance_tolerance: Decimal = BALANCE_TOLERANCE,
    ):
        super().__init__(session, auto_commit)
        self._clock = clock or SystemClock()
        self._tolerance = balance_tolerance
        self._chart = ChartOfAccountsService(session, auto_commit=False)
        self._periods = PeriodService(session, self._clock, auto_commit=False)
        self._sequences = SequenceService(session)
        self._selector = LedgerSelector(session)

    # -- writes ------------------------------------------------------------

    def post(
        self,
        company_id: UUID,
        voucher_type: VoucherType,
        voucher_date: date,
        entries: Sequence[EntrySpec],
        actor_id: UUID,
        narration: str | None = None,
        voucher_number: str | None = None,
    ) -> UUID:
        """
        Record a balanced voucher.

        Preconditions:
            - entries hold at least two EntrySpec with positive amounts.
        Postconditions:
            - One Voucher with len(entries) VoucherEntry rows exists, or
              nothing was written.

        Args:
            company_id: Owning company.
            voucher_type: Kind of voucher.
            voucher_date: Accounting date.
            entries: Entry specifications, in display order.
            actor_id: Who is posting.
            narration: Free-text description.
            voucher_number: Document number.  Generated from a per-company,
                per-type sequence when omitted.

        Returns:
            The new voucher's id.

        Raises:
            UnbalancedVoucherError, InsufficientEntriesError,
            ClosedPeriodError, CompanyNotFoundError, LedgerNotFoundError.
        """
        voucher_type = VoucherType(voucher_type)
        debits, credits = check_balanced(entries, self._tolerance)

        with LogContext.bind(company_id=company_id, actor_id=actor_id):
            with self._transaction("post_voucher", "Voucher"):
                self._chart.company(company_id)
                self._validate_ledgers(company_id, entries)
                self._periods.validate_date_open(company_id, voucher_date)

                seq = self._sequences.next_value(SequenceService.voucher_sequence(company_id))
                if voucher_number is None:
                    number = self._sequences.next_value(
                        SequenceService.document_sequence(company_id, voucher_type.value)
                    )
                    voucher_number = f"{voucher_type.name}-{number}"

                voucher = Voucher(
                    company_id=company_id,
                    voucher_type=voucher_type,
                    voucher_number=voucher_number,
                    voucher_date=voucher_date,
                    narration=narration,
                    seq=seq,
                    created_by_id=actor_id,
                )
                voucher.entries = self._build_entries(entries, actor_id)
                self.session.add(voucher)
                self.session.flush()

            logger.info(
                "voucher_posted",
                extra={
                    "voucher_id": str(voucher.id),
                    "voucher_number": voucher_number,
                    "voucher_type": voucher_type.value,
                    "voucher_date": str(voucher_date),
                    "entry_count": len(entries),
                    "total_debits": str(debits),
                    "total_credits": str(credits),
                },
            )
        return voucher.id

    def replace(
        self,
        company_id: UUID,
        voucher_id: UUID,
        entries: Sequence[EntrySpec],
        actor_id: UUID,
        voucher_date: date | None = None,
        narration: str | None = None,
        expected_version: int | None = None,
    ) -> VoucherInfo:
        """
        Atomically swap a voucher's entry set.

        Both the voucher's current date and the new date (when given) must
        be outside closed years.

        Raises:
            VoucherNotFoundError, OptimisticLockError, ClosedPeriodError,
            UnbalancedVoucherError, InsufficientEntriesError,
            LedgerNotFoundError.
        """
        debits, credits = check_balanced(entries, self._tolerance)

        with LogContext.bind(company_id=company_id, actor_id=actor_id, voucher_id=voucher_id):
            with self._transaction("replace_voucher", "Voucher", voucher_id):
                voucher = self._get_voucher_for_update(company_id, voucher_id)
                self._check_version(voucher, expected_version)
                self._validate_ledgers(company_id, entries)
                self._periods.validate_date_open(company_id, voucher.voucher_date)
                if voucher_date is not None and voucher_date != voucher.voucher_date:
                    self._periods.validate_date_open(company_id, voucher_date)
                    voucher.voucher_date = voucher_date
                if narration is not None:
                    voucher.narration = narration

                voucher.entries = self._build_entries(entries, actor_id)
                voucher.updated_by_id = actor_id
                self.session.flush()

            logger.info(
                "voucher_replaced",
                extra={
                    "voucher_number": voucher.voucher_number,
                    "entry_count": len(entries),
                    "total_debits": str(debits),
                    "total_credits": str(credits),
                    "version": voucher.version,
                },
            )
        return VoucherInfo.from_model(voucher)

    def delete(
        self,
        company_id: UUID,
        voucher_id: UUID,
        actor_id: UUID,
        expected_version: int | None = None,
    ) -> None:
        """
        Remove a voucher and all of its entries.

        Raises:
            VoucherNotFoundError, OptimisticLockError, ClosedPeriodError.
        """
        with LogContext.bind(company_id=company_id, actor_id=actor_id, voucher_id=voucher_id):
            with self._transaction("delete_voucher", "Voucher", voucher_id):
                voucher = self._get_voucher_for_update(company_id, voucher_id)
                self._check_version(voucher, expected_version)
                self._periods.validate_date_open(company_id, voucher.voucher_date)
                voucher_number = voucher.voucher_number
                self.session.delete(voucher)
                self.session.flush()

            logger.info("voucher_deleted", extra={"voucher_number": voucher_number})

    # -- reads -------------------------------------------------------------

    def balance_as_of(self, company_id: UUID, ledger_id: UUID, as_of_date: date) -> BalanceInfo:
        """Ledger balance as of a date.  See LedgerSelector.balance_as_of."""
        return self._selector.balance_as_of(company_id, ledger_id, as_of_date)

    def statement(
        self,
        company_id: UUID,
        ledger_id: UUID,
        from_date: date,
        to_date: date,
    ) -> LedgerStatement:
        """Ledger statement with running balance.  See LedgerSelector.statement."""
        return self._selector.statement(company_id, ledger_id, from_date, to_date)

    def get_voucher(self, company_id: UUID, voucher_id: UUID) -> VoucherInfo:
        voucher = self.session.get(Voucher, voucher_id)
        if voucher is None or voucher.company_id != company_id:
            raise VoucherNotFoundError(voucher_id)
        return VoucherInfo.from_model(voucher)

    def list_vouchers(
        self,
        company_id: UUID,
        from_date: date | None = None,
        to_date: date | None = None,
        voucher_type: VoucherType | None = None,
    ) -> list[VoucherInfo]:
        stmt = select(Voucher).where(Voucher.company_id == company_id)
        if from_date is not None:
            stmt = stmt.where(Voucher.voucher_date >= from_date)
        if to_date is not None:
            stmt = stmt.where(Voucher.voucher_date <= to_date)
        if voucher_type is not None:
            stmt = stmt.where(Voucher.voucher_type == VoucherType(voucher_type))
        stmt = stmt.order_by(Voucher.voucher_date, Voucher.seq)
        return [VoucherInfo.from_model(v) for v in self.session.execute(stmt).scalars()]

    # -- internals ---------------------------------------------------------

    def _validate_ledgers(self, company_id: UUID, entries: Sequence[EntrySpec]) -> None:
        for ledger_id in {e.ledger_id for e in entries}:
            self._chart.ledger(company_id, ledger_id)

    @staticmethod
    def _build_entries(entries: Sequence[EntrySpec], actor_id: UUID) -> list[VoucherEntry]:
        return [
            VoucherEntry(
                ledger_id=spec.ledger_id,
                amount=spec.amount,
                side=spec.side,
                line_seq=line_seq,
                instrument_number=spec.instrument_number,
                instrument_date=spec.instrument_date,
                created_by_id=actor_id,
            )
            for line_seq, spec in enumerate(entries, start=1)
        ]

    def _get_voucher_for_update(self, company_id: UUID, voucher_id: UUID) -> Voucher:
        voucher = self.session.execute(
            select(Voucher)
            .where(Voucher.id == voucher_id, Voucher.company_id == company_id)
            .with_for_update()
        ).scalar_one_or_none()
        if voucher is None:
            raise VoucherNotFoundError(voucher_id)
        return voucher

    @staticmethod
    def _check_version(voucher: Voucher, expected_version: int | None) -> None:
        if expected_version is not None and voucher.version != expected_version:
            logger.warning(
                "voucher_version_conflict",
                extra={"expected_version": expected_version, "actual_version": voucher.version},
            )
            raise OptimisticLockError("Voucher", voucher.id, expected_version, voucher.version)
