"""
Module: ledger_kernel.selectors.ledger_selector
Responsibility: Read-only balance queries: balance as of a date, ledger
    statements with running balance, and per-ledger movement totals for
    reports.  Balances are a derived view over voucher entries; there is no
    stored balance anywhere in the system.
Architecture position: Kernel > Selectors.  May import from models/,
    domain/ and selectors/base.py.  MUST NOT import from services/.

Invariants enforced:
    - Derive, never cache: every balance is opening balance + signed sum of
      entries dated <= the as-of date.
    - Sign convention: Dr entries increase debit-natured ledgers (Asset,
      Expense) and Cr entries increase credit-natured ledgers (Liability,
      Income, Equity).  All sign logic goes through domain/sides.
    - Statement ordering: (voucher_date, voucher seq, line_seq) ascending.
    - Statement opening balance is balance_as_of(from_date - 1 day).

Failure modes:
    - LedgerNotFoundError for unknown ledgers or another company's ledger.
    - ValueError when from_date > to_date.

Audit relevance:
    This selector is the single read path that reports, reconciliation and
    the voucher ledger's balance API share, so they can never disagree.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from ledger_kernel.domain.sides import (
    EntrySide,
    GroupType,
    natural_amount,
    split_signed,
)
from ledger_kernel.exceptions import LedgerNotFoundError
from ledger_kernel.models.account import Ledger
from ledger_kernel.models.voucher import Voucher, VoucherEntry
from ledger_kernel.selectors.base import BaseSelector

ZERO = Decimal("0")


@dataclass(frozen=True)
class BalanceInfo:
    """
    A ledger balance at a point in time.

    ``amount`` is always >= 0 and ``side`` gives its direction.
    ``net_debit`` is the signed form (positive = Dr).
    ``natural_amount`` is measured on the ledger's natural side.
    """

    ledger_id: UUID
    as_of_date: date
    amount: Decimal
    side: EntrySide
    net_debit: Decimal
    natural_amount: Decimal


@dataclass(frozen=True)
class StatementLine:
    entry_id: UUID
    voucher_id: UUID
    voucher_number: str
    voucher_type: str
    voucher_date: date
    narration: str | None
    debit: Decimal
    credit: Decimal
    balance: Decimal
    balance_side: EntrySide


@dataclass(frozen=True)
class LedgerStatement:
    ledger_id: UUID
    ledger_name: str
    from_date: date
    to_date: date
    opening: BalanceInfo
    lines: tuple[StatementLine, ...]
    closing: BalanceInfo
    total_debit: Decimal
    total_credit: Decimal


@dataclass(frozen=True)
class LedgerTotals:
    """Dr/Cr sums of one ledger's entries over a date window."""

    ledger_id: UUID
    debit_total: Decimal
    credit_total: Decimal

    @property
    def net_debit(self) -> Decimal:
        return self.debit_total - self.credit_total


class LedgerSelector(BaseSelector):
    """
    Selector for ledger balances and statements.

    Contract:
        Every method is scoped by company_id.
    """

    def __init__(self, session: Session):
        super().__init__(session)

    def _ledger(self, company_id: UUID, ledger_id: UUID) -> Ledger:
        ledger = self.session.get(Ledger, ledger_id)
        if ledger is None or ledger.company_id != company_id:
            raise LedgerNotFoundError(ledger_id)
        return ledger

    def _net_movement(
        self,
        company_id: UUID,
        ledger_id: UUID,
        as_of_date: date,
    ) -> Decimal:
        signed_amount = case(
            (VoucherEntry.side == EntrySide.DR, VoucherEntry.amount),
            else_=-VoucherEntry.amount,
        )
        total = self.session.execute(
            select(func.coalesce(func.sum(signed_amount), ZERO))
            .select_from(VoucherEntry)
            .join(Voucher, VoucherEntry.voucher_id == Voucher.id)
            .where(
                VoucherEntry.ledger_id == ledger_id,
                Voucher.company_id == company_id,
                Voucher.voucher_date <= as_of_date,
            )
        ).scalar_one()
        return Decimal(total)

    @staticmethod
    def _balance(ledger_id: UUID, as_of_date: date, net_debit: Decimal, group_type: GroupType) -> BalanceInfo:
        amount, side = split_signed(net_debit, group_type)
        return BalanceInfo(
            ledger_id=ledger_id,
            as_of_date=as_of_date,
            amount=amount,
            side=side,
            net_debit=net_debit,
            natural_amount=natural_amount(net_debit, group_type),
        )

    def balance_as_of(self, company_id: UUID, ledger_id: UUID, as_of_date: date) -> BalanceInfo:
        """
        Ledger balance including every entry dated <= as_of_date.

        Raises:
            LedgerNotFoundError: Unknown ledger or another company's ledger.
        """
        ledger = self._ledger(company_id, ledger_id)
        net_debit = ledger.signed_opening_balance + self._net_movement(
            company_id, ledger_id, as_of_date
        )
        return self._balance(ledger_id, as_of_date, net_debit, ledger.group_type)

    def statement(
        self,
        company_id: UUID,
        ledger_id: UUID,
        from_date: date,
        to_date: date,
    ) -> LedgerStatement:
        """
        Entries touching the ledger in [from_date, to_date] with running balance.

        Raises:
            ValueError: from_date after to_date.
            LedgerNotFoundError: Unknown ledger or another company's ledger.
        """
        if from_date > to_date:
            raise ValueError(f"from_date ({from_date}) is after to_date ({to_date})")

        ledger = self._ledger(company_id, ledger_id)
        group_type = ledger.group_type
        if from_date > date.min:
            opening = self.balance_as_of(company_id, ledger_id, from_date - timedelta(days=1))
        else:
            opening = self._balance(ledger_id, from_date, ledger.signed_opening_balance, group_type)

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

        running = opening.net_debit
        total_debit = ZERO
        total_credit = ZERO
        lines: list[StatementLine] = []
        for entry, voucher in rows:
            if entry.side == EntrySide.DR:
                debit, credit = entry.amount, ZERO
            else:
                debit, credit = ZERO, entry.amount
            total_debit += debit
            total_credit += credit
            running += debit - credit
            amount, side = split_signed(running, group_type)
            lines.append(
                StatementLine(
                    entry_id=entry.id,
                    voucher_id=voucher.id,
                    voucher_number=voucher.voucher_number,
                    voucher_type=voucher.voucher_type.value,
                    voucher_date=voucher.voucher_date,
                    narration=voucher.narration,
                    debit=debit,
                    credit=credit,
                    balance=amount,
                    balance_side=side,
                )
            )

        return LedgerStatement(
            ledger_id=ledger_id,
            ledger_name=ledger.name,
            from_date=from_date,
            to_date=to_date,
            opening=opening,
            lines=tuple(lines),
            closing=self._balance(ledger_id, to_date, running, group_type),
            total_debit=total_debit,
            total_credit=total_credit,
        )

    def ledger_totals(
        self,
        company_id: UUID,
        to_date: date,
        from_date: date | None = None,
    ) -> dict[UUID, LedgerTotals]:
        """
        Per-ledger Dr/Cr sums over entries dated in [from_date, to_date].

        from_date=None means from the beginning of time.  Ledgers without
        entries in the window are absent from the result.
        """
        debit_sum = func.sum(
            case((VoucherEntry.side == EntrySide.DR, VoucherEntry.amount), else_=ZERO)
        )
        credit_sum = func.sum(
            case((VoucherEntry.side == EntrySide.CR, VoucherEntry.amount), else_=ZERO)
        )
        stmt = (
            select(VoucherEntry.ledger_id, debit_sum, credit_sum)
            .join(Voucher, VoucherEntry.voucher_id == Voucher.id)
            .where(Voucher.company_id == company_id, Voucher.voucher_date <= to_date)
            .group_by(VoucherEntry.ledger_id)
        )
        if from_date is not None:
            stmt = stmt.where(Voucher.voucher_date >= from_date)

        return {
            ledger_id: LedgerTotals(
                ledger_id=ledger_id,
                debit_total=Decimal(debit or ZERO),
                credit_total=Decimal(credit or ZERO),
            )
            for ledger_id, debit, credit in self.session.execute(stmt).all()
        }

    def balances_as_of(self, company_id: UUID, as_of_date: date) -> dict[UUID, BalanceInfo]:
        """
        balance_as_of for every ledger of the company in two queries.
        """
        totals = self.ledger_totals(company_id, as_of_date)
        ledgers = self.session.execute(
            select(Ledger).where(Ledger.company_id == company_id)
        ).scalars()
        result: dict[UUID, BalanceInfo] = {}
        for ledger in ledgers:
            movement = totals.get(ledger.id)
            net_debit = ledger.signed_opening_balance + (movement.net_debit if movement else ZERO)
            result[ledger.id] = self._balance(ledger.id, as_of_date, net_debit, ledger.group_type)
        return result
