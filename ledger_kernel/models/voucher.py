"""
Module: ledger_kernel.models.voucher
Responsibility: ORM persistence for vouchers and their entries -- the
    append-only entry store from which every balance is derived.
Architecture position: Kernel > Models.  May import from db/ and domain/.

Invariants enforced:
    - Balanced: sum(Dr) == sum(Cr) within 0.01 (validated by VoucherLedger
      before any row is written).
    - At least two entries per voucher.
    - Entry amount > 0; direction lives in ``side``.
    - Entries are exclusively owned by their voucher (delete-orphan).
    - Optimistic concurrency: ``version`` increments on every UPDATE; a
      stale writer gets StaleDataError, surfaced as OptimisticLockError.

Failure modes:
    - StaleDataError on concurrent replace/delete of the same voucher.

Audit relevance:
    ``seq`` is a per-company monotonic creation order allocated from a
    locked counter row.  Statements order by (voucher_date, seq).
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TrackedBase
from ledger_kernel.db.types import enum_column
from ledger_kernel.domain.sides import EntrySide


class VoucherType(str, Enum):
    """Kind of business event a voucher records."""

    JOURNAL = "journal"
    SALES = "sales"
    PURCHASE = "purchase"
    CREDIT_NOTE = "credit_note"
    DEBIT_NOTE = "debit_note"
    RECEIPT = "receipt"
    PAYMENT = "payment"
    CONTRA = "contra"


class Voucher(TrackedBase):
    """
    An atomic double-entry transaction record.

    Guarantees:
        - entries are loaded in line_seq order.
        - version starts at 1 and bumps on every UPDATE.
    """

    __tablename__ = "vouchers"

    __table_args__ = (
        Index("idx_voucher_company_date", "company_id", "voucher_date", "seq"),
    )

    company_id: Mapped[UUID] = mapped_column(ForeignKey("companies.id"), nullable=False)

    voucher_type: Mapped[VoucherType] = mapped_column(
        enum_column(VoucherType), nullable=False
    )

    voucher_number: Mapped[str] = mapped_column(String(100), nullable=False)

    voucher_date: Mapped[date] = mapped_column(nullable=False)

    narration: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Per-company creation order
    seq: Mapped[int] = mapped_column(nullable=False)

    version: Mapped[int] = mapped_column(nullable=False)

    entries: Mapped[list["VoucherEntry"]] = relationship(
        back_populates="voucher",
        cascade="all, delete-orphan",
        order_by="VoucherEntry.line_seq",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<Voucher {self.voucher_number} ({self.voucher_type.value}) {self.voucher_date}>"

    @property
    def total_debits(self) -> Decimal:
        return sum(
            (e.amount for e in self.entries if e.side == EntrySide.DR),
            Decimal("0"),
        )

    @property
    def total_credits(self) -> Decimal:
        return sum(
            (e.amount for e in self.entries if e.side == EntrySide.CR),
            Decimal("0"),
        )


class VoucherEntry(TrackedBase):
    """
    One line of a voucher.

    Contract:
        amount is always positive; side carries direction.  Instrument and
        allocation fields are reconciliation metadata and never affect
        balances.
    """

    __tablename__ = "voucher_entries"

    __table_args__ = (
        CheckConstraint("amount > 0", name="chk_voucher_entry_amount_positive"),
        Index("idx_voucher_entry_ledger", "ledger_id"),
        Index("idx_voucher_entry_voucher", "voucher_id"),
    )

    voucher_id: Mapped[UUID] = mapped_column(
        ForeignKey("vouchers.id", ondelete="CASCADE"), nullable=False
    )

    ledger_id: Mapped[UUID] = mapped_column(ForeignKey("ledgers.id"), nullable=False)

    amount: Mapped[Decimal] = mapped_column(nullable=False)

    side: Mapped[EntrySide] = mapped_column(enum_column(EntrySide, length=2), nullable=False)

    line_seq: Mapped[int] = mapped_column(nullable=False)

    instrument_number: Mapped[str | None] = mapped_column(String(100), nullable=True)

    instrument_date: Mapped[date | None] = mapped_column(nullable=True)

    bank_allocation_date: Mapped[date | None] = mapped_column(nullable=True)

    voucher: Mapped[Voucher] = relationship(back_populates="entries")

    def __repr__(self) -> str:
        return f"<VoucherEntry {self.side.value} {self.amount} ledger={self.ledger_id}>"

    @property
    def signed_amount(self) -> Decimal:
        """Net-debit amount of this entry."""
        return self.amount if self.side == EntrySide.DR else -self.amount
