"""
Module: ledger_kernel.models.account
Responsibility: ORM persistence for the chart of accounts: Groups
    (classification) and Ledgers (the accounts every voucher entry targets).
Architecture position: Kernel > Models.  May import from db/ and domain/.

Invariants enforced:
    - A Ledger belongs to exactly one Company and one Group.
    - Group.group_type is one of the five classifications; the natural
      balance side is derived from it (domain/sides.NATURAL_SIDE), never
      stored on the ledger.
    - Ledgers are never mutated by posting.  Balances are always derived
      from voucher entries.

Failure modes:
    - GroupInUseError / LedgerInUseError when deletion is attempted on a
      referenced row (ChartOfAccountsService).

Audit relevance:
    Changing a group's classification after entries exist would silently
    move historical balances between statements, so group deletion is
    blocked while ledgers reference it.
"""

from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TrackedBase
from ledger_kernel.db.types import enum_column
from ledger_kernel.domain.sides import EntrySide, GroupType, natural_side


class LedgerKind(str, Enum):
    """
    Functional role of a ledger.

    Settlement (CASH/BANK) and tax (CGST/SGST/IGST) ledgers are resolved by
    kind, not by name matching.
    """

    GENERAL = "general"
    PARTY = "party"
    CASH = "cash"
    BANK = "bank"
    CGST = "cgst"
    SGST = "sgst"
    IGST = "igst"


class Group(TrackedBase):
    """
    Classification bucket for ledgers.

    Guarantees:
        - (company_id, name) is unique.
        - group_type is one of Asset, Liability, Income, Expense, Equity.
    """

    __tablename__ = "ledger_groups"

    __table_args__ = (
        UniqueConstraint("company_id", "name", name="uq_group_company_name"),
    )

    company_id: Mapped[UUID] = mapped_column(ForeignKey("companies.id"), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    group_type: Mapped[GroupType] = mapped_column(enum_column(GroupType), nullable=False)

    ledgers: Mapped[list["Ledger"]] = relationship(back_populates="group")

    def __repr__(self) -> str:
        return f"<Group {self.name} ({self.group_type.value})>"

    @property
    def natural_side(self) -> EntrySide:
        return natural_side(self.group_type)


class Ledger(TrackedBase):
    """
    A financial account under a Group.

    Contract:
        The opening balance is an (amount, side) pair.  It participates in
        every balance computation as if it were an entry dated before all
        vouchers.

    Guarantees:
        - (company_id, name) is unique.
        - opening_balance >= 0; its direction is opening_balance_side.
    """

    __tablename__ = "ledgers"

    __table_args__ = (
        UniqueConstraint("company_id", "name", name="uq_ledger_company_name"),
        Index("idx_ledger_company_kind", "company_id", "kind"),
    )

    company_id: Mapped[UUID] = mapped_column(ForeignKey("companies.id"), nullable=False)

    group_id: Mapped[UUID] = mapped_column(ForeignKey("ledger_groups.id"), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    opening_balance: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)

    opening_balance_side: Mapped[EntrySide] = mapped_column(
        enum_column(EntrySide, length=2),
        default=EntrySide.DR,
        nullable=False,
    )

    kind: Mapped[LedgerKind] = mapped_column(
        enum_column(LedgerKind),
        default=LedgerKind.GENERAL,
        nullable=False,
    )

    # Party place of supply and registration, used for GST classification
    state: Mapped[str | None] = mapped_column(String(100), nullable=True)

    gstin: Mapped[str | None] = mapped_column(String(15), nullable=True)

    group: Mapped[Group] = relationship(back_populates="ledgers", lazy="joined")

    def __repr__(self) -> str:
        return f"<Ledger {self.name}>"

    @property
    def group_type(self) -> GroupType:
        return self.group.group_type

    @property
    def signed_opening_balance(self) -> Decimal:
        """Opening balance as a net-debit amount."""
        if self.opening_balance_side == EntrySide.DR:
            return self.opening_balance
        return -self.opening_balance
