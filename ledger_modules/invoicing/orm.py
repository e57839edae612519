"""
Invoicing ORM Models (``ledger_modules.invoicing.orm``).

Responsibility
--------------
SQLAlchemy persistence for invoices (sales, purchase, credit and debit
notes), their line items, payments applied against them, and the stock
items whose quantities invoices move.

Architecture position
---------------------
**Modules layer** -- persistence.  Imports from ``ledger_kernel.db`` and
sibling ``models.py``.  MUST NOT be imported by ``ledger_kernel``.

Invariants enforced
-------------------
* (company_id, invoice_type, invoice_number) is unique.
* Every invoice references exactly one voucher; every payment references
  exactly one voucher.
* ``paid_amount`` / ``outstanding_amount`` / ``payment_status`` are
  recomputed from the payment rows on every payment change, never
  incremented.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TrackedBase
from ledger_kernel.db.types import enum_column
from ledger_modules.invoicing.models import (
    InvoiceInfo,
    InvoiceType,
    PaymentInfo,
    PaymentMode,
    PaymentStatus,
)


# ---------------------------------------------------------------------------
# 1. StockItemModel
# ---------------------------------------------------------------------------


class StockItemModel(TrackedBase):
    """
    A stocked item whose on-hand quantity invoices adjust.

    Guarantees:
        - (company_id, name) is unique.
        - current_quantity may go negative; no stock-out guard is applied.
    """

    __tablename__ = "stock_items"

    __table_args__ = (
        UniqueConstraint("company_id", "name", name="uq_stock_item_company_name"),
    )

    company_id: Mapped[UUID] = mapped_column(ForeignKey("companies.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    unit: Mapped[str | None] = mapped_column(String(20), nullable=True)
    hsn_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    current_quantity: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)


# ---------------------------------------------------------------------------
# 2. InvoiceModel
# ---------------------------------------------------------------------------


class InvoiceModel(TrackedBase):
    """
    ORM model for invoices and credit/debit notes.

    Maps to the ``InvoiceInfo`` frozen dataclass.
    """

    __tablename__ = "invoices"

    __table_args__ = (
        UniqueConstraint(
            "company_id", "invoice_type", "invoice_number",
            name="uq_invoice_company_type_number",
        ),
        Index("idx_invoice_company_date", "company_id", "invoice_date"),
        Index("idx_invoice_party", "party_ledger_id"),
    )

    company_id: Mapped[UUID] = mapped_column(ForeignKey("companies.id"), nullable=False)
    invoice_type: Mapped[InvoiceType] = mapped_column(enum_column(InvoiceType), nullable=False)
    invoice_number: Mapped[str] = mapped_column(String(100), nullable=False)
    invoice_date: Mapped[date] = mapped_column(nullable=False)
    due_date: Mapped[date | None] = mapped_column(nullable=True)
    party_ledger_id: Mapped[UUID] = mapped_column(ForeignKey("ledgers.id"), nullable=False)
    account_ledger_id: Mapped[UUID] = mapped_column(ForeignKey("ledgers.id"), nullable=False)
    voucher_id: Mapped[UUID] = mapped_column(ForeignKey("vouchers.id"), nullable=False)

    discount_percent: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    original_invoice_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    original_invoice_date: Mapped[date | None] = mapped_column(nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    subtotal: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    cgst_total: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    sgst_total: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    igst_total: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    tax_total: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    discount_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    grand_total: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    paid_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    outstanding_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    payment_status: Mapped[PaymentStatus] = mapped_column(
        enum_column(PaymentStatus), default=PaymentStatus.UNPAID
    )
    is_interstate: Mapped[bool] = mapped_column(Boolean, default=False)

    version: Mapped[int] = mapped_column(nullable=False)

    items: Mapped[list["InvoiceItemModel"]] = relationship(
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceItemModel.line_seq",
        lazy="selectin",
    )
    payments: Mapped[list["PaymentModel"]] = relationship(
        back_populates="invoice",
        order_by="PaymentModel.payment_date",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}

    def to_dto(self) -> InvoiceInfo:
        """Convert ORM model to frozen dataclass."""
        return InvoiceInfo.from_model(self)


# ---------------------------------------------------------------------------
# 3. InvoiceItemModel
# ---------------------------------------------------------------------------


class InvoiceItemModel(TrackedBase):
    """One invoice line with its computed amounts."""

    __tablename__ = "invoice_items"

    __table_args__ = (
        Index("idx_invoice_item_invoice", "invoice_id"),
    )

    invoice_id: Mapped[UUID] = mapped_column(
        ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False
    )
    item_id: Mapped[UUID | None] = mapped_column(ForeignKey("stock_items.id"), nullable=True)
    line_seq: Mapped[int] = mapped_column(nullable=False)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    quantity: Mapped[Decimal] = mapped_column(nullable=False)
    rate: Mapped[Decimal] = mapped_column(nullable=False)
    tax_rate_percent: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    discount_percent: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    discount_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    taxable_amount: Mapped[Decimal] = mapped_column(nullable=False)
    cgst: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    sgst: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    igst: Mapped[Decimal] = mapped_column(default=Decimal("0"))

    invoice: Mapped[InvoiceModel] = relationship(back_populates="items")


# ---------------------------------------------------------------------------
# 4. PaymentModel
# ---------------------------------------------------------------------------


class PaymentModel(TrackedBase):
    """
    A receipt or payment settled against one invoice.

    Guarantees:
        - voucher_id points at the RECEIPT/PAYMENT voucher that moved cash.
    """

    __tablename__ = "invoice_payments"

    __table_args__ = (
        Index("idx_invoice_payment_invoice", "invoice_id"),
    )

    company_id: Mapped[UUID] = mapped_column(ForeignKey("companies.id"), nullable=False)
    invoice_id: Mapped[UUID] = mapped_column(ForeignKey("invoices.id"), nullable=False)
    voucher_id: Mapped[UUID] = mapped_column(ForeignKey("vouchers.id"), nullable=False)
    settlement_ledger_id: Mapped[UUID] = mapped_column(ForeignKey("ledgers.id"), nullable=False)
    payment_date: Mapped[date] = mapped_column(nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    payment_mode: Mapped[PaymentMode] = mapped_column(
        enum_column(PaymentMode), default=PaymentMode.BANK
    )
    reference_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    invoice: Mapped[InvoiceModel] = relationship(back_populates="payments")

    def to_dto(self) -> PaymentInfo:
        """Convert ORM model to frozen dataclass."""
        return PaymentInfo.from_model(self)
