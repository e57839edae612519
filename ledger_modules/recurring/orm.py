"""
Recurring Invoice ORM Models (``ledger_modules.recurring.orm``).

Templates and their line items.  Firing a template reads these rows and
advances ``next_invoice_date``; past generated invoices are never touched.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TrackedBase
from ledger_kernel.db.types import enum_column
from ledger_modules.invoicing.models import InvoiceType
from ledger_modules.recurring.models import Frequency, RecurringTemplateInfo


class RecurringTemplateModel(TrackedBase):
    """
    ORM model for recurring invoice templates.

    Guarantees:
        - next_invoice_date starts at start_date and only moves forward.
        - cron_expression is stored for the external scheduler and never
          interpreted here.
    """

    __tablename__ = "recurring_templates"

    __table_args__ = (
        Index("idx_recurring_template_due", "company_id", "is_active", "next_invoice_date"),
    )

    company_id: Mapped[UUID] = mapped_column(ForeignKey("companies.id"), nullable=False)
    profile_name: Mapped[str] = mapped_column(String(255), nullable=False)
    invoice_type: Mapped[InvoiceType] = mapped_column(
        enum_column(InvoiceType), default=InvoiceType.SALES
    )
    frequency: Mapped[Frequency] = mapped_column(enum_column(Frequency), nullable=False)
    cron_expression: Mapped[str | None] = mapped_column(String(100), nullable=True)
    start_date: Mapped[date] = mapped_column(nullable=False)
    end_date: Mapped[date | None] = mapped_column(nullable=True)
    next_invoice_date: Mapped[date] = mapped_column(nullable=False)
    last_generated_date: Mapped[date | None] = mapped_column(nullable=True)
    party_ledger_id: Mapped[UUID] = mapped_column(ForeignKey("ledgers.id"), nullable=False)
    sales_ledger_id: Mapped[UUID] = mapped_column(ForeignKey("ledgers.id"), nullable=False)
    invoice_number_prefix: Mapped[str] = mapped_column(String(20), default="RINV")
    discount_percent: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    items: Mapped[list["RecurringTemplateItemModel"]] = relationship(
        back_populates="template",
        cascade="all, delete-orphan",
        order_by="RecurringTemplateItemModel.line_seq",
        lazy="selectin",
    )

    def to_dto(self) -> RecurringTemplateInfo:
        """Convert ORM model to frozen dataclass."""
        return RecurringTemplateInfo.from_model(self)


class RecurringTemplateItemModel(TrackedBase):
    __tablename__ = "recurring_template_items"

    template_id: Mapped[UUID] = mapped_column(
        ForeignKey("recurring_templates.id", ondelete="CASCADE"), nullable=False
    )
    item_id: Mapped[UUID | None] = mapped_column(ForeignKey("stock_items.id"), nullable=True)
    line_seq: Mapped[int] = mapped_column(nullable=False)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    quantity: Mapped[Decimal] = mapped_column(nullable=False)
    rate: Mapped[Decimal] = mapped_column(nullable=False)
    discount_percent: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    tax_rate_percent: Mapped[Decimal] = mapped_column(default=Decimal("18"))

    template: Mapped[RecurringTemplateModel] = relationship(back_populates="items")
