"""
Invoicing Domain Models (``ledger_modules.invoicing.models``).

Responsibility
--------------
Frozen value objects for invoices, credit/debit notes, their line items
and payments: the request shapes flowing *into* ``InvoicePoster`` and the
snapshots flowing *out* of it.

Architecture position
---------------------
**Modules layer** -- pure data definitions.  No I/O, no database.

Invariants enforced
-------------------
* All monetary fields use ``Decimal`` (never ``float``).
* All dataclasses are ``frozen=True``.
* ``payment_status_for`` is the single rule mapping paid/outstanding to
  UNPAID / PARTIAL / PAID.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from ledger_engines.invoice_calculator import LineInput
from ledger_kernel.db.types import BALANCE_TOLERANCE, ZERO

if TYPE_CHECKING:
    from ledger_modules.invoicing.orm import InvoiceModel, PaymentModel


class InvoiceType(str, Enum):
    SALES = "sales"
    PURCHASE = "purchase"
    CREDIT_NOTE = "credit_note"
    DEBIT_NOTE = "debit_note"


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"


class PaymentMode(str, Enum):
    CASH = "cash"
    BANK = "bank"
    CHEQUE = "cheque"
    UPI = "upi"
    CARD = "card"


def payment_status_for(
    paid_amount: Decimal,
    outstanding_amount: Decimal,
    tolerance: Decimal = BALANCE_TOLERANCE,
) -> PaymentStatus:
    """UNPAID if nothing paid, PAID if outstanding is within tolerance of 0, else PARTIAL."""
    if paid_amount <= ZERO:
        return PaymentStatus.UNPAID
    if outstanding_amount <= tolerance:
        return PaymentStatus.PAID
    return PaymentStatus.PARTIAL


# Line items are the engine's LineInput: quantity, rate, tax_rate_percent,
# discount_percent, item_id (stock item, optional), description.
InvoiceItemSpec = LineInput


@dataclass(frozen=True)
class InvoiceRequest:
    """
    Everything needed to create or rewrite an invoice.

    ``account_ledger_id`` is the sales ledger for SALES/DEBIT_NOTE and the
    purchase/expense ledger for PURCHASE/CREDIT_NOTE.
    """

    invoice_type: InvoiceType
    invoice_date: date
    party_ledger_id: UUID
    account_ledger_id: UUID
    items: tuple[InvoiceItemSpec, ...]
    invoice_number: str | None = None
    discount_percent: Decimal = ZERO
    due_date: date | None = None
    original_invoice_number: str | None = None
    original_invoice_date: date | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "invoice_type", InvoiceType(self.invoice_type))
        object.__setattr__(self, "items", tuple(self.items))


@dataclass(frozen=True)
class InvoiceItemInfo:
    item_id: UUID | None
    description: str | None
    quantity: Decimal
    rate: Decimal
    tax_rate_percent: Decimal
    discount_percent: Decimal
    amount: Decimal
    discount_amount: Decimal
    taxable_amount: Decimal
    cgst: Decimal
    sgst: Decimal
    igst: Decimal


@dataclass(frozen=True)
class InvoiceInfo:
    """Snapshot of an invoice with its items and payment state."""

    id: UUID
    company_id: UUID
    invoice_type: InvoiceType
    invoice_number: str
    invoice_date: date
    due_date: date | None
    party_ledger_id: UUID
    account_ledger_id: UUID
    voucher_id: UUID
    discount_percent: Decimal
    subtotal: Decimal
    cgst_total: Decimal
    sgst_total: Decimal
    igst_total: Decimal
    tax_total: Decimal
    discount_amount: Decimal
    grand_total: Decimal
    paid_amount: Decimal
    outstanding_amount: Decimal
    payment_status: PaymentStatus
    is_interstate: bool
    version: int
    original_invoice_number: str | None = None
    original_invoice_date: date | None = None
    notes: str | None = None
    items: tuple[InvoiceItemInfo, ...] = field(default_factory=tuple)

    @classmethod
    def from_model(cls, model: InvoiceModel) -> InvoiceInfo:
        return cls(
            id=model.id,
            company_id=model.company_id,
            invoice_type=model.invoice_type,
            invoice_number=model.invoice_number,
            invoice_date=model.invoice_date,
            due_date=model.due_date,
            party_ledger_id=model.party_ledger_id,
            account_ledger_id=model.account_ledger_id,
            voucher_id=model.voucher_id,
            discount_percent=model.discount_percent,
            subtotal=model.subtotal,
            cgst_total=model.cgst_total,
            sgst_total=model.sgst_total,
            igst_total=model.igst_total,
            tax_total=model.tax_total,
            discount_amount=model.discount_amount,
            grand_total=model.grand_total,
            paid_amount=model.paid_amount,
            outstanding_amount=model.outstanding_amount,
            payment_status=model.payment_status,
            is_interstate=model.is_interstate,
            version=model.version,
            original_invoice_number=model.original_invoice_number,
            original_invoice_date=model.original_invoice_date,
            notes=model.notes,
            items=tuple(
                InvoiceItemInfo(
                    item_id=i.item_id,
                    description=i.description,
                    quantity=i.quantity,
                    rate=i.rate,
                    tax_rate_percent=i.tax_rate_percent,
                    discount_percent=i.discount_percent,
                    amount=i.amount,
                    discount_amount=i.discount_amount,
                    taxable_amount=i.taxable_amount,
                    cgst=i.cgst,
                    sgst=i.sgst,
                    igst=i.igst,
                )
                for i in model.items
            ),
        )


@dataclass(frozen=True)
class PaymentInfo:
    id: UUID
    company_id: UUID
    invoice_id: UUID
    voucher_id: UUID
    settlement_ledger_id: UUID
    payment_date: date
    amount: Decimal
    payment_mode: PaymentMode
    reference_number: str | None
    notes: str | None

    @classmethod
    def from_model(cls, model: PaymentModel) -> PaymentInfo:
        return cls(
            id=model.id,
            company_id=model.company_id,
            invoice_id=model.invoice_id,
            voucher_id=model.voucher_id,
            settlement_ledger_id=model.settlement_ledger_id,
            payment_date=model.payment_date,
            amount=model.amount,
            payment_mode=model.payment_mode,
            reference_number=model.reference_number,
            notes=model.notes,
        )
