"""
Invoice Calculator - line and invoice totals for GST invoices.

Pure functions with no I/O.

Per line:
    amount          = quantity * rate
    discount_amount = amount * discount_percent / 100
    taxable_amount  = amount - discount_amount
    cgst/sgst/igst  = tax.split(taxable_amount, tax_rate_percent, ...)

Per invoice:
    subtotal        = sum(taxable_amount)
    tax_total       = sum(line cgst + sgst + igst)
    discount_amount = subtotal * discount_percent / 100
    grand_total     = subtotal + tax_total - discount_amount

The invoice-level discount reduces the sales/purchase ledger posting, not
the tax already computed per line.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Sequence

from ledger_engines.tax import is_interstate, split
from ledger_engines.tracer import traced_engine
from ledger_kernel.db.types import HUNDRED, ZERO, round_money


@dataclass(frozen=True)
class LineInput:
    """One requested invoice line."""

    quantity: Decimal
    rate: Decimal
    tax_rate_percent: Decimal = ZERO
    discount_percent: Decimal = ZERO
    item_id: Any = None
    description: str | None = None


@dataclass(frozen=True)
class LineAmounts:
    """Computed amounts for one invoice line."""

    line: LineInput
    amount: Decimal
    discount_amount: Decimal
    taxable_amount: Decimal
    cgst: Decimal
    sgst: Decimal
    igst: Decimal

    @property
    def tax_total(self) -> Decimal:
        return self.cgst + self.sgst + self.igst


@dataclass(frozen=True)
class InvoiceTotals:
    """Computed totals for a whole invoice."""

    lines: tuple[LineAmounts, ...]
    subtotal: Decimal
    cgst_total: Decimal
    sgst_total: Decimal
    igst_total: Decimal
    discount_amount: Decimal
    grand_total: Decimal
    is_interstate: bool

    @property
    def tax_total(self) -> Decimal:
        return self.cgst_total + self.sgst_total + self.igst_total

    @property
    def net_amount(self) -> Decimal:
        """Amount posted to the sales/purchase ledger."""
        return self.subtotal - self.discount_amount


def _percent_ok(value: Decimal) -> bool:
    return ZERO <= value <= HUNDRED


def validate_line(line: LineInput) -> str | None:
    """Return a reason string when the line is invalid, else None."""
    for name in ("quantity", "rate", "tax_rate_percent", "discount_percent"):
        if isinstance(getattr(line, name), float):
            return f"{name} must be Decimal, not float"
    if line.quantity <= ZERO:
        return f"quantity must be positive, got {line.quantity}"
    if line.rate < ZERO:
        return f"rate cannot be negative, got {line.rate}"
    if not _percent_ok(line.discount_percent):
        return f"discount_percent must be within 0..100, got {line.discount_percent}"
    if line.tax_rate_percent < ZERO:
        return f"tax_rate_percent cannot be negative, got {line.tax_rate_percent}"
    return None


def compute_line(line: LineInput, company_state: str | None, party_state: str | None) -> LineAmounts:
    """
    Compute amount, discount, taxable value and tax split for one line.

    Raises:
        ValueError: The line fails validate_line.
    """
    reason = validate_line(line)
    if reason is not None:
        raise ValueError(reason)

    amount = round_money(Decimal(line.quantity) * Decimal(line.rate))
    discount_amount = round_money(amount * Decimal(line.discount_percent) / HUNDRED)
    taxable_amount = amount - discount_amount
    gst = split(taxable_amount, Decimal(line.tax_rate_percent), company_state, party_state)
    return LineAmounts(
        line=line,
        amount=amount,
        discount_amount=discount_amount,
        taxable_amount=taxable_amount,
        cgst=gst.cgst,
        sgst=gst.sgst,
        igst=gst.igst,
    )


@traced_engine("invoice_totals", "1.0")
def compute_invoice(
    lines: Sequence[LineInput],
    discount_percent: Decimal,
    company_state: str | None,
    party_state: str | None,
) -> InvoiceTotals:
    """
    Compute every line and the invoice totals.

    Raises:
        ValueError: No lines, an invalid line, or discount outside 0..100.
    """
    if not lines:
        raise ValueError("an invoice needs at least one line")
    if isinstance(discount_percent, float):
        raise ValueError("discount_percent must be Decimal, not float")
    discount_percent = Decimal(discount_percent)
    if not _percent_ok(discount_percent):
        raise ValueError(f"discount_percent must be within 0..100, got {discount_percent}")

    computed = tuple(compute_line(line, company_state, party_state) for line in lines)
    subtotal = sum((c.taxable_amount for c in computed), ZERO)
    cgst_total = sum((c.cgst for c in computed), ZERO)
    sgst_total = sum((c.sgst for c in computed), ZERO)
    igst_total = sum((c.igst for c in computed), ZERO)
    discount_amount = round_money(subtotal * discount_percent / HUNDRED)
    grand_total = subtotal + cgst_total + sgst_total + igst_total - discount_amount

    return InvoiceTotals(
        lines=computed,
        subtotal=subtotal,
        cgst_total=cgst_total,
        sgst_total=sgst_total,
        igst_total=igst_total,
        discount_amount=discount_amount,
        grand_total=grand_total,
        is_interstate=is_interstate(company_state, party_state),
    )
