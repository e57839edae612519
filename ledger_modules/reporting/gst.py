"""
Pure GST return builders: GSTR-1 buckets and the GSTR-3B summary.

Inputs are ``GstInvoice`` snapshots built by the service from invoice
rows and their party ledgers.  Taxable value and tax components are the
invoice's line-level sums, so report totals always agree with invoice
totals.

GSTR-1 buckets:
    b2b        SALES to a party with a GSTIN
    b2c_large  SALES, no GSTIN, inter-state, invoice value >= threshold
    b2c_small  every other SALES invoice
    cdnr       credit and debit notes to a party with a GSTIN
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable
from uuid import UUID

from ledger_kernel.db.types import ZERO
from ledger_modules.invoicing.models import InvoiceType
from ledger_modules.reporting.models import (
    Gstr1Report,
    Gstr1Row,
    Gstr3bReport,
    ReportMetadata,
    TaxSummary,
)

NOTE_TYPES = frozenset({InvoiceType.CREDIT_NOTE, InvoiceType.DEBIT_NOTE})


@dataclass(frozen=True)
class GstInvoice:
    """Invoice fields a GST return needs."""

    invoice_id: UUID
    invoice_type: InvoiceType
    invoice_number: str
    invoice_date: date
    party_name: str
    party_gstin: str | None
    party_state: str | None
    is_interstate: bool
    taxable_value: Decimal
    cgst: Decimal
    sgst: Decimal
    igst: Decimal
    invoice_value: Decimal
    original_invoice_number: str | None = None

    @property
    def has_gstin(self) -> bool:
        return bool((self.party_gstin or "").strip())


def _row(invoice: GstInvoice) -> Gstr1Row:
    return Gstr1Row(
        invoice_id=invoice.invoice_id,
        invoice_number=invoice.invoice_number,
        invoice_date=invoice.invoice_date,
        invoice_type=invoice.invoice_type.value,
        party_name=invoice.party_name,
        gstin=invoice.party_gstin,
        place_of_supply=invoice.party_state,
        is_interstate=invoice.is_interstate,
        taxable_value=invoice.taxable_value,
        cgst=invoice.cgst,
        sgst=invoice.sgst,
        igst=invoice.igst,
        invoice_value=invoice.invoice_value,
        original_invoice_number=invoice.original_invoice_number,
    )


def classify_sale(invoice: GstInvoice, b2c_large_threshold: Decimal) -> str:
    """Return "b2b", "b2c_large" or "b2c_small" for a SALES invoice."""
    if invoice.has_gstin:
        return "b2b"
    if invoice.is_interstate and invoice.invoice_value >= b2c_large_threshold:
        return "b2c_large"
    return "b2c_small"


def build_gstr1(
    invoices: Iterable[GstInvoice],
    b2c_large_threshold: Decimal,
    metadata: ReportMetadata,
) -> Gstr1Report:
    buckets: dict[str, list[Gstr1Row]] = {
        "b2b": [], "b2c_large": [], "b2c_small": [], "cdnr": [],
    }
    for invoice in invoices:
        if invoice.invoice_type == InvoiceType.SALES:
            buckets[classify_sale(invoice, b2c_large_threshold)].append(_row(invoice))
        elif invoice.invoice_type in NOTE_TYPES and invoice.has_gstin:
            buckets["cdnr"].append(_row(invoice))

    def ordered(rows: list[Gstr1Row]) -> tuple[Gstr1Row, ...]:
        return tuple(sorted(rows, key=lambda r: (r.invoice_date, r.invoice_number)))

    return Gstr1Report(
        metadata=metadata,
        b2b=ordered(buckets["b2b"]),
        b2c_large=ordered(buckets["b2c_large"]),
        b2c_small=ordered(buckets["b2c_small"]),
        cdnr=ordered(buckets["cdnr"]),
    )


def summarize(invoices: Iterable[GstInvoice]) -> TaxSummary:
    taxable = cgst = sgst = igst = ZERO
    for invoice in invoices:
        taxable += invoice.taxable_value
        cgst += invoice.cgst
        sgst += invoice.sgst
        igst += invoice.igst
    return TaxSummary(taxable_value=taxable, igst=igst, cgst=cgst, sgst=sgst)


def build_gstr3b(invoices: Iterable[GstInvoice], metadata: ReportMetadata) -> Gstr3bReport:
    """Outward supplies from SALES invoices, eligible ITC from PURCHASE invoices."""
    invoices = list(invoices)
    return Gstr3bReport(
        metadata=metadata,
        outward_supplies=summarize(i for i in invoices if i.invoice_type == InvoiceType.SALES),
        eligible_itc=summarize(i for i in invoices if i.invoice_type == InvoiceType.PURCHASE),
    )
