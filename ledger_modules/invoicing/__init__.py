"""
Invoicing Module (``ledger_modules.invoicing``).

Sales and purchase invoices, credit and debit notes, payments against
them and their stock effect.  ``InvoicePoster`` posts every document as a
voucher through the kernel ``VoucherLedger``.
"""

from ledger_modules.invoicing.models import (
    InvoiceInfo,
    InvoiceItemInfo,
    InvoiceItemSpec,
    InvoiceRequest,
    InvoiceType,
    PaymentInfo,
    PaymentMode,
    PaymentStatus,
)
from ledger_modules.invoicing.profiles import POSTING_DIRECTIONS, PostingDirection
from ledger_modules.invoicing.service import InvoicePoster
from ledger_modules.invoicing.stock import OrmStockAdjuster, StockAdjuster

__all__ = [
    "InvoiceInfo",
    "InvoiceItemInfo",
    "InvoiceItemSpec",
    "InvoicePoster",
    "InvoiceRequest",
    "InvoiceType",
    "OrmStockAdjuster",
    "POSTING_DIRECTIONS",
    "PaymentInfo",
    "PaymentMode",
    "PaymentStatus",
    "PostingDirection",
    "StockAdjuster",
]
