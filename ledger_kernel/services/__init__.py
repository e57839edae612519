"""Services for the ledger kernel (write side)."""

from ledger_kernel.services.chart_service import ChartOfAccountsService
from ledger_kernel.services.period_service import PeriodService
from ledger_kernel.services.sequence_service import SequenceService
from ledger_kernel.services.voucher_ledger import VoucherLedger

__all__ = [
    "ChartOfAccountsService",
    "PeriodService",
    "SequenceService",
    "VoucherLedger",
]
