"""ORM models for the ledger kernel."""

from ledger_kernel.models.account import Group, Ledger, LedgerKind
from ledger_kernel.models.company import Company
from ledger_kernel.models.fiscal_year import FinancialYear
from ledger_kernel.models.voucher import Voucher, VoucherEntry, VoucherType

__all__ = [
    "Company",
    "FinancialYear",
    "Group",
    "Ledger",
    "LedgerKind",
    "Voucher",
    "VoucherEntry",
    "VoucherType",
]
