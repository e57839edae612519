"""
Financial Reporting Domain Models (``ledger_modules.reporting.models``).

Responsibility
--------------
Frozen dataclass value objects for report outputs: trial balance, profit
and loss, balance sheet, GSTR-1, GSTR-3B and the dashboard summary.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Returned by
``ReportEngine``; rendering to PDF/Excel/JSON happens elsewhere.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* All monetary fields use ``Decimal`` rounded to the display precision.

Audit relevance
---------------
``ReportMetadata`` carries the generation timestamp (from the injected
clock) and the parameters, for report reproducibility.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from ledger_kernel.domain.sides import EntrySide, GroupType


# =========================================================================
# Enums
# =========================================================================


class ReportType(str, Enum):
    TRIAL_BALANCE = "trial_balance"
    PROFIT_AND_LOSS = "profit_and_loss"
    BALANCE_SHEET = "balance_sheet"
    GSTR1 = "gstr1"
    GSTR3B = "gstr3b"
    DASHBOARD = "dashboard"


class NetProfitType(str, Enum):
    PROFIT = "Profit"
    LOSS = "Loss"


# =========================================================================
# Report Metadata (common to all reports)
# =========================================================================


@dataclass(frozen=True)
class ReportMetadata:
    """Metadata attached to every report."""

    report_type: ReportType
    company_id: UUID
    company_name: str
    as_of_date: date
    generated_at: str  # ISO format timestamp from injected clock
    period_start: date | None = None
    period_end: date | None = None


# =========================================================================
# Trial Balance
# =========================================================================


@dataclass(frozen=True)
class TrialBalanceRow:
    """One ledger's closing balance, shown in its Dr or Cr column."""

    ledger_id: UUID
    ledger_name: str
    group_name: str
    group_type: GroupType
    closing_balance: Decimal
    side: EntrySide

    @property
    def debit(self) -> Decimal:
        return self.closing_balance if self.side == EntrySide.DR else Decimal("0")

    @property
    def credit(self) -> Decimal:
        return self.closing_balance if self.side == EntrySide.CR else Decimal("0")


@dataclass(frozen=True)
class TrialBalanceReport:
    metadata: ReportMetadata
    rows: tuple[TrialBalanceRow, ...]
    total_debit: Decimal
    total_credit: Decimal
    difference: Decimal  # total_debit - total_credit
    is_balanced: bool


# =========================================================================
# Profit & Loss / Balance Sheet
# =========================================================================


@dataclass(frozen=True)
class StatementRow:
    """
    One ledger on a financial statement.

    ``amount`` is measured on the group's natural side and is negative when
    the ledger runs against it; ``side`` is the display side.
    """

    ledger_id: UUID
    ledger_name: str
    group_name: str
    group_type: GroupType
    amount: Decimal
    side: EntrySide


@dataclass(frozen=True)
class ProfitAndLossReport:
    metadata: ReportMetadata
    income: tuple[StatementRow, ...]
    expenses: tuple[StatementRow, ...]
    total_income: Decimal
    total_expenses: Decimal
    net_profit: Decimal
    net_profit_type: NetProfitType


@dataclass(frozen=True)
class BalanceSheetReport:
    """
    Assets against liabilities and equity as of a date.

    ``difference`` is not rolled into equity: with no closing entry it
    equals the un-booked profit carried in ``current_period_profit``.
    """

    metadata: ReportMetadata
    assets: tuple[StatementRow, ...]
    liabilities: tuple[StatementRow, ...]
    total_assets: Decimal
    total_liabilities: Decimal
    difference: Decimal
    current_period_profit: Decimal


# =========================================================================
# GST returns
# =========================================================================


@dataclass(frozen=True)
class Gstr1Row:
    invoice_id: UUID
    invoice_number: str
    invoice_date: date
    invoice_type: str
    party_name: str
    gstin: str | None
    place_of_supply: str | None
    is_interstate: bool
    taxable_value: Decimal
    cgst: Decimal
    sgst: Decimal
    igst: Decimal
    invoice_value: Decimal
    original_invoice_number: str | None = None


@dataclass(frozen=True)
class Gstr1Report:
    metadata: ReportMetadata
    b2b: tuple[Gstr1Row, ...]
    b2c_large: tuple[Gstr1Row, ...]
    b2c_small: tuple[Gstr1Row, ...]
    cdnr: tuple[Gstr1Row, ...]


@dataclass(frozen=True)
class TaxSummary:
    taxable_value: Decimal
    igst: Decimal
    cgst: Decimal
    sgst: Decimal

    @property
    def total_tax(self) -> Decimal:
        return self.igst + self.cgst + self.sgst


@dataclass(frozen=True)
class Gstr3bReport:
    metadata: ReportMetadata
    outward_supplies: TaxSummary
    eligible_itc: TaxSummary

    @property
    def net_tax_payable(self) -> Decimal:
        return self.outward_supplies.total_tax - self.eligible_itc.total_tax


# =========================================================================
# Dashboard
# =========================================================================


@dataclass(frozen=True)
class DashboardSummary:
    metadata: ReportMetadata
    receivables: Decimal
    payables: Decimal
    cash_balance: Decimal
    bank_balance: Decimal
