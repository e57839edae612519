"""
Financial Reporting Module (``ledger_modules.reporting``).

Trial balance, profit and loss, balance sheet, GST returns and the
dashboard summary.  Read-only; all arithmetic lives in the pure builders
of ``statements.py`` and ``gst.py``.
"""

from ledger_modules.reporting.config import ReportingConfig
from ledger_modules.reporting.models import (
    BalanceSheetReport,
    DashboardSummary,
    Gstr1Report,
    Gstr1Row,
    Gstr3bReport,
    NetProfitType,
    ProfitAndLossReport,
    ReportMetadata,
    ReportType,
    StatementRow,
    TaxSummary,
    TrialBalanceReport,
    TrialBalanceRow,
)
from ledger_modules.reporting.service import ReportEngine

__all__ = [
    "BalanceSheetReport",
    "DashboardSummary",
    "Gstr1Report",
    "Gstr1Row",
    "Gstr3bReport",
    "NetProfitType",
    "ProfitAndLossReport",
    "ReportEngine",
    "ReportMetadata",
    "ReportType",
    "ReportingConfig",
    "StatementRow",
    "TaxSummary",
    "TrialBalanceReport",
    "TrialBalanceRow",
]
