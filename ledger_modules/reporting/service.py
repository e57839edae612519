"""
Financial Reporting Service (``ledger_modules.reporting.service``).

Responsibility
--------------
Generates trial balance, profit and loss, balance sheet, GSTR-1, GSTR-3B
and the dashboard summary for one company by loading ledger balances and
invoices and delegating all arithmetic to the pure builders in
``statements.py`` and ``gst.py``.

Architecture position
---------------------
**Modules layer** -- read-only service.  Uses the kernel
``LedgerSelector`` for balances; never writes.

Invariants enforced
-------------------
* Balances are recomputed from entries on every call.
* Trial balance Σ Dr == Σ Cr (within tolerance) whenever every voucher
  was balanced and opening balances net to zero; ``is_balanced`` reports it.
* Every query is scoped by company_id.
* A report's queries run in one transaction of the caller's session.

Failure modes
-------------
* ``CompanyNotFoundError`` -- unknown company.
* ``InvalidClassificationError`` -- a ledger cannot be classified.
* ``ValueError`` -- from_date after to_date.
"""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, aliased

from ledger_kernel.db.types import ZERO, round_money
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.exceptions import CompanyNotFoundError
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.account import Ledger, LedgerKind
from ledger_kernel.models.company import Company
from ledger_kernel.selectors.ledger_selector import LedgerSelector
from ledger_modules.invoicing.models import InvoiceType, PaymentStatus
from ledger_modules.invoicing.orm import InvoiceModel
from ledger_modules.reporting.config import ReportingConfig
from ledger_modules.reporting.gst import GstInvoice, build_gstr1, build_gstr3b
from ledger_modules.reporting.models import (
    BalanceSheetReport,
    DashboardSummary,
    Gstr1Report,
    Gstr3bReport,
    ProfitAndLossReport,
    ReportMetadata,
    ReportType,
    TrialBalanceReport,
)
from ledger_modules.reporting.statements import (
    LedgerSnapshot,
    build_balance_sheet,
    build_profit_and_loss,
    build_trial_balance,
    closing_net_debits,
)

logger = get_logger("modules.reporting.service")


class ReportEngine:
    """
    Report generation service.

    Contract
    --------
    * Every public method returns a frozen report dataclass.
    * All methods are read-only.

    Non-goals
    ---------
    * Rendering (PDF, Excel, JSON).
    * Rolling profit into an equity ledger; the balance sheet surfaces it.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: ReportingConfig | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or ReportingConfig.with_defaults()
        self._selector = LedgerSelector(session)

    # =========================================================================
    # Internal helpers
    # =========================================================================

    def _company(self, company_id: UUID) -> Company:
        company = self._session.get(Company, company_id)
        if company is None:
            raise CompanyNotFoundError(company_id)
        return company

    def _load_ledgers(self, company_id: UUID) -> list[LedgerSnapshot]:
        """Convert the company's ledgers to LedgerSnapshot bridge objects."""
        ledgers = self._session.execute(
            select(Ledger).where(Ledger.company_id == company_id).order_by(Ledger.name)
        ).scalars()
        snapshots = [
            LedgerSnapshot(
                ledger_id=ledger.id,
                name=ledger.name,
                group_name=ledger.group.name if ledger.group is not None else None,
                group_type=ledger.group.group_type if ledger.group is not None else None,
                opening_net_debit=ledger.signed_opening_balance,
            )
            for ledger in ledgers
        ]
        logger.debug("ledgers_loaded_for_reporting", extra={"ledger_count": len(snapshots)})
        return snapshots

    def _net_debits(
        self,
        company_id: UUID,
        ledgers: list[LedgerSnapshot],
        as_of_date: date,
    ) -> dict[UUID, Decimal]:
        totals = self._selector.ledger_totals(company_id, as_of_date)
        return closing_net_debits(
            ledgers, {ledger_id: t.net_debit for ledger_id, t in totals.items()}
        )

    def _opening_net_debits(
        self,
        company_id: UUID,
        ledgers: list[LedgerSnapshot],
        from_date: date,
    ) -> dict[UUID, Decimal]:
        """Balances at the close of the day before from_date."""
        if from_date == date.min:
            return closing_net_debits(ledgers, {})
        return self._net_debits(company_id, ledgers, from_date - timedelta(days=1))

    def _build_metadata(
        self,
        report_type: ReportType,
        company: Company,
        as_of_date: date,
        period_start: date | None = None,
        period_end: date | None = None,
    ) -> ReportMetadata:
        """Build report metadata with injected clock timestamp."""
        return ReportMetadata(
            report_type=report_type,
            company_id=company.id,
            company_name=company.name,
            as_of_date=as_of_date,
            generated_at=self._clock.now().isoformat(),
            period_start=period_start,
            period_end=period_end,
        )

    @staticmethod
    def _check_range(from_date: date, to_date: date) -> None:
        if from_date > to_date:
            raise ValueError(f"from_date ({from_date}) is after to_date ({to_date})")

    def _load_gst_invoices(self, company_id: UUID, from_date: date, to_date: date) -> list[GstInvoice]:
        party = aliased(Ledger)
        rows = self._session.execute(
            select(InvoiceModel, party)
            .join(party, InvoiceModel.party_ledger_id == party.id)
            .where(
                InvoiceModel.company_id == company_id,
                InvoiceModel.invoice_date >= from_date,
                InvoiceModel.invoice_date <= to_date,
            )
            .order_by(InvoiceModel.invoice_date, InvoiceModel.invoice_number)
        ).all()
        return [
            GstInvoice(
                invoice_id=invoice.id,
                invoice_type=invoice.invoice_type,
                invoice_number=invoice.invoice_number,
                invoice_date=invoice.invoice_date,
                party_name=party_ledger.name,
                party_gstin=party_ledger.gstin,
                party_state=party_ledger.state,
                is_interstate=invoice.is_interstate,
                taxable_value=invoice.subtotal,
                cgst=invoice.cgst_total,
                sgst=invoice.sgst_total,
                igst=invoice.igst_total,
                invoice_value=invoice.grand_total,
                original_invoice_number=invoice.original_invoice_number,
            )
            for invoice, party_ledger in rows
        ]

    # =========================================================================
    # Public API
    # =========================================================================

    def trial_balance(self, company_id: UUID, as_of_date: date) -> TrialBalanceReport:
        """
        One row per ledger with its closing balance as of the date.

        Raises:
            CompanyNotFoundError, InvalidClassificationError.
        """
        with LogContext.bind(company_id=company_id):
            company = self._company(company_id)
            ledgers = self._load_ledgers(company_id)
            report = build_trial_balance(
                ledgers,
                self._net_debits(company_id, ledgers, as_of_date),
                self._config,
                self._build_metadata(ReportType.TRIAL_BALANCE, company, as_of_date),
            )
            log = logger.info if report.is_balanced else logger.error
            log(
                "trial_balance_generated",
                extra={
                    "as_of_date": as_of_date.isoformat(),
                    "row_count": len(report.rows),
                    "total_debit": str(report.total_debit),
                    "total_credit": str(report.total_credit),
                    "is_balanced": report.is_balanced,
                },
            )
        return report

    def profit_and_loss(self, company_id: UUID, from_date: date, to_date: date) -> ProfitAndLossReport:
        """
        Period income and expense: balance(to) - balance(from - 1).

        Raises:
            ValueError, CompanyNotFoundError, InvalidClassificationError.
        """
        self._check_range(from_date, to_date)
        with LogContext.bind(company_id=company_id):
            company = self._company(company_id)
            ledgers = self._load_ledgers(company_id)
            report = build_profit_and_loss(
                ledgers,
                self._net_debits(company_id, ledgers, to_date),
                self._opening_net_debits(company_id, ledgers, from_date),
                self._config,
                self._build_metadata(
                    ReportType.PROFIT_AND_LOSS, company, to_date,
                    period_start=from_date, period_end=to_date,
                ),
            )
            logger.info(
                "profit_and_loss_generated",
                extra={
                    "period_start": from_date.isoformat(),
                    "period_end": to_date.isoformat(),
                    "net_profit": str(report.net_profit),
                    "net_profit_type": report.net_profit_type.value,
                },
            )
        return report

    def balance_sheet(self, company_id: UUID, as_of_date: date) -> BalanceSheetReport:
        """
        Asset vs Liability + Equity closing balances.

        Raises:
            CompanyNotFoundError, InvalidClassificationError.
        """
        with LogContext.bind(company_id=company_id):
            company = self._company(company_id)
            ledgers = self._load_ledgers(company_id)
            report = build_balance_sheet(
                ledgers,
                self._net_debits(company_id, ledgers, as_of_date),
                self._config,
                self._build_metadata(ReportType.BALANCE_SHEET, company, as_of_date),
            )
            logger.info(
                "balance_sheet_generated",
                extra={
                    "as_of_date": as_of_date.isoformat(),
                    "total_assets": str(report.total_assets),
                    "total_liabilities": str(report.total_liabilities),
                    "difference": str(report.difference),
                },
            )
        return report

    def gstr1(self, company_id: UUID, from_date: date, to_date: date) -> Gstr1Report:
        self._check_range(from_date, to_date)
        with LogContext.bind(company_id=company_id):
            company = self._company(company_id)
            report = build_gstr1(
                self._load_gst_invoices(company_id, from_date, to_date),
                self._config.b2c_large_threshold,
                self._build_metadata(
                    ReportType.GSTR1, company, to_date,
                    period_start=from_date, period_end=to_date,
                ),
            )
            logger.info(
                "gstr1_generated",
                extra={
                    "b2b_count": len(report.b2b),
                    "b2c_large_count": len(report.b2c_large),
                    "b2c_small_count": len(report.b2c_small),
                    "cdnr_count": len(report.cdnr),
                },
            )
        return report

    def gstr3b(self, company_id: UUID, from_date: date, to_date: date) -> Gstr3bReport:
        self._check_range(from_date, to_date)
        with LogContext.bind(company_id=company_id):
            company = self._company(company_id)
            report = build_gstr3b(
                self._load_gst_invoices(company_id, from_date, to_date),
                self._build_metadata(
                    ReportType.GSTR3B, company, to_date,
                    period_start=from_date, period_end=to_date,
                ),
            )
            logger.info(
                "gstr3b_generated",
                extra={
                    "outward_taxable": str(report.outward_supplies.taxable_value),
                    "itc_taxable": str(report.eligible_itc.taxable_value),
                },
            )
        return report

    def dashboard_summary(self, company_id: UUID, as_of_date: date) -> DashboardSummary:
        """Receivables, payables and cash/bank balances as of a date."""
        company = self._company(company_id)

        def outstanding(invoice_type: InvoiceType) -> Decimal:
            rows = self._session.execute(
                select(InvoiceModel.outstanding_amount).where(
                    InvoiceModel.company_id == company_id,
                    InvoiceModel.invoice_type == invoice_type,
                    InvoiceModel.invoice_date <= as_of_date,
                    InvoiceModel.payment_status != PaymentStatus.PAID,
                )
            ).scalars()
            return sum(rows, ZERO)

        balances = self._selector.balances_as_of(company_id, as_of_date)
        kinds = dict(
            self._session.execute(
                select(Ledger.id, Ledger.kind).where(
                    Ledger.company_id == company_id,
                    Ledger.kind.in_([LedgerKind.CASH, LedgerKind.BANK]),
                )
            ).all()
        )

        def kind_total(kind: LedgerKind) -> Decimal:
            return sum(
                (balances[ledger_id].net_debit for ledger_id, k in kinds.items() if k == kind),
                ZERO,
            )

        places = self._config.display_precision
        return DashboardSummary(
            metadata=self._build_metadata(ReportType.DASHBOARD, company, as_of_date),
            receivables=round_money(outstanding(InvoiceType.SALES), places),
            payables=round_money(outstanding(InvoiceType.PURCHASE), places),
            cash_balance=round_money(kind_total(LedgerKind.CASH), places),
            bank_balance=round_money(kind_total(LedgerKind.BANK), places),
        )
