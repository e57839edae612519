"""
Tests for ReportEngine: trial balance, profit and loss, balance sheet and
dashboard summary, generated from real postings.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from ledger_engines.invoice_calculator import LineInput
from ledger_kernel.domain.dtos import EntrySpec
from ledger_kernel.domain.sides import EntrySide, GroupType
from ledger_kernel.exceptions import CompanyNotFoundError
from ledger_kernel.models.voucher import VoucherType
from ledger_modules.invoicing import InvoiceRequest, InvoiceType
from ledger_modules.reporting import NetProfitType, ReportEngine, ReportingConfig, ReportType


def _sale(books, on, rate="1000", party=None):
    return InvoiceRequest(
        invoice_type=InvoiceType.SALES,
        invoice_date=on,
        party_ledger_id=party or books.local_customer_id,
        account_ledger_id=books.sales_id,
        items=[LineInput(quantity=Decimal("1"), rate=Decimal(rate), tax_rate_percent=Decimal("18"))],
    )


def _journal(voucher_ledger, books, actor, on, debit, credit, amount):
    voucher_ledger.post(
        books.company_id,
        VoucherType.JOURNAL,
        on,
        [EntrySpec.debit(debit, Decimal(amount)), EntrySpec.credit(credit, Decimal(amount))],
        actor,
    )


class TestTrialBalance:

    def test_opening_balances_only(
        self, report_engine, create_company, create_group, create_ledger,
    ):
        company = create_company("Opening Co")
        assets = create_group(company, "Fixed Assets", GroupType.ASSET)
        equity = create_group(company, "Capital Account", GroupType.EQUITY)
        create_ledger(company, assets, "Machinery", opening_balance=Decimal("5000"))
        create_ledger(
            company, equity, "Owner Capital",
            opening_balance=Decimal("5000"), opening_balance_side=EntrySide.CR,
        )

        report = report_engine.trial_balance(company, date(2024, 4, 1))

        assert len(report.rows) == 2
        assert report.total_debit == Decimal("5000.00")
        assert report.total_credit == Decimal("5000.00")
        assert report.difference == Decimal("0")
        assert report.is_balanced
        assert [(r.ledger_name, r.side) for r in report.rows] == [
            ("Owner Capital", EntrySide.CR),
            ("Machinery", EntrySide.DR),
        ]

    def test_balanced_after_invoices_and_payments(
        self, report_engine, invoice_poster, books, test_actor_id,
    ):
        sale = invoice_poster.create(books.company_id, _sale(books, date(2024, 4, 5)), test_actor_id)
        invoice_poster.create(
            books.company_id,
            _sale(books, date(2024, 4, 6), rate="2500", party=books.registered_customer_id),
            test_actor_id,
        )
        invoice_poster.apply_payment(
            books.company_id, sale.id, Decimal("700"), date(2024, 4, 9), test_actor_id,
        )

        report = report_engine.trial_balance(books.company_id, date(2024, 4, 30))

        assert report.is_balanced
        assert report.total_debit == report.total_credit == Decimal("4130.00")
        names = {r.ledger_name for r in report.rows}
        assert "Rent" not in names
        assert {"Sales", "Output CGST", "Output SGST", "Output IGST", "HDFC Bank"} <= names

    def test_as_of_date_excludes_later_vouchers(self, report_engine, voucher_ledger, books, test_actor_id):
        _journal(voucher_ledger, books, test_actor_id, date(2024, 5, 1), books.cash_id, books.capital_id, "100")

        report = report_engine.trial_balance(books.company_id, date(2024, 4, 30))

        assert report.rows == ()
        assert report.is_balanced

    def test_include_zero_balances(self, session, deterministic_clock, books):
        engine = ReportEngine(session, deterministic_clock, ReportingConfig(include_zero_balances=True))

        report = engine.trial_balance(books.company_id, date(2024, 4, 30))

        assert len(report.rows) == 13
        assert report.total_debit == Decimal("0")

    def test_metadata(self, report_engine, books):
        report = report_engine.trial_balance(books.company_id, date(2024, 4, 30))

        assert report.metadata.report_type == ReportType.TRIAL_BALANCE
        assert report.metadata.company_name == "Acme Traders"
        assert report.metadata.generated_at == "2024-01-01T12:00:00+00:00"

    def test_unknown_company(self, report_engine):
        with pytest.raises(CompanyNotFoundError):
            report_engine.trial_balance(uuid4(), date(2024, 4, 30))

    def test_logs_trial_balance_generated(self, report_engine, books, captured_logs):
        report_engine.trial_balance(books.company_id, date(2024, 4, 30))

        record = next(r for r in captured_logs() if r["message"] == "trial_balance_generated")
        assert record["is_balanced"] is True
        assert record["company_id"] == str(books.company_id)


class TestProfitAndLoss:

    def test_period_scoped_profit(
        self, report_engine, invoice_poster, voucher_ledger, books, test_actor_id,
    ):
        invoice_poster.create(books.company_id, _sale(books, date(2024, 3, 20), rate="9999"), test_actor_id)
        invoice_poster.create(books.company_id, _sale(books, date(2024, 4, 5)), test_actor_id)
        _journal(voucher_ledger, books, test_actor_id, date(2024, 4, 8), books.rent_id, books.cash_id, "300")

        report = report_engine.profit_and_loss(books.company_id, date(2024, 4, 1), date(2024, 4, 30))

        assert report.total_income == Decimal("1000.00")
        assert report.total_expenses == Decimal("300.00")
        assert report.net_profit == Decimal("700.00")
        assert report.net_profit_type == NetProfitType.PROFIT
        assert [r.ledger_name for r in report.income] == ["Sales"]
        assert [r.ledger_name for r in report.expenses] == ["Rent"]

    def test_period_from_earliest_date(
        self, report_engine, invoice_poster, voucher_ledger, books, test_actor_id,
    ):
        invoice_poster.create(books.company_id, _sale(books, date(2024, 4, 5)), test_actor_id)
        _journal(voucher_ledger, books, test_actor_id, date(2024, 4, 8), books.rent_id, books.cash_id, "300")

        report = report_engine.profit_and_loss(books.company_id, date.min, date(2024, 4, 30))

        assert report.net_profit == Decimal("700.00")
        assert report.net_profit_type == NetProfitType.PROFIT

    def test_loss(self, report_engine, voucher_ledger, books, test_actor_id):
        _journal(voucher_ledger, books, test_actor_id, date(2024, 4, 8), books.rent_id, books.cash_id, "300")

        report = report_engine.profit_and_loss(books.company_id, date(2024, 4, 1), date(2024, 4, 30))

        assert report.net_profit == Decimal("-300.00")
        assert report.net_profit_type == NetProfitType.LOSS
        assert report.net_profit_type.value == "Loss"

    def test_zero_profit_is_profit(self, report_engine, books):
        report = report_engine.profit_and_loss(books.company_id, date(2024, 4, 1), date(2024, 4, 30))

        assert report.net_profit == Decimal("0")
        assert report.net_profit_type == NetProfitType.PROFIT

    def test_inverted_range_rejected(self, report_engine, books):
        with pytest.raises(ValueError):
            report_engine.profit_and_loss(books.company_id, date(2024, 5, 1), date(2024, 4, 1))


class TestBalanceSheet:

    def test_difference_is_unbooked_profit(
        self, report_engine, invoice_poster, voucher_ledger, books, test_actor_id,
    ):
        _journal(voucher_ledger, books, test_actor_id, date(2024, 4, 1), books.cash_id, books.capital_id, "5000")
        invoice_poster.create(books.company_id, _sale(books, date(2024, 4, 5)), test_actor_id)

        report = report_engine.balance_sheet(books.company_id, date(2024, 4, 30))

        assert report.total_assets == Decimal("6180.00")
        assert report.total_liabilities == Decimal("5180.00")
        assert report.difference == Decimal("1000.00")
        assert report.current_period_profit == Decimal("1000.00")
        assert {r.ledger_name for r in report.assets} == {"Cash", "Local Customer"}
        assert {r.ledger_name for r in report.liabilities} == {"Capital", "Output CGST", "Output SGST"}

    def test_balanced_when_profit_booked_to_equity(
        self, report_engine, voucher_ledger, books, test_actor_id,
    ):
        _journal(voucher_ledger, books, test_actor_id, date(2024, 4, 1), books.cash_id, books.capital_id, "5000")

        report = report_engine.balance_sheet(books.company_id, date(2024, 4, 30))

        assert report.difference == Decimal("0")
        assert report.current_period_profit == Decimal("0")


class TestDashboardSummary:

    def test_receivables_payables_and_cash(
        self, report_engine, invoice_poster, voucher_ledger, books, test_actor_id,
    ):
        sale = invoice_poster.create(books.company_id, _sale(books, date(2024, 4, 5)), test_actor_id)
        invoice_poster.apply_payment(books.company_id, sale.id, Decimal("180"), date(2024, 4, 6), test_actor_id)
        invoice_poster.create(
            books.company_id,
            InvoiceRequest(
                invoice_type=InvoiceType.PURCHASE,
                invoice_date=date(2024, 4, 7),
                party_ledger_id=books.supplier_id,
                account_ledger_id=books.purchases_id,
                items=[LineInput(quantity=Decimal("1"), rate=Decimal("500"), tax_rate_percent=Decimal("18"))],
            ),
            test_actor_id,
        )
        _journal(voucher_ledger, books, test_actor_id, date(2024, 4, 1), books.cash_id, books.capital_id, "250")

        summary = report_engine.dashboard_summary(books.company_id, date(2024, 4, 30))

        assert summary.receivables == Decimal("1000.00")
        assert summary.payables == Decimal("590.00")
        assert summary.cash_balance == Decimal("250.00")
        assert summary.bank_balance == Decimal("180.00")
