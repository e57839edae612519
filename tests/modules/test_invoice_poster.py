"""
Tests for InvoicePoster.

Validates:
- Sales, purchase and note postings hit the right ledgers on the right sides
- Intra-state CGST/SGST vs inter-state IGST
- Numbering, duplicate numbers and invalid lines
- Payments: partial, exact, over-payment, reversal
- Update and delete (with and without payment cascade)
- Stock movement through the StockAdjuster
- Closed financial years
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from ledger_engines.invoice_calculator import LineInput
from ledger_kernel.domain.sides import EntrySide, GroupType
from ledger_kernel.exceptions import (
    ClosedPeriodError,
    InvalidAmountError,
    InvalidInvoiceError,
    InvoiceHasPaymentsError,
    InvoiceNotFoundError,
    OptimisticLockError,
    OverPaymentError,
    PaymentNotFoundError,
    TaxLedgerNotFoundError,
    VoucherNotFoundError,
)
from ledger_kernel.models.account import LedgerKind
from ledger_modules.invoicing import (
    InvoicePoster,
    InvoiceRequest,
    InvoiceType,
    PaymentMode,
    PaymentStatus,
)

INVOICE_DATE = date(2024, 4, 10)
PAYMENT_DATE = date(2024, 4, 20)


def _item(quantity="1", rate="1000", tax="18", item_id=None, discount="0") -> LineInput:
    return LineInput(
        quantity=Decimal(quantity),
        rate=Decimal(rate),
        tax_rate_percent=Decimal(tax),
        discount_percent=Decimal(discount),
        item_id=item_id,
    )


def _sale(books, party=None, items=None, **kwargs) -> InvoiceRequest:
    return InvoiceRequest(
        invoice_type=InvoiceType.SALES,
        invoice_date=kwargs.pop("invoice_date", INVOICE_DATE),
        party_ledger_id=party or books.local_customer_id,
        account_ledger_id=books.sales_id,
        items=items or [_item()],
        **kwargs,
    )


def _balance(voucher_ledger, books, ledger_id, on=date(2024, 12, 31)):
    return voucher_ledger.balance_as_of(books.company_id, ledger_id, on)


@pytest.fixture
def sale(invoice_poster, books, test_actor_id):
    """1000 @ 18% to a same-state customer: grand total 1180."""
    return invoice_poster.create(books.company_id, _sale(books), test_actor_id)


# =============================================================================
# Creation
# =============================================================================


class TestCreateSales:

    def test_intra_state_totals(self, sale):
        assert sale.invoice_number == "INV-1"
        assert sale.subtotal == Decimal("1000.00")
        assert sale.cgst_total == Decimal("90.00")
        assert sale.sgst_total == Decimal("90.00")
        assert sale.igst_total == Decimal("0.00")
        assert sale.grand_total == Decimal("1180.00")
        assert sale.payment_status == PaymentStatus.UNPAID
        assert sale.outstanding_amount == Decimal("1180.00")
        assert not sale.is_interstate

    def test_intra_state_voucher(self, sale, voucher_ledger, books):
        voucher = voucher_ledger.get_voucher(books.company_id, sale.voucher_id)
        by_ledger = {e.ledger_id: (e.side, e.amount) for e in voucher.entries}

        assert voucher.voucher_type == "sales"
        assert voucher.voucher_number == "INV-1"
        assert by_ledger == {
            books.local_customer_id: (EntrySide.DR, Decimal("1180")),
            books.sales_id: (EntrySide.CR, Decimal("1000")),
            books.cgst_id: (EntrySide.CR, Decimal("90")),
            books.sgst_id: (EntrySide.CR, Decimal("90")),
        }

    def test_ledger_balances_after_sale(self, sale, voucher_ledger, books):
        assert _balance(voucher_ledger, books, books.local_customer_id).amount == Decimal("1180")
        assert _balance(voucher_ledger, books, books.sales_id).natural_amount == Decimal("1000")
        assert _balance(voucher_ledger, books, books.cgst_id).natural_amount == Decimal("90")

    def test_inter_state_uses_igst(self, invoice_poster, voucher_ledger, books, test_actor_id):
        invoice = invoice_poster.create(
            books.company_id, _sale(books, party=books.registered_customer_id), test_actor_id,
        )

        assert invoice.is_interstate
        assert invoice.igst_total == Decimal("180.00")
        assert _balance(voucher_ledger, books, books.igst_id).natural_amount == Decimal("180")
        assert _balance(voucher_ledger, books, books.cgst_id).amount == Decimal("0")

    def test_numbers_increase(self, invoice_poster, sale, books, test_actor_id):
        second = invoice_poster.create(books.company_id, _sale(books), test_actor_id)

        assert second.invoice_number == "INV-2"

    def test_auto_numbers_skip_manually_taken_numbers(self, invoice_poster, books, test_actor_id):
        invoice_poster.create(books.company_id, _sale(books, invoice_number="INV-1"), test_actor_id)
        invoice_poster.create(books.company_id, _sale(books, invoice_number="INV-3"), test_actor_id)

        numbers = [
            invoice_poster.create(books.company_id, _sale(books), test_actor_id).invoice_number
            for _ in range(3)
        ]

        assert numbers == ["INV-2", "INV-4", "INV-5"]

    def test_explicit_duplicate_number_rejected(self, invoice_poster, sale, books, test_actor_id):
        with pytest.raises(InvalidInvoiceError, match="already exists"):
            invoice_poster.create(books.company_id, _sale(books, invoice_number="INV-1"), test_actor_id)

    def test_invalid_line_rejected_and_nothing_posted(
        self, invoice_poster, voucher_ledger, books, test_actor_id,
    ):
        with pytest.raises(InvalidInvoiceError):
            invoice_poster.create(books.company_id, _sale(books, items=[_item(quantity="0")]), test_actor_id)

        assert invoice_poster.list_invoices(books.company_id) == []
        assert voucher_ledger.list_vouchers(books.company_id) == []

    def test_invoice_discount_reduces_sales_posting(
        self, invoice_poster, voucher_ledger, books, test_actor_id,
    ):
        invoice = invoice_poster.create(
            books.company_id, _sale(books, discount_percent=Decimal("10")), test_actor_id,
        )

        assert invoice.grand_total == Decimal("1080.00")
        voucher = voucher_ledger.get_voucher(books.company_id, invoice.voucher_id)
        assert voucher.total_debits == voucher.total_credits == Decimal("1080")
        assert _balance(voucher_ledger, books, books.sales_id).natural_amount == Decimal("900")

    def test_zero_rated_invoice_needs_no_tax_ledgers(
        self, create_company, create_group, create_ledger, test_actor_id, session, deterministic_clock,
    ):
        company = create_company("No Tax Co", state="MH")
        assets = create_group(company, "Assets", GroupType.ASSET)
        income = create_group(company, "Income", GroupType.INCOME)
        customer = create_ledger(company, assets, "Customer", kind=LedgerKind.PARTY, state="MH")
        sales = create_ledger(company, income, "Sales")
        poster = InvoicePoster(session, deterministic_clock)
        request = InvoiceRequest(
            invoice_type=InvoiceType.SALES,
            invoice_date=INVOICE_DATE,
            party_ledger_id=customer,
            account_ledger_id=sales,
            items=[_item(tax="0")],
        )

        assert poster.create(company, request, test_actor_id).grand_total == Decimal("1000.00")

        with pytest.raises(TaxLedgerNotFoundError) as exc_info:
            poster.create(
                company,
                InvoiceRequest(
                    invoice_type=InvoiceType.SALES,
                    invoice_date=INVOICE_DATE,
                    party_ledger_id=customer,
                    account_ledger_id=sales,
                    items=[_item()],
                ),
                test_actor_id,
            )
        assert exc_info.value.tax_kind == "CGST"

    def test_create_logs(self, invoice_poster, books, test_actor_id, captured_logs):
        invoice_poster.create(books.company_id, _sale(books), test_actor_id)

        messages = [r["message"] for r in captured_logs()]
        assert "invoice_create_started" in messages
        assert "invoice_created" in messages
        created = next(r for r in captured_logs() if r["message"] == "invoice_created")
        assert created["grand_total"] == "1180.00"
        assert created["company_id"] == str(books.company_id)


class TestOtherInvoiceTypes:

    def test_purchase_posts_mirror_image(self, invoice_poster, voucher_ledger, books, test_actor_id):
        invoice = invoice_poster.create(
            books.company_id,
            InvoiceRequest(
                invoice_type=InvoiceType.PURCHASE,
                invoice_date=INVOICE_DATE,
                party_ledger_id=books.supplier_id,
                account_ledger_id=books.purchases_id,
                items=[_item(rate="500")],
            ),
            test_actor_id,
        )

        assert invoice.invoice_number == "PUR-1"
        voucher = voucher_ledger.get_voucher(books.company_id, invoice.voucher_id)
        assert voucher.voucher_type == "purchase"
        by_ledger = {e.ledger_id: (e.side, e.amount) for e in voucher.entries}
        assert by_ledger[books.supplier_id] == (EntrySide.CR, Decimal("590"))
        assert by_ledger[books.purchases_id] == (EntrySide.DR, Decimal("500"))
        assert by_ledger[books.cgst_id] == (EntrySide.DR, Decimal("45"))
        assert _balance(voucher_ledger, books, books.supplier_id).natural_amount == Decimal("590")

    def test_debit_note_posts_like_a_sale(self, invoice_poster, voucher_ledger, sale, books, test_actor_id):
        note = invoice_poster.create(
            books.company_id,
            InvoiceRequest(
                invoice_type=InvoiceType.DEBIT_NOTE,
                invoice_date=date(2024, 4, 15),
                party_ledger_id=books.local_customer_id,
                account_ledger_id=books.sales_id,
                items=[_item(rate="200")],
                original_invoice_number=sale.invoice_number,
            ),
            test_actor_id,
        )

        assert note.invoice_number == "DN-1"
        assert note.grand_total == Decimal("236.00")
        voucher = voucher_ledger.get_voucher(books.company_id, note.voucher_id)
        assert voucher.voucher_type == "debit_note"
        by_ledger = {e.ledger_id: (e.side, e.amount) for e in voucher.entries}
        assert by_ledger == {
            books.local_customer_id: (EntrySide.DR, Decimal("236")),
            books.sales_id: (EntrySide.CR, Decimal("200")),
            books.cgst_id: (EntrySide.CR, Decimal("18")),
            books.sgst_id: (EntrySide.CR, Decimal("18")),
        }
        assert _balance(voucher_ledger, books, books.local_customer_id).amount == Decimal("1416")

    def test_credit_note_reverses_sale(self, invoice_poster, voucher_ledger, sale, books, test_actor_id):
        note = invoice_poster.create(
            books.company_id,
            InvoiceRequest(
                invoice_type=InvoiceType.CREDIT_NOTE,
                invoice_date=date(2024, 4, 15),
                party_ledger_id=books.local_customer_id,
                account_ledger_id=books.sales_id,
                items=[_item()],
                original_invoice_number=sale.invoice_number,
                original_invoice_date=sale.invoice_date,
            ),
            test_actor_id,
        )

        assert note.invoice_number == "CN-1"
        assert note.original_invoice_number == "INV-1"
        assert _balance(voucher_ledger, books, books.local_customer_id).amount == Decimal("0")
        assert _balance(voucher_ledger, books, books.sales_id).amount == Decimal("0")
        assert _balance(voucher_ledger, books, books.cgst_id).amount == Decimal("0")
        voucher = voucher_ledger.get_voucher(books.company_id, note.voucher_id)
        assert voucher.narration == "Credit Note CN-1 against INV-1"


# =============================================================================
# Payments
# =============================================================================


class TestPayments:

    def test_partial_payment(self, invoice_poster, voucher_ledger, sale, books, test_actor_id):
        payment = invoice_poster.apply_payment(
            books.company_id, sale.id, Decimal("500"), PAYMENT_DATE, test_actor_id,
        )

        invoice = invoice_poster.get_invoice(books.company_id, sale.id)
        assert payment.settlement_ledger_id == books.bank_id
        assert invoice.payment_status == PaymentStatus.PARTIAL
        assert invoice.paid_amount == Decimal("500")
        assert invoice.outstanding_amount == Decimal("680")
        assert _balance(voucher_ledger, books, books.bank_id).amount == Decimal("500")
        assert _balance(voucher_ledger, books, books.local_customer_id).amount == Decimal("680")

    def test_exact_payment_marks_paid(self, invoice_poster, voucher_ledger, sale, books, test_actor_id):
        payment = invoice_poster.apply_payment(
            books.company_id, sale.id, Decimal("1180"), PAYMENT_DATE, test_actor_id,
            reference_number="CHQ-104",
        )

        invoice = invoice_poster.get_invoice(books.company_id, sale.id)
        assert invoice.payment_status == PaymentStatus.PAID
        assert invoice.outstanding_amount == Decimal("0")
        voucher = voucher_ledger.get_voucher(books.company_id, payment.voucher_id)
        assert voucher.voucher_type == "receipt"
        bank_entry = next(e for e in voucher.entries if e.ledger_id == books.bank_id)
        assert bank_entry.side == EntrySide.DR
        assert bank_entry.instrument_number == "CHQ-104"
        assert _balance(voucher_ledger, books, books.local_customer_id).amount == Decimal("0")

    def test_payments_accumulate(self, invoice_poster, sale, books, test_actor_id):
        invoice_poster.apply_payment(books.company_id, sale.id, Decimal("180"), PAYMENT_DATE, test_actor_id)
        invoice_poster.apply_payment(books.company_id, sale.id, Decimal("1000"), PAYMENT_DATE, test_actor_id)

        invoice = invoice_poster.get_invoice(books.company_id, sale.id)
        assert invoice.paid_amount == Decimal("1180")
        assert invoice.payment_status == PaymentStatus.PAID
        assert len(invoice_poster.list_payments(books.company_id, sale.id)) == 2

    def test_over_payment_rejected(self, invoice_poster, voucher_ledger, sale, books, test_actor_id):
        with pytest.raises(OverPaymentError) as exc_info:
            invoice_poster.apply_payment(
                books.company_id, sale.id, Decimal("1181"), PAYMENT_DATE, test_actor_id,
            )

        assert exc_info.value.code == "OVER_PAYMENT"
        assert invoice_poster.list_payments(books.company_id, sale.id) == []
        assert _balance(voucher_ledger, books, books.bank_id).amount == Decimal("0")

    def test_payment_within_tolerance_accepted(self, invoice_poster, sale, books, test_actor_id):
        invoice_poster.apply_payment(
            books.company_id, sale.id, Decimal("1180.01"), PAYMENT_DATE, test_actor_id,
        )

        invoice = invoice_poster.get_invoice(books.company_id, sale.id)
        assert invoice.payment_status == PaymentStatus.PAID
        assert invoice.outstanding_amount == Decimal("0")

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5")])
    def test_non_positive_payment_rejected(self, invoice_poster, sale, books, test_actor_id, amount):
        with pytest.raises(InvalidAmountError):
            invoice_poster.apply_payment(books.company_id, sale.id, amount, PAYMENT_DATE, test_actor_id)

    def test_cash_mode_uses_cash_ledger(self, invoice_poster, voucher_ledger, sale, books, test_actor_id):
        payment = invoice_poster.apply_payment(
            books.company_id, sale.id, Decimal("100"), PAYMENT_DATE, test_actor_id,
            payment_mode=PaymentMode.CASH,
        )

        assert payment.settlement_ledger_id == books.cash_id
        assert _balance(voucher_ledger, books, books.cash_id).amount == Decimal("100")

    def test_purchase_payment_is_a_payment_voucher(
        self, invoice_poster, voucher_ledger, books, test_actor_id,
    ):
        purchase = invoice_poster.create(
            books.company_id,
            InvoiceRequest(
                invoice_type=InvoiceType.PURCHASE,
                invoice_date=INVOICE_DATE,
                party_ledger_id=books.supplier_id,
                account_ledger_id=books.purchases_id,
                items=[_item(rate="500")],
            ),
            test_actor_id,
        )

        payment = invoice_poster.apply_payment(
            books.company_id, purchase.id, Decimal("590"), PAYMENT_DATE, test_actor_id,
        )

        voucher = voucher_ledger.get_voucher(books.company_id, payment.voucher_id)
        assert voucher.voucher_type == "payment"
        bank = _balance(voucher_ledger, books, books.bank_id)
        assert (bank.amount, bank.side) == (Decimal("590"), EntrySide.CR)
        assert _balance(voucher_ledger, books, books.supplier_id).amount == Decimal("0")

    def test_reverse_payment(self, invoice_poster, voucher_ledger, sale, books, test_actor_id):
        payment = invoice_poster.apply_payment(
            books.company_id, sale.id, Decimal("1180"), PAYMENT_DATE, test_actor_id,
        )

        invoice = invoice_poster.reverse_payment(books.company_id, payment.id, test_actor_id)

        assert invoice.payment_status == PaymentStatus.UNPAID
        assert invoice.paid_amount == Decimal("0")
        assert invoice.outstanding_amount == Decimal("1180")
        with pytest.raises(VoucherNotFoundError):
            voucher_ledger.get_voucher(books.company_id, payment.voucher_id)
        assert _balance(voucher_ledger, books, books.bank_id).amount == Decimal("0")

    def test_reverse_unknown_payment(self, invoice_poster, books, test_actor_id):
        with pytest.raises(PaymentNotFoundError):
            invoice_poster.reverse_payment(books.company_id, uuid4(), test_actor_id)


# =============================================================================
# Queries
# =============================================================================


class TestListInvoices:

    def test_filter_by_payment_status(self, invoice_poster, sale, books, test_actor_id):
        partial = invoice_poster.create(books.company_id, _sale(books), test_actor_id)
        paid = invoice_poster.create(books.company_id, _sale(books), test_actor_id)
        invoice_poster.apply_payment(books.company_id, partial.id, Decimal("100"), PAYMENT_DATE, test_actor_id)
        invoice_poster.apply_payment(books.company_id, paid.id, Decimal("1180"), PAYMENT_DATE, test_actor_id)

        def ids(status):
            return [i.id for i in invoice_poster.list_invoices(books.company_id, payment_status=status)]

        assert ids(PaymentStatus.UNPAID) == [sale.id]
        assert ids(PaymentStatus.PARTIAL) == [partial.id]
        assert ids(PaymentStatus.PAID) == [paid.id]
        assert len(invoice_poster.list_invoices(books.company_id)) == 3

    def test_filters_combine(self, invoice_poster, sale, books, test_actor_id):
        assert invoice_poster.list_invoices(
            books.company_id, invoice_type=InvoiceType.PURCHASE, payment_status=PaymentStatus.UNPAID,
        ) == []


# =============================================================================
# Update and delete
# =============================================================================


class TestUpdate:

    def test_update_rewrites_voucher(self, invoice_poster, voucher_ledger, sale, books, test_actor_id):
        updated = invoice_poster.update(
            books.company_id,
            sale.id,
            _sale(books, items=[_item(quantity="2")], invoice_date=date(2024, 4, 12)),
            test_actor_id,
            expected_version=sale.version,
        )

        assert updated.grand_total == Decimal("2360.00")
        assert updated.invoice_number == "INV-1"
        assert updated.voucher_id == sale.voucher_id
        assert updated.version > sale.version
        voucher = voucher_ledger.get_voucher(books.company_id, sale.voucher_id)
        assert voucher.voucher_date == date(2024, 4, 12)
        assert voucher.total_debits == Decimal("2360")
        assert _balance(voucher_ledger, books, books.local_customer_id).amount == Decimal("2360")

    def test_update_with_payments_rejected(self, invoice_poster, sale, books, test_actor_id):
        invoice_poster.apply_payment(books.company_id, sale.id, Decimal("10"), PAYMENT_DATE, test_actor_id)

        with pytest.raises(InvoiceHasPaymentsError):
            invoice_poster.update(books.company_id, sale.id, _sale(books), test_actor_id)

    def test_type_change_rejected(self, invoice_poster, sale, books, test_actor_id):
        request = InvoiceRequest(
            invoice_type=InvoiceType.DEBIT_NOTE,
            invoice_date=INVOICE_DATE,
            party_ledger_id=books.local_customer_id,
            account_ledger_id=books.sales_id,
            items=[_item()],
        )

        with pytest.raises(InvalidInvoiceError, match="type cannot change"):
            invoice_poster.update(books.company_id, sale.id, request, test_actor_id)

    def test_stale_version_rejected(self, invoice_poster, sale, books, test_actor_id):
        invoice_poster.update(books.company_id, sale.id, _sale(books), test_actor_id)

        with pytest.raises(OptimisticLockError):
            invoice_poster.update(
                books.company_id, sale.id, _sale(books), test_actor_id, expected_version=sale.version,
            )


class TestDelete:

    def test_delete_restores_balances(self, invoice_poster, voucher_ledger, sale, books, test_actor_id):
        invoice_poster.delete(books.company_id, sale.id, test_actor_id)

        with pytest.raises(InvoiceNotFoundError):
            invoice_poster.get_invoice(books.company_id, sale.id)
        with pytest.raises(VoucherNotFoundError):
            voucher_ledger.get_voucher(books.company_id, sale.voucher_id)
        for ledger_id in (books.local_customer_id, books.sales_id, books.cgst_id, books.sgst_id):
            assert _balance(voucher_ledger, books, ledger_id).amount == Decimal("0")

    def test_delete_with_payments_requires_cascade(self, invoice_poster, sale, books, test_actor_id):
        invoice_poster.apply_payment(books.company_id, sale.id, Decimal("100"), PAYMENT_DATE, test_actor_id)

        with pytest.raises(InvoiceHasPaymentsError) as exc_info:
            invoice_poster.delete(books.company_id, sale.id, test_actor_id)

        assert exc_info.value.payment_count == 1
        assert invoice_poster.get_invoice(books.company_id, sale.id).paid_amount == Decimal("100")

    def test_cascade_delete_removes_payments(
        self, invoice_poster, voucher_ledger, sale, books, test_actor_id,
    ):
        payment = invoice_poster.apply_payment(
            books.company_id, sale.id, Decimal("100"), PAYMENT_DATE, test_actor_id,
        )

        invoice_poster.delete(books.company_id, sale.id, test_actor_id, cascade_payments=True)

        with pytest.raises(VoucherNotFoundError):
            voucher_ledger.get_voucher(books.company_id, payment.voucher_id)
        assert _balance(voucher_ledger, books, books.bank_id).amount == Decimal("0")
        assert _balance(voucher_ledger, books, books.local_customer_id).amount == Decimal("0")
        assert voucher_ledger.list_vouchers(books.company_id) == []


# =============================================================================
# Stock
# =============================================================================


class TestStock:

    @pytest.fixture
    def widget(self, stock, books, test_actor_id, session):
        item_id = stock.create_item(books.company_id, "Widget", test_actor_id, opening_quantity=Decimal("10"))
        session.commit()
        return item_id

    def test_sale_reduces_and_purchase_increases_stock(
        self, invoice_poster, stock, books, widget, test_actor_id,
    ):
        invoice_poster.create(
            books.company_id, _sale(books, items=[_item(quantity="3", item_id=widget)]), test_actor_id,
        )
        assert stock.quantity(books.company_id, widget) == Decimal("7")

        invoice_poster.create(
            books.company_id,
            InvoiceRequest(
                invoice_type=InvoiceType.PURCHASE,
                invoice_date=INVOICE_DATE,
                party_ledger_id=books.supplier_id,
                account_ledger_id=books.purchases_id,
                items=[_item(quantity="5", item_id=widget)],
            ),
            test_actor_id,
        )
        assert stock.quantity(books.company_id, widget) == Decimal("12")

    def test_update_and_delete_restore_stock(self, invoice_poster, stock, books, widget, test_actor_id):
        invoice = invoice_poster.create(
            books.company_id, _sale(books, items=[_item(quantity="3", item_id=widget)]), test_actor_id,
        )

        invoice_poster.update(
            books.company_id, invoice.id, _sale(books, items=[_item(quantity="4", item_id=widget)]), test_actor_id,
        )
        assert stock.quantity(books.company_id, widget) == Decimal("6")

        invoice_poster.delete(books.company_id, invoice.id, test_actor_id)
        assert stock.quantity(books.company_id, widget) == Decimal("10")


# =============================================================================
# Closed periods
# =============================================================================


class TestClosedPeriod:

    def test_create_in_closed_year_rejected(
        self, invoice_poster, period_service, books, test_actor_id,
    ):
        year = period_service.create_year(
            books.company_id, "FY 2024-25", date(2024, 4, 1), date(2025, 3, 31), test_actor_id,
        )
        period_service.close_year(books.company_id, year.id, test_actor_id)

        with pytest.raises(ClosedPeriodError):
            invoice_poster.create(books.company_id, _sale(books), test_actor_id)

        assert invoice_poster.list_invoices(books.company_id) == []

    def test_update_in_closed_year_rejected(
        self, invoice_poster, voucher_ledger, period_service, sale, books, test_actor_id,
    ):
        year = period_service.create_year(
            books.company_id, "FY 2024-25", date(2024, 4, 1), date(2025, 3, 31), test_actor_id,
        )
        period_service.close_year(books.company_id, year.id, test_actor_id)

        with pytest.raises(ClosedPeriodError):
            invoice_poster.update(
                books.company_id, sale.id, _sale(books, items=[_item(quantity="2")]), test_actor_id,
            )

        assert invoice_poster.get_invoice(books.company_id, sale.id).grand_total == Decimal("1180.00")
        assert _balance(voucher_ledger, books, books.local_customer_id).amount == Decimal("1180")

    def test_delete_in_closed_year_rejected(
        self, invoice_poster, period_service, sale, books, test_actor_id,
    ):
        year = period_service.create_year(
            books.company_id, "FY 2024-25", date(2024, 4, 1), date(2025, 3, 31), test_actor_id,
        )
        period_service.close_year(books.company_id, year.id, test_actor_id)

        with pytest.raises(ClosedPeriodError):
            invoice_poster.delete(books.company_id, sale.id, test_actor_id)

        assert invoice_poster.get_invoice(books.company_id, sale.id).grand_total == Decimal("1180.00")
