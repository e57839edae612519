"""
Invoice Posting Service (``ledger_modules.invoicing.service``).

Responsibility
--------------
Turns invoices, credit/debit notes and payments into balanced vouchers,
keeps each invoice's paid/outstanding/status consistent with its payment
rows, and moves stock through the injected ``StockAdjuster``.

Architecture position
---------------------
**Modules layer** -- thin glue.  ``InvoicePoster`` composes the pure
``ledger_engines.invoice_calculator`` with the kernel ``VoucherLedger``
(``auto_commit=False``) so the voucher, the invoice rows and the stock
movement commit or roll back together.

Invariants enforced
-------------------
* Voucher, invoice/payment rows and stock changes are one atomic unit.
* Ledger sides come from ``profiles.POSTING_DIRECTIONS``; there is no
  branching on invoice type in the posting path.
* ``paid_amount`` is always ``sum(payment.amount)`` and
  ``outstanding_amount = max(grand_total - paid_amount, 0)``.
* A payment may not exceed outstanding by more than 0.01.
* Invoices with payments cannot be rewritten; deletion requires
  ``cascade_payments=True``.

Failure modes
-------------
* ``InvalidInvoiceError`` -- bad lines, non-positive total, duplicate
  number.
* ``TaxLedgerNotFoundError`` -- tax is due but no CGST/SGST/IGST ledger.
* ``OverPaymentError``, ``InvalidAmountError``.
* ``InvoiceHasPaymentsError``, ``OptimisticLockError``.
* Anything the kernel raises (``ClosedPeriodError``,
  ``LedgerNotFoundError``, ``UnbalancedVoucherError``) after rollback.

Audit relevance
---------------
Every public mutation logs ``*_started`` and a completion event carrying
invoice id, number, totals and status.

Usage::

    poster = InvoicePoster(session, clock=clock)
    invoice = poster.create(company_id, InvoiceRequest(...), actor_id)
    poster.apply_payment(company_id, invoice.id, Decimal("500"), on, actor_id)
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ledger_engines.invoice_calculator import InvoiceTotals, compute_invoice
from ledger_kernel.db.types import BALANCE_TOLERANCE, ZERO, money
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import EntrySpec
from ledger_kernel.exceptions import (
    InvalidAmountError,
    InvalidInvoiceError,
    InvoiceHasPaymentsError,
    InvoiceNotFoundError,
    LedgerNotFoundError,
    OptimisticLockError,
    OverPaymentError,
    PaymentNotFoundError,
    TaxLedgerNotFoundError,
)
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.account import Ledger, LedgerKind
from ledger_kernel.services.base import BaseService
from ledger_kernel.services.chart_service import ChartOfAccountsService
from ledger_kernel.services.period_service import PeriodService
from ledger_kernel.services.sequence_service import SequenceService
from ledger_kernel.services.voucher_ledger import VoucherLedger
from ledger_modules.invoicing.models import (
    InvoiceInfo,
    InvoiceRequest,
    InvoiceType,
    PaymentInfo,
    PaymentMode,
    PaymentStatus,
    payment_status_for,
)
from ledger_modules.invoicing.orm import InvoiceItemModel, InvoiceModel, PaymentModel
from ledger_modules.invoicing.profiles import (
    SETTLEMENT_KIND_BY_MODE,
    TAX_LEDGER_KINDS,
    PostingDirection,
    direction_for,
)
from ledger_modules.invoicing.stock import OrmStockAdjuster, StockAdjuster

logger = get_logger("modules.invoicing.service")


class InvoicePoster(BaseService):
    """
    Posts invoices and payments as vouchers.

    Contract
    --------
    Every public mutation runs inside ``self._transaction()``: with
    ``auto_commit=True`` it commits on success and rolls back on any error.

    Non-goals
    ---------
    * Partial credit notes against a specific invoice line; a note is an
      independent document that may reference the original by number.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        stock: StockAdjuster | None = None,
        auto_commit: bool = True,
        balance_tolerance: Decimal = BALANCE_TOLERANCE,
    ):
        super().__init__(session, auto_commit)
        self._clock = clock or SystemClock()
        self._tolerance = balance_tolerance
        self._stock = stock or OrmStockAdjuster(session)
        self._chart = ChartOfAccountsService(session, auto_commit=False)
        self._periods = PeriodService(session, self._clock, auto_commit=False)
        self._sequences = SequenceService(session)
        self._ledger = VoucherLedger(
            session, self._clock, auto_commit=False, balance_tolerance=balance_tolerance,
        )

    # =========================================================================
    # Invoices
    # =========================================================================

    def create(self, company_id: UUID, request: InvoiceRequest, actor_id: UUID) -> InvoiceInfo:
        """
        Compute an invoice, post its voucher and apply stock.

        Raises:
            InvalidInvoiceError, TaxLedgerNotFoundError, LedgerNotFoundError,
            ClosedPeriodError.
        """
        direction = direction_for(request.invoice_type)

        with LogContext.bind(company_id=company_id, actor_id=actor_id):
            logger.info(
                "invoice_create_started",
                extra={
                    "invoice_type": request.invoice_type.value,
                    "invoice_date": str(request.invoice_date),
                    "line_count": len(request.items),
                },
            )
            with self._transaction("create_invoice", "Invoice"):
                totals = self._compute(company_id, request)
                number = request.invoice_number or self._next_number(
                    company_id, direction, request.invoice_type,
                )
                self._check_number_free(company_id, request.invoice_type, number)

                voucher_id = self._ledger.post(
                    company_id,
                    direction.voucher_type,
                    request.invoice_date,
                    self._invoice_entries(company_id, request, totals, direction),
                    actor_id,
                    narration=self._narration(request, number),
                    voucher_number=number,
                )

                invoice = InvoiceModel(
                    company_id=company_id,
                    invoice_type=request.invoice_type,
                    invoice_number=number,
                    voucher_id=voucher_id,
                    created_by_id=actor_id,
                )
                self._apply_request(invoice, request, totals, actor_id)
                self._refresh_payment_state(invoice, paid_amount=ZERO)
                self.session.add(invoice)
                self.session.flush()

                self._move_stock(company_id, request.items, direction.stock_direction)

            logger.info(
                "invoice_created",
                extra={
                    "invoice_id": str(invoice.id),
                    "invoice_number": number,
                    "grand_total": str(invoice.grand_total),
                    "tax_total": str(invoice.tax_total),
                    "is_interstate": invoice.is_interstate,
                },
            )
        return InvoiceInfo.from_model(invoice)

    def update(
        self,
        company_id: UUID,
        invoice_id: UUID,
        request: InvoiceRequest,
        actor_id: UUID,
        expected_version: int | None = None,
    ) -> InvoiceInfo:
        """
        Rewrite an unpaid invoice: recompute, replace its voucher entries,
        replace its items and re-apply stock.

        The invoice type cannot change.

        Raises:
            InvoiceHasPaymentsError, OptimisticLockError, InvalidInvoiceError,
            ClosedPeriodError (old or new date).
        """
        with LogContext.bind(company_id=company_id, actor_id=actor_id, invoice_id=invoice_id):
            logger.info("invoice_update_started", extra={"line_count": len(request.items)})
            with self._transaction("update_invoice", "Invoice", invoice_id):
                invoice = self._get_invoice(company_id, invoice_id)
                if expected_version is not None and invoice.version != expected_version:
                    raise OptimisticLockError(
                        "Invoice", invoice_id, expected_version, invoice.version,
                    )
                if invoice.payments:
                    raise InvoiceHasPaymentsError(invoice_id, len(invoice.payments), "update")
                if InvoiceType(request.invoice_type) != invoice.invoice_type:
                    raise InvalidInvoiceError(
                        f"invoice type cannot change from {invoice.invoice_type.value}"
                    )

                direction = direction_for(invoice.invoice_type)
                number = request.invoice_number or invoice.invoice_number
                if number != invoice.invoice_number:
                    self._check_number_free(company_id, invoice.invoice_type, number)
                    invoice.invoice_number = number

                old_items = list(invoice.items)
                totals = self._compute(company_id, request)

                self._ledger.replace(
                    company_id,
                    invoice.voucher_id,
                    self._invoice_entries(company_id, request, totals, direction),
                    actor_id,
                    voucher_date=request.invoice_date,
                    narration=self._narration(request, number),
                )

                self._move_stock(company_id, old_items, -direction.stock_direction)
                self._apply_request(invoice, request, totals, actor_id)
                self._refresh_payment_state(invoice, paid_amount=ZERO)
                invoice.updated_by_id = actor_id
                self.session.flush()
                self._move_stock(company_id, request.items, direction.stock_direction)

            logger.info(
                "invoice_updated",
                extra={
                    "invoice_number": invoice.invoice_number,
                    "grand_total": str(invoice.grand_total),
                    "version": invoice.version,
                },
            )
        return InvoiceInfo.from_model(invoice)

    def delete(
        self,
        company_id: UUID,
        invoice_id: UUID,
        actor_id: UUID,
        cascade_payments: bool = False,
    ) -> None:
        """
        Delete an invoice, its voucher and its stock effect.

        With ``cascade_payments=True`` every payment is reversed first;
        otherwise an invoice with payments is refused.

        Raises:
            InvoiceHasPaymentsError, ClosedPeriodError, InvoiceNotFoundError.
        """
        with LogContext.bind(company_id=company_id, actor_id=actor_id, invoice_id=invoice_id):
            logger.info("invoice_delete_started", extra={"cascade_payments": cascade_payments})
            with self._transaction("delete_invoice", "Invoice", invoice_id):
                invoice = self._get_invoice(company_id, invoice_id)
                self._periods.validate_date_open(company_id, invoice.invoice_date)

                payments = list(invoice.payments)
                if payments and not cascade_payments:
                    raise InvoiceHasPaymentsError(invoice_id, len(payments), "delete")
                for payment in payments:
                    self._remove_payment(company_id, payment, actor_id)

                direction = direction_for(invoice.invoice_type)
                self._move_stock(company_id, invoice.items, -direction.stock_direction)

                voucher_id = invoice.voucher_id
                number = invoice.invoice_number
                self.session.delete(invoice)
                self.session.flush()
                self._ledger.delete(company_id, voucher_id, actor_id)

            logger.info(
                "invoice_deleted",
                extra={"invoice_number": number, "payments_reversed": len(payments)},
            )

    # =========================================================================
    # Payments
    # =========================================================================

    def apply_payment(
        self,
        company_id: UUID,
        invoice_id: UUID,
        amount: Decimal,
        payment_date: date,
        actor_id: UUID,
        payment_mode: PaymentMode = PaymentMode.BANK,
        settlement_ledger_id: UUID | None = None,
        reference_number: str | None = None,
        notes: str | None = None,
    ) -> PaymentInfo:
        """
        Settle (part of) an invoice through a cash or bank ledger.

        The settlement ledger takes the side the party took on the invoice
        and the party takes the opposite side, so the party's balance moves
        toward zero.

        Raises:
            InvalidAmountError: amount <= 0.
            OverPaymentError: amount > outstanding + 0.01.
            LedgerNotFoundError: no settlement ledger given or resolvable.
            ClosedPeriodError.
        """
        amount = money(amount)
        payment_mode = PaymentMode(payment_mode)
        if amount <= ZERO:
            raise InvalidAmountError(amount, "payment")

        with LogContext.bind(company_id=company_id, actor_id=actor_id, invoice_id=invoice_id):
            logger.info(
                "payment_apply_started",
                extra={"amount": str(amount), "payment_mode": payment_mode.value},
            )
            with self._transaction("apply_payment", "Invoice", invoice_id):
                invoice = self._get_invoice(company_id, invoice_id)
                if amount > invoice.outstanding_amount + self._tolerance:
                    logger.warning(
                        "payment_exceeds_outstanding",
                        extra={
                            "amount": str(amount),
                            "outstanding": str(invoice.outstanding_amount),
                        },
                    )
                    raise OverPaymentError(invoice_id, amount, invoice.outstanding_amount)

                settlement = self._settlement_ledger(company_id, payment_mode, settlement_ledger_id)
                direction = direction_for(invoice.invoice_type)
                entries = [
                    EntrySpec(
                        ledger_id=settlement.id,
                        amount=amount,
                        side=direction.party_side,
                        instrument_number=reference_number,
                        instrument_date=payment_date if reference_number else None,
                    ),
                    EntrySpec(
                        ledger_id=invoice.party_ledger_id,
                        amount=amount,
                        side=direction.party_side.opposite,
                    ),
                ]
                voucher_id = self._ledger.post(
                    company_id,
                    direction.settlement_voucher_type,
                    payment_date,
                    entries,
                    actor_id,
                    narration=f"Payment against {invoice.invoice_number}",
                )

                payment = PaymentModel(
                    company_id=company_id,
                    invoice=invoice,
                    voucher_id=voucher_id,
                    settlement_ledger_id=settlement.id,
                    payment_date=payment_date,
                    amount=amount,
                    payment_mode=payment_mode,
                    reference_number=reference_number,
                    notes=notes,
                    created_by_id=actor_id,
                )
                self.session.add(payment)
                self.session.flush()
                self._refresh_payment_state(invoice)
                invoice.updated_by_id = actor_id
                self.session.flush()

            logger.info(
                "payment_applied",
                extra={
                    "payment_id": str(payment.id),
                    "amount": str(amount),
                    "paid_amount": str(invoice.paid_amount),
                    "outstanding_amount": str(invoice.outstanding_amount),
                    "payment_status": invoice.payment_status.value,
                },
            )
        return PaymentInfo.from_model(payment)

    def reverse_payment(self, company_id: UUID, payment_id: UUID, actor_id: UUID) -> InvoiceInfo:
        """
        Delete a payment and its voucher, then recompute the invoice.

        Raises:
            PaymentNotFoundError, ClosedPeriodError.
        """
        with LogContext.bind(company_id=company_id, actor_id=actor_id):
            logger.info("payment_reverse_started", extra={"payment_id": str(payment_id)})
            with self._transaction("reverse_payment", "Payment", payment_id):
                payment = self.session.get(PaymentModel, payment_id)
                if payment is None or payment.company_id != company_id:
                    raise PaymentNotFoundError(payment_id)
                invoice = payment.invoice
                self._remove_payment(company_id, payment, actor_id)
                self._refresh_payment_state(invoice)
                invoice.updated_by_id = actor_id
                self.session.flush()

            logger.info(
                "payment_reversed",
                extra={
                    "invoice_id": str(invoice.id),
                    "paid_amount": str(invoice.paid_amount),
                    "payment_status": invoice.payment_status.value,
                },
            )
        return InvoiceInfo.from_model(invoice)

    # =========================================================================
    # Queries
    # =========================================================================

    def get_invoice(self, company_id: UUID, invoice_id: UUID) -> InvoiceInfo:
        return InvoiceInfo.from_model(self._get_invoice(company_id, invoice_id))

    def list_invoices(
        self,
        company_id: UUID,
        from_date: date | None = None,
        to_date: date | None = None,
        invoice_type: InvoiceType | None = None,
        payment_status: PaymentStatus | None = None,
    ) -> list[InvoiceInfo]:
        stmt = select(InvoiceModel).where(InvoiceModel.company_id == company_id)
        if from_date is not None:
            stmt = stmt.where(InvoiceModel.invoice_date >= from_date)
        if to_date is not None:
            stmt = stmt.where(InvoiceModel.invoice_date <= to_date)
        if invoice_type is not None:
            stmt = stmt.where(InvoiceModel.invoice_type == InvoiceType(invoice_type))
        if payment_status is not None:
            stmt = stmt.where(InvoiceModel.payment_status == PaymentStatus(payment_status))
        stmt = stmt.order_by(InvoiceModel.invoice_date, InvoiceModel.invoice_number)
        return [InvoiceInfo.from_model(row) for row in self.session.execute(stmt).scalars()]

    def list_payments(self, company_id: UUID, invoice_id: UUID) -> list[PaymentInfo]:
        invoice = self._get_invoice(company_id, invoice_id)
        return [PaymentInfo.from_model(p) for p in invoice.payments]

    def allocate_number(self, company_id: UUID, invoice_type: InvoiceType, prefix: str) -> str:
        """
        Next free ``<prefix>-<n>`` number for the invoice type.

        Numbers already taken by manually numbered invoices are skipped.
        Must run inside the caller's transaction.
        """
        sequence = SequenceService.document_sequence(company_id, prefix)
        while True:
            number = f"{prefix}-{self._sequences.next_value(sequence)}"
            if not self._number_taken(company_id, invoice_type, number):
                return number
            logger.info(
                "invoice_number_skipped",
                extra={"invoice_type": invoice_type.value, "invoice_number": number},
            )

    # =========================================================================
    # Internals
    # =========================================================================

    def _get_invoice(self, company_id: UUID, invoice_id: UUID) -> InvoiceModel:
        invoice = self.session.get(InvoiceModel, invoice_id)
        if invoice is None or invoice.company_id != company_id:
            raise InvoiceNotFoundError(invoice_id)
        return invoice

    def _compute(self, company_id: UUID, request: InvoiceRequest) -> InvoiceTotals:
        company = self._chart.company(company_id)
        party = self._chart.ledger(company_id, request.party_ledger_id)
        self._chart.ledger(company_id, request.account_ledger_id)
        try:
            totals = compute_invoice(
                request.items, request.discount_percent, company.state, party.state,
            )
        except (ValueError, TypeError) as exc:
            raise InvalidInvoiceError(str(exc)) from exc
        if totals.grand_total <= ZERO:
            raise InvalidInvoiceError(f"grand total must be positive, got {totals.grand_total}")
        return totals

    def _invoice_entries(
        self,
        company_id: UUID,
        request: InvoiceRequest,
        totals: InvoiceTotals,
        direction: PostingDirection,
    ) -> list[EntrySpec]:
        entries = [
            EntrySpec(
                ledger_id=request.party_ledger_id,
                amount=totals.grand_total,
                side=direction.party_side,
            ),
        ]
        if totals.net_amount > ZERO:
            entries.append(
                EntrySpec(
                    ledger_id=request.account_ledger_id,
                    amount=totals.net_amount,
                    side=direction.account_side,
                )
            )
        for attr, kind in TAX_LEDGER_KINDS:
            tax_amount = getattr(totals, attr)
            if tax_amount > ZERO:
                entries.append(
                    EntrySpec(
                        ledger_id=self._tax_ledger(company_id, kind).id,
                        amount=tax_amount,
                        side=direction.tax_side,
                    )
                )
        return entries

    def _tax_ledger(self, company_id: UUID, kind: LedgerKind) -> Ledger:
        ledgers = self._chart.ledgers_of_kind(company_id, kind)
        if not ledgers:
            raise TaxLedgerNotFoundError(company_id, kind.value.upper())
        return ledgers[0]

    def _settlement_ledger(
        self,
        company_id: UUID,
        payment_mode: PaymentMode,
        settlement_ledger_id: UUID | None,
    ) -> Ledger:
        if settlement_ledger_id is not None:
            return self._chart.ledger(company_id, settlement_ledger_id)
        kind = SETTLEMENT_KIND_BY_MODE[payment_mode]
        ledgers = self._chart.ledgers_of_kind(company_id, kind)
        if not ledgers:
            raise LedgerNotFoundError(f"{kind.value} settlement ledger")
        return ledgers[0]

    def _next_number(self, company_id: UUID, direction: PostingDirection, invoice_type: InvoiceType) -> str:
        return self.allocate_number(company_id, invoice_type, direction.number_prefix)

    def _number_taken(self, company_id: UUID, invoice_type: InvoiceType, number: str) -> bool:
        return bool(
            self.session.execute(
                select(func.count(InvoiceModel.id)).where(
                    InvoiceModel.company_id == company_id,
                    InvoiceModel.invoice_type == invoice_type,
                    InvoiceModel.invoice_number == number,
                )
            ).scalar_one()
        )

    def _check_number_free(self, company_id: UUID, invoice_type: InvoiceType, number: str) -> None:
        if self._number_taken(company_id, invoice_type, number):
            raise InvalidInvoiceError(f"{invoice_type.value} number {number} already exists")

    @staticmethod
    def _narration(request: InvoiceRequest, number: str) -> str:
        label = request.invoice_type.value.replace("_", " ").title()
        if request.original_invoice_number:
            return f"{label} {number} against {request.original_invoice_number}"
        return f"{label} {number}"

    @staticmethod
    def _apply_request(
        invoice: InvoiceModel,
        request: InvoiceRequest,
        totals: InvoiceTotals,
        actor_id: UUID,
    ) -> None:
        invoice.invoice_date = request.invoice_date
        invoice.due_date = request.due_date
        invoice.party_ledger_id = request.party_ledger_id
        invoice.account_ledger_id = request.account_ledger_id
        invoice.discount_percent = request.discount_percent
        invoice.original_invoice_number = request.original_invoice_number
        invoice.original_invoice_date = request.original_invoice_date
        invoice.notes = request.notes
        invoice.subtotal = totals.subtotal
        invoice.cgst_total = totals.cgst_total
        invoice.sgst_total = totals.sgst_total
        invoice.igst_total = totals.igst_total
        invoice.tax_total = totals.tax_total
        invoice.discount_amount = totals.discount_amount
        invoice.grand_total = totals.grand_total
        invoice.is_interstate = totals.is_interstate
        invoice.items = [
            InvoiceItemModel(
                line_seq=line_seq,
                item_id=line.line.item_id,
                description=line.line.description,
                quantity=line.line.quantity,
                rate=line.line.rate,
                tax_rate_percent=line.line.tax_rate_percent,
                discount_percent=line.line.discount_percent,
                amount=line.amount,
                discount_amount=line.discount_amount,
                taxable_amount=line.taxable_amount,
                cgst=line.cgst,
                sgst=line.sgst,
                igst=line.igst,
                created_by_id=actor_id,
            )
            for line_seq, line in enumerate(totals.lines, start=1)
        ]

    def _refresh_payment_state(self, invoice: InvoiceModel, paid_amount: Decimal | None = None) -> None:
        if paid_amount is None:
            paid_amount = sum((p.amount for p in invoice.payments), ZERO)
        outstanding = max(invoice.grand_total - paid_amount, ZERO)
        invoice.paid_amount = paid_amount
        invoice.outstanding_amount = outstanding
        invoice.payment_status = payment_status_for(paid_amount, outstanding, self._tolerance)

    def _remove_payment(self, company_id: UUID, payment: PaymentModel, actor_id: UUID) -> None:
        invoice = payment.invoice
        payment_id, voucher_id, amount = payment.id, payment.voucher_id, payment.amount
        self.session.delete(payment)
        self.session.flush()
        self.session.expire(invoice, ["payments"])
        self._ledger.delete(company_id, voucher_id, actor_id)
        logger.info(
            "payment_removed",
            extra={"payment_id": str(payment_id), "amount": str(amount)},
        )

    def _move_stock(self, company_id: UUID, lines, sign: int) -> None:
        for line in lines:
            if line.item_id is not None:
                self._stock.adjust_stock(company_id, line.item_id, sign * Decimal(line.quantity))
