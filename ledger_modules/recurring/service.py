"""
Recurring Invoice Service (``ledger_modules.recurring.service``).

Responsibility
--------------
Stores recurring invoice templates and, when the external scheduler says
one is due, materializes it as a concrete invoice through
``InvoicePoster``.

Architecture position
---------------------
**Modules layer** -- thin glue.  Deciding *when* a template is due is the
scheduler's job; ``list_due`` is a read helper for it and triggers
nothing.

Invariants enforced
-------------------
* Posting the invoice and advancing the template commit together.
* Generated invoices are never modified by later firings.
* Numbers come from a locked per-company sequence (``<prefix>-<n>``),
  never from counting existing invoices.

Failure modes
-------------
* ``TemplateNotFoundError``.
* ``TemplateInactiveError`` -- inactive template, or one past its end
  date (which is deactivated first).
* Anything ``InvoicePoster.create`` raises, after rollback.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Sequence
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from ledger_engines.invoice_calculator import LineInput, validate_line
from ledger_kernel.db.types import ZERO
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.exceptions import (
    InvalidInvoiceError,
    TemplateInactiveError,
    TemplateNotFoundError,
)
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.services.base import BaseService
from ledger_kernel.services.chart_service import ChartOfAccountsService
from ledger_modules.invoicing.models import InvoiceRequest, InvoiceType
from ledger_modules.invoicing.service import InvoicePoster
from ledger_modules.recurring.models import (
    FireResult,
    Frequency,
    RecurringTemplateInfo,
    TemplateItemSpec,
    add_months,
)
from ledger_modules.recurring.orm import RecurringTemplateItemModel, RecurringTemplateModel

if TYPE_CHECKING:
    from ledger_config.schema import BooksConfig

logger = get_logger("modules.recurring.service")

DEFAULT_TAX_RATE = Decimal("18")


class RecurringPoster(BaseService):
    """
    Template storage and firing.

    Contract
    --------
    Mutating methods commit with ``auto_commit=True``.  ``fire`` composes
    an ``InvoicePoster(auto_commit=False)`` so the invoice, its voucher and
    the template advance share one transaction.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        auto_commit: bool = True,
        default_tax_rate: Decimal = DEFAULT_TAX_RATE,
        invoice_poster: InvoicePoster | None = None,
    ):
        super().__init__(session, auto_commit)
        self._clock = clock or SystemClock()
        self._default_tax_rate = default_tax_rate
        self._chart = ChartOfAccountsService(session, auto_commit=False)
        self._invoices = invoice_poster or InvoicePoster(session, self._clock, auto_commit=False)

    @classmethod
    def from_books_config(
        cls,
        session: Session,
        config: BooksConfig,
        clock: Clock | None = None,
        auto_commit: bool = True,
    ) -> RecurringPoster:
        """Poster using the configured default GST rate and balance tolerance."""
        logger.info(
            "recurring_poster_configured",
            extra={
                "config_id": config.config_id,
                "default_tax_rate": str(config.gst.default_tax_rate),
            },
        )
        return cls(
            session,
            clock,
            auto_commit=auto_commit,
            default_tax_rate=config.gst.default_tax_rate,
            invoice_poster=InvoicePoster(
                session,
                clock,
                auto_commit=False,
                balance_tolerance=config.posting.balance_tolerance,
            ),
        )

    # =========================================================================
    # Templates
    # =========================================================================

    def create_template(
        self,
        company_id: UUID,
        profile_name: str,
        invoice_type: InvoiceType,
        frequency: Frequency,
        start_date: date,
        party_ledger_id: UUID,
        sales_ledger_id: UUID,
        items: Sequence[TemplateItemSpec],
        actor_id: UUID,
        end_date: date | None = None,
        cron_expression: str | None = None,
        invoice_number_prefix: str = "RINV",
        discount_percent: Decimal = ZERO,
        notes: str | None = None,
    ) -> RecurringTemplateInfo:
        """
        Store a template whose first invoice is due on start_date.

        Raises:
            InvalidInvoiceError: no items, an invalid item, or
                end_date before start_date.
            CompanyNotFoundError, LedgerNotFoundError.
        """
        if not items:
            raise InvalidInvoiceError("a recurring template needs at least one item")
        if end_date is not None and end_date < start_date:
            raise InvalidInvoiceError(f"end_date {end_date} is before start_date {start_date}")

        with LogContext.bind(company_id=company_id, actor_id=actor_id):
            with self._transaction("create_recurring_template", "RecurringTemplate"):
                self._chart.company(company_id)
                self._chart.ledger(company_id, party_ledger_id)
                self._chart.ledger(company_id, sales_ledger_id)

                template = RecurringTemplateModel(
                    company_id=company_id,
                    profile_name=profile_name,
                    invoice_type=InvoiceType(invoice_type),
                    frequency=Frequency(frequency),
                    cron_expression=cron_expression,
                    start_date=start_date,
                    end_date=end_date,
                    next_invoice_date=start_date,
                    party_ledger_id=party_ledger_id,
                    sales_ledger_id=sales_ledger_id,
                    invoice_number_prefix=invoice_number_prefix,
                    discount_percent=discount_percent,
                    notes=notes,
                    is_active=True,
                    created_by_id=actor_id,
                )
                template.items = [
                    self._item_model(line_seq, spec, actor_id)
                    for line_seq, spec in enumerate(items, start=1)
                ]
                self.session.add(template)
                self.session.flush()

            logger.info(
                "recurring_template_created",
                extra={
                    "template_id": str(template.id),
                    "profile_name": profile_name,
                    "frequency": template.frequency.value,
                    "next_invoice_date": str(template.next_invoice_date),
                },
            )
        return RecurringTemplateInfo.from_model(template)

    def set_active(
        self,
        company_id: UUID,
        template_id: UUID,
        is_active: bool,
        actor_id: UUID,
    ) -> RecurringTemplateInfo:
        with self._transaction("set_template_active", "RecurringTemplate", template_id):
            template = self._get_template(template_id, company_id)
            template.is_active = is_active
            template.updated_by_id = actor_id
        logger.info(
            "recurring_template_activation_changed",
            extra={"template_id": str(template_id), "is_active": is_active},
        )
        return RecurringTemplateInfo.from_model(template)

    def get_template(self, company_id: UUID, template_id: UUID) -> RecurringTemplateInfo:
        return RecurringTemplateInfo.from_model(self._get_template(template_id, company_id))

    def list_due(self, company_id: UUID, as_of: date | None = None) -> list[RecurringTemplateInfo]:
        """Active templates with next_invoice_date <= as_of that have not ended."""
        as_of = as_of or self._clock.today()
        rows = self.session.execute(
            select(RecurringTemplateModel)
            .where(
                RecurringTemplateModel.company_id == company_id,
                RecurringTemplateModel.is_active.is_(True),
                RecurringTemplateModel.next_invoice_date <= as_of,
                or_(
                    RecurringTemplateModel.end_date.is_(None),
                    RecurringTemplateModel.end_date >= as_of,
                ),
            )
            .order_by(RecurringTemplateModel.next_invoice_date, RecurringTemplateModel.profile_name)
        ).scalars()
        return [RecurringTemplateInfo.from_model(row) for row in rows]

    # =========================================================================
    # Firing
    # =========================================================================

    def fire(self, template_id: UUID, actor_id: UUID, on_date: date | None = None) -> FireResult:
        """
        Post one invoice from the template and advance its schedule.

        The invoice is dated ``on_date`` or, when omitted, the template's
        next_invoice_date.

        Raises:
            TemplateNotFoundError, TemplateInactiveError, and anything
            InvoicePoster.create raises.
        """
        template = self._get_template(template_id)
        company_id = template.company_id

        with LogContext.bind(company_id=company_id, actor_id=actor_id):
            if not template.is_active:
                logger.warning("recurring_template_inactive", extra={"template_id": str(template_id)})
                raise TemplateInactiveError(template_id, "template is inactive")

            invoice_date = on_date or template.next_invoice_date
            if template.end_date is not None and invoice_date > template.end_date:
                self._expire(template, actor_id)
                raise TemplateInactiveError(template_id, f"template ended on {template.end_date}")

            logger.info(
                "recurring_fire_started",
                extra={"template_id": str(template_id), "invoice_date": str(invoice_date)},
            )
            with self._transaction("fire_recurring_template", "RecurringTemplate", template_id):
                invoice_number = self._invoices.allocate_number(
                    company_id, template.invoice_type, template.invoice_number_prefix,
                )
                invoice = self._invoices.create(
                    company_id,
                    InvoiceRequest(
                        invoice_type=template.invoice_type,
                        invoice_date=invoice_date,
                        party_ledger_id=template.party_ledger_id,
                        account_ledger_id=template.sales_ledger_id,
                        items=tuple(self._line_input(item) for item in template.items),
                        invoice_number=invoice_number,
                        discount_percent=template.discount_percent,
                        due_date=invoice_date,
                        notes=template.notes,
                    ),
                    actor_id,
                )
                template.last_generated_date = invoice_date
                template.next_invoice_date = add_months(
                    template.next_invoice_date, template.frequency.months
                )
                template.updated_by_id = actor_id
                self.session.flush()

            logger.info(
                "recurring_invoice_generated",
                extra={
                    "template_id": str(template_id),
                    "invoice_id": str(invoice.id),
                    "invoice_number": invoice_number,
                    "next_invoice_date": str(template.next_invoice_date),
                },
            )
        return FireResult(
            template_id=template_id,
            invoice_id=invoice.id,
            invoice_number=invoice_number,
            invoice_date=invoice_date,
            next_invoice_date=template.next_invoice_date,
        )

    # =========================================================================
    # Internals
    # =========================================================================

    def _get_template(self, template_id: UUID, company_id: UUID | None = None) -> RecurringTemplateModel:
        template = self.session.get(RecurringTemplateModel, template_id)
        if template is None or (company_id is not None and template.company_id != company_id):
            raise TemplateNotFoundError(template_id)
        return template

    def _expire(self, template: RecurringTemplateModel, actor_id: UUID) -> None:
        with self._transaction("expire_recurring_template", "RecurringTemplate", template.id):
            template.is_active = False
            template.updated_by_id = actor_id
        logger.info(
            "recurring_template_expired",
            extra={"template_id": str(template.id), "end_date": str(template.end_date)},
        )

    def _item_model(
        self,
        line_seq: int,
        spec: TemplateItemSpec,
        actor_id: UUID,
    ) -> RecurringTemplateItemModel:
        tax_rate = self._default_tax_rate if spec.tax_rate_percent is None else spec.tax_rate_percent
        reason = validate_line(
            LineInput(
                quantity=spec.quantity,
                rate=spec.rate,
                tax_rate_percent=tax_rate,
                discount_percent=spec.discount_percent,
            )
        )
        if reason is not None:
            raise InvalidInvoiceError(f"template line {line_seq}: {reason}")
        return RecurringTemplateItemModel(
            line_seq=line_seq,
            item_id=spec.item_id,
            description=spec.description,
            quantity=spec.quantity,
            rate=spec.rate,
            discount_percent=spec.discount_percent,
            tax_rate_percent=tax_rate,
            created_by_id=actor_id,
        )

    @staticmethod
    def _line_input(item: RecurringTemplateItemModel) -> LineInput:
        return LineInput(
            quantity=item.quantity,
            rate=item.rate,
            tax_rate_percent=item.tax_rate_percent,
            discount_percent=item.discount_percent,
            item_id=item.item_id,
            description=item.description,
        )
