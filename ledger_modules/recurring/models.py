"""
Recurring Invoice Domain Models (``ledger_modules.recurring.models``).

Frequencies, the month-arithmetic used to advance a template, and the
frozen template snapshot returned by ``RecurringPoster``.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from ledger_modules.invoicing.models import InvoiceType

if TYPE_CHECKING:
    from ledger_modules.recurring.orm import RecurringTemplateModel


class Frequency(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"

    @property
    def months(self) -> int:
        return FREQUENCY_MONTHS[self]


FREQUENCY_MONTHS: dict[Frequency, int] = {
    Frequency.MONTHLY: 1,
    Frequency.QUARTERLY: 3,
    Frequency.YEARLY: 12,
}


def add_months(start: date, months: int) -> date:
    """Shift a date by whole months, clamping to the target month's last day."""
    index = start.month - 1 + months
    year = start.year + index // 12
    month = index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(start.day, last_day))


@dataclass(frozen=True)
class TemplateItemInfo:
    item_id: UUID | None
    description: str | None
    quantity: Decimal
    rate: Decimal
    discount_percent: Decimal
    tax_rate_percent: Decimal


@dataclass(frozen=True)
class RecurringTemplateInfo:
    id: UUID
    company_id: UUID
    profile_name: str
    invoice_type: InvoiceType
    frequency: Frequency
    start_date: date
    end_date: date | None
    next_invoice_date: date
    last_generated_date: date | None
    party_ledger_id: UUID
    sales_ledger_id: UUID
    invoice_number_prefix: str
    discount_percent: Decimal
    cron_expression: str | None
    is_active: bool
    notes: str | None = None
    items: tuple[TemplateItemInfo, ...] = field(default_factory=tuple)

    @classmethod
    def from_model(cls, model: RecurringTemplateModel) -> RecurringTemplateInfo:
        return cls(
            id=model.id,
            company_id=model.company_id,
            profile_name=model.profile_name,
            invoice_type=model.invoice_type,
            frequency=model.frequency,
            start_date=model.start_date,
            end_date=model.end_date,
            next_invoice_date=model.next_invoice_date,
            last_generated_date=model.last_generated_date,
            party_ledger_id=model.party_ledger_id,
            sales_ledger_id=model.sales_ledger_id,
            invoice_number_prefix=model.invoice_number_prefix,
            discount_percent=model.discount_percent,
            cron_expression=model.cron_expression,
            is_active=model.is_active,
            notes=model.notes,
            items=tuple(
                TemplateItemInfo(
                    item_id=i.item_id,
                    description=i.description,
                    quantity=i.quantity,
                    rate=i.rate,
                    discount_percent=i.discount_percent,
                    tax_rate_percent=i.tax_rate_percent,
                )
                for i in model.items
            ),
        )


@dataclass(frozen=True)
class FireResult:
    """What one firing produced."""

    template_id: UUID
    invoice_id: UUID
    invoice_number: str
    invoice_date: date
    next_invoice_date: date


@dataclass(frozen=True)
class TemplateItemSpec:
    """
    One requested template line.

    ``tax_rate_percent=None`` takes the configured default GST rate.
    """

    quantity: Decimal
    rate: Decimal
    discount_percent: Decimal = Decimal("0")
    tax_rate_percent: Decimal | None = None
    item_id: UUID | None = None
    description: str | None = None
