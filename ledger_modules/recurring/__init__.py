"""
Recurring Invoice Module (``ledger_modules.recurring``).

Invoice templates fired by an external scheduler.  Firing posts a
concrete invoice through ``InvoicePoster`` and advances the template.
"""

from ledger_modules.recurring.models import (
    FireResult,
    Frequency,
    RecurringTemplateInfo,
    TemplateItemInfo,
    TemplateItemSpec,
    add_months,
)
from ledger_modules.recurring.service import RecurringPoster

__all__ = [
    "FireResult",
    "Frequency",
    "RecurringPoster",
    "RecurringTemplateInfo",
    "TemplateItemInfo",
    "TemplateItemSpec",
    "add_months",
]
