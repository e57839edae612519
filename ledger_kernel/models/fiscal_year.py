"""
Module: ledger_kernel.models.fiscal_year
Responsibility: ORM persistence for financial years -- the period-control
    boundary for voucher posting.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - A closed year rejects new, edited and deleted vouchers dated within
      its range (PeriodService.validate_date_open).
    - At most one year per company is active (PeriodService.activate_year).
    - Years of one company never overlap (PeriodService.create_year).

Failure modes:
    - ClosedPeriodError on writes into a closed year.
    - PeriodOverlapError on overlapping date ranges.

Audit relevance:
    closed_at / closed_by_id record when and by whom the books were closed.
"""

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase, UUIDString


class FinancialYear(TrackedBase):
    """
    A company's accounting year.

    Guarantees:
        - start_date <= end_date.
        - is_closed and is_active are never both true.
    """

    __tablename__ = "financial_years"

    __table_args__ = (
        Index("idx_financial_year_company_dates", "company_id", "start_date", "end_date"),
    )

    company_id: Mapped[UUID] = mapped_column(ForeignKey("companies.id"), nullable=False)

    name: Mapped[str] = mapped_column(String(50), nullable=False)

    start_date: Mapped[date] = mapped_column(nullable=False)

    end_date: Mapped[date] = mapped_column(nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    is_closed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    closed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    closed_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    def __repr__(self) -> str:
        return f"<FinancialYear {self.name}: {self.start_date} to {self.end_date}>"

    def contains_date(self, check_date: date) -> bool:
        """True when check_date falls inside this year (inclusive)."""
        return self.start_date <= check_date <= self.end_date
