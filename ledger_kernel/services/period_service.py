"""
PeriodService -- financial year lifecycle and posting-date validation.

Responsibility:
    Manages a company's financial years (create, activate, close, reopen,
    delete) and validates that voucher writes do not target a closed year.

Architecture position:
    Kernel > Services -- imperative shell.
    Called by VoucherLedger before every post/replace/delete, and by
    InvoicePoster for the old and new dates of an edited invoice.

Invariants enforced:
    - Closed-year enforcement: no voucher may be created, edited or deleted
      with a date inside a closed year (``validate_date_open``).
    - Exactly one active year per company after ``activate_year``.
    - Years of one company never overlap.
    - Returns frozen ``FinancialYearInfo`` DTOs, never ORM rows.

Failure modes:
    - ClosedPeriodError: Date falls in a closed year.
    - PeriodOverlapError: New year overlaps an existing one.
    - PeriodAlreadyClosedError: Closing a closed year.
    - PeriodActivationError: Activating a closed year.
    - PeriodInUseError: Deleting a year that still holds vouchers.
    - FinancialYearNotFoundError: Unknown id or another company's year.

Audit relevance:
    Year creation, activation and close are logged with actor_id.
    Rejected writes into closed years are logged at WARNING.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import FinancialYearInfo
from ledger_kernel.exceptions import (
    ClosedPeriodError,
    FinancialYearNotFoundError,
    PeriodActivationError,
    PeriodAlreadyClosedError,
    PeriodInUseError,
    PeriodOverlapError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.fiscal_year import FinancialYear
from ledger_kernel.models.voucher import Voucher
from ledger_kernel.services.base import BaseService

logger = get_logger("services.period")


class PeriodService(BaseService):
    """
    Service for managing the financial year lifecycle.

    Contract:
        Lifecycle methods take a company id (tenant scope) and return
        frozen ``FinancialYearInfo`` DTOs.  Validation methods raise typed
        exceptions.

    Guarantees:
        - ``validate_date_open`` treats dates outside every year as open.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        auto_commit: bool = True,
    ):
        super().__init__(session, auto_commit)
        self._clock = clock or SystemClock()

    def create_year(
        self,
        company_id: UUID,
        name: str,
        start_date: date,
        end_date: date,
        actor_id: UUID,
    ) -> FinancialYearInfo:
        """
        Create a financial year.

        Raises:
            ValueError: start_date after end_date.
            PeriodOverlapError: Range overlaps an existing year.
        """
        if start_date > end_date:
            raise ValueError(
                f"start_date ({start_date}) must be on or before end_date ({end_date})"
            )

        with self._transaction("create_year"):
            overlapping = self.session.execute(
                select(FinancialYear).where(
                    FinancialYear.company_id == company_id,
                    FinancialYear.start_date <= end_date,
                    FinancialYear.end_date >= start_date,
                )
            ).scalars().first()
            if overlapping is not None:
                raise PeriodOverlapError(name, overlapping.name)

            year = FinancialYear(
                company_id=company_id,
                name=name,
                start_date=start_date,
                end_date=end_date,
                created_by_id=actor_id,
            )
            self.session.add(year)

        logger.info(
            "financial_year_created",
            extra={
                "company_id": str(company_id),
                "year_name": name,
                "start_date": str(start_date),
                "end_date": str(end_date),
                "actor_id": str(actor_id),
            },
        )
        return FinancialYearInfo.from_model(year)

    def activate_year(self, company_id: UUID, year_id: UUID, actor_id: UUID) -> FinancialYearInfo:
        """
        Make one year the company's active year, deactivating the others.

        Raises:
            PeriodActivationError: The year is closed.
        """
        with self._transaction("activate_year"):
            year = self._get_year_for_update(company_id, year_id)
            if year.is_closed:
                raise PeriodActivationError(year.name)

            others = self.session.execute(
                select(FinancialYear).where(
                    FinancialYear.company_id == company_id,
                    FinancialYear.id != year_id,
                    FinancialYear.is_active.is_(True),
                )
            ).scalars()
            for other in others:
                other.is_active = False
                other.updated_by_id = actor_id

            year.is_active = True
            year.updated_by_id = actor_id

        logger.info(
            "financial_year_activated",
            extra={"company_id": str(company_id), "year_name": year.name},
        )
        return FinancialYearInfo.from_model(year)

    def close_year(self, company_id: UUID, year_id: UUID, actor_id: UUID) -> FinancialYearInfo:
        """
        Close a year.  Closing also deactivates it.

        Postconditions: Any later post/replace/delete dated inside the year
            raises ClosedPeriodError.

        Raises:
            PeriodAlreadyClosedError: The year is already closed.
        """
        with self._transaction("close_year"):
            year = self._get_year_for_update(company_id, year_id)
            if year.is_closed:
                raise PeriodAlreadyClosedError(year.name)
            year.is_closed = True
            year.is_active = False
            year.closed_at = self._clock.now()
            year.closed_by_id = actor_id
            year.updated_by_id = actor_id

        logger.info(
            "financial_year_closed",
            extra={
                "company_id": str(company_id),
                "year_name": year.name,
                "actor_id": str(actor_id),
            },
        )
        return FinancialYearInfo.from_model(year)

    def reopen_year(self, company_id: UUID, year_id: UUID, actor_id: UUID) -> FinancialYearInfo:
        with self._transaction("reopen_year"):
            year = self._get_year_for_update(company_id, year_id)
            year.is_closed = False
            year.closed_at = None
            year.closed_by_id = None
            year.updated_by_id = actor_id

        logger.info(
            "financial_year_reopened",
            extra={"company_id": str(company_id), "year_name": year.name},
        )
        return FinancialYearInfo.from_model(year)

    def delete_year(self, company_id: UUID, year_id: UUID) -> None:
        """
        Delete a year that holds no vouchers.

        Raises:
            PeriodInUseError: Vouchers are dated inside the year.
        """
        with self._transaction("delete_year"):
            year = self._get_year_for_update(company_id, year_id)
            voucher_count = self.session.execute(
                select(func.count(Voucher.id)).where(
                    Voucher.company_id == company_id,
                    Voucher.voucher_date >= year.start_date,
                    Voucher.voucher_date <= year.end_date,
                )
            ).scalar_one()
            if voucher_count:
                raise PeriodInUseError(year.name, voucher_count)
            self.session.delete(year)

        logger.info(
            "financial_year_deleted",
            extra={"company_id": str(company_id), "year_id": str(year_id)},
        )

    # -- queries -----------------------------------------------------------

    def get_year(self, company_id: UUID, year_id: UUID) -> FinancialYearInfo:
        return FinancialYearInfo.from_model(self._get_year(company_id, year_id))

    def get_active_year(self, company_id: UUID) -> FinancialYearInfo | None:
        year = self.session.execute(
            select(FinancialYear).where(
                FinancialYear.company_id == company_id,
                FinancialYear.is_active.is_(True),
            )
        ).scalars().first()
        return FinancialYearInfo.from_model(year) if year else None

    def list_years(self, company_id: UUID) -> list[FinancialYearInfo]:
        rows = self.session.execute(
            select(FinancialYear)
            .where(FinancialYear.company_id == company_id)
            .order_by(FinancialYear.start_date)
        ).scalars()
        return [FinancialYearInfo.from_model(row) for row in rows]

    def validate_date_open(self, company_id: UUID, on_date: date) -> None:
        """
        Raise if a closed year covers on_date.

        Raises:
            ClosedPeriodError: on_date falls inside a closed year.
        """
        closed = self.session.execute(
            select(FinancialYear).where(
                FinancialYear.company_id == company_id,
                FinancialYear.is_closed.is_(True),
                FinancialYear.start_date <= on_date,
                FinancialYear.end_date >= on_date,
            )
        ).scalars().first()
        if closed is not None:
            logger.warning(
                "closed_period_violation",
                extra={
                    "company_id": str(company_id),
                    "year_name": closed.name,
                    "on_date": str(on_date),
                },
            )
            raise ClosedPeriodError(closed.name, on_date)

    def is_date_open(self, company_id: UUID, on_date: date) -> bool:
        try:
            self.validate_date_open(company_id, on_date)
        except ClosedPeriodError:
            return False
        return True

    def _get_year(self, company_id: UUID, year_id: UUID) -> FinancialYear:
        year = self.session.get(FinancialYear, year_id)
        if year is None or year.company_id != company_id:
            raise FinancialYearNotFoundError(year_id)
        return year

    def _get_year_for_update(self, company_id: UUID, year_id: UUID) -> FinancialYear:
        year = self.session.execute(
            select(FinancialYear)
            .where(FinancialYear.id == year_id, FinancialYear.company_id == company_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if year is None:
            raise FinancialYearNotFoundError(year_id)
        return year
