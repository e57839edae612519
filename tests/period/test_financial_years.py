"""
Tests for PeriodService: financial year lifecycle and the closed-period guard.
"""

from datetime import date
from decimal import Decimal

import pytest

from ledger_kernel.domain.dtos import EntrySpec
from ledger_kernel.exceptions import (
    FinancialYearNotFoundError,
    PeriodActivationError,
    PeriodAlreadyClosedError,
    PeriodInUseError,
    PeriodOverlapError,
)
from ledger_kernel.models.voucher import VoucherType


@pytest.fixture
def fy_2024(period_service, books, test_actor_id):
    return period_service.create_year(
        books.company_id, "FY 2024-25", date(2024, 4, 1), date(2025, 3, 31), test_actor_id,
    )


class TestCreateYear:

    def test_create(self, fy_2024):
        assert fy_2024.name == "FY 2024-25"
        assert not fy_2024.is_closed
        assert not fy_2024.is_active

    def test_inverted_range_rejected(self, period_service, books, test_actor_id):
        with pytest.raises(ValueError):
            period_service.create_year(
                books.company_id, "Bad", date(2025, 1, 1), date(2024, 1, 1), test_actor_id,
            )

    def test_overlap_rejected(self, period_service, books, fy_2024, test_actor_id):
        with pytest.raises(PeriodOverlapError):
            period_service.create_year(
                books.company_id, "FY overlap", date(2025, 1, 1), date(2025, 12, 31), test_actor_id,
            )

    def test_years_listed_in_date_order(self, period_service, books, fy_2024, test_actor_id):
        period_service.create_year(
            books.company_id, "FY 2023-24", date(2023, 4, 1), date(2024, 3, 31), test_actor_id,
        )

        names = [y.name for y in period_service.list_years(books.company_id)]
        assert names == ["FY 2023-24", "FY 2024-25"]


class TestActivation:

    def test_only_one_active_year(self, period_service, books, fy_2024, test_actor_id):
        fy_2025 = period_service.create_year(
            books.company_id, "FY 2025-26", date(2025, 4, 1), date(2026, 3, 31), test_actor_id,
        )

        period_service.activate_year(books.company_id, fy_2024.id, test_actor_id)
        period_service.activate_year(books.company_id, fy_2025.id, test_actor_id)

        assert period_service.get_active_year(books.company_id).id == fy_2025.id
        assert not period_service.get_year(books.company_id, fy_2024.id).is_active

    def test_closed_year_cannot_be_activated(self, period_service, books, fy_2024, test_actor_id):
        period_service.close_year(books.company_id, fy_2024.id, test_actor_id)

        with pytest.raises(PeriodActivationError):
            period_service.activate_year(books.company_id, fy_2024.id, test_actor_id)


class TestClosing:

    def test_close_marks_year_and_blocks_dates(
        self, period_service, books, fy_2024, test_actor_id, deterministic_clock,
    ):
        closed = period_service.close_year(books.company_id, fy_2024.id, test_actor_id)

        assert closed.is_closed
        assert not period_service.is_date_open(books.company_id, date(2024, 6, 1))
        assert period_service.is_date_open(books.company_id, date(2025, 4, 1))

    def test_close_twice_rejected(self, period_service, books, fy_2024, test_actor_id):
        period_service.close_year(books.company_id, fy_2024.id, test_actor_id)

        with pytest.raises(PeriodAlreadyClosedError):
            period_service.close_year(books.company_id, fy_2024.id, test_actor_id)

    def test_reopen(self, period_service, books, fy_2024, test_actor_id):
        period_service.close_year(books.company_id, fy_2024.id, test_actor_id)

        reopened = period_service.reopen_year(books.company_id, fy_2024.id, test_actor_id)

        assert not reopened.is_closed
        assert period_service.is_date_open(books.company_id, date(2024, 6, 1))

    def test_dates_outside_every_year_are_open(self, period_service, books):
        assert period_service.is_date_open(books.company_id, date(1999, 1, 1))


class TestDeleteYear:

    def test_delete_empty_year(self, period_service, books, fy_2024):
        period_service.delete_year(books.company_id, fy_2024.id)

        with pytest.raises(FinancialYearNotFoundError):
            period_service.get_year(books.company_id, fy_2024.id)

    def test_year_with_vouchers_cannot_be_deleted(
        self, period_service, voucher_ledger, books, fy_2024, test_actor_id,
    ):
        voucher_ledger.post(
            books.company_id,
            VoucherType.JOURNAL,
            date(2024, 5, 1),
            [EntrySpec.debit(books.cash_id, Decimal("1")), EntrySpec.credit(books.capital_id, Decimal("1"))],
            test_actor_id,
        )

        with pytest.raises(PeriodInUseError) as exc_info:
            period_service.delete_year(books.company_id, fy_2024.id)

        assert exc_info.value.voucher_count == 1
