"""
Pytest fixtures for the ledger test suite.

Provides:
- A fresh in-memory SQLite database per test
- Service fixtures wired to a deterministic clock
- A standard chart of accounts (cash, bank, sales, purchases, GST and
  party ledgers) for module tests

Environment Variables:
- DATABASE_URL: run against another database (e.g. PostgreSQL) instead of
  in-memory SQLite.  Tables are created and dropped around every test.
"""

import json
import logging
import os
from dataclasses import dataclass
from decimal import Decimal
from io import StringIO
from typing import Generator
from uuid import UUID, uuid4

import pytest
from sqlalchemy.orm import Session

from ledger_kernel.db.engine import build_engine, create_tables, drop_tables
from ledger_kernel.domain.clock import DeterministicClock
from ledger_kernel.domain.sides import EntrySide, GroupType
from ledger_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from ledger_kernel.models.account import LedgerKind
from ledger_kernel.services.chart_service import ChartOfAccountsService
from ledger_kernel.services.period_service import PeriodService
from ledger_kernel.services.voucher_ledger import VoucherLedger
from ledger_modules.banking.service import ReconciliationTracker
from ledger_modules.invoicing.service import InvoicePoster
from ledger_modules.invoicing.stock import OrmStockAdjuster
from ledger_modules.recurring.service import RecurringPoster
from ledger_modules.reporting.service import ReportEngine

# Test actor ID for all test operations
TEST_ACTOR_ID = uuid4()

DEFAULT_SQLITE_URL = "sqlite://"


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture ledger_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, voucher_ledger):
            voucher_ledger.post(...)
            logs = captured_logs()
            assert any(r["message"] == "voucher_posted" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("ledger_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "postgres: mark test as requiring PostgreSQL"
    )


def get_database_url() -> str:
    return os.environ.get("DATABASE_URL", DEFAULT_SQLITE_URL)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture(scope="function")
def engine():
    """Engine with every kernel and module table created."""
    db_engine = build_engine(get_database_url())
    create_tables(db_engine)
    yield db_engine
    drop_tables(db_engine)
    db_engine.dispose()


@pytest.fixture(scope="function")
def session(engine) -> Generator[Session, None, None]:
    """Provide a database session for testing.

    Services commit for real; isolation comes from the per-test engine.
    """
    sess = Session(bind=engine, expire_on_commit=False)
    yield sess
    sess.close()


@pytest.fixture
def test_actor_id() -> UUID:
    """Provide a consistent test actor ID."""
    return TEST_ACTOR_ID


# Clock fixtures


@pytest.fixture
def deterministic_clock():
    """Provide a deterministic clock for testing."""
    return DeterministicClock()


# =============================================================================
# Service fixtures
# =============================================================================


@pytest.fixture
def chart_service(session: Session) -> ChartOfAccountsService:
    return ChartOfAccountsService(session)


@pytest.fixture
def period_service(session: Session, deterministic_clock) -> PeriodService:
    return PeriodService(session, deterministic_clock)


@pytest.fixture
def voucher_ledger(session: Session, deterministic_clock) -> VoucherLedger:
    return VoucherLedger(session, deterministic_clock)


@pytest.fixture
def stock(session: Session) -> OrmStockAdjuster:
    return OrmStockAdjuster(session)


@pytest.fixture
def invoice_poster(session: Session, deterministic_clock, stock) -> InvoicePoster:
    return InvoicePoster(session, deterministic_clock, stock=stock)


@pytest.fixture
def report_engine(session: Session, deterministic_clock) -> ReportEngine:
    return ReportEngine(session, deterministic_clock)


@pytest.fixture
def reconciliation_tracker(session: Session) -> ReconciliationTracker:
    return ReconciliationTracker(session)


@pytest.fixture
def recurring_poster(session: Session, deterministic_clock) -> RecurringPoster:
    return RecurringPoster(session, deterministic_clock)


# =============================================================================
# Test data generators
# =============================================================================


@pytest.fixture
def create_company(chart_service: ChartOfAccountsService, test_actor_id: UUID):
    """Factory fixture to create test companies."""

    def _create_company(name: str = "Acme Traders", state: str | None = "MH", gstin: str | None = None) -> UUID:
        return chart_service.create_company(name, test_actor_id, state=state, gstin=gstin).id

    return _create_company


@pytest.fixture
def create_group(chart_service: ChartOfAccountsService, test_actor_id: UUID):
    """Factory fixture to create ledger groups."""

    def _create_group(company_id: UUID, name: str, group_type: GroupType) -> UUID:
        return chart_service.create_group(company_id, name, group_type, test_actor_id).id

    return _create_group


@pytest.fixture
def create_ledger(chart_service: ChartOfAccountsService, test_actor_id: UUID):
    """Factory fixture to create ledgers."""

    def _create_ledger(
        company_id: UUID,
        group_id: UUID,
        name: str,
        kind: LedgerKind = LedgerKind.GENERAL,
        opening_balance: Decimal = Decimal("0"),
        opening_balance_side: EntrySide = EntrySide.DR,
        state: str | None = None,
        gstin: str | None = None,
    ) -> UUID:
        return chart_service.create_ledger(
            company_id,
            group_id,
            name,
            test_actor_id,
            opening_balance=opening_balance,
            opening_balance_side=opening_balance_side,
            kind=kind,
            state=state,
            gstin=gstin,
        ).id

    return _create_ledger


@dataclass(frozen=True)
class StandardBooks:
    """Ids of the standard chart created by the ``books`` fixture."""

    company_id: UUID
    assets_group_id: UUID
    liabilities_group_id: UUID
    income_group_id: UUID
    expense_group_id: UUID
    equity_group_id: UUID
    cash_id: UUID
    bank_id: UUID
    sales_id: UUID
    purchases_id: UUID
    rent_id: UUID
    cgst_id: UUID
    sgst_id: UUID
    igst_id: UUID
    local_customer_id: UUID
    registered_customer_id: UUID
    outstation_customer_id: UUID
    supplier_id: UUID
    capital_id: UUID


@pytest.fixture
def books(create_company, create_group, create_ledger) -> StandardBooks:
    """
    A company in state MH with one ledger of every kind module tests need.

    Parties:
        local_customer       state MH, no GSTIN (intra-state, B2C)
        registered_customer  state KA, GSTIN    (inter-state, B2B)
        outstation_customer  state DL, no GSTIN (inter-state, B2C)
        supplier             state MH, GSTIN
    """
    company_id = create_company("Acme Traders", state="MH", gstin="27AAACA1111A1Z5")
    assets = create_group(company_id, "Current Assets", GroupType.ASSET)
    liabilities = create_group(company_id, "Current Liabilities", GroupType.LIABILITY)
    income = create_group(company_id, "Sales Accounts", GroupType.INCOME)
    expense = create_group(company_id, "Expenses", GroupType.EXPENSE)
    equity = create_group(company_id, "Capital Account", GroupType.EQUITY)

    return StandardBooks(
        company_id=company_id,
        assets_group_id=assets,
        liabilities_group_id=liabilities,
        income_group_id=income,
        expense_group_id=expense,
        equity_group_id=equity,
        cash_id=create_ledger(company_id, assets, "Cash", kind=LedgerKind.CASH),
        bank_id=create_ledger(company_id, assets, "HDFC Bank", kind=LedgerKind.BANK),
        sales_id=create_ledger(company_id, income, "Sales"),
        purchases_id=create_ledger(company_id, expense, "Purchases"),
        rent_id=create_ledger(company_id, expense, "Rent"),
        cgst_id=create_ledger(company_id, liabilities, "Output CGST", kind=LedgerKind.CGST),
        sgst_id=create_ledger(company_id, liabilities, "Output SGST", kind=LedgerKind.SGST),
        igst_id=create_ledger(company_id, liabilities, "Output IGST", kind=LedgerKind.IGST),
        local_customer_id=create_ledger(
            company_id, assets, "Local Customer", kind=LedgerKind.PARTY, state="MH",
        ),
        registered_customer_id=create_ledger(
            company_id, assets, "Registered Customer", kind=LedgerKind.PARTY,
            state="KA", gstin="29AABCR1234B1Z2",
        ),
        outstation_customer_id=create_ledger(
            company_id, assets, "Outstation Customer", kind=LedgerKind.PARTY, state="DL",
        ),
        supplier_id=create_ledger(
            company_id, liabilities, "Supplier", kind=LedgerKind.PARTY,
            state="MH", gstin="27AABCS9999C1Z7",
        ),
        capital_id=create_ledger(company_id, equity, "Capital"),
    )
