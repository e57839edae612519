"""
Pure financial statement transformation functions.

These functions turn ledger metadata and net-debit balances into the
report dataclasses.  ZERO I/O.  ZERO side effects.

- No database access
- No clock access
- Deterministic: same inputs always produce same outputs

Every ledger passes through ``require_classification`` before it is
counted anywhere; an unclassifiable ledger stops the report instead of
silently dropping out of the totals.
"""

from __future__ import annotations

import dataclasses
from decimal import Decimal
from typing import Iterable, Mapping
from uuid import UUID

from ledger_kernel.db.types import ZERO, round_money
from ledger_kernel.domain.sides import GroupType, natural_amount, split_signed
from ledger_kernel.exceptions import InvalidClassificationError
from ledger_modules.reporting.config import ReportingConfig
from ledger_modules.reporting.models import (
    BalanceSheetReport,
    NetProfitType,
    ProfitAndLossReport,
    ReportMetadata,
    StatementRow,
    TrialBalanceReport,
    TrialBalanceRow,
)

# =========================================================================
# Bridge type: ledger metadata for pure functions
# =========================================================================


@dataclasses.dataclass(frozen=True)
class LedgerSnapshot:
    """
    Ledger metadata needed for classification.

    The service converts ORM ledgers to snapshots before calling any
    function here.  ``group_type`` is None when the ledger's group could
    not be resolved.
    """

    ledger_id: UUID
    name: str
    group_name: str | None
    group_type: GroupType | None
    opening_net_debit: Decimal = ZERO


BALANCE_SHEET_ASSET_TYPES = frozenset({GroupType.ASSET})
BALANCE_SHEET_LIABILITY_TYPES = frozenset({GroupType.LIABILITY, GroupType.EQUITY})
INCOME_TYPES = frozenset({GroupType.INCOME})
EXPENSE_TYPES = frozenset({GroupType.EXPENSE})


# =========================================================================
# Helpers
# =========================================================================


def require_classification(ledger: LedgerSnapshot, expected: str = "one of the five group types") -> GroupType:
    """
    Return the ledger's group type or raise.

    Raises:
        InvalidClassificationError: missing group or unknown group type.
    """
    if not isinstance(ledger.group_type, GroupType):
        raise InvalidClassificationError(ledger.ledger_id, ledger.group_type, expected)
    return ledger.group_type


def _statement_row(ledger: LedgerSnapshot, net_debit: Decimal, places: int) -> StatementRow:
    group_type = require_classification(ledger)
    _, side = split_signed(net_debit, group_type)
    return StatementRow(
        ledger_id=ledger.ledger_id,
        ledger_name=ledger.name,
        group_name=ledger.group_name or "",
        group_type=group_type,
        amount=round_money(natural_amount(net_debit, group_type), places),
        side=side,
    )


def _sorted(rows: Iterable[StatementRow]) -> tuple[StatementRow, ...]:
    return tuple(sorted(rows, key=lambda r: (r.group_name, r.ledger_name)))


def _total(rows: Iterable[StatementRow]) -> Decimal:
    return sum((r.amount for r in rows), ZERO)


def closing_net_debits(
    ledgers: Iterable[LedgerSnapshot],
    movements: Mapping[UUID, Decimal],
) -> dict[UUID, Decimal]:
    """Opening balance plus net entry movement, per ledger."""
    return {
        ledger.ledger_id: ledger.opening_net_debit + movements.get(ledger.ledger_id, ZERO)
        for ledger in ledgers
    }


# =========================================================================
# 1. TRIAL BALANCE
# =========================================================================


def build_trial_balance(
    ledgers: Iterable[LedgerSnapshot],
    net_debits: Mapping[UUID, Decimal],
    config: ReportingConfig,
    metadata: ReportMetadata,
) -> TrialBalanceReport:
    """
    One row per ledger with a closing balance, in its Dr or Cr column.

    Σ Dr == Σ Cr holds by construction when every voucher was balanced
    and opening balances net to zero.
    """
    places = config.display_precision
    rows: list[TrialBalanceRow] = []
    for ledger in ledgers:
        group_type = require_classification(ledger)
        amount, side = split_signed(net_debits.get(ledger.ledger_id, ZERO), group_type)
        amount = round_money(amount, places)
        if amount == ZERO and not config.include_zero_balances:
            continue
        rows.append(
            TrialBalanceRow(
                ledger_id=ledger.ledger_id,
                ledger_name=ledger.name,
                group_name=ledger.group_name or "",
                group_type=group_type,
                closing_balance=amount,
                side=side,
            )
        )

    rows.sort(key=lambda r: (r.group_name, r.ledger_name))
    total_debit = sum((r.debit for r in rows), ZERO)
    total_credit = sum((r.credit for r in rows), ZERO)
    difference = total_debit - total_credit
    return TrialBalanceReport(
        metadata=metadata,
        rows=tuple(rows),
        total_debit=total_debit,
        total_credit=total_credit,
        difference=difference,
        is_balanced=abs(difference) <= config.balance_tolerance,
    )


# =========================================================================
# 2. PROFIT AND LOSS
# =========================================================================


def build_profit_and_loss(
    ledgers: Iterable[LedgerSnapshot],
    closing: Mapping[UUID, Decimal],
    opening: Mapping[UUID, Decimal],
    config: ReportingConfig,
    metadata: ReportMetadata,
) -> ProfitAndLossReport:
    """
    Income and expense for a period.

    Each ledger contributes balance(to) - balance(from - 1), so opening
    balances and earlier periods cancel out.
    """
    places = config.display_precision
    income: list[StatementRow] = []
    expenses: list[StatementRow] = []
    for ledger in ledgers:
        group_type = require_classification(ledger)
        if group_type not in INCOME_TYPES and group_type not in EXPENSE_TYPES:
            continue
        delta = closing.get(ledger.ledger_id, ZERO) - opening.get(ledger.ledger_id, ZERO)
        row = _statement_row(ledger, delta, places)
        if row.amount == ZERO and not config.include_zero_balances:
            continue
        (income if group_type in INCOME_TYPES else expenses).append(row)

    total_income = _total(income)
    total_expenses = _total(expenses)
    net_profit = total_income - total_expenses
    return ProfitAndLossReport(
        metadata=metadata,
        income=_sorted(income),
        expenses=_sorted(expenses),
        total_income=total_income,
        total_expenses=total_expenses,
        net_profit=net_profit,
        net_profit_type=NetProfitType.PROFIT if net_profit >= ZERO else NetProfitType.LOSS,
    )


# =========================================================================
# 3. BALANCE SHEET
# =========================================================================


def build_balance_sheet(
    ledgers: Iterable[LedgerSnapshot],
    net_debits: Mapping[UUID, Decimal],
    config: ReportingConfig,
    metadata: ReportMetadata,
) -> BalanceSheetReport:
    """
    Assets vs Liability + Equity closing balances as of a date.

    Income and expense ledgers are not listed; their net is reported as
    ``current_period_profit`` and shows up in ``difference``.
    """
    places = config.display_precision
    assets: list[StatementRow] = []
    liabilities: list[StatementRow] = []
    profit = ZERO
    for ledger in ledgers:
        group_type = require_classification(ledger)
        row = _statement_row(ledger, net_debits.get(ledger.ledger_id, ZERO), places)
        if group_type in INCOME_TYPES:
            profit += row.amount
            continue
        if group_type in EXPENSE_TYPES:
            profit -= row.amount
            continue
        if row.amount == ZERO and not config.include_zero_balances:
            continue
        if group_type in BALANCE_SHEET_ASSET_TYPES:
            assets.append(row)
        elif group_type in BALANCE_SHEET_LIABILITY_TYPES:
            liabilities.append(row)

    total_assets = _total(assets)
    total_liabilities = _total(liabilities)
    return BalanceSheetReport(
        metadata=metadata,
        assets=_sorted(assets),
        liabilities=_sorted(liabilities),
        total_assets=total_assets,
        total_liabilities=total_liabilities,
        difference=total_assets - total_liabilities,
        current_period_profit=profit,
    )
