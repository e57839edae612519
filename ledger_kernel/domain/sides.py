"""
Sides -- Dr/Cr conventions and group classification.

Responsibility:
    The one place where balance-sign logic lives.  Every service, selector
    and report converts between signed amounts and (amount, side) pairs
    through these helpers instead of comparing strings.

Architecture position:
    Kernel > Domain -- pure, zero I/O.

Invariants enforced:
    - NATURAL_SIDE: Asset and Expense groups are naturally Dr;
      Liability, Income and Equity groups are naturally Cr.
    - Internally every balance is a *net debit* Decimal:
      positive means a debit balance, negative a credit balance.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum


class GroupType(str, Enum):
    """Classification of a ledger group."""

    ASSET = "Asset"
    LIABILITY = "Liability"
    INCOME = "Income"
    EXPENSE = "Expense"
    EQUITY = "Equity"


class EntrySide(str, Enum):
    """Side of a voucher entry or balance."""

    DR = "Dr"
    CR = "Cr"

    @property
    def opposite(self) -> EntrySide:
        return EntrySide.CR if self is EntrySide.DR else EntrySide.DR


NATURAL_SIDE: dict[GroupType, EntrySide] = {
    GroupType.ASSET: EntrySide.DR,
    GroupType.EXPENSE: EntrySide.DR,
    GroupType.LIABILITY: EntrySide.CR,
    GroupType.INCOME: EntrySide.CR,
    GroupType.EQUITY: EntrySide.CR,
}


def natural_side(group_type: GroupType) -> EntrySide:
    """Side on which a ledger of this group type normally carries a balance."""
    return NATURAL_SIDE[group_type]


def signed(amount: Decimal, side: EntrySide) -> Decimal:
    """Convert an (amount, side) pair to a net-debit signed amount."""
    return amount if side == EntrySide.DR else -amount


def split_signed(net_debit: Decimal, group_type: GroupType) -> tuple[Decimal, EntrySide]:
    """
    Convert a net-debit amount to (absolute amount, side).

    A zero balance is reported on the group's natural side.
    """
    if net_debit > 0:
        return net_debit, EntrySide.DR
    if net_debit < 0:
        return -net_debit, EntrySide.CR
    return Decimal("0"), natural_side(group_type)


def natural_amount(net_debit: Decimal, group_type: GroupType) -> Decimal:
    """
    Balance measured in the group's natural direction.

    Positive when the ledger carries a balance on its natural side,
    negative when it runs against it.
    """
    return net_debit if natural_side(group_type) == EntrySide.DR else -net_debit
