"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Immutable structures that cross the service boundary: EntrySpec (input
    to VoucherLedger.post/replace) and the *Info read models returned by
    services and selectors.  Callers never receive live ORM objects.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    from_model() class methods are boundary converters invoked only from
    the service and selector layers.

Invariants enforced:
    - EntrySpec.amount is a positive Decimal (floats rejected).

Failure modes:
    - InvalidAmountError on non-positive EntrySpec amounts.
    - TypeError on float amounts.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from ledger_kernel.domain.sides import EntrySide, GroupType
from ledger_kernel.exceptions import InvalidAmountError

if TYPE_CHECKING:
    from ledger_kernel.models.account import Group as GroupModel
    from ledger_kernel.models.account import Ledger as LedgerModel
    from ledger_kernel.models.company import Company as CompanyModel
    from ledger_kernel.models.fiscal_year import FinancialYear as FinancialYearModel
    from ledger_kernel.models.voucher import Voucher as VoucherModel


@dataclass(frozen=True)
class EntrySpec:
    """
    One requested voucher entry.

    Instrument fields are optional cheque/transfer references carried onto
    the entry for bank reconciliation.
    """

    ledger_id: UUID
    amount: Decimal
    side: EntrySide
    instrument_number: str | None = None
    instrument_date: date | None = None

    def __post_init__(self) -> None:
        if isinstance(self.amount, float):
            raise TypeError("EntrySpec.amount must be Decimal, not float")
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, "amount", Decimal(self.amount))
        if self.amount <= 0:
            raise InvalidAmountError(self.amount, "voucher entry")
        object.__setattr__(self, "side", EntrySide(self.side))

    @classmethod
    def debit(cls, ledger_id: UUID, amount: Decimal, **kwargs) -> EntrySpec:
        return cls(ledger_id=ledger_id, amount=amount, side=EntrySide.DR, **kwargs)

    @classmethod
    def credit(cls, ledger_id: UUID, amount: Decimal, **kwargs) -> EntrySpec:
        return cls(ledger_id=ledger_id, amount=amount, side=EntrySide.CR, **kwargs)


@dataclass(frozen=True)
class CompanyInfo:
    id: UUID
    name: str
    state: str | None
    gstin: str | None

    @classmethod
    def from_model(cls, model: CompanyModel) -> CompanyInfo:
        return cls(id=model.id, name=model.name, state=model.state, gstin=model.gstin)


@dataclass(frozen=True)
class GroupInfo:
    id: UUID
    company_id: UUID
    name: str
    group_type: GroupType

    @classmethod
    def from_model(cls, model: GroupModel) -> GroupInfo:
        return cls(
            id=model.id,
            company_id=model.company_id,
            name=model.name,
            group_type=model.group_type,
        )


@dataclass(frozen=True)
class LedgerInfo:
    """Read model of a ledger, including its group classification."""

    id: UUID
    company_id: UUID
    group_id: UUID
    group_name: str
    group_type: GroupType
    name: str
    opening_balance: Decimal
    opening_balance_side: EntrySide
    kind: str
    state: str | None
    gstin: str | None

    @classmethod
    def from_model(cls, model: LedgerModel) -> LedgerInfo:
        return cls(
            id=model.id,
            company_id=model.company_id,
            group_id=model.group_id,
            group_name=model.group.name,
            group_type=model.group.group_type,
            name=model.name,
            opening_balance=model.opening_balance,
            opening_balance_side=model.opening_balance_side,
            kind=model.kind.value,
            state=model.state,
            gstin=model.gstin,
        )


@dataclass(frozen=True)
class EntryInfo:
    id: UUID
    ledger_id: UUID
    amount: Decimal
    side: EntrySide
    line_seq: int
    instrument_number: str | None
    instrument_date: date | None
    bank_allocation_date: date | None


@dataclass(frozen=True)
class VoucherInfo:
    """Read model of a posted voucher and its entries."""

    id: UUID
    company_id: UUID
    voucher_type: str
    voucher_number: str
    voucher_date: date
    narration: str | None
    seq: int
    version: int
    entries: tuple[EntryInfo, ...]

    @property
    def total_debits(self) -> Decimal:
        return sum((e.amount for e in self.entries if e.side == EntrySide.DR), Decimal("0"))

    @property
    def total_credits(self) -> Decimal:
        return sum((e.amount for e in self.entries if e.side == EntrySide.CR), Decimal("0"))

    @classmethod
    def from_model(cls, model: VoucherModel) -> VoucherInfo:
        return cls(
            id=model.id,
            company_id=model.company_id,
            voucher_type=model.voucher_type.value,
            voucher_number=model.voucher_number,
            voucher_date=model.voucher_date,
            narration=model.narration,
            seq=model.seq,
            version=model.version,
            entries=tuple(
                EntryInfo(
                    id=e.id,
                    ledger_id=e.ledger_id,
                    amount=e.amount,
                    side=e.side,
                    line_seq=e.line_seq,
                    instrument_number=e.instrument_number,
                    instrument_date=e.instrument_date,
                    bank_allocation_date=e.bank_allocation_date,
                )
                for e in model.entries
            ),
        )


@dataclass(frozen=True)
class FinancialYearInfo:
    id: UUID
    company_id: UUID
    name: str
    start_date: date
    end_date: date
    is_active: bool
    is_closed: bool
    closed_at: datetime | None

    @classmethod
    def from_model(cls, model: FinancialYearModel) -> FinancialYearInfo:
        return cls(
            id=model.id,
            company_id=model.company_id,
            name=model.name,
            start_date=model.start_date,
            end_date=model.end_date,
            is_active=model.is_active,
            is_closed=model.is_closed,
            closed_at=model.closed_at,
        )
