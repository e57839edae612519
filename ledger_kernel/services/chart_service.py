"""
ChartOfAccountsService -- companies, groups and ledgers.

Responsibility:
    Registers the master data every posting depends on and resolves it
    with strict company scoping.  Full master-data CRUD (renames, UI
    forms) lives outside the core; this service provides creation,
    tenant-scoped lookup, and guarded deletion.

Architecture position:
    Kernel > Services -- imperative shell.
    Used by VoucherLedger, InvoicePoster and ReportEngine for lookups.

Invariants enforced:
    - Tenant partition: get_ledger/get_group/get_company raise NotFound
      for ids belonging to another company.
    - Groups with ledgers cannot be deleted (GroupInUseError).
    - Ledgers referenced by voucher entries or documents cannot be deleted
      (LedgerInUseError).
    - Opening balances are non-negative; direction is carried by side.

Failure modes:
    - CompanyNotFoundError / GroupNotFoundError / LedgerNotFoundError.
    - GroupInUseError / LedgerInUseError.
    - InvalidAmountError on a negative opening balance.

Audit relevance:
    Creation and deletion of master data are logged with actor_id.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ledger_kernel.domain.dtos import CompanyInfo, GroupInfo, LedgerInfo
from ledger_kernel.domain.sides import EntrySide, GroupType
from ledger_kernel.exceptions import (
    CompanyNotFoundError,
    GroupInUseError,
    GroupNotFoundError,
    InvalidAmountError,
    LedgerInUseError,
    LedgerNotFoundError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import Group, Ledger, LedgerKind
from ledger_kernel.models.company import Company
from ledger_kernel.models.voucher import VoucherEntry
from ledger_kernel.services.base import BaseService

logger = get_logger("services.chart")


class ChartOfAccountsService(BaseService):
    """
    Registry of companies, groups and ledgers.

    Contract:
        Mutators return frozen *Info DTOs.  Lookup helpers (``company``,
        ``group``, ``ledger``, ``ledgers_of_kind``) return ORM rows for use
        by other services inside the same session.

    Non-goals:
        - Renaming or reclassifying master data.
    """

    def __init__(self, session: Session, auto_commit: bool = True):
        super().__init__(session, auto_commit)

    # -- companies ---------------------------------------------------------

    def create_company(
        self,
        name: str,
        actor_id: UUID,
        state: str | None = None,
        gstin: str | None = None,
    ) -> CompanyInfo:
        with self._transaction("create_company"):
            company = Company(
                name=name,
                state=state or None,
                gstin=gstin or None,
                created_by_id=actor_id,
            )
            self.session.add(company)
            self.session.flush()

        logger.info(
            "company_created",
            extra={"company_id": str(company.id), "company_state": state, "actor_id": str(actor_id)},
        )
        return CompanyInfo.from_model(company)

    def company(self, company_id: UUID) -> Company:
        """Resolve a company or raise CompanyNotFoundError."""
        company = self.session.get(Company, company_id)
        if company is None:
            raise CompanyNotFoundError(company_id)
        return company

    # -- groups ------------------------------------------------------------

    def create_group(
        self,
        company_id: UUID,
        name: str,
        group_type: GroupType,
        actor_id: UUID,
    ) -> GroupInfo:
        with self._transaction("create_group"):
            self.company(company_id)
            group = Group(
                company_id=company_id,
                name=name,
                group_type=GroupType(group_type),
                created_by_id=actor_id,
            )
            self.session.add(group)
            self.session.flush()

        logger.info(
            "group_created",
            extra={
                "company_id": str(company_id),
                "group_id": str(group.id),
                "group_type": group.group_type.value,
            },
        )
        return GroupInfo.from_model(group)

    def group(self, company_id: UUID, group_id: UUID) -> Group:
        """Resolve a group inside a company or raise GroupNotFoundError."""
        group = self.session.get(Group, group_id)
        if group is None or group.company_id != company_id:
            raise GroupNotFoundError(group_id)
        return group

    def delete_group(self, company_id: UUID, group_id: UUID) -> None:
        """
        Delete an unused group.

        Raises:
            GroupNotFoundError: Unknown group or another company's group.
            GroupInUseError: At least one ledger references the group.
        """
        with self._transaction("delete_group"):
            group = self.group(company_id, group_id)
            ledger_count = self.session.execute(
                select(func.count(Ledger.id)).where(Ledger.group_id == group_id)
            ).scalar_one()
            if ledger_count:
                logger.warning(
                    "group_delete_rejected",
                    extra={"group_id": str(group_id), "ledger_count": ledger_count},
                )
                raise GroupInUseError(group_id, ledger_count)
            self.session.delete(group)

        logger.info("group_deleted", extra={"group_id": str(group_id)})

    # -- ledgers -----------------------------------------------------------

    def create_ledger(
        self,
        company_id: UUID,
        group_id: UUID,
        name: str,
        actor_id: UUID,
        opening_balance: Decimal = Decimal("0"),
        opening_balance_side: EntrySide = EntrySide.DR,
        kind: LedgerKind = LedgerKind.GENERAL,
        state: str | None = None,
        gstin: str | None = None,
    ) -> LedgerInfo:
        """
        Register a ledger under a group of the same company.

        Raises:
            CompanyNotFoundError, GroupNotFoundError: Unresolvable references.
            InvalidAmountError: opening_balance < 0.
        """
        if opening_balance < 0:
            raise InvalidAmountError(opening_balance, "opening balance")

        with self._transaction("create_ledger"):
            self.company(company_id)
            self.group(company_id, group_id)
            ledger = Ledger(
                company_id=company_id,
                group_id=group_id,
                name=name,
                opening_balance=opening_balance,
                opening_balance_side=EntrySide(opening_balance_side),
                kind=LedgerKind(kind),
                state=state or None,
                gstin=gstin or None,
                created_by_id=actor_id,
            )
            self.session.add(ledger)
            self.session.flush()
            self.session.refresh(ledger)

        logger.info(
            "ledger_created",
            extra={
                "company_id": str(company_id),
                "ledger_id": str(ledger.id),
                "kind": ledger.kind.value,
                "opening_balance": str(opening_balance),
                "opening_balance_side": ledger.opening_balance_side.value,
            },
        )
        return LedgerInfo.from_model(ledger)

    def ledger(self, company_id: UUID, ledger_id: UUID) -> Ledger:
        """Resolve a ledger inside a company or raise LedgerNotFoundError."""
        ledger = self.session.get(Ledger, ledger_id)
        if ledger is None or ledger.company_id != company_id:
            raise LedgerNotFoundError(ledger_id)
        return ledger

    def get_ledger(self, company_id: UUID, ledger_id: UUID) -> LedgerInfo:
        return LedgerInfo.from_model(self.ledger(company_id, ledger_id))

    def ledgers_of_kind(self, company_id: UUID, kind: LedgerKind) -> list[Ledger]:
        """All ledgers of one kind, oldest first."""
        return list(
            self.session.execute(
                select(Ledger)
                .where(Ledger.company_id == company_id, Ledger.kind == kind)
                .order_by(Ledger.created_at, Ledger.name)
            ).scalars()
        )

    def list_ledgers(self, company_id: UUID) -> list[LedgerInfo]:
        rows = self.session.execute(
            select(Ledger).where(Ledger.company_id == company_id).order_by(Ledger.name)
        ).scalars()
        return [LedgerInfo.from_model(row) for row in rows]

    def delete_ledger(self, company_id: UUID, ledger_id: UUID) -> None:
        """
        Delete a ledger nothing refers to.

        Entry references are checked explicitly.  Document references
        (invoices, payments, templates) are caught by their foreign keys.

        Raises:
            LedgerNotFoundError: Unknown ledger or another company's ledger.
            LedgerInUseError: Entries or documents reference the ledger.
        """
        with self._transaction("delete_ledger"):
            ledger = self.ledger(company_id, ledger_id)
            entry_count = self.session.execute(
                select(func.count(VoucherEntry.id)).where(VoucherEntry.ledger_id == ledger_id)
            ).scalar_one()
            if entry_count:
                logger.warning(
                    "ledger_delete_rejected",
                    extra={"ledger_id": str(ledger_id), "entry_count": entry_count},
                )
                raise LedgerInUseError(ledger_id, f"{entry_count} voucher entries reference it")

            savepoint = self.session.begin_nested()
            try:
                self.session.delete(ledger)
                self.session.flush()
                savepoint.commit()
            except IntegrityError as exc:
                savepoint.rollback()
                raise LedgerInUseError(ledger_id, "documents reference it") from exc

        logger.info("ledger_deleted", extra={"ledger_id": str(ledger_id)})
