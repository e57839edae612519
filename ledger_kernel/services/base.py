"""
BaseService -- abstract base for kernel and module services.

Responsibility:
    Common constructor and transaction-boundary contract.  A service built
    with ``auto_commit=True`` owns its transaction: it commits on success
    and rolls back on any failure.  With ``auto_commit=False`` it only
    flushes, so an outer service can compose several calls into one
    atomic unit.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    - All-or-nothing: a failed mutating call leaves no partial voucher,
      invoice or payment rows behind.
    - StaleDataError from versioned rows is surfaced as
      OptimisticLockError.

Audit relevance:
    Rollbacks are logged at WARNING with the exception attached.
"""

from abc import ABC
from contextlib import contextmanager
from typing import Generator

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ledger_kernel.exceptions import OptimisticLockError
from ledger_kernel.logging_config import get_logger

logger = get_logger("services.base")


class BaseService(ABC):
    """
    Abstract base class for services.

    Contract:
        Accepts a SQLAlchemy ``Session`` from the caller.  Mutating methods
        run inside ``self._transaction()``.

    Guarantees:
        - auto_commit=True: commit on success, rollback on failure.
        - auto_commit=False: flush only; the caller commits or rolls back.

    Non-goals:
        - Does NOT provide query-only (read) methods -- those belong in
          selectors.
    """

    def __init__(self, session: Session, auto_commit: bool = True):
        """
        Args:
            session: SQLAlchemy session for database operations.
            auto_commit: Whether this service owns the transaction boundary.
        """
        self.session = session
        self._auto_commit = auto_commit

    @contextmanager
    def _transaction(
        self,
        operation: str,
        entity_type: str = "record",
        entity_id=None,
    ) -> Generator[None, None, None]:
        try:
            yield
            if self._auto_commit:
                self.session.commit()
            else:
                self.session.flush()
        except StaleDataError as exc:
            self._rollback(operation)
            raise OptimisticLockError(entity_type, entity_id, None, None) from exc
        except Exception:
            self._rollback(operation)
            raise

    def _rollback(self, operation: str) -> None:
        if self._auto_commit:
            self.session.rollback()
            logger.warning(
                "transaction_rolled_back",
                extra={"operation": operation},
                exc_info=True,
            )
