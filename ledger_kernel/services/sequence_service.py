"""
SequenceService -- monotonic sequence allocation via locked counter rows.

Responsibility:
    Provides strictly increasing numbers for per-company voucher creation
    order and document numbering (voucher numbers, recurring invoice
    numbers).  Uses a dedicated counter table with row-level locking
    (``SELECT ... FOR UPDATE``) so concurrent writers never collide.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Called by VoucherLedger and RecurringPoster.

Invariants enforced:
    - Monotonicity: the locked counter row is the sole source of truth for
      the next value.  Aggregate max()+1 over vouchers is never used.
    - Transactional: an increment is only visible after the caller's
      transaction commits.  Rollback returns the value.

Failure modes:
    - IntegrityError on a concurrent first-use race (handled via savepoint
      rollback and retry).

Audit relevance:
    Voucher ``seq`` is what orders same-day entries in ledger statements,
    so it must never repeat or go backwards within a company.
"""

from uuid import UUID

from sqlalchemy import BigInteger, String, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Mapped, Session, mapped_column

from ledger_kernel.db.base import Base
from ledger_kernel.logging_config import get_logger

logger = get_logger("services.sequence")


class SequenceCounter(Base):
    """
    Sequence counter table.

    Each row is a named sequence with its current value.
    """

    __tablename__ = "sequence_counters"

    name: Mapped[str] = mapped_column(String(120), nullable=False, unique=True)

    current_value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)


class SequenceService:
    """
    Service for generating transactional sequence numbers.

    Contract:
        Accepts a sequence name and returns the next strictly increasing
        integer.  Does NOT commit; the caller's transaction does.

    Usage:
        seq = SequenceService(session).next_value(
            SequenceService.voucher_sequence(company_id)
        )
    """

    VOUCHER = "voucher"
    DOCUMENT = "document"

    def __init__(self, session: Session):
        self._session = session

    @classmethod
    def voucher_sequence(cls, company_id: UUID) -> str:
        """Per-company voucher creation order."""
        return f"{cls.VOUCHER}:{company_id}"

    @classmethod
    def document_sequence(cls, company_id: UUID, prefix: str) -> str:
        """Per-company, per-prefix document numbering."""
        return f"{cls.DOCUMENT}:{company_id}:{prefix}"

    def next_value(self, sequence_name: str) -> int:
        """
        Get the next value for a named sequence.

        Preconditions:
            - The caller is within an active database transaction.

        Postconditions:
            - Returns an integer > 0 strictly greater than any value
              previously returned for this name.
            - The counter row stays locked until the transaction ends.
        """
        counter = self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == sequence_name)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

        if counter is None:
            # First use.  A savepoint keeps a concurrent-create race from
            # rolling back the caller's other work.
            savepoint = self._session.begin_nested()
            try:
                counter = SequenceCounter(name=sequence_name, current_value=1)
                self._session.add(counter)
                self._session.flush()
                savepoint.commit()
                logger.debug(
                    "sequence_allocated",
                    extra={"sequence_name": sequence_name, "value": 1},
                )
                return 1
            except IntegrityError:
                logger.debug(
                    "sequence_counter_race_retry",
                    extra={"sequence_name": sequence_name},
                )
                savepoint.rollback()
                counter = self._session.execute(
                    select(SequenceCounter)
                    .where(SequenceCounter.name == sequence_name)
                    .with_for_update()
                    .execution_options(populate_existing=True)
                ).scalar_one()

        counter.current_value += 1
        self._session.flush()
        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": sequence_name, "value": counter.current_value},
        )
        return counter.current_value

    def current_value(self, sequence_name: str) -> int | None:
        """Current value of a sequence without incrementing, or None if unused."""
        counter = self._session.execute(
            select(SequenceCounter).where(SequenceCounter.name == sequence_name)
        ).scalar_one_or_none()
        return counter.current_value if counter else None
