"""
Module: ledger_kernel.models.company
Responsibility: ORM persistence for the tenant root.  Every ledger, voucher,
    invoice and financial year belongs to exactly one Company.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Tenant partition: every kernel and module query is scoped by
      company_id.  An id belonging to another company resolves as NotFound.

Audit relevance:
    Company.state is the supplier state used to classify supplies as
    intra- or inter-state for GST.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase


class Company(TrackedBase):
    """
    A bookkeeping entity.

    Guarantees:
        - name is non-null.
        - state and gstin are optional; a missing state makes every
          supply inter-state.
    """

    __tablename__ = "companies"

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Supplier state for GST place-of-supply classification
    state: Mapped[str | None] = mapped_column(String(100), nullable=True)

    gstin: Mapped[str | None] = mapped_column(String(15), nullable=True)

    def __repr__(self) -> str:
        return f"<Company {self.name}>"
