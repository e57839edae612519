"""
Stock adjustment capability used by InvoicePoster.

Invoices move stock through an injected ``StockAdjuster`` so the
invoicing flow does not depend on how inventory is kept.  The default
``OrmStockAdjuster`` updates ``StockItemModel.current_quantity`` in the
caller's session, inside the same transaction as the voucher.
"""

from decimal import Decimal
from typing import Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.exceptions import StockItemNotFoundError
from ledger_kernel.logging_config import get_logger
from ledger_modules.invoicing.orm import StockItemModel

logger = get_logger("modules.invoicing.stock")


@runtime_checkable
class StockAdjuster(Protocol):
    def adjust_stock(self, company_id: UUID, item_id: UUID, delta: Decimal) -> None:
        """Add ``delta`` (may be negative) to the item's on-hand quantity."""
        ...


class OrmStockAdjuster:
    """StockAdjuster backed by the ``stock_items`` table."""

    def __init__(self, session: Session):
        self.session = session

    def adjust_stock(self, company_id: UUID, item_id: UUID, delta: Decimal) -> None:
        item = self.session.execute(
            select(StockItemModel)
            .where(StockItemModel.id == item_id, StockItemModel.company_id == company_id)
            .with_for_update()
        ).scalar_one_or_none()
        if item is None:
            raise StockItemNotFoundError(item_id)
        item.current_quantity = item.current_quantity + delta
        logger.debug(
            "stock_adjusted",
            extra={
                "item_id": str(item_id),
                "delta": str(delta),
                "current_quantity": str(item.current_quantity),
            },
        )

    def create_item(
        self,
        company_id: UUID,
        name: str,
        actor_id: UUID,
        opening_quantity: Decimal = Decimal("0"),
        unit: str | None = None,
        hsn_code: str | None = None,
    ) -> UUID:
        item = StockItemModel(
            company_id=company_id,
            name=name,
            unit=unit,
            hsn_code=hsn_code,
            current_quantity=opening_quantity,
            created_by_id=actor_id,
        )
        self.session.add(item)
        self.session.flush()
        return item.id

    def quantity(self, company_id: UUID, item_id: UUID) -> Decimal:
        item = self.session.get(StockItemModel, item_id)
        if item is None or item.company_id != company_id:
            raise StockItemNotFoundError(item_id)
        return item.current_quantity
