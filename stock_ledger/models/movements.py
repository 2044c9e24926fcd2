"""
Module: stock_ledger.models.movements
Responsibility: ORM persistence for the four append-only movement
    collections: purchases, consumptions, returns and adjustments.
Architecture position: Ledger > Models.  May import from db/ and
    domain/values only.  MUST NOT import from services/ or selectors/.

Invariants enforced:
    - Append-only: rows are INSERTed by the document store inside
      atomic_apply and never UPDATEd or DELETEd (db/immutability.py).
    - ``item_id`` is a plain reference with no foreign key, matching the
      reference semantics of the rest of the store.
    - ``quantity`` carries the recorded sign convention of its kind
      (consumption signed, the others strictly positive); see
      domain/values.py for the stock delta each produces.

Audit relevance:
    Together with ``items.opening_qty`` these rows explain every unit of
    ``items.stock_qty``.  A row whose item was never updated in the same
    transaction cannot exist.
"""

from decimal import Decimal
from typing import ClassVar
from uuid import UUID

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from stock_ledger.db.base import DocumentBase, UUIDString
from stock_ledger.db.types import LongText, Money, Quantity
from stock_ledger.domain.values import (
    AdjustmentDirection,
    AdjustmentRecord,
    ConsumptionRecord,
    MovementKind,
    PurchaseRecord,
    ReturnRecord,
)


class MovementBase(DocumentBase):
    """Columns shared by every movement kind."""

    __abstract__ = True

    kind: ClassVar[MovementKind]

    item_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    quantity: Mapped[Quantity] = mapped_column(nullable=False)


class PurchaseModel(MovementBase):
    """Stock received from a vendor; increases stock by ``quantity``."""

    __tablename__ = "purchases"
    __table_args__ = (Index("idx_purchase_item", "item_id"),)
    collection = "purchases"
    kind = MovementKind.PURCHASE

    # Vendor as recorded on the item when the purchase committed
    vendor_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    total_amount: Mapped[Money] = mapped_column(nullable=False, default=Decimal("0"))

    def __repr__(self) -> str:
        return f"<Purchase item={self.item_id} qty={self.quantity} total={self.total_amount}>"

    def to_record(self) -> PurchaseRecord:
        return PurchaseRecord(
            id=self.id,
            item_id=self.item_id,
            vendor_id=self.vendor_id,
            quantity=self.quantity,
            total_amount=self.total_amount,
            created_at=self.created_at,
        )


class ConsumptionModel(MovementBase):
    """Stock used up; a negative quantity records an undo."""

    __tablename__ = "consumptions"
    __table_args__ = (Index("idx_consumption_item", "item_id"),)
    collection = "consumptions"
    kind = MovementKind.CONSUMPTION

    def __repr__(self) -> str:
        return f"<Consumption item={self.item_id} qty={self.quantity}>"

    def to_record(self) -> ConsumptionRecord:
        return ConsumptionRecord(
            id=self.id,
            item_id=self.item_id,
            quantity=self.quantity,
            created_at=self.created_at,
        )


class ReturnModel(MovementBase):
    """Stock sent back; decreases stock by ``quantity``."""

    __tablename__ = "returns"
    __table_args__ = (Index("idx_return_item", "item_id"),)
    collection = "returns"
    kind = MovementKind.RETURN

    reason: Mapped[LongText] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return f"<Return item={self.item_id} qty={self.quantity}>"

    def to_record(self) -> ReturnRecord:
        return ReturnRecord(
            id=self.id,
            item_id=self.item_id,
            quantity=self.quantity,
            reason=self.reason,
            created_at=self.created_at,
        )


class AdjustmentModel(MovementBase):
    """Manual correction in either direction."""

    __tablename__ = "adjustments"
    __table_args__ = (Index("idx_adjustment_item", "item_id"),)
    collection = "adjustments"
    kind = MovementKind.ADJUSTMENT

    direction: Mapped[str] = mapped_column(String(20), nullable=False)
    reason: Mapped[LongText] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return f"<Adjustment item={self.item_id} {self.direction} {self.quantity}>"

    def to_record(self) -> AdjustmentRecord:
        return AdjustmentRecord(
            id=self.id,
            item_id=self.item_id,
            quantity=self.quantity,
            direction=AdjustmentDirection(self.direction),
            reason=self.reason,
            created_at=self.created_at,
        )


MOVEMENT_MODELS: dict[MovementKind, type[MovementBase]] = {
    MovementKind.PURCHASE: PurchaseModel,
    MovementKind.CONSUMPTION: ConsumptionModel,
    MovementKind.RETURN: ReturnModel,
    MovementKind.ADJUSTMENT: AdjustmentModel,
}
