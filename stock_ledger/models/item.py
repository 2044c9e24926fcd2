"""
Module: stock_ledger.models.item
Responsibility: ORM persistence for inventory items, the only documents
    whose state the ledger mutates.
Architecture position: Ledger > Models.  May import from db/ and
    domain/values only.  MUST NOT import from services/ or selectors/.

Invariants enforced:
    - stock_qty is written only by the document store's atomic_apply, in the
      same transaction that appends the movement explaining the change.
    - Optimistic concurrency: ``version`` is SQLAlchemy's version_id_col.
      Every UPDATE is issued as ``... WHERE id = :id AND version = :read``;
      when another writer committed first, zero rows match and the flush
      raises StaleDataError, which the store turns into a retry.
    - Items are never deleted (db/immutability.py refuses the DELETE).

Failure modes:
    - StaleDataError on flush after a concurrent commit to the same item.
    - ImmutabilityViolationError on session.delete(item).
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, Index, Integer
from sqlalchemy.orm import Mapped, mapped_column

from stock_ledger.db.base import DocumentBase, UUIDString
from stock_ledger.db.types import Money, Quantity, ShortText
from stock_ledger.domain.values import ItemRecord


class ItemModel(DocumentBase):
    """
    An inventory item with its current stock level.

    Contract:
        ``stock_qty == opening_qty + sum(stock deltas of its movements)``
        holds after every commit.  ``category_id``, ``unit_id`` and
        ``vendor_id`` are plain references; they are not validated.
    """

    __tablename__ = "items"
    collection = "items"

    __table_args__ = (
        Index("idx_item_category", "category_id"),
    )

    name: Mapped[ShortText] = mapped_column(nullable=False)

    category_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    unit_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    vendor_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    price: Mapped[Money] = mapped_column(nullable=False, default=Decimal("0"))
    reorder_level: Mapped[Quantity] = mapped_column(nullable=False, default=Decimal("0"))
    opening_qty: Mapped[Quantity] = mapped_column(nullable=False, default=Decimal("0"))
    stock_qty: Mapped[Quantity] = mapped_column(nullable=False, default=Decimal("0"))

    has_expiry: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    expiry_date: Mapped[datetime | None] = mapped_column(nullable=True)

    # Optimistic lock counter, not part of the document contract
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    __mapper_args__ = {
        "version_id_col": version,
    }

    def __repr__(self) -> str:
        return f"<Item {self.name} stock={self.stock_qty} v{self.version}>"

    def to_record(self) -> ItemRecord:
        return ItemRecord(
            id=self.id,
            name=self.name,
            category_id=self.category_id,
            unit_id=self.unit_id,
            vendor_id=self.vendor_id,
            price=self.price,
            reorder_level=self.reorder_level,
            opening_qty=self.opening_qty,
            stock_qty=self.stock_qty,
            has_expiry=bool(self.has_expiry),
            expiry_date=self.expiry_date if self.has_expiry else None,
            created_at=self.created_at,
        )
