"""
Module: stock_ledger.selectors.collection_selector
Responsibility: Read whole collections as frozen records, and derive the
    per-item ledger balance from the movement collections.
Architecture position: Ledger > Selectors.  May import from models/ and
    selectors/base.py.  MUST NOT import from services/.

Invariants enforced:
    - Ledger identity check: ``stock_qty == opening_qty + sum(stock deltas)``
      is recomputed here from stored rows only, never from cached values.
    - Deterministic order: documents come back ordered by ``created_at`` then
      ``id``, so two reads of an unchanged store are identical.

Failure modes:
    - UnknownCollectionError for a name that is not one of the eight
      collections.
    - ValueError from a record's own validation when a stored document
      violates a record invariant (e.g. negative stock).
"""

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

from stock_ledger.domain.values import ItemRecord, MovementRecord
from stock_ledger.exceptions import UnknownCollectionError
from stock_ledger.models import COLLECTIONS, MOVEMENT_MODELS, ItemModel
from stock_ledger.selectors.base import BaseSelector


@dataclass(frozen=True)
class ItemLedgerBalance:
    """Stored stock versus the stock the movement log explains."""

    item_id: UUID
    opening_qty: Decimal
    stored_stock_qty: Decimal
    movement_total: Decimal
    movement_count: int

    @property
    def derived_stock_qty(self) -> Decimal:
        return self.opening_qty + self.movement_total

    @property
    def is_consistent(self) -> bool:
        return self.derived_stock_qty == self.stored_stock_qty


class CollectionSelector(BaseSelector):
    """Read-only access to the document collections."""

    def fetch(self, collection: str) -> tuple:
        """
        Every document of ``collection`` as frozen records.

        Raises:
            UnknownCollectionError: if ``collection`` is not a known name.
        """
        model = COLLECTIONS.get(collection)
        if model is None:
            raise UnknownCollectionError(collection)
        rows = self.session.scalars(
            select(model).order_by(model.created_at, model.id)
        ).all()
        return tuple(row.to_record() for row in rows)

    def get_item(self, item_id: UUID) -> ItemRecord | None:
        item = self.session.get(ItemModel, item_id)
        return item.to_record() if item is not None else None

    def movements_for_item(self, item_id: UUID) -> list[MovementRecord]:
        """All movements of one item, oldest first, across the four kinds."""
        records: list[MovementRecord] = []
        for model in MOVEMENT_MODELS.values():
            rows = self.session.scalars(
                select(model).where(model.item_id == item_id)
            ).all()
            records.extend(row.to_record() for row in rows)
        records.sort(key=lambda r: (r.created_at, str(r.id)))
        return records

    def ledger_balance(self, item_id: UUID) -> ItemLedgerBalance | None:
        item = self.session.get(ItemModel, item_id)
        if item is None:
            return None
        movements = self.movements_for_item(item_id)
        return ItemLedgerBalance(
            item_id=item_id,
            opening_qty=item.opening_qty,
            stored_stock_qty=item.stock_qty,
            movement_total=sum((m.stock_delta for m in movements), Decimal("0")),
            movement_count=len(movements),
        )

    def inconsistent_items(self) -> list[ItemLedgerBalance]:
        """Items whose stored stock the movement log does not explain."""
        mismatched = []
        for item_id in self.session.scalars(select(ItemModel.id)).all():
            balance = self.ledger_balance(item_id)
            if balance is not None and not balance.is_consistent:
                mismatched.append(balance)
        return mismatched
