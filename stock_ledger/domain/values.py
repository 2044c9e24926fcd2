"""
Stock Ledger Records (``stock_ledger.domain.values``).

Responsibility
--------------
Frozen value objects for every document the ledger reads back from the
store: the three reference entities, items, and the four movement kinds.
ORM models convert themselves into these records (``to_record()``), so
this is the boundary where stored documents are validated into typed data.

Architecture
------------
Layer: **Domain** -- pure data, no I/O, no ORM.  All dataclasses are
``frozen=True``.  Quantities and amounts are ``Decimal``.

Invariants
----------
- ``ItemRecord.stock_qty`` is never negative.
- Purchase, return and adjustment quantities are strictly positive.
- Consumption quantities are non-zero (negative means "undo").
- Every movement knows its ``stock_delta`` in the item's sign convention,
  so the ledger identity ``stock_qty == opening_qty + sum(deltas)`` can be
  checked from records alone.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID


class MovementKind(str, Enum):
    """The four stock-affecting movement kinds."""

    PURCHASE = "purchase"
    CONSUMPTION = "consumption"
    RETURN = "return"
    ADJUSTMENT = "adjustment"

    @property
    def collection(self) -> str:
        """Store collection the movement is appended to."""
        return _MOVEMENT_COLLECTIONS[self]

    @property
    def label(self) -> str:
        """Human label used in activity feeds."""
        return self.value.capitalize()


_MOVEMENT_COLLECTIONS = {
    MovementKind.PURCHASE: "purchases",
    MovementKind.CONSUMPTION: "consumptions",
    MovementKind.RETURN: "returns",
    MovementKind.ADJUSTMENT: "adjustments",
}


class AdjustmentDirection(str, Enum):
    """Direction of a manual stock adjustment."""

    INCREASE = "increase"
    DECREASE = "decrease"


# =============================================================================
# Reference entities
# =============================================================================


@dataclass(frozen=True)
class CategoryRecord:
    id: UUID
    name: str
    description: str
    created_at: datetime


@dataclass(frozen=True)
class UnitRecord:
    id: UUID
    display_name: str
    unit_name: str
    created_at: datetime

    @property
    def choice_label(self) -> str:
        return f"{self.display_name} ({self.unit_name})"


@dataclass(frozen=True)
class VendorRecord:
    id: UUID
    name: str
    address: str
    mobile: str
    email: str
    opening_balance: Decimal
    created_at: datetime


# =============================================================================
# Items
# =============================================================================


@dataclass(frozen=True)
class ItemRecord:
    """
    An inventory item as last read from the store.

    ``category_id`` may be None or dangle; it is not validated against the
    category collection (lookups degrade to "Uncategorized").
    """

    id: UUID
    name: str
    category_id: UUID | None
    unit_id: UUID | None
    vendor_id: UUID | None
    price: Decimal
    reorder_level: Decimal
    opening_qty: Decimal
    stock_qty: Decimal
    has_expiry: bool
    expiry_date: datetime | None
    created_at: datetime

    def __post_init__(self):
        # INVARIANT: stock floor holds in every committed state
        if self.stock_qty < 0:
            raise ValueError(
                f"item {self.id} has negative stock_qty ({self.stock_qty})"
            )

    @property
    def is_out_of_stock(self) -> bool:
        return self.stock_qty <= 0

    @property
    def is_low_stock(self) -> bool:
        return 0 < self.stock_qty <= self.reorder_level


# =============================================================================
# Movements
# =============================================================================


@dataclass(frozen=True)
class PurchaseRecord:
    id: UUID
    item_id: UUID
    vendor_id: UUID | None
    quantity: Decimal
    total_amount: Decimal
    created_at: datetime

    kind = MovementKind.PURCHASE

    def __post_init__(self):
        if self.quantity <= 0:
            raise ValueError(f"purchase {self.id} quantity must be positive")

    @property
    def stock_delta(self) -> Decimal:
        return self.quantity


@dataclass(frozen=True)
class ConsumptionRecord:
    """Positive quantity consumes stock; negative quantity undoes a consumption."""

    id: UUID
    item_id: UUID
    quantity: Decimal
    created_at: datetime

    kind = MovementKind.CONSUMPTION

    def __post_init__(self):
        if self.quantity == 0:
            raise ValueError(f"consumption {self.id} quantity cannot be zero")

    @property
    def is_undo(self) -> bool:
        return self.quantity < 0

    @property
    def stock_delta(self) -> Decimal:
        return -self.quantity


@dataclass(frozen=True)
class ReturnRecord:
    id: UUID
    item_id: UUID
    quantity: Decimal
    reason: str
    created_at: datetime

    kind = MovementKind.RETURN

    def __post_init__(self):
        if self.quantity <= 0:
            raise ValueError(f"return {self.id} quantity must be positive")

    @property
    def stock_delta(self) -> Decimal:
        return -self.quantity


@dataclass(frozen=True)
class AdjustmentRecord:
    id: UUID
    item_id: UUID
    quantity: Decimal
    direction: AdjustmentDirection
    reason: str
    created_at: datetime

    kind = MovementKind.ADJUSTMENT

    def __post_init__(self):
        if self.quantity <= 0:
            raise ValueError(f"adjustment {self.id} quantity must be positive")

    @property
    def stock_delta(self) -> Decimal:
        if self.direction is AdjustmentDirection.INCREASE:
            return self.quantity
        return -self.quantity


MovementRecord = PurchaseRecord | ConsumptionRecord | ReturnRecord | AdjustmentRecord
