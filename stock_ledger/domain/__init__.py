"""
Pure domain layer.

Records, movement rules, the registry snapshot and derived views, with NO
dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O (time comes in through a Clock)

All domain objects are immutable and deterministic.
"""

from stock_ledger.domain.clock import Clock, DeterministicClock, SystemClock, TickingClock
from stock_ledger.domain.movement_rules import (
    ItemState,
    MovementDraft,
    MovementRequest,
    StockTransition,
    plan_movement,
    suggest_purchase_total,
)
from stock_ledger.domain.snapshot import ChoiceOption, RegistrySnapshot
from stock_ledger.domain.values import (
    AdjustmentDirection,
    AdjustmentRecord,
    CategoryRecord,
    ConsumptionRecord,
    ItemRecord,
    MovementKind,
    MovementRecord,
    PurchaseRecord,
    ReturnRecord,
    UnitRecord,
    VendorRecord,
)
from stock_ledger.domain.views import (
    ActivityEntry,
    CategoryGroup,
    Dashboard,
    ExpiryAlert,
    build_dashboard,
    expiry_alerts,
    items_by_category,
    low_stock_items,
    out_of_stock_items,
    recent_activity,
    total_spend,
)

__all__ = [
    # Clock
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "TickingClock",
    # Records
    "MovementKind",
    "AdjustmentDirection",
    "CategoryRecord",
    "UnitRecord",
    "VendorRecord",
    "ItemRecord",
    "PurchaseRecord",
    "ConsumptionRecord",
    "ReturnRecord",
    "AdjustmentRecord",
    "MovementRecord",
    # Rules
    "ItemState",
    "MovementRequest",
    "MovementDraft",
    "StockTransition",
    "plan_movement",
    "suggest_purchase_total",
    # Snapshot and views
    "RegistrySnapshot",
    "ChoiceOption",
    "ExpiryAlert",
    "ActivityEntry",
    "CategoryGroup",
    "Dashboard",
    "low_stock_items",
    "out_of_stock_items",
    "expiry_alerts",
    "recent_activity",
    "total_spend",
    "items_by_category",
    "build_dashboard",
]
