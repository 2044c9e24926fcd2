"""
Registry snapshot -- immutable projection of every collection.

Responsibility:
    Hold one consistent-enough view of categories, units, vendors, items and
    the four movement collections, plus the pure lookup helpers the views and
    choice lists need.

Architecture position:
    Ledger > Domain -- pure.  The ItemRegistry service builds a new snapshot
    on every refresh and swaps it in with a single assignment; a snapshot is
    never mutated, so readers never observe a half-updated state.

Dangling references:
    Items may point at categories, units or vendors that no longer exist.
    Lookups return fixed placeholders ("Uncategorized", "Unknown", "")
    instead of raising.  This is the intended behaviour, not an error path.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import NamedTuple
from uuid import UUID

from stock_ledger.domain.values import (
    AdjustmentRecord,
    CategoryRecord,
    ConsumptionRecord,
    ItemRecord,
    PurchaseRecord,
    ReturnRecord,
    UnitRecord,
    VendorRecord,
)

UNKNOWN_VENDOR = "Unknown"
UNCATEGORIZED = "Uncategorized"
UNKNOWN_UNIT = ""
UNKNOWN_ITEM = "Item"


class ChoiceOption(NamedTuple):
    """One entry of a select list: stored value and visible label."""

    value: UUID
    label: str


@dataclass(frozen=True)
class RegistrySnapshot:
    categories: tuple[CategoryRecord, ...] = ()
    units: tuple[UnitRecord, ...] = ()
    vendors: tuple[VendorRecord, ...] = ()
    items: tuple[ItemRecord, ...] = ()
    purchases: tuple[PurchaseRecord, ...] = ()
    consumptions: tuple[ConsumptionRecord, ...] = ()
    returns: tuple[ReturnRecord, ...] = ()
    adjustments: tuple[AdjustmentRecord, ...] = ()
    refreshed_at: datetime | None = None

    _categories_by_id: dict = field(init=False, repr=False, compare=False)
    _units_by_id: dict = field(init=False, repr=False, compare=False)
    _vendors_by_id: dict = field(init=False, repr=False, compare=False)
    _items_by_id: dict = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        # frozen: index dicts are attached once, at construction
        object.__setattr__(self, "_categories_by_id", {c.id: c for c in self.categories})
        object.__setattr__(self, "_units_by_id", {u.id: u for u in self.units})
        object.__setattr__(self, "_vendors_by_id", {v.id: v for v in self.vendors})
        object.__setattr__(self, "_items_by_id", {i.id: i for i in self.items})

    @classmethod
    def empty(cls) -> RegistrySnapshot:
        return cls()

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def find_item(self, item_id: UUID | None) -> ItemRecord | None:
        return self._items_by_id.get(item_id)

    def find_vendor_name(self, vendor_id: UUID | None) -> str:
        vendor = self._vendors_by_id.get(vendor_id)
        return vendor.name if vendor else UNKNOWN_VENDOR

    def find_unit_label(self, unit_id: UUID | None) -> str:
        unit = self._units_by_id.get(unit_id)
        return unit.display_name if unit else UNKNOWN_UNIT

    def find_category_name(self, category_id: UUID | None) -> str:
        category = self._categories_by_id.get(category_id)
        return category.name if category else UNCATEGORIZED

    def has_category(self, category_id: UUID | None) -> bool:
        return category_id in self._categories_by_id

    def item_name(self, item_id: UUID | None) -> str:
        item = self._items_by_id.get(item_id)
        return item.name if item else UNKNOWN_ITEM

    # ------------------------------------------------------------------
    # Choice lists
    # ------------------------------------------------------------------

    def category_choices(self) -> list[ChoiceOption]:
        return [ChoiceOption(c.id, c.name) for c in self.categories]

    def unit_choices(self) -> list[ChoiceOption]:
        return [ChoiceOption(u.id, u.choice_label) for u in self.units]

    def vendor_choices(self) -> list[ChoiceOption]:
        return [ChoiceOption(v.id, v.name) for v in self.vendors]

    def item_choices(self, include_vendor: bool = False) -> list[ChoiceOption]:
        """Items for movement forms; purchases show "name — vendor"."""
        if include_vendor:
            return [
                ChoiceOption(i.id, f"{i.name} — {self.find_vendor_name(i.vendor_id)}")
                for i in self.items
            ]
        return [ChoiceOption(i.id, i.name) for i in self.items]
