"""
Derived views over a registry snapshot.

Every function here is pure and stateless: a snapshot (and, for expiry, the
current time) in, a projection out.  They are recomputed in full after each
registry refresh; nothing is cached or updated incrementally.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from uuid import UUID

from stock_ledger.db.types import format_quantity
from stock_ledger.domain.snapshot import UNCATEGORIZED, RegistrySnapshot
from stock_ledger.domain.values import (
    AdjustmentDirection,
    ItemRecord,
    MovementKind,
)

DEFAULT_EXPIRY_WARNING_DAYS = 14
DEFAULT_ACTIVITY_LIMIT = 10

_ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class ExpiryAlert:
    item: ItemRecord
    expiry_date: datetime
    days_remaining: int  # negative once expired


@dataclass(frozen=True)
class ActivityEntry:
    kind: MovementKind
    label: str
    created_at: datetime
    movement_id: UUID
    item_id: UUID

    @property
    def title(self) -> str:
        return self.kind.label


@dataclass(frozen=True)
class CategoryGroup:
    title: str
    category_id: UUID | None
    items: tuple[ItemRecord, ...]


@dataclass(frozen=True)
class Dashboard:
    total_items: int
    low_stock: tuple[ItemRecord, ...]
    out_of_stock: tuple[ItemRecord, ...]
    expiry_alerts: tuple[ExpiryAlert, ...]
    recent_activity: tuple[ActivityEntry, ...]
    total_spend: Decimal


def low_stock_items(snapshot: RegistrySnapshot) -> list[ItemRecord]:
    """Items with 0 < stock <= reorder level, in snapshot order."""
    return [item for item in snapshot.items if item.is_low_stock]


def out_of_stock_items(snapshot: RegistrySnapshot) -> list[ItemRecord]:
    return [item for item in snapshot.items if item.is_out_of_stock]


def days_until(expiry: datetime, now: datetime) -> int:
    """Whole days until ``expiry``, rounded up (ceil)."""
    return math.ceil((expiry - now) / _ONE_DAY)


def expiry_alerts(
    snapshot: RegistrySnapshot,
    now: datetime,
    warning_days: int = DEFAULT_EXPIRY_WARNING_DAYS,
) -> list[ExpiryAlert]:
    """
    Items expiring within ``warning_days`` (or already expired).

    Sorted ascending by days remaining, so expired items come first.
    """
    alerts = []
    for item in snapshot.items:
        if not item.has_expiry or item.expiry_date is None:
            continue
        days = days_until(item.expiry_date, now)
        if days <= warning_days:
            alerts.append(ExpiryAlert(item=item, expiry_date=item.expiry_date, days_remaining=days))
    alerts.sort(key=lambda alert: alert.days_remaining)
    return alerts


def recent_activity(
    snapshot: RegistrySnapshot,
    limit: int = DEFAULT_ACTIVITY_LIMIT,
) -> list[ActivityEntry]:
    """
    Most recent movements of every kind, newest first.

    Entries are gathered purchases, consumptions, returns, adjustments (in
    that order, each in snapshot order); equal timestamps keep that order.
    """
    entries: list[ActivityEntry] = []

    for purchase in snapshot.purchases:
        entries.append(_entry(
            snapshot, purchase, f"Qty {format_quantity(purchase.quantity)}",
        ))

    for consumption in snapshot.consumptions:
        verb = "Undo" if consumption.is_undo else "Consumed"
        entries.append(_entry(
            snapshot, consumption, f"{verb} {format_quantity(abs(consumption.quantity))}",
        ))

    for entry in snapshot.returns:
        entries.append(_entry(
            snapshot, entry, f"Qty {format_quantity(entry.quantity)}",
        ))

    for adjustment in snapshot.adjustments:
        direction = (
            "Increase" if adjustment.direction is AdjustmentDirection.INCREASE else "Decrease"
        )
        entries.append(_entry(
            snapshot, adjustment, f"{direction} {format_quantity(adjustment.quantity)}",
        ))

    # sorted() is stable, including with reverse=True
    entries = sorted(entries, key=lambda e: e.created_at, reverse=True)
    return entries[:limit]


def total_spend(snapshot: RegistrySnapshot) -> Decimal:
    """Sum of purchase totals over all time."""
    return sum((p.total_amount for p in snapshot.purchases), Decimal("0"))


def items_by_category(snapshot: RegistrySnapshot) -> list[CategoryGroup]:
    """
    Items grouped under their category for the consumption screen.

    Categories are sorted by name, items by name within each group; items
    with no category or a dangling one are collected in a trailing
    "Uncategorized" group, omitted when empty.  Categories without items
    still appear, with an empty tuple.
    """
    grouped: dict[UUID, list[ItemRecord]] = {c.id: [] for c in snapshot.categories}
    orphans: list[ItemRecord] = []
    for item in snapshot.items:
        if item.category_id is not None and snapshot.has_category(item.category_id):
            grouped[item.category_id].append(item)
        else:
            orphans.append(item)

    groups = [
        CategoryGroup(
            title=category.name,
            category_id=category.id,
            items=tuple(sorted(grouped[category.id], key=lambda i: i.name)),
        )
        for category in sorted(snapshot.categories, key=lambda c: c.name)
    ]
    if orphans:
        groups.append(CategoryGroup(
            title=UNCATEGORIZED,
            category_id=None,
            items=tuple(sorted(orphans, key=lambda i: i.name)),
        ))
    return groups


def build_dashboard(
    snapshot: RegistrySnapshot,
    now: datetime,
    warning_days: int = DEFAULT_EXPIRY_WARNING_DAYS,
    activity_limit: int = DEFAULT_ACTIVITY_LIMIT,
) -> Dashboard:
    return Dashboard(
        total_items=len(snapshot.items),
        low_stock=tuple(low_stock_items(snapshot)),
        out_of_stock=tuple(out_of_stock_items(snapshot)),
        expiry_alerts=tuple(expiry_alerts(snapshot, now, warning_days)),
        recent_activity=tuple(recent_activity(snapshot, activity_limit)),
        total_spend=total_spend(snapshot),
    )


def _entry(snapshot: RegistrySnapshot, movement, detail: str) -> ActivityEntry:
    return ActivityEntry(
        kind=movement.kind,
        label=f"{snapshot.item_name(movement.item_id)} · {detail}",
        created_at=movement.created_at,
        movement_id=movement.id,
        item_id=movement.item_id,
    )
