"""
Tests for the derived views: low and out of stock, expiry alerts, recent
activity, spend, grouping by category and the dashboard bundle.

All views are pure functions of a RegistrySnapshot, so the snapshots here
are built directly from records without a database.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

from stock_ledger.domain.snapshot import RegistrySnapshot
from stock_ledger.domain.values import (
    AdjustmentDirection,
    AdjustmentRecord,
    CategoryRecord,
    ConsumptionRecord,
    ItemRecord,
    MovementKind,
    PurchaseRecord,
    ReturnRecord,
)
from stock_ledger.domain.views import (
    build_dashboard,
    days_until,
    expiry_alerts,
    items_by_category,
    low_stock_items,
    out_of_stock_items,
    recent_activity,
    total_spend,
)

NOW = datetime(2024, 3, 1, 9, 0, 0, tzinfo=timezone.utc)


def _item(name="Flour", stock="10", reorder="5", category_id=None, expiry=None):
    return ItemRecord(
        id=uuid4(),
        name=name,
        category_id=category_id,
        unit_id=None,
        vendor_id=None,
        price=Decimal("1"),
        reorder_level=Decimal(reorder),
        opening_qty=Decimal(stock),
        stock_qty=Decimal(stock),
        has_expiry=expiry is not None,
        expiry_date=expiry,
        created_at=NOW,
    )


def _category(name):
    return CategoryRecord(id=uuid4(), name=name, description="", created_at=NOW)


def _purchase(item, qty="1", total="0", at=NOW):
    return PurchaseRecord(
        id=uuid4(),
        item_id=item.id,
        vendor_id=None,
        quantity=Decimal(qty),
        total_amount=Decimal(total),
        created_at=at,
    )


def _consumption(item, qty="1", at=NOW):
    return ConsumptionRecord(id=uuid4(), item_id=item.id, quantity=Decimal(qty), created_at=at)


class TestStockLevels:

    def test_low_stock_window(self):
        low = _item("Low", stock="4", reorder="5")
        at_level = _item("At level", stock="5", reorder="5")
        fine = _item("Fine", stock="6", reorder="5")
        empty = _item("Empty", stock="0", reorder="5")
        snapshot = RegistrySnapshot(items=(low, at_level, fine, empty))

        assert low_stock_items(snapshot) == [low, at_level]
        assert out_of_stock_items(snapshot) == [empty]

    def test_zero_reorder_level_never_low(self):
        snapshot = RegistrySnapshot(items=(_item(stock="1", reorder="0"),))
        assert low_stock_items(snapshot) == []


class TestExpiryAlerts:

    def test_days_rounded_up(self):
        assert days_until(NOW + timedelta(days=4, hours=1), NOW) == 5
        assert days_until(NOW + timedelta(days=5), NOW) == 5
        assert days_until(NOW - timedelta(hours=1), NOW) == 0
        assert days_until(NOW - timedelta(days=2), NOW) == -2

    def test_within_window_alerts(self):
        soon = _item("Milk", expiry=NOW + timedelta(days=5))
        later = _item("Rice", expiry=NOW + timedelta(days=30))
        snapshot = RegistrySnapshot(items=(soon, later))

        alerts = expiry_alerts(snapshot, NOW)

        assert [a.item for a in alerts] == [soon]
        assert alerts[0].days_remaining == 5

    def test_window_boundary_inclusive(self):
        edge = _item(expiry=NOW + timedelta(days=14))
        assert len(expiry_alerts(RegistrySnapshot(items=(edge,)), NOW)) == 1
        assert expiry_alerts(RegistrySnapshot(items=(edge,)), NOW, warning_days=13) == []

    def test_expired_items_first(self):
        expired = _item("Expired", expiry=NOW - timedelta(days=3))
        soon = _item("Soon", expiry=NOW + timedelta(days=2))
        snapshot = RegistrySnapshot(items=(soon, expired))

        alerts = expiry_alerts(snapshot, NOW)

        assert [a.item.name for a in alerts] == ["Expired", "Soon"]
        assert alerts[0].days_remaining == -3

    def test_items_without_expiry_ignored(self):
        snapshot = RegistrySnapshot(items=(_item(),))
        assert expiry_alerts(snapshot, NOW) == []


class TestRecentActivity:

    def test_labels_per_kind(self):
        flour = _item("Flour")
        snapshot = RegistrySnapshot(
            items=(flour,),
            purchases=(_purchase(flour, "20", at=NOW),),
            consumptions=(
                _consumption(flour, "6", at=NOW + timedelta(seconds=1)),
                _consumption(flour, "-2", at=NOW + timedelta(seconds=2)),
            ),
            returns=(
                ReturnRecord(
                    id=uuid4(),
                    item_id=flour.id,
                    quantity=Decimal("1.5"),
                    reason="torn bag",
                    created_at=NOW + timedelta(seconds=3),
                ),
            ),
            adjustments=(
                AdjustmentRecord(
                    id=uuid4(),
                    item_id=flour.id,
                    quantity=Decimal("4"),
                    direction=AdjustmentDirection.DECREASE,
                    reason="recount",
                    created_at=NOW + timedelta(seconds=4),
                ),
            ),
        )

        entries = recent_activity(snapshot)

        assert [(e.title, e.label) for e in entries] == [
            ("Adjustment", "Flour · Decrease 4"),
            ("Return", "Flour · Qty 1.5"),
            ("Consumption", "Flour · Undo 2"),
            ("Consumption", "Flour · Consumed 6"),
            ("Purchase", "Flour · Qty 20"),
        ]

    def test_unknown_item_label(self):
        ghost = _item("Ghost")
        snapshot = RegistrySnapshot(purchases=(_purchase(ghost, "1"),))
        assert recent_activity(snapshot)[0].label == "Item · Qty 1"

    def test_truncated_to_limit(self):
        flour = _item()
        consumptions = tuple(
            _consumption(flour, "1", at=NOW + timedelta(seconds=i)) for i in range(15)
        )
        snapshot = RegistrySnapshot(items=(flour,), consumptions=consumptions)

        entries = recent_activity(snapshot)

        assert len(entries) == 10
        assert entries[0].movement_id == consumptions[-1].id
        assert len(recent_activity(snapshot, limit=3)) == 3

    def test_ties_keep_kind_order(self):
        flour = _item()
        purchase = _purchase(flour, at=NOW)
        consumption = _consumption(flour, at=NOW)
        snapshot = RegistrySnapshot(
            items=(flour,), purchases=(purchase,), consumptions=(consumption,)
        )

        entries = recent_activity(snapshot)

        assert [e.kind for e in entries] == [MovementKind.PURCHASE, MovementKind.CONSUMPTION]


class TestSpendAndGrouping:

    def test_total_spend(self):
        flour = _item()
        snapshot = RegistrySnapshot(
            purchases=(_purchase(flour, total="100"), _purchase(flour, total="12.50"))
        )
        assert total_spend(snapshot) == Decimal("112.50")

    def test_total_spend_empty(self):
        assert total_spend(RegistrySnapshot()) == Decimal("0")

    def test_groups_sorted_with_uncategorized_last(self):
        spices = _category("Spices")
        baking = _category("Baking")
        sugar = _item("Sugar", category_id=baking.id)
        flour = _item("Flour", category_id=baking.id)
        salt = _item("Salt", category_id=None)
        orphan = _item("Orphan", category_id=uuid4())
        snapshot = RegistrySnapshot(
            categories=(spices, baking), items=(sugar, flour, salt, orphan)
        )

        groups = items_by_category(snapshot)

        assert [g.title for g in groups] == ["Baking", "Spices", "Uncategorized"]
        assert [i.name for i in groups[0].items] == ["Flour", "Sugar"]
        assert groups[1].items == ()
        assert [i.name for i in groups[2].items] == ["Orphan", "Salt"]
        assert groups[2].category_id is None

    def test_no_uncategorized_group_when_empty(self):
        baking = _category("Baking")
        snapshot = RegistrySnapshot(
            categories=(baking,), items=(_item(category_id=baking.id),)
        )
        assert [g.title for g in items_by_category(snapshot)] == ["Baking"]


class TestDashboard:

    def test_bundle(self):
        low = _item("Low", stock="2", reorder="5", expiry=NOW + timedelta(days=1))
        empty = _item("Empty", stock="0")
        snapshot = RegistrySnapshot(
            items=(low, empty),
            purchases=(_purchase(low, "2", total="8"),),
        )

        dashboard = build_dashboard(snapshot, NOW)

        assert dashboard.total_items == 2
        assert dashboard.low_stock == (low,)
        assert dashboard.out_of_stock == (empty,)
        assert [a.item for a in dashboard.expiry_alerts] == [low]
        assert len(dashboard.recent_activity) == 1
        assert dashboard.total_spend == Decimal("8")
