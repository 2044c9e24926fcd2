"""
Tests for the ledger transaction engine: each movement kind end to end
against a real store, failure atomicity, and the ledger identity.
"""

from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from stock_ledger.domain.values import AdjustmentDirection, MovementKind
from stock_ledger.exceptions import (
    InsufficientStockError,
    ItemNotFoundError,
    NotConfiguredError,
    ValidationError,
)
from stock_ledger.models import ConsumptionModel, ItemModel, PurchaseModel
from stock_ledger.selectors.collection_selector import CollectionSelector
from stock_ledger.services.ledger_service import LedgerService


def _stock(db_session, item_id):
    db_session.expire_all()
    return db_session.get(ItemModel, item_id).stock_qty


def _count(db_session, model):
    return db_session.scalar(select(func.count()).select_from(model))


class TestConsumption:

    def test_consume_reduces_stock_and_appends_movement(self, ledger, make_item, db_session):
        item = make_item(opening_qty=10, reorder_level=5)

        result = ledger.consume(item.id, "6")

        assert result.kind is MovementKind.CONSUMPTION
        assert result.previous_stock_qty == Decimal("10")
        assert result.new_stock_qty == Decimal("4")
        assert result.attempts == 1
        assert _stock(db_session, item.id) == Decimal("4")
        movement = db_session.get(ConsumptionModel, result.movement_id)
        assert movement.quantity == Decimal("6")
        assert movement.item_id == item.id

    def test_insufficient_stock_leaves_everything_unchanged(self, ledger, make_item, db_session):
        item = make_item(opening_qty=3)

        with pytest.raises(InsufficientStockError) as exc_info:
            ledger.consume(item.id, "5")

        assert exc_info.value.current_stock == Decimal("3")
        assert _stock(db_session, item.id) == Decimal("3")
        assert _count(db_session, ConsumptionModel) == 0

    def test_undo_consumption_records_negative_quantity(self, ledger, make_item, db_session):
        item = make_item(opening_qty=10)
        ledger.consume(item.id, "6")

        result = ledger.undo_consumption(item.id, "2")

        assert result.new_stock_qty == Decimal("6")
        movement = db_session.get(ConsumptionModel, result.movement_id)
        assert movement.quantity == Decimal("-2")

    def test_undo_rejects_negative_input(self, ledger, make_item):
        item = make_item(opening_qty=10)
        with pytest.raises(ValidationError):
            ledger.undo_consumption(item.id, "-2")


class TestPurchase:

    def test_purchase_from_zero(self, ledger, make_item, db_session, reference_data):
        item = make_item(opening_qty=0)

        result = ledger.purchase(item.id, "20", total_amount="100")

        assert result.new_stock_qty == Decimal("20")
        movement = db_session.get(PurchaseModel, result.movement_id)
        assert movement.total_amount == Decimal("100")
        assert movement.vendor_id == reference_data.vendor.id

    def test_purchase_total_defaults_to_price_times_quantity(self, ledger, make_item, db_session):
        item = make_item(opening_qty=0, price="2.50")

        result = ledger.purchase(item.id, "3")

        movement = db_session.get(PurchaseModel, result.movement_id)
        assert movement.total_amount == Decimal("7.50")


class TestReturnAndAdjustment:

    def test_return_reduces_stock(self, ledger, make_item):
        item = make_item(opening_qty=5)
        result = ledger.return_stock(item.id, "2", "damaged")
        assert result.new_stock_qty == Decimal("3")

    def test_return_beyond_stock_fails(self, ledger, make_item, db_session):
        item = make_item(opening_qty=1)
        with pytest.raises(InsufficientStockError):
            ledger.return_stock(item.id, "2", "damaged")
        assert _stock(db_session, item.id) == Decimal("1")

    def test_adjustment_increase(self, ledger, make_item):
        item = make_item(opening_qty=3)
        result = ledger.adjust(item.id, "4", AdjustmentDirection.INCREASE, "recount")
        assert result.new_stock_qty == Decimal("7")

    def test_adjustment_decrease_below_zero_fails(self, ledger, make_item, db_session):
        item = make_item(opening_qty=3)
        with pytest.raises(InsufficientStockError):
            ledger.adjust(item.id, "4", "decrease", "recount")
        assert _stock(db_session, item.id) == Decimal("3")


class TestFailureModes:

    def test_unknown_item(self, ledger, reference_data):
        missing = uuid4()
        with pytest.raises(ItemNotFoundError) as exc_info:
            ledger.consume(missing, "1")
        assert exc_info.value.item_id == str(missing)

    def test_malformed_item_id(self, ledger, reference_data):
        with pytest.raises(ItemNotFoundError):
            ledger.consume("not-a-uuid", "1")

    def test_validation_happens_before_store(self, ledger, make_item, db_session):
        item = make_item(opening_qty=3)
        with pytest.raises(ValidationError):
            ledger.apply_movement(item.id, MovementKind.RETURN, "1", {"reason": " "})
        assert _stock(db_session, item.id) == Decimal("3")

    def test_unconfigured_store_refuses(self, unconfigured_store):
        ledger = LedgerService(unconfigured_store)
        with pytest.raises(NotConfiguredError):
            ledger.consume(uuid4(), "1")
        with pytest.raises(NotConfiguredError):
            ledger.undo_consumption(uuid4(), "1")

    def test_rejection_logged(self, ledger, make_item, captured_logs):
        item = make_item(opening_qty=1)
        with pytest.raises(InsufficientStockError):
            ledger.consume(item.id, "2")
        rejected = [r for r in captured_logs() if r["message"] == "movement_rejected"]
        assert rejected[-1]["error_code"] == "INSUFFICIENT_STOCK"
        assert rejected[-1]["movement_kind"] == "consumption"
        assert rejected[-1]["item_id"] == str(item.id)


class TestLedgerIdentity:

    def test_stock_equals_opening_plus_movement_deltas(self, ledger, make_item, db_session):
        item = make_item(opening_qty=10, price=1)
        ledger.purchase(item.id, "5")
        ledger.consume(item.id, "8")
        ledger.undo_consumption(item.id, "3")
        ledger.return_stock(item.id, "2", "damaged")
        ledger.adjust(item.id, "1", "decrease", "spillage")
        with pytest.raises(InsufficientStockError):
            ledger.consume(item.id, "100")

        balance = CollectionSelector(db_session).ledger_balance(item.id)

        assert balance.stored_stock_qty == Decimal("7")
        assert balance.movement_total == Decimal("-3")
        assert balance.movement_count == 5
        assert balance.is_consistent

    @pytest.mark.parametrize(
        "movement",
        [
            lambda ledger, item_id: ledger.consume(item_id, "0.0000000004"),
            lambda ledger, item_id: ledger.purchase(item_id, "0.0000000001", total_amount="1"),
        ],
    )
    def test_unstorable_precision_rejected_before_commit(
        self, ledger, make_item, registry, db_session, movement
    ):
        item = make_item(opening_qty=1)

        with pytest.raises(ValidationError) as exc_info:
            movement(ledger, item.id)
        assert exc_info.value.field == "quantity"

        balance = CollectionSelector(db_session).ledger_balance(item.id)
        assert balance.movement_count == 0
        assert balance.is_consistent
        assert registry.refresh().find_item(item.id).stock_qty == Decimal("1")

    def test_committed_movement_logged(self, ledger, make_item, captured_logs):
        item = make_item(opening_qty=2)
        ledger.consume(item.id, "1")
        committed = [r for r in captured_logs() if r["message"] == "movement_committed"]
        assert Decimal(committed[-1]["new_stock_qty"]) == Decimal("1")
        assert committed[-1]["attempts"] == 1
