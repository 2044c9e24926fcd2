"""
Property-based tests for the pure movement rules.

Random sequences of movements are planned against an evolving item state.
Whatever the sequence, the stock never goes below zero and always equals
the opening quantity plus the deltas of the movements that were accepted.
"""

from decimal import Decimal
from uuid import uuid4

from hypothesis import given, settings
from hypothesis import strategies as st

from stock_ledger.domain.movement_rules import ItemState, MovementRequest, plan_movement
from stock_ledger.domain.values import AdjustmentDirection, MovementKind
from stock_ledger.exceptions import InsufficientStockError

quantities = st.decimals(
    min_value=Decimal("0.001"),
    max_value=Decimal("500"),
    places=3,
    allow_nan=False,
    allow_infinity=False,
)


@st.composite
def movement_requests(draw):
    kind = draw(st.sampled_from(list(MovementKind)))
    qty = draw(quantities)
    if kind is MovementKind.CONSUMPTION:
        if draw(st.booleans()):
            qty = -qty
        return MovementRequest.build(kind, qty)
    if kind is MovementKind.PURCHASE:
        return MovementRequest.build(kind, qty)
    if kind is MovementKind.RETURN:
        return MovementRequest.build(kind, qty, {"reason": "damaged"})
    direction = draw(st.sampled_from(list(AdjustmentDirection)))
    return MovementRequest.build(kind, qty, {"direction": direction, "reason": "recount"})


class TestStockFloorProperties:

    @given(
        opening=st.decimals(min_value=Decimal("0"), max_value=Decimal("1000"), places=3),
        requests=st.lists(movement_requests(), max_size=40),
    )
    @settings(max_examples=200, deadline=None)
    def test_stock_never_negative_and_matches_accepted_deltas(self, opening, requests):
        state = ItemState(item_id=uuid4(), stock_qty=opening, price=Decimal("1"), vendor_id=None)
        accepted = []

        for request in requests:
            try:
                transition = plan_movement(state, request)
            except InsufficientStockError as exc:
                assert exc.current_stock == state.stock_qty
                assert state.stock_qty + request.stock_delta < 0
                continue
            accepted.append(request)
            state = ItemState(
                item_id=state.item_id,
                stock_qty=transition.new_stock_qty,
                price=state.price,
                vendor_id=state.vendor_id,
            )
            assert state.stock_qty >= 0

        assert state.stock_qty == opening + sum((r.stock_delta for r in accepted), Decimal("0"))

    @given(request=movement_requests())
    @settings(deadline=None)
    def test_movement_quantity_matches_request(self, request):
        state = ItemState(
            item_id=uuid4(), stock_qty=Decimal("1000"), price=Decimal("2"), vendor_id=None
        )
        transition = plan_movement(state, request)
        assert transition.movement.quantity == request.quantity
        assert transition.new_stock_qty - transition.previous_stock_qty == request.stock_delta

    @given(qty=quantities)
    def test_increasing_movements_never_abort(self, qty):
        state = ItemState(item_id=uuid4(), stock_qty=Decimal("0"), price=Decimal("0"), vendor_id=None)
        for request in (
            MovementRequest.build(MovementKind.PURCHASE, qty),
            MovementRequest.build(MovementKind.CONSUMPTION, -qty),
            MovementRequest.build(
                MovementKind.ADJUSTMENT, qty, {"direction": "increase", "reason": "found"}
            ),
        ):
            assert plan_movement(state, request).new_stock_qty == qty
