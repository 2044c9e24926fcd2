"""
Movement rules -- the pure side of the ledger transaction.

Responsibility:
    Validate a movement request before any store interaction, and compute
    the stock transition a movement causes given the item's state as read
    inside the atomic operation.

Architecture position:
    Ledger > Domain -- pure functional core, zero I/O.  The document store's
    ``atomic_apply`` primitive calls ``plan_movement`` once per attempt with
    freshly read state; this module never retries or touches a session.

Invariants enforced:
    - Stock floor: a transition whose ``new_stock_qty`` would be negative is
      aborted with ``InsufficientStockError`` (consumption undo and purchases
      only increase stock and are never aborted).
    - The drafted movement carries exactly the quantity that produced the
      delta, so movement log and stock field cannot diverge.

Sign conventions:
    consumption  q (signed)       delta = -q
    purchase     q > 0            delta = +q
    return       q > 0            delta = -q
    adjustment   q > 0 + dir      delta = +q / -q
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Mapping
from uuid import UUID

from stock_ledger.db.types import check_storable, round_money, to_decimal
from stock_ledger.domain.values import AdjustmentDirection, MovementKind
from stock_ledger.exceptions import InsufficientStockError, ValidationError


@dataclass(frozen=True)
class ItemState:
    """Item fields read inside the atomic operation."""

    item_id: UUID
    stock_qty: Decimal
    price: Decimal
    vendor_id: UUID | None


@dataclass(frozen=True)
class MovementRequest:
    """
    A validated request to apply one movement.

    Build through ``MovementRequest.build()``, which performs all local
    validation and raises ``ValidationError`` before any transaction begins.
    """

    kind: MovementKind
    quantity: Decimal
    direction: AdjustmentDirection | None = None
    reason: str | None = None
    total_amount: Decimal | None = None

    @classmethod
    def build(
        cls,
        kind: MovementKind | str,
        quantity: Any,
        metadata: Mapping[str, Any] | None = None,
    ) -> MovementRequest:
        metadata = dict(metadata or {})

        try:
            kind = MovementKind(kind)
        except ValueError as exc:
            raise ValidationError("kind", f"unknown movement kind '{kind}'") from exc

        qty = _parse_decimal(quantity, "quantity")

        if kind is MovementKind.CONSUMPTION:
            if qty == 0:
                raise ValidationError("quantity", "consumption quantity cannot be zero")
            return cls(kind=kind, quantity=qty)

        if qty <= 0:
            raise ValidationError("quantity", f"{kind.value} quantity must be positive")

        if kind is MovementKind.PURCHASE:
            total = metadata.get("total_amount")
            total_amount = None
            if total is not None:
                total_amount = _parse_decimal(total, "total_amount")
                if total_amount < 0:
                    raise ValidationError("total_amount", "cannot be negative")
            return cls(kind=kind, quantity=qty, total_amount=total_amount)

        reason = _require_text(metadata.get("reason"), "reason")

        if kind is MovementKind.RETURN:
            return cls(kind=kind, quantity=qty, reason=reason)

        raw_direction = metadata.get("direction")
        try:
            direction = AdjustmentDirection(raw_direction)
        except ValueError as exc:
            raise ValidationError(
                "direction", f"must be 'increase' or 'decrease', got {raw_direction!r}"
            ) from exc
        return cls(kind=kind, quantity=qty, direction=direction, reason=reason)

    @property
    def stock_delta(self) -> Decimal:
        """Signed change this request applies to the item's stock."""
        if self.kind is MovementKind.PURCHASE:
            return self.quantity
        if self.kind is MovementKind.ADJUSTMENT:
            if self.direction is AdjustmentDirection.INCREASE:
                return self.quantity
            return -self.quantity
        # consumption and return both take stock out
        return -self.quantity


@dataclass(frozen=True)
class MovementDraft:
    """The movement document to append, minus store-assigned id and timestamp."""

    kind: MovementKind
    item_id: UUID
    quantity: Decimal
    fields: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class StockTransition:
    """Result of a successful plan: the new stock and the movement to append."""

    item_id: UUID
    previous_stock_qty: Decimal
    new_stock_qty: Decimal
    movement: MovementDraft


def plan_movement(state: ItemState, request: MovementRequest) -> StockTransition:
    """
    Compute the stock transition for ``request`` against ``state``.

    Pure: same inputs always give the same transition or the same abort.

    Raises:
        InsufficientStockError: if the movement would break the stock floor.
        ValidationError: if the new stock or purchase total is too large to
            store.
    """
    new_stock = _storable(state.stock_qty + request.stock_delta, "quantity")

    if request.stock_delta < 0 and new_stock < 0:
        raise InsufficientStockError(
            item_id=str(state.item_id),
            movement_kind=request.kind.value,
            current_stock=state.stock_qty,
            requested=-request.stock_delta,
        )

    return StockTransition(
        item_id=state.item_id,
        previous_stock_qty=state.stock_qty,
        new_stock_qty=new_stock,
        movement=MovementDraft(
            kind=request.kind,
            item_id=state.item_id,
            quantity=request.quantity,
            fields=_kind_fields(state, request),
        ),
    )


def suggest_purchase_total(price: Decimal, quantity: Decimal) -> Decimal:
    """Default purchase total: unit price times quantity, to the cent."""
    return round_money(price * quantity)


def _kind_fields(state: ItemState, request: MovementRequest) -> dict[str, Any]:
    if request.kind is MovementKind.PURCHASE:
        total = request.total_amount
        if total is None:
            total = _storable(
                suggest_purchase_total(state.price, request.quantity), "total_amount"
            )
        # vendor is snapshotted at transaction time, not taken from the caller
        return {"vendor_id": state.vendor_id, "total_amount": total}
    if request.kind is MovementKind.RETURN:
        return {"reason": request.reason}
    if request.kind is MovementKind.ADJUSTMENT:
        return {"direction": request.direction.value, "reason": request.reason}
    return {}


def _parse_decimal(value: Any, field_name: str) -> Decimal:
    if value is None:
        raise ValidationError(field_name, "is required")
    try:
        return to_decimal(value, field_name)
    except (TypeError, ValueError) as exc:
        raise ValidationError(field_name, str(exc)) from exc


def _storable(value: Decimal, field_name: str) -> Decimal:
    try:
        return check_storable(value, field_name)
    except ValueError as exc:
        raise ValidationError(field_name, str(exc)) from exc


def _require_text(value: Any, field_name: str) -> str:
    if value is not None and not isinstance(value, str):
        raise ValidationError(field_name, "must be text")
    text = (value or "").strip()
    if not text:
        raise ValidationError(field_name, "is required")
    return text
