"""
LedgerService -- apply one stock movement to one item.

The ledger is responsible for:
- Validating a movement request before any store interaction
- Running the stock rule inside the store's atomic operation
- Reporting the committed result (new stock, movement id, attempts)

The ledger does NOT:
- Decide the stock rule (that's domain/movement_rules.plan_movement)
- Open sessions, commit or retry (that's the DocumentStore)
- Refresh any cached view of the store (that's the InventoryService)
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Mapping
from uuid import UUID

from stock_ledger.domain.movement_rules import MovementRequest, plan_movement
from stock_ledger.domain.values import AdjustmentDirection, MovementKind
from stock_ledger.exceptions import (
    InsufficientStockError,
    ItemNotFoundError,
    ValidationError,
)
from stock_ledger.logging_config import LogContext, get_logger
from stock_ledger.services.store import DocumentStore

logger = get_logger("services.ledger")


@dataclass(frozen=True)
class MovementResult:
    """Outcome of a committed movement."""

    item_id: UUID
    kind: MovementKind
    previous_stock_qty: Decimal
    new_stock_qty: Decimal
    movement_id: UUID
    attempts: int


class LedgerService:
    """
    Ledger transaction engine.

    Usage:
        ledger = LedgerService(store)
        result = ledger.consume(item_id, Decimal("6"))
        result.new_stock_qty   # Decimal("4")
    """

    def __init__(self, store: DocumentStore):
        self._store = store

    def apply_movement(
        self,
        item_id: UUID | str,
        kind: MovementKind | str,
        quantity: Any,
        metadata: Mapping[str, Any] | None = None,
    ) -> MovementResult:
        """
        Apply one movement atomically.

        Raises:
            NotConfiguredError: the store has no database.
            ValidationError: the request is malformed (nothing is attempted).
            ItemNotFoundError: the item does not exist.
            InsufficientStockError: the movement would make stock negative.
            TransactionAbortedError: conflicts or store errors on every attempt.
        """
        self._store.require_configured("apply movement")
        request = MovementRequest.build(kind, quantity, metadata)

        with LogContext.bind(movement_kind=request.kind.value, item_id=str(item_id)):
            try:
                applied = self._store.atomic_apply(
                    item_id, lambda state: plan_movement(state, request)
                )
            except (InsufficientStockError, ItemNotFoundError) as exc:
                logger.warning(
                    "movement_rejected",
                    extra={"error_code": exc.code, "quantity": request.quantity},
                )
                raise

            result = MovementResult(
                item_id=applied.transition.item_id,
                kind=request.kind,
                previous_stock_qty=applied.transition.previous_stock_qty,
                new_stock_qty=applied.transition.new_stock_qty,
                movement_id=applied.movement.id,
                attempts=applied.attempts,
            )
            logger.info(
                "movement_committed",
                extra={
                    "movement_id": str(result.movement_id),
                    "quantity": request.quantity,
                    "previous_stock_qty": result.previous_stock_qty,
                    "new_stock_qty": result.new_stock_qty,
                    "attempts": result.attempts,
                },
            )
            return result

    # ------------------------------------------------------------------
    # One wrapper per form
    # ------------------------------------------------------------------

    def consume(self, item_id: UUID | str, quantity: Any) -> MovementResult:
        return self.apply_movement(item_id, MovementKind.CONSUMPTION, quantity)

    def undo_consumption(self, item_id: UUID | str, quantity: Any) -> MovementResult:
        """Give back ``quantity`` previously consumed (a negative consumption)."""
        self._store.require_configured("apply movement")
        qty = MovementRequest.build(MovementKind.CONSUMPTION, quantity).quantity
        if qty < 0:
            raise ValidationError("quantity", "undo quantity must be positive")
        return self.apply_movement(item_id, MovementKind.CONSUMPTION, -qty)

    def purchase(
        self,
        item_id: UUID | str,
        quantity: Any,
        total_amount: Any = None,
    ) -> MovementResult:
        """Receive stock; ``total_amount`` defaults to quantity x item price."""
        return self.apply_movement(
            item_id,
            MovementKind.PURCHASE,
            quantity,
            {"total_amount": total_amount},
        )

    def return_stock(self, item_id: UUID | str, quantity: Any, reason: str) -> MovementResult:
        return self.apply_movement(
            item_id, MovementKind.RETURN, quantity, {"reason": reason}
        )

    def adjust(
        self,
        item_id: UUID | str,
        quantity: Any,
        direction: AdjustmentDirection | str,
        reason: str,
    ) -> MovementResult:
        return self.apply_movement(
            item_id,
            MovementKind.ADJUSTMENT,
            quantity,
            {"direction": direction, "reason": reason},
        )
