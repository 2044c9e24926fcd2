"""
ORM-level append-only enforcement.

===============================================================================
WHY THIS EXISTS
===============================================================================

The movement collections are the ledger's history: each item's stock level is
explained by its opening quantity plus the deltas of its movements.  Editing
or deleting a movement would silently break that identity, and deleting an
item would orphan its movements.

===============================================================================
HOW IT WORKS
===============================================================================

SQLAlchemy fires mapper events before UPDATE/DELETE statements are emitted:

    session.flush()
         |
         v
    [before_update event] --> _refuse_movement_update() --> ImmutabilityViolationError
         |
         v
    [before_delete event] --> _refuse_*_delete() --------> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

The exception aborts the flush; the surrounding transaction is rolled back by
whoever owns the session.

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity          | Rule                             | Why
----------------|----------------------------------|-------------------------------
Purchase        | No UPDATE, no DELETE             | Movement log is append-only
Consumption     | No UPDATE, no DELETE             | Undo is a new negative row
Return          | No UPDATE, no DELETE             | Movement log is append-only
Adjustment      | No UPDATE, no DELETE             | Movement log is append-only
Item            | No DELETE (UPDATE allowed)       | Movements reference the item

Item updates stay allowed: the document store writes ``stock_qty`` (and
``version``) on every applied movement.

===============================================================================
USAGE
===============================================================================

Registered by the document store on construction (idempotent):

    from stock_ledger.db.immutability import register_immutability_listeners
    register_immutability_listeners()

To temporarily disable (TESTS ONLY):

    from stock_ledger.db.immutability import unregister_immutability_listeners
    unregister_immutability_listeners()

===============================================================================
"""

from sqlalchemy import event

from stock_ledger.exceptions import ImmutabilityViolationError
from stock_ledger.logging_config import get_logger

logger = get_logger("db.immutability")


def _blocked(entity_type: str, entity_id, operation: str, reason: str):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(entity_id),
            "operation": operation,
        },
    )
    return ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(entity_id),
        reason=reason,
    )


def _refuse_movement_update(mapper, connection, target):
    """Movements are immutable from creation."""
    entity_type = type(target).kind.label
    raise _blocked(
        entity_type,
        target.id,
        "UPDATE",
        f"{entity_type} movements are append-only and cannot be modified",
    )


def _refuse_movement_delete(mapper, connection, target):
    entity_type = type(target).kind.label
    raise _blocked(
        entity_type,
        target.id,
        "DELETE",
        f"{entity_type} movements are append-only and cannot be deleted",
    )


def _refuse_item_delete(mapper, connection, target):
    raise _blocked(
        "Item",
        target.id,
        "DELETE",
        "Items are never deleted; their movements reference them",
    )


def _listener_plan():
    from stock_ledger.models.item import ItemModel
    from stock_ledger.models.movements import MOVEMENT_MODELS

    plan = []
    for model in MOVEMENT_MODELS.values():
        plan.append((model, "before_update", _refuse_movement_update))
        plan.append((model, "before_delete", _refuse_movement_delete))
    plan.append((ItemModel, "before_delete", _refuse_item_delete))
    return plan


def register_immutability_listeners():
    """
    Register all append-only enforcement listeners.

    Safe to call repeatedly; a listener already in place is not added twice.
    """
    for target, event_name, listener_fn in _listener_plan():
        if not event.contains(target, event_name, listener_fn):
            event.listen(target, event_name, listener_fn)


def _safe_remove_listener(target, event_name, listener_fn):
    """
    Safely remove an event listener, ignoring if not registered.
    """
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove append-only enforcement listeners.

    WARNING: Only use this in tests where you need to intentionally
    violate immutability rules to verify detection.
    """
    for target, event_name, listener_fn in _listener_plan():
        _safe_remove_listener(target, event_name, listener_fn)
