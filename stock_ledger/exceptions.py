"""
Typed Exception Hierarchy for the Stock Ledger.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (a UI, a CLI, an API layer) must react to ledger failures precisely:
show "not enough stock" differently from "item was deleted" or "database
unreachable".  Parsing message strings for that is fragile, so:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example:
    try:
        ledger.consume(item_id, Decimal("5"))
    except InsufficientStockError as e:
        notify(f"Only {e.current_stock} left")
        log_payload(code=e.code, item=e.item_id)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    StockLedgerError (base)
    |
    +-- ConfigurationError
    |   +-- NotConfiguredError
    |
    +-- ValidationError
    |   +-- UnknownCollectionError
    |
    +-- LedgerError
    |   +-- ItemNotFoundError
    |   +-- InsufficientStockError
    |
    +-- ConcurrencyError
    |   +-- OptimisticLockError
    |   +-- TransactionAbortedError
    |   +-- DuplicateSubmissionError
    |
    +-- ImmutabilityError
    |   +-- ImmutabilityViolationError
    |
    +-- RegistryError
        +-- RegistryRefreshError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category      | Code                      | When Raised
--------------|---------------------------|------------------------------------------
Configuration | NOT_CONFIGURED            | No usable database URL; mutations refused
Validation    | VALIDATION_ERROR          | Missing field / non-positive quantity
              | UNKNOWN_COLLECTION        | Collection name not part of the store
Ledger        | ITEM_NOT_FOUND            | Item id unresolved at transaction time
              | INSUFFICIENT_STOCK        | Movement would drive stock below zero
Concurrency   | OPTIMISTIC_LOCK_CONFLICT  | One attempt lost a race (retried)
              | TRANSACTION_ABORTED       | Retries exhausted or connectivity lost
              | DUPLICATE_SUBMISSION      | Same submission key already in flight
Immutability  | IMMUTABILITY_VIOLATION    | Update/delete of an append-only record
Registry      | REGISTRY_REFRESH_FAILED   | A collection fetch failed during refresh

===============================================================================
DESIGN DECISIONS
===============================================================================

1. Nothing here is fatal to the process.  Every error is meant to be shown
   to the user as a transient notification, after which the caller keeps
   working with the previous registry snapshot.

2. OptimisticLockError is internal to the store's retry loop.  Callers only
   ever see it as the ``__cause__`` of a TransactionAbortedError.

3. ``code`` is a class attribute so it can be read without instantiation.
"""

from decimal import Decimal


class StockLedgerError(Exception):
    """
    Base exception for all stock ledger errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "STOCK_LEDGER_ERROR"


# Configuration


class ConfigurationError(StockLedgerError):
    """Base exception for configuration errors."""

    code: str = "CONFIGURATION_ERROR"


class NotConfiguredError(ConfigurationError):
    """The document store has no usable database connection."""

    code: str = "NOT_CONFIGURED"

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(
            f"Cannot {operation}: the stock ledger store is not configured"
        )


# Validation


class ValidationError(StockLedgerError):
    """A request failed local validation before reaching the store."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


class UnknownCollectionError(ValidationError):
    """Collection name is not one of the store's collections."""

    code: str = "UNKNOWN_COLLECTION"

    def __init__(self, collection: str):
        self.collection = collection
        super().__init__("collection", f"unknown collection '{collection}'")


# Ledger


class LedgerError(StockLedgerError):
    """Base exception for stock movement failures."""

    code: str = "LEDGER_ERROR"


class ItemNotFoundError(LedgerError):
    """Item referenced by a movement does not exist at transaction time."""

    code: str = "ITEM_NOT_FOUND"

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Item not found: {item_id}")


class InsufficientStockError(LedgerError):
    """Movement would leave the item's stock below zero."""

    code: str = "INSUFFICIENT_STOCK"

    def __init__(
        self,
        item_id: str,
        movement_kind: str,
        current_stock: Decimal,
        requested: Decimal,
    ):
        self.item_id = item_id
        self.movement_kind = movement_kind
        self.current_stock = current_stock
        self.requested = requested
        super().__init__(
            f"Insufficient stock for {movement_kind} on item {item_id}: "
            f"{current_stock} on hand, {requested} requested"
        )


# Concurrency


class ConcurrencyError(StockLedgerError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class OptimisticLockError(ConcurrencyError):
    """Optimistic locking conflict detected."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id}: "
            "entity was modified by another transaction"
        )


class TransactionAbortedError(ConcurrencyError):
    """The atomic operation could not be committed."""

    code: str = "TRANSACTION_ABORTED"

    def __init__(self, item_id: str, attempts: int, reason: str):
        self.item_id = item_id
        self.attempts = attempts
        self.reason = reason
        super().__init__(
            f"Transaction on item {item_id} aborted after {attempts} "
            f"attempt(s): {reason}"
        )


class DuplicateSubmissionError(ConcurrencyError):
    """A submission with the same key is still being processed."""

    code: str = "DUPLICATE_SUBMISSION"

    def __init__(self, submission_key: str):
        self.submission_key = submission_key
        super().__init__(
            f"Submission '{submission_key}' is already in progress"
        )


# Immutability


class ImmutabilityError(StockLedgerError):
    """Base exception for immutability-related errors."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted to modify or delete an append-only record.

    Movements are immutable from creation; items are never deleted.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


# Registry


class RegistryError(StockLedgerError):
    """Base exception for item registry errors."""

    code: str = "REGISTRY_ERROR"


class RegistryRefreshError(RegistryError):
    """A collection fetch failed; the previous snapshot was kept."""

    code: str = "REGISTRY_REFRESH_FAILED"

    def __init__(self, collection: str, reason: str):
        self.collection = collection
        self.reason = reason
        super().__init__(
            f"Registry refresh failed while fetching '{collection}': {reason}"
        )
