"""
DocumentStore -- the persistence contract the ledger is written against.

Responsibility:
    Three primitives over the relational store:

    - ``fetch_collection(name)``: every document of a collection, as records.
    - ``create_document(name, fields)``: insert one reference or item
      document with a store-assigned id and ``created_at``.
    - ``atomic_apply(item_id, transition)``: read the item, hand its state to
      a pure transition function, write the new stock and append the
      movement, all in one transaction, retried on optimistic conflict.

Architecture position:
    Ledger > Services -- imperative shell.  The only module that opens
    sessions and commits.  Business rules live in domain/movement_rules.py
    and reach this module only as the ``transition`` callable.

Invariants enforced:
    - Atomicity: the item's new ``stock_qty`` and its movement row commit
      together or not at all.
    - Optimistic concurrency: the item UPDATE is version-checked
      (models/item.py).  A lost race raises StaleDataError at flush; the
      whole attempt is rolled back and re-run from a fresh read, up to
      ``max_attempts`` times with exponential backoff.
    - Movements are only ever written here, never via create_document.

Failure modes:
    - NotConfiguredError: no usable database; nothing is attempted.
    - ItemNotFoundError: item missing (or id unparseable) at read time.
    - Whatever the transition raises (InsufficientStockError): rolled back,
      re-raised unchanged, never retried.
    - TransactionAbortedError: conflicts or store errors on every attempt;
      the last OptimisticLockError / driver error is chained as __cause__.

Audit relevance:
    ``ledger_transaction_conflict`` is logged per lost race and
    ``ledger_transaction_committed`` per success, with the attempt count.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Mapping
from uuid import UUID

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from stock_ledger.config import LedgerConfig
from stock_ledger.db.engine import (
    create_tables,
    get_session_factory,
    init_engine_from_url,
    session_scope,
)
from stock_ledger.db.immutability import register_immutability_listeners
from stock_ledger.domain.clock import Clock, SystemClock
from stock_ledger.domain.movement_rules import ItemState, StockTransition
from stock_ledger.domain.values import MovementRecord
from stock_ledger.exceptions import (
    ItemNotFoundError,
    NotConfiguredError,
    OptimisticLockError,
    TransactionAbortedError,
    UnknownCollectionError,
    ValidationError,
)
from stock_ledger.logging_config import LogContext, get_logger
from stock_ledger.models import COLLECTIONS, MOVEMENT_COLLECTIONS, MOVEMENT_MODELS, ItemModel
from stock_ledger.selectors.collection_selector import CollectionSelector

logger = get_logger("services.store")

# Fields the store assigns itself; callers may not supply them
_STORE_ASSIGNED_FIELDS = frozenset({"id", "created_at", "version"})


@dataclass(frozen=True)
class AppliedTransition:
    """A committed transition together with the movement it appended."""

    transition: StockTransition
    movement: MovementRecord
    attempts: int

    @property
    def new_stock_qty(self) -> Decimal:
        return self.transition.new_stock_qty


class DocumentStore:
    """
    Relational implementation of the document store contract.

    Contract:
        One session per ``create_document`` call and per ``atomic_apply``
        attempt.  Sessions never outlive the call that opened them.

    Guarantees:
        - ``created_at`` is the injected clock's time at write.
        - ``atomic_apply`` commits at most one movement per call.

    Non-goals:
        - Does NOT validate requests; callers build validated requests
          first (domain/movement_rules.py).
        - Does NOT lock rows pessimistically.
    """

    DEFAULT_MAX_ATTEMPTS = 5

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None,
        clock: Clock | None = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_backoff_seconds: float = 0.05,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        self._session_factory = session_factory
        self._clock = clock or SystemClock()
        self.max_attempts = max_attempts
        self.retry_backoff_seconds = retry_backoff_seconds
        self._sleep = sleep
        if session_factory is not None:
            register_immutability_listeners()

    @classmethod
    def from_config(cls, config: LedgerConfig, clock: Clock | None = None) -> DocumentStore:
        """
        Build a store from settings.

        An unconfigured ``config`` yields a store whose mutations raise
        NotConfiguredError; no engine is created.
        """
        if not config.is_configured:
            logger.warning("store_not_configured")
            return cls(
                None,
                clock=clock,
                max_attempts=config.max_attempts,
                retry_backoff_seconds=config.retry_backoff_seconds,
            )

        init_engine_from_url(config.database_url, echo=config.echo_sql)
        create_tables()
        return cls(
            get_session_factory(),
            clock=clock,
            max_attempts=config.max_attempts,
            retry_backoff_seconds=config.retry_backoff_seconds,
        )

    @property
    def is_configured(self) -> bool:
        return self._session_factory is not None

    @property
    def clock(self) -> Clock:
        return self._clock

    def require_configured(self, operation: str) -> None:
        if self._session_factory is None:
            raise NotConfiguredError(operation)

    # ------------------------------------------------------------------
    # Reads and reference writes
    # ------------------------------------------------------------------

    def fetch_collection(self, name: str) -> tuple:
        """All documents of collection ``name``, oldest first."""
        self.require_configured("fetch_collection")
        with LogContext.bind(collection=name):
            with session_scope(self._session_factory) as session:
                records = CollectionSelector(session).fetch(name)
            logger.debug("collection_fetched", extra={"count": len(records)})
            return records

    def create_document(self, name: str, fields: Mapping[str, Any]):
        """
        Insert one document into collection ``name`` and return its record.

        Raises:
            NotConfiguredError: store not configured.
            UnknownCollectionError: ``name`` is not a collection.
            ValidationError: ``name`` is a movement collection, or ``fields``
                names a store-assigned or unknown field.
        """
        self.require_configured("create_document")
        model = COLLECTIONS.get(name)
        if model is None:
            raise UnknownCollectionError(name)
        if name in MOVEMENT_COLLECTIONS:
            raise ValidationError(
                "collection",
                f"'{name}' is append-only; movements are written by atomic_apply",
            )
        for key in fields:
            if key in _STORE_ASSIGNED_FIELDS:
                raise ValidationError(key, "is assigned by the store")
            if key not in model.__mapper__.columns:
                raise ValidationError(key, f"is not a field of '{name}'")

        with LogContext.bind(collection=name):
            with session_scope(self._session_factory) as session:
                document = model(**fields, created_at=self._clock.now())
                session.add(document)
                session.flush()
                record = document.to_record()

            logger.info("document_created", extra={"document_id": str(record.id)})
            return record

    # ------------------------------------------------------------------
    # Atomic apply
    # ------------------------------------------------------------------

    def atomic_apply(
        self,
        item_id: UUID | str,
        transition: Callable[[ItemState], StockTransition],
    ) -> AppliedTransition:
        """
        Apply ``transition`` to the item atomically, retrying on conflict.

        ``transition`` is called once per attempt with the item state read
        inside that attempt; it must be pure.  Any exception it raises aborts
        the attempt and propagates unchanged.
        """
        self.require_configured("atomic_apply")
        item_uuid = self._coerce_item_id(item_id)

        last_error: Exception | None = None
        with LogContext.bind(item_id=str(item_uuid)):
            for attempt in range(1, self.max_attempts + 1):
                session = self._session_factory()
                try:
                    state = self._load_item_state(session, item_uuid)
                    planned = transition(state)
                    movement = self._write_transition(session, planned)
                    session.commit()
                except StaleDataError as exc:
                    session.rollback()
                    conflict = OptimisticLockError("Item", str(item_uuid))
                    conflict.__cause__ = exc
                    last_error = conflict
                    logger.warning(
                        "ledger_transaction_conflict",
                        extra={"attempt": attempt, "max_attempts": self.max_attempts},
                    )
                except OperationalError as exc:
                    session.rollback()
                    last_error = exc
                    logger.warning(
                        "ledger_transaction_store_error",
                        extra={
                            "attempt": attempt,
                            "max_attempts": self.max_attempts,
                            "error": str(exc.orig) if exc.orig is not None else str(exc),
                        },
                    )
                except Exception:
                    session.rollback()
                    raise
                else:
                    logger.info(
                        "ledger_transaction_committed",
                        extra={
                            "attempt": attempt,
                            "movement_id": str(movement.id),
                            "new_stock_qty": planned.new_stock_qty,
                        },
                    )
                    return AppliedTransition(
                        transition=planned,
                        movement=movement,
                        attempts=attempt,
                    )
                finally:
                    session.close()

                if attempt < self.max_attempts:
                    self._sleep(self._backoff_delay(attempt))

            reason = (
                "conflict retries exhausted"
                if isinstance(last_error, OptimisticLockError)
                else "store unavailable"
            )
            logger.error(
                "ledger_transaction_aborted",
                extra={"attempts": self.max_attempts, "reason": reason},
            )
            raise TransactionAbortedError(
                item_id=str(item_uuid),
                attempts=self.max_attempts,
                reason=reason,
            ) from last_error

    def _load_item_state(self, session: Session, item_id: UUID) -> ItemState:
        """Read the item inside the attempt's session."""
        item = session.get(ItemModel, item_id)
        if item is None:
            raise ItemNotFoundError(str(item_id))
        return ItemState(
            item_id=item.id,
            stock_qty=item.stock_qty,
            price=item.price,
            vendor_id=item.vendor_id,
        )

    def _write_transition(self, session: Session, planned: StockTransition) -> MovementRecord:
        item = session.get(ItemModel, planned.item_id)
        if item is None:
            raise ItemNotFoundError(str(planned.item_id))

        draft = planned.movement
        item.stock_qty = planned.new_stock_qty

        movement_model = MOVEMENT_MODELS[draft.kind]
        movement = movement_model(
            item_id=draft.item_id,
            quantity=draft.quantity,
            created_at=self._clock.now(),
            **dict(draft.fields),
        )
        session.add(movement)
        # Version-checked UPDATE and the INSERT go out here
        session.flush()
        return movement.to_record()

    def _backoff_delay(self, attempt: int) -> float:
        return self.retry_backoff_seconds * (2 ** (attempt - 1))

    @staticmethod
    def _coerce_item_id(item_id: UUID | str) -> UUID:
        if isinstance(item_id, UUID):
            return item_id
        try:
            return UUID(str(item_id))
        except ValueError as exc:
            raise ItemNotFoundError(str(item_id)) from exc
