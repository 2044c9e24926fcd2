"""
InventoryService -- single entry point for the presentation layer.

Responsibility:
    Own the store, ledger, catalog service and registry; run each mutation,
    refresh the registry afterwards, and serve the dashboard and other
    derived views from the current snapshot.

Architecture position:
    Ledger > Services -- outermost shell.  A UI (forms, tables, a CLI) calls
    only this class.

Invariants enforced:
    - A committed mutation is reported as committed even when the follow-up
      refresh fails; the failure is logged and the previous snapshot stays.
    - At most one in-flight submission per ``submission_key``.  A form that
      passes its key can not double-submit by a repeated click.

Failure modes:
    - Everything LedgerService and CatalogService raise, unchanged.
    - DuplicateSubmissionError: the same key is already being processed.
    - RegistryRefreshError from an explicit ``refresh()``.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from datetime import date, datetime
from typing import Any, Callable, Generator, TypeVar
from uuid import UUID

from stock_ledger.config import LedgerConfig
from stock_ledger.domain.clock import Clock
from stock_ledger.domain.snapshot import RegistrySnapshot
from stock_ledger.domain.values import (
    AdjustmentDirection,
    CategoryRecord,
    ItemRecord,
    MovementKind,
    UnitRecord,
    VendorRecord,
)
from stock_ledger.domain.views import (
    ActivityEntry,
    CategoryGroup,
    Dashboard,
    ExpiryAlert,
    build_dashboard,
    expiry_alerts,
    items_by_category,
    recent_activity,
)
from stock_ledger.exceptions import DuplicateSubmissionError, RegistryRefreshError
from stock_ledger.logging_config import LogContext, configure_logging, get_logger
from stock_ledger.services.catalog_service import CatalogService
from stock_ledger.services.ledger_service import LedgerService, MovementResult
from stock_ledger.services.registry import ItemRegistry
from stock_ledger.services.store import DocumentStore

logger = get_logger("services.inventory")

T = TypeVar("T")


class InventoryService:
    """
    Orchestrates ledger, catalog and registry.

    Usage:
        service = InventoryService.from_config(load_config())
        service.refresh()
        service.consume(item_id, "2", submission_key=form_token)
        service.dashboard().low_stock
    """

    def __init__(self, store: DocumentStore, config: LedgerConfig | None = None):
        self._config = config or LedgerConfig()
        self.store = store
        self.ledger = LedgerService(store)
        self.catalog = CatalogService(store)
        self.registry = ItemRegistry(store)
        self._in_flight: set[str] = set()
        self._in_flight_lock = threading.Lock()

    @classmethod
    def from_config(cls, config: LedgerConfig, clock: Clock | None = None) -> InventoryService:
        """Application startup: logging, engine, tables, services."""
        configure_logging(level=config.log_level.upper())
        return cls(DocumentStore.from_config(config, clock=clock), config=config)

    @property
    def is_configured(self) -> bool:
        return self.store.is_configured

    @property
    def snapshot(self) -> RegistrySnapshot:
        return self.registry.snapshot

    def refresh(self) -> RegistrySnapshot:
        return self.registry.refresh()

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    def dashboard(self, now: datetime | None = None) -> Dashboard:
        return build_dashboard(
            self.registry.snapshot,
            now or self.store.clock.now(),
            warning_days=self._config.expiry_warning_days,
            activity_limit=self._config.recent_activity_limit,
        )

    def expiry_alerts(self, now: datetime | None = None) -> list[ExpiryAlert]:
        return expiry_alerts(
            self.registry.snapshot,
            now or self.store.clock.now(),
            self._config.expiry_warning_days,
        )

    def recent_activity(self) -> list[ActivityEntry]:
        return recent_activity(self.registry.snapshot, self._config.recent_activity_limit)

    def items_by_category(self) -> list[CategoryGroup]:
        return items_by_category(self.registry.snapshot)

    # ------------------------------------------------------------------
    # Stock movements
    # ------------------------------------------------------------------

    def apply_movement(
        self,
        item_id: UUID | str,
        kind: MovementKind | str,
        quantity: Any,
        metadata: dict[str, Any] | None = None,
        submission_key: str | None = None,
    ) -> MovementResult:
        return self._mutate(
            submission_key,
            lambda: self.ledger.apply_movement(item_id, kind, quantity, metadata),
        )

    def consume(self, item_id, quantity, submission_key: str | None = None) -> MovementResult:
        return self._mutate(submission_key, lambda: self.ledger.consume(item_id, quantity))

    def undo_consumption(
        self, item_id, quantity, submission_key: str | None = None
    ) -> MovementResult:
        return self._mutate(
            submission_key, lambda: self.ledger.undo_consumption(item_id, quantity)
        )

    def purchase(
        self, item_id, quantity, total_amount=None, submission_key: str | None = None
    ) -> MovementResult:
        return self._mutate(
            submission_key, lambda: self.ledger.purchase(item_id, quantity, total_amount)
        )

    def return_stock(
        self, item_id, quantity, reason: str, submission_key: str | None = None
    ) -> MovementResult:
        return self._mutate(
            submission_key, lambda: self.ledger.return_stock(item_id, quantity, reason)
        )

    def adjust(
        self,
        item_id,
        quantity,
        direction: AdjustmentDirection | str,
        reason: str,
        submission_key: str | None = None,
    ) -> MovementResult:
        return self._mutate(
            submission_key,
            lambda: self.ledger.adjust(item_id, quantity, direction, reason),
        )

    # ------------------------------------------------------------------
    # Master data
    # ------------------------------------------------------------------

    def create_category(
        self, name: str, description: str = "", submission_key: str | None = None
    ) -> CategoryRecord:
        return self._mutate(
            submission_key, lambda: self.catalog.create_category(name, description)
        )

    def create_unit(
        self, display_name: str, unit_name: str, submission_key: str | None = None
    ) -> UnitRecord:
        return self._mutate(
            submission_key, lambda: self.catalog.create_unit(display_name, unit_name)
        )

    def create_vendor(
        self,
        name: str,
        address: str = "",
        mobile: str = "",
        email: str = "",
        opening_balance: Any = 0,
        submission_key: str | None = None,
    ) -> VendorRecord:
        return self._mutate(
            submission_key,
            lambda: self.catalog.create_vendor(name, address, mobile, email, opening_balance),
        )

    def create_item(
        self,
        name: str,
        category_id: UUID | str | None,
        unit_id: UUID | str,
        vendor_id: UUID | str,
        price: Any = 0,
        reorder_level: Any = 0,
        opening_qty: Any = 0,
        has_expiry: bool = False,
        expiry_date: datetime | date | None = None,
        submission_key: str | None = None,
    ) -> ItemRecord:
        return self._mutate(
            submission_key,
            lambda: self.catalog.create_item(
                name,
                category_id,
                unit_id,
                vendor_id,
                price=price,
                reorder_level=reorder_level,
                opening_qty=opening_qty,
                has_expiry=has_expiry,
                expiry_date=expiry_date,
            ),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _mutate(self, submission_key: str | None, operation: Callable[[], T]) -> T:
        with self._submission(submission_key):
            with LogContext.bind(correlation_id=submission_key):
                result = operation()
                self._refresh_after_commit()
                return result

    @contextmanager
    def _submission(self, submission_key: str | None) -> Generator[None, None, None]:
        if submission_key is None:
            yield
            return

        with self._in_flight_lock:
            if submission_key in self._in_flight:
                logger.warning(
                    "duplicate_submission_rejected",
                    extra={"submission_key": submission_key},
                )
                raise DuplicateSubmissionError(submission_key)
            self._in_flight.add(submission_key)
        try:
            yield
        finally:
            with self._in_flight_lock:
                self._in_flight.discard(submission_key)

    def _refresh_after_commit(self) -> None:
        try:
            self.registry.refresh()
        except RegistryRefreshError:
            # The mutation is committed; the UI keeps the previous snapshot
            logger.warning("post_commit_refresh_failed", exc_info=True)
