"""
ItemRegistry -- the in-memory picture of the store that the UI reads.

Responsibility:
    Fetch all eight collections and publish them as one immutable
    RegistrySnapshot; answer lookups and choice lists from the current
    snapshot.

Architecture position:
    Ledger > Services -- imperative shell over DocumentStore.

Invariants enforced:
    - Wholesale replacement: a refresh builds a complete new snapshot and
      swaps it in with one assignment.  A failed refresh leaves the previous
      snapshot in place, so readers see either the old or the new state,
      never a mix.
    - Refreshes are not transactional: collections are read one after the
      other, so a snapshot may straddle a concurrent movement.  Nothing reads
      the snapshot for a stock decision; the ledger always re-reads the item.

Failure modes:
    - RegistryRefreshError: a collection fetch failed (cause chained).
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from stock_ledger.domain.clock import Clock
from stock_ledger.domain.snapshot import ChoiceOption, RegistrySnapshot
from stock_ledger.domain.values import ItemRecord
from stock_ledger.exceptions import RegistryRefreshError, StockLedgerError
from stock_ledger.logging_config import get_logger
from stock_ledger.services.store import DocumentStore

logger = get_logger("services.registry")

# Fetch order; also the RegistrySnapshot field names
REGISTRY_COLLECTIONS = (
    "categories",
    "units",
    "vendors",
    "items",
    "purchases",
    "consumptions",
    "returns",
    "adjustments",
)


class ItemRegistry:
    """
    Holds the current RegistrySnapshot.

    Starts empty; call ``refresh()`` to load.  Lookups never raise for a
    missing id: they return the fallback label.
    """

    def __init__(self, store: DocumentStore, clock: Clock | None = None):
        self._store = store
        self._clock = clock or store.clock
        self._snapshot = RegistrySnapshot.empty()

    @property
    def snapshot(self) -> RegistrySnapshot:
        return self._snapshot

    def refresh(self) -> RegistrySnapshot:
        """
        Reload every collection and replace the snapshot.

        On an unconfigured store this is a no-op returning the current
        snapshot.

        Raises:
            RegistryRefreshError: a fetch failed; the old snapshot is kept.
        """
        if not self._store.is_configured:
            logger.info("registry_refresh_skipped", extra={"reason": "not_configured"})
            return self._snapshot

        fetched = {}
        for collection in REGISTRY_COLLECTIONS:
            try:
                fetched[collection] = self._store.fetch_collection(collection)
            except (SQLAlchemyError, StockLedgerError, ValueError) as exc:
                logger.error(
                    "registry_refresh_failed",
                    extra={"failed_collection": collection},
                    exc_info=True,
                )
                raise RegistryRefreshError(collection, str(exc)) from exc

        snapshot = RegistrySnapshot(**fetched, refreshed_at=self._clock.now())
        self._snapshot = snapshot
        logger.info(
            "registry_refreshed",
            extra={f"{name}_count": len(fetched[name]) for name in REGISTRY_COLLECTIONS},
        )
        return snapshot

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def find_item(self, item_id: UUID | None) -> ItemRecord | None:
        return self._snapshot.find_item(item_id)

    def find_vendor_name(self, vendor_id: UUID | None) -> str:
        return self._snapshot.find_vendor_name(vendor_id)

    def find_unit_label(self, unit_id: UUID | None) -> str:
        return self._snapshot.find_unit_label(unit_id)

    def find_category_name(self, category_id: UUID | None) -> str:
        return self._snapshot.find_category_name(category_id)

    def category_choices(self) -> list[ChoiceOption]:
        return self._snapshot.category_choices()

    def unit_choices(self) -> list[ChoiceOption]:
        return self._snapshot.unit_choices()

    def vendor_choices(self) -> list[ChoiceOption]:
        return self._snapshot.vendor_choices()

    def item_choices(self, include_vendor: bool = False) -> list[ChoiceOption]:
        return self._snapshot.item_choices(include_vendor=include_vendor)
