"""Services for the stock ledger (write side and orchestration)."""

from stock_ledger.services.catalog_service import CatalogService
from stock_ledger.services.inventory_service import InventoryService
from stock_ledger.services.ledger_service import LedgerService, MovementResult
from stock_ledger.services.registry import REGISTRY_COLLECTIONS, ItemRegistry
from stock_ledger.services.store import AppliedTransition, DocumentStore

__all__ = [
    "DocumentStore",
    "AppliedTransition",
    "LedgerService",
    "MovementResult",
    "CatalogService",
    "ItemRegistry",
    "REGISTRY_COLLECTIONS",
    "InventoryService",
]
