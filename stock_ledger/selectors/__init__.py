"""Selectors for the stock ledger (read side)."""

from stock_ledger.selectors.collection_selector import (
    CollectionSelector,
    ItemLedgerBalance,
)

__all__ = [
    "CollectionSelector",
    "ItemLedgerBalance",
]
