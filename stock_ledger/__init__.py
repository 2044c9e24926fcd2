"""
Stock Ledger

An inventory stock ledger with:
- Atomic apply-movement (stock update and movement log commit together)
- Optimistic concurrency with bounded retry
- Append-only movement collections
- Immutable registry snapshots and pure derived views
"""

__version__ = "0.1.0"
