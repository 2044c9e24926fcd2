"""Database layer - engine, base classes, types, and immutability."""

from stock_ledger.db.base import UUID, Base, DocumentBase, UTCDateTime, UUIDString
from stock_ledger.db.engine import create_tables, get_engine, session_scope
from stock_ledger.db.types import LongText, Money, Quantity, ShortText

__all__ = [
    "get_engine",
    "session_scope",
    "create_tables",
    "Base",
    "DocumentBase",
    "UUIDString",
    "UTCDateTime",
    "UUID",
    "Money",
    "Quantity",
    "ShortText",
    "LongText",
]
