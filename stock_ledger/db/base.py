"""
Module: stock_ledger.db.base
Responsibility: Declarative base classes for all SQLAlchemy ORM models.  Provides
    the UUID primary key convention, the type annotation map for consistent
    column types, and the DocumentBase mixin carrying the store-assigned
    creation timestamp.
Architecture position: Ledger > DB.  Lowest-level import target; ALL model
    files import from here.  MUST NOT import from models/, services/,
    selectors/ or domain/.

Invariants enforced:
    - UUID primary keys: every document gets a uuid4 id, opaque to callers.
    - Decimal precision: Decimal maps to Numeric(38, 9).  Quantities and
      amounts NEVER use float.
    - Timestamps are timezone-aware UTC on the way in AND on the way out,
      including on backends (SQLite) that drop tzinfo.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import BigInteger, DateTime, Numeric, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from stock_ledger.db.types import STORAGE_PRECISION, STORAGE_SCALE


class UUIDString(TypeDecorator):
    """
    UUID type stored as String(36) for cross-database portability.

    Guarantees:
        - process_bind_param: UUID -> str on INSERT/UPDATE.
        - process_result_value: str -> UUID on SELECT.
    """

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return None

    def process_result_value(self, value, dialect):
        if value is not None:
            return PyUUID(value)
        return None


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware timestamp normalised to UTC.

    SQLite stores DateTime(timezone=True) without an offset and hands back
    naive values; those are read as UTC so that comparisons against
    ``Clock.now()`` never mix naive and aware datetimes.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class Base(DeclarativeBase):
    """
    Declarative base for all SQLAlchemy models.

    Guarantees:
        - id is always a uuid4-generated UUID stored as String(36).
        - Decimal maps to Numeric(38, 9).
        - datetime maps to UTCDateTime.
        - int maps to BigInteger.
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(STORAGE_PRECISION, STORAGE_SCALE),
        datetime: UTCDateTime(),
        PyUUID: UUIDString(),
        int: BigInteger,
    }

    id: Mapped[PyUUID] = mapped_column(
        UUIDString(),
        primary_key=True,
        default=uuid4,
    )


class DocumentBase(Base):
    """
    Abstract base for every persisted collection document.

    Contract:
        ``created_at`` is assigned by the document store from its injected
        clock at commit time; callers never supply it.  It is part of the
        document and never changes afterwards.
    """

    __abstract__ = True

    # Collection name exposed through the document store contract
    collection: ClassVar[str]

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
    )


# Re-export UUID for convenience
UUID = PyUUID
