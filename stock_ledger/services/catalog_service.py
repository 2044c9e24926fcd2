"""
CatalogService -- create categories, units, vendors and items.

Responsibility:
    Validate the master-data forms locally and write each document through
    the store's ``create_document`` primitive.  Item creation seeds
    ``stock_qty`` from the opening quantity; after that only the ledger
    changes stock.

Architecture position:
    Ledger > Services -- imperative shell over DocumentStore.

Failure modes:
    - NotConfiguredError: store has no database.
    - ValidationError: a required field is blank, or a number is negative,
      not a number, or outside what the Numeric columns store exactly.

Reference fields are not checked against their collections.  A missing or
dangling ``category_id`` simply shows as "Uncategorized".
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Any
from uuid import UUID

from stock_ledger.db.types import to_decimal
from stock_ledger.domain.values import CategoryRecord, ItemRecord, UnitRecord, VendorRecord
from stock_ledger.exceptions import ValidationError
from stock_ledger.logging_config import get_logger
from stock_ledger.services.store import DocumentStore

logger = get_logger("services.catalog")


class CatalogService:
    """Master-data creation."""

    def __init__(self, store: DocumentStore):
        self._store = store

    def create_category(self, name: str, description: str = "") -> CategoryRecord:
        self._store.require_configured("create category")
        return self._store.create_document(
            "categories",
            {
                "name": _required_text(name, "name"),
                "description": _optional_text(description, "description"),
            },
        )

    def create_unit(self, display_name: str, unit_name: str) -> UnitRecord:
        self._store.require_configured("create unit")
        return self._store.create_document(
            "units",
            {
                "display_name": _required_text(display_name, "display_name"),
                "unit_name": _required_text(unit_name, "unit_name"),
            },
        )

    def create_vendor(
        self,
        name: str,
        address: str = "",
        mobile: str = "",
        email: str = "",
        opening_balance: Any = 0,
    ) -> VendorRecord:
        self._store.require_configured("create vendor")
        return self._store.create_document(
            "vendors",
            {
                "name": _required_text(name, "name"),
                "address": _optional_text(address, "address"),
                "mobile": _optional_text(mobile, "mobile"),
                "email": _optional_text(email, "email"),
                "opening_balance": _non_negative(opening_balance, "opening_balance"),
            },
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
    ) -> ItemRecord:
        """
        Create an item whose stock starts at ``opening_qty``.

        ``expiry_date`` is kept only when ``has_expiry`` is set, and may be
        left out even then.  A plain ``date`` is stored as midnight UTC.
        """
        self._store.require_configured("create item")

        opening = _non_negative(opening_qty, "opening_qty")
        expiry = None
        if has_expiry and expiry_date is not None:
            expiry = _as_utc_datetime(expiry_date)

        record = self._store.create_document(
            "items",
            {
                "name": _required_text(name, "name"),
                "category_id": _optional_reference(category_id, "category_id"),
                "unit_id": _required_reference(unit_id, "unit_id"),
                "vendor_id": _required_reference(vendor_id, "vendor_id"),
                "price": _non_negative(price, "price"),
                "reorder_level": _non_negative(reorder_level, "reorder_level"),
                "opening_qty": opening,
                "stock_qty": opening,
                "has_expiry": bool(has_expiry),
                "expiry_date": expiry,
            },
        )
        logger.info(
            "item_created",
            extra={"item_name": record.name, "opening_qty": record.opening_qty},
        )
        return record


def _required_text(value: Any, field: str) -> str:
    text = _optional_text(value, field)
    if not text:
        raise ValidationError(field, "is required")
    return text


def _optional_text(value: Any, field: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(field, "must be text")
    return value.strip()


def _non_negative(value: Any, field: str) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    try:
        amount = to_decimal(value, field)
    except (TypeError, ValueError) as exc:
        raise ValidationError(field, str(exc)) from exc
    if amount < 0:
        raise ValidationError(field, "cannot be negative")
    return amount


def _required_reference(value: Any, field: str) -> UUID:
    if value is None or value == "":
        raise ValidationError(field, "is required")
    return _optional_reference(value, field)


def _optional_reference(value: Any, field: str) -> UUID | None:
    if value is None or value == "":
        return None
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError as exc:
        raise ValidationError(field, f"not a valid id: {value!r}") from exc


def _as_utc_datetime(value: datetime | date) -> datetime:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    raise ValidationError("expiry_date", "must be a date or datetime")
