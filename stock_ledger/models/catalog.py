"""
Module: stock_ledger.models.catalog
Responsibility: ORM persistence for the three reference collections that
    items point at: categories, units and vendors.
Architecture position: Ledger > Models.  May import from db/ and
    domain/values only.  MUST NOT import from services/ or selectors/.

Invariants enforced:
    None at the ORM level.  Items reference these documents by id without a
    foreign key; a deleted or missing reference degrades to a fallback label
    in the registry, it never fails a read.
"""

from decimal import Decimal

from sqlalchemy.orm import Mapped, mapped_column

from stock_ledger.db.base import DocumentBase
from stock_ledger.db.types import LongText, Money, ShortText
from stock_ledger.domain.values import CategoryRecord, UnitRecord, VendorRecord


class CategoryModel(DocumentBase):
    """Item grouping used by the consumption screen."""

    __tablename__ = "categories"
    collection = "categories"

    name: Mapped[ShortText] = mapped_column(nullable=False)
    description: Mapped[LongText] = mapped_column(nullable=False, default="")

    def __repr__(self) -> str:
        return f"<Category {self.name}>"

    def to_record(self) -> CategoryRecord:
        return CategoryRecord(
            id=self.id,
            name=self.name,
            description=self.description or "",
            created_at=self.created_at,
        )


class UnitModel(DocumentBase):
    """Unit of measure, e.g. display name "Kilogram" with unit name "kg"."""

    __tablename__ = "units"
    collection = "units"

    display_name: Mapped[ShortText] = mapped_column(nullable=False)
    unit_name: Mapped[ShortText] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return f"<Unit {self.display_name} ({self.unit_name})>"

    def to_record(self) -> UnitRecord:
        return UnitRecord(
            id=self.id,
            display_name=self.display_name,
            unit_name=self.unit_name,
            created_at=self.created_at,
        )


class VendorModel(DocumentBase):
    """Supplier an item is bought from."""

    __tablename__ = "vendors"
    collection = "vendors"

    name: Mapped[ShortText] = mapped_column(nullable=False)
    address: Mapped[LongText] = mapped_column(nullable=False, default="")
    mobile: Mapped[ShortText] = mapped_column(nullable=False, default="")
    email: Mapped[ShortText] = mapped_column(nullable=False, default="")
    opening_balance: Mapped[Money] = mapped_column(
        nullable=False,
        default=Decimal("0"),
    )

    def __repr__(self) -> str:
        return f"<Vendor {self.name}>"

    def to_record(self) -> VendorRecord:
        return VendorRecord(
            id=self.id,
            name=self.name,
            address=self.address or "",
            mobile=self.mobile or "",
            email=self.email or "",
            opening_balance=self.opening_balance,
            created_at=self.created_at,
        )
