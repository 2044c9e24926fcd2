"""ORM models for the stock ledger collections."""

from stock_ledger.models.catalog import CategoryModel, UnitModel, VendorModel
from stock_ledger.models.item import ItemModel
from stock_ledger.models.movements import (
    MOVEMENT_MODELS,
    AdjustmentModel,
    ConsumptionModel,
    MovementBase,
    PurchaseModel,
    ReturnModel,
)

# Collection name -> model, in the order the registry fetches them
COLLECTIONS = {
    model.collection: model
    for model in (
        CategoryModel,
        UnitModel,
        VendorModel,
        ItemModel,
        PurchaseModel,
        ConsumptionModel,
        ReturnModel,
        AdjustmentModel,
    )
}

MOVEMENT_COLLECTIONS = frozenset(model.collection for model in MOVEMENT_MODELS.values())

__all__ = [
    "COLLECTIONS",
    "MOVEMENT_COLLECTIONS",
    "MOVEMENT_MODELS",
    "AdjustmentModel",
    "CategoryModel",
    "ConsumptionModel",
    "ItemModel",
    "MovementBase",
    "PurchaseModel",
    "ReturnModel",
    "UnitModel",
    "VendorModel",
]
