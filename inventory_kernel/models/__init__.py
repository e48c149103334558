"""ORM models for the stock read model (items, locations, balances, reasons)."""

from inventory_kernel.models.item import ItemModel
from inventory_kernel.models.location import LocationModel
from inventory_kernel.models.reason_code import ReasonCodeModel
from inventory_kernel.models.stock_balance import StockBalanceModel

__all__ = [
    "ItemModel",
    "LocationModel",
    "ReasonCodeModel",
    "StockBalanceModel",
]
