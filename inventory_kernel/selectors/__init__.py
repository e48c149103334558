"""Read-only selectors over the stock read model."""

from inventory_kernel.selectors.base import BaseSelector
from inventory_kernel.selectors.stock_selector import (
    ItemDTO,
    LocationCapacityDTO,
    LocationDTO,
    LocationStockDTO,
    ReasonCodeDTO,
    StockBalanceDTO,
    StockSelector,
)

__all__ = [
    "BaseSelector",
    "StockSelector",
    "StockBalanceDTO",
    "LocationStockDTO",
    "LocationCapacityDTO",
    "ItemDTO",
    "LocationDTO",
    "ReasonCodeDTO",
]
