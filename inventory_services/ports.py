"""
Collaborator ports for the movement editing services.

The engine never talks to a database or a transport directly.  It reads
stock, capacity and reference data through ``StockLookupPort`` and hands
finished documents to ``MovementSubmissionPort``.  ``SqlStockLookup``
(``inventory_services.sql_gateway``) binds the lookup port to the
SQLAlchemy read model; submission is always supplied by the host
application.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol, runtime_checkable

from inventory_modules.movements.models import (
    ItemInfo,
    LocationInfo,
    MovementDocument,
    MovementType,
    ReasonCodeSet,
    StockBalanceSnapshot,
)
from inventory_modules.movements.reasons import ReasonSource


@dataclass(frozen=True)
class LocationStockRow:
    """One on-hand row at a location."""

    item_id: str
    on_hand_quantity: Decimal
    batch_number: str | None = None


@dataclass(frozen=True)
class LocationCapacity:
    max_items: Decimal | None = None
    max_weight: Decimal | None = None
    max_volume: Decimal | None = None


@runtime_checkable
class StockLookupPort(Protocol):
    """Read side: balances, location stock/capacity and reference data."""

    async def stock_balance(
        self,
        item_id: str,
        location_id: str,
        batch_number: str | None = None,
    ) -> StockBalanceSnapshot:
        ...

    async def stock_by_location(self, location_id: str) -> Sequence[LocationStockRow]:
        ...

    async def location_capacity(self, location_id: str) -> LocationCapacity:
        ...

    async def reason_codes_for_movement_type(
        self,
        movement_type: MovementType,
        source: ReasonSource | None = None,
    ) -> ReasonCodeSet:
        ...

    async def active_items(self) -> Sequence[ItemInfo]:
        ...

    async def active_locations(self) -> Sequence[LocationInfo]:
        ...


@runtime_checkable
class MovementSubmissionPort(Protocol):
    """
    Write side: persists a finished document.

    Implementations raise ``SubmissionRejectedError`` when the backend
    refuses the document.
    """

    async def create_movement_batch(self, document: MovementDocument) -> MovementDocument:
        ...

    async def save_draft(self, document: MovementDocument) -> MovementDocument:
        ...
