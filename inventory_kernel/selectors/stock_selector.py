"""
Module: inventory_kernel.selectors.stock_selector
Responsibility: Read-only queries backing the movement engine's lookups:
    stock balance per (item, location[, batch]), on-hand rows per location,
    location capacity, active reference data and reason codes.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - available = on_hand - reserved - blocked - damaged, summed over every
      matching row (all batches when no batch is given).
    - Quantities are normalized (no column-scale trailing zeros).

Failure modes:
    - LocationNotFoundError from ``location_capacity`` for an unknown id.
    - Unknown item/location in ``balance`` yields an all-zero balance (no
      rows), matching what the ledger reports for never-stocked keys.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from inventory_kernel.domain.values import ZERO, normalize_quantity
from inventory_kernel.exceptions import LocationNotFoundError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models import (
    ItemModel,
    LocationModel,
    ReasonCodeModel,
    StockBalanceModel,
)
from inventory_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.stock")


@dataclass(frozen=True)
class StockBalanceDTO:
    on_hand: Decimal
    reserved: Decimal
    blocked: Decimal
    damaged: Decimal
    available: Decimal


@dataclass(frozen=True)
class LocationStockDTO:
    """One on-hand row at a location."""

    item_id: str
    batch_number: str | None
    on_hand_quantity: Decimal


@dataclass(frozen=True)
class LocationCapacityDTO:
    location_id: str
    max_items: Decimal | None
    max_weight: Decimal | None
    max_volume: Decimal | None


@dataclass(frozen=True)
class ItemDTO:
    id: str
    sku: str
    name: str
    unit_of_measure: str
    requires_batch_tracking: bool
    requires_serial_tracking: bool
    has_expiry_date: bool
    is_perishable: bool
    is_high_value: bool
    industry_type: str


@dataclass(frozen=True)
class LocationDTO:
    id: str
    code: str
    name: str


@dataclass(frozen=True)
class ReasonCodeDTO:
    code: str
    name: str
    category: str


def _as_uuid(value: str | UUID) -> UUID | None:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        return None


def _opt(value: Decimal | None) -> Decimal | None:
    return normalize_quantity(value) if value is not None else None


class StockSelector(BaseSelector[StockBalanceModel]):
    """
    Selector for stock and location reads.

    Returns DTOs rather than ORM models.  Uses the caller's Session.
    """

    def __init__(self, session: Session):
        super().__init__(session)

    def balance(
        self,
        item_id: str | UUID,
        location_id: str | UUID,
        batch_number: str | None = None,
    ) -> StockBalanceDTO:
        """Summed balance buckets for item at location (one batch or all)."""
        item_uuid = _as_uuid(item_id)
        location_uuid = _as_uuid(location_id)
        if item_uuid is None or location_uuid is None:
            return StockBalanceDTO(ZERO, ZERO, ZERO, ZERO, ZERO)

        stmt = select(
            func.coalesce(func.sum(StockBalanceModel.on_hand), ZERO),
            func.coalesce(func.sum(StockBalanceModel.reserved), ZERO),
            func.coalesce(func.sum(StockBalanceModel.blocked), ZERO),
            func.coalesce(func.sum(StockBalanceModel.damaged), ZERO),
        ).where(
            StockBalanceModel.item_id == item_uuid,
            StockBalanceModel.location_id == location_uuid,
        )
        if batch_number:
            stmt = stmt.where(StockBalanceModel.batch_number == batch_number)

        on_hand, reserved, blocked, damaged = self.session.execute(stmt).one()
        on_hand, reserved, blocked, damaged = (
            Decimal(str(v)) for v in (on_hand, reserved, blocked, damaged)
        )
        available = on_hand - reserved - blocked - damaged

        logger.debug("stock_balance_selected", extra={
            "item_id": str(item_uuid),
            "location_id": str(location_uuid),
            "batch_number": batch_number,
            "available": str(available),
        })

        return StockBalanceDTO(
            on_hand=normalize_quantity(on_hand),
            reserved=normalize_quantity(reserved),
            blocked=normalize_quantity(blocked),
            damaged=normalize_quantity(damaged),
            available=normalize_quantity(available),
        )

    def stock_by_location(self, location_id: str | UUID) -> list[LocationStockDTO]:
        """All stock rows at a location, ordered for stable output."""
        location_uuid = _as_uuid(location_id)
        if location_uuid is None:
            return []
        rows = self.session.execute(
            select(StockBalanceModel)
            .where(StockBalanceModel.location_id == location_uuid)
            .order_by(StockBalanceModel.item_id, StockBalanceModel.batch_number)
        ).scalars().all()
        return [
            LocationStockDTO(
                item_id=str(row.item_id),
                batch_number=row.batch_number,
                on_hand_quantity=normalize_quantity(row.on_hand),
            )
            for row in rows
        ]

    def location_capacity(self, location_id: str | UUID) -> LocationCapacityDTO:
        """
        Capacity ceilings for a location.

        Raises:
            LocationNotFoundError: If no such location exists.
        """
        location_uuid = _as_uuid(location_id)
        location = (
            self.session.get(LocationModel, location_uuid)
            if location_uuid is not None else None
        )
        if location is None:
            raise LocationNotFoundError(str(location_id))
        return LocationCapacityDTO(
            location_id=str(location.id),
            max_items=_opt(location.max_items),
            max_weight=_opt(location.max_weight),
            max_volume=_opt(location.max_volume),
        )

    def active_items(self) -> list[ItemDTO]:
        rows = self.session.execute(
            select(ItemModel).where(ItemModel.is_active.is_(True)).order_by(ItemModel.sku)
        ).scalars().all()
        return [
            ItemDTO(
                id=str(row.id),
                sku=row.sku,
                name=row.name,
                unit_of_measure=row.unit_of_measure,
                requires_batch_tracking=row.requires_batch_tracking,
                requires_serial_tracking=row.requires_serial_tracking,
                has_expiry_date=row.has_expiry_date,
                is_perishable=row.is_perishable,
                is_high_value=row.is_high_value,
                industry_type=row.industry_type,
            )
            for row in rows
        ]

    def active_locations(self) -> list[LocationDTO]:
        rows = self.session.execute(
            select(LocationModel)
            .where(LocationModel.is_active.is_(True))
            .order_by(LocationModel.code)
        ).scalars().all()
        return [LocationDTO(id=str(row.id), code=row.code, name=row.name) for row in rows]

    def reason_codes(self, categories: Iterable[str]) -> list[ReasonCodeDTO]:
        """Active reason codes in any of the given categories."""
        wanted = sorted(set(categories))
        if not wanted:
            return []
        rows = self.session.execute(
            select(ReasonCodeModel)
            .where(
                ReasonCodeModel.is_active.is_(True),
                ReasonCodeModel.category.in_(wanted),
            )
            .order_by(ReasonCodeModel.sort_order, ReasonCodeModel.code)
        ).scalars().all()
        return [
            ReasonCodeDTO(code=row.code, name=row.name or row.code, category=row.category)
            for row in rows
        ]
