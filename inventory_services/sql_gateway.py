"""
inventory_services.sql_gateway -- SQLAlchemy binding of the stock lookup port.

Responsibility:
    Serve ``StockLookupPort`` from the read model in ``inventory_kernel``
    by mapping selector DTOs onto movement domain values.

Architecture position:
    Services -- adapter over kernel selectors.  Each call opens its own
    short-lived session from the injected factory and closes it before
    returning.  Queries run inline on the calling event loop.

Failure modes:
    - LocationNotFoundError from ``location_capacity`` for an unknown
      location.  The availability resolver degrades it to "unknown
      capacity".
"""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.orm import Session, sessionmaker

from inventory_kernel.logging_config import get_logger
from inventory_kernel.selectors.stock_selector import StockSelector
from inventory_modules.movements.models import (
    IndustryFlags,
    ItemInfo,
    LocationInfo,
    MovementType,
    ReasonCodeOption,
    ReasonCodeSet,
    StockBalanceSnapshot,
)
from inventory_modules.movements.reasons import (
    ReasonSource,
    allowed_categories,
    default_reason,
)
from inventory_services.ports import LocationCapacity, LocationStockRow

logger = get_logger("services.sql_gateway")


class SqlStockLookup:
    """
    StockLookupPort backed by the SQLAlchemy read model.

    Contract:
        Receives a session factory via constructor injection; never
        commits.
    """

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    async def stock_balance(
        self,
        item_id: str,
        location_id: str,
        batch_number: str | None = None,
    ) -> StockBalanceSnapshot:
        with self._session_factory() as session:
            dto = StockSelector(session).balance(item_id, location_id, batch_number)
        return StockBalanceSnapshot(
            available=dto.available,
            reserved=dto.reserved,
            blocked=dto.blocked,
        )

    async def stock_by_location(self, location_id: str) -> Sequence[LocationStockRow]:
        with self._session_factory() as session:
            rows = StockSelector(session).stock_by_location(location_id)
        return [
            LocationStockRow(
                item_id=row.item_id,
                on_hand_quantity=row.on_hand_quantity,
                batch_number=row.batch_number,
            )
            for row in rows
        ]

    async def location_capacity(self, location_id: str) -> LocationCapacity:
        with self._session_factory() as session:
            dto = StockSelector(session).location_capacity(location_id)
        return LocationCapacity(
            max_items=dto.max_items,
            max_weight=dto.max_weight,
            max_volume=dto.max_volume,
        )

    async def reason_codes_for_movement_type(
        self,
        movement_type: MovementType,
        source: ReasonSource | None = None,
    ) -> ReasonCodeSet:
        categories = [c.value for c in allowed_categories(movement_type)]
        with self._session_factory() as session:
            rows = StockSelector(session).reason_codes(categories)
        result = ReasonCodeSet(
            allowed=tuple(ReasonCodeOption(code=r.code, name=r.name) for r in rows),
            default_code=default_reason(movement_type, source).default_code,
        )
        logger.debug(
            "reason_codes_loaded",
            extra={
                "movement_type": movement_type.value,
                "categories": categories,
                "allowed_count": len(result.allowed),
                "default_code": result.default_code,
            },
        )
        return result

    async def active_items(self) -> Sequence[ItemInfo]:
        with self._session_factory() as session:
            rows = StockSelector(session).active_items()
        return [
            ItemInfo(
                id=row.id,
                sku=row.sku,
                name=row.name,
                unit_of_measure=row.unit_of_measure,
                industry_flags=IndustryFlags(
                    requires_batch_tracking=row.requires_batch_tracking,
                    requires_serial_tracking=row.requires_serial_tracking,
                    has_expiry_date=row.has_expiry_date,
                    is_perishable=row.is_perishable,
                    is_high_value=row.is_high_value,
                    industry_type=row.industry_type,
                ),
            )
            for row in rows
        ]

    async def active_locations(self) -> Sequence[LocationInfo]:
        with self._session_factory() as session:
            rows = StockSelector(session).active_locations()
        return [LocationInfo(id=row.id, code=row.code, name=row.name) for row in rows]
