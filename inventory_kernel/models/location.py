"""
Module: inventory_kernel.models.location
Responsibility: ORM persistence for storage locations and their capacity
    ceilings.
Architecture position: Kernel > Models.  May import from db/base.py only.

``max_items`` is the ceiling checked by impact aggregation; weight and
volume ceilings are carried for the capacity-usage lookup but not enforced
by the engine.
"""

from decimal import Decimal

from sqlalchemy import Boolean, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base


class LocationModel(Base):
    """
    A storage location (warehouse, zone, bin).

    Guarantees:
        - code is unique (uq_location_code).
    """

    __tablename__ = "inventory_locations"

    __table_args__ = (
        UniqueConstraint("code", name="uq_location_code"),
        Index("idx_location_active", "is_active"),
    )

    code: Mapped[str] = mapped_column(String(40), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    max_items: Mapped[Decimal | None] = mapped_column(nullable=True)
    max_weight: Mapped[Decimal | None] = mapped_column(nullable=True)
    max_volume: Mapped[Decimal | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<LocationModel {self.code}>"
