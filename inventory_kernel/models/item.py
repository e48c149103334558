"""
Module: inventory_kernel.models.item
Responsibility: ORM persistence for stock items and their industry flags.
Architecture position: Kernel > Models.  May import from db/base.py only.

Industry flags drive line validation: batch tracking requires a batch
number and manufacturing date, ``has_expiry_date`` requires an expiry date,
serial tracking requires one serial per unit.
"""

from sqlalchemy import Boolean, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base


class ItemModel(Base):
    """
    A stock-keeping unit.

    Guarantees:
        - sku is unique (uq_item_sku).
    """

    __tablename__ = "inventory_items"

    __table_args__ = (
        UniqueConstraint("sku", name="uq_item_sku"),
        Index("idx_item_active", "is_active"),
    )

    sku: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    unit_of_measure: Mapped[str] = mapped_column(String(20), default="pcs", nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Industry flags
    requires_batch_tracking: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    requires_serial_tracking: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    has_expiry_date: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_perishable: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_high_value: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    industry_type: Mapped[str] = mapped_column(String(40), default="GENERAL", nullable=False)

    def __repr__(self) -> str:
        return f"<ItemModel {self.sku}>"
