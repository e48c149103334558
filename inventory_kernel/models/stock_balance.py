"""
Module: inventory_kernel.models.stock_balance
Responsibility: ORM persistence for point-in-time stock balances per
    (item, location, batch).
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - One row per (item, location, batch_number); batch_number is NULL for
      untracked stock (uq_stock_balance_key).
    - available = on_hand - reserved - blocked - damaged (derived by the
      selector, never stored).

Non-goals:
    - The movement engine only READS balances.  Ledger execution that
      mutates these rows belongs to the persistence collaborator.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, UUIDString


class StockBalanceModel(Base):
    """Quantity buckets for one item at one location (optionally one batch)."""

    __tablename__ = "inventory_stock_balances"

    __table_args__ = (
        UniqueConstraint(
            "item_id", "location_id", "batch_number", name="uq_stock_balance_key"
        ),
        Index("idx_stock_balance_location", "location_id"),
    )

    item_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("inventory_items.id"), nullable=False
    )
    location_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("inventory_locations.id"), nullable=False
    )
    batch_number: Mapped[str | None] = mapped_column(String(64), nullable=True)

    on_hand: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    reserved: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    blocked: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
    damaged: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)
