"""
Module: inventory_kernel.models.reason_code
Responsibility: ORM persistence for movement reason codes.
Architecture position: Kernel > Models.  May import from db/base.py only.

A reason code belongs to exactly one category (MOVEMENT, ADJUSTMENT,
DAMAGE, WASTE, LOSS, BLOCK); each movement type allows a fixed set of
categories (see inventory_modules.movements.reasons).
"""

from sqlalchemy import Boolean, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base


class ReasonCodeModel(Base):
    """A selectable reason for a movement document."""

    __tablename__ = "inventory_reason_codes"

    __table_args__ = (
        UniqueConstraint("code", name="uq_reason_code"),
        Index("idx_reason_category", "category"),
    )

    code: Mapped[str] = mapped_column(String(40), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    category: Mapped[str] = mapped_column(String(20), nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
