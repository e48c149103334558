"""
Movements Module (``inventory_modules.movements``).

Responsibility
--------------
The nouns and policy tables of a stock-movement document: movement types,
header, lines, item and location reference data, availability snapshots,
reason-code categories and defaults, and the module configuration schema.

Architecture
------------
Layer: **Modules** -- declarative data and policy tables.  Calculation lives
in ``inventory_engines``; I/O and orchestration live in
``inventory_services``.  This package imports from ``inventory_kernel``
only.
"""

from inventory_modules.movements.config import MovementConfig
from inventory_modules.movements.models import (
    AvailabilitySnapshot,
    BatchRow,
    IndustryFlags,
    ItemInfo,
    LineStatus,
    LineValidation,
    LocationInfo,
    LocationSnapshot,
    MovementDocument,
    MovementHeader,
    MovementLine,
    MovementType,
    NumberGridResult,
    ReasonCodeOption,
    ReasonCodeSet,
    ReceivePolicy,
    StockBalanceSnapshot,
    StockImpactEntry,
    StockKey,
)
from inventory_modules.movements.reasons import (
    DefaultReason,
    MOVEMENT_TYPE_CATEGORIES,
    ReasonCategory,
    ReasonSource,
    allowed_categories,
    default_reason,
    is_reason_allowed,
)

__all__ = [
    "MovementConfig",
    "AvailabilitySnapshot",
    "BatchRow",
    "IndustryFlags",
    "ItemInfo",
    "LineStatus",
    "LineValidation",
    "LocationInfo",
    "LocationSnapshot",
    "MovementDocument",
    "MovementHeader",
    "MovementLine",
    "MovementType",
    "NumberGridResult",
    "ReasonCodeOption",
    "ReasonCodeSet",
    "ReceivePolicy",
    "StockBalanceSnapshot",
    "StockImpactEntry",
    "StockKey",
    "DefaultReason",
    "MOVEMENT_TYPE_CATEGORIES",
    "ReasonCategory",
    "ReasonSource",
    "allowed_categories",
    "default_reason",
    "is_reason_allowed",
]
