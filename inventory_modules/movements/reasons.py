"""
Reason-code policy for stock movements.

Maps each movement type to the reason-code categories it may use, and
resolves the default reason code (and whether the user may change it) for
a movement type opened from a given entry point.

Lookup order for defaults:
    1. (movement type, source) exact row
    2. (movement type, any source) row
    3. ``ADJUSTMENT``, unlocked
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from inventory_modules.movements.models import MovementType


class ReasonCategory(str, Enum):
    """Reason code category, as stored on ``inventory_reason_codes``."""

    MOVEMENT = "MOVEMENT"
    DAMAGE = "DAMAGE"
    WASTE = "WASTE"
    LOSS = "LOSS"
    ADJUSTMENT = "ADJUSTMENT"
    BLOCK = "BLOCK"


class ReasonSource(str, Enum):
    """Entry point a movement document was opened from."""

    ITEM = "item"
    LOCATION = "location"
    LOCATION_FROM = "location_from"
    QUICK = "quick"
    MANUAL = "manual"
    COUNT_APPROVE = "count_approve"
    HISTORY = "history"


@dataclass(frozen=True)
class DefaultReason:
    default_code: str
    reason_locked: bool = False


MOVEMENT_TYPE_CATEGORIES: dict[MovementType, tuple[ReasonCategory, ...]] = {
    MovementType.RECEIPT: (ReasonCategory.MOVEMENT,),
    MovementType.ISSUE: (ReasonCategory.MOVEMENT,),
    MovementType.TRANSFER: (ReasonCategory.MOVEMENT,),
    MovementType.ADJUSTMENT: (ReasonCategory.ADJUSTMENT,),
    MovementType.COUNT_ADJUSTMENT: (ReasonCategory.ADJUSTMENT,),
    MovementType.REVERSAL: (ReasonCategory.ADJUSTMENT,),
    MovementType.DAMAGE: (ReasonCategory.DAMAGE,),
    MovementType.WASTE: (ReasonCategory.WASTE,),
    MovementType.LOSS: (ReasonCategory.LOSS,),
    MovementType.BLOCK: (ReasonCategory.BLOCK,),
    MovementType.UNBLOCK: (ReasonCategory.BLOCK,),
}

# (movement type, source or None) -> default. None rows apply to any source.
_DEFAULTS: dict[tuple[MovementType, ReasonSource | None], DefaultReason] = {
    (MovementType.RECEIPT, ReasonSource.ITEM): DefaultReason("RECEIPT"),
    (MovementType.RECEIPT, ReasonSource.LOCATION): DefaultReason("RECEIPT"),
    (MovementType.RECEIPT, ReasonSource.QUICK): DefaultReason("RECEIPT"),
    (MovementType.ISSUE, ReasonSource.ITEM): DefaultReason("ISSUE"),
    (MovementType.ISSUE, ReasonSource.LOCATION): DefaultReason("ISSUE"),
    (MovementType.TRANSFER, ReasonSource.ITEM): DefaultReason("TRANSFER"),
    (MovementType.TRANSFER, ReasonSource.LOCATION_FROM): DefaultReason("TRANSFER"),
    (MovementType.TRANSFER, ReasonSource.QUICK): DefaultReason("TRANSFER"),
    (MovementType.ADJUSTMENT, ReasonSource.MANUAL): DefaultReason("ADJUSTMENT"),
    (MovementType.COUNT_ADJUSTMENT, ReasonSource.COUNT_APPROVE): DefaultReason(
        "COUNT_VARIANCE", reason_locked=True
    ),
    (MovementType.REVERSAL, ReasonSource.HISTORY): DefaultReason(
        "REVERSAL", reason_locked=True
    ),
    (MovementType.DAMAGE, None): DefaultReason("DAMAGE_TRANSPORT"),
    (MovementType.WASTE, None): DefaultReason("WASTE_EXPIRED"),
    (MovementType.BLOCK, None): DefaultReason("BLOCK_QUALITY"),
    (MovementType.UNBLOCK, None): DefaultReason("BLOCK_QUALITY"),
    (MovementType.LOSS, None): DefaultReason("LOSS_MISSING"),
    (MovementType.RECEIPT, None): DefaultReason("RECEIPT"),
    (MovementType.ISSUE, None): DefaultReason("ISSUE"),
    (MovementType.TRANSFER, None): DefaultReason("TRANSFER"),
    (MovementType.ADJUSTMENT, None): DefaultReason("ADJUSTMENT"),
    (MovementType.COUNT_ADJUSTMENT, None): DefaultReason("COUNT_VARIANCE"),
    (MovementType.REVERSAL, None): DefaultReason("REVERSAL"),
}

_FALLBACK = DefaultReason("ADJUSTMENT")


def default_reason(
    movement_type: MovementType,
    source: ReasonSource | str | None = None,
) -> DefaultReason:
    """Default reason code and lock for a movement type opened from ``source``."""
    if source is not None and not isinstance(source, ReasonSource):
        try:
            source = ReasonSource(source)
        except ValueError:
            source = None
    if source is not None:
        exact = _DEFAULTS.get((movement_type, source))
        if exact is not None:
            return exact
    return _DEFAULTS.get((movement_type, None), _FALLBACK)


def allowed_categories(movement_type: MovementType) -> tuple[ReasonCategory, ...]:
    return MOVEMENT_TYPE_CATEGORIES.get(movement_type, (ReasonCategory.ADJUSTMENT,))


def is_reason_allowed(movement_type: MovementType, category: str) -> bool:
    """True if a reason code of ``category`` may be used for the movement type."""
    return any(c.value == category for c in allowed_categories(movement_type))
