"""
inventory_engines.direction -- Movement-type direction policy.

Responsibility:
    Decide which locations a movement type needs (from, to, both or
    neither), resolve each line's effective from/to location (line override
    falling back to the header default), apply the header side effects of a
    movement-type switch, and pick the number-grid entry mode.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Consumed by line validation, impact aggregation, the availability
    resolver and the editing session.

Invariants enforced:
    - ``needs_from``/``needs_to`` are fixed set-membership predicates.
    - An empty string location counts as absent.
    - Switching to RECEIPT clears the default-from location; switching to
      ISSUE clears the default-to location.  Nothing else changes.

Failure modes:
    - UnknownMovementTypeError from ``parse_movement_type`` for an
      unrecognised value.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from inventory_kernel.exceptions import UnknownMovementTypeError
from inventory_modules.movements.models import (
    MovementHeader,
    MovementLine,
    MovementType,
)

NEEDS_FROM: frozenset[MovementType] = frozenset({
    MovementType.TRANSFER,
    MovementType.ISSUE,
    MovementType.DAMAGE,
    MovementType.WASTE,
    MovementType.LOSS,
    MovementType.BLOCK,
})

NEEDS_TO: frozenset[MovementType] = frozenset({
    MovementType.RECEIPT,
    MovementType.TRANSFER,
    MovementType.ADJUSTMENT,
})


def needs_from(movement_type: MovementType) -> bool:
    return movement_type in NEEDS_FROM


def needs_to(movement_type: MovementType) -> bool:
    return movement_type in NEEDS_TO


def effective_from(line: MovementLine, header: MovementHeader) -> str:
    """Line from-location, else the header default, else ''."""
    return line.from_location_id or header.default_from_location_id or ""


def effective_to(line: MovementLine, header: MovementHeader) -> str:
    """Line to-location, else the header default, else ''."""
    return line.to_location_id or header.default_to_location_id or ""


def parse_movement_type(value: MovementType | str) -> MovementType:
    """
    Accept an enum member or a case-insensitive name.

    Raises:
        UnknownMovementTypeError: If the value names no movement type.
    """
    if isinstance(value, MovementType):
        return value
    if isinstance(value, str):
        try:
            return MovementType(value.strip().upper())
        except ValueError:
            pass
    raise UnknownMovementTypeError(str(value))


def apply_movement_type_change(
    header: MovementHeader,
    new_type: MovementType,
) -> MovementHeader:
    """Return the header for ``new_type`` with stale default locations cleared."""
    changes: dict[str, object] = {"movement_type": new_type}
    if new_type == MovementType.RECEIPT:
        changes["default_from_location_id"] = None
    if new_type == MovementType.ISSUE:
        changes["default_to_location_id"] = None
    return replace(header, **changes)


class GridEntryMode(str, Enum):
    """How serial/batch numbers are entered for a movement type."""

    INPUT = "INPUT"  # free entry; new numbers allowed
    SELECT = "SELECT"  # pick from the existing pool at the source


class SerialStatusFilter(str, Enum):
    AVAILABLE = "AVAILABLE"
    BLOCKED = "BLOCKED"


@dataclass(frozen=True)
class NumberGridMode:
    mode: GridEntryMode
    serial_status: SerialStatusFilter | None = None


_INPUT = NumberGridMode(GridEntryMode.INPUT)
_SELECT_AVAILABLE = NumberGridMode(GridEntryMode.SELECT, SerialStatusFilter.AVAILABLE)
_SELECT_BLOCKED = NumberGridMode(GridEntryMode.SELECT, SerialStatusFilter.BLOCKED)

_GRID_MODES: dict[MovementType, NumberGridMode] = {
    MovementType.RECEIPT: _INPUT,
    MovementType.ADJUSTMENT: _INPUT,
    MovementType.COUNT_ADJUSTMENT: _INPUT,
    MovementType.BLOCK: _INPUT,
    MovementType.ISSUE: _SELECT_AVAILABLE,
    MovementType.TRANSFER: _SELECT_AVAILABLE,
    MovementType.REVERSAL: _SELECT_AVAILABLE,
    MovementType.DAMAGE: _SELECT_AVAILABLE,
    MovementType.WASTE: _SELECT_AVAILABLE,
    MovementType.LOSS: _SELECT_AVAILABLE,
    MovementType.UNBLOCK: _SELECT_BLOCKED,
}


def number_grid_mode(movement_type: MovementType) -> NumberGridMode:
    """Entry mode for the batch/serial grid; SELECT modes need a source location."""
    return _GRID_MODES.get(movement_type, _INPUT)
