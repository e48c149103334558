"""
Movement Domain Models (``inventory_modules.movements.models``).

Responsibility
--------------
Value objects for the nouns of a stock-movement document: movement types,
the document header and lines, item/location reference data, batch rows,
the point-in-time availability snapshot, and the derived outputs
(line validations, stock impact entries, number-grid results).

Architecture
------------
Layer: **Modules** -- pure domain data structures.  Everything except
``MovementDocument`` is ``frozen=True``: edits replace a header or line
wholesale (``dataclasses.replace``) so derived outputs can be recomputed
as pure functions of the current values.  ``MovementDocument`` is the one
mutable aggregate, owned by exactly one editing session.

Invariants
----------
- Quantities are ``Decimal`` (never ``float``); a missing quantity is
  ``None`` and is reported by validation, not rejected at construction.
- ``AvailabilitySnapshot`` is replaced wholesale per fetch generation --
  never merged across generations.
- A serial-tracked line must carry exactly ``quantity`` serials; this is a
  validation finding, so half-edited lines can still be represented.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from types import MappingProxyType

from inventory_kernel.domain.dtos import ValidationError
from inventory_kernel.domain.values import ZERO



class MovementType(str, Enum):
    """Stock movement categories."""

    RECEIPT = "RECEIPT"
    ISSUE = "ISSUE"
    TRANSFER = "TRANSFER"
    ADJUSTMENT = "ADJUSTMENT"
    DAMAGE = "DAMAGE"
    WASTE = "WASTE"
    LOSS = "LOSS"
    BLOCK = "BLOCK"
    UNBLOCK = "UNBLOCK"
    COUNT_ADJUSTMENT = "COUNT_ADJUSTMENT"
    REVERSAL = "REVERSAL"


class LineStatus(str, Enum):
    """Aggregated status of one line's findings."""

    VALID = "valid"
    WARNING = "warning"
    ERROR = "error"


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class IndustryFlags:
    """Per-item tracking requirements."""

    requires_batch_tracking: bool = False
    requires_serial_tracking: bool = False
    has_expiry_date: bool = False
    is_perishable: bool = False
    is_high_value: bool = False
    industry_type: str = "GENERAL"


@dataclass(frozen=True)
class ItemInfo:
    id: str
    sku: str
    name: str
    unit_of_measure: str = "pcs"
    industry_flags: IndustryFlags = field(default_factory=IndustryFlags)


@dataclass(frozen=True)
class LocationInfo:
    id: str
    code: str = ""
    name: str = ""

    @property
    def display_name(self) -> str:
        """Code, else name, else id."""
        return self.code or self.name or self.id


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MovementHeader:
    """
    Document-level fields.

    Contract: ``default_*_location_id`` of ``""`` or ``None`` both mean
    "no default".
    """

    movement_type: MovementType = MovementType.RECEIPT
    default_from_location_id: str | None = None
    default_to_location_id: str | None = None
    reason_code: str = ""
    reason_description: str | None = None
    document_notes: str | None = None
    requires_approval: bool = False


@dataclass(frozen=True)
class MovementLine:
    """
    One item/quantity/location tuple.

    Contract: ``from_location_id``/``to_location_id`` override the header
    defaults when non-empty.  ``quantity`` is a magnitude; direction comes
    from the effective locations.
    """

    item_id: str = ""
    quantity: Decimal | None = Decimal("1")
    unit_of_measure: str = "pcs"
    variant_id: str | None = None
    from_location_id: str | None = None
    to_location_id: str | None = None
    batch_number: str | None = None
    manufacturing_date: date | None = None
    expiry_date: date | None = None
    serial_numbers: tuple[str, ...] = ()
    line_reason_code: str | None = None


@dataclass
class MovementDocument:
    """
    Header plus ordered lines.

    Contract: Mutable aggregate owned by one editing session; no concurrent
    editors.  Lines are immutable values replaced by index.
    """

    header: MovementHeader = field(default_factory=MovementHeader)
    lines: list[MovementLine] = field(default_factory=list)

    def snapshot_lines(self) -> tuple[MovementLine, ...]:
        return tuple(self.lines)


@dataclass(frozen=True)
class BatchRow:
    """One sub-receipt contributing to a single line's quantity."""

    batch_code: str = ""
    quantity: Decimal | None = Decimal("1")
    manufacturing_date: date | None = None
    expiry_date: date | None = None


# ---------------------------------------------------------------------------
# Availability snapshot
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StockKey:
    """Balance lookup key: item at location, optionally one batch."""

    item_id: str
    location_id: str
    batch_number: str | None = None

    @property
    def token(self) -> str:
        parts = [self.item_id, self.location_id]
        if self.batch_number:
            parts.append(self.batch_number)
        return "|".join(parts)


@dataclass(frozen=True)
class StockBalanceSnapshot:
    available: Decimal = ZERO
    reserved: Decimal = ZERO
    blocked: Decimal = ZERO


@dataclass(frozen=True)
class LocationSnapshot:
    before: Decimal = ZERO
    max_items: Decimal | None = None


@dataclass(frozen=True)
class AvailabilitySnapshot:
    """
    Balances and location totals from one fetch generation.

    Contract: Read-only.  Generation 0 is the empty snapshot published
    before any fetch completes.
    """

    generation: int = 0
    balances: Mapping[StockKey, StockBalanceSnapshot] = field(
        default_factory=lambda: MappingProxyType({})
    )
    locations: Mapping[str, LocationSnapshot] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def of(
        cls,
        generation: int,
        balances: Mapping[StockKey, StockBalanceSnapshot],
        locations: Mapping[str, LocationSnapshot],
    ) -> AvailabilitySnapshot:
        return cls(
            generation=generation,
            balances=MappingProxyType(dict(balances)),
            locations=MappingProxyType(dict(locations)),
        )

    def balance_for(self, item_id: str, location_id: str) -> StockBalanceSnapshot | None:
        return self.balances.get(StockKey(item_id, location_id))

    def location(self, location_id: str) -> LocationSnapshot | None:
        return self.locations.get(location_id)


# ---------------------------------------------------------------------------
# Derived outputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LineValidation:
    status: LineStatus
    messages: tuple[str, ...] = ()
    findings: tuple[ValidationError, ...] = ()

    @property
    def is_error(self) -> bool:
        return self.status == LineStatus.ERROR


@dataclass(frozen=True)
class StockImpactEntry:
    location_id: str
    location_name: str
    change: Decimal
    before: Decimal
    after: Decimal


@dataclass(frozen=True)
class ReceivePolicy:
    """Over/partial receive policy for batch and serial reconciliation."""

    allow_over_receive: bool = False
    allow_partial: bool = False


@dataclass(frozen=True)
class NumberGridResult:
    """Outcome of a batch or serial editor for one line."""

    final_batch_list: tuple[BatchRow, ...] = ()
    final_serial_list: tuple[str, ...] = ()
    derived_quantity: Decimal = ZERO
    validation_errors: tuple[ValidationError, ...] = ()
    is_valid: bool = False


@dataclass(frozen=True)
class ReasonCodeOption:
    code: str
    name: str


@dataclass(frozen=True)
class ReasonCodeSet:
    """Allowed reason codes for a movement type and the preferred default."""

    allowed: tuple[ReasonCodeOption, ...] = ()
    default_code: str = ""

    def contains(self, code: str) -> bool:
        return any(option.code == code for option in self.allowed)

    def resolved_default(self) -> str:
        """``default_code`` when allowed, else the first allowed code, else ''."""
        if self.default_code and self.contains(self.default_code):
            return self.default_code
        return self.allowed[0].code if self.allowed else ""
