"""
inventory_engines.impact -- Per-location stock impact projection.

Responsibility:
    Fold every line of a movement document into a net change per location
    and project before/after on-hand totals from the location snapshot,
    flagging negative or over-capacity outcomes.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - A line subtracts its quantity at the effective from-location and adds
      it at the effective to-location; a line touching both nets both.
    - A missing quantity counts as zero.
    - Locations appear in first-touch order; zero net change is omitted.
    - ``before`` defaults to 0 when the location is unresolved;
      ``after = before + change``.
    - ``after < 0`` and ``after > max_items`` (when known) are blocking
      IMPACT findings.

Failure modes:
    - None.  Problems are findings, not exceptions.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal

from inventory_engines.direction import effective_from, effective_to
from inventory_engines.tracer import traced_engine
from inventory_kernel.domain.dtos import ErrorType, ValidationError
from inventory_kernel.domain.values import ZERO, format_quantity
from inventory_kernel.logging_config import get_logger
from inventory_modules.movements.models import (
    AvailabilitySnapshot,
    LocationInfo,
    MovementHeader,
    MovementLine,
    StockImpactEntry,
)

logger = get_logger("engines.impact")


@dataclass(frozen=True)
class ImpactResult:
    """Impact entries plus the blocking findings they raise."""

    entries: tuple[StockImpactEntry, ...] = ()
    errors: tuple[ValidationError, ...] = ()

    @property
    def messages(self) -> tuple[str, ...]:
        return tuple(e.message for e in self.errors)

    def entry_for(self, location_id: str) -> StockImpactEntry | None:
        for entry in self.entries:
            if entry.location_id == location_id:
                return entry
        return None


def compute_change_by_location(
    lines: Sequence[MovementLine],
    header: MovementHeader,
) -> dict[str, Decimal]:
    """Net signed change per location id, in first-touch order."""
    changes: dict[str, Decimal] = {}
    for line in lines:
        qty = line.quantity if line.quantity is not None else ZERO
        source = effective_from(line, header)
        target = effective_to(line, header)
        if source:
            changes[source] = changes.get(source, ZERO) - qty
        if target:
            changes[target] = changes.get(target, ZERO) + qty
    return changes


def _display_name(location_id: str, locations: Mapping[str, LocationInfo]) -> str:
    info = locations.get(location_id)
    return info.display_name if info is not None else location_id


@traced_engine(
    "impact", "1.0",
    fingerprint_fields=("lines", "header", "snapshot"),
)
def aggregate_impact(
    *,
    lines: Sequence[MovementLine],
    header: MovementHeader,
    snapshot: AvailabilitySnapshot,
    locations: Mapping[str, LocationInfo],
) -> ImpactResult:
    """Project per-location before/after and flag negative or over-capacity results."""
    entries: list[StockImpactEntry] = []
    errors: list[ValidationError] = []

    for location_id, change in compute_change_by_location(lines, header).items():
        if change == 0:
            continue
        loc = snapshot.location(location_id)
        before = loc.before if loc is not None else ZERO
        max_items = loc.max_items if loc is not None else None
        after = before + change
        name = _display_name(location_id, locations)

        entries.append(StockImpactEntry(
            location_id=location_id,
            location_name=name,
            change=change,
            before=before,
            after=after,
        ))

        if after < 0:
            errors.append(ValidationError(
                type=ErrorType.IMPACT,
                message=f"{name} would go negative (after: {format_quantity(after)})",
                field=location_id,
            ))
        if max_items is not None and after > max_items:
            errors.append(ValidationError(
                type=ErrorType.IMPACT,
                message=(
                    f"{name} would exceed capacity "
                    f"({format_quantity(after)} > {format_quantity(max_items)})"
                ),
                field=location_id,
            ))

    if errors:
        logger.debug(
            "impact_errors_found",
            extra={"error_count": len(errors), "location_count": len(entries)},
        )

    return ImpactResult(entries=tuple(entries), errors=tuple(errors))
