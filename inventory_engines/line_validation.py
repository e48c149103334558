"""
inventory_engines.line_validation -- Per-line movement validation.

Responsibility:
    Produce a ``LineValidation`` for every line of a movement document:
    item presence, quantity, stock sufficiency against the current
    availability snapshot, and the batch/serial requirements driven by the
    item's industry flags.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    ``today`` is always passed in; the engine never reads a clock.

Invariants enforced:
    - Every rule is evaluated; findings accumulate in rule order.
    - Stock sufficiency is checked only when the movement type needs a
      from-location, the line has an item and an effective from-location,
      and the snapshot holds a balance for that pair.  No balance means
      "not yet resolved", never "zero".
    - Items missing from the catalog get no flag-driven rules.
    - Status: ERROR if any blocking finding, WARNING if only non-blocking
      findings, else VALID.
    - Identical inputs give identical outputs.

Failure modes:
    - None.  Problems are findings, not exceptions.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date

from inventory_engines.direction import effective_from, needs_from
from inventory_engines.tracer import traced_engine
from inventory_kernel.domain.dtos import ErrorType, ValidationError
from inventory_kernel.domain.values import ZERO, format_quantity
from inventory_kernel.logging_config import get_logger
from inventory_modules.movements.models import (
    AvailabilitySnapshot,
    ItemInfo,
    LineStatus,
    LineValidation,
    MovementHeader,
    MovementLine,
)

logger = get_logger("engines.line_validation")


def _finding(
    index: int,
    field: str,
    message: str,
    blocking: bool = True,
) -> ValidationError:
    return ValidationError(
        type=ErrorType.LINE,
        message=message,
        blocking=blocking,
        row_index=index,
        field=field,
    )


def _status(findings: Sequence[ValidationError]) -> LineStatus:
    if any(f.blocking for f in findings):
        return LineStatus.ERROR
    if findings:
        return LineStatus.WARNING
    return LineStatus.VALID


def validate_line(
    index: int,
    line: MovementLine,
    header: MovementHeader,
    item: ItemInfo | None,
    snapshot: AvailabilitySnapshot,
    today: date,
) -> LineValidation:
    """Validate one line. ``index`` is recorded on each finding."""
    findings: list[ValidationError] = []
    quantity = line.quantity if line.quantity is not None else ZERO

    if not line.item_id:
        findings.append(_finding(index, "item_id", "Item is required"))

    if line.quantity is None or line.quantity <= 0:
        findings.append(_finding(index, "quantity", "Invalid quantity"))

    source = effective_from(line, header)
    if needs_from(header.movement_type) and line.item_id and source:
        balance = snapshot.balance_for(line.item_id, source)
        if balance is not None:
            if quantity > balance.available:
                findings.append(_finding(
                    index,
                    "quantity",
                    f"Insufficient stock (available: {format_quantity(balance.available)})",
                ))
            elif quantity == balance.available:
                findings.append(_finding(
                    index, "quantity", "Using all available stock", blocking=False,
                ))

    flags = item.industry_flags if item is not None else None

    if flags is not None and flags.requires_batch_tracking:
        if not line.batch_number:
            findings.append(_finding(index, "batch_number", "Batch number required"))
        else:
            if line.manufacturing_date is None:
                findings.append(_finding(index, "manufacturing_date", "MFG date required"))
            if flags.has_expiry_date and line.expiry_date is None:
                findings.append(_finding(index, "expiry_date", "Expiry date required"))
            if line.expiry_date is not None and line.expiry_date < today:
                findings.append(_finding(index, "expiry_date", "Expiry date in the past"))
            if line.manufacturing_date is not None and line.manufacturing_date > today:
                findings.append(_finding(index, "manufacturing_date", "MFG date in the future"))

    if flags is not None and flags.requires_serial_tracking:
        serials = line.serial_numbers
        if len(serials) != quantity:
            findings.append(_finding(
                index,
                "serial_numbers",
                f"Serial count must equal quantity ({format_quantity(quantity)})",
            ))
        if len(set(serials)) != len(serials):
            findings.append(_finding(index, "serial_numbers", "Duplicate serials"))

    return LineValidation(
        status=_status(findings),
        messages=tuple(f.message for f in findings),
        findings=tuple(findings),
    )


@traced_engine(
    "line_validation", "1.0",
    fingerprint_fields=("lines", "header", "snapshot", "today"),
)
def validate_lines(
    *,
    lines: Sequence[MovementLine],
    header: MovementHeader,
    items: Mapping[str, ItemInfo],
    snapshot: AvailabilitySnapshot,
    today: date,
) -> dict[int, LineValidation]:
    """Validate every line; keys are zero-based line indexes in order."""
    results = {
        index: validate_line(index, line, header, items.get(line.item_id), snapshot, today)
        for index, line in enumerate(lines)
    }
    logger.debug(
        "lines_validated",
        extra={
            "line_count": len(lines),
            "error_lines": sum(1 for v in results.values() if v.is_error),
            "snapshot_generation": snapshot.generation,
        },
    )
    return results
