"""
inventory_engines.batch_rows -- Batch-row validation and reconciliation.

Responsibility:
    For one movement line split into several batch receipts, validate each
    row against the item's industry flags, reconcile the summed quantity
    against the line's expected quantity under the receive policy, and
    check each row against its looked-up batch availability.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    The stateful editor (row ids, debounced lookups) lives in
    ``inventory_services.batch_editor`` and calls into this module.

Invariants enforced:
    - The final list holds rows with a non-blank code and quantity > 0;
      derived quantity is the sum of that list.
    - A total of zero or less is always a blocking TOTAL finding.
    - ``allow_over_receive`` and ``allow_partial`` are checked
      independently; each emits at most one finding.
    - The result is valid only when no blocking finding exists and the
      derived quantity is positive.

Failure modes:
    - None.  Problems are findings, not exceptions.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date
from decimal import Decimal

from inventory_engines.tracer import traced_engine
from inventory_kernel.domain.dtos import ErrorType, ValidationError, blocking_only
from inventory_kernel.domain.values import ZERO, format_quantity
from inventory_modules.movements.models import (
    BatchRow,
    IndustryFlags,
    NumberGridResult,
    ReceivePolicy,
)


def _row_error(index: int, field: str, message: str) -> ValidationError:
    return ValidationError(
        type=ErrorType.ROW,
        message=message,
        row_index=index,
        field=field,
    )


def _total_error(message: str) -> ValidationError:
    return ValidationError(type=ErrorType.TOTAL, message=message)


def final_batch_list(rows: Sequence[BatchRow]) -> tuple[BatchRow, ...]:
    """Rows that contribute to the line: non-blank code and positive quantity."""
    return tuple(
        row for row in rows
        if row.batch_code.strip() and row.quantity is not None and row.quantity > 0
    )


def derived_quantity(rows: Sequence[BatchRow]) -> Decimal:
    return sum((row.quantity for row in final_batch_list(rows)), ZERO)


def validate_batch_rows(
    rows: Sequence[BatchRow],
    flags: IndustryFlags,
    today: date,
) -> tuple[ValidationError, ...]:
    """Per-row findings, in row order then rule order."""
    errors: list[ValidationError] = []
    requires_mfg = flags.requires_batch_tracking
    requires_expiry = flags.has_expiry_date

    for i, row in enumerate(rows):
        if not row.batch_code.strip():
            errors.append(_row_error(i, "batch_code", "Batch code is required"))
        if row.quantity is None or row.quantity <= 0:
            errors.append(_row_error(i, "quantity", "Quantity must be greater than 0"))
        if requires_mfg and row.manufacturing_date is None:
            errors.append(_row_error(i, "manufacturing_date", "MFG date is required"))
        if row.manufacturing_date is not None and row.manufacturing_date > today:
            errors.append(_row_error(i, "manufacturing_date", "MFG date cannot be in the future"))
        if requires_expiry and row.expiry_date is None:
            errors.append(_row_error(i, "expiry_date", "Expiry date is required"))
        if row.expiry_date is not None and row.expiry_date < today:
            errors.append(_row_error(i, "expiry_date", "Expiry date cannot be in the past"))
        if (
            row.expiry_date is not None
            and row.manufacturing_date is not None
            and row.expiry_date < row.manufacturing_date
        ):
            errors.append(_row_error(i, "expiry_date", "Expiry date cannot be before MFG date"))

    return tuple(errors)


def validate_batch_total(
    total: Decimal,
    expected: Decimal,
    policy: ReceivePolicy,
) -> tuple[ValidationError, ...]:
    """Compare the derived total against the line's expected quantity."""
    if total <= 0:
        return (_total_error("Total batch quantity must be greater than 0"),)

    errors: list[ValidationError] = []
    shown_total = format_quantity(total)
    shown_expected = format_quantity(expected)
    if not policy.allow_over_receive and total > expected:
        errors.append(_total_error(
            f"Total ({shown_total}) must not exceed expected ({shown_expected})"
        ))
    if not policy.allow_partial and total < expected:
        errors.append(_total_error(
            f"Total ({shown_total}) must equal expected ({shown_expected})"
        ))
    return tuple(errors)


def validate_batch_availability(
    rows: Sequence[BatchRow],
    available_by_row: Mapping[int, Decimal],
) -> tuple[ValidationError, ...]:
    """
    Rows whose quantity exceeds the availability looked up for their code.

    ``available_by_row`` holds only lookups that match each row's current
    batch code; rows without an entry are not checked.
    """
    errors: list[ValidationError] = []
    for i, row in enumerate(rows):
        if not row.batch_code.strip():
            continue
        available = available_by_row.get(i)
        if available is None:
            continue
        qty = row.quantity if row.quantity is not None else ZERO
        if qty > available:
            errors.append(_row_error(
                i,
                "quantity",
                f"Quantity ({format_quantity(qty)}) exceeds available "
                f"({format_quantity(available)})",
            ))
    return tuple(errors)


@traced_engine(
    "batch_rows", "1.0",
    fingerprint_fields=("rows", "expected_quantity", "policy", "today"),
)
def reconcile_batch_rows(
    *,
    rows: Sequence[BatchRow],
    expected_quantity: Decimal | None,
    flags: IndustryFlags,
    policy: ReceivePolicy,
    today: date,
    available_by_row: Mapping[int, Decimal] | None = None,
) -> NumberGridResult:
    """Row, total and availability findings folded into one grid result."""
    final = final_batch_list(rows)
    total = sum((row.quantity for row in final), ZERO)
    expected = expected_quantity if expected_quantity is not None else ZERO

    findings = (
        validate_batch_rows(rows, flags, today)
        + validate_batch_total(total, expected, policy)
        + validate_batch_availability(rows, available_by_row or {})
    )

    return NumberGridResult(
        final_batch_list=final,
        derived_quantity=total,
        validation_errors=findings,
        is_valid=not blocking_only(findings) and total > 0,
    )
