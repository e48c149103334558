"""
inventory_engines.serials -- Serial-number parsing and reconciliation.

Responsibility:
    Turn scanner or pasted text into a normalized serial list, find
    duplicates within the list and against the rest of the document, and
    reconcile the count against the line's expected quantity under the
    receive policy.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Parsed serials are trimmed, upper-cased and never empty.
    - Duplicate listings show at most five serials, then an ellipsis.
    - Over and partial count checks are independent.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from decimal import Decimal
from enum import Enum

from inventory_engines.tracer import traced_engine
from inventory_kernel.domain.dtos import ErrorType, ValidationError, blocking_only
from inventory_kernel.domain.values import format_quantity
from inventory_modules.movements.models import NumberGridResult, ReceivePolicy

_SEPARATORS = re.compile(r"[\n,\t;]+")
_SHOWN = 5


class SerialValidationStatus(str, Enum):
    """Backend verdict for one serial number."""

    CHECKING = "CHECKING"
    VALID = "VALID"
    NEW = "NEW"
    NOT_FOUND = "NOT_FOUND"
    NOT_IN_LOCATION = "NOT_IN_LOCATION"
    BLOCKED = "BLOCKED"
    USED = "USED"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    DUPLICATE = "DUPLICATE"


_BLOCKING_STATUSES = frozenset({
    SerialValidationStatus.NOT_FOUND,
    SerialValidationStatus.NOT_IN_LOCATION,
    SerialValidationStatus.BLOCKED,
    SerialValidationStatus.USED,
    SerialValidationStatus.ALREADY_EXISTS,
    SerialValidationStatus.DUPLICATE,
})


def is_blocking_serial_status(status: SerialValidationStatus) -> bool:
    return status in _BLOCKING_STATUSES


def parse_serial_input(text: str) -> tuple[str, ...]:
    """Split on newline, comma, tab or semicolon; trim; upper-case; drop empties."""
    parts = (part.strip().upper() for part in _SEPARATORS.split(text or ""))
    return tuple(part for part in parts if part)


def duplicate_serials(serials: Iterable[str]) -> tuple[str, ...]:
    """Distinct serials that occur more than once, in first-repeat order."""
    seen: set[str] = set()
    dupes: dict[str, None] = {}
    for serial in serials:
        if serial in seen:
            dupes[serial] = None
        else:
            seen.add(serial)
    return tuple(dupes)


def _listing(serials: Sequence[str]) -> str:
    shown = ", ".join(serials[:_SHOWN])
    return shown + ("…" if len(serials) > _SHOWN else "")


def _global(message: str) -> ValidationError:
    return ValidationError(type=ErrorType.TOTAL, message=message, field="serial_numbers")


def validate_serials(
    serials: Sequence[str],
    expected: Decimal,
    existing_in_document: Iterable[str],
    policy: ReceivePolicy,
) -> tuple[ValidationError, ...]:
    """Duplicate, cross-line duplicate and count findings for one serial list."""
    errors: list[ValidationError] = []

    dupes = duplicate_serials(serials)
    if dupes:
        errors.append(_global(f"Duplicate serials: {_listing(dupes)}"))

    in_document = {s.upper() for s in existing_in_document}
    clashing = [s for s in serials if s.upper() in in_document]
    if clashing:
        errors.append(_global(f"Duplicate serials in other lines: {_listing(clashing)}"))

    count = len(serials)
    if count == 0:
        if expected > 0:
            errors.append(_global("At least one serial is required"))
        return tuple(errors)

    shown_expected = format_quantity(expected)
    if not policy.allow_over_receive and count > expected:
        errors.append(_global(f"Count ({count}) must not exceed expected ({shown_expected})"))
    if not policy.allow_partial and count < expected:
        errors.append(_global(f"Count ({count}) must equal expected ({shown_expected})"))
    return tuple(errors)


@traced_engine(
    "serials", "1.0",
    fingerprint_fields=("serials", "expected_quantity", "policy"),
)
def reconcile_serials(
    *,
    serials: Sequence[str],
    expected_quantity: Decimal | None,
    policy: ReceivePolicy,
    existing_in_document: Iterable[str] = (),
) -> NumberGridResult:
    """Serial list folded into a grid result; quantity is the serial count."""
    expected = expected_quantity if expected_quantity is not None else Decimal("0")
    final = tuple(serials)
    findings = validate_serials(final, expected, existing_in_document, policy)
    return NumberGridResult(
        final_serial_list=final,
        derived_quantity=Decimal(len(final)),
        validation_errors=findings,
        is_valid=not blocking_only(findings) and len(final) > 0,
    )
