"""
inventory_engines.line_import -- Spreadsheet paste into movement lines.

Each non-blank row is tab-separated: ``SKU, quantity[, from code[, to code]]``.
SKUs match case-insensitively against the item catalog; rows with an
unknown SKU or fewer than two columns are skipped.  A quantity that does
not parse to a positive number becomes 1.  Location columns match by
exact code; an empty or unknown code leaves the line override unset so the
header default applies.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal, InvalidOperation

from inventory_modules.movements.models import ItemInfo, LocationInfo, MovementLine

_ONE = Decimal("1")


def _parse_quantity(text: str) -> Decimal:
    try:
        value = Decimal(text)
    except InvalidOperation:
        return _ONE
    if not value.is_finite() or value <= 0:
        return _ONE
    return value


def parse_pasted_lines(
    text: str,
    items: Iterable[ItemInfo],
    locations: Iterable[LocationInfo],
) -> tuple[MovementLine, ...]:
    by_sku = {item.sku.lower(): item for item in items}
    by_code = {loc.code: loc.id for loc in locations if loc.code}

    lines: list[MovementLine] = []
    for raw in (text or "").split("\n"):
        if not raw.strip():
            continue
        cols = [col.strip() for col in raw.split("\t")]
        if len(cols) < 2:
            continue
        item = by_sku.get(cols[0].lower())
        if item is None:
            continue
        source = by_code.get(cols[2]) if len(cols) > 2 and cols[2] else None
        target = by_code.get(cols[3]) if len(cols) > 3 and cols[3] else None
        lines.append(MovementLine(
            item_id=item.id,
            quantity=_parse_quantity(cols[1]),
            unit_of_measure=item.unit_of_measure,
            from_location_id=source,
            to_location_id=target,
        ))
    return tuple(lines)
