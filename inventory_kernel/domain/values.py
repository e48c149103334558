"""
Quantity value helpers.

All stock quantities are ``Decimal`` -- never ``float``.  Values arriving
from the database carry the column scale (``10.000000000``); user-facing
messages must read ``10``, so formatting strips trailing zeros without
switching to exponent notation.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")


def to_quantity(value: Any) -> Decimal | None:
    """
    Coerce user or collaborator input to a Decimal quantity.

    ``None`` and empty strings stay ``None`` (a missing quantity is a
    validation finding, not an exception).  Floats go through ``str`` so
    ``0.1`` stays ``0.1``.

    Raises:
        ValueError: If the value is not numeric.
    """
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Quantity cannot be a boolean: {value!r}")
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return Decimal(text)
        except InvalidOperation as exc:
            raise ValueError(f"Not a quantity: {value!r}") from exc
    raise ValueError(f"Not a quantity: {value!r}")


def normalize_quantity(value: Decimal) -> Decimal:
    """Strip trailing zeros, keeping integral values as plain integers."""
    if value == value.to_integral_value():
        return value.quantize(Decimal("1"))
    return value.normalize()


def format_quantity(value: Decimal | None) -> str:
    """Render a quantity for messages: ``15``, ``2.5``, ``0`` for None."""
    if value is None:
        return "0"
    return format(normalize_quantity(value), "f")
