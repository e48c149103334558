"""
Module: inventory_kernel.logging_config
Responsibility: One JSON object per log line for the movement engine, with
    the editing session's identity stamped on every record emitted while a
    session operation runs.
Architecture position: Kernel.  Imported by every layer; imports only
    inventory_kernel.exceptions.

Invariants enforced:
    - Context fields are only ever set through ``LogContext.bind`` and are
      restored when the block exits, so one session's movement type never
      leaks into another session's records.
    - asyncio tasks copy the context they were created in: lookups gathered
      inside a bound refresh carry the same session fields.
    - Fields of an ``InventoryKernelError`` are emitted as ``exc_<attr>``
      beside its ``exc_code``.

Context fields:
    session_id      One MovementEditingSession (or batch editor it opened)
    movement_type   Header movement type when the operation started
    operation       refresh, load_reason_codes, submit, save_draft, ...
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any
from uuid import UUID

from inventory_kernel.exceptions import InventoryKernelError

_LOGGER_PREFIX = "inventory_kernel"


class LogContext:
    """Session-scoped fields added to every record logged inside ``bind``."""

    FIELDS: tuple[str, ...] = ("session_id", "movement_type", "operation")

    _current: ContextVar[Mapping[str, str]] = ContextVar(
        "inventory_log_context", default=MappingProxyType({})
    )

    @classmethod
    def current(cls) -> dict[str, str]:
        return dict(cls._current.get())

    @classmethod
    @contextmanager
    def bind(cls, **fields: str | None) -> Iterator[dict[str, str]]:
        """
        Overlay non-None ``fields`` for the duration of the block.

        Raises:
            TypeError: For a field name outside ``FIELDS``.
        """
        unknown = set(fields) - set(cls.FIELDS)
        if unknown:
            raise TypeError(f"Unknown log context field(s): {sorted(unknown)}")
        merged = dict(cls._current.get())
        merged.update({k: str(v) for k, v in fields.items() if v is not None})
        token = cls._current.set(MappingProxyType(merged))
        try:
            yield dict(merged)
        finally:
            cls._current.reset(token)

    @classmethod
    def clear(cls) -> None:
        """Drop every field in the current context. Test isolation only."""
        cls._current.set(MappingProxyType({}))


# Attributes every LogRecord carries; anything else came from ``extra``.
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_default(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    return str(value)


class StructuredFormatter(logging.Formatter):
    """Render a record as ``{ts, level, logger, message, <context>, <extra>}``."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(LogContext.current())
        payload.update(
            (key, val) for key, val in vars(record).items()
            if key not in _RECORD_ATTRS and key not in payload
        )
        if record.exc_info and record.exc_info[1] is not None:
            payload.update(self._exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=_json_default)

    @staticmethod
    def _exception_fields(exc: BaseException) -> dict[str, Any]:
        fields: dict[str, Any] = {
            "exc_type": type(exc).__name__,
            "exc_message": str(exc),
        }
        if isinstance(exc, InventoryKernelError):
            fields["exc_code"] = exc.code
            fields.update(
                (f"exc_{name}", val) for name, val in vars(exc).items()
                if not name.startswith("_")
            )
        return fields


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``inventory_kernel`` namespace."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach one JSON handler to the ``inventory_kernel`` logger.

    Idempotent: a second call leaves the first handler and level in place.
    """
    root = logging.getLogger(_LOGGER_PREFIX)
    if any(isinstance(h.formatter, StructuredFormatter) for h in root.handlers):
        return
    target = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
    target.setFormatter(StructuredFormatter())
    root.addHandler(target)
    root.setLevel(level)
    root.propagate = False


def reset_logging() -> None:
    """Detach handlers and restore defaults. FOR TESTING ONLY."""
    root = logging.getLogger(_LOGGER_PREFIX)
    for h in list(root.handlers):
        root.removeHandler(h)
    root.setLevel(logging.WARNING)
    root.propagate = True
