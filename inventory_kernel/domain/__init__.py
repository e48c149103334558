"""
Pure domain layer.

Data transfer objects, value helpers and injectable time sources with NO
dependencies on the ORM, the database or I/O.
"""

from inventory_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from inventory_kernel.domain.dtos import ErrorType, ValidationError, blocking_only
from inventory_kernel.domain.scheduler import (
    AsyncioScheduler,
    ManualScheduler,
    ScheduledCall,
    Scheduler,
)
from inventory_kernel.domain.values import (
    ZERO,
    format_quantity,
    normalize_quantity,
    to_quantity,
)

__all__ = [
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "Scheduler",
    "ScheduledCall",
    "AsyncioScheduler",
    "ManualScheduler",
    "ErrorType",
    "ValidationError",
    "blocking_only",
    "ZERO",
    "to_quantity",
    "normalize_quantity",
    "format_quantity",
]
