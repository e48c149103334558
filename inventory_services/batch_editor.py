"""
inventory_services.batch_editor -- Stateful batch-row editor for one line.

Responsibility:
    Hold the batch rows of one movement line while its editor is open,
    run debounced per-row batch availability lookups, and expose the
    reconciled ``NumberGridResult``.

Architecture position:
    Services -- stateful wrapper over ``inventory_engines.batch_rows``.
    Time comes from the injected Scheduler (debounce) and Clock (today).

Invariants enforced:
    - Rows carry stable internal ids, so a lookup started for a row is
      matched to that row even after other rows are removed.
    - Availability is stored per (row id, batch code); a result for a code
      the row no longer holds never applies.
    - At most one pending lookup timer per row.  Editing the row's code
      restarts a pending timer; blurring again restarts it; removing the
      row cancels it.
    - After ``dispose()`` every timer is cancelled and late lookup results
      are dropped.
    - At least one row is always present.

Failure modes:
    - RowIndexError for an index outside the row list.
    - SessionDisposedError for any mutation after ``dispose()``.
    - A failing lookup callable is logged and ignored; the row keeps no
      availability.
"""

from __future__ import annotations

import itertools
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import replace
from decimal import Decimal
from typing import Any

from inventory_engines.batch_rows import reconcile_batch_rows
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.scheduler import AsyncioScheduler, ScheduledCall, Scheduler
from inventory_kernel.exceptions import RowIndexError, SessionDisposedError
from inventory_kernel.logging_config import get_logger
from inventory_modules.movements.models import (
    BatchRow,
    IndustryFlags,
    NumberGridResult,
    ReceivePolicy,
)

logger = get_logger("services.batch_editor")

FetchAvailable = Callable[[str, str, str], Awaitable[Decimal]]

DEFAULT_DEBOUNCE_SECONDS = 0.4


class BatchRowReconciler:
    """
    Batch rows for one line, with debounced availability checks.

    Contract:
        Owned by one editing view; not shared.  Call ``dispose()`` when the
        view closes.
    """

    def __init__(
        self,
        *,
        expected_quantity: Decimal | None,
        flags: IndustryFlags,
        policy: ReceivePolicy,
        item_id: str = "",
        location_id: str = "",
        fetch_available: FetchAvailable | None = None,
        initial_rows: Sequence[BatchRow] = (),
        scheduler: Scheduler | None = None,
        clock: Clock | None = None,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
    ):
        self.expected_quantity = expected_quantity
        self.flags = flags
        self.policy = policy
        self.item_id = item_id
        self.location_id = location_id
        self._fetch_available = fetch_available
        self._scheduler = scheduler or AsyncioScheduler()
        self._clock = clock or SystemClock()
        self._debounce = debounce_seconds

        self._ids = itertools.count(1)
        self._rows: list[tuple[int, BatchRow]] = [
            (next(self._ids), row) for row in (initial_rows or (BatchRow(),))
        ]
        self._timers: dict[int, ScheduledCall] = {}
        self._available: dict[tuple[int, str], Decimal] = {}
        self._alive = True

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def rows(self) -> tuple[BatchRow, ...]:
        return tuple(row for _, row in self._rows)

    @property
    def disposed(self) -> bool:
        return not self._alive

    @property
    def pending_lookups(self) -> int:
        return sum(1 for call in self._timers.values() if not call.cancelled)

    def available_for(self, index: int) -> Decimal | None:
        """Looked-up availability for the row's current code, if any."""
        row_id, row = self._row_at(index)
        return self._available.get((row_id, row.batch_code.strip()))

    def _available_by_row(self) -> dict[int, Decimal]:
        result: dict[int, Decimal] = {}
        for index, (row_id, row) in enumerate(self._rows):
            value = self._available.get((row_id, row.batch_code.strip()))
            if value is not None:
                result[index] = value
        return result

    @property
    def result(self) -> NumberGridResult:
        return reconcile_batch_rows(
            rows=self.rows,
            expected_quantity=self.expected_quantity,
            flags=self.flags,
            policy=self.policy,
            today=self._clock.today(),
            available_by_row=self._available_by_row(),
        )

    # ------------------------------------------------------------------
    # Row edits
    # ------------------------------------------------------------------

    def add_row(self, row: BatchRow | None = None) -> int:
        """Append a row (default: blank code, quantity 1); return its index."""
        self._check_alive()
        self._rows.append((next(self._ids), row or BatchRow()))
        return len(self._rows) - 1

    def update_row(self, index: int, **changes: Any) -> BatchRow:
        """Replace fields of one row; a code change restarts a pending lookup."""
        self._check_alive()
        row_id, row = self._row_at(index)
        updated = replace(row, **changes)
        self._rows[index] = (row_id, updated)
        if "batch_code" in changes:
            self._forget_other_codes(row_id, updated.batch_code.strip())
            if row_id in self._timers:
                self._cancel_timer(row_id)
                self._schedule(row_id, updated.batch_code.strip())
        return updated

    def remove_row(self, index: int) -> bool:
        """Remove a row unless it is the last one; return whether it was removed."""
        self._check_alive()
        row_id, _ = self._row_at(index)
        if len(self._rows) <= 1:
            return False
        self._cancel_timer(row_id)
        del self._rows[index]
        self._forget_other_codes(row_id, None)
        return True

    def _forget_other_codes(self, row_id: int, keep: str | None) -> None:
        """Drop the row's recorded availability except for code ``keep``."""
        for key in [k for k in self._available if k[0] == row_id and k[1] != keep]:
            del self._available[key]

    # ------------------------------------------------------------------
    # Debounced availability lookups
    # ------------------------------------------------------------------

    def blur_batch_code(self, index: int) -> bool:
        """
        Schedule an availability lookup for the row's code after the
        debounce delay.  Returns False when nothing can be looked up
        (blank code, no lookup callable, or no item/location).
        """
        self._check_alive()
        row_id, row = self._row_at(index)
        code = row.batch_code.strip()
        self._cancel_timer(row_id)
        if not code or self._fetch_available is None or not self.item_id or not self.location_id:
            return False
        self._schedule(row_id, code)
        return True

    def _schedule(self, row_id: int, code: str) -> None:
        if not code:
            return

        async def fire() -> None:
            self._timers.pop(row_id, None)
            await self._lookup(row_id, code)

        self._timers[row_id] = self._scheduler.call_later(self._debounce, fire)

    async def _lookup(self, row_id: int, code: str) -> None:
        if not self._alive or self._fetch_available is None:
            return
        try:
            available = await self._fetch_available(self.item_id, self.location_id, code)
        except Exception:
            logger.warning(
                "batch_lookup_failed",
                extra={"item_id": self.item_id, "batch_number": code},
                exc_info=True,
            )
            return
        if not self._alive:
            logger.debug("batch_lookup_dropped_after_dispose", extra={"batch_number": code})
            return
        current = next((row for rid, row in self._rows if rid == row_id), None)
        if current is None or current.batch_code.strip() != code:
            logger.debug("batch_lookup_superseded", extra={"batch_number": code})
            return
        self._available[(row_id, code)] = available
        logger.debug(
            "batch_availability_recorded",
            extra={"batch_number": code, "available": str(available)},
        )

    def _cancel_timer(self, row_id: int) -> None:
        call = self._timers.pop(row_id, None)
        if call is not None:
            call.cancel()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def dispose(self) -> None:
        """Cancel every pending lookup and drop any that complete later."""
        for call in self._timers.values():
            call.cancel()
        self._timers.clear()
        self._alive = False

    def _check_alive(self) -> None:
        if not self._alive:
            raise SessionDisposedError("BatchRowReconciler")

    def _row_at(self, index: int) -> tuple[int, BatchRow]:
        if index < 0 or index >= len(self._rows):
            raise RowIndexError(index, len(self._rows))
        return self._rows[index]
