"""
inventory_services.movement_session -- Editing session for one movement document.

Responsibility:
    Own the in-progress ``MovementDocument`` and everything derived from
    it: reference catalogs, the availability resolver, reason codes, line
    validations, stock impact and the submission gate.  Route draft saves
    and submissions to the submission port.

Architecture position:
    Services -- stateful orchestration over engines + ports.
    Derived views are recomputed from current state by pure engine calls
    on every read; nothing derived is cached.

Invariants enforced:
    - Every header or line mutation starts a new availability fetch
      generation when an event loop is running.  Only the newest
      generation publishes.
    - A movement-type switch clears stale default locations and reloads
      reason codes under their own generation guard.
    - Submit and draft save are refused while the gate has errors.
      A draft never requests approval.
    - A backend failure leaves header and lines untouched and is reported
      as ``document_error``.
    - Submit and draft save re-fetch availability first when the published
      snapshot was built for a different set of lookups than the document
      now needs (edits made while no event loop was running).
    - Every operation logs under ``LogContext.bind`` with the session id,
      current movement type and operation name; nothing stays bound after
      the operation returns.

Failure modes:
    - LineIndexError for a line index outside the document.
    - UnknownMovementTypeError for an unrecognised movement type.
    - Lookup failures never propagate; see StockAvailabilityResolver.

Usage:
    session = MovementEditingSession(lookup, submitter, prefill=MovementPrefill(
        movement_type="ISSUE", item_id=item_id, from_location_id=loc_id,
    ))
    await session.load_reference_data()
    await session.load_reason_codes()
    session.update_line(0, quantity=Decimal("5"))
    await session.settle()
    outcome = await session.submit()
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, replace
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import uuid4

from inventory_engines.direction import (
    apply_movement_type_change,
    effective_from,
    effective_to,
    needs_from,
    parse_movement_type,
)
from inventory_engines.impact import ImpactResult, aggregate_impact
from inventory_engines.line_import import parse_pasted_lines
from inventory_engines.line_validation import validate_lines
from inventory_engines.serials import reconcile_serials
from inventory_engines.submission import GateResult, draft_header, evaluate_submission
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.scheduler import AsyncioScheduler, Scheduler
from inventory_kernel.domain.values import ZERO, to_quantity
from inventory_kernel.exceptions import LineIndexError, SubmissionRejectedError
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_modules.movements.config import MovementConfig
from inventory_modules.movements.models import (
    AvailabilitySnapshot,
    BatchRow,
    IndustryFlags,
    ItemInfo,
    LineValidation,
    LocationInfo,
    MovementDocument,
    MovementHeader,
    MovementLine,
    MovementType,
    NumberGridResult,
    ReasonCodeSet,
    StockImpactEntry,
)
from inventory_modules.movements.reasons import ReasonSource
from inventory_services.availability import StockAvailabilityResolver
from inventory_services.batch_editor import BatchRowReconciler
from inventory_services.ports import MovementSubmissionPort, StockLookupPort

logger = get_logger("services.movement_session")


class SubmissionStatus(str, Enum):
    SUBMITTED = "submitted"
    DRAFT_SAVED = "draft_saved"
    BLOCKED = "blocked"  # gate errors; nothing sent
    REJECTED = "rejected"  # backend refused or failed


@dataclass(frozen=True)
class SubmissionOutcome:
    status: SubmissionStatus
    document: MovementDocument | None = None
    errors: tuple[str, ...] = ()

    @property
    def succeeded(self) -> bool:
        return self.status in (SubmissionStatus.SUBMITTED, SubmissionStatus.DRAFT_SAVED)


@dataclass(frozen=True)
class MovementPrefill:
    """Initial values when a document is opened from another screen."""

    movement_type: MovementType | str | None = None
    item_id: str | None = None
    variant_id: str | None = None
    from_location_id: str | None = None
    to_location_id: str | None = None
    reason_code: str | None = None
    reason_locked: bool = False
    source: ReasonSource | str | None = None


class MovementEditingSession:
    """
    One user's in-progress movement document.

    Contract:
        Single event loop, single owner.  Mutations are synchronous; the
        availability and reason-code fetches they trigger run as tasks and
        are awaited with ``settle()``.
    """

    def __init__(
        self,
        lookup: StockLookupPort,
        submitter: MovementSubmissionPort,
        *,
        config: MovementConfig | None = None,
        clock: Clock | None = None,
        scheduler: Scheduler | None = None,
        prefill: MovementPrefill | None = None,
        session_id: str | None = None,
    ):
        self.session_id = session_id or uuid4().hex[:12]
        self._lookup = lookup
        self._submitter = submitter
        self._config = config or MovementConfig()
        self._clock = clock or SystemClock()
        self._scheduler = scheduler or AsyncioScheduler()
        self._resolver = StockAvailabilityResolver(lookup)

        self._items: dict[str, ItemInfo] = {}
        self._locations: dict[str, LocationInfo] = {}
        self._reason_codes = ReasonCodeSet()
        self._reason_generation = 0
        self._reason_locked = False
        self._source: ReasonSource | None = None
        self._tasks: set[asyncio.Task] = set()

        self.document_error: str | None = None
        self.document = MovementDocument(
            header=MovementHeader(movement_type=self._config.default_movement_type),
            lines=[self._blank_line()],
        )
        if prefill is not None:
            self._apply_prefill(prefill)

    @contextmanager
    def _log_scope(self, operation: str) -> Iterator[None]:
        with LogContext.bind(
            session_id=self.session_id,
            movement_type=self.document.header.movement_type.value,
            operation=operation,
        ):
            yield

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def _blank_line(self) -> MovementLine:
        return MovementLine(unit_of_measure=self._config.default_unit_of_measure)

    def _apply_prefill(self, prefill: MovementPrefill) -> None:
        header = self.document.header
        if prefill.movement_type:
            header = replace(header, movement_type=parse_movement_type(prefill.movement_type))
        header = replace(
            header,
            default_from_location_id=prefill.from_location_id or None,
            default_to_location_id=prefill.to_location_id or None,
            reason_code=prefill.reason_code or "",
        )
        self.document.header = header
        self._reason_locked = prefill.reason_locked
        if prefill.item_id:
            self.document.lines = [replace(
                self._blank_line(),
                item_id=prefill.item_id,
                variant_id=prefill.variant_id or None,
                from_location_id=prefill.from_location_id or None,
                to_location_id=prefill.to_location_id or None,
            )]

        with self._log_scope("prefill"):
            if prefill.source:
                try:
                    self._source = ReasonSource(prefill.source)
                except ValueError:
                    logger.warning("unknown_prefill_source", extra={"source": str(prefill.source)})
            logger.info(
                "movement_session_prefilled",
                extra={
                    "has_item": bool(prefill.item_id),
                    "reason_locked": self._reason_locked,
                },
            )

    # ------------------------------------------------------------------
    # Reference data
    # ------------------------------------------------------------------

    @property
    def items(self) -> dict[str, ItemInfo]:
        return dict(self._items)

    @property
    def locations(self) -> dict[str, LocationInfo]:
        return dict(self._locations)

    @property
    def reason_codes(self) -> ReasonCodeSet:
        return self._reason_codes

    @property
    def reason_locked(self) -> bool:
        return self._reason_locked

    async def load_reference_data(self) -> None:
        """Load active items and locations; a failed catalog stays as it was."""
        with self._log_scope("load_reference_data"):
            items, locations = await asyncio.gather(
                self._lookup.active_items(),
                self._lookup.active_locations(),
                return_exceptions=True,
            )
            if isinstance(items, Exception):
                logger.error("items_load_failed", exc_info=items)
            else:
                self._items = {item.id: item for item in items}
            if isinstance(locations, Exception):
                logger.error("locations_load_failed", exc_info=locations)
            else:
                self._locations = {loc.id: loc for loc in locations}
            logger.info(
                "reference_data_loaded",
                extra={"items": len(self._items), "locations": len(self._locations)},
            )

    async def load_reason_codes(self) -> bool:
        """
        Load allowed reason codes for the current movement type.

        Unless the reason is locked, the header reason becomes the default
        when the current code is empty or not allowed.  Returns False when
        a newer load superseded this one or the load failed.
        """
        self._reason_generation += 1
        generation = self._reason_generation
        movement_type = self.document.header.movement_type
        with self._log_scope("load_reason_codes"):
            try:
                codes = await self._lookup.reason_codes_for_movement_type(
                    movement_type, self._source,
                )
            except Exception:
                if generation != self._reason_generation:
                    return False
                logger.error("reason_codes_load_failed", exc_info=True)
                self._reason_codes = ReasonCodeSet()
                return False

            if generation != self._reason_generation:
                logger.debug("reason_codes_superseded", extra={"generation": generation})
                return False

            self._reason_codes = codes
            header = self.document.header
            if not self._reason_locked and not (
                header.reason_code and codes.contains(header.reason_code)
            ):
                self.document.header = replace(header, reason_code=codes.resolved_default())
            return True

    # ------------------------------------------------------------------
    # Background work
    # ------------------------------------------------------------------

    def _launch(self, factory: Callable[[], Awaitable[Any]]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        task = loop.create_task(factory())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _changed(self) -> None:
        self._launch(self.refresh)

    async def refresh(self) -> bool:
        """Run one availability fetch for the current document."""
        with self._log_scope("refresh"):
            return await self._resolver.refresh(
                self.document.snapshot_lines(), self.document.header,
            )

    def _snapshot_covers_document(self) -> bool:
        return self._resolver.covers(self.document.snapshot_lines(), self.document.header)

    async def settle(self) -> None:
        """Await every fetch started by earlier mutations."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    @property
    def snapshot(self) -> AvailabilitySnapshot:
        return self._resolver.snapshot

    @property
    def fetch_generation(self) -> int:
        return self._resolver.generation

    # ------------------------------------------------------------------
    # Header mutations
    # ------------------------------------------------------------------

    def set_movement_type(self, movement_type: MovementType | str) -> MovementHeader:
        new_type = parse_movement_type(movement_type)
        previous = self.document.header.movement_type
        self.document.header = apply_movement_type_change(self.document.header, new_type)
        with self._log_scope("set_movement_type"):
            logger.info("movement_type_changed", extra={"previous_type": previous.value})
        self._launch(self.load_reason_codes)
        self._changed()
        return self.document.header

    def set_default_from(self, location_id: str | None) -> None:
        self.document.header = replace(
            self.document.header, default_from_location_id=location_id or None,
        )
        self._changed()

    def set_default_to(self, location_id: str | None) -> None:
        self.document.header = replace(
            self.document.header, default_to_location_id=location_id or None,
        )
        self._changed()

    def set_reason(self, reason_code: str, description: str | None = None) -> bool:
        """Set the header reason; refused (False) while the reason is locked."""
        if self._reason_locked:
            with self._log_scope("set_reason"):
                logger.info("reason_change_refused_locked", extra={"reason_code": reason_code})
            return False
        self.document.header = replace(
            self.document.header,
            reason_code=reason_code or "",
            reason_description=description,
        )
        return True

    def set_notes(self, notes: str | None) -> None:
        self.document.header = replace(self.document.header, document_notes=notes or None)

    def set_requires_approval(self, value: bool) -> None:
        self.document.header = replace(self.document.header, requires_approval=bool(value))

    # ------------------------------------------------------------------
    # Line mutations
    # ------------------------------------------------------------------

    def _check_index(self, index: int) -> None:
        if index < 0 or index >= len(self.document.lines):
            raise LineIndexError(index, len(self.document.lines))

    def add_line(self, line: MovementLine | None = None) -> int:
        self.document.lines.append(line or self._blank_line())
        self._changed()
        return len(self.document.lines) - 1

    def update_line(self, index: int, **changes: Any) -> MovementLine:
        """Replace fields of one line; ``quantity`` accepts any numeric input."""
        self._check_index(index)
        if "quantity" in changes:
            changes["quantity"] = to_quantity(changes["quantity"])
        if "serial_numbers" in changes:
            changes["serial_numbers"] = tuple(changes["serial_numbers"] or ())
        line = replace(self.document.lines[index], **changes)
        self.document.lines[index] = line
        self._changed()
        return line

    def duplicate_line(self, index: int) -> int:
        """Insert a copy after ``index`` with quantity 1 and no batch/serial data."""
        self._check_index(index)
        copy = replace(
            self.document.lines[index],
            quantity=Decimal("1"),
            batch_number=None,
            manufacturing_date=None,
            expiry_date=None,
            serial_numbers=(),
        )
        self.document.lines.insert(index + 1, copy)
        self._changed()
        return index + 1

    def remove_line(self, index: int) -> MovementLine:
        self._check_index(index)
        removed = self.document.lines.pop(index)
        self._changed()
        return removed

    def paste_lines(self, text: str) -> list[int]:
        """Append lines parsed from tab-separated text; return their indexes."""
        parsed = parse_pasted_lines(text, self._items.values(), self._locations.values())
        if not parsed:
            return []
        start = len(self.document.lines)
        self.document.lines.extend(parsed)
        self._changed()
        return list(range(start, start + len(parsed)))

    # ------------------------------------------------------------------
    # Batch / serial editors
    # ------------------------------------------------------------------

    def grid_location(self, index: int) -> str:
        """Location the line's batches/serials are checked at."""
        self._check_index(index)
        line = self.document.lines[index]
        header = self.document.header
        if needs_from(header.movement_type):
            return effective_from(line, header)
        return effective_to(line, header)

    def open_batch_editor(self, index: int) -> BatchRowReconciler:
        self._check_index(index)
        line = self.document.lines[index]
        item = self._items.get(line.item_id)
        flags = item.industry_flags if item is not None else None
        initial: tuple[BatchRow, ...] = ()
        if line.batch_number:
            initial = (BatchRow(
                batch_code=line.batch_number,
                quantity=line.quantity,
                manufacturing_date=line.manufacturing_date,
                expiry_date=line.expiry_date,
            ),)
        return BatchRowReconciler(
            expected_quantity=line.quantity,
            flags=flags if flags is not None else IndustryFlags(),
            policy=self._config.receive_policy,
            item_id=line.item_id,
            location_id=self.grid_location(index),
            fetch_available=self._resolver.fetch_available_for_batch,
            initial_rows=initial,
            scheduler=self._scheduler,
            clock=self._clock,
            debounce_seconds=self._config.debounce_seconds,
        )

    def apply_batch_result(self, index: int, result: NumberGridResult) -> bool:
        """Write a valid batch result back: derived quantity and first batch."""
        self._check_index(index)
        if not result.is_valid or not result.final_batch_list:
            return False
        first = result.final_batch_list[0]
        self.update_line(
            index,
            quantity=result.derived_quantity,
            batch_number=first.batch_code.strip(),
            manufacturing_date=first.manufacturing_date,
            expiry_date=first.expiry_date,
        )
        return True

    def serial_result(self, index: int, serials: Sequence[str]) -> NumberGridResult:
        """Reconcile a serial list for one line against the rest of the document."""
        self._check_index(index)
        others = [
            serial
            for i, line in enumerate(self.document.lines) if i != index
            for serial in line.serial_numbers
        ]
        return reconcile_serials(
            serials=tuple(serials),
            expected_quantity=self.document.lines[index].quantity,
            policy=self._config.receive_policy,
            existing_in_document=others,
        )

    def apply_serial_result(self, index: int, result: NumberGridResult) -> bool:
        self._check_index(index)
        if not result.is_valid:
            return False
        self.update_line(
            index,
            quantity=result.derived_quantity,
            serial_numbers=result.final_serial_list,
        )
        return True

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    @property
    def line_validations(self) -> dict[int, LineValidation]:
        return validate_lines(
            lines=self.document.snapshot_lines(),
            header=self.document.header,
            items=self._items,
            snapshot=self._resolver.snapshot,
            today=self._clock.today(),
        )

    def _impact(self) -> ImpactResult:
        return aggregate_impact(
            lines=self.document.snapshot_lines(),
            header=self.document.header,
            snapshot=self._resolver.snapshot,
            locations=self._locations,
        )

    @property
    def stock_impact(self) -> tuple[StockImpactEntry, ...]:
        return self._impact().entries

    @property
    def gate(self) -> GateResult:
        return evaluate_submission(
            header=self.document.header,
            line_count=len(self.document.lines),
            line_validations=self.line_validations,
            impact=self._impact(),
        )

    @property
    def errors(self) -> tuple[str, ...]:
        return self.gate.errors

    @property
    def warnings(self) -> tuple[str, ...]:
        return self.gate.warnings

    @property
    def can_submit(self) -> bool:
        return self.gate.can_submit

    @property
    def can_save_draft(self) -> bool:
        return self.gate.can_save_draft

    @property
    def total_quantity(self) -> Decimal:
        return sum(
            (abs(line.quantity) for line in self.document.lines if line.quantity is not None),
            ZERO,
        )

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def build_request(self, force_no_approval: bool = False) -> MovementDocument:
        """Copy of the document with every line's locations resolved."""
        header = self.document.header
        lines = [
            replace(
                line,
                from_location_id=effective_from(line, header) or None,
                to_location_id=effective_to(line, header) or None,
            )
            for line in self.document.lines
        ]
        request_header = replace(
            header,
            default_from_location_id=header.default_from_location_id or None,
            default_to_location_id=header.default_to_location_id or None,
        )
        if force_no_approval:
            request_header = draft_header(request_header)
        return MovementDocument(header=request_header, lines=lines)

    async def submit(self) -> SubmissionOutcome:
        return await self._send(draft=False)

    async def save_draft(self) -> SubmissionOutcome:
        return await self._send(draft=True)

    async def _send(self, draft: bool) -> SubmissionOutcome:
        with self._log_scope("save_draft" if draft else "submit"):
            self.document_error = None
            await self.settle()
            if not self._snapshot_covers_document():
                logger.info(
                    "availability_stale_before_send",
                    extra={"generation": self._resolver.snapshot.generation},
                )
                await self.refresh()
                await self.settle()

            gate = self.gate
            if gate.errors:
                logger.info(
                    "movement_submission_blocked",
                    extra={"error_count": len(gate.errors)},
                )
                return SubmissionOutcome(SubmissionStatus.BLOCKED, errors=gate.errors)

            request = self.build_request(force_no_approval=draft)
            try:
                if draft:
                    saved = await self._submitter.save_draft(request)
                else:
                    saved = await self._submitter.create_movement_batch(request)
            except SubmissionRejectedError as exc:
                self.document_error = exc.reason
                logger.warning(
                    "movement_submission_rejected",
                    extra={"reason": exc.reason, "status": exc.status},
                )
                return SubmissionOutcome(SubmissionStatus.REJECTED, errors=(exc.reason,))
            except Exception as exc:
                fallback = "Failed to save draft" if draft else "Failed to create movement"
                self.document_error = str(exc) or fallback
                logger.error("movement_submission_failed", exc_info=True)
                return SubmissionOutcome(SubmissionStatus.REJECTED, errors=(self.document_error,))

            logger.info(
                "movement_submitted" if not draft else "movement_draft_saved",
                extra={
                    "line_count": len(request.lines),
                    "total_quantity": str(self.total_quantity),
                    "requires_approval": request.header.requires_approval,
                    "generation": self._resolver.snapshot.generation,
                },
            )
            status = SubmissionStatus.DRAFT_SAVED if draft else SubmissionStatus.SUBMITTED
            return SubmissionOutcome(status, document=saved)
