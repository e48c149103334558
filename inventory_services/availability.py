"""
inventory_services.availability -- Generation-guarded stock availability resolver.

Responsibility:
    Work out which balances and locations a document needs, fetch them all
    concurrently through the lookup port, and publish one immutable
    ``AvailabilitySnapshot`` per completed fetch generation.

Architecture position:
    Services -- owns the only asynchronous state of a movement session.
    Engines read the published snapshot; they never fetch.

Invariants enforced:
    - The generation counter is incremented before the first await of a
      refresh.  A refresh publishes only if its generation is still the
      latest when every request has completed, so a slow superseded fetch
      can never overwrite a newer snapshot.
    - Snapshots are replaced wholesale, never merged.
    - One balance request per distinct (item, effective-from) pair, one
      on-hand/capacity pair per distinct touched location.
    - The plan behind the published snapshot is kept, so callers can tell
      whether the snapshot still covers the document (``covers``).

Failure modes:
    - None propagate.  A failed balance degrades to all-zero, a failed
      location to ``before=0`` with unknown capacity, a failed batch lookup
      to zero availability.  Each failure is logged at WARNING.
    - A discarded stale generation is logged at DEBUG; it is not an error.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from inventory_engines.direction import effective_from, effective_to, needs_from
from inventory_kernel.domain.values import ZERO
from inventory_kernel.logging_config import get_logger
from inventory_modules.movements.models import (
    AvailabilitySnapshot,
    LocationSnapshot,
    MovementHeader,
    MovementLine,
    StockBalanceSnapshot,
    StockKey,
)
from inventory_services.ports import StockLookupPort

logger = get_logger("services.availability")


@dataclass(frozen=True)
class FetchPlan:
    """Distinct lookups one refresh must issue, in first-seen order."""

    balance_keys: tuple[StockKey, ...] = ()
    location_ids: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.balance_keys and not self.location_ids


def build_fetch_plan(
    lines: Sequence[MovementLine],
    header: MovementHeader,
) -> FetchPlan:
    """
    Balance keys for lines whose movement type needs a source, plus every
    location any line touches (source or destination).
    """
    check_stock = needs_from(header.movement_type)
    keys: dict[StockKey, None] = {}
    locations: dict[str, None] = {}
    for line in lines:
        source = effective_from(line, header)
        target = effective_to(line, header)
        if source:
            locations[source] = None
        if target:
            locations[target] = None
        if check_stock and line.item_id and source:
            keys[StockKey(line.item_id, source)] = None
    return FetchPlan(balance_keys=tuple(keys), location_ids=tuple(locations))


class StockAvailabilityResolver:
    """
    Fetches and publishes availability snapshots for one editing session.

    Contract:
        Single event loop, single owner.  ``refresh`` may be called again
        before an earlier call completes; only the newest call publishes.
    """

    def __init__(self, lookup: StockLookupPort):
        self._lookup = lookup
        self._generation = 0
        self._snapshot = AvailabilitySnapshot()
        self._published_plan = FetchPlan()

    @property
    def generation(self) -> int:
        """Generation of the most recently started refresh."""
        return self._generation

    @property
    def snapshot(self) -> AvailabilitySnapshot:
        return self._snapshot

    def covers(
        self,
        lines: Sequence[MovementLine],
        header: MovementHeader,
    ) -> bool:
        """True when the published snapshot was fetched for the same plan."""
        return build_fetch_plan(lines, header) == self._published_plan

    async def refresh(
        self,
        lines: Sequence[MovementLine],
        header: MovementHeader,
    ) -> bool:
        """Fetch everything the document needs; return True if published."""
        self._generation += 1
        generation = self._generation
        plan = build_fetch_plan(lines, header)

        logger.debug(
            "availability_fetch_started",
            extra={
                "generation": generation,
                "balance_keys": len(plan.balance_keys),
                "locations": len(plan.location_ids),
            },
        )

        balances, locations = await asyncio.gather(
            asyncio.gather(*(self._fetch_balance(key) for key in plan.balance_keys)),
            asyncio.gather(*(self._fetch_location(loc) for loc in plan.location_ids)),
        )

        if generation != self._generation:
            logger.debug(
                "availability_fetch_discarded",
                extra={"generation": generation, "latest_generation": self._generation},
            )
            return False

        self._snapshot = AvailabilitySnapshot.of(
            generation,
            dict(zip(plan.balance_keys, balances)),
            dict(zip(plan.location_ids, locations)),
        )
        self._published_plan = plan
        logger.debug(
            "availability_published",
            extra={"generation": generation},
        )
        return True

    async def fetch_available_for_batch(
        self,
        item_id: str,
        location_id: str,
        batch_number: str,
    ) -> Decimal:
        """Available quantity of one batch at a location; 0 on failure."""
        try:
            balance = await self._lookup.stock_balance(item_id, location_id, batch_number)
        except Exception:
            logger.warning(
                "batch_availability_lookup_failed",
                extra={
                    "item_id": item_id,
                    "location_id": location_id,
                    "batch_number": batch_number,
                },
                exc_info=True,
            )
            return ZERO
        return balance.available

    async def _fetch_balance(self, key: StockKey) -> StockBalanceSnapshot:
        try:
            return await self._lookup.stock_balance(key.item_id, key.location_id, key.batch_number)
        except Exception:
            logger.warning(
                "stock_balance_lookup_failed",
                extra={"stock_key": key.token},
                exc_info=True,
            )
            return StockBalanceSnapshot()

    async def _fetch_location(self, location_id: str) -> LocationSnapshot:
        try:
            rows, capacity = await asyncio.gather(
                self._lookup.stock_by_location(location_id),
                self._lookup.location_capacity(location_id),
            )
        except Exception:
            logger.warning(
                "location_lookup_failed",
                extra={"location_id": location_id},
                exc_info=True,
            )
            return LocationSnapshot()
        before = sum((row.on_hand_quantity for row in rows), ZERO)
        return LocationSnapshot(before=before, max_items=capacity.max_items)
