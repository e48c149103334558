"""
Pytest fixtures for the inventory movement engine test suite.

Provides:
- Structured logging configured once per session, plus a JSON log capture
- Deterministic clock and manual scheduler
- Scripted in-memory lookup and submission fakes for the service layer
- SQLite-backed sessions with a seeded read model for selector/gateway tests
"""

import asyncio
import json
import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from inventory_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from inventory_kernel.domain.clock import DeterministicClock
from inventory_kernel.domain.scheduler import ManualScheduler
from inventory_kernel.exceptions import SubmissionRejectedError
from inventory_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from inventory_kernel.models import (
    ItemModel,
    LocationModel,
    ReasonCodeModel,
    StockBalanceModel,
)
from inventory_modules.movements.models import (
    ItemInfo,
    LocationInfo,
    MovementDocument,
    MovementType,
    ReasonCodeOption,
    ReasonCodeSet,
    StockBalanceSnapshot,
)
from inventory_modules.movements.reasons import default_reason
from inventory_services.ports import LocationCapacity, LocationStockRow

# Fixed "today" for every clock-dependent test: 2024-06-15.
FIXED_NOW = datetime(2024, 6, 15, 9, 0, tzinfo=timezone.utc)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture inventory_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            resolver.refresh(...)
            logs = captured_logs()
            assert any(r["message"] == "availability_published" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("inventory_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Time
# =============================================================================


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    return DeterministicClock(FIXED_NOW)


@pytest.fixture
def manual_scheduler() -> ManualScheduler:
    return ManualScheduler()


# =============================================================================
# Service fakes
# =============================================================================


class FakeStockLookup:
    """
    Scripted StockLookupPort.

    Balances are keyed by (item, location, batch); unknown keys return
    zero.  ``failing`` names keys or location ids whose lookups raise.
    ``gates`` maps a balance key to an asyncio.Event the lookup waits on,
    so tests can control completion order.
    """

    def __init__(self):
        self.balances: dict[tuple, StockBalanceSnapshot] = {}
        self.on_hand: dict[str, list[LocationStockRow]] = {}
        self.capacity: dict[str, LocationCapacity] = {}
        self.items: list[ItemInfo] = []
        self.locations: list[LocationInfo] = []
        self.reason_sets: dict[MovementType, ReasonCodeSet] = {}
        self.failing: set = set()
        self.gates: dict[tuple, asyncio.Event] = {}
        self.calls: list[tuple] = []

    def set_balance(self, item_id, location_id, available, batch_number=None,
                    reserved="0", blocked="0"):
        self.balances[(item_id, location_id, batch_number)] = StockBalanceSnapshot(
            available=Decimal(str(available)),
            reserved=Decimal(str(reserved)),
            blocked=Decimal(str(blocked)),
        )

    def set_location(self, location_id, before, max_items=None):
        self.on_hand[location_id] = [
            LocationStockRow(item_id="any", on_hand_quantity=Decimal(str(before)))
        ]
        self.capacity[location_id] = LocationCapacity(
            max_items=Decimal(str(max_items)) if max_items is not None else None
        )

    async def stock_balance(self, item_id, location_id, batch_number=None):
        key = (item_id, location_id, batch_number)
        self.calls.append(("stock_balance",) + key)
        gate = self.gates.get(key)
        if gate is not None:
            await gate.wait()
        if key in self.failing:
            raise ConnectionError(f"lookup failed for {key}")
        return self.balances.get(key, StockBalanceSnapshot())

    async def stock_by_location(self, location_id):
        self.calls.append(("stock_by_location", location_id))
        if location_id in self.failing:
            raise ConnectionError(f"lookup failed for {location_id}")
        return list(self.on_hand.get(location_id, []))

    async def location_capacity(self, location_id):
        self.calls.append(("location_capacity", location_id))
        if location_id in self.failing:
            raise ConnectionError(f"lookup failed for {location_id}")
        return self.capacity.get(location_id, LocationCapacity())

    async def reason_codes_for_movement_type(self, movement_type, source=None):
        self.calls.append(("reason_codes", movement_type))
        if movement_type in self.failing:
            raise ConnectionError("reason codes unavailable")
        codes = self.reason_sets.get(movement_type)
        if codes is not None:
            return codes
        code = default_reason(movement_type, source).default_code
        return ReasonCodeSet(
            allowed=(ReasonCodeOption(code, code.title()),),
            default_code=code,
        )

    async def active_items(self) -> Sequence[ItemInfo]:
        return list(self.items)

    async def active_locations(self) -> Sequence[LocationInfo]:
        return list(self.locations)


class FakeSubmitter:
    """Records documents; raises ``reject_with`` when set."""

    def __init__(self):
        self.submitted: list[MovementDocument] = []
        self.drafts: list[MovementDocument] = []
        self.reject_with: Exception | None = None

    async def create_movement_batch(self, document):
        if self.reject_with is not None:
            raise self.reject_with
        self.submitted.append(document)
        return document

    async def save_draft(self, document):
        if self.reject_with is not None:
            raise self.reject_with
        self.drafts.append(document)
        return document


@pytest.fixture
def lookup() -> FakeStockLookup:
    return FakeStockLookup()


@pytest.fixture
def submitter() -> FakeSubmitter:
    return FakeSubmitter()


@pytest.fixture
def rejection():
    return SubmissionRejectedError("Location WH-A is closed for counting", status=409)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def db_session_factory():
    """In-memory SQLite read model; tables created and dropped per test."""
    init_engine_from_url("sqlite+pysqlite:///:memory:")
    create_tables()
    yield get_session_factory()
    drop_tables()
    reset_engine()


@pytest.fixture
def seeded_db(db_session_factory):
    """
    Two locations, two items and stock rows::

        WH-A: widget 10 on hand (2 reserved, 1 blocked) in batch B1,
              widget 5 on hand in batch B2
        WH-B: gadget 7 on hand, capacity 20
    """
    ids = {
        "widget": uuid4(),
        "gadget": uuid4(),
        "wh_a": uuid4(),
        "wh_b": uuid4(),
    }
    with db_session_factory() as session:
        session.add_all([
            ItemModel(id=ids["widget"], sku="WID-1", name="Widget",
                      requires_batch_tracking=True, has_expiry_date=True),
            ItemModel(id=ids["gadget"], sku="GAD-1", name="Gadget",
                      requires_serial_tracking=True),
            ItemModel(id=uuid4(), sku="OLD-1", name="Retired", is_active=False),
            LocationModel(id=ids["wh_a"], code="WH-A", name="Main warehouse"),
            LocationModel(id=ids["wh_b"], code="WH-B", name="Overflow",
                          max_items=Decimal("20")),
            StockBalanceModel(item_id=ids["widget"], location_id=ids["wh_a"],
                              batch_number="B1", on_hand=Decimal("10"),
                              reserved=Decimal("2"), blocked=Decimal("1")),
            StockBalanceModel(item_id=ids["widget"], location_id=ids["wh_a"],
                              batch_number="B2", on_hand=Decimal("5")),
            StockBalanceModel(item_id=ids["gadget"], location_id=ids["wh_b"],
                              on_hand=Decimal("7")),
            ReasonCodeModel(code="RECEIPT", name="Goods receipt", category="MOVEMENT", sort_order=1),
            ReasonCodeModel(code="ISSUE", name="Goods issue", category="MOVEMENT", sort_order=2),
            ReasonCodeModel(code="DAMAGE_TRANSPORT", name="Transport damage", category="DAMAGE"),
            ReasonCodeModel(code="OLD", name="Old", category="MOVEMENT", is_active=False),
        ])
        session.commit()
    return {k: str(v) for k, v in ids.items()}
