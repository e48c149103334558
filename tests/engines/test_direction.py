"""
Tests for movement-type direction policy.

Covers:
- Which movement types need a from/to location
- Effective location resolution (line override, header default)
- Header side effects of switching movement type
- Number-grid entry mode per movement type
"""

import pytest

from inventory_engines.direction import (
    GridEntryMode,
    SerialStatusFilter,
    apply_movement_type_change,
    effective_from,
    effective_to,
    needs_from,
    needs_to,
    number_grid_mode,
    parse_movement_type,
)
from inventory_kernel.exceptions import UnknownMovementTypeError
from inventory_modules.movements.models import MovementHeader, MovementLine, MovementType


class TestLocationNeeds:
    """Tests for the from/to predicates."""

    @pytest.mark.parametrize("movement_type", [
        MovementType.TRANSFER,
        MovementType.ISSUE,
        MovementType.DAMAGE,
        MovementType.WASTE,
        MovementType.LOSS,
        MovementType.BLOCK,
    ])
    def test_needs_from(self, movement_type):
        assert needs_from(movement_type)

    @pytest.mark.parametrize("movement_type", [
        MovementType.RECEIPT,
        MovementType.TRANSFER,
        MovementType.ADJUSTMENT,
    ])
    def test_needs_to(self, movement_type):
        assert needs_to(movement_type)

    def test_transfer_needs_both(self):
        assert needs_from(MovementType.TRANSFER) and needs_to(MovementType.TRANSFER)

    @pytest.mark.parametrize("movement_type", [
        MovementType.UNBLOCK,
        MovementType.COUNT_ADJUSTMENT,
        MovementType.REVERSAL,
    ])
    def test_needs_neither(self, movement_type):
        assert not needs_from(movement_type)
        assert not needs_to(movement_type)

    def test_receipt_does_not_need_from(self):
        assert not needs_from(MovementType.RECEIPT)

    def test_issue_does_not_need_to(self):
        assert not needs_to(MovementType.ISSUE)


class TestEffectiveLocations:
    """Line overrides fall back to header defaults."""

    def setup_method(self):
        self.header = MovementHeader(
            movement_type=MovementType.TRANSFER,
            default_from_location_id="WH-A",
            default_to_location_id="WH-B",
        )

    def test_header_default_used_when_line_empty(self):
        line = MovementLine(item_id="i1")
        assert effective_from(line, self.header) == "WH-A"
        assert effective_to(line, self.header) == "WH-B"

    def test_line_override_wins(self):
        line = MovementLine(item_id="i1", from_location_id="WH-C", to_location_id="WH-D")
        assert effective_from(line, self.header) == "WH-C"
        assert effective_to(line, self.header) == "WH-D"

    def test_empty_string_override_falls_back(self):
        line = MovementLine(item_id="i1", from_location_id="", to_location_id="")
        assert effective_from(line, self.header) == "WH-A"
        assert effective_to(line, self.header) == "WH-B"

    def test_nothing_set_resolves_empty(self):
        line = MovementLine(item_id="i1")
        header = MovementHeader()
        assert effective_from(line, header) == ""
        assert effective_to(line, header) == ""


class TestParseMovementType:
    """Tests for movement type parsing."""

    def test_enum_passthrough(self):
        assert parse_movement_type(MovementType.LOSS) is MovementType.LOSS

    def test_case_insensitive_string(self):
        assert parse_movement_type(" transfer ") is MovementType.TRANSFER

    def test_unknown_string_raises(self):
        with pytest.raises(UnknownMovementTypeError) as exc_info:
            parse_movement_type("TELEPORT")
        assert exc_info.value.code == "UNKNOWN_MOVEMENT_TYPE"

    def test_non_string_raises(self):
        with pytest.raises(UnknownMovementTypeError):
            parse_movement_type(42)


class TestMovementTypeChange:
    """Switching movement type clears stale default locations."""

    def setup_method(self):
        self.header = MovementHeader(
            movement_type=MovementType.TRANSFER,
            default_from_location_id="WH-A",
            default_to_location_id="WH-B",
            reason_code="TRANSFER",
        )

    def test_switch_to_receipt_clears_from(self):
        header = apply_movement_type_change(self.header, MovementType.RECEIPT)
        assert header.movement_type is MovementType.RECEIPT
        assert header.default_from_location_id is None
        assert header.default_to_location_id == "WH-B"

    def test_switch_to_issue_clears_to(self):
        header = apply_movement_type_change(self.header, MovementType.ISSUE)
        assert header.default_from_location_id == "WH-A"
        assert header.default_to_location_id is None

    def test_switch_to_other_keeps_both(self):
        header = apply_movement_type_change(self.header, MovementType.DAMAGE)
        assert header.default_from_location_id == "WH-A"
        assert header.default_to_location_id == "WH-B"

    def test_other_fields_untouched(self):
        header = apply_movement_type_change(self.header, MovementType.RECEIPT)
        assert header.reason_code == "TRANSFER"

    def test_original_header_not_mutated(self):
        apply_movement_type_change(self.header, MovementType.RECEIPT)
        assert self.header.default_from_location_id == "WH-A"


class TestNumberGridMode:
    """Entry mode for batch/serial grids."""

    @pytest.mark.parametrize("movement_type", [
        MovementType.RECEIPT,
        MovementType.ADJUSTMENT,
        MovementType.COUNT_ADJUSTMENT,
        MovementType.BLOCK,
    ])
    def test_input_mode(self, movement_type):
        mode = number_grid_mode(movement_type)
        assert mode.mode is GridEntryMode.INPUT
        assert mode.serial_status is None

    @pytest.mark.parametrize("movement_type", [
        MovementType.ISSUE,
        MovementType.TRANSFER,
        MovementType.REVERSAL,
        MovementType.DAMAGE,
        MovementType.WASTE,
        MovementType.LOSS,
    ])
    def test_select_available(self, movement_type):
        mode = number_grid_mode(movement_type)
        assert mode.mode is GridEntryMode.SELECT
        assert mode.serial_status is SerialStatusFilter.AVAILABLE

    def test_unblock_selects_blocked(self):
        mode = number_grid_mode(MovementType.UNBLOCK)
        assert mode.mode is GridEntryMode.SELECT
        assert mode.serial_status is SerialStatusFilter.BLOCKED
