"""
Tests for batch-row reconciliation.

Covers:
- Final batch list and derived quantity
- Per-row code, quantity and date rules
- Total-vs-expected under the receive policy
- Per-row availability checks
"""

from datetime import date
from decimal import Decimal

from inventory_engines.batch_rows import (
    derived_quantity,
    final_batch_list,
    reconcile_batch_rows,
    validate_batch_availability,
    validate_batch_rows,
    validate_batch_total,
)
from inventory_kernel.domain.dtos import ErrorType
from inventory_modules.movements.models import BatchRow, IndustryFlags, ReceivePolicy

TODAY = date(2024, 6, 15)
NO_FLAGS = IndustryFlags()
STRICT = ReceivePolicy()


def _row(code: str, qty: str | None, **kwargs) -> BatchRow:
    return BatchRow(
        batch_code=code,
        quantity=Decimal(qty) if qty is not None else None,
        **kwargs,
    )


class TestFinalBatchList:
    """Only rows with a code and positive quantity contribute."""

    def test_filters_blank_and_non_positive(self):
        rows = [_row("B1", "3"), _row("  ", "5"), _row("B2", "0"), _row("B3", None), _row("B4", "2")]
        assert [r.batch_code for r in final_batch_list(rows)] == ["B1", "B4"]
        assert derived_quantity(rows) == Decimal("5")

    def test_empty_rows(self):
        assert final_batch_list([]) == ()
        assert derived_quantity([]) == Decimal("0")


class TestRowRules:
    """Per-row findings."""

    def test_missing_code_and_quantity(self):
        errors = validate_batch_rows([_row("", "0")], NO_FLAGS, TODAY)
        assert [e.message for e in errors] == [
            "Batch code is required",
            "Quantity must be greater than 0",
        ]
        assert all(e.type is ErrorType.ROW and e.row_index == 0 for e in errors)

    def test_flag_driven_dates(self):
        flags = IndustryFlags(requires_batch_tracking=True, has_expiry_date=True)
        errors = validate_batch_rows([_row("B1", "1")], flags, TODAY)
        assert [e.field for e in errors] == ["manufacturing_date", "expiry_date"]

    def test_date_bounds(self):
        rows = [_row(
            "B1", "1",
            manufacturing_date=date(2024, 7, 1),
            expiry_date=date(2024, 6, 1),
        )]
        messages = [e.message for e in validate_batch_rows(rows, NO_FLAGS, TODAY)]
        assert messages == [
            "MFG date cannot be in the future",
            "Expiry date cannot be in the past",
            "Expiry date cannot be before MFG date",
        ]

    def test_row_index_recorded(self):
        rows = [_row("B1", "1"), _row("", "1")]
        errors = validate_batch_rows(rows, NO_FLAGS, TODAY)
        assert [e.row_index for e in errors] == [1]


class TestTotalRules:
    """Total against expected under the receive policy."""

    def test_partial_blocked_by_default(self):
        errors = validate_batch_total(Decimal("8"), Decimal("10"), STRICT)
        assert [e.message for e in errors] == ["Total (8) must equal expected (10)"]
        assert errors[0].type is ErrorType.TOTAL

    def test_partial_allowed(self):
        policy = ReceivePolicy(allow_partial=True)
        assert validate_batch_total(Decimal("8"), Decimal("10"), policy) == ()

    def test_over_receive_blocked_by_default(self):
        errors = validate_batch_total(Decimal("12"), Decimal("10"), STRICT)
        assert [e.message for e in errors] == ["Total (12) must not exceed expected (10)"]

    def test_over_receive_allowed(self):
        policy = ReceivePolicy(allow_over_receive=True)
        assert validate_batch_total(Decimal("12"), Decimal("10"), policy) == ()

    def test_zero_total_always_blocking(self):
        policy = ReceivePolicy(allow_over_receive=True, allow_partial=True)
        errors = validate_batch_total(Decimal("0"), Decimal("10"), policy)
        assert [e.message for e in errors] == ["Total batch quantity must be greater than 0"]
        assert errors[0].blocking


class TestAvailability:
    """Rows checked against looked-up availability."""

    def test_exceeds_available(self):
        rows = [_row("B1", "6"), _row("B2", "2")]
        errors = validate_batch_availability(rows, {0: Decimal("5"), 1: Decimal("5")})
        assert [e.message for e in errors] == ["Quantity (6) exceeds available (5)"]
        assert errors[0].row_index == 0

    def test_rows_without_lookup_not_checked(self):
        rows = [_row("B1", "6")]
        assert validate_batch_availability(rows, {}) == ()

    def test_blank_code_not_checked(self):
        rows = [_row("", "6")]
        assert validate_batch_availability(rows, {0: Decimal("1")}) == ()


class TestReconcileBatchRows:
    """The folded grid result."""

    def test_partial_receipt_blocked(self):
        rows = [_row("B1", "5"), _row("B2", "3")]
        result = reconcile_batch_rows(
            rows=rows, expected_quantity=Decimal("10"), flags=NO_FLAGS,
            policy=STRICT, today=TODAY,
        )
        assert result.derived_quantity == Decimal("8")
        assert not result.is_valid
        assert any(e.type is ErrorType.TOTAL for e in result.validation_errors)

    def test_partial_receipt_allowed(self):
        rows = [_row("B1", "5"), _row("B2", "3")]
        result = reconcile_batch_rows(
            rows=rows, expected_quantity=Decimal("10"), flags=NO_FLAGS,
            policy=ReceivePolicy(allow_partial=True), today=TODAY,
        )
        assert result.validation_errors == ()
        assert result.is_valid
        assert [r.batch_code for r in result.final_batch_list] == ["B1", "B2"]

    def test_exact_total_valid(self):
        rows = [_row("B1", "10")]
        result = reconcile_batch_rows(
            rows=rows, expected_quantity=Decimal("10"), flags=NO_FLAGS,
            policy=STRICT, today=TODAY,
        )
        assert result.is_valid
        assert result.final_serial_list == ()

    def test_availability_makes_invalid(self):
        rows = [_row("B1", "10")]
        result = reconcile_batch_rows(
            rows=rows, expected_quantity=Decimal("10"), flags=NO_FLAGS,
            policy=STRICT, today=TODAY, available_by_row={0: Decimal("4")},
        )
        assert not result.is_valid
        assert result.validation_errors[0].message == "Quantity (10) exceeds available (4)"

    def test_missing_expected_treated_as_zero(self):
        rows = [_row("B1", "2")]
        result = reconcile_batch_rows(
            rows=rows, expected_quantity=None, flags=NO_FLAGS,
            policy=STRICT, today=TODAY,
        )
        assert [e.message for e in result.validation_errors] == [
            "Total (2) must not exceed expected (0)",
        ]
