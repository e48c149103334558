"""
Tests for the submission gate.

Covers:
- Document-level findings
- Line findings prefixed with their line number
- Warnings never block
- Impact errors folded in after line findings
"""

from decimal import Decimal

from inventory_engines.impact import ImpactResult
from inventory_engines.submission import (
    GateResult,
    document_findings,
    draft_header,
    evaluate_submission,
)
from inventory_kernel.domain.dtos import ErrorType, ValidationError
from inventory_modules.movements.models import (
    LineStatus,
    LineValidation,
    MovementHeader,
    StockImpactEntry,
)

HEADER = MovementHeader(reason_code="RECEIPT")


def _line(*findings: ValidationError) -> LineValidation:
    status = LineStatus.VALID
    if any(f.blocking for f in findings):
        status = LineStatus.ERROR
    elif findings:
        status = LineStatus.WARNING
    return LineValidation(
        status=status,
        messages=tuple(f.message for f in findings),
        findings=findings,
    )


def _finding(message: str, blocking: bool = True) -> ValidationError:
    return ValidationError(type=ErrorType.LINE, message=message, blocking=blocking)


class TestDocumentFindings:
    """Header-level rules."""

    def test_reason_required(self):
        findings = document_findings(MovementHeader(), 1)
        assert [f.message for f in findings] == ["Reason code is required"]

    def test_lines_required(self):
        findings = document_findings(HEADER, 0)
        assert [f.message for f in findings] == ["At least one line is required"]

    def test_clean_document(self):
        assert document_findings(HEADER, 2) == ()


class TestEvaluateSubmission:
    """Folding every finding into the gate."""

    def test_clean_gate_allows_submit_and_draft(self):
        gate = evaluate_submission(
            header=HEADER,
            line_count=1,
            line_validations={0: _line()},
            impact=ImpactResult(),
        )
        assert gate == GateResult()
        assert gate.can_submit
        assert gate.can_save_draft

    def test_line_errors_prefixed(self):
        gate = evaluate_submission(
            header=HEADER,
            line_count=2,
            line_validations={1: _line(_finding("Invalid quantity")), 0: _line()},
            impact=ImpactResult(),
        )
        assert gate.errors == ("Line 2: Invalid quantity",)
        assert not gate.can_submit
        assert not gate.can_save_draft

    def test_warnings_do_not_block(self):
        gate = evaluate_submission(
            header=HEADER,
            line_count=1,
            line_validations={0: _line(_finding("Using all available stock", blocking=False))},
            impact=ImpactResult(),
        )
        assert gate.errors == ()
        assert gate.warnings == ("Line 1: Using all available stock",)
        assert gate.can_submit

    def test_error_order(self):
        impact_error = ValidationError(
            type=ErrorType.IMPACT, message="WH-A would go negative (after: -1)",
        )
        impact = ImpactResult(
            entries=(StockImpactEntry("loc-a", "WH-A", Decimal("-3"), Decimal("2"), Decimal("-1")),),
            errors=(impact_error,),
        )
        gate = evaluate_submission(
            header=MovementHeader(),
            line_count=1,
            line_validations={0: _line(_finding("Item is required"))},
            impact=impact,
        )
        assert gate.errors == (
            "Reason code is required",
            "Line 1: Item is required",
            "WH-A would go negative (after: -1)",
        )
        assert len(gate.findings) == 3


class TestDraftHeader:
    """Draft saves never request approval."""

    def test_approval_cleared(self):
        header = MovementHeader(reason_code="RECEIPT", requires_approval=True)
        assert draft_header(header).requires_approval is False
        assert header.requires_approval is True
