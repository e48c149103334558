"""
Domain DTOs shared by every engine layer.

``ValidationError`` is the single currency for findings: the batch-row
reconciler, the line validator, the impact aggregator and the submission
gate all speak it, so a finding raised in a batch editor can be surfaced by
the gate without translation.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorType(str, Enum):
    """Where a finding is attributed."""

    ROW = "row"  # one batch row
    TOTAL = "total"  # batch/serial total vs expected
    LINE = "line"  # one movement line
    DOCUMENT = "document"  # header / document as a whole
    IMPACT = "impact"  # projected location stock


@dataclass(frozen=True)
class ValidationError:
    """
    A single validation finding.

    Contract:
        ``blocking=True`` findings prevent draft-save and submit;
        non-blocking findings are warnings.  ``row_index`` is the batch row
        for ROW findings and the line index for LINE findings.

    Non-goals:
        - Does NOT raise -- it IS the error representation.
    """

    type: ErrorType
    message: str
    blocking: bool = True
    row_index: int | None = None
    field: str | None = None

    @property
    def is_warning(self) -> bool:
        return not self.blocking


def blocking_only(findings: tuple[ValidationError, ...]) -> tuple[ValidationError, ...]:
    """Filter to blocking findings, order preserved."""
    return tuple(f for f in findings if f.blocking)
