"""
inventory_engines.submission -- Submission gate for movement documents.

Responsibility:
    Combine document-level, line-level and impact-level findings into the
    single error/warning set that gates "save draft" and "submit".

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - errors = document errors, then blocking line findings, then impact
      errors.  warnings = non-blocking line findings.
    - Line messages are prefixed ``Line N: `` with N one-based.
    - Draft save and submit are both allowed exactly when errors is empty;
      warnings never block.
    - A draft never requests approval.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace

from inventory_engines.impact import ImpactResult
from inventory_engines.tracer import traced_engine
from inventory_kernel.domain.dtos import ErrorType, ValidationError
from inventory_modules.movements.models import LineValidation, MovementHeader


@dataclass(frozen=True)
class GateResult:
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    findings: tuple[ValidationError, ...] = ()

    @property
    def can_submit(self) -> bool:
        return not self.errors

    @property
    def can_save_draft(self) -> bool:
        return not self.errors


def document_findings(header: MovementHeader, line_count: int) -> tuple[ValidationError, ...]:
    findings: list[ValidationError] = []
    if not header.reason_code:
        findings.append(ValidationError(
            type=ErrorType.DOCUMENT, message="Reason code is required", field="reason_code",
        ))
    if line_count == 0:
        findings.append(ValidationError(
            type=ErrorType.DOCUMENT, message="At least one line is required", field="lines",
        ))
    return tuple(findings)


def draft_header(header: MovementHeader) -> MovementHeader:
    """Header as sent for a draft save: approval is never requested."""
    return replace(header, requires_approval=False)


@traced_engine("submission_gate", "1.0")
def evaluate_submission(
    *,
    header: MovementHeader,
    line_count: int,
    line_validations: Mapping[int, LineValidation],
    impact: ImpactResult,
) -> GateResult:
    """Fold every finding into the gate's error and warning lists."""
    findings: list[ValidationError] = list(document_findings(header, line_count))
    errors: list[str] = [f.message for f in findings]
    warnings: list[str] = []

    for index in sorted(line_validations):
        for finding in line_validations[index].findings:
            text = f"Line {index + 1}: {finding.message}"
            findings.append(finding)
            if finding.blocking:
                errors.append(text)
            else:
                warnings.append(text)

    for finding in impact.errors:
        findings.append(finding)
        errors.append(finding.message)

    return GateResult(
        errors=tuple(errors),
        warnings=tuple(warnings),
        findings=tuple(findings),
    )
