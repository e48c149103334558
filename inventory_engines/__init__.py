"""
Inventory Engines -- pure calculation layer for stock movements.

Every function here is deterministic: no I/O, no clock reads (``today`` is
passed in), no shared state.  Services call these after each document
change and publish the results.

Engines:
    direction        -- needs-from/needs-to policy, effective locations
    line_validation  -- per-line findings and status
    impact           -- per-location before/after projection
    batch_rows       -- batch row/total/availability reconciliation
    serials          -- serial parsing and count reconciliation
    submission       -- document gate for draft save and submit
    line_import      -- tab-separated paste into lines
"""

from inventory_engines.batch_rows import (
    derived_quantity,
    final_batch_list,
    reconcile_batch_rows,
    validate_batch_availability,
    validate_batch_rows,
    validate_batch_total,
)
from inventory_engines.direction import (
    NEEDS_FROM,
    NEEDS_TO,
    GridEntryMode,
    NumberGridMode,
    SerialStatusFilter,
    apply_movement_type_change,
    effective_from,
    effective_to,
    needs_from,
    needs_to,
    number_grid_mode,
    parse_movement_type,
)
from inventory_engines.impact import (
    ImpactResult,
    aggregate_impact,
    compute_change_by_location,
)
from inventory_engines.line_import import parse_pasted_lines
from inventory_engines.line_validation import validate_line, validate_lines
from inventory_engines.serials import (
    SerialValidationStatus,
    duplicate_serials,
    is_blocking_serial_status,
    parse_serial_input,
    reconcile_serials,
    validate_serials,
)
from inventory_engines.submission import (
    GateResult,
    document_findings,
    draft_header,
    evaluate_submission,
)
from inventory_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    # direction
    "NEEDS_FROM",
    "NEEDS_TO",
    "GridEntryMode",
    "NumberGridMode",
    "SerialStatusFilter",
    "apply_movement_type_change",
    "effective_from",
    "effective_to",
    "needs_from",
    "needs_to",
    "number_grid_mode",
    "parse_movement_type",
    # line import
    "parse_pasted_lines",
    # line validation
    "validate_line",
    "validate_lines",
    # impact
    "ImpactResult",
    "aggregate_impact",
    "compute_change_by_location",
    # batch rows
    "derived_quantity",
    "final_batch_list",
    "reconcile_batch_rows",
    "validate_batch_availability",
    "validate_batch_rows",
    "validate_batch_total",
    # serials
    "SerialValidationStatus",
    "duplicate_serials",
    "is_blocking_serial_status",
    "parse_serial_input",
    "reconcile_serials",
    "validate_serials",
    # submission
    "GateResult",
    "document_findings",
    "draft_header",
    "evaluate_submission",
    # tracing
    "compute_input_fingerprint",
    "traced_engine",
]
