"""
Typed exception hierarchy for the inventory movement engine.

Validation outcomes are NOT exceptions: a line with insufficient stock or a
batch total below the expected quantity is reported as a ``ValidationError``
finding (see ``inventory_kernel.domain.dtos``) so the editor can show every
problem at once.  Exceptions are reserved for:

  - programming errors (bad line index, unknown movement type),
  - configuration errors (malformed policy YAML),
  - collaborator failures (backend rejection, missing location),
  - use of a disposed editor.

Every exception carries a class-level ``code`` (machine-readable) and its
context as attributes, so callers catch by type and never parse messages.

    InventoryKernelError (base)
    |
    +-- MovementError
    |   +-- UnknownMovementTypeError
    |   +-- LineIndexError
    |   +-- SubmissionRejectedError
    |
    +-- BatchEditorError
    |   +-- RowIndexError
    |
    +-- StockLookupError
    |   +-- LocationNotFoundError
    |
    +-- SessionError
    |   +-- SessionDisposedError
    |
    +-- ConfigurationError
        +-- InvalidPolicyConfigError

Category        | Code                     | When raised
----------------|--------------------------|-----------------------------------
Movement        | UNKNOWN_MOVEMENT_TYPE    | Movement type string not recognised
                | LINE_INDEX_OUT_OF_RANGE  | Line edit addresses a missing line
                | SUBMISSION_REJECTED      | Backend refused the document
Batch editor    | ROW_INDEX_OUT_OF_RANGE   | Row edit addresses a missing row
Lookup          | LOCATION_NOT_FOUND       | Capacity/on-hand for unknown location
Session         | SESSION_DISPOSED         | Editor used after dispose()
Configuration   | INVALID_POLICY_CONFIG    | Policy YAML fails validation
"""


class InventoryKernelError(Exception):
    """
    Base exception for all inventory engine errors.

    All subclasses must have a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "INVENTORY_KERNEL_ERROR"


# Movement-related exceptions


class MovementError(InventoryKernelError):
    """Base exception for movement-document errors."""

    code: str = "MOVEMENT_ERROR"


class UnknownMovementTypeError(MovementError):
    """Movement type value is not one of the known types."""

    code: str = "UNKNOWN_MOVEMENT_TYPE"

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Unknown movement type: {value!r}")


class LineIndexError(MovementError):
    """A line operation addressed an index outside the document."""

    code: str = "LINE_INDEX_OUT_OF_RANGE"

    def __init__(self, index: int, line_count: int):
        self.index = index
        self.line_count = line_count
        super().__init__(
            f"Line index {index} out of range (document has {line_count} lines)"
        )


class SubmissionRejectedError(MovementError):
    """
    The persistence collaborator refused the document.

    Raised by submission ports; the editing session converts it into a
    top-level document error and keeps the in-memory document intact.
    """

    code: str = "SUBMISSION_REJECTED"

    def __init__(self, reason: str, status: int | None = None):
        self.reason = reason
        self.status = status
        super().__init__(reason)


# Batch editor exceptions


class BatchEditorError(InventoryKernelError):
    """Base exception for batch-row editor errors."""

    code: str = "BATCH_EDITOR_ERROR"


class RowIndexError(BatchEditorError):
    """A row operation addressed an index outside the row list."""

    code: str = "ROW_INDEX_OUT_OF_RANGE"

    def __init__(self, index: int, row_count: int):
        self.index = index
        self.row_count = row_count
        super().__init__(
            f"Row index {index} out of range (editor has {row_count} rows)"
        )


# Lookup exceptions


class StockLookupError(InventoryKernelError):
    """Base exception for stock/location lookup failures."""

    code: str = "STOCK_LOOKUP_ERROR"


class LocationNotFoundError(StockLookupError):
    """Location with given ID was not found."""

    code: str = "LOCATION_NOT_FOUND"

    def __init__(self, location_id: str):
        self.location_id = location_id
        super().__init__(f"Location not found: {location_id}")


# Session exceptions


class SessionError(InventoryKernelError):
    """Base exception for editing-session lifecycle errors."""

    code: str = "SESSION_ERROR"


class SessionDisposedError(SessionError):
    """An editor was used after it was disposed."""

    code: str = "SESSION_DISPOSED"

    def __init__(self, component: str):
        self.component = component
        super().__init__(f"{component} has been disposed")


# Configuration exceptions


class ConfigurationError(InventoryKernelError):
    """Base exception for configuration errors."""

    code: str = "CONFIGURATION_ERROR"


class InvalidPolicyConfigError(ConfigurationError):
    """Movement policy configuration failed validation."""

    code: str = "INVALID_POLICY_CONFIG"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid movement policy field {field!r}: {reason}")
