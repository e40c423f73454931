"""RowScan exception hierarchy.

All exceptions are RowScan-specific. Raw driver exceptions are wrapped and
chained, never exposed to callers directly.
"""

from __future__ import annotations


class RowScanError(Exception):
    """Base exception for all RowScan errors."""


# --- Mapping ---


class MappingError(RowScanError):
    """Base for row-to-object mapping errors."""


class InvalidDestinationError(MappingError):
    """Raised when a scan destination has the wrong shape or is missing."""


class ShapeMismatchError(MappingError):
    """Raised when the column count does not fit a scalar destination."""

    def __init__(self, type_name: str, column_count: int) -> None:
        self.type_name = type_name
        self.column_count = column_count
        super().__init__(
            f"non-struct dest type {type_name} needs exactly 1 column, got {column_count}"
        )


class MissingFieldError(MappingError):
    """Raised in strict mode when a result column has no destination field."""

    def __init__(self, column: str, type_name: str) -> None:
        self.column = column
        self.type_name = type_name
        super().__init__(f"missing destination name '{column}' in {type_name}")


class StructOnlyViolation(MappingError):
    """Raised when a composite destination is required but a scalar-like type is given."""

    def __init__(self, type_name: str, reason: str) -> None:
        self.type_name = type_name
        self.reason = reason
        super().__init__(reason)


class NoRowsError(MappingError):
    """Raised when a single-row scan finds an empty result set."""

    def __init__(self) -> None:
        super().__init__("no rows in result set")


# --- Execution ---


class ExecutionError(RowScanError):
    """Base for errors surfaced by the cursor collaborator."""


class QueryError(ExecutionError):
    """Raised when the driver rejects a statement."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Query failed: {detail}")


class CursorError(ExecutionError):
    """Raised when the cursor fails to describe or produce rows."""


class DecodeError(ExecutionError):
    """Raised when a row value cannot be stored into its destination slot."""

    def __init__(self, detail: str, column: str | None = None) -> None:
        self.column = column
        if column is not None:
            detail = f"column '{column}': {detail}"
        super().__init__(f"decode failed: {detail}")


# --- Transaction ---


class TransactionError(RowScanError):
    """Base for transaction errors."""


class TransactionStateError(TransactionError):
    """Raised on invalid transaction state transitions."""

    def __init__(self, current_state: str, attempted_action: str) -> None:
        self.current_state = current_state
        self.attempted_action = attempted_action
        super().__init__(f"Cannot {attempted_action} transaction in state '{current_state}'")


# --- Adapter ---


class AdapterError(RowScanError):
    """Base for driver adapter errors."""


class ConnectionError(AdapterError):  # noqa: A001
    """Raised on connection failures."""
