"""RowScan - map SQL result rows onto typed Python objects."""

from __future__ import annotations

from row_scan.core.config import ConnectionConfig, MapperConfig
from row_scan.core.cursor import Cursor, Scanner, Slot
from row_scan.core.db import DB
from row_scan.core.enums import DatabaseBackend, DestinationShape
from row_scan.core.exceptions import (
    AdapterError,
    ConnectionError,  # noqa: A004
    CursorError,
    DecodeError,
    ExecutionError,
    InvalidDestinationError,
    MappingError,
    MissingFieldError,
    NoRowsError,
    QueryError,
    RowScanError,
    ShapeMismatchError,
    StructOnlyViolation,
    TransactionError,
    TransactionStateError,
)
from row_scan.core.executor import Result
from row_scan.core.rows import Row, Rows
from row_scan.core.statement import Stmt
from row_scan.core.transaction import Tx
from row_scan.mapping import (
    Mapper,
    Ref,
    column,
    default_mapper,
    is_scalar_like,
    scan_all,
    scan_one,
    set_name_mapper,
)

__all__ = [
    # Configuration
    "ConnectionConfig",
    "MapperConfig",
    # Database
    "DB",
    "Tx",
    "Stmt",
    "Result",
    "Rows",
    "Row",
    # Protocols
    "Cursor",
    "Slot",
    "Scanner",
    # Mapping
    "Mapper",
    "Ref",
    "column",
    "default_mapper",
    "set_name_mapper",
    "is_scalar_like",
    "scan_all",
    "scan_one",
    # Enums
    "DatabaseBackend",
    "DestinationShape",
    # Exceptions
    "RowScanError",
    "MappingError",
    "InvalidDestinationError",
    "ShapeMismatchError",
    "MissingFieldError",
    "StructOnlyViolation",
    "NoRowsError",
    "ExecutionError",
    "QueryError",
    "CursorError",
    "DecodeError",
    "TransactionError",
    "TransactionStateError",
    "AdapterError",
    "ConnectionError",
]
