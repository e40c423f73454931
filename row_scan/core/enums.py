"""Enumerations shared across the package."""

from __future__ import annotations

from enum import Enum


class DatabaseBackend(Enum):
    """Supported database backends and their DB-API driver modules."""

    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"
    MYSQL = "mysql"

    @property
    def module_name(self) -> str:
        return _DRIVER_MODULES[self]


_DRIVER_MODULES = {
    DatabaseBackend.SQLITE: "sqlite3",
    DatabaseBackend.POSTGRESQL: "psycopg",
    DatabaseBackend.MYSQL: "mysql.connector",
}


class DestinationShape(Enum):
    """Structural classification of a scan destination."""

    SINGLE_STRUCT = "single_struct"
    SINGLE_SCALAR = "single_scalar"
    SEQUENCE_OF_STRUCTS = "sequence_of_structs"
    SEQUENCE_OF_SCALARS = "sequence_of_scalars"

    @property
    def is_sequence(self) -> bool:
        return self in (DestinationShape.SEQUENCE_OF_STRUCTS, DestinationShape.SEQUENCE_OF_SCALARS)
