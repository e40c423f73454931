"""Database handle.

``DB`` wraps a DB-API connection, runs queries and scans their cursors into
typed destinations. Writes outside a transaction are committed immediately.
"""

from __future__ import annotations

import importlib
import logging
import weakref
from typing import Any

from row_scan.core.config import ConnectionConfig
from row_scan.core.enums import DatabaseBackend
from row_scan.core.exceptions import AdapterError, ConnectionError, RowScanError  # noqa: A004
from row_scan.core.executor import Executor
from row_scan.core.transaction import Tx
from row_scan.mapping.naming import default_mapper
from row_scan.mapping.structure import Mapper

logger = logging.getLogger(__name__)


def _load_driver(backend: DatabaseBackend) -> Any:
    """Import the DB-API module for a backend."""
    try:
        return importlib.import_module(backend.module_name)
    except ImportError as e:
        raise AdapterError(
            f"Failed to load driver '{backend.module_name}' for '{backend.value}': {e}"
        ) from e


def _connect(module: Any, config: ConnectionConfig) -> Any:
    """Open a DB-API connection using the module's keyword conventions."""
    backend = config.backend
    if backend is DatabaseBackend.SQLITE:
        return module.connect(config.database, **config.extra)

    kwargs: dict[str, Any] = {
        "host": config.host,
        "port": config.port,
        "user": config.user,
        "password": config.password,
    }
    if backend is DatabaseBackend.POSTGRESQL:
        kwargs["dbname"] = config.database
    else:
        kwargs["database"] = config.database
    kwargs = {key: value for key, value in kwargs.items() if value is not None}
    kwargs.update(config.extra)
    return module.connect(**kwargs)


class DB(Executor):
    """Database handle over a DB-API connection.

    Args:
        connection: An open DB-API 2.0 connection.
        mapper: Structure cache for scanning. Defaults to the process-wide one.
        unsafe: Ignore result columns that have no destination field.
        backend: Backend the connection belongs to.
    """

    def __init__(
        self,
        connection: Any,
        *,
        mapper: Mapper | None = None,
        unsafe: bool = False,
        backend: DatabaseBackend = DatabaseBackend.SQLITE,
    ) -> None:
        super().__init__(connection, mapper=mapper or default_mapper(), unsafe=unsafe)
        self.backend = backend
        self._transactions: weakref.WeakSet[Tx] = weakref.WeakSet()

    @classmethod
    def open(cls, config: ConnectionConfig, *, mapper: Mapper | None = None) -> DB:
        """Connect using ``config`` and verify the connection.

        Raises:
            AdapterError: If the driver module cannot be imported.
            ConnectionError: If connecting or the initial ping fails.
        """
        module = _load_driver(config.backend)
        try:
            connection = _connect(module, config)
        except Exception as e:
            raise ConnectionError(f"Cannot connect to {config.driver} database: {e}") from e

        db = cls(connection, mapper=mapper, unsafe=config.unsafe, backend=config.backend)
        try:
            db.ping()
        except ConnectionError:
            db.close()
            raise
        logger.debug("Opened %s database %s", config.driver, config.database)
        return db

    @property
    def connection(self) -> Any:
        return self._connection

    def ping(self) -> None:
        """Verify the connection is alive."""
        try:
            self._cursor("SELECT 1").close()
        except RowScanError as e:
            raise ConnectionError(f"Ping failed: {e}") from e

    def begin(self) -> Tx:
        """Start a transaction sharing this connection and its settings.

        Writes made through this DB while the transaction is active are not
        auto-committed; they join the transaction and share its outcome.
        """
        tx = Tx(self._connection, mapper=self.mapper, unsafe=self.unsafe)
        self._transactions.add(tx)
        return tx

    def as_unsafe(self) -> DB:
        """Copy of this DB that silently ignores unmapped result columns.

        Statements and transactions created from it inherit the setting.
        """
        db = DB(self._connection, mapper=self.mapper, unsafe=True, backend=self.backend)
        db._transactions = self._transactions
        return db

    def close(self) -> None:
        """Close the underlying connection."""
        self._connection.close()

    def _after_write(self) -> None:
        if any(tx.state == "active" for tx in self._transactions):
            return
        self._connection.commit()

    def __enter__(self) -> DB:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
