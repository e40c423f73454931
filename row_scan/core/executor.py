"""Shared query execution over a DB-API connection.

``DB`` and ``Tx`` both run statements on a connection and hand the resulting
cursors to the scan engine; this base class holds that common path.
"""

from __future__ import annotations

import logging
from collections.abc import MutableSequence
from dataclasses import dataclass
from typing import Any, TypeVar

from row_scan.core.exceptions import QueryError
from row_scan.core.rows import Row, Rows
from row_scan.core.statement import Stmt
from row_scan.mapping.scan import scan_all
from row_scan.mapping.structure import Mapper

logger = logging.getLogger(__name__)

T = TypeVar("T")

Params = dict[str, Any] | tuple[Any, ...] | list[Any] | None


@dataclass(frozen=True)
class Result:
    """Outcome of a write statement."""

    rows_affected: int
    last_insert_id: Any = None


class Executor:
    """Runs SQL on a connection and wraps cursors for scanning."""

    def __init__(self, connection: Any, *, mapper: Mapper, unsafe: bool = False) -> None:
        self._connection = connection
        self.mapper = mapper
        self.unsafe = unsafe

    def _check_usable(self) -> None:
        """Hook for subclasses that can become unusable."""

    def _after_write(self) -> None:
        """Hook run after a successful write statement."""

    def _cursor(self, sql: str, params: Params = None) -> Any:
        self._check_usable()
        cursor = self._connection.cursor()
        try:
            if params is None:
                cursor.execute(sql)
            else:
                cursor.execute(sql, params)
        except Exception as e:
            cursor.close()
            raise QueryError(str(e)) from e
        return cursor

    def query(self, sql: str, params: Params = None) -> Rows:
        """Execute a query that returns rows. The caller must close the Rows."""
        return Rows(self._cursor(sql, params), unsafe=self.unsafe, mapper=self.mapper)

    def query_row(self, sql: str, params: Params = None) -> Row:
        """Execute a query expected to return at most one row.

        Errors are deferred until ``Row.scan``.
        """
        try:
            rows = self.query(sql, params)
        except QueryError as e:
            return Row(None, e)
        return Row(rows)

    def select(
        self,
        dest: MutableSequence[Any],
        elem_type: type[T],
        sql: str,
        params: Params = None,
    ) -> MutableSequence[Any]:
        """Run a query and append every row to ``dest`` (see ``scan_all``)."""
        with self.query(sql, params) as rows:
            return scan_all(rows, dest, elem_type)

    def get(self, dest: Any, sql: str, params: Params = None) -> Any:
        """Run a query and scan its first row into ``dest`` (see ``scan_one``).

        Raises NoRowsError if the result set is empty.
        """
        return self.query_row(sql, params).scan(dest)

    def execute(self, sql: str, params: Params = None) -> Result:
        """Execute a write statement."""
        cursor = self._cursor(sql, params)
        try:
            result = Result(
                rows_affected=int(cursor.rowcount),
                last_insert_id=getattr(cursor, "lastrowid", None),
            )
        finally:
            cursor.close()
        self._after_write()
        logger.debug("Executed write affecting %d rows", result.rows_affected)
        return result

    def prepare(self, sql: str) -> Stmt:
        """Create a reusable statement bound to this executor."""
        self._check_usable()
        return Stmt(self, sql)
