"""Prepared statement wrapper.

DB-API drivers prepare and cache statements themselves; a ``Stmt`` keeps the
SQL text together with the executor it runs on and inherits its
strict/lenient mode and mapper.
"""

from __future__ import annotations

from collections.abc import MutableSequence
from typing import TYPE_CHECKING, Any, TypeVar

from row_scan.core.exceptions import ExecutionError

if TYPE_CHECKING:
    from row_scan.core.executor import Executor, Params, Result
    from row_scan.core.rows import Row, Rows

T = TypeVar("T")


class Stmt:
    """SQL statement bound to a DB or Tx."""

    def __init__(self, executor: Executor, sql: str) -> None:
        self._executor = executor
        self.sql = sql
        self._closed = False

    @property
    def unsafe(self) -> bool:
        return self._executor.unsafe

    @property
    def executor(self) -> Executor:
        return self._executor

    def _check_open(self) -> None:
        if self._closed:
            raise ExecutionError("statement is closed")

    def execute(self, params: Params = None) -> Result:
        self._check_open()
        return self._executor.execute(self.sql, params)

    def query(self, params: Params = None) -> Rows:
        self._check_open()
        return self._executor.query(self.sql, params)

    def query_row(self, params: Params = None) -> Row:
        self._check_open()
        return self._executor.query_row(self.sql, params)

    def select(
        self, dest: MutableSequence[Any], elem_type: type[T], params: Params = None
    ) -> MutableSequence[Any]:
        self._check_open()
        return self._executor.select(dest, elem_type, self.sql, params)

    def get(self, dest: Any, params: Params = None) -> Any:
        self._check_open()
        return self._executor.get(dest, self.sql, params)

    def close(self) -> None:
        self._closed = True

    def __enter__(self) -> Stmt:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
