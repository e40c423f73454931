"""Transaction wrapper.

A ``Tx`` runs statements on its DB's connection without committing after
each write. Used as a context manager it commits on success and rolls back
on exception.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from row_scan.core.exceptions import TransactionStateError
from row_scan.core.executor import Executor
from row_scan.core.statement import Stmt
from row_scan.mapping.structure import Mapper

logger = logging.getLogger(__name__)


class _TxState(Enum):
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class Tx(Executor):
    """Transaction over a DB-API connection."""

    def __init__(self, connection: Any, *, mapper: Mapper, unsafe: bool = False) -> None:
        super().__init__(connection, mapper=mapper, unsafe=unsafe)
        self._state = _TxState.ACTIVE

    @property
    def state(self) -> str:
        return self._state.value

    def __enter__(self) -> Tx:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        if self._state != _TxState.ACTIVE:
            return
        if exc_type is None:
            self.commit()
            return
        try:
            self.rollback()
        except Exception:
            logger.warning("Rollback failed while handling %s", exc_type.__name__, exc_info=True)

    def commit(self) -> None:
        """Commit the transaction."""
        if self._state != _TxState.ACTIVE:
            raise TransactionStateError(self._state.value, "commit")
        self._connection.commit()
        self._state = _TxState.COMMITTED

    def rollback(self) -> None:
        """Abort the transaction."""
        if self._state != _TxState.ACTIVE:
            raise TransactionStateError(self._state.value, "rollback")
        self._connection.rollback()
        self._state = _TxState.ROLLED_BACK

    def stmt(self, stmt: Stmt) -> Stmt:
        """Return a copy of ``stmt`` that runs inside this transaction."""
        if not isinstance(stmt, Stmt):
            raise TypeError(f"non-statement type {type(stmt).__name__} passed to Tx.stmt")
        self._check_usable()
        return Stmt(self, stmt.sql)

    def _check_usable(self) -> None:
        if self._state != _TxState.ACTIVE:
            raise TransactionStateError(self._state.value, "execute")
