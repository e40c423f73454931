"""DB-API cursor wrappers.

``Rows`` implements the ``Cursor`` protocol over any PEP 249 cursor and
carries the strict/lenient flag and mapper of whatever produced it.
``Row`` is the single-row variant returned by ``query_row``.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import Any

from row_scan.core.cursor import Slot
from row_scan.core.exceptions import CursorError, DecodeError
from row_scan.mapping.scan import scan_one
from row_scan.mapping.structure import Mapper


def _row_values(row: Any) -> tuple[Any, ...]:
    """Normalize a fetched row to a tuple of values in column order.

    Handles both tuple-like rows and dict-like rows from different drivers.
    """
    if isinstance(row, dict):
        return tuple(row.values())
    return tuple(row)


class Rows:
    """Cursor over a DB-API cursor.

    Driver errors raised while fetching end iteration and are reported by
    ``final_error()``.
    """

    def __init__(
        self,
        cursor: Any,
        *,
        unsafe: bool = False,
        mapper: Mapper | None = None,
    ) -> None:
        self._cursor = cursor
        self.unsafe = unsafe
        self.mapper = mapper
        self._columns: list[str] | None = None
        self._current: tuple[Any, ...] | None = None
        self._error: BaseException | None = None
        self._closed = False

    def columns(self) -> list[str]:
        if self._columns is None:
            description = self._cursor.description
            if description is None:
                raise CursorError("statement returned no result set")
            self._columns = [desc[0] for desc in description]
        return list(self._columns)

    def advance(self) -> bool:
        if self._closed or self._error is not None:
            return False
        try:
            row = self._cursor.fetchone()
        except Exception as e:
            self._error = e
            self._current = None
            return False
        if row is None:
            self._current = None
            return False
        self._current = _row_values(row)
        return True

    def values(self) -> tuple[Any, ...]:
        """Raw values of the current row."""
        if self._current is None:
            raise CursorError("no current row")
        return self._current

    def decode_into(self, slots: Sequence[Slot]) -> None:
        if self._current is None:
            raise DecodeError("decode called without a current row")
        if len(slots) != len(self._current):
            raise DecodeError(
                f"expected {len(self._current)} destination arguments, not {len(slots)}"
            )
        columns = self.columns()
        for column, slot, value in zip(columns, slots, self._current):
            try:
                slot.assign(value)
            except DecodeError:
                raise
            except Exception as e:
                raise DecodeError(str(e), column) from e

    def final_error(self) -> BaseException | None:
        return self._error

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._cursor.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def __iter__(self) -> Iterator[tuple[Any, ...]]:
        while self.advance():
            yield self.values()
        if self._error is not None:
            raise CursorError(str(self._error)) from self._error

    def __enter__(self) -> Rows:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


class Row:
    """Result of a query expected to return at most one row.

    A query error is deferred until ``scan``. Scanning reads the first row,
    discards the rest and closes the cursor.
    """

    def __init__(self, rows: Rows | None, error: BaseException | None = None) -> None:
        self._rows = rows
        self._error = error

    @property
    def error(self) -> BaseException | None:
        return self._error

    @property
    def unsafe(self) -> bool:
        return self._rows.unsafe if self._rows is not None else False

    def scan(self, dest: Any, *, struct_only: bool = False) -> Any:
        """Scan the row into ``dest`` (see ``scan_one``)."""
        if self._error is not None:
            raise self._error
        if self._rows is None:
            raise CursorError("row has no cursor")
        try:
            return scan_one(self._rows, dest, struct_only=struct_only)
        finally:
            self._rows.close()
