"""Shared test fixtures."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator, Sequence
from typing import Any

import pytest

from row_scan.core.cursor import Slot
from row_scan.core.db import DB
from row_scan.core.exceptions import DecodeError
from row_scan.mapping import naming
from row_scan.mapping.structure import Mapper


class FakeCursor:
    """In-memory cursor with scripted rows and failures."""

    def __init__(
        self,
        columns: Sequence[str],
        rows: Sequence[Sequence[Any]] = (),
        *,
        unsafe: bool = False,
        fail_on_row: int | None = None,
        final_error: BaseException | None = None,
        columns_error: BaseException | None = None,
    ) -> None:
        self._columns = list(columns)
        self._rows = [tuple(row) for row in rows]
        self.unsafe = unsafe
        self._fail_on_row = fail_on_row
        self._final_error = final_error
        self._columns_error = columns_error
        self._position = -1
        self.rows_read = 0
        self.closed = False

    def columns(self) -> list[str]:
        if self._columns_error is not None:
            raise self._columns_error
        return list(self._columns)

    def advance(self) -> bool:
        if self._position + 1 >= len(self._rows):
            return False
        self._position += 1
        self.rows_read += 1
        return True

    def decode_into(self, slots: Sequence[Slot]) -> None:
        if self._fail_on_row == self._position:
            raise DecodeError("unsupported value", self._columns[0])
        for slot, value in zip(slots, self._rows[self._position], strict=True):
            slot.assign(value)

    def final_error(self) -> BaseException | None:
        return self._final_error

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def make_cursor() -> type[FakeCursor]:
    """Factory for scripted cursors.

    Usage:
        cursor = make_cursor(["id", "name"], [(1, "alice")], unsafe=True)
    """
    return FakeCursor


@pytest.fixture
def mapper() -> Mapper:
    """A fresh mapper with an empty structure cache."""
    return Mapper()


@pytest.fixture
def restore_name_mapper() -> Iterator[None]:
    """Put the process-wide name mapper back after the test."""
    saved = naming.name_mapper
    yield
    naming.set_name_mapper(saved)


@pytest.fixture
def db() -> Iterator[DB]:
    """SQLite in-memory database with a populated people table."""
    database = DB(sqlite3.connect(":memory:"), mapper=Mapper())
    database.execute(
        "CREATE TABLE people (id INTEGER PRIMARY KEY, first_name TEXT, last_name TEXT, email TEXT)"
    )
    for first, last, email in [
        ("Ada", "Lovelace", "ada@example.com"),
        ("Alan", "Turing", "alan@example.com"),
        ("Grace", "Hopper", None),
    ]:
        database.execute(
            "INSERT INTO people (first_name, last_name, email) VALUES (:first, :last, :email)",
            {"first": first, "last": last, "email": email},
        )
    yield database
    database.close()
