"""Scan engine - drain a cursor into typed destinations.

``scan_all`` fills a growable sequence, ``scan_one`` a single object. Both
consult the mapper for the destination type's structure, so the per-row work
is binding precompiled accessors and delegating value decoding to the
cursor.

A failure part-way through ``scan_all`` leaves the rows already appended in
the destination; nothing is rolled back.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, MutableSequence, Sequence
from collections.abc import Set as AbstractSet
from typing import Any, Generic, TypeVar

from row_scan.core.cursor import Cursor, Slot
from row_scan.core.enums import DestinationShape
from row_scan.core.exceptions import (
    CursorError,
    DecodeError,
    InvalidDestinationError,
    MissingFieldError,
    NoRowsError,
    ShapeMismatchError,
)
from row_scan.mapping.classify import destination_shape, struct_only_error
from row_scan.mapping.naming import default_mapper
from row_scan.mapping.structure import FieldAccessor, Mapper, StructMap

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Ref(Generic[T]):
    """Holder for a single scanned value.

    Scalars cannot be filled in place, so ``scan_one`` stores into
    ``ref.value`` instead:

        count = Ref(int)
        scan_one(cursor, count)
    """

    __slots__ = ("type", "value")

    def __init__(self, type_: type[T], value: T | None = None) -> None:
        self.type = type_
        self.value = value

    def __repr__(self) -> str:
        return f"Ref({self.type.__qualname__}, {self.value!r})"


class ValueSlot:
    """Slot holding one whole-column value, decoded through a Scanner if given."""

    __slots__ = ("value", "_scan_factory")

    def __init__(self, scan_factory: Any = None) -> None:
        self.value: Any = None
        self._scan_factory = scan_factory

    def assign(self, value: Any) -> None:
        if self._scan_factory is not None:
            holder = self._scan_factory()
            holder.scan(value)
            value = holder
        self.value = value


class DiscardSlot:
    """Slot for columns without a destination field."""

    __slots__ = ()

    def assign(self, value: Any) -> None:
        pass


_DISCARD = DiscardSlot()


def _resolve_mapper(cursor: Any, mapper: Mapper | None) -> Mapper:
    if mapper is not None:
        return mapper
    return getattr(cursor, "mapper", None) or default_mapper()


def _is_unsafe(cursor: Any) -> bool:
    return bool(getattr(cursor, "unsafe", False))


def _columns(cursor: Cursor) -> list[str]:
    try:
        return list(cursor.columns())
    except CursorError:
        raise
    except Exception as e:
        raise CursorError(f"cannot read result columns: {e}") from e


def _advance(cursor: Cursor) -> bool:
    try:
        return cursor.advance()
    except CursorError:
        raise
    except Exception as e:
        raise CursorError(f"cannot advance cursor: {e}") from e


def _decode(cursor: Cursor, buffer: Sequence[Slot]) -> None:
    try:
        cursor.decode_into(buffer)
    except DecodeError:
        raise
    except Exception as e:
        raise DecodeError(str(e)) from e


def _raise_final_error(cursor: Cursor) -> None:
    error = cursor.final_error()
    if error is None:
        return
    if isinstance(error, CursorError):
        raise error
    raise CursorError(str(error)) from error


def _check_scalar_columns(struct_map: StructMap, columns: list[str]) -> None:
    if len(columns) != 1:
        raise ShapeMismatchError(struct_map.type.__qualname__, len(columns))


def _accessors(
    struct_map: StructMap, columns: list[str], cursor: Cursor
) -> list[FieldAccessor | None]:
    """Accessor per column; None where the column is discarded.

    Raises:
        MissingFieldError: In strict mode, for the first unmapped column.
    """
    accessors: list[FieldAccessor | None] = []
    unsafe = _is_unsafe(cursor)
    for column in columns:
        info = struct_map.names.get(column)
        if info is None:
            if not unsafe:
                raise MissingFieldError(column, struct_map.type.__qualname__)
            accessors.append(None)
        else:
            accessors.append(info.accessor)
    return accessors


def _bind(instance: Any, accessors: list[FieldAccessor | None], buffer: list[Slot]) -> None:
    for i, accessor in enumerate(accessors):
        buffer[i] = _DISCARD if accessor is None else accessor.slot(instance)


def scan_all(
    cursor: Cursor,
    dest: MutableSequence[Any],
    elem_type: type[T],
    *,
    struct_only: bool = False,
    mapper: Mapper | None = None,
) -> MutableSequence[Any]:
    """Append one ``elem_type`` value per cursor row to ``dest``.

    Composite element types are filled field by field from matching columns.
    Scalar-like element types require exactly one column. Scanner types get
    a fresh instance per row; for any other scalar-like type, including
    composites without mapped fields, the driver value is appended as is
    and no ``elem_type`` instance is created.

    Args:
        cursor: Source of rows. Not closed here.
        dest: Growable sequence receiving the values.
        elem_type: Class of the elements.
        struct_only: Reject scalar-like element types.
        mapper: Structure cache to use. Defaults to the cursor's mapper,
                then the process-wide one.

    Returns:
        ``dest``.

    Raises:
        InvalidDestinationError: ``dest`` is not a mutable sequence or
            ``elem_type`` is not a class.
        StructOnlyViolation: ``struct_only`` with a scalar-like element type.
        ShapeMismatchError: Scalar-like element type with other than one column.
        MissingFieldError: Strict cursor and a column without a field.
        CursorError: The cursor failed to describe or produce rows.
        DecodeError: A row value could not be stored.
    """
    if dest is None:
        raise InvalidDestinationError("nil destination passed to scan_all")
    if not isinstance(dest, MutableSequence):
        raise InvalidDestinationError(
            f"scan_all destination must be a mutable sequence, not {type(dest).__name__}"
        )
    if not isinstance(elem_type, type):
        raise InvalidDestinationError(f"element type must be a class, not {elem_type!r}")

    struct_map = _resolve_mapper(cursor, mapper).type_map(elem_type)
    shape = destination_shape(struct_map, sequence=True)
    if struct_only and shape is DestinationShape.SEQUENCE_OF_SCALARS:
        raise struct_only_error(struct_map)

    columns = _columns(cursor)
    count = 0

    if shape is DestinationShape.SEQUENCE_OF_STRUCTS:
        accessors = _accessors(struct_map, columns, cursor)
        buffer: list[Slot] = [_DISCARD] * len(columns)
        while _advance(cursor):
            instance = struct_map.allocate()
            _bind(instance, accessors, buffer)
            _decode(cursor, buffer)
            dest.append(instance)
            count += 1
    else:
        _check_scalar_columns(struct_map, columns)
        slot = ValueSlot(struct_map.allocate if struct_map.scanner else None)
        while _advance(cursor):
            _decode(cursor, [slot])
            dest.append(slot.value)
            count += 1

    _raise_final_error(cursor)
    logger.debug("Scanned %d rows into %s", count, struct_map.type.__qualname__)
    return dest


def _single_target(dest: Any, mapper: Mapper) -> tuple[Any, StructMap, Ref[Any] | None]:
    """Split a scan_one destination into (instance, structure, ref)."""
    if dest is None:
        raise InvalidDestinationError("nil destination passed to scan_one")
    if isinstance(dest, Ref):
        if not isinstance(dest.type, type):
            raise InvalidDestinationError(f"Ref type must be a class, not {dest.type!r}")
        return None, mapper.type_map(dest.type), dest
    if isinstance(dest, type):
        return None, mapper.type_map(dest), None
    if isinstance(dest, (str, bytes, Sequence, Mapping, AbstractSet)):
        raise InvalidDestinationError(
            f"scan_one destination must be a single object, not {type(dest).__name__}; "
            "use scan_all for sequences"
        )
    struct_map = mapper.type_map(type(dest))
    if struct_map.scalar_like and not struct_map.scanner:
        raise InvalidDestinationError(
            f"cannot scan into a {type(dest).__name__} value in place; pass a Ref"
        )
    return dest, struct_map, None


def scan_one(
    cursor: Cursor,
    dest: Any,
    *,
    struct_only: bool = False,
    mapper: Mapper | None = None,
) -> Any:
    """Scan the first cursor row into ``dest``.

    ``dest`` may be a composite or Scanner instance (filled in place), a
    ``Ref`` (its ``value`` receives the result), or a class (a new instance
    is returned). Rows after the first are left unread.

    Returns:
        The populated object.

    Raises:
        NoRowsError: The cursor produced no rows.
        InvalidDestinationError, StructOnlyViolation, ShapeMismatchError,
        MissingFieldError, CursorError, DecodeError: As for ``scan_all``.
    """
    mapper = _resolve_mapper(cursor, mapper)
    target, struct_map, ref = _single_target(dest, mapper)
    shape = destination_shape(struct_map, sequence=False)
    if struct_only and shape is DestinationShape.SINGLE_SCALAR:
        raise struct_only_error(struct_map)

    columns = _columns(cursor)
    if shape is DestinationShape.SINGLE_STRUCT:
        accessors = _accessors(struct_map, columns, cursor)
    else:
        _check_scalar_columns(struct_map, columns)

    if not _advance(cursor):
        _raise_final_error(cursor)
        raise NoRowsError()

    if shape is DestinationShape.SINGLE_STRUCT:
        result = target if target is not None else struct_map.allocate()
        buffer: list[Slot] = [_DISCARD] * len(columns)
        _bind(result, accessors, buffer)
        _decode(cursor, buffer)
    elif target is not None:
        slot = ValueSlot(lambda: target)
        _decode(cursor, [slot])
        result = target
    else:
        slot = ValueSlot(struct_map.allocate if struct_map.scanner else None)
        _decode(cursor, [slot])
        result = slot.value

    if ref is not None:
        ref.value = result
    return result
