"""Type structure cache.

A ``Mapper`` computes, once per type, the map from canonical field name to
the traversal path reaching that field, together with a precompiled
accessor for every field. Row scanning then never inspects types again.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from row_scan.core.config import MapperConfig
from row_scan.core.cursor import is_scanner_type
from row_scan.mapping.fields import IGNORE, declared_fields, is_composite, make_allocator

logger = logging.getLogger(__name__)

Traversal = tuple[int, ...]


class FieldAccessor:
    """Get/set closure over an attribute chain.

    Intermediate composites that are still None are allocated on the way
    down when setting.
    """

    __slots__ = ("attrs", "_allocators", "_scan_factory")

    def __init__(
        self,
        attrs: tuple[str, ...],
        allocators: tuple[Callable[[], Any], ...],
        scan_factory: Callable[[], Any] | None = None,
    ) -> None:
        self.attrs = attrs
        self._allocators = allocators
        self._scan_factory = scan_factory

    def _parent(self, obj: Any) -> Any:
        for attr, allocate in zip(self.attrs[:-1], self._allocators):
            child = getattr(obj, attr, None)
            if child is None:
                child = allocate()
                object.__setattr__(obj, attr, child)
            obj = child
        return obj

    def get(self, obj: Any) -> Any:
        for attr in self.attrs:
            if obj is None:
                return None
            obj = getattr(obj, attr, None)
        return obj

    def set(self, obj: Any, value: Any) -> None:
        if self._scan_factory is not None:
            holder = self._scan_factory()
            holder.scan(value)
            value = holder
        object.__setattr__(self._parent(obj), self.attrs[-1], value)

    def slot(self, obj: Any) -> FieldSlot:
        return FieldSlot(self, obj)


class FieldSlot:
    """Slot writing into one field of one instance."""

    __slots__ = ("_accessor", "_target")

    def __init__(self, accessor: FieldAccessor, target: Any) -> None:
        self._accessor = accessor
        self._target = target

    def assign(self, value: Any) -> None:
        self._accessor.set(self._target, value)


@dataclass(frozen=True)
class FieldInfo:
    """A mapped field and how to reach it."""

    index: Traversal
    name: str
    attr: str
    field_type: type | None
    accessor: FieldAccessor = field(compare=False, repr=False)


@dataclass(frozen=True)
class StructMap:
    """Immutable structure of one type.

    ``fields`` is in traversal order; ``names`` and ``paths`` are the two
    lookup directions. Duplicate canonical names resolve to the first
    declared field.
    """

    type: type
    fields: tuple[FieldInfo, ...]
    names: Mapping[str, FieldInfo]
    paths: Mapping[Traversal, FieldInfo]
    composite: bool
    scanner: bool
    allocate: Callable[[], Any] = field(compare=False, repr=False)

    @property
    def scalar_like(self) -> bool:
        return self.scanner or not self.composite or not self.fields

    def index_of(self, name: str) -> Traversal:
        info = self.names.get(name)
        return info.index if info is not None else ()

    def name_at(self, index: Traversal) -> str | None:
        info = self.paths.get(tuple(index))
        return info.name if info is not None else None


class Mapper:
    """Field mapper with a per-type structure cache.

    Args:
        name_func: Normalizer for untagged attribute names.
        tag_name: Metadata key holding explicit column names.
    """

    def __init__(
        self,
        name_func: Callable[[str], str] = str.lower,
        tag_name: str = "db",
    ) -> None:
        self.name_func = name_func
        self.tag_name = tag_name
        self._cache: dict[type, StructMap] = {}
        self._type_locks: dict[type, threading.Lock] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: MapperConfig) -> Mapper:
        """Create a Mapper from a MapperConfig."""
        return cls(name_func=config.name_func, tag_name=config.tag_name)

    def type_map(self, cls: type) -> StructMap:
        """Return the structure of ``cls``, computing it on first use."""
        cached = self._cache.get(cls)
        if cached is not None:
            return cached

        with self._lock:
            type_lock = self._type_locks.setdefault(cls, threading.Lock())

        with type_lock:
            cached = self._cache.get(cls)
            if cached is None:
                cached = self._build(cls)
                with self._lock:
                    self._cache[cls] = cached
                    self._type_locks.pop(cls, None)
        return cached

    def is_scalar_like(self, cls: type) -> bool:
        return self.type_map(cls).scalar_like

    def traversals_by_name(self, cls: type, names: Iterable[str]) -> list[Traversal]:
        """Traversal path for each name, aligned with ``names``.

        Unknown names yield the empty traversal.
        """
        struct_map = self.type_map(cls)
        return [struct_map.index_of(name) for name in names]

    def field_by_name(self, obj: Any, name: str) -> Any:
        """Read the field of ``obj`` mapped to ``name``.

        Raises:
            KeyError: If no field maps to ``name``.
        """
        info = self.type_map(type(obj)).names.get(name)
        if info is None:
            raise KeyError(name)
        return info.accessor.get(obj)

    def field_map(self, obj: Any) -> dict[str, Any]:
        """All mapped fields of ``obj`` keyed by canonical name."""
        struct_map = self.type_map(type(obj))
        return {name: info.accessor.get(obj) for name, info in struct_map.names.items()}

    def _build(self, cls: type) -> StructMap:
        scanner = is_scanner_type(cls)
        composite = is_composite(cls)
        found: list[FieldInfo] = []
        allocate: Callable[[], Any] = cls
        if composite:
            declared = declared_fields(cls, self.tag_name)
            allocate = make_allocator(cls, declared)
            if not scanner:
                self._walk(cls, (), (), "", (), found, frozenset({cls}))

        names: dict[str, FieldInfo] = {}
        for info in found:
            names.setdefault(info.name, info)

        logger.debug("Built structure map for %s with %d fields", cls.__qualname__, len(found))
        return StructMap(
            type=cls,
            fields=tuple(found),
            names=names,
            paths={info.index: info for info in found},
            composite=composite,
            scanner=scanner,
            allocate=allocate,
        )

    def _walk(
        self,
        cls: type,
        index_prefix: Traversal,
        attr_prefix: tuple[str, ...],
        name_prefix: str,
        allocators: tuple[Callable[[], Any], ...],
        out: list[FieldInfo],
        seen: frozenset[type],
    ) -> None:
        for position, declared in enumerate(declared_fields(cls, self.tag_name)):
            if declared.attr.startswith("_") or declared.tag == IGNORE:
                continue

            index = index_prefix + (position,)
            attrs = attr_prefix + (declared.attr,)
            field_type = declared.field_type
            scanner = is_scanner_type(field_type)
            nested = (
                field_type is not None
                and not scanner
                and field_type not in seen
                and is_composite(field_type)
            )

            if nested and declared.embed:
                self._walk(
                    field_type,
                    index,
                    attrs,
                    name_prefix,
                    allocators + (make_allocator(field_type),),
                    out,
                    seen | {field_type},
                )
                continue

            name = name_prefix + (declared.tag or self.name_func(declared.attr))
            out.append(
                FieldInfo(
                    index=index,
                    name=name,
                    attr=declared.attr,
                    field_type=field_type,
                    accessor=FieldAccessor(
                        attrs,
                        allocators,
                        make_allocator(field_type) if scanner else None,
                    ),
                )
            )

            if nested:
                self._walk(
                    field_type,
                    index,
                    attrs,
                    name + ".",
                    allocators + (make_allocator(field_type),),
                    out,
                    seen | {field_type},
                )
