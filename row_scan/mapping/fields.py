"""Declared-field discovery.

Supports dataclasses, Pydantic models, and plain classes with annotated
attributes. Column tags live under a metadata key (``db`` by default):

    @dataclass
    class User:
        id: int = column("user_id")
        secret: str = column(ignore=True)
        audit: Audit = column(embed=True)

Pydantic models carry the same keys in ``json_schema_extra``.
"""

from __future__ import annotations

import copy
import dataclasses
import types
import typing
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel

IGNORE = "-"
EMBED_KEY = "embed"


@dataclass(frozen=True)
class DeclaredField:
    """A field as declared on a composite type, before name normalization."""

    attr: str
    field_type: type | None
    tag: str | None
    embed: bool
    default: Callable[[], Any]


def column(
    name: str | None = None,
    *,
    embed: bool = False,
    ignore: bool = False,
    tag_name: str = "db",
    **kwargs: Any,
) -> Any:
    """Declare a dataclass field with column metadata.

    Args:
        name: Explicit column name, used verbatim instead of the normalized
              attribute name.
        embed: Flatten the fields of a nested composite into the parent.
        ignore: Exclude the field from mapping.
        tag_name: Metadata key the mapper reads tags from.
        **kwargs: Passed through to ``dataclasses.field``.
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    if ignore:
        metadata[tag_name] = IGNORE
    elif name is not None:
        metadata[tag_name] = name
    if embed:
        metadata[EMBED_KEY] = True
    return dataclasses.field(metadata=metadata, **kwargs)


def is_pydantic_model(cls: Any) -> bool:
    """Check if a class is a Pydantic BaseModel."""
    return isinstance(cls, type) and issubclass(cls, BaseModel)


def _plain_annotations(cls: type) -> dict[str, Any]:
    """Annotated instance attributes of a plain class, base classes first."""
    if cls.__module__ == "builtins" or issubclass(cls, (Enum, tuple, dict)):
        return {}
    try:
        hints = typing.get_type_hints(cls)
    except (NameError, TypeError):
        hints = {}
        for klass in reversed(cls.__mro__):
            hints.update(getattr(klass, "__annotations__", {}))
    return {
        name: hint
        for name, hint in hints.items()
        if typing.get_origin(hint) is not typing.ClassVar and hint is not typing.ClassVar
    }


def is_composite(cls: Any) -> bool:
    """Check whether instances of ``cls`` are field-mapped composites."""
    if not isinstance(cls, type):
        return False
    if dataclasses.is_dataclass(cls) or is_pydantic_model(cls):
        return True
    return bool(_plain_annotations(cls))


def unwrap_type(annotation: Any) -> type | None:
    """Reduce an annotation to a concrete class, or None if it has none.

    ``Optional[X]`` and ``Annotated[X, ...]`` reduce to ``X``.
    """
    if isinstance(annotation, type):
        return annotation
    origin = typing.get_origin(annotation)
    if origin is typing.Annotated:
        return unwrap_type(typing.get_args(annotation)[0])
    if origin in (typing.Union, types.UnionType):
        args = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
        return unwrap_type(args[0]) if len(args) == 1 else None
    if isinstance(origin, type):
        return origin
    return None


def _parse_tag(raw: Any) -> str | None:
    if not isinstance(raw, str):
        return None
    name = raw.split(",", 1)[0].strip()
    if raw.strip() == IGNORE:
        return IGNORE
    return name or None


def _constant(value: Any) -> Callable[[], Any]:
    # Composite defaults are written through when nested fields are set.
    if is_composite(type(value)):
        return lambda: copy.deepcopy(value)
    return lambda: value


def _dataclass_fields(cls: type, tag_name: str) -> list[DeclaredField]:
    try:
        hints = typing.get_type_hints(cls)
    except (NameError, TypeError):
        hints = {}
    result = []
    for f in dataclasses.fields(cls):
        if f.default is not dataclasses.MISSING:
            default = _constant(f.default)
        elif f.default_factory is not dataclasses.MISSING:
            default = f.default_factory
        else:
            default = _constant(None)
        result.append(
            DeclaredField(
                attr=f.name,
                field_type=unwrap_type(hints.get(f.name, f.type)),
                tag=_parse_tag(f.metadata.get(tag_name)),
                embed=bool(f.metadata.get(EMBED_KEY, False)),
                default=default,
            )
        )
    return result


def _pydantic_fields(cls: type[BaseModel], tag_name: str) -> list[DeclaredField]:
    result = []
    for name, info in cls.model_fields.items():
        extra = info.json_schema_extra if isinstance(info.json_schema_extra, dict) else {}
        if info.is_required():
            default = _constant(None)
        else:
            default = _pydantic_default(info)
        result.append(
            DeclaredField(
                attr=name,
                field_type=unwrap_type(info.annotation),
                tag=_parse_tag(extra.get(tag_name)),
                embed=bool(extra.get(EMBED_KEY, False)),
                default=default,
            )
        )
    return result


def _pydantic_default(info: Any) -> Callable[[], Any]:
    return lambda: info.get_default(call_default_factory=True)


def _plain_fields(cls: type) -> list[DeclaredField]:
    result = []
    for name, hint in _plain_annotations(cls).items():
        result.append(
            DeclaredField(
                attr=name,
                field_type=unwrap_type(hint),
                tag=None,
                embed=False,
                default=_constant(getattr(cls, name, None)),
            )
        )
    return result


def declared_fields(cls: type, tag_name: str = "db") -> list[DeclaredField]:
    """List the declared fields of a composite type in declaration order.

    Detection order:
    1. Pydantic BaseModel -> model_fields
    2. dataclass -> dataclasses.fields()
    3. Plain class -> annotated attributes
    """
    if is_pydantic_model(cls):
        return _pydantic_fields(cls, tag_name)
    if dataclasses.is_dataclass(cls):
        return _dataclass_fields(cls, tag_name)
    return _plain_fields(cls)


def make_allocator(cls: type, fields: list[DeclaredField] | None = None) -> Callable[[], Any]:
    """Build a factory producing blank instances of ``cls``.

    Composite instances are created without running ``__init__`` and every
    declared field is set to its default (or None when it has none).
    Composite defaults are deep-copied so instances never share them. Other
    types are called with no arguments.
    """
    if not is_composite(cls):
        return cls

    declared = fields if fields is not None else declared_fields(cls)

    if is_pydantic_model(cls):

        def allocate_model() -> Any:
            instance = cls.model_construct()  # type: ignore[attr-defined]
            present = instance.__dict__
            for f in declared:
                if f.attr not in present:
                    object.__setattr__(instance, f.attr, f.default())
            return instance

        return allocate_model

    def allocate() -> Any:
        instance = cls.__new__(cls)
        for f in declared:
            object.__setattr__(instance, f.attr, f.default())
        return instance

    return allocate
