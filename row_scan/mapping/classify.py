"""Scannability classification.

A type is scalar-like, and receives a whole column value, when:
1. it implements ``Scanner``,
2. it is not a composite, or
3. it is a composite with no mapped fields.
Otherwise it is a composite whose fields are mapped from columns.
Capability is checked first so composites with custom decoding are never
field-mapped.
"""

from __future__ import annotations

from row_scan.core.enums import DestinationShape
from row_scan.core.exceptions import StructOnlyViolation
from row_scan.mapping.naming import default_mapper
from row_scan.mapping.structure import Mapper, StructMap


def is_scalar_like(cls: type, mapper: Mapper | None = None) -> bool:
    """Classify ``cls`` as scalar-like (True) or field-mapped composite (False)."""
    return (mapper or default_mapper()).is_scalar_like(cls)


def destination_shape(struct_map: StructMap, *, sequence: bool) -> DestinationShape:
    """Shape of a destination holding ``struct_map.type`` elements."""
    if sequence:
        if struct_map.scalar_like:
            return DestinationShape.SEQUENCE_OF_SCALARS
        return DestinationShape.SEQUENCE_OF_STRUCTS
    if struct_map.scalar_like:
        return DestinationShape.SINGLE_SCALAR
    return DestinationShape.SINGLE_STRUCT


def struct_only_error(struct_map: StructMap) -> StructOnlyViolation:
    """Error for a scalar-like type given where a composite is required."""
    name = struct_map.type.__qualname__
    if not struct_map.composite and not struct_map.scanner:
        reason = f"expected a struct but got {name}"
    elif struct_map.scanner:
        reason = f"struct scan expects a struct dest but the provided type {name} implements scan()"
    else:
        reason = f"expected a struct, but struct {name} has no mapped fields"
    return StructOnlyViolation(name, reason)
