"""Mapping layer - scan cursor rows into typed objects."""

from __future__ import annotations

from row_scan.mapping.classify import destination_shape, is_scalar_like
from row_scan.mapping.fields import column
from row_scan.mapping.naming import default_mapper, set_name_mapper
from row_scan.mapping.scan import Ref, scan_all, scan_one
from row_scan.mapping.structure import FieldInfo, Mapper, StructMap

__all__ = [
    "Mapper",
    "StructMap",
    "FieldInfo",
    "column",
    "default_mapper",
    "set_name_mapper",
    "is_scalar_like",
    "destination_shape",
    "Ref",
    "scan_all",
    "scan_one",
]
