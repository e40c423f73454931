"""Connection and mapper configuration.

Both are Pydantic models for type-safe configuration.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, field_validator

from row_scan.core.enums import DatabaseBackend


class ConnectionConfig(BaseModel):
    """Configuration for database connections."""

    driver: str
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str
    unsafe: bool = False
    extra: dict[str, Any] = {}

    @field_validator("driver")
    @classmethod
    def _known_driver(cls, value: str) -> str:
        value = value.lower()
        DatabaseBackend(value)
        return value

    @property
    def backend(self) -> DatabaseBackend:
        return DatabaseBackend(self.driver)


class MapperConfig(BaseModel):
    """Configuration for a field mapper.

    Args:
        tag_name: Metadata key holding explicit column names on fields.
        name_func: Normalizer applied to untagged attribute names.
    """

    tag_name: str = "db"
    name_func: Callable[[str], str] = str.lower
