"""Unit tests for configuration models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from row_scan.core.config import ConnectionConfig, MapperConfig
from row_scan.core.enums import DatabaseBackend
from row_scan.mapping.structure import Mapper


class TestConnectionConfig:
    def test_defaults(self) -> None:
        config = ConnectionConfig(driver="postgresql", database="app")
        assert config.backend is DatabaseBackend.POSTGRESQL
        assert config.backend.module_name == "psycopg"
        assert not config.unsafe
        assert config.extra == {}

    def test_driver_is_case_insensitive(self) -> None:
        assert ConnectionConfig(driver="MySQL", database="app").driver == "mysql"

    def test_rejects_unknown_driver(self) -> None:
        with pytest.raises(ValidationError):
            ConnectionConfig(driver="oracle", database="app")


class TestMapperConfig:
    def test_defaults(self) -> None:
        config = MapperConfig()
        assert config.tag_name == "db"
        assert config.name_func("CamelCase") == "camelcase"

    def test_builds_mapper(self) -> None:
        mapper = Mapper.from_config(MapperConfig(tag_name="col", name_func=str.upper))
        assert mapper.tag_name == "col"
        assert mapper.name_func("id") == "ID"

    def test_rejects_non_callable(self) -> None:
        with pytest.raises(ValidationError):
            MapperConfig(name_func="lower")  # type: ignore[arg-type]
