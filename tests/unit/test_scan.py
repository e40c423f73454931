"""Unit tests for the scan engine."""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Any, NamedTuple, TypedDict

import pytest
from pydantic import BaseModel, Field

from row_scan.core.exceptions import (
    CursorError,
    DecodeError,
    InvalidDestinationError,
    MissingFieldError,
    NoRowsError,
    ShapeMismatchError,
    StructOnlyViolation,
)
from row_scan.mapping.fields import column
from row_scan.mapping.scan import Ref, scan_all, scan_one
from row_scan.mapping.structure import Mapper


@dataclass
class User:
    ID: int = column("id")
    Name: str = column("name")


@dataclass
class Contact:
    a: int
    b: str
    c: float


@dataclass(frozen=True)
class Audit:
    created_by: str
    updated_by: str | None = None


@dataclass
class Document:
    id: int
    audit: Audit = column(embed=True)
    title: str = ""


@dataclass
class Address:
    street: str
    city: str


@dataclass
class Customer:
    id: int
    address: Address | None = None


class Money:
    def __init__(self) -> None:
        self.cents = 0

    def scan(self, value: Any) -> None:
        self.cents = int(round(float(value) * 100))


@dataclass
class Invoice:
    id: int
    total: Money | None = None


class Product(BaseModel):
    sku: str = Field(json_schema_extra={"db": "product_sku"})
    price: float = 0.0


class Badge:
    code: str
    level: int


@dataclass
class Memo:
    id: int
    audit: Audit = column(embed=True, default=Audit(created_by="system"))


@dataclass(frozen=True)
class Place:
    street: str
    city: str


@dataclass
class Note:
    id: int
    place: Place = column(default=Place(street="Main St", city="Oslo"))


class Point(NamedTuple):
    x: int
    y: int


class Record(TypedDict):
    id: int


@dataclass
class Marker:
    pass


class TestScanAllStructs:
    def test_example_rows(self, make_cursor) -> None:
        cursor = make_cursor(["name", "id"], [("alice", 1), ("bob", 2)])
        users = scan_all(cursor, [], User)
        assert users == [User(ID=1, Name="alice"), User(ID=2, Name="bob")]

    @pytest.mark.parametrize("columns", list(itertools.permutations(["a", "b", "c"])))
    def test_column_order_does_not_matter(self, make_cursor, columns: tuple[str, ...]) -> None:
        values = {"a": 1, "b": "two", "c": 3.0}
        other = {"a": 4, "b": "five", "c": 6.0}
        cursor = make_cursor(
            columns, [tuple(values[c] for c in columns), tuple(other[c] for c in columns)]
        )
        assert scan_all(cursor, [], Contact) == [Contact(**values), Contact(**other)]

    def test_empty_cursor_leaves_destination_empty(self, make_cursor) -> None:
        dest: list[User] = []
        assert scan_all(make_cursor(["id", "name"], []), dest, User) is dest
        assert dest == []

    def test_appends_to_existing_items(self, make_cursor) -> None:
        dest = [User(ID=0, Name="root")]
        scan_all(make_cursor(["id", "name"], [(1, "alice")]), dest, User)
        assert [user.ID for user in dest] == [0, 1]

    def test_strict_missing_field_fails_before_reading(self, make_cursor) -> None:
        cursor = make_cursor(["id", "name", "extra"], [(1, "alice", "x")])
        dest: list[User] = []
        with pytest.raises(MissingFieldError, match="extra") as info:
            scan_all(cursor, dest, User)
        assert info.value.column == "extra"
        assert dest == []
        assert cursor.rows_read == 0

    def test_lenient_discards_unmatched_columns(self, make_cursor) -> None:
        cursor = make_cursor(
            ["id", "extra", "name"], [(1, "x", "alice"), (2, "y", "bob")], unsafe=True
        )
        assert scan_all(cursor, [], User) == [User(ID=1, Name="alice"), User(ID=2, Name="bob")]

    def test_embedded_fields(self, make_cursor) -> None:
        cursor = make_cursor(["id", "created_by", "title"], [(1, "ada", "Notes")])
        (document,) = scan_all(cursor, [], Document)
        assert document.audit == Audit(created_by="ada")
        assert document.title == "Notes"

    def test_nested_fields_allocate_parent(self, make_cursor) -> None:
        cursor = make_cursor(["id", "address.city"], [(1, "Paris"), (2, "Rome")])
        customers = scan_all(cursor, [], Customer)
        assert customers[0].address == Address(street=None, city="Paris")  # type: ignore[arg-type]
        assert customers[1].address is not customers[0].address

    def test_embedded_default_is_not_shared(self, make_cursor) -> None:
        cursor = make_cursor(["id", "created_by"], [(1, "ada"), (2, "bob")])
        memos = scan_all(cursor, [], Memo)
        assert [memo.audit.created_by for memo in memos] == ["ada", "bob"]
        assert memos[0].audit is not memos[1].audit
        assert Memo.__dataclass_fields__["audit"].default == Audit(created_by="system")

    def test_nested_default_is_copied_per_row(self, make_cursor) -> None:
        cursor = make_cursor(["id", "place.city"], [(1, "Paris"), (2, "Rome")])
        notes = scan_all(cursor, [], Note)
        assert [note.place for note in notes] == [
            Place(street="Main St", city="Paris"),
            Place(street="Main St", city="Rome"),
        ]
        assert Note(id=0).place.city == "Oslo"

    def test_unset_fields_keep_defaults(self, make_cursor) -> None:
        (document,) = scan_all(make_cursor(["id", "created_by"], [(1, "ada")]), [], Document)
        assert document.title == ""

    def test_scanner_field(self, make_cursor) -> None:
        (invoice,) = scan_all(make_cursor(["id", "total"], [(1, "12.34")]), [], Invoice)
        assert isinstance(invoice.total, Money)
        assert invoice.total.cents == 1234

    def test_pydantic_model(self, make_cursor) -> None:
        cursor = make_cursor(["product_sku", "price"], [("A1", 9.5)])
        (product,) = scan_all(cursor, [], Product)
        assert isinstance(product, Product)
        assert product.sku == "A1"
        assert product.price == 9.5

    def test_plain_class(self, make_cursor) -> None:
        (badge,) = scan_all(make_cursor(["level", "code"], [(3, "gold")]), [], Badge)
        assert (badge.code, badge.level) == ("gold", 3)

    def test_explicit_mapper(self, make_cursor) -> None:
        mapper = Mapper(name_func=str.upper)
        (badge,) = scan_all(make_cursor(["CODE", "LEVEL"], [("x", 1)]), [], Badge, mapper=mapper)
        assert badge.code == "x"

    def test_decode_error_keeps_earlier_rows(self, make_cursor) -> None:
        cursor = make_cursor(["id", "name"], [(1, "a"), (2, "b"), (3, "c")], fail_on_row=1)
        dest: list[User] = []
        with pytest.raises(DecodeError):
            scan_all(cursor, dest, User)
        assert dest == [User(ID=1, Name="a")]
        assert cursor.rows_read == 2

    def test_final_error_is_raised_after_rows(self, make_cursor) -> None:
        cursor = make_cursor(
            ["id", "name"], [(1, "a")], final_error=RuntimeError("connection reset")
        )
        dest: list[User] = []
        with pytest.raises(CursorError, match="connection reset"):
            scan_all(cursor, dest, User)
        assert len(dest) == 1

    def test_columns_error(self, make_cursor) -> None:
        cursor = make_cursor(["id"], [], columns_error=RuntimeError("closed"))
        with pytest.raises(CursorError, match="closed"):
            scan_all(cursor, [], User)


class TestScanAllScalars:
    def test_one_value_per_row(self, make_cursor) -> None:
        assert scan_all(make_cursor(["id"], [(3,), (1,), (2,)]), [], int) == [3, 1, 2]

    def test_two_columns_is_shape_mismatch(self, make_cursor) -> None:
        with pytest.raises(ShapeMismatchError) as info:
            scan_all(make_cursor(["id", "name"], [(1, "a")]), [], int)
        assert info.value.column_count == 2

    def test_scanner_elements(self, make_cursor) -> None:
        amounts = scan_all(make_cursor(["total"], [("1.50",), ("2",)]), [], Money)
        assert [amount.cents for amount in amounts] == [150, 200]

    def test_named_tuple_is_scalar_like(self, make_cursor) -> None:
        with pytest.raises(ShapeMismatchError):
            scan_all(make_cursor(["x", "y"], [(1, 2)]), [], Point)
        assert scan_all(make_cursor(["point"], [((1, 2),)]), [], Point) == [(1, 2)]

    def test_typed_dict_is_scalar_like(self, make_cursor) -> None:
        with pytest.raises(ShapeMismatchError):
            scan_all(make_cursor(["id", "name"], [(1, "a")]), [], Record)

    def test_fieldless_composite_gets_raw_value(self, make_cursor) -> None:
        assert scan_all(make_cursor(["flag"], [("on",)]), [], Marker) == ["on"]

    def test_struct_only_rejects_scalars(self, make_cursor) -> None:
        cursor = make_cursor(["id"], [(1,)])
        with pytest.raises(StructOnlyViolation, match="expected a struct but got int"):
            scan_all(cursor, [], int, struct_only=True)
        assert cursor.rows_read == 0

    def test_struct_only_rejects_scanner(self, make_cursor) -> None:
        with pytest.raises(StructOnlyViolation, match="implements scan"):
            scan_all(make_cursor(["total"], []), [], Money, struct_only=True)

    def test_struct_only_accepts_composites(self, make_cursor) -> None:
        users = scan_all(make_cursor(["id", "name"], [(1, "a")]), [], User, struct_only=True)
        assert len(users) == 1


class TestScanAllDestinations:
    @pytest.mark.parametrize("dest", [None, (), "abc", {}, frozenset()])
    def test_invalid_destination(self, make_cursor, dest: Any) -> None:
        with pytest.raises(InvalidDestinationError):
            scan_all(make_cursor(["id"], [(1,)]), dest, int)

    def test_element_type_must_be_class(self, make_cursor) -> None:
        with pytest.raises(InvalidDestinationError):
            scan_all(make_cursor(["id"], [(1,)]), [], "int")  # type: ignore[arg-type]


class TestScanOne:
    def test_class_destination_returns_instance(self, make_cursor) -> None:
        user = scan_one(make_cursor(["id", "name"], [(1, "alice")]), User)
        assert user == User(ID=1, Name="alice")

    def test_no_rows(self, make_cursor) -> None:
        with pytest.raises(NoRowsError):
            scan_one(make_cursor(["id", "name"], []), User)

    def test_cursor_error_wins_over_no_rows(self, make_cursor) -> None:
        cursor = make_cursor(["id", "name"], [], final_error=RuntimeError("timeout"))
        with pytest.raises(CursorError, match="timeout"):
            scan_one(cursor, User)

    def test_fills_instance_in_place_and_reads_one_row(self, make_cursor) -> None:
        user = User(ID=9, Name="old")
        cursor = make_cursor(["name"], [("new",), ("ignored",)])
        assert scan_one(cursor, user) is user
        assert user == User(ID=9, Name="new")
        assert cursor.rows_read == 1

    def test_ref_scalar(self, make_cursor) -> None:
        count: Ref[int] = Ref(int)
        assert scan_one(make_cursor(["count"], [(42,)]), count) == 42
        assert count.value == 42

    def test_ref_composite(self, make_cursor) -> None:
        ref: Ref[User] = Ref(User)
        scan_one(make_cursor(["id", "name"], [(5, "eve")]), ref)
        assert ref.value == User(ID=5, Name="eve")

    def test_scanner_instance_in_place(self, make_cursor) -> None:
        money = Money()
        scan_one(make_cursor(["total"], [("3.10",)]), money)
        assert money.cents == 310

    def test_scalar_with_two_columns(self, make_cursor) -> None:
        with pytest.raises(ShapeMismatchError):
            scan_one(make_cursor(["a", "b"], [(1, 2)]), Ref(int))

    def test_strict_missing_field(self, make_cursor) -> None:
        with pytest.raises(MissingFieldError):
            scan_one(make_cursor(["id", "nickname"], [(1, "x")]), User)

    def test_struct_only(self, make_cursor) -> None:
        with pytest.raises(StructOnlyViolation):
            scan_one(make_cursor(["count"], [(1,)]), Ref(int), struct_only=True)

    @pytest.mark.parametrize("dest", [None, [], (1,), {"id": 1}, 5, "text"])
    def test_invalid_destination(self, make_cursor, dest: Any) -> None:
        with pytest.raises(InvalidDestinationError):
            scan_one(make_cursor(["id"], [(1,)]), dest)
