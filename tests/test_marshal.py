from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import ProgrammingError

from sqlbridge.core import marshal
from sqlbridge.core.errors import QueryError
from sqlbridge.core.schemas import ValueCategory

from fakes import FakeConnection, FakeCursorResult

# Built-in type OIDs as reported by PostgreSQL
INT4, INT8, TEXT, VARCHAR, BOOL, NUMERIC, DATE = 23, 20, 25, 1043, 16, 1700, 1082
MONEY, MACADDR, JSON = 790, 829, 114
# User-defined types get OIDs assigned at CREATE TYPE time
MOOD = 16401

TYPE_NAMES = {
    INT4: "int4",
    INT8: "int8",
    TEXT: "text",
    VARCHAR: "varchar",
    BOOL: "bool",
    NUMERIC: "numeric",
    DATE: "date",
    MONEY: "money",
    MACADDR: "macaddr",
    JSON: "json",
    MOOD: "mood",
}


def column(name, oid):
    return (name, oid, None, None, None, None, None)


@pytest.mark.parametrize(
    "type_name, category",
    [
        ("int2", ValueCategory.INTEGER),
        ("int4", ValueCategory.INTEGER),
        ("int8", ValueCategory.INTEGER),
        ("text", ValueCategory.TEXT),
        ("varchar", ValueCategory.TEXT),
        ("bpchar", ValueCategory.TEXT),
        ("citext", ValueCategory.TEXT),
        ("name", ValueCategory.TEXT),
        ("bool", ValueCategory.BOOLEAN),
        ("numeric", ValueCategory.OTHER),
        ("timestamptz", ValueCategory.OTHER),
        ("char", ValueCategory.OTHER),
        ("mood", ValueCategory.OTHER),
        ("", ValueCategory.OTHER),
    ],
)
def test_categorize(type_name, category):
    assert marshal.categorize(type_name) is category


def test_convert_value_keeps_null_in_every_category():
    for category in ValueCategory:
        assert marshal.convert_value(category, None) is None


def test_other_category_falls_back_to_null():
    """Values without a text form become null instead of failing"""
    assert marshal.convert_value(ValueCategory.OTHER, Decimal("1.50")) is None
    assert marshal.convert_value(ValueCategory.OTHER, date(2024, 1, 1)) is None


def test_other_category_keeps_text_compatible_types():
    assert marshal.convert_value(ValueCategory.OTHER, "a.b.c", "ltree") == "a.b.c"
    assert marshal.convert_value(ValueCategory.OTHER, "x", "unknown") == "x"


@pytest.mark.parametrize(
    "type_name, value",
    [
        ("mood", "happy"),
        ("money", "$1.50"),
        ("macaddr", "08:00:2b:01:02:03"),
        ("json", "{}"),
    ],
)
def test_other_category_nulls_str_decoded_values(type_name, value):
    """Decoded as str by the driver is not enough to keep the text"""
    assert marshal.convert_value(ValueCategory.OTHER, value, type_name) is None


def test_marshal_rows_preserves_declared_column_order():
    layout = [
        ("z", ValueCategory.INTEGER, "int4"),
        ("a", ValueCategory.TEXT, "text"),
        ("m", ValueCategory.BOOLEAN, "bool"),
    ]
    rows = marshal.marshal_rows(layout, [(1, "x", True), (2, "y", False)])

    assert [list(row) for row in rows] == [["z", "a", "m"], ["z", "a", "m"]]
    assert rows[1] == {"z": 2, "a": "y", "m": False}


@pytest.mark.asyncio
async def test_run_query_mixed_types():
    """SELECT 1 AS n, 'x' AS s, true AS b yields a single typed row"""
    conn = FakeConnection(
        query=FakeCursorResult(
            description=[column("n", INT4), column("s", TEXT), column("b", BOOL)],
            rows=[(1, "x", True)],
        ),
        type_names=TYPE_NAMES,
    )

    rows = await marshal.run_query(conn, "SELECT 1 AS n, 'x' AS s, true AS b")

    assert rows == [{"n": 1, "s": "x", "b": True}]
    assert conn.executed[0] == ("SELECT 1 AS n, 'x' AS s, true AS b", None)


@pytest.mark.asyncio
async def test_run_query_nulls_unsupported_columns():
    conn = FakeConnection(
        query=FakeCursorResult(
            description=[
                column("id", INT8),
                column("price", NUMERIC),
                column("day", DATE),
            ],
            rows=[(10, Decimal("9.99"), date(2024, 5, 1)), (11, None, None)],
        ),
        type_names=TYPE_NAMES,
    )

    rows = await marshal.run_query(conn, "SELECT id, price, day FROM items")

    assert rows == [
        {"id": 10, "price": None, "day": None},
        {"id": 11, "price": None, "day": None},
    ]


@pytest.mark.asyncio
async def test_run_query_statement_without_rows():
    """DDL returns an empty list, not an error"""
    conn = FakeConnection(query=FakeCursorResult(description=None))

    assert await marshal.run_query(conn, "CREATE TABLE t (id int)") == []
    # No pg_type lookup is needed when nothing comes back
    assert len(conn.executed) == 1


@pytest.mark.asyncio
async def test_run_query_keeps_row_count():
    conn = FakeConnection(
        query=FakeCursorResult(
            description=[column("name", VARCHAR)],
            rows=[("a",), ("b",), ("c",)],
        ),
        type_names=TYPE_NAMES,
    )

    rows = await marshal.run_query(conn, "SELECT name FROM t")

    assert [row["name"] for row in rows] == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_run_query_syntax_error():
    orig = Exception('syntax error at or near "SELEC"')
    conn = FakeConnection(query=ProgrammingError("SELEC 1", None, orig))

    with pytest.raises(QueryError) as error:
        await marshal.run_query(conn, "SELEC 1")

    assert str(error.value) == 'syntax error at or near "SELEC"'


@pytest.mark.asyncio
async def test_run_query_nulls_enum_money_and_macaddr():
    conn = FakeConnection(
        query=FakeCursorResult(
            description=[
                column("e", MOOD),
                column("m", MONEY),
                column("mac", MACADDR),
                column("n", INT4),
            ],
            rows=[("happy", "$1.50", "08:00:2b:01:02:03", 1)],
        ),
        type_names=TYPE_NAMES,
    )

    rows = await marshal.run_query(
        conn,
        "SELECT 'happy'::mood AS e, 1.5::money AS m, "
        "'08:00:2b:01:02:03'::macaddr AS mac, 1 AS n",
    )

    assert rows == [{"e": None, "m": None, "mac": None, "n": 1}]
