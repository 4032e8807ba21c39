import logging
from typing import Any, Callable, Dict, Iterable, List, Sequence, Tuple

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection

from sqlbridge.core.errors import (
    QUERY_FAILURES,
    ConversionError,
    QueryError,
    describe_error,
)
from sqlbridge.core.schemas import (
    CellValue,
    DynamicResultSet,
    DynamicRow,
    ValueCategory,
)

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# DYNAMIC RESULT MARSHALER
# Purpose: run arbitrary SQL and hand back rows as plain dicts.
# Each column's reported type picks one ValueCategory; anything outside the
# supported categories is kept as text only when its type converts to text
# losslessly, and becomes null otherwise, so an exotic type never fails a
# whole query.
# -----------------------------------------------------------------------------

# pg_type.typname values per category
INTEGER_TYPES = frozenset({"int2", "int4", "int8"})
TEXT_TYPES = frozenset({"text", "varchar", "bpchar", "name", "citext"})
BOOLEAN_TYPES = frozenset({"bool"})

# Types outside the categories whose values are still plain text
TEXT_COMPATIBLE_TYPES = frozenset({"unknown", "ltree", "lquery", "ltxtquery"})

TYPE_NAMES_SQL = text(
    "SELECT oid, typname FROM pg_catalog.pg_type WHERE oid = ANY(:oids)"
)

# (column name, category, type name) in declared column order
ColumnLayout = List[Tuple[str, ValueCategory, str]]


def categorize(type_name: str) -> ValueCategory:
    """Map a database type name to the category that converts its values."""
    if type_name in INTEGER_TYPES:
        return ValueCategory.INTEGER
    if type_name in TEXT_TYPES:
        return ValueCategory.TEXT
    if type_name in BOOLEAN_TYPES:
        return ValueCategory.BOOLEAN
    return ValueCategory.OTHER


def _as_text(type_name: str, value: Any) -> str:
    # Decided by the reported type: enum, money, json etc. stay unrepresentable
    # even though the driver hands them over as str
    if type_name in TEXT_COMPATIBLE_TYPES and isinstance(value, str):
        return value
    raise ConversionError(f"{type_name or 'unknown type'} has no text representation")


def _fallback(type_name: str, value: Any) -> CellValue:
    try:
        return _as_text(type_name, value)
    except ConversionError as error:
        logger.debug(f"Cell converted to null: {error}")
        return None


_CONVERTERS: Dict[ValueCategory, Callable[[Any], CellValue]] = {
    ValueCategory.INTEGER: int,
    ValueCategory.TEXT: str,
    ValueCategory.BOOLEAN: bool,
}


def convert_value(category: ValueCategory, value: Any, type_name: str = "") -> CellValue:
    """
    Convert a decoded cell into its generic value.

    Args:
        category: Category of the column the cell belongs to.
        value: Value as decoded by the driver.
        type_name: pg_type name of the column, used by the OTHER fallback.

    Returns:
        int, str, bool or None. SQL NULL is always None.
    """
    if value is None:
        return None
    if category is ValueCategory.OTHER:
        return _fallback(type_name, value)
    return _CONVERTERS[category](value)


def marshal_rows(layout: ColumnLayout, rows: Iterable[Sequence[Any]]) -> DynamicResultSet:
    """Build one ordered dict per row following the column layout."""
    result: DynamicResultSet = []
    for row in rows:
        record: DynamicRow = {}
        for (name, category, type_name), value in zip(layout, row):
            record[name] = convert_value(category, value, type_name)
        result.append(record)
    return result


async def resolve_type_names(
    conn: AsyncConnection, type_oids: Iterable[int]
) -> Dict[int, str]:
    """Look up pg_type names for the type OIDs reported by a result set."""
    oids = sorted(set(type_oids))
    if not oids:
        return {}

    try:
        result = await conn.execute(TYPE_NAMES_SQL, {"oids": oids})
    except QUERY_FAILURES as error:
        raise QueryError(describe_error(error)) from error
    return {row.oid: row.typname for row in result}


async def run_query(conn: AsyncConnection, sql: str) -> DynamicResultSet:
    """
    Execute caller SQL verbatim and marshal every returned row.

    Statements that return no rows (DDL, plain DML) give an empty list.

    Example:
        rows = await run_query(conn, "SELECT 1 AS n, 'x' AS s, true AS b")
        # [{"n": 1, "s": "x", "b": True}]
    """
    try:
        result = await conn.exec_driver_sql(sql)
        if not result.returns_rows:
            return []

        # description entries are (name, type oid, ...) in declared order
        description = result.cursor.description
        rows = result.all()
    except QUERY_FAILURES as error:
        raise QueryError(describe_error(error)) from error

    type_names = await resolve_type_names(conn, [column[1] for column in description])
    layout: ColumnLayout = []
    for column in description:
        type_name = type_names.get(column[1], "")
        layout.append((column[0], categorize(type_name), type_name))

    logger.debug(f"Query returned {len(rows)} rows over {len(layout)} columns")
    return marshal_rows(layout, rows)
