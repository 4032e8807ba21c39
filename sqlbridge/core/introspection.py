import logging
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection

from sqlbridge.core import schemas
from sqlbridge.core.errors import QUERY_FAILURES, QueryError, describe_error

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# SCHEMA INTROSPECTOR
# Purpose: describe tables and columns from the catalog only.
# Only the public schema is ever inspected.
# -----------------------------------------------------------------------------

DEFAULT_SCHEMA = "public"

# Default expressions of columns the database fills in by itself.
# Heuristic only: generators not starting with one of these are not detected.
AUTO_GENERATED_PREFIXES = ("nextval(", "gen_random_uuid(")


LIST_TABLES_SQL = text(
    """
    SELECT table_name
    FROM information_schema.tables
    WHERE table_schema = :schema
      AND table_type = 'BASE TABLE'
    ORDER BY table_name
    """
)

# One row per column. DISTINCT ON keeps a column that belongs to several
# foreign keys from being listed twice. Foreign keys are read from
# pg_constraint so that keys referencing a bare unique index are found too;
# conkey and confkey are unnested together to pair composite key columns.
DESCRIBE_COLUMNS_SQL = text(
    """
    SELECT DISTINCT ON (c.ordinal_position)
        c.column_name,
        c.data_type,
        c.is_nullable,
        c.column_default,
        c.is_generated,
        c.is_identity,
        pk.column_name IS NOT NULL AS is_primary_key,
        fk.column_name IS NOT NULL AS is_foreign_key,
        fk.foreign_table_name,
        fk.foreign_column_name
    FROM information_schema.columns c
    LEFT JOIN (
        SELECT kcu.column_name
        FROM information_schema.table_constraints tc
        JOIN information_schema.key_column_usage kcu
          ON kcu.constraint_name = tc.constraint_name
         AND kcu.constraint_schema = tc.constraint_schema
         AND kcu.table_name = tc.table_name
        WHERE tc.constraint_type = 'PRIMARY KEY'
          AND tc.table_schema = :schema
          AND tc.table_name = :table_name
    ) pk ON pk.column_name = c.column_name
    LEFT JOIN (
        SELECT
            att.attname AS column_name,
            ref_tbl.relname AS foreign_table_name,
            ref_att.attname AS foreign_column_name
        FROM pg_catalog.pg_constraint con
        JOIN pg_catalog.pg_class tbl ON tbl.oid = con.conrelid
        JOIN pg_catalog.pg_namespace nsp ON nsp.oid = tbl.relnamespace
        CROSS JOIN LATERAL unnest(con.conkey, con.confkey) AS k(attnum, ref_attnum)
        JOIN pg_catalog.pg_attribute att
          ON att.attrelid = con.conrelid
         AND att.attnum = k.attnum
        JOIN pg_catalog.pg_class ref_tbl ON ref_tbl.oid = con.confrelid
        JOIN pg_catalog.pg_attribute ref_att
          ON ref_att.attrelid = con.confrelid
         AND ref_att.attnum = k.ref_attnum
        WHERE con.contype = 'f'
          AND nsp.nspname = :schema
          AND tbl.relname = :table_name
    ) fk ON fk.column_name = c.column_name
    WHERE c.table_schema = :schema
      AND c.table_name = :table_name
    ORDER BY c.ordinal_position, fk.foreign_table_name
    """
)


def is_auto_generated_default(column_default: Optional[str]) -> bool:
    """
    Guess whether a default expression is a value generator.
    Case-sensitive prefix match, so a miss does not prove the opposite.
    """
    if not column_default:
        return False
    return column_default.startswith(AUTO_GENERATED_PREFIXES)


def build_column_descriptor(row: Mapping[str, Any]) -> schemas.ColumnDescriptor:
    """
    Turn one catalog row into a ColumnDescriptor with its derived flags.

    Args:
        row: Mapping with the columns selected by DESCRIBE_COLUMNS_SQL.

    Returns:
        ColumnDescriptor for that column.
    """
    is_foreign_key = bool(row["is_foreign_key"])

    return schemas.ColumnDescriptor(
        name=row["column_name"],
        data_type=row["data_type"],
        is_nullable=row["is_nullable"] == "YES",
        column_default=row["column_default"],
        is_auto_generated=is_auto_generated_default(row["column_default"]),
        is_generated=row["is_generated"] == "ALWAYS",
        is_identity=row["is_identity"] == "YES",
        is_primary_key=bool(row["is_primary_key"]),
        is_foreign_key=is_foreign_key,
        foreign_key_table=row["foreign_table_name"] if is_foreign_key else None,
        foreign_key_column=row["foreign_column_name"] if is_foreign_key else None,
    )


async def _fetch_catalog(
    conn: AsyncConnection, statement, params: Dict[str, Any]
) -> List[Mapping[str, Any]]:
    try:
        result = await conn.execute(statement, params)
    except QUERY_FAILURES as error:
        raise QueryError(describe_error(error)) from error
    return list(result.mappings().all())


async def list_tables(conn: AsyncConnection) -> List[str]:
    """Names of the base tables in the public schema, sorted by name."""
    rows = await _fetch_catalog(conn, LIST_TABLES_SQL, {"schema": DEFAULT_SCHEMA})
    return [row["table_name"] for row in rows]


async def describe_columns(
    conn: AsyncConnection, table_name: str
) -> List[schemas.ColumnDescriptor]:
    """
    Describe every column of a public table in definition order.

    An unknown table simply has no columns: the result is an empty list.

    Example:
        columns = await describe_columns(conn, "orders")
    """
    rows = await _fetch_catalog(
        conn,
        DESCRIBE_COLUMNS_SQL,
        {"schema": DEFAULT_SCHEMA, "table_name": table_name},
    )
    logger.debug(f"Catalog returned {len(rows)} columns for {table_name}")
    return [build_column_descriptor(row) for row in rows]
