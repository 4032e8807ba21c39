import logging
from typing import List

from sqlalchemy import text

from sqlbridge.core import introspection, marshal, schemas
from sqlbridge.core.config import settings
from sqlbridge.core.database import acquire, execute_script
from sqlbridge.core.errors import (
    QUERY_FAILURES,
    BridgeError,
    CommandError,
    QueryError,
    describe_error,
)

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# COMMAND SURFACE
# Purpose: the six operations a client can call by name.
# Each call opens its own connection, shares nothing with other calls and
# either returns its full result or raises CommandError with a plain message.
# -----------------------------------------------------------------------------

EXECUTION_SUCCESSFUL = "Execution successful"


def greet(name: str) -> str:
    """Connectivity smoke test; touches no database."""
    return f"Hello, {name}! You've been greeted from Python!"


async def _server_version(conn) -> str:
    try:
        result = await conn.execute(text(settings.HEALTH_CHECK_QUERY))
        return str(result.scalar_one())
    except QUERY_FAILURES as error:
        raise QueryError(describe_error(error)) from error


async def test_connection(connection_string: str) -> str:
    """Connect, ask the server for its version and report it."""
    try:
        async with acquire(connection_string) as conn:
            version = await _server_version(conn)
    except BridgeError as error:
        logger.error(f"Connection test failed: {error}")
        raise CommandError(str(error)) from error

    return f"Connected to: {version}"


async def execute_sql(connection_string: str, sql: str) -> str:
    """Run a SQL script for its side effects; rows are discarded."""
    try:
        async with acquire(connection_string) as conn:
            await execute_script(conn, sql)
    except BridgeError as error:
        logger.error(f"SQL execution failed: {error}")
        raise CommandError(str(error)) from error

    return EXECUTION_SUCCESSFUL


async def get_tables(connection_string: str) -> List[str]:
    """List base tables of the public schema."""
    try:
        async with acquire(connection_string) as conn:
            return await introspection.list_tables(conn)
    except BridgeError as error:
        logger.error(f"Failed to list tables: {error}")
        raise CommandError(str(error)) from error


async def get_columns(
    connection_string: str, table_name: str
) -> List[schemas.ColumnDescriptor]:
    """Describe the columns of one public table."""
    try:
        async with acquire(connection_string) as conn:
            return await introspection.describe_columns(conn, table_name)
    except BridgeError as error:
        logger.error(f"Failed to describe columns of {table_name}: {error}")
        raise CommandError(str(error)) from error


async def execute_query(connection_string: str, query: str) -> schemas.DynamicResultSet:
    """Run a query and return its rows as generic records."""
    try:
        async with acquire(connection_string) as conn:
            return await marshal.run_query(conn, query)
    except BridgeError as error:
        logger.error(f"Query failed: {error}")
        raise CommandError(str(error)) from error
