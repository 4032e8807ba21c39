from typing import List

from fastapi import APIRouter, HTTPException, status

from sqlbridge.core import commands, schemas
from sqlbridge.core.errors import CommandError

router = APIRouter(prefix="/commands", tags=["Commands"])


def command_failed(error: CommandError) -> HTTPException:
    # The client shows the message verbatim
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))


@router.get("/greet")
async def greet(name: str):
    return {"result": commands.greet(name)}


@router.post("/test_connection")
async def test_connection(payload: schemas.ConnectionRequest):
    """Check that the database accepts a session and report its version."""
    try:
        return {"result": await commands.test_connection(payload.connection_string)}
    except CommandError as error:
        raise command_failed(error)


@router.post("/execute_sql")
async def execute_sql(payload: schemas.ExecuteSqlRequest):
    """Run a SQL script for its side effects."""
    try:
        message = await commands.execute_sql(payload.connection_string, payload.sql)
        return {"result": message}
    except CommandError as error:
        raise command_failed(error)


@router.post("/get_tables", response_model=List[str])
async def get_tables(payload: schemas.ConnectionRequest):
    try:
        return await commands.get_tables(payload.connection_string)
    except CommandError as error:
        raise command_failed(error)


@router.post("/get_columns", response_model=List[schemas.ColumnDescriptor])
async def get_columns(payload: schemas.ColumnsRequest):
    """Column metadata of a public table, in definition order."""
    try:
        return await commands.get_columns(
            payload.connection_string, payload.table_name
        )
    except CommandError as error:
        raise command_failed(error)


@router.post("/execute_query")
async def execute_query(payload: schemas.QueryRequest):
    """
    Run arbitrary SQL and return the rows as JSON objects.
    Column order inside each object follows the query.
    """
    try:
        return await commands.execute_query(payload.connection_string, payload.query)
    except CommandError as error:
        raise command_failed(error)
