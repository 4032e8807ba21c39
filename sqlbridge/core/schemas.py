from typing import Optional, List, Dict, Union
from enum import Enum

from pydantic import BaseModel, Field, model_validator


# =========================
# Enums
# =========================
class ValueCategory(str, Enum):
    """Generic value kinds a result-set column is marshaled into."""

    INTEGER = "integer"
    TEXT = "text"
    BOOLEAN = "boolean"
    OTHER = "other"


# =========================
# DYNAMIC RESULTS
# =========================
CellValue = Union[int, str, bool, None]

# Keys keep the result set's declared column order
DynamicRow = Dict[str, CellValue]
DynamicResultSet = List[DynamicRow]


# =========================
# COLUMN METADATA
# =========================
class ColumnDescriptor(BaseModel):
    name: str
    data_type: str
    is_nullable: bool
    column_default: Optional[str] = None
    is_auto_generated: bool = False
    is_generated: bool = False
    is_identity: bool = False
    is_primary_key: bool = False
    is_foreign_key: bool = False
    foreign_key_table: Optional[str] = None
    foreign_key_column: Optional[str] = None

    @model_validator(mode="after")
    def check_foreign_key_target(self):
        has_table = self.foreign_key_table is not None
        has_column = self.foreign_key_column is not None

        if has_table != has_column:
            raise ValueError(
                "foreign_key_table and foreign_key_column must be set together"
            )
        if self.is_foreign_key != has_table:
            raise ValueError("is_foreign_key must match the presence of a target")
        return self


# =========================
# COMMAND REQUESTS
# =========================
class ConnectionRequest(BaseModel):
    connection_string: str = Field(min_length=1)


class ExecuteSqlRequest(ConnectionRequest):
    sql: str


class ColumnsRequest(ConnectionRequest):
    table_name: str


class QueryRequest(ConnectionRequest):
    query: str
