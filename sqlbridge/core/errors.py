import asyncio

import asyncpg
from sqlalchemy.exc import DBAPIError, SQLAlchemyError


# =========================
# Error taxonomy
# =========================
class BridgeError(Exception):
    """Base class for every failure raised inside sqlbridge."""


class DatabaseConnectionError(BridgeError):
    """Transport or authentication failure while opening a connection."""


class QueryError(BridgeError):
    """The database rejected or failed to execute a statement."""


class ConversionError(BridgeError):
    """A cell value has no text representation (never leaves the marshaler)."""


class CommandError(BridgeError):
    """
    The only error raised by the command surface.
    Its single payload is the human-readable message: str(error).
    """


# Everything the driver stack may raise once a connection is open
QUERY_FAILURES = (
    SQLAlchemyError,
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    OSError,
)

# Opening a connection can also fail on a malformed URL (e.g. a bad port),
# on a driver that is not installed or on a connect timeout, which is not an
# OSError before Python 3.11
CONNECT_FAILURES = QUERY_FAILURES + (ValueError, ImportError, asyncio.TimeoutError)


def describe_error(error: BaseException) -> str:
    """
    Return the most specific message available for a driver failure.

    SQLAlchemy wraps driver exceptions in DBAPIError, whose str() appends the
    SQL and a documentation link. The database's own message lives on the
    wrapped exception (or on its cause for adapted async drivers).
    """
    if isinstance(error, DBAPIError) and error.orig is not None:
        inner = error.orig.__cause__ or error.orig
        message = str(inner)
    else:
        message = str(error)

    return message or error.__class__.__name__
