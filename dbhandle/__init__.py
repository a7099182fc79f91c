"""Single-connection PostgreSQL handle with transactional convenience queries."""

from .config import ConnectionConfig, config_from_env
from .errors import DatabaseConnectionError, DatabaseError, QueryError, TransactionError
from .handle import DatabaseHandle
from .registry import get_handle, get_handle_from_env, get_instance, reset_handle
from .result import QueryResult, group_rows
from .statements import StatementKind

__all__ = [
    "ConnectionConfig",
    "config_from_env",
    "DatabaseConnectionError",
    "DatabaseError",
    "QueryError",
    "TransactionError",
    "DatabaseHandle",
    "get_handle",
    "get_handle_from_env",
    "get_instance",
    "reset_handle",
    "QueryResult",
    "group_rows",
    "StatementKind",
]
