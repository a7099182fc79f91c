"""Error taxonomy for database handle failures."""

from typing import Optional


class DatabaseError(Exception):
    """Base class for every failure the handle reports."""

    def __init__(self, message: str, query: Optional[str] = None):
        super().__init__(message)
        self.query = query

    @classmethod
    def from_driver(cls, exc: Exception, query: Optional[str] = None) -> "DatabaseError":
        """Wrap a driver exception, keeping its message and chaining it."""
        message = str(exc).strip() or exc.__class__.__name__
        error = cls(message, query=query)
        error.__cause__ = exc
        return error


class DatabaseConnectionError(DatabaseError):
    """The connection could not be opened, or the handle is closed."""


class QueryError(DatabaseError):
    """Prepare, execute or fetch failed."""


class TransactionError(DatabaseError):
    """Commit failed after the statement itself succeeded."""
