"""Statement classification for the generic execute path."""

from enum import Enum


def first_token(query: str) -> str:
    """Return the first whitespace-delimited word of `query`, upper-cased."""
    parts = query.split(None, 1)
    return parts[0].upper() if parts else ""


class StatementKind(str, Enum):
    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    OTHER = "other"

    @classmethod
    def from_sql(cls, query: str) -> "StatementKind":
        token = first_token(query)
        for kind in (cls.SELECT, cls.INSERT, cls.UPDATE, cls.DELETE):
            if token == kind.name:
                return kind
        return cls.OTHER

    @property
    def returns_rows(self) -> bool:
        return self is StatementKind.SELECT
