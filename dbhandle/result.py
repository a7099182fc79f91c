"""Typed query results and row grouping."""

from dataclasses import dataclass
from typing import Any, Optional

from .errors import DatabaseError


@dataclass
class QueryResult:
    """Outcome of a statement run through the handle.

    `value` holds rows, a single row, an insert id or an affected-row count
    depending on the statement. `error` is set instead when the statement
    failed and the transaction was rolled back.
    """

    value: Any = None
    error: Optional[DatabaseError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Any:
        """Return the value, or raise the recorded error."""
        if self.error is not None:
            raise self.error
        return self.value

    def or_sentinel(self, sentinel: Any) -> Any:
        return self.value if self.error is None else sentinel


def group_rows(rows: list, key: Optional[str]):
    """Re-key `rows` by the value of column `key`.

    Rows are returned unchanged when no key is given, the result is empty,
    or the first row lacks the column. A later row with the same key value
    replaces an earlier one.
    """
    if key is None or not rows or key not in rows[0]:
        return rows
    return {row[key]: row for row in rows}
