"""Database handle: one live connection plus convenience query methods.

Every statement runs inside `DatabaseHandle.transaction()`, which commits on
success and rolls back on any failure. The typed entry point is `run()`,
which returns a `QueryResult`. The `select`, `select_one`, `update`,
`delete`, `insert` and `execute` methods map failures to fixed sentinel
values instead:

    select      []  ({} when grouping)
    select_one  None
    update      0
    delete      0
    insert      False
    execute     -1

A sentinel cannot be told apart from a legitimate empty answer (a failed
update and an update matching nothing both return 0). Callers that need to
know should use `run()`.
"""

import logging
from contextlib import contextmanager
from typing import Any, Mapping, Optional, Sequence, Union

import psycopg2
import psycopg2.errors
from psycopg2.extras import RealDictCursor

from .config import ConnectionConfig
from .errors import DatabaseConnectionError, DatabaseError, QueryError, TransactionError
from .result import QueryResult, group_rows
from .statements import StatementKind

logger = logging.getLogger("dbhandle")

Args = Union[Sequence[Any], Mapping[str, Any], None]

# Client-side parameter binding failures raised by psycopg2 before the
# statement reaches the server.
BINDING_ERRORS = (TypeError, KeyError, IndexError, ValueError)

LAST_INSERT_SAVEPOINT = "dbhandle_last_insert_id"


class DatabaseHandle:
    """Wraps a single psycopg2 connection."""

    def __init__(self, connection):
        self._conn = connection

    @classmethod
    def open(cls, config: ConnectionConfig) -> "DatabaseHandle":
        """Connect using `config`.

        Raises:
            DatabaseConnectionError: If the driver cannot connect.
        """
        try:
            conn = psycopg2.connect(**config.connect_kwargs())
        except psycopg2.Error as exc:
            raise DatabaseConnectionError.from_driver(exc) from exc
        return cls(conn)

    @property
    def connection(self):
        return self._conn

    @property
    def closed(self) -> bool:
        # psycopg2 sets `closed` non-zero when the server drops the connection
        return self._conn is None or bool(self._conn.closed)

    def close(self) -> None:
        if self._conn is None:
            return
        conn, self._conn = self._conn, None
        conn.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _require_connection(self):
        if self.closed:
            raise DatabaseConnectionError("connection is closed")
        return self._conn

    def _rollback(self, conn) -> None:
        try:
            conn.rollback()
        except psycopg2.Error as exc:
            logger.error("Rollback failed: %s", exc)

    @contextmanager
    def transaction(self):
        """Cursor scope that commits on clean exit and rolls back otherwise.

        Raises:
            DatabaseConnectionError: If the handle is closed.
            TransactionError: If the commit fails (after rolling back).
        """
        conn = self._require_connection()
        try:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                yield cur
            try:
                conn.commit()
            except psycopg2.Error as exc:
                raise TransactionError.from_driver(exc) from exc
        except BaseException:
            self._rollback(conn)
            raise

    # --- Typed path ---

    def run(
        self,
        query: str,
        args: Args = None,
        kind: Optional[StatementKind] = None,
        group_key: Optional[str] = None,
        fetch_one: bool = False,
    ) -> QueryResult:
        """Run one statement in its own transaction.

        Args:
            query: SQL text with %s or %(name)s placeholders
            args: Bind values; empty or None runs the statement unbound
            kind: How to read the result; inferred from the first word of
                `query` when omitted
            group_key: Column to re-key SELECT rows by
            fetch_one: Fetch a single row (or None) for SELECT

        Returns:
            QueryResult holding rows, a row, an insert id or a row count.
        """
        if kind is None:
            kind = StatementKind.from_sql(query)
        try:
            with self.transaction() as cur:
                previous = _session_lastval(cur) if kind is StatementKind.INSERT else None
                _execute(cur, query, args)
                value = self._read_result(cur, kind, previous, fetch_one)
        except DatabaseError as exc:
            if exc.query is None:
                exc.query = query
            return self._failed(exc)
        except psycopg2.Error as exc:
            return self._failed(QueryError.from_driver(exc, query))
        except BINDING_ERRORS as exc:
            return self._failed(QueryError.from_driver(exc, query))
        if group_key is not None and kind.returns_rows and not fetch_one:
            return self._grouped(value, group_key, query)
        return QueryResult(value=value)

    def _failed(self, error: DatabaseError) -> QueryResult:
        logger.error("Query failed: %s", error)
        logger.error("Query : %s", error.query)
        return QueryResult(error=error)

    def _grouped(self, rows: list, group_key: str, query: str) -> QueryResult:
        # the query itself succeeded; only the re-keying can fail here
        try:
            return QueryResult(value=group_rows(rows, group_key))
        except TypeError as exc:
            logger.error("Grouping failed on column %r: %s", group_key, exc)
            error = QueryError(f"cannot group rows by {group_key!r}: {exc}", query=query)
            return QueryResult(error=error)

    def _read_result(self, cur, kind: StatementKind, previous_lastval, fetch_one):
        if kind.returns_rows:
            if fetch_one:
                return cur.fetchone()
            return cur.fetchall()
        if kind is StatementKind.INSERT:
            return _last_insert_id(cur, previous_lastval)
        # rowcount is -1 for statements that report no count
        return max(cur.rowcount, 0)

    # --- Sentinel methods ---

    def select(self, query: str, args: Args = None, group_key: Optional[str] = None):
        """Fetch all rows, optionally keyed by `group_key`."""
        empty = {} if group_key is not None else []
        result = self.run(query, args, kind=StatementKind.SELECT, group_key=group_key)
        return result.or_sentinel(empty)

    def select_one(self, query: str, args: Args = None):
        """Fetch a single row, or None."""
        result = self.run(query, args, kind=StatementKind.SELECT, fetch_one=True)
        return result.or_sentinel(None)

    def update(self, query: str, args: Args = None) -> int:
        return self.run(query, args, kind=StatementKind.UPDATE).or_sentinel(0)

    def delete(self, query: str, args: Args = None) -> int:
        return self.run(query, args, kind=StatementKind.DELETE).or_sentinel(0)

    def insert(self, query: str, args: Args = None):
        """Insert and return the generated id, or False on failure."""
        return self.run(query, args, kind=StatementKind.INSERT).or_sentinel(False)

    def execute(self, query: str, args: Args = None, kind: Optional[StatementKind] = None):
        """Run any statement; -1 on failure."""
        return self.run(query, args, kind=kind).or_sentinel(-1)


def _execute(cur, query: str, args: Args) -> None:
    if args:
        cur.execute(query, args)
    else:
        cur.execute(query)


def _session_lastval(cur):
    """lastval() for the session, or None before any sequence was used."""
    cur.execute(f"SAVEPOINT {LAST_INSERT_SAVEPOINT}")
    try:
        cur.execute("SELECT lastval() AS id")
    except psycopg2.errors.ObjectNotInPrerequisiteState:
        cur.execute(f"ROLLBACK TO SAVEPOINT {LAST_INSERT_SAVEPOINT}")
        return None
    row = cur.fetchone()
    cur.execute(f"RELEASE SAVEPOINT {LAST_INSERT_SAVEPOINT}")
    return row["id"]


def _last_insert_id(cur, previous):
    """Id generated by the insert just executed on `cur`.

    Uses the first column of a RETURNING clause when present. Otherwise
    reads lastval() and compares it with `previous`, the value read before
    the insert: an unchanged (or still undefined) lastval means the insert
    drew from no sequence and yields 0. An insert whose sequence lands on
    exactly the previous value of another sequence also yields 0.
    """
    if cur.description:
        row = cur.fetchone()
        return next(iter(row.values())) if row else 0

    current = _session_lastval(cur)
    if current is None or current == previous:
        return 0
    return current
