"""DB-API adapter used by the SQL content store to read page metadata."""

from __future__ import annotations

import contextlib
import logging
import re
import time
from typing import Any, Iterator, Mapping, Optional, Sequence

from ...core.types import MaybeRow, QueryParams, RowMapping, Rows
from .dialects import Dialect

logger = logging.getLogger(__name__)


def _regexp(pattern: Optional[str], value: Any) -> bool:
    """SQLite `REGEXP` implementation (`value REGEXP pattern`)."""

    if pattern is None or value is None:
        return False
    if isinstance(value, bytes):
        value = value.decode("utf-8")
    return re.search(pattern, str(value)) is not None


def _mapping_from_row(description: Optional[Sequence[Any]], row: Any) -> RowMapping:
    """Turn one driver row into a column-keyed mapping.

    Mapping rows (including `sqlite3.Row`-like objects convertible with `dict`)
    pass through; sequence rows are keyed by the cursor description.
    """

    if isinstance(row, Mapping):
        return row
    if isinstance(row, (tuple, list)):
        if not description:
            raise TypeError("Cursor has no description; cannot map tuple rows to dict.")
        return {column[0]: value for column, value in zip(description, row)}
    try:
        converted = dict(row)
    except (TypeError, ValueError):
        converted = {}
    if not converted:
        raise TypeError(f"Unsupported row type: {type(row)}")
    return converted


class Database:
    """Wraps one DB-API connection for a concrete SQL dialect.

    SQLite connections get a `REGEXP` function registered so title regexp
    filters work on every dialect. Each executed statement is logged at debug
    level together with its duration and counted in `statements_executed`.
    """

    def __init__(self, conn: Any, dialect: Dialect):
        self.conn: Any | None = conn
        self.dialect = dialect
        self.statements_executed = 0
        self._closed = False
        if dialect.name == "sqlite" and callable(getattr(conn, "create_function", None)):
            conn.create_function("REGEXP", 2, _regexp)

    def _connection(self) -> Any:
        if self._closed or self.conn is None:
            raise RuntimeError("connection is closed")
        return self.conn

    def _needs_explicit_begin(self, conn: Any) -> bool:
        # sqlite3 in autocommit mode (isolation_level=None) never opens one itself.
        return (
            self.dialect.name == "sqlite"
            and getattr(conn, "isolation_level", None) is None
            and not getattr(conn, "in_transaction", False)
        )

    @contextlib.contextmanager
    def transaction(self) -> Iterator[None]:
        """Commit on success, roll back on any error."""

        conn = self._connection()
        if self._needs_explicit_begin(conn):
            conn.execute("BEGIN")
        try:
            yield
        except BaseException:
            conn.rollback()
            raise
        conn.commit()

    def execute(self, sql: str, params: QueryParams = None) -> Any:
        """Execute one statement and return the driver cursor."""

        cursor = self._connection().cursor()
        started = time.perf_counter()
        if params is None:
            cursor.execute(sql)
        else:
            cursor.execute(sql, params)
        self.statements_executed += 1
        logger.debug(
            "SQL (%.1f ms): %s params=%r", (time.perf_counter() - started) * 1000, sql, params
        )
        return cursor

    def _row_to_mapping(self, cursor: Any, row: Any) -> RowMapping:
        return _mapping_from_row(getattr(cursor, "description", None), row)

    def fetchone(self, sql: str, params: QueryParams = None) -> MaybeRow:
        cursor = self.execute(sql, params)
        row = cursor.fetchone()
        return None if row is None else self._row_to_mapping(cursor, row)

    def fetchall(self, sql: str, params: QueryParams = None) -> Rows:
        cursor = self.execute(sql, params)
        return [self._row_to_mapping(cursor, row) for row in cursor.fetchall()]

    def fetchvalue(self, sql: str, params: QueryParams = None, default: Any = None) -> Any:
        """Return the first column of the first row, or `default` without rows."""

        cursor = self.execute(sql, params)
        row = cursor.fetchone()
        if row is None:
            return default
        if isinstance(row, (tuple, list)):
            return row[0]
        return next(iter(self._row_to_mapping(cursor, row).values()), default)

    def table_exists(self, name: str) -> bool:
        """Return whether a table or view called `name` exists."""

        params: QueryParams = {"name": name} if self.dialect.paramstyle == "named" else [name]
        return self.fetchone(self.dialect.table_exists_sql(), params) is not None

    def close(self) -> None:
        """Close the connection once; later calls are no-ops."""

        conn, self.conn = self.conn, None
        if self._closed:
            return
        self._closed = True
        if callable(getattr(conn, "close", None)):
            conn.close()

    def __enter__(self) -> Database:
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()
