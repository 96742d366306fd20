"""DB-API adapter, dialect, schema, and content store exports."""

from .content_store import SqlContentStore
from .database import Database
from .dialects import Dialect, MySQLDialect, PostgresDialect, SQLiteDialect
from .schema import apply_schema, clview_sql, create_schema_sql

__all__ = [
    "Database",
    "Dialect",
    "MySQLDialect",
    "PostgresDialect",
    "SQLiteDialect",
    "SqlContentStore",
    "apply_schema",
    "clview_sql",
    "create_schema_sql",
]
