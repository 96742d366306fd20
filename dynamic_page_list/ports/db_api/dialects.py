"""Concrete SQL dialect implementations for DB-API adapters."""

from __future__ import annotations


class Dialect:
    """Base dialect that defines SQL quoting and placeholder behavior."""

    name: str = "generic"
    paramstyle: str = "named"
    quote_char: str = '"'
    regexp_operator: str = "REGEXP"
    # Literal used for `LIMIT` when only an offset is requested.
    unlimited: str = "-1"
    # Whether `SELECT DISTINCT` accepts `ORDER BY col COLLATE x` on a selected column.
    distinct_order_collation: bool = True

    def q(self, ident: str) -> str:
        """Quote SQL identifier; dotted names are quoted per part."""

        return ".".join(
            f"{self.quote_char}{part}{self.quote_char}" for part in ident.split(".")
        )

    def placeholder(self, key: str) -> str:
        """Return parameter placeholder for current param style."""

        if self.paramstyle == "named":
            return f":{key}"
        if self.paramstyle == "qmark":
            return "?"
        if self.paramstyle == "format":
            return "%s"
        raise ValueError(f"Unsupported paramstyle: {self.paramstyle}")

    def table_exists_sql(self) -> str:
        """Query returning a row when a table or view named by `name` exists."""

        return (
            "SELECT table_name FROM information_schema.tables "
            f"WHERE table_name = {self.placeholder('name')}"
        )

    def group_concat(self, expression: str) -> str:
        """Aggregate `expression` into one `|`-separated string."""

        return f"GROUP_CONCAT({expression}, '|')"


class SQLiteDialect(Dialect):
    """SQLite dialect (`:name` parameters, `REGEXP` registered by `Database`)."""

    name = "sqlite"
    paramstyle = "named"
    quote_char = '"'

    def table_exists_sql(self) -> str:
        return (
            "SELECT name FROM sqlite_master WHERE type IN ('table', 'view') "
            "AND name = :name"
        )


class PostgresDialect(Dialect):
    """PostgreSQL dialect (`%s` positional parameters, `~` regular expressions)."""

    name = "postgres"
    paramstyle = "format"
    quote_char = '"'
    regexp_operator = "~"
    unlimited = "ALL"
    distinct_order_collation = False

    def group_concat(self, expression: str) -> str:
        return f"STRING_AGG({expression}, '|')"


class MySQLDialect(Dialect):
    """MySQL dialect (`%s` positional parameters)."""

    name = "mysql"
    paramstyle = "format"
    quote_char = "`"
    unlimited = "18446744073709551615"

    def table_exists_sql(self) -> str:
        return (
            "SELECT table_name FROM information_schema.tables "
            "WHERE table_schema = DATABASE() AND table_name = %s"
        )

    def group_concat(self, expression: str) -> str:
        return f"GROUP_CONCAT({expression} SEPARATOR '|')"
