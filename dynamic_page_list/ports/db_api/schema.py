"""Table definitions and DDL for the reference content store schema.

The layout follows a MediaWiki-like database: pages, category links,
template links, page links, image links, and revisions. Titles are stored in
database-key form and timestamps as 14-digit `YYYYMMDDHHMMSS` strings.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from ...core.contracts import DatabasePort, DialectPort
from ...core.query_spec import uncategorized_view_sql


@dataclass(frozen=True)
class ColumnSpec:
    """One column; `sql_type` is `INTEGER` or `TEXT` and mapped per dialect."""

    name: str
    sql_type: str
    nullable: bool = True
    default: Any = None
    primary_key: bool = False


@dataclass(frozen=True)
class TableSpec:
    name: str
    columns: Tuple[ColumnSpec, ...]
    indexes: Tuple[Tuple[str, ...], ...] = ()


def _col(name: str, sql_type: str, **kwargs: Any) -> ColumnSpec:
    return ColumnSpec(name=name, sql_type=sql_type, **kwargs)


PAGE = TableSpec(
    "page",
    (
        _col("page_id", "INTEGER", nullable=False, primary_key=True),
        _col("page_namespace", "INTEGER", nullable=False),
        _col("page_title", "TEXT", nullable=False),
        _col("page_is_redirect", "INTEGER", nullable=False, default=0),
        _col("page_touched", "TEXT"),
        _col("page_len", "INTEGER", nullable=False, default=0),
        _col("page_counter", "INTEGER", nullable=False, default=0),
    ),
    indexes=(("page_namespace", "page_title"),),
)

CATEGORYLINKS = TableSpec(
    "categorylinks",
    (
        _col("cl_from", "INTEGER", nullable=False),
        _col("cl_to", "TEXT", nullable=False),
        _col("cl_sortkey", "TEXT"),
        _col("cl_timestamp", "TEXT"),
    ),
    indexes=(("cl_from",), ("cl_to",)),
)

TEMPLATELINKS = TableSpec(
    "templatelinks",
    (
        _col("tl_from", "INTEGER", nullable=False),
        _col("tl_namespace", "INTEGER", nullable=False),
        _col("tl_title", "TEXT", nullable=False),
    ),
    indexes=(("tl_from",), ("tl_namespace", "tl_title")),
)

PAGELINKS = TableSpec(
    "pagelinks",
    (
        _col("pl_from", "INTEGER", nullable=False),
        _col("pl_namespace", "INTEGER", nullable=False),
        _col("pl_title", "TEXT", nullable=False),
    ),
    indexes=(("pl_from",), ("pl_namespace", "pl_title")),
)

IMAGELINKS = TableSpec(
    "imagelinks",
    (
        _col("il_from", "INTEGER", nullable=False),
        _col("il_to", "TEXT", nullable=False),
    ),
    indexes=(("il_from",), ("il_to",)),
)

REVISION = TableSpec(
    "revision",
    (
        _col("rev_id", "INTEGER", nullable=False, primary_key=True),
        _col("rev_page", "INTEGER", nullable=False),
        _col("rev_timestamp", "TEXT", nullable=False),
        _col("rev_user_text", "TEXT", nullable=False),
        _col("rev_minor_edit", "INTEGER", nullable=False, default=0),
    ),
    indexes=(("rev_page", "rev_timestamp"),),
)

TABLES: Tuple[TableSpec, ...] = (
    PAGE,
    CATEGORYLINKS,
    TEMPLATELINKS,
    PAGELINKS,
    IMAGELINKS,
    REVISION,
)


def _column_sql(column: ColumnSpec, dialect: DialectPort) -> str:
    sql_type = column.sql_type
    if sql_type == "TEXT" and getattr(dialect, "name", "") == "mysql":
        sql_type = "VARCHAR(255)"
    parts = [dialect.q(column.name), sql_type]
    if column.primary_key:
        parts.append("PRIMARY KEY")
    elif not column.nullable:
        parts.append("NOT NULL")
    if column.default is not None:
        parts.append(f"DEFAULT {column.default!r}")
    return " ".join(parts)


def create_table_sql(
    table: TableSpec, dialect: DialectPort, *, if_not_exists: bool = False
) -> str:
    """Build `CREATE TABLE` statement for one table."""

    column_definitions = [_column_sql(column, dialect) for column in table.columns]
    prefix = "CREATE TABLE IF NOT EXISTS" if if_not_exists else "CREATE TABLE"
    return f"{prefix} {dialect.q(table.name)} (\n  " + ",\n  ".join(column_definitions) + "\n);"


def create_indexes_sql(table: TableSpec, dialect: DialectPort) -> List[str]:
    statements = []
    for columns in table.indexes:
        name = f"idx_{table.name}_{'_'.join(columns)}"
        cols = ", ".join(dialect.q(column) for column in columns)
        statements.append(f"CREATE INDEX {dialect.q(name)} ON {dialect.q(table.name)} ({cols});")
    return statements


def create_schema_sql(dialect: DialectPort, *, if_not_exists: bool = False) -> List[str]:
    """All `CREATE TABLE` and `CREATE INDEX` statements of the store schema."""

    statements: List[str] = []
    for table in TABLES:
        statements.append(create_table_sql(table, dialect, if_not_exists=if_not_exists))
        if not if_not_exists:
            statements.extend(create_indexes_sql(table, dialect))
    return statements


def clview_sql(view: str = "dpl_clview") -> str:
    """DDL of the view mapping uncategorized pages onto the empty category."""

    return uncategorized_view_sql(view)


def apply_schema(db: DatabasePort, *, clview: Optional[str] = "dpl_clview") -> None:
    """Create every table, index, and (unless `clview` is `None`) the view."""

    statements = create_schema_sql(db.dialect)
    if clview is not None:
        statements.append(clview_sql(clview))
    with db.transaction():
        for statement in statements:
            db.execute(statement)
