"""Public package API for DynamicPageList directive interpretation."""

from .core import (
    VERSION,
    CurrentDocument,
    Diagnostic,
    DiagnosticCode,
    DiagnosticLog,
    DirectiveOutput,
    DirectivePipeline,
    PageRef,
    ParameterRegistry,
    ParameterSet,
    QueryResult,
    QuerySpecification,
    RecursionGuard,
    ResultRow,
    Settings,
    Severity,
    SimpleListLayout,
    ValidationError,
    build_query_specification,
    default_registry,
    tokenize,
    validate,
)
from .ports.db_api import (
    Database,
    Dialect,
    MySQLDialect,
    PostgresDialect,
    SQLiteDialect,
    SqlContentStore,
    apply_schema,
    create_schema_sql,
)

__version__ = VERSION

__all__ = [
    "VERSION",
    "CurrentDocument",
    "Database",
    "Diagnostic",
    "DiagnosticCode",
    "DiagnosticLog",
    "Dialect",
    "DirectiveOutput",
    "DirectivePipeline",
    "MySQLDialect",
    "PageRef",
    "ParameterRegistry",
    "ParameterSet",
    "PostgresDialect",
    "QueryResult",
    "QuerySpecification",
    "RecursionGuard",
    "ResultRow",
    "SQLiteDialect",
    "Settings",
    "Severity",
    "SimpleListLayout",
    "SqlContentStore",
    "ValidationError",
    "apply_schema",
    "build_query_specification",
    "create_schema_sql",
    "default_registry",
    "tokenize",
    "validate",
]
