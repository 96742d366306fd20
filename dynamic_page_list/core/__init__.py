"""Public core API for directive parsing, validation, querying, and rendering."""

from .categories import CategoryFilter, ComparisonKind, OperatorKind
from .cleanup import CreatedLinks, LinkFlags, extract_created_links, plan_end_resets
from .contracts import (
    ContentStorePort,
    DatabasePort,
    DialectPort,
    HostPort,
    LayoutPort,
    LayoutResult,
    QueryResult,
)
from .definitions import default_registry, parameter_definitions
from .diagnostics import Diagnostic, DiagnosticCode, DiagnosticLog, Severity
from .guard import RecursionGuard, TransclusionLoopError
from .layout import SimpleListLayout
from .parameters import ParameterDefinition, ParameterRegistry, ParameterSet
from .pipeline import CacheDecision, DirectiveOutput, DirectivePipeline
from .postprocess import card_suit_sort, process
from .query_spec import (
    AuthorFilter,
    ExtraField,
    LinkFilter,
    OrderMethod,
    QuerySpecification,
    RedirectMode,
    RevisionFilter,
    Target,
    TitleFilter,
    build_query_specification,
)
from .render import RenderContext, render
from .rows import ResultRow, row_from_mapping
from .settings import VERSION, Settings, ValidationError
from .titles import CurrentDocument, PageRef, parse_page_ref
from .tokenizer import Directive, resolve_url_arguments, tokenize
from .validator import ValidationContext, validate

__all__ = [
    "VERSION",
    "AuthorFilter",
    "CacheDecision",
    "CategoryFilter",
    "ComparisonKind",
    "ContentStorePort",
    "CreatedLinks",
    "CurrentDocument",
    "DatabasePort",
    "Diagnostic",
    "DiagnosticCode",
    "DiagnosticLog",
    "DialectPort",
    "Directive",
    "DirectiveOutput",
    "DirectivePipeline",
    "ExtraField",
    "HostPort",
    "LayoutPort",
    "LayoutResult",
    "LinkFilter",
    "LinkFlags",
    "OperatorKind",
    "OrderMethod",
    "PageRef",
    "ParameterDefinition",
    "ParameterRegistry",
    "ParameterSet",
    "QueryResult",
    "QuerySpecification",
    "RecursionGuard",
    "RedirectMode",
    "RenderContext",
    "ResultRow",
    "RevisionFilter",
    "Settings",
    "Severity",
    "SimpleListLayout",
    "Target",
    "TitleFilter",
    "TransclusionLoopError",
    "ValidationContext",
    "ValidationError",
    "build_query_specification",
    "card_suit_sort",
    "default_registry",
    "extract_created_links",
    "parameter_definitions",
    "parse_page_ref",
    "plan_end_resets",
    "process",
    "render",
    "resolve_url_arguments",
    "row_from_mapping",
    "tokenize",
    "validate",
]
