"""Cross-parameter consistency rules checked before any query runs.

Rules run in a fixed order. Warning rules record their diagnostic and let the
remaining rules run; the first fatal rule stops validation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from .categories import count_members
from .contracts import ContentStorePort
from .diagnostics import Diagnostic, DiagnosticCode, DiagnosticLog
from .parameters import ParameterSet
from .query_spec import revision_filter, uncategorized_view_sql
from .settings import Settings

EDIT_ORDER_METHODS = ("firstedit", "lastedit")

_CATEGORY_MODE_IGNORED = (
    "addcategories",
    "addeditdate",
    "addfirstcategorydate",
    "addpagetoucheddate",
    "incpage",
    "adduser",
    "addauthor",
    "addcontribution",
    "addlasteditor",
)


@dataclass
class ValidationContext:
    """Inputs shared by all rules of one validation run."""

    parameters: ParameterSet
    settings: Settings
    store: ContentStorePort
    log: DiagnosticLog

    @property
    def total_categories(self) -> int:
        return count_members(self.parameters.get("category", ())) + count_members(
            self.parameters.get("notcategory", ())
        )

    @property
    def order_methods(self) -> Tuple[str, ...]:
        return tuple(self.parameters.get("ordermethod", ()))

    def orders_by_any(self, *methods: str) -> bool:
        return any(method in self.order_methods for method in methods)

    def fatal(self, code: DiagnosticCode, *args) -> Diagnostic:
        return Diagnostic(code, tuple(args))


Rule = Callable[[ValidationContext], Optional[Diagnostic]]


def too_many_categories(ctx: ValidationContext) -> Optional[Diagnostic]:
    limit = ctx.settings.max_category_count
    if ctx.total_categories > limit and not ctx.settings.allow_unlimited_categories:
        return ctx.fatal(DiagnosticCode.TOO_MANY_CATEGORIES, limit)
    return None


def too_few_categories(ctx: ValidationContext) -> Optional[Diagnostic]:
    minimum = ctx.settings.min_category_count
    if ctx.total_categories < minimum:
        return ctx.fatal(DiagnosticCode.TOO_FEW_CATEGORIES, minimum)
    return None


def selection_criteria(ctx: ValidationContext) -> Optional[Diagnostic]:
    if not ctx.total_categories and not ctx.parameters.selection_criteria_found:
        return ctx.fatal(DiagnosticCode.NO_SELECTION_CRITERIA)
    return None


def category_date_needs_categories(ctx: ValidationContext) -> Optional[Diagnostic]:
    if ctx.total_categories == 0 and (
        ctx.orders_by_any("categoryadd") or ctx.parameters.get("addfirstcategorydate")
    ):
        return ctx.fatal(DiagnosticCode.CATEGORY_DATE_WITHOUT_CATEGORIES)
    return None


def single_date_kind(ctx: ValidationContext) -> Optional[Diagnostic]:
    requested = [
        name
        for name in ("addpagetoucheddate", "addfirstcategorydate", "addeditdate")
        if ctx.parameters.get(name)
    ]
    if len(requested) > 1:
        return ctx.fatal(DiagnosticCode.CONFLICTING_DATE_PARAMETERS)
    return None


def dominant_section_in_range(ctx: ValidationContext) -> Optional[Diagnostic]:
    dominant = ctx.parameters.get("dominantsection") or 0
    labels = len(ctx.parameters.get("seclabels", ()))
    if dominant > 0 and dominant > labels:
        return ctx.fatal(DiagnosticCode.DOMINANT_SECTION_RANGE, labels)
    return None


def category_mode_order(ctx: ValidationContext) -> Optional[Diagnostic]:
    if ctx.parameters.get("mode") == "category" and not ctx.orders_by_any(
        "sortkey", "title", "titlewithoutnamespace"
    ):
        return ctx.fatal(
            DiagnosticCode.INCOMPATIBLE_ORDER_METHOD,
            "mode=category",
            "sortkey | title | titlewithoutnamespace",
        )
    return None


def page_touched_order(ctx: ValidationContext) -> Optional[Diagnostic]:
    if ctx.parameters.get("addpagetoucheddate") and not ctx.orders_by_any(
        "pagetouched", "title"
    ):
        return ctx.fatal(
            DiagnosticCode.INCOMPATIBLE_ORDER_METHOD,
            "addpagetoucheddate=true",
            "pagetouched | title",
        )
    return None


def edit_date_order(ctx: ValidationContext) -> Optional[Diagnostic]:
    if (
        ctx.parameters.get("addeditdate")
        and not ctx.orders_by_any(*EDIT_ORDER_METHODS)
        and revision_filter(ctx.parameters).is_range
    ):
        return ctx.fatal(
            DiagnosticCode.INCOMPATIBLE_ORDER_METHOD, "addeditdate=true", "firstedit | lastedit"
        )
    return None


def user_order(ctx: ValidationContext) -> Optional[Diagnostic]:
    if (
        ctx.parameters.get("adduser")
        and not ctx.orders_by_any(*EDIT_ORDER_METHODS)
        and not revision_filter(ctx.parameters).is_range
    ):
        return ctx.fatal(
            DiagnosticCode.INCOMPATIBLE_ORDER_METHOD, "adduser=true", "firstedit | lastedit"
        )
    return None


def minor_edits_order(ctx: ValidationContext) -> Optional[Diagnostic]:
    # No revision-range exemption here, unlike `adduser`.
    if ctx.parameters.get("minoredits") and not ctx.orders_by_any(*EDIT_ORDER_METHODS):
        return ctx.fatal(
            DiagnosticCode.INCOMPATIBLE_ORDER_METHOD, "minoredits", "firstedit | lastedit"
        )
    return None


def uncategorized_view(ctx: ValidationContext) -> Optional[Diagnostic]:
    view = ctx.settings.clview_name
    if ctx.parameters.include_uncategorized and not ctx.store.has_view(view):
        return ctx.fatal(DiagnosticCode.MISSING_REQUIRED_VIEW, view, uncategorized_view_sql(view))
    return None


def category_mode_enrichments(ctx: ValidationContext) -> Optional[Diagnostic]:
    if ctx.parameters.get("mode") == "category" and any(
        ctx.parameters.get(name) for name in _CATEGORY_MODE_IGNORED
    ):
        ctx.log.add(DiagnosticCode.CATEGORY_MODE_IGNORES_PARAMETERS)
    return None


def heading_mode_order(ctx: ValidationContext) -> Optional[Diagnostic]:
    heading_mode = ctx.parameters.get("headingmode", "none")
    if heading_mode != "none" and len(ctx.order_methods) < 2:
        ctx.log.add(DiagnosticCode.HEADING_NEEDS_MULTIPLE_ORDER_METHODS, heading_mode, "none")
        ctx.parameters.set("headingmode", "none")
    return None


def open_references(ctx: ValidationContext) -> Optional[Diagnostic]:
    if ctx.parameters.get("openreferences") and ctx.parameters.open_references_conflict:
        return ctx.fatal(DiagnosticCode.OPEN_REFERENCES_CONFLICT)
    return None


RULES: Tuple[Rule, ...] = (
    too_many_categories,
    too_few_categories,
    selection_criteria,
    category_date_needs_categories,
    single_date_kind,
    dominant_section_in_range,
    category_mode_order,
    page_touched_order,
    edit_date_order,
    user_order,
    minor_edits_order,
    uncategorized_view,
    category_mode_enrichments,
    heading_mode_order,
    open_references,
)


def validate(
    parameters: ParameterSet,
    settings: Settings,
    store: ContentStorePort,
    log: DiagnosticLog,
) -> Optional[Diagnostic]:
    """Run every rule in order; record and return the first fatal diagnostic.

    Returns `None` when the parameter set is consistent.
    """

    ctx = ValidationContext(parameters, settings, store, log)
    for rule in RULES:
        diagnostic = rule(ctx)
        if diagnostic is not None:
            return log.record(diagnostic)
    return None
