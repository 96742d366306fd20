"""Diagnostic records collected while interpreting one directive.

Every component reports problems through a `DiagnosticLog` owned by the
top-level invocation. Warnings never stop the pipeline; the first fatal
diagnostic does. Messages are flushed once, filtered by the final debug level,
as a block in front of the rendered output.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, List, Optional, Tuple

from .settings import VERSION

logger = logging.getLogger(__name__)

MESSAGE_SEPARATOR = "<br/>\n"


class Severity(str, Enum):
    """Diagnostic severity levels."""

    WARNING = "warning"
    FATAL = "fatal"

    @property
    def min_debug_level(self) -> int:
        """Lowest `debug=` level at which diagnostics of this severity are shown."""

        return 1 if self is Severity.FATAL else 2


class DiagnosticCode(str, Enum):
    """Stable identifiers for every diagnostic the pipeline can emit."""

    NO_SELECTION_CRITERIA = "no-selection-criteria"
    TOO_MANY_CATEGORIES = "too-many-categories"
    TOO_FEW_CATEGORIES = "too-few-categories"
    CATEGORY_DATE_WITHOUT_CATEGORIES = "category-date-without-categories"
    CONFLICTING_DATE_PARAMETERS = "conflicting-date-parameters"
    DOMINANT_SECTION_RANGE = "dominant-section-range"
    INCOMPATIBLE_ORDER_METHOD = "incompatible-order-method"
    MISSING_REQUIRED_VIEW = "missing-required-view"
    OPEN_REFERENCES_CONFLICT = "open-references-conflict"
    TRANSCLUSION_LOOP_DETECTED = "transclusion-loop-detected"
    PROTECTED_PAGE_REQUIRED = "protected-page-required"
    SQL_BUILD_ERROR = "sql-build-error"
    UNKNOWN_PARAMETER = "unknown-parameter"
    PARAMETER_NO_OPTION = "parameter-no-option"
    PARAMETER_REJECTED_VALUE = "parameter-rejected-value"
    CATEGORY_MODE_IGNORES_PARAMETERS = "category-mode-ignores-parameters"
    HEADING_NEEDS_MULTIPLE_ORDER_METHODS = "heading-needs-multiple-order-methods"
    NO_RESULTS = "no-results"


_CATALOG: dict[DiagnosticCode, Tuple[Severity, str]] = {
    DiagnosticCode.NO_SELECTION_CRITERIA: (
        Severity.FATAL,
        "No selection criteria found! You must use at least one of the following "
        "parameters: category, namespace, title, titlematch, linksto, linksfrom, "
        "uses, usedby, imageused, imagecontainer, createdby, modifiedby, "
        "lastmodifiedby.",
    ),
    DiagnosticCode.TOO_MANY_CATEGORIES: (
        Severity.FATAL,
        "Too many categories! Maximum: {0}. Help: increase maxCategoryCount to "
        "specify more categories or set allowUnlimitedCategories to true.",
    ),
    DiagnosticCode.TOO_FEW_CATEGORIES: (
        Severity.FATAL,
        "Too few categories! Minimum: {0}. Help: decrease minCategoryCount to "
        "specify fewer categories.",
    ),
    DiagnosticCode.CATEGORY_DATE_WITHOUT_CATEGORIES: (
        Severity.FATAL,
        "You need to include at least one category if you want to add the date it "
        "was categorized (addfirstcategorydate=true) or order by it "
        "(ordermethod=categoryadd).",
    ),
    DiagnosticCode.CONFLICTING_DATE_PARAMETERS: (
        Severity.FATAL,
        "You cannot add more than one type of date at a time "
        "(addpagetoucheddate, addfirstcategorydate, addeditdate).",
    ),
    DiagnosticCode.DOMINANT_SECTION_RANGE: (
        Severity.FATAL,
        "The index for the dominant section must be between 1 and the number of "
        "arguments of 'include' ({0} in this case).",
    ),
    DiagnosticCode.INCOMPATIBLE_ORDER_METHOD: (
        Severity.FATAL,
        "'{0}' can only be used with ordermethod={1}.",
    ),
    DiagnosticCode.MISSING_REQUIRED_VIEW: (
        Severity.FATAL,
        "The view '{0}' does not exist in the database. It is required to use "
        "category=_none_. Ask an administrator to create it with: {1}",
    ),
    DiagnosticCode.OPEN_REFERENCES_CONFLICT: (
        Severity.FATAL,
        "'openreferences' is incompatible with some of the parameters you specified.",
    ),
    DiagnosticCode.TRANSCLUSION_LOOP_DETECTED: (
        Severity.FATAL,
        "An infinite transclusion loop was created on page '{0}'.",
    ),
    DiagnosticCode.PROTECTED_PAGE_REQUIRED: (
        Severity.FATAL,
        "This wiki only runs page lists from protected pages; '{0}' is not protected.",
    ),
    DiagnosticCode.SQL_BUILD_ERROR: (
        Severity.FATAL,
        "The query could not be executed: {0}",
    ),
    DiagnosticCode.UNKNOWN_PARAMETER: (
        Severity.WARNING,
        "Unknown parameter '{0}' is ignored. Help: available parameters: {1}.",
    ),
    DiagnosticCode.PARAMETER_NO_OPTION: (
        Severity.WARNING,
        "Parameter '{0}' has no assigned option and is ignored.",
    ),
    DiagnosticCode.PARAMETER_REJECTED_VALUE: (
        Severity.WARNING,
        "Parameter '{0}' rejected the value '{1}'; the default is kept.",
    ),
    DiagnosticCode.CATEGORY_MODE_IGNORES_PARAMETERS: (
        Severity.WARNING,
        "With 'mode=category' only the namespace and title can be shown; add* and "
        "include parameters are ignored.",
    ),
    DiagnosticCode.HEADING_NEEDS_MULTIPLE_ORDER_METHODS: (
        Severity.WARNING,
        "'headingmode={0}' needs at least two ordermethods; '{1}' is used instead.",
    ),
    DiagnosticCode.NO_RESULTS: (
        Severity.WARNING,
        "No results!",
    ),
}


@dataclass(frozen=True)
class Diagnostic:
    """One reported problem: severity, stable code, and message arguments."""

    code: DiagnosticCode
    args: Tuple[Any, ...] = ()
    severity: Optional[Severity] = field(default=None)

    def __post_init__(self) -> None:
        if self.severity is None:
            object.__setattr__(self, "severity", _CATALOG[self.code][0])

    @property
    def is_fatal(self) -> bool:
        return self.severity is Severity.FATAL

    def message(self) -> str:
        """Render the diagnostic as one output line."""

        label = "Error" if self.is_fatal else "Warning"
        text = _CATALOG[self.code][1].format(*self.args)
        return f"Extension:DynamicPageList (DPL), version {VERSION}: {label}: {text}"


class DiagnosticLog:
    """Append-only diagnostic collector for one directive invocation."""

    def __init__(self) -> None:
        self._items: List[Diagnostic] = []

    def add(self, code: DiagnosticCode, *args: Any) -> Diagnostic:
        """Create, record, and return a diagnostic."""

        return self.record(Diagnostic(code, tuple(args)))

    def record(self, diagnostic: Diagnostic) -> Diagnostic:
        self._items.append(diagnostic)
        level = logging.ERROR if diagnostic.is_fatal else logging.WARNING
        logger.log(level, "%s: %s", diagnostic.code.value, diagnostic.args)
        return diagnostic

    @property
    def diagnostics(self) -> Tuple[Diagnostic, ...]:
        return tuple(self._items)

    @property
    def has_fatal(self) -> bool:
        return any(item.is_fatal for item in self._items)

    def messages(self, debug_level: int) -> List[str]:
        """Return message lines visible at `debug_level`."""

        return [
            item.message()
            for item in self._items
            if item.severity is not None and item.severity.min_debug_level <= debug_level
        ]

    def render(self, debug_level: int) -> str:
        """Return the message block placed in front of the output."""

        return MESSAGE_SEPARATOR.join(self.messages(debug_level))

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._items)
