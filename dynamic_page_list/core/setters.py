"""Setter factories that validate raw directive values into typed parameters.

Every factory returns a plain function `(raw_value, parameters) -> bool`. A
setter either stores a validated value under its target key and returns
`True`, or leaves the parameter set untouched and returns `False`.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Optional, Sequence, Tuple

from .categories import CategoryFilter, ComparisonKind, add_filter, split_category_option
from .cleanup import LinkFlags
from .titles import NS_MAIN, PageRef, normalize_title, parse_page_ref

if TYPE_CHECKING:
    from .parameters import ParameterSet, Setter

_TRUE_VALUES = {"true", "yes", "on", "1"}
_FALSE_VALUES = {"false", "no", "off", "0"}
_DIGITS = re.compile(r"\d")

ORDER_METHODS = (
    "title",
    "titlewithoutnamespace",
    "sortkey",
    "category",
    "categoryadd",
    "pagetouched",
    "firstedit",
    "lastedit",
    "size",
    "counter",
    "none",
)


def parse_bool(value: str) -> Optional[bool]:
    """Parse a directive boolean; `None` when the text is not a boolean."""

    key = value.strip().lower()
    if key in _TRUE_VALUES:
        return True
    if key in _FALSE_VALUES:
        return False
    return None


def _unique(items: Sequence) -> tuple:
    return tuple(dict.fromkeys(items))


def boolean(target: str) -> Setter:
    def setter(value: str, parameters: ParameterSet) -> bool:
        parsed = parse_bool(value)
        if parsed is None:
            return False
        parameters.set(target, parsed)
        return True

    return setter


def integer(target: str, *, minimum: Optional[int] = None, maximum: Optional[int] = None) -> Setter:
    def setter(value: str, parameters: ParameterSet) -> bool:
        value = value.strip()
        if not value.isdigit():
            return False
        number = int(value)
        if minimum is not None and number < minimum:
            return False
        if maximum is not None and number > maximum:
            return False
        parameters.set(target, number)
        return True

    return setter


def result_count(target: str) -> Setter:
    """Positive count bounded by `max_result_count` unless results are unlimited."""

    def setter(value: str, parameters: ParameterSet) -> bool:
        value = value.strip()
        if not value.isdigit() or int(value) < 1:
            return False
        settings = parameters.settings
        if not settings.allow_unlimited_results and int(value) > settings.max_result_count:
            return False
        parameters.set(target, int(value))
        return True

    return setter


def choice(target: str, choices: Sequence[str]) -> Setter:
    """Case-insensitive choice; stores the canonical spelling."""

    canonical = {item.lower(): item for item in choices}

    def setter(value: str, parameters: ParameterSet) -> bool:
        selected = canonical.get(value.strip().lower())
        if selected is None:
            return False
        parameters.set(target, selected)
        return True

    return setter


def text(target: str) -> Setter:
    def setter(value: str, parameters: ParameterSet) -> bool:
        parameters.set(target, value)
        return True

    return setter


def text_list(target: str, separator: str = ",") -> Setter:
    def setter(value: str, parameters: ParameterSet) -> bool:
        parameters.set(target, tuple(item.strip() for item in value.split(separator)))
        return True

    return setter


def section_labels(target: str) -> Setter:
    """`include` labels; also switches on page inclusion."""

    def setter(value: str, parameters: ParameterSet) -> bool:
        labels = tuple(item.strip() for item in value.split(",") if item.strip())
        if not labels:
            return False
        parameters.set(target, labels)
        parameters.set("incpage", True)
        return True

    return setter


def order_methods(target: str) -> Setter:
    def setter(value: str, parameters: ParameterSet) -> bool:
        methods = tuple(item.strip().lower() for item in value.split(","))
        if not methods or any(item not in ORDER_METHODS for item in methods):
            return False
        if "none" in methods and len(methods) > 1:
            return False
        parameters.set(target, _unique(methods))
        return True

    return setter


def link_flags(target: str) -> Setter:
    def setter(value: str, parameters: ParameterSet) -> bool:
        flags = LinkFlags.parse(value)
        if flags is None:
            return False
        parameters.set(target, flags)
        return True

    return setter


def category(target: str, comparison: ComparisonKind) -> Setter:
    """Category inclusion/exclusion filter for one directive line.

    `A|B` matches any name, `A&B` all names. A leading `+` (or `-`) marks the
    names as heading (or non-heading) categories. `_none_` or an empty member
    selects uncategorized pages and is only meaningful for inclusion.
    """

    excluding = target == "notcategory"

    def setter(value: str, parameters: ParameterSet) -> bool:
        option = value.strip()
        heading_key = None
        if option.startswith("+"):
            heading_key, option = "catheadings", option.lstrip("+")
        elif option.startswith("-"):
            heading_key, option = "catnotheadings", option.lstrip("-")

        operator, members = split_category_option(option)
        names: list[str] = []
        for member in members:
            member = member.strip()
            if member in ("", "_none_"):
                if excluding or comparison is not ComparisonKind.EQUALS:
                    continue
                parameters.include_uncategorized = True
                names.append("")
            elif comparison is ComparisonKind.EQUALS:
                names.append(normalize_title(member))
            else:
                names.append(member.replace(" ", "_"))
        if not names:
            return False

        new = CategoryFilter(comparison, operator, _unique(names))
        parameters.set(target, add_filter(parameters.get(target, ()), new))
        if heading_key:
            parameters.set(heading_key, _unique(parameters.get(heading_key, ()) + new.names))
        return True

    return setter


def namespace_list(target: str) -> Setter:
    """Namespace names or numbers separated by `|`; empty means main."""

    def setter(value: str, parameters: ParameterSet) -> bool:
        indexes: list[int] = []
        for item in value.split("|"):
            index = parameters.settings.namespace_index(item)
            if index is None:
                return False
            indexes.append(index)
        parameters.set(target, _unique(parameters.get(target, ()) + tuple(indexes)))
        return True

    return setter


def page(target: str) -> Setter:
    def setter(value: str, parameters: ParameterSet) -> bool:
        ref = parse_page_ref(value, parameters.settings.namespaces)
        if ref is None:
            return False
        parameters.set(target, ref)
        return True

    return setter


def page_groups(target: str, *, default_namespace: int = NS_MAIN) -> Setter:
    """Accumulate one `|`-separated group of page references per line.

    Titles without a namespace prefix are placed in `default_namespace`.
    """

    def setter(value: str, parameters: ParameterSet) -> bool:
        group: list[PageRef] = []
        for item in value.split("|"):
            ref = _page_in(item, default_namespace, parameters)
            if ref is not None:
                group.append(ref)
        if not group:
            return False
        groups: Tuple[Tuple[PageRef, ...], ...] = parameters.get(target, ())
        parameters.set(target, _unique(groups + (_unique(group),)))
        return True

    return setter


def _page_in(item: str, default_namespace: int, parameters: ParameterSet) -> Optional[PageRef]:
    item = item.strip()
    if not item:
        return None
    if ":" not in item:
        return PageRef(default_namespace, normalize_title(item))
    return parse_page_ref(item, parameters.settings.namespaces)


def title_patterns(target: str, *, separator: Optional[str] = "|") -> Setter:
    """Accumulate title patterns, spaces stored as underscores."""

    def setter(value: str, parameters: ParameterSet) -> bool:
        items = value.split(separator) if separator else [value]
        patterns = tuple(item.strip().replace(" ", "_") for item in items if item.strip())
        if not patterns:
            return False
        parameters.set(target, _unique(parameters.get(target, ()) + patterns))
        return True

    return setter


def title_bound(target: str) -> Setter:
    def setter(value: str, parameters: ParameterSet) -> bool:
        bound = normalize_title(value)
        if not bound:
            return False
        parameters.set(target, bound)
        return True

    return setter


def user(target: str) -> Setter:
    def setter(value: str, parameters: ParameterSet) -> bool:
        name = value.strip().replace("_", " ")
        if not name:
            return False
        parameters.set(target, name)
        return True

    return setter


def timestamp(target: str) -> Setter:
    """Keep only digits and right-pad to a 14-digit `YYYYMMDDHHMMSS` value."""

    def setter(value: str, parameters: ParameterSet) -> bool:
        digits = "".join(_DIGITS.findall(value))
        if not digits or len(digits) > 14:
            return False
        parameters.set(target, digits.ljust(14, "0"))
        return True

    return setter
