"""Tagged category filter structure used by inclusion and exclusion parameters."""

from __future__ import annotations

import html
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Tuple


class ComparisonKind(str, Enum):
    """How category names are compared against stored category links."""

    EQUALS = "="
    LIKE = "LIKE"
    REGEXP = "REGEXP"


class OperatorKind(str, Enum):
    """How the names of one filter combine."""

    AND = "AND"
    OR = "OR"


@dataclass(frozen=True)
class CategoryFilter:
    """One directive line worth of category names.

    Attributes:
        comparison: Comparison applied to every name.
        operator: `OR` when any name may match, `AND` when all must.
        names: Category names in database-key form; the empty string stands for
            the uncategorized pseudo-category.
    """

    comparison: ComparisonKind
    operator: OperatorKind
    names: Tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.names:
            raise ValueError("CategoryFilter must contain at least one name.")


CategoryFilters = Tuple[CategoryFilter, ...]


def split_category_option(option: str) -> Tuple[OperatorKind, List[str]]:
    """Split a raw option on `|` (OR) or, failing that, on `&` (AND).

    HTML entities are decoded first, so `&amp;` also separates AND members.
    """

    option = html.unescape(option)
    if "|" in option:
        return OperatorKind.OR, option.split("|")
    return OperatorKind.AND, option.split("&")


def add_filter(filters: CategoryFilters, new: CategoryFilter) -> CategoryFilters:
    """Append a filter unless an identical one is already present."""

    if new in filters:
        return filters
    return filters + (new,)


def count_members(filters: Iterable[CategoryFilter]) -> int:
    """Total number of category names across filters."""

    return sum(len(item.names) for item in filters)
