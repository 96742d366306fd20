"""Query condition primitives for content store filtering and sorting."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Sequence


@dataclass(frozen=True)
class Condition:
    """Represents one SQL condition expression.

    Attributes:
        col: Column name, optionally qualified with a table alias (`p.page_title`).
        op: SQL operator (for example `=`, `IN`, `LIKE`, `REGEXP`, `IS NULL`).
        value: Scalar value for binary operators.
        values: Sequence value for `IN`/`NOT IN`.
        is_unary: Whether the operator is unary (`IS NULL`, `IS NOT NULL`).
        fold_case: Compare lower-cased column and value.
    """

    col: str
    op: str
    value: Any = None
    values: Optional[Sequence[Any]] = None
    is_unary: bool = False
    fold_case: bool = False


@dataclass(frozen=True)
class ColumnComparison:
    """Compares two columns, typically to correlate a subquery with its outer row."""

    left: str
    op: str
    right: str


@dataclass(frozen=True)
class CountCondition:
    """Aggregate `COUNT(*) <op> value`, used as a subquery `HAVING` clause."""

    op: str
    value: int


@dataclass(frozen=True)
class ConditionGroup:
    """Represents a grouped logical expression (`AND`/`OR`)."""

    operator: str
    items: tuple["WhereExpression", ...]


@dataclass(frozen=True)
class NotCondition:
    """Represents a negated expression."""

    item: "WhereExpression"


@dataclass(frozen=True)
class Exists:
    """`EXISTS (SELECT 1 FROM table AS alias WHERE ... [GROUP BY ... HAVING ...])`."""

    table: str
    alias: str
    where: "WhereExpression"
    group_by: Optional[str] = None
    having: Optional[CountCondition] = None


WhereExpression = Condition | ColumnComparison | ConditionGroup | NotCondition | Exists

_EXPRESSION_TYPES = (Condition, ColumnComparison, ConditionGroup, NotCondition, Exists)


class C:
    """Fluent condition factory methods."""

    @staticmethod
    def eq(col: str, val: Any) -> Condition:
        """Build `col = value` condition."""

        return Condition(col=col, op="=", value=val)

    @staticmethod
    def ne(col: str, val: Any) -> Condition:
        return Condition(col=col, op="<>", value=val)

    @staticmethod
    def lt(col: str, val: Any) -> Condition:
        return Condition(col=col, op="<", value=val)

    @staticmethod
    def le(col: str, val: Any) -> Condition:
        return Condition(col=col, op="<=", value=val)

    @staticmethod
    def gt(col: str, val: Any) -> Condition:
        return Condition(col=col, op=">", value=val)

    @staticmethod
    def ge(col: str, val: Any) -> Condition:
        return Condition(col=col, op=">=", value=val)

    @staticmethod
    def like(col: str, pattern: str, *, fold_case: bool = False) -> Condition:
        """Build `col LIKE pattern` condition."""

        return Condition(col=col, op="LIKE", value=pattern, fold_case=fold_case)

    @staticmethod
    def not_like(col: str, pattern: str, *, fold_case: bool = False) -> Condition:
        return Condition(col=col, op="NOT LIKE", value=pattern, fold_case=fold_case)

    @staticmethod
    def regexp(col: str, pattern: str) -> Condition:
        """Build a regular-expression match; the dialect picks the operator."""

        return Condition(col=col, op="REGEXP", value=pattern)

    @staticmethod
    def is_null(col: str) -> Condition:
        return Condition(col=col, op="IS NULL", is_unary=True)

    @staticmethod
    def is_not_null(col: str) -> Condition:
        return Condition(col=col, op="IS NOT NULL", is_unary=True)

    @staticmethod
    def in_(col: str, values: Sequence[Any]) -> Condition:
        """Build `col IN (...)` condition."""

        return Condition(col=col, op="IN", values=list(values))

    @staticmethod
    def not_in(col: str, values: Sequence[Any]) -> Condition:
        return Condition(col=col, op="NOT IN", values=list(values))

    @staticmethod
    def col_eq(left: str, right: str) -> ColumnComparison:
        """Build `left = right` between two columns."""

        return ColumnComparison(left=left, op="=", right=right)

    @staticmethod
    def col_cmp(left: str, op: str, right: str) -> ColumnComparison:
        return ColumnComparison(left=left, op=op, right=right)

    @staticmethod
    def count(op: str, value: int) -> CountCondition:
        return CountCondition(op=op, value=value)

    @staticmethod
    def exists(
        table: str,
        alias: str,
        *items: WhereExpression | Sequence[WhereExpression],
        group_by: Optional[str] = None,
        having: Optional[CountCondition] = None,
    ) -> Exists:
        """Build a correlated `EXISTS` subquery over `table AS alias`."""

        return Exists(
            table=table, alias=alias, where=C.and_(*items), group_by=group_by, having=having
        )

    @staticmethod
    def not_exists(
        table: str,
        alias: str,
        *items: WhereExpression | Sequence[WhereExpression],
        group_by: Optional[str] = None,
        having: Optional[CountCondition] = None,
    ) -> NotCondition:
        return NotCondition(
            item=C.exists(table, alias, *items, group_by=group_by, having=having)
        )

    @staticmethod
    def and_(*items: WhereExpression | Sequence[WhereExpression]) -> ConditionGroup:
        """Build a grouped `AND` expression from items or a single sequence of items."""

        return ConditionGroup(operator="AND", items=_group_items(items))

    @staticmethod
    def or_(*items: WhereExpression | Sequence[WhereExpression]) -> ConditionGroup:
        return ConditionGroup(operator="OR", items=_group_items(items))

    @staticmethod
    def not_(item: WhereExpression) -> NotCondition:
        """Build a negated expression (`NOT (...)`)."""

        return NotCondition(item=_checked(item))


def _checked(item: Any) -> WhereExpression:
    if isinstance(item, _EXPRESSION_TYPES):
        return item
    raise TypeError(
        f"Unsupported where expression {type(item).__name__}; expected one of "
        + ", ".join(kind.__name__ for kind in _EXPRESSION_TYPES)
        + "."
    )


def _group_items(
    items: Sequence[WhereExpression | Sequence[WhereExpression]],
) -> tuple[WhereExpression, ...]:
    if len(items) == 1 and isinstance(items[0], (list, tuple)):
        items = items[0]
    if not items:
        raise ValueError("Grouped condition must contain at least one expression.")
    return tuple(_checked(item) for item in items)


@dataclass(frozen=True)
class OrderBy:
    """Represents one ordering expression."""

    col: str
    desc: bool = False
    collation: Optional[str] = None
