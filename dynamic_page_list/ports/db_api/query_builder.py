"""SQL fragment builders for filtering, sorting, and paging.

This module centralizes SQL string compilation from condition trees. It keeps
the content store focused on mapping query specifications onto tables while
making SQL generation reusable across dialects.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ...core.contracts import DialectPort
from ...core.types import NamedParams, PositionalParams, QueryParams
from .conditions import (
    ColumnComparison,
    Condition,
    ConditionGroup,
    CountCondition,
    Exists,
    NotCondition,
    OrderBy,
    WhereExpression,
)

WhereInput = Optional[Sequence[WhereExpression] | WhereExpression]

_COLLATION_NAME = re.compile(r"^[A-Za-z0-9_]+$")
_COMPARISON_OPERATORS = frozenset({"=", "<>", "<", "<=", ">", ">="})


@dataclass(frozen=True)
class CompiledFragment:
    """Represents a compiled SQL fragment with its bound parameters."""

    sql: str
    params: QueryParams


class ParamNameGenerator:
    """Generates safe, unique parameter names for named SQL styles.

    One generator must be shared by every fragment of a statement so that
    named parameters never collide.
    """

    def __init__(self) -> None:
        self._counter = 0

    def next(self, base: str) -> str:
        """Return a deterministic parameter name based on a column hint."""

        self._counter += 1
        safe = "".join(ch if ch.isalnum() or ch == "_" else "_" for ch in base)
        return f"{safe}_{self._counter}"


def compile_where(
    where: WhereInput,
    dialect: DialectPort,
    *,
    generator: Optional[ParamNameGenerator] = None,
) -> CompiledFragment:
    """Compile one or many expressions into a SQL `WHERE` fragment.

    Multiple top-level expressions are combined using `AND`.

    Args:
        where: A single expression, a list of expressions, or `None`.
        dialect: SQL dialect used for identifier quoting and placeholders.
        generator: Shared parameter name generator for the statement.

    Returns:
        A compiled SQL fragment and parameters. Empty fragment if no condition.
    """

    if where is None:
        return CompiledFragment("", None)

    expressions = list(where) if isinstance(where, (list, tuple)) else [where]
    if not expressions:
        return CompiledFragment("", None)

    generator = generator or ParamNameGenerator()
    clauses: List[str] = []
    params = empty_params(dialect)
    for item in expressions:
        fragment = compile_expression(item, dialect, generator)
        clauses.append(fragment.sql)
        merge_params(params, fragment.params)

    return CompiledFragment(f" WHERE {' AND '.join(clauses)}", params)


def compile_expression(
    expression: WhereExpression, dialect: DialectPort, generator: ParamNameGenerator
) -> CompiledFragment:
    """Compile any condition tree node into SQL and parameters."""

    if isinstance(expression, Condition):
        return _compile_condition(expression, dialect, generator)
    if isinstance(expression, ColumnComparison):
        if expression.op not in _COMPARISON_OPERATORS:
            raise ValueError(f"Unsupported column comparison operator: {expression.op}")
        return CompiledFragment(
            f"{dialect.q(expression.left)} {expression.op} {dialect.q(expression.right)}",
            empty_params(dialect),
        )
    if isinstance(expression, ConditionGroup):
        if expression.operator not in ("AND", "OR"):
            raise ValueError(f"Unsupported group operator: {expression.operator}")
        params = empty_params(dialect)
        parts: List[str] = []
        for item in expression.items:
            fragment = compile_expression(item, dialect, generator)
            parts.append(fragment.sql)
            merge_params(params, fragment.params)
        return CompiledFragment(f"({f' {expression.operator} '.join(parts)})", params)
    if isinstance(expression, NotCondition):
        inner = compile_expression(expression.item, dialect, generator)
        return CompiledFragment(f"NOT ({inner.sql})", inner.params)
    if isinstance(expression, Exists):
        inner = compile_subquery("1", expression, dialect, generator)
        return CompiledFragment(f"EXISTS {inner.sql}", inner.params)
    raise TypeError(f"Unsupported expression type: {type(expression).__name__}")


def compile_subquery(
    select_sql: str,
    source: Exists,
    dialect: DialectPort,
    generator: ParamNameGenerator,
    *,
    suffix: str = "",
) -> CompiledFragment:
    """Compile `(SELECT <select_sql> FROM table AS alias WHERE ... [GROUP BY ... HAVING ...])`."""

    where = compile_expression(source.where, dialect, generator)
    sql = (
        f"(SELECT {select_sql} FROM {dialect.q(source.table)} AS {dialect.q(source.alias)}"
        f" WHERE {where.sql}"
    )
    params = empty_params(dialect)
    merge_params(params, where.params)
    if source.group_by is not None:
        sql += f" GROUP BY {dialect.q(source.group_by)}"
    if source.having is not None:
        having = _compile_count(source.having, dialect, generator)
        sql += f" HAVING {having.sql}"
        merge_params(params, having.params)
    return CompiledFragment(f"{sql}{suffix})", params)


def compile_order_by(
    order_by: Optional[Sequence[OrderBy]], dialect: DialectPort
) -> str:
    """Compile `ORDER BY` clause from ordering inputs.

    Raises:
        ValueError: If a collation name is not a plain identifier.
    """

    if not order_by:
        return ""

    parts = []
    for item in order_by:
        sql = dialect.q(item.col)
        if item.collation:
            if not _COLLATION_NAME.match(item.collation):
                raise ValueError(f"Invalid collation name: {item.collation!r}")
            sql += f" COLLATE {item.collation}"
        parts.append(f"{sql} {'DESC' if item.desc else 'ASC'}")
    return f" ORDER BY {', '.join(parts)}"


def append_limit_offset(
    sql: str,
    params: QueryParams,
    *,
    limit: Optional[int],
    offset: Optional[int],
    dialect: DialectPort,
) -> Tuple[str, QueryParams]:
    """Append pagination clauses and merge parameters.

    An offset without a limit is emitted with the dialect's unlimited `LIMIT`.
    """

    if offset is not None and limit is None:
        sql += f" LIMIT {dialect.unlimited}"

    if dialect.paramstyle == "named":
        named_params: NamedParams = {}
        if isinstance(params, dict):
            named_params.update(params)
        if limit is not None:
            named_params["__limit"] = limit
            sql += " LIMIT :__limit"
        if offset is not None:
            named_params["__offset"] = offset
            sql += " OFFSET :__offset"
        return sql, named_params if named_params else None

    positional_params: PositionalParams = []
    if isinstance(params, list):
        positional_params.extend(params)
    if limit is not None:
        sql += f" LIMIT {dialect.placeholder('limit')}"
        positional_params.append(limit)
    if offset is not None:
        sql += f" OFFSET {dialect.placeholder('offset')}"
        positional_params.append(offset)
    return sql, positional_params if positional_params else None


def _compile_condition(
    condition: Condition,
    dialect: DialectPort,
    generator: ParamNameGenerator,
) -> CompiledFragment:
    """Compile one condition into SQL and parameters."""

    col_sql = dialect.q(condition.col)
    if condition.fold_case:
        col_sql = f"LOWER({col_sql})"

    if condition.is_unary:
        return CompiledFragment(f"{col_sql} {condition.op}", empty_params(dialect))

    if condition.op in ("IN", "NOT IN"):
        values = list(condition.values or [])
        if not values:
            return CompiledFragment(
                "1=0" if condition.op == "IN" else "1=1", empty_params(dialect)
            )

        keys = [generator.next(condition.col) for _ in values]
        if dialect.paramstyle == "named":
            placeholders = ", ".join(f":{key}" for key in keys)
            return CompiledFragment(
                f"{col_sql} {condition.op} ({placeholders})",
                {key: value for key, value in zip(keys, values)},
            )

        placeholders = ", ".join(dialect.placeholder(key) for key in keys)
        return CompiledFragment(f"{col_sql} {condition.op} ({placeholders})", list(values))

    op = condition.op
    if op == "REGEXP":
        op = dialect.regexp_operator

    key = generator.next(condition.col)
    placeholder = f":{key}" if dialect.paramstyle == "named" else dialect.placeholder(key)
    if condition.fold_case:
        placeholder = f"LOWER({placeholder})"
    params = {key: condition.value} if dialect.paramstyle == "named" else [condition.value]
    return CompiledFragment(f"{col_sql} {op} {placeholder}", params)


def _compile_count(
    condition: CountCondition, dialect: DialectPort, generator: ParamNameGenerator
) -> CompiledFragment:
    if condition.op not in _COMPARISON_OPERATORS:
        raise ValueError(f"Unsupported count operator: {condition.op}")
    key = generator.next("count")
    if dialect.paramstyle == "named":
        return CompiledFragment(f"COUNT(*) {condition.op} :{key}", {key: condition.value})
    return CompiledFragment(
        f"COUNT(*) {condition.op} {dialect.placeholder(key)}", [condition.value]
    )


def empty_params(dialect: DialectPort) -> QueryParams:
    """Return empty parameters matching dialect param style."""

    return {} if dialect.paramstyle == "named" else []


def merge_params(target: QueryParams, source: QueryParams) -> None:
    """Merge parameter collections in place."""

    if isinstance(target, dict) and isinstance(source, dict):
        target.update(source)
    elif isinstance(target, list) and isinstance(source, list):
        target.extend(source)
