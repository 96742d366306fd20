"""SQL content store executing query specifications over the page schema.

Every filter compiles to a correlated `EXISTS` subquery on the page row so
that the outer statement never multiplies rows through joins. Columns needed
only for ordering or per-row enrichments are selected as scalar subqueries.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Optional, Sequence, Tuple

from ...core.categories import CategoryFilter, ComparisonKind, OperatorKind
from ...core.contracts import DatabasePort, QueryResult
from ...core.query_spec import (
    ExtraField,
    OrderMethod,
    QuerySpecification,
    RedirectMode,
    Target,
    TitleFilter,
)
from ...core.rows import row_from_mapping
from ...core.settings import Settings
from ...core.titles import NS_FILE, PageRef
from .conditions import C, Exists, OrderBy, WhereExpression
from .query_builder import (
    CompiledFragment,
    ParamNameGenerator,
    append_limit_offset,
    compile_order_by,
    compile_subquery,
    compile_where,
    empty_params,
    merge_params,
)

logger = logging.getLogger(__name__)

PAGE_COLUMNS = ("page_namespace", "page_title", "page_touched", "page_len", "page_counter")

ORDER_COLUMNS = {
    OrderMethod.TITLE: ("p.page_namespace", "p.page_title"),
    OrderMethod.TITLE_WITHOUT_NAMESPACE: ("p.page_title",),
    OrderMethod.SORTKEY: ("sortkey",),
    OrderMethod.CATEGORY: ("cat_sort",),
    OrderMethod.CATEGORY_ADD: ("cl_timestamp",),
    OrderMethod.PAGE_TOUCHED: ("p.page_touched",),
    OrderMethod.FIRST_EDIT: ("first_edit",),
    OrderMethod.LAST_EDIT: ("last_edit",),
    OrderMethod.SIZE: ("p.page_len",),
    OrderMethod.COUNTER: ("p.page_counter",),
    OrderMethod.NONE: (),
}

# Columns the order collation applies to.
_TEXT_COLUMNS = frozenset({"p.page_title", "sortkey", "cat_sort"})

_USER_FIELDS = frozenset(
    {ExtraField.USER, ExtraField.AUTHOR, ExtraField.LAST_EDITOR, ExtraField.CONTRIBUTION}
)


def category_test(comparison: ComparisonKind, column: str, name: str) -> WhereExpression:
    if comparison is ComparisonKind.LIKE:
        return C.like(column, name)
    if comparison is ComparisonKind.REGEXP:
        return C.regexp(column, name)
    return C.eq(column, name)


def ref_match(
    namespace_column: str, title_column: str, group: Sequence[PageRef]
) -> WhereExpression:
    """Match any page of `group` by namespace and title."""

    return C.or_(
        [
            C.and_(C.eq(namespace_column, ref.namespace), C.eq(title_column, ref.title))
            for ref in group
        ]
    )


def title_conditions(
    titles: TitleFilter, namespace_column: Optional[str], title_column: str
) -> List[WhereExpression]:
    """Conditions for title equality, patterns, and bounds.

    `namespace_column` is `None` for sources that only store titles (image
    links); equality then compares the title alone.
    """

    conditions: List[WhereExpression] = []
    fold = titles.ignore_case
    if titles.equals is not None:
        if namespace_column is not None:
            conditions.append(C.eq(namespace_column, titles.equals.namespace))
        conditions.append(C.eq(title_column, titles.equals.title))
    if titles.like:
        conditions.append(
            C.or_([C.like(title_column, item, fold_case=fold) for item in titles.like])
        )
    for item in titles.not_like:
        conditions.append(C.not_like(title_column, item, fold_case=fold))
    if titles.regexp:
        conditions.append(C.or_([C.regexp(title_column, item) for item in titles.regexp]))
    if titles.not_regexp:
        conditions.append(
            C.not_(C.or_([C.regexp(title_column, item) for item in titles.not_regexp]))
        )
    if titles.lt is not None:
        conditions.append(C.lt(title_column, titles.lt))
    if titles.gt is not None:
        conditions.append(C.gt(title_column, titles.gt))
    return conditions


class _StatementBuilder:
    """Builds the row and count statements for one query specification.

    Subquery aliases are numbered per statement so nested correlations never
    shadow each other.
    """

    def __init__(self, spec: QuerySpecification, db: DatabasePort, clview: str):
        self.spec = spec
        self.dialect = db.dialect
        self.clview = clview
        self._aliases = 0

    def alias(self, prefix: str) -> str:
        self._aliases += 1
        return f"{prefix}{self._aliases}"

    def page_conditions(self, page: str) -> List[WhereExpression]:
        spec = self.spec
        conditions: List[WhereExpression] = []
        for item in spec.categories:
            conditions.append(self.category_condition(item, page))
        for item in spec.not_categories:
            conditions.append(C.not_(self.category_condition(item, page, excluded=True)))
        if spec.namespaces:
            conditions.append(C.in_(f"{page}.page_namespace", spec.namespaces))
        if spec.not_namespaces:
            conditions.append(C.not_in(f"{page}.page_namespace", spec.not_namespaces))
        conditions.extend(
            title_conditions(spec.titles, f"{page}.page_namespace", f"{page}.page_title")
        )
        if spec.redirects is RedirectMode.EXCLUDE:
            conditions.append(C.eq(f"{page}.page_is_redirect", 0))
        elif spec.redirects is RedirectMode.ONLY:
            conditions.append(C.eq(f"{page}.page_is_redirect", 1))
        conditions.extend(self.link_conditions(page))
        conditions.extend(self.author_conditions(page))
        conditions.extend(self.revision_conditions(page))
        return conditions

    def category_condition(
        self, item: CategoryFilter, page: str, *, excluded: bool = False
    ) -> WhereExpression:
        uses_view = self.spec.include_uncategorized and not excluded
        table = self.clview if uses_view else "categorylinks"
        if item.operator is OperatorKind.OR:
            link = self.alias("cl")
            if item.comparison is ComparisonKind.EQUALS:
                test: WhereExpression = C.in_(f"{link}.cl_to", item.names)
            else:
                test = C.or_(
                    [category_test(item.comparison, f"{link}.cl_to", name) for name in item.names]
                )
            return C.exists(table, link, C.col_eq(f"{link}.cl_from", f"{page}.page_id"), test)

        checks = []
        for name in item.names:
            link = self.alias("cl")
            checks.append(
                C.exists(
                    table,
                    link,
                    C.col_eq(f"{link}.cl_from", f"{page}.page_id"),
                    category_test(item.comparison, f"{link}.cl_to", name),
                )
            )
        return C.and_(checks)

    def link_conditions(self, page: str) -> List[WhereExpression]:
        links = self.spec.links
        conditions: List[WhereExpression] = []
        for group in links.links_to:
            conditions.append(self.links_to(page, group))
        for group in links.not_links_to:
            conditions.append(C.not_(self.links_to(page, group)))
        for group in links.links_from:
            conditions.append(self.links_from(page, group))
        for group in links.not_links_from:
            conditions.append(C.not_(self.links_from(page, group)))
        for group in links.uses:
            conditions.append(self.uses(page, group))
        for group in links.not_uses:
            conditions.append(C.not_(self.uses(page, group)))
        for group in links.used_by:
            conditions.append(self.used_by(page, group))
        for group in links.image_used:
            link = self.alias("il")
            conditions.append(
                C.exists(
                    "imagelinks",
                    link,
                    C.col_eq(f"{link}.il_from", f"{page}.page_id"),
                    C.in_(f"{link}.il_to", [ref.title for ref in group]),
                )
            )
        for group in links.image_container:
            conditions.append(C.eq(f"{page}.page_namespace", NS_FILE))
            conditions.append(self.contained_in(f"{page}.page_title", group))
        return conditions

    def links_to(self, page: str, group: Sequence[PageRef]) -> Exists:
        link = self.alias("pl")
        return C.exists(
            "pagelinks",
            link,
            C.col_eq(f"{link}.pl_from", f"{page}.page_id"),
            ref_match(f"{link}.pl_namespace", f"{link}.pl_title", group),
        )

    def links_from(self, page: str, group: Sequence[PageRef]) -> Exists:
        link = self.alias("pl")
        return C.exists(
            "pagelinks",
            link,
            C.col_eq(f"{link}.pl_namespace", f"{page}.page_namespace"),
            C.col_eq(f"{link}.pl_title", f"{page}.page_title"),
            self.source_page(f"{link}.pl_from", group),
        )

    def uses(self, page: str, group: Sequence[PageRef]) -> Exists:
        link = self.alias("tl")
        return C.exists(
            "templatelinks",
            link,
            C.col_eq(f"{link}.tl_from", f"{page}.page_id"),
            ref_match(f"{link}.tl_namespace", f"{link}.tl_title", group),
        )

    def used_by(self, page: str, group: Sequence[PageRef]) -> Exists:
        link = self.alias("tl")
        return C.exists(
            "templatelinks",
            link,
            C.col_eq(f"{link}.tl_namespace", f"{page}.page_namespace"),
            C.col_eq(f"{link}.tl_title", f"{page}.page_title"),
            self.source_page(f"{link}.tl_from", group),
        )

    def contained_in(self, file_column: str, group: Sequence[PageRef]) -> Exists:
        """Some page of `group` embeds the file named by `file_column`."""

        link = self.alias("il")
        return C.exists(
            "imagelinks",
            link,
            C.col_eq(f"{link}.il_to", file_column),
            self.source_page(f"{link}.il_from", group),
        )

    def source_page(self, id_column: str, group: Sequence[PageRef]) -> Exists:
        source = self.alias("src")
        return C.exists(
            "page",
            source,
            C.col_eq(f"{source}.page_id", id_column),
            ref_match(f"{source}.page_namespace", f"{source}.page_title", group),
        )

    def revision_scope(self, revision: str, page: str) -> List[WhereExpression]:
        scope: List[WhereExpression] = [C.col_eq(f"{revision}.rev_page", f"{page}.page_id")]
        if self.spec.revisions.minor_edits == "exclude":
            scope.append(C.eq(f"{revision}.rev_minor_edit", 0))
        return scope

    def edge_revision(self, page: str, user: str, *, first: bool) -> Exists:
        """The first (or last) revision of the page was made by `user`."""

        revision, other = self.alias("rev"), self.alias("rev")
        return C.exists(
            "revision",
            revision,
            *self.revision_scope(revision, page),
            C.eq(f"{revision}.rev_user_text", user),
            C.not_exists(
                "revision",
                other,
                C.col_eq(f"{other}.rev_page", f"{revision}.rev_page"),
                C.col_cmp(
                    f"{other}.rev_timestamp", "<" if first else ">", f"{revision}.rev_timestamp"
                ),
            ),
        )

    def edited_by(self, page: str, user: str) -> Exists:
        revision = self.alias("rev")
        return C.exists(
            "revision",
            revision,
            *self.revision_scope(revision, page),
            C.eq(f"{revision}.rev_user_text", user),
        )

    def author_conditions(self, page: str) -> List[WhereExpression]:
        authors = self.spec.authors
        conditions: List[WhereExpression] = []
        if authors.created_by is not None:
            conditions.append(self.edge_revision(page, authors.created_by, first=True))
        if authors.not_created_by is not None:
            conditions.append(
                C.not_(self.edge_revision(page, authors.not_created_by, first=True))
            )
        if authors.modified_by is not None:
            conditions.append(self.edited_by(page, authors.modified_by))
        if authors.not_modified_by is not None:
            conditions.append(C.not_(self.edited_by(page, authors.not_modified_by)))
        if authors.last_modified_by is not None:
            conditions.append(self.edge_revision(page, authors.last_modified_by, first=False))
        if authors.not_last_modified_by is not None:
            conditions.append(
                C.not_(self.edge_revision(page, authors.not_last_modified_by, first=False))
            )
        return conditions

    def any_revision(
        self, page: str, op: Optional[str] = None, timestamp: Optional[str] = None
    ) -> Exists:
        """Some revision of the page exists (optionally `rev_timestamp <op> timestamp`)."""

        revision = self.alias("rev")
        items = self.revision_scope(revision, page)
        if op == "<":
            items.append(C.lt(f"{revision}.rev_timestamp", timestamp))
        elif op == ">=":
            items.append(C.ge(f"{revision}.rev_timestamp", timestamp))
        return C.exists("revision", revision, items)

    def revision_conditions(self, page: str) -> List[WhereExpression]:
        revisions = self.spec.revisions
        conditions: List[WhereExpression] = []
        if revisions.all_revisions_before is not None:
            conditions.append(self.any_revision(page, "<", revisions.all_revisions_before))
        if revisions.all_revisions_since is not None:
            conditions.append(self.any_revision(page, ">=", revisions.all_revisions_since))
        if revisions.first_revision_since is not None:
            conditions.append(self.any_revision(page))
            conditions.append(
                C.not_(self.any_revision(page, "<", revisions.first_revision_since))
            )
        if revisions.last_revision_before is not None:
            conditions.append(self.any_revision(page))
            conditions.append(
                C.not_(self.any_revision(page, ">=", revisions.last_revision_before))
            )
        for op, value in ((">=", revisions.min_revisions), ("<=", revisions.max_revisions)):
            if value is None:
                continue
            revision = self.alias("rev")
            conditions.append(
                C.exists(
                    "revision",
                    revision,
                    self.revision_scope(revision, page),
                    group_by=f"{revision}.rev_page",
                    having=C.count(op, value),
                )
            )
        return conditions

    def wants(self, order: Optional[OrderMethod], *fields: ExtraField) -> bool:
        if order is not None and order in self.spec.order_methods:
            return True
        return any(item in self.spec.extra_fields for item in fields)

    def category_source(self) -> Tuple[str, Exists]:
        """Category links of the outer page, limited to the first plain inclusion filter."""

        link = self.alias("cl")
        items: List[WhereExpression] = [C.col_eq(f"{link}.cl_from", "p.page_id")]
        for item in self.spec.categories:
            if item.comparison is ComparisonKind.EQUALS:
                items.append(C.in_(f"{link}.cl_to", item.names))
                break
        return link, C.exists("categorylinks", link, items)

    def page_columns(self, generator: ParamNameGenerator) -> CompiledFragment:
        dialect = self.dialect
        q = dialect.q
        columns = [f"{q('p.' + name)} AS {q(name)}" for name in PAGE_COLUMNS]
        params = empty_params(dialect)

        def add(name: str, expression: str, source: Exists, *, suffix: str = "") -> None:
            fragment = compile_subquery(expression, source, dialect, generator, suffix=suffix)
            sql = fragment.sql
            if name == "sortkey":
                sql = f"COALESCE({sql}, {q('p.page_title')})"
            columns.append(f"{sql} AS {q(name)}")
            merge_params(params, fragment.params)

        if self.wants(OrderMethod.SORTKEY):
            link, source = self.category_source()
            add("sortkey", f"MIN({q(link + '.cl_sortkey')})", source)
        if self.wants(OrderMethod.CATEGORY):
            link, source = self.category_source()
            add("cat_sort", f"MIN({q(link + '.cl_to')})", source)
        if self.wants(OrderMethod.CATEGORY_ADD, ExtraField.FIRST_CATEGORY_DATE):
            link, source = self.category_source()
            add("cl_timestamp", f"MIN({q(link + '.cl_timestamp')})", source)
        for name, aggregate, order in (
            ("first_edit", "MIN", OrderMethod.FIRST_EDIT),
            ("last_edit", "MAX", OrderMethod.LAST_EDIT),
        ):
            if self.wants(order, ExtraField.EDIT_DATE):
                revision = self.alias("rev")
                source = C.exists("revision", revision, self.revision_scope(revision, "p"))
                add(name, f"{aggregate}({q(revision + '.rev_timestamp')})", source)
        if self.wants(None, *_USER_FIELDS):
            revision = self.alias("rev")
            source = C.exists("revision", revision, self.revision_scope(revision, "p"))
            # The author is the first editor; every other user field wants the latest.
            direction = "ASC" if ExtraField.AUTHOR in self.spec.extra_fields else "DESC"
            suffix = f" ORDER BY {q(revision + '.rev_timestamp')} {direction} LIMIT 1"
            add("rev_user_text", q(revision + ".rev_user_text"), source, suffix=suffix)
        if self.wants(None, ExtraField.CATEGORIES):
            link = self.alias("cl")
            source = C.exists("categorylinks", link, C.col_eq(f"{link}.cl_from", "p.page_id"))
            add("cats", dialect.group_concat(q(link + ".cl_to")), source)
        return CompiledFragment(", ".join(columns), params)

    def page_order(self) -> List[OrderBy]:
        spec = self.spec
        order: List[OrderBy] = []
        for method in spec.order_methods:
            for column in ORDER_COLUMNS[method]:
                collation = spec.order_collation if column in _TEXT_COLUMNS else None
                order.append(OrderBy(column, desc=spec.descending, collation=collation))
        return order

    def source(
        self, generator: ParamNameGenerator, *, with_columns: bool = True
    ) -> Tuple[str, str, CompiledFragment, List[OrderBy], str]:
        """Return `(columns, from, where, order, identity)` for the target.

        `where` carries every parameter of the statement in placeholder order,
        including those of subquery columns.
        """

        spec = self.spec
        dialect = self.dialect
        q = dialect.q
        if spec.target is Target.PAGES:
            columns = (
                self.page_columns(generator)
                if with_columns
                else CompiledFragment(q("p.page_id"), empty_params(dialect))
            )
            where = compile_where(self.page_conditions("p"), dialect, generator=generator)
            params = empty_params(dialect)
            merge_params(params, columns.params)
            merge_params(params, where.params)
            return (
                columns.sql,
                f"{q('page')} AS {q('p')}",
                CompiledFragment(where.sql, params),
                self.page_order(),
                q("p.page_id"),
            )

        if spec.target is Target.CATEGORIES:
            correlated = C.exists(
                "page", "p", C.col_eq("p.page_id", "c.cl_from"), *self.page_conditions("p")
            )
            return (
                f"{q('c.cl_to')} AS {q('cl_to')}",
                f"{q('categorylinks')} AS {q('c')}",
                compile_where(correlated, dialect, generator=generator),
                [OrderBy("c.cl_to", desc=spec.descending, collation=spec.order_collation)],
                q("c.cl_to"),
            )

        if spec.target is Target.LINK_TARGETS:
            conditions: List[WhereExpression] = []
            if spec.namespaces:
                conditions.append(C.in_("t.pl_namespace", spec.namespaces))
            if spec.not_namespaces:
                conditions.append(C.not_in("t.pl_namespace", spec.not_namespaces))
            conditions.extend(title_conditions(spec.titles, "t.pl_namespace", "t.pl_title"))
            for group in spec.links.links_from:
                conditions.append(self.source_page("t.pl_from", group))
            for group in spec.links.not_links_from:
                conditions.append(C.not_(self.source_page("t.pl_from", group)))
            identity = f"{q('t.pl_namespace')}, {q('t.pl_title')}"
            return (
                f"{q('t.pl_namespace')} AS {q('pl_namespace')}, "
                f"{q('t.pl_title')} AS {q('pl_title')}",
                f"{q('pagelinks')} AS {q('t')}",
                compile_where(conditions, dialect, generator=generator),
                [
                    OrderBy("t.pl_namespace", desc=spec.descending),
                    OrderBy("t.pl_title", desc=spec.descending, collation=spec.order_collation),
                ],
                identity,
            )

        conditions = title_conditions(spec.titles, None, "t.il_to")
        for group in spec.links.image_container:
            conditions.append(self.source_page("t.il_from", group))
        return (
            f"{q('t.il_to')} AS {q('il_to')}",
            f"{q('imagelinks')} AS {q('t')}",
            compile_where(conditions, dialect, generator=generator),
            [OrderBy("t.il_to", desc=spec.descending, collation=spec.order_collation)],
            q("t.il_to"),
        )

    def rows_statement(self) -> CompiledFragment:
        spec = self.spec
        columns, source, where, order, _ = self.source(ParamNameGenerator())
        # Reference targets and categories are always listed once.
        distinct = "DISTINCT " if spec.distinct or spec.target is not Target.PAGES else ""
        if distinct and not self.dialect.distinct_order_collation:
            order = [replace(item, collation=None) for item in order]
        sql = (
            f"SELECT {distinct}{columns} FROM {source}{where.sql}"
            f"{compile_order_by(order, self.dialect)}"
        )
        sql, params = append_limit_offset(
            sql,
            where.params if where.params is not None else empty_params(self.dialect),
            limit=spec.limit,
            offset=spec.offset or None,
            dialect=self.dialect,
        )
        return CompiledFragment(sql, params)

    def count_statement(self) -> CompiledFragment:
        q = self.dialect.q
        _, source, where, _, identity = self.source(ParamNameGenerator(), with_columns=False)
        inner = f"SELECT DISTINCT {identity} FROM {source}{where.sql}"
        return CompiledFragment(
            f"SELECT COUNT(*) AS {q('total')} FROM ({inner}) AS {q('matches')}",
            where.params or None,
        )


class SqlContentStore:
    """Content store backed by a DB-API database holding the page schema.

    Example:
        ```python
        db = Database(sqlite3.connect(":memory:"), SQLiteDialect())
        apply_schema(db)
        store = SqlContentStore(db)
        result = store.select(QuerySpecification(categories=(...,)))
        ```
    """

    def __init__(self, db: DatabasePort, *, settings: Optional[Settings] = None):
        self.db = db
        self.clview = (settings or Settings()).clview_name

    def compile(self, spec: QuerySpecification) -> CompiledFragment:
        """Compile the statement returning the rows of `spec`."""

        return _StatementBuilder(spec, self.db, self.clview).rows_statement()

    def compile_count(self, spec: QuerySpecification) -> CompiledFragment:
        """Compile the statement counting every match of `spec`, ignoring paging."""

        return _StatementBuilder(spec, self.db, self.clview).count_statement()

    def select(self, spec: QuerySpecification) -> QueryResult:
        statement = self.compile(spec)
        rows = self.db.fetchall(statement.sql, statement.params)
        total: Optional[int] = None
        if spec.count_total:
            count = self.compile_count(spec)
            total = int(self.db.fetchvalue(count.sql, count.params, default=0) or 0)
        logger.debug(
            "Selected %d rows for target=%s (total=%s).", len(rows), spec.target.value, total
        )
        return QueryResult(tuple(row_from_mapping(row, spec.target) for row in rows), total)

    def has_view(self, name: str) -> bool:
        return self.db.table_exists(name)
