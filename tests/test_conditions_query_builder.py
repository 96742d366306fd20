from __future__ import annotations

import sqlite3
import unittest

from dynamic_page_list.ports.db_api.conditions import (
    C,
    ColumnComparison,
    Condition,
    ConditionGroup,
    CountCondition,
    Exists,
    NotCondition,
    OrderBy,
)
from dynamic_page_list.ports.db_api.database import Database
from dynamic_page_list.ports.db_api.dialects import PostgresDialect, SQLiteDialect
from dynamic_page_list.ports.db_api.query_builder import (
    ParamNameGenerator,
    append_limit_offset,
    compile_order_by,
    compile_where,
)


class ConditionsTests(unittest.TestCase):
    def test_condition_factory_methods(self) -> None:
        samples = [
            ("eq", C.eq("page_len", 10), "=", False),
            ("ne", C.ne("page_len", 10), "<>", False),
            ("lt", C.lt("page_title", "M"), "<", False),
            ("le", C.le("page_title", "M"), "<=", False),
            ("gt", C.gt("page_title", "C"), ">", False),
            ("ge", C.ge("page_title", "C"), ">=", False),
            ("like", C.like("page_title", "A%"), "LIKE", False),
            ("not_like", C.not_like("page_title", "A%"), "NOT LIKE", False),
            ("regexp", C.regexp("page_title", "^A"), "REGEXP", False),
            ("is_null", C.is_null("page_touched"), "IS NULL", True),
            ("is_not_null", C.is_not_null("page_touched"), "IS NOT NULL", True),
            ("in_", C.in_("page_namespace", [0, 12]), "IN", False),
            ("not_in", C.not_in("page_namespace", [0]), "NOT IN", False),
        ]

        for name, condition, op, unary in samples:
            with self.subTest(name=name):
                self.assertIsInstance(condition, Condition)
                self.assertEqual(condition.op, op)
                self.assertEqual(condition.is_unary, unary)

    def test_group_factory_methods(self) -> None:
        group_and = C.and_(C.eq("page_namespace", 0), C.eq("page_title", "A"))
        group_or = C.or_([C.eq("page_title", "A"), C.eq("page_title", "B")])
        negated = C.not_(C.eq("page_is_redirect", 1))

        self.assertIsInstance(group_and, ConditionGroup)
        self.assertEqual(group_and.operator, "AND")
        self.assertEqual(len(group_and.items), 2)
        self.assertEqual(group_or.operator, "OR")
        self.assertEqual(len(group_or.items), 2)
        self.assertIsInstance(negated, NotCondition)

    def test_subquery_factory_methods(self) -> None:
        exists = C.exists(
            "revision",
            "r",
            C.col_eq("r.rev_page", "p.page_id"),
            group_by="r.rev_page",
            having=C.count(">=", 2),
        )
        missing = C.not_exists("categorylinks", "cl", C.col_eq("cl.cl_from", "p.page_id"))

        self.assertIsInstance(exists, Exists)
        self.assertEqual(exists.group_by, "r.rev_page")
        self.assertEqual(exists.having, CountCondition(">=", 2))
        self.assertIsInstance(exists.where.items[0], ColumnComparison)
        self.assertIsInstance(missing, NotCondition)
        self.assertIsInstance(missing.item, Exists)

    def test_group_factory_validation(self) -> None:
        with self.assertRaises(ValueError):
            C.and_()
        with self.assertRaises(TypeError):
            C.or_(123)  # type: ignore[arg-type]
        with self.assertRaises(TypeError):
            C.not_(123)  # type: ignore[arg-type]

    def test_order_by_defaults(self) -> None:
        order = OrderBy("page_title")
        self.assertEqual(order.col, "page_title")
        self.assertFalse(order.desc)
        self.assertIsNone(order.collation)


class QueryBuilderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.named = SQLiteDialect()
        self.positional = PostgresDialect()

    def test_compile_where_with_none_and_empty_list(self) -> None:
        none_fragment = compile_where(None, self.named)
        empty_fragment = compile_where([], self.named)
        self.assertEqual(none_fragment.sql, "")
        self.assertIsNone(none_fragment.params)
        self.assertEqual(empty_fragment.sql, "")
        self.assertIsNone(empty_fragment.params)

    def test_compile_where_qualified_columns(self) -> None:
        fragment = compile_where(
            [C.eq("p.page_namespace", 0), C.is_not_null("p.page_touched")], self.named
        )
        self.assertEqual(
            fragment.sql,
            ' WHERE "p"."page_namespace" = :p_page_namespace_1 AND "p"."page_touched" IS NOT NULL',
        )
        self.assertEqual(fragment.params, {"p_page_namespace_1": 0})

    def test_compile_where_in_named_positional_and_empty(self) -> None:
        named = compile_where(C.in_("page_namespace", [0, 12]), self.named)
        positional = compile_where(C.not_in("page_namespace", [0, 12]), self.positional)
        empty_in = compile_where(C.in_("page_namespace", []), self.named)
        empty_not_in = compile_where(C.not_in("page_namespace", []), self.named)

        self.assertEqual(
            named.sql, ' WHERE "page_namespace" IN (:page_namespace_1, :page_namespace_2)'
        )
        self.assertEqual(named.params, {"page_namespace_1": 0, "page_namespace_2": 12})
        self.assertEqual(positional.sql, ' WHERE "page_namespace" NOT IN (%s, %s)')
        self.assertEqual(positional.params, [0, 12])
        self.assertEqual(empty_in.sql, " WHERE 1=0")
        self.assertEqual(empty_not_in.sql, " WHERE 1=1")

    def test_compile_where_grouped_or_not(self) -> None:
        grouped = compile_where(
            C.or_(C.eq("page_title", "A"), C.eq("page_title", "B")), self.named
        )
        negated = compile_where(C.not_(C.eq("page_is_redirect", 1)), self.named)

        self.assertEqual(grouped.sql, ' WHERE ("page_title" = :page_title_1 OR "page_title" = :page_title_2)')
        self.assertEqual(grouped.params, {"page_title_1": "A", "page_title_2": "B"})
        self.assertEqual(negated.sql, ' WHERE NOT ("page_is_redirect" = :page_is_redirect_1)')

    def test_fold_case_lowers_both_sides(self) -> None:
        fragment = compile_where(C.like("page_title", "a%", fold_case=True), self.named)
        self.assertEqual(fragment.sql, ' WHERE LOWER("page_title") LIKE LOWER(:page_title_1)')

    def test_regexp_operator_follows_dialect(self) -> None:
        sqlite_fragment = compile_where(C.regexp("page_title", "^A"), self.named)
        postgres_fragment = compile_where(C.regexp("page_title", "^A"), self.positional)

        self.assertEqual(sqlite_fragment.sql, ' WHERE "page_title" REGEXP :page_title_1')
        self.assertEqual(postgres_fragment.sql, ' WHERE "page_title" ~ %s')

    def test_compile_exists_with_group_by_and_having(self) -> None:
        fragment = compile_where(
            C.exists(
                "revision",
                "r",
                C.col_eq("r.rev_page", "p.page_id"),
                C.ge("r.rev_timestamp", "20200101000000"),
                group_by="r.rev_page",
                having=C.count(">=", 2),
            ),
            self.named,
        )

        self.assertEqual(
            fragment.sql,
            ' WHERE EXISTS (SELECT 1 FROM "revision" AS "r" WHERE ("r"."rev_page" = "p"."page_id"'
            ' AND "r"."rev_timestamp" >= :r_rev_timestamp_1) GROUP BY "r"."rev_page"'
            " HAVING COUNT(*) >= :count_2)",
        )
        self.assertEqual(fragment.params, {"r_rev_timestamp_1": "20200101000000", "count_2": 2})

    def test_compile_exists_positional(self) -> None:
        fragment = compile_where(
            C.not_exists(
                "categorylinks",
                "cl",
                C.col_eq("cl.cl_from", "p.page_id"),
                C.eq("cl.cl_to", "Old"),
            ),
            self.positional,
        )

        self.assertEqual(
            fragment.sql,
            ' WHERE NOT (EXISTS (SELECT 1 FROM "categorylinks" AS "cl" WHERE'
            ' ("cl"."cl_from" = "p"."page_id" AND "cl"."cl_to" = %s)))',
        )
        self.assertEqual(fragment.params, ["Old"])

    def test_invalid_operators_raise(self) -> None:
        with self.assertRaises(ValueError):
            compile_where(C.col_cmp("a", "LIKE", "b"), self.named)
        with self.assertRaises(ValueError):
            compile_where(
                C.exists("revision", "r", C.col_eq("r.rev_page", "p.page_id"), having=C.count("!", 1)),
                self.named,
            )

    def test_shared_generator_keeps_names_unique(self) -> None:
        generator = ParamNameGenerator()
        first = compile_where(C.eq("page_title", "A"), self.named, generator=generator)
        second = compile_where(C.eq("page_title", "B"), self.named, generator=generator)

        self.assertEqual(set(first.params) & set(second.params), set())

    def test_compile_order_by(self) -> None:
        sql = compile_order_by(
            [OrderBy("p.page_len", desc=True), OrderBy("p.page_title", collation="NOCASE")],
            self.named,
        )
        self.assertEqual(sql, ' ORDER BY "p"."page_len" DESC, "p"."page_title" COLLATE NOCASE ASC')
        self.assertEqual(compile_order_by(None, self.named), "")

    def test_compile_order_by_rejects_unsafe_collation(self) -> None:
        with self.assertRaises(ValueError):
            compile_order_by([OrderBy("page_title", collation="x; DROP TABLE page")], self.named)

    def test_append_limit_offset_named(self) -> None:
        sql, params = append_limit_offset(
            'SELECT * FROM "page"', {"a_1": 1}, limit=10, offset=5, dialect=self.named
        )
        self.assertEqual(sql, 'SELECT * FROM "page" LIMIT :__limit OFFSET :__offset')
        self.assertEqual(params, {"a_1": 1, "__limit": 10, "__offset": 5})

    def test_append_limit_offset_positional(self) -> None:
        sql, params = append_limit_offset(
            'SELECT * FROM "page"', [1], limit=10, offset=None, dialect=self.positional
        )
        self.assertEqual(sql, 'SELECT * FROM "page" LIMIT %s')
        self.assertEqual(params, [1, 10])

    def test_offset_without_limit_uses_unlimited_literal(self) -> None:
        sqlite_sql, sqlite_params = append_limit_offset(
            "SELECT 1", None, limit=None, offset=5, dialect=self.named
        )
        postgres_sql, postgres_params = append_limit_offset(
            "SELECT 1", None, limit=None, offset=5, dialect=self.positional
        )

        self.assertEqual(sqlite_sql, "SELECT 1 LIMIT -1 OFFSET :__offset")
        self.assertEqual(sqlite_params, {"__offset": 5})
        self.assertEqual(postgres_sql, "SELECT 1 LIMIT ALL OFFSET %s")
        self.assertEqual(postgres_params, [5])

    def test_no_paging_keeps_empty_params(self) -> None:
        sql, params = append_limit_offset("SELECT 1", None, limit=None, offset=None, dialect=self.named)
        self.assertEqual((sql, params), ("SELECT 1", None))

    def test_compiled_fragment_runs_on_sqlite(self) -> None:
        conn = sqlite3.connect(":memory:")
        db = Database(conn, self.named)
        db.execute('CREATE TABLE "page" ("page_id" INTEGER, "page_title" TEXT);')
        db.execute('CREATE TABLE "revision" ("rev_page" INTEGER, "rev_timestamp" TEXT);')
        for page_id, title in ((1, "Alpha"), (2, "Beta"), (3, "Gamma")):
            db.execute(
                'INSERT INTO "page" VALUES (:id, :title);', {"id": page_id, "title": title}
            )
        for page_id in (1, 1, 2):
            db.execute('INSERT INTO "revision" VALUES (:id, :ts);', {"id": page_id, "ts": "2021"})

        where = compile_where(
            [
                C.or_(C.regexp("p.page_title", "^[AB]"), C.eq("p.page_title", "Gamma")),
                C.exists(
                    "revision",
                    "r",
                    C.col_eq("r.rev_page", "p.page_id"),
                    group_by="r.rev_page",
                    having=C.count(">=", 2),
                ),
            ],
            self.named,
        )
        rows = db.fetchall(f'SELECT "p"."page_title" FROM "page" AS "p"{where.sql}', where.params)

        self.assertEqual([row["page_title"] for row in rows], ["Alpha"])
        db.close()


if __name__ == "__main__":
    unittest.main()
