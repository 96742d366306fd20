from __future__ import annotations

import sqlite3
import unittest

from dynamic_page_list.ports.db_api.database import Database
from dynamic_page_list.ports.db_api.dialects import MySQLDialect, SQLiteDialect
from dynamic_page_list.ports.db_api.schema import (
    PAGE,
    TABLES,
    apply_schema,
    clview_sql,
    create_indexes_sql,
    create_schema_sql,
    create_table_sql,
)


class SchemaSqlTests(unittest.TestCase):
    def test_create_table_sql(self) -> None:
        sql = create_table_sql(PAGE, SQLiteDialect())

        self.assertTrue(sql.startswith('CREATE TABLE "page" ('))
        self.assertIn('"page_id" INTEGER PRIMARY KEY', sql)
        self.assertIn('"page_is_redirect" INTEGER NOT NULL DEFAULT 0', sql)
        self.assertIn('"page_touched" TEXT', sql)

    def test_mysql_text_columns_are_bounded(self) -> None:
        sql = create_table_sql(PAGE, MySQLDialect(), if_not_exists=True)

        self.assertTrue(sql.startswith("CREATE TABLE IF NOT EXISTS `page`"))
        self.assertIn("`page_title` VARCHAR(255) NOT NULL", sql)

    def test_index_statements(self) -> None:
        self.assertEqual(
            create_indexes_sql(PAGE, SQLiteDialect()),
            [
                'CREATE INDEX "idx_page_page_namespace_page_title" ON "page" '
                '("page_namespace", "page_title");'
            ],
        )

    def test_schema_statement_count(self) -> None:
        dialect = SQLiteDialect()
        with_indexes = create_schema_sql(dialect)
        without_indexes = create_schema_sql(dialect, if_not_exists=True)

        index_count = sum(len(table.indexes) for table in TABLES)
        self.assertEqual(len(with_indexes), len(TABLES) + index_count)
        self.assertEqual(len(without_indexes), len(TABLES))

    def test_clview_sql(self) -> None:
        self.assertTrue(clview_sql().startswith("CREATE VIEW dpl_clview AS SELECT"))
        self.assertTrue(clview_sql("other").startswith("CREATE VIEW other AS"))


class ApplySchemaTests(unittest.TestCase):
    def test_apply_schema_creates_tables_and_view(self) -> None:
        db = Database(sqlite3.connect(":memory:"), SQLiteDialect())

        apply_schema(db)

        for table in TABLES:
            with self.subTest(table=table.name):
                self.assertTrue(db.table_exists(table.name))
        self.assertTrue(db.table_exists("dpl_clview"))
        db.close()

    def test_apply_schema_without_view(self) -> None:
        db = Database(sqlite3.connect(":memory:"), SQLiteDialect())

        apply_schema(db, clview=None)

        self.assertTrue(db.table_exists("page"))
        self.assertFalse(db.table_exists("dpl_clview"))
        db.close()

    def test_view_maps_uncategorized_pages_to_empty_category(self) -> None:
        db = Database(sqlite3.connect(":memory:"), SQLiteDialect())
        apply_schema(db)
        db.execute(
            'INSERT INTO "page" ("page_id", "page_namespace", "page_title") VALUES (1, 0, \'A\'), (2, 0, \'B\');'
        )
        db.execute('INSERT INTO "categorylinks" ("cl_from", "cl_to") VALUES (1, \'Foo\');')

        rows = db.fetchall('SELECT "cl_from", "cl_to" FROM "dpl_clview" ORDER BY "cl_from";')

        self.assertEqual(
            [(row["cl_from"], row["cl_to"]) for row in rows], [(1, "Foo"), (2, "")]
        )
        db.close()


if __name__ == "__main__":
    unittest.main()
