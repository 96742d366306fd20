"""Render a directive against an in-memory SQLite page database."""

from __future__ import annotations

import logging
import sqlite3
import sys
from pathlib import Path

# Allow running this script directly from repository root.
PROJECT_ROOT = next(
    (
        parent
        for parent in Path(__file__).resolve().parents
        if (parent / "dynamic_page_list").exists()
    ),
    None,
)
if PROJECT_ROOT and str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from dynamic_page_list import (
    CurrentDocument,
    Database,
    DirectivePipeline,
    PageRef,
    SQLiteDialect,
    SqlContentStore,
    apply_schema,
)


class ConsoleHost:
    """Minimal host that prints what a wiki engine would do with the side channels."""

    def __init__(self, title: str):
        self.document = CurrentDocument(PageRef(0, title))

    def current_document(self) -> CurrentDocument:
        return self.document

    def disable_caching(self) -> None:
        print("host: caching disabled")

    def set_cache_duration(self, seconds: int) -> None:
        print(f"host: cache for {seconds}s")

    def register_post_render_cleanup(self, hook_name: str) -> None:
        print(f"host: cleanup hook {hook_name!r}")


def seed(db: Database) -> None:
    pages = [
        (1, 0, "Apple_pie", 1200),
        (2, 0, "Banana_bread", 800),
        (3, 0, "Cherry_tart", 1500),
        (4, 0, "Recipes", 300),
    ]
    with db.transaction():
        for page_id, namespace, title, length in pages:
            db.execute(
                'INSERT INTO "page" ("page_id", "page_namespace", "page_title", "page_len") '
                "VALUES (:id, :ns, :title, :len);",
                {"id": page_id, "ns": namespace, "title": title, "len": length},
            )
        for page_id, category in ((1, "Desserts"), (2, "Desserts"), (3, "Desserts"), (2, "Breads")):
            db.execute(
                'INSERT INTO "categorylinks" ("cl_from", "cl_to") VALUES (:id, :cat);',
                {"id": page_id, "cat": category},
            )


def main() -> None:
    logging.basicConfig(level=logging.INFO)

    # 1) Create the page schema and some content.
    db = Database(sqlite3.connect(":memory:"), SQLiteDialect())
    try:
        apply_schema(db)
        seed(db)

        # 2) Interpret a directive embedded in the "Recipes" page.
        pipeline = DirectivePipeline(SqlContentStore(db))
        directive = "\n".join(
            [
                "category=Desserts",
                "ordermethod=size",
                "order=descending",
                "resultsheader=%TOTALPAGES% desserts:\\n",
                "count=2",
            ]
        )
        output = pipeline.run(directive, ConsoleHost("Recipes"))

        # 3) Print rendered text and scroll state.
        print(output.text)
        print("Scroll variables:", dict(output.scroll_variables))

        # 4) A directive without selection criteria reports a fatal diagnostic.
        print(pipeline.run("mode=ordered", ConsoleHost("Recipes")).text)
    finally:
        db.close()


if __name__ == "__main__":
    main()
