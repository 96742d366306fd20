"""Show the SQL compiled for one directive across SQLite/Postgres/MySQL dialects."""

from __future__ import annotations

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
    Database,
    DiagnosticLog,
    MySQLDialect,
    PostgresDialect,
    SQLiteDialect,
    Settings,
    SqlContentStore,
    build_query_specification,
    default_registry,
    tokenize,
)

DIRECTIVE = """
category=Desserts|Breads
notcategory=Archived
namespace=Main
titlematch=%pie%
createdby=Jane
ordermethod=lastedit
addeditdate=true
count=20
offset=40
"""


class _PreviewConnection:
    """Placeholder connection; previews only compile statements."""

    def close(self) -> None:
        pass


def show_for_dialect(name: str, dialect) -> None:  # noqa: ANN001
    print(f"\n===== {name} =====")

    settings = Settings()
    registry = default_registry()
    log = DiagnosticLog()
    directive = tokenize(DIRECTIVE, registry, log, functional_richness=settings.functional_richness)
    parameters = registry.new_parameter_set(settings)
    for parameter, values in registry.sort_by_priority(directive.entries):
        for value in values:
            registry.apply(parameter, value, parameters)

    spec = build_query_specification(parameters, settings)
    store = SqlContentStore(Database(_PreviewConnection(), dialect), settings=settings)
    rows = store.compile(spec)
    count = store.compile_count(spec)

    print("ROWS SQL:", rows.sql)
    print("ROWS PARAMS:", rows.params)
    print("COUNT SQL:", count.sql)
    print("COUNT PARAMS:", count.params)


def main() -> None:
    show_for_dialect("SQLite", SQLiteDialect())
    show_for_dialect("Postgres", PostgresDialect())
    show_for_dialect("MySQL", MySQLDialect())


if __name__ == "__main__":
    main()
