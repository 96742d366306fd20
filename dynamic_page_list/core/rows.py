"""Result rows returned by content stores."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Tuple

from .query_spec import Target
from .titles import NS_CATEGORY, NS_FILE, PageRef
from .types import RowMapping


@dataclass(frozen=True)
class ResultRow:
    """One page, category, or reference target plus optional enrichments."""

    namespace: int
    title: str
    sortkey: Optional[str] = None
    touched: Optional[str] = None
    first_edit: Optional[str] = None
    last_edit: Optional[str] = None
    user: Optional[str] = None
    size: Optional[int] = None
    counter: Optional[int] = None
    category_added: Optional[str] = None
    categories: Tuple[str, ...] = ()

    @property
    def ref(self) -> PageRef:
        return PageRef(self.namespace, self.title)


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


def row_from_mapping(row: RowMapping, target: Target) -> ResultRow:
    """Build a `ResultRow` from a store row keyed by schema column names."""

    if target is Target.CATEGORIES:
        namespace, title = NS_CATEGORY, row["cl_to"]
    elif target is Target.FILE_TARGETS:
        namespace, title = NS_FILE, row["il_to"]
    elif target is Target.LINK_TARGETS:
        namespace, title = row["pl_namespace"], row["pl_title"]
    else:
        namespace, title = row["page_namespace"], row["page_title"]

    categories = _text(row.get("cats"))
    return ResultRow(
        namespace=int(namespace),
        title=_text(title) or "",
        sortkey=_text(row.get("sortkey")),
        touched=_text(row.get("page_touched")),
        first_edit=_text(row.get("first_edit")),
        last_edit=_text(row.get("last_edit")),
        user=_text(row.get("rev_user_text")),
        size=row.get("page_len"),
        counter=row.get("page_counter"),
        category_added=_text(row.get("cl_timestamp")),
        categories=tuple(categories.split("|")) if categories else (),
    )
