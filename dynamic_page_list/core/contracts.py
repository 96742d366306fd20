"""Core port contracts used by adapters and the directive pipeline."""

from __future__ import annotations

from contextlib import AbstractContextManager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, List, Optional, Protocol, Sequence, Tuple

from .titles import CurrentDocument
from .types import MaybeRow, QueryParams, RowMapping

if TYPE_CHECKING:
    from .parameters import ParameterSet
    from .query_spec import QuerySpecification
    from .rows import ResultRow


class DialectPort(Protocol):
    """Dialect behavior required by SQL compilation."""

    paramstyle: str
    regexp_operator: str
    unlimited: str
    distinct_order_collation: bool

    def q(self, ident: str) -> str: ...

    def placeholder(self, key: str) -> str: ...

    def table_exists_sql(self) -> str: ...

    def group_concat(self, expression: str) -> str: ...


class DatabasePort(Protocol):
    """Database adapter behavior required by the SQL content store."""

    dialect: DialectPort

    def transaction(self) -> AbstractContextManager[None]: ...

    def execute(self, sql: str, params: QueryParams = None) -> Any: ...

    def fetchone(self, sql: str, params: QueryParams = None) -> MaybeRow: ...

    def fetchall(self, sql: str, params: QueryParams = None) -> List[RowMapping]: ...

    def fetchvalue(self, sql: str, params: QueryParams = None, default: Any = None) -> Any: ...

    def table_exists(self, name: str) -> bool: ...


@dataclass(frozen=True)
class QueryResult:
    """Rows returned by a content store.

    Attributes:
        rows: Result rows in store order.
        total: Number of matching rows ignoring limit/offset, when requested.
    """

    rows: Tuple[ResultRow, ...]
    total: Optional[int] = None


@dataclass(frozen=True)
class LayoutResult:
    """Markup produced by a layout renderer and the number of rows it shows."""

    text: str
    row_count: int


class ContentStorePort(Protocol):
    """Backing store that executes query specifications."""

    def select(self, spec: QuerySpecification) -> QueryResult: ...

    def has_view(self, name: str) -> bool: ...


class HostPort(Protocol):
    """Narrow capabilities of the document environment embedding a directive."""

    def current_document(self) -> CurrentDocument: ...

    def disable_caching(self) -> None: ...

    def set_cache_duration(self, seconds: int) -> None: ...

    def register_post_render_cleanup(self, hook_name: str) -> None: ...


class LayoutPort(Protocol):
    """Pure function from processed rows plus parameters to markup."""

    def render(self, rows: Sequence[ResultRow], parameters: ParameterSet) -> LayoutResult: ...
