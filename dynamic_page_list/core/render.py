"""Header/footer template selection, variable substitution, and assembly."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from .diagnostics import MESSAGE_SEPARATOR
from .parameters import ParameterSet
from .rows import ResultRow
from .settings import VERSION

Templates = Tuple[Optional[str], Optional[str]]

DEBUG_WRAP_LEVEL = 5

NO_RESULTS_VARIABLES: Mapping[str, Any] = {"%TOTALPAGES%": 0, "%PAGES%": 0}


def replace_new_lines(text: str) -> str:
    """Turn literal `\\n` sequences and pilcrows into line breaks."""

    return text.replace("\\n", "\n").replace("¶", "\n")


def replace_variables(text: Optional[str], variables: Mapping[str, Any]) -> str:
    """Substitute each known `%VARIABLE%`; unknown tokens stay verbatim."""

    text = replace_new_lines(text or "")
    for variable, value in variables.items():
        text = text.replace(variable, "" if value is None else str(value))
    return text


def select_templates(parameters: ParameterSet, found_rows: int) -> Templates:
    """Pick the header/footer pair for the number of rows found.

    The one-result pair falls back to the general results pair when unset.
    """

    if found_rows == 0:
        return parameters.get("noresultsheader"), parameters.get("noresultsfooter")
    if found_rows == 1:
        return (
            parameters.get("oneresultheader", parameters.get("resultsheader")),
            parameters.get("oneresultfooter", parameters.get("resultsfooter")),
        )
    return parameters.get("resultsheader"), parameters.get("resultsfooter")


def format_elapsed(elapsed: float, now: datetime) -> str:
    return f"{elapsed:.3f} sec. ({now:%Y/%m/%d %H:%M:%S})"


def _key(value: Any) -> str:
    return str(value).replace(" ", "_")


@dataclass(frozen=True)
class RenderContext:
    """Scalar values substituted into headers/footers and exposed as scroll state."""

    total_pages: int
    pages: int
    dpl_time: str
    first_namespace: str = ""
    first_title: str = ""
    last_namespace: str = ""
    last_title: str = ""
    scroll_dir: str = ""
    count: Optional[int] = None

    @classmethod
    def from_rows(
        cls,
        rows: Sequence[ResultRow],
        *,
        total_pages: int,
        pages: int,
        dpl_time: str,
        scroll_dir: str = "",
        count: Optional[int] = None,
    ) -> RenderContext:
        first = rows[0] if rows else None
        last = rows[-1] if rows else None
        return cls(
            total_pages=total_pages,
            pages=pages,
            dpl_time=dpl_time,
            first_namespace=_key(first.namespace) if first else "",
            first_title=_key(first.title) if first else "",
            last_namespace=_key(last.namespace) if last else "",
            last_title=_key(last.title) if last else "",
            scroll_dir=scroll_dir,
            count=count,
        )

    def variables(self) -> Dict[str, Any]:
        return {
            "%TOTALPAGES%": self.total_pages,
            "%PAGES%": self.pages,
            "%VERSION%": VERSION,
            "%DPLTIME%": self.dpl_time,
            "%FIRSTNAMESPACE%": self.first_namespace,
            "%FIRSTTITLE%": self.first_title,
            "%LASTNAMESPACE%": self.last_namespace,
            "%LASTTITLE%": self.last_title,
            "%SCROLLDIR%": self.scroll_dir,
        }

    def scroll_variables(self) -> Dict[str, str]:
        """Document variables used to build continuation links."""

        return {
            "DPL_firstNamespace": self.first_namespace,
            "DPL_firstTitle": self.first_title,
            "DPL_lastNamespace": self.last_namespace,
            "DPL_lastTitle": self.last_title,
            "DPL_scrollDir": self.scroll_dir,
            "DPL_time": self.dpl_time,
            "DPL_count": "" if self.count is None else str(self.count),
            "DPL_totalPages": str(self.total_pages),
            "DPL_pages": str(self.pages),
        }


def substitute(templates: Templates, variables: Mapping[str, Any]) -> Tuple[str, str]:
    header, footer = templates
    return replace_variables(header, variables), replace_variables(footer, variables)


def assemble(messages: Sequence[str], header: str, body: str, footer: str) -> str:
    """Diagnostics block, then header, body, and footer."""

    return MESSAGE_SEPARATOR.join(messages) + header + body + footer


def render(
    templates: Templates,
    context: RenderContext,
    body: str,
    messages: Sequence[str],
    *,
    debug_level: int,
) -> str:
    """Render the final fragment for a query that returned rows."""

    header, footer = substitute(templates, context.variables())
    if debug_level == DEBUG_WRAP_LEVEL:
        header = "<pre><nowiki>" + header
        footer = footer + "</nowiki></pre>"
    return assemble(messages, header, body, footer)
