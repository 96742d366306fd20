"""Minimal default layout renderer producing wiki list markup."""

from __future__ import annotations

from itertools import groupby
from typing import List, Sequence

from .contracts import LayoutResult
from .parameters import ParameterSet
from .render import replace_new_lines
from .rows import ResultRow
from .titles import NS_CATEGORY, NS_FILE

_LIST_PREFIXES = {"unordered": "* ", "ordered": "# ", "definition": "; "}
_TRUNCATION = "..."


class SimpleListLayout:
    """Render rows as a wiki list in the requested `mode`.

    Only the link text is rendered; enrichment fields and heading modes are left
    to richer layout implementations.
    """

    def render(self, rows: Sequence[ResultRow], parameters: ParameterSet) -> LayoutResult:
        mode = parameters.get("mode", "unordered")
        links = [self.link(row, parameters) for row in rows]
        if not rows:
            text = ""
        elif mode in _LIST_PREFIXES:
            text = "\n".join(_LIST_PREFIXES[mode] + link for link in links)
        elif mode == "none":
            text = "<br/>\n".join(links)
        elif mode == "inline":
            text = parameters.get("inlinetext", " - ").join(links)
        elif mode == "category":
            text = self._category(rows, links)
        else:
            text = self._userformat(rows, parameters)
        return LayoutResult(text=text, row_count=len(rows))

    def link(self, row: ResultRow, parameters: ParameterSet) -> str:
        namespaces = parameters.settings.namespaces
        target = row.ref.prefixed(namespaces)
        label = target if parameters.get("shownamespace") else row.ref.text
        max_length = parameters.get("titlemaxlen")
        if max_length and len(label) > max_length:
            label = label[:max_length] + _TRUNCATION
        escape = parameters.get("escapelinks") and row.namespace in (NS_CATEGORY, NS_FILE)
        return f"[[{':' if escape else ''}{target}|{label}]]"

    @staticmethod
    def _category(rows: Sequence[ResultRow], links: List[str]) -> str:
        sections = []
        paired = zip(rows, links)
        for letter, group in groupby(paired, key=lambda item: item[0].title[:1].upper()):
            items = "\n".join("* " + link for _, link in group)
            sections.append(f"=== {letter} ===\n{items}")
        return "\n".join(sections)

    @staticmethod
    def _userformat(rows: Sequence[ResultRow], parameters: ParameterSet) -> str:
        separators = list(parameters.get("listseparators", ()))
        separators += [""] * (4 - len(separators))
        list_start, item_start, item_end, list_end = (
            replace_new_lines(item) for item in separators[:4]
        )
        namespaces = parameters.settings.namespaces
        parts = [list_start]
        for row in rows:
            for template in (item_start, item_end):
                parts.append(
                    template.replace("%PAGE%", row.ref.prefixed(namespaces))
                    .replace("%TITLE%", row.ref.text)
                    .replace("%NAMESPACE%", namespaces.get(row.namespace, ""))
                )
        parts.append(list_end)
        return "".join(parts)
