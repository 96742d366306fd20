"""End-of-render reset/eliminate planning for links produced by a directive.

A directive's output may create links, template uses, category assignments, and
image uses on the embedding document. `reset` asks the host to drop everything
of a kind after rendering; `eliminate` asks it to drop only what the directive
itself produced. The caller owns the `CreatedLinks` accumulator and passes it in.
"""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass, replace
from typing import Dict, Mapping, Optional, Set, Tuple

from .titles import NS_CATEGORY, NS_FILE, NS_TEMPLATE, PageRef, namespace_index, normalize_title

END_RESET_HOOK = "end_reset"
END_ELIMINATE_HOOK = "end_eliminate"

LINK_KINDS = ("links", "templates", "categories", "images")

_LINK = re.compile(r"\[\[\s*(:?)([^\[\]|#{}]+)")
_TEMPLATE = re.compile(r"\{\{\s*([^{}|#][^{}|]*)")


@dataclass(frozen=True)
class LinkFlags:
    """One boolean per link kind."""

    links: bool = False
    templates: bool = False
    categories: bool = False
    images: bool = False

    @classmethod
    def parse(cls, value: str) -> Optional[LinkFlags]:
        """Parse a comma list of `all`, `none`, or link kinds; `None` if invalid."""

        flags = cls()
        for item in value.split(","):
            key = item.strip().lower()
            if not key:
                continue
            if key == "all":
                flags = cls(True, True, True, True)
            elif key == "none":
                flags = cls()
            elif key in LINK_KINDS:
                flags = replace(flags, **{key: True})
            else:
                return None
        return flags

    def any(self) -> bool:
        return self.links or self.templates or self.categories or self.images


class CreatedLinks:
    """Caller-owned accumulator of reset flags and eliminated link targets."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.resets: Set[str] = set()
        self.eliminated: Dict[str, Set[PageRef]] = {kind: set() for kind in LINK_KINDS}

    def mark_reset(self, kind: str) -> None:
        with self._lock:
            self.resets.add(kind)

    def record(self, kind: str, refs: Set[PageRef]) -> None:
        with self._lock:
            self.eliminated[kind] = set(refs)


def extract_created_links(text: str, namespaces: Mapping[int, str]) -> Dict[str, Set[PageRef]]:
    """Find link, template, category, and image targets in rendered wikitext."""

    found: Dict[str, Set[PageRef]] = {kind: set() for kind in LINK_KINDS}
    for match in _LINK.finditer(text):
        escaped, target = match.group(1), match.group(2).strip()
        namespace, title = _split_target(target, namespaces)
        if not title:
            continue
        ref = PageRef(namespace, title)
        if not escaped and namespace == NS_CATEGORY:
            found["categories"].add(ref)
        elif not escaped and namespace == NS_FILE:
            found["images"].add(ref)
        else:
            found["links"].add(ref)
    for match in _TEMPLATE.finditer(text):
        target = match.group(1).strip()
        if ":" in target:
            namespace, title = _split_target(target, namespaces)
        else:
            namespace, title = NS_TEMPLATE, normalize_title(target)
        if title:
            found["templates"].add(PageRef(namespace, title))
    return found


def _split_target(target: str, namespaces: Mapping[int, str]) -> Tuple[int, str]:
    if ":" in target:
        prefix, rest = target.split(":", 1)
        index = namespace_index(prefix, namespaces)
        if index is not None:
            return index, normalize_title(rest)
    return 0, normalize_title(target)


def plan_end_resets(
    reset: LinkFlags,
    eliminate: LinkFlags,
    *,
    is_parser_tag: bool,
    output_text: str,
    created: CreatedLinks,
    namespaces: Mapping[int, str],
) -> Tuple[str, ...]:
    """Apply reset/eliminate rules and return the cleanup hooks to register.

    Outside tag mode, eliminating templates, categories, or images is the same as
    resetting them. Effective reset flags are recorded on `created`; in tag mode
    the reset hook is always requested.
    """

    hooks: list[str] = []
    if not is_parser_tag:
        for kind in ("templates", "categories", "images"):
            if getattr(eliminate, kind):
                reset = replace(reset, **{kind: True})
                eliminate = replace(eliminate, **{kind: False})
    for kind in ("templates", "categories", "images"):
        if getattr(reset, kind):
            created.mark_reset(kind)

    if is_parser_tag or reset.links:
        if reset.links:
            created.mark_reset("links")
        hooks.append(END_RESET_HOOK)

    if eliminate.any():
        hooks.append(END_ELIMINATE_HOOK)
        found = extract_created_links(output_text, namespaces)
        for kind in LINK_KINDS:
            if getattr(eliminate, kind):
                created.record(kind, found[kind])

    return tuple(hooks)
