"""Page references and title normalization helpers."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Mapping, Optional

NS_MAIN = 0
NS_USER = 2
NS_FILE = 6
NS_TEMPLATE = 10
NS_CATEGORY = 14

_MAIN_ALIASES = {"", "main", "(main)"}
_SEPARATOR_RUN = re.compile(r"[ _]+")


@dataclass(frozen=True)
class PageRef:
    """Identifies one document by namespace index and database key.

    Attributes:
        namespace: Numeric namespace index.
        title: Title in database-key form (underscores instead of spaces).
    """

    namespace: int
    title: str

    @property
    def text(self) -> str:
        """Title with underscores shown as spaces."""

        return self.title.replace("_", " ")

    def prefixed(self, namespaces: Mapping[int, str]) -> str:
        """Return `Namespace:Title` text, or the bare title in the main namespace."""

        label = namespaces.get(self.namespace, "")
        if not label:
            return self.text
        return f"{label}:{self.text}"


@dataclass(frozen=True)
class CurrentDocument:
    """The document that embeds the directive being interpreted."""

    ref: PageRef
    protected: bool = False


def normalize_title(text: str) -> str:
    """Return the database-key form of a title.

    Runs of spaces/underscores collapse into one underscore, surrounding ones are
    dropped, and the first character is upper-cased.
    """

    key = _SEPARATOR_RUN.sub("_", text.strip()).strip("_")
    return key[:1].upper() + key[1:]


def namespace_index(name: str, namespaces: Mapping[int, str]) -> Optional[int]:
    """Resolve a namespace name or number to its index, or `None` if unknown."""

    key = _SEPARATOR_RUN.sub(" ", name.strip()).lower()
    if key in _MAIN_ALIASES:
        return NS_MAIN
    if key.lstrip("-").isdigit():
        index = int(key)
        return index if index in namespaces else None
    for index, label in namespaces.items():
        if label.lower() == key:
            return index
    return None


def parse_page_ref(text: str, namespaces: Mapping[int, str]) -> Optional[PageRef]:
    """Parse `Namespace:Title` text into a `PageRef`.

    An unknown prefix is treated as part of a main-namespace title. Returns `None`
    for empty input.
    """

    text = text.strip().lstrip(":").strip()
    if not text:
        return None
    if ":" in text:
        prefix, rest = text.split(":", 1)
        index = namespace_index(prefix, namespaces)
        if index is not None and rest.strip():
            return PageRef(index, normalize_title(rest))
    return PageRef(NS_MAIN, normalize_title(text))
