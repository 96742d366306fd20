"""Split raw directive text into ordered parameter/value entries."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Tuple

from .diagnostics import DiagnosticCode, DiagnosticLog
from .parameters import ParameterRegistry
from .types import DirectiveEntry, UrlArguments

logger = logging.getLogger(__name__)

URL_ARGUMENTS: Tuple[str, ...] = (
    "DPL_offset",
    "DPL_count",
    "DPL_fromTitle",
    "DPL_findTitle",
    "DPL_toTitle",
    "DPL_arg1",
    "DPL_arg2",
    "DPL_arg3",
    "DPL_arg4",
    "DPL_arg5",
)

# `«»` stand in for angle brackets, `¦` for a pipe, `²{ }²` for deferred braces.
_REPLACEMENTS = (
    ("«", "<"),
    ("»", ">"),
    ("¦", "|"),
    ("²{", "{{"),
    ("}²", "}}"),
)


@dataclass(frozen=True)
class Directive:
    """Immutable, ordered `(name, values)` entries of one directive.

    Names are canonical parameter names in order of first appearance; repeated
    lines for an accumulating parameter add to its values.
    """

    entries: Tuple[DirectiveEntry, ...] = ()

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(name for name, _ in self.entries)

    def values(self, name: str) -> Tuple[str, ...]:
        for entry_name, values in self.entries:
            if entry_name == name:
                return values
        return ()

    def to_text(self) -> str:
        """Rebuild normalized directive text, one `name=value` line per value."""

        return "\n".join(
            f"{name}={value}" for name, values in self.entries for value in values
        )

    def __contains__(self, name: object) -> bool:
        return name in self.names

    def __iter__(self) -> Iterator[DirectiveEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


def normalize_directive_text(raw_text: str) -> str:
    """Apply character aliases, unify line endings, and trim outer blank lines."""

    text = raw_text
    for alias, canonical in _REPLACEMENTS:
        text = text.replace(alias, canonical)
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    return text.strip("\n")


def tokenize(
    raw_text: str,
    registry: ParameterRegistry,
    log: DiagnosticLog,
    *,
    functional_richness: int,
) -> Directive:
    """Tokenize raw directive text into a `Directive`.

    Lines without `=` and unknown parameter names produce warnings and are
    dropped. Comment lines (`#...`), parameters above the configured richness,
    repeated non-accumulating parameters, and empty values for parameters that
    do not accept them are dropped silently.
    """

    text = normalize_directive_text(raw_text)
    collected: Dict[str, List[str]] = {}
    for line in text.split("\n") if text else ():
        if "=" not in line:
            log.add(DiagnosticCode.PARAMETER_NO_OPTION, line)
            continue

        name, value = (part.strip() for part in line.split("=", 1))
        if "<" in name or ">" in name:
            name = name.replace("<", "lt").replace(">", "gt")
        if not name or name.startswith("#"):
            continue

        if not registry.exists(name):
            log.add(
                DiagnosticCode.UNKNOWN_PARAMETER,
                name,
                ", ".join(registry.names_for_richness(functional_richness)),
            )
            continue

        definition = registry.classify(name)
        if not registry.test_richness(
            name, functional_richness, already_seen=definition.name in collected
        ):
            logger.debug("Dropping parameter line %r", line)
            continue
        if not value and not definition.allow_empty:
            continue

        collected.setdefault(definition.name, []).append(value)

    return Directive(tuple((name, tuple(values)) for name, values in collected.items()))


def resolve_url_arguments(
    text: str, url_args: UrlArguments, names: Iterable[str] = URL_ARGUMENTS
) -> str:
    """Substitute `{%NAME%}` and `{%NAME:default%}` placeholders.

    A non-empty request value replaces both forms. Otherwise the default is used
    for the second form and the first form is removed.
    """

    for name in names:
        value = url_args.get(name) or ""
        with_default = re.compile(r"\{%" + re.escape(name) + r":(.*?)%\}")
        if value:
            text = with_default.sub(lambda _match: value, text)
        else:
            text = with_default.sub(lambda match: match.group(1), text)
        text = text.replace("{%" + name + "%}", value)
    return text


def url_variables(url_args: UrlArguments) -> Dict[str, str]:
    """Request arguments exposed back to the host as document variables."""

    return {name: value for name, value in url_args.items() if "DPL_" in name}
