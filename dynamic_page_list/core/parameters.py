"""Parameter definitions, the per-invocation parameter set, and the registry."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .settings import Settings
from .types import DirectiveEntry

Setter = Callable[[str, "ParameterSet"], bool]

# Parameters without an explicit priority are applied after all prioritized ones.
_UNPRIORITIZED = 1000


@dataclass(frozen=True)
class ParameterDefinition:
    """Static description of one recognized directive parameter.

    Attributes:
        name: Canonical parameter name.
        setter: Validates a raw value and stores it; returns `False` to reject.
        target: Key written by the setter (defaults to `name`).
        default: Initial value of `target` in a fresh parameter set.
        richness: Functional-richness level required to use the parameter.
        accumulates: Whether repeated lines are kept as additional values.
        allow_empty: Whether an empty value reaches the setter.
        priority: Application order; lower runs first.
        aliases: Alternative names resolving to this definition.
        selection: Whether a non-empty value counts as a selection criterion.
        open_references_conflict: Whether a non-empty value is incompatible with
            `openreferences`.
    """

    name: str
    setter: Setter
    target: Optional[str] = None
    default: Any = None
    richness: int = 0
    accumulates: bool = False
    allow_empty: bool = False
    priority: Optional[int] = None
    aliases: Tuple[str, ...] = ()
    selection: bool = False
    open_references_conflict: bool = False

    @property
    def key(self) -> str:
        return self.target or self.name


class ParameterSet:
    """Typed parameter values for one directive invocation.

    Only registry setters write values. Three derived flags record facts the
    validator needs: whether any selection criterion was given, whether any
    parameter conflicts with open-references mode, and whether the
    uncategorized pseudo-category was requested.
    """

    def __init__(self, defaults: Mapping[str, Any], settings: Settings):
        self._values: Dict[str, Any] = dict(defaults)
        self.settings = settings
        self.selection_criteria_found = False
        self.open_references_conflict = False
        self.include_uncategorized = False

    def get(self, name: str, default: Any = None) -> Any:
        value = self._values.get(name)
        return default if value is None else value

    def __getitem__(self, name: str) -> Any:
        return self._values[name]

    def __contains__(self, name: object) -> bool:
        return self._values.get(name) is not None  # type: ignore[call-overload]

    def set(self, name: str, value: Any) -> None:
        self._values[name] = value

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._values)


class ParameterRegistry:
    """Fixed mapping from parameter name to its definition and setter."""

    def __init__(self, definitions: Iterable[ParameterDefinition]):
        self._definitions: Dict[str, ParameterDefinition] = {}
        self._lookup: Dict[str, ParameterDefinition] = {}
        for definition in definitions:
            if definition.name in self._definitions:
                raise ValueError(f"Duplicate parameter definition: {definition.name}")
            self._definitions[definition.name] = definition
            for name in (definition.name, *definition.aliases):
                key = name.lower()
                if key in self._lookup:
                    raise ValueError(f"Parameter name already registered: {name}")
                self._lookup[key] = definition

    def exists(self, name: str) -> bool:
        return name.lower() in self._lookup

    def canonical_name(self, name: str) -> Optional[str]:
        """Return the canonical name for `name` or an alias, `None` if unknown."""

        definition = self._lookup.get(name.lower())
        return definition.name if definition else None

    def classify(self, name: str) -> ParameterDefinition:
        """Return the definition for a parameter name.

        Raises:
            KeyError: If the name is not recognized.
        """

        try:
            return self._lookup[name.lower()]
        except KeyError:
            raise KeyError(f"Unknown parameter: {name}") from None

    def test_richness(
        self, name: str, functional_richness: int, *, already_seen: bool = False
    ) -> bool:
        """Return whether another value for `name` may be accepted."""

        definition = self.classify(name)
        if definition.richness > functional_richness:
            return False
        return definition.accumulates or not already_seen

    def names_for_richness(self, functional_richness: int) -> List[str]:
        """Sorted names usable at the given functional-richness level."""

        return sorted(
            name
            for name, definition in self._definitions.items()
            if definition.richness <= functional_richness
        )

    def new_parameter_set(self, settings: Settings) -> ParameterSet:
        defaults: Dict[str, Any] = {}
        for definition in self._definitions.values():
            defaults.setdefault(definition.key, definition.default)
        return ParameterSet(defaults, settings)

    def apply(self, name: str, raw_value: str, parameters: ParameterSet) -> bool:
        """Run the setter for `name`; returns `False` when the value is rejected."""

        definition = self.classify(name)
        if not definition.setter(raw_value, parameters):
            return False
        if parameters.get(definition.key):
            if definition.selection:
                parameters.selection_criteria_found = True
            if definition.open_references_conflict:
                parameters.open_references_conflict = True
        return True

    def sort_by_priority(self, entries: Iterable[DirectiveEntry]) -> List[DirectiveEntry]:
        """Order entries by parameter priority, keeping encounter order otherwise."""

        indexed = list(enumerate(entries))
        indexed.sort(key=lambda item: (self._priority(item[1][0]), item[0]))
        return [entry for _, entry in indexed]

    def _priority(self, name: str) -> int:
        priority = self.classify(name).priority
        return _UNPRIORITIZED if priority is None else priority


def table_row_keys(table_row: Sequence[str], section_labels: Sequence[str]) -> Dict[str, str]:
    """Re-key `tablerow` entries to follow the structure of the section labels.

    A plain label consumes one entry keyed by its group number. A label of the
    form `name}:col1:col2` consumes one entry per column, keyed `group.column`.
    """

    keyed: Dict[str, str] = {}
    position = 0
    for group, label in enumerate(section_labels):
        columns = label.split("}:")
        if len(columns) <= 1:
            if position < len(table_row):
                keyed[str(group)] = table_row[position]
            position += 1
            continue
        for column in range(len(columns[1].split(":"))):
            if position < len(table_row):
                keyed[f"{group}.{column}"] = table_row[position]
            position += 1
    return keyed
