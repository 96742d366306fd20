"""Validated process-wide settings read by every pipeline component."""

from __future__ import annotations

import types
from abc import ABC
from collections.abc import Mapping
from dataclasses import dataclass, field, fields, is_dataclass
from typing import Any, Optional, Union, get_args, get_origin, get_type_hints

from .titles import namespace_index

VERSION = "3.0.0"

_DEFAULT_NAMESPACES: dict[int, str] = {
    0: "",
    1: "Talk",
    2: "User",
    3: "User talk",
    4: "Project",
    5: "Project talk",
    6: "File",
    7: "File talk",
    8: "MediaWiki",
    9: "MediaWiki talk",
    10: "Template",
    11: "Template talk",
    12: "Help",
    13: "Help talk",
    14: "Category",
    15: "Category talk",
}

DEFAULT_NAMESPACES: Mapping[int, str] = types.MappingProxyType(_DEFAULT_NAMESPACES)


class ValidationError(ValueError):
    """Raised when a settings field fails validation."""


class SettingsModel(ABC):
    """Base class for dataclasses validated from field metadata on construction.

    Supported metadata keys: `ge`, `le`, `choices`, `non_empty`. Subclasses may
    override `model_validate()` for cross-field checks.
    """

    def __post_init__(self) -> None:
        if not is_dataclass(self):
            raise TypeError("SettingsModel must be used with @dataclass models.")
        hints = get_type_hints(type(self))
        for item in fields(self):
            value = getattr(self, item.name)
            _validate_type(item.name, value, hints.get(item.name, Any))
            _validate_constraints(item.name, value, item.metadata)
        self.model_validate()

    def model_validate(self) -> None:
        """Hook for cross-field validation after per-field checks."""


def _validate_type(name: str, value: Any, annotation: Any) -> None:
    if annotation is Any:
        return
    origin = get_origin(annotation)

    if origin in (Union, types.UnionType):
        for option in get_args(annotation):
            try:
                _validate_type(name, value, option)
                return
            except ValidationError:
                continue
        raise ValidationError(
            f"Setting '{name}' has unsupported type {type(value).__name__}."
        )

    if origin in (dict, Mapping):
        if not isinstance(value, Mapping):
            raise ValidationError(f"Setting '{name}' must be a mapping.")
        args = get_args(annotation)
        if len(args) == 2:
            for key, item in value.items():
                _validate_type(f"{name}.<key>", key, args[0])
                _validate_type(f"{name}[{key!r}]", item, args[1])
        return

    if origin is tuple:
        if not isinstance(value, tuple):
            raise ValidationError(f"Setting '{name}' must be a tuple.")
        args = get_args(annotation)
        if len(args) == 2 and args[1] is Ellipsis:
            for index, item in enumerate(value):
                _validate_type(f"{name}[{index}]", item, args[0])
        return

    if not isinstance(annotation, type):
        return
    if annotation is type(None):
        if value is not None:
            raise ValidationError(f"Setting '{name}' expects None.")
        return
    if annotation is int and isinstance(value, bool):
        raise ValidationError(f"Setting '{name}' expects int, got bool.")
    if not isinstance(value, annotation):
        raise ValidationError(
            f"Setting '{name}' expects {annotation.__name__}, got {type(value).__name__}."
        )


def _validate_constraints(name: str, value: Any, metadata: Mapping[str, Any]) -> None:
    if value is None:
        return
    if metadata.get("non_empty") and isinstance(value, str) and not value.strip():
        raise ValidationError(f"Setting '{name}' must be non-empty.")
    if "choices" in metadata and value not in set(metadata["choices"]):
        raise ValidationError(f"Setting '{name}' must be one of {metadata['choices']!r}.")
    if "ge" in metadata and value < metadata["ge"]:
        raise ValidationError(f"Setting '{name}' must be >= {metadata['ge']!r}.")
    if "le" in metadata and value > metadata["le"]:
        raise ValidationError(f"Setting '{name}' must be <= {metadata['le']!r}.")


# camelCase configuration keys accepted by `Settings.from_mapping`.
_SETTING_ALIASES = {
    "maxCategoryCount": "max_category_count",
    "minCategoryCount": "min_category_count",
    "allowUnlimitedCategories": "allow_unlimited_categories",
    "allowUnlimitedResults": "allow_unlimited_results",
    "maxResultCount": "max_result_count",
    "runFromProtectedPagesOnly": "run_from_protected_pages_only",
    "functionalRichness": "functional_richness",
}


@dataclass(frozen=True)
class Settings(SettingsModel):
    """Read-only limits and switches shared by all directive invocations."""

    max_category_count: int = field(default=4, metadata={"ge": 0})
    min_category_count: int = field(default=0, metadata={"ge": 0})
    allow_unlimited_categories: bool = False
    allow_unlimited_results: bool = False
    max_result_count: int = field(default=500, metadata={"ge": 1})
    run_from_protected_pages_only: bool = False
    functional_richness: int = field(default=3, metadata={"ge": 0, "le": 4})
    default_cache_period: int = field(default=3600, metadata={"ge": 0})
    default_debug_level: int = field(default=2, metadata={"ge": 0, "le": 5})
    clview_name: str = field(default="dpl_clview", metadata={"non_empty": True})
    body_marker: str = "{{Extension DPL}}"
    namespaces: Mapping[int, str] = field(default_factory=lambda: dict(DEFAULT_NAMESPACES))

    def model_validate(self) -> None:
        if (
            not self.allow_unlimited_categories
            and self.min_category_count > self.max_category_count
        ):
            raise ValidationError(
                "min_category_count cannot exceed max_category_count."
            )
        if 0 not in self.namespaces:
            raise ValidationError("namespaces must define the main namespace (0).")
        # Read-only snapshot, detached from the caller's dict.
        object.__setattr__(self, "namespaces", types.MappingProxyType(dict(self.namespaces)))

    def namespace_index(self, name: str) -> Optional[int]:
        """Resolve a namespace name or number using the configured table."""

        return namespace_index(name, self.namespaces)

    def namespace_name(self, index: int) -> str:
        """Return the configured label for a namespace index (empty for main)."""

        return self.namespaces.get(index, "")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Settings:
        """Build settings from snake_case or camelCase keys.

        Raises:
            ValidationError: On unknown keys or invalid values.
        """

        known = {item.name for item in fields(cls)}
        values: dict[str, Any] = {}
        for key, value in data.items():
            name = _SETTING_ALIASES.get(key, key)
            if name not in known:
                raise ValidationError(f"Unknown setting {key!r}.")
            values[name] = value
        return cls(**values)
