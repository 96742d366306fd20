"""Shared core type aliases used across contracts, pipeline, and ports."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

NamedParams = Dict[str, Any]
PositionalParams = List[Any]
QueryParams = Union[NamedParams, PositionalParams, None]

RowMapping = Mapping[str, Any]
Rows = List[RowMapping]
MaybeRow = Optional[RowMapping]

UrlArguments = Mapping[str, str]
ReplacementVariables = Dict[str, Any]
DirectiveEntry = Tuple[str, Tuple[str, ...]]
