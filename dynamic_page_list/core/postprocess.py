"""Pure transformations applied to store rows before layout."""

from __future__ import annotations

import random
import re
from typing import List, Mapping, Optional, Sequence

from .parameters import ParameterSet
from .rows import ResultRow
from .titles import CurrentDocument

_NAMESPACE_PREFIX = re.compile(r".*:")
_TOKEN_SEPARATOR = re.compile(r" - *")
_SUITS = {"♣": "1", "♦": "2", "♥": "3", "♠": "4"}


def sample_indices(total: int, count: int, rng: Optional[random.Random] = None) -> List[int]:
    """Pick `min(count, total)` distinct indices, returned in ascending order.

    The full index permutation is shuffled once and its head is taken, so the
    draw never retries.
    """

    rng = rng or random.Random()
    picks = list(range(total))
    rng.shuffle(picks)
    return sorted(picks[: min(count, total)])


def random_sample(
    rows: Sequence[ResultRow], count: int, rng: Optional[random.Random] = None
) -> List[ResultRow]:
    """Uniform sample without replacement, keeping the original relative order."""

    if count <= 0:
        return list(rows)
    return [rows[index] for index in sample_indices(len(rows), count, rng)]


def exclude_subpages(rows: Sequence[ResultRow]) -> List[ResultRow]:
    return [row for row in rows if "/" not in row.title]


def exclude_self(rows: Sequence[ResultRow], current: CurrentDocument) -> List[ResultRow]:
    return [row for row in rows if row.ref != current.ref]


def should_reverse(parameters: ParameterSet) -> bool:
    """Only an upper title bound under descending order reverses the rows."""

    return (
        bool(parameters.get("titlelt"))
        and not parameters.get("titlegt")
        and parameters.get("order") == "descending"
    )


def card_suit_key(title: str) -> str:
    """Sort key for bridge bidding titles such as `1♣ - 1NT - Pass`."""

    key = ""
    for token in _TOKEN_SEPARATOR.split(_NAMESPACE_PREFIX.sub("", title, count=1)):
        initial = token[:1]
        if "1" <= initial <= "7":
            suit = token[1:]
            if suit in _SUITS:
                key += initial + _SUITS[suit]
            elif suit.lower() in ("sa", "nt"):
                key += initial + "5 "
            else:
                key += initial + suit
        elif initial.lower() == "p":
            key += "0 "
        elif initial.lower() == "x":
            key += "8 "
        else:
            key += token
    return key


def card_suit_sort(
    rows: Sequence[ResultRow], namespaces: Mapping[int, str]
) -> List[ResultRow]:
    return sorted(rows, key=lambda row: card_suit_key(row.ref.prefixed(namespaces)))


def process(
    rows: Sequence[ResultRow],
    parameters: ParameterSet,
    current: CurrentDocument,
    rng: Optional[random.Random] = None,
) -> List[ResultRow]:
    """Apply sampling, exclusions, reversal, and card-suit ordering in that order."""

    processed = random_sample(rows, parameters.get("randomcount", 0), rng)
    if not parameters.get("includesubpages"):
        processed = exclude_subpages(processed)
    if parameters.get("skipthispage"):
        processed = exclude_self(processed, current)
    if should_reverse(parameters):
        processed.reverse()
    if parameters.get("ordersuitsymbols"):
        processed = card_suit_sort(processed, parameters.settings.namespaces)
    return processed
