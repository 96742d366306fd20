"""Caller-owned guard against directives transcluding themselves."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator, Set

from .titles import PageRef


class TransclusionLoopError(RuntimeError):
    """Raised when a document is entered while it is already being rendered."""

    def __init__(self, ref: PageRef):
        super().__init__(f"Transclusion loop on {ref.namespace}:{ref.title}")
        self.ref = ref


class RecursionGuard:
    """Lock-protected set of document identities currently being rendered."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._active: Set[PageRef] = set()

    def is_active(self, ref: PageRef) -> bool:
        with self._lock:
            return ref in self._active

    @contextmanager
    def enter(self, ref: PageRef) -> Iterator[None]:
        """Mark `ref` active for the duration of the block.

        Raises:
            TransclusionLoopError: If `ref` is already active.
        """

        with self._lock:
            if ref in self._active:
                raise TransclusionLoopError(ref)
            self._active.add(ref)
        try:
            yield
        finally:
            with self._lock:
                self._active.discard(ref)
