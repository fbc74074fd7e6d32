"""
Call-in-progress token for buy/sell and hook callbacks.

Acquired with ``with guard.enter("buy"):`` and released on every exit path,
including exceptions.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from treasury_core.errors import ReentrantCall


class CallGuard:
    """Single-holder lock. A second entry while held is rejected, not queued."""

    def __init__(self, name: str) -> None:
        self._name = name
        self._holder: str | None = None

    @property
    def held(self) -> bool:
        return self._holder is not None

    @property
    def holder(self) -> str | None:
        return self._holder

    @contextmanager
    def enter(self, operation: str) -> Iterator[None]:
        if self._holder is not None:
            raise ReentrantCall(
                f"{self._name}: cannot start {operation!r} while {self._holder!r} is in progress"
            )
        self._holder = operation
        try:
            yield
        finally:
            self._holder = None
