"""
All-or-nothing units of work.

Every participant exposes ``snapshot()`` and ``restore(state)``. ``atomic``
snapshots them on entry and, if the block raises, restores each one in
reverse order before re-raising. Nested blocks are fine: an inner failure that
the outer block lets propagate is restored twice to the same state.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Protocol, runtime_checkable


@runtime_checkable
class Checkpointable(Protocol):
    def snapshot(self) -> Any:
        ...

    def restore(self, state: Any) -> None:
        ...


@contextmanager
def atomic(*participants: Checkpointable) -> Iterator[None]:
    saved = [(p, p.snapshot()) for p in participants]
    try:
        yield
    except BaseException:
        for participant, state in reversed(saved):
            participant.restore(state)
        raise
