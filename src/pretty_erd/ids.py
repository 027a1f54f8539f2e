from __future__ import annotations

import time
from typing import Callable, Protocol

# ============================================================================
# Id generation
#
# Tables, columns and relationships get string ids of the form
# "<prefix>_<millis>_<counter>". The generator is injected everywhere an id
# is minted so tests can swap in a deterministic sequence.
# ============================================================================


class IdGenerator(Protocol):
    def next(self, prefix: str) -> str: ...


class MonotonicIdGenerator:
    """Process-lifetime counter combined with a millisecond timestamp."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._counter = 0

    def next(self, prefix: str) -> str:
        self._counter += 1
        millis = int(self._clock() * 1000)
        return f"{prefix}_{millis}_{self._counter}"


class SequentialIdGenerator:
    """Deterministic ids: table_1, col_2, rel_3, ..."""

    def __init__(self, start: int = 1) -> None:
        self._counter = start - 1

    def next(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}_{self._counter}"
