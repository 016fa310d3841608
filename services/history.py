"""Bounded rolling window of readings for one tracked location."""

from __future__ import annotations

from collections import deque
from typing import Deque, Iterator, List, Optional

from models.records import Reading

DEFAULT_CAPACITY = 24


class HistoryWindow:
    """Insertion-ordered readings; the oldest is evicted once capacity is reached."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("History capacity must be at least 1.")
        self._entries: Deque[Reading] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        # maxlen is always set by __init__
        return self._entries.maxlen  # type: ignore[return-value]

    def append(self, reading: Reading) -> None:
        self._entries.append(reading)

    def latest(self) -> Optional[Reading]:
        return self._entries[-1] if self._entries else None

    def all(self) -> List[Reading]:
        """Readings oldest-first, as a copy safe to hand to readers."""
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Reading]:
        return iter(self.all())
