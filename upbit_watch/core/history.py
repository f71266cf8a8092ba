"""Bounded buffer of recent change events."""

from collections import deque
from typing import List

from .types import ChangeEvent


class EventHistory:
    """Fixed-capacity FIFO of recent events; the oldest entry is evicted first."""

    def __init__(self, capacity: int = 200):
        self.capacity = capacity
        self._events = deque(maxlen=capacity)

    def append(self, event: ChangeEvent) -> None:
        self._events.append(event)

    def recent(self, limit: int = 20) -> List[ChangeEvent]:
        """Most recent events first."""
        events = list(reversed(self._events))
        return events[:limit]

    def clear(self) -> None:
        self._events.clear()

    def __len__(self) -> int:
        return len(self._events)

    def __contains__(self, event: ChangeEvent) -> bool:
        return event in self._events
