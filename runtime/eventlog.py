from typing import List, Tuple
from engine.model import Event

class EventLog:
    """Append-only record of battle events, read back by offset."""

    def __init__(self):
        self._events: List[Event] = []

    def __len__(self) -> int:
        return len(self._events)

    def append_many(self, evts: List[Event]) -> Tuple[int, int]:
        """Append events and return the (first, last) offsets they landed at."""
        first = len(self._events)
        self._events.extend(evts)
        return first, len(self._events) - 1

    def since(self, offset: int, limit: int = 1000) -> Tuple[List[Event], int]:
        """Up to ``limit`` events from ``offset`` on, plus the offset to resume from."""
        offset = max(0, offset)
        chunk = self._events[offset: offset + limit]
        return chunk, offset + len(chunk)
