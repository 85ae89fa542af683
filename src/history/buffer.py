"""
Bounded, append-only event history.

One HistoryBuffer is kept per modality. Once the buffer is full every append
evicts the oldest event (FIFO), so summaries stay biased toward recent
activity. Eviction never touches lifetime counts; those live in the stats
aggregator.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Deque, Iterable, Iterator, List, Optional

from models.detection import DetectionEvent

DEFAULT_CAPACITY = 1000


class HistorySnapshot:
    """
    Restartable view over the events present when the snapshot was taken.

    Iterating yields events lazily; iterating again starts over. Appends made
    to the buffer after the snapshot are not visible.
    """

    def __init__(self, events: List[DetectionEvent], since: Optional[float] = None):
        self._events = events
        self._since = since

    def __iter__(self) -> Iterator[DetectionEvent]:
        for event in self._events:
            if self._since is None or event.timestamp >= self._since:
                yield event


class HistoryBuffer:
    """
    FIFO log of DetectionEvents with a fixed capacity.

    Example:
        buf = HistoryBuffer(capacity=3)
        for e in events:
            buf.append(e)
        recent = list(buf.snapshot(since=cutoff_ms))
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity <= 0:
            raise ValueError("capacity must be a positive integer")
        self.capacity = capacity
        self._events: Deque[DetectionEvent] = deque(maxlen=capacity)
        self.evicted = 0

    def append(self, event: DetectionEvent) -> None:
        if len(self._events) == self.capacity:
            self.evicted += 1
            logging.debug(
                f"History buffer full ({self.capacity}), evicting event from {self._events[0].timestamp}"
            )
        self._events.append(event)

    def extend(self, events: Iterable[DetectionEvent]) -> None:
        for event in events:
            self.append(event)

    def snapshot(self, since: Optional[float] = None) -> HistorySnapshot:
        """
        Events with timestamp >= since (all events if since is None), in
        arrival order.
        """
        return HistorySnapshot(list(self._events), since=since)

    def oldest(self) -> Optional[DetectionEvent]:
        return self._events[0] if self._events else None

    def newest(self) -> Optional[DetectionEvent]:
        return self._events[-1] if self._events else None

    def latest(self, n: int) -> List[DetectionEvent]:
        """Return up to n most recent events, oldest first."""
        if n <= 0:
            return []
        events = list(self._events)
        return events[-n:]

    def clear(self) -> None:
        self._events.clear()
        self.evicted = 0

    def __len__(self) -> int:
        return len(self._events)
