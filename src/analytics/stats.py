"""
Per-label statistics: lifetime counts and windowed summaries.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Dict, Iterable, Optional

from history.buffer import HistoryBuffer
from models.detection import DetectionEvent, Modality
from models.summary import ModalitySummary, TimelineEntry

TIMELINE_LIMIT = 50
MS_PER_MINUTE = 60_000


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves upward (2.5 -> 3, 87.5 -> 88)."""
    return int(math.floor(value + 0.5))


def format_time(timestamp_ms: float) -> str:
    """Render a millisecond timestamp as local HH:MM:SS."""
    return datetime.fromtimestamp(timestamp_ms / 1000.0).strftime("%H:%M:%S")


def window_cutoff(now_ms: float, window_minutes: Optional[float]) -> Optional[float]:
    """
    Lower timestamp bound for a trailing window, or None for the whole session.

    A window of 0/None means the entire session.
    """
    if window_minutes is None:
        return None
    if window_minutes < 0:
        raise ValueError("window_minutes must be non-negative")
    if window_minutes == 0:
        return None
    return now_ms - window_minutes * MS_PER_MINUTE


class StatsAggregator:
    """
    Maintains lifetime per-label counts and builds summaries from history.

    Lifetime counts only ever grow; they are independent of buffer eviction.
    Summaries are recomputed from the buffer on every call.
    """

    def __init__(self, timeline_limit: int = TIMELINE_LIMIT):
        self.timeline_limit = timeline_limit
        self._lifetime: Dict[Modality, Dict[str, int]] = {m: {} for m in Modality}

    def record_batch(self, events: Iterable[DetectionEvent]) -> None:
        for event in events:
            counts = self._lifetime[event.modality]
            counts[event.label] = counts.get(event.label, 0) + 1

    def lifetime_counts(self, modality: Modality) -> Dict[str, int]:
        return dict(self._lifetime[modality])

    def lifetime_total(self, modality: Modality) -> int:
        return sum(self._lifetime[modality].values())

    def summarize(
        self,
        modality: Modality,
        buffer: HistoryBuffer,
        now_ms: float,
        window_minutes: Optional[float] = None,
    ) -> ModalitySummary:
        """
        Summarize one modality's retained history.

        Args:
            modality: Modality the buffer belongs to.
            buffer: That modality's history buffer.
            now_ms: Current time in milliseconds.
            window_minutes: Trailing window; None/0 for the entire session.
        """
        cutoff = window_cutoff(now_ms, window_minutes)
        filtered = list(buffer.snapshot(since=cutoff))

        counts: Dict[str, int] = {}
        for event in filtered:
            counts[event.label] = counts.get(event.label, 0) + 1

        recent = filtered[-self.timeline_limit:] if self.timeline_limit > 0 else []
        timeline = [
            TimelineEntry(
                time=format_time(event.timestamp),
                label=event.label,
                confidence=round_half_up(event.confidence * 100),
            )
            for event in recent
        ]

        # Based on the oldest *retained* event, so this undercounts after eviction.
        oldest = buffer.oldest()
        duration = round_half_up((now_ms - oldest.timestamp) / MS_PER_MINUTE) if oldest is not None else 0

        return ModalitySummary(
            modality=modality.value,
            total_detections=len(filtered),
            counts=counts,
            timeline=timeline,
            time_range=f"{window_minutes:g} minutes" if cutoff is not None else "entire session",
            session_duration_minutes=max(duration, 0),
        )

    def reset(self) -> None:
        self._lifetime = {m: {} for m in Modality}
