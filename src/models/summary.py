"""
Summary models produced for live statistics and natural-language querying.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class TimelineEntry:
    """
    A human-readable line of the recent timeline.

    Attributes:
        time: Local wall-clock time formatted HH:MM:SS.
        label: Event label.
        confidence: Confidence as an integer percentage.
    """
    time: str
    label: str
    confidence: int

    def to_dict(self) -> Dict[str, Any]:
        return {"time": self.time, "label": self.label, "confidence": self.confidence}


@dataclass
class ModalitySummary:
    """
    Windowed or unwindowed statistics for one modality.

    Counts are always recomputed from the retained history, never taken from
    lifetime totals.
    """
    modality: str
    total_detections: int = 0
    counts: Dict[str, int] = field(default_factory=dict)
    timeline: List[TimelineEntry] = field(default_factory=list)
    time_range: str = "entire session"
    session_duration_minutes: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "modality": self.modality,
            "total_detections": self.total_detections,
            "counts": dict(self.counts),
            "timeline": [entry.to_dict() for entry in self.timeline],
            "time_range": self.time_range,
            "session_duration_minutes": self.session_duration_minutes,
        }


@dataclass
class SessionSummary:
    """
    Combined cross-modality summary handed to the answer service.

    Attributes:
        modalities: Per-modality summaries keyed by modality name.
        unique_people: Distinct face entity ids seen this session.
        current_faces: Faces in the most recent face batch.
        faces_in_frame: Those faces in detail (id, emotion, age, gender).
        hands_in_frame: Hands in the most recent hand batch (gesture, fingers).
        emotions: Lifetime face label counts.
        interactions: Rendered interaction log, oldest first.
        interactions_total: Interactions recorded this session, including evicted ones.
        gestures: Lifetime hand gesture counts.
        session_duration_minutes: Longest approximate duration across modalities.
        window_minutes: Trailing window the summary covers, None for all.
        generated_at: Milliseconds since the epoch.
    """
    modalities: Dict[str, ModalitySummary] = field(default_factory=dict)
    unique_people: int = 0
    current_faces: int = 0
    faces_in_frame: List[Dict[str, Any]] = field(default_factory=list)
    hands_in_frame: List[Dict[str, Any]] = field(default_factory=list)
    emotions: Dict[str, int] = field(default_factory=dict)
    interactions: List[str] = field(default_factory=list)
    interactions_total: int = 0
    gestures: Dict[str, int] = field(default_factory=dict)
    session_duration_minutes: int = 0
    window_minutes: Optional[float] = None
    generated_at: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Mapping from metric name to value, suitable for JSON."""
        return {
            "modalities": {name: s.to_dict() for name, s in self.modalities.items()},
            "unique_people": self.unique_people,
            "current_faces": self.current_faces,
            "faces_in_frame": [dict(f) for f in self.faces_in_frame],
            "hands_in_frame": [dict(h) for h in self.hands_in_frame],
            "emotions": dict(self.emotions),
            "interactions": list(self.interactions),
            "interactions_total": self.interactions_total,
            "gestures": dict(self.gestures),
            "session_duration_minutes": self.session_duration_minutes,
            "window_minutes": self.window_minutes,
            "generated_at": self.generated_at,
        }
