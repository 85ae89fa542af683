"""
TrackedFace model for identity-bearing face detections.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .detection import BoundingBox, DetectionEvent, Modality


@dataclass(frozen=True)
class TrackedFace:
    """
    A face detection enriched with a session-stable identity.

    Attributes:
        entity_id: Positive integer, unique for the lifetime of a session.
        bbox: Face bounding box in source-frame pixels.
        confidence: Detection confidence score (0-1).
        dominant_emotion: Highest scoring expression (or the raw label).
        timestamp: Milliseconds since the epoch.
        age: Estimated age, if the detector provides one.
        gender: Estimated gender, if the detector provides one.
        expressions: Per-expression scores, if the detector provides them.
    """
    entity_id: int
    bbox: BoundingBox
    confidence: float
    dominant_emotion: str
    timestamp: float
    age: Optional[float] = None
    gender: Optional[str] = None
    expressions: Dict[str, float] = field(default_factory=dict)

    @property
    def label(self) -> str:
        return self.dominant_emotion

    def to_event(self) -> DetectionEvent:
        """Adapter: Convert to the DetectionEvent stored in the face history."""
        return DetectionEvent(
            modality=Modality.FACE,
            label=self.dominant_emotion,
            confidence=self.confidence,
            bbox=self.bbox,
            timestamp=self.timestamp,
            entity_id=self.entity_id,
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "entity_id": self.entity_id,
            "bbox": self.bbox.as_list(),
            "confidence": self.confidence,
            "dominant_emotion": self.dominant_emotion,
            "timestamp": self.timestamp,
        }
        if self.age is not None:
            d["age"] = self.age
        if self.gender is not None:
            d["gender"] = self.gender
        if self.expressions:
            d["expressions"] = dict(self.expressions)
        return d
