"""
HandObservation model for hand landmark detections.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from .detection import BoundingBox, DetectionEvent, Modality

Landmark = Tuple[float, float, float]


@dataclass(frozen=True)
class HandObservation:
    """
    One hand's landmark set with its derived gesture.

    No cross-frame identity is tracked for hands.

    Attributes:
        handedness: "left" or "right".
        gesture: Recognized gesture label.
        finger_count: Number of extended fingers.
        timestamp: Milliseconds since the epoch.
        confidence: Detection confidence score (0-1).
        bbox: Box around the landmarks in source-frame pixels.
        landmarks: (x, y, z) points, normalized to the frame.
    """
    handedness: str
    gesture: str
    finger_count: int
    timestamp: float
    confidence: float = 1.0
    bbox: BoundingBox = field(default_factory=lambda: BoundingBox(0.0, 0.0))
    landmarks: List[Landmark] = field(default_factory=list)

    def to_event(self) -> DetectionEvent:
        """Adapter: Convert to the DetectionEvent stored in the hand history."""
        return DetectionEvent(
            modality=Modality.HAND,
            label=self.gesture,
            confidence=self.confidence,
            bbox=self.bbox,
            timestamp=self.timestamp,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "handedness": self.handedness,
            "gesture": self.gesture,
            "finger_count": self.finger_count,
            "timestamp": self.timestamp,
            "confidence": self.confidence,
            "bbox": self.bbox.as_list(),
            "landmarks": [list(point) for point in self.landmarks],
        }
