"""
Detection models for perception events.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import numpy as np


class Modality(str, Enum):
    """Detection categories produced by independent detector modules."""
    OBJECT = "object"
    FACE = "face"
    HAND = "hand"


@dataclass(frozen=True)
class BoundingBox:
    """
    A bounding box in source-frame pixel coordinates.

    Attributes:
        x: Left edge x coordinate.
        y: Top edge y coordinate.
        width: Box width in pixels.
        height: Box height in pixels.
    """
    x: float
    y: float
    width: float = 0.0
    height: float = 0.0

    @property
    def top_left(self) -> Tuple[float, float]:
        return (self.x, self.y)

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    def distance_to(self, other: "BoundingBox") -> float:
        """Euclidean distance between the top-left corners of two boxes."""
        return float(np.hypot(self.x - other.x, self.y - other.y))

    def as_list(self) -> List[float]:
        """Return as [x, y, width, height]."""
        return [self.x, self.y, self.width, self.height]

    @classmethod
    def from_sequence(cls, seq) -> "BoundingBox":
        """Create from an [x, y, width, height] sequence."""
        return cls(x=float(seq[0]), y=float(seq[1]), width=float(seq[2]), height=float(seq[3]))

    @classmethod
    def from_xyxy(cls, x1: float, y1: float, x2: float, y2: float) -> "BoundingBox":
        """Create from (x1, y1, x2, y2) corner format."""
        return cls(x=x1, y=y1, width=x2 - x1, height=y2 - y1)


@dataclass(frozen=True)
class RawDetection:
    """
    One detector output before aggregation.

    Attributes:
        label: Class name (objects), emotion (faces) or gesture (hands).
        confidence: Detection confidence score (0-1).
        bbox: Bounding box in source-frame pixels.
        attributes: Modality-specific extras (expressions, age, gender,
            landmarks, handedness).
    """
    label: str
    confidence: float
    bbox: BoundingBox
    attributes: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "RawDetection":
        """
        Adapter: Create from a plain mapping.

        Accepts `bbox` as [x, y, w, h] or as a mapping with x/y/width/height.
        Any keys other than label/confidence/bbox are kept as attributes.
        """
        bbox = d.get("bbox") or [0, 0, 0, 0]
        if isinstance(bbox, dict):
            box = BoundingBox(
                x=float(bbox.get("x", 0)),
                y=float(bbox.get("y", 0)),
                width=float(bbox.get("width", 0)),
                height=float(bbox.get("height", 0)),
            )
        else:
            box = BoundingBox.from_sequence(bbox)
        attributes = {k: v for k, v in d.items() if k not in ("label", "confidence", "bbox")}
        return cls(
            label=str(d.get("label", "unknown")),
            confidence=float(d.get("confidence", 1.0)),
            bbox=box,
            attributes=attributes,
        )


@dataclass(frozen=True)
class DetectionEvent:
    """
    A single timestamped observation, as stored in a history buffer.

    Attributes:
        modality: Which detector produced the event.
        label: Class name or, for faces, the dominant emotion.
        confidence: Detection confidence score (0-1).
        bbox: Bounding box in source-frame pixels.
        timestamp: Milliseconds since the epoch.
        entity_id: Tracked identity (faces only).
    """
    modality: Modality
    label: str
    confidence: float
    bbox: BoundingBox
    timestamp: float
    entity_id: Optional[int] = None

    @classmethod
    def from_raw(
        cls,
        modality: Modality,
        raw: RawDetection,
        timestamp: float,
        entity_id: Optional[int] = None,
    ) -> "DetectionEvent":
        return cls(
            modality=modality,
            label=raw.label,
            confidence=raw.confidence,
            bbox=raw.bbox,
            timestamp=timestamp,
            entity_id=entity_id,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        d: Dict[str, Any] = {
            "modality": self.modality.value,
            "label": self.label,
            "confidence": self.confidence,
            "bbox": self.bbox.as_list(),
            "timestamp": self.timestamp,
        }
        if self.entity_id is not None:
            d["entity_id"] = self.entity_id
        return d
