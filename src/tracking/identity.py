"""
Face identity tracking across polling ticks.

This module implements a simple nearest-position heuristic. Each new face is
matched against the faces tracked on the previous tick by the distance
between bounding box top-left corners. There is no motion model, so ids can
be swapped under fast motion or occlusion.

Note: Interaction inference is NOT done here. See analytics.interactions.
"""

import logging
from typing import Dict, List, Optional, Sequence

import numpy as np

from detection.faces import dominant_emotion, face_attributes
from models.detection import RawDetection
from models.face import TrackedFace

MATCHING_MODES = ("greedy", "unique")


class IdentityTracker:
    """
    Assigns stable integer ids to face detections.

    This tracker is responsible for:
    - Matching detections to the previous tick's faces by top-left distance
    - Minting new ids from a strictly increasing counter
    - Replacing the tracked set wholesale after every tick

    Matching modes:
    - "greedy" (default): every detection independently takes the id of the
      nearest tracked face within the threshold. Several detections may take
      the same id.
    - "unique": closest pairs are assigned first and each tracked face is
      used at most once.
    """

    def __init__(self, distance_threshold_px: float = 100.0, matching: str = "greedy"):
        """
        Initialize the identity tracker.

        Args:
            distance_threshold_px: Maximum top-left distance (exclusive) for a
                                   detection to keep an existing id
            matching: "greedy" or "unique"
        """
        if matching not in MATCHING_MODES:
            raise ValueError(f"matching must be one of: {', '.join(MATCHING_MODES)}")
        self.distance_threshold_px = distance_threshold_px
        self.matching = matching

        self.tracked_faces: Dict[int, TrackedFace] = {}
        self.next_entity_id = 1
        self.seen_ids: set = set()

        logging.info(f"Identity tracker initialized (threshold={distance_threshold_px}px, matching={matching})")

    def update(self, detections: Sequence[RawDetection], timestamp: float) -> List[TrackedFace]:
        """
        Assign ids to one tick's face detections.

        Args:
            detections: Raw face detections from the adapter
            timestamp: Tick timestamp in milliseconds

        Returns:
            TrackedFace per detection, in detection order
        """
        if self.matching == "unique":
            ids = self._assign_unique(detections)
        else:
            ids = [self._assign_greedy(det) for det in detections]

        faces = [self._build_face(det, entity_id, timestamp) for det, entity_id in zip(detections, ids)]

        # Replace, don't merge: faces absent this tick are gone for matching.
        self.tracked_faces = {face.entity_id: face for face in faces}
        self.seen_ids.update(ids)
        return faces

    def reset(self) -> None:
        self.tracked_faces = {}
        self.next_entity_id = 1
        self.seen_ids = set()

    @property
    def unique_count(self) -> int:
        return len(self.seen_ids)

    def _mint_id(self) -> int:
        entity_id = self.next_entity_id
        self.next_entity_id += 1
        return entity_id

    def _assign_greedy(self, detection: RawDetection) -> int:
        best_id: Optional[int] = None
        best_distance = float("inf")

        for entity_id, face in self.tracked_faces.items():
            distance = detection.bbox.distance_to(face.bbox)
            if distance < best_distance:
                best_distance = distance
                best_id = entity_id

        if best_id is not None and best_distance < self.distance_threshold_px:
            return best_id
        return self._mint_id()

    def _assign_unique(self, detections: Sequence[RawDetection]) -> List[int]:
        assigned: List[Optional[int]] = [None] * len(detections)
        tracked = list(self.tracked_faces.values())

        if detections and tracked:
            new_xy = np.array([[d.bbox.x, d.bbox.y] for d in detections], dtype=float)
            old_xy = np.array([[f.bbox.x, f.bbox.y] for f in tracked], dtype=float)
            dist = np.linalg.norm(new_xy[:, None, :] - old_xy[None, :, :], axis=2)

            used_tracked = set()
            for flat_idx in np.argsort(dist, axis=None, kind="stable"):
                det_idx, trk_idx = np.unravel_index(flat_idx, dist.shape)
                if dist[det_idx, trk_idx] >= self.distance_threshold_px:
                    break
                if assigned[det_idx] is not None or trk_idx in used_tracked:
                    continue
                assigned[det_idx] = tracked[trk_idx].entity_id
                used_tracked.add(trk_idx)

        return [entity_id if entity_id is not None else self._mint_id() for entity_id in assigned]

    def _build_face(self, detection: RawDetection, entity_id: int, timestamp: float) -> TrackedFace:
        extras = face_attributes(detection.attributes)
        return TrackedFace(
            entity_id=entity_id,
            bbox=detection.bbox,
            confidence=detection.confidence,
            dominant_emotion=dominant_emotion(extras["expressions"], fallback=detection.label),
            timestamp=timestamp,
            age=extras["age"],
            gender=extras["gender"],
            expressions=extras["expressions"],
        )
