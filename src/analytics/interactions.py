"""
Pairwise interaction inference between tracked faces.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional, Sequence

from models.face import TrackedFace
from models.interaction import Interaction, InteractionKind


@dataclass
class InteractionDetector:
    """
    Emits an interaction for every pair of faces closer than the threshold.

    Pairs are visited as (i, j) with i < j in detection order. Pairs whose
    faces carry the same entity id are skipped. Face counts per frame are
    small, so the quadratic scan is fine.
    """
    distance_threshold_px: float = 300.0
    smile_emotion: str = "happy"

    def detect(self, faces: Sequence[TrackedFace], timestamp: Optional[float] = None) -> List[Interaction]:
        interactions: List[Interaction] = []
        if len(faces) < 2:
            return interactions

        for i in range(len(faces) - 1):
            for j in range(i + 1, len(faces)):
                face1, face2 = faces[i], faces[j]
                # Greedy matching can give two detections the same id
                if face1.entity_id == face2.entity_id:
                    continue
                distance = face1.bbox.distance_to(face2.bbox)
                if distance >= self.distance_threshold_px:
                    continue

                both_smiling = (
                    face1.dominant_emotion == self.smile_emotion
                    and face2.dominant_emotion == self.smile_emotion
                )
                interactions.append(
                    Interaction(
                        kind=InteractionKind.MUTUAL_SMILE if both_smiling else InteractionKind.INTERACTING,
                        entity_ids=(face1.entity_id, face2.entity_id),
                        distance=distance,
                        timestamp=timestamp if timestamp is not None else max(face1.timestamp, face2.timestamp),
                    )
                )

        return interactions


class InteractionLog:
    """
    Append-only interaction audit log.

    Bounded like the history buffers unless capacity is None/0. The lifetime
    total is kept separately and survives eviction.
    """

    def __init__(self, capacity: Optional[int] = 1000):
        self.capacity = capacity or None
        self._entries: Deque[Interaction] = deque(maxlen=self.capacity)
        self.total = 0

    def extend(self, interactions: Sequence[Interaction]) -> None:
        for interaction in interactions:
            if self.capacity is not None and len(self._entries) == self.capacity:
                logging.debug(f"Interaction log full ({self.capacity}), evicting oldest entry")
            self._entries.append(interaction)
            self.total += 1

    def entries(self) -> List[Interaction]:
        return list(self._entries)

    def describe(self) -> List[str]:
        return [interaction.describe() for interaction in self._entries]

    def clear(self) -> None:
        self._entries.clear()
        self.total = 0

    def __len__(self) -> int:
        return len(self._entries)
