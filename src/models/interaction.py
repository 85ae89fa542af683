"""
Interaction model for pairwise proximity events between tracked faces.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class InteractionKind(str, Enum):
    MUTUAL_SMILE = "mutual_smile"
    INTERACTING = "interacting"


@dataclass(frozen=True)
class Interaction:
    """
    An interaction emitted when two tracked faces are close together.

    Attributes:
        kind: Mutual smile when both faces share the smile emotion, else generic.
        entity_ids: The pair of entity ids, in detection order.
        distance: Top-left corner distance in pixels.
        timestamp: Milliseconds since the epoch.
    """
    kind: InteractionKind
    entity_ids: Tuple[int, int]
    distance: float
    timestamp: float

    def describe(self) -> str:
        a, b = self.entity_ids
        if self.kind == InteractionKind.MUTUAL_SMILE:
            return f"Person #{a} and #{b} both smiling"
        return f"Person #{a} and #{b} interacting"

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "entity_ids": list(self.entity_ids),
            "distance": self.distance,
            "timestamp": self.timestamp,
            "description": self.describe(),
        }
