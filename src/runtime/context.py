from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from analytics.interactions import InteractionDetector, InteractionLog
from analytics.stats import StatsAggregator
from history.buffer import HistoryBuffer
from models.config import Config
from models.detection import Modality
from models.face import TrackedFace
from models.hand import HandObservation
from tracking.identity import IdentityTracker


@dataclass
class SessionState:
    """Holds all mutable state of one session; owned by the session controller."""

    started_at: float
    buffers: Dict[Modality, HistoryBuffer]
    tracker: IdentityTracker
    interaction_detector: InteractionDetector
    interactions: InteractionLog
    stats: StatsAggregator
    stopped_at: Optional[float] = None
    last_timestamp: float = 0.0

    # Faces and hands from the most recent batch ("in frame now")
    current_faces: List[TrackedFace] = field(default_factory=list)
    current_hands: List[HandObservation] = field(default_factory=list)
    batch_counts: Dict[Modality, int] = field(default_factory=lambda: {m: 0 for m in Modality})

    @classmethod
    def create(cls, config: Config, started_at: float) -> "SessionState":
        capacity = config.session.history_capacity
        return cls(
            started_at=started_at,
            buffers={m: HistoryBuffer(capacity=capacity) for m in Modality},
            tracker=IdentityTracker(
                distance_threshold_px=config.tracking.distance_threshold_px,
                matching=config.tracking.matching,
            ),
            interaction_detector=InteractionDetector(
                distance_threshold_px=config.interactions.distance_threshold_px,
                smile_emotion=config.interactions.smile_emotion,
            ),
            interactions=InteractionLog(capacity=config.interactions.log_capacity),
            stats=StatsAggregator(timeline_limit=config.session.timeline_limit),
            last_timestamp=started_at,
        )

    @property
    def is_active(self) -> bool:
        return self.stopped_at is None

    def stamp(self, now: float) -> float:
        """Timestamp for the next batch; never earlier than the previous one."""
        self.last_timestamp = max(now, self.last_timestamp)
        return self.last_timestamp

    def end(self, stopped_at: float) -> None:
        """Freeze the session: tracked identities are dropped, history is kept for export."""
        self.stopped_at = stopped_at
        self.tracker.tracked_faces = {}
        self.current_faces = []
        self.current_hands = []
