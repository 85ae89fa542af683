"""
Typed models for the perception session aggregator.

These models are plain dataclasses with to_dict adapters for JSON output.
"""

from .detection import BoundingBox, DetectionEvent, Modality, RawDetection
from .face import TrackedFace
from .hand import HandObservation
from .interaction import Interaction, InteractionKind
from .summary import ModalitySummary, SessionSummary, TimelineEntry
from .status import ModalityStatus, SessionPhase, SessionStatus
from .config import (
    Config,
    InteractionConfig,
    SessionConfig,
    TrackingConfig,
    WebConfig,
)

__all__ = [
    # Detection
    "BoundingBox",
    "DetectionEvent",
    "Modality",
    "RawDetection",
    # Entities
    "TrackedFace",
    "HandObservation",
    "Interaction",
    "InteractionKind",
    # Summaries
    "ModalitySummary",
    "SessionSummary",
    "TimelineEntry",
    # Status
    "ModalityStatus",
    "SessionPhase",
    "SessionStatus",
    # Config
    "Config",
    "InteractionConfig",
    "SessionConfig",
    "TrackingConfig",
    "WebConfig",
]
