"""
Status models for session monitoring.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class SessionPhase(str, Enum):
    """Session controller states."""
    IDLE = "idle"
    ACTIVE = "active"


@dataclass
class ModalityStatus:
    """
    Runtime counters for one modality's polling loop.

    Attributes:
        ready: Whether the adapter finished initialization.
        interval_ms: Polling cadence.
        ticks: Completed ticks whose batch was applied.
        errors: Ticks dropped because the adapter failed.
        skipped: Scheduled slots skipped because a tick overran.
        buffered: Events currently retained in the history buffer.
        last_error: Message of the most recent adapter failure.
    """
    ready: bool = False
    interval_ms: int = 0
    ticks: int = 0
    errors: int = 0
    skipped: int = 0
    buffered: int = 0
    last_error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "ready": self.ready,
            "interval_ms": self.interval_ms,
            "ticks": self.ticks,
            "errors": self.errors,
            "skipped": self.skipped,
            "buffered": self.buffered,
        }
        if self.last_error:
            d["last_error"] = self.last_error
        return d


@dataclass
class SessionStatus:
    """Snapshot of the session controller for status endpoints."""
    phase: SessionPhase = SessionPhase.IDLE
    started_at: Optional[float] = None
    has_recent_session: bool = False
    modalities: Dict[str, ModalityStatus] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase.value,
            "started_at": self.started_at,
            "has_recent_session": self.has_recent_session,
            "modalities": {name: m.to_dict() for name, m in self.modalities.items()},
        }
