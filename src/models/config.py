"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

DEFAULT_INTERVALS_MS = {"object": 1000, "face": 500, "hand": 100}


@dataclass
class SessionConfig:
    """Session controller configuration."""
    history_capacity: int = 1000
    timeline_limit: int = 50
    intervals_ms: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_INTERVALS_MS))
    join_timeout_s: float = 5.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SessionConfig":
        intervals = dict(DEFAULT_INTERVALS_MS)
        intervals.update(d.get("intervals_ms") or {})
        return cls(
            history_capacity=d.get("history_capacity", 1000),
            timeline_limit=d.get("timeline_limit", 50),
            intervals_ms=intervals,
            join_timeout_s=d.get("join_timeout_s", 5.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "history_capacity": self.history_capacity,
            "timeline_limit": self.timeline_limit,
            "intervals_ms": dict(self.intervals_ms),
            "join_timeout_s": self.join_timeout_s,
        }


@dataclass
class TrackingConfig:
    """Face identity tracking configuration."""
    distance_threshold_px: float = 100.0
    matching: str = "greedy"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "TrackingConfig":
        return cls(
            distance_threshold_px=d.get("distance_threshold_px", 100.0),
            matching=d.get("matching", "greedy"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "distance_threshold_px": self.distance_threshold_px,
            "matching": self.matching,
        }


@dataclass
class InteractionConfig:
    """Interaction detection configuration."""
    distance_threshold_px: float = 300.0
    smile_emotion: str = "happy"
    log_capacity: Optional[int] = 1000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "InteractionConfig":
        return cls(
            distance_threshold_px=d.get("distance_threshold_px", 300.0),
            smile_emotion=d.get("smile_emotion", "happy"),
            log_capacity=d.get("log_capacity", 1000),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "distance_threshold_px": self.distance_threshold_px,
            "smile_emotion": self.smile_emotion,
            "log_capacity": self.log_capacity,
        }


@dataclass
class WebConfig:
    """HTTP API configuration."""
    host: str = "0.0.0.0"
    port: int = 5000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(host=d.get("host", "0.0.0.0"), port=d.get("port", 5000))

    def to_dict(self) -> Dict[str, Any]:
        return {"host": self.host, "port": self.port}


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    session: SessionConfig = field(default_factory=SessionConfig)
    tracking: TrackingConfig = field(default_factory=TrackingConfig)
    interactions: InteractionConfig = field(default_factory=InteractionConfig)
    web: WebConfig = field(default_factory=WebConfig)
    export_dir: str = "output/exports"
    log_path: str = "logs/perception.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            session=SessionConfig.from_dict(d.get("session", {}) or {}),
            tracking=TrackingConfig.from_dict(d.get("tracking", {}) or {}),
            interactions=InteractionConfig.from_dict(d.get("interactions", {}) or {}),
            web=WebConfig.from_dict(d.get("web", {}) or {}),
            export_dir=(d.get("export", {}) or {}).get("output_dir", "output/exports"),
            log_path=d.get("log_path", "logs/perception.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session": self.session.to_dict(),
            "tracking": self.tracking.to_dict(),
            "interactions": self.interactions.to_dict(),
            "web": self.web.to_dict(),
            "export": {"output_dir": self.export_dir},
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
