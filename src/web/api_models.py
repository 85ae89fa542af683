from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class TimelineEntryModel(BaseModel):
    time: str = Field(..., description="Local time HH:MM:SS")
    label: str
    confidence: int = Field(..., description="Confidence percentage 0-100")


class ModalitySummaryModel(BaseModel):
    modality: str
    total_detections: int
    counts: Dict[str, int]
    timeline: List[TimelineEntryModel]
    time_range: str
    session_duration_minutes: int


class SessionSummaryResponse(BaseModel):
    """
    Combined session summary, in the shape the answer service consumes.
    """
    modalities: Dict[str, ModalitySummaryModel]
    unique_people: int
    current_faces: int
    faces_in_frame: List[Dict[str, Any]] = Field(default_factory=list)
    hands_in_frame: List[Dict[str, Any]] = Field(default_factory=list)
    emotions: Dict[str, int]
    interactions: List[str]
    interactions_total: int = 0
    gestures: Dict[str, int]
    session_duration_minutes: int
    window_minutes: Optional[float] = None
    generated_at: float


class SummaryTextResponse(BaseModel):
    text: str


class ModalityStatusModel(BaseModel):
    ready: bool
    interval_ms: int
    ticks: int
    errors: int
    skipped: int
    buffered: int
    last_error: Optional[str] = None


class SessionStatusResponse(BaseModel):
    phase: str = Field(..., description="idle|active")
    started_at: Optional[float] = None
    has_recent_session: bool
    modalities: Dict[str, ModalityStatusModel] = Field(default_factory=dict)


class StartResponse(BaseModel):
    ok: bool = True
    started_at: float
    modalities: List[str]


class StopResponse(BaseModel):
    ok: bool = True


class ExportFileResponse(BaseModel):
    ok: bool = True
    path: str
