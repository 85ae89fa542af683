"""
FrameSource interface for the shared video frame handle.

All modality loops read the same source. The aggregator never inspects pixel
data; whatever current_frame() returns is passed straight to the adapters:
- a decoded numpy frame from a camera
- a video element / stream reference owned by another process
- None, for adapters that capture on their own (e.g. replay)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional


class FrameSource(ABC):
    """Supplies the current frame handle to polling ticks."""

    @abstractmethod
    def current_frame(self) -> Any:
        """Return the latest frame handle. May be called from several threads."""
        pass


class StaticFrameSource(FrameSource):
    """Always returns the same handle."""

    def __init__(self, frame: Any = None):
        self._frame = frame

    def current_frame(self) -> Any:
        return self._frame


class CallableFrameSource(FrameSource):
    """Wraps a zero-argument callable returning the current frame."""

    def __init__(self, fn: Callable[[], Any]):
        self._fn = fn

    def current_frame(self) -> Any:
        return self._fn()


def as_frame_source(source: Optional[Any]) -> FrameSource:
    """
    Adapter: Accept a FrameSource, a callable, or a plain handle.

    None yields a source that always returns None.
    """
    if isinstance(source, FrameSource):
        return source
    if callable(source):
        return CallableFrameSource(source)
    return StaticFrameSource(source)
