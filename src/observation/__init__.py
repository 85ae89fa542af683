"""
Observation layer for the shared frame handle.

Frame acquisition itself happens outside this project; sources only hand an
opaque frame to the detector adapters.
"""

from .base import CallableFrameSource, FrameSource, StaticFrameSource, as_frame_source

__all__ = [
    "CallableFrameSource",
    "FrameSource",
    "StaticFrameSource",
    "as_frame_source",
]
