"""
Detection adapters and per-modality post-processing.

The detection models themselves live outside this project; adapters only
translate their output into RawDetections.
"""

from .base import CallableAdapter, DetectorAdapter
from .replay import ReplayAdapter, create_replay_adapters

__all__ = ["CallableAdapter", "DetectorAdapter", "ReplayAdapter", "create_replay_adapters"]
