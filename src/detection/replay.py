"""
Replay adapter: feeds recorded detections tick by tick.

Recording format (YAML or JSON), one list of detections per tick:

    object:
      - [{label: car, confidence: 0.9, bbox: [10, 20, 50, 40]}]
      - []
    face:
      - [{label: happy, confidence: 0.8, bbox: [10, 10, 64, 64], age: 31}]
"""

from __future__ import annotations

import json
import logging
import os
import threading
from typing import Any, Dict, List, Sequence

import yaml

from detection.base import DetectorAdapter
from models.detection import Modality, RawDetection
from runtime.errors import AdapterInitError


class ReplayAdapter(DetectorAdapter):
    """
    Returns one recorded tick per detect() call.

    When the recording is exhausted it returns empty ticks, or starts over
    if loop=True.
    """

    def __init__(self, ticks: Sequence[Sequence[RawDetection]], loop: bool = False, name: str = "replay"):
        super().__init__()
        self._ticks: List[List[RawDetection]] = [list(t) for t in ticks]
        self._loop = loop
        self._pos = 0
        self._lock = threading.Lock()
        self.name = name

    def initialize(self) -> None:
        if not self._ticks:
            raise AdapterInitError(f"{self.name}: recording has no ticks")
        self._ready = True

    def detect(self, frame: Any) -> List[RawDetection]:
        with self._lock:
            if self._pos >= len(self._ticks):
                if not self._loop:
                    return []
                self._pos = 0
            tick = self._ticks[self._pos]
            self._pos += 1
        return list(tick)

    @property
    def exhausted(self) -> bool:
        return not self._loop and self._pos >= len(self._ticks)

    @classmethod
    def from_records(cls, records: Sequence[Sequence[Dict[str, Any]]], **kwargs) -> "ReplayAdapter":
        ticks = [[RawDetection.from_dict(d) for d in (tick or [])] for tick in records]
        return cls(ticks, **kwargs)


def load_recording(path: str) -> Dict[str, List[List[Dict[str, Any]]]]:
    """Load a per-modality recording from a .json/.yaml/.yml file."""
    if not os.path.exists(path):
        raise FileNotFoundError(f"Recording not found: {path}")
    with open(path, "r") as f:
        if path.endswith(".json"):
            data = json.load(f)
        else:
            data = yaml.safe_load(f)
    return data or {}


def create_replay_adapters(path: str, loop: bool = False) -> Dict[Modality, ReplayAdapter]:
    """
    Factory function to build one ReplayAdapter per modality in a recording.

    Unknown top-level keys are ignored with a warning.
    """
    data = load_recording(path)
    adapters: Dict[Modality, ReplayAdapter] = {}
    for key, records in data.items():
        try:
            modality = Modality(key)
        except ValueError:
            logging.warning(f"Ignoring unknown modality in recording: {key}")
            continue
        adapters[modality] = ReplayAdapter.from_records(records or [], loop=loop, name=f"replay-{key}")
    logging.info(f"Loaded recording {path}: modalities={[m.value for m in adapters]}")
    return adapters
