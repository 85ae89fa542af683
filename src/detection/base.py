"""
Detection adapter interface.

The aggregator never runs detection models itself. Each modality is served by
an adapter that turns a frame handle into a list of RawDetections:
- object classifiers (e.g. COCO-SSD, YOLO)
- face/emotion classifiers
- hand landmark estimators
- recorded detections replayed from a file
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional

from models.detection import RawDetection
from runtime.errors import AdapterInitError


class DetectorAdapter(ABC):
    """
    Abstract base class for detector adapters.

    Lifecycle:
        1. Create instance
        2. Call initialize() once; raise AdapterInitError if not ready
        3. Call detect(frame) once per polling tick
    """

    name: str = "detector"

    def __init__(self):
        self._ready = False

    @property
    def is_ready(self) -> bool:
        """Whether initialize() completed successfully."""
        return self._ready

    def initialize(self) -> None:
        """
        Load models or open connections.

        Raises:
            AdapterInitError: If the adapter cannot become ready.
        """
        self._ready = True

    @abstractmethod
    def detect(self, frame: Any) -> List[RawDetection]:
        """
        Run detection on one frame.

        Args:
            frame: Opaque frame handle; passed through untouched.

        Raises:
            Exception: Any failure drops the current tick only.
        """
        pass


class CallableAdapter(DetectorAdapter):
    """
    Wraps plain functions as an adapter.

    Example:
        adapter = CallableAdapter(lambda frame: model.predict(frame), name="coco-ssd")
    """

    def __init__(
        self,
        detect_fn: Callable[[Any], List[RawDetection]],
        init_fn: Optional[Callable[[], None]] = None,
        name: str = "callable",
    ):
        super().__init__()
        self._detect_fn = detect_fn
        self._init_fn = init_fn
        self.name = name

    def initialize(self) -> None:
        if self._init_fn is not None:
            try:
                self._init_fn()
            except AdapterInitError:
                raise
            except Exception as e:
                raise AdapterInitError(f"{self.name}: {e}") from e
        self._ready = True

    def detect(self, frame: Any) -> List[RawDetection]:
        return list(self._detect_fn(frame))
