"""
Per-modality polling loop.

Each modality runs its own ModalityPoller thread on a fixed cadence. A tick
reads the shared frame handle, asks the modality's adapter for detections and
hands the batch to the session controller. Loops for different modalities
drift independently; nothing keeps them in lockstep.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from detection.base import DetectorAdapter
from models.detection import Modality, RawDetection
from observation.base import FrameSource
from runtime.errors import AdapterTransientError

# Returns True if the batch was applied, False if it was discarded.
BatchHandler = Callable[[Modality, List[RawDetection]], bool]


@dataclass
class PollerStats:
    """Runtime statistics for one polling loop."""
    ticks: int = 0
    applied: int = 0
    errors: int = 0
    skipped: int = 0
    discarded: int = 0
    last_error: Optional[str] = None


class ModalityPoller:
    """
    Fixed-interval detect-and-aggregate loop for one modality.

    Ticks never overlap: if a tick runs past one or more scheduled slots,
    those slots are skipped rather than queued. Adapter failures are logged
    and drop only the failing tick.

    Example:
        poller = ModalityPoller(Modality.FACE, adapter, frames, controller_handler, 500)
        poller.start()
        ...
        poller.stop()
        poller.join(timeout=5)
    """

    def __init__(
        self,
        modality: Modality,
        adapter: DetectorAdapter,
        frame_source: FrameSource,
        on_batch: BatchHandler,
        interval_ms: int,
        clock: Callable[[], float] = time.monotonic,
    ):
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        self.modality = modality
        self.adapter = adapter
        self.frame_source = frame_source
        self.interval_ms = interval_ms
        self.stats = PollerStats()
        self._on_batch = on_batch
        self._clock = clock
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the loop on a daemon thread."""
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self.run,
            name=f"poll-{self.modality.value}",
            daemon=True,
        )
        self._thread.start()

    def run(self) -> None:
        """
        Run ticks until stopped.

        The first tick fires immediately, then every interval_ms.
        """
        interval = self.interval_ms / 1000.0
        next_due = self._clock()
        logging.info(f"Polling started: modality={self.modality.value}, interval={self.interval_ms}ms")

        while not self._stop_event.is_set():
            self.tick()

            next_due += interval
            now = self._clock()
            if now > next_due:
                missed = int((now - next_due) // interval) + 1
                self.stats.skipped += missed
                next_due += missed * interval
                logging.debug(
                    f"[{self.modality.value}] tick overran, skipped {missed} slot(s)"
                )
            self._stop_event.wait(max(0.0, next_due - now))

        logging.info(
            f"Polling stopped: modality={self.modality.value}, ticks={self.stats.ticks}, "
            f"errors={self.stats.errors}, skipped={self.stats.skipped}"
        )

    def tick(self) -> bool:
        """
        Execute one detect-and-aggregate cycle.

        Returns True if a batch was applied to the session.
        """
        self.stats.ticks += 1
        try:
            frame = self.frame_source.current_frame()
            detections = self.adapter.detect(frame)
        except AdapterTransientError as e:
            self.stats.errors += 1
            self.stats.last_error = str(e)
            logging.warning(f"[{self.modality.value}] detection failed, dropping tick: {e}")
            return False
        except Exception as e:
            self.stats.errors += 1
            self.stats.last_error = str(e)
            logging.error(f"[{self.modality.value}] unexpected adapter error, dropping tick: {type(e).__name__}: {e}")
            return False

        # stop() may have landed while detect() was in flight
        if self._stop_event.is_set():
            self.stats.discarded += 1
            return False

        try:
            applied = self._on_batch(self.modality, list(detections or []))
        except Exception as e:
            self.stats.errors += 1
            self.stats.last_error = str(e)
            logging.error(f"[{self.modality.value}] failed to apply batch: {e}")
            return False

        if applied:
            self.stats.applied += 1
        else:
            self.stats.discarded += 1
        return applied

    def stop(self) -> None:
        """Signal the loop to stop; an in-flight tick is allowed to finish."""
        self._stop_event.set()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)
            if self._thread.is_alive():
                logging.warning(
                    f"[{self.modality.value}] poller still busy after {timeout}s; its result will be discarded"
                )
