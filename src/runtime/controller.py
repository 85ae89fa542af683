"""
Session controller: lifecycle, polling and the single write path.

States:
    IDLE --start()--> ACTIVE --stop()--> IDLE

The controller owns the live SessionState and is its only writer. Polling
threads never touch state directly; they hand each batch to apply_batch(),
which applies it atomically under one lock. Summary and export readers take
the same lock, so they always see fully applied batches.

After stop() the ended session is retained read-only until the next start(),
so any number of query_summary()/export_all() calls can follow a stop.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional

from analytics.report import render_summary_text
from detection.base import DetectorAdapter
from detection.hands import hand_from_detection
from export.exporter import build_export, write_export
from models.config import Config
from models.detection import DetectionEvent, Modality, RawDetection
from models.status import ModalityStatus, SessionPhase, SessionStatus
from models.summary import SessionSummary
from observation.base import as_frame_source
from pipeline.poller import ModalityPoller
from runtime.context import SessionState
from runtime.errors import (
    AdapterInitError,
    AdapterTransientError,
    AlreadyActiveError,
    InvalidStateError,
    NoActiveOrRecentSessionError,
    NotReadyError,
)


def wall_clock_ms() -> float:
    return time.time() * 1000.0


class SessionController:
    """
    Orchestrates per-modality polling loops and aggregates their output.

    Example:
        controller = SessionController(config)
        controller.register(Modality.OBJECT, object_adapter)
        controller.register(Modality.FACE, face_adapter)
        controller.initialize_adapters()
        controller.start(frame_source)
        ...
        summary = controller.query_summary(window_minutes=5)
        controller.stop()
        artifact = controller.export_all()
    """

    def __init__(self, config: Optional[Config] = None, clock: Callable[[], float] = wall_clock_ms):
        """
        Args:
            config: Typed application config; defaults apply when omitted.
            clock: Returns the current time in milliseconds since the epoch.
        """
        self.config = config or Config()
        self._clock = clock
        self._lock = threading.Lock()

        self._adapters: Dict[Modality, DetectorAdapter] = {}
        self._intervals: Dict[Modality, int] = {}
        self._ready: Dict[Modality, bool] = {}
        self._init_errors: Dict[Modality, str] = {}

        self._state: Optional[SessionState] = None
        self._last_state: Optional[SessionState] = None
        self._pollers: Dict[Modality, ModalityPoller] = {}
        self._last_pollers: Dict[Modality, ModalityPoller] = {}
        self._frame_source = as_frame_source(None)
        self._ever_started = False

    # ------------------------------------------------------------------
    # Adapters
    # ------------------------------------------------------------------

    def register(self, modality: Modality, adapter: DetectorAdapter, interval_ms: Optional[int] = None) -> None:
        """
        Attach the adapter serving a modality, replacing any previous one.

        Raises:
            AlreadyActiveError: A session is active.
            ValueError: interval_ms is given and not positive.
        """
        if self.is_active:
            raise AlreadyActiveError("cannot register adapters while a session is active")
        if interval_ms is not None and interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")
        modality = Modality(modality)
        if interval_ms is None:
            interval_ms = self.config.session.intervals_ms[modality.value]
        self._adapters[modality] = adapter
        self._intervals[modality] = int(interval_ms)
        self._ready[modality] = bool(getattr(adapter, "is_ready", False))
        self._init_errors.pop(modality, None)

    def initialize_adapters(self) -> Dict[Modality, bool]:
        """
        Initialize every registered adapter.

        Failures are logged and leave that modality unavailable; they are
        never raised.
        """
        for modality, adapter in self._adapters.items():
            try:
                adapter.initialize()
                self._ready[modality] = True
                self._init_errors.pop(modality, None)
                logging.info(f"Detector ready: modality={modality.value}, adapter={getattr(adapter, 'name', type(adapter).__name__)}")
            except AdapterInitError as e:
                self._mark_unavailable(modality, str(e))
            except Exception as e:
                self._mark_unavailable(modality, f"{type(e).__name__}: {e}")
        return dict(self._ready)

    def _mark_unavailable(self, modality: Modality, reason: str) -> None:
        self._ready[modality] = False
        self._init_errors[modality] = reason
        logging.warning(f"Detector unavailable: modality={modality.value}: {reason}")

    @property
    def adapters(self) -> Dict[Modality, DetectorAdapter]:
        return dict(self._adapters)

    def ready_modalities(self) -> List[Modality]:
        return [m for m in Modality if self._ready.get(m)]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def phase(self) -> SessionPhase:
        return SessionPhase.ACTIVE if self._state is not None else SessionPhase.IDLE

    @property
    def is_active(self) -> bool:
        return self._state is not None

    def start(self, frame_source: Any = None, poll: bool = True) -> float:
        """
        Begin a new session.

        Args:
            frame_source: FrameSource, zero-arg callable, or plain frame handle.
            poll: Start one polling thread per ready modality. With poll=False
                  batches are fed through ingest()/run_tick() by the caller.

        Returns:
            Session start time in milliseconds.

        Raises:
            AlreadyActiveError: A session is already active.
            NotReadyError: No registered adapter has completed initialization.
        """
        source = as_frame_source(frame_source)
        with self._lock:
            if self._state is not None:
                raise AlreadyActiveError("a session is already active")
            ready = self.ready_modalities()
            if not ready:
                raise NotReadyError("no detector adapter is ready")

            started_at = self._clock()
            state = SessionState.create(self.config, started_at)

            # Build everything before publishing the session so a failure leaves us idle
            pollers: Dict[Modality, ModalityPoller] = {}
            if poll:
                for modality in ready:
                    pollers[modality] = ModalityPoller(
                        modality=modality,
                        adapter=self._adapters[modality],
                        frame_source=source,
                        on_batch=lambda m, dets, s=state: self.apply_batch(m, dets, session=s),
                        interval_ms=self._intervals[modality],
                    )

            self._state = state
            self._last_state = None
            self._ever_started = True
            self._frame_source = source
            self._pollers = pollers
            self._last_pollers = {}

        for poller in pollers.values():
            poller.start()

        logging.info(
            f"Session started: modalities={[m.value for m in ready]}, polling={'on' if poll else 'off'}"
        )
        return started_at

    def stop(self) -> None:
        """
        End the active session.

        Idempotent once a session has been started. Polling stops scheduling
        new ticks; a tick still in flight completes and its batch is discarded.

        Raises:
            InvalidStateError: No session was ever started.
        """
        with self._lock:
            if not self._ever_started:
                raise InvalidStateError("stop() called before any session was started")
            if self._state is None:
                return
            state = self._state
            state.end(self._clock())
            self._state = None
            self._last_state = state
            pollers = self._pollers
            self._pollers = {}

        for poller in pollers.values():
            poller.stop()
        for poller in pollers.values():
            poller.join(timeout=self.config.session.join_timeout_s)

        with self._lock:
            self._last_pollers = pollers
        duration_s = (state.stopped_at - state.started_at) / 1000.0
        totals = {m.value: state.stats.lifetime_total(m) for m in Modality}
        logging.info(f"Session stopped after {duration_s:.1f}s: events={totals}")

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    def apply_batch(
        self,
        modality: Modality,
        detections: List[RawDetection],
        session: Optional[SessionState] = None,
    ) -> bool:
        """
        Apply one tick's detections to the live session, atomically.

        Args:
            modality: Modality the batch belongs to.
            detections: Raw detections from the adapter.
            session: The session the tick was started for. If it is no longer
                     the live session the batch is discarded.

        Returns:
            True if applied, False if discarded.
        """
        modality = Modality(modality)
        with self._lock:
            state = self._state
            if state is None or (session is not None and session is not state):
                logging.debug(f"[{modality.value}] discarding batch for an ended session")
                return False

            timestamp = state.stamp(self._clock())
            events = self._build_events(state, modality, detections, timestamp)
            state.buffers[modality].extend(events)
            state.stats.record_batch(events)
            state.batch_counts[modality] += 1
            return True

    def _build_events(
        self,
        state: SessionState,
        modality: Modality,
        detections: List[RawDetection],
        timestamp: float,
    ) -> List[DetectionEvent]:
        if modality == Modality.FACE:
            faces = state.tracker.update(detections, timestamp)
            state.current_faces = faces
            interactions = state.interaction_detector.detect(faces, timestamp)
            if interactions:
                state.interactions.extend(interactions)
                for interaction in interactions:
                    logging.debug(f"Interaction: {interaction.describe()}")
            return [face.to_event() for face in faces]

        if modality == Modality.HAND:
            hands = [hand_from_detection(d, timestamp) for d in detections]
            state.current_hands = hands
            return [hand.to_event() for hand in hands]

        return [DetectionEvent.from_raw(modality, d, timestamp) for d in detections]

    def ingest(self, modality: Modality, detections: List[RawDetection]) -> None:
        """
        Apply a batch supplied by the caller, exactly as a polling tick would.

        Raises:
            InvalidStateError: No session is active.
        """
        if not self.apply_batch(modality, detections):
            raise InvalidStateError("no active session to ingest into")

    def run_tick(self, modality: Modality) -> bool:
        """
        Run one synchronous tick against the registered adapter.

        Adapter errors are logged and the tick dropped, like a polled tick.

        Raises:
            InvalidStateError: No session is active.
        """
        modality = Modality(modality)
        with self._lock:
            state = self._state
            if state is None:
                raise InvalidStateError("no active session")
            source = self._frame_source
        adapter = self._adapters.get(modality)
        if adapter is None or not self._ready.get(modality):
            raise InvalidStateError(f"no ready adapter for modality {modality.value}")

        try:
            detections = adapter.detect(source.current_frame())
        except AdapterTransientError as e:
            logging.warning(f"[{modality.value}] detection failed, dropping tick: {e}")
            return False
        except Exception as e:
            logging.error(f"[{modality.value}] unexpected adapter error, dropping tick: {type(e).__name__}: {e}")
            return False
        return self.apply_batch(modality, list(detections or []), session=state)

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    def _readable_state(self) -> SessionState:
        state = self._state or self._last_state
        if state is None:
            raise NoActiveOrRecentSessionError("no active or recent session")
        return state

    def query_summary(self, window_minutes: Optional[float] = None) -> SessionSummary:
        """
        Combined summary over all modalities.

        For a stopped session, times are measured against the stop time.

        Raises:
            NoActiveOrRecentSessionError: No session was ever started.
            ValueError: window_minutes is negative.
        """
        with self._lock:
            state = self._readable_state()
            return self._build_summary(state, window_minutes)

    def _build_summary(self, state: SessionState, window_minutes: Optional[float]) -> SessionSummary:
        now = state.stopped_at if state.stopped_at is not None else self._clock()
        modalities = {
            m.value: state.stats.summarize(m, state.buffers[m], now, window_minutes)
            for m in Modality
        }
        return SessionSummary(
            modalities=modalities,
            unique_people=state.tracker.unique_count,
            current_faces=len(state.current_faces),
            faces_in_frame=[face.to_dict() for face in state.current_faces],
            hands_in_frame=[hand.to_dict() for hand in state.current_hands],
            emotions=state.stats.lifetime_counts(Modality.FACE),
            interactions=state.interactions.describe(),
            interactions_total=state.interactions.total,
            gestures=state.stats.lifetime_counts(Modality.HAND),
            session_duration_minutes=max(s.session_duration_minutes for s in modalities.values()),
            window_minutes=window_minutes or None,
            generated_at=now,
        )

    def render_summary(self, window_minutes: Optional[float] = None) -> str:
        return render_summary_text(self.query_summary(window_minutes))

    def export_all(self) -> Dict[str, Any]:
        """
        Export the active or most recent session.

        Raises:
            NoActiveOrRecentSessionError: No session was ever started.
        """
        with self._lock:
            state = self._readable_state()
            summary = self._build_summary(state, None)
            return build_export(state, summary, exported_at=self._clock())

    def export_to_file(self, path: Optional[str] = None) -> str:
        artifact = self.export_all()
        return write_export(artifact, path=path, output_dir=self.config.export_dir)

    def status(self) -> SessionStatus:
        with self._lock:
            state = self._state or self._last_state
            pollers = dict(self._pollers) or dict(self._last_pollers)
            modalities: Dict[str, ModalityStatus] = {}
            for m in Modality:
                if m not in self._adapters:
                    continue
                poller = pollers.get(m)
                modalities[m.value] = ModalityStatus(
                    ready=bool(self._ready.get(m)),
                    interval_ms=self._intervals[m],
                    ticks=state.batch_counts[m] if state is not None else 0,
                    errors=poller.stats.errors if poller is not None else 0,
                    skipped=poller.stats.skipped if poller is not None else 0,
                    buffered=len(state.buffers[m]) if state is not None else 0,
                    last_error=(poller.stats.last_error if poller is not None else None) or self._init_errors.get(m),
                )
            return SessionStatus(
                phase=self.phase,
                started_at=state.started_at if state is not None else None,
                has_recent_session=self._last_state is not None,
                modalities=modalities,
            )
