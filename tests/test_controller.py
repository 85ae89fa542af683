"""
Tests for the session controller: lifecycle, aggregation and polling.
"""

import threading
import time

import pytest

from conftest import raw
from detection.base import CallableAdapter
from models.config import Config
from models.detection import Modality
from models.status import SessionPhase
from runtime.controller import SessionController
from runtime.errors import (
    AlreadyActiveError,
    InvalidStateError,
    NoActiveOrRecentSessionError,
    NotReadyError,
)


def _failing_init():
    raise RuntimeError("camera permission denied")


class TestLifecycle:
    """Start/stop state machine."""

    def test_initial_state(self, make_controller):
        controller = make_controller()

        assert controller.phase == SessionPhase.IDLE
        assert not controller.is_active
        assert controller.ready_modalities() == [Modality.OBJECT, Modality.FACE, Modality.HAND]

    def test_start_without_adapters(self, fake_clock):
        controller = SessionController(clock=fake_clock)

        with pytest.raises(NotReadyError):
            controller.start(poll=False)

    def test_failed_init_leaves_modality_unavailable(self, fake_clock):
        """Init failures are logged, not raised, and block start when nothing is ready."""
        controller = SessionController(clock=fake_clock)
        controller.register(Modality.OBJECT, CallableAdapter(lambda frame: [], init_fn=_failing_init))

        ready = controller.initialize_adapters()

        assert ready == {Modality.OBJECT: False}
        assert "camera permission denied" in controller.status().modalities["object"].last_error
        with pytest.raises(NotReadyError):
            controller.start(poll=False)

    def test_partial_readiness(self, fake_clock):
        """One ready modality is enough to start."""
        controller = SessionController(clock=fake_clock)
        controller.register(Modality.OBJECT, CallableAdapter(lambda frame: [], init_fn=_failing_init))
        controller.register(Modality.FACE, CallableAdapter(lambda frame: []))
        controller.initialize_adapters()

        controller.start(poll=False)

        assert controller.ready_modalities() == [Modality.FACE]
        assert controller.is_active

    def test_start_twice(self, make_controller):
        controller = make_controller()
        controller.start(poll=False)

        with pytest.raises(AlreadyActiveError):
            controller.start(poll=False)
        assert issubclass(AlreadyActiveError, InvalidStateError)

    def test_register_while_active(self, make_controller):
        controller = make_controller()
        controller.start(poll=False)

        with pytest.raises(AlreadyActiveError):
            controller.register(Modality.HAND, CallableAdapter(lambda frame: []))

    @pytest.mark.parametrize("interval_ms", [0, -5])
    def test_register_rejects_non_positive_interval(self, fake_clock, interval_ms):
        controller = SessionController(clock=fake_clock)

        with pytest.raises(ValueError):
            controller.register(Modality.OBJECT, CallableAdapter(lambda frame: []), interval_ms=interval_ms)
        assert Modality.OBJECT not in controller.adapters

    def test_failed_start_leaves_controller_idle(self, fake_clock):
        """A poller that cannot be built aborts start() without publishing a session."""
        config = Config()
        config.session.intervals_ms["object"] = 0
        controller = SessionController(config, clock=fake_clock)
        controller.register(Modality.OBJECT, CallableAdapter(lambda frame: []))
        controller.initialize_adapters()

        with pytest.raises(ValueError):
            controller.start()

        assert not controller.is_active
        assert controller.phase == SessionPhase.IDLE
        with pytest.raises(InvalidStateError):
            controller.ingest(Modality.OBJECT, [raw("car")])

        controller.register(Modality.OBJECT, CallableAdapter(lambda frame: []), interval_ms=10)
        controller.initialize_adapters()
        controller.start(poll=False)
        assert controller.is_active

    def test_stop_before_any_session(self, make_controller):
        controller = make_controller()

        with pytest.raises(InvalidStateError):
            controller.stop()

    def test_stop_is_idempotent(self, make_controller, fake_clock):
        """A second stop changes nothing."""
        controller = make_controller()
        controller.start(poll=False)
        controller.ingest(Modality.OBJECT, [raw("car")])
        controller.stop()
        status = controller.status().to_dict()
        summary = controller.query_summary().to_dict()

        fake_clock.advance(60_000)
        controller.stop()

        assert controller.phase == SessionPhase.IDLE
        assert controller.status().to_dict() == status
        assert controller.query_summary().to_dict() == summary

    def test_status_after_stop(self, make_controller):
        controller = make_controller()
        started_at = controller.start(poll=False)
        controller.ingest(Modality.FACE, [raw("happy")])
        controller.stop()

        status = controller.status()

        assert status.phase == SessionPhase.IDLE
        assert status.has_recent_session
        assert status.started_at == started_at
        assert status.modalities["face"].ticks == 1
        assert status.modalities["face"].buffered == 1

    def test_restart_discards_previous_session(self, make_controller):
        """A new session starts with empty history and ids from 1."""
        controller = make_controller()
        controller.start(poll=False)
        controller.ingest(Modality.FACE, [raw("happy", 0, 0), raw("sad", 500, 0)])
        controller.stop()

        controller.start(poll=False)
        controller.ingest(Modality.FACE, [raw("happy", 900, 900)])
        artifact = controller.export_all()

        assert artifact["stats"]["face"] == {"happy": 1}
        assert [d["entity_id"] for d in artifact["detections"]["face"]] == [1]
        assert artifact["stopped_at"] is None


class TestAggregation:
    """Batches flowing into history, stats, identities and interactions."""

    def test_object_counts_and_timeline(self, make_controller, fake_clock):
        controller = make_controller()
        controller.start(poll=False)

        controller.ingest(Modality.OBJECT, [raw("car")])
        fake_clock.advance(1000)
        controller.ingest(Modality.OBJECT, [raw("car"), raw("person")])

        objects = controller.query_summary().modalities["object"]
        assert objects.counts == {"car": 2, "person": 1}
        assert objects.total_detections == 3
        assert len(objects.timeline) == 3

        # An empty tick counts as a tick but adds no detections
        fake_clock.advance(1000)
        controller.ingest(Modality.OBJECT, [])

        objects = controller.query_summary().modalities["object"]
        assert objects.counts == {"car": 2, "person": 1}
        assert len(objects.timeline) == 3
        assert controller.status().modalities["object"].ticks == 3

        controller.stop()
        assert controller.export_all()["stats"]["object"] == {"car": 2, "person": 1}

    def test_face_identities(self, make_controller, fake_clock):
        controller = make_controller()
        controller.start(poll=False)

        for x, y in [(10, 10), (15, 12), (500, 500)]:
            controller.ingest(Modality.FACE, [raw("neutral", x, y)])
            fake_clock.advance(500)

        summary = controller.query_summary()
        faces = controller.export_all()["detections"]["face"]
        assert [f["entity_id"] for f in faces] == [1, 1, 2]
        assert summary.unique_people == 2
        assert summary.current_faces == 1

    def test_mutual_smile_interaction(self, make_controller):
        controller = make_controller()
        controller.start(poll=False)

        controller.ingest(Modality.FACE, [raw("happy", 0, 0), raw("happy", 100, 0)])

        summary = controller.query_summary()
        assert summary.interactions == ["Person #1 and #2 both smiling"]
        assert summary.emotions == {"happy": 2}
        assert controller.export_all()["interactions"][0]["kind"] == "mutual_smile"

    def test_shared_id_is_not_an_interaction(self, make_controller):
        """Two detections greedily matched to one person never interact with themselves."""
        controller = make_controller()
        controller.start(poll=False)

        controller.ingest(Modality.FACE, [raw("happy", 0, 0)])
        controller.ingest(Modality.FACE, [raw("happy", 10, 0), raw("happy", 0, 10)])

        faces = controller.export_all()["detections"]["face"]
        summary = controller.query_summary()
        assert [f["entity_id"] for f in faces] == [1, 1, 1]
        assert summary.interactions == []
        assert summary.interactions_total == 0

    def test_summary_carries_frame_detail(self, make_controller):
        """Latest faces and hands are reported with their attributes."""
        controller = make_controller()
        controller.start(poll=False)

        controller.ingest(Modality.FACE, [raw("happy", 0, 0, age=31.6, gender="female"), raw("happy", 100, 0)])
        controller.ingest(Modality.HAND, [raw("hand", handedness="left", finger_count=2)])

        summary = controller.query_summary().to_dict()
        assert summary["faces_in_frame"][0]["entity_id"] == 1
        assert summary["faces_in_frame"][0]["age"] == 31.6
        assert summary["faces_in_frame"][0]["gender"] == "female"
        assert "age" not in summary["faces_in_frame"][1]
        assert summary["hands_in_frame"][0]["handedness"] == "left"
        assert summary["hands_in_frame"][0]["gesture"] == "Peace"
        assert summary["hands_in_frame"][0]["finger_count"] == 2
        assert summary["interactions_total"] == 1

        text = controller.render_summary()
        assert "  - Person #1: happy, ~32y, female" in text
        assert "  - Person #2: happy" in text
        assert "Interactions (1 total):" in text
        assert "Hands in Frame:" in text
        assert "  - left hand: Peace (2 fingers)" in text

    def test_hand_gestures(self, make_controller):
        controller = make_controller()
        controller.start(poll=False)

        controller.ingest(Modality.HAND, [raw("hand", finger_count=2)])
        controller.ingest(Modality.HAND, [raw("hand", finger_count=2), raw("hand", finger_count=0)])

        assert controller.query_summary().gestures == {"Peace": 2, "Fist": 1}

    def test_timestamps_never_go_backwards(self, make_controller, fake_clock):
        controller = make_controller()
        controller.start(poll=False)
        controller.ingest(Modality.OBJECT, [raw("car")])
        fake_clock.advance(-5000)
        controller.ingest(Modality.OBJECT, [raw("car")])

        timestamps = [d["timestamp"] for d in controller.export_all()["detections"]["object"]]

        assert timestamps == sorted(timestamps)

    def test_windowed_summary(self, make_controller, fake_clock):
        controller = make_controller()
        controller.start(poll=False)
        controller.ingest(Modality.OBJECT, [raw("car")])
        fake_clock.advance(10 * 60_000)
        controller.ingest(Modality.OBJECT, [raw("person")])

        windowed = controller.query_summary(window_minutes=5)
        full = controller.query_summary()

        assert windowed.modalities["object"].counts == {"person": 1}
        assert windowed.window_minutes == 5
        assert full.modalities["object"].counts == {"car": 1, "person": 1}
        assert full.session_duration_minutes == 10

    def test_negative_window_rejected(self, make_controller):
        controller = make_controller()
        controller.start(poll=False)

        with pytest.raises(ValueError):
            controller.query_summary(window_minutes=-1)

    def test_stopped_session_measured_at_stop(self, make_controller, fake_clock):
        """Duration of a stopped session does not keep growing."""
        controller = make_controller()
        controller.start(poll=False)
        controller.ingest(Modality.OBJECT, [raw("car")])
        fake_clock.advance(2 * 60_000)
        controller.stop()
        fake_clock.advance(60 * 60_000)

        assert controller.query_summary().session_duration_minutes == 2

    def test_render_summary(self, make_controller):
        controller = make_controller()
        controller.start(poll=False)
        controller.ingest(Modality.OBJECT, [raw("car")])

        text = controller.render_summary()

        assert text.startswith("Complete Session Analytics:")
        assert '"car": 1' in text


class TestInvalidState:
    """Operations outside an allowed state."""

    def test_ingest_without_session(self, make_controller):
        controller = make_controller()

        with pytest.raises(InvalidStateError):
            controller.ingest(Modality.OBJECT, [raw("car")])

    def test_ingest_after_stop(self, make_controller):
        controller = make_controller()
        controller.start(poll=False)
        controller.stop()

        with pytest.raises(InvalidStateError):
            controller.ingest(Modality.OBJECT, [raw("car")])

    def test_query_and_export_before_any_session(self, make_controller):
        controller = make_controller()

        with pytest.raises(NoActiveOrRecentSessionError):
            controller.query_summary()
        with pytest.raises(NoActiveOrRecentSessionError):
            controller.export_all()
        with pytest.raises(NoActiveOrRecentSessionError):
            controller.render_summary()

    def test_export_after_stop_is_repeatable(self, make_controller):
        controller = make_controller()
        controller.start(poll=False)
        controller.ingest(Modality.OBJECT, [raw("car")])
        controller.stop()

        first = controller.export_all()
        second = controller.export_all()

        assert first == second
        assert first["detections"]["object"][0]["label"] == "car"


class TestRunTick:
    """Synchronous ticks against registered adapters."""

    def test_frame_is_passed_to_adapter(self, fake_clock):
        seen = []
        controller = SessionController(clock=fake_clock)
        controller.register(Modality.OBJECT, CallableAdapter(lambda frame: seen.append(frame) or [raw("car")]))
        controller.initialize_adapters()
        controller.start(frame_source="frame-handle", poll=False)

        assert controller.run_tick(Modality.OBJECT)
        assert seen == ["frame-handle"]

    def test_adapter_error_drops_tick_only(self, fake_clock):
        """A failing detect drops its tick; the next tick works."""
        results = [RuntimeError("model crashed"), [raw("car")]]

        def flaky(frame):
            result = results.pop(0)
            if isinstance(result, Exception):
                raise result
            return result

        controller = SessionController(clock=fake_clock)
        controller.register(Modality.OBJECT, CallableAdapter(flaky))
        controller.initialize_adapters()
        controller.start(poll=False)

        assert controller.run_tick(Modality.OBJECT) is False
        assert controller.is_active
        assert controller.run_tick(Modality.OBJECT) is True
        assert controller.query_summary().modalities["object"].counts == {"car": 1}

    def test_unregistered_modality(self, make_controller):
        controller = make_controller(modalities=[Modality.OBJECT])
        controller.start(poll=False)

        with pytest.raises(InvalidStateError):
            controller.run_tick(Modality.HAND)

    def test_run_tick_without_session(self, make_controller):
        with pytest.raises(InvalidStateError):
            make_controller().run_tick(Modality.OBJECT)

    def test_batch_landing_after_stop_is_discarded(self, fake_clock):
        """A tick whose detect() is in flight when stop() lands is discarded."""
        controller = SessionController(clock=fake_clock)

        def detect_then_stop(frame):
            controller.stop()
            return [raw("car")]

        controller.register(Modality.OBJECT, CallableAdapter(detect_then_stop))
        controller.initialize_adapters()
        controller.start(poll=False)

        assert controller.run_tick(Modality.OBJECT) is False
        assert controller.export_all()["detections"]["object"] == []
        assert controller.export_all()["stats"]["object"] == {}


class TestPolling:
    """Background polling threads."""

    def test_each_modality_polls(self):
        calls = {m: 0 for m in Modality}

        def counting(modality):
            def detect(frame):
                calls[modality] += 1
                return [raw("thing")]
            return detect

        controller = SessionController()
        for modality in Modality:
            controller.register(modality, CallableAdapter(counting(modality)), interval_ms=10)
        controller.initialize_adapters()

        controller.start()
        time.sleep(0.3)
        controller.stop()

        assert all(count >= 2 for count in calls.values())
        status = controller.status()
        assert status.modalities["object"].ticks >= 2
        assert status.modalities["object"].interval_ms == 10
        assert controller.query_summary().modalities["object"].total_detections >= 2

    def test_failing_adapter_keeps_polling(self):
        calls = []

        def broken(frame):
            calls.append(frame)
            raise RuntimeError("boom")

        controller = SessionController()
        controller.register(Modality.FACE, CallableAdapter(broken), interval_ms=10)
        controller.initialize_adapters()

        controller.start()
        time.sleep(0.2)
        controller.stop()

        face = controller.status().modalities["face"]
        assert len(calls) >= 2
        assert face.errors >= 2
        assert face.last_error == "boom"
        assert face.ticks == 0

    def test_stop_discards_in_flight_tick(self):
        entered = threading.Event()
        release = threading.Event()

        def slow(frame):
            entered.set()
            release.wait(2.0)
            return [raw("car")]

        config = Config()
        config.session.join_timeout_s = 0.05
        controller = SessionController(config)
        controller.register(Modality.OBJECT, CallableAdapter(slow), interval_ms=10)
        controller.initialize_adapters()

        controller.start()
        assert entered.wait(2.0)
        controller.stop()
        release.set()
        time.sleep(0.1)

        assert controller.export_all()["detections"]["object"] == []
        assert controller.status().modalities["object"].ticks == 0
