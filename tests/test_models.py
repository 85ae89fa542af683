"""
Tests for data models and their dict adapters.
"""

import pytest

from models import (
    BoundingBox,
    DetectionEvent,
    Interaction,
    InteractionKind,
    Modality,
    RawDetection,
    SessionPhase,
    SessionStatus,
    ModalityStatus,
    TrackedFace,
)


class TestBoundingBox:
    """Tests for BoundingBox."""

    def test_distance_uses_top_left(self):
        """Distance is between top-left corners, ignoring size."""
        a = BoundingBox(0, 0, 10, 10)
        b = BoundingBox(3, 4, 500, 500)

        assert a.distance_to(b) == pytest.approx(5.0)

    def test_from_xyxy(self):
        box = BoundingBox.from_xyxy(10, 20, 60, 100)

        assert box.as_list() == [10, 20, 50, 80]
        assert box.center == (35, 60)
        assert box.top_left == (10, 20)

    def test_from_sequence(self):
        assert BoundingBox.from_sequence(["1", 2, 3.5, 4]).as_list() == [1.0, 2.0, 3.5, 4.0]


class TestRawDetection:
    """Tests for RawDetection.from_dict."""

    def test_list_bbox_and_attributes(self):
        det = RawDetection.from_dict({
            "label": "happy",
            "confidence": 0.8,
            "bbox": [10, 10, 64, 64],
            "age": 31,
        })

        assert det.label == "happy"
        assert det.confidence == 0.8
        assert det.bbox == BoundingBox(10, 10, 64, 64)
        assert det.attributes == {"age": 31}

    def test_mapping_bbox(self):
        det = RawDetection.from_dict({"label": "car", "bbox": {"x": 5, "y": 6, "width": 7, "height": 8}})

        assert det.bbox == BoundingBox(5, 6, 7, 8)
        assert det.confidence == 1.0

    def test_defaults(self):
        det = RawDetection.from_dict({})

        assert det.label == "unknown"
        assert det.bbox == BoundingBox(0, 0, 0, 0)


class TestDetectionEvent:
    """Tests for DetectionEvent."""

    def test_from_raw(self):
        det = RawDetection(label="car", confidence=0.9, bbox=BoundingBox(1, 2, 3, 4))

        event = DetectionEvent.from_raw(Modality.OBJECT, det, 1000.0)

        assert event.modality == Modality.OBJECT
        assert event.label == "car"
        assert event.timestamp == 1000.0
        assert event.entity_id is None

    def test_to_dict_omits_missing_entity(self):
        event = DetectionEvent(Modality.OBJECT, "car", 0.9, BoundingBox(1, 2, 3, 4), 1000.0)

        d = event.to_dict()

        assert d == {
            "modality": "object",
            "label": "car",
            "confidence": 0.9,
            "bbox": [1, 2, 3, 4],
            "timestamp": 1000.0,
        }

    def test_to_dict_with_entity(self):
        event = DetectionEvent(Modality.FACE, "happy", 0.9, BoundingBox(0, 0), 1.0, entity_id=3)

        assert event.to_dict()["entity_id"] == 3


class TestTrackedFace:
    """Tests for TrackedFace."""

    def test_to_dict_optional_fields(self):
        face = TrackedFace(1, BoundingBox(0, 0, 10, 10), 0.9, "happy", 5.0)

        d = face.to_dict()

        assert d["entity_id"] == 1
        assert d["dominant_emotion"] == "happy"
        assert "age" not in d
        assert "expressions" not in d


class TestInteraction:
    """Tests for Interaction."""

    def test_to_dict(self):
        interaction = Interaction(InteractionKind.MUTUAL_SMILE, (1, 2), 42.0, 7.0)

        d = interaction.to_dict()

        assert d["kind"] == "mutual_smile"
        assert d["entity_ids"] == [1, 2]
        assert d["description"] == "Person #1 and #2 both smiling"


class TestSessionStatus:
    """Tests for status models."""

    def test_to_dict(self):
        status = SessionStatus(
            phase=SessionPhase.ACTIVE,
            started_at=1.0,
            modalities={"face": ModalityStatus(ready=True, interval_ms=500, last_error="boom")},
        )

        d = status.to_dict()

        assert d["phase"] == "active"
        assert d["modalities"]["face"]["interval_ms"] == 500
        assert d["modalities"]["face"]["last_error"] == "boom"

    def test_last_error_omitted_when_clean(self):
        assert "last_error" not in ModalityStatus(ready=True).to_dict()
