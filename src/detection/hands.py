"""
Hand post-processing: finger counting and gesture recognition.

Landmarks follow the 21-point MediaPipe Hands layout in normalized image
coordinates (y grows downward):

    0 wrist, 1-4 thumb, 5-8 index, 9-12 middle, 13-16 ring, 17-20 pinky
"""

from __future__ import annotations

from typing import Sequence

from models.detection import RawDetection
from models.hand import HandObservation, Landmark

NUM_LANDMARKS = 21
THUMB_TIP, THUMB_IP = 4, 3
# (tip, pip) for index, middle, ring, pinky
FINGER_JOINTS = ((8, 6), (12, 10), (16, 14), (20, 18))

GESTURES = {
    0: "Fist",
    1: "Pointing",
    2: "Peace",
    3: "OK Sign",
    4: "Rock",
    5: "Open Hand",
}


def count_fingers(landmarks: Sequence[Sequence[float]], handedness: str = "right") -> int:
    """
    Count extended fingers.

    A finger is extended when its tip sits above its PIP joint. The thumb is
    extended when its tip is farther out sideways than its IP joint: to the
    left for a right hand, to the right for a left hand.
    """
    if len(landmarks) < NUM_LANDMARKS:
        return 0

    count = 0
    for tip, pip in FINGER_JOINTS:
        if landmarks[tip][1] < landmarks[pip][1]:
            count += 1

    thumb_tip_x = landmarks[THUMB_TIP][0]
    thumb_ip_x = landmarks[THUMB_IP][0]
    if handedness.lower() == "left":
        if thumb_tip_x > thumb_ip_x:
            count += 1
    elif thumb_tip_x < thumb_ip_x:
        count += 1

    return count


def recognize_gesture(finger_count: int) -> str:
    return GESTURES.get(finger_count, f"{finger_count} Fingers")


def hand_from_detection(detection: RawDetection, timestamp: float) -> HandObservation:
    """
    Adapter: Build a HandObservation from a raw hand detection.

    Uses the adapter's gesture if it supplied one, otherwise derives it from
    landmarks or an explicit finger count. Falls back to the raw label.
    """
    attrs = detection.attributes
    handedness = str(attrs.get("handedness", "right")).lower()
    landmarks = [_as_landmark(p) for p in attrs.get("landmarks") or []]

    if "finger_count" in attrs:
        finger_count = int(attrs["finger_count"])
    else:
        finger_count = count_fingers(landmarks, handedness)

    gesture = attrs.get("gesture")
    if not gesture:
        if landmarks or "finger_count" in attrs:
            gesture = recognize_gesture(finger_count)
        else:
            gesture = detection.label

    return HandObservation(
        handedness=handedness,
        gesture=str(gesture),
        finger_count=finger_count,
        timestamp=timestamp,
        confidence=detection.confidence,
        bbox=detection.bbox,
        landmarks=landmarks,
    )


def _as_landmark(point) -> Landmark:
    if isinstance(point, dict):
        return (float(point.get("x", 0)), float(point.get("y", 0)), float(point.get("z", 0)))
    z = float(point[2]) if len(point) > 2 else 0.0
    return (float(point[0]), float(point[1]), z)
