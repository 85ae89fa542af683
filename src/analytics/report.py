"""
Plain-text rendering of a session summary for the answer service.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List

from analytics.stats import round_half_up
from models.summary import SessionSummary


def _face_line(face: Dict[str, Any]) -> str:
    details = [face["dominant_emotion"]]
    if face.get("age") is not None:
        details.append(f"~{round_half_up(face['age'])}y")
    if face.get("gender"):
        details.append(face["gender"])
    return f"  - Person #{face['entity_id']}: {', '.join(details)}"


def _hand_line(hand: Dict[str, Any]) -> str:
    return f"  - {hand['handedness']} hand: {hand['gesture']} ({hand['finger_count']} fingers)"


def render_summary_text(summary: SessionSummary) -> str:
    """Render the combined session analytics block."""
    objects = summary.modalities.get("object")
    faces = summary.modalities.get("face")
    object_counts = objects.counts if objects is not None else {}
    face_total = faces.total_detections if faces is not None else 0
    interactions = "\n".join(summary.interactions) if summary.interactions else "None observed"

    lines: List[str] = [
        "Complete Session Analytics:",
        "",
        "Objects Detected:",
        json.dumps(object_counts, indent=2),
        "",
        "People Analysis:",
        f"- Unique People: {summary.unique_people}",
        f"- Total Face Detections: {face_total}",
        f"- Current People in Frame: {summary.current_faces}",
    ]
    lines.extend(_face_line(face) for face in summary.faces_in_frame)
    lines += [
        "",
        "Emotions:",
        json.dumps(summary.emotions, indent=2),
        "",
        f"Interactions ({summary.interactions_total} total):",
        interactions,
        "",
        "Gestures Detected:",
        json.dumps(summary.gestures, indent=2),
    ]
    if summary.hands_in_frame:
        lines.append("Hands in Frame:")
        lines.extend(_hand_line(hand) for hand in summary.hands_in_frame)
    lines += [
        "",
        f"Session Duration: {summary.session_duration_minutes} minutes",
    ]
    if summary.window_minutes:
        lines.append(f"Time Range: last {summary.window_minutes:g} minutes")
    return "\n".join(lines)
