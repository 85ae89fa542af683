"""
Session export: serializes the retained session state to a portable artifact.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Optional

from models.detection import Modality
from models.summary import SessionSummary
from runtime.context import SessionState

EXPORT_VERSION = 1


def build_export(state: SessionState, summary: SessionSummary, exported_at: float) -> Dict[str, Any]:
    """
    Build the export artifact from in-memory state.

    Fields:
    - detections: per-modality event history as currently retained (post-eviction)
    - stats: per-modality lifetime label counts
    - summary: the unwindowed combined summary
    - interactions: retained interaction log, plus the lifetime total
    """
    return {
        "version": EXPORT_VERSION,
        "exported_at": exported_at,
        "started_at": state.started_at,
        "stopped_at": state.stopped_at,
        "detections": {
            m.value: [event.to_dict() for event in state.buffers[m].snapshot()]
            for m in Modality
        },
        "stats": {m.value: state.stats.lifetime_counts(m) for m in Modality},
        "summary": summary.to_dict(),
        "interactions": [interaction.to_dict() for interaction in state.interactions.entries()],
        "interactions_total": state.interactions.total,
    }


def default_export_filename(exported_at: float) -> str:
    return f"detection-session-{int(exported_at)}.json"


def write_export(artifact: Dict[str, Any], path: Optional[str] = None, output_dir: str = "output/exports") -> str:
    """
    Write the artifact as indented JSON and return the file path.

    Args:
        artifact: Output of build_export().
        path: Explicit file path. Defaults to output_dir/detection-session-<ms>.json.
        output_dir: Directory used when path is not given.
    """
    if path is None:
        path = os.path.join(output_dir, default_export_filename(artifact.get("exported_at", 0)))

    out_dir = os.path.dirname(path)
    if out_dir and not os.path.exists(out_dir):
        os.makedirs(out_dir)

    with open(path, "w") as f:
        json.dump(artifact, f, indent=2)

    logging.info(f"Session exported: {path}")
    return path
