"""
Pipeline module for the perception session aggregator.

Each modality runs an independent ModalityPoller:
- Frame handle from the shared observation source
- Detection via the modality's adapter
- Batch hand-off to the session controller's write path
"""

from .poller import ModalityPoller, PollerStats

__all__ = ["ModalityPoller", "PollerStats"]
