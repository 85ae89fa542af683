"""
History module.

Per-modality bounded event logs.
"""

from .buffer import DEFAULT_CAPACITY, HistoryBuffer, HistorySnapshot

__all__ = ["DEFAULT_CAPACITY", "HistoryBuffer", "HistorySnapshot"]
