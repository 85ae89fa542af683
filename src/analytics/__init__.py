"""
Analytics module.

- interactions: pairwise proximity interactions between tracked faces
- stats: lifetime counts and windowed summaries
- report: plain-text rendering of the combined summary
"""

from .interactions import InteractionDetector, InteractionLog
from .stats import StatsAggregator
from .report import render_summary_text

__all__ = ["InteractionDetector", "InteractionLog", "StatsAggregator", "render_summary_text"]
