"""
Export module.

Serializes session state (history, lifetime counts, summary) to JSON.
"""

from .exporter import build_export, default_export_filename, write_export

__all__ = ["build_export", "default_export_filename", "write_export"]
