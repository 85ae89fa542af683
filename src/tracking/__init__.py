"""
Tracking module.

The canonical face identity tracker is in tracking.identity.
"""

from .identity import IdentityTracker, MATCHING_MODES

__all__ = ["IdentityTracker", "MATCHING_MODES"]
