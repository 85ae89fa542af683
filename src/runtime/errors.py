"""
Exception hierarchy for the perception session aggregator.

Only InvalidStateError and its subclasses reach callers of the session
controller. Adapter errors are logged and degrade a single modality or tick.
"""

from __future__ import annotations


class PerceptionError(Exception):
    """Base class for all aggregator errors."""


class AdapterInitError(PerceptionError):
    """A detector adapter failed to become ready; its modality is unavailable."""


class AdapterTransientError(PerceptionError):
    """A single detect call failed; the tick is dropped and polling continues."""


class InvalidStateError(PerceptionError):
    """An operation was called in a session state that does not allow it."""


class AlreadyActiveError(InvalidStateError):
    """start() was called while a session is active."""


class NotReadyError(InvalidStateError):
    """start() was called before any detector adapter became ready."""


class NoActiveOrRecentSessionError(InvalidStateError):
    """A query or export was requested but no session was ever started."""
