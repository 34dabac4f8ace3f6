"""
Custom exception hierarchy for tower_stats.

Field-level problems are never raised: they become findings on the record.
Exceptions are reserved for caller mistakes and unreadable persisted data.
"""

from __future__ import annotations


class TowerStatsError(Exception):
    """Base exception for all tower_stats failures."""

    def __init__(self, code: str, message: str, details: dict | None = None):
        self.code = code
        self.details = details or {}
        super().__init__(message)


class SnapshotDecodeError(TowerStatsError):
    """The persisted record snapshot could not be decoded."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("SNAPSHOT_DECODE_FAILED", message, details)


class UnknownFieldError(TowerStatsError):
    """A manual edit referenced a label that is not a known stat field."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("UNKNOWN_FIELD", message, details)
