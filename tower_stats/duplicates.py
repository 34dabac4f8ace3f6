"""
Duplicate detection: a coarse fingerprint, not full equality.

Two records describe the same run when the fields least prone to OCR
jitter agree. Killed-by, cash, interest, cells and gem blocks are left out
on purpose: a second scan of the same screenshot often misreads one of
them, and that must not let the run in twice.
"""

from __future__ import annotations

from .models import RunRecord

FINGERPRINT_FIELDS: tuple[str, ...] = (
    "photo_date",
    "wave",
    "tier",
    "duration_seconds",
    "coins_earned",
    "reroll_shards_earned",
)


def fingerprint(record: RunRecord) -> tuple:
    return tuple(getattr(record, name) for name in FINGERPRINT_FIELDS)


def is_duplicate(a: RunRecord, b: RunRecord) -> bool:
    """True when both records share every fingerprint field."""
    return fingerprint(a) == fingerprint(b)
