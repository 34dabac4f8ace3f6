"""
Expand abbreviated game numerals ("12.5k", "$1.2b") to their numeric value.

The battle report never prints full numbers. Every currency is shown as a
short numeral plus a scale letter, and the scale letters are what make two
runs comparable at all.

Supported patterns:
    "12.5k"  → 12,500
    "2.5m"   → 2,500,000
    "$1.2b"  → 1,200,000,000  (leading "$" ignored)
    "5"      → 0              (no scale letter: not a game numeral)
"""

from __future__ import annotations

import re
from decimal import Decimal

# ─── Scale Letters ───────────────────────────────────────────────────

_PREFIX_PATTERN = re.compile(r"[0-9]+(?:\.[0-9]+)?")

_SCALES: dict[str, int] = {
    "k": 10**3,
    "m": 10**6,
    "b": 10**9,
    "t": 10**12,
    "q": 10**15,
}


# ─── Strict Converter ────────────────────────────────────────────────


def abbreviated_to_decimal(text: str) -> Decimal:
    """Convert an abbreviated numeral to an exact Decimal.

    Raises:
        ValueError: If the text is empty, has no known scale letter, or the
            numeric prefix cannot be read.
    """
    if not text or not text.strip():
        raise ValueError("Empty text cannot be converted to a number")

    normalized = text.strip().lower()
    if normalized.startswith("$"):
        normalized = normalized[1:]

    suffix = normalized[-1:]
    if suffix not in _SCALES:
        raise ValueError(f"Unrecognized scale letter {suffix!r} in {text!r}")

    # Prefix must match the currency grammar, not everything Decimal reads.
    if not _PREFIX_PATTERN.fullmatch(normalized[:-1]):
        raise ValueError(f"Could not read numeric prefix of {text!r}")

    return Decimal(normalized[:-1]) * _SCALES[suffix]


# ─── Lenient Accessors ──────────────────────────────────────────────


def parse_abbreviated_number(text: str) -> float:
    """Expand an abbreviated numeral, or 0 when it cannot be expanded.

    Decimal arithmetic keeps "$1.2b" at exactly 1,200,000,000 instead of a
    binary float approximation.
    """
    try:
        return float(abbreviated_to_decimal(text))
    except ValueError:
        return 0.0


def efficiency(value: float, duration_seconds: int) -> float:
    """Resource earned per second of real time (0 for an unknown duration)."""
    if duration_seconds <= 0:
        return 0.0
    return value / duration_seconds
