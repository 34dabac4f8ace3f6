"""
Label/value pairing of raw OCR text.

The OCR engine reads the battle report's two aligned columns as two stacked
text blocks: every label first, then every value. The half-split pairer
undoes that by pairing line i with line i + N/2.

This is a structural guess, not a parse. The field validators downstream
are the real correctness gate, which is why pairers are swappable through
the LinePairer protocol.
"""

from __future__ import annotations

import re
from typing import Iterable, Protocol

from .models import RawPair

# ─── Constants ───────────────────────────────────────────────────────

BATTLE_REPORT_MARKER = "battle report"

# One pair per known stat field
MAX_PAIRS = 11

_MARKER_PATTERN = re.compile(re.escape(BATTLE_REPORT_MARKER), re.IGNORECASE)


# ─── Strategy Interface ──────────────────────────────────────────────


class LinePairer(Protocol):
    """Anything that can turn OCR text into ordered label/value pairs."""

    def pair(self, raw_text: str) -> list[RawPair]: ...


# ─── Half-Split Pairer ───────────────────────────────────────────────


class HalfSplitPairer:
    """Pairs the first half of the OCR lines with the second half.

    Usage:
        pairs = HalfSplitPairer().pair(ocr_text)
    """

    name = "half-split"

    def __init__(self, max_pairs: int = MAX_PAIRS):
        self.max_pairs = max_pairs

    def pair(self, raw_text: str) -> list[RawPair]:
        lines = split_lines(strip_preamble(raw_text))
        half = len(lines) // 2

        candidates = (
            RawPair(label=lines[i], value=lines[i + half]) for i in range(half)
        )
        return dedupe_pairs(candidates, self.max_pairs)


# ─── Helpers ─────────────────────────────────────────────────────────


def strip_preamble(raw_text: str) -> str:
    """Drop everything up to and including the "battle report" heading."""
    match = _MARKER_PATTERN.search(raw_text)
    if match is None:
        return raw_text
    return raw_text[match.end():].strip()


def split_lines(text: str) -> list[str]:
    """Trimmed, non-empty lines in OCR order."""
    return [line.strip() for line in text.splitlines() if line.strip()]


def dedupe_pairs(pairs: Iterable[RawPair], max_pairs: int = MAX_PAIRS) -> list[RawPair]:
    """Keep the first pair for each label (case-insensitive), up to max_pairs.

    The OCR engine sometimes detects a caption twice; the repeat is noise.
    """
    seen: set[str] = set()
    result: list[RawPair] = []

    for pair in pairs:
        if len(result) >= max_pairs:
            break
        key = pair.label.strip().lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(pair)

    return result
