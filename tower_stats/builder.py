"""
Record builder — label/value pairs in, a complete RunRecord out.

Every one of the eleven stat fields is looked up and validated on its own.
A field that is missing or fails its grammar becomes an empty string and a
finding; it never aborts the build. The caller always gets a record it can
show to the user for correction.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Iterable, Mapping

from .exceptions import UnknownFieldError
from .models import RawPair, RunRecord, Severity, ValidationFinding
from .validators import (
    validate_cash,
    validate_digits,
    validate_killed_by,
    validate_resource,
    validate_tier,
    validate_time,
    validate_wave,
)

# ─── Field Table ─────────────────────────────────────────────────────
# (record field, display label, validator), in battle-report order.
# Lookup uses the lower-cased display label.

FIELDS: tuple[tuple[str, str, Callable[[str], str | None]], ...] = (
    ("game_time", "Game Time", validate_time),
    ("real_time", "Real Time", validate_time),
    ("tier", "Tier", validate_tier),
    ("wave", "Wave", validate_wave),
    ("killed_by", "Killed By", validate_killed_by),
    ("coins_earned", "Coins Earned", validate_resource),
    ("cash_earned", "Cash Earned", validate_cash),
    ("interest_earned", "Interest Earned", validate_cash),
    ("gem_blocks_tapped", "Gem Blocks Tapped", validate_digits),
    ("cells_earned", "Cells Earned", validate_resource),
    ("reroll_shards_earned", "Reroll Shards Earned", validate_resource),
)

KNOWN_LABELS: frozenset[str] = frozenset(label.lower() for _, label, _ in FIELDS)


# ─── Public API ──────────────────────────────────────────────────────


def build_record(
    pairs: Iterable[RawPair], photo_date: datetime | None = None
) -> RunRecord:
    """Build a RunRecord from pairs. Never raises on malformed values."""
    record, _ = build_record_with_findings(pairs, photo_date)
    return record


def build_record_with_findings(
    pairs: Iterable[RawPair], photo_date: datetime | None = None
) -> tuple[RunRecord, list[ValidationFinding]]:
    """Build a RunRecord and report exactly which fields need correction."""
    findings: list[ValidationFinding] = []
    by_label = index_pairs(pairs)

    for label in by_label:
        if label not in KNOWN_LABELS:
            findings.append(
                ValidationFinding(
                    severity=Severity.INFO,
                    code="LABEL_NOT_RECOGNIZED",
                    field=label,
                    message=f"Label '{label}' is not a known battle-report stat; ignored.",
                    details={"value": by_label[label]},
                )
            )

    values: dict[str, str] = {}
    for field_name, display_label, validator in FIELDS:
        raw = by_label.get(display_label.lower())
        normalized = validator(raw or "")

        if normalized is not None:
            values[field_name] = normalized
            continue

        values[field_name] = ""
        if raw is None:
            findings.append(
                ValidationFinding(
                    severity=Severity.ERROR,
                    code="MISSING_FIELD",
                    field=field_name,
                    message=f"'{display_label}' was not found in the OCR text.",
                )
            )
        else:
            findings.append(
                ValidationFinding(
                    severity=Severity.ERROR,
                    code="INVALID_FIELD_FORMAT",
                    field=field_name,
                    message=f"'{display_label}' value '{raw}' does not match the expected format.",
                    details={"raw_value": raw},
                )
            )

    has_error = any(f.severity == Severity.ERROR for f in findings)
    record = RunRecord(**values, has_parsing_error=has_error, photo_date=photo_date)
    return record, findings


def index_pairs(pairs: Iterable[RawPair]) -> dict[str, str]:
    """Map lower-cased labels to values; the first occurrence of a label wins."""
    by_label: dict[str, str] = {}
    for pair in pairs:
        by_label.setdefault(pair.label.strip().lower(), pair.value)
    return by_label


# ─── Manual Correction ───────────────────────────────────────────────


def display_pairs(record: RunRecord) -> list[RawPair]:
    """The record's eleven stat fields as labelled pairs, in report order."""
    return [
        RawPair(label=display_label, value=getattr(record, field_name))
        for field_name, display_label, _ in FIELDS
    ]


def apply_edits(record: RunRecord, edits: Mapping[str, str]) -> RunRecord:
    """Rebuild a record with user-corrected values.

    Args:
        record: The record being corrected; its photo date is kept.
        edits: Display label (any case) → corrected raw value.

    Raises:
        UnknownFieldError: If an edit names a label that is not a stat field.
    """
    overrides = {label.strip().lower(): value for label, value in edits.items()}
    unknown = sorted(set(overrides) - KNOWN_LABELS)
    if unknown:
        raise UnknownFieldError(
            f"Cannot edit unknown field(s): {', '.join(unknown)}",
            details={"labels": unknown},
        )

    pairs = [
        RawPair(label=p.label, value=overrides.get(p.label.lower(), p.value))
        for p in display_pairs(record)
    ]
    return build_record(pairs, record.photo_date)
