"""
Deterministic field grammars for battle-report values.

Each validator:
  - Takes the raw string the OCR pairer produced for one field
  - Returns the normalized value, or None when the grammar rejects it
  - Is pure and independently testable

Validators never raise on bad input. The record builder turns a None into
an empty field plus a finding, so every field is attempted independently.

Every accepted value is a fixed point: validating a normalized value again
returns it unchanged.
"""

from __future__ import annotations

import re

# ─── Grammars ────────────────────────────────────────────────────────

_TIME_PATTERN = re.compile(
    r"^(?:([0-9]{1,6})d\s*)?([0-9]{1,6})h\s*([0-9]{1,6})m\s*([0-9]{1,3})s?$",
    re.IGNORECASE,
)

_INTEGER_PATTERN = re.compile(r"^[0-9]+$")

_AMOUNT_PATTERN = re.compile(r"^\$?[0-9]+(?:\.[0-9]+)?[A-Za-z]$")

TIER_RANGE: tuple[int, int] = (1, 20)
WAVE_RANGE: tuple[int, int] = (1, 20_000)

_SECONDS_PER_DAY = 86_400
_SECONDS_PER_HOUR = 3_600
_SECONDS_PER_MINUTE = 60


# ─── Time ────────────────────────────────────────────────────────────


def _match_time(value: str) -> tuple[str | None, str, str, str] | None:
    """Split a time string into (days, hours, minutes, seconds) strings."""
    match = _TIME_PATTERN.match(value.strip())
    if not match:
        return None

    days, hours, minutes, seconds = match.groups()

    # OCR reads "45s" as "455" often enough that a trailing 5 on a
    # three-digit seconds field is treated as a doubled glyph.
    if len(seconds) == 3 and seconds.endswith("5"):
        seconds = seconds[:2]

    return days, hours, minutes, seconds


def normalize_time(value: str) -> str | None:
    """Re-emit a battle-report time as "Hh Mm Ss" or "Dd Hh Mm Ss".

    Examples:
        "1h2m3s"      → "1h 2m 3s"
        "2d 4h 5m 6"  → "2d 4h 5m 6s"
        "0h 1m 455s"  → "0h 1m 45s"
    """
    parts = _match_time(value)
    if parts is None:
        return None

    days, hours, minutes, seconds = parts
    normalized = f"{hours}h {minutes}m {seconds}s"
    if days is not None:
        normalized = f"{days}d {normalized}"
    return normalized


def validate_time(raw: str) -> str | None:
    """Validator for game time / real time fields."""
    return normalize_time(raw)


def time_to_seconds(value: str) -> int:
    """Total seconds of a battle-report time, or 0 when it does not parse."""
    parts = _match_time(value)
    if parts is None:
        return 0

    days, hours, minutes, seconds = parts
    return (
        int(days or 0) * _SECONDS_PER_DAY
        + int(hours) * _SECONDS_PER_HOUR
        + int(minutes) * _SECONDS_PER_MINUTE
        + int(seconds)
    )


# ─── Integers ────────────────────────────────────────────────────────


def validate_int_range(raw: str, minimum: int, maximum: int) -> str | None:
    """Accept a plain integer inside [minimum, maximum]; strip leading zeros."""
    value = raw.strip()
    if not _INTEGER_PATTERN.match(value):
        return None

    # More digits than the maximum is out of range; skip int() on huge runs.
    digits = value.lstrip("0") or "0"
    if len(digits) > len(str(maximum)):
        return None

    number = int(digits)
    if not minimum <= number <= maximum:
        return None
    return str(number)


def validate_tier(raw: str) -> str | None:
    return validate_int_range(raw, *TIER_RANGE)


def validate_wave(raw: str) -> str | None:
    return validate_int_range(raw, *WAVE_RANGE)


def validate_digits(raw: str) -> str | None:
    """Digit-only counters such as gem blocks tapped."""
    value = raw.strip()
    return value if _INTEGER_PATTERN.match(value) else None


# ─── Text ────────────────────────────────────────────────────────────


def validate_killed_by(raw: str) -> str | None:
    """The enemy name: non-empty, no digits, no periods.

    Digits or a period mean the OCR pairer slid a numeric value into the
    name column.
    """
    value = raw.strip()
    if not value:
        return None
    if any(ch.isdecimal() for ch in value) or "." in value:
        return None
    return value


# ─── Amounts ─────────────────────────────────────────────────────────


def validate_amount(raw: str, require_dollar: bool = False) -> str | None:
    """Abbreviated amount: digits, optional decimal part, one scale letter.

    A leading "$" is always tolerated; ``require_dollar`` makes it mandatory.
    """
    value = raw.strip()
    if not _AMOUNT_PATTERN.match(value):
        return None
    if require_dollar and not value.startswith("$"):
        return None
    return value


def validate_cash(raw: str) -> str | None:
    """Cash and interest are printed with a dollar sign."""
    return validate_amount(raw, require_dollar=True)


def validate_resource(raw: str) -> str | None:
    """Coins, cells and reroll shards."""
    return validate_amount(raw)
