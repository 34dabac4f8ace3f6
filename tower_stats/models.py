"""
Pydantic models for run data — strict typing as our first line of defense.

A RunRecord always carries every field. Fields that failed their grammar are
empty strings, and the numeric metrics are derived from the validated
strings inside the model itself, so the display form and the numbers can
never drift apart.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .abbreviated_number import efficiency, parse_abbreviated_number
from .validators import time_to_seconds


# ─── Severity Levels ────────────────────────────────────────────────


class Severity(str, Enum):
    """Severity of a validation finding."""

    ERROR = "ERROR"  # Field unusable; record cannot be stored
    WARNING = "WARNING"  # Suspicious; worth a look before storing
    INFO = "INFO"  # Informational observation


# ─── Validation Finding ─────────────────────────────────────────────


class ValidationFinding(BaseModel):
    """A single finding with severity, machine-readable code, and details."""

    severity: Severity
    code: str  # Machine-readable, e.g. "INVALID_FIELD_FORMAT"
    field: str  # Which record field (or pair label) this relates to
    message: str  # Human-readable explanation
    details: dict = Field(default_factory=dict)


# ─── Pairing ────────────────────────────────────────────────────────


class RawPair(BaseModel):
    """An unvalidated (label, value) candidate taken from OCR lines."""

    label: str
    value: str


# ─── Run Record ─────────────────────────────────────────────────────


class RunRecord(BaseModel):
    """One validated, normalized snapshot of a game session.

    Derived fields (duration, *_value, *_efficiency) are recomputed from the
    string fields on every construction, including snapshot loads.
    """

    model_config = ConfigDict(frozen=True)

    game_time: str = ""
    real_time: str = ""
    duration_seconds: int = 0
    tier: str = ""
    wave: str = ""
    killed_by: str = ""
    coins_earned: str = ""
    cash_earned: str = ""
    interest_earned: str = ""
    gem_blocks_tapped: str = ""
    cells_earned: str = ""
    reroll_shards_earned: str = ""
    coins_value: float = 0.0
    cells_value: float = 0.0
    shards_value: float = 0.0
    coin_efficiency: float = 0.0
    cell_efficiency: float = 0.0
    shard_efficiency: float = 0.0
    has_parsing_error: bool = False
    photo_date: Optional[datetime] = None

    @model_validator(mode="before")
    @classmethod
    def _derive_metrics(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        derived = dict(data)
        duration = time_to_seconds(str(derived.get("real_time") or ""))
        coins = parse_abbreviated_number(str(derived.get("coins_earned") or ""))
        cells = parse_abbreviated_number(str(derived.get("cells_earned") or ""))
        shards = parse_abbreviated_number(
            str(derived.get("reroll_shards_earned") or "")
        )

        derived.update(
            duration_seconds=duration,
            coins_value=coins,
            cells_value=cells,
            shards_value=shards,
            coin_efficiency=efficiency(coins, duration),
            cell_efficiency=efficiency(cells, duration),
            shard_efficiency=efficiency(shards, duration),
        )
        return derived


# ─── Parse Report ───────────────────────────────────────────────────


class ParseReport(BaseModel):
    """The final output of the parsing pipeline for one screenshot."""

    record: RunRecord
    pairs: list[RawPair] = Field(default_factory=list)
    findings: list[ValidationFinding] = Field(default_factory=list)
    pairing_method: str = "unknown"
    original_hash: str = ""  # SHA-256 of the OCR text for audit trail

    @property
    def has_parsing_error(self) -> bool:
        return self.record.has_parsing_error
