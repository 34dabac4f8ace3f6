"""
Main parsing pipeline — orchestrates the full workflow for one screenshot.

Flow:
  ┌──────────┐
  │ OCR text │
  └────┬─────┘
       │
  ┌────▼──────┐     ┌──────────┐
  │ Half-split│     │   LLM    │   ← Dual pairing (LLM optional)
  │  Pairer   │     │  Pairer  │
  └────┬──────┘     └────┬─────┘
       │                 │
       └────────┬────────┘
                │
         ┌──────▼──────┐
         │ Reconciler  │   ← Flag disagreements
         └──────┬──────┘
                │
         ┌──────▼──────┐
         │   Builder   │   ← Field grammars, derived metrics
         └──────┬──────┘
                │
         ┌──────▼──────┐
         │   Report    │   ← RunRecord + findings
         └─────────────┘

Design principles:
  - The half-split pairer ALWAYS runs (deterministic baseline).
  - The LLM pairer is optional (graceful degradation).
  - Nothing here raises on bad OCR text; problems become findings.
  - The store is passed in by the caller, never looked up globally.
"""

from __future__ import annotations

import hashlib
import logging
from datetime import datetime
from typing import Iterable

from .builder import build_record_with_findings, index_pairs
from .config import Settings, load_settings
from .models import ParseReport, RawPair, Severity, ValidationFinding
from .pairing import MAX_PAIRS, HalfSplitPairer, LinePairer
from .pairing_llm import pair_with_llm
from .store import RecordStore

logger = logging.getLogger(__name__)


class RunParsingPipeline:
    """Orchestrates OCR text → pairs → validated RunRecord.

    Usage:
        pipeline = RunParsingPipeline()
        report = pipeline.run(ocr_text, photo_date)
        if not report.has_parsing_error:
            pipeline.ingest(report, store)
    """

    def __init__(
        self,
        pairer: LinePairer | None = None,
        settings: Settings | None = None,
    ):
        self.pairer = pairer or HalfSplitPairer()
        self.settings = settings or load_settings()

    def run(self, raw_text: str, photo_date: datetime | None = None) -> ParseReport:
        """Execute the full pipeline on raw OCR text.

        Args:
            raw_text: The OCR text of one battle-report screenshot.
            photo_date: Capture time from the photo metadata, if known.

        Returns:
            ParseReport with the record and every finding.
        """
        # ── Step 0: Audit hash of original input ────────────────────
        text_hash = hashlib.sha256(raw_text.encode("utf-8")).hexdigest()

        # ── Step 1: Dual pairing ────────────────────────────────────
        logger.info("Starting line pairing...")
        baseline = self.pairer.pair(raw_text)

        llm_pairs: list[RawPair] | None = None
        if self.settings.llm_enabled:
            logger.info("Starting LLM pairing...")
            llm_pairs = pair_with_llm(
                raw_text, self.settings.openai_api_key, self.settings.llm_model
            )

        baseline_name = getattr(self.pairer, "name", type(self.pairer).__name__)
        if llm_pairs is not None:
            pairs = llm_pairs
            pairing_method = f"LLM ({self.settings.llm_model}) + {baseline_name} cross-check"
        else:
            pairs = baseline
            pairing_method = f"{baseline_name} only"

        # ── Step 2: Reconcile pairings (if both available) ──────────
        findings: list[ValidationFinding] = []
        if llm_pairs is not None:
            findings.extend(self._reconcile(baseline, llm_pairs))

        # ── Step 3: Build record and compile report ─────────────────
        return self._build(pairs, photo_date, pairing_method, text_hash, findings)

    def from_pairs(
        self, pairs: Iterable[RawPair], photo_date: datetime | None = None
    ) -> ParseReport:
        """Build a report from pairs the user entered or corrected by hand."""
        pairs = list(pairs)
        text = "\n".join(f"{p.label}\n{p.value}" for p in pairs)
        text_hash = hashlib.sha256(text.encode("utf-8")).hexdigest()
        return self._build(pairs, photo_date, "manual", text_hash)

    def ingest(self, report: ParseReport, store: RecordStore) -> bool:
        """Add the report's record to the store; False if rejected."""
        added = store.add(report.record)
        if not added:
            reason = "parsing errors" if report.has_parsing_error else "duplicate"
            logger.info("Record not added to store (%s)", reason)
        return added

    # ─── Build ──────────────────────────────────────────────────────

    def _build(
        self,
        pairs: list[RawPair],
        photo_date: datetime | None,
        pairing_method: str,
        text_hash: str,
        findings: list[ValidationFinding] | None = None,
    ) -> ParseReport:
        findings = list(findings or [])

        if len(pairs) < MAX_PAIRS:
            findings.append(
                ValidationFinding(
                    severity=Severity.WARNING,
                    code="PAIRING_SHORTFALL",
                    field="pairs",
                    message=(
                        f"Only {len(pairs)} of {MAX_PAIRS} label/value pairs "
                        f"could be paired from the OCR text."
                    ),
                    details={"pair_count": len(pairs), "expected": MAX_PAIRS},
                )
            )

        record, build_findings = build_record_with_findings(pairs, photo_date)
        findings.extend(build_findings)

        return ParseReport(
            record=record,
            pairs=pairs,
            findings=findings,
            pairing_method=pairing_method,
            original_hash=text_hash,
        )

    # ─── Reconciliation ─────────────────────────────────────────────

    def _reconcile(
        self, baseline: list[RawPair], llm: list[RawPair]
    ) -> list[ValidationFinding]:
        """Compare the two pairings label-by-label.

        Any disagreement is a WARNING. It catches both an LLM that quietly
        "fixes" a misread and a half-split that slid a column.
        """
        findings: list[ValidationFinding] = []
        baseline_values = index_pairs(baseline)
        llm_values = index_pairs(llm)

        for label, llm_value in llm_values.items():
            baseline_value = baseline_values.get(label)
            if baseline_value is None:
                continue
            if baseline_value.strip().lower() != llm_value.strip().lower():
                findings.append(
                    ValidationFinding(
                        severity=Severity.WARNING,
                        code="PAIRING_DISAGREEMENT",
                        field=label,
                        message=(
                            f"LLM and half-split pairing disagree on '{label}': "
                            f"half-split='{baseline_value}', LLM='{llm_value}'. "
                            f"Manual review recommended."
                        ),
                        details={
                            "baseline_value": baseline_value,
                            "llm_value": llm_value,
                        },
                    )
                )

        return findings
