"""
End-to-end pipeline tests: OCR text → report → store.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from unittest.mock import patch

from tower_stats.config import Settings, load_settings
from tower_stats.models import RawPair, Severity
from tower_stats.pipeline import RunParsingPipeline
from tower_stats.store import InMemoryBlobStore, RecordStore

RAW_OCR = """\
18:42
BATTLE REPORT
Game Time
Real Time
Tier
Wave
Killed By
Coins Earned
Cash Earned
Interest Earned
Gem Blocks Tapped
Cells Earned
Reroll Shards Earned
1d 13h 24m 10s
6h 52m 455
11
3127
Boss
1.23T
$45.67B
$1.20B
3
845.2K
2.31K"""

PHOTO_DATE = datetime(2024, 5, 1, 18, 30)


def _pipeline(**settings) -> RunParsingPipeline:
    return RunParsingPipeline(settings=Settings(**settings))


# ═══════════════════════════════════════════════════════════════════════
# FULL PIPELINE
# ═══════════════════════════════════════════════════════════════════════


class TestFullPipeline:
    def test_clean_report(self):
        report = _pipeline().run(RAW_OCR, PHOTO_DATE)
        assert report.has_parsing_error is False
        assert report.findings == []
        assert report.record.real_time == "6h 52m 45s"
        assert report.record.photo_date == PHOTO_DATE
        assert len(report.pairs) == 11

    def test_pairing_method(self):
        report = _pipeline().run(RAW_OCR)
        assert report.pairing_method == "half-split only"

    def test_audit_hash(self):
        report = _pipeline().run(RAW_OCR)
        assert len(report.original_hash) == 64  # SHA-256 hex

    def test_garbage_still_yields_record(self):
        report = _pipeline().run("¯\\_(ツ)_/¯")
        assert report.has_parsing_error is True
        codes = [f.code for f in report.findings]
        assert codes[0] == "PAIRING_SHORTFALL"
        assert codes.count("MISSING_FIELD") == 11

    def test_shortfall_is_warning(self):
        report = _pipeline().run("Tier\nWave\n7\n150")
        shortfall = report.findings[0]
        assert shortfall.severity == Severity.WARNING
        assert shortfall.details == {"pair_count": 2, "expected": 11}

    def test_custom_pairer(self):
        class FixedPairer:
            name = "fixed"

            def pair(self, raw_text):
                return [RawPair(label="Tier", value="3")]

        pipeline = RunParsingPipeline(pairer=FixedPairer(), settings=Settings())
        report = pipeline.run(RAW_OCR)
        assert report.record.tier == "3"
        assert report.pairing_method == "fixed only"

    def test_from_pairs(self):
        pairs = [RawPair(label="Tier", value="7")]
        report = _pipeline().from_pairs(pairs, PHOTO_DATE)
        assert report.pairing_method == "manual"
        assert report.record.tier == "7"
        assert report.pairs == pairs


class TestLLMPairing:
    def test_llm_disabled_without_key(self):
        with patch("tower_stats.pipeline.pair_with_llm") as llm:
            _pipeline().run(RAW_OCR)
        llm.assert_not_called()

    def test_llm_disabled_by_setting(self):
        with patch("tower_stats.pipeline.pair_with_llm") as llm:
            _pipeline(openai_api_key="sk-test", llm_pairing=False).run(RAW_OCR)
        llm.assert_not_called()

    def test_llm_failure_falls_back(self):
        report = _pipeline(openai_api_key="sk-test").run(RAW_OCR)
        assert report.pairing_method == "half-split only"
        assert report.has_parsing_error is False

    def test_llm_pairs_used_and_reconciled(self):
        baseline = _pipeline().run(RAW_OCR).pairs
        llm_pairs = [
            RawPair(label=p.label, value="12" if p.label == "Tier" else p.value)
            for p in baseline
        ]
        with patch("tower_stats.pipeline.pair_with_llm", return_value=llm_pairs):
            report = _pipeline(openai_api_key="sk-test").run(RAW_OCR)

        assert report.pairing_method == "LLM (gpt-5) + half-split cross-check"
        assert report.record.tier == "12"
        disagreements = [f for f in report.findings if f.code == "PAIRING_DISAGREEMENT"]
        assert len(disagreements) == 1
        assert disagreements[0].field == "tier"
        assert disagreements[0].details == {"baseline_value": "11", "llm_value": "12"}


class TestIngest:
    def test_ingest_then_duplicate(self):
        pipeline = _pipeline()
        store = RecordStore(InMemoryBlobStore())
        report = pipeline.run(RAW_OCR, PHOTO_DATE)

        assert pipeline.ingest(report, store) is True
        assert pipeline.ingest(pipeline.run(RAW_OCR, PHOTO_DATE), store) is False
        assert len(store) == 1

    def test_ingest_rejects_errored(self):
        pipeline = _pipeline()
        store = RecordStore(InMemoryBlobStore())
        assert pipeline.ingest(pipeline.run("Tier\n7"), store) is False
        assert len(store) == 0


# ═══════════════════════════════════════════════════════════════════════
# CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════


class TestSettings:
    def test_defaults(self):
        settings = load_settings({})
        assert settings.store_path == Path("stats.json")
        assert settings.llm_model == "gpt-5"
        assert settings.log_level == "INFO"
        assert settings.llm_enabled is False

    def test_from_environment(self):
        settings = load_settings(
            {
                "TOWER_STATS_STORE": "/data/runs.json",
                "OPENAI_API_KEY": "sk-test",
                "TOWER_STATS_LLM_MODEL": "gpt-5-mini",
                "TOWER_STATS_LOG_LEVEL": "debug",
            }
        )
        assert settings.store_path == Path("/data/runs.json")
        assert settings.llm_model == "gpt-5-mini"
        assert settings.log_level == "DEBUG"
        assert settings.llm_enabled is True

    def test_llm_pairing_switch(self):
        settings = load_settings({"OPENAI_API_KEY": "sk-test", "TOWER_STATS_LLM_PAIRING": "False"})
        assert settings.llm_enabled is False

    def test_empty_key_is_absent(self):
        assert load_settings({"OPENAI_API_KEY": ""}).openai_api_key is None
