"""
FastAPI endpoint tests for the Tower Stats API.

Uses httpx + FastAPI TestClient — no real server needed, no LLM calls,
and an in-memory store instead of stats.json.
"""

from __future__ import annotations

import api
import pytest
from api import app
from fastapi.testclient import TestClient

from tower_stats.config import Settings
from tower_stats.pipeline import RunParsingPipeline
from tower_stats.store import InMemoryBlobStore, RecordStore

client = TestClient(app)


@pytest.fixture(autouse=True)
def _fresh_state() -> None:
    """A fresh pipeline and empty in-memory store per test (bypasses lifespan)."""
    api._pipeline = RunParsingPipeline(settings=Settings())
    api._store = RecordStore(InMemoryBlobStore())
    yield  # type: ignore[misc]
    api._pipeline = None
    api._store = None


# ─── Sample OCR text (same as main.py) ──────────────────────────────

RAW_OCR = (
    "18:42\nBATTLE REPORT\n"
    "Game Time\nReal Time\nTier\nWave\nKilled By\nCoins Earned\nCash Earned\n"
    "Interest Earned\nGem Blocks Tapped\nCells Earned\nReroll Shards Earned\n"
    "1d 13h 24m 10s\n6h 52m 455\n11\n3127\nBoss\n1.23T\n$45.67B\n$1.20B\n"
    "3\n845.2K\n2.31K"
)

PHOTO_DATE = "2024-05-01T18:30:00"


class TestHealthEndpoint:
    def test_health_returns_200(self) -> None:
        resp = client.get("/health")
        assert resp.status_code == 200

    def test_health_response_shape(self) -> None:
        data = client.get("/health").json()
        assert data["status"] == "healthy"
        assert data["version"] == "1.0.0"
        assert data["records_stored"] == 0

    def test_health_without_store_returns_503(self) -> None:
        api._store = None
        assert client.get("/health").status_code == 503


class TestParseEndpoint:
    def test_parses_clean_report(self) -> None:
        resp = client.post("/parse", json={"raw_ocr_text": RAW_OCR})
        assert resp.status_code == 200
        data = resp.json()
        assert data["has_parsing_error"] is False
        assert data["error_count"] == 0
        assert data["record"]["tier"] == "11"
        assert data["record"]["real_time"] == "6h 52m 45s"
        assert data["record"]["duration_seconds"] == 24765
        assert len(data["pairs"]) == 11

    def test_parse_does_not_store(self) -> None:
        client.post("/parse", json={"raw_ocr_text": RAW_OCR})
        assert client.get("/health").json()["records_stored"] == 0

    def test_reports_field_errors(self) -> None:
        text = RAW_OCR.replace("$45.67B", "45.67B")
        data = client.post("/parse", json={"raw_ocr_text": text}).json()
        assert data["has_parsing_error"] is True
        assert data["record"]["cash_earned"] == ""
        fields = {f["field"] for f in data["findings"] if f["severity"] == "ERROR"}
        assert fields == {"cash_earned"}

    def test_huge_digit_run_is_a_field_error(self) -> None:
        text = RAW_OCR.replace("\n3127\n", "\n" + "9" * 5000 + "\n")
        resp = client.post("/parse", json={"raw_ocr_text": text})
        assert resp.status_code == 200
        data = resp.json()
        assert data["has_parsing_error"] is True
        assert data["record"]["wave"] == ""

    def test_original_hash_present(self) -> None:
        data = client.post("/parse", json={"raw_ocr_text": RAW_OCR}).json()
        assert len(data["original_hash"]) == 64  # SHA-256 hex

    def test_empty_body_returns_422(self) -> None:
        assert client.post("/parse", json={}).status_code == 422


class TestRecordsEndpoints:
    def test_add_then_duplicate(self) -> None:
        body = {"raw_ocr_text": RAW_OCR, "photo_date": PHOTO_DATE}
        first = client.post("/records", json=body).json()
        second = client.post("/records", json=body).json()

        assert first["added"] is True
        assert first["status"] == "added"
        assert second["added"] is False
        assert second["status"] == "duplicate"
        assert len(client.get("/records").json()) == 1

    def test_add_rejects_parsing_error(self) -> None:
        data = client.post("/records", json={"raw_ocr_text": "Tier\n7"}).json()
        assert data["added"] is False
        assert data["status"] == "parsing_error"
        assert client.get("/records").json() == []

    def test_manual_pairs(self) -> None:
        pairs = [
            {"label": "Game Time", "value": "1h 0m 0s"},
            {"label": "Real Time", "value": "0h 30m 0s"},
            {"label": "Tier", "value": "5"},
            {"label": "Wave", "value": "800"},
            {"label": "Killed By", "value": "Fast"},
            {"label": "Coins Earned", "value": "90k"},
            {"label": "Cash Earned", "value": "$2M"},
            {"label": "Interest Earned", "value": "$100k"},
            {"label": "Gem Blocks Tapped", "value": "0"},
            {"label": "Cells Earned", "value": "1.2k"},
            {"label": "Reroll Shards Earned", "value": "0.3k"},
        ]
        data = client.post("/records/manual", json={"pairs": pairs}).json()
        assert data["added"] is True
        assert data["record"]["coin_efficiency"] == pytest.approx(50.0)

    def test_remove_round_trip(self) -> None:
        record = client.post("/records", json={"raw_ocr_text": RAW_OCR}).json()["record"]
        resp = client.post("/records/remove", json=record)
        assert resp.status_code == 200
        assert resp.json() == {"removed": 1}
        assert client.get("/records").json() == []
