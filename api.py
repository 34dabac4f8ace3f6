"""
Tower Stats — FastAPI Server
=============================

RESTful API for parsing battle-report OCR text and keeping the run store.

Endpoints:
    POST /parse             Parse OCR text into a run record (no storage)
    POST /records           Parse OCR text and add the run to the store
    POST /records/manual    Add a run from hand-entered label/value pairs
    GET  /records           List stored runs
    POST /records/remove    Remove a stored run
    GET  /health            Health check / readiness probe

Run:
    uvicorn api:app --reload              # Dev (http://localhost:8000)
    uvicorn api:app --host 0.0.0.0        # Production

Docs:
    http://localhost:8000/docs             # Swagger UI (auto-generated)
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime
from enum import Enum
from typing import Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from tower_stats import __version__
from tower_stats.config import load_settings
from tower_stats.models import ParseReport, RawPair, RunRecord, ValidationFinding
from tower_stats.pipeline import RunParsingPipeline
from tower_stats.store import JsonFileBlobStore, RecordStore

# ─── Load .env if available ──────────────────────────────────────────
try:
    from dotenv import load_dotenv

    load_dotenv()
except ImportError:
    pass


# ─── Application Lifespan (open store, build pipeline) ──────────────

_pipeline: RunParsingPipeline | None = None
_store: RecordStore | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load settings, open the record snapshot, and build the pipeline."""
    global _pipeline, _store  # noqa: PLW0603
    settings = load_settings()
    _pipeline = RunParsingPipeline(settings=settings)
    _store = RecordStore(JsonFileBlobStore(settings.store_path))
    yield
    _pipeline = None
    _store = None


# ─── FastAPI App ─────────────────────────────────────────────────────

app = FastAPI(
    title="Tower Stats API",
    description=(
        "Turns OCR text of battle-report screenshots into validated run "
        "records: label/value pairing, per-field grammar checks, abbreviated "
        "number expansion, and a duplicate-guarded local store."
    ),
    version=__version__,
    lifespan=lifespan,
)


# ─── Request / Response Schemas ─────────────────────────────────────


class ParseRequest(BaseModel):
    """Request body for the /parse and /records endpoints."""

    raw_ocr_text: str = Field(
        ...,
        description="The OCR text of one battle-report screenshot.",
        json_schema_extra={
            "example": (
                "BATTLE REPORT\nGame Time\nReal Time\nTier\nWave\nKilled By\n"
                "Coins Earned\nCash Earned\nInterest Earned\nGem Blocks Tapped\n"
                "Cells Earned\nReroll Shards Earned\n1d 13h 24m 10s\n6h 52m 45s\n"
                "11\n3127\nBoss\n1.23T\n$45.67B\n$1.20B\n3\n845.2K\n2.31K"
            )
        },
    )
    photo_date: Optional[datetime] = Field(
        default=None, description="Capture time of the screenshot, if known."
    )


class ManualRequest(BaseModel):
    """Request body for /records/manual: pairs typed or corrected by a user."""

    pairs: list[RawPair]
    photo_date: Optional[datetime] = None


class AddStatus(str, Enum):
    ADDED = "added"
    DUPLICATE = "duplicate"
    PARSING_ERROR = "parsing_error"


class ParseResponse(BaseModel):
    """Parse report returned by the API."""

    has_parsing_error: bool
    pairing_method: str
    original_hash: str = Field(description="SHA-256 hash of the OCR input")
    error_count: int
    warning_count: int
    record: RunRecord
    pairs: list[RawPair]
    findings: list[ValidationFinding]


class AddResponse(BaseModel):
    """Outcome of an attempt to store a run."""

    added: bool
    status: AddStatus
    record: RunRecord
    findings: list[ValidationFinding]


class RemoveResponse(BaseModel):
    removed: int


class HealthResponse(BaseModel):
    status: str
    version: str
    records_stored: int


# ─── Helpers ─────────────────────────────────────────────────────────


def _get_pipeline() -> RunParsingPipeline:
    if _pipeline is None:
        raise HTTPException(status_code=503, detail="Pipeline not initialised")
    return _pipeline


def _get_store() -> RecordStore:
    if _store is None:
        raise HTTPException(status_code=503, detail="Record store not initialised")
    return _store


def _build_response(report: ParseReport) -> ParseResponse:
    """Convert the internal ParseReport to the API response schema."""
    error_count = sum(1 for f in report.findings if f.severity.value == "ERROR")
    warning_count = sum(1 for f in report.findings if f.severity.value == "WARNING")

    return ParseResponse(
        has_parsing_error=report.has_parsing_error,
        pairing_method=report.pairing_method,
        original_hash=report.original_hash,
        error_count=error_count,
        warning_count=warning_count,
        record=report.record,
        pairs=report.pairs,
        findings=report.findings,
    )


def _add(report: ParseReport) -> AddResponse:
    pipeline = _get_pipeline()
    store = _get_store()

    if pipeline.ingest(report, store):
        status = AddStatus.ADDED
    elif report.has_parsing_error:
        status = AddStatus.PARSING_ERROR
    else:
        status = AddStatus.DUPLICATE

    return AddResponse(
        added=status is AddStatus.ADDED,
        status=status,
        record=report.record,
        findings=report.findings,
    )


# ─── Endpoints ───────────────────────────────────────────────────────


@app.post(
    "/parse",
    summary="Parse battle-report OCR text",
    tags=["Parsing"],
    responses={503: {"description": "Pipeline not yet initialised"}},
)
def parse_run(request: ParseRequest) -> ParseResponse:
    """Run the parsing pipeline without touching the store.

    Returns a structured report with:
    - **record**: every field, invalid ones empty, plus derived metrics
    - **has_parsing_error**: `true` if any field needs correction
    - **findings**: exactly which fields failed and why
    """
    pipeline = _get_pipeline()
    report = pipeline.run(request.raw_ocr_text, request.photo_date)
    return _build_response(report)


@app.post(
    "/records",
    summary="Parse OCR text and store the run",
    tags=["Records"],
    responses={503: {"description": "Store not yet initialised"}},
)
def add_run(request: ParseRequest) -> AddResponse:
    """Parse the OCR text and add the run unless it is errored or a duplicate."""
    report = _get_pipeline().run(request.raw_ocr_text, request.photo_date)
    return _add(report)


@app.post(
    "/records/manual",
    summary="Store a run from hand-entered pairs",
    tags=["Records"],
    responses={503: {"description": "Store not yet initialised"}},
)
def add_manual_run(request: ManualRequest) -> AddResponse:
    """Build a run from user-corrected label/value pairs and try to store it."""
    report = _get_pipeline().from_pairs(request.pairs, request.photo_date)
    return _add(report)


@app.get("/records", summary="List stored runs", tags=["Records"])
def list_runs() -> list[RunRecord]:
    return list(_get_store().entries)


@app.post("/records/remove", summary="Remove a stored run", tags=["Records"])
def remove_run(record: RunRecord) -> RemoveResponse:
    """Remove every stored run equal to the given record."""
    return RemoveResponse(removed=_get_store().remove(record))


@app.get(
    "/health",
    summary="Health check",
    tags=["System"],
    responses={503: {"description": "Store not yet initialised"}},
)
def health_check() -> HealthResponse:
    """Returns service status and store size."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        records_stored=len(_get_store()),
    )
