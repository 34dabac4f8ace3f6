"""
Local run-record store with duplicate and error guards.

The store owns an ordered list of accepted records and persists the whole
list as one JSON array on every mutation. Where the bytes live is a
pluggable concern (BlobStore). Mutations are serialized by a lock: each one
builds the new list, writes it, and only then swaps it in, so a failed
write leaves both memory and disk on the previous snapshot.
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Iterator, Protocol

from pydantic import TypeAdapter, ValidationError

from .duplicates import is_duplicate
from .exceptions import SnapshotDecodeError
from .models import RunRecord

logger = logging.getLogger(__name__)

_SNAPSHOT = TypeAdapter(list[RunRecord])


# ─── Blob Backends ───────────────────────────────────────────────────


class BlobStore(Protocol):
    """Holds one opaque snapshot. read() returns None if nothing is stored."""

    def read(self) -> bytes | None: ...

    def write(self, data: bytes) -> None: ...


class InMemoryBlobStore:
    def __init__(self, data: bytes | None = None):
        self.data = data
        self.writes = 0

    def read(self) -> bytes | None:
        return self.data

    def write(self, data: bytes) -> None:
        self.data = data
        self.writes += 1


class JsonFileBlobStore:
    """Snapshot stored in a JSON file, replaced atomically on write."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def read(self) -> bytes | None:
        try:
            return self.path.read_bytes()
        except FileNotFoundError:
            return None

    def write(self, data: bytes) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


# ─── Record Store ────────────────────────────────────────────────────


class RecordStore:
    """Ordered, persisted collection of accepted run records.

    Usage:
        store = RecordStore(JsonFileBlobStore("stats.json"))
        if store.add(record):
            ...  # newly stored
    """

    def __init__(self, blob_store: BlobStore):
        self._blob_store = blob_store
        self._lock = threading.Lock()
        self._records: list[RunRecord] = self._load()

    # ── Queries ─────────────────────────────────────────────────────

    @property
    def entries(self) -> tuple[RunRecord, ...]:
        return tuple(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[RunRecord]:
        return iter(self.entries)

    def contains_exact(self, record: RunRecord) -> bool:
        """Field-for-field membership (used to report "already added")."""
        return record in self._records

    def is_duplicate(self, record: RunRecord) -> bool:
        """True if any stored record shares the record's fingerprint."""
        return any(is_duplicate(record, existing) for existing in self._records)

    # ── Mutations ───────────────────────────────────────────────────

    def add(self, record: RunRecord) -> bool:
        """Append and persist the record unless it is errored or a duplicate."""
        with self._lock:
            if record.has_parsing_error:
                logger.info("Rejected record with parsing errors")
                return False
            if self.is_duplicate(record):
                logger.info(
                    "Rejected duplicate record (tier %s, wave %s)",
                    record.tier,
                    record.wave,
                )
                return False

            updated = [*self._records, record]
            self._persist(updated)
            self._records = updated

        logger.info("Stored record (tier %s, wave %s)", record.tier, record.wave)
        return True

    def remove(self, record: RunRecord) -> int:
        """Remove every entry equal to the record; returns how many went."""
        with self._lock:
            updated = [r for r in self._records if r != record]
            removed = len(self._records) - len(updated)
            self._persist(updated)
            self._records = updated

        logger.info("Removed %d record(s)", removed)
        return removed

    # ── Persistence ─────────────────────────────────────────────────

    def _load(self) -> list[RunRecord]:
        data = self._blob_store.read()
        if not data:
            return []
        try:
            return _SNAPSHOT.validate_json(data)
        except ValidationError as e:
            raise SnapshotDecodeError(
                "Stored record snapshot could not be decoded",
                details={"errors": e.error_count()},
            ) from e

    def _persist(self, records: list[RunRecord]) -> None:
        self._blob_store.write(_SNAPSHOT.dump_json(records, indent=2))
