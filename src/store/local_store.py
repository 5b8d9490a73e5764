# src/store/local_store.py — v1
"""Capacity-bounded local collection of AltarRecords.

The whole collection lives under a single storage key as a JSON array,
newest ``createdAt`` first, and is rewritten on every mutation. Only the
``max_records`` most recent records are kept.

All failures surface as LocalStorageError with one of the codes
QUOTA_EXCEEDED, ACCESS_DENIED, PARSE_ERROR, UNKNOWN. Corrupted content is
raised as PARSE_ERROR, never silently read as an empty collection.
"""

from __future__ import annotations

import errno
import json
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from pydantic import ValidationError

from ofrenda.core.errors import LocalStorageError
from ofrenda.core.models import AltarRecord
from ofrenda.store.base_backend import BaseStorageBackend, StorageQuotaExceeded

if TYPE_CHECKING:
    from ofrenda.config.settings import Settings

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "altar_app_altars"
DEFAULT_MAX_RECORDS = 50

_QUOTA_ERRNOS = {errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)}


class LocalStore:
    """Synchronous keyed collection persisted through a storage backend.

    Concurrent saves are read-modify-write without locking: the last
    writer wins.
    """

    def __init__(
        self,
        backend: BaseStorageBackend,
        storage_key: str = DEFAULT_STORAGE_KEY,
        max_records: int = DEFAULT_MAX_RECORDS,
    ) -> None:
        self._backend = backend
        self._key = storage_key
        self._max_records = max_records

    @classmethod
    def from_settings(cls, settings: Settings) -> LocalStore:
        from ofrenda.store.backend_factory import create_storage_backend

        return cls(
            backend=create_storage_backend(settings),
            storage_key=settings.store_key,
            max_records=settings.store_max_records,
        )

    @property
    def max_records(self) -> int:
        return self._max_records

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def save(self, record: AltarRecord) -> None:
        """Upsert ``record`` by id, then keep only the newest ``max_records``."""
        records = self.get_all()

        for i, existing in enumerate(records):
            if existing.id == record.id:
                records[i] = record
                break
        else:
            records.append(record)

        ordered = sort_newest_first(records)
        kept = ordered[: self._max_records]
        if len(ordered) > len(kept):
            evicted = [r.id for r in ordered[self._max_records:]]
            logger.info(
                "Store at capacity (%d), evicting %d oldest: %s",
                self._max_records, len(evicted), evicted,
            )

        self._write(kept)
        logger.debug("Saved altar %s (%d stored)", record.id, len(kept))

    def get(self, altar_id: str) -> AltarRecord | None:
        """Return the record with ``altar_id``, or None when absent."""
        for record in self.get_all():
            if record.id == altar_id:
                return record
        return None

    def get_all(self) -> list[AltarRecord]:
        """Return every record, newest ``createdAt`` first."""
        return sort_newest_first(self._read())

    def delete(self, altar_id: str) -> None:
        """Remove ``altar_id``. Deleting a missing id is a no-op."""
        records = self.get_all()
        remaining = [r for r in records if r.id != altar_id]
        if len(remaining) == len(records):
            logger.debug("Delete of unknown altar %s ignored", altar_id)
            return
        self._write(remaining)
        logger.info("Deleted altar %s", altar_id)

    def clear(self) -> None:
        """Remove the whole collection."""
        try:
            self._backend.remove(self._key)
        except Exception as exc:
            raise translate_storage_error(exc) from exc
        logger.info("Cleared all stored altars")

    def count(self) -> int:
        return len(self._read())

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def _read(self) -> list[AltarRecord]:
        try:
            raw = self._backend.get(self._key)
        except Exception as exc:
            raise translate_storage_error(exc) from exc

        if not raw:
            return []

        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError(f"expected a JSON array, got {type(data).__name__}")
            return [AltarRecord.model_validate(item) for item in data]
        except (json.JSONDecodeError, ValidationError, ValueError, TypeError) as exc:
            logger.error("Stored altar collection is corrupted: %s", exc)
            raise LocalStorageError("PARSE_ERROR") from exc

    def _write(self, records: list[AltarRecord]) -> None:
        payload = json.dumps([r.to_wire() for r in records], ensure_ascii=False)
        try:
            self._backend.set(self._key, payload)
        except Exception as exc:
            raise translate_storage_error(exc) from exc


def sort_newest_first(records: list[AltarRecord]) -> list[AltarRecord]:
    """Sort by ``created_at`` descending. Order among equal timestamps is unspecified."""
    return sorted(records, key=_created_at_key, reverse=True)


def _created_at_key(record: AltarRecord) -> datetime:
    ts = record.created_at
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def translate_storage_error(exc: BaseException) -> LocalStorageError:
    """Map a backend exception onto a LocalStorageError code."""
    if isinstance(exc, LocalStorageError):
        return exc
    if isinstance(exc, StorageQuotaExceeded):
        return LocalStorageError("QUOTA_EXCEEDED")
    if isinstance(exc, PermissionError):
        return LocalStorageError("ACCESS_DENIED")
    if isinstance(exc, OSError) and exc.errno in _QUOTA_ERRNOS:
        return LocalStorageError("QUOTA_EXCEEDED")
    # Stored bytes that are not text are corrupt content, not a backend fault
    if isinstance(exc, UnicodeDecodeError):
        logger.error("Stored altar collection is not valid UTF-8: %s", exc)
        return LocalStorageError("PARSE_ERROR")
    logger.error("Unexpected storage failure: %r", exc)
    return LocalStorageError("UNKNOWN")
