# src/store/json_backend.py — v1
"""JSON file-based storage backend (default STORE_BACKEND=json).

Stores each key as an individual file under STORE_ROOT. Writes go through a
temporary file and an atomic rename, so a crash mid-write leaves the
previous value intact.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from ofrenda.store.base_backend import BaseStorageBackend, StorageQuotaExceeded

logger = logging.getLogger(__name__)


class JsonFileBackend(BaseStorageBackend):
    """File-per-key storage with an optional byte quota over the root directory."""

    def __init__(self, root: Path | str, quota_bytes: int | None = None) -> None:
        self._root = Path(root).expanduser()
        self._quota_bytes = quota_bytes

    @property
    def root(self) -> Path:
        return self._root

    def get(self, key: str) -> str | None:
        path = self._entry_path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        path = self._entry_path(key)
        encoded = value.encode("utf-8")
        if self._quota_bytes is not None:
            needed = self._used_bytes(exclude=path) + len(encoded)
            if needed > self._quota_bytes:
                raise StorageQuotaExceeded(needed, self._quota_bytes)

        self._root.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            tmp_path.write_bytes(encoded)
            os.replace(tmp_path, path)
        finally:
            if tmp_path.exists():
                tmp_path.unlink()
        logger.debug("Wrote %s (%d bytes)", path, len(encoded))

    def remove(self, key: str) -> None:
        self._entry_path(key).unlink(missing_ok=True)

    def _used_bytes(self, exclude: Path) -> int:
        if not self._root.is_dir():
            return 0
        return sum(
            p.stat().st_size
            for p in self._root.glob("*.json")
            if p != exclude
        )

    def _entry_path(self, key: str) -> Path:
        """Return file path for a storage key."""
        safe_key = key.replace("/", "_").replace("\\", "_")
        return self._root / f"{safe_key}.json"
