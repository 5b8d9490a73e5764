# src/store/memory_backend.py — v1
"""In-process storage backend (STORE_BACKEND=memory).

Nothing survives the process. Useful for tests and dry runs; an optional
quota reproduces capacity failures.
"""

from __future__ import annotations

from ofrenda.store.base_backend import BaseStorageBackend, StorageQuotaExceeded


class MemoryBackend(BaseStorageBackend):
    """Dict-backed storage with an optional byte quota across all keys."""

    def __init__(self, quota_bytes: int | None = None) -> None:
        self._data: dict[str, str] = {}
        self._quota_bytes = quota_bytes

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if self._quota_bytes is not None:
            others = sum(
                len(v.encode("utf-8")) for k, v in self._data.items() if k != key
            )
            needed = others + len(value.encode("utf-8"))
            if needed > self._quota_bytes:
                raise StorageQuotaExceeded(needed, self._quota_bytes)
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)
