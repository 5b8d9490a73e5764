# src/store/base_backend.py — v1
"""Abstract durable key-value storage backend.

Backends hold opaque string values under string keys. A backend signals a
capacity ceiling with StorageQuotaExceeded and denied access with
PermissionError; LocalStore maps both onto its own error codes.
"""

from __future__ import annotations

import errno
from abc import ABC, abstractmethod


class StorageQuotaExceeded(OSError):
    """Raised when a write would exceed the backend's capacity ceiling."""

    def __init__(self, needed: int, quota: int):
        self.needed = needed
        self.quota = quota
        super().__init__(
            errno.ENOSPC, f"Storage quota exceeded: {needed} bytes > {quota} bytes"
        )


class BaseStorageBackend(ABC):
    """Unified interface for durable key-value storage."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or None when the key is absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Remove ``key``. Missing keys are ignored."""
