# src/store/backend_factory.py — v1
"""Factory for storage backend instantiation."""

from __future__ import annotations

from ofrenda.config.settings import Settings
from ofrenda.store.base_backend import BaseStorageBackend


def create_storage_backend(settings: Settings | None = None) -> BaseStorageBackend:
    """Instantiate the configured storage backend.

    Args:
        settings: Application settings. Defaults to the JSON backend.

    Returns:
        Configured BaseStorageBackend implementation.
    """
    backend = "json" if settings is None else settings.store_backend
    quota = None if settings is None else settings.store_quota_bytes

    if backend == "json":
        from ofrenda.store.json_backend import JsonFileBackend
        root = "~/.ofrenda/store" if settings is None else settings.store_root
        return JsonFileBackend(root=root, quota_bytes=quota)

    if backend == "memory":
        from ofrenda.store.memory_backend import MemoryBackend
        return MemoryBackend(quota_bytes=quota)

    raise ValueError(f"Unsupported store backend: {backend!r}")
