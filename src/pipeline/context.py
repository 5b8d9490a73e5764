# src/pipeline/context.py — v1
"""Explicit dependency container for the creation pipeline.

Holds the settings, the pipeline state, the local store and the remote
client. Callers build one context and pass it to the orchestrator; there is
no module-level singleton.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ofrenda.pipeline.state import PipelineState
from ofrenda.remote.client import RemoteOperationClient
from ofrenda.remote.retry import RetryPolicy, SleepFn, policies_from_settings
from ofrenda.store.local_store import LocalStore

if TYPE_CHECKING:
    import httpx

    from ofrenda.config.settings import Settings
    from ofrenda.remote.connectivity import ConnectivityCheck


@dataclass
class PipelineContext:
    """Everything one orchestrator needs; owned by a single caller."""

    settings: Settings
    store: LocalStore
    client: RemoteOperationClient
    state: PipelineState = field(default_factory=PipelineState)
    retry_policies: dict[str, RetryPolicy] = field(default_factory=dict)
    sleep: SleepFn = asyncio.sleep

    def __post_init__(self) -> None:
        if not self.retry_policies:
            self.retry_policies = policies_from_settings(self.settings)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        http_client: httpx.AsyncClient | None = None,
        is_online: ConnectivityCheck | None = None,
        store: LocalStore | None = None,
    ) -> PipelineContext:
        """Wire the default store and client from Settings."""
        return cls(
            settings=settings,
            store=store or LocalStore.from_settings(settings),
            client=RemoteOperationClient(
                settings, http_client=http_client, is_online=is_online
            ),
        )

    async def aclose(self) -> None:
        await self.client.aclose()
