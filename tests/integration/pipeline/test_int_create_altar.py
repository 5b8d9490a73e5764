# tests/integration/pipeline/test_int_create_altar.py — v1
"""Integration tests for the altar creation pipeline.

Covers: remote/client.py, remote/retry.py, remote/classifier.py,
        store/local_store.py + json_backend.py, pipeline/orchestrator.py,
        pipeline/context.py, pipeline/state.py

No network — the API is served by an httpx MockTransport and the store
writes JSON files under tmp_path.
"""

from __future__ import annotations

import json
from datetime import datetime

import httpx
import pytest

from ofrenda.core.errors import AltarCreationError
from ofrenda.core.models import CreateAltarRequest
from ofrenda.pipeline.context import PipelineContext
from ofrenda.pipeline.orchestrator import AltarOrchestrator
from ofrenda.store.local_store import LocalStore
from tests.conftest import (
    GENERATE_PATH,
    PNG_BYTES,
    UPLOAD_PATH,
    json_response,
    make_altar,
)


def _build(settings, router, recording_sleep) -> PipelineContext:
    http = httpx.AsyncClient(transport=httpx.MockTransport(router))
    context = PipelineContext.from_settings(settings, http_client=http)
    context.sleep = recording_sleep
    return context


class TestCreateAltarEndToEnd:
    @pytest.mark.asyncio
    async def test_creates_and_persists(self, settings, router, recording_sleep):
        router.on(UPLOAD_PATH, json_response(200, {"photoUrl": "u", "s3Key": "k1"}))
        router.on(
            GENERATE_PATH,
            json_response(200, {"altarImageUrl": "g", "altarImageS3Key": "k2"}),
        )
        context = _build(settings, router, recording_sleep)
        orch = AltarOrchestrator(context)

        altar = await orch.create_altar(
            CreateAltarRequest(photo=PNG_BYTES, food_description="Pan de muerto y mole")
        )

        assert altar.photo_url == "u"
        assert altar.altar_image_url == "g"
        assert altar.id != ""

        path = settings.store_root / f"{settings.store_key}.json"
        stored = json.loads(path.read_text(encoding="utf-8"))
        assert stored[0]["id"] == altar.id
        assert stored[0]["photoS3Key"] == "k1"
        assert stored[0]["altarImageS3Key"] == "k2"
        datetime.fromisoformat(stored[0]["createdAt"].replace("Z", "+00:00"))

        reopened = LocalStore.from_settings(settings)
        assert reopened.get(altar.id) == altar

    @pytest.mark.asyncio
    async def test_transient_failures_then_success(
        self, settings, router, recording_sleep
    ):
        router.on(
            UPLOAD_PATH,
            httpx.ReadTimeout("slow"),
            json_response(502, {"message": "bad gateway"}),
            json_response(200, {"photoUrl": "u", "s3Key": "k1"}),
        )
        router.on(
            GENERATE_PATH,
            json_response(429, {"message": "demasiadas solicitudes"}),
            json_response(200, {"altarImageUrl": "g", "altarImageS3Key": "k2"}),
        )
        orch = AltarOrchestrator(_build(settings, router, recording_sleep))

        await orch.create_altar(
            CreateAltarRequest(photo=PNG_BYTES, food_description="Tamales y atole")
        )

        assert router.calls(UPLOAD_PATH) == 3
        assert router.calls(GENERATE_PATH) == 2
        assert recording_sleep.delays == [1.0, 2.0, 2.0]

    @pytest.mark.asyncio
    async def test_capacity_over_runs(self, settings, router, recording_sleep):
        router.on(UPLOAD_PATH, json_response(200, {"photoUrl": "u", "s3Key": "k1"}))
        router.on(
            GENERATE_PATH,
            json_response(200, {"altarImageUrl": "g", "altarImageS3Key": "k2"}),
        )
        small = settings.model_copy(update={"store_max_records": 3})
        store = LocalStore.from_settings(small)
        for i in range(3):
            store.save(make_altar(i))

        orch = AltarOrchestrator(_build(small, router, recording_sleep))
        orch.load_altars()
        altar = await orch.create_altar(
            CreateAltarRequest(photo=PNG_BYTES, food_description="Calabaza en tacha")
        )

        ids = [a.id for a in store.get_all()]
        assert ids == [altar.id, "altar_002", "altar_001"]

    @pytest.mark.asyncio
    async def test_quota_gives_partial_success(self, settings, router, recording_sleep):
        router.on(UPLOAD_PATH, json_response(200, {"photoUrl": "u", "s3Key": "k1"}))
        router.on(
            GENERATE_PATH,
            json_response(200, {"altarImageUrl": "g", "altarImageS3Key": "k2"}),
        )
        tight = settings.model_copy(update={"store_quota_bytes": 32})
        orch = AltarOrchestrator(_build(tight, router, recording_sleep))

        altar = await orch.create_altar(
            CreateAltarRequest(photo=PNG_BYTES, food_description="Pan de muerto y mole")
        )

        assert orch.state.stage == "done"
        assert orch.state.warning is not None
        assert orch.state.current_altar == altar
        assert LocalStore.from_settings(tight).get_all() == []

    @pytest.mark.asyncio
    async def test_corrupt_store_surfaces_on_load(self, settings, router, recording_sleep):
        settings.store_root.mkdir(parents=True)
        (settings.store_root / f"{settings.store_key}.json").write_text("{oops")
        orch = AltarOrchestrator(_build(settings, router, recording_sleep))

        assert orch.load_altars() == []
        assert orch.state.last_error is not None

    @pytest.mark.asyncio
    async def test_permanent_failure_leaves_store_untouched(
        self, settings, router, recording_sleep
    ):
        router.on(UPLOAD_PATH, json_response(400, {"code": "INVALID_REQUEST"}))
        orch = AltarOrchestrator(_build(settings, router, recording_sleep))

        with pytest.raises(AltarCreationError):
            await orch.create_altar(
                CreateAltarRequest(photo=PNG_BYTES, food_description="Pan de muerto y mole")
            )

        assert router.calls(UPLOAD_PATH) == 1
        assert not (settings.store_root / f"{settings.store_key}.json").exists()
