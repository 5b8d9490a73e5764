# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides settings, sample altars, image bytes, a recording sleep, and an
httpx MockTransport router. No network — all I/O is mocked or under tmp_path.
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import httpx
import pytest

from ofrenda.config.settings import Settings
from ofrenda.core.models import AltarRecord

# === SAMPLE BYTES ===

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 24
WEBP_BYTES = b"RIFF" + b"\x24\x00\x00\x00" + b"WEBP" + b"VP8 " + b"\x00" * 16

BASE_TIME = datetime(2024, 11, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_altar(
    index: int = 0,
    altar_id: str | None = None,
    created_at: datetime | None = None,
    **overrides: Any,
) -> AltarRecord:
    """Build a fully populated AltarRecord; ``index`` shifts createdAt by minutes."""
    fields: dict[str, Any] = {
        "id": altar_id or f"altar_{index:03d}",
        "photo_url": f"https://cdn.test/photos/{index}.jpg",
        "photo_s3_key": f"photos/{index}.jpg",
        "food_description": "Pan de muerto, mole y calabaza en tacha",
        "altar_image_url": f"https://cdn.test/altars/{index}.png",
        "altar_image_s3_key": f"altars/{index}.png",
        "created_at": created_at or BASE_TIME + timedelta(minutes=index),
    }
    fields.update(overrides)
    return AltarRecord(**fields)


# === FIXTURES: Settings ===


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings isolated from .env, storing under tmp_path."""
    return Settings(
        _env_file=None,
        api_base_url="http://api.test",
        store_backend="json",
        store_root=tmp_path / "store",
        request_timeout_s=5.0,
        retry_base_delay_s=1.0,
    )


# === FIXTURES: Async helpers ===


class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays and returns at once."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


# === FIXTURES: HTTP ===


class ApiRouter:
    """MockTransport handler serving queued responses per request path.

    Each queued item is an ``httpx.Response``, an exception to raise, or a
    callable taking the request. The last item of a queue repeats forever.
    """

    def __init__(self) -> None:
        self.routes: dict[str, list[Any]] = {}
        self.requests: list[httpx.Request] = []

    def on(self, path: str, *items: Any) -> ApiRouter:
        self.routes.setdefault(path, []).extend(items)
        return self

    def calls(self, path: str) -> int:
        return sum(1 for r in self.requests if r.url.path == path)

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get(request.url.path)
        if not queue:
            return httpx.Response(404, json={"code": "NOT_FOUND", "message": "no route"})
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, BaseException):
            raise item
        if callable(item) and not isinstance(item, httpx.Response):
            result = item(request)
            if hasattr(result, "__await__"):
                result = await result
            return result
        return _clone(item)


def _clone(response: httpx.Response) -> httpx.Response:
    """Fresh Response per request; a Response object cannot be sent twice."""
    return httpx.Response(
        response.status_code, headers=response.headers, content=response.content,
    )


def json_response(status: int, body: Any) -> httpx.Response:
    return httpx.Response(status, content=json.dumps(body).encode(), headers={
        "Content-Type": "application/json",
    })


UPLOAD_PATH = "/api/upload-photo"
GENERATE_PATH = "/api/generate-altar"


@pytest.fixture
def router() -> ApiRouter:
    return ApiRouter()


@pytest.fixture
def http_client(router: ApiRouter):
    """AsyncClient wired to the router."""
    return httpx.AsyncClient(transport=httpx.MockTransport(router))


def offline() -> bool:
    return False

