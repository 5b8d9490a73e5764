# src/remote/client.py — v1
"""HTTP client for the two remote operations: photo upload and altar generation.

Each call:
  1. Validates the request locally (INVALID_REQUEST / INVALID_DESCRIPTION_LENGTH)
  2. Checks connectivity before any I/O (NO_CONNECTIVITY)
  3. Races the request against a fixed timeout (TIMEOUT, 408)
  4. Rejects malformed success bodies (INVALID_RESPONSE)
  5. Sends every other failure through the classifier

No retry happens here; see ``ofrenda.remote.retry``. Failures are returned
as ClassifiedError values, never raised.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from functools import partial
from typing import TYPE_CHECKING, Any, Awaitable, Callable

import httpx
from pydantic import BaseModel, ValidationError

from ofrenda.core.errors import MESSAGES, ClassifiedError, remote_error
from ofrenda.core.models import (
    GenerateAltarRequest,
    GenerateAltarResponse,
    UploadPhotoResponse,
)
from ofrenda.remote.classifier import classify
from ofrenda.remote.connectivity import (
    ConnectivityCheck,
    always_online,
    check_from_settings,
)
from ofrenda.utils.files import media_type_for

if TYPE_CHECKING:
    from ofrenda.config.settings import Settings

logger = logging.getLogger(__name__)

OPERATIONS = ("upload_photo", "generate_altar")


class RemoteOperationClient:
    """Issues remote calls and normalizes every outcome.

    Args:
        settings: Application settings (URLs, timeout, limits).
        http_client: Optional pre-built ``httpx.AsyncClient`` (tests inject one
            with a ``MockTransport``). When omitted the client owns its own.
        is_online: Reachability check; defaults to the one configured in settings.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient | None = None,
        is_online: ConnectivityCheck | None = None,
    ) -> None:
        self._settings = settings
        self._owns_http = http_client is None
        # The timeout race below governs; httpx's own timeout is disabled.
        self._http = http_client or httpx.AsyncClient(timeout=None)
        self._is_online = is_online or check_from_settings(settings)
        # Requests that outlived their timeout; still running, nobody awaits them
        self._abandoned: set[asyncio.Task] = set()

    async def __aenter__(self) -> RemoteOperationClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Cancel abandoned requests, then close the HTTP client if owned."""
        for task in list(self._abandoned):
            task.cancel()
        if self._abandoned:
            await asyncio.gather(*self._abandoned, return_exceptions=True)
        if self._owns_http:
            await self._http.aclose()

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def upload_photo(
        self, photo: bytes, filename: str = "photo"
    ) -> UploadPhotoResponse | ClassifiedError:
        return await self.invoke("upload_photo", {"photo": photo, "filename": filename})

    async def generate_altar(
        self, request: GenerateAltarRequest
    ) -> GenerateAltarResponse | ClassifiedError:
        return await self.invoke("generate_altar", request)

    async def invoke(self, operation: str, payload: Any) -> BaseModel | ClassifiedError:
        """Run one remote operation once.

        Args:
            operation: "upload_photo" or "generate_altar".
            payload: Upload: ``{"photo": bytes, "filename": str}``.
                Generation: GenerateAltarRequest or an equivalent dict.

        Returns:
            The parsed response model, or a ClassifiedError.

        Raises:
            ValueError: If ``operation`` is not a known operation.
        """
        send: Callable[[], Awaitable[httpx.Response]]
        response_model: type[BaseModel]
        if operation == "upload_photo":
            invalid = self._check_upload(payload)
            send = partial(self._send_upload, payload)
            response_model = UploadPhotoResponse
        elif operation == "generate_altar":
            request = _coerce_generate_request(payload)
            if request is None:
                invalid = remote_error("INVALID_REQUEST", status_code=400)
            else:
                invalid = self._check_generate(request)
            send = partial(self._send_generate, request)
            response_model = GenerateAltarResponse
        else:
            raise ValueError(f"Unknown remote operation: {operation!r}")

        if invalid is not None:
            logger.warning("'%s' rejected before sending: %s", operation, invalid)
            return invalid

        t0 = time.monotonic()
        outcome = await self._call(send, response_model)
        latency_ms = int((time.monotonic() - t0) * 1000)

        if isinstance(outcome, ClassifiedError):
            logger.warning(
                "'%s' failed in %dms: %s (retryable=%s)",
                operation, latency_ms, outcome, outcome.retryable,
            )
        else:
            logger.info("'%s' succeeded in %dms", operation, latency_ms)
        return outcome

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _call(
        self,
        send: Callable[[], Awaitable[httpx.Response]],
        response_model: type[BaseModel],
    ) -> BaseModel | ClassifiedError:
        try:
            if not await self._check_online():
                return remote_error("NO_CONNECTIVITY", status_code=0, retryable=True)

            # shield: on timeout we stop waiting, the request itself keeps going
            task = asyncio.ensure_future(send())
            try:
                response = await asyncio.wait_for(
                    asyncio.shield(task), timeout=self._settings.request_timeout_s
                )
            except asyncio.TimeoutError:
                self._abandon(task)
                return remote_error("TIMEOUT", status_code=408, retryable=True)

            response.raise_for_status()
            return _parse_body(response, response_model)
        except Exception as exc:  # noqa: BLE001
            return classify(exc, online=await self._check_online_quietly())

    def _abandon(self, task: asyncio.Task) -> None:
        self._abandoned.add(task)
        task.add_done_callback(self._forget)

    def _forget(self, task: asyncio.Task) -> None:
        self._abandoned.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.debug("Abandoned request failed late: %r", task.exception())

    async def _check_online(self) -> bool:
        """Run the check in a worker thread; a socket check blocks for up to its timeout."""
        if self._is_online is always_online:
            return True
        return await asyncio.to_thread(self._is_online)

    async def _check_online_quietly(self) -> bool:
        try:
            return await self._check_online()
        except Exception:  # noqa: BLE001
            return True

    def _check_upload(self, payload: Any) -> ClassifiedError | None:
        photo = payload.get("photo") if isinstance(payload, dict) else None
        if not photo:
            return remote_error("INVALID_REQUEST", status_code=400)
        return None

    def _check_generate(self, request: GenerateAltarRequest) -> ClassifiedError | None:
        if not request.photo_s3_key or not request.food_description:
            return remote_error("INVALID_REQUEST", status_code=400)

        length = len(request.food_description.strip())
        lo = self._settings.description_min_length
        hi = self._settings.description_max_length
        if length < lo or length > hi:
            return remote_error(
                "INVALID_DESCRIPTION_LENGTH",
                status_code=400,
                message=f"La descripción debe tener entre {lo} y {hi} caracteres",
            )
        return None

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Accept": "application/json"}
        if self._settings.api_key:
            headers["Authorization"] = f"Bearer {self._settings.api_key}"
        return headers

    async def _send_upload(self, payload: dict) -> httpx.Response:
        photo: bytes = payload["photo"]
        filename = payload.get("filename") or "photo"
        files = {"file": (filename, photo, media_type_for(photo))}
        logger.debug("POST %s (%d bytes)", self._settings.upload_url, len(photo))
        return await self._http.post(
            self._settings.upload_url, files=files, headers=self._headers(),
        )

    async def _send_generate(self, request: GenerateAltarRequest) -> httpx.Response:
        logger.debug("POST %s", self._settings.generate_url)
        return await self._http.post(
            self._settings.generate_url, json=request.to_wire(), headers=self._headers(),
        )


def _coerce_generate_request(payload: Any) -> GenerateAltarRequest | None:
    if isinstance(payload, GenerateAltarRequest):
        return payload
    try:
        return GenerateAltarRequest.model_validate(payload)
    except ValidationError:
        return None


def _parse_body(
    response: httpx.Response, response_model: type[BaseModel]
) -> BaseModel | ClassifiedError:
    """Parse a 2xx body; anything but a complete JSON object is INVALID_RESPONSE."""
    try:
        body = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return remote_error("INVALID_RESPONSE")

    if not isinstance(body, dict):
        return remote_error("INVALID_RESPONSE")

    try:
        return response_model.model_validate(body)
    except ValidationError:
        return remote_error("INVALID_RESPONSE", message=MESSAGES["INCOMPLETE_RESPONSE"])
