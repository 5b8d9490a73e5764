# src/remote/classifier.py — v1
"""Map any failure raised around a remote call onto a ClassifiedError.

Classification order:
  1. Already classified → returned unchanged
  2. Offline → NO_CONNECTIVITY (retryable)
  3. HTTP error with a structured JSON body → server code/message,
     retryable iff status >= 500 or status == 429
  4. Timeouts → TIMEOUT (408, retryable)
  5. Transport errors → NETWORK_ERROR (retryable)
  6. HTTP error without a usable body → UNKNOWN_ERROR, retryable by status
  7. network/fetch/connection wording → NETWORK_ERROR (retryable)
  8. Everything else → UNKNOWN_ERROR (not retryable)

``classify`` is total: it never raises.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

import httpx
from pydantic import ValidationError

from ofrenda.core.errors import (
    MESSAGES,
    REMOTE_ERROR_CODES,
    ClassifiedError,
    remote_error,
)
from ofrenda.core.models import ErrorResponse

logger = logging.getLogger(__name__)

_NETWORK_PATTERN = re.compile(r"network|fetch|connection", re.IGNORECASE)


def is_retryable_status(status_code: int | None) -> bool:
    """Server-side and throttling statuses are worth retrying."""
    if status_code is None:
        return False
    return status_code >= 500 or status_code == 429


def classify(error: Any, online: bool = True) -> ClassifiedError:
    """Classify a raw failure into a ClassifiedError.

    Args:
        error: Anything caught around a remote call.
        online: Result of the reachability check at classification time.

    Returns:
        Exactly one ClassifiedError for any input.
    """
    try:
        return _classify(error, online)
    except Exception as exc:  # noqa: BLE001
        logger.debug("Classifier fallback for %r: %s", error, exc)
        return remote_error("UNKNOWN_ERROR")


def _classify(error: Any, online: bool) -> ClassifiedError:
    if isinstance(error, ClassifiedError):
        return error

    if not online:
        return remote_error("NO_CONNECTIVITY", status_code=0, retryable=True)

    structured = _from_error_body(error)
    if structured is not None:
        return structured

    if isinstance(error, (httpx.TimeoutException, TimeoutError)):
        return remote_error("TIMEOUT", status_code=408, retryable=True)

    if isinstance(error, (httpx.TransportError, ConnectionError)):
        return remote_error("NETWORK_ERROR", retryable=True)

    # Status error without a usable body: the status alone decides
    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        return remote_error(
            "UNKNOWN_ERROR",
            status_code=status,
            retryable=is_retryable_status(status),
        )

    message = _message_of(error)
    if message and _NETWORK_PATTERN.search(message):
        return remote_error("NETWORK_ERROR", retryable=True)

    return remote_error("UNKNOWN_ERROR", message=message or None)


def _from_error_body(error: Any) -> ClassifiedError | None:
    """Extract code/message/status from an HTTP error carrying a JSON object body."""
    response = getattr(error, "response", None)
    if not isinstance(response, httpx.Response):
        return None

    try:
        body = json.loads(response.text) if response.text else None
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    if not isinstance(body, dict):
        return None
    try:
        parsed = ErrorResponse.model_validate(body)
    except ValidationError:
        return None

    status = response.status_code
    raw_code = parsed.code
    message = parsed.message or parsed.error or MESSAGES["SERVER_ERROR"]

    if raw_code in REMOTE_ERROR_CODES:
        code = raw_code
        raw_code = None
    else:
        code = "UNKNOWN_ERROR"

    return ClassifiedError(
        message=message,
        code=code,  # type: ignore[arg-type]
        status_code=status,
        retryable=is_retryable_status(status),
        raw_code=raw_code,
    )


def _message_of(error: Any) -> str:
    if isinstance(error, BaseException):
        return str(error)
    message = getattr(error, "message", None)
    if isinstance(message, str):
        return message
    if isinstance(error, str):
        return error
    return ""
