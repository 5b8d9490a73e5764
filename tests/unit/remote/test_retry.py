# tests/unit/remote/test_retry.py — v2
"""Tests for remote/retry.py — linear backoff retry loop."""

from __future__ import annotations

import pytest

from ofrenda.core.errors import remote_error
from ofrenda.remote.retry import (
    DEFAULT_RETRY_POLICIES,
    RetryPolicy,
    policies_from_settings,
    with_retry,
)


class ScriptedInvoker:
    """Returns queued outcomes in order; the last one repeats."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if len(self.outcomes) > 1:
            return self.outcomes.pop(0)
        return self.outcomes[0]


def _retryable():
    return remote_error("NETWORK_ERROR", retryable=True)


class TestRetryPolicy:
    def test_delay_is_linear_in_attempt(self):
        policy = RetryPolicy(base_delay_s=1.0, multiplier=2.0)
        assert [policy.delay_for(n) for n in (1, 2, 3)] == [2.0, 4.0, 6.0]

    def test_default_policies(self):
        assert DEFAULT_RETRY_POLICIES["upload_photo"].multiplier == 1.0
        assert DEFAULT_RETRY_POLICIES["generate_altar"].multiplier == 2.0

    def test_from_settings(self, settings):
        policies = policies_from_settings(settings)
        assert policies["upload_photo"].max_retries == 3
        assert policies["generate_altar"].delay_for(1) == 2.0


class TestWithRetry:
    @pytest.mark.asyncio
    async def test_success_first_try(self, recording_sleep):
        invoke = ScriptedInvoker("ok")
        assert await with_retry(invoke, "upload_photo", sleep=recording_sleep) == "ok"
        assert invoke.calls == 1
        assert recording_sleep.delays == []

    @pytest.mark.asyncio
    async def test_success_after_retries(self, recording_sleep):
        invoke = ScriptedInvoker(_retryable(), _retryable(), "ok")
        assert await with_retry(invoke, "upload_photo", sleep=recording_sleep) == "ok"
        assert invoke.calls == 3
        assert recording_sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_exhaustion_upload(self, recording_sleep):
        invoke = ScriptedInvoker(
            remote_error("TIMEOUT", status_code=408, retryable=True)
        )
        result = await with_retry(invoke, "upload_photo", sleep=recording_sleep)
        assert invoke.calls == 4
        assert recording_sleep.delays == [1.0, 2.0, 3.0]
        assert result.code == "TIMEOUT"
        assert result.status_code == 408
        assert result.retryable is True
        assert result.attempts == 4
        assert result.message.endswith(" (intentos: 4)")

    @pytest.mark.asyncio
    async def test_exhaustion_generate_doubles_delays(self, recording_sleep):
        invoke = ScriptedInvoker(_retryable())
        await with_retry(invoke, "generate_altar", sleep=recording_sleep)
        assert recording_sleep.delays == [2.0, 4.0, 6.0]

    @pytest.mark.asyncio
    async def test_non_retryable_stops_immediately(self, recording_sleep):
        err = remote_error("INVALID_RESPONSE")
        invoke = ScriptedInvoker(err)
        result = await with_retry(invoke, "upload_photo", sleep=recording_sleep)
        assert invoke.calls == 1
        assert recording_sleep.delays == []
        assert result.message == err.message

    @pytest.mark.asyncio
    async def test_retryable_then_non_retryable(self, recording_sleep):
        invoke = ScriptedInvoker(_retryable(), remote_error("INVALID_REQUEST"))
        result = await with_retry(invoke, "upload_photo", sleep=recording_sleep)
        assert result.code == "INVALID_REQUEST"
        assert result.attempts == 2
        assert recording_sleep.delays == [1.0]

    @pytest.mark.asyncio
    async def test_zero_retries(self, recording_sleep):
        invoke = ScriptedInvoker(_retryable())
        result = await with_retry(
            invoke, policy=RetryPolicy(max_retries=0), sleep=recording_sleep
        )
        assert invoke.calls == 1
        assert result.attempts == 1
