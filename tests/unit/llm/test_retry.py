# tests/unit/llm/test_retry.py — v1
"""Tests for llm/retry.py — classification and backoff schedule."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from examextractor.llm.retry import (
    AnalysisError,
    ErrorKind,
    RetryPolicy,
    classify_error,
    with_retry,
)


class QuotaError(Exception):
    status_code = 429


class ServerError(Exception):
    def __init__(self, message: str = "backend unavailable", status_code: int = 503):
        super().__init__(message)
        self.status_code = status_code


class RateLimitError(Exception):
    pass


class ClientError(Exception):
    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class TestClassifyError:
    def test_status_429(self):
        assert classify_error(QuotaError()) is ErrorKind.QUOTA_EXCEEDED

    def test_resource_exhausted_message(self):
        err = Exception("429 RESOURCE_EXHAUSTED: quota exceeded for model")
        assert classify_error(err) is ErrorKind.QUOTA_EXCEEDED

    def test_sdk_rate_limit_type_name(self):
        assert classify_error(RateLimitError("slow down")) is ErrorKind.QUOTA_EXCEEDED

    def test_5xx_status(self):
        assert classify_error(ServerError(status_code=500)) is ErrorKind.SERVER_ERROR
        assert classify_error(ServerError(status_code=503)) is ErrorKind.SERVER_ERROR

    def test_4xx_is_unknown(self):
        assert classify_error(ClientError("bad request", status_code=400)) is ErrorKind.UNKNOWN

    def test_status_code_message(self):
        assert classify_error(Exception("500 Internal error")) is ErrorKind.SERVER_ERROR
        assert classify_error(Exception("got 503 from upstream")) is ErrorKind.SERVER_ERROR

    def test_digits_inside_words_ignored(self):
        assert classify_error(OSError("cannot read q500.png")) is ErrorKind.UNKNOWN
        assert classify_error(OSError("missing page_429_b.png")) is ErrorKind.UNKNOWN

    def test_generic_is_unknown(self):
        assert classify_error(RuntimeError("boom")) is ErrorKind.UNKNOWN

    def test_analysis_error_keeps_kind(self):
        assert classify_error(AnalysisError(ErrorKind.MALFORMED)) is ErrorKind.MALFORMED


class TestRetryPolicy:
    def test_quota_wait_scales_with_attempt(self):
        p = RetryPolicy()
        assert p.wait_time(ErrorKind.QUOTA_EXCEEDED, 0, 3.0) == pytest.approx(4.5)
        assert p.wait_time(ErrorKind.QUOTA_EXCEEDED, 1, 6.0) == pytest.approx(15.0)

    def test_server_wait_is_base_delay(self):
        assert RetryPolicy().wait_time(ErrorKind.SERVER_ERROR, 3, 24.0) == 24.0


class TestWithRetry:
    @pytest.mark.asyncio
    async def test_success_first_try(self, recorded_sleep):
        fn = AsyncMock(return_value="ok")
        assert await with_retry(fn, sleep=recorded_sleep) == "ok"
        assert recorded_sleep.calls == []

    @pytest.mark.asyncio
    async def test_quota_backoff_sequence(self, recorded_sleep):
        fn = AsyncMock(side_effect=[QuotaError(), QuotaError(), "ok"])
        on_quota = MagicMock()
        result = await with_retry(fn, sleep=recorded_sleep, on_quota=on_quota)
        assert result == "ok"
        assert recorded_sleep.calls == pytest.approx([4.5, 15.0])
        assert fn.await_count == 3
        assert on_quota.call_count == 2

    @pytest.mark.asyncio
    async def test_server_error_backoff_doubles(self, recorded_sleep):
        fn = AsyncMock(side_effect=[ServerError(), ServerError(), ServerError(), "ok"])
        await with_retry(fn, sleep=recorded_sleep)
        assert recorded_sleep.calls == pytest.approx([3.0, 6.0, 12.0])

    @pytest.mark.asyncio
    async def test_delay_doubles_across_mixed_kinds(self, recorded_sleep):
        fn = AsyncMock(side_effect=[ServerError(), QuotaError(), "ok"])
        await with_retry(fn, sleep=recorded_sleep)
        # second wait: base 6.0 scaled by (1 + 1.5)
        assert recorded_sleep.calls == pytest.approx([3.0, 15.0])

    @pytest.mark.asyncio
    async def test_no_sixth_attempt(self, recorded_sleep):
        fn = AsyncMock(side_effect=QuotaError())
        on_quota = MagicMock()
        with pytest.raises(AnalysisError) as exc_info:
            await with_retry(fn, sleep=recorded_sleep, on_quota=on_quota)
        assert fn.await_count == 5
        assert len(recorded_sleep.calls) == 4
        assert exc_info.value.kind is ErrorKind.QUOTA_EXCEEDED
        assert exc_info.value.attempts == 5
        assert on_quota.call_count == 5

    @pytest.mark.asyncio
    async def test_malformed_not_retried(self, recorded_sleep):
        fn = AsyncMock(side_effect=AnalysisError(ErrorKind.MALFORMED, "bad json"))
        with pytest.raises(AnalysisError) as exc_info:
            await with_retry(fn, sleep=recorded_sleep)
        assert fn.await_count == 1
        assert recorded_sleep.calls == []
        assert exc_info.value.kind is ErrorKind.MALFORMED

    @pytest.mark.asyncio
    async def test_unknown_not_retried_and_wrapped(self, recorded_sleep):
        cause = RuntimeError("boom")
        fn = AsyncMock(side_effect=cause)
        with pytest.raises(AnalysisError) as exc_info:
            await with_retry(fn, sleep=recorded_sleep)
        assert fn.await_count == 1
        assert exc_info.value.kind is ErrorKind.UNKNOWN
        assert exc_info.value.__cause__ is cause

    @pytest.mark.asyncio
    async def test_custom_attempt_ceiling(self, recorded_sleep):
        fn = AsyncMock(side_effect=ServerError())
        with pytest.raises(AnalysisError):
            await with_retry(
                fn, policy=RetryPolicy(max_attempts=2, initial_delay_s=1.0), sleep=recorded_sleep
            )
        assert fn.await_count == 2
        assert recorded_sleep.calls == [1.0]

    @pytest.mark.asyncio
    async def test_forwards_arguments(self, recorded_sleep):
        fn = AsyncMock(return_value=1)
        await with_retry(fn, "a", sleep=recorded_sleep, key="v")
        fn.assert_awaited_once_with("a", key="v")
