"""Tests for the provider retry decorator."""

import httpx
import pytest

from packages.common.resilience import is_transient_error, resilient_async_call


@pytest.mark.asyncio
async def test_retries_transient_errors_until_success() -> None:
    calls = 0

    @resilient_async_call(max_attempts=3, min_wait=0, max_wait=0, retry_on=(httpx.TransportError,))
    async def flaky() -> str:
        nonlocal calls
        calls += 1
        if calls < 3:
            raise httpx.ConnectError("refused")
        return "ok"

    assert await flaky() == "ok"
    assert calls == 3


@pytest.mark.asyncio
async def test_reraises_after_last_attempt() -> None:
    calls = 0

    @resilient_async_call(max_attempts=2, min_wait=0, max_wait=0, retry_on=(httpx.TransportError,))
    async def down() -> None:
        nonlocal calls
        calls += 1
        raise httpx.ConnectError("refused")

    with pytest.raises(httpx.ConnectError):
        await down()
    assert calls == 2


@pytest.mark.asyncio
async def test_does_not_retry_other_errors() -> None:
    calls = 0

    @resilient_async_call(max_attempts=3, min_wait=0, max_wait=0, retry_on=(httpx.TransportError,))
    async def broken() -> None:
        nonlocal calls
        calls += 1
        raise ValueError("bad response")

    with pytest.raises(ValueError):
        await broken()
    assert calls == 1


def status_error(code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "http://ollama:11434/api/embeddings")
    return httpx.HTTPStatusError(
        "failed", request=request, response=httpx.Response(code, request=request)
    )


@pytest.mark.asyncio
async def test_retryable_status_codes_are_retried() -> None:
    codes = [503, 200]

    @resilient_async_call(max_attempts=3, min_wait=0, max_wait=0)
    async def loading_model() -> int:
        code = codes.pop(0)
        if code != 200:
            raise status_error(code)
        return code

    assert await loading_model() == 200
    assert codes == []


def test_client_errors_are_not_transient() -> None:
    assert is_transient_error(status_error(429))
    assert not is_transient_error(status_error(400))
    assert not is_transient_error(ValueError("bad"))
