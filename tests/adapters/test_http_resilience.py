from __future__ import annotations

import asyncio

import httpx
import pytest

from rolesync.adapters.http_resilience import (
    ResilienceConfig,
    ResilientClient,
    RetryableStatusError,
    RetryPolicy,
)

_NO_WAIT = RetryPolicy(total=2, backoff_factor=0.0, max_backoff_wait=0.0, backoff_jitter=0.0)


def _client(handler: httpx.MockTransport, policy: RetryPolicy = _NO_WAIT) -> ResilientClient:
    config = ResilienceConfig(name="test", base_url="https://api.test", retry=policy)
    return ResilientClient(config, transport=handler)


def test_retries_retryable_status_then_succeeds() -> None:
    statuses = iter([503, 200])
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(next(statuses), json=[])

    async def scenario() -> int:
        async with _client(httpx.MockTransport(handler)) as client:
            response = await client.get("/resource")
        return response.status_code

    assert asyncio.run(scenario()) == 200
    assert len(calls) == 2


def test_gives_up_after_total_retries() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(429, headers={"Retry-After": "0"})

    async def scenario() -> None:
        async with _client(httpx.MockTransport(handler)) as client:
            await client.get("/resource")

    with pytest.raises(RetryableStatusError):
        asyncio.run(scenario())
    assert len(calls) == 3


def test_network_errors_are_retried() -> None:
    attempts = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal attempts
        attempts += 1
        if attempts == 1:
            raise httpx.ConnectError("refused", request=request)
        return httpx.Response(200)

    async def scenario() -> int:
        async with _client(httpx.MockTransport(handler)) as client:
            return (await client.get("/resource")).status_code

    assert asyncio.run(scenario()) == 200
    assert attempts == 2


def test_client_errors_are_returned_without_retry() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(404)

    async def scenario() -> int:
        async with _client(httpx.MockTransport(handler)) as client:
            return (await client.get("/resource")).status_code

    assert asyncio.run(scenario()) == 404
    assert len(calls) == 1


def test_retry_after_header_overrides_backoff() -> None:
    statuses = iter([429, 200])
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(next(statuses), headers={"Retry-After": "0"})

    # Without the header the first backoff would be 30 seconds.
    policy = RetryPolicy(total=1, backoff_factor=30.0, max_backoff_wait=60.0, backoff_jitter=0.0)

    async def scenario() -> int:
        async with _client(httpx.MockTransport(handler), policy) as client:
            return (await client.get("/resource")).status_code

    assert asyncio.run(scenario()) == 200
    assert len(calls) == 2
