from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import (
    TYPE_CHECKING,
    TypedDict,
    Unpack,
)

import httpx
from aiolimiter import AsyncLimiter
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from rolesync.config.http_resilience import (
    RateLimit,
    ResilienceConfig,
    RetryPolicy,
)

if TYPE_CHECKING:
    from types import TracebackType

    from httpx._client import UseClientDefault
    from httpx._types import (
        AuthTypes,
        CookieTypes,
        HeaderTypes,
        QueryParamTypes,
        RequestExtensions,
        TimeoutTypes,
        URLTypes,
    )

__all__ = [
    "RateLimit",
    "ResilienceConfig",
    "ResilientClient",
    "RetryPolicy",
    "RetryableStatusError",
    "build_retrying",
]


class RetryableStatusError(httpx.HTTPStatusError):
    """Raised for responses whose status code is listed in ``RetryPolicy.status_forcelist``."""


class RequestOptions(TypedDict, total=False):
    params: QueryParamTypes | None
    headers: HeaderTypes | None
    cookies: CookieTypes | None
    auth: AuthTypes | UseClientDefault | None
    follow_redirects: bool | UseClientDefault
    timeout: TimeoutTypes | UseClientDefault
    extensions: RequestExtensions | None


class AsyncClientOptions(TypedDict, total=False):
    base_url: str
    timeout: TimeoutTypes
    headers: HeaderTypes
    transport: httpx.AsyncBaseTransport


def _retry_after_seconds(exc: BaseException | None) -> float | None:
    response = getattr(exc, "response", None)
    if not isinstance(response, httpx.Response):
        return None
    header = response.headers.get("Retry-After")
    if header is None:
        return None
    try:
        return max(float(header), 0.0)
    except ValueError:
        return None


def build_retrying(policy: RetryPolicy) -> AsyncRetrying:
    backoff = wait_exponential_jitter(
        initial=policy.backoff_factor,
        max=policy.max_backoff_wait,
        jitter=policy.backoff_jitter,
    )

    def wait(retry_state: RetryCallState) -> float:
        if policy.respect_retry_after_header and retry_state.outcome is not None:
            retry_after = _retry_after_seconds(retry_state.outcome.exception())
            if retry_after is not None:
                return min(retry_after, policy.max_backoff_wait)
        return backoff(retry_state)

    def should_retry(exc: BaseException) -> bool:
        return isinstance(exc, (RetryableStatusError, *policy.retry_on_exceptions))

    return AsyncRetrying(
        stop=stop_after_attempt(policy.total + 1),
        wait=wait,
        retry=retry_if_exception(should_retry),
        reraise=True,
    )


class ResilientClient:
    """httpx client with retries, backoff and an optional client-side rate limit."""

    def __init__(
        self,
        config: ResilienceConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._limiter: AsyncLimiter | None = (
            AsyncLimiter(config.ratelimit.max_calls, config.ratelimit.per_seconds)
            if config.ratelimit
            else None
        )

        headers = dict(config.default_headers) if config.default_headers else None

        client_kwargs: AsyncClientOptions = {"timeout": config.timeout_seconds}
        if transport is not None:
            client_kwargs["transport"] = transport
        if config.base_url is not None:
            client_kwargs["base_url"] = config.base_url
        if headers is not None:
            client_kwargs["headers"] = headers

        self._client = httpx.AsyncClient(**client_kwargs)

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        url: URLTypes,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        async def do_request() -> httpx.Response:
            return await self._client.request(method, url, **kwargs)

        if method.upper() not in self.config.retry.allowed_methods:
            return await self._send(do_request)

        async for attempt in build_retrying(self.config.retry):
            with attempt:
                response = await self._send(do_request)
                if response.status_code in self.config.retry.status_forcelist:
                    raise RetryableStatusError(
                        f"Retryable status {response.status_code} for {method} {url}",
                        request=response.request,
                        response=response,
                    )
                return response
        raise AssertionError("unreachable")  # pragma: no cover

    async def get(
        self,
        url: URLTypes,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def _send(self, func: Callable[[], Awaitable[httpx.Response]]) -> httpx.Response:
        if self._limiter is None:
            return await func()
        async with self._limiter:
            return await func()
