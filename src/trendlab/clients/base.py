"""Base async HTTP client for the upstream CSV downloads.

Both data sources are plain file hosts, so the client is small:
a shared httpx connection pool, a token bucket so concurrent downloads
stay polite, and retries with exponential backoff on transient failures.
Anything that still fails surfaces as APIProviderError.

Usage:
    class MyDownloader(BaseAsyncClient):
        def __init__(self) -> None:
            super().__init__(base_url="https://data.example.com")

        async def download(self, name: str) -> str:
            return await self.get_text(f"/{name}.csv")
"""

import asyncio
import logging
from typing import Any

import httpx


logger = logging.getLogger(__name__)

# Retry configuration
_RETRY_STATUS = frozenset({429, 502, 503, 504})
_MAX_RETRIES = 3
_BASE_BACKOFF = 1.0  # seconds
_BODY_PREVIEW = 500  # characters of an error body kept on the exception


def _backoff(attempt: int) -> float:
    return _BASE_BACKOFF * 2 ** attempt


class RateLimiter:
    """Token bucket: starts full and refills at ``rate`` tokens per second.

    The loop clock is read on first use, so a limiter can be built
    before any event loop is running.
    """

    def __init__(self, rate: int) -> None:
        self.rate = rate
        self.tokens: float = rate
        self.updated_at: float = 0.0
        self._initialized = False
        self._lock = asyncio.Lock()

    def _refill(self, now: float) -> None:
        if self._initialized:
            self.tokens = min(self.rate, self.tokens + (now - self.updated_at) * self.rate)
        else:
            self._initialized = True
        self.updated_at = now

    async def acquire(self) -> None:
        """Take one token, sleeping until the bucket has one."""
        async with self._lock:
            loop = asyncio.get_running_loop()
            self._refill(loop.time())
            while self.tokens < 1:
                await asyncio.sleep((1 - self.tokens) / self.rate)
                self._refill(loop.time())
            self.tokens -= 1


class APIProviderError(Exception):
    """Raised when an upstream data provider cannot serve a request."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class BaseAsyncClient:
    """Async download client; use it as ``async with Client(...) as c``.

    Args:
        base_url: Host (and path prefix) every endpoint is relative to
        headers: Headers sent with every request
        rate_limit: Requests per second (default: 5)
        timeout: Per-request timeout in seconds (default: 120, CSV exports are large)
    """

    def __init__(
        self,
        base_url: str,
        headers: dict[str, str] | None = None,
        rate_limit: int = 5,
        timeout: float = 120.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.headers = headers or {}
        self.timeout = timeout
        self._rate_limiter = RateLimiter(rate=rate_limit)
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "BaseAsyncClient":
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=self.timeout,
            follow_redirects=True,
            limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _attempt(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None,
    ) -> tuple[httpx.Response | None, APIProviderError | None, bool]:
        """Send one request.

        Returns:
            (response, None, False) on success, otherwise
            (None, error, retryable)
        """
        try:
            response = await self._client.request(method, path, params=params)
        except httpx.TimeoutException as e:
            return None, APIProviderError(f"Request timeout on {path}: {e}"), True
        except httpx.TransportError as e:
            return None, APIProviderError(f"Network error on {path}: {e}"), True
        except httpx.HTTPError as e:
            return None, APIProviderError(f"Request to {path} failed: {e}"), False

        logger.debug("Response: %d for %s", response.status_code, path)
        if response.status_code < 400:
            return response, None, False

        error = APIProviderError(
            message=f"{method} {path} failed: {response.status_code}",
            status_code=response.status_code,
            response_body=response.text[:_BODY_PREVIEW],
        )
        return None, error, response.status_code in _RETRY_STATUS

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Rate-limited request with retries on transient failures.

        429/502/503/504, timeouts and connection errors are retried up to
        ``_MAX_RETRIES`` times with exponential backoff. Other failures
        raise on the first attempt.

        Raises:
            RuntimeError: If called outside ``async with``
            APIProviderError: If the request still fails
        """
        if self._client is None:
            raise RuntimeError("Client not initialized. Use async with context manager.")

        path = endpoint if endpoint.startswith("/") else f"/{endpoint}"
        attempts = _MAX_RETRIES + 1
        attempt = 0

        while True:
            await self._rate_limiter.acquire()
            logger.debug(
                "%s %s%s params=%s (attempt %d/%d)",
                method, self.base_url, path, params, attempt + 1, attempts,
            )

            response, error, retryable = await self._attempt(method, path, params)
            if response is not None:
                return response

            attempt += 1
            if not retryable or attempt >= attempts:
                logger.error("%s (after %d attempt(s))", error, attempt)
                raise error

            delay = _backoff(attempt - 1)
            logger.warning(
                "%s; retrying in %.1fs (attempt %d/%d)", error, delay, attempt, attempts
            )
            await asyncio.sleep(delay)

    async def get_text(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
    ) -> str:
        """GET a text body (CSV exports).

        Raises:
            APIProviderError: If the body is blank
        """
        response = await self._request("GET", endpoint, params=params)
        if not response.text.strip():
            raise APIProviderError(
                message=f"Empty response body for {endpoint}",
                status_code=response.status_code,
            )
        logger.debug("Downloaded %d bytes from %s", len(response.content), endpoint)
        return response.text
