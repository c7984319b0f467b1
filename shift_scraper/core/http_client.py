"""
Async HTTP client for static rota pages and notification APIs.

Built on httpx with:
- Exponential backoff retry on timeouts and network errors
- User-agent rotation
- Minimum interval between requests
"""

import asyncio
import time
from typing import Optional

import httpx
import structlog

from .retry import RetryPolicy, retry_async

logger = structlog.get_logger(__name__)


# User agents for rotation
USER_AGENTS = [
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
]

TRANSIENT_ERRORS = (httpx.TimeoutException, httpx.NetworkError)


class HttpClient:
    """
    Async HTTP client with retries and request pacing.

    Usage:
        async with HttpClient() as client:
            html = await client.get_text("https://example.com/rota")
    """

    def __init__(
        self,
        timeout: float = 30.0,
        retry_policy: Optional[RetryPolicy] = None,
        min_interval: float = 0.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize HTTP client.

        Args:
            timeout: Request timeout in seconds
            retry_policy: Attempts and backoff for transient failures
            min_interval: Minimum seconds between two requests
            transport: Optional httpx transport (tests use MockTransport)
        """
        self.timeout = timeout
        self.retry_policy = retry_policy or RetryPolicy(retry_on=TRANSIENT_ERRORS)
        self.min_interval = min_interval
        self.transport = transport

        self._client: Optional[httpx.AsyncClient] = None
        self._last_request = 0.0
        self._lock = asyncio.Lock()
        self._user_agent_index = 0

    async def __aenter__(self) -> "HttpClient":
        """Enter async context."""
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            follow_redirects=True,
            transport=self.transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _get_user_agent(self) -> str:
        """Get next user agent in rotation."""
        ua = USER_AGENTS[self._user_agent_index % len(USER_AGENTS)]
        self._user_agent_index += 1
        return ua

    async def _pace(self) -> None:
        """Wait until ``min_interval`` has passed since the last request."""
        async with self._lock:
            elapsed = time.monotonic() - self._last_request
            if elapsed < self.min_interval:
                await asyncio.sleep(self.min_interval - elapsed)
            self._last_request = time.monotonic()

    async def request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """
        Send a request, retrying transient failures.

        HTTP error statuses raise ``httpx.HTTPStatusError`` without retry.
        """
        if not self._client:
            raise RuntimeError("Client not initialized. Use 'async with' context.")

        extra_headers = dict(kwargs.pop("headers", None) or {})

        async def send() -> httpx.Response:
            await self._pace()
            headers = {**extra_headers, "User-Agent": self._get_user_agent()}
            response = await self._client.request(method, url, headers=headers, **kwargs)
            response.raise_for_status()
            return response

        logger.debug("http_request", method=method, url=url)
        return await retry_async(
            send,
            policy=self.retry_policy,
            operation_name=f"http_{method.lower()}",
        )

    async def get_text(self, url: str, **kwargs) -> str:
        """GET request returning text content."""
        response = await self.request("GET", url, **kwargs)
        return response.text

    async def post_json(self, url: str, payload: dict, **kwargs) -> httpx.Response:
        """POST a JSON body."""
        return await self.request("POST", url, json=payload, **kwargs)
