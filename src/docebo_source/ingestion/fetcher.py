"""
Fetcher Module - Single GET requests with bounded retry and backoff.
====================================================================

The only network primitive of the source:
- One shared httpx.AsyncClient per run
- Any non-2xx status, transport error or non-JSON body is a failure
- Retries with exponential backoff (initial_delay * 2**attempt), no jitter
- FetchError once the retry budget is spent
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from docebo_source.shared.config import FetchConfig, get_settings
from docebo_source.shared.errors import FetchError
from docebo_source.shared.logging import get_logger

logger = get_logger(__name__)

# API paths, relative to the instance base url
CATALOG_PATH = "/learn/v1/catalog/{catalog_id}"
COURSE_PATH = "/learn/v1/courses/{item_id}"
RELATED_PATH = "/learn/v1/courses/{item_id}/by_category"

RETRYABLE_ERRORS = (httpx.HTTPError, ValueError)

SleepFunc = Callable[[float], Awaitable[Any]]


def envelope_data(body: Any) -> Any:
    """
    Extract the ``data`` member of an API response body.

    Raises:
        ValueError: If the body is not an object with a data member
    """
    if not isinstance(body, dict) or "data" not in body:
        raise ValueError("response body has no 'data' envelope")
    return body["data"]


@dataclass
class FetcherStats:
    """Request statistics for one run."""

    total_requests: int = 0
    successful: int = 0
    failed: int = 0
    retries: int = 0


class ResilientFetcher:
    """
    Async GET with retries.

    Retry settings are explicit constructor arguments; when omitted they
    come from FetchConfig. max_retries counts retries after the first
    attempt, so a request is tried at most max_retries + 1 times.

    Example:
        >>> async with ResilientFetcher("https://acme.docebosaas.com") as fetcher:
        ...     body = await fetcher.fetch(fetcher.course_url(10))
    """

    def __init__(
        self,
        base_url: str,
        max_retries: Optional[int] = None,
        initial_delay: Optional[float] = None,
        timeout: Optional[float] = None,
        user_agent: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        sleep: Optional[SleepFunc] = None,
        config: Optional[FetchConfig] = None,
    ):
        config = config or get_settings().fetch

        self.base_url = base_url.rstrip("/")
        self.max_retries = max_retries if max_retries is not None else config.max_retries
        self.initial_delay = (
            initial_delay if initial_delay is not None else config.initial_delay
        )
        self.timeout = timeout if timeout is not None else config.timeout
        self.user_agent = user_agent or config.user_agent
        self._sleep = sleep or asyncio.sleep

        self._client = client
        self._owns_client = client is None
        self.stats = FetcherStats()

        logger.debug(
            f"Fetcher initialized: base_url={self.base_url}, "
            f"max_retries={self.max_retries}, initial_delay={self.initial_delay}s"
        )

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the shared async client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={"User-Agent": self.user_agent, "Accept": "application/json"},
            )
        return self._client

    # ─────────────────────────────────────────────────────────────────────
    # URLs
    # ─────────────────────────────────────────────────────────────────────

    def catalog_url(self, catalog_id: Any) -> str:
        return self.base_url + CATALOG_PATH.format(catalog_id=catalog_id)

    def course_url(self, item_id: Any) -> str:
        return self.base_url + COURSE_PATH.format(item_id=item_id)

    def related_url(self, item_id: Any) -> str:
        return self.base_url + RELATED_PATH.format(item_id=item_id)

    # ─────────────────────────────────────────────────────────────────────
    # Requests
    # ─────────────────────────────────────────────────────────────────────

    async def _get_json(self, url: str, params: Optional[dict[str, Any]]) -> Any:
        self.stats.total_requests += 1
        response = await self.client.get(url, params=params)
        response.raise_for_status()
        return response.json()

    def _before_sleep(self, url: str) -> Callable[[RetryCallState], None]:
        def log_retry(retry_state: RetryCallState) -> None:
            self.stats.retries += 1
            error = retry_state.outcome.exception() if retry_state.outcome else None
            wait = retry_state.next_action.sleep if retry_state.next_action else 0
            logger.warning(
                f"Retry {retry_state.attempt_number}/{self.max_retries} for {url} "
                f"in {wait:.2f}s: {error}"
            )

        return log_retry

    async def fetch(self, url: str, params: Optional[dict[str, Any]] = None) -> Any:
        """
        GET a url and return its decoded JSON body.

        Args:
            url: Absolute url
            params: Optional query parameters

        Returns:
            Decoded JSON body

        Raises:
            FetchError: If every attempt failed
        """
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_exponential(multiplier=self.initial_delay, min=0),
            sleep=self._sleep,
            before_sleep=self._before_sleep(url),
            reraise=True,
        )

        try:
            body = await retrying(self._get_json, url, params)
        except RETRYABLE_ERRORS as e:
            self.stats.failed += 1
            raise FetchError(url, self.max_retries + 1, e) from e

        self.stats.successful += 1
        return body

    async def close(self) -> None:
        """Close the client if this fetcher created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "ResilientFetcher":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore[no-untyped-def]
        await self.close()
