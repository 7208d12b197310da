"""HTTP GET with per-attempt timeout and exponential-backoff retry."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from roster_watch.errors import ConfigError, NetworkError, NetworkTimeout

logger = logging.getLogger(__name__)

BASE_BACKOFF_MS = 1000
MAX_BACKOFF_MS = 5000
DEFAULT_TIMEOUT_MS = 6000
DEFAULT_MAX_RETRIES = 3


def backoff_delay_ms(attempt: int) -> int:
    """Delay after the given 0-based attempt: 1000, 2000, 4000, then 5000 ms."""
    return min(BASE_BACKOFF_MS * 2**attempt, MAX_BACKOFF_MS)


class ResilientFetcher:
    """Issues GET requests and retries timeouts and network failures.

    No degraded result is ever returned from here; callers decide how to
    fall back once the last error is raised.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        verbose: bool = False,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize the fetcher.

        Args:
            client: Shared HTTP client. One is created lazily when omitted.
            timeout_ms: Default per-attempt timeout in milliseconds
            max_retries: Default total number of attempts
            verbose: Log every attempt at INFO instead of DEBUG
            sleep: Coroutine used for backoff delays (seconds)
        """
        self.timeout_ms = timeout_ms
        self.max_retries = max_retries
        self.verbose = verbose
        self._sleep = sleep
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(follow_redirects=True)
            self._owns_client = True
        return self._client

    async def close(self):
        """Close the HTTP client if this fetcher created it."""
        if self._owns_client and self._client and not self._client.is_closed:
            await self._client.aclose()

    def _log_attempt(self, message: str) -> None:
        logger.log(logging.INFO if self.verbose else logging.DEBUG, message)

    async def _attempt(
        self,
        client: httpx.AsyncClient,
        url: str,
        timeout_ms: int,
        headers: Optional[dict[str, str]],
    ) -> httpx.Response:
        try:
            response = await asyncio.wait_for(
                client.get(url, headers=headers),
                timeout=timeout_ms / 1000,
            )
        except asyncio.TimeoutError:
            raise NetworkTimeout(f"Request timed out after {timeout_ms}ms", url=url) from None
        except httpx.TimeoutException as e:
            raise NetworkTimeout(f"Request timed out: {e}", url=url) from e
        except httpx.HTTPError as e:
            raise NetworkError(f"{type(e).__name__}: {e}", url=url) from e

        if not response.is_success:
            raise NetworkError(
                f"HTTP {response.status_code}: {response.reason_phrase}",
                status_code=response.status_code,
                url=url,
            )
        return response

    async def fetch(
        self,
        url: str,
        *,
        timeout_ms: Optional[int] = None,
        max_retries: Optional[int] = None,
        headers: Optional[dict[str, str]] = None,
        label: Optional[str] = None,
    ) -> httpx.Response:
        """GET a URL, retrying with exponential backoff.

        Args:
            url: Absolute URL to fetch
            timeout_ms: Per-attempt timeout; expiry cancels the request
            max_retries: Total attempts before giving up (at least 1)
            headers: Extra request headers
            label: Short endpoint name used in log lines

        Returns:
            The first 2xx response

        Raises:
            ConfigError: If the URL is empty (never retried)
            NetworkError: The last failure once attempts are exhausted
        """
        if not url or not url.strip():
            raise ConfigError(f"No URL configured for {label or 'request'}")

        timeout_ms = self.timeout_ms if timeout_ms is None else timeout_ms
        attempts = max(1, self.max_retries if max_retries is None else max_retries)
        label = label or url
        client = await self._get_client()

        retrying = AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(
                multiplier=BASE_BACKOFF_MS / 1000,
                min=BASE_BACKOFF_MS / 1000,
                max=MAX_BACKOFF_MS / 1000,
            ),
            retry=retry_if_exception_type(NetworkError),
            reraise=True,
            sleep=self._sleep,
            before_sleep=self._before_sleep(label),
        )
        async for attempt in retrying:
            with attempt:
                number = attempt.retry_state.attempt_number
                self._log_attempt(f"[{label}] Attempt {number}/{attempts}")
                try:
                    response = await self._attempt(client, url, timeout_ms, headers)
                except NetworkError as e:
                    logger.warning(f"[{label}] Attempt {number}/{attempts} failed: {e}")
                    raise
                self._log_attempt(f"[{label}] Request successful on attempt {number}")
        return response

    def _before_sleep(self, label: str) -> Callable[[RetryCallState], None]:
        def log_wait(retry_state: RetryCallState) -> None:
            delay_ms = round(retry_state.next_action.sleep * 1000)
            self._log_attempt(f"[{label}] Waiting {delay_ms}ms before retry")

        return log_wait
