"""
Base HTTP client with unified retry logic, rate limiting, and error handling.

This is the fetch collaborator every source adapter talks to. It returns
parsed JSON or raw text and raises a FetchFailure subclass on non-2xx
responses and transport errors once retries are exhausted.
"""
import asyncio
import logging
import random
from typing import Dict, Optional, Any, Union
import httpx

from weather_ingest.core.api_errors import (
    FetchFailure,
    RetryableFetchFailure,
    RateLimitFailure,
    ParseFailure,
    classify_http_error,
)

logger = logging.getLogger(__name__)


class BaseAPIClient:
    """
    Base class for all upstream feed clients.

    Provides unified:
    - HTTP request handling with retry logic
    - Exponential backoff with jitter
    - Minimum interval between requests
    - Standardized error classification

    Subclasses set SOURCE_NAME and BASE_URL and implement feed-specific
    methods on top of get_json() / get_text().
    """

    SOURCE_NAME: str = "unknown"
    BASE_URL: str = ""

    DEFAULT_TIMEOUT: float = 30.0
    DEFAULT_CONNECT_TIMEOUT: float = 10.0
    DEFAULT_MAX_RETRIES: int = 3
    DEFAULT_BACKOFF_FACTOR: float = 2.0
    DEFAULT_MAX_BACKOFF: float = 60.0
    DEFAULT_JITTER_FACTOR: float = 0.25

    def __init__(
        self,
        max_retries: int = DEFAULT_MAX_RETRIES,
        backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
        timeout: float = DEFAULT_TIMEOUT,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        rate_limit_interval: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the API client.

        Args:
            max_retries: Maximum attempts for failed requests
            backoff_factor: Exponential backoff multiplier
            timeout: Request timeout in seconds
            connect_timeout: Connection timeout in seconds
            rate_limit_interval: Minimum seconds between requests (None = no limit)
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.max_retries = max_retries
        self.backoff_factor = backoff_factor
        self.timeout = timeout
        self.connect_timeout = connect_timeout
        self.rate_limit_interval = rate_limit_interval
        self._transport = transport

        self._last_request_time: float = 0
        self._rate_limit_lock = asyncio.Lock()

        # HTTP client (lazy initialization)
        self._client: Optional[httpx.AsyncClient] = None

        logger.debug(
            f"Initialized {self.SOURCE_NAME} client: "
            f"max_retries={max_retries}, "
            f"rate_limit_interval={rate_limit_interval}"
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client with connection pooling."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout, connect=self.connect_timeout),
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.debug(f"{self.SOURCE_NAME} client closed")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _enforce_rate_limit(self) -> None:
        """Enforce minimum interval between requests."""
        if self.rate_limit_interval is None:
            return

        async with self._rate_limit_lock:
            loop = asyncio.get_running_loop()
            elapsed = loop.time() - self._last_request_time
            if elapsed < self.rate_limit_interval:
                wait_time = self.rate_limit_interval - elapsed
                logger.debug(f"Rate limiting: waiting {wait_time:.2f}s")
                await asyncio.sleep(wait_time)
            self._last_request_time = loop.time()

    async def _backoff(self, attempt: int, base_delay: float = 1.0) -> None:
        """
        Exponential backoff with jitter.

        Args:
            attempt: Current attempt number (0-indexed)
            base_delay: Base delay in seconds
        """
        delay = min(
            base_delay * (self.backoff_factor ** attempt),
            self.DEFAULT_MAX_BACKOFF
        )

        # Add jitter (±25% by default)
        jitter = delay * self.DEFAULT_JITTER_FACTOR * (2 * random.random() - 1)
        delay_with_jitter = max(0.1, delay + jitter)

        logger.debug(f"Backing off for {delay_with_jitter:.2f}s (attempt {attempt + 1})")
        await asyncio.sleep(delay_with_jitter)

    def _build_headers(self) -> Dict[str, str]:
        """
        Build request headers.

        Override to add feed-specific headers.
        """
        return {
            "Accept": "application/json",
            "User-Agent": f"weather-ingest/{self.SOURCE_NAME}-client"
        }

    def _add_auth_to_params(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Override to add feed-specific auth (e.g., appid param)."""
        return params

    async def _request(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        resource_id: str = "unknown",
        as_text: bool = False,
    ) -> Union[Dict[str, Any], list, str, None]:
        """
        Make a GET request with retry logic.

        Args:
            url: Full URL or path (if path, BASE_URL is prepended)
            params: Query parameters
            resource_id: Identifier for logging
            as_text: Return the body as text instead of parsed JSON

        Returns:
            Parsed JSON (dict or list) or response text

        Raises:
            FetchFailure: On unrecoverable errors
            ParseFailure: If a JSON response body cannot be decoded
        """
        if not url.startswith("http"):
            url = f"{self.BASE_URL.rstrip('/')}/{url.lstrip('/')}"

        params = self._add_auth_to_params(dict(params or {}))
        headers = self._build_headers()

        client = await self._get_client()

        last_error: Optional[Exception] = None

        for attempt in range(self.max_retries):
            # Retries count against the minimum interval too
            await self._enforce_rate_limit()
            try:
                logger.debug(
                    f"[{self.SOURCE_NAME}] GET {resource_id} "
                    f"(attempt {attempt + 1}/{self.max_retries})"
                )

                response = await client.get(url, params=params, headers=headers)
                response.raise_for_status()

                if as_text:
                    return response.text

                # 204 / empty body: the feed has nothing for this request
                if response.status_code == 204 or not response.content:
                    return None

                try:
                    return response.json()
                except ValueError as e:
                    raise ParseFailure(
                        f"Invalid JSON for {resource_id}: {e}",
                        source=self.SOURCE_NAME,
                    )

            except httpx.HTTPStatusError as e:
                error = classify_http_error(
                    e.response.status_code,
                    e.response.text[:500],
                    self.SOURCE_NAME
                )

                if isinstance(error, RateLimitFailure):
                    if attempt >= self.max_retries - 1:
                        raise error
                    retry_after = e.response.headers.get("Retry-After")
                    wait_time = int(retry_after) if retry_after and retry_after.isdigit() else error.retry_after
                    logger.warning(
                        f"[{self.SOURCE_NAME}] Rate limited. Waiting {wait_time}s"
                    )
                    await asyncio.sleep(wait_time)
                    last_error = error
                    continue

                if error.retryable and attempt < self.max_retries - 1:
                    logger.warning(
                        f"[{self.SOURCE_NAME}] Retryable HTTP error: {error}"
                    )
                    await self._backoff(attempt)
                    last_error = error
                    continue

                raise error

            except httpx.RequestError as e:
                # Network errors are retryable
                if attempt < self.max_retries - 1:
                    logger.warning(
                        f"[{self.SOURCE_NAME}] Request error (attempt {attempt + 1}): {e}"
                    )
                    await self._backoff(attempt)
                    last_error = e
                    continue
                raise RetryableFetchFailure(
                    message=f"Request failed: {str(e)}",
                    source=self.SOURCE_NAME
                )

        if isinstance(last_error, FetchFailure):
            raise last_error
        raise FetchFailure(
            message=f"Failed to fetch {resource_id} after {self.max_retries} attempts",
            source=self.SOURCE_NAME
        )

    async def get_json(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        resource_id: str = "unknown"
    ) -> Union[Dict[str, Any], list, None]:
        """GET a resource and return the parsed JSON body."""
        return await self._request(url, params=params, resource_id=resource_id)

    async def get_text(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        resource_id: str = "unknown"
    ) -> str:
        """GET a resource and return the raw body (XML feeds)."""
        return await self._request(
            url, params=params, resource_id=resource_id, as_text=True
        )
