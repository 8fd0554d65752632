"""
Base HTTP client for upstream geospatial services.

Provides a reusable foundation for the FEMA, elevation and OpenStreetMap
clients: bounded concurrency, politeness interval, and standardized error
classification.

Makes exactly ONE attempt per call. Failures surface as APIError
subclasses and the calling provider answers them with its fallback.
"""
import asyncio
import logging
from abc import ABC
from typing import Dict, Optional, Any

import httpx

from georisk.core.api_errors import (
    APIError,
    RetryableError,
    FatalError,
    MalformedResponseError,
    classify_http_error,
)

logger = logging.getLogger(__name__)


class BaseAPIClient(ABC):
    """
    Base class for upstream service clients.

    Provides unified:
    - Single-shot HTTP request handling
    - Politeness interval between requests
    - Concurrency cap via semaphore
    - Standardized error classification
    - Connection pooling

    Subclasses should:
    - Set SOURCE_NAME and BASE_URL class attributes
    - Implement service-specific methods that call _request()
    - Override _check_api_error() for service-specific error envelopes
    """

    SOURCE_NAME: str = "unknown"
    BASE_URL: str = ""

    DEFAULT_MAX_CONCURRENCY: int = 2
    DEFAULT_TIMEOUT: float = 5.0
    DEFAULT_CONNECT_TIMEOUT: float = 3.0

    def __init__(
        self,
        base_url: Optional[str] = None,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        timeout: float = DEFAULT_TIMEOUT,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        rate_limit_interval: Optional[float] = None,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Override for BASE_URL (mirrors, self-hosted instances)
            max_concurrency: Maximum concurrent requests (semaphore size)
            timeout: Request timeout in seconds
            connect_timeout: Connection timeout in seconds
            rate_limit_interval: Minimum seconds between requests (None = no limit)
            user_agent: User-Agent header value
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        self.base_url = base_url or self.BASE_URL
        self.max_concurrency = max_concurrency
        self.timeout = timeout
        self.connect_timeout = min(connect_timeout, timeout)
        self.rate_limit_interval = rate_limit_interval
        self.user_agent = user_agent or f"GeoRisk/{self.SOURCE_NAME}-client"
        self._transport = transport

        self.semaphore = asyncio.Semaphore(max_concurrency)

        self._last_request_time: float = 0
        self._rate_limit_lock = asyncio.Lock()

        self._client: Optional[httpx.AsyncClient] = None

        logger.debug(
            f"Initialized {self.SOURCE_NAME} client: "
            f"base_url={self.base_url}, timeout={timeout}s, "
            f"max_concurrency={max_concurrency}"
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client with connection pooling."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout, connect=self.connect_timeout),
                follow_redirects=True,
                limits=httpx.Limits(
                    max_connections=self.max_concurrency * 2,
                    max_keepalive_connections=self.max_concurrency
                ),
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

    def _check_api_error(
        self,
        data: Any,
        resource_id: str
    ) -> Optional[APIError]:
        """
        Check a parsed response for a service-specific error envelope.

        ArcGIS REST services (FEMA) answer HTTP 200 with an "error"
        object, so the default implementation looks for that.

        Returns:
            APIError if error detected, None otherwise
        """
        if isinstance(data, dict) and "error" in data:
            error = data.get("error")
            code = None
            if isinstance(error, dict):
                code = error.get("code")
                error = error.get("message", str(error))
            if code in (500, 503, 504):
                return RetryableError(
                    message=str(error),
                    source=self.SOURCE_NAME,
                    status_code=code,
                    response_data=data,
                )
            return FatalError(
                message=str(error),
                source=self.SOURCE_NAME,
                status_code=code,
                response_data=data
            )
        return None

    def _build_headers(self) -> Dict[str, str]:
        """Build request headers."""
        return {
            "Accept": "application/json",
            "User-Agent": self.user_agent,
        }

    async def _request(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        resource_id: str = "unknown",
    ) -> Any:
        """
        Make a single HTTP request and return parsed JSON.

        Args:
            method: HTTP method (GET, POST)
            url: Full URL or path (if path, base_url is prepended)
            params: Query parameters
            data: Form body for POST requests
            resource_id: Identifier for logging

        Returns:
            Parsed JSON response

        Raises:
            APIError: On any failure
        """
        if not url.startswith("http"):
            url = f"{self.base_url.rstrip('/')}/{url.lstrip('/')}"

        headers = self._build_headers()

        async with self.semaphore:
            await self._enforce_rate_limit()
            client = await self._get_client()

            logger.debug(f"[{self.SOURCE_NAME}] {method} {resource_id}")

            try:
                response = await client.request(
                    method,
                    url,
                    params=params,
                    data=data,
                    headers=headers,
                )
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                error = classify_http_error(
                    e.response.status_code,
                    e.response.text[:500],
                    self.SOURCE_NAME
                )
                raise error from e
            except httpx.TimeoutException as e:
                raise RetryableError(
                    message=f"Timed out after {self.timeout}s",
                    source=self.SOURCE_NAME
                ) from e
            except httpx.RequestError as e:
                raise RetryableError(
                    message=f"Request failed: {str(e)}",
                    source=self.SOURCE_NAME
                ) from e

            try:
                payload = response.json()
            except ValueError as e:
                raise MalformedResponseError(
                    message=f"Response for {resource_id} is not JSON",
                    source=self.SOURCE_NAME,
                ) from e

            api_error = self._check_api_error(payload, resource_id)
            if api_error:
                raise api_error

            logger.debug(f"[{self.SOURCE_NAME}] Successfully fetched {resource_id}")
            return payload

    async def get(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        resource_id: str = "unknown"
    ) -> Any:
        """Make GET request."""
        return await self._request("GET", url, params=params, resource_id=resource_id)

    async def post_form(
        self,
        url: str,
        data: Dict[str, Any],
        resource_id: str = "unknown"
    ) -> Any:
        """Make POST request with a form-encoded body."""
        return await self._request("POST", url, data=data, resource_id=resource_id)
