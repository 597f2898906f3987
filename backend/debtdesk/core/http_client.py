"""
HTTP Client Abstraction Layer.

Thin aiohttp wrapper used by the remote store client. Each request is a
single attempt with a bounded wait; retry decisions belong to the caller.

Usage:
    async with HttpClient(default_timeout=10.0) as client:
        response = await client.request(HttpMethod.GET, "https://example.supabase.co/rest/v1/cases")
        if response.ok:
            rows = response.json
"""

import asyncio
import json as jsonlib
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import aiohttp

logger = logging.getLogger(__name__)


class HttpMethod(str, Enum):
    """HTTP methods."""
    GET = "GET"
    POST = "POST"
    PATCH = "PATCH"
    DELETE = "DELETE"


@dataclass
class HttpRequest:
    """
    HTTP request model.

    Attributes:
        method: HTTP method
        url: Request URL
        params: Query parameters
        headers: Request headers
        json: JSON body (object or array)
        timeout: Bounded wait in seconds
    """
    method: HttpMethod = HttpMethod.GET
    url: str = ""
    params: dict[str, str] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    json: dict[str, Any] | list[Any] | None = None
    timeout: float = 10.0


@dataclass
class HttpResponse:
    """
    HTTP response model.

    Attributes:
        status: HTTP status code
        headers: Response headers
        body: Response body as string
        json: Parsed JSON response
        elapsed: Time elapsed in seconds
        request: Original request
    """
    status: int = 0
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""
    json: dict[str, Any] | list[Any] | None = None
    elapsed: float = 0.0
    request: HttpRequest | None = None

    @property
    def ok(self) -> bool:
        """Check if response is successful (2xx)."""
        return 200 <= self.status < 300


class HttpClientError(Exception):
    """Transport-level failure: connection error or timeout."""

    def __init__(
        self,
        message: str,
        request: HttpRequest | None = None,
        timed_out: bool = False,
    ) -> None:
        super().__init__(message)
        self.request = request
        self.timed_out = timed_out


class HttpClient:
    """
    Unified async HTTP client.

    Features:
    - One pooled aiohttp session per client
    - Per-request timeout, expiry raised as HttpClientError
    - Request/response logging

    Usage:
        async with HttpClient() as client:
            response = await client.request(HttpMethod.GET, url, params={"select": "*"})
    """

    def __init__(
        self,
        default_headers: dict[str, str] | None = None,
        default_timeout: float = 10.0,
        verify_ssl: bool = True,
    ) -> None:
        self.default_headers = default_headers or {}
        self.default_timeout = default_timeout
        self.verify_ssl = verify_ssl

        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> "HttpClient":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def start(self) -> None:
        """Initialize the HTTP session."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(ssl=None if self.verify_ssl else False)
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.default_timeout),
                connector=connector,
                headers=self.default_headers,
            )
            logger.debug("HTTP client session started")

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
            logger.debug("HTTP client session closed")

    async def _execute_request(self, request: HttpRequest) -> HttpResponse:
        """Execute a single HTTP request."""
        if self._session is None or self._session.closed:
            await self.start()

        start_time = time.monotonic()

        try:
            async with self._session.request(
                method=request.method.value,
                url=request.url,
                params=request.params,
                headers=request.headers,
                json=request.json,
                timeout=aiohttp.ClientTimeout(total=request.timeout),
            ) as response:
                body = await response.text()

                json_data = None
                if body and "json" in response.headers.get("content-type", ""):
                    try:
                        json_data = jsonlib.loads(body)
                    except jsonlib.JSONDecodeError:
                        logger.warning(f"Invalid JSON body from {request.url}")

                return HttpResponse(
                    status=response.status,
                    headers=dict(response.headers),
                    body=body,
                    json=json_data,
                    elapsed=time.monotonic() - start_time,
                    request=request,
                )

        except asyncio.TimeoutError as e:
            raise HttpClientError(
                f"{request.method.value} {request.url} timed out after {request.timeout}s",
                request=request,
                timed_out=True,
            ) from e

        except aiohttp.ClientError as e:
            raise HttpClientError(
                f"{request.method.value} {request.url} failed: {e}",
                request=request,
            ) from e

    async def request(
        self,
        method: HttpMethod,
        url: str,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        json: dict[str, Any] | list[Any] | None = None,
        timeout: float | None = None,
    ) -> HttpResponse:
        """
        Execute an HTTP request.

        Args:
            method: HTTP method
            url: Request URL
            params: Query parameters
            headers: Request headers
            json: JSON body
            timeout: Request timeout, defaults to the client's

        Returns:
            HTTP response, whatever its status

        Raises:
            HttpClientError: on connection failure or timeout
        """
        request = HttpRequest(
            method=method,
            url=url,
            params=params or {},
            headers={**self.default_headers, **(headers or {})},
            json=json,
            timeout=timeout or self.default_timeout,
        )

        response = await self._execute_request(request)
        logger.debug(
            f"{method.value} {url} -> {response.status} in {response.elapsed * 1000:.1f}ms"
        )
        return response
