"""
HTTP client with per-request deadlines and transient-failure retry.

This is the only place in cratedocs that talks to the network.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Dict, Optional

import aiohttp
import structlog

from cratedocs.config.config import FetcherConfig
from cratedocs.exceptions import FetchError, FetchTimeoutError, HttpStatusError
from cratedocs.fetch.retry import Sleep, with_retry
from cratedocs.observability import histogram, increment

logger = structlog.get_logger(__name__)


class HttpClient:
    """aiohttp-backed client; one GET per call, each with its own deadline."""

    def __init__(self, config: FetcherConfig, *, sleep: Sleep = asyncio.sleep) -> None:
        self.config = config
        self.session: Optional[aiohttp.ClientSession] = None
        self._sleep = sleep
        self._in_flight_requests = 0

    async def initialize(self) -> None:
        """Initialize the HTTP client session."""
        if self.session is None:
            self.session = aiohttp.ClientSession(headers={"User-Agent": self.config.user_agent})
            logger.info(
                "HTTP client session initialized",
                user_agent=self.config.user_agent,
                max_retries=self.config.max_retries,
            )

    async def close(self) -> None:
        """Close the HTTP client and clean up resources."""
        if self.session:
            await self.session.close()
            self.session = None
            logger.info("HTTP client closed")

    async def __aenter__(self) -> HttpClient:
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _request(self, url: str, timeout: float, params: Optional[Dict[str, Any]], as_json: bool) -> Any:
        if self.session is None:
            raise RuntimeError("HTTP client not initialized. Call initialize() first.")

        start_time = time.monotonic()
        self._in_flight_requests += 1
        try:
            async with asyncio.timeout(timeout):
                async with self.session.get(url, params=params) as response:
                    increment("fetch_responses_total", labels={"status_class": f"{response.status // 100}xx"})
                    if not 200 <= response.status < 300:
                        raise HttpStatusError(response.status, url)
                    try:
                        if as_json:
                            return await response.json(content_type=None)
                        return await response.text()
                    except ValueError as e:
                        # JSONDecodeError and UnicodeDecodeError are both ValueErrors
                        logger.warning("Undecodable response body", url=url, error=str(e))
                        raise FetchError(url, f"Could not decode response from {url}: {e}") from e
        except asyncio.TimeoutError:
            logger.warning("Request timed out", url=url, timeout=timeout)
            raise FetchTimeoutError(url, timeout) from None
        except aiohttp.ClientError as e:
            logger.warning("Request failed", url=url, error=str(e))
            raise FetchError(url, f"Request failed for {url}: {e}") from e
        finally:
            self._in_flight_requests -= 1
            histogram("fetch_latency_seconds", time.monotonic() - start_time)

    async def fetch_text(self, url: str, timeout: Optional[float] = None) -> str:
        """Single GET returning the body as text. No retry."""
        return await self._request(url, timeout or self.config.text_timeout, None, as_json=False)

    async def fetch_json(
        self, url: str, timeout: Optional[float] = None, params: Optional[Dict[str, Any]] = None
    ) -> Any:
        """Single GET returning the decoded JSON body. No retry."""
        return await self._request(url, timeout or self.config.json_timeout, params, as_json=True)

    async def get_text(self, url: str) -> str:
        """``fetch_text`` under the configured retry budget."""
        return await with_retry(
            lambda: self.fetch_text(url),
            self.config.max_retries,
            self.config.base_delay_seconds,
            sleep=self._sleep,
        )

    async def get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """``fetch_json`` under the configured retry budget."""
        return await with_retry(
            lambda: self.fetch_json(url, params=params),
            self.config.max_retries,
            self.config.base_delay_seconds,
            sleep=self._sleep,
        )

    def get_stats(self) -> Dict[str, Any]:
        return {
            "in_flight_requests": self._in_flight_requests,
            "initialized": self.session is not None,
        }
