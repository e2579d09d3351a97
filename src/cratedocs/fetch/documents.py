"""
Cached HTML document fetching with background stale refresh.
"""

from __future__ import annotations

import asyncio
from typing import Dict

import structlog
from selectolax.lexbor import LexborHTMLParser

from cratedocs.cache import ResponseCache
from cratedocs.fetch.http_client import HttpClient
from cratedocs.observability import increment

logger = structlog.get_logger(__name__)


def document_cache_key(url: str) -> str:
    return f"dom:{url}"


class DocumentService:
    """
    Fetches remote HTML pages through the response cache and parses them.

    - fresh hit: parsed from cache, no network
    - stale hit: parsed from cache, plus one background refresh per key
    - miss: fetched (with retry), stored, parsed; failures propagate
    """

    def __init__(self, http_client: HttpClient, cache: ResponseCache) -> None:
        self.http_client = http_client
        self.cache = cache
        self._refresh_tasks: Dict[str, asyncio.Task[None]] = {}

    async def fetch_parsed_document(self, url: str) -> LexborHTMLParser:
        return LexborHTMLParser(await self.fetch_html(url))

    async def fetch_html(self, url: str) -> str:
        key = document_cache_key(url)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Cache hit", url=url)
            if self.cache.is_stale(key):
                self._schedule_refresh(key, url)
            return cached

        html = await self.http_client.get_text(url)
        self.cache.set(key, html)
        return html

    def _schedule_refresh(self, key: str, url: str) -> None:
        if key in self._refresh_tasks:
            return
        logger.info("Stale refresh", url=url)
        task = asyncio.create_task(self._refresh(key, url))
        self._refresh_tasks[key] = task
        task.add_done_callback(lambda _: self._refresh_tasks.pop(key, None))

    async def _refresh(self, key: str, url: str) -> None:
        try:
            html = await self.http_client.get_text(url)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # A stale value was already served; the next stale read tries again.
            logger.warning("Background refresh failed", url=url, error=str(e))
            increment("background_refresh_total", labels={"outcome": "failure"})
            return
        self.cache.set(key, html)
        increment("background_refresh_total", labels={"outcome": "success"})

    @property
    def pending_refreshes(self) -> int:
        return len(self._refresh_tasks)

    async def wait_for_refreshes(self) -> None:
        """Wait until every in-flight background refresh has finished."""
        tasks = list(self._refresh_tasks.values())
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def close(self) -> None:
        """Cancel in-flight background refreshes."""
        tasks = list(self._refresh_tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._refresh_tasks.clear()
