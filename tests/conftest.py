"""
Shared fixtures for cratedocs tests.

Time is driven by a fake clock so cache windows are deterministic, and
network access goes through either aioresponses or a stubbed HttpClient.
"""

import asyncio
from typing import AsyncGenerator, Dict, List
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from cratedocs.cache import ResponseCache
from cratedocs.config import Config, FetcherConfig
from cratedocs.exceptions import HttpStatusError
from cratedocs.fetch import DocumentService, HttpClient
from cratedocs.index import ItemResolver
from cratedocs.registry import RegistryClient
from cratedocs.service import DocsService

from tests.helpers import all_items_page

# ============================================================================
# Pytest Configuration
# ============================================================================


@pytest_asyncio.fixture(autouse=True)
async def cleanup_tasks() -> AsyncGenerator[None, None]:
    """Cancel any task a test leaves behind (background refreshes in particular)."""
    tasks_before = asyncio.all_tasks()
    yield
    new_tasks = asyncio.all_tasks() - tasks_before

    for task in new_tasks:
        if not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass


# ============================================================================
# Time and Cache Fixtures
# ============================================================================


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock) -> ResponseCache:
    """Small cache: 4 entries, 10s fresh window, 30s stale grace."""
    return ResponseCache(max_entries=4, fresh_ttl=10, stale_grace=30, clock=clock)


# ============================================================================
# HTTP Fixtures
# ============================================================================


@pytest.fixture
def fetcher_config() -> FetcherConfig:
    return FetcherConfig(user_agent="TestBot/1.0", max_retries=2, base_delay_seconds=0.5, text_timeout=5.0)


@pytest.fixture
def sleep_calls() -> List[float]:
    return []


@pytest_asyncio.fixture
async def http_client(fetcher_config, sleep_calls) -> AsyncGenerator[HttpClient, None]:
    """Real aiohttp client whose backoff sleeps are recorded instead of awaited."""

    async def fake_sleep(delay: float) -> None:
        sleep_calls.append(delay)

    async with HttpClient(fetcher_config, sleep=fake_sleep) as client:
        yield client


class PageServer:
    """
    Stand-in for HttpClient serving canned HTML/JSON by URL.

    Unknown URLs fail with a 404, like the real host would.
    """

    def __init__(self, pages: Dict[str, object] | None = None) -> None:
        self.pages: Dict[str, object] = dict(pages or {})
        self.requests: List[str] = []
        self.get_text = AsyncMock(side_effect=self._serve)
        self.get_json = AsyncMock(side_effect=self._serve_json)

    async def _serve(self, url: str) -> str:
        self.requests.append(url)
        page = self.pages.get(url)
        if page is None:
            raise HttpStatusError(404, url)
        if isinstance(page, Exception):
            raise page
        return page  # type: ignore[return-value]

    async def _serve_json(self, url: str, params=None) -> object:
        return await self._serve(url)

    def count(self, url: str) -> int:
        return self.requests.count(url)


@pytest.fixture
def page_server() -> PageServer:
    return PageServer()


@pytest.fixture
def documents(page_server, cache) -> DocumentService:
    return DocumentService(page_server, cache)  # type: ignore[arg-type]


@pytest.fixture
def resolver(documents) -> ItemResolver:
    return ItemResolver(documents)


@pytest.fixture
def registry(page_server, cache) -> RegistryClient:
    return RegistryClient(page_server, cache)  # type: ignore[arg-type]


@pytest.fixture
def docs_service(documents, resolver, registry) -> DocsService:
    return DocsService(documents, resolver, registry)


@pytest.fixture
def test_config(tmp_path) -> Config:
    return Config(monitoring={"log_level": "DEBUG", "log_file": str(tmp_path / "logs" / "cratedocs.log")})


# ============================================================================
# Sample Pages
# ============================================================================


@pytest.fixture
def sample_all_items() -> str:
    return all_items_page(
        [
            ("modules", ["sync", "task"]),
            ("structs", ["sync::Mutex", "sync::MutexGuard", "sync::RwLock", "task::JoinHandle"]),
            ("traits", ["io::AsyncRead"]),
            ("functions", ["spawn", "task::spawn_blocking"]),
            ("macros", ["select"]),
            ("primitives", ["bool"]),
        ]
    )
