"""
crates.io registry client backed by the shared response cache.
"""

from __future__ import annotations

import re
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

import structlog

from cratedocs.cache import ResponseCache
from cratedocs.config.config import ServiceConfig
from cratedocs.exceptions import RegistryError
from cratedocs.fetch.http_client import HttpClient
from cratedocs.registry.models import (
    Dependency,
    PackageMetadata,
    PackageSearchHit,
    PackageSearchPage,
    PackageVersion,
    Release,
    VersionSummary,
)
from cratedocs.urls import is_std_crate

logger = structlog.get_logger(__name__)

T = TypeVar("T")

_GITHUB_REPO = re.compile(r"github\.com/([^/]+/[^/#?]+)")


def github_owner_repo(url: str) -> Optional[str]:
    """``https://github.com/tokio-rs/tokio.git`` -> ``tokio-rs/tokio``."""
    match = _GITHUB_REPO.search(url)
    if not match:
        return None
    owner_repo = match.group(1)
    return owner_repo[: -len(".git")] if owner_repo.endswith(".git") else owner_repo


class RegistryClient:
    """Typed, cached access to package metadata, versions, dependencies and search."""

    def __init__(
        self,
        http_client: HttpClient,
        cache: ResponseCache,
        config: Optional[ServiceConfig] = None,
    ) -> None:
        self.http_client = http_client
        self.cache = cache
        self.config = config or ServiceConfig()

    async def _cached(self, key: str, load: Callable[[], Awaitable[T]]) -> T:
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Cache hit", key=key)
            return cached
        value = await load()
        self.cache.set(key, value)
        return value

    def _require_registry(self, name: str) -> None:
        if is_std_crate(name):
            raise RegistryError(
                name, f'"{name}" is part of the Rust standard library and is not published on crates.io.'
            )

    async def fetch_package(self, name: str) -> PackageMetadata:
        self._require_registry(name)

        async def load() -> PackageMetadata:
            data = await self.http_client.get_json(f"{self.config.registry_base}/crates/{name}")
            return PackageMetadata.from_api(data)

        return await self._cached(f"crate-info:{name}", load)

    async def fetch_version(self, name: str, version: str) -> PackageVersion:
        self._require_registry(name)

        async def load() -> PackageVersion:
            data = await self.http_client.get_json(f"{self.config.registry_base}/crates/{name}/{version}")
            return PackageVersion.from_api(data)

        return await self._cached(f"crate-version:{name}@{version}", load)

    async def fetch_dependencies(self, name: str, version: str) -> List[Dependency]:
        self._require_registry(name)

        async def load() -> List[Dependency]:
            data = await self.http_client.get_json(
                f"{self.config.registry_base}/crates/{name}/{version}/dependencies"
            )
            return [Dependency.from_api(d) for d in data.get("dependencies") or []]

        return await self._cached(f"crate-deps:{name}@{version}", load)

    async def fetch_versions(self, name: str) -> List[VersionSummary]:
        self._require_registry(name)

        async def load() -> List[VersionSummary]:
            data = await self.http_client.get_json(f"{self.config.registry_base}/crates/{name}/versions")
            return [VersionSummary.from_api(v) for v in data.get("versions") or []]

        return await self._cached(f"crate-versions:{name}", load)

    async def search_packages(self, query: str, page: int = 1, per_page: int = 10) -> PackageSearchPage:
        if page < 1 or not 1 <= per_page <= 50:
            raise ValueError("page must be >= 1 and per_page between 1 and 50")

        async def load() -> PackageSearchPage:
            data: Any = await self.http_client.get_json(
                f"{self.config.registry_base}/crates",
                params={"q": query, "per_page": per_page, "page": page},
            )
            hits = [PackageSearchHit.from_api(c) for c in data.get("crates") or []]
            total = (data.get("meta") or {}).get("total", len(hits))
            return PackageSearchPage(query=query, page=page, total=total, hits=hits)

        return await self._cached(f"search-crates:{query}:{page}:{per_page}", load)

    async def fetch_releases(self, name: str, count: int = 5) -> List[Release]:
        """Recent GitHub releases of the package's repository."""
        if not 1 <= count <= 20:
            raise ValueError("count must be between 1 and 20")
        info = await self.fetch_package(name)
        if not info.repository:
            raise RegistryError(name, f'No repository link found for "{name}" on crates.io.')
        owner_repo = github_owner_repo(info.repository)
        if owner_repo is None:
            raise RegistryError(name, f'Repository "{info.repository}" is not a GitHub URL.')

        async def load() -> List[Release]:
            data = await self.http_client.get_json(
                f"{self.config.releases_base}/repos/{owner_repo}/releases",
                params={"per_page": count},
            )
            return [Release.from_api(r) for r in data or []]

        return await self._cached(f"changelog:{name}:{count}", load)

    async def pinned_version(self, name: str, version: Optional[str] = None) -> str:
        """Resolve an unpinned request to the latest stable version."""
        if version and version != "latest":
            return version
        if is_std_crate(name):
            return "latest"
        return (await self.fetch_package(name)).version
