"""
Documentation lookups composed from the resolver, document service and registry.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import structlog
from structlog.contextvars import bound_contextvars

from cratedocs.config.config import ServiceConfig
from cratedocs.exceptions import ItemNotFoundError, SourceNotFoundError
from cratedocs.extract import (
    MethodInfo,
    ModuleItem,
    SectionCount,
    extract_declaration,
    extract_deprecation,
    extract_examples,
    extract_feature_gate,
    extract_methods,
    extract_module_items,
    extract_page_version,
    extract_reexports,
    extract_sections,
    extract_source,
    extract_stability,
    extract_summary,
    extract_trait_impls,
)
from cratedocs.fetch.documents import DocumentService
from cratedocs.index.models import ItemKind, SearchResult
from cratedocs.index.resolver import ItemResolver
from cratedocs.registry.client import RegistryClient
from cratedocs.urls import docs_url, item_page, module_rust_prefix, module_url_prefix, source_url

logger = structlog.get_logger(__name__)


@dataclass(slots=True, frozen=True)
class ItemRequest:
    kind: ItemKind
    name: str
    module_path: Optional[str] = None


@dataclass(slots=True, frozen=True)
class ItemSummary:
    kind: ItemKind
    full_name: str
    url: str
    declaration: str
    feature_gate: Optional[str]
    deprecation: Optional[str]
    summary: str
    stability: Optional[str] = None
    # filled only when requested
    examples: List[str] = field(default_factory=list)
    trait_impls: List[str] = field(default_factory=list)


@dataclass(slots=True, frozen=True)
class CrateOverview:
    """Front page of a crate: the version actually rendered, its summary, re-exports and sections."""

    crate: str
    url: str
    version: Optional[str]
    summary: str
    reexports: List[str]
    sections: List[SectionCount]


@dataclass(slots=True, frozen=True)
class SourceFile:
    crate: str
    path: str
    url: str
    code: str


@dataclass(slots=True, frozen=True)
class BatchOutcome:
    """Result of one lookup in a batch: exactly one of ``summary`` and ``error`` is set."""

    request: ItemRequest
    summary: Optional[ItemSummary] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class DocsService:
    """Item lookups for one crate at a time, built on the cached core."""

    def __init__(
        self,
        documents: DocumentService,
        resolver: ItemResolver,
        registry: RegistryClient,
        config: Optional[ServiceConfig] = None,
    ) -> None:
        self.documents = documents
        self.resolver = resolver
        self.registry = registry
        self.config = config or ServiceConfig()

    def page_url(self, crate: str, path: str, version: str) -> str:
        return docs_url(
            crate,
            path,
            version,
            docs_base=self.config.docs_base,
            std_docs_base=self.config.std_docs_base,
        )

    async def crate_version(self, crate: str, version: Optional[str] = None) -> str:
        return await self.registry.pinned_version(crate, version)

    async def search_items(self, crate: str, query: str, version: str = "latest") -> SearchResult:
        return await self.resolver.search(crate, query, version)

    async def locate(
        self,
        crate: str,
        kind: ItemKind,
        name: str,
        module_path: Optional[str],
        version: str,
    ) -> Tuple[ItemKind, Optional[str]]:
        """Kind and module path of an item, auto-discovered when ``module_path`` is None."""
        if module_path is not None:
            return kind, module_path or None
        resolution = await self.resolver.resolve(crate, name, kind, version)
        if resolution.item is None:
            raise ItemNotFoundError(crate, name, resolution.suggestion_names())
        return resolution.item.kind, resolution.item.module_path or None

    async def _summarize(
        self,
        crate: str,
        kind: ItemKind,
        name: str,
        module_path: Optional[str],
        version: str,
        include_examples: bool = False,
        include_impls: bool = False,
    ) -> ItemSummary:
        url = self.page_url(crate, item_page(kind, name, module_path), version)
        tree = await self.documents.fetch_parsed_document(url)
        return ItemSummary(
            kind=kind,
            full_name=f"{crate}::{module_rust_prefix(module_path)}{name}",
            url=url,
            declaration=extract_declaration(tree),
            feature_gate=extract_feature_gate(tree),
            deprecation=extract_deprecation(tree),
            summary=extract_summary(tree),
            stability=extract_stability(tree),
            examples=extract_examples(tree) if include_examples else [],
            trait_impls=extract_trait_impls(tree) if include_impls else [],
        )

    async def lookup_item(
        self,
        crate: str,
        kind: ItemKind,
        name: str,
        module_path: Optional[str] = None,
        version: str = "latest",
        include_examples: bool = False,
        include_impls: bool = False,
    ) -> ItemSummary:
        """Summary of one item; examples and trait impls are extracted only on request."""
        kind, module_path = await self.locate(crate, kind, name, module_path, version)
        return await self._summarize(crate, kind, name, module_path, version, include_examples, include_impls)

    async def batch_lookup(
        self,
        crate: str,
        requests: Sequence[ItemRequest],
        version: str = "latest",
    ) -> List[BatchOutcome]:
        """
        Look up several items concurrently.

        Every request gets its own outcome, in request order; a failing item
        neither cancels nor delays the others.
        """
        if not requests:
            raise ValueError("batch_lookup needs at least one request")
        if len(requests) > self.config.max_batch_size:
            raise ValueError(f"batch_lookup accepts at most {self.config.max_batch_size} requests")

        async def run(index: int, request: ItemRequest) -> ItemSummary:
            with bound_contextvars(request_id=f"{crate}#{index}"):
                return await self.lookup_item(crate, request.kind, request.name, request.module_path, version)

        results = await asyncio.gather(
            *(run(i, request) for i, request in enumerate(requests)),
            return_exceptions=True,
        )

        outcomes = []
        for request, result in zip(requests, results):
            if isinstance(result, Exception):
                logger.info("Batch item failed", crate=crate, item=request.name, error=str(result))
                outcomes.append(BatchOutcome(request=request, error=result))
            else:
                outcomes.append(BatchOutcome(request=request, summary=result))
        return outcomes

    async def resolve_type(self, type_path: str, version: str = "latest") -> ItemSummary:
        """Documentation summary for a full path such as ``std::collections::HashMap``."""
        resolution = await self.resolver.resolve_path(type_path, version)
        if resolution.item is None:
            raise ItemNotFoundError(resolution.crate, type_path, resolution.suggestion_names())
        item = resolution.item
        return await self._summarize(resolution.crate, item.kind, item.bare_name, item.module_path or None, version)

    async def list_methods(
        self,
        crate: str,
        kind: ItemKind,
        name: str,
        module_path: Optional[str] = None,
        version: str = "latest",
    ) -> List[MethodInfo]:
        kind, module_path = await self.locate(crate, kind, name, module_path, version)
        url = self.page_url(crate, item_page(kind, name, module_path), version)
        return extract_methods(await self.documents.fetch_parsed_document(url))

    async def list_module_items(
        self,
        crate: str,
        module_path: Optional[str] = None,
        kind: Optional[ItemKind] = None,
        version: str = "latest",
    ) -> List[ModuleItem]:
        url = self.page_url(crate, f"{module_url_prefix(module_path)}index.html", version)
        return extract_module_items(await self.documents.fetch_parsed_document(url), kind)

    async def crate_overview(self, crate: str, version: str = "latest") -> CrateOverview:
        """Summary, re-exports and item sections of the crate's root page."""
        url = self.page_url(crate, "index.html", version)
        tree = await self.documents.fetch_parsed_document(url)
        return CrateOverview(
            crate=crate,
            url=url,
            version=extract_page_version(tree),
            summary=extract_summary(tree),
            reexports=extract_reexports(tree),
            sections=extract_sections(tree),
        )

    async def source_code(self, crate: str, path: str, version: str = "latest") -> SourceFile:
        """
        Rendered source of a file in the crate, e.g. ``src/sync/mutex.rs``.

        The leading ``src/`` is optional. Raises SourceNotFoundError when the
        page exists but carries no code block.
        """
        url = source_url(
            crate,
            path,
            version,
            docs_base=self.config.docs_base,
            std_docs_base=self.config.std_docs_base,
        )
        code = extract_source(await self.documents.fetch_parsed_document(url))
        if not code:
            raise SourceNotFoundError(url)
        return SourceFile(crate=crate, path=path, url=url, code=code)
