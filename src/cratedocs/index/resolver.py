"""
Item search and module-path resolution over a crate's full item listing.
"""

from __future__ import annotations

from typing import List, Optional

import structlog

from cratedocs.config.config import ResolverConfig, ServiceConfig
from cratedocs.fetch.documents import DocumentService
from cratedocs.index.models import IndexedItem, ItemKind, Resolution, ScoredMatch, SearchResult
from cratedocs.index.parser import parse_all_items
from cratedocs.index.scoring import fuzzy_rank, rank
from cratedocs.urls import docs_url

logger = structlog.get_logger(__name__)


class ItemResolver:
    """
    Maps a possibly partial or misspelled item name to its place in a crate.

    The item listing comes from the crate's ``all.html`` through the document
    service, so it is cached per (crate, version) URL. No match is never an
    error here: searches return an empty result and resolutions carry
    suggestions instead of an item.
    """

    def __init__(
        self,
        documents: DocumentService,
        config: Optional[ResolverConfig] = None,
        service_config: Optional[ServiceConfig] = None,
    ) -> None:
        self.documents = documents
        self.config = config or ResolverConfig()
        self.service_config = service_config or ServiceConfig()

    def listing_url(self, crate: str, version: str = "latest") -> str:
        return docs_url(
            crate,
            "all.html",
            version,
            docs_base=self.service_config.docs_base,
            std_docs_base=self.service_config.std_docs_base,
        )

    async def load_index(self, crate: str, version: str = "latest") -> List[IndexedItem]:
        tree = await self.documents.fetch_parsed_document(self.listing_url(crate, version))
        return parse_all_items(tree)

    def search_index(self, items: List[IndexedItem], query: str) -> SearchResult:
        """Rank ``items`` for ``query``, falling back to fuzzy matching on no hit."""
        if not query.strip():
            return SearchResult(query=query)

        matches = rank(items, query, self.config)
        fuzzy = False
        if not matches:
            matches = fuzzy_rank(items, query, self.config)
            fuzzy = bool(matches)

        return SearchResult(
            query=query,
            matches=matches[: self.config.max_results],
            total=len(matches),
            fuzzy=fuzzy,
        )

    async def search(self, crate: str, query: str, version: str = "latest") -> SearchResult:
        if not query.strip():
            return SearchResult(query=query)
        result = self.search_index(await self.load_index(crate, version), query)
        logger.debug("Searched items", crate=crate, version=version, query=query, total=result.total)
        return result

    def _pick(self, matches: List[ScoredMatch], name: str, kind: Optional[ItemKind]) -> Optional[IndexedItem]:
        exact = [m.item for m in matches if not m.is_fuzzy and m.item.bare_name.lower() == name.lower()]
        if kind is not None:
            for item in exact:
                if item.kind is kind:
                    return item
        return exact[0] if exact else None

    def _suggestions(self, result: SearchResult) -> List[IndexedItem]:
        return [m.item for m in result.matches[: self.config.max_suggestions]]

    async def resolve(
        self,
        crate: str,
        name: str,
        kind: Optional[ItemKind] = None,
        version: str = "latest",
    ) -> Resolution:
        """
        Find where ``name`` lives in ``crate``.

        Only exact bare-name hits resolve; a hit of the expected ``kind`` wins,
        otherwise the top-ranked one of any kind. With no hit, the resolution
        carries the ranked (or fuzzy) candidates as suggestions.
        """
        result = await self.search(crate, name, version)
        item = self._pick(result.matches, name, kind)
        if item is None:
            logger.info("Item not resolved", crate=crate, name=name, kind=kind.value if kind else None)
            return Resolution(crate=crate, name=name, item=None, suggestions=self._suggestions(result))
        return Resolution(crate=crate, name=name, item=item)

    async def resolve_path(self, type_path: str, version: str = "latest") -> Resolution:
        """
        Resolve a full path such as ``tokio::sync::Mutex``.

        A hit whose qualified name equals the path below the crate wins; otherwise
        the bare-name rules of ``resolve`` apply.
        """
        segments = [s for s in type_path.split("::") if s]
        if len(segments) < 2:
            raise ValueError(
                f'Type path "{type_path}" must have at least a crate and item name (e.g. "serde::Serialize").'
            )

        crate, name = segments[0], segments[-1]
        expected = "::".join(segments[1:])
        result = await self.search(crate, name, version)
        for match in result.matches:
            if match.item.qualified_name == expected and match.item.bare_name == name:
                return Resolution(crate=crate, name=name, item=match.item)

        item = self._pick(result.matches, name, None)
        if item is None:
            return Resolution(crate=crate, name=name, item=None, suggestions=self._suggestions(result))
        return Resolution(crate=crate, name=name, item=item)
