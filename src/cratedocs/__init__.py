"""
cratedocs - cached, resilient access to Rust crate documentation.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .cache import ResponseCache
from .config import Config
from .container import DependencyContainer
from .fetch import DocumentService, HttpClient
from .index import ItemKind, ItemResolver
from .registry import RegistryClient
from .service import BatchOutcome, CrateOverview, DocsService, ItemRequest, ItemSummary, SourceFile

__all__ = [
    "__version__",
    "BatchOutcome",
    "Config",
    "CrateOverview",
    "DependencyContainer",
    "DocsService",
    "DocumentService",
    "HttpClient",
    "ItemKind",
    "ItemRequest",
    "ItemResolver",
    "ItemSummary",
    "RegistryClient",
    "ResponseCache",
    "SourceFile",
]
