"""
Network layer: deadline-bound HTTP requests, transient-failure retry, and
cached document fetching with background stale refresh.
"""

from .documents import DocumentService, document_cache_key
from .http_client import HttpClient
from .retry import backoff_delay, with_retry

__all__ = ["DocumentService", "HttpClient", "backoff_delay", "document_cache_key", "with_retry"]
