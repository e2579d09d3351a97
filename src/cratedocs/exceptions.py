"""
Error taxonomy for cratedocs.

Transient failures (server errors, timeouts) are retried by the fetch layer;
everything else surfaces immediately with the URL or item that failed.
"""

from __future__ import annotations

from typing import List, Optional, Sequence


class CrateDocsError(Exception):
    """Base exception for all cratedocs errors."""

    pass


class FetchError(CrateDocsError):
    """Raised when a remote resource could not be fetched."""

    def __init__(self, url: str, message: Optional[str] = None) -> None:
        self.url = url
        super().__init__(message or f"Request failed for {url}")

    @property
    def is_transient(self) -> bool:
        return False


class FetchTimeoutError(FetchError):
    """Raised when a request exceeds its deadline."""

    def __init__(self, url: str, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(url, f"Request timed out after {timeout}s for {url}")

    @property
    def is_transient(self) -> bool:
        return True


class HttpStatusError(FetchError):
    """Raised when the response status is outside the 2xx range."""

    def __init__(self, status: int, url: str) -> None:
        self.status = status
        super().__init__(url, f"HTTP {status} for {url}")

    @property
    def is_transient(self) -> bool:
        return self.status >= 500

    @property
    def is_not_found(self) -> bool:
        return 400 <= self.status < 500


class ItemNotFoundError(CrateDocsError):
    """Raised by callers when an item name resolves to nothing.

    Carries the best-effort candidate list so the caller can self-correct.
    """

    def __init__(self, crate: str, name: str, suggestions: Sequence[str] = ()) -> None:
        self.crate = crate
        self.name = name
        self.suggestions: List[str] = list(suggestions)
        message = f'Item "{name}" not found in {crate}'
        if self.suggestions:
            message += f"; did you mean: {', '.join(self.suggestions)}"
        super().__init__(message)


class SourceNotFoundError(CrateDocsError):
    """Raised when a source page renders no code."""

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"No source code found at {url}")


class RegistryError(CrateDocsError):
    """Raised when the registry cannot answer for a package."""

    def __init__(self, package: str, message: str) -> None:
        self.package = package
        super().__init__(message)


def is_transient(error: BaseException) -> bool:
    """Return True when ``error`` is worth retrying."""
    return isinstance(error, FetchError) and error.is_transient
