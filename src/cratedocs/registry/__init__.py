"""Registry (crates.io) client and records."""

from .client import RegistryClient, github_owner_repo
from .models import (
    Dependency,
    PackageMetadata,
    PackageSearchHit,
    PackageSearchPage,
    PackageVersion,
    Release,
    VersionSummary,
)

__all__ = [
    "Dependency",
    "PackageMetadata",
    "PackageSearchHit",
    "PackageSearchPage",
    "PackageVersion",
    "RegistryClient",
    "Release",
    "VersionSummary",
    "github_owner_repo",
]
