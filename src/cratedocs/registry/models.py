"""
Flat records mirroring the crates.io and release-notes JSON shapes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional


@dataclass(slots=True, frozen=True)
class PackageMetadata:
    """Crate-level metadata; ``version`` is the latest stable release."""

    name: str
    version: str
    description: str
    documentation: Optional[str]
    repository: Optional[str]
    downloads: int

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> PackageMetadata:
        crate = data["crate"]
        return cls(
            name=crate["name"],
            version=crate.get("max_stable_version") or crate.get("max_version") or "",
            description=(crate.get("description") or "").strip(),
            documentation=crate.get("documentation"),
            repository=crate.get("repository"),
            downloads=int(crate.get("downloads") or 0),
        )


@dataclass(slots=True, frozen=True)
class PackageVersion:
    num: str
    features: Dict[str, List[str]]
    default_features: List[str]
    yanked: bool
    license: str
    msrv: Optional[str]

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> PackageVersion:
        version = data["version"]
        features = version.get("features") or {}
        return cls(
            num=version["num"],
            features=features,
            default_features=list(features.get("default", [])),
            yanked=bool(version.get("yanked", False)),
            license=version.get("license") or "",
            msrv=version.get("rust_version"),
        )

    @property
    def optional_features(self) -> List[str]:
        return sorted(name for name in self.features if name != "default")


@dataclass(slots=True, frozen=True)
class Dependency:
    name: str
    req: str
    optional: bool
    kind: str
    features: List[str] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> Dependency:
        return cls(
            name=data["crate_id"],
            req=data.get("req") or "*",
            optional=bool(data.get("optional", False)),
            kind=data.get("kind") or "normal",
            features=list(data.get("features") or []),
        )


@dataclass(slots=True, frozen=True)
class VersionSummary:
    num: str
    yanked: bool
    created_at: str
    license: str

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> VersionSummary:
        return cls(
            num=data["num"],
            yanked=bool(data.get("yanked", False)),
            created_at=data.get("created_at") or "",
            license=data.get("license") or "",
        )

    @property
    def date(self) -> str:
        return self.created_at[:10]


@dataclass(slots=True, frozen=True)
class PackageSearchHit:
    name: str
    version: str
    description: str
    downloads: int

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> PackageSearchHit:
        return cls(
            name=data["name"],
            version=data.get("max_stable_version") or data.get("max_version") or "",
            description=(data.get("description") or "").strip(),
            downloads=int(data.get("downloads") or 0),
        )


@dataclass(slots=True, frozen=True)
class PackageSearchPage:
    query: str
    page: int
    total: int
    hits: List[PackageSearchHit]


@dataclass(slots=True, frozen=True)
class Release:
    """A GitHub release of the crate's source repository."""

    tag: str
    title: str
    published_at: Optional[str]
    body: str

    @classmethod
    def from_api(cls, data: Mapping[str, Any]) -> Release:
        return cls(
            tag=data.get("tag_name") or "",
            title=data.get("name") or data.get("tag_name") or "",
            published_at=data.get("published_at"),
            body=(data.get("body") or "").strip(),
        )
