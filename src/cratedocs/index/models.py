"""
Data models for the crate item index and search results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class ItemKind(Enum):
    """Kinds of publicly documented items; values are the short codes callers pass in."""

    MODULE = "mod"
    STRUCT = "struct"
    ENUM = "enum"
    TRAIT = "trait"
    FUNCTION = "fn"
    MACRO = "macro"
    TYPE_ALIAS = "type"
    CONSTANT = "constant"
    STATIC = "static"
    UNION = "union"
    ATTRIBUTE = "attr"
    DERIVE = "derive"

    @property
    def file_prefix(self) -> str:
        """Rustdoc file-name prefix, e.g. ``struct.`` for ``struct.Mutex.html``."""
        return f"{self.value}."

    def page_name(self, name: str) -> str:
        """Page of an item named ``name`` relative to its module directory."""
        if self is ItemKind.MODULE:
            return f"{name}/index.html"
        return f"{self.file_prefix}{name}.html"

    @classmethod
    def from_section_id(cls, section_id: str) -> Optional[ItemKind]:
        """Map a rustdoc section heading id (``structs``, ``functions``...) to a kind."""
        return SECTION_TO_KIND.get(section_id)


SECTION_TO_KIND: Dict[str, ItemKind] = {
    "modules": ItemKind.MODULE,
    "structs": ItemKind.STRUCT,
    "enums": ItemKind.ENUM,
    "traits": ItemKind.TRAIT,
    "functions": ItemKind.FUNCTION,
    "macros": ItemKind.MACRO,
    "types": ItemKind.TYPE_ALIAS,
    "constants": ItemKind.CONSTANT,
    "statics": ItemKind.STATIC,
    "unions": ItemKind.UNION,
    "attributes": ItemKind.ATTRIBUTE,
    "derives": ItemKind.DERIVE,
}


@dataclass(slots=True, frozen=True)
class IndexedItem:
    """One public item from a crate's "all items" listing.

    ``qualified_name`` is the rustdoc display path (``sync::Mutex``);
    ``module_path`` is the dot-separated module part (``sync``), empty at the root.
    """

    kind: ItemKind
    qualified_name: str
    bare_name: str
    module_path: str

    @classmethod
    def from_path(cls, kind: ItemKind, qualified_name: str) -> IndexedItem:
        parts = qualified_name.split("::")
        return cls(
            kind=kind,
            qualified_name=qualified_name,
            bare_name=parts[-1],
            module_path=".".join(parts[:-1]),
        )


@dataclass(slots=True, frozen=True)
class ScoredMatch:
    """An item ranked for one query. Fuzzy matches carry their edit distance."""

    item: IndexedItem
    score: int
    distance: int = 0

    @property
    def is_fuzzy(self) -> bool:
        return self.score == 0

    def sort_key(self) -> tuple:
        return (-self.score, self.distance, self.item.qualified_name)


@dataclass(slots=True, frozen=True)
class SearchResult:
    """Ranked matches for a query, truncated, with the untruncated total."""

    query: str
    matches: List[ScoredMatch] = field(default_factory=list)
    total: int = 0
    fuzzy: bool = False

    @property
    def truncated(self) -> bool:
        return self.total > len(self.matches)

    def __bool__(self) -> bool:
        return bool(self.matches)


@dataclass(slots=True, frozen=True)
class Resolution:
    """Outcome of module-path auto-discovery for one item name."""

    crate: str
    name: str
    item: Optional[IndexedItem]
    suggestions: List[IndexedItem] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.item is not None

    def suggestion_names(self) -> List[str]:
        return [f"{self.crate}::{s.qualified_name}" for s in self.suggestions]
