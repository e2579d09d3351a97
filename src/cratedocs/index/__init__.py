"""
Crate item index: listing parser, ranking, and module-path resolution.
"""

from .models import IndexedItem, ItemKind, Resolution, ScoredMatch, SearchResult
from .parser import parse_all_items
from .resolver import ItemResolver
from .scoring import fuzzy_rank, rank, score_item

__all__ = [
    "IndexedItem",
    "ItemKind",
    "ItemResolver",
    "Resolution",
    "ScoredMatch",
    "SearchResult",
    "fuzzy_rank",
    "parse_all_items",
    "rank",
    "score_item",
]
