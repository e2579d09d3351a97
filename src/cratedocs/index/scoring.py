"""
Ranking of index items against a query: tiered scoring plus an edit-distance fallback.
"""

from __future__ import annotations

import math
from typing import Iterable, List

from rapidfuzz.distance import Levenshtein

from cratedocs.config.config import ResolverConfig
from cratedocs.index.models import IndexedItem, ScoredMatch


def score_item(item: IndexedItem, query: str, config: ResolverConfig) -> int:
    """
    Score one item for a lower-cased query. Highest applicable tier wins:
    exact bare name, exact path, bare-name prefix, path prefix, substring.
    """
    bare = item.bare_name.lower()
    path = item.qualified_name.lower()

    if bare == query:
        return config.exact_name_score
    if path == query:
        return config.exact_path_score
    if bare.startswith(query):
        return config.prefix_name_score
    if path.startswith(query):
        return config.prefix_path_score
    if query in path:
        return config.substring_score
    return 0


def rank(items: Iterable[IndexedItem], query: str, config: ResolverConfig) -> List[ScoredMatch]:
    """Primary pass: every item with a non-zero score, best first."""
    q = query.lower()
    matches = []
    for item in items:
        score = score_item(item, q, config)
        if score > 0:
            matches.append(ScoredMatch(item=item, score=score))
    matches.sort(key=ScoredMatch.sort_key)
    return matches


def max_distance(query: str, name: str, ratio: float) -> int:
    return math.ceil(ratio * max(len(query), len(name)))


def fuzzy_rank(items: Iterable[IndexedItem], query: str, config: ResolverConfig) -> List[ScoredMatch]:
    """Fallback pass: bare names within the edit-distance budget, closest first, capped."""
    q = query.lower()
    matches = []
    for item in items:
        bare = item.bare_name.lower()
        limit = max_distance(q, bare, config.fuzzy_distance_ratio)
        distance = Levenshtein.distance(q, bare, score_cutoff=limit)
        if distance <= limit:
            matches.append(ScoredMatch(item=item, score=0, distance=distance))
    matches.sort(key=ScoredMatch.sort_key)
    return matches[: config.fuzzy_limit]
