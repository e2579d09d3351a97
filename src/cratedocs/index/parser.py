"""
Parses a rustdoc "all items" page into ``IndexedItem`` records.
"""

from __future__ import annotations

from typing import List

import structlog
from selectolax.lexbor import LexborHTMLParser

from cratedocs.dom import next_matching
from cratedocs.index.models import IndexedItem, ItemKind

logger = structlog.get_logger(__name__)


def parse_all_items(tree: LexborHTMLParser) -> List[IndexedItem]:
    """
    Collect every item listed on ``all.html``.

    Each section is an ``h3`` whose id names the kind (``structs``, ``functions``...)
    followed by a ``ul.all-items`` of links whose text is the item path. Sections
    outside the known kinds (primitives, keywords) are skipped; a page without
    this structure yields an empty list.
    """
    items: List[IndexedItem] = []
    for heading in tree.css("h3"):
        kind = ItemKind.from_section_id(heading.attributes.get("id") or "")
        if kind is None:
            continue
        listing = next_matching(heading, "ul", "all-items")
        if listing is None:
            continue
        for link in listing.css("li a"):
            name = link.text(strip=False).strip()
            if name:
                items.append(IndexedItem.from_path(kind, name))

    if not items:
        logger.debug("No items found on listing page")
    return items
