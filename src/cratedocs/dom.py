"""
Small traversal helpers over selectolax trees.
"""

from __future__ import annotations

from typing import Iterator, Optional

from selectolax.lexbor import LexborHTMLParser, LexborNode


def is_element(node: LexborNode) -> bool:
    # text and comment nodes carry pseudo tags such as "-text" or "!comment"
    return (node.tag or "")[:1].isalpha()


def has_class(node: LexborNode, class_name: str) -> bool:
    return class_name in (node.attributes.get("class") or "").split()


def next_element(node: LexborNode) -> Optional[LexborNode]:
    """The next sibling that is an element, skipping text and comments."""
    sibling = node.next
    while sibling is not None and not is_element(sibling):
        sibling = sibling.next
    return sibling


def next_matching(node: LexborNode, tag: str, class_name: Optional[str] = None) -> Optional[LexborNode]:
    """The immediately following element if it is ``tag`` (with ``class_name``), else None."""
    sibling = next_element(node)
    if sibling is None or sibling.tag != tag:
        return None
    if class_name and not has_class(sibling, class_name):
        return None
    return sibling


def following_until(node: LexborNode, stop_tag: str) -> Iterator[LexborNode]:
    """Element siblings after ``node`` up to (not including) the next ``stop_tag``."""
    sibling = next_element(node)
    while sibling is not None and sibling.tag != stop_tag:
        yield sibling
        sibling = next_element(sibling)


def first_text(root: LexborHTMLParser | LexborNode, selector: str) -> str:
    """Stripped text of the first match for ``selector``, or an empty string."""
    found = root.css_first(selector)
    return found.text(strip=False).strip() if found is not None else ""
