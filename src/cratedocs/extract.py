"""
Pure extraction functions over parsed rustdoc pages.

Rustdoc pages vary in which sections they carry, so a missing element is
"no data" (an empty string, list or None) and never an exception.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from selectolax.lexbor import LexborHTMLParser, LexborNode

from cratedocs.dom import first_text, has_class, next_element, next_matching
from cratedocs.index.models import ItemKind


@dataclass(slots=True, frozen=True)
class MethodInfo:
    name: str
    signature: str
    deprecated: bool
    feature_gate: Optional[str]
    short_doc: str


@dataclass(slots=True, frozen=True)
class ModuleItem:
    """One row of a module page's item table."""

    section: str
    kind: Optional[ItemKind]
    name: str
    feature_gate: Optional[str]
    description: str


@dataclass(slots=True, frozen=True)
class SectionCount:
    title: str
    count: int


def _text(node: LexborNode) -> str:
    return node.text(strip=False).strip()


def extract_declaration(tree: LexborHTMLParser) -> str:
    return first_text(tree, "pre.rust.item-decl")


def extract_feature_gate(tree: LexborHTMLParser) -> Optional[str]:
    return first_text(tree, ".item-info .stab.portability") or None


def extract_deprecation(tree: LexborHTMLParser) -> Optional[str]:
    return first_text(tree, ".item-info .stab.deprecated") or None


def extract_stability(tree: LexborHTMLParser) -> Optional[str]:
    return first_text(tree, ".item-info .stab.unstable") or None


def extract_summary(tree: LexborHTMLParser) -> str:
    """Plain text of the first paragraph of the item's top-level doc block."""
    return first_text(tree, "details.toggle.top-doc .docblock p") or first_text(tree, "details.toggle.top-doc p")


def extract_page_version(tree: LexborHTMLParser) -> Optional[str]:
    return first_text(tree, ".sidebar-crate .version") or None


def extract_examples(tree: LexborHTMLParser) -> List[str]:
    examples = (_text(node) for node in tree.css("div.example-wrap pre.rust"))
    return [code for code in examples if code]


def extract_trait_impls(tree: LexborHTMLParser) -> List[str]:
    return [_text(node) for node in tree.css("#trait-implementations-list > details > summary h3.code-header")]


def extract_reexports(tree: LexborHTMLParser) -> List[str]:
    heading = tree.css_first("h2#reexports")
    if heading is None:
        return []
    table = next_matching(heading, "dl", "item-table")
    if table is None:
        return []
    return [_text(code) for code in table.css("dt code")]


def extract_methods(tree: LexborHTMLParser) -> List[MethodInfo]:
    """Inherent and trait methods, de-duplicated by their section id."""
    methods: List[MethodInfo] = []
    seen = set()

    for section in tree.css('section[id^="method."], section[id^="tymethod."]'):
        section_id = section.attributes.get("id") or ""
        if section_id in seen:
            continue
        seen.add(section_id)

        name = section_id.split(".", 1)[1] if "." in section_id else ""
        signature = first_text(section, "h4.code-header")
        if not name or not signature:
            continue

        parent = section.parent
        # <details><summary><section id="method.x">...</section></summary><div class="docblock">
        if parent is not None and parent.tag == "summary":
            parent = parent.parent
        in_details = parent is not None and parent.tag == "details"
        deprecated = section.css_first(".stab.deprecated") is not None or (
            in_details and parent.css_first(".stab.deprecated") is not None
        )
        feature_gate = first_text(section, ".stab.portability code") or None

        short_doc = first_text(parent, ".docblock p") if in_details else ""
        if not short_doc:
            sibling = next_element(section)
            if sibling is not None and has_class(sibling, "docblock"):
                short_doc = first_text(sibling, "p")

        methods.append(
            MethodInfo(
                name=name,
                signature=signature,
                deprecated=deprecated,
                feature_gate=feature_gate,
                short_doc=short_doc,
            )
        )
    return methods


def extract_module_items(tree: LexborHTMLParser, kind: Optional[ItemKind] = None) -> List[ModuleItem]:
    """Item tables of a crate root or module page, optionally filtered by ``kind``."""
    items: List[ModuleItem] = []
    for heading in tree.css("h2.section-header"):
        section = heading.attributes.get("id") or ""
        section_kind = ItemKind.from_section_id(section)
        if kind is not None and section_kind is not kind:
            continue
        table = next_matching(heading, "dl", "item-table")
        if table is None:
            continue
        for dt in table.css("dt"):
            name = first_text(dt, "a")
            if not name:
                continue
            dd = next_matching(dt, "dd")
            items.append(
                ModuleItem(
                    section=section,
                    kind=section_kind,
                    name=name,
                    feature_gate=first_text(dt, ".stab.portability code") or None,
                    description=_text(dd) if dd is not None else "",
                )
            )
    return items


def extract_sections(tree: LexborHTMLParser) -> List[SectionCount]:
    """Section headings of a module page with their item counts."""
    sections = []
    for heading in tree.css("h2.section-header"):
        if not heading.attributes.get("id"):
            continue
        table = next_matching(heading, "dl", "item-table")
        count = len(table.css("dt")) if table is not None else 0
        if count:
            sections.append(SectionCount(title=_text(heading), count=count))
    return sections


def extract_source(tree: LexborHTMLParser) -> str:
    return first_text(tree, "#source-code") or first_text(tree, "pre.rust")
