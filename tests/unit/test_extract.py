"""
Tests for the rustdoc page extractors.
"""

import pytest
from selectolax.lexbor import LexborHTMLParser

from cratedocs.dom import following_until, is_element, next_element, next_matching
from cratedocs.extract import (
    ModuleItem,
    SectionCount,
    extract_declaration,
    extract_deprecation,
    extract_examples,
    extract_feature_gate,
    extract_methods,
    extract_module_items,
    extract_page_version,
    extract_reexports,
    extract_sections,
    extract_source,
    extract_stability,
    extract_summary,
    extract_trait_impls,
)
from cratedocs.index import ItemKind

from tests.helpers import item_page_html, method_section, module_page


@pytest.fixture
def mutex_page():
    methods = "".join(
        [
            method_section("new", "pub fn new(t: T) -> Mutex&lt;T&gt;", "Creates a new lock."),
            method_section("lock", "pub async fn lock(&amp;self) -> MutexGuard&lt;'_, T&gt;", "Locks this mutex."),
            method_section("try_lock_owned", "pub fn try_lock_owned(self)", "Owned variant.", feature="sync"),
            method_section("const_new", "pub const fn const_new(t: T)", "Const constructor.", deprecated=True),
            # rustdoc can render the same method twice (e.g. in Deref impls)
            method_section("lock", "pub async fn lock(&amp;self)", "Duplicate."),
        ]
    )
    return LexborHTMLParser(
        item_page_html(
            "pub struct Mutex&lt;T: ?Sized&gt; { /* private fields */ }",
            summary="An asynchronous <code>Mutex</code>-like type.",
            feature_gate="Available on crate feature sync only.",
            body=methods,
        )
    )


@pytest.mark.unit
class TestItemPage:
    def test_declaration(self, mutex_page):
        assert extract_declaration(mutex_page) == "pub struct Mutex<T: ?Sized> { /* private fields */ }"

    def test_summary_keeps_inline_code_text(self, mutex_page):
        assert extract_summary(mutex_page) == "An asynchronous Mutex-like type."

    def test_feature_gate(self, mutex_page):
        assert extract_feature_gate(mutex_page) == "Available on crate feature sync only."

    def test_page_version(self, mutex_page):
        assert extract_page_version(mutex_page) == "1.38.0"

    def test_deprecation(self):
        page = LexborHTMLParser(item_page_html("pub fn old()", deprecated="Deprecated since 1.2.0: use new"))

        assert extract_deprecation(page) == "Deprecated since 1.2.0: use new"

    def test_missing_sections_are_empty(self):
        page = LexborHTMLParser("<html><body><p>nothing here</p></body></html>")

        assert extract_declaration(page) == ""
        assert extract_summary(page) == ""
        assert extract_feature_gate(page) is None
        assert extract_deprecation(page) is None
        assert extract_stability(page) is None
        assert extract_page_version(page) is None
        assert extract_methods(page) == []
        assert extract_examples(page) == []
        assert extract_trait_impls(page) == []
        assert extract_reexports(page) == []

    def test_stability(self):
        page = LexborHTMLParser(
            '<span class="item-info"><div class="stab unstable">This is a nightly-only experimental API.</div></span>'
        )

        assert extract_stability(page) == "This is a nightly-only experimental API."

    def test_examples_skip_empty_blocks(self):
        page = LexborHTMLParser(
            '<div class="example-wrap"><pre class="rust">let m = Mutex::new(0);</pre></div>'
            '<div class="example-wrap"><pre class="rust">   </pre></div>'
        )

        assert extract_examples(page) == ["let m = Mutex::new(0);"]

    def test_trait_impls(self):
        page = LexborHTMLParser(
            '<div id="trait-implementations-list">'
            '<details><summary><section><h3 class="code-header">impl&lt;T&gt; Debug for Mutex&lt;T&gt;</h3></section></summary></details>'
            '<details><summary><section><h3 class="code-header">impl&lt;T&gt; Default for Mutex&lt;T&gt;</h3></section></summary></details>'
            "</div>"
        )

        assert extract_trait_impls(page) == ["impl<T> Debug for Mutex<T>", "impl<T> Default for Mutex<T>"]

    def test_source(self):
        page = LexborHTMLParser('<pre id="source-code">fn main() {}</pre>')

        assert extract_source(page) == "fn main() {}"


@pytest.mark.unit
class TestMethods:
    def test_methods_in_order_without_duplicates(self, mutex_page):
        methods = extract_methods(mutex_page)

        assert [m.name for m in methods] == ["new", "lock", "try_lock_owned", "const_new"]

    def test_method_details(self, mutex_page):
        by_name = {m.name: m for m in extract_methods(mutex_page)}

        assert by_name["lock"].signature == "pub async fn lock(&self) -> MutexGuard<'_, T>"
        assert by_name["lock"].short_doc == "Locks this mutex."
        assert by_name["lock"].deprecated is False
        assert by_name["try_lock_owned"].feature_gate == "sync"
        assert by_name["const_new"].deprecated is True

    def test_trait_required_methods(self):
        page = LexborHTMLParser(
            "<div>"
            '<section id="tymethod.poll_read" class="method"><h4 class="code-header">fn poll_read(self)</h4></section>'
            '<div class="docblock"><p>Attempts to read.</p></div>'
            "</div>"
        )

        [method] = extract_methods(page)
        assert method.name == "poll_read"
        assert method.short_doc == "Attempts to read."

    def test_section_without_signature_skipped(self):
        page = LexborHTMLParser('<section id="method.ghost"></section>')

        assert extract_methods(page) == []


@pytest.mark.unit
class TestModulePage:
    @pytest.fixture
    def crate_root(self):
        return LexborHTMLParser(
            module_page(
                [
                    ("modules", [("sync", "Synchronization primitives."), ("task", "Asynchronous green-threads.")]),
                    ("structs", [("Runtime", "The Tokio runtime.")]),
                    ("macros", [("select", "Waits on multiple branches.")]),
                ],
                reexports=["pub use tokio_macros::main;"],
            )
        )

    def test_all_items(self, crate_root):
        items = extract_module_items(crate_root)

        assert [(i.section, i.name) for i in items] == [
            ("modules", "sync"),
            ("modules", "task"),
            ("structs", "Runtime"),
            ("macros", "select"),
        ]
        assert items[2] == ModuleItem(
            section="structs",
            kind=ItemKind.STRUCT,
            name="Runtime",
            feature_gate=None,
            description="The Tokio runtime.",
        )

    def test_filter_by_kind(self, crate_root):
        items = extract_module_items(crate_root, ItemKind.MACRO)

        assert [i.name for i in items] == ["select"]

    def test_reexports(self, crate_root):
        assert extract_reexports(crate_root) == ["pub use tokio_macros::main;"]

    def test_section_counts(self, crate_root):
        assert extract_sections(crate_root) == [
            SectionCount(title="Re-exports", count=1),
            SectionCount(title="Modules", count=2),
            SectionCount(title="Structs", count=1),
            SectionCount(title="Macros", count=1),
        ]


@pytest.mark.unit
class TestSiblingTraversal:
    @pytest.fixture
    def headings(self):
        return LexborHTMLParser(
            "<div>"
            '<h2 id="structs">Structs</h2>\n'
            "<!-- generated -->\n"
            '  <dl class="item-table"><dt><a>Mutex</a></dt>\n<dd>Lock</dd></dl>'
            "text between"
            '<h2 id="macros">Macros</h2>'
            "</div>"
        )

    def test_skips_whitespace_and_comments(self, headings):
        heading = headings.css_first("h2#structs")

        sibling = next_element(heading)

        assert sibling is not None
        assert sibling.tag == "dl"
        assert next_matching(heading, "dl", "item-table") is sibling
        assert next_matching(heading, "dl", "other") is None

    def test_text_and_comment_nodes_are_not_elements(self, headings):
        heading = headings.css_first("h2#structs")

        assert is_element(heading)
        assert not is_element(heading.next)

    def test_following_until_stops_at_tag(self, headings):
        heading = headings.css_first("h2#structs")

        assert [node.tag for node in following_until(heading, "h2")] == ["dl"]
        assert next_element(headings.css_first("h2#macros")) is None
