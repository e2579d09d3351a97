"""
URL construction for rustdoc pages on docs.rs and doc.rust-lang.org.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from cratedocs.index.models import ItemKind

DOCS_BASE = "https://docs.rs"
STD_DOCS_BASE = "https://doc.rust-lang.org/stable"

STD_CRATES = frozenset({"std", "core", "alloc"})


def is_std_crate(name: str) -> bool:
    return name in STD_CRATES


def crate_slug(name: str) -> str:
    """Rustdoc directory name for a crate: hyphens become underscores."""
    return name.replace("-", "_")


def docs_url(
    crate: str,
    path: str = "index.html",
    version: str = "latest",
    *,
    docs_base: str = DOCS_BASE,
    std_docs_base: str = STD_DOCS_BASE,
) -> str:
    """URL of a documentation page. Standard library crates ignore ``version``."""
    if is_std_crate(crate):
        return f"{std_docs_base}/{crate}/{path}"
    return f"{docs_base}/{crate}/{version}/{crate_slug(crate)}/{path}"


def source_url(
    crate: str,
    path: str,
    version: str = "latest",
    *,
    docs_base: str = DOCS_BASE,
    std_docs_base: str = STD_DOCS_BASE,
) -> str:
    """URL of a rendered source file; ``path`` is relative to the crate root."""
    src_path = path[len("src/") :] if path.startswith("src/") else path
    if is_std_crate(crate):
        return f"{std_docs_base}/src/{crate}/{src_path}.html"
    return f"{docs_base}/{crate}/{version}/src/{crate_slug(crate)}/{src_path}.html"


def module_url_prefix(module_path: Optional[str]) -> str:
    """``"io.util"`` -> ``"io/util/"``; empty for the crate root."""
    return module_path.replace(".", "/") + "/" if module_path else ""


def module_rust_prefix(module_path: Optional[str]) -> str:
    """``"io.util"`` -> ``"io::util::"``; empty for the crate root."""
    return module_path.replace(".", "::") + "::" if module_path else ""


def item_page(kind: ItemKind, name: str, module_path: Optional[str] = None) -> str:
    """Page path of an item relative to the crate's documentation root."""
    return module_url_prefix(module_path) + kind.page_name(name)
