"""CSS-selector-based HTML queries with fallback chains.

Thin capability layer over BeautifulSoup so the extractors state *what*
they look for (the Nth frame reference, the first attribute matching a
pattern) without hand-written tag regexes. Every lookup accepts a primary
selector and optional *fallback_selectors*; the first selector that
yields a usable match wins.
"""

from __future__ import annotations

import re
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag


def parse_html(html: str) -> BeautifulSoup:
    """Parse an HTML string into a BeautifulSoup tree (lxml parser)."""
    return BeautifulSoup(html, "lxml")


def select_items(
    root: BeautifulSoup | Tag,
    selector: str,
    *fallback_selectors: str,
) -> list[Tag]:
    """Select elements via CSS with a fallback chain.

    Tries each selector in order.  Returns results from the **first**
    selector that matches at least one element.
    """
    for sel in (selector, *fallback_selectors):
        items = root.select(sel)
        if items:
            return items
    return []


def extract_all_attrs(
    root: BeautifulSoup | Tag,
    selector: str,
    attr: str,
    *fallback_selectors: str,
    base_url: str = "",
) -> list[str]:
    """Extract *attr* from all matching elements, in document order.

    Empty values are skipped. With *base_url* set, values are resolved
    to absolute URLs and values that do not parse as a URL are dropped.
    """
    values: list[str] = []
    for tag in select_items(root, selector, *fallback_selectors):
        val = tag.get(attr)
        if not val:
            continue
        val_str = str(val).strip()
        if not val_str:
            continue
        if base_url:
            try:
                val_str = urljoin(base_url, val_str)
            except ValueError:
                continue
        values.append(val_str)
    return values


def first_attr_matching(
    root: BeautifulSoup | Tag,
    selector: str,
    attr: str,
    pattern: re.Pattern[str],
    *fallback_selectors: str,
) -> str | None:
    """Return the first *attr* value that fully matches *pattern*."""
    for sel in (selector, *fallback_selectors):
        for tag in root.select(sel):
            val = tag.get(attr)
            if val and pattern.fullmatch(str(val)):
                return str(val)
    return None


def script_texts(root: BeautifulSoup | Tag) -> str:
    """Concatenate the bodies of all inline ``<script>`` elements."""
    return "\n".join(
        s.string or s.get_text() for s in root.find_all("script") if not s.get("src")
    )
