"""HTML to plain text helpers built on BeautifulSoup."""

from __future__ import annotations

import re
from typing import Iterator, Tuple

from bs4 import BeautifulSoup  # type: ignore

# Elements whose contents never count as readable page text
NON_CONTENT_TAGS: tuple[str, ...] = ("script", "style", "noscript")

# Elements that start a new line when rendered; inline elements join without a gap
BLOCK_TAGS: tuple[str, ...] = (
    "address", "article", "aside", "blockquote", "dd", "div", "dl", "dt",
    "footer", "form", "h1", "h2", "h3", "h4", "h5", "h6", "header", "li",
    "main", "nav", "ol", "p", "pre", "section", "table", "td", "th", "tr", "ul",
)

_WHITESPACE_RE = re.compile(r"\s+")


def parse_html(html: str) -> BeautifulSoup:
    """Parse ``html`` with lxml, falling back to the stdlib parser."""

    try:
        return BeautifulSoup(html or "", "lxml")
    except Exception:
        # Fallback to html.parser if lxml isn't installed
        return BeautifulSoup(html or "", "html.parser")


def iter_anchors(soup: BeautifulSoup) -> Iterator[Tuple[str, str]]:
    """Yield ``(visible_text, href)`` for every ``<a>`` element in order."""

    for anchor in soup.find_all("a"):
        href = anchor.get("href")
        if isinstance(href, list):
            href = " ".join(href)
        yield anchor.get_text(), (href or "")


def strip_non_content(soup: BeautifulSoup) -> BeautifulSoup:
    """Remove script, style and noscript elements in place."""

    for tag in soup.find_all(NON_CONTENT_TAGS):
        tag.decompose()
    return soup


def separate_blocks(soup: BeautifulSoup) -> BeautifulSoup:
    """Pad block elements and line breaks with spaces in place."""

    for tag in soup.find_all(BLOCK_TAGS):
        tag.insert_before(" ")
        tag.insert_after(" ")
    for br in soup.find_all("br"):
        br.replace_with(" ")
    return soup


def normalize_whitespace(text: str) -> str:
    """Collapse runs of whitespace into single spaces and trim."""

    return _WHITESPACE_RE.sub(" ", text or "").strip()


def soup_text(soup: BeautifulSoup, limit: int | None = None) -> str:
    """Return the cleaned body text of an already parsed document.

    Non-content elements are removed from ``soup`` and block elements are
    padded with spaces as a side effect. When the document has no
    ``<body>`` the whole tree is used.
    """

    strip_non_content(soup)
    separate_blocks(soup)
    root = soup.body or soup
    text = normalize_whitespace(root.get_text())
    if limit is not None:
        text = text[:limit]
    return text


def extract_text(html: str, limit: int | None = None) -> str:
    """Parse ``html`` and return its cleaned, optionally truncated body text."""

    if not html:
        return ""
    return soup_text(parse_html(html), limit=limit)
