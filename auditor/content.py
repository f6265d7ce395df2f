"""
Readable-text extraction from fetched HTML.
Paragraph boundaries are kept as blank lines so callers can split on them.
"""

import re
from typing import List
from urllib.parse import urljoin

from bs4 import BeautifulSoup

MIN_CONTAINER_TEXT = 100

ARTICLE_SELECTORS = (
    "article", ".article", ".post", ".content",
    "main", "#main", ".main-content", ".post-content",
    ".entry-content", ".article-content",
)

_BLOCK_TAGS = ["p", "li", "blockquote", "pre", "h1", "h2", "h3", "h4", "h5", "h6"]
_NOISE_TAGS = ["script", "style", "noscript", "template", "svg"]
_WS_RE = re.compile(r"\s+")


def collapse_whitespace(text: str) -> str:
    return _WS_RE.sub(" ", text or "").strip()


def _soup(html: str) -> BeautifulSoup:
    soup = BeautifulSoup(html or "", "html.parser")
    for tag in soup(_NOISE_TAGS):
        tag.decompose()
    return soup


def _block_text(element) -> str:
    blocks = [collapse_whitespace(b.get_text(" ")) for b in element.find_all(_BLOCK_TAGS)]
    blocks = [b for b in blocks if b]
    if blocks:
        return "\n\n".join(blocks)
    return collapse_whitespace(element.get_text(" "))


def extract_article_text(html: str) -> str:
    """
    FLOW: Known article containers -> all <p> elements -> whole body text.
    The first source yielding more than MIN_CONTAINER_TEXT characters wins.
    """
    soup = _soup(html)

    for selector in ARTICLE_SELECTORS:
        element = soup.select_one(selector)
        if element is None:
            continue
        text = _block_text(element)
        if len(text) > MIN_CONTAINER_TEXT:
            return text

    paragraphs = [collapse_whitespace(p.get_text(" ")) for p in soup.find_all("p")]
    text = "\n\n".join(p for p in paragraphs if p)
    if len(text) > MIN_CONTAINER_TEXT:
        return text

    body = soup.body or soup
    return collapse_whitespace(body.get_text(" "))


def extract_image_sources(html: str, page_url: str) -> List[str]:
    """Absolute src of every <img> with a non-empty src, in document order, deduplicated."""
    soup = BeautifulSoup(html or "", "html.parser")
    seen = set()
    sources = []
    for img in soup.find_all("img"):
        src = (img.get("src") or "").strip()
        if not src or src.startswith("data:"):
            continue
        absolute = urljoin(page_url, src)
        if not absolute.startswith(("http://", "https://")) or absolute in seen:
            continue
        seen.add(absolute)
        sources.append(absolute)
    return sources


def truncate_at_sentence(text: str, max_length: int = 500) -> str:
    """
    Cut `text` to at most `max_length` characters, preferring the last
    sentence boundary (. ? !) inside the window. Appends an ellipsis when cut.
    """
    if len(text) <= max_length:
        return text
    window = text[:max_length]
    boundary = max(window.rfind("."), window.rfind("?"), window.rfind("!"))
    if boundary <= 0:
        return window + "..."
    return text[:boundary + 1] + "..."
