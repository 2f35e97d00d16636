"""Per-page content statistics and HTML rendering.

``page_stats`` summarises a fetched page's Markdown (size, structure, links
and images) with coarse quality ratings, for display next to each page.
``render_page_html`` turns the page's Markdown into HTML.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import urlparse

import markdown

from recon.scraper.models import PageRecord

_HEADING_RE = re.compile(r"^#+", re.MULTILINE)
_LIST_ITEM_RE = re.compile(r"^[-*+]", re.MULTILINE)
_MARKDOWN_EXTENSIONS = ["extra", "sane_lists"]


@dataclass(frozen=True)
class PageStats:
    """Content statistics for one page.

    Ratings are ``"high"``, ``"medium"`` or ``"low"``.
    """

    domain: str
    word_count: int
    paragraph_count: int
    heading_count: int
    list_item_count: int
    has_links: bool
    has_images: bool
    completeness: str
    structure: str
    density: str


def _completeness(words: int) -> str:
    if words > 200:
        return "high"
    if words > 50:
        return "medium"
    return "low"


def _hostname(url: str) -> str:
    try:
        return urlparse(url).hostname or ""
    except ValueError:
        return ""


def page_stats(page: PageRecord) -> PageStats:
    """Compute :class:`PageStats` for *page*.

    A failed or empty page yields zero counts and ``"low"`` ratings.
    """
    text = page.raw_markdown.strip() if page.error is None else ""
    words = len(text.split())
    lines = text.splitlines()

    return PageStats(
        domain=_hostname(page.url),
        word_count=words,
        paragraph_count=len([p for p in text.split("\n\n") if p.strip()]),
        heading_count=len(_HEADING_RE.findall(text)),
        list_item_count=len(_LIST_ITEM_RE.findall(text)),
        has_links="](" in text,
        has_images="![" in text or "<img" in text,
        completeness=_completeness(words),
        structure="high" if "##" in text else ("medium" if text else "low"),
        density="high" if lines and words / len(lines) > 10 else ("medium" if text else "low"),
    )


def render_page_html(page: PageRecord) -> str:
    """Render the page's Markdown to HTML; empty for failed pages."""
    if page.error is not None or not page.raw_markdown.strip():
        return ""
    return markdown.markdown(page.raw_markdown, extensions=_MARKDOWN_EXTENSIONS)
