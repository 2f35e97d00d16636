"""Markdown export of fetched pages, for download or ``--output`` files."""

from __future__ import annotations

from typing import Iterable, List

from recon.scraper.models import CrawlGroup, PageRecord


def _page_section(page: PageRecord, level: int) -> str:
    heading = "#" * level
    lines = [f"{heading} {page.title or page.url}", "", f"Source: <{page.url}>", ""]
    if page.error:
        lines.append(f"> Fetch failed: {page.error}")
    else:
        lines.append(page.raw_markdown.strip() or "_(no content)_")
    return "\n".join(lines)


def pages_to_markdown(pages: Iterable[PageRecord]) -> str:
    """Concatenate *pages* into one Markdown document, one section each."""
    return "\n\n---\n\n".join(_page_section(p, 2) for p in pages) + "\n"


def groups_to_markdown(groups: Iterable[CrawlGroup]) -> str:
    """Render crawl groups, one top-level section per starting URL."""
    parts: List[str] = []
    for group in groups:
        sections = "\n\n".join(_page_section(p, 3) for p in group.pages)
        parts.append(f"## Crawl: {group.starting_url}\n\n{sections}")
    return "\n\n---\n\n".join(parts) + "\n"
