"""Tests for the Markdown export of fetched pages."""

from __future__ import annotations

from recon.scraper.export import groups_to_markdown, pages_to_markdown
from recon.scraper.models import CrawlGroup, PageRecord


def test_pages_to_markdown_sections():
    text = pages_to_markdown(
        [
            PageRecord(url="https://a.com", title="Alpha", raw_markdown="Body A"),
            PageRecord.failed("https://b.com", "timeout"),
        ]
    )

    assert text.startswith("## Alpha\n\nSource: <https://a.com>\n\nBody A")
    assert "## https://b.com" in text
    assert "> Fetch failed: timeout" in text
    assert text.count("\n---\n") == 1


def test_groups_to_markdown_nests_pages():
    group = CrawlGroup(
        "https://a.com",
        [
            PageRecord(url="https://a.com", title="Home", raw_markdown="home"),
            PageRecord(url="https://a.com/x", title="X", raw_markdown=""),
        ],
    )
    text = groups_to_markdown([group])

    assert text.startswith("## Crawl: https://a.com")
    assert "### Home" in text
    assert "_(no content)_" in text
