"""Shared test doubles.

``FakeLLM`` and ``FakeScrapeClient`` stand in for the two network clients so
pipeline logic can be tested without HTTP.  The HTTP clients themselves are
covered with ``respx`` in ``test_fetcher.py`` and ``test_llm.py``.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import pytest

from recon.config import Settings
from recon.scraper.models import PageRecord


class FakeLLM:
    """Returns canned replies in order and records every call."""

    def __init__(self, *replies: str) -> None:
        self.replies = list(replies)
        self.calls: List[dict] = []

    def complete(self, messages, *, json_mode=False, temperature=None) -> str:
        self.calls.append(
            {"messages": messages, "json_mode": json_mode, "temperature": temperature}
        )
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeScrapeClient:
    """Serves ``PageRecord`` objects from a URL → record table."""

    def __init__(self, pages: Dict[str, PageRecord]) -> None:
        self.pages = pages
        self.batches: List[List[str]] = []
        self.formats: List[Optional[Sequence[str]]] = []

    def _lookup(self, url: str) -> PageRecord:
        return self.pages.get(url) or PageRecord.failed(url, "not found (status 404)")

    def fetch_one(self, url, formats=None) -> PageRecord:
        self.batches.append([url])
        self.formats.append(formats)
        return self._lookup(url)

    def fetch_batch(self, urls, formats=None) -> List[PageRecord]:
        self.batches.append(list(urls))
        self.formats.append(formats)
        return [self._lookup(u) for u in urls]

    def fetch(self, urls, formats=None) -> List[PageRecord]:
        if len(urls) == 1:
            return [self.fetch_one(urls[0], formats)]
        return self.fetch_batch(urls, formats)


class FakeClock:
    """Monotonic clock advanced only by ``sleep``."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def page(url: str, markdown: str = "", title: str = "", html: str = "") -> PageRecord:
    return PageRecord(url=url, title=title or url, raw_markdown=markdown, raw_html=html)


@pytest.fixture
def config() -> Settings:
    """Fully configured settings, independent of the environment."""
    return Settings(
        scrape_api_base="https://scrape.test",
        scrape_api_key="scrape-key",
        scrape_timeout=45.0,
        batch_poll_interval=5.0,
        batch_max_wait=120.0,
        llm_api="https://llm.test/v1/chat/completions",
        llm_api_key="llm-key",
        llm_api_model="test-model",
        llm_timeout=120.0,
        crawl_limit_per_site=5,
        source_char_limit=10_000,
        context_window_tokens=32_000,
        prompt_overhead_tokens=2_000,
        chars_per_token=3,
        report_language="English",
    )
