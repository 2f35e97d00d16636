"""Data models for the scrape pipeline.

``PageRecord`` and ``CrawlGroup`` are what the rest of the system consumes.
The pydantic models below them describe the scrape service's wire format;
responses are validated against them at the boundary so nothing loosely
typed travels further in.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class PageRecord:
    """A single fetched page, or the reason it could not be fetched.

    ``error`` is set in place of content, never alongside it.
    """

    url: str
    title: str = ""
    description: str = ""
    language: str = ""
    raw_markdown: str = ""
    raw_html: str = ""
    error: Optional[str] = None

    @classmethod
    def failed(cls, url: str, error: str) -> "PageRecord":
        return cls(url=url, error=error)

    @property
    def has_content(self) -> bool:
        """``True`` when the page was fetched and carries Markdown."""
        return self.error is None and bool(self.raw_markdown.strip())


@dataclass
class CrawlGroup:
    """A seed page followed by the same-site pages discovered from it."""

    starting_url: str
    pages: List[PageRecord] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Scrape service wire format
# ---------------------------------------------------------------------------

class _Wire(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ScrapeMetadata(_Wire):
    title: Optional[str] = None
    description: Optional[str] = None
    language: Optional[str] = None
    source_url: Optional[str] = Field(default=None, alias="sourceURL")
    url: Optional[str] = None
    status_code: Optional[int] = Field(default=None, alias="statusCode")
    error: Optional[str] = None


class ScrapeDocument(_Wire):
    markdown: Optional[str] = None
    html: Optional[str] = None
    raw_html: Optional[str] = Field(default=None, alias="rawHtml")
    title: Optional[str] = None
    metadata: ScrapeMetadata = Field(default_factory=ScrapeMetadata)


class ScrapeResponse(_Wire):
    success: bool
    data: Optional[ScrapeDocument] = None
    error: Optional[str] = None


class BatchSubmitResponse(_Wire):
    success: bool
    id: Optional[str] = None
    error: Optional[str] = None


class BatchStatusResponse(_Wire):
    status: str
    data: List[ScrapeDocument] = Field(default_factory=list)
