"""Scraper package: scrape-service client, link discovery, crawl expansion
and per-page analysis."""

from recon.scraper.analysis import PageStats, page_stats, render_page_html
from recon.scraper.crawler import expand
from recon.scraper.fetcher import ScrapeClient, validate_url
from recon.scraper.links import extract_links, registrable_domain
from recon.scraper.models import CrawlGroup, PageRecord

__all__ = [
    "ScrapeClient",
    "validate_url",
    "extract_links",
    "registrable_domain",
    "expand",
    "PageRecord",
    "CrawlGroup",
    "PageStats",
    "page_stats",
    "render_page_html",
]
