"""Client-side crawl expansion.

Two batch passes over the scrape service:

1. fetch the seed pages (with HTML, needed for link discovery);
2. fetch every same-site link discovered from them.

Results are regrouped so each seed's :class:`CrawlGroup` holds the seed page
followed by the pages discovered from it.
"""

from __future__ import annotations

from typing import Dict, List, Sequence

from recon.scraper.fetcher import ScrapeClient
from recon.scraper.links import extract_links
from recon.scraper.models import CrawlGroup, PageRecord

CRAWL_FORMATS = ("markdown", "html")


def _by_url(records: Sequence[PageRecord]) -> Dict[str, PageRecord]:
    index: Dict[str, PageRecord] = {}
    for record in records:
        index.setdefault(record.url, record)
    return index


def discover_links(
    seeds: Sequence[PageRecord], seed_urls: Sequence[str], limit_per_site: int
) -> Dict[str, str]:
    """Map each newly discovered link to the seed URL that found it first.

    Seeds are processed in order, so a link reachable from several seeds is
    credited to the earliest one.  Failed seeds and seeds without HTML are
    skipped, as are links that are themselves seed URLs.
    """
    origins: Dict[str, str] = {}
    seed_set = set(seed_urls)
    records = _by_url(seeds)

    for seed_url in seed_urls:
        record = records.get(seed_url)
        if record is None or record.error or not record.raw_html:
            continue
        for link in extract_links(record.raw_html, seed_url, limit_per_site):
            if link in seed_set or link in origins:
                continue
            origins[link] = seed_url

    return origins


def expand(
    client: ScrapeClient, seed_urls: Sequence[str], limit_per_site: int
) -> List[CrawlGroup]:
    """Crawl *seed_urls* one level deep and group the results by seed.

    Args:
        client: Scrape service client used for both batch passes.
        seed_urls: Starting URLs, in the order their groups are returned.
        limit_per_site: Maximum number of links followed from each seed.

    Returns:
        One :class:`CrawlGroup` per seed URL.  Every discovered link shows up
        in its seed's group, as an error record if the second batch returned
        nothing for it.

    Raises:
        UpstreamError: If either batch job fails or times out.
    """
    seed_urls = list(dict.fromkeys(seed_urls))
    print(f"[CRAWLING] Fetching {len(seed_urls)} seed page(s) …")
    seeds = client.fetch_batch(seed_urls, formats=CRAWL_FORMATS)
    seed_records = _by_url(seeds)

    origins = discover_links(seeds, seed_urls, limit_per_site)
    print(f"[CRAWLING] Discovered {len(origins)} same-site link(s).")

    discovered: List[PageRecord] = []
    if origins:
        discovered = client.fetch_batch(list(origins), formats=CRAWL_FORMATS)

    groups: List[CrawlGroup] = []
    for seed_url in seed_urls:
        seed = seed_records.get(seed_url) or PageRecord.failed(
            seed_url, "No result returned for this URL."
        )
        groups.append(CrawlGroup(starting_url=seed_url, pages=[seed]))
    by_seed = {group.starting_url: group for group in groups}

    returned: set[str] = set()
    for record in discovered:
        origin = origins.get(record.url)
        if origin is None or record.url in returned:
            print(f"[CRAWLING] Dropping unexpected or duplicate result: {record.url}")
            continue
        returned.add(record.url)
        by_seed[origin].pages.append(record)

    for link, origin in origins.items():
        if link not in returned:
            by_seed[origin].pages.append(
                PageRecord.failed(link, "No result returned for this URL.")
            )

    return groups
