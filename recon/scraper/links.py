"""Same-site link discovery for crawl expansion."""

from __future__ import annotations

from typing import List
from urllib.parse import urldefrag, urljoin, urlparse

from bs4 import BeautifulSoup

# Second-level labels that sit under a two-letter country code as part of the
# public suffix, e.g. ``bbc.co.uk`` or ``example.com.au``.
_GENERIC_SECOND_LEVEL = {"com", "co", "net", "org", "gov", "edu", "ac"}


def registrable_domain(host: str) -> str:
    """Return the heuristic "main domain" of *host*.

    Takes the last two labels, or the last three when the host ends in a
    generic second-level label under a two-letter country code.  Multi-part
    public suffixes outside that pattern (``github.io``, ``*.k12.us``) are
    not handled; this is a known limitation rather than a public-suffix list.
    """
    labels = [label for label in host.lower().strip(".").split(".") if label]
    if len(labels) <= 2:
        return ".".join(labels)
    if len(labels[-1]) == 2 and labels[-2] in _GENERIC_SECOND_LEVEL:
        return ".".join(labels[-3:])
    return ".".join(labels[-2:])


def _domain_of(url: str) -> str:
    return registrable_domain(urlparse(url).hostname or "")


def extract_links(html: str, base_url: str, limit: int) -> List[str]:
    """Return up to *limit* same-site links found in *html*.

    Every ``<a href>`` is resolved against *base_url* and stripped of its
    fragment.  Non-http(s) links, links to another registrable domain and
    links back to *base_url* itself are dropped, as are hrefs that cannot
    be parsed as URLs.  The result has no duplicates and keeps first-seen
    order.
    """
    if limit <= 0 or not html:
        return []

    try:
        base, _ = urldefrag(base_url)
        base_domain = _domain_of(base)
    except ValueError:
        return []
    if not base_domain:
        return []

    soup = BeautifulSoup(html, "html.parser")
    seen: set[str] = set()
    links: List[str] = []

    for anchor in soup.find_all("a", href=True):
        try:
            absolute, _ = urldefrag(urljoin(base, anchor["href"].strip()))
            if urlparse(absolute).scheme not in ("http", "https"):
                continue
            domain = _domain_of(absolute)
        except ValueError:
            # Unparseable href, e.g. an unterminated IPv6 host.
            continue
        if absolute == base or absolute in seen:
            continue
        if domain != base_domain:
            continue
        seen.add(absolute)
        links.append(absolute)
        if len(links) >= limit:
            break

    return links
