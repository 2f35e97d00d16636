"""Tests for same-site link discovery and the registrable-domain heuristic."""

from __future__ import annotations

import pytest

from recon.scraper.links import extract_links, registrable_domain

_BASE = "https://example.com/docs/"

_HTML = """\
<html><body>
  <a href="/a">relative</a>
  <a href="guide">sibling</a>
  <a href="https://www.example.com/b#section">other subdomain with fragment</a>
  <a href="https://example.com/a#again">duplicate after fragment strip</a>
  <a href="https://other.org/x">cross-domain</a>
  <a href="mailto:team@example.com">mail</a>
  <a href="javascript:void(0)">js</a>
  <a href="#top">self fragment</a>
  <a href="https://example.com/docs/">self</a>
  <a>no href</a>
</body></html>
"""


class TestRegistrableDomain:
    @pytest.mark.parametrize(
        "host, expected",
        [
            ("example.com", "example.com"),
            ("www.example.com", "example.com"),
            ("a.b.example.com", "example.com"),
            ("www.bbc.co.uk", "bbc.co.uk"),
            ("shop.example.com.au", "example.com.au"),
            ("cs.ox.ac.uk", "ox.ac.uk"),
            ("www.example.de", "example.de"),
            ("WWW.Example.COM", "example.com"),
            ("localhost", "localhost"),
        ],
    )
    def test_heuristic(self, host: str, expected: str) -> None:
        assert registrable_domain(host) == expected

    def test_known_limitation_for_other_multi_part_suffixes(self) -> None:
        # github.io is a public suffix, but the heuristic treats it as a domain.
        assert registrable_domain("alice.github.io") == "github.io"


class TestExtractLinks:
    def test_resolves_filters_and_dedupes_in_order(self) -> None:
        assert extract_links(_HTML, _BASE, 10) == [
            "https://example.com/a",
            "https://example.com/docs/guide",
            "https://www.example.com/b",
        ]

    def test_every_link_shares_the_base_domain(self) -> None:
        for link in extract_links(_HTML, _BASE, 10):
            assert registrable_domain(link.split("/")[2]) == "example.com"
            assert "#" not in link
            assert link != _BASE

    def test_limit_caps_result(self) -> None:
        assert extract_links(_HTML, _BASE, 2) == [
            "https://example.com/a",
            "https://example.com/docs/guide",
        ]

    def test_zero_limit_returns_nothing(self) -> None:
        assert extract_links(_HTML, _BASE, 0) == []

    def test_empty_html_returns_nothing(self) -> None:
        assert extract_links("", _BASE, 5) == []

    def test_base_fragment_is_ignored(self) -> None:
        html = '<a href="https://example.com/docs/">self</a><a href="/x">x</a>'
        assert extract_links(html, "https://example.com/docs/#intro", 5) == [
            "https://example.com/x"
        ]

    def test_malformed_href_is_skipped(self) -> None:
        html = '<a href="http://[broken">bad</a><a href="/ok">ok</a><a href="//[::1/x">bad</a>'
        assert extract_links(html, "https://example.com/", 5) == ["https://example.com/ok"]

    def test_malformed_base_returns_nothing(self) -> None:
        assert extract_links('<a href="/ok">ok</a>', "http://[broken", 5) == []
