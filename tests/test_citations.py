"""Tests for citation resolution and report post-processing."""

from __future__ import annotations

from conftest import FakeLLM, page
from recon.agent.citations import (
    resolve_citations,
    strip_code_fence,
    strip_reference_section,
)
from recon.agent.synthesiser import synthesize
from recon.scraper.models import PageRecord

_A = "https://a.example.com/report"
_B = "https://b.example.org/news"


def _pages() -> list[PageRecord]:
    return [page(_A, "Alpha", title="Alpha Report"), page(_B, "Beta", title="Beta News")]


class TestResolveCitations:
    def test_synthesised_marker_links_first_source(self) -> None:
        pages = _pages()
        raw = synthesize(FakeLLM("Kafka is a log [source 1]."), "Kafka", pages)
        report = resolve_citations(raw, pages)

        assert report.source_map == {1: _A}
        assert report.html.count("<a ") == 1
        assert f'href="{_A}"' in report.html
        assert "[source 1]" not in report.html

    def test_multi_index_marker(self) -> None:
        report = resolve_citations("Both agree [source 1, 2].", _pages())
        assert report.source_map == {1: _A, 2: _B}
        assert report.html.count('class="citation"') == 2

    def test_out_of_range_marker_left_literal(self) -> None:
        report = resolve_citations("Claim [source 7] and [source 0].", _pages())
        assert report.source_map == {}
        assert "[source 7]" in report.markdown
        assert "[source 0]" in report.markdown

    def test_sources_indexed_over_usable_pages_only(self) -> None:
        pages = [PageRecord.failed("https://down.com", "boom"), *_pages()]
        report = resolve_citations("See [source 1].", pages)
        assert report.source_map == {1: _A}

    def test_source_map_only_holds_cited_indexes(self) -> None:
        report = resolve_citations("Only B [source 2].", _pages())
        assert report.source_map == {2: _B}

    def test_appendix_lists_cited_sources(self) -> None:
        report = resolve_citations("A [source 1]. B [source 2].", _pages())
        assert '<li value="1">' in report.appendix_html
        assert "Beta News" in report.appendix_html
        assert report.appendix_html not in report.html

    def test_no_citations_gives_empty_appendix(self) -> None:
        report = resolve_citations("Nothing cited.", _pages())
        assert report.source_map == {}
        assert report.appendix_html == ""

    def test_rendering_twice_is_stable(self) -> None:
        first = resolve_citations("# Title\n\nA [source 1]. B [source 2].", _pages())
        second = resolve_citations(first.markdown, _pages())

        assert second.source_map == first.source_map
        assert second.markdown == first.markdown

    def test_marker_in_code_span_stays_literal(self) -> None:
        report = resolve_citations("Use `[source 1]` literally.", _pages())

        assert report.source_map == {}
        assert "<code>[source 1]</code>" in report.html
        assert 'class="citation"' not in report.html
        assert report.appendix_html == ""

    def test_marker_in_fenced_block_stays_literal(self) -> None:
        text = "See the log [source 2].\n\n```\nprint [source 1]\n```\n"
        report = resolve_citations(text, _pages())

        assert report.source_map == {2: _B}
        assert "print [source 1]" in report.html
        assert report.html.count('class="citation"') == 1

    def test_synthesis_and_resolution_print_nothing(self, capsys) -> None:
        pages = _pages()
        resolve_citations(synthesize(FakeLLM("A [source 1]."), "Kafka", pages), pages)
        assert capsys.readouterr().out == ""

    def test_markdown_rendered_to_html(self) -> None:
        report = resolve_citations("## Findings\n\n- one [source 1]\n- two", _pages())
        assert "<h2>Findings</h2>" in report.html
        assert "<li>" in report.html


class TestCleanup:
    def test_whole_report_fence_removed(self) -> None:
        assert strip_code_fence("```markdown\n# Title\nBody\n```") == "# Title\nBody"

    def test_inner_fence_kept(self) -> None:
        text = "Intro\n\n```python\nprint(1)\n```\n"
        assert strip_code_fence(text) == text

    def test_trailing_references_heading_removed(self) -> None:
        text = "# Report\n\nBody [source 1].\n\n## References\n\n1. https://a.com\n"
        assert strip_reference_section(text) == "# Report\n\nBody [source 1].\n"

    def test_bold_sources_label_removed(self) -> None:
        text = "Body.\n\n**Sources:**\n- [1] https://a.com\n"
        assert strip_reference_section(text) == "Body.\n"

    def test_references_heading_followed_by_more_sections_kept(self) -> None:
        text = "## Sources\n\nWhere data came from.\n\n## Conclusion\n\nDone.\n"
        assert strip_reference_section(text) == text

    def test_trailing_source_list_after_rule_removed(self) -> None:
        text = "Body.\n\n---\n\n[1] https://a.com\n[2] https://b.com\n"
        assert strip_reference_section(text) == "Body.\n"

    def test_model_references_never_reach_html(self) -> None:
        raw = "Body [source 1].\n\n## References\n\n- https://leak.example\n"
        report = resolve_citations(raw, _pages())
        assert "leak.example" not in report.html
