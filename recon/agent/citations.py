"""Post-processing of a synthesised report.

Steps, in order:

1. unwrap a code fence the model put around the whole report;
2. drop a references / sources section the model appended anyway;
3. turn ``[source N]`` markers into links to the Nth usable page;
4. render the result to HTML and build a list of cited sources.

Markers whose index has no matching page are left as literal text.
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

import markdown

from recon.agent.synthesiser import usable_pages
from recon.scraper.models import PageRecord

_WHOLE_FENCE_RE = re.compile(
    r"^\s*```(?:markdown|md)?[ \t]*\n(.*)\n[ \t]*```\s*$", re.DOTALL | re.IGNORECASE
)
_REFERENCES_HEADING_RE = re.compile(
    r"^[ \t]{0,3}(?:#{1,6}[ \t]*|\*\*)"
    r"(?:references?|sources?|source list|bibliography|works cited|citations|"
    r"参考资料|参考文献|引用来源|来源)"
    r"[ \t]*:?[ \t]*(?:\*\*)?[ \t]*:?[ \t]*$",
    re.IGNORECASE | re.MULTILINE,
)
_ANY_HEADING_RE = re.compile(r"^[ \t]{0,3}#{1,6}\s", re.MULTILINE)
_RULE_RE = re.compile(r"^[ \t]{0,3}(?:-{3,}|\*{3,}|_{3,})[ \t]*$", re.MULTILINE)
_SOURCE_DEFINITION_RE = re.compile(
    r"^\s*(?:[-*+]|\d+[.)])?\s*(?:\[(?:source\s*)?\d+\]|\[\^\d+\]|source\s+\d+\s*:)"
    r"|^\s*\d+[.)]\s+.*https?://",
    re.IGNORECASE,
)
_MARKER_RE = re.compile(
    r"\[\s*sources?\s+(\d+(?:\s*(?:,|;|and)\s*(?:sources?\s+)?\d+)*)\s*\]",
    re.IGNORECASE,
)
_CODE_RE = re.compile(
    r"^[ \t]{0,3}(`{3,}|~{3,})[^\n]*\n.*?^[ \t]{0,3}\1[ \t]*$|`[^`\n]+`",
    re.DOTALL | re.MULTILINE,
)
_CITATION_ANCHOR_RE = re.compile(r'<a class="citation" data-source="(\d+)"')

_MARKDOWN_EXTENSIONS = ["extra", "sane_lists"]


@dataclass
class CitedReport:
    """A report ready for display.

    ``source_map`` only holds indexes that appear as links in ``html``.
    """

    markdown: str
    html: str
    source_map: Dict[int, str] = field(default_factory=dict)
    appendix_html: str = ""


def strip_code_fence(text: str) -> str:
    match = _WHOLE_FENCE_RE.match(text)
    return match.group(1) if match else text


def strip_reference_section(text: str) -> str:
    """Remove a trailing, model-written reference list if there is one."""
    headings = list(_REFERENCES_HEADING_RE.finditer(text))
    if headings:
        last = headings[-1]
        if not _ANY_HEADING_RE.search(text, last.end()):
            return text[: last.start()].rstrip() + "\n"

    rules = list(_RULE_RE.finditer(text))
    if rules:
        last = rules[-1]
        tail = [line for line in text[last.end():].splitlines() if line.strip()]
        if tail and all(_SOURCE_DEFINITION_RE.match(line) for line in tail):
            return text[: last.start()].rstrip() + "\n"

    return text


def _citation_anchor(index: int, url: str) -> str:
    return (
        f'<a class="citation" data-source="{index}" href="{html.escape(url, quote=True)}" '
        f'target="_blank" rel="noopener noreferrer">[{index}]</a>'
    )


def link_markers(text: str, sources: Sequence[PageRecord]) -> str:
    """Replace every resolvable ``[source N]`` marker with a citation link.

    Markers inside code spans and fenced code blocks are left untouched,
    since Markdown would render a link there as escaped text.
    """

    def _replace(match: re.Match) -> str:
        parts: List[str] = []
        for number in re.findall(r"\d+", match.group(1)):
            index = int(number)
            if 1 <= index <= len(sources) and sources[index - 1].url:
                parts.append(_citation_anchor(index, sources[index - 1].url))
            else:
                parts.append(f"[source {index}]")
        return "".join(parts)

    pieces: List[str] = []
    position = 0
    for code in _CODE_RE.finditer(text):
        pieces.append(_MARKER_RE.sub(_replace, text[position:code.start()]))
        pieces.append(code.group(0))
        position = code.end()
    pieces.append(_MARKER_RE.sub(_replace, text[position:]))
    return "".join(pieces)


def build_appendix(source_map: Dict[int, str], sources: Sequence[PageRecord]) -> str:
    """HTML list of the cited sources, numbered by source index."""
    if not source_map:
        return ""
    items = []
    for index in sorted(source_map):
        url = html.escape(source_map[index], quote=True)
        title = html.escape(sources[index - 1].title or source_map[index])
        items.append(
            f'<li value="{index}"><a href="{url}" target="_blank" '
            f'rel="noopener noreferrer">{title}</a></li>'
        )
    return '<section class="sources"><h2>Sources</h2><ol>' + "".join(items) + "</ol></section>"


def resolve_citations(report_markdown: str, pages: Sequence[PageRecord]) -> CitedReport:
    """Link source markers in *report_markdown* to the pages they refer to.

    Args:
        report_markdown: Raw report from the synthesiser.
        pages: The pages the report was synthesised from, in fetch order.

    Returns:
        A :class:`CitedReport`.  Running this again on its ``markdown``
        yields the same ``source_map``.
    """
    sources = usable_pages(pages)

    text = strip_code_fence(report_markdown.strip())
    text = strip_reference_section(text)
    text = link_markers(text, sources)

    rendered = markdown.markdown(text, extensions=_MARKDOWN_EXTENSIONS)

    # Read the map back from the HTML so it holds only links that survived
    # rendering.
    source_map: Dict[int, str] = {}
    for match in _CITATION_ANCHOR_RE.finditer(rendered):
        index = int(match.group(1))
        if 1 <= index <= len(sources):
            source_map[index] = sources[index - 1].url

    return CitedReport(
        markdown=text,
        html=rendered,
        source_map=source_map,
        appendix_html=build_appendix(source_map, sources),
    )
