"""Turn fetched pages into one cited Markdown report.

Source numbering is shared with the citation resolver: source N is the Nth
page (in fetch order) that carries content, see :func:`usable_pages`.
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional, Sequence

from recon.agent.llm import LLMClient
from recon.agent.prompts import SYNTHESIS_SYSTEM, source_block, synthesis_prompt
from recon.errors import ValidationError
from recon.scraper.models import PageRecord

SOURCE_CHAR_LIMIT = 10_000
TRUNCATION_MARKER = "\n\n[... content truncated ...]"


def usable_pages(pages: Sequence[PageRecord]) -> List[PageRecord]:
    """Pages that can be cited, in order; index ``i`` is source ``i + 1``."""
    return [p for p in pages if p.has_content]


def build_source_document(
    pages: Sequence[PageRecord], per_source_limit: int = SOURCE_CHAR_LIMIT
) -> str:
    """Join every usable page into numbered, delimited source blocks.

    Each page's Markdown is cut to *per_source_limit* characters, with a
    truncation marker appended when it was longer.
    """
    blocks: List[str] = []
    for index, page in enumerate(usable_pages(pages), start=1):
        content = page.raw_markdown.strip()
        if len(content) > per_source_limit:
            content = content[:per_source_limit] + TRUNCATION_MARKER
        blocks.append(source_block(index, page.url, content))
    return "\n\n".join(blocks)


def context_char_budget(
    context_window_tokens: int, prompt_overhead_tokens: int, chars_per_token: int
) -> int:
    """Characters of source text that fit in the model's context window."""
    return max(context_window_tokens - prompt_overhead_tokens, 0) * chars_per_token


def truncate_to_budget(text: str, max_chars: int) -> str:
    """Cut the combined document once, at *max_chars*, if it is too long."""
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + TRUNCATION_MARKER


def synthesize(
    llm: LLMClient,
    goal: str,
    pages: Sequence[PageRecord],
    *,
    language: str = "English",
    per_source_limit: int = SOURCE_CHAR_LIMIT,
    max_chars: Optional[int] = None,
    today: Optional[date] = None,
) -> str:
    """Ask the model for a Markdown report on *goal* citing ``[source N]``.

    Args:
        llm: Chat completion client.
        goal: The user's research goal.
        pages: Fetched pages; error records and empty pages are skipped.
        language: Language the report must be written in.
        per_source_limit: Character ceiling applied to each source.
        max_chars: Ceiling for the whole combined document, normally from
            :func:`context_char_budget`.  ``None`` disables it.
        today: Date given to the model; defaults to today.

    Returns:
        The raw report Markdown, still containing source markers.

    Raises:
        ValidationError: If no page has usable content.
        LLMError: If the request fails or returns nothing.
    """
    sources = usable_pages(pages)
    if not sources:
        raise ValidationError("No fetched page has content to synthesise a report from.")

    document = build_source_document(sources, per_source_limit)
    if max_chars is not None:
        document = truncate_to_budget(document, max_chars)

    prompt = synthesis_prompt(goal, document, len(sources), language, today or date.today())
    return llm.complete(
        [
            {"role": "system", "content": SYNTHESIS_SYSTEM},
            {"role": "user", "content": prompt},
        ]
    )
