"""Pipeline controller and the entry points the display layer calls.

Entry points (``plan_goal``, ``fetch_pages``, ``crawl``,
``synthesize_report``, ``resolve_citations``, ``ask``) do one step each and
raise :class:`~recon.errors.ReconError` subclasses on failure.

Orchestrations (``run_auto``, ``run_manual``) chain the steps and are the
last place errors are caught: they never raise a ``ReconError`` and instead
return an :class:`AnalysisResult` whose ``error`` holds one final message.
Nothing is retried.

Every call builds its own clients from the given ``Settings`` (the module
singleton by default), so concurrent runs share no mutable state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, List, Optional, Sequence

from recon.agent.citations import CitedReport, resolve_citations
from recon.agent.graph import build_graph
from recon.agent.llm import LLMClient
from recon.agent.planner import Plan, plan
from recon.agent.qa import answer_question
from recon.agent.state import PipelineState
from recon.agent.synthesiser import context_char_budget, synthesize
from recon.config import Settings, settings
from recon.errors import ReconError, ValidationError
from recon.scraper.crawler import expand
from recon.scraper.fetcher import ScrapeClient
from recon.scraper.models import CrawlGroup, PageRecord

EventCallback = Callable[[str, dict], None]

__all__ = [
    "AnalysisResult",
    "plan_goal",
    "fetch_pages",
    "crawl",
    "synthesize_report",
    "resolve_citations",
    "ask",
    "run_auto",
    "run_manual",
]


@dataclass
class AnalysisResult:
    """Everything the display layer needs from one analysis run."""

    mode: str
    goal: Optional[str] = None
    plan: Optional[Plan] = None
    pages: List[PageRecord] = field(default_factory=list)
    groups: List[CrawlGroup] = field(default_factory=list)
    raw_report: str = ""
    report: Optional[CitedReport] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _llm(config: Optional[Settings], llm: Optional[LLMClient]) -> LLMClient:
    return llm or LLMClient.from_settings(config or settings)


def _client(config: Optional[Settings], client: Optional[ScrapeClient]) -> ScrapeClient:
    return client or ScrapeClient.from_settings(config or settings)


def _synthesis_options(config: Settings) -> dict[str, Any]:
    return {
        "language": config.report_language,
        "per_source_limit": config.source_char_limit,
        "max_chars": context_char_budget(
            config.context_window_tokens,
            config.prompt_overhead_tokens,
            config.chars_per_token,
        ),
    }


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def plan_goal(
    text: str, *, config: Optional[Settings] = None, llm: Optional[LLMClient] = None
) -> Plan:
    """Ask the LLM for a crawl/scrape plan for *text*."""
    return plan(_llm(config, llm), text)


def fetch_pages(
    urls: Sequence[str],
    *,
    config: Optional[Settings] = None,
    client: Optional[ScrapeClient] = None,
) -> List[PageRecord]:
    """Scrape *urls* (single fetch for one URL, batch job otherwise)."""
    if not urls:
        raise ValidationError("At least one URL is required.")
    return _client(config, client).fetch(list(urls))


def crawl(
    seed_urls: Sequence[str],
    limit_per_site: Optional[int] = None,
    *,
    config: Optional[Settings] = None,
    client: Optional[ScrapeClient] = None,
) -> List[CrawlGroup]:
    """Crawl *seed_urls* one level deep, grouped by seed."""
    if not seed_urls:
        raise ValidationError("At least one seed URL is required.")
    config = config or settings
    limit = config.crawl_limit_per_site if limit_per_site is None else limit_per_site
    return expand(_client(config, client), list(seed_urls), limit)


def synthesize_report(
    goal: str,
    pages: Sequence[PageRecord],
    *,
    config: Optional[Settings] = None,
    llm: Optional[LLMClient] = None,
) -> str:
    """Write a raw, marker-cited Markdown report on *goal* from *pages*."""
    config = config or settings
    return synthesize(_llm(config, llm), goal, pages, **_synthesis_options(config))


def ask(
    markdown: str,
    question: str,
    *,
    config: Optional[Settings] = None,
    llm: Optional[LLMClient] = None,
) -> str:
    """Answer a follow-up *question* about scraped *markdown*."""
    return answer_question(_llm(config, llm), markdown, question)


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------

def run_auto(
    goal: str,
    *,
    config: Optional[Settings] = None,
    llm: Optional[LLMClient] = None,
    client: Optional[ScrapeClient] = None,
    limit_per_site: Optional[int] = None,
    today: Optional[date] = None,
    on_event: Optional[EventCallback] = None,
) -> AnalysisResult:
    """Plan, fetch, synthesise and cite a report for *goal*.

    Args:
        goal: Free-text research goal.
        config: Settings to build clients from; the module singleton if ``None``.
        llm: Pre-built LLM client (tests, custom transports).
        client: Pre-built scrape client.
        limit_per_site: Links followed per seed in crawl mode.
        today: Date given to the prompts.
        on_event: Called as ``on_event(node_name, update)`` after each graph
            node finishes, for live progress displays.

    Returns:
        An :class:`AnalysisResult`; ``error`` is set if any step failed, and
        holds whatever was produced before the failure.
    """
    config = config or settings
    result = AnalysisResult(mode="auto", goal=goal)
    state: PipelineState = {"goal": goal, "status": "planning"}

    try:
        graph = build_graph(
            _llm(config, llm),
            _client(config, client),
            config.crawl_limit_per_site if limit_per_site is None else limit_per_site,
            today,
            **_synthesis_options(config),
        )
        for event in graph.stream(dict(state), stream_mode="updates"):
            for node_name, update in event.items():
                state.update(update or {})
                if on_event is not None:
                    on_event(node_name, update or {})
    except ReconError as exc:
        print(f"[ERROR] {exc}")
        result.error = str(exc)

    result.plan = state.get("plan")
    if result.plan is not None:
        result.mode = result.plan.mode
    result.pages = state.get("pages", [])
    result.groups = state.get("groups", [])
    result.raw_report = state.get("raw_report", "")
    result.report = state.get("report")
    if result.ok:
        print(f"[DONE] Report ready with {len(result.pages)} page(s).")
    return result


def run_manual(
    urls: Sequence[str],
    mode: str = "scrape",
    limit_per_site: Optional[int] = None,
    *,
    config: Optional[Settings] = None,
    client: Optional[ScrapeClient] = None,
) -> AnalysisResult:
    """Scrape or crawl user-supplied *urls*; no LLM involved."""
    result = AnalysisResult(mode=mode)
    try:
        if mode == "crawl":
            result.groups = crawl(urls, limit_per_site, config=config, client=client)
            result.pages = [p for g in result.groups for p in g.pages]
        elif mode == "scrape":
            result.pages = fetch_pages(urls, config=config, client=client)
        else:
            raise ValidationError(f"Unknown mode {mode!r}; use 'scrape' or 'crawl'.", value=mode)
    except ReconError as exc:
        print(f"[ERROR] {exc}")
        result.error = str(exc)
    return result
