"""LangGraph node functions for the auto-analysis pipeline.

Each public symbol is a *factory* that captures the run's collaborators
(LLM client, scrape client, options) and returns a callable
``(PipelineState) -> dict`` suitable for use as a LangGraph node.  Using
closures keeps clients out of the state bag, and every run builds its own.

Public factories
----------------
``make_planner``     — asks the LLM for a crawl/scrape plan.
``make_fetcher``     — crawls or batch-scrapes the planned URLs.
``make_synthesiser`` — writes the cited report via LLM.
``make_citer``       — links source markers and renders HTML.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Callable, Optional

from recon.agent.citations import resolve_citations
from recon.agent.llm import LLMClient
from recon.agent.planner import plan
from recon.agent.state import PipelineState
from recon.agent.synthesiser import synthesize
from recon.scraper.crawler import expand
from recon.scraper.fetcher import ScrapeClient

Node = Callable[[PipelineState], dict]


def make_planner(llm: LLMClient, today: Optional[date] = None) -> Node:
    """Return a *planner* node function."""

    def planner(state: PipelineState) -> dict:
        print(f"[PLANNING] Planning goal: {state['goal']!r} …")
        decided = plan(llm, state["goal"], today)
        print(f"[PLANNING] Mode={decided.mode}  URLs={decided.urls}")
        return {"plan": decided, "mode": decided.mode, "status": "fetching"}

    return planner


def make_fetcher(client: ScrapeClient, limit_per_site: int) -> Node:
    """Return a *fetcher* node function.

    ``crawl`` plans are expanded one level deep and flattened in group order
    so source numbering follows fetch order; ``scrape`` plans are fetched
    as-is.
    """

    def fetcher(state: PipelineState) -> dict:
        decided = state["plan"]
        if decided.mode == "crawl":
            groups = expand(client, decided.urls, limit_per_site)
            pages = [page for group in groups for page in group.pages]
        else:
            print(f"[FETCHING] Scraping {len(decided.urls)} URL(s) …")
            groups = []
            pages = client.fetch(decided.urls)

        failed = sum(1 for p in pages if p.error)
        print(f"[FETCHING] {len(pages)} page(s) fetched, {failed} failed.")
        return {"pages": pages, "groups": groups, "status": "synthesising"}

    return fetcher


def make_synthesiser(llm: LLMClient, **options: Any) -> Node:
    """Return a *synthesiser* node function.

    *options* are passed through to :func:`recon.agent.synthesiser.synthesize`
    (``language``, ``per_source_limit``, ``max_chars``, ``today``).
    """

    def synthesiser(state: PipelineState) -> dict:
        usable = sum(1 for p in state.get("pages", []) if p.has_content)
        print(f"[SYNTHESISING] Writing report from {usable} source(s) …")
        raw = synthesize(llm, state["goal"], state.get("pages", []), **options)
        print(f"[SYNTHESISING] Report written ({len(raw)} chars).")
        return {"raw_report": raw, "status": "citing"}

    return synthesiser


def make_citer() -> Node:
    """Return a *citer* node function."""

    def citer(state: PipelineState) -> dict:
        report = resolve_citations(state.get("raw_report", ""), state.get("pages", []))
        print(f"[CITING] Resolved {len(report.source_map)} cited source(s).")
        return {"report": report, "status": "done"}

    return citer
