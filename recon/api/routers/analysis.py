"""Analysis endpoints: one per pipeline entry point, plus the auto run.

Routes
------
POST /analysis/plan         Body: {"goal": "..."}                    → Plan
POST /analysis/scrape       Body: {"urls": [...]}                    → pages
POST /analysis/crawl        Body: {"urls": [...], "limit_per_site"}  → groups
POST /analysis/synthesize   Body: {"goal": "...", "pages": [...]}    → raw report
POST /analysis/citations    Body: {"report": "...", "pages": [...]}  → cited report
POST /analysis/ask          Body: {"markdown": "...", "question"}    → answer
POST /analysis/auto         Body: {"goal": "..."}                    → SSE stream

SSE event format (``/analysis/auto``)
-------------------------------------
Each event is a JSON-encoded object on the ``data:`` line::

    data: {"event": "node", "node": "planner", "status": "fetching"}

    data: {"event": "done", "result": {...}}

    data: {"event": "error", "detail": "...", "result": {...}}
"""

from __future__ import annotations

import asyncio
import json
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict
from typing import Any, AsyncIterator, Optional

from fastapi import APIRouter
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from recon.agent.citations import CitedReport
from recon.agent.runner import (
    AnalysisResult,
    ask,
    crawl,
    fetch_pages,
    plan_goal,
    resolve_citations,
    run_auto,
    synthesize_report,
)
from recon.scraper.analysis import page_stats, render_page_html
from recon.scraper.models import CrawlGroup, PageRecord

router = APIRouter()

# Auto runs block on network I/O and batch polling; the thread limit keeps
# concurrent runs in check.
_executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="analysis")


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class PageModel(BaseModel):
    url: str
    title: str = ""
    description: str = ""
    language: str = ""
    raw_markdown: str = ""
    raw_html: str = ""
    error: Optional[str] = None

    def to_record(self) -> PageRecord:
        return PageRecord(**self.model_dump())


class GoalRequest(BaseModel):
    goal: str = Field(min_length=1)


class AutoRequest(GoalRequest):
    limit_per_site: Optional[int] = Field(default=None, ge=0)


class UrlsRequest(BaseModel):
    urls: list[str] = Field(min_length=1)


class CrawlRequest(UrlsRequest):
    limit_per_site: Optional[int] = Field(default=None, ge=0)


class SynthesizeRequest(BaseModel):
    goal: str = Field(min_length=1)
    pages: list[PageModel]


class CitationsRequest(BaseModel):
    report: str
    pages: list[PageModel]


class AskRequest(BaseModel):
    markdown: str
    question: str


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _report_dict(report: Optional[CitedReport]) -> Optional[dict[str, Any]]:
    if report is None:
        return None
    return {
        "markdown": report.markdown,
        "html": report.html,
        "source_map": {str(k): v for k, v in report.source_map.items()},
        "appendix_html": report.appendix_html,
    }


def _page_dict(page: PageRecord) -> dict[str, Any]:
    """A page plus its rendered HTML and content statistics."""
    return {
        **asdict(page),
        "html": render_page_html(page),
        "stats": asdict(page_stats(page)),
    }


def _group_dict(group: CrawlGroup) -> dict[str, Any]:
    return {
        "starting_url": group.starting_url,
        "pages": [_page_dict(p) for p in group.pages],
    }


def _result_dict(result: AnalysisResult) -> dict[str, Any]:
    return {
        "mode": result.mode,
        "goal": result.goal,
        "plan": result.plan.model_dump() if result.plan else None,
        "pages": [_page_dict(p) for p in result.pages],
        "groups": [_group_dict(g) for g in result.groups],
        "raw_report": result.raw_report,
        "report": _report_dict(result.report),
        "error": result.error,
    }


def _sse(payload: dict[str, Any]) -> str:
    """Format a payload dict as a single SSE ``data:`` line."""
    return f"data: {json.dumps(payload)}\n\n"


# ---------------------------------------------------------------------------
# Single-step endpoints
# ---------------------------------------------------------------------------

@router.post("/plan")
def plan_endpoint(body: GoalRequest) -> dict[str, Any]:
    """Ask the LLM planner for a crawl/scrape decision and target URLs."""
    return plan_goal(body.goal).model_dump()


@router.post("/scrape")
def scrape_endpoint(body: UrlsRequest) -> list[dict[str, Any]]:
    """Scrape the given URLs; failed URLs come back with ``error`` set.

    Each page carries its Markdown rendered as ``html`` and a ``stats`` object.
    """
    return [_page_dict(p) for p in fetch_pages(body.urls)]


@router.post("/crawl")
def crawl_endpoint(body: CrawlRequest) -> list[dict[str, Any]]:
    """Crawl each seed one level deep and return one group per seed."""
    return [_group_dict(g) for g in crawl(body.urls, body.limit_per_site)]


@router.post("/synthesize")
def synthesize_endpoint(body: SynthesizeRequest) -> dict[str, str]:
    """Write a raw report citing ``[source N]`` markers."""
    pages = [p.to_record() for p in body.pages]
    return {"report": synthesize_report(body.goal, pages)}


@router.post("/citations")
def citations_endpoint(body: CitationsRequest) -> dict[str, Any]:
    """Link source markers and render the report to HTML."""
    pages = [p.to_record() for p in body.pages]
    return _report_dict(resolve_citations(body.report, pages)) or {}


@router.post("/ask")
def ask_endpoint(body: AskRequest) -> dict[str, str]:
    """Answer a follow-up question about scraped Markdown."""
    return {"response": ask(body.markdown, body.question)}


# ---------------------------------------------------------------------------
# Auto pipeline (SSE)
# ---------------------------------------------------------------------------

def _run_pipeline(
    body: AutoRequest,
    queue: "asyncio.Queue[str | None]",
    loop: asyncio.AbstractEventLoop,
) -> None:
    """Run the auto pipeline and push SSE-formatted strings into *queue*.

    Runs in a ThreadPoolExecutor.  A ``None`` sentinel is enqueued when the
    run finishes so the async generator knows to stop.
    """
    def _put(payload: dict[str, Any]) -> None:
        loop.call_soon_threadsafe(queue.put_nowait, _sse(payload))

    def _on_event(node: str, update: dict) -> None:
        _put({"event": "node", "node": node, "status": update.get("status", "")})

    try:
        result = run_auto(body.goal, limit_per_site=body.limit_per_site, on_event=_on_event)
        if result.ok:
            _put({"event": "done", "result": _result_dict(result)})
        else:
            _put({"event": "error", "detail": result.error, "result": _result_dict(result)})
    except Exception as exc:  # noqa: BLE001
        _put({"event": "error", "detail": str(exc)})
    finally:
        loop.call_soon_threadsafe(queue.put_nowait, None)  # sentinel


async def _auto_sse_generator(body: AutoRequest) -> AsyncIterator[str]:
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[str | None] = asyncio.Queue()

    future = loop.run_in_executor(_executor, _run_pipeline, body, queue, loop)

    try:
        while True:
            item = await queue.get()
            if item is None:
                break
            yield item
    finally:
        await asyncio.shield(future)


@router.post("/auto")
async def auto_endpoint(body: AutoRequest) -> StreamingResponse:
    """Plan, fetch, synthesise and cite a report, streaming progress as SSE.

    - ``node``  — emitted after each pipeline step completes.
    - ``done``  — emitted at the end with the full result.
    - ``error`` — emitted once if any step fails; carries partial results.
    """
    return StreamingResponse(
        _auto_sse_generator(body),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",   # disable nginx proxy buffering
        },
    )
