"""Recon CLI: entry-point for all pipeline operations.

Usage:
    python cli/main.py --help

Commands map onto the pipeline steps:
    plan     → LLM planner only
    scrape   → fetch URLs through the scrape service
    crawl    → crawl expansion from seed URLs
    analyze  → full auto pipeline (plan → fetch → synthesise → cite)
    ask      → follow-up question about a Markdown export
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from recon.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import json
from typing import List, NoReturn, Optional

import typer

from recon.agent.runner import ask, plan_goal, run_auto, run_manual
from recon.errors import ReconError
from recon.scraper.analysis import PageStats, page_stats
from recon.scraper.export import groups_to_markdown, pages_to_markdown

app = typer.Typer(
    name="recon",
    help="Recon intelligence pipeline CLI.",
    no_args_is_help=True,
)


def _fail(message: str) -> NoReturn:
    typer.echo(f"[error] {message}", err=True)
    raise typer.Exit(1)


def _save(output: Optional[Path], text: str) -> None:
    if output is None:
        return
    output.write_text(text, encoding="utf-8")
    typer.echo(f"[saved] {output}")


def _describe(stats: PageStats) -> str:
    return (
        f"{stats.word_count} words, {stats.heading_count} headings, "
        f"completeness {stats.completeness}"
    )


# ---------------------------------------------------------------------------
# Plan
# ---------------------------------------------------------------------------
@app.command("plan")
def plan_cmd(
    goal: str = typer.Option(..., help="Research goal / question."),
) -> None:
    """Ask the LLM planner which URLs to fetch and how."""
    try:
        decided = plan_goal(goal)
    except ReconError as exc:
        _fail(str(exc))
    typer.echo(json.dumps(decided.model_dump(), indent=2))


# ---------------------------------------------------------------------------
# Scrape / crawl
# ---------------------------------------------------------------------------
@app.command("scrape")
def scrape_cmd(
    url: List[str] = typer.Option(..., "--url", help="URL to scrape (repeatable)."),
    output: Optional[Path] = typer.Option(None, help="Write a Markdown export here."),
) -> None:
    """Scrape one or more URLs and print a summary of each page."""
    typer.echo(f"[scrape] Fetching {len(url)} URL(s) …")
    result = run_manual(url, mode="scrape")
    if not result.ok:
        _fail(result.error or "scrape failed")

    for page in result.pages:
        if page.error:
            typer.echo(f"  ✗ {page.url}  {page.error}")
        else:
            stats = page_stats(page)
            typer.echo(f"  ✓ {page.url}  {page.title!r}  ({_describe(stats)})")
    _save(output, pages_to_markdown(result.pages))


@app.command("crawl")
def crawl_cmd(
    url: List[str] = typer.Option(..., "--url", help="Seed URL (repeatable)."),
    limit: Optional[int] = typer.Option(None, min=0, help="Links followed per seed."),
    output: Optional[Path] = typer.Option(None, help="Write a Markdown export here."),
) -> None:
    """Crawl seed URLs one level deep and print the pages found per seed."""
    typer.echo(f"[crawl] Crawling {len(url)} seed(s) …")
    result = run_manual(url, mode="crawl", limit_per_site=limit)
    if not result.ok:
        _fail(result.error or "crawl failed")

    for group in result.groups:
        typer.echo(f"{group.starting_url}  ({len(group.pages)} page(s))")
        for page in group.pages:
            if page.error:
                typer.echo(f"  ✗ {page.url}  {page.error}")
            else:
                typer.echo(f"  ✓ {page.url}  ({_describe(page_stats(page))})")
    _save(output, groups_to_markdown(result.groups))


# ---------------------------------------------------------------------------
# Auto analysis
# ---------------------------------------------------------------------------
@app.command("analyze")
def analyze_cmd(
    goal: str = typer.Option(..., help="Research goal / question."),
    limit: Optional[int] = typer.Option(None, min=0, help="Links followed per seed."),
    output: Optional[Path] = typer.Option(None, help="Write the report Markdown here."),
    html: bool = typer.Option(False, "--html", help="Print rendered HTML instead of Markdown."),
) -> None:
    """Plan, fetch, synthesise and cite a report for a goal."""
    typer.echo(f"[analyze] Starting analysis: {goal!r}")
    result = run_auto(goal, limit_per_site=limit)
    if not result.ok or result.report is None:
        _fail(result.error or "analysis produced no report")

    report = result.report
    typer.echo("\n" + "=" * 72)
    typer.echo(report.html if html else report.markdown)
    typer.echo("=" * 72)
    if report.source_map:
        typer.echo("Sources:")
        for index in sorted(report.source_map):
            typer.echo(f"  [{index}] {report.source_map[index]}")
    _save(output, report.markdown)


# ---------------------------------------------------------------------------
# Q&A
# ---------------------------------------------------------------------------
@app.command("ask")
def ask_cmd(
    file: Path = typer.Option(..., exists=True, dir_okay=False, help="Markdown export to ask about."),
    question: str = typer.Option(..., help="Question about the content."),
) -> None:
    """Ask a follow-up question about previously scraped Markdown."""
    try:
        answer = ask(file.read_text(encoding="utf-8"), question)
    except ReconError as exc:
        _fail(str(exc))
    typer.echo(answer)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
