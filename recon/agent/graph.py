"""Build and compile the auto-analysis LangGraph StateGraph.

The graph topology is strictly linear:

    START → planner → fetcher → synthesiser → citer → END

Nodes are closures created by the ``make_*`` factories in
``recon.agent.nodes``.  No checkpointer is attached: a compiled graph is
built per run and holds no state between runs.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Optional

from langgraph.graph import END, START, StateGraph

from recon.agent.llm import LLMClient
from recon.agent.nodes import make_citer, make_fetcher, make_planner, make_synthesiser
from recon.agent.state import PipelineState
from recon.scraper.fetcher import ScrapeClient


def build_graph(
    llm: LLMClient,
    client: ScrapeClient,
    limit_per_site: int,
    today: Optional[date] = None,
    **synthesis_options: Any,
):
    """Compile and return the auto-analysis graph.

    Args:
        llm: Client used by the planner and synthesiser nodes.
        client: Scrape service client used by the fetcher node.
        limit_per_site: Links followed per seed when the plan says crawl.
        today: Date given to the prompts; defaults to today.
        **synthesis_options: Forwarded to the synthesiser node.
    """
    graph = StateGraph(PipelineState)

    graph.add_node("planner", make_planner(llm, today))
    graph.add_node("fetcher", make_fetcher(client, limit_per_site))
    graph.add_node("synthesiser", make_synthesiser(llm, today=today, **synthesis_options))
    graph.add_node("citer", make_citer())

    graph.add_edge(START, "planner")
    graph.add_edge("planner", "fetcher")
    graph.add_edge("fetcher", "synthesiser")
    graph.add_edge("synthesiser", "citer")
    graph.add_edge("citer", END)

    return graph.compile()
