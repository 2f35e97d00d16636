"""State carried through the auto-analysis graph."""

from __future__ import annotations

from typing import List, Optional, TypedDict

from recon.agent.citations import CitedReport
from recon.agent.planner import Plan
from recon.scraper.models import CrawlGroup, PageRecord


class PipelineState(TypedDict, total=False):
    goal: str
    plan: Optional[Plan]
    mode: str
    pages: List[PageRecord]
    groups: List[CrawlGroup]
    raw_report: str
    report: Optional[CitedReport]
    status: str
