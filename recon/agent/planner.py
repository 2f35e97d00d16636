"""Goal → fetch plan, decided by the language model."""

from __future__ import annotations

import json
import re
from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError as SchemaError, field_validator

from recon.agent.llm import LLMClient
from recon.agent.prompts import planner_prompt
from recon.errors import PlannerError, ValidationError
from recon.scraper.fetcher import validate_url

MAX_PLAN_URLS = 5

_FENCE_RE = re.compile(r"^\s*```[\w-]*\s*\n?(.*?)\n?```\s*$", re.DOTALL)


class Plan(BaseModel):
    """Fetch strategy plus 1–5 target URLs.  Immutable once built."""

    model_config = ConfigDict(frozen=True)

    mode: Literal["crawl", "scrape"]
    urls: List[str] = Field(min_length=1, max_length=MAX_PLAN_URLS)

    @field_validator("urls")
    @classmethod
    def _absolute_urls(cls, urls: List[str]) -> List[str]:
        cleaned = [u.strip() for u in urls]
        for url in cleaned:
            try:
                validate_url(url)
            except ValidationError as exc:
                raise ValueError(str(exc)) from exc
        return cleaned


def parse_plan(raw: str) -> Plan:
    """Validate the model's raw reply as a :class:`Plan`.

    A Markdown code fence around the JSON is tolerated; anything else that
    is not a well-formed plan is rejected.

    Raises:
        PlannerError: If *raw* is not valid JSON or does not match the shape.
    """
    text = raw.strip()
    fenced = _FENCE_RE.match(text)
    if fenced:
        text = fenced.group(1).strip()
    try:
        return Plan.model_validate(json.loads(text))
    except (ValueError, SchemaError) as exc:
        raise PlannerError(f"planner returned invalid output: {exc}") from exc


def plan(llm: LLMClient, goal: str, today: Optional[date] = None) -> Plan:
    """Ask the model how to research *goal* and which URLs to fetch.

    Raises:
        ValidationError: If *goal* is empty.
        LLMError: If the completion request fails.
        PlannerError: If the reply is not a valid plan.  There is no
            fallback plan.
    """
    if not goal or not goal.strip():
        raise ValidationError("Research goal must not be empty.")

    prompt = planner_prompt(goal, today or date.today())
    raw = llm.complete(
        [{"role": "system", "content": prompt}],
        json_mode=True,
        temperature=0.2,
    )
    return parse_plan(raw)
