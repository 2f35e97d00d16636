"""Tests for the LLM planner and its prompt."""

from __future__ import annotations

import json
from datetime import date

import pytest

from conftest import FakeLLM
from recon.agent.planner import Plan, parse_plan, plan
from recon.agent.prompts import planner_prompt
from recon.errors import LLMError, PlannerError, ValidationError

_GOAL = "Tell me about the Apache Kafka project"


class TestPlan:
    def test_kafka_goal_crawls_one_url(self) -> None:
        llm = FakeLLM('{"mode":"crawl","urls":["https://kafka.apache.org/"]}')
        decided = plan(llm, _GOAL, date(2024, 5, 1))

        assert decided.mode == "crawl"
        assert len(decided.urls) == 1
        assert decided.urls == ["https://kafka.apache.org/"]

    def test_request_is_json_mode_with_goal_and_date(self) -> None:
        llm = FakeLLM('{"mode":"scrape","urls":["https://a.com"]}')
        plan(llm, _GOAL, date(2024, 5, 1))

        call = llm.calls[0]
        assert call["json_mode"] is True
        assert call["temperature"] == 0.2
        prompt = call["messages"][0]["content"]
        assert _GOAL in prompt
        assert "2024-05-01" in prompt

    def test_empty_goal_rejected_before_llm(self) -> None:
        llm = FakeLLM()
        with pytest.raises(ValidationError):
            plan(llm, "   ")
        assert llm.calls == []

    def test_llm_failure_propagates(self) -> None:
        with pytest.raises(LLMError):
            plan(FakeLLM(LLMError("Failed to communicate with LLM: down")), _GOAL)


class TestParsePlan:
    def test_accepts_fenced_json(self) -> None:
        raw = '```json\n{"mode": "scrape", "urls": ["https://a.com/x"]}\n```'
        assert parse_plan(raw) == Plan(mode="scrape", urls=["https://a.com/x"])

    def test_strips_url_whitespace(self) -> None:
        assert parse_plan('{"mode":"scrape","urls":[" https://a.com "]}').urls == [
            "https://a.com"
        ]

    @pytest.mark.parametrize(
        "raw",
        [
            "not json at all",
            '{"mode": "crawl"}',
            '{"mode": "crawl", "urls": []}',
            '{"mode": "search", "urls": ["https://a.com"]}',
            '{"mode": "scrape", "urls": ["kafka.apache.org"]}',
            json.dumps({"mode": "scrape", "urls": [f"https://a.com/{i}" for i in range(6)]}),
        ],
    )
    def test_rejects_invalid_output(self, raw: str) -> None:
        with pytest.raises(PlannerError, match="planner returned invalid output"):
            parse_plan(raw)

    def test_five_urls_is_the_maximum(self) -> None:
        raw = json.dumps({"mode": "scrape", "urls": [f"https://a.com/{i}" for i in range(5)]})
        assert len(parse_plan(raw).urls) == 5

    def test_plan_is_immutable(self) -> None:
        decided = Plan(mode="crawl", urls=["https://a.com"])
        with pytest.raises(Exception):
            decided.mode = "scrape"  # type: ignore[misc]


class TestPlannerPrompt:
    def test_prompt_is_pure(self) -> None:
        first = planner_prompt(_GOAL, date(2024, 1, 2))
        assert first == planner_prompt(_GOAL, date(2024, 1, 2))
        assert '"mode"' in first
