"""Prompt templates.

Templates are plain strings; the functions below are pure and only
substitute their arguments, so templates can be swapped or tested without
touching the orchestration code.
"""

from __future__ import annotations

from datetime import date

PLANNER_TEMPLATE = """\
You are an expert research assistant. Your goal is to understand a user's \
request and create a concrete, actionable plan to find the necessary \
information online. Today's date is {today}.

Decide the best strategy:
1. "crawl": the request is about one specific entity, company, product or \
project with a primary website; a crawl of that site is best.
2. "scrape": the request is broader and needs several independent sources \
(news, reviews, different organisations); a batch scrape of specific URLs \
is best.

Before choosing URLs, use your own knowledge to turn a vague request into \
the concrete named entities it refers to (the company, the project, the \
product, the people). Pick the official or most authoritative pages for \
those entities. Never reuse the user's literal wording as a search string \
and never return search-engine result URLs.

User request:
"{goal}"

Respond with a JSON object with exactly two properties:
- "mode": either "crawl" or "scrape"
- "urls": an array of 1 to 5 absolute URLs

Example:
{{"mode": "crawl", "urls": ["https://kafka.apache.org/"]}}

Do not write any text outside the JSON object. The URLs must be real and \
publicly accessible."""

SYNTHESIS_SYSTEM = (
    "You are a senior intelligence analyst. You write structured, factual "
    "reports strictly from the sources you are given."
)

SYNTHESIS_TEMPLATE = """\
Research goal: {goal}
Today's date: {today}

Below are {count} numbered sources. Write a well-structured report in \
Markdown, in {language}, that answers the research goal.

Rules:
- Organise the report with headings: a short summary, key findings, and a \
conclusion.
- Support every factual statement with a citation of the form [source N], \
where N is the number of the source it comes from. Cite several sources as \
[source 1], [source 3].
- Never write raw URLs in the report.
- Do not add a references, sources or bibliography section; it is added \
automatically.
- If the sources do not cover part of the goal, say so instead of guessing.

{sources}"""

SOURCE_BLOCK = """\
<source index="{index}" url="{url}">
{content}
</source>"""

QA_SYSTEM = (
    "You are an assistant that processes provided Markdown text based on a "
    "user's specific prompt."
)

QA_TEMPLATE = """\
Given the following Markdown content:

<markdown>
{markdown}
</markdown>

Based on the above, please address the following request: {question}"""


def planner_prompt(goal: str, today: date) -> str:
    return PLANNER_TEMPLATE.format(goal=goal.strip(), today=today.isoformat())


def source_block(index: int, url: str, content: str) -> str:
    return SOURCE_BLOCK.format(index=index, url=url, content=content)


def synthesis_prompt(
    goal: str, sources: str, count: int, language: str, today: date
) -> str:
    return SYNTHESIS_TEMPLATE.format(
        goal=goal.strip(),
        today=today.isoformat(),
        count=count,
        language=language,
        sources=sources,
    )


def qa_prompt(markdown: str, question: str) -> str:
    return QA_TEMPLATE.format(markdown=markdown, question=question.strip())
