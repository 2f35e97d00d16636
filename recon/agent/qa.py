"""Follow-up questions about scraped content."""

from __future__ import annotations

from recon.agent.llm import LLMClient
from recon.agent.prompts import QA_SYSTEM, qa_prompt
from recon.errors import ValidationError


def answer_question(llm: LLMClient, markdown: str, question: str) -> str:
    """Answer *question* using only *markdown* as context.

    Raises:
        ValidationError: If the question or the content is empty.
        LLMError: If the completion request fails.
    """
    if not question or not question.strip():
        raise ValidationError("Question must not be empty.")
    if not markdown or not markdown.strip():
        raise ValidationError("There is no scraped content to ask about.")

    return llm.complete(
        [
            {"role": "system", "content": QA_SYSTEM},
            {"role": "user", "content": qa_prompt(markdown, question)},
        ]
    )
