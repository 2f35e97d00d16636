"""Minimal client for an OpenAI-compatible chat completions endpoint.

The endpoint is the full URL (``LLM_API``), e.g.
``https://api.openai.com/v1/chat/completions`` or a local server.  A bearer
token is sent only when ``LLM_API_KEY`` is set, so unauthenticated local
models work too.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx
from pydantic import BaseModel, ValidationError as SchemaError

from recon.config import Settings
from recon.errors import LLMError


class _Message(BaseModel):
    content: Optional[str] = None


class _Choice(BaseModel):
    message: _Message


class _Completion(BaseModel):
    choices: list[_Choice]


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase
    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict):
            return str(err.get("message") or response.reason_phrase)
        if err:
            return str(err)
    return response.reason_phrase


class LLMClient:
    """Sends one non-streaming chat completion per call."""

    def __init__(
        self,
        endpoint: str,
        model: str,
        api_key: str = "",
        timeout: float = 120.0,
    ) -> None:
        self.endpoint = endpoint
        self.model = model
        self._api_key = api_key
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "LLMClient":
        """Build a client from *settings*; raises if endpoint or model is missing."""
        settings.require_llm()
        return cls(
            endpoint=settings.llm_api,
            model=settings.llm_api_model,
            api_key=settings.llm_api_key,
            timeout=settings.llm_timeout,
        )

    def complete(
        self,
        messages: list[dict[str, str]],
        *,
        json_mode: bool = False,
        temperature: Optional[float] = None,
    ) -> str:
        """Return the assistant message content for *messages*.

        Raises:
            LLMError: On transport errors, non-2xx responses, malformed
                bodies, or an empty reply.
        """
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "stream": False,
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}
        if temperature is not None:
            payload["temperature"] = temperature

        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        try:
            with httpx.Client(timeout=self._timeout) as client:
                response = client.post(self.endpoint, headers=headers, json=payload)
        except httpx.HTTPError as exc:
            raise LLMError(f"Failed to communicate with LLM: {exc}") from exc

        if not response.is_success:
            raise LLMError(
                "Failed to communicate with LLM: request failed with status "
                f"{response.status_code}: {_error_detail(response)}",
                status_code=response.status_code,
            )

        try:
            completion = _Completion.model_validate(response.json())
        except (ValueError, SchemaError) as exc:
            raise LLMError("Failed to communicate with LLM: malformed response.") from exc

        content = completion.choices[0].message.content if completion.choices else None
        if not content or not content.strip():
            raise LLMError("No content returned from LLM.")
        return content
