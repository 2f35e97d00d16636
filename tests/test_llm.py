"""Tests for the chat completions client.

Mocking strategy:
- ``respx`` patches ``httpx`` at the transport layer; request bodies are
  inspected from the recorded calls.
"""

from __future__ import annotations

import json

import httpx
import pytest
import respx

from recon.agent.llm import LLMClient
from recon.config import Settings
from recon.errors import ConfigurationError, LLMError

_URL = "https://llm.test/v1/chat/completions"


def _reply(content) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})


class TestComplete:
    @respx.mock
    def test_returns_message_content(self) -> None:
        route = respx.post(_URL).mock(return_value=_reply("hello"))
        llm = LLMClient(_URL, "test-model", api_key="k")

        assert llm.complete([{"role": "user", "content": "hi"}]) == "hello"

        request = route.calls.last.request
        assert request.headers["Authorization"] == "Bearer k"
        body = json.loads(request.content)
        assert body["model"] == "test-model"
        assert body["stream"] is False
        assert body["messages"] == [{"role": "user", "content": "hi"}]
        assert "response_format" not in body

    @respx.mock
    def test_json_mode_and_temperature(self) -> None:
        route = respx.post(_URL).mock(return_value=_reply("{}"))
        LLMClient(_URL, "m").complete([], json_mode=True, temperature=0.2)

        body = json.loads(route.calls.last.request.content)
        assert body["response_format"] == {"type": "json_object"}
        assert body["temperature"] == 0.2

    @respx.mock
    def test_no_auth_header_for_keyless_endpoint(self) -> None:
        route = respx.post(_URL).mock(return_value=_reply("ok"))
        LLMClient(_URL, "m").complete([])
        assert "Authorization" not in route.calls.last.request.headers

    @respx.mock
    def test_non_2xx_raises_with_status(self) -> None:
        respx.post(_URL).mock(
            return_value=httpx.Response(429, json={"error": {"message": "rate limited"}})
        )
        with pytest.raises(LLMError) as exc:
            LLMClient(_URL, "m").complete([])
        assert exc.value.status_code == 429
        assert "rate limited" in str(exc.value)
        assert str(exc.value).startswith("Failed to communicate with LLM")

    @respx.mock
    def test_transport_error_raises(self) -> None:
        respx.post(_URL).mock(side_effect=httpx.ReadTimeout("slow"))
        with pytest.raises(LLMError, match="Failed to communicate with LLM"):
            LLMClient(_URL, "m").complete([])

    @respx.mock
    def test_malformed_body_raises(self) -> None:
        respx.post(_URL).mock(return_value=httpx.Response(200, json={"unexpected": True}))
        with pytest.raises(LLMError, match="malformed"):
            LLMClient(_URL, "m").complete([])

    @pytest.mark.parametrize("content", [None, "", "   "])
    @respx.mock
    def test_empty_reply_raises(self, content) -> None:
        respx.post(_URL).mock(return_value=_reply(content))
        with pytest.raises(LLMError, match="No content returned from LLM"):
            LLMClient(_URL, "m").complete([])


class TestFromSettings:
    def test_requires_endpoint_and_model(self) -> None:
        with pytest.raises(ConfigurationError, match="LLM_API, LLM_API_MODEL"):
            LLMClient.from_settings(Settings(llm_api="", llm_api_model=""))

    def test_key_is_optional(self) -> None:
        llm = LLMClient.from_settings(Settings(llm_api=_URL, llm_api_model="m", llm_api_key=""))
        assert llm.endpoint == _URL
        assert llm.model == "m"
