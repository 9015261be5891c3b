"""Gemini provider: request payload, response parsing and error mapping."""

from __future__ import annotations

import httpx
import pytest

from g15.assistant.llm import GeminiProvider, LLMError, LLMRateLimitError

_RealAsyncClient = httpx.AsyncClient


def _provider() -> GeminiProvider:
    return GeminiProvider(
        api_key="test-key",
        model="gemini-test",
        base_url="https://llm.example.com/v1beta/",
        temperature=0.3,
        max_output_tokens=256,
    )


def _mock_transport(monkeypatch: pytest.MonkeyPatch, handler) -> None:
    transport = httpx.MockTransport(handler)
    monkeypatch.setattr(
        "g15.assistant.llm.httpx.AsyncClient",
        lambda **kwargs: _RealAsyncClient(transport=transport, **kwargs),
    )


def _ok_body(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class TestPayload:
    def test_system_and_user_prompt_combined(self):
        payload = _provider().build_payload("SYSTEM", "How do I save?")
        assert payload["contents"] == [{"parts": [{"text": "SYSTEM\n\nUser message: How do I save?"}]}]

    def test_empty_user_prompt_sends_system_only(self):
        payload = _provider().build_payload("SYSTEM", "")
        assert payload["contents"][0]["parts"][0]["text"] == "SYSTEM"

    def test_generation_config(self):
        config = _provider().build_payload("S", "U")["generationConfig"]
        assert config == {"temperature": 0.3, "topK": 40, "topP": 0.95, "maxOutputTokens": 256}

    def test_safety_settings(self):
        settings = _provider().build_payload("S", "U")["safetySettings"]
        assert len(settings) == 4
        assert {s["threshold"] for s in settings} == {"BLOCK_MEDIUM_AND_ABOVE"}


class TestExtractText:
    def test_extracts_first_candidate(self):
        assert GeminiProvider.extract_text(_ok_body("hi")) == "hi"

    @pytest.mark.parametrize(
        "body",
        [{}, {"candidates": []}, {"candidates": [{"content": {}}]}, {"candidates": [{"content": {"parts": [{}]}}]}],
    )
    def test_malformed_bodies(self, body: dict):
        with pytest.raises(LLMError):
            GeminiProvider.extract_text(body)


class TestGenerate:
    @pytest.mark.asyncio
    async def test_success(self, monkeypatch: pytest.MonkeyPatch):
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            return httpx.Response(200, json=_ok_body("Save 20% of income."))

        _mock_transport(monkeypatch, handler)
        assert await _provider().generate("S", "U") == "Save 20% of income."
        assert seen["url"] == "https://llm.example.com/v1beta/models/gemini-test:generateContent?key=test-key"

    @pytest.mark.asyncio
    async def test_rate_limited(self, monkeypatch: pytest.MonkeyPatch):
        _mock_transport(monkeypatch, lambda request: httpx.Response(429, json={}))
        with pytest.raises(LLMRateLimitError):
            await _provider().generate("S", "U")

    @pytest.mark.asyncio
    async def test_server_error(self, monkeypatch: pytest.MonkeyPatch):
        _mock_transport(monkeypatch, lambda request: httpx.Response(500, text="boom"))
        with pytest.raises(LLMError, match="HTTP 500") as exc_info:
            await _provider().generate("S", "U")
        assert not isinstance(exc_info.value, LLMRateLimitError)

    @pytest.mark.asyncio
    async def test_invalid_json(self, monkeypatch: pytest.MonkeyPatch):
        _mock_transport(monkeypatch, lambda request: httpx.Response(200, text="not json"))
        with pytest.raises(LLMError, match="invalid JSON"):
            await _provider().generate("S", "U")

    @pytest.mark.asyncio
    async def test_transport_error(self, monkeypatch: pytest.MonkeyPatch):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        _mock_transport(monkeypatch, handler)
        with pytest.raises(LLMError, match="request failed"):
            await _provider().generate("S", "U")
