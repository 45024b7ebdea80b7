"""Tests for the LiteLLM inference client."""

from types import SimpleNamespace

import pytest

from contextpipe.providers import litellm_provider
from contextpipe.providers.litellm_provider import LiteLLMInferenceClient


def _completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class TestBuildMessages:
    def test_system_and_prompt(self):
        client = LiteLLMInferenceClient()
        messages = client.build_messages({"system_prompt": "be brief", "prompt": "summarize"})
        assert messages == [
            {"role": "system", "content": "be brief"},
            {"role": "user", "content": "summarize"},
        ]

    def test_prompt_only(self):
        messages = LiteLLMInferenceClient().build_messages({"prompt": "p"})
        assert messages == [{"role": "user", "content": "p"}]


class TestInvoke:
    @pytest.mark.asyncio
    async def test_success(self, monkeypatch):
        captured = {}

        async def fake_acompletion(**kwargs):
            captured.update(kwargs)
            return _completion("a summary")

        monkeypatch.setattr(litellm_provider, "acompletion", fake_acompletion)
        client = LiteLLMInferenceClient(api_key="sk-test", api_base="https://llm.local/v1")

        response = await client.invoke("openai/gpt-4o-mini", {"prompt": "p"})

        assert response.ok
        assert response.data == {"response": "a summary"}
        assert captured["model"] == "openai/gpt-4o-mini"
        assert captured["api_key"] == "sk-test"
        assert captured["api_base"] == "https://llm.local/v1"

    @pytest.mark.asyncio
    async def test_error_redacts_key(self, monkeypatch):
        async def fake_acompletion(**kwargs):
            raise RuntimeError("auth failed for sk-secret-123456")

        monkeypatch.setattr(litellm_provider, "acompletion", fake_acompletion)
        client = LiteLLMInferenceClient(api_key="sk-secret-123456")

        response = await client.invoke("m", {"prompt": "p"})

        assert not response.ok
        assert "sk-secret-123456" not in response.error
        assert "***" in response.error

    @pytest.mark.asyncio
    async def test_empty_content(self, monkeypatch):
        async def fake_acompletion(**kwargs):
            return _completion(None)

        monkeypatch.setattr(litellm_provider, "acompletion", fake_acompletion)
        response = await LiteLLMInferenceClient().invoke("m", {"prompt": "p"})
        assert response.error == "Empty completion content"

    def test_timeout_from_environment(self, monkeypatch):
        monkeypatch.setenv("CONTEXTPIPE_LLM_TIMEOUT_SECONDS", "12")
        assert LiteLLMInferenceClient().request_timeout_seconds == 12.0
