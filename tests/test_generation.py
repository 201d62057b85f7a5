"""
Generation client and LLM provider tests
"""

from __future__ import annotations

import json

import httpx
import pytest
from openai import AsyncOpenAI

from config import LLMSettings
from intelligence import GenerationClient
from intelligence.llm import DEFAULT_MODELS, BaseLLM, GroqLLM, LLMResponse, Message, OpenAILLM, get_llm
from utils.exceptions import ConfigurationError, GenerationError


@pytest.mark.asyncio
async def test_complete_returns_raw_text(llm_factory):
    llm = llm_factory(["TITLE: Hello\nBODY:\nWorld"])
    client = GenerationClient(settings=LLMSettings(groq_api_key=None), llm=llm)

    text = await client.complete("Write something", model_id="llama-3.1-8b-instant")

    assert text == "TITLE: Hello\nBODY:\nWorld"
    assert llm.calls == [{"prompt": "Write something", "model": "llama-3.1-8b-instant"}]


@pytest.mark.asyncio
async def test_provider_needs_only_acomplete():
    class EchoLLM(BaseLLM):
        @property
        def provider(self) -> str:
            return "echo"

        async def acomplete(self, messages, **kwargs) -> LLMResponse:
            return LLMResponse(content=messages[-1].content, model=self.model)

    llm = EchoLLM(model="echo-1")
    client = GenerationClient(settings=LLMSettings(), llm=llm)

    assert await client.complete("ping") == "ping"
    assert Message.user("ping").to_dict() == {"role": "user", "content": "ping"}
    assert await llm.aclose() is None


@pytest.mark.asyncio
async def test_default_model_is_used_without_override(llm_factory):
    llm = llm_factory(["ok"])
    client = GenerationClient(settings=LLMSettings(), llm=llm)

    await client.complete("prompt")

    assert llm.calls[0]["model"] == "scripted-model"


@pytest.mark.asyncio
@pytest.mark.parametrize("reply", ["", "  \n  "])
async def test_blank_completion_raises(llm_factory, reply):
    client = GenerationClient(settings=LLMSettings(), llm=llm_factory([reply]))

    with pytest.raises(GenerationError, match="No content received from generation endpoint"):
        await client.complete("prompt")


@pytest.mark.asyncio
async def test_provider_failure_is_wrapped(llm_factory):
    client = GenerationClient(settings=LLMSettings(), llm=llm_factory([RuntimeError("rate limited")]))

    with pytest.raises(GenerationError) as exc_info:
        await client.complete("prompt")

    assert exc_info.value.provider == "scripted"
    assert isinstance(exc_info.value.__cause__, RuntimeError)
    assert "rate limited" in exc_info.value.message


def test_configuration_follows_provider_key():
    assert GenerationClient(settings=LLMSettings(groq_api_key=None)).is_configured() is False
    assert GenerationClient(settings=LLMSettings(groq_api_key="gsk-test")).is_configured() is True

    openai_client = GenerationClient(settings=LLMSettings(openai_api_key=None), provider="openai")
    assert openai_client.required_credential == "OPENAI_API_KEY"
    assert openai_client.is_configured() is False


def test_factory_builds_groq_with_defaults():
    llm = get_llm(settings=LLMSettings(provider="groq", groq_api_key="gsk-test", temperature=0.2))

    assert isinstance(llm, GroqLLM)
    assert llm.model == DEFAULT_MODELS["groq"] == "llama-3.3-70b-versatile"
    assert llm.base_url == "https://api.groq.com/openai/v1"
    assert llm.api_key == "gsk-test"
    assert llm.temperature == 0.2


def test_factory_rejects_unknown_provider():
    with pytest.raises(ConfigurationError, match="Unsupported LLM provider"):
        get_llm(provider="carrier-pigeon", settings=LLMSettings())


@pytest.mark.asyncio
async def test_openai_compatible_request(transport_factory):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={
            "id": "chatcmpl-1",
            "object": "chat.completion",
            "created": 1740830400,
            "model": "llama-3.3-70b-versatile",
            "choices": [{
                "index": 0,
                "message": {"role": "assistant", "content": "Generated text"},
                "finish_reason": "stop",
            }],
            "usage": {"prompt_tokens": 12, "completion_tokens": 3, "total_tokens": 15},
        })

    transport = transport_factory(handler)
    llm = GroqLLM(api_key="gsk-test", temperature=0.3, max_tokens=256)
    llm._async_client = AsyncOpenAI(api_key="gsk-test", base_url=llm.base_url, http_client=transport.client())

    response = await llm.acomplete([Message.user("Hello")])

    assert response.content == "Generated text"
    assert response.usage["total_tokens"] == 15
    request = transport.requests[0]
    assert request.url.path == "/openai/v1/chat/completions"
    body = json.loads(request.content)
    assert body["model"] == "llama-3.3-70b-versatile"
    assert body["messages"] == [{"role": "user", "content": "Hello"}]
    assert body["temperature"] == 0.3
    assert body["max_tokens"] == 256
    await llm.aclose()


def test_openai_llm_reports_provider():
    assert OpenAILLM(api_key="sk-test").provider == "openai"
