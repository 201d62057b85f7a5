"""Shared fixtures: explicit settings (no .env lookups) and mock HTTP transports."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Callable, List

import httpx
import pytest

from config import (
    BingSettings,
    GeneralSettings,
    LLMSettings,
    OutputSettings,
    RedditSettings,
    Settings,
    SubstackSettings,
    TavilySettings,
    YouTubeSettings,
)
from models import ResearchItem, SourcePlatform
from intelligence.llm import BaseLLM, LLMResponse
from scrapers import BaseScraper


def build_settings(**llm_overrides) -> Settings:
    llm = {"groq_api_key": "test-groq-key", "openai_api_key": None}
    llm.update(llm_overrides)
    return Settings(
        bing=BingSettings(),
        tavily=TavilySettings(api_key=None),
        youtube=YouTubeSettings(api_key="test-youtube-key"),
        reddit=RedditSettings(),
        substack=SubstackSettings(),
        general=GeneralSettings(requests_per_second=1000.0, request_timeout=5.0),
        llm=LLMSettings(**llm),
        output=OutputSettings(),
    )


@pytest.fixture
def settings() -> Settings:
    return build_settings()


class RecordingTransport:
    """Wraps a handler and remembers every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.handler = handler
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


@pytest.fixture
def transport_factory():
    return RecordingTransport


def make_item(platform: SourcePlatform, title: str, **fields) -> ResearchItem:
    fields.setdefault("body", f"About {title}.")
    fields.setdefault("url", f"https://example.com/{title.lower().replace(' ', '-')}")
    fields.setdefault("published_at", datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc))
    return ResearchItem(platform=platform, title=title, **fields)


@pytest.fixture
def settings_factory():
    return build_settings


@pytest.fixture
def item_factory():
    return make_item


class FakeScraper(BaseScraper):
    """In-memory adapter: returns prepared titles after an optional delay."""

    def __init__(
        self,
        platform: SourcePlatform,
        titles: List[str],
        delay: float = 0.0,
        configured: bool = True,
        settings: Settings = None,
    ):
        super().__init__(settings=settings or build_settings())
        self._platform = platform
        self.titles = titles
        self.delay = delay
        self.configured = configured
        self.calls: List[dict] = []

    @property
    def platform(self) -> SourcePlatform:
        return self._platform

    @property
    def name(self) -> str:
        return f"Fake {self._platform.label}"

    @property
    def required_credential(self) -> str:
        return "FAKE_API_KEY"

    def is_configured(self) -> bool:
        return self.configured

    async def search(self, query: str, max_results: int, **options) -> List[ResearchItem]:
        self.calls.append({"query": query, "max_results": max_results, **options})
        if self.delay:
            await asyncio.sleep(self.delay)
        return [make_item(self._platform, title) for title in self.titles[:max_results]]


@pytest.fixture
def scraper_factory():
    return FakeScraper


class ScriptedLLM(BaseLLM):
    """Replays prepared replies; an Exception entry is raised instead of returned."""

    def __init__(self, replies):
        super().__init__(model="scripted-model")
        self.replies = list(replies)
        self.calls: List[dict] = []

    @property
    def provider(self) -> str:
        return "scripted"

    async def acomplete(self, messages, **kwargs) -> LLMResponse:
        self.calls.append({"prompt": messages[-1].content, **kwargs})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return LLMResponse(content=reply, model=kwargs.get("model") or self.model, finish_reason="stop")


@pytest.fixture
def llm_factory():
    return ScriptedLLM
