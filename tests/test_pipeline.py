"""
ContentPipeline end-to-end tests (fake adapters and a scripted LLM, files under tmp_path)
"""

from __future__ import annotations

import json
from datetime import date

import pytest

from aggregator import DataAggregator
from intelligence import ContentPipeline, GenerationClient
from models import BlogFormat, RequestKind, SourcePlatform
from utils.exceptions import ConfigurationError, GenerationError


NEWS = SourcePlatform.NEWS_SEARCH_A
TAVILY = SourcePlatform.NEWS_SEARCH_B
TODAY = date(2025, 3, 1)

BLOG_REPLY = (
    "TITLE: The Mavericks Are Back\n"
    "META_DESCRIPTION: Dallas is contending again.\n"
    "SUMMARY: A look at the turnaround.\n"
    "TAGS: nba, mavericks\n"
    "BODY:\n"
    "## The turnaround\n"
    "Dallas clinched a playoff spot [1].\n"
)

TOPICS_REPLY = json.dumps({
    "category": "Dallas Mavericks",
    "audience": "fans",
    "generatedAt": "2025-03-01",
    "topics": [{"title": "Trade deadline winners", "summary": "s", "keyPoints": ["a"], "targetKeyword": "mavs trade", "valueProposition": "v"}],
})


def _pipeline(settings, scrapers, llm):
    return ContentPipeline(
        settings=settings,
        aggregator=DataAggregator(scrapers=scrapers, settings=settings),
        generation_client=GenerationClient(settings=settings.llm, llm=llm),
    )


@pytest.mark.asyncio
async def test_missing_credential_fails_before_research(settings_factory, scraper_factory, tmp_path):
    settings = settings_factory(groq_api_key=None)
    news = scraper_factory(NEWS, ["Mavs win"])
    pipeline = ContentPipeline(
        settings=settings,
        aggregator=DataAggregator(scrapers={NEWS: news}, settings=settings),
        generation_client=GenerationClient(settings=settings.llm),
    )

    with pytest.raises(ConfigurationError, match="GROQ_API_KEY"):
        await pipeline.create_blog("Dallas Mavericks", {NEWS: 3}, output_path=tmp_path / "blog-post.md")

    assert news.calls == []
    assert list(tmp_path.iterdir()) == []


@pytest.mark.asyncio
@pytest.mark.parametrize("subject", ["", "   "])
async def test_blank_subject_is_rejected(settings, scraper_factory, llm_factory, subject):
    news = scraper_factory(NEWS, ["Mavs win"])
    pipeline = _pipeline(settings, {NEWS: news}, llm_factory([BLOG_REPLY]))

    with pytest.raises(ConfigurationError):
        await pipeline.generate_topics(subject, {NEWS: 3})

    assert news.calls == []


@pytest.mark.asyncio
async def test_blog_run_writes_post_and_audit_files(settings, scraper_factory, llm_factory, tmp_path):
    news = scraper_factory(NEWS, ["Mavericks clinch playoff spot", "Kyrie Irving scores 40"])
    llm = llm_factory([BLOG_REPLY])
    pipeline = _pipeline(settings, {NEWS: news}, llm)
    output = tmp_path / "blog-post.md"

    result = await pipeline.create_blog(
        "Dallas Mavericks", {NEWS: 3}, keywords="mavs, nba", model="custom-model",
        output_path=output, current_date=TODAY,
    )

    assert result.kind == RequestKind.BLOG
    assert result.output_path == output
    assert result.document.title == "The Mavericks Are Back"
    assert output.read_text(encoding="utf-8") == (
        "# The Mavericks Are Back\n\n## The turnaround\nDallas clinched a playoff spot [1].\n"
    )

    assert llm.calls[0]["prompt"] == result.request.prompt_text
    assert llm.calls[0]["model"] == "custom-model"
    assert "Mavericks clinch playoff spot" in result.request.prompt_text

    prompt_audit = (tmp_path / "prompts" / "blog-post-prompt.txt").read_text(encoding="utf-8")
    assert prompt_audit.startswith("Topic: Dallas Mavericks\nTimestamp: ")
    assert prompt_audit.endswith(result.request.prompt_text)

    research = json.loads((tmp_path / "research" / "blog-post-research.json").read_text(encoding="utf-8"))
    assert research["topic"] == "Dallas Mavericks"
    assert research["counts"] == {"bing": 2, "total": 2}
    assert [item["title"] for item in research["items"]] == [
        "Mavericks clinch playoff spot",
        "Kyrie Irving scores 40",
    ]


@pytest.mark.asyncio
async def test_front_matter_blog(settings, scraper_factory, llm_factory, tmp_path):
    reply = "---\ntitle: Rust in 2025\ndescription: d\nsummary: s\ntags: [rust]\n---\n\nBody text.\n"
    pipeline = _pipeline(settings, {}, llm_factory([reply]))
    output = tmp_path / "post.md"

    await pipeline.create_blog(
        "Rust", {NEWS: 0}, output_path=output, current_date=TODAY, blog_format=BlogFormat.FRONT_MATTER
    )

    text = output.read_text(encoding="utf-8")
    assert text.startswith("---\ntitle: Rust in 2025\ndate: '2025-03-01'\n")
    assert "author: ContentBot\n" in text
    assert text.endswith("---\n\n# Rust in 2025\n\nBody text.\n")


@pytest.mark.asyncio
async def test_empty_completion_is_fatal_and_writes_nothing(settings, scraper_factory, llm_factory, tmp_path):
    news = scraper_factory(NEWS, ["Mavs win"])
    pipeline = _pipeline(settings, {NEWS: news}, llm_factory(["   "]))

    with pytest.raises(GenerationError, match="No content received"):
        await pipeline.create_blog("Dallas Mavericks", {NEWS: 1}, output_path=tmp_path / "blog-post.md")

    assert list(tmp_path.iterdir()) == []


@pytest.mark.asyncio
async def test_generation_retries_when_configured(settings_factory, scraper_factory, llm_factory):
    settings = settings_factory(max_attempts=2)
    llm = llm_factory([RuntimeError("503 from upstream"), BLOG_REPLY])
    pipeline = _pipeline(settings, {}, llm)

    result = await pipeline.create_blog("Dallas Mavericks", {NEWS: 0}, current_date=TODAY)

    assert len(llm.calls) == 2
    assert result.document.title == "The Mavericks Are Back"
    assert result.output_path is None


@pytest.mark.asyncio
async def test_topics_run_writes_json(settings, scraper_factory, llm_factory, tmp_path):
    news = scraper_factory(NEWS, ["Luka trade fallout"])
    tavily = scraper_factory(TAVILY, ["Mavericks attendance"])
    pipeline = _pipeline(settings, {NEWS: news, TAVILY: tavily}, llm_factory([TOPICS_REPLY]))

    result = await pipeline.generate_topics(
        "Dallas Mavericks", {NEWS: 3, TAVILY: 3}, count=1, audience="fans",
        output_path=tmp_path / "topic-ideas.md", current_date=TODAY,
    )

    assert result.output_path == tmp_path / "topic-ideas.json"
    assert tavily.calls[0]["purpose"] == "topics"
    assert "purpose" not in news.calls[0]
    written = json.loads(result.output_path.read_text(encoding="utf-8"))
    assert written["topics"][0]["targetKeyword"] == "mavs trade"
    assert (tmp_path / "prompts" / "topic-ideas-prompt.txt").read_text(encoding="utf-8").startswith(
        "Category: Dallas Mavericks\n"
    )


@pytest.mark.asyncio
async def test_unparseable_topics_are_written_degraded(settings, llm_factory, tmp_path):
    pipeline = _pipeline(settings, {}, llm_factory(["Sorry, I can only answer in prose."]))

    result = await pipeline.generate_topics(
        "Fintech", {NEWS: 0}, output_path=tmp_path / "topic-ideas.json", current_date=TODAY
    )

    assert result.topics.degraded
    written = json.loads((tmp_path / "topic-ideas.json").read_text(encoding="utf-8"))
    assert written["topics"] == []
    assert written["category"] == "Fintech"
    assert written["generatedAt"] == "2025-03-01"
    assert written["rawContent"] == "Sorry, I can only answer in prose."
    assert written["error"].startswith("Failed to parse JSON")
