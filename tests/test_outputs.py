"""
Exporter tests
"""

from __future__ import annotations

import json
from datetime import date, datetime
from pathlib import Path

import yaml

from models import GeneratedDocument, ResearchBundle, SourcePlatform, TopicIdeaSet
from outputs import (
    audit_paths,
    export_blog,
    export_json,
    export_topics,
    render_blog_markdown,
    topic_output_path,
    write_prompt_audit,
    write_research_snapshot,
)


def test_render_prefixes_title():
    document = GeneratedDocument(title="Hello", body="## Part one\ntext")

    assert render_blog_markdown(document) == "# Hello\n\n## Part one\ntext\n"


def test_render_keeps_existing_heading():
    document = GeneratedDocument(title="", body="# Already titled\n\nBody")

    assert render_blog_markdown(document, fallback_title="Topic") == "# Already titled\n\nBody\n"


def test_render_falls_back_to_topic_title():
    document = GeneratedDocument(body="Body only")

    assert render_blog_markdown(document, fallback_title="Dallas Mavericks") == "# Dallas Mavericks\n\nBody only\n"


def test_render_front_matter():
    document = GeneratedDocument(
        title="Hello", meta_description="desc", summary="sum", tags=["a", "b"], body="Body"
    )

    text = render_blog_markdown(document, front_matter=True, current_date=date(2025, 3, 1), author="ContentBot")

    header, content = text.split("---\n", 2)[1:]
    meta = yaml.safe_load(header)
    assert meta == {
        "title": "Hello",
        "date": "2025-03-01",
        "description": "desc",
        "summary": "sum",
        "tags": ["a", "b"],
        "author": "ContentBot",
    }
    assert content == "\n# Hello\n\nBody\n"


def test_paths():
    assert topic_output_path("out/topic-ideas.md") == Path("out/topic-ideas.json")
    assert topic_output_path("out/ideas.JSON") == Path("out/ideas.JSON")
    assert audit_paths("out/blog-post.md") == {
        "prompt": Path("out/prompts/blog-post-prompt.txt"),
        "research": Path("out/research/blog-post-research.json"),
    }


def test_audit_files(tmp_path, item_factory):
    output = tmp_path / "nested" / "blog-post.md"
    stamp = datetime(2025, 3, 1, 8, 0, 0)
    bundle = ResearchBundle(
        subject="Dallas Mavericks",
        items=[item_factory(SourcePlatform.FORUM, "Game thread")],
        requested={SourcePlatform.FORUM: 2},
        skipped={},
    )

    prompt_path = write_prompt_audit(output, label="Topic", subject="Dallas Mavericks", prompt_text="PROMPT\n", timestamp=stamp)
    research_path = write_research_snapshot(output, label="Topic", bundle=bundle, timestamp=stamp)

    assert prompt_path.read_text(encoding="utf-8") == "Topic: Dallas Mavericks\nTimestamp: 2025-03-01T08:00:00\n\nPROMPT\n"
    research = json.loads(research_path.read_text(encoding="utf-8"))
    assert research["topic"] == "Dallas Mavericks"
    assert research["timestamp"] == "2025-03-01T08:00:00"
    assert research["counts"] == {"reddit": 1, "total": 1}
    assert research["items"][0]["published_at"].startswith("2025-03-01T12:00:00")


def test_export_blog_creates_parent_directories(tmp_path):
    path = export_blog(tmp_path / "a" / "b" / "post.md", GeneratedDocument(title="T", body="B"))

    assert path.read_text(encoding="utf-8") == "# T\n\nB\n"


def test_export_topics_and_json(tmp_path):
    topics = TopicIdeaSet(category="Fintech", audience="founders", generated_at="2025-03-01", topics=[])

    topics_path = export_topics(tmp_path / "ideas.md", topics)
    json_path = export_json(tmp_path / "scrape.json", {"platform": "bing", "items": []})

    assert topics_path.name == "ideas.json"
    assert json.loads(topics_path.read_text(encoding="utf-8")) == {
        "category": "Fintech",
        "audience": "founders",
        "generatedAt": "2025-03-01",
        "topics": [],
    }
    assert json.loads(json_path.read_text(encoding="utf-8")) == {"platform": "bing", "items": []}
