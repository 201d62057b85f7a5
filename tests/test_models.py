"""
Data model tests
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from models import (
    BODY_PREVIEW_LIMIT,
    GeneratedDocument,
    ResearchBundle,
    ResearchItem,
    SourcePlatform,
    TopicIdea,
    truncate_preview,
)


NEWS = SourcePlatform.NEWS_SEARCH_A


class TestResearchItem:

    @pytest.mark.parametrize("title", ["", "   ", None])
    def test_blank_title_is_rejected(self, title):
        with pytest.raises(ValidationError):
            ResearchItem(platform=NEWS, title=title)

    def test_body_is_bounded(self):
        item = ResearchItem(platform=NEWS, title="Long", body="word " * 400)

        assert len(item.body) == BODY_PREVIEW_LIMIT
        assert item.body.endswith("...")

    def test_missing_fields_are_normalized(self):
        before = datetime.now(timezone.utc)
        item = ResearchItem(platform=NEWS, title="  Padded  ", body=None, url=" ", author="", published_at=None)

        assert item.title == "Padded"
        assert item.body == ""
        assert item.url is None
        assert item.author is None
        assert item.published_at >= before

    def test_items_are_immutable(self):
        item = ResearchItem(platform=NEWS, title="Frozen")

        with pytest.raises(ValidationError):
            item.title = "Changed"


def test_truncate_preview_keeps_short_text():
    assert truncate_preview("  short  ") == "short"
    assert truncate_preview(None) == ""
    assert truncate_preview("abcdef", limit=5) == "ab..."


def test_bundle_grouping_keeps_first_seen_order(item_factory):
    bundle = ResearchBundle(
        subject="Dallas Mavericks",
        items=[
            item_factory(SourcePlatform.FORUM, "Thread"),
            item_factory(NEWS, "Story"),
            item_factory(SourcePlatform.FORUM, "Second thread"),
        ],
        requested={SourcePlatform.FORUM: 2, NEWS: 1, SourcePlatform.VIDEO: 3},
    )

    groups = bundle.by_platform()

    assert list(groups) == [SourcePlatform.FORUM, NEWS]
    assert [item.title for item in groups[SourcePlatform.FORUM]] == ["Thread", "Second thread"]
    assert bundle.counts() == {SourcePlatform.FORUM: 2, NEWS: 1, SourcePlatform.VIDEO: 0}


def test_document_requires_body():
    with pytest.raises(ValidationError):
        GeneratedDocument(title="No body", body="  ")


def test_topic_idea_accepts_loose_values():
    topic = TopicIdea.model_validate({"title": "T", "keyPoints": "single point", "targetKeyword": None})

    assert topic.key_points == ["single point"]
    assert topic.target_keyword == ""
    assert topic.model_dump(by_alias=True)["valueProposition"] == ""
